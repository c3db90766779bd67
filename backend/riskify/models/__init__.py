# Re-export all models for convenient imports
from riskify.models.user import User, UserRole, SubscriptionStatus
from riskify.models.swms import SwmsDocument, SwmsStatus, SignatureStatus
from riskify.models.signature import SwmsSignature
from riskify.models.check_in import SwmsCheckIn, VerificationStatus
from riskify.models.billing import (
    CreditTransaction,
    CreditTransactionType,
    PaymentTransaction,
    TransactionStatus,
)
from riskify.models.audit_log import AuditLog

__all__ = [
    # User
    "User",
    "UserRole",
    "SubscriptionStatus",
    # SWMS
    "SwmsDocument",
    "SwmsStatus",
    "SignatureStatus",
    "SwmsSignature",
    "SwmsCheckIn",
    "VerificationStatus",
    # Billing
    "CreditTransaction",
    "CreditTransactionType",
    "PaymentTransaction",
    "TransactionStatus",
    # Admin
    "AuditLog",
]
