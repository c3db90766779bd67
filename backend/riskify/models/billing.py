from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from riskify.core.database import Base
from riskify.core.types import GUID, JSONDocument, generate_uuid


class TransactionStatus(str, enum.Enum):
    """Payment status"""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"


class CreditTransactionType(str, enum.Enum):
    """Reason for a credit balance change"""
    USAGE = "usage"
    PURCHASE = "purchase"
    SUBSCRIPTION = "subscription"
    MONTHLY_RESET = "monthly_reset"
    ADMIN_ADJUSTMENT = "admin_adjustment"
    REFUND = "refund"


class CreditTransaction(Base):
    """Ledger entry for every change of a user's SWMS credits"""
    __tablename__ = "credit_transactions"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id = Column(GUID, ForeignKey("swms_documents.id", ondelete="SET NULL"), nullable=True)

    transaction_type = Column(SQLEnum(CreditTransactionType), nullable=False)
    bucket = Column(String(20), nullable=False)  # 'subscription', 'addon', 'legacy'

    credits_before = Column(Integer, nullable=False)
    credits_changed = Column(Integer, nullable=False)  # positive adds, negative deducts
    credits_after = Column(Integer, nullable=False)

    description = Column(Text, nullable=True)
    extra_metadata = Column(JSONDocument, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="credit_transactions")

    def __repr__(self):
        return f"<CreditTransaction {self.transaction_type.value} {self.credits_changed:+d}>"


class PaymentTransaction(Base):
    """Razorpay order and its outcome"""
    __tablename__ = "payment_transactions"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Razorpay
    razorpay_order_id = Column(String(255), unique=True, nullable=False)
    razorpay_payment_id = Column(String(255), nullable=True)
    razorpay_signature = Column(String(500), nullable=True)

    # Amount
    amount = Column(Integer, nullable=False)  # in cents
    currency = Column(String(10), default="AUD")

    status = Column(SQLEnum(TransactionStatus), default=TransactionStatus.PENDING, nullable=False)
    package = Column(String(50), nullable=False)
    credits = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    extra_metadata = Column(JSONDocument, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<PaymentTransaction {self.razorpay_order_id} ({self.status.value})>"
