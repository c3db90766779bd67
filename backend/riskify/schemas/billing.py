from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from riskify.models.billing import CreditTransactionType, TransactionStatus
from riskify.models.user import SubscriptionStatus


# ==================== Credits ====================

class CreditBalance(BaseModel):
    subscription_credits: int
    addon_credits: int
    swms_credits: int
    total_credits: int


class SubscriptionInfo(BaseModel):
    subscription_type: Optional[str] = None
    subscription_status: SubscriptionStatus
    subscription_expires_at: Optional[datetime] = None
    monthly_allowance: int = 0
    last_credit_reset: Optional[datetime] = None


class BillingResponse(BaseModel):
    credits: CreditBalance
    subscription: SubscriptionInfo
    swms_generated: int
    credit_cost: int


class UseCreditResponse(BaseModel):
    success: bool = True
    credits_used: int
    buckets: List[str]
    credits: CreditBalance


class CreditTransactionResponse(BaseModel):
    id: str
    document_id: Optional[str] = None
    transaction_type: CreditTransactionType
    bucket: str
    credits_before: int
    credits_changed: int
    credits_after: int
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CreditHistoryResponse(BaseModel):
    transactions: List[CreditTransactionResponse]
    total: int
    page: int
    page_size: int


# ==================== Payments ====================

class CreditPackage(BaseModel):
    key: str
    name: str
    credits: int
    price: int  # cents
    currency: str
    kind: str  # 'addon' or 'subscription'


class PackagesResponse(BaseModel):
    packages: List[CreditPackage]
    configured: bool


class CreatePaymentIntentRequest(BaseModel):
    """Request to create a payment order"""
    package: str  # 'single', 'pack', 'pro', 'enterprise'


class CreatePaymentIntentResponse(BaseModel):
    """Response with Razorpay order details"""
    order_id: str
    amount: int  # in cents
    currency: str
    key_id: str  # Razorpay key for frontend
    package: str
    package_name: str
    credits: int
    kind: str
    notes: Dict[str, Any]


class VerifyPaymentRequest(BaseModel):
    """Request to verify payment after checkout"""
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class PaymentStatusResponse(BaseModel):
    status: str
    message: str
    credits_added: int = 0
    total_credits: Optional[int] = None


class PaymentHistoryItem(BaseModel):
    order_id: str = Field(..., validation_alias="razorpay_order_id")
    payment_id: Optional[str] = Field(None, validation_alias="razorpay_payment_id")
    amount: int
    currency: str
    status: TransactionStatus
    package: str
    credits: int
    description: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentHistoryResponse(BaseModel):
    transactions: List[PaymentHistoryItem]
    total: int
