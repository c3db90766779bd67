"""
RAZORPAY PAYMENT INTEGRATION
============================
Credit packs and subscription plans paid through Razorpay checkout.

Flow:
1. User picks a package → /payments/create-payment-intent → Razorpay order_id
2. Frontend opens Razorpay checkout with order_id
3. Frontend calls /payments/verify → signature checked, credits granted
4. Webhook /payments/webhook → backup fulfilment when the redirect never arrives
"""

from fastapi import APIRouter, Depends, Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from riskify.core.config import settings
from riskify.core.database import get_db
from riskify.models.user import User
from riskify.modules.auth.dependencies import get_current_user
from riskify.schemas.billing import (
    CreatePaymentIntentRequest,
    CreatePaymentIntentResponse,
    CreditPackage,
    PackagesResponse,
    PaymentHistoryItem,
    PaymentHistoryResponse,
    PaymentStatusResponse,
    VerifyPaymentRequest,
)
from riskify.services.payment_service import payment_service

router = APIRouter()


@router.get("/packages", response_model=PackagesResponse)
async def get_packages():
    """Available credit packs and subscription plans (public)"""
    return PackagesResponse(
        packages=[
            CreditPackage(key=key, currency=settings.PAYMENT_CURRENCY, **package)
            for key, package in payment_service.packages().items()
        ],
        configured=payment_service.is_configured,
    )


@router.post("/create-payment-intent", response_model=CreatePaymentIntentResponse)
async def create_payment_intent(
    request: CreatePaymentIntentRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a Razorpay order for a package"""
    return await payment_service.create_order(db, current_user, request.package)


@router.post("/verify", response_model=PaymentStatusResponse)
async def verify_payment(
    request: VerifyPaymentRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Verify the checkout signature and grant the package's credits"""
    return await payment_service.verify(
        db, current_user,
        order_id=request.razorpay_order_id,
        payment_id=request.razorpay_payment_id,
        signature=request.razorpay_signature,
    )


@router.post("/webhook")
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
):
    """
    Razorpay webhook. The signature is an HMAC-SHA256 of the raw body.

    Events handled: payment.captured, order.paid, payment.failed
    """
    body = await request.body()
    return await payment_service.handle_webhook(db, body, x_razorpay_signature)


@router.get("/history", response_model=PaymentHistoryResponse)
async def get_payment_history(
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    transactions = await payment_service.history(db, current_user, limit=limit)
    return PaymentHistoryResponse(
        transactions=[PaymentHistoryItem.model_validate(t) for t in transactions],
        total=len(transactions),
    )
