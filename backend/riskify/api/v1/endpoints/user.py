from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from riskify.core.config import settings
from riskify.core.database import get_db
from riskify.models.user import User
from riskify.modules.auth.dependencies import get_current_user
from riskify.schemas.billing import (
    BillingResponse,
    CreditBalance,
    CreditHistoryResponse,
    CreditTransactionResponse,
    SubscriptionInfo,
    UseCreditResponse,
)
from riskify.services.credit_service import credit_service

router = APIRouter()


def _subscription_info(user: User) -> SubscriptionInfo:
    return SubscriptionInfo(
        subscription_type=user.subscription_type,
        subscription_status=user.subscription_status,
        subscription_expires_at=user.subscription_expires_at,
        monthly_allowance=settings.get_subscription_allowance(user.subscription_type) if user.subscription_type else 0,
        last_credit_reset=user.last_credit_reset,
    )


@router.get("/billing", response_model=BillingResponse)
async def get_billing(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Credit breakdown by bucket and subscription state"""
    await credit_service.apply_monthly_reset(db, current_user)
    return BillingResponse(
        credits=CreditBalance(**credit_service.balance(current_user)),
        subscription=_subscription_info(current_user),
        swms_generated=current_user.swms_generated or 0,
        credit_cost=settings.SWMS_CREDIT_COST,
    )


@router.get("/subscription", response_model=SubscriptionInfo)
async def get_subscription(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await credit_service.apply_monthly_reset(db, current_user)
    return _subscription_info(current_user)


@router.post("/use-credit", response_model=UseCreditResponse)
async def use_credit(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Consume one SWMS generation credit.

    Subscription credits go first, then add-on credits, then the legacy
    balance. Returns 402 when the user has nothing left.
    """
    transactions = await credit_service.consume(db, current_user, description="Credit used")
    return UseCreditResponse(
        credits_used=-sum(t.credits_changed for t in transactions),
        buckets=[t.bucket for t in transactions],
        credits=CreditBalance(**credit_service.balance(current_user)),
    )


@router.get("/credit-history", response_model=CreditHistoryResponse)
async def credit_history(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    transactions, total = await credit_service.get_history(db, current_user.id, page, page_size)
    return CreditHistoryResponse(
        transactions=[CreditTransactionResponse.model_validate(t) for t in transactions],
        total=total,
        page=page,
        page_size=page_size,
    )
