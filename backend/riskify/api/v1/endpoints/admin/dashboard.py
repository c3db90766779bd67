"""
Admin Dashboard endpoints - usage statistics and popular trades.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case, and_
from datetime import datetime

from riskify.core.database import get_db
from riskify.models import (
    CreditTransaction,
    CreditTransactionType,
    PaymentTransaction,
    SubscriptionStatus,
    SwmsDocument,
    SwmsStatus,
    TransactionStatus,
    User,
    UserRole,
)
from riskify.modules.auth.dependencies import get_current_admin
from riskify.schemas.admin import PopularTrade, PopularTradesResponse, UsageStats

router = APIRouter()


@router.get("/usage", response_model=UsageStats)
async def get_usage_stats(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Platform usage KPIs"""
    now = datetime.utcnow()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    live = SwmsDocument.deleted_at.is_(None)

    # User stats
    total_users = await db.scalar(select(func.count(User.id)))
    active_users = await db.scalar(select(func.count(User.id)).where(User.is_active == True))
    admin_users = await db.scalar(select(func.count(User.id)).where(User.role == UserRole.ADMIN))
    new_users_month = await db.scalar(
        select(func.count(User.id)).where(User.created_at >= month_start)
    )
    active_subscriptions = await db.scalar(
        select(func.count(User.id)).where(User.subscription_status == SubscriptionStatus.ACTIVE)
    )

    # Document stats
    total_documents = await db.scalar(select(func.count(SwmsDocument.id)))
    draft_documents = await db.scalar(
        select(func.count(SwmsDocument.id)).where(and_(live, SwmsDocument.status == SwmsStatus.DRAFT))
    )
    completed_documents = await db.scalar(
        select(func.count(SwmsDocument.id)).where(and_(live, SwmsDocument.status == SwmsStatus.COMPLETED))
    )
    deleted_documents = await db.scalar(
        select(func.count(SwmsDocument.id)).where(SwmsDocument.deleted_at.is_not(None))
    )
    documents_month = await db.scalar(
        select(func.count(SwmsDocument.id)).where(SwmsDocument.created_at >= month_start)
    )

    # Credits & revenue
    credits_outstanding = await db.scalar(
        select(func.coalesce(
            func.sum(User.subscription_credits + User.addon_credits + User.swms_credits), 0
        ))
    )
    credits_used = await db.scalar(
        select(func.coalesce(func.sum(-CreditTransaction.credits_changed), 0)).where(
            CreditTransaction.transaction_type == CreditTransactionType.USAGE
        )
    )
    revenue = await db.scalar(
        select(func.coalesce(func.sum(PaymentTransaction.amount), 0)).where(
            PaymentTransaction.status == TransactionStatus.SUCCESS
        )
    )

    return UsageStats(
        total_users=total_users or 0,
        active_users=active_users or 0,
        admin_users=admin_users or 0,
        new_users_this_month=new_users_month or 0,
        active_subscriptions=active_subscriptions or 0,
        total_documents=total_documents or 0,
        draft_documents=draft_documents or 0,
        completed_documents=completed_documents or 0,
        deleted_documents=deleted_documents or 0,
        documents_this_month=documents_month or 0,
        credits_outstanding=int(credits_outstanding or 0),
        credits_used=int(credits_used or 0),
        revenue_cents=int(revenue or 0)
    )


@router.get("/popular-trades", response_model=PopularTradesResponse)
async def get_popular_trades(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Trades ranked by number of documents"""
    documents = func.count(SwmsDocument.id)
    result = await db.execute(
        select(
            SwmsDocument.trade_type,
            documents,
            func.sum(case((SwmsDocument.status == SwmsStatus.COMPLETED, 1), else_=0))
        )
        .where(SwmsDocument.trade_type.is_not(None), SwmsDocument.deleted_at.is_(None))
        .group_by(SwmsDocument.trade_type)
        .order_by(documents.desc())
        .limit(limit)
    )

    return PopularTradesResponse(trades=[
        PopularTrade(trade=trade, documents=count, completed=int(completed or 0))
        for trade, count, completed in result.all()
    ])
