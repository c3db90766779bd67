"""
Credit Service - SWMS generation credits

Handles:
- Consumption across the three buckets (subscription -> addon -> legacy)
- Purchases, subscription grants and admin adjustments
- Monthly reset of subscription credits
- The credit_transactions ledger
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime, timedelta
from typing import Optional, List, Tuple, Dict, Any

from riskify.core.config import settings
from riskify.core.exceptions import InsufficientCreditsError, ValidationError
from riskify.core.logging_config import logger
from riskify.models.billing import CreditTransaction, CreditTransactionType
from riskify.models.user import User, SubscriptionStatus

# Consumption order
BUCKETS = ("subscription", "addon", "legacy")

_BUCKET_ATTRS = {
    "subscription": "subscription_credits",
    "addon": "addon_credits",
    "legacy": "swms_credits",
}

MONTHLY_RESET_INTERVAL = timedelta(days=settings.SUBSCRIPTION_RESET_DAYS)
SUBSCRIPTION_TERM = timedelta(days=settings.SUBSCRIPTION_TERM_DAYS)


class CreditService:
    """Service for reading and changing a user's SWMS credits"""

    # ==================== READ ====================

    @staticmethod
    def balance(user: User) -> Dict[str, int]:
        """Per-bucket balance plus total"""
        return {
            "subscription_credits": user.subscription_credits or 0,
            "addon_credits": user.addon_credits or 0,
            "swms_credits": user.swms_credits or 0,
            "total_credits": user.total_credits,
        }

    async def get_history(
        self,
        db: AsyncSession,
        user_id: str,
        page: int = 1,
        page_size: int = 20
    ) -> Tuple[List[CreditTransaction], int]:
        """Ledger entries for a user, newest first"""
        total = await db.scalar(
            select(func.count(CreditTransaction.id)).where(CreditTransaction.user_id == user_id)
        )
        result = await db.execute(
            select(CreditTransaction)
            .where(CreditTransaction.user_id == user_id)
            .order_by(CreditTransaction.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total or 0

    # ==================== LEDGER ====================

    def _record(
        self,
        db: AsyncSession,
        user: User,
        transaction_type: CreditTransactionType,
        bucket: str,
        before: int,
        changed: int,
        description: str,
        document_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> CreditTransaction:
        transaction = CreditTransaction(
            user_id=user.id,
            document_id=document_id,
            transaction_type=transaction_type,
            bucket=bucket,
            credits_before=before,
            credits_changed=changed,
            credits_after=before + changed,
            description=description,
            extra_metadata=metadata,
        )
        db.add(transaction)
        logger.log_credit_event(
            transaction_type.value, str(user.id), changed, user.total_credits,
            bucket=bucket, document_id=str(document_id) if document_id else None,
        )
        return transaction

    # ==================== CONSUME ====================

    async def consume(
        self,
        db: AsyncSession,
        user: User,
        amount: int = None,
        document_id: Optional[str] = None,
        description: str = "SWMS generation",
        commit: bool = True
    ) -> List[CreditTransaction]:
        """
        Deduct credits, draining subscription credits first, then add-on,
        then the legacy balance.

        Raises:
            InsufficientCreditsError: total balance is below ``amount``
        """
        amount = settings.SWMS_CREDIT_COST if amount is None else amount
        if amount <= 0:
            raise ValidationError("Credit amount must be positive", field="amount")

        await self.apply_monthly_reset(db, user, commit=False)

        if user.total_credits < amount:
            logger.warning(
                f"[Credits] User {user.id} has {user.total_credits} credits, needs {amount}"
            )
            raise InsufficientCreditsError(required=amount, available=user.total_credits)

        transactions = []
        remaining = amount
        for bucket in BUCKETS:
            if remaining == 0:
                break
            attr = _BUCKET_ATTRS[bucket]
            available = getattr(user, attr) or 0
            take = min(available, remaining)
            if take == 0:
                continue
            setattr(user, attr, available - take)
            remaining -= take
            transactions.append(self._record(
                db, user, CreditTransactionType.USAGE, bucket, available, -take,
                description, document_id=document_id,
            ))

        user.swms_generated = (user.swms_generated or 0) + 1
        user.updated_at = datetime.utcnow()

        if commit:
            await db.commit()
            await db.refresh(user)
        return transactions

    # ==================== ADD / SET ====================

    async def add(
        self,
        db: AsyncSession,
        user: User,
        amount: int,
        bucket: str = "addon",
        transaction_type: CreditTransactionType = CreditTransactionType.PURCHASE,
        description: str = "",
        metadata: Optional[Dict[str, Any]] = None,
        commit: bool = True
    ) -> CreditTransaction:
        """Add (or with a negative amount, remove) credits in one bucket"""
        if bucket not in _BUCKET_ATTRS:
            raise ValidationError(f"Unknown credit bucket '{bucket}'", field="bucket")
        attr = _BUCKET_ATTRS[bucket]
        before = getattr(user, attr) or 0
        if before + amount < 0:
            raise ValidationError(
                f"Cannot remove {-amount} {bucket} credits, only {before} available", field="amount"
            )
        setattr(user, attr, before + amount)
        user.updated_at = datetime.utcnow()
        transaction = self._record(
            db, user, transaction_type, bucket, before, amount,
            description or f"{amount:+d} {bucket} credits", metadata=metadata,
        )
        if commit:
            await db.commit()
            await db.refresh(user)
        return transaction

    async def set_balance(
        self,
        db: AsyncSession,
        user: User,
        value: int,
        bucket: str = "legacy",
        description: str = "Balance set by admin",
        metadata: Optional[Dict[str, Any]] = None,
        commit: bool = True
    ) -> CreditTransaction:
        """Set one bucket to an absolute value"""
        if value < 0:
            raise ValidationError("Credits cannot be negative", field="credits")
        if bucket not in _BUCKET_ATTRS:
            raise ValidationError(f"Unknown credit bucket '{bucket}'", field="bucket")
        current = getattr(user, _BUCKET_ATTRS[bucket]) or 0
        return await self.add(
            db, user, value - current, bucket=bucket,
            transaction_type=CreditTransactionType.ADMIN_ADJUSTMENT,
            description=description, metadata=metadata, commit=commit,
        )

    # ==================== SUBSCRIPTIONS ====================

    async def activate_subscription(
        self,
        db: AsyncSession,
        user: User,
        plan: str,
        commit: bool = True
    ) -> CreditTransaction:
        """Start (or renew) a subscription plan and grant its monthly credits"""
        allowance = settings.get_subscription_allowance(plan)
        if allowance <= 0:
            raise ValidationError(f"Unknown subscription plan '{plan}'", field="plan")

        before = user.subscription_credits or 0
        self.start_plan(user, plan)
        user.subscription_credits = allowance
        transaction = self._record(
            db, user, CreditTransactionType.SUBSCRIPTION, "subscription", before, allowance - before,
            f"{plan.capitalize()} subscription activated", metadata={"plan": plan},
        )
        if commit:
            await db.commit()
            await db.refresh(user)
        return transaction

    @staticmethod
    def start_plan(user: User, plan: str, now: Optional[datetime] = None):
        """Put the user on a plan for a full term, starting a new reset cycle"""
        now = now or datetime.utcnow()
        user.subscription_type = plan
        user.subscription_status = SubscriptionStatus.ACTIVE
        user.subscription_expires_at = now + SUBSCRIPTION_TERM
        user.last_credit_reset = now

    def reset_due(self, user: User, now: Optional[datetime] = None) -> bool:
        if user.subscription_status != SubscriptionStatus.ACTIVE or not user.subscription_type:
            return False
        now = now or datetime.utcnow()
        return user.last_credit_reset is None or now - user.last_credit_reset >= MONTHLY_RESET_INTERVAL

    async def apply_monthly_reset(
        self,
        db: AsyncSession,
        user: User,
        now: Optional[datetime] = None,
        commit: bool = True
    ) -> Optional[CreditTransaction]:
        """
        Refill subscription credits to the plan allowance once a month.
        Unused subscription credits do not roll over; add-on credits are untouched.
        """
        now = now or datetime.utcnow()
        if not self.reset_due(user, now):
            return None

        if user.subscription_expires_at and user.subscription_expires_at <= now:
            # Term is over; renewals arrive through payments
            before = user.subscription_credits or 0
            user.subscription_status = SubscriptionStatus.EXPIRED
            user.subscription_credits = 0
            transaction = self._record(
                db, user, CreditTransactionType.MONTHLY_RESET, "subscription", before, -before,
                "Subscription expired",
            )
        else:
            allowance = settings.get_subscription_allowance(user.subscription_type)
            before = user.subscription_credits or 0
            user.subscription_credits = allowance
            transaction = self._record(
                db, user, CreditTransactionType.MONTHLY_RESET, "subscription", before, allowance - before,
                "Monthly subscription credit reset", metadata={"plan": user.subscription_type},
            )
        user.last_credit_reset = now

        if commit:
            await db.commit()
            await db.refresh(user)
        return transaction


credit_service = CreditService()
