"""
RAZORPAY PAYMENT SERVICE
========================
Order creation, checkout verification and webhook fulfilment for credit
packages and subscription plans.

Flow:
1. User picks a package → create_order → Razorpay order_id
2. Frontend opens Razorpay checkout with order_id
3. Frontend calls verify → signature checked, credits granted
4. Webhook → backup fulfilment when the redirect never arrives

Fulfilment is idempotent: a transaction already marked SUCCESS never
grants credits twice.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from datetime import datetime
from typing import Optional, Dict, Any, List
import json

import razorpay

from riskify.core.config import settings
from riskify.core.exceptions import (
    AuthenticationError,
    PaymentError,
    PaymentNotConfiguredError,
    PaymentProviderError,
    ResourceNotFoundError,
    ValidationError,
)
from riskify.core.logging_config import logger
from riskify.core.security import verify_hmac_sha256
from riskify.models.billing import CreditTransactionType, PaymentTransaction, TransactionStatus
from riskify.models.user import User
from riskify.services.credit_service import credit_service


class PaymentService:
    """Razorpay orders and credit fulfilment"""

    def __init__(self):
        self._client = None

    @property
    def is_configured(self) -> bool:
        return bool(settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET)

    @property
    def client(self):
        if not self.is_configured:
            raise PaymentNotConfiguredError()
        if self._client is None:
            self._client = razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))
        return self._client

    @staticmethod
    def packages() -> Dict[str, Dict[str, Any]]:
        return {key: value for key, value in settings.get_credit_packages().items() if value}

    # ==================== ORDERS ====================

    async def create_order(self, db: AsyncSession, user: User, package_key: str) -> Dict[str, Any]:
        """Create a Razorpay order and a pending transaction"""
        client = self.client
        packages = self.packages()
        if package_key not in packages:
            logger.warning(f"[Payment] Invalid package '{package_key}'. Available: {list(packages.keys())}")
            raise ValidationError(
                f"Invalid package '{package_key}'. Choose: {', '.join(packages.keys())}", field="package"
            )
        package = packages[package_key]

        # Receipt must be max 40 chars
        receipt = f"rk_{str(user.id)[:8]}_{int(datetime.utcnow().timestamp())}"
        notes = {
            "user_id": str(user.id),
            "user_email": user.email,
            "package": package_key,
            "credits": package["credits"],
            "kind": package["kind"],
        }
        try:
            order = client.order.create(data={
                "amount": package["price"],
                "currency": settings.PAYMENT_CURRENCY,
                "receipt": receipt,
                "notes": notes,
            })
        except Exception as e:
            logger.error(f"[Payment] Order creation failed: {e}")
            raise PaymentProviderError("Failed to create payment order. Please try again.") from e

        transaction = PaymentTransaction(
            user_id=user.id,
            razorpay_order_id=order["id"],
            amount=package["price"],
            currency=settings.PAYMENT_CURRENCY,
            status=TransactionStatus.PENDING,
            package=package_key,
            credits=package["credits"],
            description=f"{package['name']} ({package['credits']} credits)",
            extra_metadata={"package_name": package["name"], "kind": package["kind"]},
        )
        db.add(transaction)
        await db.commit()
        logger.info(f"[Payment] Created Razorpay order: {order['id']} for user {user.id}")

        return {
            "order_id": order["id"],
            "amount": package["price"],
            "currency": settings.PAYMENT_CURRENCY,
            "key_id": settings.RAZORPAY_KEY_ID,
            "package": package_key,
            "package_name": package["name"],
            "credits": package["credits"],
            "kind": package["kind"],
            "notes": notes,
        }

    # ==================== FULFILMENT ====================

    async def _fulfil(
        self,
        db: AsyncSession,
        transaction: PaymentTransaction,
        payment_id: Optional[str],
        signature: Optional[str] = None
    ) -> bool:
        """Mark a transaction paid and grant its credits; False if already done"""
        if transaction.status == TransactionStatus.SUCCESS:
            logger.info(f"[Payment] Transaction {transaction.razorpay_order_id} already processed")
            return False

        now = datetime.utcnow()
        transaction.razorpay_payment_id = payment_id
        if signature:
            transaction.razorpay_signature = signature
        transaction.status = TransactionStatus.SUCCESS
        transaction.completed_at = now
        transaction.updated_at = now

        user = await db.get(User, transaction.user_id)
        kind = (transaction.extra_metadata or {}).get("kind", "addon")
        if kind == "subscription":
            await credit_service.activate_subscription(db, user, transaction.package, commit=False)
        else:
            await credit_service.add(
                db, user, transaction.credits, bucket="addon",
                transaction_type=CreditTransactionType.PURCHASE,
                description=f"Purchased {transaction.description}",
                metadata={"order_id": transaction.razorpay_order_id},
                commit=False,
            )
        await db.commit()
        logger.info(f"[Payment] Credited {transaction.credits} credits to user {transaction.user_id}")
        return True

    async def verify(
        self,
        db: AsyncSession,
        user: User,
        order_id: str,
        payment_id: str,
        signature: str
    ) -> Dict[str, Any]:
        """Verify checkout signature (HMAC of ``order_id|payment_id``) and grant credits"""
        if not self.is_configured:
            raise PaymentNotConfiguredError()

        result = await db.execute(
            select(PaymentTransaction).where(
                PaymentTransaction.razorpay_order_id == order_id,
                PaymentTransaction.user_id == user.id,
            )
        )
        transaction = result.scalar_one_or_none()
        if transaction is None:
            raise ResourceNotFoundError("Transaction", order_id)

        message = f"{order_id}|{payment_id}".encode()
        if not verify_hmac_sha256(settings.RAZORPAY_KEY_SECRET, message, signature):
            logger.warning(f"[Payment] Invalid signature for order {order_id}")
            if transaction.status == TransactionStatus.PENDING:
                transaction.status = TransactionStatus.FAILED
                transaction.updated_at = datetime.utcnow()
                await db.commit()
            raise PaymentError("Payment verification failed. Invalid signature.")

        if transaction.status == TransactionStatus.FAILED:
            raise PaymentError("Transaction already marked as failed")

        credited = await self._fulfil(db, transaction, payment_id, signature)
        await db.refresh(user)
        return {
            "status": "success",
            "message": (
                f"Payment successful! {transaction.credits} credits added to your account."
                if credited else "Payment already processed"
            ),
            "credits_added": transaction.credits if credited else 0,
            "total_credits": user.total_credits,
        }

    # ==================== WEBHOOK ====================

    async def handle_webhook(self, db: AsyncSession, body: bytes, signature: Optional[str]) -> Dict[str, Any]:
        if not settings.RAZORPAY_WEBHOOK_SECRET:
            logger.warning("[Webhook] Webhook secret not configured")
            return {"status": "skipped", "reason": "webhook not configured"}

        if not verify_hmac_sha256(settings.RAZORPAY_WEBHOOK_SECRET, body, signature):
            logger.warning("[Webhook] Invalid webhook signature")
            raise AuthenticationError("Invalid webhook signature")

        try:
            payload = json.loads(body.decode())
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise ValidationError("Webhook body is not valid JSON")

        event = payload.get("event")
        logger.info(f"[Webhook] Received event: {event}")

        if event == "payment.captured":
            payment = payload.get("payload", {}).get("payment", {}).get("entity", {})
            await self._captured(db, payment.get("order_id"), payment.get("id"))
        elif event == "order.paid":
            order = payload.get("payload", {}).get("order", {}).get("entity", {})
            payment = payload.get("payload", {}).get("payment", {}).get("entity", {})
            await self._captured(db, order.get("id"), payment.get("id") or order.get("payment_id"))
        elif event == "payment.failed":
            payment = payload.get("payload", {}).get("payment", {}).get("entity", {})
            await self._failed(db, payment.get("order_id"))

        return {"status": "ok", "event": event}

    async def _captured(self, db: AsyncSession, order_id: Optional[str], payment_id: Optional[str]):
        if not order_id:
            logger.warning("[Webhook] No order_id in captured event")
            return
        result = await db.execute(
            select(PaymentTransaction).where(PaymentTransaction.razorpay_order_id == order_id)
        )
        transaction = result.scalar_one_or_none()
        if transaction is None:
            logger.warning(f"[Webhook] Transaction not found for order {order_id}")
            return
        await self._fulfil(db, transaction, payment_id)

    async def _failed(self, db: AsyncSession, order_id: Optional[str]):
        if not order_id:
            return
        await db.execute(
            update(PaymentTransaction)
            .where(
                PaymentTransaction.razorpay_order_id == order_id,
                PaymentTransaction.status == TransactionStatus.PENDING,
            )
            .values(status=TransactionStatus.FAILED, updated_at=datetime.utcnow())
        )
        await db.commit()
        logger.info(f"[Webhook] Marked transaction {order_id} as failed")

    # ==================== HISTORY ====================

    async def history(self, db: AsyncSession, user: User, limit: int = 20) -> List[PaymentTransaction]:
        result = await db.execute(
            select(PaymentTransaction)
            .where(PaymentTransaction.user_id == user.id)
            .order_by(PaymentTransaction.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


payment_service = PaymentService()
