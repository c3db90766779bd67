"""
Admin User Management endpoints.
"""
from fastapi import APIRouter, Depends, Query, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, and_
from datetime import datetime
from typing import Dict, List, Optional

from riskify.core.config import settings
from riskify.core.database import get_db
from riskify.core.logging_config import logger
from riskify.core.security import get_password_hash
from riskify.models import AuditLog, CreditTransactionType, SubscriptionStatus, SwmsDocument, User, UserRole
from riskify.modules.auth.dependencies import get_current_admin
from riskify.schemas.admin import (
    AdminBucketCredits,
    AdminCreditsAdd,
    AdminCreditsResponse,
    AdminCreditsSet,
    AdminPasswordUpdate,
    AdminRoleUpdate,
    AdminUserResponse,
    AdminUsersResponse,
    AdminUserUpdate,
)
from riskify.services.credit_service import credit_service
from riskify.utils.pagination import paginate

router = APIRouter()


async def log_admin_action(
    db: AsyncSession,
    admin_id: str,
    action: str,
    target_type: str,
    target_id: str = None,
    details: dict = None,
    request: Request = None,
    commit: bool = True
):
    """Log an admin action to audit log"""
    log = AuditLog(
        admin_id=admin_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
        ip_address=request.client.host if request and request.client else None,
        user_agent=request.headers.get("user-agent") if request else None
    )
    db.add(log)
    logger.info(f"[Admin] {action} on {target_type} {target_id} by {admin_id}")
    if commit:
        await db.commit()


async def _get_user(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


async def _document_counts(db: AsyncSession, user_ids: List[str]) -> Dict[str, int]:
    if not user_ids:
        return {}
    result = await db.execute(
        select(SwmsDocument.user_id, func.count(SwmsDocument.id))
        .where(SwmsDocument.user_id.in_(user_ids), SwmsDocument.deleted_at.is_(None))
        .group_by(SwmsDocument.user_id)
    )
    return {str(user_id): count for user_id, count in result.all()}


def _user_response(user: User, documents_count: int = 0) -> AdminUserResponse:
    item = AdminUserResponse.model_validate(user)
    item.documents_count = documents_count
    return item


def _credits_response(user: User) -> AdminCreditsResponse:
    return AdminCreditsResponse(
        user_id=str(user.id),
        email=user.email,
        swms_generated=user.swms_generated or 0,
        **credit_service.balance(user),
    )


# ==================== Users ====================

@router.get("", response_model=AdminUsersResponse)
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    sort_by: str = Query("created_at", pattern="^(created_at|email|full_name|last_login|swms_generated)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """List all users with search, filtering, sorting and pagination"""
    query = select(User)

    conditions = []
    if search:
        search_term = f"%{search}%"
        conditions.append(or_(
            User.email.ilike(search_term),
            User.full_name.ilike(search_term),
            User.username.ilike(search_term),
            User.company_name.ilike(search_term)
        ))
    if role is not None:
        conditions.append(User.role == role)
    if is_active is not None:
        conditions.append(User.is_active == is_active)
    if conditions:
        query = query.where(and_(*conditions))

    sort_column = getattr(User, sort_by)
    query = query.order_by(sort_column.desc() if sort_order == "desc" else sort_column.asc())

    users, meta = await paginate(db, query, page, page_size)
    counts = await _document_counts(db, [user.id for user in users])

    return AdminUsersResponse(
        items=[_user_response(user, counts.get(str(user.id), 0)) for user in users],
        total=meta["total"],
        page=meta["page"],
        page_size=meta["page_size"],
        total_pages=meta["total_pages"]
    )


@router.get("/{user_id}", response_model=AdminUserResponse)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    user = await _get_user(db, user_id)
    counts = await _document_counts(db, [user.id])
    return _user_response(user, counts.get(str(user.id), 0))


@router.put("/{user_id}", response_model=AdminUserResponse)
async def update_user(
    user_id: str,
    update_data: AdminUserUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Update a user's profile, status or subscription (admin only)"""
    user = await _get_user(db, user_id)

    if update_data.username and update_data.username != user.username:
        taken = await db.scalar(select(User.id).where(User.username == update_data.username))
        if taken:
            raise HTTPException(status_code=400, detail="Username already taken")

    if update_data.is_active is False and str(user.id) == str(current_admin.id):
        raise HTTPException(status_code=400, detail="Cannot deactivate your own account")

    # Track changes for audit log
    changes = {}
    for field, value in update_data.model_dump(exclude_unset=True).items():
        old = getattr(user, field)
        if value != old:
            changes[field] = {
                "old": old.value if isinstance(old, SubscriptionStatus) else old,
                "new": value.value if isinstance(value, SubscriptionStatus) else value,
            }
            setattr(user, field, value)

    if changes:
        user.updated_at = datetime.utcnow()
        await log_admin_action(
            db, current_admin.id, "user_updated", "user", str(user.id),
            details={"changes": changes}, request=request, commit=False
        )
        await db.commit()
        await db.refresh(user)

    counts = await _document_counts(db, [user.id])
    return _user_response(user, counts.get(str(user.id), 0))


@router.patch("/{user_id}/admin", response_model=AdminUserResponse)
async def set_admin_role(
    user_id: str,
    role_update: AdminRoleUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Grant or revoke admin rights"""
    user = await _get_user(db, user_id)
    if str(user.id) == str(current_admin.id) and not role_update.is_admin:
        raise HTTPException(status_code=400, detail="Cannot revoke your own admin rights")

    new_role = UserRole.ADMIN if role_update.is_admin else UserRole.USER
    if new_role != user.role:
        old_role = user.role
        user.role = new_role
        user.updated_at = datetime.utcnow()
        await log_admin_action(
            db, current_admin.id, "admin_granted" if role_update.is_admin else "admin_revoked",
            "user", str(user.id),
            details={"old_role": old_role.value, "new_role": new_role.value},
            request=request, commit=False
        )
        await db.commit()
        await db.refresh(user)

    return _user_response(user)


@router.patch("/{user_id}/password")
async def reset_password(
    user_id: str,
    password_update: AdminPasswordUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Set a new password for a user"""
    user = await _get_user(db, user_id)
    user.hashed_password = get_password_hash(password_update.new_password)
    user.updated_at = datetime.utcnow()
    await log_admin_action(
        db, current_admin.id, "password_reset", "user", str(user.id),
        request=request, commit=False
    )
    await db.commit()
    return {"message": "Password updated successfully", "user_id": str(user.id)}


# ==================== Credits ====================

@router.get("/{user_id}/credits", response_model=AdminCreditsResponse)
async def get_user_credits(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    user = await _get_user(db, user_id)
    return _credits_response(user)


@router.post("/{user_id}/credits", response_model=AdminCreditsResponse)
async def add_user_credits(
    user_id: str,
    credits_add: AdminCreditsAdd,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Add credits to a bucket; a negative amount removes them"""
    if credits_add.credits == 0:
        raise HTTPException(status_code=400, detail="Credits must not be zero")

    user = await _get_user(db, user_id)
    await credit_service.add(
        db, user, credits_add.credits, bucket=credits_add.bucket,
        transaction_type=CreditTransactionType.ADMIN_ADJUSTMENT,
        description=credits_add.reason or f"Admin adjustment ({credits_add.credits:+d})",
        metadata={"admin_id": str(current_admin.id)}, commit=False,
    )
    await log_admin_action(
        db, current_admin.id, "credits_added", "user", str(user.id),
        details={"credits": credits_add.credits, "bucket": credits_add.bucket, "reason": credits_add.reason},
        request=request, commit=False
    )
    await db.commit()
    await db.refresh(user)
    return _credits_response(user)


@router.patch("/{user_id}/credits", response_model=AdminCreditsResponse)
async def set_user_credits(
    user_id: str,
    credits_set: AdminCreditsSet,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Set a bucket to an absolute value"""
    user = await _get_user(db, user_id)
    await credit_service.set_balance(
        db, user, credits_set.credits, bucket=credits_set.bucket,
        description=credits_set.reason or "Balance set by admin",
        metadata={"admin_id": str(current_admin.id)}, commit=False,
    )
    await log_admin_action(
        db, current_admin.id, "credits_set", "user", str(user.id),
        details={"credits": credits_set.credits, "bucket": credits_set.bucket, "reason": credits_set.reason},
        request=request, commit=False
    )
    await db.commit()
    await db.refresh(user)
    return _credits_response(user)


@router.post("/{user_id}/subscription-credits", response_model=AdminCreditsResponse)
async def add_subscription_credits(
    user_id: str,
    payload: AdminBucketCredits,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """
    Add subscription credits. With ``plan`` the user is also put on that
    plan for a full term, refilling to its allowance every reset period.
    """
    user = await _get_user(db, user_id)

    if payload.plan:
        if settings.get_subscription_allowance(payload.plan) <= 0:
            raise HTTPException(status_code=400, detail=f"Unknown subscription plan: {payload.plan}")
        credit_service.start_plan(user, payload.plan)

    await credit_service.add(
        db, user, payload.credits, bucket="subscription",
        transaction_type=CreditTransactionType.ADMIN_ADJUSTMENT,
        description=payload.reason or f"{payload.credits} subscription credits added by admin",
        metadata={"admin_id": str(current_admin.id), "plan": payload.plan}, commit=False,
    )
    await log_admin_action(
        db, current_admin.id, "subscription_credits_added", "user", str(user.id),
        details={"credits": payload.credits, "plan": payload.plan, "reason": payload.reason},
        request=request, commit=False
    )
    await db.commit()
    await db.refresh(user)
    return _credits_response(user)


@router.post("/{user_id}/addon-credits", response_model=AdminCreditsResponse)
async def add_addon_credits(
    user_id: str,
    payload: AdminBucketCredits,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Add add-on credits (never expire)"""
    user = await _get_user(db, user_id)
    await credit_service.add(
        db, user, payload.credits, bucket="addon",
        transaction_type=CreditTransactionType.ADMIN_ADJUSTMENT,
        description=payload.reason or f"{payload.credits} add-on credits added by admin",
        metadata={"admin_id": str(current_admin.id)}, commit=False,
    )
    await log_admin_action(
        db, current_admin.id, "addon_credits_added", "user", str(user.id),
        details={"credits": payload.credits, "reason": payload.reason},
        request=request, commit=False
    )
    await db.commit()
    await db.refresh(user)
    return _credits_response(user)
