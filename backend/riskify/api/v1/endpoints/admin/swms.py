"""
Admin SWMS document endpoints: every document with its owner.
"""
from fastapi import APIRouter, Depends, Query, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from typing import Optional

from riskify.core.database import get_db
from riskify.models import SwmsDocument, SwmsStatus, User
from riskify.modules.auth.dependencies import get_current_admin
from riskify.schemas.admin import AdminSwmsItem, AdminSwmsListResponse, AdminUserSwmsResponse
from riskify.utils.pagination import paginate

router = APIRouter()


def _item(document: SwmsDocument, owner: Optional[User]) -> AdminSwmsItem:
    return AdminSwmsItem(
        id=str(document.id),
        title=document.title,
        project_name=document.project_name,
        job_number=document.job_number,
        trade_type=document.trade_type,
        status=document.status,
        created_at=document.created_at,
        updated_at=document.updated_at,
        completed_at=document.completed_at,
        deleted_at=document.deleted_at,
        owner_id=str(document.user_id),
        owner_email=owner.email if owner else None,
        owner_name=owner.full_name if owner else None,
        owner_company=owner.company_name if owner else None,
    )


@router.get("/user/{user_id}/swms", response_model=AdminUserSwmsResponse)
async def get_user_swms(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """All of one user's documents, recycle bin included, with counts"""
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    result = await db.execute(
        select(SwmsDocument)
        .where(SwmsDocument.user_id == user.id)
        .order_by(SwmsDocument.updated_at.desc())
    )
    documents = list(result.scalars().all())
    live = [d for d in documents if d.deleted_at is None]

    return AdminUserSwmsResponse(
        user_id=str(user.id),
        email=user.email,
        documents=[_item(d, user) for d in documents],
        total=len(documents),
        draft_count=sum(1 for d in live if d.status == SwmsStatus.DRAFT),
        completed_count=sum(1 for d in live if d.status == SwmsStatus.COMPLETED),
        deleted_count=len(documents) - len(live),
    )


@router.get("/swms", response_model=AdminSwmsListResponse)
async def list_all_swms(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    status: Optional[SwmsStatus] = None,
    trade: Optional[str] = None,
    include_deleted: bool = False,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """All documents across users with owner details"""
    query = select(SwmsDocument, User).join(User, SwmsDocument.user_id == User.id)

    if not include_deleted:
        query = query.where(SwmsDocument.deleted_at.is_(None))
    if status is not None:
        query = query.where(SwmsDocument.status == status)
    if trade:
        query = query.where(SwmsDocument.trade_type == trade)
    if search:
        search_term = f"%{search}%"
        query = query.where(or_(
            SwmsDocument.title.ilike(search_term),
            SwmsDocument.project_name.ilike(search_term),
            SwmsDocument.job_number.ilike(search_term),
            User.email.ilike(search_term),
            User.company_name.ilike(search_term)
        ))

    count_query = select(func.count()).select_from(query.with_only_columns(SwmsDocument.id).subquery())
    rows, meta = await paginate(
        db, query.order_by(SwmsDocument.created_at.desc()), page, page_size,
        count_query=count_query, scalars=False
    )

    return AdminSwmsListResponse(
        items=[_item(document, owner) for document, owner in rows],
        total=meta["total"],
        page=meta["page"],
        page_size=meta["page_size"],
        total_pages=meta["total_pages"]
    )
