"""
Admin Audit Logs endpoints.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, or_
from datetime import datetime
from typing import Optional

from riskify.core.database import get_db
from riskify.models import User, AuditLog
from riskify.modules.auth.dependencies import get_current_admin
from riskify.schemas.admin import AuditLogResponse, AuditLogsResponse
from riskify.utils.pagination import paginate

router = APIRouter()


@router.get("/audit-logs", response_model=AuditLogsResponse)
async def list_audit_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = None,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    admin_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """List audit logs with filtering and pagination, newest first"""
    conditions = []
    if action:
        conditions.append(AuditLog.action == action)
    if target_type:
        conditions.append(AuditLog.target_type == target_type)
    if target_id:
        conditions.append(AuditLog.target_id == target_id)
    if admin_id:
        conditions.append(AuditLog.admin_id == admin_id)
    if start_date:
        conditions.append(AuditLog.created_at >= start_date)
    if end_date:
        conditions.append(AuditLog.created_at <= end_date)
    if search:
        search_term = f"%{search}%"
        conditions.append(or_(
            AuditLog.action.ilike(search_term),
            AuditLog.target_type.ilike(search_term)
        ))

    query = select(AuditLog, User).join(User, AuditLog.admin_id == User.id)
    count_query = select(func.count(AuditLog.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))

    rows, meta = await paginate(
        db, query.order_by(AuditLog.created_at.desc()), page, page_size,
        count_query=count_query, scalars=False
    )

    items = [
        AuditLogResponse(
            id=str(log.id),
            admin_id=str(log.admin_id),
            admin_email=admin.email,
            action=log.action,
            target_type=log.target_type,
            target_id=str(log.target_id) if log.target_id else None,
            details=log.details,
            ip_address=log.ip_address,
            created_at=log.created_at
        )
        for log, admin in rows
    ]

    return AuditLogsResponse(
        items=items,
        total=meta["total"],
        page=meta["page"],
        page_size=meta["page_size"],
        total_pages=meta["total_pages"]
    )
