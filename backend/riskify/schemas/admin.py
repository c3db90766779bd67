from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from riskify.models.swms import SwmsStatus
from riskify.models.user import SubscriptionStatus, UserRole


# ==================== User Management Schemas ====================

class AdminUserResponse(BaseModel):
    """User as seen by an admin, with credits and usage"""
    id: str
    email: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    role: UserRole
    is_active: bool
    company_name: Optional[str] = None
    primary_trade: Optional[str] = None
    created_at: datetime
    last_login: Optional[datetime] = None

    subscription_type: Optional[str] = None
    subscription_status: SubscriptionStatus
    subscription_credits: int = 0
    addon_credits: int = 0
    swms_credits: int = 0
    total_credits: int = 0
    swms_generated: int = 0
    documents_count: int = 0

    class Config:
        from_attributes = True


class AdminUsersResponse(BaseModel):
    """Paginated users response for admin"""
    items: List[AdminUserResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class AdminUserUpdate(BaseModel):
    """Update user by admin"""
    full_name: Optional[str] = None
    username: Optional[str] = None
    is_active: Optional[bool] = None
    company_name: Optional[str] = None
    abn: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    primary_trade: Optional[str] = None
    license_number: Optional[str] = None
    subscription_type: Optional[str] = None
    subscription_status: Optional[SubscriptionStatus] = None


# ==================== Credits ====================

class AdminCreditsResponse(BaseModel):
    user_id: str
    email: str
    subscription_credits: int
    addon_credits: int
    swms_credits: int
    total_credits: int
    swms_generated: int


class AdminCreditsAdd(BaseModel):
    """Add (or with a negative value, remove) credits"""
    credits: int = Field(..., description="Credits to add; negative removes")
    bucket: str = Field("addon", pattern="^(subscription|addon|legacy)$")
    reason: Optional[str] = None


class AdminCreditsSet(BaseModel):
    credits: int = Field(..., ge=0)
    bucket: str = Field("legacy", pattern="^(subscription|addon|legacy)$")
    reason: Optional[str] = None


class AdminBucketCredits(BaseModel):
    """Credits added to one bucket (subscription-credits / addon-credits endpoints)"""
    credits: int = Field(..., ge=1)
    plan: Optional[str] = None  # subscription plan to attach, e.g. 'pro'
    reason: Optional[str] = None


class AdminRoleUpdate(BaseModel):
    is_admin: bool


class AdminPasswordUpdate(BaseModel):
    new_password: str = Field(..., min_length=8)


# ==================== Documents ====================

class AdminSwmsItem(BaseModel):
    id: str
    title: str
    project_name: Optional[str] = None
    job_number: Optional[str] = None
    trade_type: Optional[str] = None
    status: SwmsStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    owner_id: str
    owner_email: Optional[str] = None
    owner_name: Optional[str] = None
    owner_company: Optional[str] = None


class AdminSwmsListResponse(BaseModel):
    items: List[AdminSwmsItem]
    total: int
    page: int
    page_size: int
    total_pages: int


class AdminUserSwmsResponse(BaseModel):
    user_id: str
    email: str
    documents: List[AdminSwmsItem]
    total: int
    draft_count: int
    completed_count: int
    deleted_count: int


# ==================== Dashboard ====================

class UsageStats(BaseModel):
    total_users: int
    active_users: int
    admin_users: int
    new_users_this_month: int
    active_subscriptions: int

    total_documents: int
    draft_documents: int
    completed_documents: int
    deleted_documents: int
    documents_this_month: int

    credits_outstanding: int
    credits_used: int
    revenue_cents: int


class PopularTrade(BaseModel):
    trade: str
    documents: int
    completed: int


class PopularTradesResponse(BaseModel):
    trades: List[PopularTrade]


class AuditLogResponse(BaseModel):
    id: str
    admin_id: str
    admin_email: Optional[str] = None
    action: str
    target_type: str
    target_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    created_at: datetime


class AuditLogsResponse(BaseModel):
    items: List[AuditLogResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
