from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from riskify.models.user import SubscriptionStatus, UserRole
from riskify.schemas.swms import ImageData


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = None
    username: Optional[str] = Field(None, min_length=3, max_length=100)

    # Company profile
    company_name: Optional[str] = None
    abn: Optional[str] = Field(None, pattern=r'^\d{2} ?\d{3} ?\d{3} ?\d{3}$', description="11-digit Australian Business Number")
    phone: Optional[str] = None
    primary_trade: Optional[str] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class TokenData(BaseModel):
    user_id: str
    email: str
    role: str


class UserResponse(BaseModel):
    id: str
    email: str
    username: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None

    # Company profile
    company_name: Optional[str] = None
    abn: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    primary_trade: Optional[str] = None
    license_number: Optional[str] = None

    # Credits
    subscription_type: Optional[str] = None
    subscription_status: SubscriptionStatus
    subscription_credits: int = 0
    addon_credits: int = 0
    swms_credits: int = 0
    total_credits: int = 0
    swms_generated: int = 0

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    company_name: Optional[str] = None
    company_logo: ImageData = None
    abn: Optional[str] = Field(None, pattern=r'^\d{2} ?\d{3} ?\d{3} ?\d{3}$')
    phone: Optional[str] = None
    address: Optional[str] = None
    primary_trade: Optional[str] = None
    license_number: Optional[str] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
