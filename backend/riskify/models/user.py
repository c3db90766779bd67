from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Integer, Text
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from riskify.core.database import Base
from riskify.core.types import GUID, generate_uuid


class UserRole(str, enum.Enum):
    """User roles"""
    USER = "user"
    ADMIN = "admin"


class SubscriptionStatus(str, enum.Enum):
    """Subscription status"""
    NONE = "none"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class User(Base):
    """User model"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=True)
    full_name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=False)

    role = Column(SQLEnum(UserRole), default=UserRole.USER, nullable=False)
    is_active = Column(Boolean, default=True)

    # Company profile (printed on SWMS documents)
    company_name = Column(String(255), nullable=True)
    company_logo = Column(Text, nullable=True)  # base64 data URL
    abn = Column(String(20), nullable=True)
    phone = Column(String(30), nullable=True)
    address = Column(Text, nullable=True)
    primary_trade = Column(String(100), nullable=True)
    license_number = Column(String(100), nullable=True)

    # Subscription
    subscription_type = Column(String(50), nullable=True)  # 'pro', 'enterprise' or None
    subscription_status = Column(SQLEnum(SubscriptionStatus), default=SubscriptionStatus.NONE, nullable=False)
    subscription_expires_at = Column(DateTime, nullable=True)

    # Credit buckets, consumed in order: subscription -> addon -> legacy swms_credits
    subscription_credits = Column(Integer, default=0, nullable=False)  # reset monthly
    addon_credits = Column(Integer, default=0, nullable=False)  # never expire
    swms_credits = Column(Integer, default=0, nullable=False)  # legacy single-bucket balance
    swms_generated = Column(Integer, default=0, nullable=False)
    last_credit_reset = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    swms_documents = relationship("SwmsDocument", back_populates="user", cascade="all, delete-orphan")
    credit_transactions = relationship("CreditTransaction", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def total_credits(self) -> int:
        return (self.subscription_credits or 0) + (self.addon_credits or 0) + (self.swms_credits or 0)

    def __repr__(self):
        return f"<User {self.email}>"
