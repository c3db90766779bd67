from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Float, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from riskify.core.database import Base
from riskify.core.types import GUID, generate_uuid


class VerificationStatus(str, enum.Enum):
    """Check-in verification"""
    VERIFIED = "verified"  # arrived with the document's QR token
    UNVERIFIED = "unverified"


class SwmsCheckIn(Base):
    """Worker site check-in against a SWMS (via QR code)"""
    __tablename__ = "swms_check_ins"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    document_id = Column(GUID, ForeignKey("swms_documents.id", ondelete="CASCADE"), nullable=False, index=True)

    worker_name = Column(String(255), nullable=False)
    worker_role = Column(String(255), nullable=True)
    company = Column(String(255), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    device_info = Column(Text, nullable=True)
    signature_data = Column(Text, nullable=True)
    verification_status = Column(
        SQLEnum(VerificationStatus), default=VerificationStatus.UNVERIFIED, nullable=False
    )

    checked_in_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    document = relationship("SwmsDocument", back_populates="check_ins")

    def __repr__(self):
        return f"<SwmsCheckIn {self.worker_name} @ {self.checked_in_at}>"
