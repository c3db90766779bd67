from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from riskify.core.database import Base
from riskify.core.types import GUID, JSONDocument, generate_uuid


class SwmsStatus(str, enum.Enum):
    """SWMS document lifecycle"""
    DRAFT = "draft"
    COMPLETED = "completed"


class SignatureStatus(str, enum.Enum):
    """Authorising signature state"""
    UNSIGNED = "unsigned"
    PENDING = "pending"
    SIGNED = "signed"


class SwmsDocument(Base):
    """A SWMS document - the form aggregate is stored whole in ``form_data``"""
    __tablename__ = "swms_documents"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Denormalised from form_data for listing and search
    title = Column(String(500), nullable=False, default="Untitled SWMS")
    project_name = Column(String(500), nullable=True)
    job_number = Column(String(100), nullable=True)
    project_address = Column(Text, nullable=True)
    trade_type = Column(String(100), nullable=True, index=True)

    form_data = Column(JSONDocument, nullable=False, default=dict)
    status = Column(SQLEnum(SwmsStatus), default=SwmsStatus.DRAFT, nullable=False, index=True)
    theme = Column(String(50), nullable=True)

    # Completion
    document_hash = Column(String(64), nullable=True)
    credits_cost = Column(Integer, default=0, nullable=False)

    # Authorising signature
    signature_status = Column(SQLEnum(SignatureStatus), default=SignatureStatus.UNSIGNED, nullable=False)
    signed_by = Column(String(255), nullable=True)
    signature_title = Column(String(255), nullable=True)
    signature_data = Column(Text, nullable=True)
    signature_hash = Column(String(64), nullable=True)
    signed_at = Column(DateTime, nullable=True)

    # Witness
    witness_name = Column(String(255), nullable=True)
    witness_signature = Column(Text, nullable=True)
    witness_signed_at = Column(DateTime, nullable=True)

    # QR check-in
    check_in_token = Column(String(64), nullable=True, unique=True)

    # Recycle bin
    deleted_at = Column(DateTime, nullable=True, index=True)
    permanent_delete_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="swms_documents")
    signatures = relationship(
        "SwmsSignature", back_populates="document",
        cascade="all, delete-orphan", order_by="SwmsSignature.signed_at"
    )
    check_ins = relationship(
        "SwmsCheckIn", back_populates="document",
        cascade="all, delete-orphan", order_by="SwmsCheckIn.checked_in_at"
    )

    @property
    def is_completed(self) -> bool:
        return self.status == SwmsStatus.COMPLETED

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<SwmsDocument {self.id} ({self.status.value if self.status else 'draft'})>"
