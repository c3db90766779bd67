from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from riskify.core.database import Base
from riskify.core.types import GUID, generate_uuid


class SwmsSignature(Base):
    """Sign-off collected from one of the required roles"""
    __tablename__ = "swms_signatures"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    document_id = Column(GUID, ForeignKey("swms_documents.id", ondelete="CASCADE"), nullable=False, index=True)

    signer_name = Column(String(255), nullable=False)
    role = Column(String(100), nullable=False)  # 'Site Supervisor', 'Project Manager', ...
    email = Column(String(255), nullable=True)
    signature_data = Column(Text, nullable=False)  # base64 image or typed name
    signature_type = Column(String(20), default="drawn", nullable=False)  # 'drawn' or 'typed'
    signature_hash = Column(String(64), nullable=False)
    ip_address = Column(String(45), nullable=True)

    signed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    document = relationship("SwmsDocument", back_populates="signatures")

    def __repr__(self):
        return f"<SwmsSignature {self.role}: {self.signer_name}>"
