"""API request/response models for SWMS documents and their collaboration endpoints"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from riskify.models.check_in import VerificationStatus
from riskify.models.swms import SignatureStatus, SwmsStatus
from riskify.schemas.swms import NonEmptyStr, OptionalSignatureData, SignatureData, SwmsModel


class SwmsDocumentResponse(BaseModel):
    id: str
    title: str
    project_name: Optional[str] = None
    job_number: Optional[str] = None
    project_address: Optional[str] = None
    trade_type: Optional[str] = None
    status: SwmsStatus
    theme: Optional[str] = None
    document_hash: Optional[str] = None
    signature_status: SignatureStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    permanent_delete_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SwmsDocumentDetail(SwmsDocumentResponse):
    """Document with its form aggregate (camelCase keys)"""
    form_data: Dict[str, Any]
    signed_by: Optional[str] = None
    signature_title: Optional[str] = None
    signed_at: Optional[datetime] = None
    witness_name: Optional[str] = None
    witness_signed_at: Optional[datetime] = None


class SwmsListResponse(BaseModel):
    documents: List[SwmsDocumentResponse]
    total: int
    page: int
    page_size: int


class SwmsCreatedResponse(BaseModel):
    id: str
    status: SwmsStatus
    document_hash: Optional[str] = None
    download_url: str
    credits_remaining: int


class ValidationMessage(BaseModel):
    field: str
    message: str


class ValidationReport(BaseModel):
    valid: bool
    can_complete: bool
    errors: List[ValidationMessage]
    warnings: List[ValidationMessage]
    missing_signature_roles: List[str]


# ==================== Signatures ====================

class SignRequest(SwmsModel):
    signer_name: NonEmptyStr
    role: NonEmptyStr
    signature_data: SignatureData  # base64 image or typed name
    email: Optional[str] = None
    authorising: bool = False


class SignatureResponse(BaseModel):
    id: str
    signer_name: str
    role: str
    email: Optional[str] = None
    signature_type: str
    signature_hash: str
    signed_at: datetime

    class Config:
        from_attributes = True


class SignaturesResponse(BaseModel):
    document_id: str
    signature_status: SignatureStatus
    signatures: List[SignatureResponse]
    missing_roles: List[str]


class WitnessRequest(SwmsModel):
    witness_name: NonEmptyStr
    signature_data: SignatureData


# ==================== Check-ins & QR ====================

class CheckInRequest(SwmsModel):
    worker_name: NonEmptyStr
    token: Optional[str] = None
    worker_role: Optional[str] = None
    company: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    device_info: Optional[str] = None
    signature_data: OptionalSignatureData = None


class CheckInResponse(BaseModel):
    id: str
    worker_name: str
    worker_role: Optional[str] = None
    company: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    verification_status: VerificationStatus
    checked_in_at: datetime

    class Config:
        from_attributes = True


class CheckInListResponse(BaseModel):
    document_id: str
    total: int
    verified: int
    check_ins: List[CheckInResponse]


class QrCodeResponse(BaseModel):
    document_id: str
    check_in_url: str
    qr_code: str  # base64 PNG
    qr_data_url: str
