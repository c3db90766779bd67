"""
SWMS document endpoints
=======================
Drafts, completion, recycle bin, PDF output, signatures, witness,
QR check-ins and validation.

Static paths (/draft, /validate, /pdf-download, /recycle-bin) are declared
before the /{document_id} routes.
"""
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Optional

from riskify.core.config import settings
from riskify.core.database import get_db
from riskify.core.exceptions import SwmsNotFoundError
from riskify.core.logging_config import logger
from riskify.models.check_in import VerificationStatus
from riskify.models.swms import SwmsDocument, SwmsStatus
from riskify.models.user import User
from riskify.modules.auth.dependencies import get_current_user, get_optional_user
from riskify.schemas.documents import (
    CheckInListResponse,
    CheckInRequest,
    CheckInResponse,
    QrCodeResponse,
    SignatureResponse,
    SignaturesResponse,
    SignRequest,
    SwmsCreatedResponse,
    SwmsDocumentDetail,
    SwmsDocumentResponse,
    SwmsListResponse,
    ValidationReport,
    WitnessRequest,
)
from riskify.schemas.swms import REQUIRED_SIGNATURE_ROLES, SwmsDraftData, SwmsFormData
from riskify.services.check_in_service import check_in_service
from riskify.services.pdf import get_theme, pdf_filename, render_swms_pdf
from riskify.services.signature_service import signature_service
from riskify.services.swms_service import load_form, swms_service, validation_report

router = APIRouter()


def _pdf_response(pdf: bytes, project_name: Optional[str]) -> Response:
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(project_name)}"'},
    )


def _created(document: SwmsDocument, user: User) -> SwmsCreatedResponse:
    return SwmsCreatedResponse(
        id=str(document.id),
        status=document.status,
        document_hash=document.document_hash,
        download_url=f"{settings.API_PREFIX}/swms/{document.id}/pdf",
        credits_remaining=user.total_credits,
    )


# ==================== Listing & creation ====================

@router.get("", response_model=SwmsListResponse)
async def list_swms(
    status_filter: Optional[SwmsStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List the user's documents (recycle bin excluded)"""
    documents, total = await swms_service.list_documents(
        db, current_user.id, status=status_filter, page=page, page_size=page_size
    )
    return SwmsListResponse(
        documents=[SwmsDocumentResponse.model_validate(d) for d in documents],
        total=total, page=page, page_size=page_size,
    )


@router.post("", response_model=SwmsCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_swms(
    form: SwmsFormData,
    theme: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Save a complete form as a completed SWMS (uses one credit)"""
    if theme:
        get_theme(theme)
    document = await swms_service.create_completed(db, current_user, form, theme=theme)
    return _created(document, current_user)


# ==================== Drafts ====================

@router.post("/draft", response_model=SwmsDocumentDetail, status_code=status.HTTP_201_CREATED)
async def create_draft(
    form: SwmsDraftData,
    theme: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Save partial wizard state"""
    if theme:
        get_theme(theme)
    return await swms_service.create_draft(db, current_user, form, theme=theme)


@router.get("/draft/{document_id}", response_model=SwmsDocumentDetail)
async def get_draft(
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await swms_service.get_document(db, current_user, document_id)


@router.put("/draft/{document_id}", response_model=SwmsDocumentDetail)
async def update_draft(
    document_id: str,
    form: SwmsDraftData,
    theme: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update a draft. Completed documents can only be edited by admins."""
    if theme:
        get_theme(theme)
    return await swms_service.update_draft(db, current_user, document_id, form, theme=theme)


# ==================== Stateless helpers ====================

@router.post("/validate", response_model=ValidationReport)
async def validate_swms(
    data: Dict[str, Any] = Body(...),
    current_user: User = Depends(get_current_user)
):
    """Validate a wizard payload as a complete form; risk problems are reported as warnings"""
    return validation_report(data)


@router.post("/pdf-download")
async def download_unsaved_pdf(
    form: SwmsDraftData,
    theme: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user)
):
    """Render a form that has not been saved (draft watermark)"""
    theme = theme or settings.PDF_DEFAULT_THEME
    get_theme(theme)
    pdf = await run_in_threadpool(render_swms_pdf, form, theme, None, True)
    logger.info(f"[SWMS] Rendered unsaved form for user {current_user.id} ({len(pdf)} bytes)")
    return _pdf_response(pdf, form.project_name)


@router.get("/recycle-bin", response_model=SwmsListResponse)
async def recycle_bin(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Deleted documents awaiting permanent deletion"""
    await swms_service.purge_expired(db)
    documents, total = await swms_service.list_documents(
        db, current_user.id, deleted=True, page=page, page_size=page_size
    )
    return SwmsListResponse(
        documents=[SwmsDocumentResponse.model_validate(d) for d in documents],
        total=total, page=page, page_size=page_size,
    )


# ==================== Single document ====================

@router.get("/{document_id}", response_model=SwmsDocumentDetail)
async def get_swms(
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await swms_service.get_document(db, current_user, document_id)


@router.post("/{document_id}/complete", response_model=SwmsCreatedResponse)
async def complete_swms(
    document_id: str,
    form: Optional[SwmsDraftData] = Body(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Complete a draft: full validation, residual risk must not exceed
    initial risk, one credit is used and the content hash is recorded.
    """
    document = await swms_service.complete(db, current_user, document_id, form=form)
    await db.refresh(current_user)
    return _created(document, current_user)


@router.delete("/{document_id}", response_model=SwmsDocumentResponse)
async def delete_swms(
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Move to the recycle bin"""
    return await swms_service.soft_delete(db, current_user, document_id)


@router.post("/{document_id}/restore", response_model=SwmsDocumentResponse)
async def restore_swms(
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await swms_service.restore(db, current_user, document_id)


@router.get("/{document_id}/pdf")
async def download_pdf(
    document_id: str,
    theme: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Render the document as PDF. Drafts carry a DRAFT watermark."""
    document = await swms_service.get_document(db, current_user, document_id)
    theme = theme or document.theme or settings.PDF_DEFAULT_THEME
    get_theme(theme)

    form = await signature_service.form_with_signatures(db, document, load_form(document))
    draft = document.status != SwmsStatus.COMPLETED
    pdf = await run_in_threadpool(render_swms_pdf, form, theme, str(document.id), draft)

    logger.log_document_event("pdf_downloaded", str(document.id), theme=theme, size=len(pdf), draft=draft)
    return _pdf_response(pdf, document.project_name)


# ==================== Signatures ====================

@router.post("/{document_id}/sign", response_model=SignatureResponse, status_code=status.HTTP_201_CREATED)
async def sign_swms(
    document_id: str,
    payload: SignRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    document = await swms_service.get_document(db, current_user, document_id)
    return await signature_service.sign(
        db, document,
        signer_name=payload.signer_name,
        role=payload.role,
        signature_data=payload.signature_data,
        email=payload.email,
        ip_address=request.client.host if request.client else None,
        authorising=payload.authorising,
    )


@router.get("/{document_id}/signatures", response_model=SignaturesResponse)
async def list_signatures(
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    document = await swms_service.get_document(db, current_user, document_id)
    signatures = await signature_service.list_signatures(db, document)
    signed = {signature.role for signature in signatures}
    return SignaturesResponse(
        document_id=str(document.id),
        signature_status=document.signature_status,
        signatures=[SignatureResponse.model_validate(s) for s in signatures],
        missing_roles=[role for role in REQUIRED_SIGNATURE_ROLES if role not in signed],
    )


@router.post("/{document_id}/witness", response_model=SwmsDocumentDetail)
async def witness_swms(
    document_id: str,
    payload: WitnessRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    document = await swms_service.get_document(db, current_user, document_id)
    return await signature_service.witness(db, document, payload.witness_name, payload.signature_data)


# ==================== QR check-in ====================

@router.post("/{document_id}/generate-qr", response_model=QrCodeResponse)
async def generate_qr(
    document_id: str,
    size: int = Query(256, ge=64, le=1024),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    document = await swms_service.get_document(db, current_user, document_id)
    return await check_in_service.generate_qr(db, document, size=size)


@router.post("/{document_id}/check-in", response_model=CheckInResponse, status_code=status.HTTP_201_CREATED)
async def check_in(
    document_id: str,
    payload: CheckInRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Worker check-in. With the QR token no login is needed and the check-in
    is verified; without it the document owner records an unverified one.
    """
    if payload.token is None:
        if current_user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
        document = await swms_service.get_document(db, current_user, document_id)
    else:
        document = await db.get(SwmsDocument, document_id)
        if document is None or document.deleted_at is not None:
            raise SwmsNotFoundError(document_id)

    return await check_in_service.check_in(
        db, document,
        worker_name=payload.worker_name,
        token=payload.token,
        worker_role=payload.worker_role,
        company=payload.company,
        latitude=payload.latitude,
        longitude=payload.longitude,
        device_info=payload.device_info,
        signature_data=payload.signature_data,
    )


@router.get("/{document_id}/check-ins", response_model=CheckInListResponse)
async def list_check_ins(
    document_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    document = await swms_service.get_document(db, current_user, document_id)
    check_ins = await check_in_service.list_check_ins(db, document)
    return CheckInListResponse(
        document_id=str(document.id),
        total=len(check_ins),
        verified=sum(1 for c in check_ins if c.verification_status == VerificationStatus.VERIFIED),
        check_ins=[CheckInResponse.model_validate(c) for c in check_ins],
    )
