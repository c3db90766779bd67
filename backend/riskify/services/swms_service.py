"""
SWMS Service - document lifecycle

Handles:
- Draft create / update (any partial wizard state)
- Completion: full validation, residual <= initial risk, credit, hash
- Ownership checks and the completed-document lock
- Recycle bin (soft delete, restore, purge after retention)
- Validation reports for the wizard
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from pydantic import ValidationError as PydanticValidationError
from datetime import datetime, timedelta
from typing import Optional, List, Tuple, Dict, Any, Union
import json

from riskify.core.config import settings
from riskify.core.exceptions import (
    DocumentLockedError,
    InsufficientCreditsError,
    InvalidStateError,
    RiskNotReducedError,
    SwmsNotFoundError,
    ValidationError,
)
from riskify.core.logging_config import logger, set_document_id
from riskify.core.security import sha256_hex
from riskify.models.swms import SwmsDocument, SwmsStatus
from riskify.models.user import User
from riskify.schemas.swms import SwmsDraftData, SwmsFormData
from riskify.services.credit_service import credit_service


def pydantic_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors to ``{"field": "workActivities.0.activity", "message": ...}``"""
    return [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]


def document_hash(form: SwmsDraftData) -> str:
    """SHA-256 of the canonical (sorted, compact) JSON form"""
    canonical = json.dumps(form.to_json_dict(), sort_keys=True, separators=(",", ":"))
    return sha256_hex(canonical.encode("utf-8"))


def load_form(document: SwmsDocument) -> Union[SwmsDraftData, SwmsFormData]:
    """Parse the stored aggregate; completed documents come back as full forms"""
    model = SwmsFormData if document.status == SwmsStatus.COMPLETED else SwmsDraftData
    return model.model_validate(document.form_data or {})


def validation_report(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check a wizard payload as a complete form without saving it.

    Residual-risk problems are warnings here; they only block completion.
    """
    errors: List[Dict[str, str]] = []
    warnings: List[Dict[str, str]] = []
    form: Optional[SwmsDraftData] = None

    try:
        form = SwmsFormData.model_validate(data)
    except PydanticValidationError as exc:
        errors = pydantic_errors(exc)
        try:
            form = SwmsDraftData.model_validate(data)
        except PydanticValidationError:
            form = None

    if form is not None:
        for name in form.risk_violations():
            warnings.append({
                "field": "workActivities",
                "message": f"Residual risk for '{name}' is higher than its initial risk",
            })
        if not form.work_activities:
            warnings.append({"field": "workActivities", "message": "No work activities have been added"})
        for role in form.missing_signature_roles:
            warnings.append({"field": "signatures", "message": f"Missing signature: {role}"})

    return {
        "valid": not errors,
        "can_complete": not errors and form is not None and not form.risk_violations(),
        "errors": errors,
        "warnings": warnings,
        "missing_signature_roles": form.missing_signature_roles if form else [],
    }


class SwmsService:
    """Service for SWMS documents"""

    # ==================== ACCESS ====================

    async def get_document(
        self,
        db: AsyncSession,
        user: User,
        document_id: str,
        include_deleted: bool = False
    ) -> SwmsDocument:
        """
        Fetch a document the user may see.

        Other users' documents are reported as not found so ids don't leak.
        """
        document = await db.get(SwmsDocument, document_id)
        if document is None or (document.user_id != user.id and not user.is_admin):
            raise SwmsNotFoundError(str(document_id))
        if document.deleted_at is not None and not include_deleted:
            raise SwmsNotFoundError(str(document_id))
        set_document_id(str(document.id))
        return document

    async def list_documents(
        self,
        db: AsyncSession,
        user_id: str,
        status: Optional[SwmsStatus] = None,
        deleted: bool = False,
        page: int = 1,
        page_size: int = 50
    ) -> Tuple[List[SwmsDocument], int]:
        conditions = [SwmsDocument.user_id == user_id]
        conditions.append(SwmsDocument.deleted_at.isnot(None) if deleted else SwmsDocument.deleted_at.is_(None))
        if status is not None:
            conditions.append(SwmsDocument.status == status)

        total = await db.scalar(select(func.count(SwmsDocument.id)).where(*conditions))
        result = await db.execute(
            select(SwmsDocument)
            .where(*conditions)
            .order_by(SwmsDocument.updated_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total or 0

    # ==================== DRAFTS ====================

    @staticmethod
    def _apply_form(document: SwmsDocument, form: SwmsDraftData):
        document.form_data = form.to_json_dict()
        document.title = form.project_name or form.job_name or "Untitled SWMS"
        document.project_name = form.project_name or None
        document.job_number = form.job_number or None
        document.project_address = form.project_address or None
        document.trade_type = form.trade_type
        document.updated_at = datetime.utcnow()

    async def create_draft(
        self,
        db: AsyncSession,
        user: User,
        form: SwmsDraftData,
        theme: Optional[str] = None
    ) -> SwmsDocument:
        document = SwmsDocument(user_id=user.id, status=SwmsStatus.DRAFT, theme=theme)
        self._apply_form(document, form)
        db.add(document)
        await db.commit()
        await db.refresh(document)
        logger.log_document_event("draft_created", str(document.id), user_id=str(user.id))
        return document

    async def update_draft(
        self,
        db: AsyncSession,
        user: User,
        document_id: str,
        form: SwmsDraftData,
        theme: Optional[str] = None
    ) -> SwmsDocument:
        document = await self.get_document(db, user, document_id)
        if document.status == SwmsStatus.COMPLETED:
            if not user.is_admin:
                raise DocumentLockedError(str(document.id))
            # Admin edits keep the document complete, so it must stay a valid form
            try:
                form = form.to_form()
            except PydanticValidationError as exc:
                raise ValidationError("Completed SWMS must remain a complete form", errors=pydantic_errors(exc))
            violations = form.risk_violations()
            if violations:
                raise RiskNotReducedError(violations)

        self._apply_form(document, form)
        if theme:
            document.theme = theme
        if document.status == SwmsStatus.COMPLETED:
            document.document_hash = document_hash(form)
        await db.commit()
        await db.refresh(document)
        logger.log_document_event("draft_updated", str(document.id), user_id=str(user.id))
        return document

    # ==================== COMPLETION ====================

    async def complete(
        self,
        db: AsyncSession,
        user: User,
        document_id: str,
        form: Optional[SwmsDraftData] = None
    ) -> SwmsDocument:
        """
        Freeze a draft as a completed SWMS and charge one generation credit.

        Raises:
            InvalidStateError: already completed
            ValidationError: required fields missing
            RiskNotReducedError: an activity's residual risk exceeds its initial risk
            InsufficientCreditsError: no credits left
        """
        document = await self.get_document(db, user, document_id)
        if document.status == SwmsStatus.COMPLETED:
            raise InvalidStateError("SWMS is already completed", status=document.status.value)

        draft = form if form is not None else SwmsDraftData.model_validate(document.form_data or {})
        try:
            complete_form = draft.to_form()
        except PydanticValidationError as exc:
            raise ValidationError("SWMS form is incomplete", errors=pydantic_errors(exc))

        violations = complete_form.risk_violations()
        if violations:
            raise RiskNotReducedError(violations)

        owner = user if document.user_id == user.id else await db.get(User, document.user_id)
        await credit_service.consume(
            db, owner, document_id=document.id,
            description=f"SWMS completed: {complete_form.project_name}", commit=False,
        )

        self._apply_form(document, complete_form)
        document.status = SwmsStatus.COMPLETED
        document.document_hash = document_hash(complete_form)
        document.credits_cost = settings.SWMS_CREDIT_COST
        document.completed_at = datetime.utcnow()

        await db.commit()
        await db.refresh(document)
        logger.log_document_event(
            "completed", str(document.id),
            user_id=str(user.id), document_hash=document.document_hash,
            activities=len(complete_form.work_activities),
        )
        return document

    async def create_completed(
        self,
        db: AsyncSession,
        user: User,
        form: SwmsFormData,
        theme: Optional[str] = None
    ) -> SwmsDocument:
        """Save a full form and complete it in one step"""
        violations = form.risk_violations()
        if violations:
            raise RiskNotReducedError(violations)
        # No draft is left behind when the user can't pay for completion
        if user.total_credits < settings.SWMS_CREDIT_COST:
            raise InsufficientCreditsError(settings.SWMS_CREDIT_COST, user.total_credits)
        document = await self.create_draft(db, user, form, theme=theme)
        return await self.complete(db, user, str(document.id), form=form)

    # ==================== RECYCLE BIN ====================

    async def soft_delete(self, db: AsyncSession, user: User, document_id: str) -> SwmsDocument:
        document = await self.get_document(db, user, document_id)
        now = datetime.utcnow()
        document.deleted_at = now
        document.permanent_delete_at = now + timedelta(days=settings.RECYCLE_BIN_RETENTION_DAYS)
        await db.commit()
        await db.refresh(document)
        logger.log_document_event("deleted", str(document.id), user_id=str(user.id))
        return document

    async def restore(self, db: AsyncSession, user: User, document_id: str) -> SwmsDocument:
        document = await self.get_document(db, user, document_id, include_deleted=True)
        if document.deleted_at is None:
            raise InvalidStateError("SWMS is not in the recycle bin")
        document.deleted_at = None
        document.permanent_delete_at = None
        await db.commit()
        await db.refresh(document)
        logger.log_document_event("restored", str(document.id), user_id=str(user.id))
        return document

    async def purge_expired(self, db: AsyncSession, now: Optional[datetime] = None) -> int:
        """Permanently delete recycle-bin documents past their retention date"""
        now = now or datetime.utcnow()
        result = await db.execute(
            delete(SwmsDocument).where(
                SwmsDocument.permanent_delete_at.isnot(None),
                SwmsDocument.permanent_delete_at <= now,
            )
        )
        await db.commit()
        if result.rowcount:
            logger.info(f"[SWMS] Purged {result.rowcount} documents from the recycle bin")
        return result.rowcount or 0


swms_service = SwmsService()
