"""
Signature Service - role signatures and witness sign-off

Signatures are stored as rows next to the document. The document's
``form_data`` is the snapshot taken at completion and is not rewritten;
``form_with_signatures`` merges the rows back in for rendering.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime
from typing import Optional, List

from riskify.core.exceptions import ValidationError
from riskify.core.logging_config import logger
from riskify.core.security import sha256_hex
from riskify.models.signature import SwmsSignature
from riskify.models.swms import SwmsDocument, SignatureStatus
from riskify.schemas.swms import REQUIRED_SIGNATURE_ROLES, Signature, SwmsDraftData
from riskify.utils.images import decode_image


def signature_hash(signer_name: str, role: str, signature_data: str, signed_at: datetime) -> str:
    payload = "|".join([signer_name, role, signature_data, signed_at.isoformat()])
    return sha256_hex(payload.encode("utf-8"))


class SignatureService:
    """Service for collecting signatures on a SWMS"""

    async def list_signatures(self, db: AsyncSession, document: SwmsDocument) -> List[SwmsSignature]:
        result = await db.execute(
            select(SwmsSignature)
            .where(SwmsSignature.document_id == document.id)
            .order_by(SwmsSignature.signed_at)
        )
        return list(result.scalars().all())

    async def sign(
        self,
        db: AsyncSession,
        document: SwmsDocument,
        signer_name: str,
        role: str,
        signature_data: str,
        email: Optional[str] = None,
        ip_address: Optional[str] = None,
        authorising: bool = False
    ) -> SwmsSignature:
        """
        Record a signature. ``authorising`` also stamps the document's
        authorising signature fields.
        """
        signer_name = (signer_name or "").strip()
        role = (role or "").strip()
        if not signer_name or not role or not signature_data:
            raise ValidationError("Signer name, role and signature are required", field="signature")

        now = datetime.utcnow()
        digest = signature_hash(signer_name, role, signature_data, now)
        signature = SwmsSignature(
            document_id=document.id,
            signer_name=signer_name,
            role=role,
            email=email,
            signature_data=signature_data,
            signature_type="drawn" if decode_image(signature_data) else "typed",
            signature_hash=digest,
            ip_address=ip_address,
            signed_at=now,
        )
        db.add(signature)

        if authorising:
            document.signed_by = signer_name
            document.signature_title = role
            document.signature_data = signature_data
            document.signature_hash = digest
            document.signed_at = now

        await db.flush()
        signatures = await self.list_signatures(db, document)
        signed_roles = {row.role for row in signatures}
        if all(required in signed_roles for required in REQUIRED_SIGNATURE_ROLES):
            document.signature_status = SignatureStatus.SIGNED
        else:
            document.signature_status = SignatureStatus.PENDING

        await db.commit()
        await db.refresh(signature)
        logger.log_document_event(
            "signed", str(document.id), role=role, signature_type=signature.signature_type,
            signature_status=document.signature_status.value,
        )
        return signature

    async def witness(
        self,
        db: AsyncSession,
        document: SwmsDocument,
        witness_name: str,
        signature_data: str
    ) -> SwmsDocument:
        witness_name = (witness_name or "").strip()
        if not witness_name or not signature_data:
            raise ValidationError("Witness name and signature are required", field="witness")
        document.witness_name = witness_name
        document.witness_signature = signature_data
        document.witness_signed_at = datetime.utcnow()
        await db.commit()
        await db.refresh(document)
        logger.log_document_event("witnessed", str(document.id))
        return document

    async def form_with_signatures(self, db: AsyncSession, document: SwmsDocument,
                                   form: SwmsDraftData) -> SwmsDraftData:
        """Form snapshot plus every signature collected since"""
        rows = await self.list_signatures(db, document)
        if not rows and not document.signature_data:
            return form

        signatures = list(form.signatures) + [
            Signature(
                signer_name=row.signer_name,
                role=row.role,
                signature_data=row.signature_data,
                signed_at=row.signed_at,
                ip_address=row.ip_address,
            )
            for row in rows
        ]
        update = {"signatures": signatures}
        if document.signature_data:
            update["authorising_signature"] = document.signature_data
            update["authorising_signature_name"] = document.signed_by
        return form.model_copy(update=update)


signature_service = SignatureService()
