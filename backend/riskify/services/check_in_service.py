"""
Check-in Service - QR site check-ins

Each completed SWMS can carry a random check-in token. The QR code links
workers to the frontend check-in page; check-ins that arrive with the
token are recorded as verified.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime
from typing import Optional, List, Dict, Any
import base64
import hmac
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from riskify.core.config import settings
from riskify.core.exceptions import AuthorizationError, InvalidStateError, ValidationError
from riskify.core.logging_config import logger
from riskify.core.security import generate_check_in_token
from riskify.models.check_in import SwmsCheckIn, VerificationStatus
from riskify.models.swms import SwmsDocument, SwmsStatus


def generate_qr_code(data: str, size: int = 256) -> str:
    """
    Generate QR code as base64-encoded PNG.

    Args:
        data: The data to encode in the QR code
        size: The size of the QR code image in pixels

    Returns:
        Base64-encoded PNG image string
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=10,
        border=2
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    img = img.resize((size, size))

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("utf-8")


class CheckInService:
    """Service for QR codes and worker check-ins"""

    async def generate_qr(self, db: AsyncSession, document: SwmsDocument, size: int = 256) -> Dict[str, Any]:
        """Create the document's check-in token (once) and its QR code"""
        if document.status != SwmsStatus.COMPLETED:
            raise InvalidStateError("Only completed SWMS documents can be checked in to",
                                    status=document.status.value)
        if not document.check_in_token:
            document.check_in_token = generate_check_in_token()
            await db.commit()
            await db.refresh(document)

        url = settings.get_check_in_url(str(document.id), document.check_in_token)
        qr_base64 = generate_qr_code(url, size)
        logger.log_document_event("qr_generated", str(document.id))
        return {
            "document_id": str(document.id),
            "check_in_url": url,
            "qr_code": qr_base64,
            "qr_data_url": f"data:image/png;base64,{qr_base64}",
        }

    async def check_in(
        self,
        db: AsyncSession,
        document: SwmsDocument,
        worker_name: str,
        token: Optional[str] = None,
        worker_role: Optional[str] = None,
        company: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        device_info: Optional[str] = None,
        signature_data: Optional[str] = None
    ) -> SwmsCheckIn:
        if document.status != SwmsStatus.COMPLETED:
            raise InvalidStateError("Only completed SWMS documents can be checked in to",
                                    status=document.status.value)
        worker_name = (worker_name or "").strip()
        if not worker_name:
            raise ValidationError("Worker name is required", field="workerName")

        status = VerificationStatus.UNVERIFIED
        if token is not None:
            expected = (document.check_in_token or "").encode()
            if not expected or not hmac.compare_digest(token.encode("utf-8"), expected):
                raise AuthorizationError("Invalid check-in token")
            status = VerificationStatus.VERIFIED

        check_in = SwmsCheckIn(
            document_id=document.id,
            worker_name=worker_name,
            worker_role=worker_role,
            company=company,
            latitude=latitude,
            longitude=longitude,
            device_info=device_info,
            signature_data=signature_data,
            verification_status=status,
            checked_in_at=datetime.utcnow(),
        )
        db.add(check_in)
        await db.commit()
        await db.refresh(check_in)
        logger.log_document_event("check_in", str(document.id), verification=status.value)
        return check_in

    async def list_check_ins(self, db: AsyncSession, document: SwmsDocument) -> List[SwmsCheckIn]:
        result = await db.execute(
            select(SwmsCheckIn)
            .where(SwmsCheckIn.document_id == document.id)
            .order_by(SwmsCheckIn.checked_in_at.desc())
        )
        return list(result.scalars().all())


check_in_service = CheckInService()
