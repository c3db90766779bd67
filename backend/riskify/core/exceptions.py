"""
Custom Exceptions for Riskify
=============================

Every error raised by services carries a machine readable ``code``, a
human message, optional ``details`` and the HTTP status the API layer
should answer with. ``main.py`` registers one handler for ``RiskifyError``
that renders them through ``error_response``.

Usage:
    from riskify.core.exceptions import SwmsNotFoundError, InsufficientCreditsError

    if not document:
        raise SwmsNotFoundError(document_id)
"""

from typing import Optional, Any, Dict, List


class RiskifyError(Exception):
    """Base exception for all Riskify errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(RiskifyError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(RiskifyError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(RiskifyError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class UserNotFoundError(ResourceNotFoundError):
    """User not found"""

    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class SwmsNotFoundError(ResourceNotFoundError):
    """SWMS document not found (or not visible to the caller)"""

    def __init__(self, document_id: str):
        super().__init__("SWMS", document_id)


class ReferenceDataNotFoundError(ResourceNotFoundError):
    """Lookup key missing from the static safety reference tables"""

    def __init__(self, table: str, key: str):
        super().__init__(table, key)


# ============================================
# Validation Errors (400/409/422-type)
# ============================================

class ValidationError(RiskifyError):
    """Input validation failed"""

    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None,
                 errors: Optional[List[Dict[str, Any]]] = None):
        details: Dict[str, Any] = {"field": field} if field else {}
        if errors:
            details["errors"] = errors
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class RiskNotReducedError(ValidationError):
    """Residual risk is higher than initial risk for one or more activities"""

    def __init__(self, activities: List[str]):
        super().__init__(
            "Residual risk must not exceed initial risk: " + ", ".join(activities)
        )
        self.code = "RISK_NOT_REDUCED"
        self.details = {"activities": activities}


class DocumentLockedError(RiskifyError):
    """Completed SWMS documents can only be changed by an admin"""

    status_code = 409

    def __init__(self, document_id: str):
        super().__init__(
            "Completed SWMS documents are read-only",
            code="DOCUMENT_LOCKED",
            details={"document_id": document_id}
        )


class InvalidStateError(RiskifyError):
    """Operation does not apply to the document in its current status"""

    status_code = 409

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message, code="INVALID_STATE")
        if status:
            self.details["status"] = status


# ============================================
# Document Generation Errors
# ============================================

class DocumentGenerationError(RiskifyError):
    """Document generation failed"""

    status_code = 500

    def __init__(self, message: str, doc_type: Optional[str] = None):
        super().__init__(message, code="DOCUMENT_GENERATION_FAILED")
        if doc_type:
            self.details["doc_type"] = doc_type


class PdfRenderError(DocumentGenerationError):
    """PDF rendering failed"""

    def __init__(self, message: str = "PDF rendering failed", section: Optional[str] = None):
        super().__init__(message, doc_type="pdf")
        self.code = "PDF_RENDER_FAILED"
        if section:
            self.details["section"] = section


class UnknownThemeError(RiskifyError):
    """Requested PDF theme is not registered"""

    status_code = 400

    def __init__(self, theme: str, available: List[str]):
        super().__init__(
            f"Unknown theme '{theme}'. Available: {', '.join(available)}",
            code="UNKNOWN_THEME",
            details={"theme": theme, "available": available}
        )


# ============================================
# Payment/Credit Errors
# ============================================

class PaymentError(RiskifyError):
    """Payment operation failed"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, code="PAYMENT_ERROR")


class PaymentProviderError(PaymentError):
    """Payment provider unavailable or rejected the call"""

    status_code = 502

    def __init__(self, message: str = "Payment provider error"):
        super().__init__(message)
        self.code = "PAYMENT_PROVIDER_ERROR"


class PaymentNotConfiguredError(PaymentError):
    """Payment keys are missing"""

    status_code = 503

    def __init__(self):
        super().__init__("Payment service not configured. Please contact support.")
        self.code = "PAYMENT_NOT_CONFIGURED"


class InsufficientCreditsError(PaymentError):
    """User doesn't have enough SWMS credits"""

    status_code = 402

    def __init__(self, required: int, available: int):
        super().__init__(
            f"Insufficient credits. Required: {required}, Available: {available}"
        )
        self.code = "INSUFFICIENT_CREDITS"
        self.details = {"required": required, "available": available}


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: RiskifyError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
