"""
SWMS PDF generation.

    form -> SwmsLayoutBuilder -> DocumentLayout -> PdfRenderer(theme) -> bytes
"""
from typing import Optional

from riskify.schemas.swms import SwmsDraftData
from riskify.services.pdf.builder import SwmsLayoutBuilder
from riskify.services.pdf.renderer import PdfRenderer, RenderResult
from riskify.services.pdf.themes import THEMES, Theme, available_themes, get_theme


def render_swms(form: SwmsDraftData, theme: str = "modern", document_id: Optional[str] = None,
                draft: bool = False, compress: bool = True) -> RenderResult:
    """Render a form and return the PDF with page and row statistics"""
    resolved = get_theme(theme)
    layout = SwmsLayoutBuilder(form, document_id=document_id, draft=draft).build()
    return PdfRenderer(resolved, compress=compress).render(layout)


def render_swms_pdf(form: SwmsDraftData, theme: str = "modern", document_id: Optional[str] = None,
                    draft: bool = False) -> bytes:
    """Render a form to PDF bytes"""
    return render_swms(form, theme=theme, document_id=document_id, draft=draft).pdf


def pdf_filename(project_name: Optional[str]) -> str:
    """``SWMS_<ProjectName>.pdf`` with unsafe characters replaced"""
    name = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in (project_name or "").strip())
    return f"SWMS_{name or 'Document'}.pdf"


__all__ = [
    "PdfRenderer",
    "RenderResult",
    "SwmsLayoutBuilder",
    "THEMES",
    "Theme",
    "available_themes",
    "get_theme",
    "pdf_filename",
    "render_swms",
    "render_swms_pdf",
]
