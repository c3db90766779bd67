"""
PDF themes.

Each theme is plain configuration for the single renderer: page
orientation, palette, fonts and card styling.
"""
from dataclasses import dataclass
from typing import Dict, List, Tuple

from reportlab.lib.pagesizes import A4, landscape

from riskify.core.exceptions import UnknownThemeError


@dataclass(frozen=True)
class Theme:
    name: str
    label: str
    orientation: str  # 'landscape' or 'portrait'

    primary: str
    secondary: str
    accent: str
    text: str
    muted_text: str
    border: str
    page_background: str
    card_background: str
    table_header_background: str
    table_header_text: str
    zebra: str

    font: str = "Helvetica"
    font_bold: str = "Helvetica-Bold"
    font_italic: str = "Helvetica-Oblique"

    title_size: float = 18
    heading_size: float = 12
    body_size: float = 8.5
    small_size: float = 7

    card_radius: float = 6
    margin: float = 36
    watermark_alpha: float = 0.06

    @property
    def page_size(self) -> Tuple[float, float]:
        return landscape(A4) if self.orientation == "landscape" else A4


THEMES: Dict[str, Theme] = {
    "modern": Theme(
        name="modern",
        label="Modern",
        orientation="landscape",
        primary="#1e40af",
        secondary="#3b82f6",
        accent="#0ea5e9",
        text="#1e293b",
        muted_text="#64748b",
        border="#cbd5e1",
        page_background="#ffffff",
        card_background="#f8fafc",
        table_header_background="#1e40af",
        table_header_text="#ffffff",
        zebra="#f1f5f9",
    ),
    "muted-cards": Theme(
        name="muted-cards",
        label="Muted cards",
        orientation="landscape",
        primary="#64748b",
        secondary="#94a3b8",
        accent="#475569",
        text="#334155",
        muted_text="#64748b",
        border="#e2e8f0",
        page_background="#ffffff",
        card_background="#f8fafc",
        table_header_background="#e2e8f0",
        table_header_text="#334155",
        zebra="#f8fafc",
        card_radius=8,
    ),
    "app-style": Theme(
        name="app-style",
        label="App style",
        orientation="landscape",
        primary="#3b82f6",
        secondary="#0ea5e9",
        accent="#10b981",
        text="#1e293b",
        muted_text="#64748b",
        border="#e2e8f0",
        page_background="#ffffff",
        card_background="#f8fafc",
        table_header_background="#3b82f6",
        table_header_text="#ffffff",
        zebra="#f8fafc",
        card_radius=10,
    ),
    "classic": Theme(
        name="classic",
        label="Classic",
        orientation="portrait",
        primary="#111827",
        secondary="#374151",
        accent="#6b7280",
        text="#111827",
        muted_text="#4b5563",
        border="#9ca3af",
        page_background="#ffffff",
        card_background="#ffffff",
        table_header_background="#e5e7eb",
        table_header_text="#111827",
        zebra="#f9fafb",
        card_radius=0,
        body_size=8,
    ),
}


def available_themes() -> List[str]:
    return list(THEMES.keys())


def get_theme(name: str) -> Theme:
    try:
        return THEMES[name]
    except KeyError:
        raise UnknownThemeError(name, available_themes())
