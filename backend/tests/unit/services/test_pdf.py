"""
Unit Tests for SWMS PDF generation
Tests for: layout builder, renderer, themes, file naming
"""
import re

import pytest

from riskify.core.exceptions import PdfRenderError, UnknownThemeError
from riskify.schemas.swms import SwmsDraftData, SwmsFormData
from riskify.services.pdf import (
    SwmsLayoutBuilder,
    available_themes,
    get_theme,
    pdf_filename,
    render_swms,
    render_swms_pdf,
)
from riskify.services.pdf.builder import BLANK_SIGN_IN_ROWS, NO_HIGH_RISK_TEXT
from riskify.services.pdf.layout import ImageBox, Placeholder, SignatureBlock
from riskify.utils.images import decode_image

PAGE_PATTERN = re.compile(rb"/Type\s*/Page(?!s)")
BROKEN_IMAGE = "data:image/png;base64,bm90LWFuLWltYWdl"


def _form(payload) -> SwmsFormData:
    return SwmsFormData.model_validate(payload)


class TestLayoutBuilder:
    """Section content and ordering"""

    def test_section_order(self, form_payload):
        layout = SwmsLayoutBuilder(_form(form_payload)).build()

        assert [section.key for section in layout.sections] == [
            "project_information",
            "scope_of_works",
            "emergency",
            "high_risk_work",
            "risk_matrix",
            "work_activities",
            "ppe",
            "plant_equipment",
            "review_and_monitoring",
            "authorisation",
            "sign_in",
            "msds",
        ]

    def test_only_selected_high_risk_rows(self, form_payload):
        layout = SwmsLayoutBuilder(_form(form_payload)).build()
        tables = layout.tables("high_risk_activities")

        assert len(tables) == 1
        assert [row[0] for row in tables[0].rows] == [
            _form(form_payload).selected_high_risk_activities[0].title
        ]

    def test_no_high_risk_placeholder(self, make_form):
        form = _form(make_form(highRiskActivities=[]))
        layout = SwmsLayoutBuilder(form).build()

        placeholders = layout.nodes_of("high_risk_work", Placeholder)
        assert [p.text for p in placeholders] == [NO_HIGH_RISK_TEXT]
        assert layout.tables("high_risk_activities") == []

    def test_one_row_per_activity(self, make_form, make_activity):
        form = _form(make_form(workActivities=[make_activity(i) for i in range(1, 8)]))
        table = SwmsLayoutBuilder(form).build().tables("work_activities")[0]

        assert len(table.rows) == 7
        assert [row[0] for row in table.rows] == [str(i) for i in range(1, 8)]

    def test_blank_sign_in_rows_when_register_empty(self, form_payload):
        table = SwmsLayoutBuilder(_form(form_payload)).build().tables("sign_in")[0]

        assert len(table.rows) == BLANK_SIGN_IN_ROWS

    def test_draft_watermark(self, form_payload):
        layout = SwmsLayoutBuilder(_form(form_payload), document_id="abc-123", draft=True).build()

        assert layout.watermark.startswith("DRAFT")
        assert "Test Project" in layout.watermark
        assert "abc-123" in layout.watermark

    def test_completed_watermark_has_no_draft_marker(self, form_payload):
        layout = SwmsLayoutBuilder(_form(form_payload), document_id="abc-123").build()

        assert not layout.watermark.startswith("DRAFT")

    def test_missing_logo_gives_placeholder_box(self, form_payload):
        boxes = SwmsLayoutBuilder(_form(form_payload)).build().nodes_of("project_information", ImageBox)

        assert len(boxes) == 1
        assert boxes[0].image is None

    def test_logo_decoded(self, make_form, tiny_png):
        form = _form(make_form(companyLogo=tiny_png))
        boxes = SwmsLayoutBuilder(form).build().nodes_of("project_information", ImageBox)

        assert boxes[0].image.startswith(b"\x89PNG")

    def test_stored_invalid_logo_rejected(self, form_payload):
        # Rows saved before logo validation existed skip the schema check
        form = _form(form_payload).model_copy(update={"company_logo": BROKEN_IMAGE})

        with pytest.raises(PdfRenderError) as exc_info:
            SwmsLayoutBuilder(form).build()

        assert exc_info.value.details["section"] == "project_information"

    def test_undecodable_signature_is_not_printed(self, form_payload):
        form = _form(form_payload).model_copy(update={"authorising_signature": BROKEN_IMAGE})
        blocks = SwmsLayoutBuilder(form).build().nodes_of("authorisation", SignatureBlock)

        authorising = blocks[0].entries[0]
        assert authorising.image is None
        assert authorising.typed is None

    def test_partial_draft_builds(self):
        draft = SwmsDraftData.model_validate({"projectName": "Half done"})
        layout = SwmsLayoutBuilder(draft, draft=True).build()

        assert layout.section("work_activities").nodes


class TestDecodeImage:

    def test_data_url(self, tiny_png):
        assert decode_image(tiny_png).startswith(b"\x89PNG")

    def test_typed_signature_is_not_an_image(self):
        assert decode_image("Jane Citizen") is None
        assert decode_image(None) is None


class TestRenderer:

    def test_output_is_pdf(self, form_payload):
        pdf = render_swms_pdf(_form(form_payload))

        assert pdf.startswith(b"%PDF-")
        assert pdf.rstrip().endswith(b"%%EOF")

    def test_single_high_risk_activity(self, make_form, make_activity):
        form = _form(make_form(workActivities=[make_activity(1, initial=12, residual=4)]))
        result = render_swms(form)

        assert result.pdf.startswith(b"%PDF-")
        assert result.page_count >= 1
        assert result.rows_drawn["work_activities"] == 1

    def test_page_count_matches_document(self, form_payload):
        result = render_swms(_form(form_payload))

        assert result.page_count >= 4
        assert len(PAGE_PATTERN.findall(result.pdf)) == result.page_count

    def test_long_tables_span_pages_without_dropping_rows(self, make_form, make_activity):
        activities = [make_activity(i) for i in range(1, 41)]
        short = render_swms(_form(make_form()))
        long = render_swms(_form(make_form(workActivities=activities)))

        assert long.rows_drawn["work_activities"] == 40
        assert long.page_count > short.page_count
        assert len(PAGE_PATTERN.findall(long.pdf)) == long.page_count

    def test_value_taller_than_a_page_continues(self, make_form):
        address = " ".join(["Unit 4 Industrial Estate Road"] * 1000)
        short = render_swms(_form(make_form()))
        long = render_swms(_form(make_form(projectAddress=address)))

        assert long.page_count >= short.page_count + 3
        assert len(PAGE_PATTERN.findall(long.pdf)) == long.page_count

    def test_logo_and_drawn_signature(self, make_form, tiny_png):
        form = _form(make_form(
            companyLogo=tiny_png,
            signatures=[{
                "signerName": "Sam Supervisor",
                "role": "Site Supervisor",
                "signatureData": tiny_png,
                "signedAt": "2026-10-18T09:00:00",
            }],
        ))

        assert render_swms_pdf(form).startswith(b"%PDF-")

    def test_uncompressed_output_contains_text(self, form_payload):
        result = render_swms(_form(form_payload), document_id="doc-42", draft=True, compress=False)

        assert b"Test Project" in result.pdf
        assert b"DRAFT" in result.pdf

    @pytest.mark.parametrize("theme", ["modern", "muted-cards", "app-style", "classic"])
    def test_every_theme_renders(self, form_payload, theme):
        result = render_swms(_form(form_payload), theme=theme)

        assert result.pdf.startswith(b"%PDF-")
        assert result.rows_drawn["work_activities"] == 1


class TestThemes:

    def test_available_themes(self):
        assert set(available_themes()) >= {"modern", "muted-cards", "app-style", "classic"}

    def test_unknown_theme(self):
        with pytest.raises(UnknownThemeError) as exc_info:
            get_theme("neon")

        assert exc_info.value.status_code == 400

    def test_orientation(self):
        modern = get_theme("modern")
        classic = get_theme("classic")

        assert modern.page_size[0] > modern.page_size[1]
        assert classic.page_size[0] < classic.page_size[1]


class TestPdfFilename:

    @pytest.mark.parametrize("project,expected", [
        ("Test Project", "SWMS_Test_Project.pdf"),
        ("Tower/Block #3", "SWMS_Tower_Block__3.pdf"),
        ("", "SWMS_Document.pdf"),
        (None, "SWMS_Document.pdf"),
    ])
    def test_filename(self, project, expected):
        assert pdf_filename(project) == expected
