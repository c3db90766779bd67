"""
SWMS layout builder.

Turns a validated form into a ``DocumentLayout``. Everything about *what*
appears in the document lives here; drawing lives in ``renderer.py``.
"""
from typing import List, Optional

from riskify.core.exceptions import PdfRenderError
from riskify.schemas.swms import REQUIRED_SIGNATURE_ROLES, RiskRating, SwmsDraftData
from riskify.services.pdf.layout import (
    Badge,
    BulletList,
    Card,
    Column,
    DocumentLayout,
    ImageBox,
    KeyValueGrid,
    Placeholder,
    RiskMatrix,
    Section,
    SignatureBlock,
    SignatureEntry,
    Table,
    TextBlock,
)
from riskify.services.risk import (
    CONSEQUENCE_LABELS,
    LIKELIHOOD_LABELS,
    RiskLevel,
    build_risk_matrix,
    risk_bands,
)
from riskify.utils.images import decode_image, is_data_url

DOCUMENT_TITLE = "Safe Work Method Statement"
NO_HIGH_RISK_TEXT = "No high risk activities selected"
NO_ACTIVITIES_TEXT = "No work activities recorded"
NO_PPE_TEXT = "No PPE selected"
NO_PLANT_TEXT = "No plant or equipment recorded"
NO_CONTACTS_TEXT = "No emergency contacts recorded"
NO_MSDS_TEXT = "No safety data sheets attached"
LOGO_PLACEHOLDER_TEXT = "Company logo"
BLANK_SIGN_IN_ROWS = 10


def _rating(rating: Optional[RiskRating]) -> Badge:
    if rating is None:
        return Badge(level=None, text="N/A")
    return Badge(level=rating.level, text=f"{rating.level.label} ({rating.score})")


def _text(value: Optional[str], default: str = "-") -> str:
    value = (value or "").strip()
    return value or default


def _typed(value: Optional[str], image: Optional[bytes]) -> Optional[str]:
    # Undecodable data URLs are never printed as text
    if image or is_data_url(value):
        return None
    return value


class SwmsLayoutBuilder:
    """Build the section list for one SWMS"""

    def __init__(self, form: SwmsDraftData, document_id: Optional[str] = None, draft: bool = False):
        self.form = form
        self.document_id = document_id
        self.draft = draft

    def build(self) -> DocumentLayout:
        form = self.form
        return DocumentLayout(
            title=DOCUMENT_TITLE,
            header_lines=[
                _text(form.company_name, ""),
                " | ".join(part for part in (form.project_name, form.job_number) if part),
            ],
            footer_text=self._footer_text(),
            watermark=self._watermark(),
            sections=[
                self.project_information(),
                self.scope_of_works(),
                self.emergency(),
                self.high_risk_work(),
                self.risk_matrix(),
                self.work_activities(),
                self.ppe(),
                self.plant_equipment(),
                self.review_and_monitoring(),
                self.authorisation(),
                self.sign_in_register(),
                self.msds_register(),
            ],
        )

    def _watermark(self) -> str:
        parts = [self.form.project_name or "Untitled project"]
        if self.document_id:
            parts.append(self.document_id)
        text = " • ".join(parts)
        return f"DRAFT • {text}" if self.draft else text

    def _footer_text(self) -> str:
        footer = f"{DOCUMENT_TITLE} - {_text(self.form.project_name, 'Untitled project')}"
        if self.document_id:
            footer += f" - Ref {self.document_id}"
        return footer

    # ---------- Sections ----------

    def project_information(self) -> Section:
        form = self.form
        logo = None
        if form.company_logo:
            logo = decode_image(form.company_logo)
            if logo is None:
                raise PdfRenderError("Company logo is not a valid base64 image", section="project_information")

        project = KeyValueGrid(pairs=[
            ("Company", _text(form.company_name)),
            ("Project name", _text(form.project_name)),
            ("Project number", _text(form.project_number)),
            ("Project address", _text(form.project_address)),
            ("Job name", _text(form.job_name)),
            ("Job number", _text(form.job_number)),
            ("Start date", _text(form.start_date)),
            ("Duration", _text(form.duration)),
            ("Date created", _text(form.date_created)),
            ("Trade", _text(form.trade_type)),
        ])
        personnel = KeyValueGrid(pairs=[
            ("Principal contractor", _text(form.principal_contractor)),
            ("Project manager", _text(form.project_manager)),
            ("Site supervisor", _text(form.site_supervisor)),
            ("Authorising person", _text(form.authorising_person)),
            ("Position", _text(form.authorising_position)),
        ])
        return Section(
            key="project_information",
            title="Project Information",
            nodes=[
                ImageBox(image=logo, placeholder=LOGO_PLACEHOLDER_TEXT),
                Card(title="Project details", children=[project]),
                Card(title="Personnel", children=[personnel]),
            ],
        )

    def scope_of_works(self) -> Section:
        return Section(
            key="scope_of_works",
            title="Scope of Works",
            nodes=[Card(title=None, children=[TextBlock(_text(self.form.scope_of_works))])],
        )

    def emergency(self) -> Section:
        form = self.form
        nodes = []
        if form.emergency_contacts:
            nodes.append(Table(
                kind="emergency_contacts",
                columns=[Column("Contact", 2), Column("Phone", 1)],
                rows=[[contact.name, contact.phone] for contact in form.emergency_contacts],
            ))
        else:
            nodes.append(Placeholder(NO_CONTACTS_TEXT))
        nodes.append(Card(title="Emergency procedures", children=[TextBlock(_text(form.emergency_procedures))]))
        if form.emergency_monitoring:
            nodes.append(Card(title="Emergency monitoring", children=[TextBlock(form.emergency_monitoring)]))
        return Section(key="emergency", title="Emergency Contacts & Procedures", nodes=nodes)

    def high_risk_work(self) -> Section:
        selected = self.form.selected_high_risk_activities
        if not selected:
            return Section(key="high_risk_work", title="High Risk Construction Work",
                           nodes=[Placeholder(NO_HIGH_RISK_TEXT)])
        table = Table(
            kind="high_risk_activities",
            columns=[Column("Activity", 2), Column("Description", 4), Column("Risk", 1)],
            rows=[
                [
                    activity.title,
                    activity.description or "-",
                    Badge(level=activity.risk_level,
                          text=activity.risk_level.label if activity.risk_level else "N/A"),
                ]
                for activity in selected
            ],
        )
        return Section(key="high_risk_work", title="High Risk Construction Work", nodes=[table])

    def risk_matrix(self) -> Section:
        return Section(
            key="risk_matrix",
            title="Risk Assessment Matrix",
            new_page=True,
            nodes=[
                TextBlock("Risk score = likelihood x consequence. Residual risk must not exceed initial risk.",
                          style="muted"),
                RiskMatrix(
                    likelihood=list(LIKELIHOOD_LABELS),
                    consequence=list(CONSEQUENCE_LABELS),
                    rows=build_risk_matrix(),
                    bands=risk_bands(),
                ),
            ],
        )

    def work_activities(self) -> Section:
        activities = self.form.work_activities
        if not activities:
            return Section(key="work_activities", title="Work Activities & Risk Controls",
                           new_page=True, nodes=[Placeholder(NO_ACTIVITIES_TEXT)])
        table = Table(
            kind="work_activities",
            columns=[
                Column("#", 0.35),
                Column("Activity", 1.6),
                Column("Hazards", 2.2),
                Column("Initial risk", 1),
                Column("Control measures", 3),
                Column("Residual risk", 1),
                Column("Legislation", 1.6),
            ],
            rows=[
                [
                    str(index),
                    activity.activity,
                    list(activity.hazards) or ["-"],
                    _rating(activity.initial_risk),
                    list(activity.control_measures) or ["-"],
                    _rating(activity.residual_risk),
                    list(activity.legislation) or ["-"],
                ]
                for index, activity in enumerate(activities, start=1)
            ],
        )
        return Section(key="work_activities", title="Work Activities & Risk Controls",
                       new_page=True, nodes=[table])

    def ppe(self) -> Section:
        items = self.form.selected_ppe
        if not items:
            return Section(key="ppe", title="Personal Protective Equipment", nodes=[Placeholder(NO_PPE_TEXT)])
        table = Table(
            kind="ppe",
            columns=[Column("PPE", 2), Column("Description", 4), Column("Requirement", 1)],
            rows=[
                [item.name, item.description or "-", "Mandatory" if item.required else "Selected"]
                for item in items
            ],
        )
        return Section(key="ppe", title="Personal Protective Equipment", nodes=[table])

    def plant_equipment(self) -> Section:
        plant = self.form.plant_equipment
        if not plant:
            return Section(key="plant_equipment", title="Plant & Equipment", nodes=[Placeholder(NO_PLANT_TEXT)])
        table = Table(
            kind="plant_equipment",
            columns=[
                Column("Equipment", 2),
                Column("Model", 1.2),
                Column("Serial no.", 1.2),
                Column("Risk", 1),
                Column("Next inspection", 1.2),
                Column("Certification", 1),
                Column("Controls", 3),
            ],
            rows=[
                [
                    item.equipment,
                    item.model or "-",
                    item.serial_number or "-",
                    Badge(level=RiskLevel(item.risk_level.value), text=item.risk_level.value.capitalize()),
                    item.next_inspection or "-",
                    "Required" if item.certification_required else "Not required",
                    list(item.control_measures) or ["-"],
                ]
                for item in plant
            ],
        )
        return Section(key="plant_equipment", title="Plant & Equipment", nodes=[table])

    def review_and_monitoring(self) -> Section:
        return Section(
            key="review_and_monitoring",
            title="Review & Monitoring",
            nodes=[Card(title=None, children=[TextBlock(_text(self.form.review_and_monitoring))])],
        )

    def authorisation(self) -> Section:
        form = self.form
        entries: List[SignatureEntry] = []

        authorising_image = decode_image(form.authorising_signature)
        entries.append(SignatureEntry(
            role=_text(form.authorising_position, "Authorising person"),
            name=_text(form.authorising_signature_name or form.authorising_person, ""),
            image=authorising_image,
            typed=_typed(form.authorising_signature, authorising_image),
        ))

        signed = {}
        for signature in form.signatures:
            signed.setdefault(signature.role, signature)
        for role in REQUIRED_SIGNATURE_ROLES + [r for r in signed if r not in REQUIRED_SIGNATURE_ROLES]:
            signature = signed.get(role)
            if signature is None:
                entries.append(SignatureEntry(role=role, name=""))
                continue
            image = decode_image(signature.signature_data)
            entries.append(SignatureEntry(
                role=role,
                name=signature.signer_name,
                signed_at=signature.signed_at.strftime("%d/%m/%Y %H:%M"),
                image=image,
                typed=_typed(signature.signature_data, image),
            ))

        nodes = [
            KeyValueGrid(pairs=[
                ("Authorising person", _text(form.authorising_person)),
                ("Position", _text(form.authorising_position)),
            ]),
            SignatureBlock(entries=entries),
        ]
        if form.missing_signature_roles:
            nodes.append(TextBlock(
                "Signatures outstanding: " + ", ".join(form.missing_signature_roles), style="muted"
            ))
        return Section(key="authorisation", title="Authorisation & Signatures", new_page=True, nodes=nodes)

    def sign_in_register(self) -> Section:
        entries = self.form.sign_in_entries
        rows = [
            [
                str(entry.number or index),
                entry.name,
                entry.company or "",
                entry.position or "",
                entry.date or "",
                entry.time_in or "",
                entry.time_out or "",
                "Yes" if entry.induction_complete else "No",
                "Signed" if entry.signature else "",
            ]
            for index, entry in enumerate(entries, start=1)
        ]
        # Printed register gets empty lines to sign on site
        if not rows:
            rows = [[str(i)] + [""] * 8 for i in range(1, BLANK_SIGN_IN_ROWS + 1)]
        table = Table(
            kind="sign_in",
            columns=[
                Column("#", 0.35),
                Column("Name", 2),
                Column("Company", 1.6),
                Column("Position", 1.4),
                Column("Date", 1),
                Column("Time in", 0.8),
                Column("Time out", 0.8),
                Column("Inducted", 0.8),
                Column("Signature", 1.6),
            ],
            rows=rows,
        )
        return Section(
            key="sign_in",
            title="Worker Sign-in Register",
            new_page=True,
            nodes=[
                TextBlock("By signing below, workers confirm they have read and understood this SWMS "
                          "and will follow the control measures it describes.", style="muted"),
                table,
            ],
        )

    def msds_register(self) -> Section:
        documents = self.form.selected_msds
        if not documents:
            return Section(key="msds", title="Safety Data Sheets", nodes=[Placeholder(NO_MSDS_TEXT)])
        table = Table(
            kind="msds",
            columns=[Column("Title", 3), Column("File", 2), Column("Uploaded", 1)],
            rows=[[doc.display_title, doc.file_name, doc.upload_date or "-"] for doc in documents],
        )
        return Section(
            key="msds",
            title="Safety Data Sheets",
            nodes=[
                table,
                BulletList(["Copies of these safety data sheets are kept on site and available to all workers."]),
            ],
        )
