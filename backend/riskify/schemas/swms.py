"""
SWMS form schema
================

``SwmsFormData`` is the document aggregate posted by the wizard. JSON uses
camelCase keys (``projectName``), Python attributes are snake_case.
``SwmsDraftData`` has the same shape with every field optional so partial
wizard state can be saved; ``to_form()`` promotes it once it is complete.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    model_validator,
)
from pydantic.alias_generators import to_camel

from riskify.services.risk import (
    BAND_MAX_SCORE,
    MAX_SCORE,
    MIN_SCORE,
    RiskLevel,
    is_risk_reduced,
    level_for_score,
    parse_level,
)
from riskify.utils.images import check_image, check_signature

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
ImageData = Annotated[Optional[str], AfterValidator(check_image)]
SignatureData = Annotated[NonEmptyStr, AfterValidator(check_signature)]
OptionalSignatureData = Annotated[Optional[str], AfterValidator(check_signature)]

REQUIRED_SIGNATURE_ROLES: List[str] = [
    "Site Supervisor",
    "Project Manager",
    "Safety Officer",
    "Trade Supervisor",
]


class SwmsModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlantRiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def _lower(value):
    return value.strip().lower() if isinstance(value, str) else value


class RiskRating(SwmsModel):
    """Level + likelihood x consequence score. The level must match the score's band."""
    level: RiskLevel
    score: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE)

    @model_validator(mode="before")
    @classmethod
    def coerce_input(cls, data):
        # Legacy documents store a bare level ("High")
        if isinstance(data, str):
            level = parse_level(data)
            return {"level": level, "score": BAND_MAX_SCORE[level]}
        if isinstance(data, dict):
            data = dict(data)
            if data.get("level") in (None, "") and isinstance(data.get("score"), int):
                if MIN_SCORE <= data["score"] <= MAX_SCORE:
                    data["level"] = level_for_score(data["score"])
            elif isinstance(data.get("level"), str):
                data["level"] = _lower(data["level"])
        return data

    @model_validator(mode="after")
    def check_band(self):
        expected = level_for_score(self.score)
        if self.level != expected:
            raise ValueError(
                f"Risk score {self.score} is {expected.value}, not {self.level.value}"
            )
        return self

    @classmethod
    def from_score(cls, score: int) -> "RiskRating":
        return cls(level=level_for_score(score), score=score)


class EmergencyContact(SwmsModel):
    name: str
    phone: str


class HighRiskActivity(SwmsModel):
    id: str
    title: str
    description: str = ""
    selected: bool = False
    risk_level: Annotated[Optional[RiskLevel], BeforeValidator(_lower)] = None


class WorkActivity(SwmsModel):
    id: str
    activity: NonEmptyStr
    hazards: List[str] = []
    initial_risk: RiskRating
    control_measures: List[str] = []
    residual_risk: RiskRating
    legislation: List[str] = []

    @property
    def risk_reduced(self) -> bool:
        return is_risk_reduced(self.initial_risk.score, self.residual_risk.score)


class PPEItem(SwmsModel):
    id: str
    name: str
    description: str = ""
    selected: bool = False
    required: bool = False
    category: Optional[str] = None


class PlantEquipment(SwmsModel):
    id: str
    equipment: NonEmptyStr
    model: str = ""
    serial_number: str = ""
    risk_level: Annotated[PlantRiskLevel, BeforeValidator(_lower)]
    next_inspection: str = ""
    certification_required: bool = False
    hazards: List[str] = []
    initial_risk: Optional[RiskRating] = None
    control_measures: List[str] = []
    residual_risk: Optional[RiskRating] = None
    legislation: List[str] = []
    operator: Optional[str] = None

    @property
    def risk_reduced(self) -> bool:
        if self.initial_risk is None or self.residual_risk is None:
            return True
        return is_risk_reduced(self.initial_risk.score, self.residual_risk.score)


class SignInEntry(SwmsModel):
    id: str
    name: str
    company: str = ""
    position: str = ""
    date: str = ""
    time_in: str = ""
    time_out: str = ""
    signature: str = ""
    induction_complete: bool = False
    number: Optional[int] = None


class MsdsDocument(SwmsModel):
    id: str
    file_name: str
    custom_title: str = ""
    file_data: str = ""  # base64
    upload_date: str = ""
    selected: bool = False

    @property
    def display_title(self) -> str:
        return self.custom_title or self.file_name


class Signature(SwmsModel):
    signer_name: NonEmptyStr
    role: NonEmptyStr
    signature_data: SignatureData  # base64 image or typed name
    signed_at: datetime
    ip_address: Optional[str] = None


class SwmsDraftData(SwmsModel):
    """Partially completed wizard state"""

    # Project identity
    company_name: str = ""
    project_name: str = ""
    project_number: str = ""
    project_address: str = ""
    job_name: str = ""
    job_number: str = ""
    start_date: str = ""
    duration: str = ""
    date_created: str = ""
    trade_type: Optional[str] = None

    # Personnel
    principal_contractor: str = ""
    project_manager: str = ""
    site_supervisor: str = ""
    authorising_person: str = ""
    authorising_position: str = ""

    scope_of_works: str = ""
    review_and_monitoring: str = ""
    company_logo: ImageData = None

    # Emergency
    emergency_contacts: List[EmergencyContact] = []
    emergency_procedures: str = ""
    emergency_monitoring: str = ""

    high_risk_activities: List[HighRiskActivity] = []
    work_activities: List[WorkActivity] = []
    ppe_items: List[PPEItem] = []
    plant_equipment: List[PlantEquipment] = []
    sign_in_entries: List[SignInEntry] = []
    msds_documents: List[MsdsDocument] = []
    signatures: List[Signature] = []

    authorising_signature: OptionalSignatureData = None
    authorising_signature_name: Optional[str] = None

    @property
    def selected_high_risk_activities(self) -> List[HighRiskActivity]:
        return [activity for activity in self.high_risk_activities if activity.selected]

    @property
    def selected_ppe(self) -> List[PPEItem]:
        return [item for item in self.ppe_items if item.selected or item.required]

    @property
    def selected_msds(self) -> List[MsdsDocument]:
        return [doc for doc in self.msds_documents if doc.selected]

    @property
    def signed_roles(self) -> List[str]:
        return sorted({signature.role for signature in self.signatures})

    @property
    def missing_signature_roles(self) -> List[str]:
        signed = set(self.signed_roles)
        return [role for role in REQUIRED_SIGNATURE_ROLES if role not in signed]

    @property
    def signatures_complete(self) -> bool:
        return not self.missing_signature_roles

    def risk_violations(self) -> List[str]:
        """Activities and plant whose residual risk exceeds the initial risk"""
        violations = [a.activity for a in self.work_activities if not a.risk_reduced]
        violations.extend(p.equipment for p in self.plant_equipment if not p.risk_reduced)
        return violations

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def to_form(self) -> "SwmsFormData":
        """Validate as a complete form (raises pydantic.ValidationError)"""
        return SwmsFormData.model_validate(self.to_json_dict())


class SwmsFormData(SwmsDraftData):
    """A complete SWMS - every identity, personnel and scope field is filled in"""

    company_name: NonEmptyStr
    project_name: NonEmptyStr
    project_number: NonEmptyStr
    project_address: NonEmptyStr
    job_name: NonEmptyStr
    job_number: NonEmptyStr
    start_date: NonEmptyStr
    duration: NonEmptyStr
    date_created: NonEmptyStr

    principal_contractor: NonEmptyStr
    project_manager: NonEmptyStr
    site_supervisor: NonEmptyStr
    authorising_person: NonEmptyStr
    authorising_position: NonEmptyStr

    scope_of_works: NonEmptyStr
    review_and_monitoring: NonEmptyStr
