from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel
from typing import List, Optional

from riskify.services.risk import RiskLevel, level_for_score


class TradeTask(BaseModel):
    """Pre-authored hazard/control record for one activity"""
    task_id: str
    activity: str
    trade: str = ""
    category: str
    hazards: List[str]
    initial_risk_score: int = Field(..., ge=1, le=25)
    control_measures: List[str]
    legislation: List[str]
    residual_risk_score: int = Field(..., ge=1, le=25)
    responsible: str
    ppe: List[str] = []
    training_required: List[str] = []
    inspection_frequency: str = ""
    emergency_procedures: List[str] = []
    high_risk_work: bool = False
    applicable_to_all_trades: bool = False

    @computed_field
    @property
    def risk_level(self) -> RiskLevel:
        return level_for_score(self.initial_risk_score)

    @computed_field
    @property
    def residual_risk_level(self) -> RiskLevel:
        return level_for_score(self.residual_risk_score)


class Trade(BaseModel):
    name: str
    description: str = ""
    compliance_codes: List[str] = []
    emergency_procedures: List[str] = []  # inherited by tasks that list none
    tasks: List[TradeTask] = []


class TradeSummary(BaseModel):
    name: str
    description: str
    compliance_codes: List[str]
    task_count: int


class HighRiskActivityRef(BaseModel):
    id: str
    title: str
    description: str
    risk_level: RiskLevel


class PPERef(BaseModel):
    id: str
    name: str
    description: str
    category: str = "standard"


class SafetyCode(BaseModel):
    id: str
    code: str
    title: str
    description: str
    category: str
    applicable_trades: List[str]
    mandatory: bool = False


class RiskAssessmentResponse(BaseModel):
    """Suggested work activity row for an activity name"""
    task: TradeTask
    work_activity: dict  # camelCase WorkActivity, ready to drop into the form


class RiskMatrixResponse(BaseModel):
    likelihood: List[str]
    consequence: List[str]
    rows: List[dict]
    bands: List[dict]


class TaskSearchResponse(BaseModel):
    query: Optional[str] = None
    total: int
    tasks: List[TradeTask]


# ==================== Trade breakdown & activity safety ====================

class RiskDistribution(BaseModel):
    low: int = 0
    medium: int = 0
    high: int = 0
    extreme: int = 0


class TradeTaskSummary(BaseModel):
    """Every task of one trade with its risk spread"""
    trade: str
    total_tasks: int
    high_risk_tasks: int  # tasks that are High Risk Construction Work
    risk_distribution: RiskDistribution
    tasks: List[TradeTask]


class SwmsComplianceFlags(BaseModel):
    has_hazard_identification: bool
    has_risk_assessment: bool
    has_control_measures: bool
    has_australian_legislation: bool
    has_ppe_requirements: bool
    has_training_requirements: bool
    has_emergency_procedures: bool
    is_high_risk_work: bool


class ActivitySafetyResponse(BaseModel):
    activity: str
    trade: str
    safety_data: TradeTask
    swms_compliance: SwmsComplianceFlags


# ==================== Auto-generation ====================

class ActivityRisk(BaseModel):
    hazard: str
    risk_level: RiskLevel
    control_measures: List[str]
    responsible_person: str
    compliance_codes: List[str] = []


class SafetyMeasureGroup(BaseModel):
    category: str
    measures: List[str]
    equipment: List[str] = []
    procedures: List[str] = []


class ActivityRiskProfile(BaseModel):
    """Risks and safety measures the generator adds for one activity"""
    activity: str
    trade: str = ""
    risks: List[ActivityRisk]
    safety_measures: List[SafetyMeasureGroup] = []


class AutoSwmsRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    activities: List[str] = Field(..., min_length=1, max_length=50)
    trade_type: str = Field("", max_length=100)
    title: Optional[str] = Field(None, max_length=255)
    job_name: Optional[str] = Field(None, max_length=255)
    project_location: Optional[str] = Field(None, max_length=500)


class AutoSwmsResponse(BaseModel):
    trade_type: str
    risks: List[ActivityRisk]
    safety_measures: List[SafetyMeasureGroup]
    compliance_codes: List[str]
    unmatched_activities: List[str] = []
    risk_summary: RiskDistribution
