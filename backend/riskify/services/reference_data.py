"""
Safety reference data
=====================

Read-only tables (trade task database, activity risk profiles, HRCW
catalogue, standard PPE and the Australian safety code library) shipped
as JSON in ``riskify/data``.
They are loaded and validated once per process and then served through
lookup-by-key methods; nothing here is rebuilt per request.
"""
import json
from collections import Counter
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from pydantic import TypeAdapter

from riskify.core.exceptions import ReferenceDataNotFoundError
from riskify.core.logging_config import logger
from riskify.schemas.reference import (
    ActivityRisk,
    ActivityRiskProfile,
    ActivitySafetyResponse,
    AutoSwmsRequest,
    AutoSwmsResponse,
    HighRiskActivityRef,
    PPERef,
    RiskDistribution,
    SafetyCode,
    SafetyMeasureGroup,
    SwmsComplianceFlags,
    Trade,
    TradeSummary,
    TradeTask,
    TradeTaskSummary,
)
from riskify.schemas.swms import HighRiskActivity, PPEItem, RiskRating, WorkActivity
from riskify.services.risk import RiskLevel

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

_RISK_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.EXTREME]

# Codes cited for a trade the library does not know
DEFAULT_COMPLIANCE_CODES = ["WHS Act 2011", "WHS Regulation 2011"]


def _normalise(key: str) -> str:
    return " ".join(key.strip().lower().replace("-", " ").replace("_", " ").split())


def _distribution(levels) -> RiskDistribution:
    return RiskDistribution(**Counter(level.value for level in levels))


class ReferenceDataStore:
    """Process-wide, lazily loaded reference tables"""

    def __init__(self, data_dir: Path = DATA_DIR):
        self.data_dir = data_dir
        self._lock = Lock()
        self._loaded = False
        self._trades: Dict[str, Trade] = {}
        self._tasks: Dict[str, TradeTask] = {}
        self._tasks_by_activity: Dict[str, TradeTask] = {}
        self._hrcw: List[HighRiskActivityRef] = []
        self._ppe: List[PPERef] = []
        self._codes: List[SafetyCode] = []
        self._activity_risks: Dict[str, ActivityRiskProfile] = {}

    def _read(self, name: str):
        with open(self.data_dir / name, encoding="utf-8") as fh:
            return json.load(fh)

    def load(self) -> "ReferenceDataStore":
        """Load every table (idempotent)"""
        if self._loaded:
            return self
        with self._lock:
            if self._loaded:
                return self

            trades = TypeAdapter(List[Trade]).validate_python(self._read("trade_tasks.json")["trades"])
            for trade in trades:
                for task in trade.tasks:
                    task.trade = trade.name
                    if not task.emergency_procedures:
                        task.emergency_procedures = list(trade.emergency_procedures)
                    self._tasks[task.task_id] = task
                    self._tasks_by_activity.setdefault(_normalise(task.activity), task)
                self._trades[_normalise(trade.name)] = trade

            self._hrcw = TypeAdapter(List[HighRiskActivityRef]).validate_python(
                self._read("high_risk_activities.json")
            )
            self._ppe = TypeAdapter(List[PPERef]).validate_python(self._read("ppe.json"))
            self._codes = TypeAdapter(List[SafetyCode]).validate_python(self._read("safety_library.json"))
            profiles = TypeAdapter(List[ActivityRiskProfile]).validate_python(self._read("activity_risks.json"))
            self._activity_risks = {_normalise(profile.activity): profile for profile in profiles}

            self._loaded = True
            logger.info(
                f"[ReferenceData] Loaded {len(self._trades)} trades, {len(self._tasks)} tasks, "
                f"{len(self._hrcw)} HRCW categories, {len(self._codes)} safety codes, "
                f"{len(self._activity_risks)} activity risk profiles"
            )
        return self

    # ---------- Trades & tasks ----------

    def list_trades(self) -> List[TradeSummary]:
        self.load()
        return [
            TradeSummary(
                name=trade.name,
                description=trade.description,
                compliance_codes=trade.compliance_codes,
                task_count=len(trade.tasks),
            )
            for trade in self._trades.values()
        ]

    def get_trade(self, name: str) -> Trade:
        self.load()
        trade = self._trades.get(_normalise(name))
        if trade is None:
            raise ReferenceDataNotFoundError("Trade", name)
        return trade

    def activities_for_trade(self, name: str) -> List[TradeTask]:
        """Trade's own tasks followed by tasks that apply to every trade"""
        trade = self.get_trade(name)
        shared = [
            task for task in self._tasks.values()
            if task.applicable_to_all_trades and task.trade != trade.name
        ]
        return list(trade.tasks) + shared

    def get_task(self, task_id: str) -> TradeTask:
        self.load()
        task = self._tasks.get(task_id)
        if task is None:
            raise ReferenceDataNotFoundError("Task", task_id)
        return task

    def find_activity(self, activity: str) -> TradeTask:
        """Exact (normalised) activity match first, then first partial match"""
        self.load()
        key = _normalise(activity)
        task = self._tasks_by_activity.get(key)
        if task is not None:
            return task
        for name, candidate in self._tasks_by_activity.items():
            if key and key in name:
                return candidate
        raise ReferenceDataNotFoundError("Activity", activity)

    def search_tasks(self, query: Optional[str] = None, trade: Optional[str] = None,
                     limit: int = 50) -> List[TradeTask]:
        self.load()
        tasks = self.activities_for_trade(trade) if trade else list(self._tasks.values())
        if query:
            needle = query.strip().lower()
            tasks = [
                task for task in tasks
                if needle in task.activity.lower()
                or needle in task.category.lower()
                or any(needle in hazard.lower() for hazard in task.hazards)
            ]
        return tasks[:limit]

    def high_risk_tasks(self, min_level: RiskLevel = RiskLevel.HIGH) -> List[TradeTask]:
        self.load()
        threshold = _RISK_ORDER.index(min_level)
        tasks = [task for task in self._tasks.values() if _RISK_ORDER.index(task.risk_level) >= threshold]
        return sorted(tasks, key=lambda task: task.initial_risk_score, reverse=True)

    def to_work_activity(self, task: TradeTask, activity_id: Optional[str] = None) -> WorkActivity:
        """Pre-filled work activity row for the form"""
        return WorkActivity(
            id=activity_id or task.task_id,
            activity=task.activity,
            hazards=list(task.hazards),
            initial_risk=RiskRating.from_score(task.initial_risk_score),
            control_measures=list(task.control_measures),
            residual_risk=RiskRating.from_score(task.residual_risk_score),
            legislation=list(task.legislation),
        )

    def trade_task_summary(self, name: str) -> TradeTaskSummary:
        """A trade's own tasks with counts per initial risk band"""
        trade = self.get_trade(name)
        return TradeTaskSummary(
            trade=trade.name,
            total_tasks=len(trade.tasks),
            high_risk_tasks=sum(1 for task in trade.tasks if task.high_risk_work),
            risk_distribution=_distribution(task.risk_level for task in trade.tasks),
            tasks=list(trade.tasks),
        )

    def activity_safety(self, activity: str) -> ActivitySafetyResponse:
        """Safety record for an activity plus which SWMS sections it can fill"""
        task = self.find_activity(activity)
        flags = SwmsComplianceFlags(
            has_hazard_identification=bool(task.hazards),
            has_risk_assessment=task.residual_risk_score <= task.initial_risk_score,
            has_control_measures=bool(task.control_measures),
            has_australian_legislation=bool(task.legislation),
            has_ppe_requirements=bool(task.ppe),
            has_training_requirements=bool(task.training_required),
            has_emergency_procedures=bool(task.emergency_procedures),
            is_high_risk_work=task.high_risk_work,
        )
        return ActivitySafetyResponse(
            activity=task.activity, trade=task.trade, safety_data=task, swms_compliance=flags,
        )

    # ---------- Auto-generation ----------

    def activity_risk_profile(self, activity: str) -> Optional[ActivityRiskProfile]:
        self.load()
        return self._activity_risks.get(_normalise(activity))

    def trade_compliance_codes(self, trade_type: str) -> List[str]:
        self.load()
        trade = self._trades.get(_normalise(trade_type or ""))
        return list(trade.compliance_codes) if trade else list(DEFAULT_COMPLIANCE_CODES)

    def auto_generate(self, request: AutoSwmsRequest) -> AutoSwmsResponse:
        """
        Assemble risks, safety measures and compliance codes for the chosen
        activities.

        Activities without a risk profile are reported back rather than
        failing the request. Codes keep first-seen order: every code cited by
        a risk, then the trade's own codes.
        """
        risks: List[ActivityRisk] = []
        measures: List[SafetyMeasureGroup] = []
        unmatched: List[str] = []
        for activity in request.activities:
            profile = self.activity_risk_profile(activity)
            if profile is None:
                unmatched.append(activity)
                continue
            risks.extend(profile.risks)
            measures.extend(profile.safety_measures)

        codes: List[str] = []
        cited = [code for risk in risks for code in risk.compliance_codes]
        for code in cited + self.trade_compliance_codes(request.trade_type):
            if code not in codes:
                codes.append(code)

        if unmatched:
            logger.info(f"[ReferenceData] No risk profile for activities: {unmatched}")
        return AutoSwmsResponse(
            trade_type=request.trade_type,
            risks=risks,
            safety_measures=measures,
            compliance_codes=codes,
            unmatched_activities=unmatched,
            risk_summary=_distribution(risk.risk_level for risk in risks),
        )

    # ---------- Catalogues ----------

    def high_risk_activity_catalog(self) -> List[HighRiskActivityRef]:
        self.load()
        return list(self._hrcw)

    def default_high_risk_activities(self) -> List[HighRiskActivity]:
        """HRCW catalogue as unselected form rows"""
        return [
            HighRiskActivity(
                id=item.id, title=item.title, description=item.description,
                selected=False, risk_level=item.risk_level,
            )
            for item in self.high_risk_activity_catalog()
        ]

    def ppe_catalog(self) -> List[PPERef]:
        self.load()
        return list(self._ppe)

    def default_ppe_items(self) -> List[PPEItem]:
        """Standard PPE as form rows, standard items pre-selected"""
        return [
            PPEItem(
                id=item.id, name=item.name, description=item.description,
                selected=item.category == "standard", category=item.category,
            )
            for item in self.ppe_catalog()
        ]

    def safety_library(self, query: Optional[str] = None, category: Optional[str] = None,
                       trade: Optional[str] = None) -> List[SafetyCode]:
        self.load()
        codes = self._codes
        if category:
            codes = [code for code in codes if code.category.lower() == category.lower()]
        if trade:
            codes = [
                code for code in codes
                if "All" in code.applicable_trades
                or trade.lower() in (t.lower() for t in code.applicable_trades)
            ]
        if query:
            needle = query.strip().lower()
            codes = [
                code for code in codes
                if needle in code.code.lower()
                or needle in code.title.lower()
                or needle in code.description.lower()
            ]
        return list(codes)

    def safety_code_categories(self) -> List[str]:
        self.load()
        return sorted({code.category for code in self._codes})


reference_data = ReferenceDataStore()
