"""
Reference data endpoints: trade task library, activity auto-generation,
HRCW and PPE catalogues, risk matrix and the safety code library.
Read-only, no login required.
"""
from fastapi import APIRouter, Query
from typing import List, Optional

from riskify.schemas.reference import (
    ActivitySafetyResponse,
    AutoSwmsRequest,
    AutoSwmsResponse,
    HighRiskActivityRef,
    PPERef,
    RiskAssessmentResponse,
    RiskMatrixResponse,
    SafetyCode,
    TaskSearchResponse,
    TradeSummary,
    TradeTask,
    TradeTaskSummary,
)
from riskify.services.reference_data import reference_data
from riskify.services.risk import (
    CONSEQUENCE_LABELS,
    LIKELIHOOD_LABELS,
    RiskLevel,
    build_risk_matrix,
    risk_bands,
)

router = APIRouter()


# ==================== Trades & tasks ====================

@router.get("/trades", response_model=List[TradeSummary])
async def list_trades():
    return reference_data.list_trades()


@router.get("/trades/{trade}/activities", response_model=List[TradeTask])
async def trade_activities(trade: str):
    """Tasks for a trade, plus the tasks that apply to every trade"""
    return reference_data.activities_for_trade(trade)


@router.get("/risk-assessment/{activity}", response_model=RiskAssessmentResponse)
async def risk_assessment(activity: str):
    """Look up an activity and return it as a ready-made work activity row"""
    task = reference_data.find_activity(activity)
    work_activity = reference_data.to_work_activity(task)
    return RiskAssessmentResponse(
        task=task,
        work_activity=work_activity.model_dump(by_alias=True, mode="json"),
    )


@router.get("/tasks/high-risk", response_model=List[TradeTask])
async def high_risk_tasks(
    min_level: RiskLevel = Query(RiskLevel.HIGH)
):
    return reference_data.high_risk_tasks(min_level)


@router.get("/tasks/search", response_model=TaskSearchResponse)
async def search_tasks(
    q: Optional[str] = Query(None, max_length=200),
    trade: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200)
):
    tasks = reference_data.search_tasks(q, trade=trade, limit=limit)
    return TaskSearchResponse(query=q, total=len(tasks), tasks=tasks)


@router.get("/tasks/trade/{trade}", response_model=TradeTaskSummary)
async def trade_task_summary(trade: str):
    """A trade's tasks with the spread of initial risk levels"""
    return reference_data.trade_task_summary(trade)


@router.get("/activities/{activity}/safety", response_model=ActivitySafetyResponse)
async def activity_safety(activity: str):
    return reference_data.activity_safety(activity)


# ==================== Auto-generation ====================

@router.post("/auto-generate-swms", response_model=AutoSwmsResponse)
async def auto_generate_swms(payload: AutoSwmsRequest):
    """
    Suggested risks, safety measures and compliance codes for a list of
    activities. Nothing is saved and no credit is used.
    """
    return reference_data.auto_generate(payload)


# ==================== Catalogues ====================

@router.get("/reference/high-risk-activities", response_model=List[HighRiskActivityRef])
async def high_risk_activities():
    """High Risk Construction Work categories"""
    return reference_data.high_risk_activity_catalog()


@router.get("/reference/ppe", response_model=List[PPERef])
async def ppe_catalog():
    return reference_data.ppe_catalog()


@router.get("/reference/risk-matrix", response_model=RiskMatrixResponse)
async def risk_matrix():
    return RiskMatrixResponse(
        likelihood=LIKELIHOOD_LABELS,
        consequence=CONSEQUENCE_LABELS,
        rows=build_risk_matrix(),
        bands=risk_bands(),
    )


@router.get("/safety-library", response_model=List[SafetyCode])
async def safety_library(
    q: Optional[str] = Query(None, max_length=200),
    category: Optional[str] = None,
    trade: Optional[str] = None
):
    return reference_data.safety_library(q, category=category, trade=trade)
