"""
Risk scoring
============

One canonical mapping from a likelihood x consequence score (1-25) to a
risk band, shared by the form validators, the PDF renderer and the
reference data endpoints:

    1-4   Low
    5-8   Medium
    9-15  High
    16-25 Extreme
"""
from enum import Enum
from typing import Dict, List, Optional


class RiskLevel(str, Enum):
    """Risk band"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"

    @property
    def label(self) -> str:
        return self.value.capitalize()


MIN_SCORE = 1
MAX_SCORE = 25

# Upper bound (inclusive) of each band
BAND_MAX_SCORE: Dict[RiskLevel, int] = {
    RiskLevel.LOW: 4,
    RiskLevel.MEDIUM: 8,
    RiskLevel.HIGH: 15,
    RiskLevel.EXTREME: 25,
}

LIKELIHOOD_LABELS: List[str] = ["Rare", "Unlikely", "Possible", "Likely", "Almost Certain"]
CONSEQUENCE_LABELS: List[str] = ["Insignificant", "Minor", "Moderate", "Major", "Catastrophic"]

# Badge colours used in every PDF theme
RISK_COLOURS: Dict[RiskLevel, str] = {
    RiskLevel.LOW: "#22c55e",
    RiskLevel.MEDIUM: "#f59e0b",
    RiskLevel.HIGH: "#f97316",
    RiskLevel.EXTREME: "#ef4444",
}

RISK_ACTIONS: Dict[RiskLevel, str] = {
    RiskLevel.EXTREME: "Stop work immediately. Do not proceed until the risk is reduced.",
    RiskLevel.HIGH: "Senior management attention needed. Implement controls before work starts.",
    RiskLevel.MEDIUM: "Management responsibility specified. Monitor controls during work.",
    RiskLevel.LOW: "Manage by routine procedures.",
}


def parse_level(value: str) -> RiskLevel:
    """Case-insensitive parse of 'High', 'HIGH', 'high' into a RiskLevel"""
    try:
        return RiskLevel(str(value).strip().lower())
    except ValueError:
        raise ValueError(
            f"Unknown risk level '{value}'. Expected one of: "
            + ", ".join(level.value for level in RiskLevel)
        )


def level_for_score(score: int) -> RiskLevel:
    """Canonical band for a risk score"""
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise ValueError(f"Risk score must be between {MIN_SCORE} and {MAX_SCORE}, got {score}")
    for level in (RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH):
        if score <= BAND_MAX_SCORE[level]:
            return level
    return RiskLevel.EXTREME


def score_for(likelihood: int, consequence: int) -> int:
    """Score for a likelihood (1-5) and consequence (1-5) pair"""
    for name, value in (("likelihood", likelihood), ("consequence", consequence)):
        if not 1 <= value <= 5:
            raise ValueError(f"{name} must be between 1 and 5, got {value}")
    return likelihood * consequence


def risk_colour(level: Optional[RiskLevel]) -> str:
    if level is None:
        return "#94a3b8"
    return RISK_COLOURS[level]


def is_risk_reduced(initial_score: int, residual_score: int) -> bool:
    """Controls must not leave the activity riskier than before"""
    return residual_score <= initial_score


def build_risk_matrix() -> List[Dict]:
    """
    5x5 matrix, most likely row first, as rendered in documents and served
    by the reference API.
    """
    rows = []
    for likelihood in range(5, 0, -1):
        cells = []
        for consequence in range(1, 6):
            score = score_for(likelihood, consequence)
            level = level_for_score(score)
            cells.append({
                "consequence": CONSEQUENCE_LABELS[consequence - 1],
                "score": score,
                "level": level.value,
                "colour": RISK_COLOURS[level],
            })
        rows.append({"likelihood": LIKELIHOOD_LABELS[likelihood - 1], "cells": cells})
    return rows


def risk_bands() -> List[Dict]:
    """Band table (score range, colour, required action), highest first"""
    bands = []
    lower = MIN_SCORE
    for level in (RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.EXTREME):
        bands.append({
            "level": level.value,
            "min_score": lower,
            "max_score": BAND_MAX_SCORE[level],
            "colour": RISK_COLOURS[level],
            "action": RISK_ACTIONS[level],
        })
        lower = BAND_MAX_SCORE[level] + 1
    return list(reversed(bands))
