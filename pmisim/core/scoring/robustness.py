"""Robustness Index: final 0..100 aggregate score of a terminal state.

Responsibilities:
  - Step-function sub-scores for share, synergy and attrition.
  - Execution penalties for cred, risk, capacity and combined overload.
  - Hard caps that keep red-zone states from scoring as robust.

Invariants:
  - Pure function of the state; history is not consulted.
  - Result is an int in [0, 100].
"""

from __future__ import annotations

from pmisim.core.domain.bounds import clamp, round_half_up
from pmisim.core.domain.enums import Band, DriverKind, Traffic
from pmisim.core.domain.models import KpiState

# (threshold, score) pairs, checked top-down
SHARE_STEPS: tuple[tuple[float, int], ...] = ((128, 100), (120, 90), (110, 75), (100, 60), (90, 45))
SYNERGY_STEPS: tuple[tuple[float, int], ...] = ((35, 100), (30, 90), (25, 75), (20, 60), (15, 45))
# attrition: lower is better
ATTRITION_STEPS: tuple[tuple[float, int], ...] = ((2.5, 100), (3.5, 90), (5.0, 75), (7.0, 60), (9.0, 45))
STEP_FLOOR = 30

WEIGHT_SHARE = 0.45
WEIGHT_SYNERGY = 0.35
WEIGHT_ATTRITION = 0.20

CAP_RISK = 75.0
CAP_CAPACITY = 78.0
CAP_BOTH = 65.0

BAND_GREEN_MIN = 75
BAND_YELLOW_MIN = 55


def score_share(share: float) -> int:
    for threshold, score in SHARE_STEPS:
        if share >= threshold:
            return score
    return STEP_FLOOR


def score_synergy(synergy: float) -> int:
    for threshold, score in SYNERGY_STEPS:
        if synergy >= threshold:
            return score
    return STEP_FLOOR


def score_attrition(attrition: float) -> int:
    for threshold, score in ATTRITION_STEPS:
        if attrition <= threshold:
            return score
    return STEP_FLOOR


def cred_penalty(cred: float) -> float:
    return max(0.0, 70.0 - cred) * 0.35


def risk_penalty(risk: float) -> float:
    return max(0.0, risk - 60.0) * 0.55 + max(0.0, risk - 80.0) * 0.65


def capacity_penalty(capacity: float) -> float:
    return max(0.0, 55.0 - capacity) * 0.45 + max(0.0, 40.0 - capacity) * 0.70


def overload_penalty(risk: float, capacity: float) -> float:
    if risk >= 85 and capacity <= 35:
        return 10.0
    if risk >= 80 and capacity <= 40:
        return 6.0
    return 0.0


def compute_robustness(state: KpiState) -> int:
    base = (
        score_share(state.share) * WEIGHT_SHARE
        + score_synergy(state.synergy) * WEIGHT_SYNERGY
        + score_attrition(state.attrition) * WEIGHT_ATTRITION
    )
    score = (
        base
        - cred_penalty(state.cred)
        - risk_penalty(state.risk)
        - capacity_penalty(state.capacity)
        - overload_penalty(state.risk, state.capacity)
    )

    if state.risk >= 85:
        score = min(score, CAP_RISK)
    if state.capacity <= 30:
        score = min(score, CAP_CAPACITY)
    if state.risk >= 85 and state.capacity <= 30:
        score = min(score, CAP_BOTH)

    return int(clamp(0, round_half_up(score), 100))


def band_for_score(score: int) -> Band:
    if score >= BAND_GREEN_MIN:
        return Band.GREEN
    if score >= BAND_YELLOW_MIN:
        return Band.YELLOW
    return Band.RED


def driver_traffic(kind: DriverKind, value: float) -> Traffic:
    if kind == DriverKind.CRED:
        if value >= 70:
            return Traffic.GREEN
        if value >= 50:
            return Traffic.YELLOW
        return Traffic.RED
    if kind == DriverKind.RISK:
        if value <= 45:
            return Traffic.GREEN
        if value <= 70:
            return Traffic.YELLOW
        return Traffic.RED
    if value >= 65:
        return Traffic.GREEN
    if value >= 40:
        return Traffic.YELLOW
    return Traffic.RED
