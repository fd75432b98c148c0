"""Nonlinear stress and overload penalties.

Responsibilities:
  - Count overload signals and apply synergy leakage.
  - Compute the tiered share penalty from risk and capacity.
  - Compute the collapse credibility hit and synergy erosion.

Invariants:
  - Pure functions of risk/capacity/attrition; share is never read here.
"""

from __future__ import annotations

from pmisim.core.domain.bounds import round_half_up

OVERLOAD_RISK = 85.0
OVERLOAD_CAPACITY = 30.0
OVERLOAD_ATTRITION = 9.0

# overload signal count -> synergy multiplier
LEAKAGE_FACTORS: dict[int, float] = {2: 0.94, 3: 0.90}

RISK_TIERS: tuple[tuple[float, float], ...] = ((75.0, 0.15), (85.0, 0.35), (92.0, 0.75))
CAPACITY_TIERS: tuple[tuple[float, float], ...] = ((40.0, 0.20), (30.0, 0.40))
COLLAPSE_RISK = 85.0
COLLAPSE_CAPACITY = 35.0
COLLAPSE_MULTIPLIER = 1.5


def count_overload_signals(risk: float, capacity: float, attrition: float) -> int:
    return (
        (1 if risk > OVERLOAD_RISK else 0)
        + (1 if capacity < OVERLOAD_CAPACITY else 0)
        + (1 if attrition > OVERLOAD_ATTRITION else 0)
    )


def leakage_factor(overload_signals: int) -> float:
    return LEAKAGE_FACTORS.get(overload_signals, 1.0)


def is_collapse(risk: float, capacity: float) -> bool:
    return risk > COLLAPSE_RISK and capacity < COLLAPSE_CAPACITY


def stress_penalty(risk: float, capacity: float) -> float:
    penalty = 0.0
    for threshold, weight in RISK_TIERS:
        if risk > threshold:
            penalty += (risk - threshold) * weight
    for threshold, weight in CAPACITY_TIERS:
        if capacity < threshold:
            penalty += (threshold - capacity) * weight
    if is_collapse(risk, capacity):
        penalty *= COLLAPSE_MULTIPLIER
    return penalty


def collapse_cred_hit(risk: float, capacity: float) -> int:
    if not is_collapse(risk, capacity):
        return 0
    return (
        4
        + round_half_up((risk - COLLAPSE_RISK) * 0.3)
        + round_half_up((COLLAPSE_CAPACITY - capacity) * 0.2)
    )


def collapse_erosion(risk: float, capacity: float) -> float:
    if not is_collapse(risk, capacity):
        return 0.0
    return 0.05 + (risk - COLLAPSE_RISK) * 0.002
