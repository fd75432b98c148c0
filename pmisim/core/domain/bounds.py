"""Field domains for the KPI state.

Responsibilities:
  - Define the closed interval of every numeric KPI field.
  - Provide clamp helpers and a domain check used by tests and loaders.

Invariants:
  - synergy is bounded above by the state's own synergy_ceiling, not a constant.
  - Must remain stable; catalogs and saved runs are validated against it.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import KpiState

SHARE_MIN, SHARE_MAX = 70.0, 130.0
SYNERGY_MIN = 0.0
ATTRITION_MIN, ATTRITION_MAX = 2.0, 12.0
CRED_MIN, CRED_MAX = 0.0, 100.0
RISK_MIN, RISK_MAX = 0.0, 100.0
CAPACITY_MIN, CAPACITY_MAX = 0.0, 100.0
CEILING_MIN, CEILING_MAX = 60.0, 100.0

FIELD_BOUNDS: dict[str, tuple[float, float]] = {
    "share": (SHARE_MIN, SHARE_MAX),
    "attrition": (ATTRITION_MIN, ATTRITION_MAX),
    "cred": (CRED_MIN, CRED_MAX),
    "risk": (RISK_MIN, RISK_MAX),
    "capacity": (CAPACITY_MIN, CAPACITY_MAX),
    "synergy_ceiling": (CEILING_MIN, CEILING_MAX),
}


def clamp(lo: float, value: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp_field(name: str, value: float) -> float:
    lo, hi = FIELD_BOUNDS[name]
    return clamp(lo, value, hi)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def domain_violations(state: KpiState) -> list[str]:
    violations: list[str] = []
    for name, (lo, hi) in FIELD_BOUNDS.items():
        value = getattr(state, name)
        if not (lo <= value <= hi):
            violations.append(f"{name}={value} outside [{lo}, {hi}]")
    if not (SYNERGY_MIN <= state.synergy <= state.synergy_ceiling):
        violations.append(
            f"synergy={state.synergy} outside [{SYNERGY_MIN}, {state.synergy_ceiling}]"
        )
    return violations
