"""Execution feasibility multiplier derived from attrition and capacity."""

from __future__ import annotations

from pmisim.core.domain.bounds import clamp

ATTRITION_FLOOR = 0.6
CAPACITY_FLOOR = 0.7
FEASIBILITY_MIN = ATTRITION_FLOOR * CAPACITY_FLOOR
FEASIBILITY_MAX = 1.0


def compute_feasibility(attrition: float, capacity: float) -> float:
    # Each factor is floored on its own before multiplying.
    f1 = clamp(ATTRITION_FLOOR, 1.0 - attrition / 20.0, 1.0)
    f2 = clamp(CAPACITY_FLOOR, capacity / 100.0, 1.0)
    return f1 * f2
