"""Trend series and step markers derived from committed history.

Responsibilities:
  - Build per-field series: starting value followed by each committed value.
  - Classify each step as BREAKOUT, DROP or FLAT against fixed thresholds.
Must not:
  - Mutate history entries; read-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from pmisim.core.domain.models import INITIAL_STATE, HistoryEntry, KpiState


class Marker(Enum):
    START = "START"
    BREAKOUT = "BREAKOUT"
    DROP = "DROP"
    FLAT = "FLAT"


@dataclass(frozen=True)
class TrendSpec:
    field: str
    drop: float
    breakout: float
    lower_is_better: bool = False


TREND_SPECS: dict[str, TrendSpec] = {
    "share": TrendSpec(field="share", drop=-3.0, breakout=3.0),
    "synergy": TrendSpec(field="synergy", drop=-1.5, breakout=1.5),
    "attrition": TrendSpec(field="attrition", drop=-0.6, breakout=0.6, lower_is_better=True),
}


def trend_series(
    history: Sequence[HistoryEntry], field: str, start: KpiState = INITIAL_STATE
) -> np.ndarray:
    values = [getattr(start, field)] + [getattr(entry.next, field) for entry in history]
    return np.asarray(values, dtype=float)


def trend_markers(series: np.ndarray, spec: TrendSpec) -> list[Marker]:
    if series.size == 0:
        return []
    deltas = np.diff(series)
    markers = [Marker.START]
    for delta in deltas:
        # delta and thresholds are raw; polarity only decides whether a rise is good
        if delta >= spec.breakout:
            markers.append(Marker.BREAKOUT)
        elif delta <= spec.drop:
            markers.append(Marker.DROP)
        else:
            markers.append(Marker.FLAT)
    return markers


def is_favorable(marker: Marker, spec: TrendSpec) -> bool | None:
    if marker in (Marker.START, Marker.FLAT):
        return None
    rising = marker == Marker.BREAKOUT
    return (not rising) if spec.lower_is_better else rising
