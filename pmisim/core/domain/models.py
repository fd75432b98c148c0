"""Domain models for KPI state, drafts and committed history.

Responsibilities:
  - Define immutable data carriers for the KPI vector, flags and transitions.

Inputs/Outputs:
  - HistoryEntry is appended by the orchestrator and persisted by infra layers.

Invariants:
  - Models are frozen; a new state is always a fresh value.
  - Models must be deterministic containers with no engine behavior.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

from .enums import Flag

KPI_FIELDS = ("share", "synergy", "attrition", "cred", "risk", "capacity", "synergy_ceiling")


@dataclass(frozen=True)
class FlagSet:
    """Set of flags currently raised; every other flag reads as False."""

    raised: frozenset[Flag] = field(default_factory=frozenset)

    def is_set(self, flag: Flag) -> bool:
        if not isinstance(flag, Flag):
            raise TypeError(f"unknown flag: {flag!r}")
        return flag in self.raised

    def with_overrides(self, overrides: Mapping[Flag, bool]) -> FlagSet:
        raised = set(self.raised)
        for flag, value in overrides.items():
            if not isinstance(flag, Flag):
                raise TypeError(f"unknown flag: {flag!r}")
            if value:
                raised.add(flag)
            else:
                # Setting a flag to False is an overwrite, including the no-op case.
                raised.discard(flag)
        return FlagSet(raised=frozenset(raised))

    def as_sorted_names(self) -> list[str]:
        return sorted(flag.value for flag in self.raised)


@dataclass(frozen=True)
class KpiState:
    share: float
    synergy: float
    attrition: float
    cred: float
    risk: float
    capacity: float
    synergy_ceiling: float
    flags: FlagSet = field(default_factory=FlagSet)

    def evolve(self, **changes: object) -> KpiState:
        return replace(self, **changes)


INITIAL_STATE = KpiState(
    share=100.0,
    synergy=0.0,
    attrition=4.0,
    cred=55.0,
    risk=45.0,
    capacity=70.0,
    synergy_ceiling=100.0,
    flags=FlagSet(),
)


@dataclass(frozen=True)
class StateDeltas:
    share: float
    synergy: float
    attrition: float
    cred: float
    risk: float
    capacity: float
    synergy_ceiling: float

    @classmethod
    def between(cls, prev: KpiState, nxt: KpiState) -> StateDeltas:
        return cls(**{name: getattr(nxt, name) - getattr(prev, name) for name in KPI_FIELDS})


@dataclass(frozen=True)
class StressReport:
    overload_signals: int
    stress_penalty: float
    cred_hit: int
    erosion: float


@dataclass(frozen=True)
class GradeImpact:
    score: float
    d_share: float
    d_synergy: float
    d_attrition: float


@dataclass(frozen=True)
class Draft:
    """Uncommitted transition; discardable until committed."""

    stage_id: str
    option_id: str
    prev: KpiState
    ungraded: KpiState
    feasibility: float
    narrative: str
    stress: StressReport
    grade: Optional[int] = None
    graded: Optional[KpiState] = None
    grade_impact: Optional[GradeImpact] = None

    @property
    def next(self) -> KpiState:
        return self.graded if self.graded is not None else self.ungraded


@dataclass(frozen=True)
class HistoryEntry:
    stage_id: str
    option_id: str
    prev: KpiState
    next: KpiState
    deltas: StateDeltas
    feasibility: float
    grade: int
    narrative: str
