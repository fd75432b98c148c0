"""DTO definitions for app-level data exchange.

Responsibilities:
  - Define the saved-run record exchanged with persistence collaborators.
Must not:
  - Implement engine logic.
"""

from __future__ import annotations

from dataclasses import dataclass

from pmisim.core.domain.bounds import domain_violations
from pmisim.core.domain.models import HistoryEntry, KpiState


@dataclass(frozen=True)
class SavedRun:
    catalog_id: str
    state: KpiState
    completed_stage_count: int
    history: tuple[HistoryEntry, ...] = ()

    def validate(self) -> None:
        if not self.catalog_id.strip():
            raise ValueError("catalog_id must be non-empty")
        if self.completed_stage_count < 0:
            raise ValueError("completed_stage_count must be >= 0")
        if self.completed_stage_count != len(self.history):
            raise ValueError(
                f"completed_stage_count={self.completed_stage_count} does not match "
                f"history length {len(self.history)}"
            )
        if self.history and self.history[-1].next != self.state:
            raise ValueError("state must equal the last committed entry's next state")
        violations = domain_violations(self.state)
        if violations:
            raise ValueError(f"state outside domain: {violations}")
