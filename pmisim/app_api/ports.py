"""Port definitions for app-level dependencies.

Responsibilities:
  - Define interface contracts for run persistence.
Must not:
  - Implement logic; interfaces only.
"""

from __future__ import annotations

from typing import Optional, Protocol

from .dto import SavedRun


class RunStore(Protocol):
    def save(self, run_id: str, run: SavedRun) -> None:
        ...

    def load(self, run_id: str) -> Optional[SavedRun]:
        ...
