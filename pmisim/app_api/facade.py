"""Orchestrator for one simulation run.

Responsibilities:
  - Own the current state, committed history and the single pending draft.
  - Route each step through guardrails, the engine and the grade adjuster.
  - Optionally persist the run after every commit.
Must not:
  - Reimplement engine formulas; the engine stays pure.
"""

from __future__ import annotations

from typing import Optional

from pmisim.core.catalog.models import StageCatalog, StageDef
from pmisim.core.domain.enums import Band
from pmisim.core.domain.errors import TerminalStateError
from pmisim.core.domain.models import INITIAL_STATE, Draft, HistoryEntry, KpiState
from pmisim.core.engine.decision import apply_decision, commit_draft
from pmisim.core.engine.grading import apply_grade
from pmisim.core.scoring.robustness import band_for_score, compute_robustness
from pmisim.core.session.guardrails import (
    check_can_commit,
    check_can_grade,
    check_can_select,
    expected_stage,
    is_terminal,
)
from .dto import SavedRun
from .ports import RunStore


class PmiSimulationApplication:
    def __init__(
        self,
        catalog: StageCatalog,
        store: Optional[RunStore] = None,
        run_id: Optional[str] = None,
    ) -> None:
        if store is not None and not run_id:
            raise ValueError("run_id is required when a store is configured")
        self._catalog = catalog
        self._store = store
        self._run_id = run_id
        self._state: KpiState = INITIAL_STATE
        self._history: list[HistoryEntry] = []
        self._draft: Optional[Draft] = None

    @property
    def catalog(self) -> StageCatalog:
        return self._catalog

    @property
    def state(self) -> KpiState:
        return self._state

    @property
    def history(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._history)

    @property
    def draft(self) -> Optional[Draft]:
        return self._draft

    @property
    def completed_stage_count(self) -> int:
        return len(self._history)

    def current_stage(self) -> Optional[StageDef]:
        return expected_stage(self._catalog, self.completed_stage_count)

    def is_complete(self) -> bool:
        return is_terminal(self._catalog, self.completed_stage_count)

    def select_option(self, stage_id: str, option_id: str) -> Draft:
        check_can_select(self._catalog, self.completed_stage_count, self._draft, stage_id)
        self._draft = apply_decision(self._state, self._catalog, stage_id, option_id)
        return self._draft

    def set_grade(self, grade: int) -> Draft:
        pending = check_can_grade(self._catalog, self.completed_stage_count, self._draft)
        self._draft = apply_grade(pending, grade)
        return self._draft

    def discard_draft(self) -> None:
        self._draft = None

    def proceed(self) -> HistoryEntry:
        pending = check_can_commit(self._catalog, self.completed_stage_count, self._draft)
        entry = commit_draft(pending)
        self._history.append(entry)
        self._state = entry.next
        self._draft = None
        if self._store is not None and self._run_id:
            self._store.save(self._run_id, self.snapshot())
        return entry

    def play(self, stage_id: str, option_id: str, grade: int) -> HistoryEntry:
        self.select_option(stage_id, option_id)
        self.set_grade(grade)
        return self.proceed()

    def robustness(self) -> int:
        if not self.is_complete():
            raise TerminalStateError(
                f"Robustness Index is computed once the run is complete "
                f"({self.completed_stage_count}/{len(self._catalog)} stages)"
            )
        return compute_robustness(self._state)

    def robustness_band(self) -> Band:
        return band_for_score(self.robustness())

    def reset(self) -> None:
        self._state = INITIAL_STATE
        self._history = []
        self._draft = None
        if self._store is not None and self._run_id:
            self._store.save(self._run_id, self.snapshot())

    def snapshot(self) -> SavedRun:
        return SavedRun(
            catalog_id=self._catalog.catalog_id,
            state=self._state,
            completed_stage_count=self.completed_stage_count,
            history=tuple(self._history),
        )

    def _is_compatible(self, saved: SavedRun) -> bool:
        if saved.catalog_id != self._catalog.catalog_id:
            return False
        try:
            saved.validate()
        except ValueError:
            return False
        if saved.completed_stage_count > len(self._catalog):
            return False
        expected_ids = self._catalog.stage_ids()
        return all(entry.stage_id == expected_ids[idx] for idx, entry in enumerate(saved.history))

    def restore(self, saved: Optional[SavedRun]) -> bool:
        """Load a saved run; anything unusable falls back to the initial state."""
        self._draft = None
        if saved is None or not self._is_compatible(saved):
            self._state = INITIAL_STATE
            self._history = []
            return False
        self._state = saved.state
        self._history = list(saved.history)
        return True

    def resume(self) -> bool:
        if self._store is None or not self._run_id:
            return self.restore(None)
        return self.restore(self._store.load(self._run_id))
