"""Sequencing guardrails for a simulation run.

Responsibilities:
  - Enforce strict stage order, single pending draft and terminal state.
  - Raise the matching error before any value is derived.

Inputs/Outputs:
  - Inputs: catalog, committed stage count, pending draft, requested stage.
  - Outputs: the expected StageDef, or an error.

Invariants:
  - Must be deterministic and independent of KPI values.
"""

from __future__ import annotations

from typing import Optional

from pmisim.core.catalog.models import StageCatalog, StageDef
from pmisim.core.domain.errors import InvalidSequenceError, TerminalStateError
from pmisim.core.domain.models import Draft


def is_terminal(catalog: StageCatalog, completed_stage_count: int) -> bool:
    return completed_stage_count >= len(catalog)


def expected_stage(catalog: StageCatalog, completed_stage_count: int) -> Optional[StageDef]:
    if is_terminal(catalog, completed_stage_count):
        return None
    return catalog.stages[completed_stage_count]


def check_can_select(
    catalog: StageCatalog,
    completed_stage_count: int,
    pending: Optional[Draft],
    stage_id: str,
) -> StageDef:
    stage = expected_stage(catalog, completed_stage_count)
    if stage is None:
        raise TerminalStateError(
            f"Run is complete ({completed_stage_count}/{len(catalog)} stages); no further transitions"
        )
    if pending is not None:
        raise InvalidSequenceError(
            f"Draft for stage '{pending.stage_id}' is still pending; discard or commit it first"
        )
    if stage_id != stage.id:
        # unknown ids surface as InvalidInputError from the catalog lookup
        catalog.stage(stage_id)
        raise InvalidSequenceError(f"Expected stage '{stage.id}', got '{stage_id}'")
    return stage


def check_can_grade(
    catalog: StageCatalog, completed_stage_count: int, pending: Optional[Draft]
) -> Draft:
    if is_terminal(catalog, completed_stage_count):
        raise TerminalStateError("Run is complete; grades can no longer be assigned")
    if pending is None:
        raise InvalidSequenceError("No pending draft to grade")
    return pending


def check_can_commit(
    catalog: StageCatalog, completed_stage_count: int, pending: Optional[Draft]
) -> Draft:
    if is_terminal(catalog, completed_stage_count):
        raise TerminalStateError("Run is complete; nothing left to commit")
    if pending is None:
        raise InvalidSequenceError("No pending draft to commit")
    if pending.grade is None:
        raise InvalidSequenceError(
            f"Draft for stage '{pending.stage_id}' cannot be committed without a grade"
        )
    return pending
