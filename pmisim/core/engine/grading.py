"""Grade adjustment applied to a draft before commit.

Responsibilities:
  - Map a 1..6 grade to a score in [-1, 1] (1 best, neutral at 3.5).
  - Adjust share, synergy and attrition only.

Invariants:
  - cred, risk, capacity, synergy_ceiling and flags are never touched.
  - Grading always starts from the ungraded draft state, so regrading does
    not compound.
"""

from __future__ import annotations

from dataclasses import replace

from pmisim.core.domain.bounds import clamp, clamp_field
from pmisim.core.domain.errors import InvalidInputError
from pmisim.core.domain.models import Draft, GradeImpact, KpiState

GRADE_MIN = 1
GRADE_MAX = 6
GRADE_NEUTRAL = 3.5
GRADE_SPAN = 2.5

SHARE_WEIGHT = 2.2
SYNERGY_WEIGHT = 1.2
ATTRITION_WEIGHT = -0.25


def validate_grade(grade: object) -> int:
    if isinstance(grade, bool) or not isinstance(grade, int):
        raise InvalidInputError(f"grade must be an integer in {GRADE_MIN}..{GRADE_MAX}, got {grade!r}")
    if grade < GRADE_MIN or grade > GRADE_MAX:
        raise InvalidInputError(f"grade must be in {GRADE_MIN}..{GRADE_MAX}, got {grade}")
    return grade


def grade_to_score(grade: int) -> float:
    return clamp(-1.0, (GRADE_NEUTRAL - grade) / GRADE_SPAN, 1.0)


def apply_grade_to_state(
    state: KpiState, grade: int, feasibility: float
) -> tuple[KpiState, GradeImpact]:
    score = grade_to_score(validate_grade(grade))
    d_share = SHARE_WEIGHT * score
    d_synergy = SYNERGY_WEIGHT * score * feasibility
    d_attrition = ATTRITION_WEIGHT * score
    graded = state.evolve(
        share=clamp_field("share", state.share + d_share),
        synergy=clamp(0.0, state.synergy + d_synergy, state.synergy_ceiling),
        attrition=clamp_field("attrition", state.attrition + d_attrition),
    )
    return graded, GradeImpact(score=score, d_share=d_share, d_synergy=d_synergy, d_attrition=d_attrition)


def apply_grade(draft: Draft, grade: int) -> Draft:
    graded, impact = apply_grade_to_state(draft.ungraded, grade, draft.feasibility)
    return replace(draft, grade=grade, graded=graded, grade_impact=impact)
