"""Narrative selection and rendering.

Responsibilities:
  - Decide which clauses trigger for an option and its resulting state.
  - Render triggered clauses (or the renegotiation note) to one sentence.
  - Annotate a narrative with the impact of the assigned grade.

Invariants:
  - Clause selection is pure and ordered; rendering is presentation only.
"""

from __future__ import annotations

from pmisim.core.catalog.models import OptionDef, StageCatalog, StageDef
from pmisim.core.domain.enums import CLAUSE_METADATA, MUTED_REACTION, NarrativeClause
from pmisim.core.domain.models import GradeImpact, KpiState

OVERLOAD_NOTE_RISK = 85.0
OVERLOAD_NOTE_CAPACITY = 30.0


def select_clauses(option: OptionDef, result: KpiState) -> list[NarrativeClause]:
    clauses: list[NarrativeClause] = []
    if option.d_cred >= 4:
        clauses.append(NarrativeClause.CRED_REWARDED)
    elif option.d_cred <= -3:
        clauses.append(NarrativeClause.DIRECTION_QUESTIONED)

    if option.d_risk >= 8:
        clauses.append(NarrativeClause.RISK_PENALIZED)
    elif option.d_risk <= -6:
        clauses.append(NarrativeClause.RISK_REDUCTION_VALUED)

    if option.d_attrition >= 1.2:
        clauses.append(NarrativeClause.TALENT_INSTABILITY)
    elif option.d_attrition <= -0.6:
        clauses.append(NarrativeClause.RETENTION_SUPPORT)

    if result.risk >= OVERLOAD_NOTE_RISK or result.capacity <= OVERLOAD_NOTE_CAPACITY:
        clauses.append(NarrativeClause.SYSTEMIC_OVERLOAD)
    return clauses


def render_clauses(clauses: list[NarrativeClause]) -> str:
    if not clauses:
        return MUTED_REACTION
    text = " ".join(CLAUSE_METADATA[clause] for clause in clauses)
    if not text.endswith("."):
        text += "."
    return text


def generate_narrative(
    catalog: StageCatalog, stage: StageDef, option: OptionDef, result: KpiState
) -> str:
    if catalog.is_renegotiation(stage.id) and option.market_note:
        return option.market_note
    return render_clauses(select_clauses(option, result))


def _signed(value: float, digits: int) -> str:
    sign = "+" if value >= 0 else "-"
    return f"{sign}{abs(value):.{digits}f}"


def annotate_with_grade(narrative: str, grade: int, impact: GradeImpact) -> str:
    return (
        f"{narrative} (Presentation grade {grade}: "
        f"{_signed(impact.d_share, 1)} share, "
        f"{_signed(impact.d_synergy, 1)} synergy, "
        f"{_signed(impact.d_attrition, 2)}pp attrition)"
    )
