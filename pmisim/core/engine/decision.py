"""State transition for a single stage decision.

Responsibilities:
  - Apply an option's deltas, flags, ceiling and guidance shock in order.
  - Apply synergy leakage, delayed-effect rules and the stress engine.
  - Produce a Draft with feasibility, narrative and stress diagnostics.
  - Turn a graded Draft into an immutable HistoryEntry.

Inputs/Outputs:
  - Inputs: current KpiState, a validated StageCatalog, stage and option ids.
  - Outputs: Draft (uncommitted) and HistoryEntry (on commit).

Invariants:
  - Never mutates the input state; every step returns a fresh value.
  - Unknown stage/option ids fail before any value is derived.
  - Stress steps key off risk/capacity only, never off the penalized share.
"""

from __future__ import annotations

from typing import Callable

from pmisim.core.catalog.models import OptionDef, StageCatalog
from pmisim.core.domain.bounds import clamp, clamp_field
from pmisim.core.domain.errors import InvalidSequenceError
from pmisim.core.domain.models import Draft, HistoryEntry, KpiState, StateDeltas, StressReport
from .delayed_effects import RuleContext, apply_delayed_effects
from .feasibility import compute_feasibility
from .narrative import annotate_with_grade, generate_narrative
from .stress import (
    collapse_cred_hit,
    collapse_erosion,
    count_overload_signals,
    is_collapse,
    leakage_factor,
    stress_penalty,
)

SHARE_FROM_SYNERGY = 0.35
SHARE_FROM_CRED = 0.10
SHARE_FROM_RISK = -0.12
SHARE_FROM_ATTRITION = -0.18

_DEBUG_FN: Callable[[str], None] | None = None


def set_engine_debug(fn: Callable[[str], None] | None) -> None:
    global _DEBUG_FN
    _DEBUG_FN = fn


def _debug(msg: str) -> None:
    if _DEBUG_FN is not None:
        _DEBUG_FN(msg)


def _clamp_synergy(state: KpiState, value: float) -> float:
    return clamp(0.0, value, state.synergy_ceiling)


def share_delta(option: OptionDef) -> float:
    return (
        SHARE_FROM_SYNERGY * option.base_synergy
        + SHARE_FROM_CRED * option.d_cred
        + SHARE_FROM_RISK * option.d_risk
        + SHARE_FROM_ATTRITION * option.d_attrition
    )


def _apply_immediate(state: KpiState, option: OptionDef, renegotiation: bool) -> KpiState:
    s = state.evolve(
        cred=clamp_field("cred", state.cred + option.d_cred),
        risk=clamp_field("risk", state.risk + option.d_risk),
        capacity=clamp_field("capacity", state.capacity + option.d_capacity),
        attrition=clamp_field("attrition", state.attrition + option.d_attrition),
    )
    overrides = option.flag_overrides()
    if overrides:
        s = s.evolve(flags=s.flags.with_overrides(overrides))
    if renegotiation and option.ceiling_override is not None:
        s = s.evolve(synergy_ceiling=clamp_field("synergy_ceiling", option.ceiling_override))
    return s


def _final_clamp(state: KpiState) -> KpiState:
    ceiling = clamp_field("synergy_ceiling", state.synergy_ceiling)
    return state.evolve(
        share=clamp_field("share", state.share),
        synergy=clamp(0.0, state.synergy, ceiling),
        attrition=clamp_field("attrition", state.attrition),
        cred=clamp_field("cred", state.cred),
        risk=clamp_field("risk", state.risk),
        capacity=clamp_field("capacity", state.capacity),
        synergy_ceiling=ceiling,
    )


def apply_decision(state: KpiState, catalog: StageCatalog, stage_id: str, option_id: str) -> Draft:
    stage = catalog.stage(stage_id)
    option = stage.option(option_id)
    renegotiation = catalog.is_renegotiation(stage.id)

    s = _apply_immediate(state, option, renegotiation)

    feasibility = compute_feasibility(s.attrition, s.capacity)
    s = s.evolve(synergy=_clamp_synergy(s, s.synergy + option.base_synergy * feasibility))

    overload_signals = count_overload_signals(s.risk, s.capacity, s.attrition)
    factor = leakage_factor(overload_signals)
    if factor != 1.0:
        s = s.evolve(synergy=_clamp_synergy(s, s.synergy * factor))
        _debug(f"LEAKAGE stage={stage.id} option={option.id} signals={overload_signals} factor={factor}")

    s = s.evolve(share=clamp_field("share", s.share + share_delta(option)))
    if renegotiation and option.guidance_shock is not None:
        s = s.evolve(share=clamp_field("share", s.share + option.guidance_shock))

    ctx = RuleContext(catalog=catalog, stage=stage, option=option, prev=state)
    s, adjustments = apply_delayed_effects(ctx, s)
    for adjustment in adjustments:
        _debug(f"DELAYED_EFFECT stage={stage.id} option={option.id} rule={adjustment.rule}")

    penalty = stress_penalty(s.risk, s.capacity)
    if penalty > 0:
        s = s.evolve(share=clamp_field("share", s.share - penalty))
        _debug(f"STRESS_PENALTY stage={stage.id} risk={s.risk} capacity={s.capacity} penalty={penalty:.3f}")

    cred_hit = 0
    erosion = 0.0
    if is_collapse(s.risk, s.capacity):
        cred_hit = collapse_cred_hit(s.risk, s.capacity)
        s = s.evolve(cred=clamp_field("cred", s.cred - cred_hit))
        erosion = collapse_erosion(s.risk, s.capacity)
        s = s.evolve(synergy=_clamp_synergy(s, s.synergy * (1.0 - erosion)))
        _debug(f"COLLAPSE stage={stage.id} cred_hit={cred_hit} erosion={erosion:.4f}")

    s = _final_clamp(s)

    return Draft(
        stage_id=stage.id,
        option_id=option.id,
        prev=state,
        ungraded=s,
        feasibility=feasibility,
        narrative=generate_narrative(catalog, stage, option, s),
        stress=StressReport(
            overload_signals=overload_signals,
            stress_penalty=penalty,
            cred_hit=cred_hit,
            erosion=erosion,
        ),
    )


def commit_draft(draft: Draft) -> HistoryEntry:
    if draft.grade is None or draft.graded is None or draft.grade_impact is None:
        raise InvalidSequenceError(
            f"Draft for stage '{draft.stage_id}' cannot be committed without a grade"
        )
    return HistoryEntry(
        stage_id=draft.stage_id,
        option_id=draft.option_id,
        prev=draft.prev,
        next=draft.graded,
        deltas=StateDeltas.between(draft.prev, draft.graded),
        feasibility=draft.feasibility,
        grade=draft.grade,
        narrative=annotate_with_grade(draft.narrative, draft.grade, draft.grade_impact),
    )
