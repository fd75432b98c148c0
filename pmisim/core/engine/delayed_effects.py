"""Conditional delayed-effect rules keyed on flags and stage/option identity.

Responsibilities:
  - Evaluate every rule in order; each matching rule yields an Adjustment.
  - Apply adjustments additively with per-field clamping.
Must not:
  - Match literal stage or option ids; stage position, stage role and option
    posture carry the identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from pmisim.core.catalog.models import OptionDef, StageCatalog, StageDef
from pmisim.core.domain.bounds import clamp, clamp_field
from pmisim.core.domain.enums import Flag, Posture
from pmisim.core.domain.models import KpiState


@dataclass(frozen=True)
class RuleContext:
    catalog: StageCatalog
    stage: StageDef
    option: OptionDef
    prev: KpiState

    @property
    def is_final_stage(self) -> bool:
        return self.catalog.is_final(self.stage.id)


@dataclass(frozen=True)
class Adjustment:
    rule: str
    deltas: tuple[tuple[str, float], ...]


DelayedRule = Callable[[RuleContext, KpiState], Optional[Adjustment]]

IT_DEBT_MIN_BASE_SYNERGY = 10.0
FULL_DELIVERY_RISK_THRESHOLD = 70.0
STABILIZE_SYNERGY_THRESHOLD = 35.0


def rule_it_debt_late_push(ctx: RuleContext, state: KpiState) -> Optional[Adjustment]:
    if not state.flags.is_set(Flag.IT_DEBT):
        return None
    if not ctx.catalog.is_in_final_two(ctx.stage.id):
        return None
    if ctx.option.base_synergy < IT_DEBT_MIN_BASE_SYNERGY:
        return None
    return Adjustment("IT_DEBT_LATE_PUSH", (("risk", 6.0), ("capacity", -6.0)))


def rule_fragile_talent_ambition(ctx: RuleContext, state: KpiState) -> Optional[Adjustment]:
    if not state.flags.is_set(Flag.FRAGILE_TALENT):
        return None
    if not ctx.catalog.is_renegotiation(ctx.stage.id):
        return None
    if ctx.option.posture != Posture.AMBITION_HOLD:
        return None
    return Adjustment("FRAGILE_TALENT_AMBITION", (("attrition", 1.0),))


def rule_stay_after_full_delivery(ctx: RuleContext, state: KpiState) -> Optional[Adjustment]:
    if not ctx.is_final_stage or ctx.option.posture != Posture.STAY_THE_COURSE:
        return None
    if not ctx.prev.flags.is_set(Flag.FULL_DELIVERY):
        return None
    if ctx.prev.risk <= FULL_DELIVERY_RISK_THRESHOLD:
        return None
    return Adjustment(
        "STAY_AFTER_FULL_DELIVERY", (("risk", 8.0), ("cred", -4.0), ("attrition", 0.8))
    )


def rule_stay_after_hard_integration(ctx: RuleContext, state: KpiState) -> Optional[Adjustment]:
    if not ctx.is_final_stage or ctx.option.posture != Posture.STAY_THE_COURSE:
        return None
    if not ctx.prev.flags.is_set(Flag.HARD_INTEGRATION):
        return None
    return Adjustment("STAY_AFTER_HARD_INTEGRATION", (("risk", 5.0), ("cred", -2.0)))


def rule_recalibrate_after_cred_reset(ctx: RuleContext, state: KpiState) -> Optional[Adjustment]:
    if not ctx.is_final_stage:
        return None
    if ctx.option.posture not in {Posture.STABILIZE, Posture.REPRIORITIZE}:
        return None
    if not ctx.prev.flags.is_set(Flag.CRED_RESET):
        return None
    return Adjustment("RECALIBRATE_AFTER_CRED_RESET", (("cred", 3.0), ("share", 1.2)))


def rule_stay_after_stability_first(ctx: RuleContext, state: KpiState) -> Optional[Adjustment]:
    if not ctx.is_final_stage or ctx.option.posture != Posture.STAY_THE_COURSE:
        return None
    if not ctx.prev.flags.is_set(Flag.STABILITY_FIRST):
        return None
    return Adjustment("STAY_AFTER_STABILITY_FIRST", (("cred", -4.0), ("share", -1.5)))


def rule_stabilize_low_synergy(ctx: RuleContext, state: KpiState) -> Optional[Adjustment]:
    if not ctx.is_final_stage or ctx.option.posture != Posture.STABILIZE:
        return None
    if state.synergy >= STABILIZE_SYNERGY_THRESHOLD:
        return None
    return Adjustment("STABILIZE_LOW_SYNERGY", (("cred", -3.0),))


DEFAULT_RULES: tuple[DelayedRule, ...] = (
    rule_it_debt_late_push,
    rule_fragile_talent_ambition,
    rule_stay_after_full_delivery,
    rule_stay_after_hard_integration,
    rule_recalibrate_after_cred_reset,
    rule_stay_after_stability_first,
    rule_stabilize_low_synergy,
)


def apply_adjustment(state: KpiState, adjustment: Adjustment) -> KpiState:
    changes: dict[str, float] = {}
    for name, delta in adjustment.deltas:
        current = changes.get(name, getattr(state, name))
        if name == "synergy":
            changes[name] = clamp(0.0, current + delta, state.synergy_ceiling)
        else:
            changes[name] = clamp_field(name, current + delta)
    return state.evolve(**changes)


def apply_delayed_effects(
    ctx: RuleContext,
    state: KpiState,
    rules: Iterable[DelayedRule] = DEFAULT_RULES,
) -> tuple[KpiState, list[Adjustment]]:
    applied: list[Adjustment] = []
    for rule in rules:
        adjustment = rule(ctx, state)
        if adjustment is None:
            continue
        state = apply_adjustment(state, adjustment)
        applied.append(adjustment)
    return state, applied
