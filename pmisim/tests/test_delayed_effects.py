"""Tests for conditional delayed-effect rules."""

from __future__ import annotations

import pytest

from pmisim.core.catalog.loader import load_catalog
from pmisim.core.domain.enums import Flag
from pmisim.core.domain.models import INITIAL_STATE, FlagSet, KpiState
from pmisim.core.engine.decision import apply_decision
from pmisim.core.engine.delayed_effects import (
    Adjustment,
    RuleContext,
    apply_adjustment,
    rule_it_debt_late_push,
)

CATALOG = load_catalog("pmi_v1")


def mk_state(*flags: Flag, **overrides: float) -> KpiState:
    base = INITIAL_STATE.evolve(flags=FlagSet(raised=frozenset(flags)))
    return base.evolve(**overrides)


def _pair(stage_id: str, option_id: str, flag: Flag, **overrides: float) -> tuple[KpiState, KpiState]:
    with_flag = apply_decision(mk_state(flag, **overrides), CATALOG, stage_id, option_id).ungraded
    without = apply_decision(mk_state(**overrides), CATALOG, stage_id, option_id).ungraded
    return with_flag, without


def test_it_debt_hits_late_high_synergy_options() -> None:
    with_flag, without = _pair("DG4", "A", Flag.IT_DEBT)
    assert with_flag.risk - without.risk == pytest.approx(6.0)
    assert with_flag.capacity - without.capacity == pytest.approx(-6.0)
    assert with_flag.synergy == pytest.approx(without.synergy)


def test_it_debt_ignores_early_stages_and_low_synergy_options() -> None:
    with_flag, without = _pair("DG3", "A", Flag.IT_DEBT)
    assert with_flag.risk == without.risk

    with_flag, without = _pair("DG5", "B", Flag.IT_DEBT, synergy=40.0)
    assert with_flag.risk == without.risk
    assert with_flag.capacity == without.capacity


def test_fragile_talent_raises_attrition_on_ambition_hold_options() -> None:
    for option_id in ("A", "C"):
        with_flag, without = _pair("DG4", option_id, Flag.FRAGILE_TALENT)
        assert with_flag.attrition - without.attrition == pytest.approx(1.0)

    for option_id in ("B", "D"):
        with_flag, without = _pair("DG4", option_id, Flag.FRAGILE_TALENT)
        assert with_flag.attrition == without.attrition


def test_stay_the_course_after_full_delivery_requires_prior_high_risk() -> None:
    with_flag, without = _pair("DG5", "A", Flag.FULL_DELIVERY, risk=75.0, capacity=80.0, synergy=40.0)
    assert without.risk == pytest.approx(79.0)
    assert with_flag.risk == pytest.approx(87.0)
    assert with_flag.cred - without.cred == pytest.approx(-4.0)
    assert with_flag.attrition - without.attrition == pytest.approx(0.8)

    with_flag, without = _pair("DG5", "A", Flag.FULL_DELIVERY, risk=70.0, capacity=80.0, synergy=40.0)
    assert with_flag.risk == without.risk


def test_stay_the_course_after_hard_integration() -> None:
    with_flag, without = _pair("DG5", "A", Flag.HARD_INTEGRATION, synergy=40.0)
    assert with_flag.risk - without.risk == pytest.approx(5.0)
    assert with_flag.cred - without.cred == pytest.approx(-2.0)


def test_both_stay_the_course_penalties_stack() -> None:
    state = mk_state(Flag.FULL_DELIVERY, Flag.HARD_INTEGRATION, risk=72.0, capacity=80.0, synergy=40.0)
    s = apply_decision(state, CATALOG, "DG5", "A").ungraded
    # 72 + 4 + 8 + 5
    assert s.risk == pytest.approx(89.0)


def test_recalibration_after_cred_reset() -> None:
    for option_id in ("B", "C"):
        with_flag, without = _pair("DG5", option_id, Flag.CRED_RESET, synergy=40.0)
        assert with_flag.cred - without.cred == pytest.approx(3.0)
        assert with_flag.share - without.share == pytest.approx(1.2)

    with_flag, without = _pair("DG5", "D", Flag.CRED_RESET, synergy=40.0)
    assert with_flag.cred == without.cred


def test_stay_the_course_after_stability_first() -> None:
    with_flag, without = _pair("DG5", "A", Flag.STABILITY_FIRST, synergy=40.0)
    assert with_flag.cred - without.cred == pytest.approx(-4.0)
    assert with_flag.share - without.share == pytest.approx(-1.5)


def test_stabilize_with_low_synergy_costs_credibility() -> None:
    low = apply_decision(mk_state(synergy=20.0), CATALOG, "DG5", "B").ungraded
    high = apply_decision(mk_state(synergy=40.0), CATALOG, "DG5", "B").ungraded
    assert low.synergy < 35.0
    assert low.cred == pytest.approx(55.0 - 1 - 3)
    assert high.cred == pytest.approx(55.0 - 1)


def test_rule_returns_none_without_flag() -> None:
    stage = CATALOG.stage("DG4")
    ctx = RuleContext(catalog=CATALOG, stage=stage, option=stage.option("A"), prev=INITIAL_STATE)
    assert rule_it_debt_late_push(ctx, INITIAL_STATE) is None


def test_apply_adjustment_clamps_each_field() -> None:
    state = mk_state(risk=98.0, capacity=3.0)
    adjusted = apply_adjustment(state, Adjustment("TEST", (("risk", 6.0), ("capacity", -6.0))))
    assert adjusted.risk == 100.0
    assert adjusted.capacity == 0.0
