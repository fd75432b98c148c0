"""Tests for the single-stage decision transition."""

from __future__ import annotations

import pytest

from pmisim.core.catalog.loader import load_catalog
from pmisim.core.domain.enums import Flag
from pmisim.core.domain.errors import InvalidInputError
from pmisim.core.domain.models import INITIAL_STATE, FlagSet, KpiState
from pmisim.core.engine.decision import apply_decision, set_engine_debug

CATALOG = load_catalog("pmi_v1")


def mk_state(*flags: Flag, **overrides: float) -> KpiState:
    base = INITIAL_STATE.evolve(flags=FlagSet(raised=frozenset(flags)))
    return base.evolve(**overrides)


def test_first_stage_fast_track_matches_reference_values() -> None:
    draft = apply_decision(INITIAL_STATE, CATALOG, "DG1", "A")
    s = draft.ungraded

    assert s.cred == pytest.approx(61.0)
    assert s.risk == pytest.approx(55.0)
    assert s.capacity == pytest.approx(60.0)
    assert s.attrition == pytest.approx(5.0)
    assert draft.feasibility == pytest.approx(0.525, abs=1e-12)
    assert s.synergy == pytest.approx(8.4, abs=1e-9)
    assert s.share == pytest.approx(104.82, abs=1e-9)
    assert s.flags.is_set(Flag.HARD_INTEGRATION)
    assert draft.stress.stress_penalty == 0.0
    assert draft.stress.overload_signals == 0
    assert draft.narrative == "Market rewards a credible narrative and penalizes elevated execution risk."


def test_apply_does_not_mutate_input_state() -> None:
    before = mk_state(Flag.IT_DEBT, risk=80.0)
    snapshot = KpiState(**{k: getattr(before, k) for k in before.__dataclass_fields__})
    apply_decision(before, CATALOG, "DG4", "A")
    assert before == snapshot
    assert before.flags.raised == frozenset({Flag.IT_DEBT})


def test_unknown_option_is_rejected() -> None:
    with pytest.raises(InvalidInputError):
        apply_decision(INITIAL_STATE, CATALOG, "DG1", "Z")


def test_unknown_stage_is_rejected() -> None:
    with pytest.raises(InvalidInputError):
        apply_decision(INITIAL_STATE, CATALOG, "DG9", "A")


def test_renegotiation_sets_ceiling_and_guidance_shock() -> None:
    state = mk_state(synergy=90.0)
    draft = apply_decision(state, CATALOG, "DG4", "D")
    s = draft.ungraded

    assert s.synergy_ceiling == 80.0
    assert s.synergy == pytest.approx(80.0)
    # 100 + 2.1 - 0.8 + 1.44 + 0.18 - 6.0
    assert s.share == pytest.approx(96.92, abs=1e-9)
    assert s.flags.is_set(Flag.STABILITY_FIRST)


def test_renegotiation_narrative_is_the_option_note() -> None:
    draft = apply_decision(INITIAL_STATE, CATALOG, "DG4", "B")
    expected = CATALOG.stage("DG4").option("B").market_note
    assert draft.narrative == expected


def test_explicit_false_flag_override_clears_flag() -> None:
    draft = apply_decision(mk_state(Flag.FRAGILE_TALENT), CATALOG, "DG2", "A")
    assert not draft.ungraded.flags.is_set(Flag.FRAGILE_TALENT)

    from_initial = apply_decision(INITIAL_STATE, CATALOG, "DG2", "A")
    assert from_initial.ungraded.flags.raised == frozenset()


def test_overload_leakage_and_collapse_effects() -> None:
    state = mk_state(risk=80.0, capacity=33.0, attrition=9.5, synergy=40.0, cred=50.0)
    draft = apply_decision(state, CATALOG, "DG3", "A")
    s = draft.ungraded

    # risk 92, capacity 19, attrition 10 -> all three overload signals
    assert draft.stress.overload_signals == 3
    assert s.risk == pytest.approx(92.0)
    assert s.capacity == pytest.approx(19.0)
    assert draft.stress.cred_hit == 4 + 2 + 3
    assert s.cred == pytest.approx(56.0 - 9)
    assert s.share == pytest.approx(104.32 - 20.4, abs=1e-9)
    assert draft.stress.erosion == pytest.approx(0.05 + 7 * 0.002)

    feasibility = 0.6 * 0.7
    expected_synergy = (40.0 + 15 * feasibility) * 0.90 * (1 - draft.stress.erosion)
    assert draft.feasibility == pytest.approx(feasibility)
    assert s.synergy == pytest.approx(expected_synergy)
    assert s.share >= 70.0


def test_engine_debug_hook_receives_stress_events() -> None:
    lines: list[str] = []
    set_engine_debug(lines.append)
    try:
        apply_decision(mk_state(risk=90.0, capacity=30.0), CATALOG, "DG3", "A")
    finally:
        set_engine_debug(None)
    assert any(line.startswith("STRESS_PENALTY") for line in lines)
    assert any(line.startswith("COLLAPSE") for line in lines)
