"""Tests for the Robustness Index and its presentation bands."""

from __future__ import annotations

import itertools

import pytest

from pmisim.core.domain.enums import Band, DriverKind
from pmisim.core.domain.models import INITIAL_STATE, KpiState
from pmisim.core.scoring.robustness import (
    band_for_score,
    compute_robustness,
    driver_traffic,
    score_attrition,
    score_share,
    score_synergy,
)


def mk_state(**overrides: float) -> KpiState:
    return INITIAL_STATE.evolve(**overrides)


def test_step_scores_use_inclusive_thresholds() -> None:
    assert score_share(128.0) == 100
    assert score_share(127.99) == 90
    assert score_share(89.99) == 30
    assert score_synergy(35.0) == 100
    assert score_synergy(14.9) == 30
    assert score_attrition(2.5) == 100
    assert score_attrition(9.0) == 45
    assert score_attrition(9.01) == 30


def test_healthy_state_without_penalties() -> None:
    s = mk_state(share=120.0, synergy=30.0, attrition=3.5, cred=70.0, risk=60.0, capacity=55.0)
    assert compute_robustness(s) == 90
    assert band_for_score(90) == Band.GREEN


def test_high_risk_caps_score_at_75() -> None:
    s = mk_state(share=130.0, synergy=40.0, attrition=2.0, cred=80.0, risk=85.0, capacity=60.0)
    # 100 - 17 = 83 before the cap
    assert compute_robustness(s) == 75


def test_low_capacity_caps_score_at_78() -> None:
    s = mk_state(share=130.0, synergy=40.0, attrition=2.0, cred=80.0, risk=50.0, capacity=30.0)
    # 100 - 18.25 = 81.75 before the cap
    assert compute_robustness(s) == 78


def test_combined_red_zone_rounds_half_up() -> None:
    s = mk_state(share=130.0, synergy=40.0, attrition=2.0, cred=80.0, risk=85.0, capacity=30.0)
    # 100 - 17 - 18.25 - 10 = 54.75
    assert compute_robustness(s) == 55
    assert band_for_score(55) == Band.YELLOW


def test_collapsed_state_scores_zero() -> None:
    s = mk_state(share=70.0, synergy=0.0, attrition=12.0, cred=0.0, risk=100.0, capacity=0.0)
    assert compute_robustness(s) == 0
    assert band_for_score(0) == Band.RED


def test_score_is_bounded_and_caps_hold_over_grid() -> None:
    grid = itertools.product(
        (70.0, 100.0, 130.0),
        (0.0, 20.0, 40.0),
        (2.0, 6.0, 12.0),
        (0.0, 60.0, 100.0),
        (0.0, 80.0, 85.0, 100.0),
        (0.0, 30.0, 60.0, 100.0),
    )
    for share, synergy, attrition, cred, risk, capacity in grid:
        s = mk_state(share=share, synergy=synergy, attrition=attrition, cred=cred, risk=risk, capacity=capacity)
        score = compute_robustness(s)
        assert isinstance(score, int)
        assert 0 <= score <= 100
        if risk >= 85:
            assert score <= 75
        if capacity <= 30:
            assert score <= 78
        if risk >= 85 and capacity <= 30:
            assert score <= 65


@pytest.mark.parametrize(
    "score,band",
    [(100, Band.GREEN), (75, Band.GREEN), (74, Band.YELLOW), (55, Band.YELLOW), (54, Band.RED)],
)
def test_band_thresholds(score: int, band: Band) -> None:
    assert band_for_score(score) == band


@pytest.mark.parametrize(
    "kind,value,expected",
    [
        (DriverKind.CRED, 70.0, Band.GREEN),
        (DriverKind.CRED, 50.0, Band.YELLOW),
        (DriverKind.CRED, 49.9, Band.RED),
        (DriverKind.RISK, 45.0, Band.GREEN),
        (DriverKind.RISK, 70.0, Band.YELLOW),
        (DriverKind.RISK, 70.1, Band.RED),
        (DriverKind.CAPACITY, 65.0, Band.GREEN),
        (DriverKind.CAPACITY, 40.0, Band.YELLOW),
        (DriverKind.CAPACITY, 39.0, Band.RED),
    ],
)
def test_driver_traffic(kind: DriverKind, value: float, expected: Band) -> None:
    assert driver_traffic(kind, value) == expected


def test_high_robustness_reference_state() -> None:
    s = mk_state(share=110.0, synergy=40.0, attrition=3.0, cred=80.0, risk=50.0, capacity=75.0)
    # 75*0.45 + 100*0.35 + 90*0.20 = 86.75, no penalties
    assert compute_robustness(s) == 87
    assert band_for_score(compute_robustness(s)) == Band.GREEN


def test_systemic_collapse_reference_state() -> None:
    s = mk_state(share=75.0, synergy=10.0, attrition=10.0, cred=30.0, risk=90.0, capacity=25.0)
    assert compute_robustness(s) == 0
    assert band_for_score(compute_robustness(s)) == Band.RED
