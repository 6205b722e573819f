from __future__ import annotations

from gachaforge.models import Stats
from gachaforge.stages import clamp_stage, meets_stage, stage_requirements


def test_requirement_curve() -> None:
    assert stage_requirements(1) == (10, 10)
    assert stage_requirements(2) == (11, 11)
    assert stage_requirements(10) == (35, 27)


def test_meets_stage_needs_both_stats() -> None:
    assert meets_stage(Stats(attack=11, defense=11), 2)
    assert not meets_stage(Stats(attack=100, defense=10), 2)


def test_clamp_walks_down_to_a_met_stage() -> None:
    stats = Stats(attack=20, defense=20)

    assert clamp_stage(30, stats) == 6


def test_clamp_never_raises_stage() -> None:
    assert clamp_stage(3, Stats(attack=10_000, defense=10_000)) == 3


def test_clamp_floor_is_stage_one() -> None:
    assert clamp_stage(12, Stats()) == 1
