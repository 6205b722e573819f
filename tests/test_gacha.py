from __future__ import annotations

import random

import pytest

from conftest import ScriptedRandom
from gachaforge.engines.gacha import (
    can_draw,
    draw,
    get_category_item_types,
    get_draw_cost,
    multi_draw,
    roll_grade,
)
from gachaforge.models import GachaCategory, Grade, ItemType
from gachaforge.simulator import sample_gacha_grades


@pytest.mark.parametrize(
    ("roll", "grade"),
    [
        (0.0, Grade.COMMON),
        (0.5, Grade.COMMON),
        (0.8, Grade.RARE),
        (0.98, Grade.EPIC),
        (0.997, Grade.LEGENDARY),
        (0.9997, Grade.MYTHIC),
        (0.999995, Grade.DIVINE),
    ],
)
def test_grade_walks_cumulative_thresholds(roll: float, grade: Grade) -> None:
    assert roll_grade(ScriptedRandom([roll])) is grade


def test_roll_past_every_threshold_falls_back_to_common() -> None:
    assert roll_grade(ScriptedRandom([1.5])) is Grade.COMMON


def test_draw_with_exact_credits_succeeds() -> None:
    result = draw(GachaCategory.WEAPONS, 1600, ScriptedRandom([0.5]))

    assert result.success
    assert result.cost == 1600
    assert result.item.grade is Grade.COMMON
    assert result.item.type in get_category_item_types(GachaCategory.WEAPONS)


def test_draw_one_credit_short_fails_without_rolling() -> None:
    rng = ScriptedRandom([0.5])
    result = draw(GachaCategory.WEAPONS, 1599, rng)

    assert not result.success
    assert result.item is None
    assert "Insufficient" in result.error
    assert rng.values == [0.5]


def test_divine_roll_always_gives_unique_weapon() -> None:
    result = draw(GachaCategory.POTIONS, 10_000, ScriptedRandom([0.999999]))

    assert result.item.type is ItemType.ZEUS_SWORD
    assert result.item.grade is Grade.DIVINE


@pytest.mark.parametrize("category", list(GachaCategory))
def test_items_come_from_their_category(category: GachaCategory) -> None:
    rng = random.Random(11)
    allowed = set(get_category_item_types(category))
    for _ in range(30):
        item = draw(category, 1_000_000, rng).item
        assert item.type in allowed or item.type is ItemType.ZEUS_SWORD


def test_draw_costs() -> None:
    assert get_draw_cost(GachaCategory.ARMOR) == 800
    assert get_draw_cost(GachaCategory.ACCESSORIES) == 1200
    assert get_draw_cost(GachaCategory.WEAPONS) == 1600
    assert can_draw(GachaCategory.ARMOR, 800)
    assert not can_draw(GachaCategory.ARMOR, 7999, count=10)


def test_multi_draw_charges_for_the_whole_batch() -> None:
    result = multi_draw(GachaCategory.ARMOR, 8000, random.Random(2))

    assert result.success
    assert len(result.items) == 10
    assert result.cost == 8000


def test_multi_draw_fails_as_a_whole_when_short() -> None:
    result = multi_draw(GachaCategory.ARMOR, 7999, random.Random(2))

    assert not result.success
    assert result.items == []


def test_grade_distribution_matches_rates() -> None:
    frequencies = sample_gacha_grades(200_000, seed=1234)

    assert frequencies[Grade.COMMON] == pytest.approx(0.72, abs=0.01)
    assert frequencies[Grade.RARE] == pytest.approx(0.25, abs=0.01)
    assert frequencies[Grade.EPIC] == pytest.approx(0.0245, abs=0.003)
    assert frequencies[Grade.LEGENDARY] == pytest.approx(0.005, abs=0.0015)
    assert frequencies[Grade.MYTHIC] < 0.002
    assert frequencies[Grade.DIVINE] < 1e-4
