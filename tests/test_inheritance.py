from __future__ import annotations

import pytest

from conftest import ScriptedRandom, make_item
from gachaforge.engines.enhancement import calculate_enhanced_stats
from gachaforge.engines.factory import create_unique_weapon
from gachaforge.engines.inheritance import inherit, preview_inheritance
from gachaforge.models import Grade, ItemType


def test_common_plus_ten_onto_rare_keeps_nine_levels() -> None:
    source = make_item(ItemType.HELMET, Grade.COMMON, enhancement_level=10, seed=1)
    target = make_item(ItemType.HELMET, Grade.RARE, seed=2)

    result = inherit(source, target, ScriptedRandom([0.0]))

    assert result.success
    assert result.source_consumed
    assert result.result_item.id == target.id
    assert result.result_item.enhancement_level == 9
    assert result.result_item.enhanced_stats == calculate_enhanced_stats(
        target.base_stats, ItemType.HELMET, Grade.RARE, 9
    )


def test_failed_roll_still_consumes_source() -> None:
    source = make_item(ItemType.RING, Grade.COMMON, enhancement_level=6, seed=1)
    target = make_item(ItemType.RING, Grade.EPIC, seed=2)

    result = inherit(source, target, ScriptedRandom([0.6]))

    assert not result.success
    assert result.source_consumed
    assert result.result_item is None


@pytest.mark.parametrize(
    ("target_grade", "rate", "reduction"),
    [
        (Grade.RARE, 0.7, 1),
        (Grade.EPIC, 0.5, 2),
        (Grade.LEGENDARY, 0.3, 3),
        (Grade.MYTHIC, 0.15, 4),
    ],
)
def test_gap_table(target_grade: Grade, rate: float, reduction: int) -> None:
    source = make_item(ItemType.PET, Grade.COMMON, enhancement_level=12, seed=1)
    target = make_item(ItemType.PET, target_grade, seed=2)

    preview = preview_inheritance(source, target)

    assert preview.valid
    assert preview.success_rate == rate
    assert preview.level_reduction == reduction
    assert preview.resulting_level == 12 - reduction


def test_level_never_goes_negative() -> None:
    source = make_item(ItemType.PET, Grade.COMMON, enhancement_level=2, seed=1)
    target = make_item(ItemType.PET, Grade.MYTHIC, seed=2)

    result = inherit(source, target, ScriptedRandom([0.0]))

    assert result.result_item.enhancement_level == 0


@pytest.mark.parametrize(
    ("source", "target"),
    [
        # different type
        (
            make_item(ItemType.HELMET, Grade.COMMON, enhancement_level=5, seed=1),
            make_item(ItemType.ARMOR, Grade.RARE, seed=2),
        ),
        # same grade
        (
            make_item(ItemType.HELMET, Grade.RARE, enhancement_level=5, seed=1),
            make_item(ItemType.HELMET, Grade.RARE, seed=2),
        ),
        # downward
        (
            make_item(ItemType.HELMET, Grade.EPIC, enhancement_level=5, seed=1),
            make_item(ItemType.HELMET, Grade.RARE, seed=2),
        ),
        # nothing to inherit
        (
            make_item(ItemType.HELMET, Grade.COMMON, seed=1),
            make_item(ItemType.HELMET, Grade.RARE, seed=2),
        ),
    ],
)
def test_invalid_pairs_fail_without_rolling_or_consuming(source, target) -> None:
    rng = ScriptedRandom([0.0])

    result = inherit(source, target, rng)

    assert not result.success
    assert not result.source_consumed
    assert result.error
    assert rng.values == [0.0]


def test_unique_weapon_cannot_be_a_target() -> None:
    source = make_item(ItemType.MAIN_WEAPON, Grade.MYTHIC, enhancement_level=5, seed=1)
    sword = create_unique_weapon(ScriptedRandom())

    assert not preview_inheritance(source, sword).valid
