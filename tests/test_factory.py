from __future__ import annotations

import random

import pytest

from gachaforge import models
from gachaforge.config import EQUIPMENT_TYPES, GRADE_BASE_STATS, ITEM_IMAGE_PATHS
from gachaforge.engines.factory import create_item, create_unique_weapon
from gachaforge.errors import ConfigurationError
from gachaforge.models import Grade, Item, ItemType


@pytest.mark.parametrize("item_type", [t for t in ItemType if not t.is_unique])
def test_created_item_only_carries_its_primary_stat(item_type: ItemType) -> None:
    item = create_item(item_type, Grade.EPIC, random.Random(3))

    assert item.base_stats.non_zero() == [item_type.primary_stat]
    assert item.enhanced_stats == item.base_stats
    assert item.level == 1
    assert item.enhancement_level == 0
    assert item.image_path == ITEM_IMAGE_PATHS[item_type.value]


def test_flat_stat_is_grade_magnitude_plus_bonus() -> None:
    for seed in range(50):
        item = create_item(ItemType.HELMET, Grade.LEGENDARY, random.Random(seed))
        bonus = item.base_stats.defense - GRADE_BASE_STATS["legendary"]["defense"]
        assert 1 <= bonus <= 5
        assert bonus == int(bonus)


def test_fractional_stat_bonus_is_scaled() -> None:
    for seed in range(50):
        item = create_item(ItemType.GLOVES, Grade.EPIC, random.Random(seed))
        bonus = item.base_stats.additional_attack_chance - 0.06
        assert 0.001 - 1e-9 <= bonus <= 0.005 + 1e-9
        assert item.base_stats.attack == 0


def test_common_wealth_potion_has_no_credit_bonus_roll() -> None:
    item = create_item(ItemType.WEALTH_POTION, Grade.COMMON, random.Random(1))

    assert item.base_stats.credit_per_second_bonus == 2
    assert item.base_stats.non_zero() == ["creditPerSecondBonus"]


def test_same_seed_gives_same_item() -> None:
    first = create_item(ItemType.RING, Grade.RARE, random.Random(42))
    second = create_item(ItemType.RING, Grade.RARE, random.Random(42))

    assert first == second


def test_different_draws_get_different_ids() -> None:
    rng = random.Random(5)
    ids = {create_item(ItemType.PET, Grade.COMMON, rng).id for _ in range(20)}

    assert len(ids) == 20


def test_unique_weapon_is_divine_and_fixed() -> None:
    sword = create_unique_weapon(random.Random(0))

    assert sword.type is ItemType.ZEUS_SWORD
    assert sword.grade is Grade.DIVINE
    assert sword.base_stats.non_zero() == ["attack"]
    assert not sword.is_enhanceable
    assert sword.type.slot == "mainWeapon"


def test_equipment_types_exclude_potions_and_unique_weapon() -> None:
    assert len(EQUIPMENT_TYPES) == 12
    assert "zeusSword" not in EQUIPMENT_TYPES
    assert "wealthPotion" not in EQUIPMENT_TYPES


def test_template_with_two_stats_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(models.ITEM_BASE_STATS, "helmet", {"defense": 5, "attack": 1})

    with pytest.raises(ConfigurationError):
        models.validate_item_templates()


def test_template_with_wrong_stat_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(models.ITEM_BASE_STATS, "ring", {"attack": 3})

    with pytest.raises(ConfigurationError):
        models.validate_item_templates()


def test_item_survives_save_format() -> None:
    item = create_item(ItemType.NECKLACE, Grade.MYTHIC, random.Random(9))
    data = item.to_dict()

    assert data["type"] == "necklace"
    assert "defensePenetration" in data["baseStats"]
    assert Item.from_dict(data) == item
