from __future__ import annotations

import random

import pytest

from conftest import make_item, make_save
from gachaforge.config import MAX_INVENTORY_SIZE
from gachaforge.engines.factory import create_unique_weapon
from gachaforge.equipment import (
    calculate_player_stats,
    create_default_save,
    equip_item,
    get_sale_price,
    offline_credits,
    sell_items,
    unequip_item,
)
from gachaforge.models import Grade, ItemType, empty_equipment


def test_default_save_equips_common_starter_set() -> None:
    save = create_default_save(random.Random(1), now_ms=123)

    equipped = {slot: item for slot, item in save.equipped_items.items() if item}
    assert set(equipped) == {"helmet", "armor", "pants", "mainWeapon"}
    assert all(item.grade is Grade.COMMON for item in equipped.values())
    assert save.credits == 0
    assert save.credit_per_second == 1
    assert save.current_stage == 1
    assert save.last_save_time == 123
    assert save.player_stats.attack == save.equipped_items["mainWeapon"].enhanced_stats.attack


def test_equip_swaps_previous_item_into_inventory() -> None:
    old = make_item(ItemType.RING, seed=1)
    new = make_item(ItemType.RING, Grade.EPIC, seed=2)
    save = make_save(inventory=[new])
    save.equipped_items["ring"] = old

    result = equip_item(save, new.id)

    assert result.success
    assert result.replaced_item == old
    assert save.equipped_items["ring"] == new
    assert save.inventory == [old]
    assert save.player_stats.defense_penetration == new.enhanced_stats.defense_penetration


def test_unique_weapon_goes_to_main_weapon_slot() -> None:
    sword = create_unique_weapon(random.Random(3))
    save = make_save(inventory=[sword])

    equip_item(save, sword.id)

    assert save.equipped_items["mainWeapon"] == sword


def test_unequip_fails_when_inventory_is_full() -> None:
    save = make_save(inventory=[make_item(ItemType.PET, seed=i) for i in range(MAX_INVENTORY_SIZE)])
    save.equipped_items["helmet"] = make_item(ItemType.HELMET, seed=999)

    result = unequip_item(save, "helmet")

    assert not result.success
    assert save.equipped_items["helmet"] is not None


def test_unequip_empty_slot_fails() -> None:
    assert not unequip_item(make_save(), "helmet").success


def test_additional_attack_chance_is_capped() -> None:
    equipped = empty_equipment()
    for slot in ("gloves", "shoes", "shoulder"):
        item = make_item(ItemType(slot), Grade.MYTHIC, enhancement_level=25, seed=len(slot))
        equipped[slot] = item

    assert calculate_player_stats(equipped).additional_attack_chance == 0.5


def test_sale_price_grows_with_enhancement() -> None:
    assert get_sale_price(make_item(grade=Grade.COMMON)) == 5
    assert get_sale_price(make_item(grade=Grade.RARE, enhancement_level=4)) == 14


def test_sell_credits_inventory_items() -> None:
    items = [make_item(ItemType.HELMET, Grade.EPIC, seed=i) for i in range(3)]
    save = make_save(credits=10, inventory=items)

    result = sell_items(save, [items[0].id, items[1].id])

    assert result.success
    assert result.credits_earned == 50
    assert save.credits == 60
    assert save.inventory == [items[2]]


def test_equipped_items_cannot_be_sold() -> None:
    helmet = make_item(ItemType.HELMET, seed=1)
    save = make_save()
    save.equipped_items["helmet"] = helmet

    result = sell_items(save, [helmet.id])

    assert not result.success
    assert save.equipped_items["helmet"] == helmet


def test_sale_is_limited_per_batch() -> None:
    items = [make_item(ItemType.PET, seed=i) for i in range(21)]
    save = make_save(inventory=items)

    result = sell_items(save, [i.id for i in items])

    assert not result.success
    assert len(save.inventory) == 21


@pytest.mark.parametrize(
    ("elapsed", "rate", "expected"),
    [(0, 5, 0), (-10, 5, 0), (60, 1.5, 90), (3 * 24 * 3600, 1, 24 * 3600)],
)
def test_offline_credits(elapsed: float, rate: float, expected: int) -> None:
    assert offline_credits(elapsed, rate) == expected
