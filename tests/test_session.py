from __future__ import annotations

import random

import pytest

from conftest import ScriptedRandom, make_item, make_save
from gachaforge.engines.enhancement import (
    get_destruction_rate,
    get_success_rate,
    get_total_cost,
)
from gachaforge.errors import InsufficientCreditsError, ItemNotFoundError
from gachaforge.models import GachaCategory, Grade, ItemType
from gachaforge.persistence.storage import SaveStore
from gachaforge.session import GameSession, SessionConfig

HOUR_MS = 3600 * 1000


def test_draw_debits_exact_cost_and_stores_item() -> None:
    session = GameSession(make_save(credits=1600), rng=ScriptedRandom([0.5]))

    result = session.draw(GachaCategory.WEAPONS)

    assert result.success
    assert session.credits == 0
    assert session.save_data.inventory == [result.item]


def test_draw_short_by_one_credit_changes_nothing() -> None:
    rng = ScriptedRandom([0.5])
    session = GameSession(make_save(credits=1599), rng=rng)

    result = session.draw(GachaCategory.WEAPONS)

    assert not result.success
    assert session.credits == 1599
    assert session.save_data.inventory == []
    assert rng.values == [0.5]


def test_multi_draw_needs_free_inventory_slots() -> None:
    inventory = [make_item(ItemType.PET, seed=i) for i in range(95)]
    session = GameSession(make_save(credits=1_000_000, inventory=inventory), rng=random.Random(1))

    result = session.multi_draw(GachaCategory.ARMOR)

    assert not result.success
    assert result.cost == 0
    assert session.credits == 1_000_000
    assert len(session.save_data.inventory) == 95


def test_draw_into_full_inventory_costs_nothing() -> None:
    inventory = [make_item(ItemType.PET, seed=i) for i in range(100)]
    session = GameSession(make_save(credits=5000, inventory=inventory), rng=random.Random(1))

    result = session.draw(GachaCategory.WEAPONS)

    assert not result.success
    assert result.cost == 0
    assert session.credits == 5000


def test_multi_draw_adds_every_item() -> None:
    session = GameSession(make_save(credits=8000), rng=random.Random(5))

    result = session.multi_draw(GachaCategory.ARMOR)

    assert result.success
    assert session.credits == 0
    assert len(session.save_data.inventory) == 10


def test_synthesis_only_touches_consumed_items() -> None:
    commons = [make_item(ItemType.SHOES, Grade.COMMON, seed=i) for i in range(10)]
    keep = make_item(ItemType.RING, Grade.EPIC, seed=77)
    session = GameSession(make_save(inventory=commons + [keep]), rng=random.Random(2))

    result = session.synthesize(Grade.COMMON)

    assert result.success
    assert session.save_data.inventory == [keep, result.new_item]


def test_successful_enhancement_of_equipped_item_refreshes_stats() -> None:
    weapon = make_item(ItemType.MAIN_WEAPON, seed=1)
    save = make_save(credits=1000)
    save.equipped_items["mainWeapon"] = weapon
    session = GameSession(save, rng=ScriptedRandom([0.0]))

    attempt = session.enhance(weapon.id)

    upgraded = session.save_data.equipped_items["mainWeapon"]
    assert attempt.success
    assert upgraded.enhancement_level == 1
    assert session.credits == 1000 - attempt.cost_paid
    assert session.save_data.player_stats.attack == upgraded.enhanced_stats.attack


def test_destroyed_equipped_item_empties_its_slot() -> None:
    helmet = make_item(ItemType.HELMET, Grade.EPIC, enhancement_level=18, seed=3)
    save = make_save(credits=10_000_000)
    save.equipped_items["helmet"] = helmet
    save.player_stats = helmet.enhanced_stats
    roll = get_success_rate(19) + get_destruction_rate(19) / 2
    session = GameSession(save, rng=ScriptedRandom([roll]))

    attempt = session.enhance(helmet.id)

    assert attempt.destroyed
    assert session.save_data.equipped_items["helmet"] is None
    assert session.save_data.player_stats.defense == 0
    assert session.credits == 10_000_000 - get_total_cost(helmet)


def test_enhance_without_funds_raises_and_keeps_credits() -> None:
    item = make_item(seed=4)
    session = GameSession(make_save(credits=10, inventory=[item]), rng=random.Random(0))

    with pytest.raises(InsufficientCreditsError):
        session.enhance(item.id)

    assert session.credits == 10


def test_unknown_item_raises() -> None:
    session = GameSession(make_save(), rng=random.Random(0))

    with pytest.raises(ItemNotFoundError):
        session.enhance("missing")


def test_inheritance_consumes_source_and_upgrades_target() -> None:
    source = make_item(ItemType.HELMET, Grade.COMMON, enhancement_level=10, seed=1)
    target = make_item(ItemType.HELMET, Grade.RARE, seed=2)
    session = GameSession(make_save(inventory=[source, target]), rng=ScriptedRandom([0.0]))

    result = session.inherit(source.id, target.id)

    assert result.success
    assert [i.id for i in session.save_data.inventory] == [target.id]
    assert session.get_item(target.id).enhancement_level == 9


def test_failed_inheritance_still_loses_source() -> None:
    source = make_item(ItemType.HELMET, Grade.COMMON, enhancement_level=10, seed=1)
    target = make_item(ItemType.HELMET, Grade.RARE, seed=2)
    session = GameSession(make_save(inventory=[source, target]), rng=ScriptedRandom([0.99]))

    result = session.inherit(source.id, target.id)

    assert not result.success
    assert session.save_data.inventory == [target]


def test_tick_carries_fractional_income() -> None:
    save = make_save()
    save.credit_per_second = 0.5
    session = GameSession(save, rng=random.Random(0))

    assert session.tick() == 0
    assert session.tick() == 1
    assert session.credits == 1


def test_offline_progress_is_capped_at_a_day() -> None:
    save = make_save()
    save.credit_per_second = 2
    save.last_save_time = 1_000
    session = GameSession(save, rng=random.Random(0))

    earned = session.apply_offline_progress(now=1_000 + 48 * HOUR_MS)

    assert earned == 2 * 24 * 3600
    assert session.credits == earned
    assert save.last_save_time == 1_000 + 48 * HOUR_MS


def test_offline_progress_skipped_without_previous_save() -> None:
    session = GameSession(make_save(), rng=random.Random(0))

    assert session.apply_offline_progress(now=HOUR_MS) == 0


def test_save_without_store_fails_softly() -> None:
    result = GameSession(make_save(), rng=random.Random(0)).save()

    assert not result.success
    assert result.error


def test_session_saves_and_reloads(store: SaveStore) -> None:
    session = GameSession.load(store)
    session.save_data.credits = 777

    assert session.save().success
    reloaded = GameSession.load(store)

    assert reloaded.credits == 777
    assert reloaded.save_data == session.save_data


def test_from_config_uses_save_dir(tmp_path) -> None:
    config = SessionConfig(save_dir=tmp_path, seed=11)

    session = GameSession.from_config(config)
    session.save()

    assert (tmp_path / "idle-gacha-game-state.json").exists()
    assert GameSession.from_config(config).save_data == session.save_data
