"""Save schema migrations.

Each migration is a pure function from one raw save mapping to a new one
(the input is never modified), and each is idempotent: re-running it on
its own output changes nothing. `migrate` detects the schema version of a
raw save and runs every migration from there to SAVE_SCHEMA_VERSION.

Schema history:
    0  unreadable or not a save at all
    1  legacy `equipment` layout
    2  `equippedItems` layout, before the potion stats and accessory rework
    3  all seven stat fields, enhancement bonus possibly spread out
    4  bonus concentrated on the primary stat, image paths, stage checked
"""
import logging
import random
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, MutableMapping, Optional

from ..config import (
    BONUS_CONCENTRATION_SCALE,
    DEFAULT_CREDIT_PER_SECOND,
    DEFAULT_IMAGE_PATH,
    FRACTIONAL_STATS,
    ITEM_IMAGE_PATHS,
    LEGACY_ATTACK_CONVERSION_RATE,
    LEGACY_ATTACK_CONVERSION_TYPES,
    PRIMARY_STATS,
    SAVE_SCHEMA_VERSION,
    STAT_FIELDS,
)
from ..equipment import calculate_player_stats, create_default_save
from ..models import Item, Stats, empty_equipment
from ..stages import clamp_stage

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("credits", "equippedItems", "inventory")

RawSave = dict[str, Any]


@dataclass(frozen=True)
class Migration:
    """One schema step."""
    from_version: int
    to_version: int
    description: str
    apply: Callable[[Mapping[str, Any]], RawSave]


@dataclass
class MigrationReport:
    """Outcome of migrating one raw save."""
    data: RawSave
    from_version: int
    to_version: int
    applied: list[str] = field(default_factory=list)
    reinitialized: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.applied) or self.reinitialized


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _iter_items(data: Mapping[str, Any]):
    """Every raw item mapping in the inventory and equipment."""
    for item in data.get("inventory") or []:
        if isinstance(item, MutableMapping):
            yield item
    equipped = data.get("equippedItems") or {}
    if isinstance(equipped, Mapping):
        for item in equipped.values():
            if isinstance(item, MutableMapping):
                yield item


def _needs_attack_conversion(stats: Any) -> bool:
    if not isinstance(stats, Mapping):
        return False
    attack = stats.get("attack", 0)
    chance = stats.get("additionalAttackChance", 0)
    return _is_number(attack) and attack > 0 and not chance


def _item_is_legacy(item: Mapping[str, Any]) -> bool:
    for key in ("baseStats", "enhancedStats"):
        stats = item.get(key)
        if not isinstance(stats, Mapping):
            return True
        if any(name not in stats for name in STAT_FIELDS):
            return True
        if item.get("type") in LEGACY_ATTACK_CONVERSION_TYPES and _needs_attack_conversion(stats):
            return True
    return False


def detect_version(data: Any) -> int:
    """Schema version of a raw save, from its marker or its structure.

    The required fields and their shapes are checked before an embedded
    `schemaVersion` is trusted, so a truncated blob carrying only the
    marker is reported as 0.
    """
    if not isinstance(data, Mapping):
        return 0
    if "equipment" in data and "equippedItems" not in data:
        return 1
    if any(name not in data for name in REQUIRED_FIELDS):
        return 0
    if not isinstance(data["equippedItems"], Mapping) or not isinstance(data["inventory"], list):
        return 0
    marker = data.get("schemaVersion")
    if _is_number(marker) and 0 <= marker <= SAVE_SCHEMA_VERSION:
        return int(marker)
    if any(_item_is_legacy(item) for item in _iter_items(data)):
        return 2
    return 3


# ---------------------------------------------------------------------------
# Version 2 -> 3
# ---------------------------------------------------------------------------

def convert_legacy_attack(item: MutableMapping[str, Any]) -> bool:
    """Reinterpret legacy attack on gloves/shoes/shoulders as additional attack chance.

    Applies per stat block, only where attack is set and the chance is
    still zero. Returns True if anything changed.
    """
    if item.get("type") not in LEGACY_ATTACK_CONVERSION_TYPES:
        return False
    changed = False
    for key in ("baseStats", "enhancedStats"):
        stats = item.get(key)
        if not isinstance(stats, MutableMapping) or not _needs_attack_conversion(stats):
            continue
        stats["additionalAttackChance"] = stats["attack"] * LEGACY_ATTACK_CONVERSION_RATE
        stats["attack"] = 0
        changed = True
    if changed:
        logger.info("Converted legacy attack to additional attack chance on %s", item.get("id"))
    return changed


def fill_missing_stats(stats: Any) -> dict[str, Any]:
    filled = dict(stats) if isinstance(stats, Mapping) else {}
    for name in STAT_FIELDS:
        if not _is_number(filled.get(name)):
            filled[name] = 0
    return filled


def migrate_v2_to_v3(data: Mapping[str, Any]) -> RawSave:
    result = deepcopy(dict(data))
    for item in _iter_items(result):
        item["baseStats"] = fill_missing_stats(item.get("baseStats"))
        item["enhancedStats"] = fill_missing_stats(item.get("enhancedStats") or item["baseStats"])
        convert_legacy_attack(item)
    result["playerStats"] = fill_missing_stats(result.get("playerStats"))
    return result


# ---------------------------------------------------------------------------
# Version 3 -> 4
# ---------------------------------------------------------------------------

def concentrate_enhancement_bonus(item: MutableMapping[str, Any]) -> bool:
    """Move an item's enhancement bonus onto its primary stat.

    Older saves spread the bonus over every stat. The bonus of each field
    (enhanced - base) is summed, fractional stats counted in thousandths,
    and the total is added to the primary stat of a fresh copy of the base
    stats. Items whose bonus already sits only on the primary stat are
    left alone. Returns True if the item changed.
    """
    level = item.get("enhancementLevel", 0)
    primary = PRIMARY_STATS.get(item.get("type"))
    if not _is_number(level) or level <= 0 or primary is None:
        return False
    base = fill_missing_stats(item.get("baseStats"))
    enhanced = fill_missing_stats(item.get("enhancedStats"))

    bonuses = {name: enhanced[name] - base[name] for name in STAT_FIELDS}
    if all(value == 0 for name, value in bonuses.items() if name != primary):
        return False

    total = sum(
        value * (BONUS_CONCENTRATION_SCALE if name in FRACTIONAL_STATS else 1)
        for name, value in bonuses.items()
    )
    scale = BONUS_CONCENTRATION_SCALE if primary in FRACTIONAL_STATS else 1
    concentrated = dict(base)
    concentrated[primary] = base[primary] + total / scale
    item["enhancedStats"] = concentrated
    logger.info("Concentrated enhancement bonus of %s onto %s", item.get("id"), primary)
    return True


def stamp_image_path(item: MutableMapping[str, Any]) -> bool:
    if item.get("imagePath"):
        return False
    item["imagePath"] = ITEM_IMAGE_PATHS.get(item.get("type"), DEFAULT_IMAGE_PATH)
    return True


def recompute_player_stats(data: MutableMapping[str, Any]) -> None:
    equipped = empty_equipment()
    for slot, raw in (data.get("equippedItems") or {}).items():
        if slot in equipped and raw:
            equipped[slot] = Item.from_dict(raw)
    data["playerStats"] = calculate_player_stats(equipped).to_dict()


def clamp_stage_to_stats(data: MutableMapping[str, Any]) -> None:
    stage = data.get("currentStage", 1)
    if not _is_number(stage):
        stage = 1
    stats = Stats.from_dict(data.get("playerStats") or {})
    data["currentStage"] = clamp_stage(int(stage), stats)


def migrate_v3_to_v4(data: Mapping[str, Any]) -> RawSave:
    result = deepcopy(dict(data))
    for item in _iter_items(result):
        concentrate_enhancement_bonus(item)
        stamp_image_path(item)
    recompute_player_stats(result)
    clamp_stage_to_stats(result)
    return result


MIGRATIONS: list[Migration] = [
    Migration(2, 3, "Fill stat fields and convert legacy accessory attack", migrate_v2_to_v3),
    Migration(3, 4, "Concentrate enhancement bonus, stamp images, check stage", migrate_v3_to_v4),
]


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------

def reinitialize(data: Any, rng: random.Random, now_ms: int = 0) -> RawSave:
    """Fresh current-version save keeping the numeric progress of `data`."""
    save = create_default_save(rng, now_ms)
    if isinstance(data, Mapping):
        if _is_number(data.get("credits")):
            save.credits = int(max(0, data["credits"]))
        if _is_number(data.get("creditPerSecond")):
            save.credit_per_second = max(DEFAULT_CREDIT_PER_SECOND, data["creditPerSecond"])
        if _is_number(data.get("currentStage")):
            save.current_stage = int(max(1, data["currentStage"]))
        if _is_number(data.get("lastSaveTime")):
            save.last_save_time = int(data["lastSaveTime"])
    result = save.to_dict()
    result["schemaVersion"] = SAVE_SCHEMA_VERSION
    return result


def migrate(data: Any, rng: Optional[random.Random] = None, now_ms: int = 0) -> MigrationReport:
    """Bring a raw save up to SAVE_SCHEMA_VERSION.

    Versions 0 and 1 cannot be upgraded item by item; they are replaced by
    a default save that keeps credits, income, stage and save time.

    Args:
        data: Parsed save (any JSON value)
        rng: Random source for default items when reinitializing
        now_ms: Save time for a reinitialized save with none of its own

    Returns:
        MigrationReport whose `data` is a current-version raw save
    """
    version = detect_version(data)
    if version <= 1:
        logger.warning("Save schema version %d cannot be migrated, reinitializing", version)
        return MigrationReport(
            data=reinitialize(data, rng or random.Random(), now_ms),
            from_version=version,
            to_version=SAVE_SCHEMA_VERSION,
            reinitialized=True,
        )

    result = deepcopy(dict(data))
    report = MigrationReport(data=result, from_version=version, to_version=version)
    for migration in MIGRATIONS:
        if migration.from_version < version:
            continue
        logger.info(
            "Migrating save v%d -> v%d: %s",
            migration.from_version, migration.to_version, migration.description,
        )
        result = migration.apply(result)
        report.applied.append(migration.description)
        report.to_version = migration.to_version
    result["schemaVersion"] = SAVE_SCHEMA_VERSION
    report.data = result
    report.to_version = SAVE_SCHEMA_VERSION
    return report
