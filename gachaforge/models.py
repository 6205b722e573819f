"""Data models for items, stats and the player save.

Every model converts to and from the camelCase mapping used by the
persisted save format.
"""
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Mapping, Optional

from .config import (
    EQUIPMENT_TYPES,
    GRADE_ORDER,
    ITEM_BASE_STATS,
    POTION_TYPES,
    PRIMARY_STATS,
    STAT_FIELDS,
    UNIQUE_WEAPON_TYPE,
)
from .errors import ConfigurationError


class Grade(Enum):
    """Item rarity tiers, lowest first."""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    MYTHIC = "mythic"
    DIVINE = "divine"      # unique weapon only

    @property
    def ordinal(self) -> int:
        return GRADE_ORDER.index(self.value)

    @property
    def next_grade(self) -> Optional["Grade"]:
        """Grade produced by synthesizing this one, if any."""
        if self in (Grade.MYTHIC, Grade.DIVINE):
            return None
        return Grade(GRADE_ORDER[self.ordinal + 1])


class ItemType(Enum):
    """Item kinds. The value doubles as the equipment slot name."""
    HELMET = "helmet"
    ARMOR = "armor"
    PANTS = "pants"
    GLOVES = "gloves"
    SHOES = "shoes"
    SHOULDER = "shoulder"
    EARRING = "earring"
    RING = "ring"
    NECKLACE = "necklace"
    MAIN_WEAPON = "mainWeapon"
    SUB_WEAPON = "subWeapon"
    PET = "pet"
    WEALTH_POTION = "wealthPotion"
    BOSS_POTION = "bossPotion"
    ARTISAN_POTION = "artisanPotion"
    ZEUS_SWORD = "zeusSword"

    @property
    def primary_stat(self) -> str:
        return PRIMARY_STATS[self.value]

    @property
    def is_unique(self) -> bool:
        return self.value == UNIQUE_WEAPON_TYPE

    @property
    def slot(self) -> str:
        """Equipment slot this item occupies."""
        if self.is_unique:
            return ItemType.MAIN_WEAPON.value
        return self.value


class GachaCategory(Enum):
    """Gacha banners."""
    ARMOR = "armor"
    ACCESSORIES = "accessories"
    WEAPONS = "weapons"
    POTIONS = "potions"


class EnhancementResult(Enum):
    """Outcome of a single enhancement attempt."""
    SUCCESS = "success"
    FAILURE = "failure"
    DOWNGRADE = "downgrade"
    DESTRUCTION = "destruction"


EQUIPMENT_SLOTS: list[str] = EQUIPMENT_TYPES + POTION_TYPES


@dataclass(frozen=True, slots=True)
class Stats:
    """Seven-field stat block shared by items and the player."""
    attack: float = 0
    defense: float = 0
    defense_penetration: float = 0
    additional_attack_chance: float = 0
    credit_per_second_bonus: float = 0
    critical_chance: float = 0
    critical_damage_multiplier: float = 0

    def get(self, stat: str) -> float:
        """Read a stat by its camelCase save key."""
        return getattr(self, _ATTR_BY_KEY[stat])

    def with_stat(self, stat: str, value: float) -> "Stats":
        """Copy with one stat (camelCase key) replaced."""
        return replace(self, **{_ATTR_BY_KEY[stat]: value})

    def __add__(self, other: "Stats") -> "Stats":
        return Stats(**{
            f.name: getattr(self, f.name) + getattr(other, f.name)
            for f in fields(Stats)
        })

    def non_zero(self) -> list[str]:
        """camelCase keys of every non-zero stat."""
        return [key for key in STAT_FIELDS if self.get(key) != 0]

    def to_dict(self) -> dict[str, float]:
        return {key: self.get(key) for key in STAT_FIELDS}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Stats":
        """Build from a camelCase mapping; missing or non-numeric fields are 0."""
        if not isinstance(data, Mapping):
            raise ValueError(f"Stats must be a mapping, got {type(data).__name__}")
        values = {}
        for key in STAT_FIELDS:
            value = data.get(key, 0)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                value = 0
            values[_ATTR_BY_KEY[key]] = value
        return cls(**values)


_ATTR_BY_KEY: dict[str, str] = {
    "attack": "attack",
    "defense": "defense",
    "defensePenetration": "defense_penetration",
    "additionalAttackChance": "additional_attack_chance",
    "creditPerSecondBonus": "credit_per_second_bonus",
    "criticalChance": "critical_chance",
    "criticalDamageMultiplier": "critical_damage_multiplier",
}


@dataclass(frozen=True, slots=True)
class Item:
    """An owned item. Changes always produce a new instance."""
    id: str
    type: ItemType
    grade: Grade
    base_stats: Stats
    enhanced_stats: Stats
    level: int = 1
    enhancement_level: int = 0
    image_path: str = ""

    @property
    def primary_stat(self) -> str:
        return self.type.primary_stat

    @property
    def is_enhanceable(self) -> bool:
        return not self.type.is_unique

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "grade": self.grade.value,
            "baseStats": self.base_stats.to_dict(),
            "enhancedStats": self.enhanced_stats.to_dict(),
            "level": self.level,
            "enhancementLevel": self.enhancement_level,
            "imagePath": self.image_path,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Item":
        """Build an item from its save mapping.

        Raises:
            KeyError: if id, type or grade is missing
            ValueError: if the record is not a mapping, or type or grade is
                not a known value
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Item record must be a mapping, got {type(data).__name__}")
        base = Stats.from_dict(data.get("baseStats") or {})
        enhanced_raw = data.get("enhancedStats")
        enhanced = Stats.from_dict(enhanced_raw) if enhanced_raw else base
        return cls(
            id=str(data["id"]),
            type=ItemType(data["type"]),
            grade=Grade(data["grade"]),
            base_stats=base,
            enhanced_stats=enhanced,
            level=int(data.get("level", 1)),
            enhancement_level=int(data.get("enhancementLevel", 0)),
            image_path=str(data.get("imagePath", "")),
        )


def empty_equipment() -> dict[str, Optional[Item]]:
    """Equipment mapping with every slot empty."""
    return {slot: None for slot in EQUIPMENT_SLOTS}


@dataclass
class PlayerSave:
    """The complete persisted player state."""
    credits: int = 0
    credit_per_second: float = 1
    current_stage: int = 1
    equipped_items: dict[str, Optional[Item]] = field(default_factory=empty_equipment)
    inventory: list[Item] = field(default_factory=list)
    player_stats: Stats = field(default_factory=Stats)
    last_save_time: int = 0

    def all_items(self) -> list[Item]:
        """Inventory followed by every equipped item."""
        equipped = [item for item in self.equipped_items.values() if item]
        return list(self.inventory) + equipped

    def find_item(self, item_id: str) -> Optional[Item]:
        for item in self.all_items():
            if item.id == item_id:
                return item
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "credits": self.credits,
            "creditPerSecond": self.credit_per_second,
            "currentStage": self.current_stage,
            "equippedItems": {
                slot: item.to_dict() if item else None
                for slot, item in self.equipped_items.items()
            },
            "inventory": [item.to_dict() for item in self.inventory],
            "playerStats": self.player_stats.to_dict(),
            "lastSaveTime": self.last_save_time,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayerSave":
        """Build a save from its mapping.

        Raises:
            ValueError: if the save, its equipment or its inventory has the
                wrong shape, or an item record is invalid
        """
        if not isinstance(data, Mapping):
            raise ValueError("Save must be a mapping")
        equipped_raw = data.get("equippedItems") or {}
        inventory_raw = data.get("inventory") or []
        if not isinstance(equipped_raw, Mapping) or not isinstance(inventory_raw, list):
            raise ValueError("equippedItems must be a mapping and inventory a list")
        equipped = empty_equipment()
        for slot, raw in equipped_raw.items():
            if slot in equipped and raw:
                equipped[slot] = Item.from_dict(raw)
        return cls(
            credits=int(data.get("credits", 0)),
            credit_per_second=data.get("creditPerSecond", 1),
            current_stage=int(data.get("currentStage", 1)),
            equipped_items=equipped,
            inventory=[Item.from_dict(raw) for raw in inventory_raw],
            player_stats=Stats.from_dict(data.get("playerStats") or {}),
            last_save_time=int(data.get("lastSaveTime", 0)),
        )


def validate_item_templates() -> None:
    """Check every template carries exactly its declared primary stat.

    Raises:
        ConfigurationError: on a template with zero or several non-zero
            stats, or whose non-zero stat is not its primary stat.
    """
    for item_type in ItemType:
        template = Stats.from_dict(ITEM_BASE_STATS.get(item_type.value, {}))
        populated = template.non_zero()
        if populated != [item_type.primary_stat]:
            raise ConfigurationError(
                f"Template for {item_type.value} must have exactly one "
                f"non-zero stat ({item_type.primary_stat}), found {populated}"
            )


validate_item_templates()
