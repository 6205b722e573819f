"""Item creation from type templates and grade magnitudes."""
import random
import uuid

from ..config import (
    CREDIT_BONUS_RANGE,
    DEFAULT_IMAGE_PATH,
    GRADE_BASE_STATS,
    ITEM_BASE_STATS,
    ITEM_IMAGE_PATHS,
    RANDOM_BONUS_RANGE,
    RANDOM_BONUS_SCALE,
)
from ..models import Grade, Item, ItemType, Stats


def generate_item_id(rng: random.Random) -> str:
    """Fresh item id drawn from the given random source."""
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def image_path_for(item_type: ItemType) -> str:
    return ITEM_IMAGE_PATHS.get(item_type.value, DEFAULT_IMAGE_PATH)


def _roll_bonus(stat: str, grade: Grade, rng: random.Random) -> float:
    if stat == "creditPerSecondBonus":
        low, high = CREDIT_BONUS_RANGE[grade.value]
        return rng.randint(low, high)
    low, high = RANDOM_BONUS_RANGE
    return rng.randint(low, high) * RANDOM_BONUS_SCALE.get(stat, 1)


def create_item(item_type: ItemType, grade: Grade, rng: random.Random) -> Item:
    """Create a fresh, unenhanced item.

    The grade's magnitude replaces each non-zero field of the type
    template, then a random bonus is added to it. Fields that are zero in
    the template stay zero.

    Args:
        item_type: Kind of item to create (not the unique weapon)
        grade: Regular grade (common through mythic)
        rng: Random source; a seeded one makes the result reproducible

    Returns:
        New item at level 1, enhancement level 0
    """
    if item_type.is_unique or grade is Grade.DIVINE:
        return create_unique_weapon(rng)

    template = Stats.from_dict(ITEM_BASE_STATS[item_type.value])
    magnitudes = GRADE_BASE_STATS[grade.value]

    stats = template
    for stat in template.non_zero():
        value = magnitudes[stat] + _roll_bonus(stat, grade, rng)
        stats = stats.with_stat(stat, value)

    return Item(
        id=generate_item_id(rng),
        type=item_type,
        grade=grade,
        base_stats=stats,
        enhanced_stats=stats,
        level=1,
        enhancement_level=0,
        image_path=image_path_for(item_type),
    )


def create_unique_weapon(rng: random.Random) -> Item:
    """Create the divine Zeus sword with its fixed stats."""
    stats = Stats.from_dict(ITEM_BASE_STATS[ItemType.ZEUS_SWORD.value])
    return Item(
        id=generate_item_id(rng),
        type=ItemType.ZEUS_SWORD,
        grade=Grade.DIVINE,
        base_stats=stats,
        enhanced_stats=stats,
        level=1,
        enhancement_level=0,
        image_path=image_path_for(ItemType.ZEUS_SWORD),
    )
