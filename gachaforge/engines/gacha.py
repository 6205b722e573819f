"""Gacha draws: grade roll, item type pick and cost check."""
import logging
import random
from dataclasses import dataclass, field
from itertools import accumulate
from typing import Optional

from ..config import GACHA_CATEGORY_TYPES, GACHA_COSTS, GACHA_RATES, MULTI_DRAW_COUNT
from ..models import GachaCategory, Grade, Item, ItemType
from .factory import create_item, create_unique_weapon

logger = logging.getLogger(__name__)

# Cumulative thresholds, computed once on import
_CUMULATIVE_RATES: list[tuple[Grade, float]] = list(zip(
    (Grade(grade) for grade in GACHA_RATES),
    accumulate(GACHA_RATES.values()),
))


@dataclass(slots=True)
class DrawResult:
    """Result of a single draw. The caller debits `cost` and stores `item`."""
    success: bool
    item: Optional[Item] = None
    cost: int = 0
    error: Optional[str] = None


@dataclass(slots=True)
class MultiDrawResult:
    """Result of a batch of draws paid for as one purchase."""
    success: bool
    items: list[Item] = field(default_factory=list)
    cost: int = 0
    error: Optional[str] = None


def get_draw_cost(category: GachaCategory) -> int:
    return GACHA_COSTS[category.value]


def get_draw_rates() -> dict[Grade, float]:
    return {Grade(grade): rate for grade, rate in GACHA_RATES.items()}


def get_category_item_types(category: GachaCategory) -> list[ItemType]:
    return [ItemType(name) for name in GACHA_CATEGORY_TYPES[category.value]]


def can_draw(category: GachaCategory, current_credits: int, count: int = 1) -> bool:
    return current_credits >= get_draw_cost(category) * count


def roll_grade(rng: random.Random) -> Grade:
    """Walk the cumulative rate table with one random value.

    The first grade whose cumulative threshold is >= the roll wins. A roll
    past every threshold (floating point rounding) falls back to common.
    """
    roll = rng.random()
    for grade, threshold in _CUMULATIVE_RATES:
        if roll <= threshold:
            return grade
    return Grade.COMMON


def _draw_item(category: GachaCategory, rng: random.Random) -> Item:
    grade = roll_grade(rng)
    if grade is Grade.DIVINE:
        logger.info("Divine draw from %s banner", category.value)
        return create_unique_weapon(rng)
    item_type = rng.choice(get_category_item_types(category))
    return create_item(item_type, grade, rng)


def draw(category: GachaCategory, current_credits: int, rng: random.Random) -> DrawResult:
    """Draw one item from a banner.

    Args:
        category: Banner to draw from
        current_credits: Credits the player holds (not modified)
        rng: Random source

    Returns:
        DrawResult with the new item and the cost to debit, or an
        insufficient-funds error when credits are below the cost
    """
    cost = get_draw_cost(category)
    if current_credits < cost:
        return DrawResult(
            success=False,
            cost=cost,
            error=f"Insufficient credits: need {cost}, have {current_credits}",
        )

    item = _draw_item(category, rng)
    logger.debug("Drew %s %s for %d credits", item.grade.value, item.type.value, cost)
    return DrawResult(success=True, item=item, cost=cost)


def multi_draw(
    category: GachaCategory,
    current_credits: int,
    rng: random.Random,
    count: int = MULTI_DRAW_COUNT,
) -> MultiDrawResult:
    """Draw `count` items, paid for up front; fails as a whole when short."""
    cost = get_draw_cost(category) * count
    if current_credits < cost:
        return MultiDrawResult(
            success=False,
            cost=cost,
            error=f"Insufficient credits: need {cost}, have {current_credits}",
        )

    items = [_draw_item(category, rng) for _ in range(count)]
    return MultiDrawResult(success=True, items=items, cost=cost)
