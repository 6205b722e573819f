"""Enhancement engine: cost, success/destruction roll and stat growth.

An attempt never mutates the item. `enhance` returns an
`EnhancementAttempt` describing what happened and `apply_enhancement`
builds the resulting item (or None when it was destroyed).
"""
import logging
import math
import random
from dataclasses import dataclass, replace
from typing import Optional

from ..config import (
    DEFAULT_SUCCESS_RATE,
    DESTRUCTION_PREVENTION_COSTS,
    DESTRUCTION_PREVENTION_MIN_LEVEL,
    DOWNGRADE_START_LEVEL,
    ENHANCEMENT_COST_MULTIPLIERS,
    ENHANCEMENT_DESTRUCTION_RATES,
    ENHANCEMENT_STAT_BASE,
    ENHANCEMENT_STAT_CONVERSION,
    ENHANCEMENT_SUCCESS_RATES,
    FRACTIONAL_STATS,
    MAX_ENHANCEMENT_LEVEL,
    SAFE_ENHANCEMENT_LEVELS,
)
from ..errors import (
    InsufficientCreditsError,
    MaxEnhancementLevelError,
    NonEnhanceableItemError,
    PreventionUnavailableError,
)
from ..models import EnhancementResult, Grade, Item, ItemType, Stats

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EnhancementAttempt:
    """Result of one enhancement attempt."""
    result: EnhancementResult
    cost_paid: int
    level_before: int
    level_after: int
    stat_change: float = 0
    destruction_prevented: bool = False

    @property
    def success(self) -> bool:
        return self.result is EnhancementResult.SUCCESS

    @property
    def destroyed(self) -> bool:
        return self.result is EnhancementResult.DESTRUCTION


@dataclass(slots=True)
class EnhancementInfo:
    """Preview of the next attempt on an item."""
    next_level: int
    cost: int
    success_rate: float
    destruction_rate: float
    can_downgrade: bool
    stat_increase: float
    prevention_available: bool
    prevention_cost: int


def get_success_rate(next_level: int) -> float:
    return ENHANCEMENT_SUCCESS_RATES.get(next_level, DEFAULT_SUCCESS_RATE)


def get_destruction_rate(next_level: int) -> float:
    return ENHANCEMENT_DESTRUCTION_RATES.get(next_level, 0.0)


def get_enhancement_cost(grade: Grade, next_level: int) -> int:
    """Credit cost of attempting `next_level` on an item of `grade`."""
    if next_level <= 5:
        base = 100 + next_level * 100
    elif next_level <= 11:
        base = 400 + (next_level - 5) * 50
    else:
        base = 800 * 1.4 ** (next_level - 12)
    return math.floor(base * ENHANCEMENT_COST_MULTIPLIERS.get(grade.value, 1.0))


def get_prevention_cost(current_level: int) -> int:
    """Surcharge for destruction prevention, 0 where it is unavailable."""
    if current_level < DESTRUCTION_PREVENTION_MIN_LEVEL:
        return 0
    return DESTRUCTION_PREVENTION_COSTS.get(
        current_level, DESTRUCTION_PREVENTION_COSTS[MAX_ENHANCEMENT_LEVEL]
    )


def _level_multiplier(level: int) -> float:
    if level <= 5:
        return 1.2
    if level <= 10:
        return 1.5 + (level - 5) * 0.15
    if level <= 15:
        return 2.5 + (level - 10) * 0.25
    if level <= 19:
        return 4.0 + (level - 15) * 0.4
    return 6.5 + (level - 19) * 1.5


def get_stat_increase(grade: Grade, stat: str, level: int) -> float:
    """Primary stat gained when an item of `grade` reaches `level`."""
    raw = ENHANCEMENT_STAT_BASE.get(grade.value, 0) * _level_multiplier(level)
    scale, minimum = ENHANCEMENT_STAT_CONVERSION[stat]
    value = raw * scale
    if stat not in FRACTIONAL_STATS:
        value = math.floor(value)
    return max(minimum, value)


def calculate_enhanced_stats(
    base_stats: Stats,
    item_type: ItemType,
    grade: Grade,
    enhancement_level: int,
) -> Stats:
    """Base stats plus the growth of every level from 1 to `enhancement_level`."""
    stat = item_type.primary_stat
    total = sum(
        get_stat_increase(grade, stat, level)
        for level in range(1, enhancement_level + 1)
    )
    return base_stats.with_stat(stat, base_stats.get(stat) + total)


def with_enhancement_level(item: Item, enhancement_level: int) -> Item:
    """Copy of `item` at another enhancement level, stats recomputed."""
    enhanced = calculate_enhanced_stats(
        item.base_stats, item.type, item.grade, enhancement_level
    )
    return replace(item, enhanced_stats=enhanced, enhancement_level=enhancement_level)


def recalculate_enhanced_stats(item: Item) -> Item:
    """Rebuild an item's enhanced stats from its base stats and level."""
    return with_enhancement_level(item, item.enhancement_level)


def _uses_prevention(item: Item, destruction_prevention: bool) -> bool:
    return destruction_prevention and item.enhancement_level >= DESTRUCTION_PREVENTION_MIN_LEVEL


def get_total_cost(item: Item, destruction_prevention: bool = False) -> int:
    cost = get_enhancement_cost(item.grade, item.enhancement_level + 1)
    if _uses_prevention(item, destruction_prevention):
        cost += get_prevention_cost(item.enhancement_level)
    return cost


def get_enhancement_info(item: Item) -> Optional[EnhancementInfo]:
    """Preview the next attempt, or None if the item cannot be enhanced."""
    if not item.is_enhanceable or item.enhancement_level >= MAX_ENHANCEMENT_LEVEL:
        return None
    next_level = item.enhancement_level + 1
    return EnhancementInfo(
        next_level=next_level,
        cost=get_enhancement_cost(item.grade, next_level),
        success_rate=get_success_rate(next_level),
        destruction_rate=get_destruction_rate(next_level),
        can_downgrade=item.enhancement_level >= DOWNGRADE_START_LEVEL,
        stat_increase=get_stat_increase(item.grade, item.primary_stat, next_level),
        prevention_available=item.enhancement_level >= DESTRUCTION_PREVENTION_MIN_LEVEL,
        prevention_cost=get_prevention_cost(item.enhancement_level),
    )


def can_enhance(item: Item, current_credits: int, destruction_prevention: bool = False) -> bool:
    if not item.is_enhanceable or item.enhancement_level >= MAX_ENHANCEMENT_LEVEL:
        return False
    if destruction_prevention and item.enhancement_level < DESTRUCTION_PREVENTION_MIN_LEVEL:
        return False
    return current_credits >= get_total_cost(item, destruction_prevention)


def _failure_level(current_level: int) -> int:
    """Level after a failed attempt without prevention."""
    if current_level < DOWNGRADE_START_LEVEL:
        return current_level
    floor = max((safe for safe in SAFE_ENHANCEMENT_LEVELS if safe <= current_level), default=0)
    return max(floor, current_level - 1)


def enhance(
    item: Item,
    current_credits: int,
    rng: random.Random,
    destruction_prevention: bool = False,
) -> EnhancementAttempt:
    """Attempt to raise an item's enhancement level by one.

    Args:
        item: Item to enhance
        current_credits: Credits the player holds (not modified)
        rng: Random source; exactly one value is drawn
        destruction_prevention: Pay the surcharge to rule out destruction
            and downgrade. Only available from +20.

    Returns:
        EnhancementAttempt with the outcome and the credits to debit

    Raises:
        NonEnhanceableItemError: for the unique weapon
        MaxEnhancementLevelError: when the item is already at +25
        PreventionUnavailableError: when prevention is requested below +20
        InsufficientCreditsError: when credits are below the total cost
    """
    if not item.is_enhanceable:
        raise NonEnhanceableItemError(f"{item.type.value} cannot be enhanced")
    current_level = item.enhancement_level
    if current_level >= MAX_ENHANCEMENT_LEVEL:
        raise MaxEnhancementLevelError(
            f"Item {item.id} is already at +{MAX_ENHANCEMENT_LEVEL}"
        )
    if destruction_prevention and current_level < DESTRUCTION_PREVENTION_MIN_LEVEL:
        raise PreventionUnavailableError(current_level, DESTRUCTION_PREVENTION_MIN_LEVEL)

    protected = _uses_prevention(item, destruction_prevention)
    cost = get_total_cost(item, destruction_prevention)
    if current_credits < cost:
        raise InsufficientCreditsError(cost, current_credits)

    next_level = current_level + 1
    success_rate = get_success_rate(next_level)
    destruction_rate = 0.0 if protected else get_destruction_rate(next_level)

    roll = rng.random()
    if roll < success_rate:
        attempt = EnhancementAttempt(
            result=EnhancementResult.SUCCESS,
            cost_paid=cost,
            level_before=current_level,
            level_after=next_level,
            stat_change=get_stat_increase(item.grade, item.primary_stat, next_level),
            destruction_prevented=protected,
        )
    elif roll < success_rate + destruction_rate:
        attempt = EnhancementAttempt(
            result=EnhancementResult.DESTRUCTION,
            cost_paid=cost,
            level_before=current_level,
            level_after=0,
        )
    else:
        new_level = current_level if protected else _failure_level(current_level)
        if new_level < current_level:
            attempt = EnhancementAttempt(
                result=EnhancementResult.DOWNGRADE,
                cost_paid=cost,
                level_before=current_level,
                level_after=new_level,
                stat_change=-get_stat_increase(item.grade, item.primary_stat, current_level),
            )
        else:
            attempt = EnhancementAttempt(
                result=EnhancementResult.FAILURE,
                cost_paid=cost,
                level_before=current_level,
                level_after=current_level,
                destruction_prevented=protected,
            )

    logger.debug(
        "Enhance %s +%d -> %s (+%d), roll=%.4f",
        item.id, current_level, attempt.result.value, attempt.level_after, roll,
    )
    return attempt


def apply_enhancement(item: Item, attempt: EnhancementAttempt) -> Optional[Item]:
    """Item after the attempt, or None if it was destroyed."""
    if attempt.destroyed:
        return None
    if attempt.level_after == item.enhancement_level:
        return item
    return with_enhancement_level(item, attempt.level_after)
