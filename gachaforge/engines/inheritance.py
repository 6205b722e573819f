"""Inheritance: transfer enhancement progress onto a higher-grade item.

The transfer loses levels according to the grade gap, may fail, and
consumes the source item whenever the roll happens.
"""
import logging
import random
from dataclasses import dataclass
from typing import Optional

from ..config import INHERITANCE_TABLE
from ..models import Item
from .enhancement import with_enhancement_level

logger = logging.getLogger(__name__)

MAX_GRADE_GAP = max(INHERITANCE_TABLE)


@dataclass(slots=True)
class InheritanceResult:
    """Result of an inheritance attempt.

    `result_item` is the upgraded copy of the target on success. When
    `source_consumed` is set the caller removes the source item, whatever
    the outcome of the roll.
    """
    success: bool
    result_item: Optional[Item] = None
    source_consumed: bool = False
    error: Optional[str] = None
    grade_gap: int = 0
    success_rate: float = 0.0
    level_reduction: int = 0


@dataclass(slots=True)
class InheritancePreview:
    """What an inheritance between two items would do, before rolling."""
    valid: bool
    error: Optional[str] = None
    grade_gap: int = 0
    success_rate: float = 0.0
    level_reduction: int = 0
    resulting_level: int = 0


def validate_inheritance(source: Item, target: Item) -> Optional[str]:
    """Error message if the pair cannot inherit, None if it can."""
    if source.id == target.id:
        return "Source and target must be different items"
    if source.type.is_unique or target.type.is_unique:
        return "The unique weapon cannot take part in inheritance"
    if source.type is not target.type:
        return "Source and target must be the same item type"
    gap = target.grade.ordinal - source.grade.ordinal
    if gap < 1:
        return "Target grade must be higher than source grade"
    if gap > MAX_GRADE_GAP:
        return f"Grade gap too large (max {MAX_GRADE_GAP})"
    if source.enhancement_level <= 0:
        return "Source item has no enhancement to inherit"
    return None


def preview_inheritance(source: Item, target: Item) -> InheritancePreview:
    error = validate_inheritance(source, target)
    if error:
        return InheritancePreview(valid=False, error=error)
    gap = target.grade.ordinal - source.grade.ordinal
    success_rate, reduction = INHERITANCE_TABLE[gap]
    return InheritancePreview(
        valid=True,
        grade_gap=gap,
        success_rate=success_rate,
        level_reduction=reduction,
        resulting_level=max(0, source.enhancement_level - reduction),
    )


def inherit(source: Item, target: Item, rng: random.Random) -> InheritanceResult:
    """Attempt to move the source's enhancement level onto the target.

    Validation happens before any randomness; an invalid pair leaves both
    items untouched. A valid pair draws one random value and always
    consumes the source.

    Args:
        source: Enhanced item giving up its progress
        target: Same-type item 1-4 grades higher
        rng: Random source

    Returns:
        InheritanceResult; on success `result_item` is the target at
        max(0, source level - reduction) with stats recomputed
    """
    preview = preview_inheritance(source, target)
    if not preview.valid:
        return InheritanceResult(success=False, error=preview.error)

    roll = rng.random()
    if roll < preview.success_rate:
        result_item = with_enhancement_level(target, preview.resulting_level)
        logger.debug(
            "Inheritance %s -> %s succeeded at +%d",
            source.id, target.id, preview.resulting_level,
        )
        return InheritanceResult(
            success=True,
            result_item=result_item,
            source_consumed=True,
            grade_gap=preview.grade_gap,
            success_rate=preview.success_rate,
            level_reduction=preview.level_reduction,
        )

    logger.debug("Inheritance %s -> %s failed, source lost", source.id, target.id)
    return InheritanceResult(
        success=False,
        source_consumed=True,
        error="Inheritance failed",
        grade_gap=preview.grade_gap,
        success_rate=preview.success_rate,
        level_reduction=preview.level_reduction,
    )
