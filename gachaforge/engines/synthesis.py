"""Synthesis: merge ten items of one grade into one of the next grade."""
import logging
import random
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..config import EQUIPMENT_TYPES, SYNTHESIS_REQUIRED_ITEMS
from ..models import Grade, Item, ItemType
from .factory import create_item

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SynthesisResult:
    """Result of a synthesis. The caller removes `consumed_items` and stores `new_item`."""
    success: bool
    new_item: Optional[Item] = None
    consumed_items: list[Item] = field(default_factory=list)
    error: Optional[str] = None


def can_synthesize(items: Iterable[Item], grade: Grade) -> bool:
    if grade.next_grade is None:
        return False
    count = sum(1 for item in items if item.grade is grade)
    return count >= SYNTHESIS_REQUIRED_ITEMS


def synthesis_overview(items: Iterable[Item]) -> dict[Grade, int]:
    """Item count per synthesizable grade."""
    counts = {grade: 0 for grade in Grade if grade.next_grade is not None}
    for item in items:
        if item.grade in counts:
            counts[item.grade] += 1
    return counts


def synthesize(item_pool: Iterable[Item], grade: Grade, rng: random.Random) -> SynthesisResult:
    """Consume ten random items of `grade` and create one of the next grade.

    Args:
        item_pool: Candidate items (normally the unequipped inventory)
        grade: Grade to synthesize from
        rng: Random source for the selection and the new item

    Returns:
        SynthesisResult with the new item and the ten consumed items, or an
        error naming the shortfall
    """
    next_grade = grade.next_grade
    if next_grade is None:
        return SynthesisResult(
            success=False, error=f"{grade.value} items cannot be synthesized"
        )

    candidates = [item for item in item_pool if item.grade is grade]
    if len(candidates) < SYNTHESIS_REQUIRED_ITEMS:
        missing = SYNTHESIS_REQUIRED_ITEMS - len(candidates)
        return SynthesisResult(
            success=False,
            error=(
                f"Need {SYNTHESIS_REQUIRED_ITEMS} {grade.value} items, "
                f"have {len(candidates)} ({missing} more required)"
            ),
        )

    consumed = rng.sample(candidates, SYNTHESIS_REQUIRED_ITEMS)
    item_type = ItemType(rng.choice(EQUIPMENT_TYPES))
    new_item = create_item(item_type, next_grade, rng)
    logger.debug(
        "Synthesized %s %s from %d %s items",
        next_grade.value, item_type.value, len(consumed), grade.value,
    )
    return SynthesisResult(success=True, new_item=new_item, consumed_items=consumed)
