"""Stage requirement curve."""
import logging
import math

from .config import (
    MAX_STAGE,
    STAGE_ATTACK_BASE,
    STAGE_ATTACK_GROWTH,
    STAGE_DEFENSE_BASE,
    STAGE_DEFENSE_GROWTH,
)
from .models import Stats

logger = logging.getLogger(__name__)


def stage_requirements(stage: int) -> tuple[int, int]:
    """(attack, defense) a player needs to hold `stage`."""
    attack = math.floor(STAGE_ATTACK_BASE * STAGE_ATTACK_GROWTH ** (stage - 1))
    defense = math.floor(STAGE_DEFENSE_BASE * STAGE_DEFENSE_GROWTH ** (stage - 1))
    return attack, defense


def meets_stage(stats: Stats, stage: int) -> bool:
    attack, defense = stage_requirements(stage)
    return stats.attack >= attack and stats.defense >= defense


def clamp_stage(stage: int, stats: Stats) -> int:
    """Highest stage <= `stage` whose requirements `stats` meet.

    Never raises the stage. Stage 1 is the floor even if unmet.
    """
    stage = max(1, min(stage, MAX_STAGE))
    if meets_stage(stats, stage):
        return stage
    for candidate in range(stage - 1, 0, -1):
        if meets_stage(stats, candidate):
            logger.info("Stage lowered from %d to %d", stage, candidate)
            return candidate
    if stage != 1:
        logger.info("Stage lowered from %d to 1", stage)
    return 1
