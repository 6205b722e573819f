"""Monte Carlo analysis of enhancement cost and gacha grade distribution."""
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from .config import DESTRUCTION_PREVENTION_MIN_LEVEL, MAX_CREDITS, MAX_ENHANCEMENT_LEVEL
from .engines.enhancement import apply_enhancement, enhance, with_enhancement_level
from .engines.factory import create_item
from .engines.gacha import roll_grade
from .models import EnhancementResult, Grade, ItemType


@dataclass(slots=True)
class SimulationResult:
    """Result of one run from the start level to the target."""
    target_level: int
    start_level: int
    total_attempts: int = 0
    successes: int = 0
    failures: int = 0
    downgrades: int = 0
    destructions: int = 0
    credits_spent: int = 0
    reached: bool = False
    level_history: list[int] = field(default_factory=list)


def percentile(data: list, p: float) -> float:
    idx = int(len(data) * p)
    return data[min(idx, len(data) - 1)]


def average(data: list) -> float:
    return sum(data) / len(data) if data else 0


class EnhancementSimulator:
    """Repeats the enhancement engine to estimate the cost of reaching a level."""

    def __init__(self, seed: Optional[int] = None):
        """Initialize simulator with optional random seed."""
        self.rng = random.Random(seed)

    def simulate_to_target(
        self,
        target_level: int,
        grade: Grade = Grade.COMMON,
        item_type: ItemType = ItemType.MAIN_WEAPON,
        start_level: int = 0,
        destruction_prevention: bool = False,
        max_attempts: int = 100_000,
    ) -> SimulationResult:
        """Enhance until `target_level` is reached.

        A destroyed item is replaced by a fresh one at `start_level`, so
        the run measures the full cost including re-buys. Destruction
        prevention, when requested, is used on attempts from +20 on.
        """
        if not 0 < target_level <= MAX_ENHANCEMENT_LEVEL:
            raise ValueError(f"Target must be between 1 and {MAX_ENHANCEMENT_LEVEL}")

        fresh = with_enhancement_level(create_item(item_type, grade, self.rng), start_level)
        item = fresh
        result = SimulationResult(target_level=target_level, start_level=start_level)

        while item.enhancement_level < target_level and result.total_attempts < max_attempts:
            protect = (
                destruction_prevention
                and item.enhancement_level >= DESTRUCTION_PREVENTION_MIN_LEVEL
            )
            attempt = enhance(item, MAX_CREDITS, self.rng, protect)
            result.total_attempts += 1
            result.credits_spent += attempt.cost_paid

            if attempt.result is EnhancementResult.SUCCESS:
                result.successes += 1
            else:
                result.failures += 1
            if attempt.result is EnhancementResult.DOWNGRADE:
                result.downgrades += 1

            new_item = apply_enhancement(item, attempt)
            if new_item is None:
                result.destructions += 1
                item = fresh
            else:
                item = new_item
            result.level_history.append(item.enhancement_level)

        result.reached = item.enhancement_level >= target_level
        return result

    def run_monte_carlo(
        self,
        target_level: int,
        grade: Grade = Grade.COMMON,
        num_simulations: int = 10_000,
        start_level: int = 0,
        destruction_prevention: bool = False,
    ) -> dict:
        """Run multiple simulations and return statistics."""
        results = [
            self.simulate_to_target(
                target_level=target_level,
                grade=grade,
                start_level=start_level,
                destruction_prevention=destruction_prevention,
            )
            for _ in range(num_simulations)
        ]

        attempts = sorted(r.total_attempts for r in results)
        credits = sorted(r.credits_spent for r in results)
        downgrades = sorted(r.downgrades for r in results)
        destructions = sorted(r.destructions for r in results)

        return {
            "num_simulations": num_simulations,
            "target_level": target_level,
            "start_level": start_level,
            "grade": grade.value,
            "destruction_prevention": destruction_prevention,
            "attempts": {
                "average": average(attempts),
                "p50": percentile(attempts, 0.50),
                "p90": percentile(attempts, 0.90),
                "p99": percentile(attempts, 0.99),
                "worst": attempts[-1],
            },
            "credits": {
                "average": average(credits),
                "p50": percentile(credits, 0.50),
                "p90": percentile(credits, 0.90),
                "p99": percentile(credits, 0.99),
                "worst": credits[-1],
            },
            "downgrades": {
                "average": average(downgrades),
                "p90": percentile(downgrades, 0.90),
                "worst": downgrades[-1],
            },
            "destructions": {
                "average": average(destructions),
                "p90": percentile(destructions, 0.90),
                "worst": destructions[-1],
            },
        }


def sample_gacha_grades(num_draws: int, seed: Optional[int] = None) -> dict[Grade, float]:
    """Empirical grade frequencies over `num_draws` grade rolls."""
    rng = random.Random(seed)
    counts = Counter(roll_grade(rng) for _ in range(num_draws))
    return {grade: counts.get(grade, 0) / num_draws for grade in Grade}
