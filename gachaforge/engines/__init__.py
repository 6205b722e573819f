"""Mutation engines. Each returns a result value and never touches the save."""
from .enhancement import EnhancementAttempt, apply_enhancement, enhance
from .factory import create_item, create_unique_weapon
from .gacha import DrawResult, MultiDrawResult, draw, multi_draw
from .inheritance import InheritanceResult, inherit
from .synthesis import SynthesisResult, synthesize

__all__ = [
    "EnhancementAttempt",
    "apply_enhancement",
    "enhance",
    "create_item",
    "create_unique_weapon",
    "DrawResult",
    "MultiDrawResult",
    "draw",
    "multi_draw",
    "InheritanceResult",
    "inherit",
    "SynthesisResult",
    "synthesize",
]
