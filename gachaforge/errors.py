"""Exception types raised by the progression engine.

Expected gameplay failures (not enough credits for a draw, an invalid
inheritance pair, too few items to synthesize) are reported through result
objects. The exceptions here cover calls the UI should never make and
broken configuration.
"""


class GachaForgeError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(GachaForgeError):
    """A balance table violates a structural rule."""


class ItemNotFoundError(GachaForgeError):
    """An item id is not present in the inventory or equipment."""

    def __init__(self, item_id: str):
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


class EnhancementError(GachaForgeError):
    """An enhancement attempt was requested that cannot be performed."""


class MaxEnhancementLevelError(EnhancementError):
    """Item is already at the maximum enhancement level."""


class NonEnhanceableItemError(EnhancementError):
    """Item type can never be enhanced."""


class InsufficientCreditsError(EnhancementError):
    """Not enough credits to pay for the attempt."""

    def __init__(self, required: int, available: int):
        super().__init__(
            f"Insufficient credits: need {required}, have {available}"
        )
        self.required = required
        self.available = available


class PreventionUnavailableError(EnhancementError):
    """Destruction prevention was requested below the level it unlocks at."""

    def __init__(self, current_level: int, min_level: int):
        super().__init__(
            f"Destruction prevention is available from +{min_level}, item is at +{current_level}"
        )
        self.current_level = current_level
        self.min_level = min_level
