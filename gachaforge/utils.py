"""Utility functions for formatting and display."""
from .config import FRACTIONAL_STATS
from .models import Item

GRADE_COLORS = {
    "common": "white",
    "rare": "blue",
    "epic": "magenta",
    "legendary": "yellow",
    "mythic": "red",
    "divine": "bold cyan",
}

STAT_LABELS = {
    "attack": "Attack",
    "defense": "Defense",
    "defensePenetration": "Def. Pen.",
    "additionalAttackChance": "Extra Attack",
    "creditPerSecondBonus": "Credits/s",
    "criticalChance": "Crit Chance",
    "criticalDamageMultiplier": "Crit Damage",
}


def format_credits(credits: float) -> str:
    """Format a credit amount with K/M/B/T suffix."""
    if credits >= 1_000_000_000_000:
        return f"{credits / 1_000_000_000_000:.1f}T"
    if credits >= 1_000_000_000:
        return f"{credits / 1_000_000_000:.1f}B"
    if credits >= 1_000_000:
        return f"{credits / 1_000_000:.1f}M"
    if credits >= 1_000:
        return f"{credits / 1_000:.1f}K"
    return str(int(credits))


def format_time(seconds: int) -> str:
    """Format an away duration as '1d 4h', '3h 12m', '5m 2s' or '40s'."""
    seconds = int(seconds)
    if seconds >= 86400:
        return f"{seconds // 86400}d {(seconds % 86400) // 3600}h"
    if seconds >= 3600:
        return f"{seconds // 3600}h {(seconds % 3600) // 60}m"
    if seconds >= 60:
        return f"{seconds // 60}m {seconds % 60}s"
    return f"{seconds}s"


def format_stat(stat: str, value: float) -> str:
    """Percent for fractional stats, whole number otherwise."""
    if stat in FRACTIONAL_STATS:
        return f"{value * 100:.2f}%"
    if value == int(value):
        return str(int(value))
    return f"{value:.1f}"


def item_label(item: Item, markup: bool = False) -> str:
    """Short description such as 'epic helmet +7'."""
    label = f"{item.grade.value} {item.type.value}"
    if item.enhancement_level:
        label += f" +{item.enhancement_level}"
    if markup:
        color = GRADE_COLORS.get(item.grade.value, "white")
        return f"[{color}]{label}[/{color}]"
    return label


def item_primary_value(item: Item) -> str:
    stat = item.primary_stat
    return f"{STAT_LABELS[stat]} {format_stat(stat, item.enhanced_stats.get(stat))}"
