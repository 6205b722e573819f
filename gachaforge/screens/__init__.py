"""Shared TUI screens."""

from .item_select import ItemSelectScreen

__all__ = [
    "ItemSelectScreen",
]
