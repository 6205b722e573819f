"""Item selection screen used by enhance, inherit, equip and sell."""

from typing import Optional

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import ScrollableContainer
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Static, Rule

from ..models import Item
from ..utils import item_label, item_primary_value


class ItemButton(Button):
    """Button representing a selectable item."""

    def __init__(self, item: Item, index: int, note: str = ""):
        self.item = item
        label = f"[{index}] {item_label(item)}  {item_primary_value(item)}"
        if note:
            label += f"  ({note})"
        super().__init__(label, id=f"item-btn-{index}")


class ItemSelectScreen(Screen[Optional[Item]]):
    """Pick one item from a list; dismisses with the item or None.

    The caller passes the candidate items and, optionally, a note per item
    id (for example "equipped") to show next to it.
    """

    CSS = """
    ItemSelectScreen {
        layout: vertical;
    }

    #item-list-container {
        height: 1fr;
        padding: 1 2;
    }

    #item-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    ItemButton {
        width: 100%;
        margin: 0 0 1 0;
    }

    #empty-note {
        color: $text-muted;
        text-align: center;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, items: list[Item], notes: Optional[dict[str, str]] = None):
        super().__init__()
        self.title_text = title
        self.items = items
        self.notes = notes or {}

    def compose(self) -> ComposeResult:
        yield Header()

        with ScrollableContainer(id="item-list-container"):
            yield Static(self.title_text, id="item-title")
            yield Rule()
            if not self.items:
                yield Static("No eligible items", id="empty-note")
            for i, item in enumerate(self.items, 1):
                yield ItemButton(item, i, self.notes.get(item.id, ""))

        yield Footer()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if isinstance(event.button, ItemButton):
            self.dismiss(event.button.item)

    def action_cancel(self) -> None:
        self.dismiss(None)
