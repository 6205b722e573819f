"""TUI for the idle gacha game using Textual."""
import argparse
import logging
from pathlib import Path
from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Checkbox, Footer, Header, RichLog, Rule, Select, Static
from rich.text import Text

from .config import MULTI_DRAW_COUNT, OFFLINE_CAP_SECONDS, STAT_FIELDS
from .engines.enhancement import get_enhancement_info
from .engines.inheritance import preview_inheritance
from .engines.synthesis import synthesis_overview
from .equipment import credit_rate, get_sale_price
from .errors import EnhancementError
from .models import EQUIPMENT_SLOTS, EnhancementResult, GachaCategory, Grade, Item
from .screens import ItemSelectScreen
from .session import GameSession, SessionConfig
from .utils import (
    GRADE_COLORS,
    STAT_LABELS,
    format_credits,
    format_stat,
    format_time,
    item_label,
    item_primary_value,
)

logger = logging.getLogger(__name__)

RESULT_STYLES = {
    EnhancementResult.SUCCESS: "bold green",
    EnhancementResult.FAILURE: "yellow",
    EnhancementResult.DOWNGRADE: "bold yellow",
    EnhancementResult.DESTRUCTION: "bold red",
}


class GameScreen(Screen):
    """Main screen: save overview, actions and an event log."""

    CSS = """
    GameScreen {
        layout: vertical;
    }

    #main-row {
        height: 1fr;
    }

    #status-panel {
        width: 48;
        padding: 0 1;
        border: solid $primary;
    }

    #action-panel {
        width: 34;
        padding: 0 1;
    }

    #action-panel Button {
        width: 100%;
        margin-bottom: 1;
    }

    #log-container {
        border: solid green;
    }

    .section-title {
        text-style: bold;
        color: $primary;
        margin-top: 1;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("e", "enhance", "Enhance"),
        Binding("s", "save", "Save"),
        Binding("d", "draw", "Draw"),
    ]

    def __init__(self, session: GameSession, autosave_interval: float):
        super().__init__()
        self.session = session
        self.autosave_interval = autosave_interval

    def compose(self) -> ComposeResult:
        yield Header()

        with Horizontal(id="main-row"):
            with Vertical(id="status-panel"):
                yield Static(id="summary")
                yield Static("Stats", classes="section-title")
                yield Static(id="stats")
                yield Static("Equipment", classes="section-title")
                yield Static(id="equipment")

            with Vertical(id="action-panel"):
                yield Static("Gacha", classes="section-title")
                yield Select(
                    [(c.value.title(), c) for c in GachaCategory],
                    value=GachaCategory.ARMOR,
                    id="category",
                    allow_blank=False,
                )
                yield Button("Draw x1", id="draw-button", variant="success")
                yield Button(f"Draw x{MULTI_DRAW_COUNT}", id="multi-draw-button", variant="success")
                yield Rule()
                yield Static("Items", classes="section-title")
                yield Checkbox("Destruction prevention", id="protect")
                yield Button("Enhance", id="enhance-button", variant="primary")
                yield Button("Inherit", id="inherit-button", variant="primary")
                yield Button("Equip", id="equip-button")
                yield Button("Sell", id="sell-button")
                yield Select(
                    [(g.value.title(), g) for g in Grade if g.next_grade is not None],
                    value=Grade.COMMON,
                    id="synth-grade",
                    allow_blank=False,
                )
                yield Button("Synthesize", id="synth-button", variant="warning")
                yield Rule()
                yield Button("Save", id="save-button")

            yield RichLog(id="log-container", highlight=True, markup=True)

        yield Footer()

    def on_mount(self) -> None:
        log = self.query_one("#log-container", RichLog)
        for warning in self.session.load_warnings:
            log.write(f"[yellow]{warning}[/yellow]")
        last = self.session.save_data.last_save_time
        earned = self.session.apply_offline_progress()
        if earned:
            away = min((self.session.save_data.last_save_time - last) // 1000, OFFLINE_CAP_SECONDS)
            log.write(
                f"[bold]Welcome back![/bold] Earned {format_credits(earned)} credits "
                f"in {format_time(away)}"
            )
        self.set_interval(1.0, self._tick)
        self.set_interval(self.autosave_interval, self._autosave)
        self._refresh()

    # -- display ---------------------------------------------------------------

    def _refresh(self) -> None:
        save = self.session.save_data
        summary = Text()
        summary.append(f"Credits {format_credits(save.credits)}", style="bold yellow")
        summary.append(f"  (+{credit_rate(save):g}/s)\n")
        summary.append(f"Stage {save.current_stage}  Inventory {len(save.inventory)}")
        self.query_one("#summary", Static).update(summary)

        stats = "\n".join(
            f"{STAT_LABELS[stat]:<14} {format_stat(stat, save.player_stats.get(stat))}"
            for stat in STAT_FIELDS
        )
        self.query_one("#stats", Static).update(stats)

        lines = []
        for slot in EQUIPMENT_SLOTS:
            item = save.equipped_items.get(slot)
            lines.append(f"{slot:<14} {item_label(item, markup=True) if item else '-'}")
        self.query_one("#equipment", Static).update("\n".join(lines))

    def _log(self, message: str) -> None:
        self.query_one("#log-container", RichLog).write(message)

    def _tick(self) -> None:
        self.session.tick(1.0)
        self._refresh()

    def _autosave(self) -> None:
        result = self.session.save()
        if not result.success:
            self.notify(f"Autosave failed: {result.error}", severity="error")

    # -- actions ---------------------------------------------------------------

    def on_button_pressed(self, event: Button.Pressed) -> None:
        handlers = {
            "draw-button": self.action_draw,
            "multi-draw-button": self._multi_draw,
            "enhance-button": self.action_enhance,
            "inherit-button": self._inherit,
            "equip-button": self._equip,
            "sell-button": self._sell,
            "synth-button": self._synthesize,
            "save-button": self.action_save,
        }
        handler = handlers.get(event.button.id)
        if handler:
            handler()

    def _category(self) -> GachaCategory:
        return self.query_one("#category", Select).value

    def _log_item(self, item: Item) -> None:
        color = GRADE_COLORS.get(item.grade.value, "white")
        self._log(f"  [{color}]{item_label(item)}[/{color}]  {item_primary_value(item)}")

    def action_draw(self) -> None:
        result = self.session.draw(self._category())
        if not result.success:
            self.notify(result.error, severity="warning")
            return
        self._log(f"[bold]Draw[/bold] ({format_credits(result.cost)})")
        self._log_item(result.item)
        self._refresh()

    def _multi_draw(self) -> None:
        result = self.session.multi_draw(self._category())
        if not result.success:
            self.notify(result.error, severity="warning")
            return
        self._log(f"[bold]Draw x{len(result.items)}[/bold] ({format_credits(result.cost)})")
        for item in result.items:
            self._log_item(item)
        self._refresh()

    def _notes(self) -> dict[str, str]:
        return {
            item.id: "equipped"
            for item in self.session.save_data.equipped_items.values() if item
        }

    def action_enhance(self) -> None:
        items = [i for i in self.session.save_data.all_items() if get_enhancement_info(i)]
        self.app.push_screen(
            ItemSelectScreen("Select item to enhance", items, self._notes()),
            self._enhance_item,
        )

    def _enhance_item(self, item: Optional[Item]) -> None:
        if item is None:
            return
        protect = self.query_one("#protect", Checkbox).value
        try:
            attempt = self.session.enhance(item.id, destruction_prevention=protect)
        except EnhancementError as exc:
            self.notify(str(exc), severity="warning")
            return
        style = RESULT_STYLES[attempt.result]
        self._log(
            f"[{style}]{attempt.result.value.upper()}[/{style}] {item_label(item)}: "
            f"+{attempt.level_before} → +{attempt.level_after} "
            f"({format_credits(attempt.cost_paid)})"
        )
        self._refresh()

    def _inherit(self) -> None:
        sources = [i for i in self.session.save_data.all_items() if i.enhancement_level > 0 and i.is_enhanceable]
        self.app.push_screen(
            ItemSelectScreen("Select source (will be consumed)", sources, self._notes()),
            self._choose_inherit_target,
        )

    def _choose_inherit_target(self, source: Optional[Item]) -> None:
        if source is None:
            return
        targets = [
            i for i in self.session.save_data.all_items()
            if preview_inheritance(source, i).valid
        ]
        notes = {}
        for target in targets:
            preview = preview_inheritance(source, target)
            notes[target.id] = f"{preview.success_rate * 100:.0f}% → +{preview.resulting_level}"
        self.app.push_screen(
            ItemSelectScreen("Select target", targets, notes),
            lambda target: self._inherit_items(source, target),
        )

    def _inherit_items(self, source: Item, target: Optional[Item]) -> None:
        if target is None:
            return
        result = self.session.inherit(source.id, target.id)
        if result.success:
            self._log(f"[bold green]INHERITED[/bold green] {item_label(result.result_item)}")
        else:
            self._log(f"[bold red]INHERITANCE FAILED[/bold red] {item_label(source)} was lost")
        self._refresh()

    def _equip(self) -> None:
        self.app.push_screen(
            ItemSelectScreen("Select item to equip", list(self.session.save_data.inventory)),
            self._equip_item,
        )

    def _equip_item(self, item: Optional[Item]) -> None:
        if item is None:
            return
        result = self.session.equip(item.id)
        if not result.success:
            self.notify(result.error, severity="warning")
            return
        self._log(f"Equipped {item_label(item, markup=True)}")
        self._refresh()

    def _sell(self) -> None:
        items = [i for i in self.session.save_data.inventory if not i.type.is_unique]
        notes = {i.id: f"{get_sale_price(i)} credits" for i in items}
        self.app.push_screen(ItemSelectScreen("Select item to sell", items, notes), self._sell_item)

    def _sell_item(self, item: Optional[Item]) -> None:
        if item is None:
            return
        result = self.session.sell([item.id])
        if not result.success:
            self.notify(result.error, severity="warning")
            return
        self._log(f"Sold {item_label(item)} for {format_credits(result.credits_earned)}")
        self._refresh()

    def _synthesize(self) -> None:
        grade = self.query_one("#synth-grade", Select).value
        result = self.session.synthesize(grade)
        if not result.success:
            self.notify(result.error, severity="warning")
            counts = synthesis_overview(self.session.save_data.inventory)
            self._log("Synthesis materials: " + ", ".join(
                f"{g.value} {n}" for g, n in counts.items()
            ))
            return
        self._log(f"[bold magenta]SYNTHESIS[/bold magenta] {len(result.consumed_items)} {grade.value} items →")
        self._log_item(result.new_item)
        self._refresh()

    def action_save(self) -> None:
        result = self.session.save()
        if result.success:
            self.notify("Game saved")
        else:
            self.notify(f"Save failed: {result.error}", severity="error")

    def action_quit(self) -> None:
        self.app.exit()


class GachaForgeApp(App):
    """Main TUI application."""

    TITLE = "GachaForge"
    CSS = """
    Screen {
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
    ]

    def __init__(self, session: GameSession, autosave_interval: float):
        super().__init__()
        self.session = session
        self.autosave_interval = autosave_interval

    def on_mount(self) -> None:
        self.push_screen(GameScreen(self.session, self.autosave_interval))

    def on_unmount(self) -> None:
        result = self.session.save()
        if not result.success:
            logger.error("Final save failed: %s", result.error)


def main():
    """Entry point for the TUI."""
    parser = argparse.ArgumentParser(description="Idle gacha TUI")
    parser.add_argument("--save-dir", type=Path, help="Directory holding the save files")
    parser.add_argument("--seed", type=int, help="Random seed for reproducibility")
    args = parser.parse_args()

    config = SessionConfig(save_dir=args.save_dir, seed=args.seed)
    app = GachaForgeApp(GameSession.from_config(config), config.autosave_interval)
    app.run()


if __name__ == "__main__":
    main()
