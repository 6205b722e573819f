"""Game session: runs the engines and applies their results to a save.

Engines only compute results. The session is the one place where a result
turns into a state change: credits are debited, items are added, replaced
or removed, and player stats are refreshed. Every operation applies its
whole result before returning, so a save taken between two calls always
sees a consistent state.
"""
import logging
import math
import os
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .config import AUTOSAVE_INTERVAL, MAX_INVENTORY_SIZE, MULTI_DRAW_COUNT, SAVE_RETRY_ATTEMPTS
from .engines import enhancement, gacha, inheritance, synthesis
from .engines.enhancement import EnhancementAttempt
from .engines.gacha import DrawResult, MultiDrawResult
from .engines.inheritance import InheritanceResult
from .engines.synthesis import SynthesisResult
from .equipment import (
    EquipResult,
    SaleResult,
    clamp_credits,
    credit_rate,
    equip_item,
    offline_credits,
    refresh_player_stats,
    sell_items,
    unequip_item,
)
from .errors import ItemNotFoundError
from .models import GachaCategory, Grade, Item, PlayerSave
from .persistence.storage import FileStorageBackend, SaveStore, StorageResult, now_ms

logger = logging.getLogger(__name__)

SAVE_DIR_ENV = "GACHAFORGE_SAVE_DIR"


def default_save_dir() -> Path:
    override = os.environ.get(SAVE_DIR_ENV)
    if override:
        return Path(override)
    return Path.home() / ".gachaforge"


@dataclass(slots=True)
class SessionConfig:
    """Runtime options for a session."""
    save_dir: Optional[Path] = None
    seed: Optional[int] = None
    save_retries: int = SAVE_RETRY_ATTEMPTS
    autosave_interval: float = AUTOSAVE_INTERVAL

    def make_store(self, rng: Optional[random.Random] = None) -> SaveStore:
        backend = FileStorageBackend(self.save_dir or default_save_dir())
        return SaveStore(backend, retries=self.save_retries, rng=rng)


class GameSession:
    """A loaded save plus the random source and store used to change it."""

    def __init__(
        self,
        save: PlayerSave,
        rng: Optional[random.Random] = None,
        store: Optional[SaveStore] = None,
    ):
        self.save_data = save
        self.rng = rng or random.Random()
        self.store = store
        self.load_warnings: list[str] = []
        self._credit_remainder = 0.0

    @classmethod
    def load(cls, store: SaveStore, rng: Optional[random.Random] = None) -> "GameSession":
        """Session over whatever `store` yields (a default save if nothing loads)."""
        rng = rng or store.rng
        result = store.load()
        session = cls(result.save, rng=rng, store=store)
        session.load_warnings = result.warnings
        return session

    @classmethod
    def from_config(cls, config: SessionConfig) -> "GameSession":
        rng = random.Random(config.seed)
        return cls.load(config.make_store(rng), rng=rng)

    # -- lookup ----------------------------------------------------------------

    @property
    def credits(self) -> int:
        return self.save_data.credits

    def get_item(self, item_id: str) -> Item:
        item = self.save_data.find_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def equipped_slot_of(self, item_id: str) -> Optional[str]:
        for slot, item in self.save_data.equipped_items.items():
            if item is not None and item.id == item_id:
                return slot
        return None

    def _debit(self, amount: int) -> None:
        self.save_data.credits = clamp_credits(self.save_data.credits - amount)

    def _credit(self, amount: float) -> None:
        self.save_data.credits = clamp_credits(self.save_data.credits + amount)

    def _replace_item(self, item_id: str, new_item: Item) -> None:
        slot = self.equipped_slot_of(item_id)
        if slot is not None:
            self.save_data.equipped_items[slot] = new_item
            refresh_player_stats(self.save_data)
            return
        self.save_data.inventory = [
            new_item if item.id == item_id else item for item in self.save_data.inventory
        ]

    def _remove_items(self, item_ids: Iterable[str]) -> None:
        ids = set(item_ids)
        self.save_data.inventory = [i for i in self.save_data.inventory if i.id not in ids]
        touched_equipment = False
        for slot, item in self.save_data.equipped_items.items():
            if item is not None and item.id in ids:
                self.save_data.equipped_items[slot] = None
                touched_equipment = True
        if touched_equipment:
            refresh_player_stats(self.save_data)

    def _inventory_space(self) -> int:
        return MAX_INVENTORY_SIZE - len(self.save_data.inventory)

    # -- operations ------------------------------------------------------------

    def draw(self, category: GachaCategory) -> DrawResult:
        if self._inventory_space() < 1:
            return DrawResult(success=False, cost=0, error="Inventory is full")
        result = gacha.draw(category, self.credits, self.rng)
        if result.success:
            self._debit(result.cost)
            self.save_data.inventory.append(result.item)
        return result

    def multi_draw(self, category: GachaCategory, count: int = MULTI_DRAW_COUNT) -> MultiDrawResult:
        if self._inventory_space() < count:
            return MultiDrawResult(
                success=False,
                cost=0,
                error=f"Inventory needs {count} free slots",
            )
        result = gacha.multi_draw(category, self.credits, self.rng, count)
        if result.success:
            self._debit(result.cost)
            self.save_data.inventory.extend(result.items)
        return result

    def enhance(self, item_id: str, destruction_prevention: bool = False) -> EnhancementAttempt:
        """Enhance an owned item (equipped or not).

        Raises:
            ItemNotFoundError: if the item is not owned
            EnhancementError: see `engines.enhancement.enhance`
        """
        item = self.get_item(item_id)
        attempt = enhancement.enhance(item, self.credits, self.rng, destruction_prevention)
        self._debit(attempt.cost_paid)
        new_item = enhancement.apply_enhancement(item, attempt)
        if new_item is None:
            logger.info("Item %s destroyed at +%d", item.id, attempt.level_before)
            self._remove_items([item.id])
        elif new_item is not item:
            self._replace_item(item.id, new_item)
        return attempt

    def inherit(self, source_id: str, target_id: str) -> InheritanceResult:
        source = self.get_item(source_id)
        target = self.get_item(target_id)
        result = inheritance.inherit(source, target, self.rng)
        if result.success:
            self._replace_item(target.id, result.result_item)
        if result.source_consumed:
            self._remove_items([source.id])
        return result

    def synthesize(self, grade: Grade) -> SynthesisResult:
        """Synthesize from unequipped inventory items of `grade`."""
        result = synthesis.synthesize(self.save_data.inventory, grade, self.rng)
        if result.success:
            self._remove_items(item.id for item in result.consumed_items)
            self.save_data.inventory.append(result.new_item)
        return result

    def equip(self, item_id: str) -> EquipResult:
        return equip_item(self.save_data, item_id)

    def unequip(self, slot: str) -> EquipResult:
        return unequip_item(self.save_data, slot)

    def sell(self, item_ids: Iterable[str]) -> SaleResult:
        return sell_items(self.save_data, item_ids)

    def tick(self, seconds: float = 1.0) -> int:
        """Accrue income for `seconds` of play; returns whole credits added."""
        earned = seconds * credit_rate(self.save_data) + self._credit_remainder
        whole = math.floor(earned)
        self._credit_remainder = earned - whole
        self._credit(whole)
        return whole

    def apply_offline_progress(self, now: Optional[int] = None) -> int:
        """Credit income for the time since the last save (capped at 24h)."""
        now = now_ms() if now is None else now
        last = self.save_data.last_save_time
        if not last:
            return 0
        earned = offline_credits((now - last) / 1000, credit_rate(self.save_data))
        self.save_data.last_save_time = now
        if earned:
            logger.info("Offline progress: %d credits", earned)
            self._credit(earned)
        return earned

    def save(self) -> StorageResult:
        if self.store is None:
            return StorageResult(success=False, errors=["No storage configured"])
        return self.store.save_with_retry(self.save_data)
