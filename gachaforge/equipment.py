"""Equipment, derived player stats, item sale and credit income.

These functions apply changes to a `PlayerSave` in place. Each one
validates first and only then mutates, so a failed call leaves the save
as it was.
"""
import logging
import math
import random
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from .config import (
    ADDITIONAL_ATTACK_CHANCE_CAP,
    DEFAULT_CREDIT_PER_SECOND,
    MAX_CREDITS,
    MAX_INVENTORY_SIZE,
    MAX_ITEMS_PER_SALE,
    OFFLINE_CAP_SECONDS,
    SALE_BASE_PRICES,
    SALE_ENHANCEMENT_BONUS,
    STARTING_EQUIPMENT,
)
from .engines.factory import create_item
from .models import Grade, Item, ItemType, PlayerSave, Stats, empty_equipment

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EquipResult:
    """Result of an equip or unequip."""
    success: bool
    item: Optional[Item] = None
    replaced_item: Optional[Item] = None
    error: Optional[str] = None


@dataclass(slots=True)
class SaleResult:
    """Result of selling a batch of inventory items."""
    success: bool
    credits_earned: int = 0
    sold_items: list[Item] = field(default_factory=list)
    error: Optional[str] = None


def clamp_credits(credits: float) -> int:
    """Credits as an int within [0, MAX_CREDITS]."""
    return int(max(0, min(MAX_CREDITS, credits)))


def calculate_player_stats(equipped_items: dict[str, Optional[Item]]) -> Stats:
    """Sum of every equipped item's enhanced stats, with the chance cap applied."""
    total = Stats()
    for item in equipped_items.values():
        if item is not None:
            total = total + item.enhanced_stats
    if total.additional_attack_chance > ADDITIONAL_ATTACK_CHANCE_CAP:
        total = replace(total, additional_attack_chance=ADDITIONAL_ATTACK_CHANCE_CAP)
    return total


def refresh_player_stats(save: PlayerSave) -> None:
    save.player_stats = calculate_player_stats(save.equipped_items)


def create_default_save(rng: random.Random, now_ms: int = 0) -> PlayerSave:
    """Fresh save: no credits, stage 1, a common starter set equipped."""
    equipped = empty_equipment()
    for type_name in STARTING_EQUIPMENT:
        item = create_item(ItemType(type_name), Grade.COMMON, rng)
        equipped[item.type.slot] = item
    save = PlayerSave(
        credits=0,
        credit_per_second=DEFAULT_CREDIT_PER_SECOND,
        current_stage=1,
        equipped_items=equipped,
        inventory=[],
        last_save_time=now_ms,
    )
    refresh_player_stats(save)
    return save


def equip_item(save: PlayerSave, item_id: str) -> EquipResult:
    """Move an inventory item into its slot; the previous occupant goes back to inventory."""
    item = next((i for i in save.inventory if i.id == item_id), None)
    if item is None:
        return EquipResult(success=False, error=f"Item {item_id} is not in the inventory")

    slot = item.type.slot
    previous = save.equipped_items.get(slot)
    save.inventory = [i for i in save.inventory if i.id != item_id]
    if previous is not None:
        save.inventory.append(previous)
    save.equipped_items[slot] = item
    refresh_player_stats(save)
    return EquipResult(success=True, item=item, replaced_item=previous)


def unequip_item(save: PlayerSave, slot: str) -> EquipResult:
    """Move the item in `slot` back to the inventory."""
    if slot not in save.equipped_items:
        return EquipResult(success=False, error=f"Unknown slot: {slot}")
    item = save.equipped_items[slot]
    if item is None:
        return EquipResult(success=False, error=f"Slot {slot} is empty")
    if len(save.inventory) >= MAX_INVENTORY_SIZE:
        return EquipResult(success=False, error="Inventory is full")

    save.equipped_items[slot] = None
    save.inventory.append(item)
    refresh_player_stats(save)
    return EquipResult(success=True, item=item)


def get_sale_price(item: Item) -> int:
    base = SALE_BASE_PRICES.get(item.grade.value, 0)
    return base + math.floor(base * SALE_ENHANCEMENT_BONUS * item.enhancement_level)


def sell_items(save: PlayerSave, item_ids: Iterable[str]) -> SaleResult:
    """Sell inventory items for credits.

    Equipped items and the unique weapon cannot be sold, and at most
    MAX_ITEMS_PER_SALE items go in one sale.
    """
    ids = list(dict.fromkeys(item_ids))
    if not ids:
        return SaleResult(success=False, error="No items selected")
    if len(ids) > MAX_ITEMS_PER_SALE:
        return SaleResult(
            success=False, error=f"Cannot sell more than {MAX_ITEMS_PER_SALE} items at once"
        )

    inventory = {item.id: item for item in save.inventory}
    equipped_ids = {item.id for item in save.equipped_items.values() if item}
    to_sell = []
    for item_id in ids:
        if item_id in equipped_ids:
            return SaleResult(success=False, error=f"Item {item_id} is equipped")
        item = inventory.get(item_id)
        if item is None:
            return SaleResult(success=False, error=f"Item {item_id} is not in the inventory")
        if item.type.is_unique:
            return SaleResult(success=False, error="The unique weapon cannot be sold")
        to_sell.append(item)

    earned = sum(get_sale_price(item) for item in to_sell)
    sold_ids = {item.id for item in to_sell}
    save.inventory = [item for item in save.inventory if item.id not in sold_ids]
    save.credits = clamp_credits(save.credits + earned)
    logger.debug("Sold %d items for %d credits", len(to_sell), earned)
    return SaleResult(success=True, credits_earned=earned, sold_items=to_sell)


def credit_rate(save: PlayerSave) -> float:
    """Credits earned per second."""
    return save.credit_per_second + save.player_stats.credit_per_second_bonus


def offline_credits(elapsed_seconds: float, rate: float) -> int:
    """Credits earned while away, capped at 24 hours."""
    if elapsed_seconds <= 0:
        return 0
    return math.floor(min(elapsed_seconds, OFFLINE_CAP_SECONDS) * rate)
