from __future__ import annotations

import random
from typing import Iterable

import pytest

from gachaforge.engines.enhancement import with_enhancement_level
from gachaforge.engines.factory import create_item
from gachaforge.models import Grade, Item, ItemType, PlayerSave, empty_equipment
from gachaforge.persistence.storage import MemoryStorageBackend, SaveStore


class ScriptedRandom(random.Random):
    """Random source whose random() returns queued values first.

    Integer helpers (randint, choice, sample) keep using getrandbits, so
    they never eat the scripted values.
    """

    def __init__(self, values: Iterable[float] = (), seed: int = 0) -> None:
        super().__init__(seed)
        self.values = list(values)

    def random(self) -> float:
        if self.values:
            return self.values.pop(0)
        return super().random()

    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


def make_item(
    item_type: ItemType = ItemType.MAIN_WEAPON,
    grade: Grade = Grade.COMMON,
    enhancement_level: int = 0,
    seed: int = 0,
) -> Item:
    item = create_item(item_type, grade, random.Random(seed))
    if enhancement_level:
        item = with_enhancement_level(item, enhancement_level)
    return item


def make_save(credits: int = 0, inventory: list[Item] | None = None) -> PlayerSave:
    return PlayerSave(
        credits=credits,
        equipped_items=empty_equipment(),
        inventory=list(inventory or []),
    )


@pytest.fixture
def backend() -> MemoryStorageBackend:
    return MemoryStorageBackend()


@pytest.fixture
def store(backend: MemoryStorageBackend) -> SaveStore:
    return SaveStore(
        backend,
        sleep=lambda _delay: None,
        clock=lambda: 1_700_000_000_000,
        rng=random.Random(7),
    )
