"""Redundant save storage.

A save is written to three keys (primary, backup, emergency) of a
key/value backend and read back from the first one that parses, migrates
and validates. Nothing here raises past `SaveStore`: write failures come
back as a `StorageResult`, read failures as warnings on a `LoadResult`.
"""
import json
import logging
import os
import random
import tempfile
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import quote

from ..config import (
    BACKUP_SUFFIX,
    EMERGENCY_SUFFIX,
    LAST_SAVE_SUFFIX,
    MAX_STAGE,
    MIGRATION_VERSION_KEY,
    SAVE_RETRY_ATTEMPTS,
    SAVE_RETRY_BASE_DELAY,
    SAVE_SCHEMA_VERSION,
    STORAGE_KEY,
)
from ..equipment import clamp_credits, create_default_save
from ..models import PlayerSave
from .migration import MigrationReport, migrate

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class StorageBackend(ABC):
    """String key/value store. Failures raise OSError."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass


class MemoryStorageBackend(StorageBackend):
    """In-process backend with an optional size quota (in characters)."""

    def __init__(self, quota: Optional[int] = None):
        self.data: dict[str, str] = {}
        self.quota = quota

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota is not None:
            used = sum(len(v) for k, v in self.data.items() if k != key)
            if used + len(value) > self.quota:
                raise OSError(f"Storage quota exceeded writing {key}")
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


def _write_text_atomic(path: Path, data: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf8", dir=path.parent, delete=False
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, path)
        temp_path = None
    finally:
        if temp_path is not None:
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass


class FileStorageBackend(StorageBackend):
    """One file per key inside a directory; writes replace files atomically."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> Optional[str]:
        try:
            return self._path(key).read_text(encoding="utf8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        _write_text_atomic(self._path(key), value)

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------

def dump_save(save: PlayerSave) -> str:
    """Serialize a save with its schema version embedded."""
    data = save.to_dict()
    data["credits"] = clamp_credits(save.credits)
    data["schemaVersion"] = SAVE_SCHEMA_VERSION
    return json.dumps(data, allow_nan=False)


def validate_save(save: PlayerSave) -> None:
    """Raises ValueError if the save breaks an ownership or range rule."""
    ids = [item.id for item in save.all_items()]
    if len(ids) != len(set(ids)):
        raise ValueError("Save contains duplicate item ids")
    if isinstance(save.credit_per_second, bool) or not isinstance(save.credit_per_second, (int, float)):
        raise ValueError(f"Invalid credit rate: {save.credit_per_second!r}")
    if not 1 <= save.current_stage <= MAX_STAGE:
        raise ValueError(f"Stage out of range: {save.current_stage}")
    for slot, item in save.equipped_items.items():
        if item is not None and item.type.slot != slot:
            raise ValueError(f"{item.type.value} cannot be equipped in {slot}")


def load_save(
    raw: str,
    rng: Optional[random.Random] = None,
    now: int = 0,
) -> tuple[PlayerSave, MigrationReport]:
    """Parse, migrate and validate one serialized save.

    Raises:
        ValueError: on unparseable JSON, an unrecognisable save or a save
            that fails validation
        KeyError, TypeError: on malformed item records
    """
    data = json.loads(raw)
    report = migrate(data, rng=rng, now_ms=now)
    if report.from_version == 0:
        raise ValueError("Data is not a recognisable save")
    save = PlayerSave.from_dict(report.data)
    save.credits = clamp_credits(save.credits)
    validate_save(save)
    return save, report


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class StorageResult:
    """Outcome of a save across every location."""
    success: bool
    written_keys: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    attempts: int = 1

    @property
    def error(self) -> Optional[str]:
        return "; ".join(self.errors) if self.errors else None


@dataclass(slots=True)
class LoadResult:
    """Outcome of a load. `save` is always usable."""
    save: PlayerSave
    source_key: Optional[str] = None
    warnings: list[str] = field(default_factory=list)
    migrated: bool = False

    @property
    def is_default(self) -> bool:
        return self.source_key is None


class SaveStore:
    """Reads and writes a player save across redundant keys of a backend."""

    def __init__(
        self,
        backend: StorageBackend,
        key: str = STORAGE_KEY,
        retries: int = SAVE_RETRY_ATTEMPTS,
        base_delay: float = SAVE_RETRY_BASE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], int] = now_ms,
        rng: Optional[random.Random] = None,
    ):
        self.backend = backend
        self.key = key
        self.retries = retries
        self.base_delay = base_delay
        self.sleep = sleep
        self.clock = clock
        self.rng = rng or random.Random()

    @property
    def save_keys(self) -> list[str]:
        """Locations in read priority order."""
        return [self.key, self.key + BACKUP_SUFFIX, self.key + EMERGENCY_SUFFIX]

    @property
    def last_save_key(self) -> str:
        return self.key + LAST_SAVE_SUFFIX

    def save(self, save: PlayerSave) -> StorageResult:
        """Write a snapshot of `save` to every location.

        Succeeds when at least one location accepted the write. On success
        `save.last_save_time` is updated to the time written.
        """
        timestamp = self.clock()
        snapshot = PlayerSave(
            credits=save.credits,
            credit_per_second=save.credit_per_second,
            current_stage=save.current_stage,
            equipped_items=dict(save.equipped_items),
            inventory=list(save.inventory),
            player_stats=save.player_stats,
            last_save_time=timestamp,
        )
        try:
            payload = dump_save(snapshot)
        except (TypeError, ValueError) as exc:
            logger.warning("Could not serialize save: %s", exc)
            return StorageResult(success=False, errors=[f"serialization: {exc}"])

        result = StorageResult(success=False)
        for key in self.save_keys:
            try:
                self.backend.set(key, payload)
            except OSError as exc:
                logger.warning("Save to %s failed: %s", key, exc)
                result.errors.append(f"{key}: {exc}")
            else:
                result.written_keys.append(key)

        result.success = bool(result.written_keys)
        if result.success:
            save.last_save_time = timestamp
            self._write_metadata(timestamp)
        return result

    def _write_metadata(self, timestamp: int) -> None:
        for key, value in (
            (self.last_save_key, str(timestamp)),
            (MIGRATION_VERSION_KEY, str(SAVE_SCHEMA_VERSION)),
        ):
            try:
                self.backend.set(key, value)
            except OSError as exc:
                logger.warning("Writing %s failed: %s", key, exc)

    def save_with_retry(self, save: PlayerSave) -> StorageResult:
        """`save`, retried with exponential backoff while every location fails."""
        result = self.save(save)
        attempts = 1
        while not result.success and attempts <= self.retries:
            delay = self.base_delay * 2 ** (attempts - 1)
            logger.warning("Save failed, retrying in %.2fs (%d/%d)", delay, attempts, self.retries)
            self.sleep(delay)
            result = self.save(save)
            attempts += 1
        result.attempts = attempts
        if not result.success:
            logger.error("Save failed after %d attempts: %s", attempts, result.error)
        return result

    def load(self) -> LoadResult:
        """Load the first location that yields a valid save.

        A save recovered from a mirror, or changed by migration, is written
        back to every location. If nothing loads, a fresh default save is
        returned with a warning.
        """
        warnings: list[str] = []
        for key in self.save_keys:
            try:
                raw = self.backend.get(key)
            except OSError as exc:
                warnings.append(f"{key}: unreadable ({exc})")
                continue
            if raw is None:
                continue
            try:
                save, report = load_save(raw, rng=self.rng, now=self.clock())
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("Discarding save at %s: %s", key, exc)
                warnings.append(f"{key}: {exc}")
                continue

            if key != self.key:
                warnings.append(f"Recovered save from {key}")
            if key != self.key or report.changed:
                self.save(save)
            return LoadResult(
                save=save, source_key=key, warnings=warnings, migrated=report.changed
            )

        if warnings:
            warnings.append("No valid save found, starting a new game")
            logger.warning("No valid save found, starting a new game")
        return LoadResult(save=create_default_save(self.rng, self.clock()), warnings=warnings)

    def stored_version(self) -> int:
        """Schema version marker last written, 0 if absent or unreadable."""
        try:
            raw = self.backend.get(MIGRATION_VERSION_KEY)
        except OSError:
            return 0
        try:
            return int(raw) if raw is not None else 0
        except ValueError:
            return 0

    def last_save_time(self) -> Optional[int]:
        try:
            raw = self.backend.get(self.last_save_key)
        except OSError:
            return None
        try:
            return int(raw) if raw is not None else None
        except ValueError:
            return None

    def clear(self) -> None:
        """Remove the save from every location."""
        for key in self.save_keys + [self.last_save_key, MIGRATION_VERSION_KEY]:
            try:
                self.backend.remove(key)
            except OSError as exc:
                logger.warning("Removing %s failed: %s", key, exc)
