from __future__ import annotations

import json
import random
from pathlib import Path

import pytest

from gachaforge.cli import main
from gachaforge.equipment import create_default_save
from gachaforge.persistence.storage import FileStorageBackend, SaveStore, now_ms

HOUR_MS = 3600 * 1000


def test_show_creates_a_new_save(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--save-dir", str(tmp_path), "--seed", "1", "show"]) == 0

    out = capsys.readouterr().out
    assert "Credits:" in out
    assert "EQUIPPED" in out
    assert "mainWeapon" in out


def test_rates_lists_every_level(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["rates"]) == 0

    out = capsys.readouterr().out
    assert "Gacha Rates" in out
    assert "+25" in out


def test_simulate_json(capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--seed", "3", "simulate", "--target", "5", "--simulations", "10", "--json"])

    assert code == 0
    stats = json.loads(capsys.readouterr().out)
    assert stats["target_level"] == 5
    assert stats["num_simulations"] == 10


def test_simulate_rejects_bad_range(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["simulate", "--target", "5", "--start-level", "5"]) == 1
    assert "Error" in capsys.readouterr().err


def test_draw_without_credits_fails_and_writes_nothing(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["--save-dir", str(tmp_path), "draw", "weapons"]) == 0

    assert "Insufficient credits" in capsys.readouterr().err
    assert list(tmp_path.iterdir()) == []


def test_unknown_item_prefix_is_an_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["--save-dir", str(tmp_path), "enhance", "zzzz-not-an-id"]) == 1

    assert "No item matches" in capsys.readouterr().err


def test_commands_collect_offline_credits_first(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    # last saved an hour ago with no credits, at 1 credit/s
    stale = SaveStore(FileStorageBackend(tmp_path), clock=lambda: now_ms() - HOUR_MS)
    stale.save(create_default_save(random.Random(1)))

    assert main(["--save-dir", str(tmp_path), "draw", "armor"]) == 0

    assert "Collected" in capsys.readouterr().out
    credits = SaveStore(FileStorageBackend(tmp_path)).load().save.credits
    assert 3600 - 800 <= credits <= 3600 - 800 + 60
