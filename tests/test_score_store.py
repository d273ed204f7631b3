from __future__ import annotations

from typing import TYPE_CHECKING

import orjson
import pytest

from monoguard.analysis.store import InMemoryScoreStore, JsonFileScoreStore

if TYPE_CHECKING:
    from pathlib import Path


def test_in_memory_store_round_trip() -> None:
    store = InMemoryScoreStore()

    assert store.get_previous("mono") is None
    store.save("mono", 82)
    assert store.get_previous("mono") == 82
    assert store.get_previous("other") is None


def test_json_store_missing_file_reads_empty(tmp_path: Path) -> None:
    store = JsonFileScoreStore(tmp_path / "scores.json")

    assert store.get_previous("mono") is None


def test_json_store_creates_parent_and_sorts_keys(tmp_path: Path) -> None:
    path = tmp_path / ".monoguard" / "scores.json"
    store = JsonFileScoreStore(path)

    store.save("zeta", 40)
    store.save("alpha", 90)

    assert list(orjson.loads(path.read_bytes())) == ["alpha", "zeta"]
    assert JsonFileScoreStore(path).get_previous("zeta") == 40


def test_json_store_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / "scores.json"
    path.write_bytes(b"[1, 2]")

    with pytest.raises(ValueError, match="must contain a JSON object"):
        JsonFileScoreStore(path).get_previous("mono")
