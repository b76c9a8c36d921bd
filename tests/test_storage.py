import json
import os
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from cdp_plan_runner.storage.base import InMemoryResultStore, JSONFileStore, generate_name


def test_generate_name_is_unique_json_name():
    first = generate_name()
    second = generate_name()
    assert first.startswith("extracted_data_") and first.endswith(".json")
    assert first != second


def test_json_store_round_trips_records(tmp_path: Path):
    store = JSONFileStore(tmp_path / "data")

    name = store.save({"title": "Example"})

    record = json.loads((tmp_path / "data" / name).read_text())
    assert record["data"] == {"title": "Example"}
    assert "timestamp" in record
    assert store.get(name)["data"] == {"title": "Example"}
    assert store.list() == [name]


def test_json_store_rejects_unsafe_names(tmp_path: Path):
    store = JSONFileStore(tmp_path)
    for bad in ("../secret.json", "notes.txt", ".hidden.json"):
        with pytest.raises(ValueError):
            store.get(bad)


def test_json_store_missing_record_raises_key_error(tmp_path: Path):
    with pytest.raises(KeyError):
        JSONFileStore(tmp_path).get("absent.json")


def test_json_store_cleanup_removes_old_files(tmp_path: Path):
    store = JSONFileStore(tmp_path)
    old = store.save({"n": 1}, name="old.json")
    fresh = store.save({"n": 2}, name="fresh.json")
    stale = time.time() - 40 * 24 * 60 * 60
    os.utime(tmp_path / old, (stale, stale))

    removed = store.cleanup(max_age_days=30)

    assert removed == [old]
    assert store.list() == [fresh]


def test_in_memory_store_cleanup_uses_timestamps():
    store = InMemoryResultStore()
    name = store.save({"n": 1})
    store.get(name)["timestamp"] = (datetime.now(timezone.utc) - timedelta(days=31)).isoformat()
    kept = store.save({"n": 2})

    assert store.cleanup(30) == [name]
    assert store.list() == [kept]
