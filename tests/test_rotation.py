import json
from datetime import datetime, timedelta, timezone

import pytest

from src.curation.rotation import JsonFileRotationStore, RotationMemory, SqlRotationStore
from src.db.migrate import split_statements
from src.db.repository import replace_rotation_entries
from src.errors import PersistenceError

SHOWN = datetime(2024, 5, 9, 8, 30, tzinfo=timezone.utc)


def test_memory_stamp_and_cooldown(now) -> None:
    memory = RotationMemory()
    memory.stamp(["a", "b"], now)
    assert memory.get("a") == now
    assert "b" in memory
    assert memory.is_cooling_down("a", now + timedelta(hours=71), timedelta(hours=72))
    assert not memory.is_cooling_down("a", now + timedelta(hours=72), timedelta(hours=72))
    assert not memory.is_cooling_down("missing", now, timedelta(hours=72))


def test_memory_prune_drops_only_old_entries(now) -> None:
    memory = RotationMemory({"old": now - timedelta(days=40), "new": now})
    assert memory.prune(now - timedelta(days=30)) == 1
    assert memory.snapshot() == {"new": now}


def test_json_store_layout(tmp_path) -> None:
    path = tmp_path / "nested" / "rotation.json"
    store = JsonFileRotationStore(path)
    store.persist({"sku-1": SHOWN})
    assert json.loads(path.read_text()) == {"sku-1": {"lastShownAt": "2024-05-09T08:30:00+00:00"}}
    assert store.load_all() == {"sku-1": SHOWN}


def test_json_store_missing_file_is_empty(tmp_path) -> None:
    assert JsonFileRotationStore(tmp_path / "nope.json").load_all() == {}


def test_json_store_corrupt_file_raises(tmp_path) -> None:
    path = tmp_path / "rotation.json"
    path.write_text("{not json")
    with pytest.raises(PersistenceError):
        JsonFileRotationStore(path).load_all()
    path.write_text("[]")
    with pytest.raises(PersistenceError):
        JsonFileRotationStore(path).load_all()


def test_json_store_skips_malformed_entries(tmp_path) -> None:
    path = tmp_path / "rotation.json"
    path.write_text(
        json.dumps(
            {
                "good": {"lastShownAt": "2024-05-09T08:30:00Z"},
                "bad": {"lastShownAt": "yesterday"},
                "worse": "2024-05-09",
            }
        )
    )
    assert JsonFileRotationStore(path).load_all() == {"good": SHOWN}


def test_json_store_save_failure_raises(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(PersistenceError):
        JsonFileRotationStore(blocker / "rotation.json").persist({"a": SHOWN})


def test_sql_store_round_trip(tmp_path) -> None:
    store = SqlRotationStore(tmp_path / "app.db")
    assert store.load_all() == {}
    store.persist({"sku-1": SHOWN, "sku-2": SHOWN + timedelta(hours=1)})
    store.persist({"sku-1": SHOWN + timedelta(days=1)})
    assert SqlRotationStore(tmp_path / "app.db").load_all() == {"sku-1": SHOWN + timedelta(days=1)}


def test_json_store_skips_non_string_timestamps(tmp_path) -> None:
    path = tmp_path / "rotation.json"
    path.write_text(json.dumps({"k": {"lastShownAt": 123}, "j": {"lastShownAt": None}}))
    assert JsonFileRotationStore(path).load_all() == {}


def test_json_store_cleans_up_temp_file_on_failed_write(tmp_path, monkeypatch) -> None:
    def refuse(src, dst):
        raise OSError("cross-device link")

    monkeypatch.setattr("src.curation.rotation.os.replace", refuse)
    with pytest.raises(PersistenceError):
        JsonFileRotationStore(tmp_path / "rotation.json").persist({"a": SHOWN})
    assert list(tmp_path.iterdir()) == []


def test_sql_store_skips_malformed_rows(tmp_path) -> None:
    db_path = tmp_path / "app.db"
    store = SqlRotationStore(db_path)
    store.persist({"good": SHOWN})
    replace_rotation_entries({"good": SHOWN.isoformat(), "bad": "yesterday"}, db_path)
    assert store.load_all() == {"good": SHOWN}


def test_split_statements_drops_blank_chunks() -> None:
    sql = "CREATE TABLE a (x TEXT);\n\nCREATE INDEX i ON a(x);\n"
    assert split_statements(sql) == ["CREATE TABLE a (x TEXT)", "CREATE INDEX i ON a(x)"]
