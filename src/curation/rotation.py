"""Rotation memory: identity key -> last time the offer was shown in a feed.

Stores load and save the whole map at once; the engine loads once per build,
stamps the selected keys in memory and persists once after committing.
"""
from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Optional, Protocol

from src.db.migrate import run_migrations
from src.db.repository import fetch_rotation_entries, replace_rotation_entries
from src.errors import PersistenceError

logger = logging.getLogger(__name__)


def _parse_ts(value: str) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


class RotationStore(Protocol):
    def load_all(self) -> dict[str, datetime]:
        ...

    def persist(self, entries: dict[str, datetime]) -> None:
        ...


class RotationMemory:
    def __init__(self, entries: Optional[dict[str, datetime]] = None):
        self._entries: dict[str, datetime] = dict(entries or {})

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[datetime]:
        return self._entries.get(key)

    def set(self, key: str, shown_at: datetime) -> None:
        self._entries[key] = shown_at

    def stamp(self, keys: Iterable[str], shown_at: datetime) -> None:
        for key in keys:
            self._entries[key] = shown_at

    def is_cooling_down(self, key: str, now: datetime, cooldown: timedelta) -> bool:
        last = self._entries.get(key)
        if last is None:
            return False
        return now - last < cooldown

    def prune(self, older_than: datetime) -> int:
        stale = [key for key, ts in self._entries.items() if ts < older_than]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def snapshot(self) -> dict[str, datetime]:
        return dict(self._entries)


class InMemoryRotationStore:
    def __init__(self, entries: Optional[dict[str, datetime]] = None):
        self.entries: dict[str, datetime] = dict(entries or {})
        self.saves = 0

    def load_all(self) -> dict[str, datetime]:
        return dict(self.entries)

    def persist(self, entries: dict[str, datetime]) -> None:
        self.entries = dict(entries)
        self.saves += 1


class JsonFileRotationStore:
    """Flat JSON object: ``{identity_key: {"lastShownAt": iso8601}}``."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load_all(self) -> dict[str, datetime]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"cannot read rotation file {self.path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise PersistenceError(f"rotation file {self.path} is not a JSON object")

        out: dict[str, datetime] = {}
        for key, entry in raw.items():
            try:
                out[key] = _parse_ts(entry["lastShownAt"])
            except (TypeError, KeyError, ValueError):
                logger.warning("Skipping malformed rotation entry %r", key)
        return out

    def persist(self, entries: dict[str, datetime]) -> None:
        payload = {
            key: {"lastShownAt": ts.astimezone(timezone.utc).isoformat()}
            for key, ts in sorted(entries.items())
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".rotation-", dir=self.path.parent)
        except OSError as exc:
            raise PersistenceError(f"cannot write rotation file {self.path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise PersistenceError(f"cannot write rotation file {self.path}: {exc}") from exc


class SqlRotationStore:
    """Rotation memory in the ``rotation_memory`` table (SQLite or Postgres)."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path
        self._ready = False

    def _ensure_schema(self) -> None:
        if self._ready:
            return
        run_migrations(self.db_path)
        self._ready = True

    def load_all(self) -> dict[str, datetime]:
        try:
            self._ensure_schema()
            rows = fetch_rotation_entries(self.db_path)
        except Exception as exc:
            raise PersistenceError(f"cannot load rotation memory: {exc}") from exc
        out: dict[str, datetime] = {}
        for key, value in rows:
            try:
                out[key] = _parse_ts(value)
            except ValueError:
                logger.warning("Skipping malformed rotation row %r", key)
        return out

    def persist(self, entries: dict[str, datetime]) -> None:
        try:
            self._ensure_schema()
            replace_rotation_entries(
                {key: ts.astimezone(timezone.utc).isoformat() for key, ts in entries.items()},
                self.db_path,
            )
        except Exception as exc:
            raise PersistenceError(f"cannot save rotation memory: {exc}") from exc
