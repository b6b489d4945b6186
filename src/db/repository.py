from __future__ import annotations

from pathlib import Path
from typing import Optional

from src.db.connection import get_conn


def fetch_rotation_entries(db_path: Optional[Path] = None) -> list[tuple[str, str]]:
    with get_conn(db_path) as conn:
        rows = conn.execute(
            "SELECT identity_key, last_shown_at FROM rotation_memory ORDER BY identity_key"
        ).fetchall()
        return [(str(r["identity_key"]), str(r["last_shown_at"])) for r in rows]


def replace_rotation_entries(entries: dict[str, str], db_path: Optional[Path] = None) -> None:
    """Write the full rotation map in one transaction; keys absent from ``entries`` are removed."""
    with get_conn(db_path) as conn:
        conn.execute("DELETE FROM rotation_memory")
        if entries:
            conn.executemany(
                """
                INSERT INTO rotation_memory (identity_key, last_shown_at) VALUES (?, ?)
                ON CONFLICT(identity_key) DO UPDATE SET last_shown_at = excluded.last_shown_at
                """,
                sorted(entries.items()),
            )
