from __future__ import annotations

from pathlib import Path
from typing import Optional

from src.db.connection import get_conn, is_postgres

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def split_statements(sql: str) -> list[str]:
    # migration files hold plain DDL; no semicolons inside literals
    return [stmt.strip() for stmt in sql.split(";") if stmt.strip()]


def run_migrations(db_path: Optional[Path] = None) -> None:
    if is_postgres():
        migration_files = sorted((MIGRATIONS_DIR / "postgres").glob("*.sql"))
    else:
        migration_files = sorted(MIGRATIONS_DIR.glob("*.sql"))
    with get_conn(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
              name TEXT PRIMARY KEY,
              applied_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        for migration_file in migration_files:
            already_applied = conn.execute(
                "SELECT 1 FROM schema_migrations WHERE name = ? LIMIT 1",
                (migration_file.name,),
            ).fetchone()
            if already_applied is not None:
                continue
            for statement in split_statements(migration_file.read_text(encoding="utf-8")):
                conn.execute(statement)
            conn.execute(
                "INSERT INTO schema_migrations (name) VALUES (?)",
                (migration_file.name,),
            )


if __name__ == "__main__":
    run_migrations()
    print("Migrations applied.")
