"""SQLite schema migration helpers for sim_run and related tables.

Responsibilities:
  - Create/upgrade schema deterministically, in file-name order.
Must not:
  - Embed business logic; migrations only.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path


def _migrations_dir() -> Path:
    return Path(__file__).resolve().parent / "migrations"


def apply_migrations(conn: sqlite3.Connection) -> list[str]:
    applied: list[str] = []
    for migration in sorted(_migrations_dir().glob("*.sql")):
        conn.executescript(migration.read_text(encoding="utf-8"))
        applied.append(migration.name)
    return applied
