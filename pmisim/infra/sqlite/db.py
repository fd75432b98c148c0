"""SQLite connection helpers."""

from __future__ import annotations

import sqlite3

from .migrator import apply_migrations


def get_connection(db_path: str, migrate: bool = True) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    if migrate:
        apply_migrations(conn)
        conn.commit()
    return conn
