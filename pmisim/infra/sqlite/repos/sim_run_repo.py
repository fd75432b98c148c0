"""SQLite repository for saved simulation runs (sim_run) and final scores (sim_score).

Responsibilities:
  - Upsert and load the serialized {state, completed_stage_count, history} record.
  - Record the Robustness Index once a run is complete.
Must not:
  - Modify engine logic; persistence only.
"""

from __future__ import annotations

import datetime
import sqlite3
from typing import Optional

from pmisim.app_api.dto import SavedRun
from pmisim.core.domain.enums import Band
from pmisim.infra.serialization import dumps_saved_run, loads_saved_run


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


class SimRunRepo:
    """Implements the RunStore port on top of sim_run."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def save(self, run_id: str, run: SavedRun) -> None:
        now = _now_iso()
        self._conn.execute(
            """
            INSERT INTO sim_run (
                run_id,
                catalog_id,
                completed_stage_count,
                payload_json,
                created_at,
                updated_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(run_id) DO UPDATE SET
                catalog_id=excluded.catalog_id,
                completed_stage_count=excluded.completed_stage_count,
                payload_json=excluded.payload_json,
                updated_at=excluded.updated_at
            """,
            (
                run_id,
                run.catalog_id,
                run.completed_stage_count,
                dumps_saved_run(run),
                now,
                now,
            ),
        )
        self._conn.commit()

    def load(self, run_id: str) -> Optional[SavedRun]:
        row = self._conn.execute(
            "SELECT payload_json FROM sim_run WHERE run_id=?",
            (run_id,),
        ).fetchone()
        if row is None or row[0] is None:
            return None
        # An unreadable payload is treated as "no saved run".
        raw = row[0]
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError:
                return None
        try:
            return loads_saved_run(raw)
        except (ValueError, TypeError):
            return None

    def delete(self, run_id: str) -> None:
        self._conn.execute("DELETE FROM sim_run WHERE run_id=?", (run_id,))
        self._conn.execute("DELETE FROM sim_score WHERE run_id=?", (run_id,))
        self._conn.commit()

    def insert_score(self, run_id: str, robustness_index: int, band: Band) -> None:
        self._conn.execute(
            """
            INSERT INTO sim_score (run_id, robustness_index, band, scored_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(run_id) DO UPDATE SET
                robustness_index=excluded.robustness_index,
                band=excluded.band,
                scored_at=excluded.scored_at
            """,
            (run_id, robustness_index, band.value, _now_iso()),
        )
        self._conn.commit()

    def get_score(self, run_id: str) -> Optional[tuple[int, Band]]:
        row = self._conn.execute(
            "SELECT robustness_index, band FROM sim_score WHERE run_id=?",
            (run_id,),
        ).fetchone()
        if row is None:
            return None
        return int(row[0]), Band(row[1])
