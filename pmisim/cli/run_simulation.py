"""Replay a decision path through the simulation and print the outcome.

Purpose:
  - Apply (stage, option, grade) choices in order and report each transition.
Inputs:
  - CLI args: catalog reference, choices, optional SQLite DB and run id.
Outputs:
  - Printed per-stage lines and SUMMARY key=value lines to stdout.
Example:
  - PYTHONPATH=. python3 -m pmisim.cli.run_simulation --choices DG1=B:2,DG2=C:3,DG3=B:2,DG4=C:2,DG5=C:2
"""

from __future__ import annotations

import argparse
import sqlite3
import uuid
from typing import List, Optional, Sequence

from pmisim.app_api.facade import PmiSimulationApplication
from pmisim.cli._debug_utils import _dbg, _debug_enabled
from pmisim.core.catalog.loader import DEFAULT_CATALOG_ID, load_catalog
from pmisim.core.domain.errors import ConfigurationError, SimulationError
from pmisim.core.engine.decision import set_engine_debug
from pmisim.core.history.trends import TREND_SPECS, trend_markers, trend_series
from pmisim.infra.sqlite.db import get_connection
from pmisim.infra.sqlite.repos.sim_run_repo import SimRunRepo


def parse_choices(raw: str) -> List[tuple[str, str, int]]:
    choices: List[tuple[str, str, int]] = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        if "=" not in item or ":" not in item:
            raise ValueError(f"Choice '{item}' must look like STAGE=OPTION:GRADE")
        stage_id, rest = item.split("=", 1)
        option_id, grade_raw = rest.split(":", 1)
        try:
            grade = int(grade_raw)
        except ValueError:
            raise ValueError(f"Grade in '{item}' must be an integer") from None
        choices.append((stage_id.strip(), option_id.strip(), grade))
    return choices


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay a decision path and print the Robustness Index")
    parser.add_argument("--catalog", default=DEFAULT_CATALOG_ID, help="Catalog id or JSON path")
    parser.add_argument("--choices", required=True, help="Comma list of STAGE=OPTION:GRADE")
    parser.add_argument("--db", default=None, help="SQLite database path for saving the run")
    parser.add_argument("--run-id", default=None, help="Run id (defaults to a new uuid)")
    parser.add_argument("--resume", action="store_true", help="Continue a saved run from --db")
    parser.add_argument("--print-history", action="store_true", help="Print trend series at the end")
    parser.add_argument("--debug", action="store_true", help="Print engine diagnostics")
    return parser.parse_args(argv)


def _print_history(app: PmiSimulationApplication) -> None:
    for field, spec in TREND_SPECS.items():
        series = trend_series(app.history, field)
        markers = trend_markers(series, spec)
        cells = " ".join(f"{value:.1f}/{marker.value}" for value, marker in zip(series, markers))
        print(f"TREND {field} {cells}")


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.resume and not args.db:
        raise SystemExit("ERROR: --resume requires --db")

    try:
        catalog = load_catalog(args.catalog)
        choices = parse_choices(args.choices)
    except (ConfigurationError, ValueError) as exc:
        print(f"SUMMARY status=ERROR message={exc}")
        raise SystemExit(2)

    run_id = args.run_id or str(uuid.uuid4())
    conn: Optional[sqlite3.Connection] = None
    try:
        if _debug_enabled(args):
            set_engine_debug(lambda msg: _dbg(args, msg))
        try:
            conn = get_connection(args.db) if args.db else None
        except sqlite3.Error as exc:
            print(f"SUMMARY status=ERROR error={type(exc).__name__} message={exc}")
            raise SystemExit(2)

        store = SimRunRepo(conn) if conn is not None else None
        app = PmiSimulationApplication(catalog, store=store, run_id=run_id if store is not None else None)
        if args.resume:
            resumed = app.resume()
            _dbg(args, f"resume run_id={run_id} resumed={resumed} completed={app.completed_stage_count}")

        try:
            for stage_id, option_id, grade in choices:
                draft = app.select_option(stage_id, option_id)
                _dbg(args, f"draft stage={stage_id} option={option_id} stress={draft.stress}")
                app.set_grade(grade)
                entry = app.proceed()
                print(
                    f"{entry.stage_id}={entry.option_id} grade={entry.grade} "
                    f"share={entry.next.share:.1f} synergy={entry.next.synergy:.1f} "
                    f"attrition={entry.next.attrition:.2f} cred={entry.next.cred:.0f} "
                    f"risk={entry.next.risk:.0f} capacity={entry.next.capacity:.0f} "
                    f"feasibility={entry.feasibility:.3f}"
                )
                print(f"  {entry.narrative}")
        except (SimulationError, sqlite3.Error) as exc:
            print(f"SUMMARY status=ERROR error={type(exc).__name__} message={exc}")
            raise SystemExit(2)

        if args.print_history:
            _print_history(app)

        print(f"SUMMARY run_id={run_id}")
        print(f"SUMMARY completed_stages={app.completed_stage_count}/{len(catalog)}")
        if app.is_complete():
            score = app.robustness()
            band = app.robustness_band()
            if store is not None:
                store.insert_score(run_id, score, band)
            print(f"SUMMARY robustness_index={score} band={band.value}")
        else:
            print("SUMMARY status=INCOMPLETE")
    finally:
        set_engine_debug(None)
        if conn is not None:
            conn.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
