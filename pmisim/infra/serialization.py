"""JSON codec for states, history entries and saved runs.

Responsibilities:
  - Convert domain models to plain JSON-compatible dicts and back.
Must not:
  - Round numeric values; floats are written with repr precision so a
    round trip reproduces identical values.
"""

from __future__ import annotations

import json
import math
from typing import Any

from pmisim.app_api.dto import SavedRun
from pmisim.core.domain.enums import flag_from_persisted
from pmisim.core.domain.models import KPI_FIELDS, FlagSet, HistoryEntry, KpiState, StateDeltas


def _require_number(payload: dict[str, Any], key: str) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Field '{key}' must be a number")
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"Field '{key}' must be finite")
    return value


def _require_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ValueError(f"Field '{key}' must be a string")
    return value


def _require_int(payload: dict[str, Any], key: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Field '{key}' must be an integer")
    return value


def _require_dict(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a JSON object")
    return value


def state_to_dict(state: KpiState) -> dict[str, Any]:
    payload: dict[str, Any] = {name: getattr(state, name) for name in KPI_FIELDS}
    payload["flags"] = state.flags.as_sorted_names()
    return payload


def state_from_dict(raw: Any) -> KpiState:
    payload = _require_dict(raw, "state")
    raw_flags = payload.get("flags", [])
    if not isinstance(raw_flags, list):
        raise ValueError("Field 'flags' must be a list")
    flags = []
    for label in raw_flags:
        flag = flag_from_persisted(label) if isinstance(label, str) else None
        if flag is None:
            raise ValueError(f"Unknown flag: {label!r}")
        flags.append(flag)
    values = {name: _require_number(payload, name) for name in KPI_FIELDS}
    return KpiState(flags=FlagSet(raised=frozenset(flags)), **values)


def entry_to_dict(entry: HistoryEntry) -> dict[str, Any]:
    return {
        "stage_id": entry.stage_id,
        "option_id": entry.option_id,
        "prev": state_to_dict(entry.prev),
        "next": state_to_dict(entry.next),
        "deltas": {name: getattr(entry.deltas, name) for name in KPI_FIELDS},
        "feasibility": entry.feasibility,
        "grade": entry.grade,
        "narrative": entry.narrative,
    }


def entry_from_dict(raw: Any) -> HistoryEntry:
    payload = _require_dict(raw, "history entry")
    deltas = _require_dict(payload.get("deltas"), "deltas")
    return HistoryEntry(
        stage_id=_require_str(payload, "stage_id"),
        option_id=_require_str(payload, "option_id"),
        prev=state_from_dict(payload.get("prev")),
        next=state_from_dict(payload.get("next")),
        deltas=StateDeltas(**{name: _require_number(deltas, name) for name in KPI_FIELDS}),
        feasibility=_require_number(payload, "feasibility"),
        grade=_require_int(payload, "grade"),
        narrative=_require_str(payload, "narrative"),
    )


def saved_run_to_dict(run: SavedRun) -> dict[str, Any]:
    return {
        "catalog_id": run.catalog_id,
        "state": state_to_dict(run.state),
        "completed_stage_count": run.completed_stage_count,
        "history": [entry_to_dict(entry) for entry in run.history],
    }


def saved_run_from_dict(raw: Any) -> SavedRun:
    payload = _require_dict(raw, "saved run")
    raw_history = payload.get("history", [])
    if not isinstance(raw_history, list):
        raise ValueError("Field 'history' must be a list")
    return SavedRun(
        catalog_id=_require_str(payload, "catalog_id"),
        state=state_from_dict(payload.get("state")),
        completed_stage_count=_require_int(payload, "completed_stage_count"),
        history=tuple(entry_from_dict(item) for item in raw_history),
    )


def dumps_saved_run(run: SavedRun) -> str:
    return json.dumps(saved_run_to_dict(run), separators=(",", ":"), ensure_ascii=False)


def loads_saved_run(text: str) -> SavedRun:
    return saved_run_from_dict(json.loads(text))
