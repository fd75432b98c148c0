"""Enumerate every option path of a catalog and summarize the score distribution.

Purpose:
  - Replay all option combinations with a fixed grade and score each terminal state.
Outputs:
  - Distribution statistics, band counts and the top/bottom paths on stdout.
Example:
  - PYTHONPATH=. python3 -m pmisim.research.path_sweep --grade 3 --top 5
"""

from __future__ import annotations

import argparse
import itertools
from collections import Counter
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np

from pmisim.core.catalog.loader import DEFAULT_CATALOG_ID, load_catalog
from pmisim.core.catalog.models import StageCatalog
from pmisim.core.domain.errors import ConfigurationError, InvalidInputError
from pmisim.core.domain.models import INITIAL_STATE, KpiState
from pmisim.core.engine.decision import apply_decision
from pmisim.core.engine.grading import apply_grade, validate_grade
from pmisim.core.scoring.robustness import band_for_score, compute_robustness


@dataclass(frozen=True)
class PathResult:
    path: tuple[str, ...]
    state: KpiState
    score: int


def iter_paths(catalog: StageCatalog) -> Iterator[tuple[str, ...]]:
    return itertools.product(*[stage.option_ids() for stage in catalog.stages])


def replay_path(catalog: StageCatalog, path: Sequence[str], grade: int) -> KpiState:
    state = INITIAL_STATE
    for stage, option_id in zip(catalog.stages, path):
        draft = apply_grade(apply_decision(state, catalog, stage.id, option_id), grade)
        state = draft.next
    return state


def sweep(catalog: StageCatalog, grade: int) -> list[PathResult]:
    results: list[PathResult] = []
    for path in iter_paths(catalog):
        state = replay_path(catalog, path, grade)
        results.append(PathResult(path=tuple(path), state=state, score=compute_robustness(state)))
    return results


def summarize(results: Sequence[PathResult]) -> dict[str, float]:
    if not results:
        return {"n": 0}
    scores = np.asarray([r.score for r in results], dtype=float)
    return {
        "n": int(scores.size),
        "mean": float(np.mean(scores)),
        "std": float(np.std(scores)),
        "min": float(np.min(scores)),
        "p25": float(np.quantile(scores, 0.25)),
        "median": float(np.quantile(scores, 0.50)),
        "p75": float(np.quantile(scores, 0.75)),
        "max": float(np.max(scores)),
    }


def _fmt_path(catalog: StageCatalog, path: Sequence[str]) -> str:
    return ",".join(f"{stage.id}={option_id}" for stage, option_id in zip(catalog.stages, path))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Score every decision path of a catalog")
    parser.add_argument("--catalog", default=DEFAULT_CATALOG_ID)
    parser.add_argument("--grade", type=int, default=3)
    parser.add_argument("--top", type=int, default=5)
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        grade = validate_grade(args.grade)
        catalog = load_catalog(args.catalog)
    except (InvalidInputError, ConfigurationError) as exc:
        print(f"SUMMARY status=ERROR error={type(exc).__name__} message={exc}")
        raise SystemExit(2)
    results = sweep(catalog, grade)
    stats = summarize(results)

    print(f"SUMMARY catalog={catalog.catalog_id} grade={grade} paths={stats['n']}")
    for key in ("mean", "std", "min", "p25", "median", "p75", "max"):
        if key in stats:
            print(f"SUMMARY {key}={stats[key]:.2f}")
    bands = Counter(band_for_score(r.score).value for r in results)
    print("SUMMARY bands=" + ",".join(f"{name}:{bands.get(name, 0)}" for name in ("GREEN", "YELLOW", "RED")))

    ranked = sorted(results, key=lambda r: (-r.score, r.path))
    for label, rows in (("TOP", ranked[: args.top]), ("BOTTOM", ranked[-args.top :] if args.top > 0 else [])):
        for row in rows:
            print(f"{label} score={row.score} path={_fmt_path(catalog, row.path)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
