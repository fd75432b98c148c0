"""Load and validate stage catalogs from JSON.

Responsibilities:
  - Resolve a catalog reference (bundled id or file path).
  - Parse and validate every field; raise ConfigurationError on any defect.

Invariants:
  - Validation happens once at load time, never during a transition.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pmisim.core.domain.enums import FINAL_STAGE_POSTURES, Flag, Posture, StageRole
from pmisim.core.domain.errors import ConfigurationError
from .models import OptionDef, StageCatalog, StageDef

DEFAULT_CATALOG_ID = "pmi_v1"


def _catalogs_dir() -> Path:
    return Path(__file__).resolve().parent / "catalogs"


def _require(payload: dict[str, Any], key: str, expected_type: type, where: str) -> Any:
    if key not in payload:
        raise ConfigurationError(f"Missing required field '{key}' in {where}")
    value = payload[key]
    if expected_type is float:
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise ConfigurationError(f"Field '{key}' in {where} must be a number")
        return float(value)
    if not isinstance(value, expected_type):
        raise ConfigurationError(f"Field '{key}' in {where} must be {expected_type.__name__}")
    return value


def _optional(payload: dict[str, Any], key: str, expected_type: type, where: str) -> Any:
    if payload.get(key) is None:
        return None
    return _require(payload, key, expected_type, where)


def _parse_enum(enum_cls: type, raw: str, where: str) -> Any:
    try:
        return enum_cls(raw)
    except ValueError:
        raise ConfigurationError(f"Unknown {enum_cls.__name__} '{raw}' in {where}") from None


def _parse_flags(raw: Any, where: str) -> tuple[tuple[Flag, bool], ...]:
    if raw is None:
        return ()
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Field 'set_flags' in {where} must be an object")
    parsed: list[tuple[Flag, bool]] = []
    for name in sorted(raw):
        value = raw[name]
        if not isinstance(value, bool):
            raise ConfigurationError(f"Flag '{name}' in {where} must be true or false")
        parsed.append((_parse_enum(Flag, name, where), value))
    return tuple(parsed)


def _parse_option(payload: Any, stage_id: str) -> OptionDef:
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Option entries of stage '{stage_id}' must be objects")
    option_id = _require(payload, "id", str, f"stage '{stage_id}' option")
    where = f"option '{stage_id}/{option_id}'"
    base_synergy = _require(payload, "base_synergy", float, where)
    if base_synergy < 0:
        raise ConfigurationError(f"Field 'base_synergy' in {where} must be >= 0")
    posture_raw = payload.get("posture", Posture.NONE.value)
    return OptionDef(
        id=option_id,
        title=_require(payload, "title", str, where),
        blurb=payload.get("blurb", "") or "",
        base_synergy=base_synergy,
        d_attrition=_require(payload, "d_attrition", float, where),
        d_risk=_require(payload, "d_risk", float, where),
        d_cred=_require(payload, "d_cred", float, where),
        d_capacity=_require(payload, "d_capacity", float, where),
        posture=_parse_enum(Posture, posture_raw, where),
        ceiling_override=_optional(payload, "ceiling_override", float, where),
        guidance_shock=_optional(payload, "guidance_shock", float, where),
        set_flags=_parse_flags(payload.get("set_flags"), where),
        market_note=_optional(payload, "market_note", str, where),
    )


def _parse_stage(payload: Any) -> StageDef:
    if not isinstance(payload, dict):
        raise ConfigurationError("Stage entries must be objects")
    stage_id = _require(payload, "id", str, "stage")
    where = f"stage '{stage_id}'"
    raw_options = _require(payload, "options", list, where)
    if not raw_options:
        raise ConfigurationError(f"Stage '{stage_id}' must offer at least one option")
    options = tuple(_parse_option(item, stage_id) for item in raw_options)
    seen: set[str] = set()
    for option in options:
        if option.id in seen:
            raise ConfigurationError(f"Duplicate option id '{option.id}' in stage '{stage_id}'")
        seen.add(option.id)
    return StageDef(
        id=stage_id,
        title=_require(payload, "title", str, where),
        context=payload.get("context", "") or "",
        role=_parse_enum(StageRole, payload.get("role", StageRole.STANDARD.value), where),
        options=options,
    )


def validate_catalog(catalog: StageCatalog) -> None:
    if not catalog.stages:
        raise ConfigurationError(f"Catalog '{catalog.catalog_id}' has no stages")

    stage_ids = catalog.stage_ids()
    if len(set(stage_ids)) != len(stage_ids):
        raise ConfigurationError(f"Catalog '{catalog.catalog_id}' has duplicate stage ids")

    renegotiation = [s for s in catalog.stages if s.role == StageRole.SYNERGY_RENEGOTIATION]
    if len(renegotiation) != 1:
        raise ConfigurationError(
            f"Catalog '{catalog.catalog_id}' must declare exactly one "
            f"{StageRole.SYNERGY_RENEGOTIATION.value} stage, found {len(renegotiation)}"
        )

    final_id = stage_ids[-1]
    for stage in catalog.stages:
        is_renegotiation = stage.role == StageRole.SYNERGY_RENEGOTIATION
        for option in stage.options:
            where = f"option '{stage.id}/{option.id}'"
            if not is_renegotiation:
                if option.ceiling_override is not None or option.guidance_shock is not None:
                    raise ConfigurationError(
                        f"{where} declares ceiling/guidance fields outside the renegotiation stage"
                    )
                if option.posture == Posture.AMBITION_HOLD:
                    raise ConfigurationError(f"{where} uses AMBITION_HOLD outside the renegotiation stage")
            elif not option.market_note:
                raise ConfigurationError(f"{where} requires a market_note")
            if option.posture in FINAL_STAGE_POSTURES and stage.id != final_id:
                raise ConfigurationError(
                    f"{where} uses {option.posture.value}, which is only valid on the final stage"
                )


def parse_catalog(payload: Any) -> StageCatalog:
    if not isinstance(payload, dict):
        raise ConfigurationError("Catalog must be a JSON object")
    raw_stages = _require(payload, "stages", list, "catalog")
    catalog = StageCatalog(
        catalog_id=_require(payload, "catalog_id", str, "catalog"),
        description=payload.get("description", "") or "",
        stages=tuple(_parse_stage(item) for item in raw_stages),
    )
    validate_catalog(catalog)
    return catalog


def resolve_catalog(ref: str, catalogs_dir: Path | None = None) -> Path:
    base_dir = catalogs_dir if catalogs_dir is not None else _catalogs_dir()
    bundled = base_dir / f"{ref}.json"
    if bundled.exists():
        return bundled
    path = Path(ref)
    if path.suffix == ".json" and path.is_file():
        return path
    raise ConfigurationError(f"Unknown catalog: {ref}")


def load_catalog(ref: str = DEFAULT_CATALOG_ID, catalogs_dir: Path | None = None) -> StageCatalog:
    path = resolve_catalog(ref, catalogs_dir=catalogs_dir)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Catalog file {path} is not valid JSON: {exc}") from exc
    return parse_catalog(payload)
