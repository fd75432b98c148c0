"""Catalog data carriers: stages and their options.

Responsibilities:
  - Hold the validated, immutable stage/option configuration.
  - Provide lookups by id and stage position queries used by the engine.
Must not:
  - Implement engine rules; positions and roles are the only semantics here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from pmisim.core.domain.enums import Flag, Posture, StageRole
from pmisim.core.domain.errors import InvalidInputError


@dataclass(frozen=True)
class OptionDef:
    id: str
    title: str
    base_synergy: float
    d_attrition: float
    d_risk: float
    d_cred: float
    d_capacity: float
    blurb: str = ""
    posture: Posture = Posture.NONE
    ceiling_override: Optional[float] = None
    guidance_shock: Optional[float] = None
    set_flags: tuple[tuple[Flag, bool], ...] = ()
    market_note: Optional[str] = None

    def flag_overrides(self) -> dict[Flag, bool]:
        return dict(self.set_flags)


@dataclass(frozen=True)
class StageDef:
    id: str
    title: str
    options: tuple[OptionDef, ...]
    role: StageRole = StageRole.STANDARD
    context: str = ""

    def option(self, option_id: str) -> OptionDef:
        for option in self.options:
            if option.id == option_id:
                return option
        raise InvalidInputError(f"Unknown option '{option_id}' for stage '{self.id}'")

    def option_ids(self) -> list[str]:
        return [option.id for option in self.options]


@dataclass(frozen=True)
class StageCatalog:
    catalog_id: str
    description: str
    stages: tuple[StageDef, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.stages)

    def stage(self, stage_id: str) -> StageDef:
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        raise InvalidInputError(f"Unknown stage '{stage_id}' in catalog '{self.catalog_id}'")

    def index_of(self, stage_id: str) -> int:
        for idx, stage in enumerate(self.stages):
            if stage.id == stage_id:
                return idx
        raise InvalidInputError(f"Unknown stage '{stage_id}' in catalog '{self.catalog_id}'")

    def stage_ids(self) -> list[str]:
        return [stage.id for stage in self.stages]

    def is_final(self, stage_id: str) -> bool:
        return self.index_of(stage_id) == len(self.stages) - 1

    def is_in_final_two(self, stage_id: str) -> bool:
        return self.index_of(stage_id) >= len(self.stages) - 2

    def is_renegotiation(self, stage_id: str) -> bool:
        return self.stage(stage_id).role == StageRole.SYNERGY_RENEGOTIATION
