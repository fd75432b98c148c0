"""Domain enums for the decision simulation.

Responsibilities:
  - Define Flag, StageRole and Posture identifiers referenced by catalogs.
  - Define narrative clauses with their rendered text.
  - Provide presentation bands for the Robustness Index and driver KPIs.

Invariants:
  - Enum values must remain stable for persistence and catalog files.
  - CLAUSE_METADATA must be complete and deterministic.
"""

from __future__ import annotations

from enum import Enum


# Sticky indicators set by past choices and read by later stages.
class Flag(Enum):
    HARD_INTEGRATION = "HARD_INTEGRATION"
    FRAGILE_TALENT = "FRAGILE_TALENT"
    IT_DEBT = "IT_DEBT"
    FULL_DELIVERY = "FULL_DELIVERY"
    CRED_RESET = "CRED_RESET"
    STRATEGIC_PRIORITIZATION = "STRATEGIC_PRIORITIZATION"
    STABILITY_FIRST = "STABILITY_FIRST"


class StageRole(Enum):
    STANDARD = "STANDARD"
    SYNERGY_RENEGOTIATION = "SYNERGY_RENEGOTIATION"


# Option tags consumed by the delayed-effect rules.
class Posture(Enum):
    NONE = "NONE"
    AMBITION_HOLD = "AMBITION_HOLD"
    STAY_THE_COURSE = "STAY_THE_COURSE"
    STABILIZE = "STABILIZE"
    REPRIORITIZE = "REPRIORITIZE"


FINAL_STAGE_POSTURES = {Posture.STAY_THE_COURSE, Posture.STABILIZE, Posture.REPRIORITIZE}


class NarrativeClause(Enum):
    CRED_REWARDED = "CRED_REWARDED"
    DIRECTION_QUESTIONED = "DIRECTION_QUESTIONED"
    RISK_PENALIZED = "RISK_PENALIZED"
    RISK_REDUCTION_VALUED = "RISK_REDUCTION_VALUED"
    TALENT_INSTABILITY = "TALENT_INSTABILITY"
    RETENTION_SUPPORT = "RETENTION_SUPPORT"
    SYSTEMIC_OVERLOAD = "SYSTEMIC_OVERLOAD"


CLAUSE_METADATA: dict[NarrativeClause, str] = {
    NarrativeClause.CRED_REWARDED: "Market rewards a credible narrative",
    NarrativeClause.DIRECTION_QUESTIONED: "Market questions the strategic direction",
    NarrativeClause.RISK_PENALIZED: "and penalizes elevated execution risk",
    NarrativeClause.RISK_REDUCTION_VALUED: "and values visible risk reduction",
    NarrativeClause.TALENT_INSTABILITY: "while talent instability raises concern",
    NarrativeClause.RETENTION_SUPPORT: "while improved retention supports delivery",
    NarrativeClause.SYSTEMIC_OVERLOAD: (
        "- systemic overload signals increase the chance of a sharp correction."
    ),
}

MUTED_REACTION = "Market reaction is muted; signal strength remains limited."


class Band(Enum):
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


# Driver traffic lights share the same three colours as the score band.
Traffic = Band


class DriverKind(Enum):
    CRED = "cred"
    RISK = "risk"
    CAPACITY = "capacity"


def flag_from_persisted(label: str) -> Flag | None:
    if not label:
        return None
    try:
        return Flag(label)
    except ValueError:
        return None


_missing = [c for c in NarrativeClause if c not in CLAUSE_METADATA]
if _missing:
    raise RuntimeError(f"Missing CLAUSE_METADATA for: {[m.value for m in _missing]}")
