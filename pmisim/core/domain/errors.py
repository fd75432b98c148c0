"""Error types raised by the simulation engine and orchestrator.

Invariants:
  - Every error is raised before any state is derived; no partial updates.
"""

from __future__ import annotations


class SimulationError(Exception):
    pass


class InvalidInputError(SimulationError):
    """Grade outside 1..6, or an option/stage id unknown to the catalog."""


class InvalidSequenceError(SimulationError):
    """Commit without a grade, out-of-order stage, or a second pending draft."""


class TerminalStateError(SimulationError):
    """The run already holds one committed entry per stage."""


class ConfigurationError(ValueError):
    """Catalog failed validation at load time."""
