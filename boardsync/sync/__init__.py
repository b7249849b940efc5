"""Derivation rules and the convergence guard."""

from boardsync.sync.guard import (
    ConvergenceGuard,
    GuardDecision,
    GuardState,
    mark_written,
    marker_value,
)

__all__ = [
    "ConvergenceGuard",
    "GuardDecision",
    "GuardState",
    "mark_written",
    "marker_value",
]
