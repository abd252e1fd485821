"""Reconciliation module."""

from .engine import ReconciliationEngine, ValidityState, Verdict, ACCEPTABLE_STATES

__all__ = [
    "ReconciliationEngine",
    "ValidityState",
    "Verdict",
    "ACCEPTABLE_STATES",
]
