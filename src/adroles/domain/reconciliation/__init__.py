"""Reconciliation of the directory mirror (accounts, groups, group backed roles).

Flow per run:
1) enumerate a directory snapshot lazily
2) look up each record by distinguished name; create or update it
3) correlate accounts with persons / make sure each group backs a role
4) commit per record
5) after a complete enumeration, flag records missing from it as stale
"""

from __future__ import annotations

from .engine import ReconciliationEngine, RecordOutcome, RoleOutcome, SyncCounters
from .policy import AdminGroupPolicy

__all__ = [
    "AdminGroupPolicy",
    "ReconciliationEngine",
    "RecordOutcome",
    "RoleOutcome",
    "SyncCounters",
]
