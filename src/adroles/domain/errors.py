"""Error taxonomy shared by the reconciliation, assignment and job layers."""

from __future__ import annotations


class AdRolesError(RuntimeError):
    """Base class for errors raised by the adroles domain."""


class ConnectivityError(AdRolesError):
    """The directory is unreachable or rejected the configured credentials."""


class DataQualityError(AdRolesError):
    """Stored data is inconsistent in a way that blocks a decision."""


class StoreWriteError(AdRolesError):
    """Persisting a record failed."""


class SnapshotConsumedError(AdRolesError):
    """A directory snapshot sequence was requested a second time."""
