"""Background jobs and the session notification registry."""

from __future__ import annotations

from .runner import InvalidJobTransitionError, JobHandle, JobRunner, JobState
from .sessions import ServiceEvent, SessionRegistry, Subscription

__all__ = [
    "InvalidJobTransitionError",
    "JobHandle",
    "JobRunner",
    "JobState",
    "ServiceEvent",
    "SessionRegistry",
    "Subscription",
]
