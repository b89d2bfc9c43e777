"""Process-wide table of attached sessions and their notification inboxes.

A result is delivered to every session registered at the moment it is
published. Nothing is buffered for sessions that register later.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from queue import Empty, Queue
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from adroles.domain.results import ServiceResult

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ServiceEvent:
    """Terminal result of one submitted job."""

    job_id: UUID
    job_name: str
    result: ServiceResult


type Listener = Callable[[ServiceEvent], None]


@dataclass(slots=True)
class Subscription:
    session_key: str
    caller_identity: str | None = None
    listener: Listener | None = None
    inbox: Queue[ServiceEvent] = field(default_factory=Queue[ServiceEvent], repr=False)

    def deliver(self, event: ServiceEvent) -> None:
        self.inbox.put(event)
        if self.listener is not None:
            self.listener(event)

    def next_event(self, timeout: float | None = None) -> ServiceEvent:
        """Block until an event arrives; raises :class:`queue.Empty` on timeout."""
        return self.inbox.get(timeout=timeout)

    def drain(self) -> list[ServiceEvent]:
        events: list[ServiceEvent] = []
        while True:
            try:
                events.append(self.inbox.get_nowait())
            except Empty:
                return events


class SessionRegistry:
    def __init__(self) -> None:
        self._subscriptions: dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def register(
        self,
        session_key: str,
        caller_identity: str | None = None,
        listener: Listener | None = None,
    ) -> Subscription:
        """Create the subscription for ``session_key`` or reuse the existing one."""

        with self._lock:
            subscription = self._subscriptions.get(session_key)
            if subscription is None:
                subscription = Subscription(
                    session_key=session_key,
                    caller_identity=caller_identity,
                    listener=listener,
                )
                self._subscriptions[session_key] = subscription
                log.debug("Registered session %s", session_key)
                return subscription
            if caller_identity is not None:
                subscription.caller_identity = caller_identity
            if listener is not None:
                subscription.listener = listener
            return subscription

    def unregister(self, session_key: str) -> bool:
        with self._lock:
            removed = self._subscriptions.pop(session_key, None)
        if removed is not None:
            log.debug("Unregistered session %s", session_key)
        return removed is not None

    def is_registered(self, session_key: str) -> bool:
        with self._lock:
            return session_key in self._subscriptions

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def broadcast(
        self,
        event: ServiceEvent,
        *,
        on_snapshot: Callable[[], None] | None = None,
    ) -> int:
        """Deliver ``event`` to the sessions registered right now; return how many.

        ``on_snapshot`` runs while registrations are blocked, right after the
        recipients were fixed.
        """

        with self._lock:
            recipients = tuple(self._subscriptions.values())
            if on_snapshot is not None:
                on_snapshot()
        for subscription in recipients:
            try:
                subscription.deliver(event)
            except Exception:
                log.exception(
                    "Listener of session %s failed for job %s",
                    subscription.session_key,
                    event.job_id,
                )
        return len(recipients)
