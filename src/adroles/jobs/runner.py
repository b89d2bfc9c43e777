"""Background execution of reconciliation and assignment jobs.

Every submission runs on its own worker, reaches exactly one terminal state and
publishes its result through the :class:`SessionRegistry`. There is no retry
and no cancellation; a retry is a new submission.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Literal
from uuid import UUID, uuid4

from adroles.config.errors import ConfigurationError
from adroles.config.sync import DEFAULT_MAX_WORKERS
from adroles.domain.errors import AdRolesError
from adroles.domain.results import ServiceResult
from adroles.jobs.sessions import ServiceEvent, SessionRegistry

if TYPE_CHECKING:
    from types import TracebackType

log = getLogger(__name__)

type Operation = Callable[[], ServiceResult]


class JobState(StrEnum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED_SUCCESS = "completed_success"
    COMPLETED_FAILURE = "completed_failure"

    @property
    def is_terminal(self) -> bool:
        return self in {JobState.COMPLETED_SUCCESS, JobState.COMPLETED_FAILURE}


_ALLOWED_TRANSITIONS: dict[JobState, frozenset[JobState]] = {
    JobState.QUEUED: frozenset({JobState.RUNNING}),
    JobState.RUNNING: frozenset({JobState.COMPLETED_SUCCESS, JobState.COMPLETED_FAILURE}),
    JobState.COMPLETED_SUCCESS: frozenset(),
    JobState.COMPLETED_FAILURE: frozenset(),
}


class InvalidJobTransitionError(RuntimeError):
    """Raised when a job would leave a terminal state or skip a state."""


class JobHandle:
    """Caller-side view of one submission."""

    def __init__(self, job_id: UUID, name: str) -> None:
        self.job_id = job_id
        self.name = name
        self._state = JobState.QUEUED
        self._lock = threading.Lock()
        self._future: Future[ServiceResult] | None = None

    def __repr__(self) -> str:
        return f"JobHandle(job_id={self.job_id}, name={self.name!r}, state={self.state})"

    @property
    def state(self) -> JobState:
        with self._lock:
            return self._state

    def done(self) -> bool:
        return self.state.is_terminal

    def result(self, timeout: float | None = None) -> ServiceResult:
        """Wait for the terminal result; it has been broadcast when this returns."""
        if self._future is None:
            raise RuntimeError(f"Job {self.job_id} was never scheduled")
        return self._future.result(timeout=timeout)

    def _transition(self, target: JobState) -> None:
        with self._lock:
            if target not in _ALLOWED_TRANSITIONS[self._state]:
                raise InvalidJobTransitionError(
                    f"Job {self.job_id} cannot move from {self._state} to {target}"
                )
            self._state = target


class JobRunner:
    def __init__(
        self,
        registry: SessionRegistry,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.registry = registry
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="adroles-job",
        )

    def __enter__(self) -> JobRunner:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.shutdown()
        return False

    def submit(self, name: str, operation: Operation) -> JobHandle:
        handle = JobHandle(job_id=uuid4(), name=name)
        log.info("Job %s (%s) queued", handle.job_id, name)
        handle._future = self._executor.submit(self._run, handle, operation)  # noqa: SLF001
        return handle

    def shutdown(self, *, wait: bool = True) -> None:
        log.debug("Shutting down job runner")
        self._executor.shutdown(wait=wait)

    def _run(self, handle: JobHandle, operation: Operation) -> ServiceResult:
        handle._transition(JobState.RUNNING)  # noqa: SLF001
        log.info("Job %s (%s) running", handle.job_id, handle.name)
        try:
            result = operation()
        except (AdRolesError, ConfigurationError) as exc:
            log.warning("Job %s (%s) failed: %s", handle.job_id, handle.name, exc)
            result = ServiceResult.failed(f"{handle.name} failed: {exc}")
        except Exception as exc:
            log.exception("Job %s (%s) failed unexpectedly", handle.job_id, handle.name)
            result = ServiceResult.failed(f"{handle.name} failed unexpectedly: {exc}")

        terminal = JobState.COMPLETED_SUCCESS if result.success else JobState.COMPLETED_FAILURE
        delivered = self.registry.broadcast(
            ServiceEvent(job_id=handle.job_id, job_name=handle.name, result=result),
            on_snapshot=lambda: handle._transition(terminal),  # noqa: SLF001
        )
        log.info(
            "Job %s (%s) %s, notified %s sessions",
            handle.job_id,
            handle.name,
            terminal,
            delivered,
        )
        return result
