"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from adroles.adapters.ldap import LdapDirectoryClient
from adroles.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyIdentityUnitOfWork,
    is_started,
    startup,
)
from adroles.config import ConfigurationError, SyncConfig, get_directory_config, get_sync_config
from adroles.domain import administration
from adroles.domain.assignment import AssignmentPlanner, find_all_persons_with_department_name
from adroles.domain.ports.directory import DirectoryClient, DirectorySnapshot
from adroles.domain.ports.unit_of_work import IdentityUnitOfWork
from adroles.domain.reconciliation import AdminGroupPolicy, ReconciliationEngine
from adroles.domain.results import ServiceResult
from adroles.jobs import JobHandle, JobRunner, SessionRegistry

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from types import TracebackType
    from uuid import UUID

    from adroles.domain.administration import IdentityStatistics, SearchKind
    from adroles.domain.model import ADGroup, ADUser, Person, Role, RoleResource
    from adroles.jobs.sessions import Listener, Subscription

UnitOfWorkFactory = Callable[[], IdentityUnitOfWork]
DirectoryClientFactory = Callable[[], DirectoryClient]

ACCOUNT_SYNC_JOB = "account-sync"
GROUP_ROLE_SYNC_JOB = "group-role-sync"
PERSON_IMPORT_JOB = "person-import"
AUTOMATIC_ASSIGNMENT_JOB = "automatic-assignment"

log = getLogger(__name__)


def build_ldap_directory_client(sync_config: SyncConfig | None = None) -> DirectoryClient:
    effective_sync = sync_config or get_sync_config()
    return LdapDirectoryClient(
        config=get_directory_config(),
        marker_attribute=effective_sync.admin_marker_attribute,
    )


@dataclass(slots=True)
class IdentityService:
    """Surface used by the UI/CLI: background submissions plus record level actions.

    Each submission reads a fresh :class:`DirectorySnapshot`; the directory
    client factory is only called once the job runs.
    """

    unit_of_work_factory: UnitOfWorkFactory
    directory_client_factory: DirectoryClientFactory
    sync_config: SyncConfig = field(default_factory=SyncConfig)
    registry: SessionRegistry = field(default_factory=SessionRegistry)
    runner: JobRunner = field(init=False)

    def __post_init__(self) -> None:
        self.runner = JobRunner(self.registry, max_workers=self.sync_config.max_workers)

    def __enter__(self) -> IdentityService:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.shutdown()
        return False

    @property
    def engine(self) -> ReconciliationEngine:
        policy = AdminGroupPolicy(
            keywords=self.sync_config.admin_group_keywords,
            names=self.sync_config.admin_group_names,
        )
        return ReconciliationEngine(self.unit_of_work_factory, admin_policy=policy)

    # Background jobs -----------------------------------------------------------

    def submit_account_sync(self) -> JobHandle:
        def run() -> ServiceResult:
            snapshot = DirectorySnapshot(self.directory_client_factory())
            return self.engine.synchronize_accounts(snapshot)

        return self.runner.submit(ACCOUNT_SYNC_JOB, run)

    def submit_group_role_sync(self) -> JobHandle:
        def run() -> ServiceResult:
            snapshot = DirectorySnapshot(self.directory_client_factory())
            return self.engine.synchronize_groups_as_roles(snapshot)

        return self.runner.submit(GROUP_ROLE_SYNC_JOB, run)

    def submit_person_import(self) -> JobHandle:
        def run() -> ServiceResult:
            snapshot = DirectorySnapshot(self.directory_client_factory())
            return self.engine.synchronize_persons(snapshot)

        return self.runner.submit(PERSON_IMPORT_JOB, run)

    def submit_automatic_assignment(
        self,
        person_ids: Collection[UUID] | None = None,
    ) -> JobHandle:
        selection = frozenset(person_ids) if person_ids else None
        planner = AssignmentPlanner(self.unit_of_work_factory)
        return self.runner.submit(
            AUTOMATIC_ASSIGNMENT_JOB,
            lambda: planner.assign_automatically(selection),
        )

    def register(
        self,
        session_key: str,
        caller_identity: str | None = None,
        listener: Listener | None = None,
    ) -> Subscription:
        return self.registry.register(session_key, caller_identity, listener)

    def unregister(self, session_key: str) -> bool:
        return self.registry.unregister(session_key)

    def shutdown(self, *, wait: bool = True) -> None:
        self.runner.shutdown(wait=wait)

    # Record level actions --------------------------------------------------------

    def verify_connection(self) -> ServiceResult:
        try:
            client = self.directory_client_factory()
        except ConfigurationError as exc:
            log.warning("Directory connection is not configured: %s", exc)
            return ServiceResult.failed(f"Directory connection is not configured: {exc}")
        return administration.verify_connection(client)

    def statistics(self) -> IdentityStatistics:
        return administration.collect_statistics(self.unit_of_work_factory)

    def search(self, kind: SearchKind, term: str) -> Sequence[Person | Role | ADUser | ADGroup]:
        return administration.search(self.unit_of_work_factory, kind, term)

    def persons_with_department(self, name: str) -> list[Person]:
        return find_all_persons_with_department_name(self.unit_of_work_factory, name)

    def change_role_resource(
        self,
        role_ids: Collection[UUID],
        resource: RoleResource,
    ) -> ServiceResult:
        return administration.change_role_resource(self.unit_of_work_factory, role_ids, resource)

    def assign_role_from_department(self, role_id: UUID) -> ServiceResult:
        return administration.assign_role_from_department(self.unit_of_work_factory, role_id)

    def set_employee_status(self, person_ids: Collection[UUID], *, employee: bool) -> ServiceResult:
        return administration.set_employee_status(
            self.unit_of_work_factory, person_ids, employee=employee
        )

    def delete_persons(self, person_ids: Collection[UUID]) -> ServiceResult:
        return administration.delete_persons(self.unit_of_work_factory, person_ids)

    def delete_roles(self, role_ids: Collection[UUID]) -> ServiceResult:
        return administration.delete_roles(self.unit_of_work_factory, role_ids)


def create_identity_service(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    directory_client_factory: DirectoryClientFactory | None = None,
    sync_config: SyncConfig | None = None,
) -> IdentityService:
    """Wire the service against the configured store and directory."""

    effective_sync = sync_config or get_sync_config()
    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyIdentityUnitOfWork
    client_factory = directory_client_factory or partial(
        build_ldap_directory_client, effective_sync
    )
    log.debug("Identity service created (max_workers=%s)", effective_sync.max_workers)
    return IdentityService(
        unit_of_work_factory=unit_of_work_factory,
        directory_client_factory=client_factory,
        sync_config=effective_sync,
    )
