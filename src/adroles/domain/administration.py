"""Administrative services working directly on the store.

These back the record level actions of the user interface: dashboard figures,
bulk deletions, reclassification of roles and connection checks.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from adroles.domain.errors import ConnectivityError, StoreWriteError
from adroles.domain.model import RoleResource
from adroles.domain.ports.unit_of_work import IdentityUnitOfWork
from adroles.domain.results import ServiceResult

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from uuid import UUID

    from adroles.domain.model import ADGroup, ADUser, Person, Role
    from adroles.domain.ports.directory import DirectoryClient

UnitOfWorkFactory = Callable[[], IdentityUnitOfWork]
SearchKind = Literal["persons", "roles", "ad-users", "ad-groups"]

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IdentityStatistics:
    persons: int
    roles: int
    organizational_roles: int
    ad_users: int
    ad_groups: int
    admin_groups: int
    password_never_expires: int
    stale_ad_users: int
    stale_ad_groups: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def collect_statistics(unit_of_work_factory: UnitOfWorkFactory) -> IdentityStatistics:
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        return IdentityStatistics(
            persons=repositories.persons.count_by(),
            roles=repositories.roles.count_by(),
            organizational_roles=repositories.roles.count_by(
                role_resource=RoleResource.ORGANIZATIONAL
            ),
            ad_users=repositories.ad_users.count_by(),
            ad_groups=repositories.ad_groups.count_by(),
            admin_groups=repositories.ad_groups.count_by(admin_group=True),
            password_never_expires=repositories.ad_users.count_by(password_expires=False),
            stale_ad_users=repositories.ad_users.count_by(stale=True),
            stale_ad_groups=repositories.ad_groups.count_by(stale=True),
        )


def search(
    unit_of_work_factory: UnitOfWorkFactory,
    kind: SearchKind,
    term: str,
) -> Sequence[Person | Role | ADUser | ADGroup]:
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        match kind:
            case "persons":
                return list(repositories.persons.search(term))
            case "roles":
                return list(repositories.roles.search(term))
            case "ad-users":
                return list(repositories.ad_users.search(term))
            case "ad-groups":
                return list(repositories.ad_groups.search(term))


def change_role_resource(
    unit_of_work_factory: UnitOfWorkFactory,
    role_ids: Collection[UUID],
    resource: RoleResource,
) -> ServiceResult:
    """Reclassify the selected roles; a later group sync never reverts this."""

    changed = 0
    missing = 0
    try:
        with unit_of_work_factory() as uow:
            for role_id in role_ids:
                role = uow.repositories.roles.get(role_id)
                if role is None:
                    missing += 1
                    continue
                if role.role_resource is resource:
                    continue
                role.role_resource = resource
                uow.commit()
                changed += 1
    except StoreWriteError as exc:
        return ServiceResult.failed(
            f"Changing the role resource failed: {exc}",
            counts={"changed": changed, "missing": missing},
        )
    log.info("Changed resource of %s roles to %s", changed, resource)
    return ServiceResult.ok(
        f"{changed} roles changed to {resource}",
        counts={"changed": changed, "missing": missing},
    )


def set_employee_status(
    unit_of_work_factory: UnitOfWorkFactory,
    person_ids: Collection[UUID],
    *,
    employee: bool,
) -> ServiceResult:
    changed = 0
    try:
        with unit_of_work_factory() as uow:
            for person_id in person_ids:
                person = uow.repositories.persons.get(person_id)
                if person is None or person.employee == employee:
                    continue
                person.employee = employee
                uow.commit()
                changed += 1
    except StoreWriteError as exc:
        return ServiceResult.failed(
            f"Changing the employee status failed: {exc}", counts={"changed": changed}
        )
    return ServiceResult.ok(f"{changed} persons updated", counts={"changed": changed})


def delete_persons(
    unit_of_work_factory: UnitOfWorkFactory,
    person_ids: Collection[UUID],
) -> ServiceResult:
    """Delete persons after detaching their role and account associations."""

    deleted = 0
    try:
        with unit_of_work_factory() as uow:
            for person_id in person_ids:
                person = uow.repositories.persons.get(person_id)
                if person is None:
                    continue
                person.detach()
                uow.repositories.persons.remove(person)
                uow.commit()
                deleted += 1
    except StoreWriteError as exc:
        return ServiceResult.failed(f"Deleting persons failed: {exc}", counts={"deleted": deleted})
    log.info("Deleted %s persons", deleted)
    return ServiceResult.ok(f"{deleted} persons deleted", counts={"deleted": deleted})


def delete_roles(
    unit_of_work_factory: UnitOfWorkFactory,
    role_ids: Collection[UUID],
) -> ServiceResult:
    deleted = 0
    try:
        with unit_of_work_factory() as uow:
            for role_id in role_ids:
                role = uow.repositories.roles.get(role_id)
                if role is None:
                    continue
                role.detach()
                uow.repositories.roles.remove(role)
                uow.commit()
                deleted += 1
    except StoreWriteError as exc:
        return ServiceResult.failed(f"Deleting roles failed: {exc}", counts={"deleted": deleted})
    log.info("Deleted %s roles", deleted)
    return ServiceResult.ok(f"{deleted} roles deleted", counts={"deleted": deleted})


def assign_role_from_department(
    unit_of_work_factory: UnitOfWorkFactory,
    role_id: UUID,
) -> ServiceResult:
    """Assign every person whose department carries the role's name to the role."""

    added = 0
    try:
        with unit_of_work_factory() as uow:
            role = uow.repositories.roles.get(role_id)
            if role is None:
                return ServiceResult.failed(f"Role {role_id} not found")
            for person in uow.repositories.persons.find_by_department_name(role.name):
                if role.assign_person(person):
                    added += 1
            uow.commit()
    except StoreWriteError as exc:
        return ServiceResult.failed(f"Assigning persons failed: {exc}")
    return ServiceResult.ok(f"{added} persons assigned to {role.name}", counts={"added": added})


def verify_connection(client: DirectoryClient) -> ServiceResult:
    try:
        client.test_connection()
    except ConnectivityError as exc:
        log.warning("Directory connection check failed: %s", exc)
        return ServiceResult.failed(f"Directory connection failed: {exc}")
    return ServiceResult.ok("Directory connection established")
