"""Automatic assignment of persons to organizational roles.

A person belongs to the organizational role whose name equals the person's
department name (case-insensitive). Only roles classified as
``RoleResource.ORGANIZATIONAL`` take part. When several organizational roles
share a name the name is skipped for everybody and reported, instead of
picking one of them.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from adroles.domain.errors import DataQualityError, StoreWriteError
from adroles.domain.model import RoleResource, unit_name_key
from adroles.domain.ports.unit_of_work import IdentityUnitOfWork
from adroles.domain.results import ServiceResult

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Sequence
    from uuid import UUID

    from adroles.domain.model import Person, Role
    from adroles.domain.ports.persistence import PersonRepository

UnitOfWorkFactory = Callable[[], IdentityUnitOfWork]

log = getLogger(__name__)


@dataclass(slots=True)
class AssignmentCounters:
    added: int = 0
    unchanged: int = 0
    skipped: int = 0
    ambiguous: int = 0
    missing: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "added": self.added,
            "unchanged": self.unchanged,
            "skipped": self.skipped,
            "ambiguous": self.ambiguous,
            "missing": self.missing,
        }


class OrganizationalRoleIndex:
    """Organizational roles keyed by their comparison name."""

    def __init__(self, roles: Iterable[Role]) -> None:
        self._by_key: dict[str, list[Role]] = defaultdict(list)
        for role in roles:
            if role.role_resource is not RoleResource.ORGANIZATIONAL:
                continue
            key = role.name_key
            if key is not None:
                self._by_key[key].append(role)

    def role_for(self, department: str | None) -> Role | None:
        """Return the single role named like ``department``.

        Raises :class:`DataQualityError` when the name is shared by several roles.
        """

        key = unit_name_key(department)
        if key is None:
            return None
        candidates = self._by_key.get(key, [])
        if len(candidates) > 1:
            raise DataQualityError(
                f"{len(candidates)} organizational roles are named {candidates[0].name!r}; "
                "assignment for this name was skipped"
            )
        return candidates[0] if candidates else None


@dataclass(slots=True)
class AssignmentPlanner:
    unit_of_work_factory: UnitOfWorkFactory

    def assign_automatically(self, person_ids: Collection[UUID] | None = None) -> ServiceResult:
        """Assign the given persons (all persons when empty) to their organizational role."""

        counters = AssignmentCounters()
        warnings: dict[str, str] = {}
        log.info(
            "Starting automatic role assignment for %s",
            f"{len(person_ids)} persons" if person_ids else "all persons",
        )
        try:
            with self.unit_of_work_factory() as uow:
                repositories = uow.repositories
                index = OrganizationalRoleIndex(
                    repositories.roles.find_by_resource(RoleResource.ORGANIZATIONAL)
                )
                persons = _load_persons(repositories.persons, person_ids, counters)
                for person in persons:
                    try:
                        role = index.role_for(person.department)
                    except DataQualityError as exc:
                        counters.ambiguous += 1
                        counters.skipped += 1
                        key = person.department_key or ""
                        if key not in warnings:
                            log.warning("%s", exc)
                            warnings[key] = str(exc)
                        continue
                    if role is None:
                        counters.skipped += 1
                        continue
                    if not role.assign_person(person):
                        counters.unchanged += 1
                        continue
                    uow.commit()
                    counters.added += 1
                    log.debug("Assigned person %s to role %r", person.id, role.name)
        except StoreWriteError as exc:
            log.error("Automatic assignment aborted, store write failed: %s", exc)  # noqa: TRY400
            return ServiceResult.failed(
                f"Automatic assignment aborted, store write failed: {exc}",
                counts=counters.as_dict(),
                warnings=tuple(warnings.values()),
            )

        log.info(
            "Finished automatic role assignment: added=%s, unchanged=%s, skipped=%s, ambiguous=%s",
            counters.added,
            counters.unchanged,
            counters.skipped,
            counters.ambiguous,
        )
        message = (
            f"Automatic assignment: {counters.added} added, {counters.unchanged} already "
            f"assigned, {counters.skipped} skipped"
        )
        if warnings:
            message = f"{message}. Warnings: {'; '.join(warnings.values())}"
        return ServiceResult.ok(
            message,
            counts=counters.as_dict(),
            warnings=tuple(warnings.values()),
        )


def find_all_persons_with_department_name(
    unit_of_work_factory: UnitOfWorkFactory,
    name: str,
) -> list[Person]:
    """Return every person whose department equals ``name`` (case-insensitive)."""

    if unit_name_key(name) is None:
        return []
    with unit_of_work_factory() as uow:
        return list(uow.repositories.persons.find_by_department_name(name))


def _load_persons(
    repository: PersonRepository,
    person_ids: Collection[UUID] | None,
    counters: AssignmentCounters,
) -> Sequence[Person]:
    if not person_ids:
        return repository.list_all()
    persons: list[Person] = []
    for person_id in person_ids:
        person = repository.get(person_id)
        if person is None:
            log.warning("Person %s not found, skipping", person_id)
            counters.missing += 1
            continue
        persons.append(person)
    return persons
