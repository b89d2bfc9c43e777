"""Reusable fakes for identity, directory and unit-of-work tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from adroles.domain.errors import ConnectivityError, DataQualityError, StoreWriteError
from adroles.domain.model import (
    ADGroup,
    ADUser,
    Entity,
    Person,
    Role,
    RoleResource,
    account_name_key,
    unit_name_key,
)
from adroles.domain.ports.directory import AccountRecord, GroupRecord, SkippedRecord
from adroles.domain.ports.unit_of_work import IdentityRepositories

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence
    from uuid import UUID

    from adroles.domain.ports.directory import AccountEntry, GroupEntry


class FakeEntityRepository[TEntity: Entity]:
    """In-memory repository keyed by entity id, preserving insertion order."""

    search_fields: tuple[str, ...] = ()

    def __init__(self, initial: Iterable[TEntity] | None = None) -> None:
        self.items: dict[UUID, TEntity] = {}
        for entity in initial or ():
            self.add(entity)

    def add(self, entity: TEntity) -> None:
        self.items[entity.id] = entity

    def remove(self, entity: TEntity) -> None:
        self.items.pop(entity.id, None)

    def get(self, entity_id: UUID) -> TEntity | None:
        return self.items.get(entity_id)

    def list_all(self) -> Sequence[TEntity]:
        return list(self.items.values())

    def search(self, term: str) -> Sequence[TEntity]:
        needle = term.strip().casefold()
        if not needle:
            return self.list_all()
        return [
            entity
            for entity in self.items.values()
            if any(
                needle in str(getattr(entity, name) or "").casefold()
                for name in self.search_fields
            )
        ]

    def count_by(self, **criteria: object) -> int:
        return sum(
            1
            for entity in self.items.values()
            if all(getattr(entity, key) == value for key, value in criteria.items())
        )


class FakePersonRepository(FakeEntityRepository[Person]):
    search_fields = ("last_name", "first_name", "central_account_name", "department")

    def find_by_central_account_name(self, name: str) -> Person | None:
        key = account_name_key(name)
        if key is None:
            return None
        matches = [
            person
            for person in self.items.values()
            if account_name_key(person.central_account_name) == key
        ]
        if len(matches) > 1:
            raise DataQualityError(f"Several persons share the central account name {key!r}")
        return matches[0] if matches else None

    def find_by_department_name(self, name: str) -> Sequence[Person]:
        return [person for person in self.items.values() if person.has_department(name)]


class FakeRoleRepository(FakeEntityRepository[Role]):
    search_fields = ("name", "description")

    def find_by_name(self, name: str) -> Sequence[Role]:
        key = unit_name_key(name)
        return [role for role in self.items.values() if key and role.name_key == key]

    def find_by_resource(self, resource: RoleResource) -> Sequence[Role]:
        return [role for role in self.items.values() if role.role_resource is resource]


class FakeADUserRepository(FakeEntityRepository[ADUser]):
    search_fields = ("distinguished_name", "logon_name")

    def find_by_distinguished_name(self, distinguished_name: str) -> ADUser | None:
        for user in self.items.values():
            if user.distinguished_name == distinguished_name:
                return user
        return None


class FakeADGroupRepository(FakeEntityRepository[ADGroup]):
    search_fields = ("distinguished_name", "common_name", "description")

    def find_by_distinguished_name(self, distinguished_name: str) -> ADGroup | None:
        for group in self.items.values():
            if group.distinguished_name == distinguished_name:
                return group
        return None


def make_repositories(
    *,
    persons: Iterable[Person] = (),
    roles: Iterable[Role] = (),
    ad_users: Iterable[ADUser] = (),
    ad_groups: Iterable[ADGroup] = (),
) -> IdentityRepositories:
    return IdentityRepositories(
        persons=FakePersonRepository(persons),
        roles=FakeRoleRepository(roles),
        ad_users=FakeADUserRepository(ad_users),
        ad_groups=FakeADGroupRepository(ad_groups),
    )


class FakeIdentityUnitOfWork:
    """Unit of work over shared in-memory repositories.

    ``fail_on_commit`` makes the n-th commit (1-based, counted across every
    unit of work sharing the same ``commit_log``) raise :class:`StoreWriteError`.
    """

    def __init__(
        self,
        repositories: IdentityRepositories,
        *,
        commit_log: list[int] | None = None,
        fail_on_commit: int | None = None,
    ) -> None:
        self.repositories = repositories
        self.commit_log = commit_log if commit_log is not None else []
        self.fail_on_commit = fail_on_commit
        self.rollback_called = False

    def __enter__(self) -> FakeIdentityUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: object | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        attempt = len(self.commit_log) + 1
        if self.fail_on_commit is not None and attempt >= self.fail_on_commit:
            raise StoreWriteError(f"commit {attempt} rejected")
        self.commit_log.append(attempt)

    def rollback(self) -> None:
        self.rollback_called = True


@dataclass
class FakeStore:
    """Factory producing units of work over one shared set of repositories."""

    repositories: IdentityRepositories = field(default_factory=make_repositories)
    fail_on_commit: int | None = None
    commit_log: list[int] = field(default_factory=list[int])

    def __call__(self) -> FakeIdentityUnitOfWork:
        return FakeIdentityUnitOfWork(
            self.repositories,
            commit_log=self.commit_log,
            fail_on_commit=self.fail_on_commit,
        )

    @property
    def commits(self) -> int:
        return len(self.commit_log)


class FakeDirectoryClient:
    """Directory client serving fixed records.

    ``fail_accounts_after`` / ``fail_groups_after`` raise
    :class:`ConnectivityError` after that many records were yielded.
    """

    def __init__(
        self,
        *,
        accounts: Iterable[AccountEntry] = (),
        groups: Iterable[GroupEntry] = (),
        fail_accounts_after: int | None = None,
        fail_groups_after: int | None = None,
        reachable: bool = True,
    ) -> None:
        self.accounts = list(accounts)
        self.groups = list(groups)
        self.fail_accounts_after = fail_accounts_after
        self.fail_groups_after = fail_groups_after
        self.reachable = reachable
        self.account_listings = 0
        self.group_listings = 0

    def list_accounts(self) -> Iterator[AccountEntry]:
        self.account_listings += 1
        return _yield_until(self.accounts, self.fail_accounts_after, self._check_reachable)

    def list_groups(self) -> Iterator[GroupEntry]:
        self.group_listings += 1
        return _yield_until(self.groups, self.fail_groups_after, self._check_reachable)

    def test_connection(self) -> None:
        self._check_reachable()

    def _check_reachable(self) -> None:
        if not self.reachable:
            raise ConnectivityError("Cannot bind to ldap://dc.example.test:389: socket timeout")


def _yield_until[TRecord](
    records: Sequence[TRecord],
    fail_after: int | None,
    check: Callable[[], None],
) -> Iterator[TRecord]:
    check()
    for index, record in enumerate(records):
        if fail_after is not None and index >= fail_after:
            raise ConnectivityError("Directory search failed: connection reset")
        yield record
    if fail_after is not None and fail_after >= len(records):
        raise ConnectivityError("Directory search failed: connection reset")


def account(
    logon_name: str,
    *,
    account_control: int = 0x200,
    ou: str = "Staff",
    first_name: str | None = None,
    last_name: str | None = None,
    department: str | None = None,
) -> AccountRecord:
    return AccountRecord(
        distinguished_name=f"CN={logon_name},OU={ou},DC=example,DC=test",
        logon_name=logon_name,
        account_control=account_control,
        first_name=first_name,
        last_name=last_name,
        department=department,
    )


def skipped(distinguished_name: str, reason: str = "missing required attribute") -> SkippedRecord:
    return SkippedRecord(distinguished_name=distinguished_name, reason=reason)


def group(
    common_name: str,
    *,
    description: str | None = None,
    members: Iterable[str] = (),
    admin_marker: bool = False,
) -> GroupRecord:
    return GroupRecord(
        distinguished_name=f"CN={common_name},OU=Groups,DC=example,DC=test",
        common_name=common_name,
        description=description,
        member_dns=tuple(members),
        admin_marker=admin_marker,
    )


if TYPE_CHECKING:
    from adroles.domain.ports.directory import DirectoryClient
    from adroles.domain.ports.unit_of_work import IdentityUnitOfWork

    _client_check: DirectoryClient = FakeDirectoryClient()
    _uow_check: IdentityUnitOfWork = FakeIdentityUnitOfWork(make_repositories())
