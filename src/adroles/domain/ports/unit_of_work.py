"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from adroles.domain.ports.persistence import (
        ADGroupRepository,
        ADUserRepository,
        PersonRepository,
        RoleRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection.

    ``commit`` raises :class:`~adroles.domain.errors.StoreWriteError` when the
    store rejects the pending changes.
    """

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class IdentityRepositories(RepositoryCollection):
    """Repositories over the identity and directory mirror aggregates."""

    persons: PersonRepository
    roles: RoleRepository
    ad_users: ADUserRepository
    ad_groups: ADGroupRepository


type IdentityUnitOfWork = UnitOfWork[IdentityRepositories]
