"""Ports for persisting identity aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from adroles.domain.model import ADGroup, ADUser, Person, Role, RoleResource

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def remove(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...

    def list_all(self) -> Sequence[TEntity]: ...

    def search(self, term: str) -> Sequence[TEntity]:
        """Case-insensitive substring search across the indexed text fields."""
        ...

    def count_by(self, **criteria: object) -> int:
        """Count entities whose attributes equal every given criterion."""
        ...


@runtime_checkable
class PersonRepository(Repository[Person], Protocol):
    def find_by_central_account_name(self, name: str) -> Person | None:
        """Return the person holding ``name`` (trimmed, case-insensitive).

        Raises :class:`~adroles.domain.errors.DataQualityError` when several
        persons share the name.
        """
        ...

    def find_by_department_name(self, name: str) -> Sequence[Person]: ...


@runtime_checkable
class RoleRepository(Repository[Role], Protocol):
    def find_by_name(self, name: str) -> Sequence[Role]: ...

    def find_by_resource(self, resource: RoleResource) -> Sequence[Role]: ...


@runtime_checkable
class ADUserRepository(Repository[ADUser], Protocol):
    def find_by_distinguished_name(self, distinguished_name: str) -> ADUser | None: ...


@runtime_checkable
class ADGroupRepository(Repository[ADGroup], Protocol):
    def find_by_distinguished_name(self, distinguished_name: str) -> ADGroup | None: ...
