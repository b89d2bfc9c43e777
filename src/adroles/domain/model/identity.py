"""Internal identity entities: persons and the roles they hold."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from adroles.domain.model.base import Entity
from adroles.domain.model.enums import EntityType, RoleResource

if TYPE_CHECKING:
    from adroles.domain.model.directory import ADGroup, ADUser


def unit_name_key(name: str | None) -> str | None:
    """Comparison key for department and role names.

    Blank names have no key. Both the bulk assignment and the single role
    lookup compare names through this function.
    """

    if name is None or not name.strip():
        return None
    return name.casefold()


def account_name_key(name: str | None) -> str | None:
    if name is None or not name.strip():
        return None
    return name.strip().casefold()


@dataclass(eq=False, kw_only=True)
class Person(Entity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.PERSON

    last_name: str | None = None
    first_name: str | None = None
    central_account_name: str | None = None
    department: str | None = None
    description: str | None = None
    employee: bool = True

    _roles: set[Role] = field(default_factory=set["Role"], repr=False)
    _ad_users: set[ADUser] = field(default_factory=set["ADUser"], repr=False)

    @property
    def display_name(self) -> str:
        parts = [part for part in (self.first_name, self.last_name) if part]
        if parts:
            return " ".join(parts)
        return self.central_account_name or str(self.id)

    @property
    def roles(self) -> frozenset[Role]:
        return frozenset(self._roles)

    @property
    def ad_users(self) -> frozenset[ADUser]:
        return frozenset(self._ad_users)

    @property
    def department_key(self) -> str | None:
        return unit_name_key(self.department)

    def has_department(self, name: str | None) -> bool:
        key = unit_name_key(name)
        return key is not None and key == self.department_key

    def apply_directory_attributes(
        self,
        *,
        first_name: str | None,
        last_name: str | None,
        department: str | None,
    ) -> bool:
        """Take over non-blank directory values; a blank value never clears a field."""
        changed = False
        for attribute, value in (
            ("first_name", first_name),
            ("last_name", last_name),
            ("department", department),
        ):
            if value is None or not value.strip():
                continue
            value = value.strip()
            if getattr(self, attribute) != value:
                setattr(self, attribute, value)
                changed = True
        return changed

    def link_ad_user(self, user: ADUser) -> bool:
        if user in self._ad_users:
            return False
        self._ad_users.add(user)
        user._persons.add(self)  # noqa: SLF001
        return True

    def unlink_ad_user(self, user: ADUser) -> None:
        self._ad_users.discard(user)
        user._persons.discard(self)  # noqa: SLF001

    def detach(self) -> None:
        """Drop every role and account association, e.g. before deletion."""
        for role in tuple(self._roles):
            role.remove_person(self)
        for user in tuple(self._ad_users):
            self.unlink_ad_user(user)


@dataclass(eq=False, kw_only=True)
class Role(Entity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ROLE

    name: str
    description: str | None = None
    admin_role: bool = False
    role_resource: RoleResource = RoleResource.STANDARD

    _persons: set[Person] = field(default_factory=set["Person"], repr=False)
    _ad_users: set[ADUser] = field(default_factory=set["ADUser"], repr=False)
    _ad_groups: set[ADGroup] = field(default_factory=set["ADGroup"], repr=False)

    @property
    def persons(self) -> frozenset[Person]:
        return frozenset(self._persons)

    @property
    def ad_users(self) -> frozenset[ADUser]:
        return frozenset(self._ad_users)

    @property
    def ad_groups(self) -> frozenset[ADGroup]:
        return frozenset(self._ad_groups)

    @property
    def is_group_linked(self) -> bool:
        return bool(self._ad_groups)

    @property
    def name_key(self) -> str | None:
        return unit_name_key(self.name)

    def assign_person(self, person: Person) -> bool:
        """Add ``person`` to the role; return ``False`` if it was already assigned."""
        if person in self._persons:
            return False
        self._persons.add(person)
        person._roles.add(self)  # noqa: SLF001
        return True

    def remove_person(self, person: Person) -> None:
        self._persons.discard(person)
        person._roles.discard(self)  # noqa: SLF001

    def assign_ad_user(self, user: ADUser) -> bool:
        if user in self._ad_users:
            return False
        self._ad_users.add(user)
        user._roles.add(self)  # noqa: SLF001
        return True

    def remove_ad_user(self, user: ADUser) -> None:
        self._ad_users.discard(user)
        user._roles.discard(self)  # noqa: SLF001

    def link_ad_group(self, group: ADGroup) -> bool:
        if group in self._ad_groups:
            return False
        self._ad_groups.add(group)
        group._roles.add(self)  # noqa: SLF001
        return True

    def unlink_ad_group(self, group: ADGroup) -> None:
        self._ad_groups.discard(group)
        group._roles.discard(self)  # noqa: SLF001

    def detach(self) -> None:
        for person in tuple(self._persons):
            self.remove_person(person)
        for user in tuple(self._ad_users):
            self.remove_ad_user(user)
        for group in tuple(self._ad_groups):
            self.unlink_ad_group(group)

    @classmethod
    def from_group(cls, group: ADGroup) -> Role:
        """Create a role mirroring ``group``; the admin flag is copied once."""
        role = cls(
            name=group.common_name,
            description=group.description,
            admin_role=group.admin_group,
            role_resource=RoleResource.STANDARD,
        )
        role.link_ad_group(group)
        return role
