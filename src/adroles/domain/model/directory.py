"""Mirrored directory objects (accounts and groups)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from adroles.domain.account_state import decode_account_control
from adroles.domain.model.base import Entity
from adroles.domain.model.enums import EntityType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from adroles.domain.model.identity import Person, Role


@dataclass(eq=False, kw_only=True)
class MirroredEntity(Entity):
    """An object copied from the directory, keyed by its distinguished name.

    Records that disappear from the directory are kept and flagged ``stale``.
    """

    distinguished_name: str
    stale: bool = False

    def mark_stale(self) -> bool:
        if self.stale:
            return False
        self.stale = True
        return True

    def mark_seen(self) -> bool:
        if not self.stale:
            return False
        self.stale = False
        return True


@dataclass(eq=False, kw_only=True)
class ADUser(MirroredEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.AD_USER

    logon_name: str
    account_control: int = 0
    enabled: bool = True
    locked: bool = False
    password_expires: bool = True

    _persons: set[Person] = field(default_factory=set["Person"], repr=False)
    _roles: set[Role] = field(default_factory=set["Role"], repr=False)

    @property
    def persons(self) -> frozenset[Person]:
        return frozenset(self._persons)

    @property
    def roles(self) -> frozenset[Role]:
        return frozenset(self._roles)

    @property
    def is_linked(self) -> bool:
        return bool(self._persons)

    def apply_directory_state(self, *, logon_name: str, account_control: int) -> bool:
        """Overwrite the mutable directory attributes; return whether anything changed."""

        state = decode_account_control(account_control)
        incoming = (
            logon_name,
            account_control,
            state.enabled,
            state.locked,
            state.password_expires,
        )
        current = (
            self.logon_name,
            self.account_control,
            self.enabled,
            self.locked,
            self.password_expires,
        )
        if incoming == current:
            return False
        self.logon_name = logon_name
        self.account_control = account_control
        self.enabled = state.enabled
        self.locked = state.locked
        self.password_expires = state.password_expires
        return True

    @classmethod
    def from_directory(
        cls,
        *,
        distinguished_name: str,
        logon_name: str,
        account_control: int,
    ) -> ADUser:
        user = cls(distinguished_name=distinguished_name, logon_name=logon_name)
        user.apply_directory_state(logon_name=logon_name, account_control=account_control)
        return user


@dataclass(eq=False, kw_only=True)
class ADGroup(MirroredEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.AD_GROUP

    common_name: str
    description: str | None = None
    member_dns: tuple[str, ...] = ()
    admin_group: bool = False

    _roles: set[Role] = field(default_factory=set["Role"], repr=False)

    @property
    def roles(self) -> frozenset[Role]:
        return frozenset(self._roles)

    def apply_directory_state(
        self,
        *,
        common_name: str,
        description: str | None,
        member_dns: Iterable[str],
        admin_group: bool,
    ) -> bool:
        members = tuple(member_dns)
        incoming = (common_name, description, members, admin_group)
        current = (self.common_name, self.description, self.member_dns, self.admin_group)
        if incoming == current:
            return False
        self.common_name = common_name
        self.description = description
        self.member_dns = members
        self.admin_group = admin_group
        return True
