"""Ports for reading the external directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from adroles.domain.errors import SnapshotConsumedError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


@dataclass(frozen=True, slots=True)
class AccountRecord:
    """One user account as read from the directory."""

    distinguished_name: str
    logon_name: str
    account_control: int = 0
    first_name: str | None = None
    last_name: str | None = None
    department: str | None = None


@dataclass(frozen=True, slots=True)
class GroupRecord:
    """One group as read from the directory.

    ``admin_marker`` carries the directory's own "protected/administrative" marker
    when the client could read it.
    """

    distinguished_name: str
    common_name: str
    description: str | None = None
    member_dns: tuple[str, ...] = ()
    admin_marker: bool = False


@dataclass(frozen=True, slots=True)
class SkippedRecord:
    """A directory entry that was enumerated but could not be read.

    It still counts as present, so its mirrored record is never flagged stale.
    """

    distinguished_name: str
    reason: str


type AccountEntry = AccountRecord | SkippedRecord
type GroupEntry = GroupRecord | SkippedRecord


@runtime_checkable
class DirectoryClient(Protocol):
    """Read access to the directory.

    Both listings are lazy, finite and can only be iterated once. Implementations
    raise :class:`~adroles.domain.errors.ConnectivityError` when the directory
    cannot be reached or the credentials are rejected.
    """

    def list_accounts(self) -> Iterable[AccountEntry]: ...

    def list_groups(self) -> Iterable[GroupEntry]: ...

    def test_connection(self) -> None: ...


@dataclass(slots=True)
class DirectorySnapshot:
    """A point-in-time read of the directory that can be consumed once per listing."""

    client: DirectoryClient
    _accounts_taken: bool = field(default=False, init=False)
    _groups_taken: bool = field(default=False, init=False)

    def accounts(self) -> Iterator[AccountEntry]:
        if self._accounts_taken:
            raise SnapshotConsumedError("Account records already consumed; take a new snapshot")
        self._accounts_taken = True
        return iter(self.client.list_accounts())

    def groups(self) -> Iterator[GroupEntry]:
        if self._groups_taken:
            raise SnapshotConsumedError("Group records already consumed; take a new snapshot")
        self._groups_taken = True
        return iter(self.client.list_groups())


__all__ = [
    "AccountEntry",
    "AccountRecord",
    "DirectoryClient",
    "DirectorySnapshot",
    "GroupEntry",
    "GroupRecord",
    "SkippedRecord",
]
