"""ldap3 client reading accounts and groups from the directory."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from ldap3 import NONE, SIMPLE, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPException

from adroles.config.directory import DirectoryConfig, get_directory_config
from adroles.config.sync import DEFAULT_ADMIN_MARKER_ATTRIBUTE
from adroles.domain.errors import ConnectivityError
from adroles.domain.ports.directory import AccountEntry, DirectoryClient, GroupEntry

from .translator import parse_account, parse_group

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping, Sequence

log = getLogger(__name__)

ACCOUNT_FILTER = "(&(objectCategory=person)(objectClass=user))"
GROUP_FILTER = "(objectClass=group)"
ACCOUNT_ATTRIBUTES: tuple[str, ...] = (
    "sAMAccountName",
    "userAccountControl",
    "givenName",
    "sn",
    "department",
)
GROUP_ATTRIBUTES: tuple[str, ...] = ("cn", "description", "member")


def _default_connection_factory(config: DirectoryConfig) -> Connection:
    server = Server(
        config.host,
        port=config.port,
        use_ssl=config.use_ssl,
        get_info=NONE,
        connect_timeout=config.timeout_seconds,
    )
    return Connection(
        server,
        user=config.bind_dn,
        password=config.bind_password,
        authentication=SIMPLE,
        receive_timeout=config.timeout_seconds,
        raise_exceptions=True,
        read_only=True,
    )


def _describe(exc: LDAPException) -> str:
    # class name and ldap3 result text only, never the bind settings
    return f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__


@dataclass(slots=True)
class LdapDirectoryClient(DirectoryClient):
    """Directory client backed by paged ldap3 searches.

    Every listing opens its own bound connection which is closed once the
    generator is exhausted or discarded.
    """

    config: DirectoryConfig = field(default_factory=get_directory_config)
    marker_attribute: str = DEFAULT_ADMIN_MARKER_ATTRIBUTE
    connection_factory: Callable[[DirectoryConfig], Connection] = field(
        default=_default_connection_factory
    )

    def list_accounts(self) -> Iterator[AccountEntry]:
        for payload in self._paged_search(ACCOUNT_FILTER, ACCOUNT_ATTRIBUTES):
            record = parse_account(payload)
            if record is not None:
                yield record

    def list_groups(self) -> Iterator[GroupEntry]:
        attributes = GROUP_ATTRIBUTES
        if self.marker_attribute:
            attributes = (*GROUP_ATTRIBUTES, self.marker_attribute)
        for payload in self._paged_search(GROUP_FILTER, attributes):
            record = parse_group(payload, marker_attribute=self.marker_attribute)
            if record is not None:
                yield record

    def test_connection(self) -> None:
        connection = self._bind()
        try:
            log.info("Directory connection to %s verified", self.config.endpoint)
        finally:
            connection.unbind()

    def _bind(self) -> Connection:
        try:
            connection = self.connection_factory(self.config)
            connection.bind()
        except LDAPException as exc:
            raise ConnectivityError(
                f"Cannot bind to {self.config.endpoint}: {_describe(exc)}"
            ) from exc
        return connection

    def _paged_search(
        self,
        search_filter: str,
        attributes: Sequence[str],
    ) -> Iterator[Mapping[str, object]]:
        connection = self._bind()
        log.debug("Searching %s below %s", search_filter, self.config.base_dn)
        try:
            yield from connection.extend.standard.paged_search(
                search_base=self.config.base_dn,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=list(attributes),
                paged_size=self.config.page_size,
                generator=True,
            )
        except LDAPException as exc:
            raise ConnectivityError(
                f"Directory search on {self.config.endpoint} failed: {_describe(exc)}"
            ) from exc
        finally:
            connection.unbind()
