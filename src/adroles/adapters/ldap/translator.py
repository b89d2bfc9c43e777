"""Translate ldap3 search entries into directory records."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from adroles.domain.ports.directory import AccountRecord, GroupRecord, SkippedRecord

from .schema import AccountAttributes, GroupAttributes, SearchResultEntry

if TYPE_CHECKING:
    from collections.abc import Mapping

    from adroles.domain.ports.directory import AccountEntry, GroupEntry

log = getLogger(__name__)


def parse_account(payload: Mapping[str, object]) -> AccountEntry | None:
    """Return the account entry of ``payload`` or ``None`` for references.

    An entry whose attributes fail validation comes back as a
    :class:`SkippedRecord` so it still counts as present in the directory.
    """

    entry = SearchResultEntry.model_validate(payload)
    if not entry.is_entry:
        return None
    try:
        attributes = AccountAttributes.model_validate(entry.attributes)
    except ValidationError as exc:
        return _skipped("account", entry.dn, exc)
    return AccountRecord(
        distinguished_name=entry.dn,
        logon_name=attributes.sam_account_name,
        account_control=attributes.user_account_control,
        first_name=attributes.given_name,
        last_name=attributes.surname,
        department=attributes.department,
    )


def parse_group(payload: Mapping[str, object], *, marker_attribute: str) -> GroupEntry | None:
    entry = SearchResultEntry.model_validate(payload)
    if not entry.is_entry:
        return None
    try:
        attributes = GroupAttributes.model_validate(entry.attributes)
    except ValidationError as exc:
        return _skipped("group", entry.dn, exc)
    return GroupRecord(
        distinguished_name=entry.dn,
        common_name=attributes.cn,
        description=attributes.description,
        member_dns=attributes.member,
        admin_marker=_has_marker(entry.attributes, marker_attribute),
    )


def _skipped(kind: str, distinguished_name: str, exc: ValidationError) -> SkippedRecord:
    fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
    reason = f"invalid attributes: {', '.join(fields)}" if fields else "invalid attributes"
    log.warning("Skipping %s %s: %s", kind, distinguished_name, exc.errors(include_input=False))
    return SkippedRecord(distinguished_name=distinguished_name, reason=reason)


def _has_marker(attributes: Mapping[str, object], marker_attribute: str) -> bool:
    if not marker_attribute:
        return False
    # attribute names are case-insensitive in LDAP
    wanted = marker_attribute.casefold()
    for name, value in attributes.items():
        if name.casefold() != wanted:
            continue
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if isinstance(value, bytes):
            value = value.decode("ascii", errors="ignore")
        if isinstance(value, str):
            value = value.strip()
            return value not in {"", "0"} and value.lower() != "false"
        return bool(value)
    return False
