"""Pydantic models describing ldap3 search result entries."""

from __future__ import annotations

from typing import Literal, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _first_value(value: object) -> object:
    """Single-valued attributes arrive as a one element list without schema info."""
    if isinstance(value, (list, tuple)):
        items = cast(list[object], list(value))
        return items[0] if items else None
    return value


def _blank_to_none(value: object) -> object:
    value = _first_value(value)
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _as_tuple(value: object) -> object:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return value


class DirectoryBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SearchResultEntry(DirectoryBaseModel):
    """One item yielded by ``paged_search``; references are not followed."""

    type: Literal["searchResEntry", "searchResRef"]
    dn: str = ""
    attributes: dict[str, object] = Field(default_factory=dict)

    @property
    def is_entry(self) -> bool:
        return self.type == "searchResEntry" and bool(self.dn)


class AccountAttributes(DirectoryBaseModel):
    sam_account_name: str = Field(alias="sAMAccountName")
    user_account_control: int = Field(default=0, alias="userAccountControl")
    given_name: str | None = Field(default=None, alias="givenName")
    surname: str | None = Field(default=None, alias="sn")
    department: str | None = None

    _normalize_name = field_validator("sam_account_name", mode="before")(_blank_to_none)
    _normalize_person = field_validator("given_name", "surname", "department", mode="before")(
        _blank_to_none
    )

    @field_validator("user_account_control", mode="before")
    @classmethod
    def _parse_bitfield(cls, value: object) -> object:
        value = _first_value(value)
        if value is None or value == "":
            return 0
        return value


class GroupAttributes(DirectoryBaseModel):
    cn: str
    description: str | None = None
    member: tuple[str, ...] = ()

    _normalize_cn = field_validator("cn", mode="before")(_blank_to_none)
    _normalize_description = field_validator("description", mode="before")(_blank_to_none)
    _normalize_member = field_validator("member", mode="before")(_as_tuple)
