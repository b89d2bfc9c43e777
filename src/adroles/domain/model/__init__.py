"""Public domain model surface."""

from __future__ import annotations

from adroles.domain.model.base import Entity
from adroles.domain.model.directory import ADGroup, ADUser, MirroredEntity
from adroles.domain.model.enums import EntityType, RoleResource
from adroles.domain.model.identity import Person, Role, account_name_key, unit_name_key

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "MirroredEntity",
    # directory mirror
    "ADUser",
    "ADGroup",
    # identity
    "Person",
    "Role",
    "account_name_key",
    "unit_name_key",
    # enums
    "EntityType",
    "RoleResource",
]
