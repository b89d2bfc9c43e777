"""SQLAlchemy mapping metadata for the identity domain model."""

from __future__ import annotations

import json
import logging
import uuid
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Dialect,
    Enum,
    ForeignKey,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from adroles.domain.model import ADGroup, ADUser, EntityType, Person, Role, RoleResource

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class DistinguishedNameListType(TypeDecorator[tuple[str, ...]]):
    """Ordered member list stored as a JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: tuple[str, ...] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(list(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[str, ...]:
        _ = dialect
        if value is None:
            return ()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return ()
        items = cast(list[Any], loaded)
        return tuple(item for item in items if isinstance(item, str))


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Core tables -----------------------------------------------------------------

person_table = Table(
    "person",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("last_name", String, nullable=True),
    Column("first_name", String, nullable=True),
    Column("central_account_name", String, nullable=True, index=True),
    Column("department", String, nullable=True, index=True),
    Column("description", String, nullable=True),
    Column("employee", Boolean, nullable=False, default=True),
)

role_table = Table(
    "role",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False, index=True),
    Column("description", String, nullable=True),
    Column("admin_role", Boolean, nullable=False, default=False),
    Column(
        "role_resource",
        Enum(RoleResource, native_enum=False),
        nullable=False,
        default=RoleResource.STANDARD,
    ),
)

ad_user_table = Table(
    "ad_user",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("distinguished_name", String, nullable=False, unique=True),
    Column("stale", Boolean, nullable=False, default=False),
    Column("logon_name", String, nullable=False, index=True),
    Column("account_control", BigInteger, nullable=False, default=0),
    Column("enabled", Boolean, nullable=False, default=True),
    Column("locked", Boolean, nullable=False, default=False),
    Column("password_expires", Boolean, nullable=False, default=True),
)

ad_group_table = Table(
    "ad_group",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("distinguished_name", String, nullable=False, unique=True),
    Column("stale", Boolean, nullable=False, default=False),
    Column("common_name", String, nullable=False, index=True),
    Column("description", String, nullable=True),
    Column("member_dns", DistinguishedNameListType, nullable=False, default=()),
    Column("admin_group", Boolean, nullable=False, default=False),
)

# Association tables ------------------------------------------------------------


def _association_table(name: str, left: str, right: str) -> Table:
    return Table(
        name,
        mapper_registry.metadata,
        Column(
            f"{left}_id",
            UUIDColumnType,
            ForeignKey(f"{left}.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        Column(
            f"{right}_id",
            UUIDColumnType,
            ForeignKey(f"{right}.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )


role_person_table = _association_table("role_person", "role", "person")
role_ad_user_table = _association_table("role_ad_user", "role", "ad_user")
role_ad_group_table = _association_table("role_ad_group", "role", "ad_group")
person_ad_user_table = _association_table("person_ad_user", "person", "ad_user")

TABLE_BY_ENTITY_TYPE: dict[EntityType, Table] = {
    EntityType.PERSON: person_table,
    EntityType.ROLE: role_table,
    EntityType.AD_USER: ad_user_table,
    EntityType.AD_GROUP: ad_group_table,
}


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        Person,
        person_table,
        properties={
            "_roles": relationship(
                Role,
                secondary=role_person_table,
                back_populates="_persons",
                collection_class=set,
            ),
            "_ad_users": relationship(
                ADUser,
                secondary=person_ad_user_table,
                back_populates="_persons",
                collection_class=set,
            ),
        },
    )

    mapper_registry.map_imperatively(
        Role,
        role_table,
        properties={
            "_persons": relationship(
                Person,
                secondary=role_person_table,
                back_populates="_roles",
                collection_class=set,
            ),
            "_ad_users": relationship(
                ADUser,
                secondary=role_ad_user_table,
                back_populates="_roles",
                collection_class=set,
            ),
            "_ad_groups": relationship(
                ADGroup,
                secondary=role_ad_group_table,
                back_populates="_roles",
                collection_class=set,
            ),
        },
    )

    mapper_registry.map_imperatively(
        ADUser,
        ad_user_table,
        properties={
            "_persons": relationship(
                Person,
                secondary=person_ad_user_table,
                back_populates="_ad_users",
                collection_class=set,
            ),
            "_roles": relationship(
                Role,
                secondary=role_ad_user_table,
                back_populates="_ad_users",
                collection_class=set,
            ),
        },
    )

    mapper_registry.map_imperatively(
        ADGroup,
        ad_group_table,
        properties={
            "_roles": relationship(
                Role,
                secondary=role_ad_group_table,
                back_populates="_ad_groups",
                collection_class=set,
            ),
        },
    )

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
