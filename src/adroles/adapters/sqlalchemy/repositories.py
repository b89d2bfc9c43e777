"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from sqlalchemy import func, or_, select

from adroles.adapters.sqlalchemy.mappings import TABLE_BY_ENTITY_TYPE
from adroles.domain.errors import DataQualityError
from adroles.domain.model import (
    ADGroup,
    ADUser,
    Entity,
    EntityType,
    Person,
    Role,
    RoleResource,
    account_name_key,
    unit_name_key,
)

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence

    from sqlalchemy import Table
    from sqlalchemy.orm import Session


class SqlAlchemyEntityRepository[TEntity: Entity]:
    """Shared helpers for repositories keyed by internal UUIDs."""

    # text columns covered by ``search``
    SEARCH_COLUMNS: ClassVar[tuple[str, ...]] = ()

    def __init__(self, session: Session, entity_cls: type[TEntity], entity_type: EntityType) -> None:
        self.session = session
        self._entity_cls = entity_cls
        self._table: Table = TABLE_BY_ENTITY_TYPE[entity_type]

    def add(self, entity: TEntity) -> None:
        self.session.add(entity)

    def remove(self, entity: TEntity) -> None:
        self.session.delete(entity)

    def get(self, entity_id: uuid.UUID) -> TEntity | None:
        return self.session.get(self._entity_cls, entity_id)

    def list_all(self) -> Sequence[TEntity]:
        return self.session.execute(select(self._entity_cls)).scalars().all()

    def search(self, term: str) -> Sequence[TEntity]:
        needle = term.strip().lower()
        if not needle:
            return self.list_all()
        conditions = [
            func.lower(self._table.c[column]).contains(needle, autoescape=True)
            for column in self.SEARCH_COLUMNS
        ]
        stmt = select(self._entity_cls).where(or_(*conditions))
        return self.session.execute(stmt).scalars().all()

    def count_by(self, **criteria: object) -> int:
        stmt = select(func.count()).select_from(self._table)
        for key, value in criteria.items():
            if key not in self._table.c:
                raise ValueError(f"Unknown attribute {key!r} for {self._table.name}")
            stmt = stmt.where(self._table.c[key] == value)
        return self.session.execute(stmt).scalar_one()


class SqlAlchemyPersonRepository(SqlAlchemyEntityRepository[Person]):
    SEARCH_COLUMNS = (
        "last_name",
        "first_name",
        "central_account_name",
        "department",
        "description",
    )

    def __init__(self, session: Session) -> None:
        super().__init__(session, Person, EntityType.PERSON)

    def find_by_central_account_name(self, name: str) -> Person | None:
        key = account_name_key(name)
        if key is None:
            return None
        column = self._table.c.central_account_name
        stmt = select(Person).where(func.lower(func.trim(column)) == key).limit(2)
        matches = self.session.execute(stmt).scalars().all()
        if len(matches) > 1:
            raise DataQualityError(f"Several persons share the central account name {key!r}")
        return matches[0] if matches else None

    def find_by_department_name(self, name: str) -> Sequence[Person]:
        if unit_name_key(name) is None:
            return []
        stmt = select(Person).where(self._table.c.department.is_not(None))
        candidates = self.session.execute(stmt).scalars().all()
        return [person for person in candidates if person.has_department(name)]


class SqlAlchemyRoleRepository(SqlAlchemyEntityRepository[Role]):
    SEARCH_COLUMNS = ("name", "description")

    def __init__(self, session: Session) -> None:
        super().__init__(session, Role, EntityType.ROLE)

    def find_by_name(self, name: str) -> Sequence[Role]:
        # SQL lower() only folds ASCII; compare with casefold on this side
        key = unit_name_key(name)
        if key is None:
            return []
        return [role for role in self.list_all() if role.name_key == key]

    def find_by_resource(self, resource: RoleResource) -> Sequence[Role]:
        stmt = select(Role).where(self._table.c.role_resource == resource)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyADUserRepository(SqlAlchemyEntityRepository[ADUser]):
    SEARCH_COLUMNS = ("distinguished_name", "logon_name")

    def __init__(self, session: Session) -> None:
        super().__init__(session, ADUser, EntityType.AD_USER)

    def find_by_distinguished_name(self, distinguished_name: str) -> ADUser | None:
        stmt = select(ADUser).where(self._table.c.distinguished_name == distinguished_name)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyADGroupRepository(SqlAlchemyEntityRepository[ADGroup]):
    SEARCH_COLUMNS = ("distinguished_name", "common_name", "description")

    def __init__(self, session: Session) -> None:
        super().__init__(session, ADGroup, EntityType.AD_GROUP)

    def find_by_distinguished_name(self, distinguished_name: str) -> ADGroup | None:
        stmt = select(ADGroup).where(self._table.c.distinguished_name == distinguished_name)
        return self.session.execute(stmt).scalar_one_or_none()
