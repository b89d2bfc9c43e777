"""SQLAlchemy adapter package for the identity store."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyADGroupRepository,
    SqlAlchemyADUserRepository,
    SqlAlchemyPersonRepository,
    SqlAlchemyRoleRepository,
)
from .unit_of_work import (
    SqlAlchemyIdentityUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyADGroupRepository",
    "SqlAlchemyADUserRepository",
    "SqlAlchemyIdentityUnitOfWork",
    "SqlAlchemyPersonRepository",
    "SqlAlchemyRoleRepository",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
