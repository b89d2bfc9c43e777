"""Domain port definitions for adapters."""

from __future__ import annotations

from .directory import (
    AccountEntry,
    AccountRecord,
    DirectoryClient,
    DirectorySnapshot,
    GroupEntry,
    GroupRecord,
    SkippedRecord,
)
from .persistence import (
    ADGroupRepository,
    ADUserRepository,
    PersonRepository,
    Repository,
    RoleRepository,
)
from .unit_of_work import (
    IdentityRepositories,
    IdentityUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "ADGroupRepository",
    "ADUserRepository",
    "AccountEntry",
    "AccountRecord",
    "DirectoryClient",
    "DirectorySnapshot",
    "GroupEntry",
    "GroupRecord",
    "IdentityRepositories",
    "IdentityUnitOfWork",
    "PersonRepository",
    "Repository",
    "RepositoryCollection",
    "RoleRepository",
    "SkippedRecord",
    "UnitOfWork",
]
