"""Synchronization and background job defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass

from adroles.domain.reconciliation.policy import DEFAULT_ADMIN_KEYWORDS, WELL_KNOWN_ADMIN_GROUPS

from .env import optional_env_int, optional_env_list
from .errors import ConfigurationError

DEFAULT_ADMIN_MARKER_ATTRIBUTE = "adminCount"
DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True, slots=True)
class SyncConfig:
    admin_group_keywords: tuple[str, ...] = DEFAULT_ADMIN_KEYWORDS
    admin_group_names: tuple[str, ...] = WELL_KNOWN_ADMIN_GROUPS
    admin_marker_attribute: str = DEFAULT_ADMIN_MARKER_ATTRIBUTE
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self) -> None:
        if self.max_workers <= 0:
            raise ConfigurationError("max_workers must be positive")


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        admin_group_keywords=optional_env_list(
            "ADROLES_ADMIN_GROUP_KEYWORDS", DEFAULT_ADMIN_KEYWORDS
        ),
        admin_group_names=optional_env_list("ADROLES_ADMIN_GROUP_NAMES", WELL_KNOWN_ADMIN_GROUPS),
        admin_marker_attribute=os.getenv(
            "ADROLES_ADMIN_MARKER_ATTRIBUTE", DEFAULT_ADMIN_MARKER_ATTRIBUTE
        ).strip(),
        max_workers=optional_env_int("ADROLES_MAX_WORKERS", DEFAULT_MAX_WORKERS),
    )
