"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    PERSON = "person"
    ROLE = "role"
    AD_USER = "ad_user"
    AD_GROUP = "ad_group"


class RoleResource(StrEnum):
    """Classification of a role; decides which assignment policy applies."""

    STANDARD = "standard"
    ORGANIZATIONAL = "organizational"
    PROJECT = "project"
    FILE_SHARE = "file_share"
    EMAIL_RESOURCE = "email_resource"

    @property
    def takes_part_in_name_matching(self) -> bool:
        return self is RoleResource.ORGANIZATIONAL
