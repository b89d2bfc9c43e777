"""Policy deciding which directory groups count as administrative.

A group is administrative when the directory itself marks it (for Active
Directory: ``adminCount=1`` on protected groups), when its name is one of the
well-known built-in administrative groups, or when its name contains one of the
configured keywords. Matching is case-insensitive.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from adroles.domain.ports.directory import GroupRecord

WELL_KNOWN_ADMIN_GROUPS: Final[tuple[str, ...]] = (
    "Administrators",
    "Domain Admins",
    "Enterprise Admins",
    "Schema Admins",
    "Account Operators",
    "Backup Operators",
    "Server Operators",
    "Print Operators",
    "Group Policy Creator Owners",
)
DEFAULT_ADMIN_KEYWORDS: Final[tuple[str, ...]] = ("admin",)


@dataclass(frozen=True, slots=True)
class AdminGroupPolicy:
    keywords: tuple[str, ...] = DEFAULT_ADMIN_KEYWORDS
    names: tuple[str, ...] = WELL_KNOWN_ADMIN_GROUPS

    def is_administrative(self, record: GroupRecord) -> bool:
        if record.admin_marker:
            return True
        name = record.common_name.casefold()
        if name in {candidate.casefold() for candidate in self.names}:
            return True
        return any(keyword.casefold() in name for keyword in self.keywords if keyword)
