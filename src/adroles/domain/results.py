"""Transient outcome records handed back from services and jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class ServiceResult:
    """Outcome of one service operation; consumed once and never persisted."""

    success: bool
    message: str
    counts: Mapping[str, int] = field(default_factory=dict[str, int])
    warnings: tuple[str, ...] = ()

    @classmethod
    def ok(
        cls,
        message: str,
        *,
        counts: Mapping[str, int] | None = None,
        warnings: tuple[str, ...] = (),
    ) -> ServiceResult:
        return cls(success=True, message=message, counts=dict(counts or {}), warnings=warnings)

    @classmethod
    def failed(
        cls,
        message: str,
        *,
        counts: Mapping[str, int] | None = None,
        warnings: tuple[str, ...] = (),
    ) -> ServiceResult:
        return cls(success=False, message=message, counts=dict(counts or {}), warnings=warnings)

    def count(self, name: str) -> int:
        return self.counts.get(name, 0)
