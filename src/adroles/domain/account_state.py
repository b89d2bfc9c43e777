"""Decoding of the directory's ``userAccountControl`` bitfield.

Only the bits the rest of the system cares about are interpreted; any other bit
is ignored, so every unsigned 32-bit value decodes without error.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from typing import Final


class AccountControlFlag(IntFlag):
    ACCOUNT_DISABLED = 0x0000_0002
    LOCKOUT = 0x0000_0010
    DONT_EXPIRE_PASSWORD = 0x0001_0000
    PASSWORD_EXPIRED = 0x0080_0000


UINT32_MASK: Final[int] = 0xFFFF_FFFF


@dataclass(frozen=True, slots=True)
class AccountState:
    enabled: bool
    locked: bool
    password_never_expires: bool
    password_expired: bool

    @property
    def password_expires(self) -> bool:
        """Value stored on ``ADUser.password_expires``."""
        return not self.password_never_expires


def decode_account_control(bitfield: int) -> AccountState:
    """Decode a raw ``userAccountControl`` value into an :class:`AccountState`."""

    value = bitfield & UINT32_MASK
    return AccountState(
        enabled=not value & AccountControlFlag.ACCOUNT_DISABLED,
        locked=bool(value & AccountControlFlag.LOCKOUT),
        password_never_expires=bool(value & AccountControlFlag.DONT_EXPIRE_PASSWORD),
        password_expired=bool(value & AccountControlFlag.PASSWORD_EXPIRED),
    )
