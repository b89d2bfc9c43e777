"""ldap3 adapter reading the directory."""

from __future__ import annotations

from .client import LdapDirectoryClient
from .translator import parse_account, parse_group

__all__ = ["LdapDirectoryClient", "parse_account", "parse_group"]
