"""Directory (LDAP) connection configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_bool, optional_env_int, require_env_vars
from .errors import ConfigurationError

LDAP_PORT = 389
LDAPS_PORT = 636
DEFAULT_PAGE_SIZE = 500
DEFAULT_TIMEOUT_SECONDS = 10


@dataclass(frozen=True, slots=True)
class DirectoryConfig:
    """Holds the connection settings of the directory server."""

    host: str
    base_dn: str
    bind_dn: str
    bind_password: str = field(default="", repr=False)
    port: int = LDAP_PORT
    use_ssl: bool = False
    page_size: int = DEFAULT_PAGE_SIZE
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"Invalid directory port: {self.port}")
        if self.page_size <= 0:
            raise ConfigurationError("Directory page size must be positive")

    @property
    def endpoint(self) -> str:
        scheme = "ldaps" if self.use_ssl else "ldap"
        return f"{scheme}://{self.host}:{self.port}"


def get_directory_config() -> DirectoryConfig:
    values = require_env_vars(
        (
            "ADROLES_LDAP_HOST",
            "ADROLES_LDAP_BASE_DN",
            "ADROLES_LDAP_BIND_DN",
            "ADROLES_LDAP_PASSWORD",
        )
    )
    use_ssl = optional_env_bool("ADROLES_LDAP_USE_SSL", default=False)
    return DirectoryConfig(
        host=values["ADROLES_LDAP_HOST"],
        base_dn=values["ADROLES_LDAP_BASE_DN"],
        bind_dn=values["ADROLES_LDAP_BIND_DN"],
        bind_password=values["ADROLES_LDAP_PASSWORD"],
        port=optional_env_int("ADROLES_LDAP_PORT", LDAPS_PORT if use_ssl else LDAP_PORT),
        use_ssl=use_ssl,
        page_size=optional_env_int("ADROLES_LDAP_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        timeout_seconds=optional_env_int("ADROLES_LDAP_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
    )
