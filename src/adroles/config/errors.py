"""Errors raised while loading adroles settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but cannot be used (bad number, flag or port)."""


class MissingConfigurationError(ConfigurationError):
    """Required environment variables are unset or blank."""

    def __init__(self, names: tuple[str, ...]) -> None:
        super().__init__(f"Missing configuration for: {', '.join(names)}")
        self.names = names
