"""Exceptions raised by the configuration layer."""


class ConfigError(ValueError):
    """Invalid or unreadable configuration."""


class DatabaseError(RuntimeError):
    """The database could not be opened or verified."""
