"""
Configuration Schema (``fundflow_config.schema``).

Responsibility
--------------
Frozen dataclasses for the runtime configuration of the fundflow kernel:
database connection, logging level and transaction reference numbers.
``KernelConfig`` is the only artifact handed to callers.

Architecture position
---------------------
**Config layer** -- pure data definitions.  No I/O, no kernel imports.

Failure modes
-------------
* ``ConfigError`` from ``validate()`` names the offending key.
"""

from __future__ import annotations

from dataclasses import dataclass, field

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """A configuration value is missing or out of range."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration '{key}': {reason}")


@dataclass(frozen=True)
class DatabaseConfig:
    """Engine settings.  Pool settings are ignored for SQLite."""

    url: str = "sqlite:///:memory:"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class ReferenceConfig:
    """Shape of generated transaction reference numbers."""

    prefix: str = "TXN-"
    length: int = 8
    max_attempts: int = 5


@dataclass(frozen=True)
class KernelConfig:
    """Complete runtime configuration."""

    config_id: str
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    references: ReferenceConfig = field(default_factory=ReferenceConfig)

    def validate(self) -> None:
        """Raise ConfigError on the first invalid value."""
        if not self.config_id:
            raise ConfigError("config_id", "must not be empty")
        if not self.database.url:
            raise ConfigError("database.url", "must not be empty")
        for key in ("pool_size", "pool_timeout", "pool_recycle"):
            if getattr(self.database, key) <= 0:
                raise ConfigError(f"database.{key}", "must be positive")
        if self.database.max_overflow < 0:
            raise ConfigError("database.max_overflow", "must not be negative")
        if self.logging.level.upper() not in _LOG_LEVELS:
            raise ConfigError(
                "logging.level", f"must be one of {', '.join(_LOG_LEVELS)}"
            )
        if not self.references.prefix:
            raise ConfigError("references.prefix", "must not be empty")
        if not 1 <= self.references.length <= 32:
            raise ConfigError("references.length", "must be between 1 and 32")
        if self.references.max_attempts < 1:
            raise ConfigError("references.max_attempts", "must be positive")
