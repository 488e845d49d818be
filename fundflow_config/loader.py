"""
Configuration Loader (``fundflow_config.loader``).

Responsibility
--------------
Reads a YAML configuration file, applies environment overrides and parses
the result into ``fundflow_config.schema`` dataclasses.  Runtime callers
go through ``fundflow_config.get_active_config()`` instead.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong value type  -> ``ConfigError`` naming the key.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from fundflow_config.schema import (
    ConfigError,
    DatabaseConfig,
    KernelConfig,
    LoggingConfig,
    ReferenceConfig,
)

# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "FUNDFLOW_DATABASE_URL": ("database", "url"),
    "FUNDFLOW_DB_ECHO": ("database", "echo"),
    "FUNDFLOW_LOG_LEVEL": ("logging", "level"),
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    return data if data is not None else {}


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(key, f"expected a boolean, got {value!r}")


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(key, f"expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(key, f"expected an integer, got {value!r}") from None


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(name, "expected a mapping")
    return section


def apply_env_overrides(
    data: dict[str, Any], environ: Mapping[str, str]
) -> dict[str, Any]:
    """Return a copy of ``data`` with FUNDFLOW_* variables applied."""
    merged = {k: dict(v) if isinstance(v, dict) else v for k, v in data.items()}
    for var, (section, key) in ENV_OVERRIDES.items():
        if var in environ:
            merged.setdefault(section, {})
            merged[section][key] = environ[var]
    return merged


def parse_kernel_config(data: dict[str, Any]) -> KernelConfig:
    """Parse a raw mapping into a KernelConfig.  Missing keys take defaults."""
    db = _section(data, "database")
    log = _section(data, "logging")
    refs = _section(data, "references")
    db_defaults = DatabaseConfig()
    ref_defaults = ReferenceConfig()

    database = DatabaseConfig(
        url=str(db.get("url", db_defaults.url)),
        echo=_as_bool("database.echo", db.get("echo", db_defaults.echo)),
        pool_size=_as_int("database.pool_size", db.get("pool_size", db_defaults.pool_size)),
        max_overflow=_as_int(
            "database.max_overflow", db.get("max_overflow", db_defaults.max_overflow)
        ),
        pool_timeout=_as_int(
            "database.pool_timeout", db.get("pool_timeout", db_defaults.pool_timeout)
        ),
        pool_recycle=_as_int(
            "database.pool_recycle", db.get("pool_recycle", db_defaults.pool_recycle)
        ),
    )
    logging_cfg = LoggingConfig(level=str(log.get("level", "INFO")).upper())
    references = ReferenceConfig(
        prefix=str(refs.get("prefix", ref_defaults.prefix)),
        length=_as_int("references.length", refs.get("length", ref_defaults.length)),
        max_attempts=_as_int(
            "references.max_attempts",
            refs.get("max_attempts", ref_defaults.max_attempts),
        ),
    )
    return KernelConfig(
        config_id=str(data.get("config_id", "")),
        database=database,
        logging=logging_cfg,
        references=references,
    )
