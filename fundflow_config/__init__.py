"""
fundflow_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a frozen ``KernelConfig``.

Architecture position:
    Configuration -- sits above ``fundflow_kernel``.  The kernel MUST NEVER
    import from ``fundflow_config``; ``fundflow_config.bridges`` translates
    the config into kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ConfigError`` -- a value is missing, mistyped or out of range.

Every successful ``get_active_config()`` call emits a
``fundflow_config_loaded`` log entry with the config id, source file and
database dialect.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from fundflow_config.loader import apply_env_overrides, load_yaml_file, parse_kernel_config
from fundflow_config.schema import (
    ConfigError,
    DatabaseConfig,
    KernelConfig,
    LoggingConfig,
    ReferenceConfig,
)

_logger = logging.getLogger("fundflow_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> KernelConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to ``sets/default.yaml``.
        environ: Environment used for FUNDFLOW_* overrides.  Defaults to
            ``os.environ``.

    Returns:
        A validated, frozen KernelConfig.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    env = os.environ if environ is None else environ

    data = apply_env_overrides(load_yaml_file(path), env)
    config = parse_kernel_config(data)
    config.validate()

    _logger.info(
        "fundflow_config_loaded",
        extra={
            "config_id": config.config_id,
            "config_path": str(path),
            "database_dialect": config.database.url.split(":", 1)[0],
            "log_level": config.logging.level,
        },
    )
    return config


__all__ = [
    "ConfigError",
    "DatabaseConfig",
    "KernelConfig",
    "LoggingConfig",
    "ReferenceConfig",
    "get_active_config",
]
