"""
Config -> Kernel Bridges.

Functions that turn a KernelConfig into kernel objects.  These live in
fundflow_config (the producer) because the kernel must NEVER import
fundflow_config.

Usage:
    from fundflow_config import get_active_config
    from fundflow_config.bridges import bootstrap_kernel, reference_generator_from_config

    config = get_active_config()
    engine = bootstrap_kernel(config)
    funds = FundsService(session, reference_generator=reference_generator_from_config(config))
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from fundflow_config.schema import KernelConfig
from fundflow_kernel.db.engine import init_engine_from_url
from fundflow_kernel.domain.reference import ReferenceNumberGenerator
from fundflow_kernel.logging_config import configure_logging


def bootstrap_kernel(config: KernelConfig) -> Engine:
    """Configure kernel logging and initialise the global engine."""
    configure_logging(level=config.logging.level)
    db = config.database
    return init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
    )


def reference_generator_from_config(config: KernelConfig) -> ReferenceNumberGenerator:
    refs = config.references
    return ReferenceNumberGenerator(
        prefix=refs.prefix,
        length=refs.length,
        max_attempts=refs.max_attempts,
    )
