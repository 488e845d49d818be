"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write service in the kernel.  Concrete services receive a
    SQLAlchemy ``Session`` and persist through ``session.flush()`` --
    never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or roll back themselves.  The caller
      (``session_scope()`` or the test harness) owns commit/rollback.

Failure modes:
    - A subclass that commits breaks the all-or-nothing guarantee of an
      operation that spans several flushes.
"""

from abc import ABC
from logging import Logger
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from fundflow_kernel.db.base import Base
from fundflow_kernel.domain.clock import Clock, SystemClock
from fundflow_kernel.exceptions import FundflowKernelError

ModelType = TypeVar("ModelType", bound=Base)
ErrorType = TypeVar("ErrorType", bound=FundflowKernelError)


def rejected(logger: Logger, operation: str, error: ErrorType) -> ErrorType:
    """Log a failed precondition at WARNING and return the error for raising.

    Usage::

        raise rejected(logger, "confirm_request", TeamIncompleteError(number))
    """
    logger.warning(
        "operation_rejected",
        extra={
            "operation": operation,
            "error_code": error.code,
            "reason": str(error),
        },
    )
    return error


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.  Time is read from the injected ``Clock``.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide read-only list queries -- those belong in
          ``fundflow_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        """
        Initialize the service.

        Args:
            session: SQLAlchemy session for database operations.
            clock: Time source. Defaults to SystemClock.
        """
        self.session = session
        self.clock = clock or SystemClock()
