"""
Module: fundflow_kernel.selectors.base
Responsibility: Shared plumbing for the read side of the kernel.  Each
    selector wraps a caller-owned Session and turns ORM rows into DTOs.
Architecture position: Kernel > Selectors.  May import from db/, models/
    and the domain DTOs.  MUST NOT import from services/.

Invariants enforced:
    - Selectors never add, delete, flush or commit.
    - Public methods return frozen DTOs, never ORM instances.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy import Select
from sqlalchemy.orm import Session

from fundflow_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Read-only query helper bound to one Session."""

    def __init__(self, session: Session):
        self.session = session

    def _all(self, stmt: Select) -> list:
        return list(self.session.execute(stmt).scalars().all())

    def _one_or_none(self, stmt: Select):
        """The single matching row, or None.  Used for unique-key lookups."""
        return self.session.execute(stmt).scalar_one_or_none()
