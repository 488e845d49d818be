"""
Module: fundflow_kernel.db.base
Responsibility: Declarative base shared by the request, team and transaction
    models: a uuid4 primary key on every table and created/updated timestamps.
Architecture position: Kernel > DB.  Lowest import target of the kernel;
    MUST NOT import from models/, services/, selectors/ or domain/.

Invariants enforced:
    - Every row is keyed by a uuid4 stored as a 36-character string, so the
      same schema runs on PostgreSQL and SQLite.
    - Annotated ``Decimal`` columns default to Numeric(19, 2) and annotated
      ``datetime`` columns are timezone-aware.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """uuid.UUID on the Python side, String(36) in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """Declarative base for all kernel models."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(19, 2),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TimestampedBase(Base):
    """
    Adds row timestamps maintained by the database.

    created_at is written once on INSERT; updated_at is refreshed by every
    UPDATE.  Neither is business data, so the write-once listeners on the
    models never look at them.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
