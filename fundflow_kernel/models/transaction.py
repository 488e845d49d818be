"""
Module: fundflow_kernel.models.transaction
Responsibility: ORM persistence for fund movements (entries and exits)
    recorded against a request.
Architecture position: Kernel > Models.  May import from db/ and the pure
    domain enumerations.

Invariants enforced:
    - reference_number is unique (uq_transaction_reference).
    - amount > 0 (ck_transaction_amount_positive).
    - type and status are closed sets (check constraints).
    - request_id, type and reference_number are write-once, and a CONFIRMED
      or REJECTED status never changes (before_update listener below).

Failure modes:
    - IntegrityError on duplicate reference_number or a failed check.
    - ImmutableFieldError on a flush that rewrites a write-once field.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, attributes, mapped_column, relationship

from fundflow_kernel.db.base import TimestampedBase
from fundflow_kernel.db.types import Money
from fundflow_kernel.domain.lifecycle import (
    TERMINAL_TRANSACTION_STATUSES,
    TRANSACTION_STATUSES,
    TRANSACTION_TYPES,
    TransactionStatus,
)
from fundflow_kernel.exceptions import ImmutableFieldError

if TYPE_CHECKING:
    from fundflow_kernel.models.request import Request


def _in_list(column: str, values: tuple[str, ...]) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class Transaction(TimestampedBase):
    """
    A fund entry or exit against a request.

    Contract:
        Created PENDING.  Moves once to CONFIRMED or REJECTED and is frozen
        from then on.
    """

    __tablename__ = "transactions"

    __table_args__ = (
        UniqueConstraint("reference_number", name="uq_transaction_reference"),
        CheckConstraint("amount > 0", name="ck_transaction_amount_positive"),
        CheckConstraint(_in_list("type", TRANSACTION_TYPES), name="ck_transaction_type"),
        CheckConstraint(
            _in_list("status", TRANSACTION_STATUSES), name="ck_transaction_status"
        ),
        Index("idx_transaction_request", "request_id"),
        Index("idx_transaction_status", "status"),
        Index("idx_transaction_date", "transaction_date"),
    )

    request_id: Mapped[UUID] = mapped_column(
        ForeignKey("requests.id"),
        nullable=False,
    )

    transaction_type: Mapped[str] = mapped_column("type", String(10), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)

    transaction_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionStatus.PENDING.value,
    )

    confirmed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

    confirmation_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    reference_number: Mapped[str] = mapped_column(String(50), nullable=False)

    request: Mapped["Request"] = relationship("Request")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TRANSACTION_STATUSES

    def __repr__(self) -> str:
        return f"<Transaction {self.reference_number} {self.transaction_type} [{self.status}]>"


_WRITE_ONCE_FIELDS = ("request_id", "transaction_type", "reference_number")


@event.listens_for(Transaction, "before_update")
def prevent_resolved_transaction_change(mapper, connection, target):
    """Reject a flush that rewrites a write-once field or reopens a resolved status."""
    for field in _WRITE_ONCE_FIELDS:
        if attributes.get_history(target, field).deleted:
            raise ImmutableFieldError("Transaction", str(target.id), field)

    previous = attributes.get_history(target, "status").deleted
    if previous and previous[0] in TERMINAL_TRANSACTION_STATUSES:
        raise ImmutableFieldError("Transaction", str(target.id), "status")
