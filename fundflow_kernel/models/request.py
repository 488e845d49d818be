"""
Module: fundflow_kernel.models.request
Responsibility: ORM persistence for logistics requests, the unit of work that
    a driver and a transporter are assigned to and that fund movements are
    recorded against.
Architecture position: Kernel > Models.  May import from db/ and the pure
    domain enumerations.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    - request_number is unique (uq_request_number).
    - amount > 0 (ck_request_amount_positive).
    - status is one of the RequestStatus values (ck_request_status).
    - created_by is write-once (before_update listener below).

Failure modes:
    - IntegrityError on duplicate request_number or a failed check.
    - ImmutableFieldError if created_by is changed after insert.
"""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
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
from fundflow_kernel.domain.lifecycle import REQUEST_STATUSES, RequestStatus
from fundflow_kernel.exceptions import ImmutableFieldError

if TYPE_CHECKING:
    from fundflow_kernel.models.team import Driver, Transporter

_STATUS_LIST = ", ".join(f"'{s}'" for s in REQUEST_STATUSES)


class Request(TimestampedBase):
    """
    A logistics request.

    Contract:
        A request carries at most one driver and at most one transporter.
        It is confirmed when ``confirmed`` is true and status is CONFIRMED;
        only then may funds move against it.

    Non-goals:
        - Team completeness and confirmation rules are enforced by
          RequestService, not at the ORM level.
    """

    __tablename__ = "requests"

    __table_args__ = (
        UniqueConstraint("request_number", name="uq_request_number"),
        CheckConstraint("amount > 0", name="ck_request_amount_positive"),
        CheckConstraint(f"status IN ({_STATUS_LIST})", name="ck_request_status"),
        Index("idx_request_status", "status"),
        Index("idx_request_type", "type"),
        Index("idx_request_date", "request_date"),
        Index("idx_request_driver", "driver_id"),
        Index("idx_request_transporter", "transporter_id"),
    )

    request_number: Mapped[str] = mapped_column(String(50), nullable=False)

    request_code: Mapped[str] = mapped_column(String(50), nullable=False)

    request_date: Mapped[date] = mapped_column(Date, nullable=False)

    culture: Mapped[str | None] = mapped_column(String(100), nullable=True)

    request_type: Mapped[str] = mapped_column("type", String(50), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RequestStatus.PENDING.value,
    )

    nature: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Tri-state: NULL is "never decided", distinct from an explicit False
    confirmed: Mapped[bool | None] = mapped_column(
        Boolean,
        nullable=True,
        default=False,
    )

    confirmation_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_by: Mapped[str] = mapped_column(String(100), nullable=False)

    comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    driver_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("drivers.id"),
        nullable=True,
    )

    transporter_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("transporters.id"),
        nullable=True,
    )

    driver: Mapped["Driver | None"] = relationship(
        "Driver",
        back_populates="requests",
    )

    transporter: Mapped["Transporter | None"] = relationship(
        "Transporter",
        back_populates="requests",
    )

    @property
    def has_full_team(self) -> bool:
        return self.driver is not None and self.transporter is not None

    def __repr__(self) -> str:
        return f"<Request {self.request_number} [{self.status}]>"


@event.listens_for(Request, "before_update")
def prevent_creator_change(mapper, connection, target):
    """Reject a flush that rewrites created_by."""
    if attributes.get_history(target, "created_by").deleted:
        raise ImmutableFieldError("Request", str(target.id), "created_by")
