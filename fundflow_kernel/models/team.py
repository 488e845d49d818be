"""
Module: fundflow_kernel.models.team
Responsibility: ORM persistence for the two kinds of team member, drivers
    and transporters.
Architecture position: Kernel > Models.  May import from db/ and the pure
    domain value objects.

Both tables carry the same four identity columns.  They are exposed on the
model as a single ``identity`` composite of EmployeeIdentity; there is no
shared base table.

Invariants enforced:
    - matricule and cin are each unique within their table.

Failure modes:
    - IntegrityError on duplicate matricule or cin.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship

from fundflow_kernel.db.base import TimestampedBase
from fundflow_kernel.domain.employee import EmployeeIdentity

if TYPE_CHECKING:
    from fundflow_kernel.models.request import Request


class Driver(TimestampedBase):
    """A driver who can be assigned to requests."""

    __tablename__ = "drivers"

    __table_args__ = (
        UniqueConstraint("matricule", name="uq_driver_matricule"),
        UniqueConstraint("cin", name="uq_driver_cin"),
        Index("idx_driver_last_name", "last_name"),
        Index("idx_driver_available", "available"),
    )

    matricule: Mapped[str] = mapped_column(String(50), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    cin: Mapped[str] = mapped_column(String(50), nullable=False)

    identity: Mapped[EmployeeIdentity] = composite(
        "matricule", "first_name", "last_name", "cin"
    )

    license_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    requests: Mapped[set["Request"]] = relationship(
        "Request",
        back_populates="driver",
        collection_class=set,
    )

    def __repr__(self) -> str:
        return f"<Driver {self.matricule}: {self.first_name} {self.last_name}>"


class Transporter(TimestampedBase):
    """A transporter who can be assigned to requests."""

    __tablename__ = "transporters"

    __table_args__ = (
        UniqueConstraint("matricule", name="uq_transporter_matricule"),
        UniqueConstraint("cin", name="uq_transporter_cin"),
        Index("idx_transporter_last_name", "last_name"),
        Index("idx_transporter_available", "available"),
    )

    matricule: Mapped[str] = mapped_column(String(50), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    cin: Mapped[str] = mapped_column(String(50), nullable=False)

    identity: Mapped[EmployeeIdentity] = composite(
        "matricule", "first_name", "last_name", "cin"
    )

    vehicle_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    requests: Mapped[set["Request"]] = relationship(
        "Request",
        back_populates="transporter",
        collection_class=set,
    )

    def __repr__(self) -> str:
        return f"<Transporter {self.matricule}: {self.first_name} {self.last_name}>"
