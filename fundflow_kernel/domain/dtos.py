"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the service boundary:
    input payloads (``RequestData``, ``DriverData``, ``TransporterData``,
    ``TransactionData``) and read models (``RequestInfo``, ``DriverInfo``,
    ``TransporterInfo``, ``TransactionInfo``).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``from_model()`` class methods are boundary converters invoked only from
    the service and selector layers.

Invariants enforced:
    - Services and selectors return these DTOs, never ORM entities.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from fundflow_kernel.domain.employee import EmployeeIdentity
from fundflow_kernel.domain.lifecycle import (
    TERMINAL_TRANSACTION_STATUSES,
    RequestStatus,
)

if TYPE_CHECKING:
    from fundflow_kernel.models.request import Request as RequestModel
    from fundflow_kernel.models.team import Driver as DriverModel
    from fundflow_kernel.models.team import Transporter as TransporterModel
    from fundflow_kernel.models.transaction import Transaction as TransactionModel


# =============================================================================
# Input payloads
# =============================================================================


@dataclass(frozen=True)
class RequestData:
    """Fields accepted when creating or updating a request.

    ``status``, ``confirmed``, ``confirmation_date``, ``driver_id`` and
    ``transporter_id`` are only read on creation.
    """

    request_number: str | None
    request_code: str | None
    request_type: str | None
    amount: Decimal | int | str | None
    request_date: date | None = None
    culture: str | None = None
    nature: str | None = None
    comments: str | None = None
    status: str | None = None
    confirmed: bool | None = None
    confirmation_date: date | None = None
    driver_id: UUID | None = None
    transporter_id: UUID | None = None


@dataclass(frozen=True)
class DriverData:
    """Fields accepted when creating or updating a driver."""

    matricule: str | None
    first_name: str | None
    last_name: str | None
    cin: str | None
    license_number: str | None = None
    available: bool = True

    @property
    def identity(self) -> EmployeeIdentity:
        return EmployeeIdentity(self.matricule, self.first_name, self.last_name, self.cin)


@dataclass(frozen=True)
class TransporterData:
    """Fields accepted when creating or updating a transporter."""

    matricule: str | None
    first_name: str | None
    last_name: str | None
    cin: str | None
    vehicle_type: str | None = None
    available: bool = True

    @property
    def identity(self) -> EmployeeIdentity:
        return EmployeeIdentity(self.matricule, self.first_name, self.last_name, self.cin)


@dataclass(frozen=True)
class TransactionData:
    """Fields accepted when recording a fund movement."""

    request_id: UUID | None
    transaction_type: str | None = None
    amount: Decimal | int | str | None = None
    description: str | None = None


# =============================================================================
# Read models
# =============================================================================


@dataclass(frozen=True)
class RequestInfo:
    """Immutable view of a request."""

    id: UUID
    request_number: str
    request_code: str
    request_date: date
    culture: str | None
    request_type: str
    amount: Decimal
    status: str
    nature: str | None
    confirmed: bool | None
    driver_id: UUID | None
    transporter_id: UUID | None
    created_by: str
    confirmation_date: date | None
    comments: str | None

    @property
    def has_full_team(self) -> bool:
        return self.driver_id is not None and self.transporter_id is not None

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed is True and self.status == RequestStatus.CONFIRMED.value

    @classmethod
    def from_model(cls, request: RequestModel) -> RequestInfo:
        return cls(
            id=request.id,
            request_number=request.request_number,
            request_code=request.request_code,
            request_date=request.request_date,
            culture=request.culture,
            request_type=request.request_type,
            amount=request.amount,
            status=request.status,
            nature=request.nature,
            confirmed=request.confirmed,
            driver_id=request.driver_id,
            transporter_id=request.transporter_id,
            created_by=request.created_by,
            confirmation_date=request.confirmation_date,
            comments=request.comments,
        )


def _request_ids(requests) -> tuple[UUID, ...]:
    return tuple(sorted((r.id for r in requests), key=str))


@dataclass(frozen=True)
class DriverInfo:
    """Immutable view of a driver and the requests it is assigned to."""

    id: UUID
    identity: EmployeeIdentity
    license_number: str | None
    available: bool
    request_ids: tuple[UUID, ...]

    @property
    def matricule(self) -> str:
        return self.identity.matricule

    @property
    def cin(self) -> str:
        return self.identity.cin

    @classmethod
    def from_model(cls, driver: DriverModel) -> DriverInfo:
        return cls(
            id=driver.id,
            identity=driver.identity,
            license_number=driver.license_number,
            available=driver.available,
            request_ids=_request_ids(driver.requests),
        )


@dataclass(frozen=True)
class TransporterInfo:
    """Immutable view of a transporter and the requests it is assigned to."""

    id: UUID
    identity: EmployeeIdentity
    vehicle_type: str | None
    available: bool
    request_ids: tuple[UUID, ...]

    @property
    def matricule(self) -> str:
        return self.identity.matricule

    @property
    def cin(self) -> str:
        return self.identity.cin

    @classmethod
    def from_model(cls, transporter: TransporterModel) -> TransporterInfo:
        return cls(
            id=transporter.id,
            identity=transporter.identity,
            vehicle_type=transporter.vehicle_type,
            available=transporter.available,
            request_ids=_request_ids(transporter.requests),
        )


@dataclass(frozen=True)
class TransactionInfo:
    """Immutable view of a fund movement."""

    id: UUID
    request_id: UUID
    request_number: str
    transaction_type: str
    amount: Decimal
    transaction_date: datetime
    description: str | None
    status: str
    confirmed_by: str | None
    confirmation_date: datetime | None
    reference_number: str

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TRANSACTION_STATUSES

    @classmethod
    def from_model(cls, transaction: TransactionModel) -> TransactionInfo:
        return cls(
            id=transaction.id,
            request_id=transaction.request_id,
            request_number=transaction.request.request_number,
            transaction_type=transaction.transaction_type,
            amount=transaction.amount,
            transaction_date=transaction.transaction_date,
            description=transaction.description,
            status=transaction.status,
            confirmed_by=transaction.confirmed_by,
            confirmation_date=transaction.confirmation_date,
            reference_number=transaction.reference_number,
        )
