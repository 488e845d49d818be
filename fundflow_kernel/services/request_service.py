"""
RequestService -- the request status workflow.

Responsibility:
    Creates, edits and deletes requests, links a driver and a transporter
    to them, and drives status changes including confirmation.

Architecture position:
    Kernel > Services -- imperative shell.  Reads through the caller's
    session, flushes, never commits.

Invariants enforced:
    - request_number is unique across requests.
    - amount > 0 on create and update.
    - confirm_request requires both a driver and a transporter.
    - Every confirm path leaves confirmed = True, status = CONFIRMED and a
      confirmation_date.
    - A confirmed request, or one with recorded transactions, cannot be
      deleted.

Failure modes:
    - RequestNotFoundError / DriverNotFoundError / TransporterNotFoundError.
    - ValidationError, DuplicateKeyError, InvalidStatusError,
      TeamIncompleteError, RequestConfirmedError,
      RequestHasTransactionsError.  All are raised before any field is
      written.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from fundflow_kernel.domain.dtos import RequestData, RequestInfo
from fundflow_kernel.domain.lifecycle import REQUEST_STATUSES, RequestStatus
from fundflow_kernel.db.types import to_money
from fundflow_kernel.exceptions import (
    DriverNotFoundError,
    DuplicateKeyError,
    InvalidStatusError,
    RequestConfirmedError,
    RequestHasTransactionsError,
    RequestNotFoundError,
    TeamIncompleteError,
    TransporterNotFoundError,
    ValidationError,
)
from fundflow_kernel.logging_config import LogContext, get_logger
from fundflow_kernel.models.request import Request
from fundflow_kernel.models.team import Driver, Transporter
from fundflow_kernel.models.transaction import Transaction
from fundflow_kernel.services.base import BaseService, rejected

logger = get_logger("services.request")


def _is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _status_value(status: str | RequestStatus | None) -> str | None:
    if isinstance(status, RequestStatus):
        return status.value
    return status


class RequestService(BaseService[Request]):
    """
    Service for the request workflow.

    All public methods return RequestInfo DTOs, not ORM Request entities.
    """

    # =========================================================================
    # Lookups
    # =========================================================================

    def _get_request(self, request_id: UUID) -> Request:
        request = self.session.get(Request, request_id)
        if request is None:
            raise rejected(logger, "get_request", RequestNotFoundError(request_id))
        return request

    def _get_driver(self, driver_id: UUID) -> Driver:
        driver = self.session.get(Driver, driver_id)
        if driver is None:
            raise rejected(logger, "get_driver", DriverNotFoundError(driver_id))
        return driver

    def _get_transporter(self, transporter_id: UUID) -> Transporter:
        transporter = self.session.get(Transporter, transporter_id)
        if transporter is None:
            raise rejected(
                logger, "get_transporter", TransporterNotFoundError(transporter_id)
            )
        return transporter

    # =========================================================================
    # Validation
    # =========================================================================

    def _validate(self, operation: str, data: RequestData) -> Decimal:
        """Check the required fields and return the coerced amount."""
        for field, label in (
            ("request_number", "Request number"),
            ("request_code", "Request code"),
            ("request_type", "Request type"),
        ):
            if _is_blank(getattr(data, field)):
                raise rejected(
                    logger, operation, ValidationError(field, f"{label} is required")
                )

        amount = to_money(data.amount)
        if amount is None or amount <= 0:
            raise rejected(
                logger,
                operation,
                ValidationError("amount", "Amount must be greater than zero"),
            )
        return amount

    def _check_number_free(
        self,
        operation: str,
        request_number: str,
        exclude_id: UUID | None = None,
    ) -> None:
        stmt = select(Request.id).where(Request.request_number == request_number)
        if exclude_id is not None:
            stmt = stmt.where(Request.id != exclude_id)
        if self.session.execute(stmt).first() is not None:
            raise rejected(
                logger,
                operation,
                DuplicateKeyError("Request", "request_number", request_number),
            )

    def _check_status(self, operation: str, status: str | None) -> str:
        if status not in REQUEST_STATUSES:
            raise rejected(
                logger, operation, InvalidStatusError(status, REQUEST_STATUSES)
            )
        return status

    def _mark_confirmed(self, request: Request) -> None:
        request.confirmed = True
        request.confirmation_date = self.clock.today()
        request.status = RequestStatus.CONFIRMED.value

    # =========================================================================
    # Commands
    # =========================================================================

    def create_request(self, data: RequestData, caller_identity: str) -> RequestInfo:
        """
        Create a request owned by ``caller_identity``.

        Defaults: request_date to today, status to PENDING, confirmed to
        False.  A request created with ``confirmed=True`` is stored as
        CONFIRMED with a confirmation date.

        Raises:
            ValidationError: Blank required field, blank caller or amount <= 0.
            DuplicateKeyError: request_number already used.
            InvalidStatusError: Unknown status.
            DriverNotFoundError / TransporterNotFoundError: Unknown team id.
        """
        if _is_blank(caller_identity):
            raise rejected(
                logger,
                "create_request",
                ValidationError("created_by", "Caller identity is required"),
            )
        amount = self._validate("create_request", data)
        self._check_number_free("create_request", data.request_number)

        status = RequestStatus.PENDING.value
        if data.status is not None:
            status = self._check_status("create_request", _status_value(data.status))

        driver = self._get_driver(data.driver_id) if data.driver_id else None
        transporter = (
            self._get_transporter(data.transporter_id) if data.transporter_id else None
        )

        request = Request(
            request_number=data.request_number,
            request_code=data.request_code,
            request_type=data.request_type,
            amount=amount,
            request_date=data.request_date or self.clock.today(),
            culture=data.culture,
            nature=data.nature,
            comments=data.comments,
            status=status,
            confirmed=False if data.confirmed is None else data.confirmed,
            confirmation_date=data.confirmation_date,
            created_by=caller_identity,
            driver=driver,
            transporter=transporter,
        )
        if data.confirmed is True:
            request.status = RequestStatus.CONFIRMED.value
            request.confirmation_date = data.confirmation_date or self.clock.today()

        self.session.add(request)
        self.session.flush()

        with LogContext.bind(actor_id=caller_identity, request_number=request.request_number):
            logger.info(
                "request_created",
                extra={
                    "request_id": str(request.id),
                    "status": request.status,
                    "amount": request.amount,
                },
            )
        return RequestInfo.from_model(request)

    def update_request(self, request_id: UUID, data: RequestData) -> RequestInfo:
        """
        Overwrite the editable fields of a request.

        Only request_number, request_code, request_type, amount, culture,
        nature and comments change.  Status, confirmation and team are left
        alone.
        """
        request = self._get_request(request_id)
        amount = self._validate("update_request", data)
        self._check_number_free("update_request", data.request_number, request.id)

        request.request_number = data.request_number
        request.request_code = data.request_code
        request.request_type = data.request_type
        request.amount = amount
        request.culture = data.culture
        request.nature = data.nature
        request.comments = data.comments
        self.session.flush()

        logger.info(
            "request_updated",
            extra={"request_id": str(request.id), "request_number": request.request_number},
        )
        return RequestInfo.from_model(request)

    def delete_request(self, request_id: UUID) -> None:
        """
        Delete an unconfirmed request with no transactions.

        The request is removed from its driver's and transporter's
        request sets before deletion.

        Raises:
            RequestNotFoundError: If the request doesn't exist.
            RequestConfirmedError: If confirmed is True.
            RequestHasTransactionsError: If transactions reference it.
        """
        request = self._get_request(request_id)
        if request.confirmed is True:
            raise rejected(
                logger,
                "delete_request",
                RequestConfirmedError(request.request_number, "delete"),
            )

        count = self.session.execute(
            select(func.count()).select_from(Transaction).where(
                Transaction.request_id == request.id
            )
        ).scalar_one()
        if count:
            raise rejected(
                logger,
                "delete_request",
                RequestHasTransactionsError(request.request_number, count),
            )

        request.driver = None
        request.transporter = None
        self.session.delete(request)
        self.session.flush()

        logger.info(
            "request_deleted",
            extra={"request_id": str(request_id), "request_number": request.request_number},
        )

    def assign_driver(self, request_id: UUID, driver_id: UUID) -> RequestInfo:
        """Set the request's driver, replacing any previous one.

        Status becomes ASSIGNED once both roles are filled.
        """
        request = self._get_request(request_id)
        driver = self._get_driver(driver_id)
        request.driver = driver
        if request.has_full_team:
            request.status = RequestStatus.ASSIGNED.value
        self.session.flush()

        logger.info(
            "request_driver_assigned",
            extra={
                "request_number": request.request_number,
                "matricule": driver.matricule,
                "status": request.status,
            },
        )
        return RequestInfo.from_model(request)

    def assign_transporter(self, request_id: UUID, transporter_id: UUID) -> RequestInfo:
        """Set the request's transporter, replacing any previous one.

        Status becomes ASSIGNED once both roles are filled.
        """
        request = self._get_request(request_id)
        transporter = self._get_transporter(transporter_id)
        request.transporter = transporter
        if request.has_full_team:
            request.status = RequestStatus.ASSIGNED.value
        self.session.flush()

        logger.info(
            "request_transporter_assigned",
            extra={
                "request_number": request.request_number,
                "matricule": transporter.matricule,
                "status": request.status,
            },
        )
        return RequestInfo.from_model(request)

    def confirm_request(self, request_id: UUID) -> RequestInfo:
        """
        Confirm a request that has its full team.

        Raises:
            RequestNotFoundError: If the request doesn't exist.
            TeamIncompleteError: If driver or transporter is missing.
        """
        request = self._get_request(request_id)
        if not request.has_full_team:
            raise rejected(
                logger, "confirm_request", TeamIncompleteError(request.request_number)
            )

        self._mark_confirmed(request)
        self.session.flush()

        logger.info(
            "request_confirmed",
            extra={
                "request_number": request.request_number,
                "confirmation_date": request.confirmation_date,
            },
        )
        return RequestInfo.from_model(request)

    def update_status(self, request_id: UUID, status: str | RequestStatus) -> RequestInfo:
        """
        Set the request status explicitly.

        Moving to CONFIRMED also sets confirmed and confirmation_date, but
        unlike confirm_request does not require a full team.  Moving away
        from CONFIRMED leaves confirmed and confirmation_date untouched.

        Raises:
            RequestNotFoundError: If the request doesn't exist.
            InvalidStatusError: If ``status`` is not a RequestStatus value.
        """
        request = self._get_request(request_id)
        value = self._check_status("update_status", _status_value(status))

        previous = request.status
        if value == RequestStatus.CONFIRMED.value:
            self._mark_confirmed(request)
        else:
            request.status = value
        self.session.flush()

        logger.info(
            "request_status_changed",
            extra={
                "request_number": request.request_number,
                "from_status": previous,
                "to_status": value,
            },
        )
        return RequestInfo.from_model(request)
