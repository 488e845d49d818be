"""
FundsService -- fund movements and their confirmation.

Responsibility:
    Records ENTRY/EXIT transactions against requests, drives the
    PENDING -> CONFIRMED / REJECTED flow, and builds financial reports.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes, never commits.
    Report arithmetic lives in the pure ``domain.reporting`` module.

Invariants enforced:
    - Transactions are created PENDING with amount > 0 and a type in
      {ENTRY, EXIT}.
    - CONFIRMED and REJECTED are terminal: update, delete, confirm and
      reject all fail once a transaction has left PENDING.
    - Confirming a transaction confirms its request if it was not yet.
    - reference_number is unique; a collision on insert is retried with a
      fresh number inside a savepoint.
    - A fund entry/exit is refused only when the request's confirmed flag
      is exactly False.  A NULL flag passes.

Concurrency:
    confirm/reject read the transaction row ``FOR UPDATE`` with
    ``populate_existing`` so of two racing sessions only one observes
    PENDING; the other blocks, then sees the terminal status and fails.

Failure modes:
    - TransactionNotFoundError / RequestNotFoundError.
    - ValidationError, InvalidTransactionTypeError,
      TransactionAlreadyResolvedError, RequestNotConfirmedError,
      ReferenceNumberExhaustedError, InvalidDateRangeError.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fundflow_kernel.db.types import to_money
from fundflow_kernel.domain.clock import Clock
from fundflow_kernel.domain.dtos import TransactionData, TransactionInfo
from fundflow_kernel.domain.lifecycle import (
    TRANSACTION_TYPES,
    RequestStatus,
    TransactionStatus,
    TransactionType,
    can_transition,
)
from fundflow_kernel.domain.reference import ReferenceNumberGenerator
from fundflow_kernel.domain.reporting import TransactionReport, build_transaction_report
from fundflow_kernel.exceptions import (
    InvalidDateRangeError,
    InvalidTransactionTypeError,
    ReferenceNumberExhaustedError,
    RequestNotConfirmedError,
    RequestNotFoundError,
    TransactionAlreadyResolvedError,
    TransactionNotFoundError,
    ValidationError,
)
from fundflow_kernel.logging_config import LogContext, get_logger
from fundflow_kernel.models.request import Request
from fundflow_kernel.models.transaction import Transaction
from fundflow_kernel.selectors.transaction_selector import (
    TransactionSelector,
    day_bounds,
)
from fundflow_kernel.services.base import BaseService, rejected

logger = get_logger("services.funds")


class FundsService(BaseService[Transaction]):
    """
    Service for the funds ledger.

    All public methods return TransactionInfo / TransactionReport DTOs, not
    ORM entities.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        reference_generator: ReferenceNumberGenerator | None = None,
    ):
        """
        Initialize the funds service.

        Args:
            session: SQLAlchemy session for database operations.
            clock: Time source for transaction and confirmation dates.
            reference_generator: Source of candidate reference numbers.
        """
        super().__init__(session, clock)
        self.references = reference_generator or ReferenceNumberGenerator()

    # =========================================================================
    # Lookups
    # =========================================================================

    def _get_request(self, request_id: UUID | None) -> Request:
        request = self.session.get(Request, request_id) if request_id else None
        if request is None:
            raise rejected(logger, "get_request", RequestNotFoundError(request_id))
        return request

    def _get_transaction(self, transaction_id: UUID) -> Transaction:
        txn = self.session.get(Transaction, transaction_id)
        if txn is None:
            raise rejected(
                logger, "get_transaction", TransactionNotFoundError(transaction_id)
            )
        return txn

    def _lock_transaction(self, operation: str, transaction_id: UUID) -> Transaction:
        """Load a transaction FOR UPDATE, refreshing any stale identity-map copy."""
        txn = self.session.execute(
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if txn is None:
            raise rejected(
                logger, operation, TransactionNotFoundError(transaction_id)
            )
        return txn

    def _lock_request(self, request_id: UUID) -> Request:
        return self.session.execute(
            select(Request)
            .where(Request.id == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one()

    # =========================================================================
    # Validation
    # =========================================================================

    def _check_amount(self, operation: str, value: object) -> Decimal:
        amount = to_money(value)
        if amount is None or amount <= 0:
            raise rejected(
                logger,
                operation,
                ValidationError("amount", "Amount must be greater than zero"),
            )
        return amount

    def _check_pending(self, operation: str, txn: Transaction, action: str) -> None:
        if txn.status != TransactionStatus.PENDING.value:
            raise rejected(
                logger,
                operation,
                TransactionAlreadyResolvedError(txn.reference_number, txn.status, action),
            )

    def _check_resolvable(self, operation: str, txn: Transaction, target: str) -> None:
        action = "confirm" if target == TransactionStatus.CONFIRMED.value else "reject"
        if not can_transition(txn.status, target):
            raise rejected(
                logger,
                operation,
                TransactionAlreadyResolvedError(txn.reference_number, txn.status, action),
            )

    # =========================================================================
    # Reference numbers
    # =========================================================================

    def _reference_taken(self, reference_number: str) -> bool:
        stmt = select(Transaction.id).where(
            Transaction.reference_number == reference_number
        )
        return self.session.execute(stmt).first() is not None

    def _insert_with_reference(self, txn: Transaction) -> None:
        """
        Assign a fresh reference number to ``txn`` and flush it.

        Each attempt runs inside a savepoint so a unique-constraint collision
        with a concurrent insert rolls back only that attempt.

        Raises:
            ReferenceNumberExhaustedError: If every attempt collided.
            IntegrityError: If the insert failed for any other reason, such as
                the request being deleted concurrently.
        """
        attempts = self.references.max_attempts
        for attempt in range(1, attempts + 1):
            candidate = self.references.generate()
            if self._reference_taken(candidate):
                logger.debug(
                    "reference_number_collision",
                    extra={"attempt": attempt, "candidate": candidate},
                )
                continue

            txn.reference_number = candidate
            savepoint = self.session.begin_nested()
            try:
                self.session.add(txn)
                self.session.flush()
                savepoint.commit()
                return
            except IntegrityError:
                savepoint.rollback()
                # Only a reference taken by a concurrent insert is retried
                if not self._reference_taken(candidate):
                    raise
                logger.debug(
                    "reference_number_race_retry",
                    extra={"attempt": attempt, "candidate": candidate},
                )

        raise rejected(
            logger, "create_transaction", ReferenceNumberExhaustedError(attempts)
        )

    # =========================================================================
    # Commands
    # =========================================================================

    def create_transaction(self, data: TransactionData) -> TransactionInfo:
        """
        Record a PENDING fund movement against a request.

        Raises:
            ValidationError: If request_id is missing or amount <= 0.
            InvalidTransactionTypeError: If the type is not ENTRY or EXIT.
            RequestNotFoundError: If the request doesn't exist.
            ReferenceNumberExhaustedError: If no free reference was found.
        """
        if data.request_id is None:
            raise rejected(
                logger,
                "create_transaction",
                ValidationError("request_id", "Request id is required"),
            )
        transaction_type = data.transaction_type
        if isinstance(transaction_type, TransactionType):
            transaction_type = transaction_type.value
        if transaction_type not in TRANSACTION_TYPES:
            raise rejected(
                logger,
                "create_transaction",
                InvalidTransactionTypeError(data.transaction_type),
            )
        amount = self._check_amount("create_transaction", data.amount)
        request = self._get_request(data.request_id)

        txn = Transaction(
            request_id=request.id,
            transaction_type=transaction_type,
            amount=amount,
            transaction_date=self.clock.now(),
            description=data.description,
            status=TransactionStatus.PENDING.value,
        )
        self._insert_with_reference(txn)

        with LogContext.bind(
            request_number=request.request_number,
            reference_number=txn.reference_number,
        ):
            logger.info(
                "transaction_created",
                extra={
                    "transaction_id": str(txn.id),
                    "transaction_type": txn.transaction_type,
                    "amount": txn.amount,
                },
            )
        return TransactionInfo.from_model(txn)

    def update_transaction(
        self, transaction_id: UUID, data: TransactionData
    ) -> TransactionInfo:
        """
        Overwrite the amount and description of a PENDING transaction.

        Request and type are never changed.

        Raises:
            TransactionNotFoundError: If the transaction doesn't exist.
            TransactionAlreadyResolvedError: If it is CONFIRMED or REJECTED.
            ValidationError: If amount <= 0.
        """
        txn = self._get_transaction(transaction_id)
        self._check_pending("update_transaction", txn, "update")
        amount = self._check_amount("update_transaction", data.amount)

        txn.amount = amount
        txn.description = data.description
        self.session.flush()

        logger.info(
            "transaction_updated",
            extra={"reference_number": txn.reference_number, "amount": txn.amount},
        )
        return TransactionInfo.from_model(txn)

    def delete_transaction(self, transaction_id: UUID) -> None:
        """
        Delete a PENDING transaction.

        Raises:
            TransactionNotFoundError: If the transaction doesn't exist.
            TransactionAlreadyResolvedError: If it is CONFIRMED or REJECTED.
        """
        txn = self._get_transaction(transaction_id)
        self._check_pending("delete_transaction", txn, "delete")

        self.session.delete(txn)
        self.session.flush()
        logger.info(
            "transaction_deleted",
            extra={"reference_number": txn.reference_number},
        )

    def confirm_transaction(
        self, transaction_id: UUID, confirmed_by: str
    ) -> TransactionInfo:
        """
        Confirm a PENDING transaction.

        If the owning request is not confirmed yet it is promoted:
        confirmed = True, confirmation_date = today, status = CONFIRMED.

        Raises:
            TransactionNotFoundError: If the transaction doesn't exist.
            TransactionAlreadyResolvedError: If it is already CONFIRMED or
                REJECTED.
        """
        txn = self._lock_transaction("confirm_transaction", transaction_id)
        self._check_resolvable(
            "confirm_transaction", txn, TransactionStatus.CONFIRMED.value
        )

        with LogContext.bind(
            actor_id=confirmed_by, reference_number=txn.reference_number
        ):
            txn.status = TransactionStatus.CONFIRMED.value
            txn.confirmed_by = confirmed_by
            txn.confirmation_date = self.clock.now()

            request = self._lock_request(txn.request_id)
            if request.confirmed is not True:
                request.confirmed = True
                request.confirmation_date = self.clock.today()
                request.status = RequestStatus.CONFIRMED.value
                logger.info(
                    "request_confirmed_by_transaction",
                    extra={"request_number": request.request_number},
                )
            self.session.flush()

            logger.info(
                "transaction_confirmed",
                extra={"transaction_id": str(txn.id), "amount": txn.amount},
            )
        return TransactionInfo.from_model(txn)

    def reject_transaction(
        self,
        transaction_id: UUID,
        rejected_by: str,
        reason: str | None = None,
    ) -> TransactionInfo:
        """
        Reject a PENDING transaction.

        ``rejected_by`` is stored in confirmed_by; a given ``reason``
        replaces the description.

        Raises:
            TransactionNotFoundError: If the transaction doesn't exist.
            TransactionAlreadyResolvedError: If it is already CONFIRMED or
                REJECTED.
        """
        txn = self._lock_transaction("reject_transaction", transaction_id)
        self._check_resolvable(
            "reject_transaction", txn, TransactionStatus.REJECTED.value
        )

        txn.status = TransactionStatus.REJECTED.value
        txn.confirmed_by = rejected_by
        txn.confirmation_date = self.clock.now()
        if reason is not None:
            txn.description = reason
        self.session.flush()

        with LogContext.bind(actor_id=rejected_by, reference_number=txn.reference_number):
            logger.info(
                "transaction_rejected",
                extra={"transaction_id": str(txn.id), "reason": reason},
            )
        return TransactionInfo.from_model(txn)

    def _register(self, data: TransactionData, movement: TransactionType) -> TransactionInfo:
        operation = f"register_fund_{movement.value.lower()}"
        request = self._get_request(data.request_id)
        # Only an explicit False blocks; NULL is treated as not-yet-decided
        if request.confirmed is False:
            raise rejected(
                logger,
                operation,
                RequestNotConfirmedError(request.request_number, movement.value.lower()),
            )
        return self.create_transaction(
            TransactionData(
                request_id=data.request_id,
                transaction_type=movement.value,
                amount=data.amount,
                description=data.description,
            )
        )

    def register_fund_entry(self, data: TransactionData) -> TransactionInfo:
        """
        Record an ENTRY against a request whose confirmed flag is not False.

        Any transaction_type on ``data`` is ignored.

        Raises:
            RequestNotFoundError: If the request doesn't exist.
            RequestNotConfirmedError: If the request's confirmed flag is False.
        """
        return self._register(data, TransactionType.ENTRY)

    def register_fund_exit(self, data: TransactionData) -> TransactionInfo:
        """Record an EXIT. Same rules as register_fund_entry."""
        return self._register(data, TransactionType.EXIT)

    # =========================================================================
    # Reports
    # =========================================================================

    def generate_report(self, from_date: date, to_date: date) -> TransactionReport:
        """
        Summarize every transaction dated within [from_date, to_date].

        Raises:
            InvalidDateRangeError: If a bound is missing or from_date > to_date.
        """
        try:
            day_bounds(from_date, to_date)
        except InvalidDateRangeError as exc:
            raise rejected(logger, "generate_report", exc)

        transactions = TransactionSelector(self.session).list_by_date_range(
            from_date, to_date
        )
        logger.info(
            "report_generated",
            extra={
                "from_date": from_date,
                "to_date": to_date,
                "transaction_count": len(transactions),
            },
        )
        return build_transaction_report(transactions, from_date, to_date)

    def generate_report_for_request(self, request_id: UUID) -> TransactionReport:
        """
        Summarize every transaction of one request.  The date range is None.

        Raises:
            RequestNotFoundError: If the request doesn't exist.
        """
        self._get_request(request_id)
        transactions = TransactionSelector(self.session).list_by_request_id(request_id)
        logger.info(
            "request_report_generated",
            extra={"request_id": str(request_id), "transaction_count": len(transactions)},
        )
        return build_transaction_report(transactions)
