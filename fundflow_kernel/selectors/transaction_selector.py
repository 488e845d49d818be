"""
Module: fundflow_kernel.selectors.transaction_selector
Responsibility: Read-only queries over fund movements.
Architecture position: Kernel > Selectors.

Date-range queries are inclusive of whole days: [from_date 00:00:00,
to_date 23:59:59.999999] in UTC.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time
from uuid import UUID

from sqlalchemy import Select, select

from fundflow_kernel.domain.dtos import TransactionInfo
from fundflow_kernel.domain.lifecycle import (
    TRANSACTION_STATUSES,
    TRANSACTION_TYPES,
    TransactionStatus,
    TransactionType,
)
from fundflow_kernel.exceptions import (
    InvalidDateRangeError,
    InvalidStatusError,
    InvalidTransactionTypeError,
    RequestNotFoundError,
    TransactionNotFoundError,
)
from fundflow_kernel.models.request import Request
from fundflow_kernel.models.transaction import Transaction
from fundflow_kernel.selectors.base import BaseSelector


def day_bounds(from_date: date | None, to_date: date | None) -> tuple[datetime, datetime]:
    """
    Expand a date range to the first and last instant of its days.

    Raises:
        InvalidDateRangeError: If a bound is missing or from_date > to_date.
    """
    if from_date is None or to_date is None:
        raise InvalidDateRangeError(
            from_date, to_date, "Both from_date and to_date are required"
        )
    if from_date > to_date:
        raise InvalidDateRangeError(
            from_date, to_date, "from_date must not be after to_date"
        )
    return (
        datetime.combine(from_date, time.min, tzinfo=UTC),
        datetime.combine(to_date, time.max, tzinfo=UTC),
    )


def _type_value(transaction_type: str | TransactionType) -> str:
    value = transaction_type.value if isinstance(transaction_type, TransactionType) else transaction_type
    if value not in TRANSACTION_TYPES:
        raise InvalidTransactionTypeError(transaction_type)
    return value


def _status_value(status: str | TransactionStatus) -> str:
    value = status.value if isinstance(status, TransactionStatus) else status
    if value not in TRANSACTION_STATUSES:
        raise InvalidStatusError(status, TRANSACTION_STATUSES)
    return value


class TransactionSelector(BaseSelector[Transaction]):
    """
    Read-only queries for transactions.

    Lists are ordered by transaction_date then reference_number.
    """

    def _list(self, stmt: Select) -> list[TransactionInfo]:
        stmt = stmt.order_by(Transaction.transaction_date, Transaction.reference_number)
        return [
            TransactionInfo.from_model(t)
            for t in self._all(stmt)
        ]

    def get_by_id(self, transaction_id: UUID) -> TransactionInfo:
        """
        Raises:
            TransactionNotFoundError: If the transaction doesn't exist.
        """
        txn = self.session.get(Transaction, transaction_id)
        if txn is None:
            raise TransactionNotFoundError(transaction_id)
        return TransactionInfo.from_model(txn)

    def get_by_reference_number(self, reference_number: str) -> TransactionInfo:
        """
        Raises:
            TransactionNotFoundError: If no transaction has this reference.
        """
        txn = self._one_or_none(
            select(Transaction).where(Transaction.reference_number == reference_number)
        )
        if txn is None:
            raise TransactionNotFoundError(reference_number, field="reference_number")
        return TransactionInfo.from_model(txn)

    def list_by_request_id(self, request_id: UUID) -> list[TransactionInfo]:
        """
        All transactions of one request.

        Raises:
            RequestNotFoundError: If the request doesn't exist.
        """
        if self.session.get(Request, request_id) is None:
            raise RequestNotFoundError(request_id)
        return self._list(select(Transaction).where(Transaction.request_id == request_id))

    def list_by_request_number(self, request_number: str) -> list[TransactionInfo]:
        """All transactions of the request with this number; empty if none."""
        return self._list(
            select(Transaction)
            .join(Request, Transaction.request_id == Request.id)
            .where(Request.request_number == request_number)
        )

    def list_by_type(self, transaction_type: str | TransactionType) -> list[TransactionInfo]:
        value = _type_value(transaction_type)
        return self._list(select(Transaction).where(Transaction.transaction_type == value))

    def list_by_status(self, status: str | TransactionStatus) -> list[TransactionInfo]:
        value = _status_value(status)
        return self._list(select(Transaction).where(Transaction.status == value))

    def list_by_request_and_type(
        self,
        request_id: UUID,
        transaction_type: str | TransactionType,
    ) -> list[TransactionInfo]:
        value = _type_value(transaction_type)
        return self._list(
            select(Transaction).where(
                Transaction.request_id == request_id,
                Transaction.transaction_type == value,
            )
        )

    def list_by_date_range(
        self, from_date: date, to_date: date
    ) -> list[TransactionInfo]:
        """
        Transactions dated within [from_date, to_date], whole days inclusive.

        Raises:
            InvalidDateRangeError: If a bound is missing or from_date > to_date.
        """
        start, end = day_bounds(from_date, to_date)
        return self._list(
            select(Transaction).where(Transaction.transaction_date.between(start, end))
        )

    def list_by_date_range_and_status(
        self,
        from_date: date,
        to_date: date,
        status: str | TransactionStatus,
    ) -> list[TransactionInfo]:
        start, end = day_bounds(from_date, to_date)
        value = _status_value(status)
        return self._list(
            select(Transaction).where(
                Transaction.transaction_date.between(start, end),
                Transaction.status == value,
            )
        )
