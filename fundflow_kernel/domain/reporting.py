"""
Transaction report aggregation.

Pure function over ``TransactionInfo`` values: only CONFIRMED movements count
toward the entry/exit totals, every transaction counts toward exactly one of
the confirmed/pending/rejected tallies.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from fundflow_kernel.domain.dtos import TransactionInfo
from fundflow_kernel.domain.lifecycle import TransactionStatus, TransactionType


@dataclass(frozen=True)
class TransactionReport:
    """Financial summary over a set of transactions."""

    from_date: date | None
    to_date: date | None
    total_entry_amount: Decimal
    total_exit_amount: Decimal
    balance: Decimal
    total_transactions: int
    confirmed_transactions: int
    pending_transactions: int
    rejected_transactions: int
    transactions: tuple[TransactionInfo, ...]


def build_transaction_report(
    transactions: Iterable[TransactionInfo],
    from_date: date | None = None,
    to_date: date | None = None,
) -> TransactionReport:
    """Aggregate ``transactions`` into a TransactionReport.

    The date range is echoed as given; it is not used to filter.
    """
    items = tuple(transactions)
    total_entry = Decimal("0")
    total_exit = Decimal("0")
    counts = {status.value: 0 for status in TransactionStatus}

    for txn in items:
        if txn.status == TransactionStatus.CONFIRMED.value:
            if txn.transaction_type == TransactionType.ENTRY.value:
                total_entry += txn.amount
            elif txn.transaction_type == TransactionType.EXIT.value:
                total_exit += txn.amount
        if txn.status in counts:
            counts[txn.status] += 1

    return TransactionReport(
        from_date=from_date,
        to_date=to_date,
        total_entry_amount=total_entry,
        total_exit_amount=total_exit,
        balance=total_entry - total_exit,
        total_transactions=len(items),
        confirmed_transactions=counts[TransactionStatus.CONFIRMED.value],
        pending_transactions=counts[TransactionStatus.PENDING.value],
        rejected_transactions=counts[TransactionStatus.REJECTED.value],
        transactions=items,
    )
