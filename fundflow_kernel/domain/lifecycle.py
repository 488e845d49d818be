"""
Lifecycle domain types (``fundflow_kernel.domain.lifecycle``).

Responsibility
--------------
Closed enumerations and transition tables for the two state machines of the
kernel: the Request status workflow and the Transaction confirm/reject flow.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports from
``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Transaction statuses move one way only: PENDING -> CONFIRMED or
  PENDING -> REJECTED.  ``TRANSACTION_TRANSITIONS`` has no outgoing edges
  for terminal states.
* Request statuses are a closed set; any status may be set explicitly via
  the status operation, so no transition table is defined for requests.
"""

from __future__ import annotations

from enum import Enum


# =========================================================================
# Request lifecycle
# =========================================================================


class RequestStatus(str, Enum):
    """Request workflow states."""

    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


REQUEST_STATUSES: tuple[str, ...] = tuple(s.value for s in RequestStatus)

# A team member on a request in one of these states is no longer busy with it.
INACTIVE_REQUEST_STATUSES: frozenset[str] = frozenset({
    RequestStatus.COMPLETED.value,
    RequestStatus.CANCELLED.value,
})

# Team members cannot be removed from a request in one of these states.
UNASSIGN_LOCKED_STATUSES: frozenset[str] = frozenset({
    RequestStatus.CONFIRMED.value,
    RequestStatus.COMPLETED.value,
})


class TeamRole(str, Enum):
    """The two team slots of a request."""

    DRIVER = "Driver"
    TRANSPORTER = "Transporter"


# =========================================================================
# Transaction lifecycle
# =========================================================================


class TransactionType(str, Enum):
    """Direction of a fund movement."""

    ENTRY = "ENTRY"
    EXIT = "EXIT"


class TransactionStatus(str, Enum):
    """Transaction confirmation states."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"


TRANSACTION_TYPES: tuple[str, ...] = tuple(t.value for t in TransactionType)
TRANSACTION_STATUSES: tuple[str, ...] = tuple(s.value for s in TransactionStatus)

TRANSACTION_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.PENDING: frozenset({
        TransactionStatus.CONFIRMED,
        TransactionStatus.REJECTED,
    }),
    TransactionStatus.CONFIRMED: frozenset(),
    TransactionStatus.REJECTED: frozenset(),
}

TERMINAL_TRANSACTION_STATUSES: frozenset[str] = frozenset({
    TransactionStatus.CONFIRMED.value,
    TransactionStatus.REJECTED.value,
})


def can_transition(current: str, target: str) -> bool:
    """Return True if a transaction may move from ``current`` to ``target``."""
    try:
        allowed = TRANSACTION_TRANSITIONS[TransactionStatus(current)]
        return TransactionStatus(target) in allowed
    except ValueError:
        return False
