"""
Typed Exception Hierarchy for the FundFlow Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (an HTTP layer, an RPC adapter, a batch script) must be able to map a
failure to a response without parsing message strings.  Every exception here:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (entity type, key, reason)

Example - WRONG way to handle errors:
    try:
        service.confirm_request(request_id)
    except Exception as e:
        if "driver and transporter" in str(e):  # FRAGILE
            ...

Example - RIGHT way:
    try:
        service.confirm_request(request_id)
    except TeamIncompleteError as e:
        api_response(code=e.code, request=e.request_number)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

Two families suffice.  A missing entity is EntityNotFoundError; every
precondition or invariant violation is InvalidOperationError.

    FundflowKernelError (base)
    |
    +-- EntityNotFoundError
    |   +-- RequestNotFoundError
    |   +-- DriverNotFoundError
    |   +-- TransporterNotFoundError
    |   +-- TransactionNotFoundError
    |
    +-- InvalidOperationError
        +-- ValidationError
        +-- DuplicateKeyError
        +-- InvalidStatusError
        +-- InvalidTransactionTypeError
        +-- InvalidDateRangeError
        +-- RequestConfirmedError
        +-- RequestNotConfirmedError
        +-- RequestHasTransactionsError
        +-- TeamIncompleteError
        +-- TeamMemberUnavailableError
        +-- RoleAlreadyAssignedError
        +-- TeamMemberNotAssignedError
        +-- UnassignmentNotAllowedError
        +-- ActiveRequestsError
        +-- AssociatedRequestsError
        +-- TransactionAlreadyResolvedError
        +-- ReferenceNumberExhaustedError
        +-- ImmutableFieldError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                          | When Raised
-----------|-------------------------------|-----------------------------------
Not found  | ENTITY_NOT_FOUND              | Key does not resolve to a record
           | REQUEST_NOT_FOUND             | Request id / number unknown
           | DRIVER_NOT_FOUND              | Driver id / matricule / cin unknown
           | TRANSPORTER_NOT_FOUND         | Transporter id / matricule / cin unknown
           | TRANSACTION_NOT_FOUND         | Transaction id / reference unknown
-----------|-------------------------------|-----------------------------------
Invalid    | INVALID_OPERATION             | Generic precondition failure
           | VALIDATION_FAILED             | Required field blank, amount <= 0
           | DUPLICATE_KEY                 | Unique business key already used
           | INVALID_STATUS                | Status outside the closed set
           | INVALID_TRANSACTION_TYPE      | Type not ENTRY / EXIT
           | INVALID_DATE_RANGE            | Missing bound or from > to
           | REQUEST_CONFIRMED             | Deleting a confirmed request
           | REQUEST_NOT_CONFIRMED         | Fund movement on unconfirmed request
           | REQUEST_HAS_TRANSACTIONS      | Deleting a request with transactions
           | TEAM_INCOMPLETE               | Confirm without driver + transporter
           | TEAM_MEMBER_UNAVAILABLE       | Assigning an unavailable member
           | ROLE_ALREADY_ASSIGNED         | Request already has that role filled
           | TEAM_MEMBER_NOT_ASSIGNED      | Unassigning a member not on request
           | UNASSIGNMENT_NOT_ALLOWED      | Unassigning from CONFIRMED/COMPLETED
           | ACTIVE_REQUESTS               | Availability toggle blocked
           | ASSOCIATED_REQUESTS           | Deleting a member still on requests
           | TRANSACTION_ALREADY_RESOLVED  | Mutating a CONFIRMED/REJECTED txn
           | REFERENCE_NUMBER_EXHAUSTED    | No free reference after N attempts
           | IMMUTABLE_FIELD               | Write-once field changed at flush

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Inherit from Exception, not ValueError/LookupError, so domain errors are
   catchable as a group and never confused with programming errors.

2. ``code`` is a class attribute so it is readable without instantiation.

3. All context is stored as attributes; the formatted message is derived.
"""


class FundflowKernelError(Exception):
    """
    Base exception for all fundflow kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FUNDFLOW_KERNEL_ERROR"


# Not-found exceptions


class EntityNotFoundError(FundflowKernelError):
    """An entity could not be resolved by the given key."""

    code: str = "ENTITY_NOT_FOUND"

    def __init__(self, entity_type: str, field: str, value: object):
        self.entity_type = entity_type
        self.field = field
        self.value = str(value)
        super().__init__(f"{entity_type} not found with {field}: {value}")


class RequestNotFoundError(EntityNotFoundError):
    """Request with the given key was not found."""

    code: str = "REQUEST_NOT_FOUND"

    def __init__(self, value: object, field: str = "id"):
        super().__init__("Request", field, value)


class DriverNotFoundError(EntityNotFoundError):
    """Driver with the given key was not found."""

    code: str = "DRIVER_NOT_FOUND"

    def __init__(self, value: object, field: str = "id"):
        super().__init__("Driver", field, value)


class TransporterNotFoundError(EntityNotFoundError):
    """Transporter with the given key was not found."""

    code: str = "TRANSPORTER_NOT_FOUND"

    def __init__(self, value: object, field: str = "id"):
        super().__init__("Transporter", field, value)


class TransactionNotFoundError(EntityNotFoundError):
    """Transaction with the given key was not found."""

    code: str = "TRANSACTION_NOT_FOUND"

    def __init__(self, value: object, field: str = "id"):
        super().__init__("Transaction", field, value)


# Invalid-operation exceptions


class InvalidOperationError(FundflowKernelError):
    """A precondition or invariant of the requested operation does not hold."""

    code: str = "INVALID_OPERATION"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ValidationError(InvalidOperationError):
    """Input data failed a required-field or range check."""

    code: str = "VALIDATION_FAILED"

    def __init__(self, field: str, reason: str):
        self.field = field
        super().__init__(reason)


class DuplicateKeyError(InvalidOperationError):
    """A unique business key is already used by another record."""

    code: str = "DUPLICATE_KEY"

    def __init__(self, entity_type: str, field: str, value: str):
        self.entity_type = entity_type
        self.field = field
        self.value = value
        super().__init__(f"{entity_type} {field} already exists: {value}")


class InvalidStatusError(InvalidOperationError):
    """Status value is outside the closed enumeration for the entity."""

    code: str = "INVALID_STATUS"

    def __init__(self, status: object, valid: tuple[str, ...]):
        self.status = status
        self.valid = valid
        super().__init__(
            f"Invalid status {status!r}. Valid statuses are: {', '.join(valid)}"
        )


class InvalidTransactionTypeError(InvalidOperationError):
    """Transaction type is neither ENTRY nor EXIT."""

    code: str = "INVALID_TRANSACTION_TYPE"

    def __init__(self, transaction_type: object):
        self.transaction_type = transaction_type
        super().__init__(
            f"Transaction type must be either ENTRY or EXIT, got {transaction_type!r}"
        )


class InvalidDateRangeError(InvalidOperationError):
    """Date range bounds are missing or inverted."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, from_date: object, to_date: object, reason: str):
        self.from_date = from_date
        self.to_date = to_date
        super().__init__(reason)


class RequestConfirmedError(InvalidOperationError):
    """Operation is not allowed on a confirmed request."""

    code: str = "REQUEST_CONFIRMED"

    def __init__(self, request_number: str, action: str):
        self.request_number = request_number
        self.action = action
        super().__init__(f"Cannot {action} confirmed request {request_number}")


class RequestNotConfirmedError(InvalidOperationError):
    """Fund movement registered against a request explicitly not confirmed."""

    code: str = "REQUEST_NOT_CONFIRMED"

    def __init__(self, request_number: str, movement: str):
        self.request_number = request_number
        self.movement = movement
        super().__init__(
            f"Cannot register fund {movement} for unconfirmed request {request_number}"
        )


class RequestHasTransactionsError(InvalidOperationError):
    """Request still owns recorded transactions."""

    code: str = "REQUEST_HAS_TRANSACTIONS"

    def __init__(self, request_number: str, count: int):
        self.request_number = request_number
        self.count = count
        super().__init__(
            f"Cannot delete request {request_number}: it has {count} transaction(s)"
        )


class TeamIncompleteError(InvalidOperationError):
    """Request confirmation requires both a driver and a transporter."""

    code: str = "TEAM_INCOMPLETE"

    def __init__(self, request_number: str):
        self.request_number = request_number
        super().__init__(
            f"Cannot confirm request {request_number} without assigned "
            "driver and transporter"
        )


class TeamMemberUnavailableError(InvalidOperationError):
    """Team member is flagged unavailable and cannot be assigned."""

    code: str = "TEAM_MEMBER_UNAVAILABLE"

    def __init__(self, role: str, matricule: str):
        self.role = role
        self.matricule = matricule
        super().__init__(f"{role} {matricule} is not available for assignment")


class RoleAlreadyAssignedError(InvalidOperationError):
    """Request already has a member assigned in this role."""

    code: str = "ROLE_ALREADY_ASSIGNED"

    def __init__(self, role: str, request_number: str):
        self.role = role
        self.request_number = request_number
        super().__init__(f"Request {request_number} already has a {role.lower()} assigned")


class TeamMemberNotAssignedError(InvalidOperationError):
    """Team member is not the one assigned to the request."""

    code: str = "TEAM_MEMBER_NOT_ASSIGNED"

    def __init__(self, role: str, matricule: str, request_number: str):
        self.role = role
        self.matricule = matricule
        self.request_number = request_number
        super().__init__(
            f"{role} {matricule} is not assigned to request {request_number}"
        )


class UnassignmentNotAllowedError(InvalidOperationError):
    """Request status forbids removing team members."""

    code: str = "UNASSIGNMENT_NOT_ALLOWED"

    def __init__(self, role: str, request_number: str, status: str):
        self.role = role
        self.request_number = request_number
        self.status = status
        super().__init__(
            f"Cannot unassign {role.lower()} from request {request_number} "
            f"with status {status}"
        )


class ActiveRequestsError(InvalidOperationError):
    """Team member still has requests that are neither completed nor cancelled."""

    code: str = "ACTIVE_REQUESTS"

    def __init__(self, role: str, matricule: str):
        self.role = role
        self.matricule = matricule
        super().__init__(
            f"Cannot change availability of {role.lower()} {matricule}: "
            "it has active requests"
        )


class AssociatedRequestsError(InvalidOperationError):
    """Team member cannot be deleted while assigned to requests."""

    code: str = "ASSOCIATED_REQUESTS"

    def __init__(self, role: str, matricule: str, count: int):
        self.role = role
        self.matricule = matricule
        self.count = count
        super().__init__(
            f"Cannot delete {role.lower()} {matricule}: assigned to {count} request(s)"
        )


class TransactionAlreadyResolvedError(InvalidOperationError):
    """Transaction reached a terminal status (CONFIRMED or REJECTED)."""

    code: str = "TRANSACTION_ALREADY_RESOLVED"

    def __init__(self, reference_number: str, status: str, action: str):
        self.reference_number = reference_number
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} transaction {reference_number}: "
            f"it is already {status.lower()}"
        )


class ReferenceNumberExhaustedError(InvalidOperationError):
    """No unused reference number was found within the attempt budget."""

    code: str = "REFERENCE_NUMBER_EXHAUSTED"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Could not allocate a unique reference number after {attempts} attempts"
        )


class ImmutableFieldError(InvalidOperationError):
    """A write-once field or a terminal status was changed at flush time."""

    code: str = "IMMUTABLE_FIELD"

    def __init__(self, entity_type: str, entity_id: str, field: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.field = field
        super().__init__(f"{entity_type} {entity_id}: field '{field}' is immutable")
