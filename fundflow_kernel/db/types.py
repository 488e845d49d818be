"""
Module: fundflow_kernel.db.types
Responsibility: Column type for monetary amounts and coercion of user-supplied
    amounts.  Centralizes precision so that every model and service uses
    identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats for money.  Amounts are Decimal with two decimal places at
      rest (Numeric(19, 2)).

Failure modes:
    - ValidationError from to_money() on input that is not a finite number.
"""

from decimal import Decimal, InvalidOperation

from sqlalchemy import Numeric

from fundflow_kernel.exceptions import ValidationError

# Monetary amount column type: 19 digits total, 2 decimal places
Money = Numeric(19, 2)


def to_money(value: object, field: str = "amount") -> Decimal | None:
    """
    Coerce a user-supplied amount to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary
    expansion.  None passes through for callers that check presence.

    Raises:
        ValidationError: If value cannot be read as a number.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(field, f"{field} must be a number, got {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(field, f"{field} must be a number, got {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(field, f"{field} must be a finite number, got {value!r}")
    return amount
