"""
Employee identity value object.

Drivers and transporters share the same identity fields.  Instead of a base
class, both ORM models embed this frozen value as a SQLAlchemy composite
over their own ``matricule``, ``first_name``, ``last_name`` and ``cin``
columns.  Field order matches the column order of the composite.
"""

from __future__ import annotations

from dataclasses import dataclass

from fundflow_kernel.exceptions import ValidationError


@dataclass(frozen=True)
class EmployeeIdentity:
    """Identity shared by every team member."""

    matricule: str
    first_name: str
    last_name: str
    cin: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def validate(self) -> None:
        """Raise ValidationError on the first blank required field."""
        for field_name, label in (
            ("matricule", "Matricule"),
            ("first_name", "First name"),
            ("last_name", "Last name"),
            ("cin", "CIN"),
        ):
            value = getattr(self, field_name)
            if value is None or not str(value).strip():
                raise ValidationError(field_name, f"{label} is required")
