"""Pure domain layer: lifecycle enums, value objects, DTOs, report aggregation."""
