"""
Transaction reference numbers.

A reference is ``prefix`` followed by ``length`` uppercase hex characters
taken from a fresh uuid4, e.g. ``TXN-3F9A01BC``.  Generation is pure; the
funds service owns the uniqueness check against storage.
"""

from __future__ import annotations

import re
from uuid import uuid4

DEFAULT_PREFIX = "TXN-"
DEFAULT_LENGTH = 8


class ReferenceNumberGenerator:
    """Produces candidate reference numbers."""

    def __init__(
        self,
        prefix: str = DEFAULT_PREFIX,
        length: int = DEFAULT_LENGTH,
        max_attempts: int = 5,
    ) -> None:
        if not 1 <= length <= 32:
            raise ValueError(f"reference length must be between 1 and 32, got {length}")
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {max_attempts}")
        self.prefix = prefix
        self.length = length
        self.max_attempts = max_attempts
        self._pattern = re.compile(rf"^{re.escape(prefix)}[0-9A-F]{{{length}}}$")

    def generate(self) -> str:
        return self.prefix + uuid4().hex[: self.length].upper()

    def matches(self, reference_number: str) -> bool:
        """True if ``reference_number`` has the shape this generator produces."""
        return bool(self._pattern.match(reference_number))
