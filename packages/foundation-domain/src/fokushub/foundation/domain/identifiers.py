"""Identifier value objects for type-safe identifier handling.

FokusHub rows are keyed by PostgreSQL ``serial`` columns, so identifiers
wrap positive integers rather than UUIDs.

Example:
    >>> from fokushub.foundation.domain import UserId
    >>> UserId(42)
    UserId(value=42)
    >>> UserId.parse("42")
    UserId(value=42)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UserId:
    """User identifier wrapping a positive integer primary key.

    Attributes:
        value: The wrapped ``users.id`` value.

    Raises:
        ValueError: If value is not a positive integer. ``bool`` is rejected
            even though it is an ``int`` subclass.
    """

    value: int

    def __post_init__(self) -> None:
        """Validate the identifier on construction."""
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            msg = f"Invalid user ID type: {type(self.value).__name__}. Must be int."
            raise ValueError(msg)
        if self.value < 1:
            msg = f"Invalid user ID: {self.value}. Must be a positive integer."
            raise ValueError(msg)

    @classmethod
    def parse(cls, raw: int | str) -> UserId:
        """Build a UserId from a path parameter or other raw input.

        Args:
            raw: Integer or decimal string.

        Returns:
            Validated UserId.

        Raises:
            ValueError: If raw is not a positive integer.
        """
        if isinstance(raw, str):
            stripped = raw.strip()
            if not stripped.isdigit():
                msg = f"Invalid user ID: {raw!r}. Must be a positive integer."
                raise ValueError(msg)
            return cls(int(stripped))
        return cls(raw)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        """Return the identifier as a string for logs and payloads."""
        return str(self.value)
