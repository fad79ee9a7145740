"""Domain exception hierarchy shared by the FokusHub packages.

Every error carries a machine-readable ``error_code`` and a ``context``
dict of primitives (row ids, table names, phases) so callers can log it
and hand it to API clients without parsing the message.

Example:
    >>> from fokushub.foundation.domain.exceptions import NotFoundError
    >>> raise NotFoundError("User", 42)
    NotFoundError: User not found: 42 (resource_type=User, resource_id=42)
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "ConflictError",
    "DomainError",
    "NotFoundError",
    "ValidationError",
]


class DomainError(Exception):
    """Base class for all domain errors.

    Attributes:
        error_code: Machine-readable code, constant per subclass.
        message: Human-readable description without the context.
        context: Structured debugging information with snake_case keys.
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Error payload as returned to admin clients."""
        return {"error": self.error_code, "message": self.message, "context": dict(self.context)}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    """A row looked up by identifier does not exist (HTTP 404).

    ``resource_id`` keeps its original type; the context holds it as a
    string so payloads stay uniform.
    """

    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: int | str, **extra_context: Any) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type, "resource_id": str(resource_id), **extra_context},
        )


class ValidationError(DomainError):
    """Input violates a domain rule (HTTP 422).

    Example:
        >>> raise ValidationError("user_id", "Must be a positive integer")
        ValidationError: Validation failed for 'user_id': Must be a positive integer
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str, **extra_context: Any) -> None:
        self.field = field
        self.reason = reason
        super().__init__(
            f"Validation failed for '{field}': {reason}",
            {"field": field, "reason": reason, **extra_context},
        )


class ConflictError(DomainError):
    """Configuration or state contradicts itself (HTTP 409).

    Used for a deletion order that removes a relation before the rows that
    still need it.
    """

    error_code: str = "CONFLICT"

    def __init__(self, reason: str, **context: Any) -> None:
        self.reason = reason
        super().__init__(f"Conflict: {reason}", context)
