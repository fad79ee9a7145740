"""FokusHub Foundation Domain -- pure Python domain primitives.

This package provides the foundational domain building blocks shared by
the FokusHub bounded contexts: identifiers and the exception hierarchy.
"""

from fokushub.foundation.domain.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from fokushub.foundation.domain.identifiers import UserId

__all__ = [
    "ConflictError",
    "DomainError",
    "NotFoundError",
    "UserId",
    "ValidationError",
]
