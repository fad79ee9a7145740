"""Error taxonomy for user deletion.

Only ``NotFoundError`` (from the foundation package) and ``RootDeletionError``
fail a best-effort deletion. ``StepDeletionError`` is normally recorded on a
step result and counted; in strict mode it is raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fokushub.foundation.domain.exceptions import ConflictError, DomainError

if TYPE_CHECKING:
    from fokushub.domain.identity.infrastructure.user_deletion.results import DeletionReport

__all__ = [
    "DeletionError",
    "DependencyGraphError",
    "RootDeletionError",
    "StepDeletionError",
]


class DeletionError(DomainError):
    """Base class for failures while deleting a user and its dependents.

    Attributes:
        report: Aggregated deletion report, attached by the orchestrator
            once the run has been summarized. None while the error is
            still travelling inside a single step.
    """

    error_code: str = "DELETION_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message, context)
        self.report: DeletionReport | None = None


class StepDeletionError(DeletionError):
    """One relation descriptor's delete statement failed.

    Typical causes are a foreign-key violation from a table missing from the
    dependency graph, a statement timeout, or a transient store error.

    Example:
        >>> raise StepDeletionError("campaigns", "campaigns", "FOREIGN KEY constraint failed")
        StepDeletionError: Deleting 'campaigns' failed: FOREIGN KEY constraint failed
        (descriptor=campaigns, relation=campaigns)
    """

    error_code: str = "DELETION_STEP_FAILED"

    def __init__(
        self,
        descriptor_name: str,
        relation: str,
        reason: str,
        **extra_context: Any,
    ) -> None:
        self.descriptor_name = descriptor_name
        self.relation = relation
        self.reason = reason
        context = {
            "descriptor": descriptor_name,
            "relation": relation,
            **extra_context,
        }
        super().__init__(f"Deleting '{descriptor_name}' failed: {reason}", context)


class RootDeletionError(DeletionError):
    """The principal row itself could not be deleted.

    Fatal for the whole operation. Usually a dependent table that the graph
    does not cover (or whose step failed) still references the user.
    """

    error_code: str = "ROOT_DELETION_FAILED"

    def __init__(self, principal_id: int, reason: str, **extra_context: Any) -> None:
        self.principal_id = principal_id
        self.reason = reason
        context = {"user_id": principal_id, **extra_context}
        super().__init__(f"Failed to delete user {principal_id}: {reason}", context)


class DependencyGraphError(ConflictError):
    """The dependency graph contradicts itself.

    Raised at construction time, so a misordered default graph stops the
    process from starting instead of failing deletions at runtime.
    """

    error_code: str = "DEPENDENCY_GRAPH_INVALID"
