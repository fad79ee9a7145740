"""In-memory results of audits and deletion runs.

Nothing here is persisted. Reports are handed to observers (logging) and
back to the caller, and ``to_dict()`` gives the payload shape the admin
"debug user" and "delete user" views expect.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from fokushub.domain.identity.infrastructure.user_deletion.errors import RootDeletionError

if TYPE_CHECKING:
    from fokushub.domain.identity.infrastructure.user_deletion.errors import StepDeletionError
    from fokushub.domain.identity.infrastructure.user_deletion.graph import RelationDescriptor
    from fokushub.foundation.domain.exceptions import DomainError


class DeletionPhase(StrEnum):
    """Lifecycle of one deletion run.

        START -> VERIFYING -> CLEARING -> DELETING_ROOT -> COMPLETED
                                                       \\-> FATAL_FAILURE

    A run that ends in FATAL_FAILURE is not resumable; call delete again.
    """

    START = "start"
    VERIFYING = "verifying"
    CLEARING = "clearing"
    DELETING_ROOT = "deleting_root"
    COMPLETED = "completed"
    FATAL_FAILURE = "fatal_failure"


class DeletionPolicy(StrEnum):
    """How step failures are handled.

    BEST_EFFORT runs every step in its own transaction and records failures;
    STRICT runs everything in one transaction and rolls back on the first
    failure.
    """

    BEST_EFFORT = "best_effort"
    STRICT = "strict"


@dataclass(frozen=True, slots=True)
class PrincipalRecord:
    """Key and summary columns of the user being audited or deleted."""

    id: int
    attributes: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, **self.attributes}


@dataclass(frozen=True, slots=True)
class DeletionStepResult:
    """Outcome of one descriptor's delete statement.

    Attributes:
        descriptor: The relation descriptor that was executed.
        rows_deleted: Rows removed (0 on failure).
        error: The failure, or None when the step succeeded.
        attempted: False for STRICT steps skipped after an earlier failure.
            They count as failures.
    """

    descriptor: RelationDescriptor
    rows_deleted: int = 0
    error: StepDeletionError | None = None
    attempted: bool = True

    @classmethod
    def success(cls, descriptor: RelationDescriptor, rows_deleted: int) -> DeletionStepResult:
        return cls(descriptor=descriptor, rows_deleted=rows_deleted)

    @classmethod
    def failure(
        cls, descriptor: RelationDescriptor, error: StepDeletionError
    ) -> DeletionStepResult:
        return cls(descriptor=descriptor, error=error)

    @classmethod
    def not_attempted(
        cls, descriptor: RelationDescriptor, error: StepDeletionError
    ) -> DeletionStepResult:
        return cls(descriptor=descriptor, error=error, attempted=False)

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        if self.error is None:
            return {"status": "deleted", "rows": self.rows_deleted}
        status = "failed" if self.attempted else "not_attempted"
        return {"status": status, "reason": self.error.reason}


@dataclass
class DeletionReport:
    """Aggregate of one deletion run.

    ``steps`` holds one result per descriptor, so ``success_count +
    failure_count`` equals the graph length. A STRICT run stops at the first
    failed step, records the rest as not attempted and rolls everything back.

    Attributes:
        principal_id: The user that was deleted (or attempted).
        steps: Step results in graph order.
        root_rows_deleted: Rows removed from the principal table.
        fatal_error: The error that failed the run, if any.
        rolled_back: True when a STRICT run undid its deletes.
        phase: Last phase the run reached.
        policy: Policy the run was executed with.
    """

    principal_id: int
    steps: list[DeletionStepResult] = field(default_factory=list)
    root_rows_deleted: int = 0
    fatal_error: DomainError | None = None
    rolled_back: bool = False
    phase: DeletionPhase = DeletionPhase.START
    policy: DeletionPolicy = DeletionPolicy.BEST_EFFORT

    @property
    def root_error(self) -> RootDeletionError | None:
        """The root deletion failure, when that is what failed the run."""
        if isinstance(self.fatal_error, RootDeletionError):
            return self.fatal_error
        return None

    @property
    def success_count(self) -> int:
        return sum(1 for step in self.steps if step.succeeded)

    @property
    def failure_count(self) -> int:
        return sum(1 for step in self.steps if not step.succeeded)

    @property
    def failures(self) -> list[DeletionStepResult]:
        return [step for step in self.steps if not step.succeeded]

    @property
    def dependent_rows_deleted(self) -> int:
        if self.rolled_back:
            return 0
        return sum(step.rows_deleted for step in self.steps)

    @property
    def rows_deleted(self) -> int:
        """Dependent rows plus the principal row."""
        return self.dependent_rows_deleted + self.root_rows_deleted

    @property
    def root_deleted(self) -> bool:
        return self.phase is DeletionPhase.COMPLETED and self.root_rows_deleted > 0

    @property
    def fully_successful(self) -> bool:
        """Every step and the root deletion succeeded."""
        return self.failure_count == 0 and self.root_deleted

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.root_deleted,
            "userId": self.principal_id,
            "phase": str(self.phase),
            "successCount": self.success_count,
            "errorCount": self.failure_count,
            "rowsDeleted": self.rows_deleted,
            "rolledBack": self.rolled_back,
            "steps": {step.name: step.to_dict() for step in self.steps},
        }
        if self.fatal_error is not None:
            payload["message"] = self.fatal_error.message
            payload["details"] = self.fatal_error.error_code
            payload["error"] = self.fatal_error.to_dict()
        else:
            payload["message"] = "User deleted successfully"
        return payload


@dataclass(frozen=True)
class AuditReport:
    """Read-only count of everything a deletion would touch.

    Attributes:
        principal: The audited user.
        per_table_counts: Rows per descriptor name, in graph order.
    """

    principal: PrincipalRecord
    per_table_counts: dict[str, int]

    @property
    def total_related_records(self) -> int:
        return sum(self.per_table_counts.values())

    @property
    def can_delete_cleanly(self) -> bool:
        """True when the user has no dependent rows at all."""
        return self.total_related_records == 0

    def non_empty(self) -> dict[str, int]:
        """Counts for descriptors that matched at least one row."""
        return {name: count for name, count in self.per_table_counts.items() if count}

    def to_dict(self) -> dict[str, Any]:
        total = self.total_related_records
        return {
            "user": self.principal.to_dict(),
            "relatedRecords": dict(self.per_table_counts),
            "totalRelatedRecords": total,
            "canDelete": (
                "Yes - no related records"
                if total == 0
                else f"Yes - {total} related records will be removed first"
            ),
        }
