"""FokusHub Domain Identity — users and everything that hangs off them."""

from fokushub.domain.identity.infrastructure.user_deletion import (
    AuditReport,
    DeletionOrchestrator,
    DeletionReport,
    build_user_deletion_orchestrator,
)

__all__ = [
    "AuditReport",
    "DeletionOrchestrator",
    "DeletionReport",
    "build_user_deletion_orchestrator",
]
