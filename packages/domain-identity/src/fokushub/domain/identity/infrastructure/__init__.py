"""FokusHub Domain Identity Infrastructure — schema and user deletion."""

from fokushub.domain.identity.infrastructure.schema import ensure_tables_exist, metadata
from fokushub.domain.identity.infrastructure.user_deletion import (
    DeletionOrchestrator,
    build_user_deletion_orchestrator,
)

__all__ = [
    "DeletionOrchestrator",
    "build_user_deletion_orchestrator",
    "ensure_tables_exist",
    "metadata",
]
