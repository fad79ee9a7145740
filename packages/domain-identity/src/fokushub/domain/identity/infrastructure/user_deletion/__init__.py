"""User deletion: clear every row that references a user, then the user."""

from fokushub.domain.identity.infrastructure.user_deletion.audit import AuditReporter
from fokushub.domain.identity.infrastructure.user_deletion.coverage import (
    UncoveredReference,
    find_uncovered_references,
)
from fokushub.domain.identity.infrastructure.user_deletion.errors import (
    DeletionError,
    DependencyGraphError,
    RootDeletionError,
    StepDeletionError,
)
from fokushub.domain.identity.infrastructure.user_deletion.executor import DeletionExecutor
from fokushub.domain.identity.infrastructure.user_deletion.graph import (
    USER_DEPENDENCY_GRAPH,
    DependencyGraph,
    PrincipalRelation,
    RelationDescriptor,
    RelationKind,
    direct,
    via_owned,
)
from fokushub.domain.identity.infrastructure.user_deletion.orchestrator import (
    DeletionOrchestrator,
    build_user_deletion_orchestrator,
)
from fokushub.domain.identity.infrastructure.user_deletion.principal import PrincipalStore
from fokushub.domain.identity.infrastructure.user_deletion.reporting import (
    log_deletion_report,
    summarize_steps,
)
from fokushub.domain.identity.infrastructure.user_deletion.results import (
    AuditReport,
    DeletionPhase,
    DeletionPolicy,
    DeletionReport,
    DeletionStepResult,
    PrincipalRecord,
)
from fokushub.domain.identity.infrastructure.user_deletion.root import RootEntityDeleter
from fokushub.domain.identity.infrastructure.user_deletion.settings import (
    DeletionSettings,
    get_deletion_settings,
)

__all__ = [
    "USER_DEPENDENCY_GRAPH",
    "AuditReport",
    "AuditReporter",
    "DeletionError",
    "DeletionExecutor",
    "DeletionOrchestrator",
    "DeletionPhase",
    "DeletionPolicy",
    "DeletionReport",
    "DeletionSettings",
    "DeletionStepResult",
    "DependencyGraph",
    "DependencyGraphError",
    "PrincipalRecord",
    "PrincipalRelation",
    "PrincipalStore",
    "RelationDescriptor",
    "RelationKind",
    "RootDeletionError",
    "RootEntityDeleter",
    "StepDeletionError",
    "UncoveredReference",
    "build_user_deletion_orchestrator",
    "direct",
    "find_uncovered_references",
    "get_deletion_settings",
    "log_deletion_report",
    "summarize_steps",
    "via_owned",
]
