"""Pre-flight dependency audit: what would deleting this user touch?

Backs the admin "debug user deletion" view. Runs one COUNT per descriptor
of the same graph the executor deletes with, and never writes. A row two
descriptors share is counted under the one that runs first, so the counts
add up to what the executor removes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fokushub.domain.identity.infrastructure.user_deletion.principal import PrincipalStore
from fokushub.domain.identity.infrastructure.user_deletion.results import AuditReport
from fokushub.domain.identity.infrastructure.user_deletion.statements import count_statement

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

    from fokushub.domain.identity.infrastructure.user_deletion.graph import DependencyGraph

logger = logging.getLogger(__name__)


class AuditReporter:
    """Counts dependent rows per relation descriptor.

    Store errors propagate: a partial audit would under-report what a
    deletion is about to remove.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
        graph: Dependency graph shared with the deletion executor.
    """

    def __init__(self, session_factory: Callable[[], Session], graph: DependencyGraph) -> None:
        self._session_factory = session_factory
        self._graph = graph
        self._principals = PrincipalStore(session_factory, graph.principal)

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    def audit(self, principal_id: int) -> AuditReport:
        """Count every row that references the user, per descriptor.

        Args:
            principal_id: ``users.id`` of the user to audit.

        Returns:
            AuditReport keyed by descriptor name, in graph order.

        Raises:
            NotFoundError: If the user does not exist.
        """
        principal = self._principals.require(principal_id)

        counts: dict[str, int] = {}
        with self._session_factory() as session:
            ordered = self._graph.ordered()
            for position, descriptor in enumerate(ordered):
                statement = count_statement(descriptor, principal_id, ordered[:position])
                count = session.execute(statement).scalar_one()
                counts[descriptor.name] = int(count)

        report = AuditReport(principal=principal, per_table_counts=counts)
        logger.info(
            "dependency_audit_completed",
            extra={
                "user_id": principal_id,
                "total_related_records": report.total_related_records,
                "related_records": report.non_empty(),
            },
        )
        return report
