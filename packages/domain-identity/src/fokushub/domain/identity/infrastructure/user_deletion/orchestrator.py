"""Public entry point for deleting a user and everything that references it.

Sequence per call:
    existence check -> dependent steps (graph order) -> user row -> report

Policy:
- BEST_EFFORT (default): each step commits on its own; failed steps are
  recorded and the root deletion is attempted regardless. Only a missing
  user or a failed root deletion fails the call.
- STRICT: one transaction; the first failed step rolls everything back and
  fails the call.

Calls for the same user id within one process are serialized. A call that
waited behind a successful one finds the user gone and raises
``NotFoundError``.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, NoReturn

from sqlalchemy.exc import SQLAlchemyError

from fokushub.domain.identity.infrastructure.schema import metadata as fokushub_metadata
from fokushub.domain.identity.infrastructure.user_deletion.audit import AuditReporter
from fokushub.domain.identity.infrastructure.user_deletion.coverage import (
    find_uncovered_references,
)
from fokushub.domain.identity.infrastructure.user_deletion.errors import (
    DeletionError,
    RootDeletionError,
)
from fokushub.domain.identity.infrastructure.user_deletion.executor import (
    DeletionExecutor,
    describe_store_error,
)
from fokushub.domain.identity.infrastructure.user_deletion.graph import (
    USER_DEPENDENCY_GRAPH,
    DependencyGraph,
)
from fokushub.domain.identity.infrastructure.user_deletion.principal import PrincipalStore
from fokushub.domain.identity.infrastructure.user_deletion.reporting import log_deletion_report
from fokushub.domain.identity.infrastructure.user_deletion.results import (
    DeletionPhase,
    DeletionPolicy,
    DeletionReport,
)
from fokushub.domain.identity.infrastructure.user_deletion.root import RootEntityDeleter
from fokushub.domain.identity.infrastructure.user_deletion.settings import (
    DeletionSettings,
    get_deletion_settings,
)
from fokushub.foundation.domain.exceptions import DomainError, NotFoundError, ValidationError
from fokushub.foundation.domain.identifiers import UserId

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from sqlalchemy import MetaData
    from sqlalchemy.orm import Session

    from fokushub.domain.identity.infrastructure.user_deletion.reporting import ReportObserver
    from fokushub.domain.identity.infrastructure.user_deletion.results import AuditReport

logger = logging.getLogger(__name__)


class _PrincipalLocks:
    """Process-wide registry of one lock per principal id.

    Entries are reference counted and dropped once nobody holds or waits
    for them.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}
        self._waiters: dict[int, int] = {}

    @contextmanager
    def hold(self, principal_id: int) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(principal_id, threading.Lock())
            self._waiters[principal_id] = self._waiters.get(principal_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._waiters[principal_id] -= 1
                if self._waiters[principal_id] == 0:
                    del self._waiters[principal_id]
                    del self._locks[principal_id]


_PRINCIPAL_LOCKS = _PrincipalLocks()


def _coerce_principal_id(principal_id: int | UserId) -> int:
    if isinstance(principal_id, UserId):
        return principal_id.value
    try:
        return UserId(principal_id).value
    except ValueError as exc:
        raise ValidationError("user_id", str(exc)) from exc


class DeletionOrchestrator:
    """Deletes a user after clearing every row the dependency graph describes.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
        graph: Dependency graph shared by the audit and the executor.
        policy: BEST_EFFORT or STRICT.
        step_timeout_seconds: Per-step statement timeout (PostgreSQL only).
        observers: Callables receiving every finished report, including
            failed ones. Defaults to structured logging of the summary.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        graph: DependencyGraph = USER_DEPENDENCY_GRAPH,
        *,
        policy: DeletionPolicy = DeletionPolicy.BEST_EFFORT,
        step_timeout_seconds: float | None = None,
        observers: Iterable[ReportObserver] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._graph = graph
        self._policy = policy
        self._principals = PrincipalStore(session_factory, graph.principal)
        self._auditor = AuditReporter(session_factory, graph)
        self._executor = DeletionExecutor(session_factory, graph, step_timeout_seconds)
        self._root = RootEntityDeleter(session_factory, graph.principal)
        self._observers: tuple[ReportObserver, ...] = (
            tuple(observers) if observers is not None else (log_deletion_report,)
        )

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    @property
    def policy(self) -> DeletionPolicy:
        return self._policy

    def audit(self, principal_id: int | UserId) -> AuditReport:
        """Count what ``delete`` would remove, using the same graph.

        Raises:
            ValidationError: If the id is not a positive integer.
            NotFoundError: If the user does not exist.
        """
        return self._auditor.audit(_coerce_principal_id(principal_id))

    def delete(self, principal_id: int | UserId) -> DeletionReport:
        """Delete the user's dependent rows, then the user.

        Args:
            principal_id: ``users.id`` of the user to delete.

        Returns:
            Report of the run. Under BEST_EFFORT it may contain failed steps
            even though the user row is gone.

        Raises:
            ValidationError: If the id is not a positive integer.
            NotFoundError: If the user does not exist; no delete statement
                has been executed.
            RootDeletionError: If the user row could not be removed. The
                report is attached as ``error.report``.
            StepDeletionError: STRICT policy only, on the first failed step.
                The report is attached as ``error.report``.
        """
        user_id = _coerce_principal_id(principal_id)
        with _PRINCIPAL_LOCKS.hold(user_id):
            report = DeletionReport(principal_id=user_id, policy=self._policy)
            report.phase = DeletionPhase.VERIFYING
            self._principals.require(user_id)
            logger.info(
                "user_deletion_started",
                extra={"user_id": user_id, "policy": str(self._policy), "steps": len(self._graph)},
            )
            if self._policy is DeletionPolicy.STRICT:
                return self._delete_atomically(report)
            return self._delete_best_effort(report)

    def _delete_best_effort(self, report: DeletionReport) -> DeletionReport:
        report.phase = DeletionPhase.CLEARING
        report.steps = self._executor.run(report.principal_id)

        report.phase = DeletionPhase.DELETING_ROOT
        try:
            report.root_rows_deleted = self._root.delete_root(report.principal_id)
        except (RootDeletionError, NotFoundError) as exc:
            self._fail(report, exc)

        report.phase = DeletionPhase.COMPLETED
        self._notify(report)
        return report

    def _delete_atomically(self, report: DeletionReport) -> DeletionReport:
        with self._session_factory() as session:
            report.phase = DeletionPhase.CLEARING
            report.steps = self._executor.run_in_session(session, report.principal_id)
            failed = report.failures
            if failed:
                session.rollback()
                report.rolled_back = True
                assert failed[0].error is not None
                self._fail(report, failed[0].error)

            report.phase = DeletionPhase.DELETING_ROOT
            try:
                report.root_rows_deleted = self._root.delete_root_in_session(
                    session, report.principal_id
                )
                session.commit()
            except (RootDeletionError, NotFoundError) as exc:
                session.rollback()
                report.rolled_back = True
                self._fail(report, exc)
            except SQLAlchemyError as exc:
                session.rollback()
                report.rolled_back = True
                error = RootDeletionError(report.principal_id, describe_store_error(exc))
                error.__cause__ = exc
                self._fail(report, error)

        report.phase = DeletionPhase.COMPLETED
        self._notify(report)
        return report

    def _fail(self, report: DeletionReport, error: DomainError) -> NoReturn:
        report.phase = DeletionPhase.FATAL_FAILURE
        report.fatal_error = error
        if isinstance(error, DeletionError):
            error.report = report
        self._notify(report)
        raise error

    def _notify(self, report: DeletionReport) -> None:
        for observer in self._observers:
            observer(report)


def build_user_deletion_orchestrator(
    session_factory: Callable[[], Session] | None = None,
    settings: DeletionSettings | None = None,
    *,
    graph: DependencyGraph = USER_DEPENDENCY_GRAPH,
    metadata: MetaData | None = None,
    observers: Iterable[ReportObserver] | None = None,
) -> DeletionOrchestrator:
    """Wire a DeletionOrchestrator from settings.

    Args:
        session_factory: Session factory; defaults to the process-wide one
            from ``fokushub.infra.persistence``.
        settings: Deletion settings; defaults to environment-loaded settings.
        graph: Dependency graph to delete with.
        metadata: Table metadata checked for foreign keys the graph misses;
            defaults to the FokusHub schema.
        observers: Report observers; defaults to structured logging.

    Returns:
        Configured orchestrator.
    """
    if session_factory is None:
        from fokushub.infra.persistence import get_sync_session_factory

        session_factory = get_sync_session_factory()
    if settings is None:
        settings = get_deletion_settings()

    if settings.warn_on_uncovered_references:
        for reference in find_uncovered_references(graph, metadata or fokushub_metadata):
            logger.warning(
                "user_deletion_uncovered_reference",
                extra={
                    "relation": reference.relation,
                    "attribute": reference.attribute,
                    "target": reference.target,
                },
            )

    return DeletionOrchestrator(
        session_factory,
        graph,
        policy=settings.policy,
        step_timeout_seconds=settings.step_timeout_seconds,
        observers=observers,
    )
