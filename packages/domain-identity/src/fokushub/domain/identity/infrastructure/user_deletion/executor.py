"""Deletion executor: one DELETE per relation descriptor, in graph order.

Best-effort by default. Each step runs in its own session and commits on
its own, so a constraint violation on one table neither blocks the other
tables nor hides their outcome. Only store errors (``SQLAlchemyError``)
are turned into step failures; anything else is a bug and propagates.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from fokushub.domain.identity.infrastructure.user_deletion.errors import StepDeletionError
from fokushub.domain.identity.infrastructure.user_deletion.results import DeletionStepResult
from fokushub.domain.identity.infrastructure.user_deletion.statements import delete_statement

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

    from fokushub.domain.identity.infrastructure.user_deletion.graph import (
        DependencyGraph,
        RelationDescriptor,
    )

logger = logging.getLogger(__name__)


def describe_store_error(exc: SQLAlchemyError) -> str:
    """Short, driver-level reason for a failed statement."""
    source: BaseException = getattr(exc, "orig", None) or exc
    message = str(source).strip()
    return message.splitlines()[0] if message else type(source).__name__


class DeletionExecutor:
    """Removes every dependent row of a user, table by table.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
        graph: Dependency graph defining the statements and their order.
        step_timeout_seconds: Per-statement timeout. Applied on PostgreSQL
            through a transaction-local ``statement_timeout``; a timeout is
            reported like any other step failure. None or 0 disables it.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        graph: DependencyGraph,
        step_timeout_seconds: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._graph = graph
        self._step_timeout_seconds = step_timeout_seconds or None

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    def run(self, principal_id: int) -> list[DeletionStepResult]:
        """Execute every step in its own transaction.

        Never aborts early: the returned list holds exactly one result per
        descriptor, failures included.

        Args:
            principal_id: ``users.id`` whose dependents are deleted.

        Returns:
            Step results in graph order.
        """
        results: list[DeletionStepResult] = []
        for descriptor in self._graph:
            try:
                with self._session_factory() as session:
                    rows = self._execute_step(session, descriptor, principal_id)
                    session.commit()
            except SQLAlchemyError as exc:
                error = self._step_error(descriptor, principal_id, exc)
                logger.warning(
                    "user_deletion_step_failed",
                    extra={
                        "user_id": principal_id,
                        "descriptor": descriptor.name,
                        "relation": descriptor.relation,
                        "reason": error.reason,
                    },
                )
                results.append(DeletionStepResult.failure(descriptor, error))
                continue
            results.append(DeletionStepResult.success(descriptor, rows))
        return results

    def run_in_session(self, session: Session, principal_id: int) -> list[DeletionStepResult]:
        """Execute the steps inside the caller's transaction, stopping at the first failure.

        Nothing is committed here. When any result failed the transaction is
        unusable and the caller must roll back.

        Args:
            session: Session whose transaction wraps the whole deletion.
            principal_id: ``users.id`` whose dependents are deleted.

        Returns:
            One result per descriptor in graph order. Steps after the
            failed one are recorded as not attempted.
        """
        results: list[DeletionStepResult] = []
        failed: DeletionStepResult | None = None
        for descriptor in self._graph:
            if failed is not None:
                error = StepDeletionError(
                    descriptor.name,
                    descriptor.relation,
                    f"not attempted after '{failed.name}' failed",
                    user_id=principal_id,
                )
                results.append(DeletionStepResult.not_attempted(descriptor, error))
                continue
            try:
                rows = self._execute_step(session, descriptor, principal_id)
            except SQLAlchemyError as exc:
                error = self._step_error(descriptor, principal_id, exc)
                failed = DeletionStepResult.failure(descriptor, error)
                results.append(failed)
                continue
            results.append(DeletionStepResult.success(descriptor, rows))
        return results

    def _execute_step(
        self, session: Session, descriptor: RelationDescriptor, principal_id: int
    ) -> int:
        self._apply_timeout(session)
        result = session.execute(delete_statement(descriptor, principal_id))
        rows = max(result.rowcount or 0, 0)  # type: ignore[attr-defined]
        logger.debug(
            "user_deletion_step_executed",
            extra={"user_id": principal_id, "descriptor": descriptor.name, "rows": rows},
        )
        return rows

    def _apply_timeout(self, session: Session) -> None:
        if self._step_timeout_seconds is None:
            return
        if session.get_bind().dialect.name != "postgresql":
            return
        milliseconds = max(int(self._step_timeout_seconds * 1000), 1)
        session.execute(select(func.set_config("statement_timeout", str(milliseconds), True)))

    @staticmethod
    def _step_error(
        descriptor: RelationDescriptor, principal_id: int, exc: SQLAlchemyError
    ) -> StepDeletionError:
        error = StepDeletionError(
            descriptor.name,
            descriptor.relation,
            describe_store_error(exc),
            user_id=principal_id,
        )
        error.__cause__ = exc
        return error
