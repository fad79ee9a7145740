"""Deletion of the principal row itself, always the last statement of a run."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from fokushub.domain.identity.infrastructure.user_deletion.errors import RootDeletionError
from fokushub.domain.identity.infrastructure.user_deletion.executor import describe_store_error
from fokushub.domain.identity.infrastructure.user_deletion.graph import PrincipalRelation
from fokushub.domain.identity.infrastructure.user_deletion.statements import (
    root_delete_statement,
)
from fokushub.foundation.domain.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class RootEntityDeleter:
    """Deletes the user row.

    With foreign keys enforced, this fails while any table still references
    the user, which is what makes a gap in the dependency graph visible.

    Args:
        session_factory: Callable returning a SQLAlchemy Session context manager.
        principal: Table holding the principal rows.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        principal: PrincipalRelation | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._principal = principal or PrincipalRelation()

    def delete_root(self, principal_id: int) -> int:
        """Delete the user row in its own transaction.

        Returns:
            Rows deleted (always 1 on success).

        Raises:
            RootDeletionError: If the store rejects the delete.
            NotFoundError: If the row was already gone, e.g. a concurrent
                run finished first.
        """
        with self._session_factory() as session:
            rows = self.delete_root_in_session(session, principal_id)
            try:
                session.commit()
            except SQLAlchemyError as exc:
                raise RootDeletionError(principal_id, describe_store_error(exc)) from exc
        return rows

    def delete_root_in_session(self, session: Session, principal_id: int) -> int:
        """Delete the user row inside the caller's transaction without committing.

        Raises:
            RootDeletionError: If the store rejects the delete.
            NotFoundError: If no row matched.
        """
        try:
            result = session.execute(root_delete_statement(self._principal, principal_id))
        except SQLAlchemyError as exc:
            logger.error(
                "user_deletion_root_failed",
                extra={"user_id": principal_id, "reason": describe_store_error(exc)},
            )
            raise RootDeletionError(principal_id, describe_store_error(exc)) from exc
        rows = max(result.rowcount or 0, 0)  # type: ignore[attr-defined]
        if rows == 0:
            raise NotFoundError(self._principal.resource_type, principal_id, phase="deleting_root")
        return rows
