"""Lookup of the principal row (existence check and audit summary)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fokushub.domain.identity.infrastructure.user_deletion.graph import PrincipalRelation
from fokushub.domain.identity.infrastructure.user_deletion.results import PrincipalRecord
from fokushub.domain.identity.infrastructure.user_deletion.statements import (
    principal_lookup_statement,
)
from fokushub.foundation.domain.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session


class PrincipalStore:
    """Reads principal rows through an injected session factory.

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

    def get(self, principal_id: int) -> PrincipalRecord | None:
        """Return the principal's key and summary columns, or None if absent."""
        with self._session_factory() as session:
            row = (
                session.execute(principal_lookup_statement(self._principal, principal_id))
                .mappings()
                .first()
            )
        if row is None:
            return None
        attributes = {a: row[a] for a in self._principal.summary_attributes}
        return PrincipalRecord(id=int(row[self._principal.key_attribute]), attributes=attributes)

    def require(self, principal_id: int) -> PrincipalRecord:
        """Return the principal or raise.

        Raises:
            NotFoundError: If no row has this id.
        """
        record = self.get(principal_id)
        if record is None:
            raise NotFoundError(self._principal.resource_type, principal_id)
        return record
