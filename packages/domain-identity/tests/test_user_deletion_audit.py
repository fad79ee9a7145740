"""Tests for the pre-flight dependency audit."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy.exc import OperationalError

from fokushub.domain.identity.infrastructure import schema
from fokushub.domain.identity.infrastructure.user_deletion.audit import AuditReporter
from fokushub.domain.identity.infrastructure.user_deletion.graph import (
    USER_DEPENDENCY_GRAPH,
    DependencyGraph,
    direct,
)
from fokushub.domain.identity.infrastructure.user_deletion.principal import PrincipalStore
from fokushub.foundation.domain.exceptions import NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker


@pytest.fixture()
def seeded_user(seed: Any) -> int:
    """User 42: three messages, a profile, two campaigns with five reports."""
    seed.user(42)
    seed.user(7, role="participant")
    seed.message(42, 7)
    seed.message(7, 42)
    seed.message(42, 7)
    seed.profile(42)
    first = seed.campaign(42)
    second = seed.campaign(42)
    for _ in range(3):
        seed.report(first)
    for _ in range(2):
        seed.report(second)
    return 42


@pytest.mark.integration
class TestPrincipalStore:
    def test_get_existing(self, session_factory: sessionmaker[Session], seed: Any) -> None:
        seed.user(42)
        record = PrincipalStore(session_factory).get(42)
        assert record is not None
        assert record.id == 42
        assert record.attributes == {"email": "user42@example.com", "role": "client"}

    def test_get_missing(self, session_factory: sessionmaker[Session]) -> None:
        assert PrincipalStore(session_factory).get(42) is None

    def test_require_missing_raises(self, session_factory: sessionmaker[Session]) -> None:
        with pytest.raises(NotFoundError, match="User not found: 42"):
            PrincipalStore(session_factory).require(42)


@pytest.mark.integration
class TestAuditReporter:
    def test_counts_per_descriptor(
        self, session_factory: sessionmaker[Session], seeded_user: int
    ) -> None:
        report = AuditReporter(session_factory, USER_DEPENDENCY_GRAPH).audit(seeded_user)

        assert list(report.per_table_counts) == list(USER_DEPENDENCY_GRAPH.names())
        assert report.non_empty() == {
            "messages": 3,
            "participant_profiles": 1,
            "reports": 5,
            "campaigns": 2,
        }
        assert report.total_related_records == 11
        assert report.can_delete_cleanly is False

    def test_payload(self, session_factory: sessionmaker[Session], seeded_user: int) -> None:
        payload = AuditReporter(session_factory, USER_DEPENDENCY_GRAPH).audit(seeded_user).to_dict()

        assert payload["user"] == {"id": 42, "email": "user42@example.com", "role": "client"}
        assert payload["totalRelatedRecords"] == 11
        assert payload["relatedRecords"]["reports"] == 5
        assert payload["canDelete"] == "Yes - 11 related records will be removed first"

    def test_user_without_dependents(
        self, session_factory: sessionmaker[Session], seed: Any
    ) -> None:
        seed.user(5)
        report = AuditReporter(session_factory, USER_DEPENDENCY_GRAPH).audit(5)
        assert report.total_related_records == 0
        assert report.can_delete_cleanly is True
        assert report.to_dict()["canDelete"] == "Yes - no related records"

    def test_other_users_rows_not_counted(
        self, session_factory: sessionmaker[Session], seed: Any
    ) -> None:
        seed.user(1)
        seed.user(2)
        seed.notification(2)
        campaign = seed.campaign(2)
        seed.report(campaign)
        report = AuditReporter(session_factory, USER_DEPENDENCY_GRAPH).audit(1)
        assert report.total_related_records == 0

    def test_shared_row_counted_once(
        self, session_factory: sessionmaker[Session], seed: Any
    ) -> None:
        seed.user(7, role="admin")
        segment = seed.segment(7)
        seed.email_campaign(7, segment_id=segment)
        seed.email_campaign(7)

        report = AuditReporter(session_factory, USER_DEPENDENCY_GRAPH).audit(7)

        assert report.non_empty() == {
            "segment_email_campaigns": 1,
            "email_campaigns": 1,
            "email_segments": 1,
        }
        assert report.total_related_records == 3

    def test_audit_does_not_write(
        self, session_factory: sessionmaker[Session], seeded_user: int, rows: Any
    ) -> None:
        AuditReporter(session_factory, USER_DEPENDENCY_GRAPH).audit(seeded_user)
        assert rows(schema.users) == 2
        assert rows(schema.messages) == 3
        assert rows(schema.reports) == 5

    def test_missing_user(self, session_factory: sessionmaker[Session]) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            AuditReporter(session_factory, USER_DEPENDENCY_GRAPH).audit(404)
        assert exc_info.value.resource_id == 404

    def test_count_error_propagates(
        self, session_factory: sessionmaker[Session], seed: Any
    ) -> None:
        seed.user(42)
        graph = DependencyGraph([direct("notifications", "user_id"), direct("ghost", "user_id")])
        with pytest.raises(OperationalError, match="no such table: ghost"):
            AuditReporter(session_factory, graph).audit(42)

    def test_graph_property(self, session_factory: sessionmaker[Session]) -> None:
        reporter = AuditReporter(session_factory, USER_DEPENDENCY_GRAPH)
        assert reporter.graph is USER_DEPENDENCY_GRAPH
