"""Shared fixtures for domain-identity tests.

Tests run against in-memory SQLite with foreign keys enforced, so a gap in
the dependency graph fails the root deletion the same way PostgreSQL does.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import func, insert, select

from fokushub.domain.identity.infrastructure import schema
from fokushub.infra.persistence import DatabaseManager, DatabaseSettings

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Engine, Table
    from sqlalchemy.orm import Session, sessionmaker


@pytest.fixture()
def database() -> Iterator[DatabaseManager]:
    """In-memory SQLite with foreign keys on and every FokusHub table created."""
    manager = DatabaseManager(DatabaseSettings(url="sqlite://"))  # type: ignore[call-arg]
    schema.ensure_tables_exist(manager.get_engine())
    yield manager
    manager.dispose()


@pytest.fixture()
def engine(database: DatabaseManager) -> Engine:
    return database.get_engine()


@pytest.fixture()
def session_factory(database: DatabaseManager) -> sessionmaker[Session]:
    return database.get_session_factory()


class Seeder:
    """Inserts rows with just enough columns to satisfy NOT NULL constraints."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _insert(self, table: Table, **values: Any) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(insert(table).values(**values))
            return int(result.inserted_primary_key[0])

    def user(self, user_id: int, role: str = "client") -> int:
        return self._insert(
            schema.users,
            id=user_id,
            email=f"user{user_id}@example.com",
            password="hashed",
            role=role,
        )

    def message(self, sender_id: int, recipient_id: int) -> int:
        return self._insert(
            schema.messages,
            sender_id=sender_id,
            recipient_id=recipient_id,
            subject="Hello",
            content="Hi there",
        )

    def notification(self, user_id: int) -> int:
        return self._insert(
            schema.notifications,
            user_id=user_id,
            type="system",
            title="Welcome",
            message="Welcome to FokusHub",
        )

    def profile(self, user_id: int) -> int:
        return self._insert(schema.participant_profiles, user_id=user_id)

    def response(self, user_id: int, question_id: int = 1) -> int:
        return self._insert(
            schema.participant_responses, user_id=user_id, question_id=question_id
        )

    def reset_token(self, user_id: int, token: str) -> int:
        return self._insert(schema.password_reset_tokens, user_id=user_id, token=token)

    def campaign(self, client_id: int, manager_id: int | None = None) -> int:
        return self._insert(
            schema.campaigns, client_id=client_id, manager_id=manager_id, title="Launch test"
        )

    def report(self, campaign_id: int) -> int:
        return self._insert(schema.reports, campaign_id=campaign_id)

    def asset(self, campaign_id: int) -> int:
        return self._insert(
            schema.campaign_assets,
            campaign_id=campaign_id,
            file_name="spot.mp4",
            file_url="https://cdn.example.com/spot.mp4",
        )

    def enrollment(
        self, campaign_id: int, participant_id: int, invited_by: int | None = None
    ) -> int:
        return self._insert(
            schema.campaign_participants,
            campaign_id=campaign_id,
            participant_id=participant_id,
            invited_by=invited_by,
        )

    def match(self, campaign_id: int, participant_id: int) -> int:
        return self._insert(
            schema.matching_history, campaign_id=campaign_id, participant_id=participant_id
        )

    def warning(
        self,
        user_id: int,
        issued_by: int | None = None,
        campaign_id: int | None = None,
    ) -> int:
        return self._insert(
            schema.user_warnings,
            user_id=user_id,
            warning_type="no_show",
            reason="Missed the session",
            issued_by=issued_by,
            campaign_id=campaign_id,
        )

    def segment(self, created_by: int) -> int:
        return self._insert(
            schema.email_segments, name="Early adopters", criteria={}, created_by=created_by
        )

    def email_campaign(self, created_by: int, segment_id: int | None = None) -> int:
        return self._insert(
            schema.email_campaigns,
            name="Spring",
            subject="New campaigns",
            segment_id=segment_id,
            created_by=created_by,
        )

    def verification(self, user_id: int, reviewed_by: int | None = None) -> int:
        return self._insert(
            schema.verification_submissions,
            user_id=user_id,
            documents=[],
            reviewed_by=reviewed_by,
        )


@pytest.fixture()
def seed(engine: Engine) -> Seeder:
    return Seeder(engine)


def count_rows(engine: Engine, table: Table) -> int:
    with engine.connect() as conn:
        return int(conn.execute(select(func.count()).select_from(table)).scalar_one())


@pytest.fixture()
def rows(engine: Engine) -> Any:
    """Callable returning the current row count of a table."""
    return lambda table: count_rows(engine, table)
