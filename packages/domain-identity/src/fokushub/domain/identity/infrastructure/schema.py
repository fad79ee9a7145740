"""SQLAlchemy Core metadata for the users table and every table that references it.

Mirrors the production PostgreSQL schema closely enough for the deletion
subsystem: primary keys, the foreign keys that point at ``users`` or at
user-owned rows, and a handful of descriptive columns. Columns unrelated to
deletion (pricing, questionnaire health, AI scores) are omitted.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

_Json = JSON().with_variant(JSONB(), "postgresql")

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password", Text, nullable=False, default=""),
    Column("first_name", String(100)),
    Column("last_name", String(100)),
    Column("role", String(20), nullable=False, default="client"),
    Column("is_active", Boolean, default=True),
    Column("is_banned", Boolean, default=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)

password_reset_tokens = Table(
    "password_reset_tokens",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("token", Text, nullable=False, unique=True),
    Column("expires_at", DateTime(timezone=True)),
    Column("is_used", Boolean, default=False),
)

participant_profiles = Table(
    "participant_profiles",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("demographics", _Json),
    Column("completion_score", Integer, default=0),
)

# question_id points into the questionnaire context, which never references users.
participant_responses = Table(
    "participant_responses",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("question_id", Integer, nullable=False),
    Column("response", _Json),
)

behavioral_analysis = Table(
    "behavioral_analysis",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("participant_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("analysis_type", String(50), nullable=False, default="full_profile"),
)

campaigns = Table(
    "campaigns",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("client_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("manager_id", Integer, ForeignKey("users.id")),
    Column("title", String(255), nullable=False),
    Column("status", String(20), default="draft"),
)

campaign_assets = Table(
    "campaign_assets",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("campaign_id", Integer, ForeignKey("campaigns.id"), nullable=False),
    Column("file_name", String(255), nullable=False),
    Column("file_url", Text, nullable=False),
)

campaign_participants = Table(
    "campaign_participants",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("campaign_id", Integer, ForeignKey("campaigns.id"), nullable=False),
    Column("participant_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("invited_by", Integer, ForeignKey("users.id")),
    Column("status", String(20), default="invited"),
)

matching_history = Table(
    "matching_history",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("campaign_id", Integer, ForeignKey("campaigns.id"), nullable=False),
    Column("participant_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("match_score", Integer),
)

campaign_matching = Table(
    "campaign_matching",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("campaign_id", Integer, ForeignKey("campaigns.id"), nullable=False),
    Column("matching_criteria", _Json),
)

admin_settings = Table(
    "admin_settings",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("key", String(100), nullable=False, unique=True),
    Column("value", _Json, nullable=False),
    Column("updated_by", Integer, ForeignKey("users.id")),
)

notifications = Table(
    "notifications",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("type", String(50), nullable=False),
    Column("title", String(200), nullable=False),
    Column("message", Text, nullable=False),
)

user_warnings = Table(
    "user_warnings",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("warning_type", String(50), nullable=False),
    Column("reason", Text, nullable=False),
    Column("campaign_id", Integer, ForeignKey("campaigns.id")),
    Column("issued_by", Integer, ForeignKey("users.id")),
)

reports = Table(
    "reports",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("campaign_id", Integer, ForeignKey("campaigns.id"), nullable=False),
    Column("report_data", _Json),
)

messages = Table(
    "messages",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("sender_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("recipient_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("subject", String(255), nullable=False),
    Column("content", Text, nullable=False),
    Column("parent_message_id", Integer),
)

verification_submissions = Table(
    "verification_submissions",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("status", String(20), default="pending"),
    Column("documents", _Json, nullable=False),
    Column("reviewed_by", Integer, ForeignKey("users.id")),
)

legal_documents = Table(
    "legal_documents",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("document_type", String(50), nullable=False),
    Column("version", String(20), nullable=False),
)

user_legal_acceptances = Table(
    "user_legal_acceptances",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("document_id", Integer, ForeignKey("legal_documents.id"), nullable=False),
    Column("document_version", String(20), nullable=False),
)

email_segments = Table(
    "email_segments",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", Text, nullable=False),
    Column("criteria", _Json, nullable=False),
    Column("created_by", Integer, ForeignKey("users.id"), nullable=False),
    Column("updated_by", Integer, ForeignKey("users.id")),
)

email_campaigns = Table(
    "email_campaigns",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", Text, nullable=False),
    Column("subject", Text, nullable=False),
    Column("segment_id", Integer, ForeignKey("email_segments.id")),
    Column("status", Text, nullable=False, default="draft"),
    Column("created_by", Integer, ForeignKey("users.id"), nullable=False),
)


def ensure_tables_exist(engine: Engine) -> None:
    """Create any missing FokusHub tables (idempotent).

    Production databases are migrated separately; this is used by local
    setups and the test-suite.
    """
    metadata.create_all(engine)
    logger.info("fokushub_tables_ensured", extra={"tables": len(metadata.tables)})
