"""User deletion configuration using Pydantic settings.

Settings are loaded from environment variables with ``USER_DELETION_``
prefix.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fokushub.domain.identity.infrastructure.user_deletion.results import DeletionPolicy


class DeletionSettings(BaseSettings):
    """Configuration for the user deletion orchestrator.

    Environment Variables:
        USER_DELETION_POLICY: ``best_effort`` (default) keeps going after a
            failed step; ``strict`` wraps the run in one transaction and
            rolls back on the first failure.
        USER_DELETION_STEP_TIMEOUT_SECONDS: Per-statement timeout on
            PostgreSQL (default: 30, 0 disables).
        USER_DELETION_WARN_ON_UNCOVERED_REFERENCES: Log schema foreign keys
            that the dependency graph does not cover when the orchestrator
            is built (default: true).

    Example:
        >>> settings = DeletionSettings()
        >>> settings.policy
        <DeletionPolicy.BEST_EFFORT: 'best_effort'>
    """

    model_config = SettingsConfigDict(
        env_prefix="USER_DELETION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    policy: DeletionPolicy = Field(
        default=DeletionPolicy.BEST_EFFORT,
        description="Step failure policy",
    )
    step_timeout_seconds: float = Field(
        default=30.0,
        ge=0,
        le=3600,
        description="Per-step statement timeout in seconds (0 disables)",
    )
    warn_on_uncovered_references: bool = Field(
        default=True,
        description="Log foreign keys to users that the dependency graph misses",
    )


@lru_cache(maxsize=1)
def get_deletion_settings() -> DeletionSettings:
    """Get cached deletion settings singleton.

    Clear cache with ``get_deletion_settings.cache_clear()`` for testing.

    Returns:
        DeletionSettings instance loaded from environment.
    """
    return DeletionSettings()
