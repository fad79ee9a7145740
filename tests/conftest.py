"""Shared fixtures for cross-package integration tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
import structlog

from fokushub.domain.identity.infrastructure.user_deletion import get_deletion_settings
from fokushub.infra.observability.logging import get_logging_settings
from fokushub.infra.persistence import dispose_engine, get_database_manager

if TYPE_CHECKING:
    from collections.abc import Iterator

# Environment for a process wired entirely from settings, without external services.
TEST_ENVIRONMENT = {
    "DATABASE_URL": "sqlite://",
    "LOG_LEVEL": "INFO",
    "ENVIRONMENT": "production",
    "SERVICE_NAME": "fokushub-test",
    "USER_DELETION_POLICY": "best_effort",
}


def _clear_caches() -> None:
    get_database_manager.cache_clear()
    get_deletion_settings.cache_clear()
    get_logging_settings.cache_clear()


@pytest.fixture()
def app_environment() -> Iterator[dict[str, str]]:
    """Process-wide settings from a test environment; caches and handlers reset afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    _clear_caches()
    with patch.dict("os.environ", TEST_ENVIRONMENT, clear=True):
        yield TEST_ENVIRONMENT
        dispose_engine()
    _clear_caches()
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()
