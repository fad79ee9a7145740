"""FokusHub Infra Persistence — engine and session factories."""

from fokushub.infra.persistence.database import (
    DatabaseManager,
    DatabaseSettings,
    build_engine,
    dispose_engine,
    get_database_manager,
    get_sync_engine,
    get_sync_session_factory,
)

__all__ = [
    "DatabaseManager",
    "DatabaseSettings",
    "build_engine",
    "dispose_engine",
    "get_database_manager",
    "get_sync_engine",
    "get_sync_session_factory",
]
