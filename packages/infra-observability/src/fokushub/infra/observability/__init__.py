"""FokusHub Infra Observability — structlog logging configuration."""

from __future__ import annotations

from fokushub.infra.observability.logging import (
    LoggingSettings,
    SensitiveDataProcessor,
    ServiceNameProcessor,
    configure_logging,
    get_logger,
)

__all__ = [
    "LoggingSettings",
    "SensitiveDataProcessor",
    "ServiceNameProcessor",
    "configure_logging",
    "get_logger",
]
