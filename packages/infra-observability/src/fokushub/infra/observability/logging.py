"""Structured logging configuration using structlog.

FokusHub services log in two ways: infrastructure code uses the standard
``logging`` module with ``extra={...}`` fields, and reporting code uses a
structlog logger with keyword fields. ``configure_logging`` routes both
through one processor chain so every line carries the same keys:

- JSON output for production, colored console output elsewhere
- Context variable merging (e.g. an operator or job id bound by the caller)
- ``extra`` fields from stdlib records lifted into the event dict
- Redaction of secrets and of personal data belonging to deleted users

Usage:
    # During process startup
    from fokushub.infra.observability.logging import configure_logging
    configure_logging()

    # Reporting code
    from fokushub.infra.observability import get_logger
    logger = get_logger(__name__)
    logger.info("user_deletion_completed", user_id=42, rows_deleted=12)

    # Infrastructure code
    logging.getLogger(__name__).info("user_deletion_started", extra={"user_id": 42})
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from collections.abc import MutableMapping

Processor = structlog.types.Processor

# Field names whose values never reach a log line.
SENSITIVE_FIELDS: frozenset[str] = frozenset(
    {
        "password",
        "token",
        "authorization",
        "api_key",
        "secret",
        "credential",
        "email",
        "first_name",
        "last_name",
        "phone",
        "ip_address",
    }
)

REDACTED_VALUE: str = "***REDACTED***"

# Marks the root handler installed by configure_logging so reconfiguring
# replaces it instead of stacking a second one.
_HANDLER_NAME = "fokushub-structlog"

# Libraries that are chatty at INFO and only interesting when debugging.
_QUIET_LOGGERS: tuple[str, ...] = ("sqlalchemy.engine", "sqlalchemy.pool")


class LoggingSettings(BaseSettings):
    """Logging configuration settings from environment variables.

    Loads configuration from environment variables:
    - LOG_LEVEL: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Environment name (development, staging, production, test)
    - SERVICE_NAME: Value of the ``service`` key on every line

    Example:
        >>> LoggingSettings(environment="production").use_json_logs
        True
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Minimum log level to output",
    )
    environment: str = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Environment name for format selection",
    )
    service_name: str = Field(
        default="fokushub",
        alias="SERVICE_NAME",
        description="Service name attached to every log line",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return str(v)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v not in valid_levels:
            msg = f"log_level must be one of {sorted(valid_levels)}"
            raise ValueError(msg)
        return v

    @property
    def use_json_logs(self) -> bool:
        return self.environment == "production"

    @property
    def log_level_int(self) -> int:
        return logging.getLevelNamesMapping()[self.log_level]


class SensitiveDataProcessor:
    """Structlog processor that redacts secrets and personal data.

    A top-level key is redacted when it is one of ``SENSITIVE_FIELDS``
    (case-insensitive) or contains "password" or "token". Inside nested
    dicts, such as the user summary attached to an audit, only exact field
    names count, since their keys are often table names like
    ``password_reset_tokens``.

    Example:
        >>> processor = SensitiveDataProcessor()
        >>> processor(None, "info", {"event": "audit", "user": {"email": "a@b.c"}})
        {'event': 'audit', 'user': {'email': '***REDACTED***'}}
    """

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        self._redact(event_dict, nested=False)
        return event_dict

    def _redact(self, mapping: MutableMapping[str, Any], *, nested: bool) -> None:
        for key, value in list(mapping.items()):
            if self._is_sensitive(key, exact_only=nested):
                mapping[key] = REDACTED_VALUE
            elif isinstance(value, dict):
                copy = dict(value)
                self._redact(copy, nested=True)
                mapping[key] = copy

    @staticmethod
    def _is_sensitive(key: str, *, exact_only: bool = False) -> bool:
        key_lower = str(key).lower()
        if key_lower in SENSITIVE_FIELDS:
            return True
        if exact_only:
            return False
        return "password" in key_lower or "token" in key_lower


class ServiceNameProcessor:
    """Adds ``service`` and ``env`` keys to every event."""

    def __init__(self, service_name: str, environment: str) -> None:
        self._service_name = service_name
        self._environment = environment

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", self._service_name)
        event_dict.setdefault("env", self._environment)
        return event_dict


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached LoggingSettings instance.

    Clear cache with ``get_logging_settings.cache_clear()`` for testing.
    """
    return LoggingSettings()


def shared_processors(settings: LoggingSettings) -> list[Processor]:
    """Processors applied to structlog events and stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        ServiceNameProcessor(settings.service_name, settings.environment),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        SensitiveDataProcessor(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Installs one stderr handler on the root logger whose formatter renders
    stdlib records with the same processor chain as structlog events.
    Calling it again replaces that handler, so it is safe in tests.

    Args:
        settings: Optional LoggingSettings instance. If not provided,
            settings are loaded from environment variables.
    """
    if settings is None:
        settings = get_logging_settings()

    chain = shared_processors(settings)
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if settings.use_json_logs
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(settings.log_level_int)

    quiet_level = logging.DEBUG if settings.log_level_int <= logging.DEBUG else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.typing.WrappedLogger:
    """Get a structlog logger for the given module name.

    Args:
        name: Logger name (typically __name__ from calling module).

    Example:
        >>> from fokushub.infra.observability import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("dependency_audit_completed", user_id=42, total=11)
    """
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name)
