"""Unit tests for fokushub.infra.observability.logging."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
import structlog

from fokushub.infra.observability.logging import (
    REDACTED_VALUE,
    LoggingSettings,
    SensitiveDataProcessor,
    ServiceNameProcessor,
    configure_logging,
    get_logger,
    get_logging_settings,
)

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture()
def restore_logging() -> Iterator[None]:
    """Undo configure_logging side effects on the root logger and structlog."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()
    get_logging_settings.cache_clear()


class TestLoggingSettings:
    @pytest.mark.unit
    def test_default_values(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = LoggingSettings()
            assert settings.log_level == "INFO"
            assert settings.environment == "development"
            assert settings.service_name == "fokushub"

    @pytest.mark.unit
    def test_use_json_logs_production(self) -> None:
        settings = LoggingSettings(environment="production")
        assert settings.use_json_logs is True

    @pytest.mark.unit
    def test_use_json_logs_development(self) -> None:
        settings = LoggingSettings(environment="development")
        assert settings.use_json_logs is False

    @pytest.mark.unit
    def test_log_level_int(self) -> None:
        settings = LoggingSettings(log_level="DEBUG")
        assert settings.log_level_int == logging.DEBUG

    @pytest.mark.unit
    def test_normalize_log_level_lowercase(self) -> None:
        settings = LoggingSettings(log_level="warning")
        assert settings.log_level == "WARNING"

    @pytest.mark.unit
    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValueError, match="log_level must be one of"):
            LoggingSettings(log_level="VERBOSE")

    @pytest.mark.unit
    def test_from_env_vars(self) -> None:
        env = {"LOG_LEVEL": "ERROR", "ENVIRONMENT": "production", "SERVICE_NAME": "admin-api"}
        with patch.dict("os.environ", env, clear=True):
            settings = LoggingSettings()
            assert settings.log_level == "ERROR"
            assert settings.environment == "production"
            assert settings.service_name == "admin-api"


class TestSensitiveDataProcessor:
    @pytest.mark.unit
    def test_redacts_exact_match(self) -> None:
        processor = SensitiveDataProcessor()
        result = processor(None, "info", {"event": "audit", "email": "jane@example.com"})
        assert result["email"] == REDACTED_VALUE

    @pytest.mark.unit
    def test_redacts_substring_match(self) -> None:
        processor = SensitiveDataProcessor()
        result = processor(None, "info", {"event": "reset", "reset_token": "abc"})
        assert result["reset_token"] == REDACTED_VALUE

    @pytest.mark.unit
    def test_redacts_case_insensitive(self) -> None:
        processor = SensitiveDataProcessor()
        result = processor(None, "info", {"event": "test", "API_KEY": "abc123"})
        assert result["API_KEY"] == REDACTED_VALUE

    @pytest.mark.unit
    def test_preserves_non_sensitive(self) -> None:
        processor = SensitiveDataProcessor()
        result = processor(None, "info", {"event": "test", "user_id": 42})
        assert result["user_id"] == 42

    @pytest.mark.unit
    def test_redacts_nested_personal_data(self) -> None:
        processor = SensitiveDataProcessor()
        user = {"id": 42, "email": "jane@example.com", "role": "client"}
        result = processor(None, "info", {"event": "audit", "user": user})
        assert result["user"] == {"id": 42, "email": REDACTED_VALUE, "role": "client"}
        assert user["email"] == "jane@example.com"

    @pytest.mark.unit
    def test_nested_table_names_are_kept(self) -> None:
        processor = SensitiveDataProcessor()
        steps = {"password_reset_tokens": "deleted:2", "messages": "deleted:3"}
        result = processor(None, "info", {"event": "done", "steps": steps})
        assert result["steps"] == steps


class TestServiceNameProcessor:
    @pytest.mark.unit
    def test_adds_service_and_env(self) -> None:
        processor = ServiceNameProcessor("fokushub", "test")
        result = processor(None, "info", {"event": "x"})
        assert result["service"] == "fokushub"
        assert result["env"] == "test"

    @pytest.mark.unit
    def test_does_not_override_existing(self) -> None:
        processor = ServiceNameProcessor("fokushub", "test")
        result = processor(None, "info", {"event": "x", "service": "worker"})
        assert result["service"] == "worker"


@pytest.mark.usefixtures("restore_logging")
class TestConfigureLogging:
    @pytest.mark.unit
    def test_configure_with_default_settings(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            get_logging_settings.cache_clear()
            configure_logging()
        assert logging.getLogger().level == logging.INFO

    @pytest.mark.unit
    def test_installs_single_root_handler(self) -> None:
        configure_logging(LoggingSettings(log_level="DEBUG"))
        configure_logging(LoggingSettings(log_level="WARNING", environment="production"))
        ours = [h for h in logging.getLogger().handlers if h.get_name() == "fokushub-structlog"]
        assert len(ours) == 1
        assert isinstance(ours[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert logging.getLogger().level == logging.WARNING

    @pytest.mark.unit
    def test_sqlalchemy_loggers_quiet_unless_debug(self) -> None:
        configure_logging(LoggingSettings(log_level="INFO"))
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        configure_logging(LoggingSettings(log_level="DEBUG"))
        assert logging.getLogger("sqlalchemy.engine").level == logging.DEBUG

    @pytest.mark.unit
    def test_stdlib_extra_fields_rendered_as_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(LoggingSettings(log_level="INFO", environment="production"))
        logging.getLogger("fokushub.test").info(
            "user_deletion_started", extra={"user_id": 42, "email": "jane@example.com"}
        )
        err = capsys.readouterr().err
        assert '"event": "user_deletion_started"' in err
        assert '"user_id": 42' in err
        assert "jane@example.com" not in err


class TestGetLogger:
    @pytest.mark.unit
    def test_returns_logger_for_name(self) -> None:
        logger = get_logger("fokushub.test")
        assert logger is not None

    @pytest.mark.unit
    def test_returns_logger_without_name(self) -> None:
        logger = get_logger()
        assert logger is not None
