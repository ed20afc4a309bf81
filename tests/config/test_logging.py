"""Tests for structlog configuration and the alert log format."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from bootctl.config.logging import LIBRARY_LEVELS, configure_logging
from bootctl.domain.alerts import AlertType, SecurityAlert, Severity
from bootctl.services.alerts import LogAlertHandler


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root, bootctl and library logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    names = ["bootctl", *LIBRARY_LEVELS]
    levels = {name: logging.getLogger(name).level for name in names}
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


def _alert(severity: Severity) -> SecurityAlert:
    return SecurityAlert(
        severity=severity,
        type=AlertType.BRUTE_FORCE_ATTEMPT,
        message="5 failed logins for alice",
    )


class TestLevels:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("bootctl").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_library_loggers_pinned(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("sqlalchemy").level == logging.WARNING
        assert logging.getLogger("pluggy").level == logging.WARNING

    def test_sql_debug_suppressed(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("sqlalchemy.engine").debug("sql noise")
        assert capfd.readouterr().err == ""

    def test_no_handler_stacking(self) -> None:
        configure_logging(verbose=True)
        configure_logging(verbose=True, log_json=True)
        assert len(logging.getLogger().handlers) == 1


class TestAlertRecords:
    def test_console_folds_alert_fields(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging()
        LogAlertHandler().handle(_alert(Severity.HIGH))
        err = capfd.readouterr().err
        assert "[high/prominent] brute_force_attempt: 5 failed logins for alice" in err

    def test_json_keeps_alert_fields_flat(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_json=True)
        LogAlertHandler().handle(_alert(Severity.CRITICAL))
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["logger"] == "bootctl.alerts"
        assert parsed["level"] == "error"
        assert parsed["severity"] == "critical"
        assert parsed["route"] == "escalate"
        assert parsed["alert_type"] == "brute_force_attempt"

    def test_informational_alerts_need_verbose(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_json=True)
        LogAlertHandler().handle(_alert(Severity.LOW))
        assert capfd.readouterr().err == ""
        configure_logging(verbose=True, log_json=True)
        LogAlertHandler().handle(_alert(Severity.LOW))
        assert json.loads(capfd.readouterr().err.strip())["route"] == "informational"


class TestRedaction:
    def test_session_token_masked(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_json=True)
        structlog.get_logger("bootctl.services.identity").warning(
            "session rejected", token="abc123", user_id="user-1"
        )
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["token"] == "***"
        assert parsed["user_id"] == "user-1"

    def test_stdlib_records_share_pipeline(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("bootctl.services.bootstrap").debug("Running 3 bootstrap steps")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "Running 3 bootstrap steps"
        assert parsed["level"] == "debug"
        assert "timestamp" in parsed
