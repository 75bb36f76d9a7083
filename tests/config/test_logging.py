"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from loopsync.config.logging import configure_logging, session_context


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    pkg = logging.getLogger("loopsync")
    pkg_level = pkg.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    pkg.setLevel(pkg_level)
    structlog.contextvars.clear_contextvars()


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("loopsync").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False)
        assert logging.getLogger("loopsync").level == logging.WARNING

    def test_stdlib_logger_rendered_as_json(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("loopsync.services.session").debug("Session alice closed")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "Session alice closed"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "loopsync.services.session"
        assert "timestamp" in parsed

    def test_sqlalchemy_debug_suppressed(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("sqlalchemy.engine").debug("SELECT 1")
        assert capfd.readouterr().err == ""

    def test_session_context_binds_identity(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        with session_context("alice"):
            logging.getLogger("loopsync.test").warning("inside")
        logging.getLogger("loopsync.test").warning("outside")
        lines = [json.loads(line) for line in capfd.readouterr().err.strip().splitlines()]
        assert lines[0]["identity_id"] == "alice"
        assert "identity_id" not in lines[1]

    def test_idempotent_calls(self) -> None:
        configure_logging(verbose=True)
        configure_logging(verbose=True, log_json=True)
        assert len(logging.getLogger().handlers) == 1
