"""
Unit tests for settings and logging setup.
"""

import logging

import pytest
import structlog
from pydantic import ValidationError

from dirqueue.config import Settings
from dirqueue.observability.logging import setup_logging


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch):
        """Test the protocol defaults."""
        monkeypatch.delenv("DIRQUEUE_LINK_MAX_ATTEMPTS", raising=False)

        settings = Settings(_env_file=None)

        assert settings.link_max_attempts == 10
        assert settings.link_backoff_microseconds == 250
        assert settings.dir_mode == 0o777
        assert settings.fsync is True
        assert settings.touch_queue_dir is True

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch):
        """Test that DIRQUEUE_ variables override defaults."""
        monkeypatch.setenv("DIRQUEUE_LINK_MAX_ATTEMPTS", "3")
        monkeypatch.setenv("DIRQUEUE_FSYNC", "false")

        settings = Settings(_env_file=None)

        assert settings.link_max_attempts == 3
        assert settings.fsync is False

    def test_at_least_one_attempt(self):
        """Test that zero link attempts is rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, link_max_attempts=0)


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_logging(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)
        structlog.reset_defaults()

    @pytest.mark.parametrize("log_format", ["json", "console"])
    def test_configures_root_logger(self, log_format: str):
        """Test that the root logger gets a single structlog handler."""
        setup_logging(Settings(_env_file=None, log_level="DEBUG", log_format=log_format))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
