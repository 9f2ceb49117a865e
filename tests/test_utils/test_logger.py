from __future__ import annotations

import io
import logging
from typing import Generator
from unittest.mock import MagicMock, patch

import pytest

import safenpm.utils.logger as logger_module
from safenpm.utils.logger import (
    ColoredFormatter,
    disable_logging,
    get_logger,
    is_logging_configured,
    setup_logging,
)


@pytest.fixture
def clean_logger_state() -> Generator[None, None, None]:
    """Reset the safenpm logger and the configured flag around a test."""
    root_logger = logging.getLogger("safenpm")
    root_logger.handlers.clear()
    root_logger.setLevel(logging.NOTSET)
    logger_module._logging_configured = False

    yield

    root_logger.handlers.clear()
    root_logger.setLevel(logging.NOTSET)
    root_logger.propagate = True
    logger_module._logging_configured = False


def make_record(level: int = logging.INFO, msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("safenpm.test", level, __file__, 1, msg, None, None)


@pytest.mark.unit
class TestColoredFormatter:
    """Tests for ColoredFormatter."""

    def test_plain_when_color_disabled(self) -> None:
        """Test no ANSI codes are emitted with use_color=False."""
        formatter = ColoredFormatter("%(levelname)s %(message)s", use_color=False)

        assert formatter.format(make_record()) == "INFO hello"

    def test_colored_when_tty(self) -> None:
        """Test level names are colored when color is allowed."""
        formatter = ColoredFormatter("%(levelname)s %(message)s")

        with patch.object(ColoredFormatter, "_should_use_color", return_value=True):
            output = formatter.format(make_record(logging.ERROR))

        assert output == "\033[31mERROR\033[0m hello"

    def test_record_restored(self) -> None:
        """Test the record's level name is restored after formatting."""
        formatter = ColoredFormatter("%(levelname)s")
        record = make_record(logging.WARNING)

        with patch.object(ColoredFormatter, "_should_use_color", return_value=True):
            formatter.format(record)

        assert record.levelname == "WARNING"

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test NO_COLOR disables color."""
        monkeypatch.setenv("NO_COLOR", "1")

        assert ColoredFormatter._should_use_color() is False

    def test_ci_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test CI disables color."""
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("CI", "true")

        assert ColoredFormatter._should_use_color() is False

    def test_isatty_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a stderr without a working isatty disables color."""
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)
        stderr = MagicMock()
        stderr.isatty.side_effect = OSError

        with patch("sys.stderr", stderr):
            assert ColoredFormatter._should_use_color() is False


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging."""

    def test_writes_to_stream(self, clean_logger_state: None) -> None:
        """Test messages reach the configured stream."""
        stream = io.StringIO()
        setup_logging(level=logging.INFO, stream=stream)

        get_logger("resolver").info("resolving react")

        assert "resolving react" in stream.getvalue()
        assert is_logging_configured() is True

    def test_filters_below_level(self, clean_logger_state: None) -> None:
        """Test messages below the level are dropped."""
        stream = io.StringIO()
        setup_logging(level=logging.WARNING, stream=stream)

        get_logger("resolver").info("quiet")

        assert stream.getvalue() == ""

    def test_replaces_handlers(self, clean_logger_state: None) -> None:
        """Test repeated setup keeps a single handler."""
        setup_logging(stream=io.StringIO())
        setup_logging(stream=io.StringIO())

        assert len(logging.getLogger("safenpm").handlers) == 1

    def test_verbose_format(self, clean_logger_state: None) -> None:
        """Test verbose mode includes the logger name."""
        stream = io.StringIO()
        setup_logging(level=logging.DEBUG, verbose=True, stream=stream)

        get_logger("registry").debug("fetch")

        assert "safenpm.registry" in stream.getvalue()

    def test_disable_logging(self, clean_logger_state: None) -> None:
        """Test disable_logging silences output and resets the flag."""
        stream = io.StringIO()
        setup_logging(stream=stream)
        disable_logging()

        get_logger("resolver").error("hidden")

        assert stream.getvalue() == ""
        assert is_logging_configured() is False


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            (None, "safenpm"),
            ("safenpm", "safenpm"),
            ("http", "safenpm.http"),
            ("safenpm.core", "safenpm.core"),
        ],
    )
    def test_namespacing(self, clean_logger_state: None, name, expected: str) -> None:
        """Test names are placed under the safenpm namespace."""
        assert get_logger(name).name == expected

    def test_null_handler_when_unconfigured(self, clean_logger_state: None) -> None:
        """Test an unconfigured logger gets a NullHandler."""
        logger = get_logger("fresh_module_for_test")

        assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)
