"""Tests for logging module."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from loguru import logger

from pra_model.logging import FAIL, SUCCESS, WARN, get_logger, setup_logging


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_creates_directory(self, tmp_path: Path) -> None:
        """setup_logging should create log directory if it doesn't exist."""
        log_dir = tmp_path / "nested" / "logs"
        setup_logging(log_dir=str(log_dir))

        assert log_dir.exists()

    def test_setup_logging_accepts_debug_level(self, tmp_path: Path) -> None:
        """setup_logging should accept DEBUG level."""
        log_dir = tmp_path / "logs"
        setup_logging(level="DEBUG", log_dir=log_dir)

        assert log_dir.exists()

    def test_setup_logging_all_parameters(self, tmp_path: Path) -> None:
        """setup_logging should accept all custom parameters."""
        log_dir = tmp_path / "logs"
        setup_logging(
            level="WARNING",
            log_dir=str(log_dir),
            rotation="500 MB",
            retention="14 days",
            serialize=False,
        )

        assert log_dir.exists()

    def test_log_file_is_written(self, tmp_path: Path) -> None:
        """Messages should reach the rotating file sink."""
        log_dir = tmp_path / "logs"
        setup_logging(log_dir=log_dir, serialize=False)
        get_logger("test").info("Ranked {} players", 10)
        logger.complete()

        files = list(log_dir.glob("pra_model_*.log"))
        assert len(files) == 1
        assert "Ranked 10 players" in files[0].read_text(encoding="utf-8")


    def test_console_level_is_separate(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """The console should show only its own level while the file keeps everything."""
        log_dir = tmp_path / "logs"
        setup_logging(level="DEBUG", console_level="WARNING", log_dir=log_dir, serialize=False)
        log = get_logger("pra_model.backtest")
        log.debug("Replaying 14 days")
        log.warning("3 players missing from box scores")
        logger.complete()

        err = capsys.readouterr().err
        assert "3 players missing from box scores" in err
        assert "Replaying 14 days" not in err
        text = next(log_dir.glob("pra_model_*.log")).read_text(encoding="utf-8")
        assert "Replaying 14 days" in text

    def test_stdlib_records_are_intercepted(self, tmp_path: Path) -> None:
        """Records from stdlib loggers should reach the file sink."""
        log_dir = tmp_path / "logs"
        setup_logging(log_dir=log_dir, serialize=False)
        logging.getLogger("pandas").warning("Columns have mixed types")
        logger.complete()

        text = next(log_dir.glob("pra_model_*.log")).read_text(encoding="utf-8")
        assert "Columns have mixed types" in text


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_returns_logger(self) -> None:
        """get_logger should return a logger instance."""
        assert get_logger(__name__) is not None

    def test_get_logger_can_log_with_formatting(self, tmp_path: Path) -> None:
        """Logger should support message formatting."""
        setup_logging(log_dir=str(tmp_path / "logs"))
        log = get_logger("pra_model.test_module")

        # Should not raise
        log.info("Scored {} with {}", "Luka Dončić", "stats_first")


    def test_bound_context_is_serialized(self, tmp_path: Path) -> None:
        """Context passed to get_logger should appear in the JSON file records."""
        log_dir = tmp_path / "logs"
        setup_logging(log_dir=log_dir, serialize=True)
        get_logger("pra_model.backtest", game_date="2024-11-19").info("Day replayed")
        logger.complete()

        line = next(log_dir.glob("pra_model_*.log")).read_text(encoding="utf-8").splitlines()[0]
        record = json.loads(line)["record"]
        assert record["message"] == "Day replayed"
        assert record["extra"]["game_date"] == "2024-11-19"
        assert record["extra"]["name"] == "pra_model.backtest"


class TestLoggerExports:
    """Tests for module exports."""

    def test_status_tags(self) -> None:
        """Status tags should carry their labels."""
        assert "[SUCCESS]" in SUCCESS
        assert "[FAIL]" in FAIL
        assert "[WARN]" in WARN

    def test_all_exports_available(self) -> None:
        """All expected exports should be available."""
        from pra_model.logging import __all__

        assert "setup_logging" in __all__
        assert "get_logger" in __all__
        assert "logger" in __all__
