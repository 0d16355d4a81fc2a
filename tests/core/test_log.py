"""Tests for logging setup."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from kbsync.core.log import setup_logging


@pytest.fixture(autouse=True)
def clean_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("kbsync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_returns_package_logger(self) -> None:
        logger = setup_logging(logging.DEBUG)

        assert logger.name == "kbsync"
        assert logger.level == logging.DEBUG

    def test_accepts_level_name(self) -> None:
        assert setup_logging("warning").level == logging.WARNING

    def test_repeated_calls_do_not_stack(self) -> None:
        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1

    def test_writes_log_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "kbsync.log"
        logger = setup_logging(logging.INFO, log_file)

        logging.getLogger("kbsync.client.sync.engine").info("Synced notes.md")
        for handler in logger.handlers:
            handler.flush()

        content = log_file.read_text()
        assert "kbsync.client.sync.engine - INFO - Synced notes.md" in content

    def test_reconfigure_replaces_file_handler(self, tmp_path: Path) -> None:
        """A second call closes the earlier file and leaves other handlers alone."""
        foreign = logging.NullHandler()
        logging.getLogger("kbsync").addHandler(foreign)
        first = tmp_path / "first.log"
        setup_logging(logging.INFO, first)

        logger = setup_logging(logging.INFO, tmp_path / "second.log")
        logging.getLogger("kbsync").info("after reconfigure")
        for handler in logger.handlers:
            handler.flush()

        assert foreign in logger.handlers
        assert len(logger.handlers) == 3
        assert "after reconfigure" not in first.read_text()
        assert "after reconfigure" in (tmp_path / "second.log").read_text()
