"""Tests for modpack.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from modpack.logging import configure_logging, get_logger


def test_get_logger_nests_under_package_logger() -> None:
    assert get_logger().name == "modpack"
    assert get_logger("pipeline").name == "modpack.pipeline"


def test_configure_logging_does_not_stack_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "modpack.log"
    configure_logging()
    logger = configure_logging(verbose=True, log_file=log_file)

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    get_logger("test").debug("hello")
    for handler in logger.handlers:
        handler.flush()
    assert "hello" in log_file.read_text(encoding="utf-8")

    configure_logging()
    assert len(logger.handlers) == 1
