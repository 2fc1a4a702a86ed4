"""
Shared fixtures for barrel-breaker tests.
"""

import logging
import textwrap
from pathlib import Path

import pytest

from barrel_breaker.utils.logger import logger


@pytest.fixture
def make_files(tmp_path):
    """
    Write a small TypeScript project under tmp_path.

    Usage:
        root = make_files({"src/index.ts": "export * from './a';"})
    """

    def _make(files: dict) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content), encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop handlers a CLI test configured so later records reach caplog."""
    yield
    for handler in list(logger.logger.handlers):
        handler.close()
    logger.logger.handlers.clear()
    logger.logger.addHandler(logging.NullHandler())
    logger.logger.propagate = True
    logger.log_dir = None
