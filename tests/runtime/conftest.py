"""Pytest configuration for runtime tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest
import structlog

import batik_core.runtime._config as config_module
from batik_core.runtime import clear_log_hooks

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def restore_runtime_state() -> Generator[None]:
    """Undo init() and configure_logging() side effects after each test."""
    saved_config = config_module._config
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield
    config_module._config = saved_config
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    structlog.reset_defaults()
    clear_log_hooks()
