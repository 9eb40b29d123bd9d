"""Structured logging for batik-core.

Executors and transports log through structlog loggers that sit on top of
the stdlib ``logging`` tree. A single root handler with structlog's
ProcessorFormatter renders both those entries and plain stdlib records
(asyncio, anyio, HTTP clients) in one format, JSON lines by default.

The library installs no handler at import time. Output starts once an
application calls ``configure_logging`` or ``runtime.init(log_level=...)``.
"""

from __future__ import annotations

import contextlib
import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

    LogHook = Callable[[dict[str, Any]], None]

__all__ = [
    'add_log_hook',
    'clear_log_hooks',
    'configure_logging',
    'get_logger',
    'remove_log_hook',
]

_hooks: list[LogHook] = []


def _call_hooks(_logger: Any, _method: str, entry: dict[str, Any]) -> dict[str, Any]:
    """Processor handing each hook its own copy of the entry."""
    for hook in tuple(_hooks):
        with contextlib.suppress(Exception):
            hook(dict(entry))
    return entry


def _enrich() -> list[Any]:
    # run for structlog entries and foreign stdlib records alike
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt='iso', utc=True),
        _call_hooks,
    ]


def _chain() -> list[Any]:
    return [
        structlog.stdlib.filter_by_level,
        *_enrich(),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]


def _formatter(json_output: bool) -> logging.Formatter:
    if json_output:
        render: Any = structlog.processors.JSONRenderer()
    else:
        render = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_enrich(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, render],
    )


def configure_logging(level: str = 'INFO', *, json_output: bool = True) -> None:
    """Route structlog and stdlib logging to stderr through one formatter.

    Replaces any handlers already on the root logger. Unknown level names
    fall back to INFO.

    Args:
        level: Name of the minimum level, e.g. "DEBUG" or "warning".
        json_output: JSON lines if True, human-readable console lines if False.
    """
    structlog.configure(
        processors=_chain(),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(_formatter(json_output))

    root = logging.getLogger()
    root.handlers[:] = [stream]
    root.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))


def get_logger(name: str | None = None) -> Any:
    """Return a bound structlog logger writing to the stdlib logger ``name``.

    The logger does not depend on ``structlog.configure`` having run, so a
    module may create it at import time. Entries under the stdlib level are
    filtered first; in an unconfigured process only warnings and above reach
    logging's last-resort handler.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=_chain(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
    )


def add_log_hook(hook: LogHook) -> None:
    """Call ``hook`` with a copy of every entry that passes the level filter.

    Exceptions raised by a hook are discarded.
    """
    _hooks.append(hook)


def remove_log_hook(hook: LogHook) -> None:
    with contextlib.suppress(ValueError):
        _hooks.remove(hook)


def clear_log_hooks() -> None:
    _hooks.clear()
