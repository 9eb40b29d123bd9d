"""Runtime error types."""

from __future__ import annotations

__all__ = [
    'CancelledError',
    'ExecutorClosedError',
]


class CancelledError(Exception):
    """Work was cancelled before it produced a value."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason or 'Operation cancelled')


class ExecutorClosedError(Exception):
    """Work was submitted to an executor that is shut down or shutting down."""

    def __init__(self, name: str | None = None) -> None:
        self.name = name
        msg = 'Executor is closed'
        if name:
            msg = f"Executor '{name}' is closed"
        super().__init__(msg)
