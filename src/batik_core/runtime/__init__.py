"""
batik_core.runtime: explicit execution context for Futures.

Provides the Executor that runs Future computations (an owned event loop
thread plus bounded worker threads), its configuration, its error types and
the structured logging shared by the whole package.
"""

from batik_core._logging import add_log_hook, clear_log_hooks, configure_logging, get_logger, remove_log_hook
from batik_core.runtime._config import Backend, RuntimeConfig, get_config, init
from batik_core.runtime.errors import CancelledError, ExecutorClosedError
from batik_core.runtime.executor import Executor, TaskHandle

__all__ = [
    # Config
    'Backend',
    # Errors
    'CancelledError',
    # Executor
    'Executor',
    'ExecutorClosedError',
    'RuntimeConfig',
    'TaskHandle',
    # Logging
    'add_log_hook',
    'clear_log_hooks',
    'configure_logging',
    'get_config',
    'get_logger',
    'init',
    'remove_log_hook',
]
