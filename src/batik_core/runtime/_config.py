"""Process-wide defaults for executors: loop backend, concurrency, log level."""

from __future__ import annotations

import logging
import os
import pathlib
from dataclasses import dataclass
from enum import Enum

import psutil

from batik_core._logging import configure_logging

__all__ = [
    'Backend',
    'RuntimeConfig',
    'get_config',
    'init',
]

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 256

_CGROUP_ROOT = pathlib.Path('/sys/fs/cgroup')

_log = logging.getLogger(__name__)


class Backend(Enum):
    """Event loop an executor runs on its loop thread."""

    ASYNCIO = 'asyncio'
    TRIO = 'trio'


@dataclass(frozen=True)
class RuntimeConfig:
    """Defaults picked up by ``Executor()`` when called without arguments.

    Attributes:
        backend: Loop implementation for new executors.
        concurrency: How many blocking computations one executor runs at once.
        log_level: Level passed to ``configure_logging``; None leaves logging alone.
    """

    backend: Backend = Backend.ASYNCIO
    concurrency: int = 4
    log_level: str | None = None


_config: RuntimeConfig | None = None


def _clamp(concurrency: int) -> int:
    return min(MAX_CONCURRENCY, max(MIN_CONCURRENCY, concurrency))


def _env(name: str) -> str:
    return os.environ.get(name, '').strip()


def _detect_backend() -> Backend:
    """Backend named by BATIK_BACKEND; asyncio when unset or unrecognised."""
    name = _env('BATIK_BACKEND').lower()
    if name:
        try:
            return Backend(name)
        except ValueError:
            _log.warning('Ignoring BATIK_BACKEND=%r, expected one of %s', name, [b.value for b in Backend])
    return Backend.ASYNCIO


def _detect_concurrency() -> int:
    """Concurrency from BATIK_CONCURRENCY, or sized to the host.

    The host size is the physical core count (logical if psutil cannot tell),
    lowered to the container's CPU quota when one applies.
    """
    raw = _env('BATIK_CONCURRENCY')
    if raw:
        try:
            return _clamp(int(raw))
        except ValueError:
            _log.warning('Ignoring BATIK_CONCURRENCY=%r, not an integer', raw)

    cpus = psutil.cpu_count(logical=False) or psutil.cpu_count(logical=True) or 4
    quota = _detect_container_cpu_limit()
    return _clamp(cpus if quota is None else min(cpus, quota))


def _read_ints(*paths: pathlib.Path) -> list[int] | None:
    try:
        return [int(p.read_text().strip()) for p in paths]
    except (OSError, ValueError):
        return None


def _detect_container_cpu_limit() -> int | None:
    """Whole CPUs granted by a cgroup v2 or v1 quota, or None without a quota."""
    try:
        quota, period = (_CGROUP_ROOT / 'cpu.max').read_text().split()
    except (OSError, ValueError):
        pass
    else:
        # "max <period>" means unlimited
        if quota != 'max' and quota.isdigit() and period.isdigit():
            return max(1, int(quota) // int(period))
        return None

    v1 = _read_ints(_CGROUP_ROOT / 'cpu' / 'cpu.cfs_quota_us', _CGROUP_ROOT / 'cpu' / 'cpu.cfs_period_us')
    if v1 is not None and v1[0] > 0 and v1[1] > 0:
        return max(1, v1[0] // v1[1])
    return None


def _resolve_backend(backend: Backend | str | None) -> Backend:
    if backend is None:
        return _detect_backend()
    if isinstance(backend, Backend):
        return backend
    return Backend(backend.lower())


def init(
    backend: Backend | str | None = None,
    concurrency: int | None = None,
    log_level: str | None = None,
) -> RuntimeConfig:
    """Install the defaults used by executors built without arguments.

    Arguments left as None come from BATIK_BACKEND, BATIK_CONCURRENCY and
    BATIK_LOG_LEVEL, then from host detection. Calling it again replaces the
    previous configuration; executors already built keep their settings.

    Args:
        backend: "asyncio" or "trio" (or a Backend member).
        concurrency: Blocking computations per executor, clamped to 1..256.
        log_level: When set, logging is configured at this level.

    Returns:
        The configuration now in effect.

    Example:
        ```python
        from batik_core.runtime import Executor, init

        init(concurrency=8, log_level='INFO')
        with Executor() as ex:
            ...
        ```
    """
    global _config  # noqa: PLW0603

    level = log_level if log_level is not None else (_env('BATIK_LOG_LEVEL') or None)
    _config = RuntimeConfig(
        backend=_resolve_backend(backend),
        concurrency=_detect_concurrency() if concurrency is None else _clamp(concurrency),
        log_level=level,
    )
    if level is not None:
        configure_logging(level)
    return _config


def get_config() -> RuntimeConfig:
    """Return the configuration installed by ``init()``.

    Raises:
        RuntimeError: If init() has not been called yet.
    """
    if _config is None:
        msg = 'Runtime not initialized. Call runtime.init() first.'
        raise RuntimeError(msg)
    return _config
