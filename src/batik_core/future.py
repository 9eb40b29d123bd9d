"""Future: a lazily started, memoized computation run on an explicit Executor.

A Future wraps exactly one computation. Nothing runs until the Future is
first observed, by ``poll()``, ``await``, ``wait()`` or ``join()``. Whichever
observer comes first starts the computation; every observer afterwards sees
the same run and the same outcome.

Example:
    ```python
    from batik_core import future
    from batik_core.runtime import Executor

    with Executor(concurrency=2) as ex:
        f = future(lambda: expensive(), executor=ex)
        f.poll()        # Pending, and the computation is now running
        f.join()        # blocks this thread until the value is there
        f.poll()        # Ready(value), forever
    ```

A computation that raises completes the Future with the fault captured.
``poll()``, ``wait()`` and ``join()`` re-raise that same exception on every
observation; ``poll_result()`` and ``wait_result()`` return it as ``Err``.
"""

from __future__ import annotations

import inspect
import itertools
from collections.abc import Awaitable, Callable, Generator
from enum import Enum
from typing import TYPE_CHECKING, Any

import aiologic

from batik_core._logging import get_logger
from batik_core.poll import Pending, Poll, Ready
from batik_core.runtime.errors import CancelledError
from batik_core.runtime.executor import TaskHandle

if TYPE_CHECKING:
    from batik_core.result import Result
    from batik_core.runtime.executor import Executor

__all__ = [
    'Future',
    'FutureState',
    'future',
    'ready',
]

logger = get_logger(__name__)

_future_ids = itertools.count(1)


class FutureState(Enum):
    """Lifecycle of a Future. Transitions only move forward."""

    UNSTARTED = 'unstarted'
    RUNNING = 'running'
    READY = 'ready'


class Future[V]:
    """A value that becomes available once its computation finishes."""

    __slots__ = ('_block', '_executor', '_handle', '_id', '_lock')

    def __init__(
        self,
        block: Callable[[], V] | Callable[[], Awaitable[V]],
        executor: Executor,
    ) -> None:
        """Wrap ``block`` without starting it.

        Args:
            block: Zero-argument callable. Coroutine functions run on the
                executor's loop, plain callables on its worker threads.
            executor: Executor that runs the computation once started.
        """
        self._block = block
        self._executor = executor
        self._handle: TaskHandle[V] | None = None
        self._lock = aiologic.Lock()
        self._id = next(_future_ids)

    @classmethod
    def _settled(cls, handle: TaskHandle[V]) -> Future[V]:
        instance = cls.__new__(cls)
        instance._block = None
        instance._executor = None
        instance._handle = handle
        instance._lock = aiologic.Lock()
        instance._id = next(_future_ids)
        return instance

    @property
    def state(self) -> FutureState:
        handle = self._handle
        if handle is None:
            return FutureState.UNSTARTED
        if handle.done():
            return FutureState.READY
        return FutureState.RUNNING

    def is_started(self) -> bool:
        """Return True once the computation was scheduled (or the Future settled)."""
        return self._handle is not None

    def is_done(self) -> bool:
        """Return True once the outcome is available."""
        handle = self._handle
        return handle is not None and handle.done()

    def _ensure_started(self) -> TaskHandle[V]:
        handle = self._handle
        if handle is not None:
            return handle

        with self._lock:
            if self._handle is not None:
                return self._handle
            handle = TaskHandle(self._executor)
            self._handle = handle

        block = self._block
        try:
            self._executor.schedule(handle, block, is_async=inspect.iscoroutinefunction(block))
        except BaseException as exc:
            handle._fail(exc)
            raise
        logger.debug('future started', future_id=self._id, executor=self._executor.name)
        return handle

    def poll(self) -> Poll[V]:
        """Observe the Future without waiting for it.

        The first observation starts the computation. Returns ``Pending``
        until the value is there and ``Ready(value)`` from then on.

        Raises:
            Exception: The computation's fault, on every observation after it
                failed.
            ExecutorClosedError: If the Future was unstarted and its executor
                no longer accepts work.
        """
        handle = self._ensure_started()
        if not handle.done():
            return Pending
        return Ready(handle.value())

    def poll_result(self) -> Poll[Result[V, BaseException]]:
        """Like ``poll()`` but with the outcome as a Result instead of raising."""
        handle = self._ensure_started()
        if not handle.done():
            return Pending
        return Ready(handle.result())

    async def wait(self) -> V:
        """Suspend the calling task until the value is there and return it.

        Works from asyncio and trio tasks alike; the executor's worker
        threads are never blocked by waiters.
        """
        handle = self._ensure_started()
        return await handle.wait()

    async def wait_result(self) -> Result[V, BaseException]:
        """Like ``wait()`` but with the outcome as a Result instead of raising."""
        handle = self._ensure_started()
        await handle._event
        return handle.result()

    def join(self, timeout: float | None = None) -> V:
        """Block the calling thread until the value is there and return it.

        Raises:
            TimeoutError: If ``timeout`` elapses first. The computation keeps
                running.
            RuntimeError: If called from the executor's own loop thread while
                the value is still pending.
        """
        handle = self._ensure_started()
        if not handle.done() and self._executor is not None and self._executor._in_loop_thread():
            msg = "join() would block the executor's loop thread; await the Future instead"
            raise RuntimeError(msg)
        return handle.join(timeout)

    def cancel(self) -> bool:
        """Cancel the computation.

        An unstarted Future settles with ``CancelledError`` right away and
        never runs. A running one has its task cancelled and settles with
        ``CancelledError`` once it unwinds; a sync callable already on a
        worker thread is abandoned rather than interrupted.

        Returns:
            False if the Future had already settled, True otherwise.
        """
        with self._lock:
            handle = self._handle
            if handle is None:
                handle = TaskHandle(self._executor)
                handle._fail(CancelledError('Future cancelled before it started'))
                self._handle = handle
                logger.debug('future cancelled', future_id=self._id, started=False)
                return True

        cancelled = handle.cancel()
        if cancelled:
            logger.debug('future cancelled', future_id=self._id, started=True)
        return cancelled

    def __await__(self) -> Generator[Any, None, V]:
        return self.wait().__await__()

    def __repr__(self) -> str:
        return f'<Future #{self._id} {self.state.value}>'


def future[V](
    block: Callable[[], V] | Callable[[], Awaitable[V]],
    *,
    executor: Executor,
) -> Future[V]:
    """Wrap ``block`` in a Future that starts on first observation.

    Args:
        block: Zero-argument computation, sync or async.
        executor: Executor the computation runs on.

    Returns:
        An unstarted Future.
    """
    return Future(block, executor)


def ready[V](value: V) -> Future[V]:
    """Return a Future that is already settled with ``value``.

    Its first ``poll()`` returns ``Ready(value)``; it needs no executor.
    """
    handle: TaskHandle[V] = TaskHandle()
    handle._complete(value)
    return Future._settled(handle)
