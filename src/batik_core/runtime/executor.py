"""Executor: an explicitly owned event loop thread plus a bounded worker pool.

An ``Executor`` runs one event loop (asyncio or trio, via an anyio blocking
portal) on a dedicated thread. Coroutine functions run on that loop; plain
callables run on worker threads, at most ``concurrency`` at a time. Work can
be submitted from any thread, including the loop thread itself, without
waiting for it to finish.

Example:
    ```python
    from batik_core.runtime import Executor

    with Executor(concurrency=4) as ex:
        handle = ex.spawn(download, url)
        body = handle.join()
    ```
"""

from __future__ import annotations

import functools
import inspect
import itertools
import threading
from collections.abc import Awaitable, Callable
from concurrent.futures import Future as ConcurrentFuture
from types import TracebackType
from typing import TYPE_CHECKING, Any

import aiologic
import anyio
import anyio.from_thread
import anyio.to_thread

from batik_core._logging import get_logger
from batik_core.result import Err, Ok, Result
from batik_core.runtime._config import Backend, get_config
from batik_core.runtime.errors import CancelledError, ExecutorClosedError

if TYPE_CHECKING:
    from anyio.abc import TaskGroup
    from anyio.from_thread import BlockingPortal

    from batik_core.future import Future

__all__ = [
    'Executor',
    'TaskHandle',
]

logger = get_logger(__name__)

_executor_ids = itertools.count(1)


class TaskHandle[T]:
    """Handle to a scheduled, running or finished unit of work.

    The outcome is settled exactly once: the first of completion, failure or
    cancellation wins and later attempts are ignored.
    """

    __slots__ = (
        '_cancel_requested',
        '_event',
        '_exception',
        '_executor',
        '_scope',
        '_value',
    )

    def __init__(self, executor: Executor | None = None) -> None:
        self._executor = executor
        self._event = aiologic.Event()
        self._value: T | None = None
        self._exception: BaseException | None = None
        self._scope: anyio.CancelScope | None = None
        self._cancel_requested = False

    def _attach(self, scope: anyio.CancelScope) -> None:
        """Bind the cancel scope of the running task (loop thread only)."""
        self._scope = scope
        if self._cancel_requested:
            scope.cancel()

    def _complete(self, value: T) -> bool:
        if self._event.is_set():
            return False
        self._value = value
        self._event.set()
        return True

    def _fail(self, exc: BaseException) -> bool:
        if self._event.is_set():
            return False
        self._exception = exc
        self._event.set()
        return True

    def done(self) -> bool:
        """Return True once the outcome is settled."""
        return self._event.is_set()

    def cancel(self) -> bool:
        """Request cancellation.

        Returns:
            False if the work had already finished, True otherwise. The handle
            settles with ``CancelledError`` once the task unwinds.
        """
        if self.done():
            return False
        self._cancel_requested = True
        scope = self._scope
        if scope is not None and self._executor is not None:
            self._executor._call_in_loop(scope.cancel)
        return True

    def value(self) -> T:
        """Return the value of finished work, re-raising a captured fault.

        Raises:
            RuntimeError: If the work has not finished yet.
        """
        if not self.done():
            msg = 'Task not yet complete. Use await, wait() or join() first.'
            raise RuntimeError(msg)
        if self._exception is not None:
            raise self._exception
        return self._value  # type: ignore[return-value]

    def result(self) -> Result[T, BaseException]:
        """Return the outcome of finished work as a Result (non-blocking).

        Raises:
            RuntimeError: If the work has not finished yet.
        """
        if not self.done():
            msg = 'Task not yet complete. Use await, wait() or join() first.'
            raise RuntimeError(msg)
        if self._exception is not None:
            return Err(self._exception)
        return Ok(self._value)  # type: ignore[arg-type]

    async def wait(self) -> T:
        """Suspend the calling task until the work finishes; return its value."""
        await self._event
        return self.value()

    def join(self, timeout: float | None = None) -> T:
        """Block the calling thread until the work finishes; return its value.

        Raises:
            TimeoutError: If ``timeout`` elapses first.
        """
        if not self._event.wait(timeout):
            msg = f'Task did not complete within {timeout}s'
            raise TimeoutError(msg)
        return self.value()

    def __await__(self) -> Any:
        return self.wait().__await__()


class Executor:
    """Owner of an event loop thread and the worker threads behind it.

    Construct one explicitly, start it (``with``/``async with`` or
    ``start()``), hand it to whatever creates futures, and shut it down when
    done. Nothing runs on an implicit global scheduler.
    """

    __slots__ = (
        '_backend',
        '_closing',
        '_concurrency',
        '_limiter',
        '_lock',
        '_loop_thread',
        '_name',
        '_portal',
        '_portal_cm',
        '_serving',
        '_stop',
        '_task_group',
    )

    def __init__(
        self,
        backend: Backend | str | None = None,
        concurrency: int | None = None,
        *,
        name: str | None = None,
    ) -> None:
        """Create an executor.

        Args:
            backend: Event loop to run. Taken from ``get_config()`` if None.
            concurrency: Max sync callables running at once. Taken from
                ``get_config()`` if None.
            name: Label used in logs and errors.
        """
        if backend is None or concurrency is None:
            config = get_config()
            backend = config.backend if backend is None else backend
            concurrency = config.concurrency if concurrency is None else concurrency

        self._backend = Backend(backend.lower()) if isinstance(backend, str) else backend
        self._concurrency = max(1, concurrency)
        self._name = name or f'executor-{next(_executor_ids)}'
        self._lock = aiologic.Lock()
        self._closing = False
        self._portal: BlockingPortal | None = None
        self._portal_cm: Any = None
        self._serving: ConcurrentFuture[None] | None = None
        self._task_group: TaskGroup | None = None
        self._stop: anyio.Event | None = None
        self._limiter: anyio.CapacityLimiter | None = None
        self._loop_thread: int | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def backend(self) -> Backend:
        return self._backend

    def is_running(self) -> bool:
        """Return True between a successful start() and shutdown()."""
        return self._portal is not None and not self._closing

    def start(self) -> Executor:
        """Start the loop thread. Calling it on a running executor is a no-op.

        Raises:
            ExecutorClosedError: If the executor was already shut down.
        """
        with self._lock:
            if self._closing:
                raise ExecutorClosedError(self._name)
            if self._portal is not None:
                return self

            portal_cm = anyio.from_thread.start_blocking_portal(self._backend.value)
            portal = portal_cm.__enter__()
            try:
                self._serving, _ = portal.start_task(self._serve)
            except BaseException:
                portal_cm.__exit__(None, None, None)
                raise
            self._portal_cm = portal_cm
            self._portal = portal

        logger.info('executor started', executor=self._name, backend=self._backend.value, concurrency=self._concurrency)
        return self

    def shutdown(self, *, wait: bool = True) -> None:
        """Stop accepting work and stop the loop thread.

        Args:
            wait: If True, let running work finish first. If False, cancel it;
                the affected handles settle with ``CancelledError``.

        Raises:
            RuntimeError: If called from the executor's own loop thread.
        """
        if self._in_loop_thread():
            msg = 'An executor cannot be shut down from its own loop thread'
            raise RuntimeError(msg)

        with self._lock:
            if self._closing:
                return
            self._closing = True
            portal = self._portal

        if portal is None:
            return

        if not wait and self._task_group is not None:
            portal.call(self._task_group.cancel_scope.cancel)
        if self._stop is not None:
            portal.call(self._stop.set)
        if self._serving is not None:
            self._serving.result()
        self._portal_cm.__exit__(None, None, None)
        self._portal = None
        self._portal_cm = None
        logger.info('executor stopped', executor=self._name, waited=wait)

    def spawn[T](
        self,
        fn: Callable[..., T] | Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> TaskHandle[T]:
        """Schedule ``fn(*args, **kwargs)`` and return its handle immediately.

        Raises:
            ExecutorClosedError: If the executor is not running.
        """
        handle: TaskHandle[T] = TaskHandle(self)
        self.schedule(handle, functools.partial(fn, *args, **kwargs), is_async=inspect.iscoroutinefunction(fn))
        return handle

    def future[V](self, block: Callable[[], V] | Callable[[], Awaitable[V]]) -> Future[V]:
        """Wrap ``block`` in a lazily started Future bound to this executor."""
        from batik_core.future import Future

        return Future(block, self)

    def schedule[T](self, handle: TaskHandle[T], fn: Callable[[], Any], *, is_async: bool) -> None:
        """Run the zero-argument ``fn`` and settle ``handle`` with its outcome.

        Raises:
            ExecutorClosedError: If the executor is not running.
        """
        self._call_in_loop(self._start_soon, handle, fn, is_async, closed_error=True)

    def _start_soon(self, handle: TaskHandle[Any], fn: Callable[[], Any], is_async: bool) -> None:
        if self._closing or self._task_group is None:
            raise ExecutorClosedError(self._name)
        self._task_group.start_soon(self._execute, handle, fn, is_async)

    def _call_in_loop(self, fn: Callable[..., Any], *args: Any, closed_error: bool = False) -> None:
        portal = self._portal
        if portal is None:
            if closed_error:
                raise ExecutorClosedError(self._name)
            return
        if self._in_loop_thread():
            fn(*args)
            return
        try:
            portal.call(fn, *args)
        except RuntimeError as exc:
            # the portal or task group stopped between the check above and the call
            if closed_error:
                raise ExecutorClosedError(self._name) from exc

    def _in_loop_thread(self) -> bool:
        return self._loop_thread is not None and threading.get_ident() == self._loop_thread

    async def _serve(self, *, task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        self._loop_thread = threading.get_ident()
        self._limiter = anyio.CapacityLimiter(self._concurrency)
        self._stop = anyio.Event()
        async with anyio.create_task_group() as tg:
            self._task_group = tg
            task_status.started()
            await self._stop.wait()
        self._task_group = None

    async def _execute(self, handle: TaskHandle[Any], fn: Callable[[], Any], is_async: bool) -> None:
        try:
            with anyio.CancelScope() as scope:
                handle._attach(scope)
                try:
                    if is_async:
                        value = await fn()
                    else:
                        value = await anyio.to_thread.run_sync(fn, limiter=self._limiter, abandon_on_cancel=True)
                        # a plain callable that returned a coroutine (e.g. a lambda)
                        if inspect.isawaitable(value):
                            value = await value
                except Exception as exc:
                    handle._fail(exc)
                else:
                    handle._complete(value)
        finally:
            if not handle.done():
                handle._fail(CancelledError('Task cancelled'))

    def __enter__(self) -> Executor:
        return self.start()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.shutdown(wait=True)

    async def __aenter__(self) -> Executor:
        return await anyio.to_thread.run_sync(self.start)

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await anyio.to_thread.run_sync(functools.partial(self.shutdown, wait=True))

    def __repr__(self) -> str:
        state = 'running' if self.is_running() else 'stopped'
        return f'<Executor {self._name} {self._backend.value} concurrency={self._concurrency} {state}>'
