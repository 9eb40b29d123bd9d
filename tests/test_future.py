"""Tests for Future: lazy start, memoization, faults and cancellation."""

import asyncio
import threading

import anyio
import pytest

from batik_core import Err, Future, FutureState, Ok, Pending, Ready, future, ready
from batik_core.runtime import CancelledError, Executor, ExecutorClosedError


class Counter:
    """Thread-safe call counter for computations."""

    def __init__(self):
        self._lock = threading.Lock()
        self.calls = 0

    def bump(self):
        with self._lock:
            self.calls += 1


@pytest.fixture
def gate():
    """Event a computation waits on before finishing."""
    event = threading.Event()
    yield event
    event.set()


class TestLazyStart:
    """Nothing runs until the Future is first observed."""

    def test_unstarted_until_observed(self, executor):
        counter = Counter()
        fut = future(counter.bump, executor=executor)
        assert fut.state is FutureState.UNSTARTED
        assert not fut.is_started()
        assert counter.calls == 0

    def test_first_poll_starts_and_returns_pending(self, executor, gate):
        fut = executor.future(lambda: gate.wait(5) and 'done')
        assert fut.poll() is Pending
        assert fut.state is FutureState.RUNNING
        gate.set()
        assert fut.join(timeout=5) == 'done'
        assert fut.poll() == Ready('done')
        assert fut.state is FutureState.READY
        assert fut.is_done()

    async def test_await_starts_unstarted_future(self, executor):
        fut = executor.future(lambda: 7)
        assert await fut == 7

    def test_repr_shows_state(self, executor):
        fut = executor.future(lambda: 1)
        assert 'unstarted' in repr(fut)


class TestMemoization:
    """The computation runs at most once, whoever observes it."""

    async def test_five_polls_and_two_awaits_run_once(self, executor, gate):
        counter = Counter()

        def compute():
            counter.bump()
            gate.wait(5)
            return 42

        fut = executor.future(compute)
        polls = [fut.poll() for _ in range(5)]
        assert polls == [Pending] * 5

        gate.set()
        assert await fut == 42
        assert await fut.wait() == 42
        assert fut.poll() == Ready(42)
        assert counter.calls == 1

    def test_concurrent_first_polls_from_threads(self, executor, gate):
        counter = Counter()

        def compute():
            counter.bump()
            gate.wait(5)
            return 'once'

        fut = executor.future(compute)
        barrier = threading.Barrier(16)

        def observe():
            barrier.wait()
            fut.poll()

        threads = [threading.Thread(target=observe) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        gate.set()
        assert fut.join(timeout=5) == 'once'
        assert counter.calls == 1

    @staticmethod
    def race_first_start(executor, pollers=4):
        """Start one Future from an awaiting task and polling threads at once."""
        counter = Counter()

        def compute():
            counter.bump()
            return 'raced'

        fut = executor.future(compute)
        barrier = threading.Barrier(pollers + 1)
        awaited = []

        async def await_it():
            barrier.wait()
            awaited.append(await fut)

        def poll_it():
            barrier.wait()
            fut.poll()

        threads = [threading.Thread(target=asyncio.run, args=(await_it(),))]
        threads += [threading.Thread(target=poll_it) for _ in range(pollers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        return fut, counter, awaited

    def test_poll_racing_await_runs_once(self, executor):
        for _ in range(30):
            fut, counter, awaited = self.race_first_start(executor)
            assert awaited == ['raced']
            assert fut.join(timeout=5) == 'raced'
            assert counter.calls == 1

    def test_ready_value_is_stable(self, executor):
        fut = executor.future(lambda: object())
        first = fut.join(timeout=5)
        assert fut.poll().value is first
        assert fut.join() is first


class TestComputationKinds:
    """Coroutine functions run on the loop, plain callables on workers."""

    def test_coroutine_function(self, executor):
        async def compute():
            await anyio.sleep(0)
            return threading.get_ident()

        loop_thread = executor.future(compute).join(timeout=5)
        worker_thread = executor.future(threading.get_ident).join(timeout=5)
        assert loop_thread != worker_thread
        assert threading.get_ident() not in (loop_thread, worker_thread)

    def test_lambda_returning_coroutine(self, executor):
        async def compute(x):
            return x * 2

        assert executor.future(lambda: compute(21)).join(timeout=5) == 42

    def test_poll_and_await_from_loop_thread(self, executor, gate):
        """A computation may start and await another Future on the same executor."""
        inner = executor.future(lambda: gate.wait(5) and 5)

        async def outer_block():
            first = inner.poll()
            gate.set()
            value = await inner
            return first, value

        assert executor.future(outer_block).join(timeout=5) == (Pending, 5)

    def test_join_from_loop_thread_is_refused(self, executor, gate):
        inner = executor.future(lambda: gate.wait(5))

        async def outer_block():
            return inner.join()

        with pytest.raises(RuntimeError, match='loop thread'):
            executor.future(outer_block).join(timeout=5)


class TestFaults:
    """A failing computation re-raises the same fault on every observation."""

    def test_join_reraises_same_exception(self, executor):
        fault = ValueError('broken')

        def compute():
            raise fault

        fut = executor.future(compute)
        for _ in range(3):
            with pytest.raises(ValueError) as exc_info:
                fut.join(timeout=5)
            assert exc_info.value is fault

        with pytest.raises(ValueError):
            fut.poll()
        assert fut.state is FutureState.READY

    def test_poll_result_exposes_fault_as_data(self, executor):
        fault = KeyError('missing')

        def compute():
            raise fault

        fut = executor.future(compute)
        with pytest.raises(KeyError):
            fut.join(timeout=5)
        assert fut.poll_result() == Ready(Err(fault))

    def test_poll_result_success(self, executor):
        fut = executor.future(lambda: 3)
        fut.join(timeout=5)
        assert fut.poll_result() == Ready(Ok(3))

    def test_poll_result_pending(self, executor, gate):
        fut = executor.future(lambda: gate.wait(5))
        assert fut.poll_result() is Pending

    async def test_wait_result(self, executor):
        async def compute():
            raise ConnectionError('refused')

        outcome = await executor.future(compute).wait_result()
        assert isinstance(outcome.error, ConnectionError)

    async def test_await_reraises(self, executor):
        async def compute():
            raise ConnectionError('refused')

        fut = executor.future(compute)
        with pytest.raises(ConnectionError):
            await fut
        with pytest.raises(ConnectionError):
            await fut

    def test_join_timeout(self, executor, gate):
        fut = executor.future(lambda: gate.wait(5))
        with pytest.raises(TimeoutError):
            fut.join(timeout=0.05)
        gate.set()
        assert fut.join(timeout=5) is True


class TestCancellation:
    """cancel() settles the Future with CancelledError."""

    def test_cancel_unstarted_never_runs(self, executor):
        counter = Counter()
        fut = executor.future(counter.bump)
        assert fut.cancel() is True
        assert fut.state is FutureState.READY
        with pytest.raises(CancelledError):
            fut.poll()
        assert counter.calls == 0

    def test_cancel_running_coroutine(self, executor):
        started = threading.Event()

        async def compute():
            started.set()
            await anyio.sleep(30)
            return 'never'

        fut = executor.future(compute)
        fut.poll()
        assert started.wait(5)
        assert fut.cancel() is True
        with pytest.raises(CancelledError):
            fut.join(timeout=5)

    def test_cancel_before_task_starts_running(self, executor):
        """A cancel racing the task start still settles the Future as cancelled."""

        async def compute():
            await anyio.sleep(30)

        fut = executor.future(compute)
        fut.poll()
        fut.cancel()
        with pytest.raises(CancelledError):
            fut.join(timeout=5)

    def test_cancel_after_completion_is_ignored(self, executor):
        fut = executor.future(lambda: 1)
        assert fut.join(timeout=5) == 1
        assert fut.cancel() is False
        assert fut.poll() == Ready(1)


class TestReadyFuture:
    """ready() builds an already settled Future."""

    def test_first_poll_is_ready(self):
        fut = ready('value')
        assert fut.poll() == Ready('value')
        assert fut.state is FutureState.READY
        assert fut.join() == 'value'

    async def test_await(self):
        assert await ready(3) == 3

    def test_cancel_is_ignored(self):
        assert ready(1).cancel() is False


class TestClosedExecutor:
    """Futures bound to a stopped executor fail on first observation."""

    def test_poll_raises_executor_closed(self):
        ex = Executor('asyncio', 2)
        ex.start()
        ex.shutdown()
        fut = Future(lambda: 1, ex)
        with pytest.raises(ExecutorClosedError):
            fut.poll()
        # the failure is the Future's outcome from then on
        with pytest.raises(ExecutorClosedError):
            fut.poll()

    def test_never_started_executor(self):
        ex = Executor('asyncio', 2)
        with pytest.raises(ExecutorClosedError):
            ex.future(lambda: 1).join(timeout=1)
