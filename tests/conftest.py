"""Pytest configuration and shared fixtures for batik-core tests."""

import pytest


@pytest.fixture
def executor():
    """A running executor with a small worker pool, shut down after the test."""
    from batik_core.runtime import Executor

    with Executor('asyncio', 4, name='test') as ex:
        yield ex


class FakeResource:
    """Closeable that records close calls and can fail on close."""

    def __init__(self, close_error: Exception | None = None):
        self.close_calls = 0
        self.close_error = close_error

    def close(self):
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def resource():
    """A FakeResource whose close succeeds."""
    return FakeResource()
