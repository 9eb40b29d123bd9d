"""Poll type: Ready[V] | Pending, one observation of a Future's progress.

A Poll is a snapshot, not the Future's state: a Future answers ``Pending``
zero or more times and then ``Ready`` with the same value forever.

The channel combinators reach through the Poll into the Result (and the
Option around it) a Future usually produces, without touching ``Pending``::

    request.send(transport, executor).poll().map_ok(lambda r: r.status_code)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeIs

import msgspec

from batik_core.option import Nothing, NothingType, Option, Some
from batik_core.result import Err, Ok

__all__ = ['Pending', 'PendingType', 'Poll', 'Ready']


class Ready[V](msgspec.Struct, frozen=True):
    """The computation produced its final value."""

    value: V

    def is_ready(self) -> TypeIs[Ready[V]]:
        """Return True since the value is available."""
        return True

    def is_pending(self) -> TypeIs[PendingType]:
        """Return False since the value is available."""
        return False

    def map[U](self, f: Callable[[V], U]) -> Ready[U]:
        """Apply ``f`` to the ready value."""
        return Ready(f(self.value))

    def unwrap_or(self, _default: V) -> V:
        """Return the ready value."""
        return self.value

    def ready(self) -> Option[V]:
        """Return Some(value)."""
        return Some(self.value)

    def map_ok[U](self, f: Callable[[Any], U]) -> Ready[Any]:
        """Map the success channel of a ready Result."""
        match self.value:
            case Ok(value):
                return Ready(Ok(f(value)))
            case Err():
                return self
            case _:
                raise _shape_error('map_ok', 'a Result', self)

    def map_err[F](self, f: Callable[[Any], F]) -> Ready[Any]:
        """Map the error channel of a ready Result."""
        match self.value:
            case Ok():
                return self
            case Err(error):
                return Ready(Err(f(error)))
            case _:
                raise _shape_error('map_err', 'a Result', self)

    def map_ok_opt[U](self, f: Callable[[Any], U]) -> Ready[Any]:
        """Map the success channel of a ready Option of a Result.

        ``Ready(Nothing)`` is returned as is.
        """
        match self.value:
            case Some(Ok(value)):
                return Ready(Some(Ok(f(value))))
            case Some(Err()) | NothingType():
                return self
            case _:
                raise _shape_error('map_ok_opt', 'an Option of a Result', self)

    def map_err_opt[F](self, f: Callable[[Any], F]) -> Ready[Any]:
        """Map the error channel of a ready Option of a Result.

        ``Ready(Nothing)`` is returned as is.
        """
        match self.value:
            case Some(Err(error)):
                return Ready(Some(Err(f(error))))
            case Some(Ok()) | NothingType():
                return self
            case _:
                raise _shape_error('map_err_opt', 'an Option of a Result', self)


class PendingType(msgspec.Struct, frozen=True):
    """No value yet; poll again later.

    Use the ``Pending`` constant instead of instantiating directly.
    """

    def is_ready(self) -> TypeIs[Ready[Any]]:
        """Return False since no value is available."""
        return False

    def is_pending(self) -> TypeIs[PendingType]:
        """Return True since no value is available."""
        return True

    def map(self, _f: Callable[[Any], Any]) -> PendingType:
        """Return Pending unchanged."""
        return self

    def unwrap_or[V](self, default: V) -> V:
        """Return ``default`` since no value is available."""
        return default

    def ready(self) -> Option[Any]:
        """Return Nothing since no value is available."""
        return Nothing

    def map_ok(self, _f: Callable[[Any], Any]) -> PendingType:
        """Return Pending unchanged."""
        return self

    def map_err(self, _f: Callable[[Any], Any]) -> PendingType:
        """Return Pending unchanged."""
        return self

    def map_ok_opt(self, _f: Callable[[Any], Any]) -> PendingType:
        """Return Pending unchanged."""
        return self

    def map_err_opt(self, _f: Callable[[Any], Any]) -> PendingType:
        """Return Pending unchanged."""
        return self

    def __repr__(self) -> str:
        return 'Pending'


Pending: PendingType = PendingType()
"""Singleton instance for a poll that found no value yet."""


type Poll[V] = Ready[V] | PendingType


def _shape_error(method: str, expected: str, poll: Ready[Any]) -> TypeError:
    return TypeError(f'{method}() expects a ready value holding {expected}, got {poll!r}')
