"""@safe and @safe_async: decorator form of ``catching``."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, overload

import wrapt

from batik_core.result import Err, Ok, Result

__all__ = ['safe', 'safe_async']

ExceptionTypes = tuple[type[BaseException], ...]


def _faults(exceptions: ExceptionTypes | None) -> ExceptionTypes:
    return (Exception,) if exceptions is None else exceptions


@overload
def safe[**P, T](func: Callable[P, T], /) -> Callable[P, Result[T, Exception]]: ...


@overload
def safe[**P, T](
    func: None = None,
    /,
    *,
    exceptions: ExceptionTypes | None = None,
) -> Callable[[Callable[P, T]], Callable[P, Result[T, Any]]]: ...


def safe(
    func: Callable[..., Any] | None = None,
    /,
    *,
    exceptions: ExceptionTypes | None = None,
) -> Any:
    """Make a raising function return Ok(value) or Err(exception).

    Catches the same faults as ``catching`` unless ``exceptions`` narrows
    the set; anything outside it propagates.

    Example:
        ```python
        @safe
        def parse_port(raw: str) -> int:
            return int(raw)

        parse_port('8080')  # Ok(value=8080)
        parse_port('http')  # Err(error=ValueError(...))

        @safe(exceptions=(KeyError,))
        def lookup(key: str) -> str:
            return TABLE[key]
        ```
    """
    catch = _faults(exceptions)

    @wrapt.decorator
    def to_result(wrapped: Callable[..., Any], _instance: Any, args: Any, kwargs: Any) -> Result[Any, Any]:
        try:
            return Ok(wrapped(*args, **kwargs))
        except MemoryError:
            raise
        except catch as exc:
            return Err(exc)

    return to_result if func is None else to_result(func)


@overload
def safe_async[**P, T](func: Callable[P, Awaitable[T]], /) -> Callable[P, Awaitable[Result[T, Exception]]]: ...


@overload
def safe_async[**P, T](
    func: None = None,
    /,
    *,
    exceptions: ExceptionTypes | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[Result[T, Any]]]]: ...


def safe_async(
    func: Callable[..., Awaitable[Any]] | None = None,
    /,
    *,
    exceptions: ExceptionTypes | None = None,
) -> Any:
    """Async variant of ``safe`` for coroutine functions."""
    catch = _faults(exceptions)

    @wrapt.decorator
    async def to_result(
        wrapped: Callable[..., Awaitable[Any]], _instance: Any, args: Any, kwargs: Any
    ) -> Result[Any, Any]:
        try:
            return Ok(await wrapped(*args, **kwargs))
        except MemoryError:
            raise
        except catch as exc:
            return Err(exc)

    return to_result if func is None else to_result(func)
