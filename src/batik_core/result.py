"""Result type: Ok[T] | Err[E] for explicit error handling.

``catching`` and ``use_and_catch`` are the boundary between code that raises
and code that passes failures around as values. Everything above that
boundary composes with ``map``, ``and_then``, ``or_else`` and friends; no
combinator drops an error.

Example:
    ```python
    from batik_core.result import Err, Ok, catching

    port = catching(int, raw_port).map_err(str).and_then(
        lambda p: Ok(p) if 0 < p < 65536 else Err(f'port out of range: {p}')
    )
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any, NoReturn, Protocol, TypeIs

import msgspec

from batik_core._logging import get_logger
from batik_core.errors import IllegalAccessError, add_suppressed
from batik_core.option import Nothing, NothingType, Option, Some

__all__ = [
    'Closeable',
    'Err',
    'Ok',
    'Result',
    'catching',
    'collect',
    'err',
    'flatten',
    'ok',
    'partition',
    'transpose',
    'use_and_catch',
]

logger = get_logger(__name__)


class Ok[T](msgspec.Struct, frozen=True):
    """Outcome of a computation that succeeded with ``value``.

    Examples:
        >>> Ok(42).map(lambda x: x * 2)
        Ok(value=84)
        >>> Ok(42).and_then(lambda x: Err('too big') if x > 10 else Ok(x))
        Err(error='too big')
    """

    value: T

    def is_ok(self) -> TypeIs[Ok[T]]:
        """Return True since this is Ok."""
        return True

    def is_err(self) -> TypeIs[Err[Any]]:
        return False

    def is_ok_and(self, pred: Callable[[T], bool]) -> bool:
        """Return True if the value satisfies ``pred``."""
        return pred(self.value)

    def is_err_and(self, _pred: Callable[[Any], bool]) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value

    def unwrap_err(self) -> NoReturn:
        """Raise since there is no error to project.

        Raises:
            IllegalAccessError: Always; the message includes the Ok value.
        """
        raise IllegalAccessError(f'called `unwrap_err()` on an Ok value: {self.value!r}')

    def unwrap_or(self, _default: T) -> T:
        """Return the contained value, ignoring the default."""
        return self.value

    def unwrap_or_else(self, _f: Callable[[Any], T]) -> T:
        """Return the contained value, ignoring the fallback."""
        return self.value

    def expect(self, _msg: str) -> T:
        """Return the contained value, ignoring the message."""
        return self.value

    def expect_err(self, msg: str) -> NoReturn:
        """Raise with ``msg`` since there is no error to project."""
        raise IllegalAccessError(msg)

    def map[U](self, f: Callable[[T], U]) -> Ok[U]:
        """Apply ``f`` to the contained value."""
        return Ok(f(self.value))

    def map_err(self, _f: Callable[[Any], Any]) -> Ok[T]:
        return self

    def map_or[U](self, _default: U, f: Callable[[T], U]) -> U:
        """Apply ``f`` to the contained value."""
        return f(self.value)

    def map_or_else[U](self, _default: Callable[[Any], U], f: Callable[[T], U]) -> U:
        """Apply ``f`` to the contained value."""
        return f(self.value)

    def inspect(self, f: Callable[[T], Any]) -> Ok[T]:
        """Call ``f`` with the contained value and return self unchanged."""
        f(self.value)
        return self

    def inspect_err(self, _f: Callable[[Any], Any]) -> Ok[T]:
        return self

    def ok(self) -> Option[T]:
        """Return Some(value)."""
        return Some(self.value)

    def err(self) -> Option[Any]:
        """Return Nothing since this is Ok."""
        return Nothing

    def and_[U, E](self, other: Ok[U] | Err[E]) -> Ok[U] | Err[E]:
        """Return ``other`` since this is Ok."""
        return other

    def and_then[U, E](self, f: Callable[[T], Ok[U] | Err[E]]) -> Ok[U] | Err[E]:
        """Bind: return ``f(value)``."""
        return f(self.value)

    def or_(self, _other: Ok[T] | Err[Any]) -> Ok[T]:
        return self

    def or_else(self, _f: Callable[[Any], Ok[T] | Err[Any]]) -> Ok[T]:
        return self

    def iter(self) -> Iterator[Any]:
        """Iterate lazily over the elements of the contained iterable."""
        return iter(self.value)  # type: ignore[call-overload]

    def transpose(self) -> Option[Ok[Any] | Err[Any]]:
        """Ok(Some(v)) -> Some(Ok(v)); Ok(Nothing) -> Nothing."""
        match self.value:
            case Some(inner):
                return Some(Ok(inner))
            case NothingType():
                return Nothing
            case _:
                msg = f'transpose() expects a Result of an Option, got {self!r}'
                raise TypeError(msg)

    def flatten(self) -> Ok[Any] | Err[Any]:
        """Ok(Ok(v)) -> Ok(v); Ok(Err(e)) -> Err(e)."""
        if isinstance(self.value, Ok | Err):
            return self.value
        msg = f'flatten() expects a Result of a Result, got {self!r}'
        raise TypeError(msg)


class Err[E](msgspec.Struct, frozen=True):
    """Outcome of a computation that failed with ``error``.

    Examples:
        >>> Err('boom').unwrap_or(0)
        0
        >>> Err('boom').map_err(str.upper)
        Err(error='BOOM')
    """

    error: E

    def is_ok(self) -> TypeIs[Ok[Any]]:
        return False

    def is_err(self) -> TypeIs[Err[E]]:
        return True

    def is_ok_and(self, _pred: Callable[[Any], bool]) -> bool:
        return False

    def is_err_and(self, pred: Callable[[E], bool]) -> bool:
        """Return True if the error satisfies ``pred``."""
        return pred(self.error)

    def unwrap(self) -> NoReturn:
        """Raise since there is no value to project.

        Raises:
            IllegalAccessError: Always; the message includes the error, and an
                exception error is chained as the cause.
        """
        raise IllegalAccessError(f'called `unwrap()` on an Err value: {self.error!r}') from self._cause()

    def unwrap_err(self) -> E:
        """Return the contained error."""
        return self.error

    def unwrap_or[T](self, default: T) -> T:
        return default

    def unwrap_or_else[T](self, f: Callable[[E], T]) -> T:
        """Compute a value from the error."""
        return f(self.error)

    def expect(self, msg: str) -> NoReturn:
        """Raise with ``msg`` since there is no value to project."""
        raise IllegalAccessError(msg) from self._cause()

    def expect_err(self, _msg: str) -> E:
        """Return the contained error, ignoring the message."""
        return self.error

    def map(self, _f: Callable[[Any], Any]) -> Err[E]:
        return self

    def map_err[F](self, f: Callable[[E], F]) -> Err[F]:
        """Apply ``f`` to the contained error."""
        return Err(f(self.error))

    def map_or[U](self, default: U, _f: Callable[[Any], U]) -> U:
        return default

    def map_or_else[U](self, default: Callable[[E], U], _f: Callable[[Any], U]) -> U:
        """Compute the fallback from the error."""
        return default(self.error)

    def inspect(self, _f: Callable[[Any], Any]) -> Err[E]:
        return self

    def inspect_err(self, f: Callable[[E], Any]) -> Err[E]:
        """Call ``f`` with the contained error and return self unchanged."""
        f(self.error)
        return self

    def ok(self) -> Option[Any]:
        return Nothing

    def err(self) -> Option[E]:
        """Return Some(error)."""
        return Some(self.error)

    def and_(self, _other: Ok[Any] | Err[E]) -> Err[E]:
        return self

    def and_then(self, _f: Callable[[Any], Ok[Any] | Err[E]]) -> Err[E]:
        return self

    def or_[T, F](self, other: Ok[T] | Err[F]) -> Ok[T] | Err[F]:
        """Return ``other`` since this is Err."""
        return other

    def or_else[T, F](self, f: Callable[[E], Ok[T] | Err[F]]) -> Ok[T] | Err[F]:
        """Recover: return ``f(error)``."""
        return f(self.error)

    def iter(self) -> Iterator[Any]:
        return iter(())

    def transpose(self) -> Option[Err[E]]:
        """Err(e) -> Some(Err(e))."""
        return Some(self)

    def flatten(self) -> Err[E]:
        return self

    def _cause(self) -> BaseException | None:
        return self.error if isinstance(self.error, BaseException) else None


type Result[T, E = BaseException] = Ok[T] | Err[E]


class Closeable(Protocol):
    """A resource released by calling ``close()``."""

    def close(self) -> object: ...


def ok[T](value: T) -> Result[T, Any]:
    """Wrap ``value`` in Ok, typed as a Result."""
    return Ok(value)


def err[E](error: E) -> Result[Any, E]:
    """Wrap ``error`` in Err, typed as a Result."""
    return Err(error)


def transpose[T, E](result: Result[Option[T], E]) -> Option[Result[T, E]]:
    """Swap a Result of an Option into an Option of a Result.

    ``Ok(Some(v))`` -> ``Some(Ok(v))``, ``Ok(Nothing)`` -> ``Nothing``,
    ``Err(e)`` -> ``Some(Err(e))``.
    """
    return result.transpose()


def flatten[T, E](result: Result[Result[T, E], E]) -> Result[T, E]:
    """Remove one level of nesting; an Err at either level passes through."""
    return result.flatten()


def collect[T, E](results: Iterable[Result[T, E]]) -> Result[list[T], E]:
    """Collect Results into a Result of a list, stopping at the first Err.

    Examples:
        >>> collect([Ok(1), Ok(2)])
        Ok(value=[1, 2])
        >>> collect([Ok(1), Err('fail'), Ok(3)])
        Err(error='fail')
    """
    values: list[T] = []
    for result in results:
        if isinstance(result, Err):
            return result
        values.append(result.value)
    return Ok(values)


def partition[T, E](results: Iterable[Result[T, E]]) -> tuple[list[T], list[E]]:
    """Split Results into the list of Ok values and the list of errors."""
    oks: list[T] = []
    errs: list[E] = []
    for result in results:
        match result:
            case Ok(value):
                oks.append(value)
            case Err(error):
                errs.append(error)
    return oks, errs


def catching[T](
    fn: Callable[..., T],
    *args: Any,
    finalizer: Option[Callable[[], object]] = Nothing,
    **kwargs: Any,
) -> Result[T, Exception]:
    """Run ``fn(*args, **kwargs)`` and capture its outcome as a Result.

    Every ``Exception`` becomes ``Err(exc)``. ``MemoryError`` and
    ``BaseException``s outside ``Exception`` (``KeyboardInterrupt``,
    ``SystemExit``, task cancellation) propagate untouched.

    Args:
        fn: The callable to run.
        *args: Positional arguments for ``fn``.
        finalizer: ``Some(callback)`` to run exactly once after the outcome
            is settled, whichever way ``fn`` exits.
        **kwargs: Keyword arguments for ``fn``.

    Returns:
        ``Ok(return value)`` or ``Err(raised exception)``.

    Example:
        ```python
        conn = open_connection(url)
        response = catching(conn.fetch, '/users', finalizer=Some(conn.disconnect))
        ```
    """
    try:
        return Ok(fn(*args, **kwargs))
    except MemoryError:
        raise
    except Exception as exc:
        logger.debug('captured fault', fn=_name_of(fn), fault=type(exc).__name__)
        return Err(exc)
    finally:
        if isinstance(finalizer, Some):
            finalizer.value()


def use_and_catch[R: Closeable, T](resource: R, fn: Callable[[R], T]) -> Result[T, Exception]:
    """Run ``fn(resource)`` and close the resource exactly once, on every path.

    - body and close succeed: ``Ok(value)``
    - body raises: ``Err(body_fault)``
    - only close raises: ``Err(close_fault)``
    - both raise: ``Err(body_fault)``, with the close fault attached as a
      suppressed fault (see ``batik_core.errors.suppressed``)

    Example:
        ```python
        text = use_and_catch(open(path), lambda f: f.read())
        ```
    """
    try:
        outcome = catching(fn, resource)
    except BaseException as fatal:
        catching(resource.close).inspect_err(lambda fault: add_suppressed(fatal, fault))
        raise
    released = catching(resource.close)
    match outcome, released:
        case Ok(), Err(close_fault):
            return Err(close_fault)
        case Err(body_fault), Err(close_fault):
            add_suppressed(body_fault, close_fault)
            return outcome
        case _:
            return outcome


def _name_of(fn: Callable[..., Any]) -> str:
    return getattr(fn, '__qualname__', None) or repr(fn)
