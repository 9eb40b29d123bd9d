"""Option type: Some[T] | Nothing for values that may be absent.

``Option`` is a closed hierarchy with exactly two variants. ``Some`` holds one
value and compares by that value; ``Nothing`` is a singleton. Every operation
is written as an exhaustive ``match`` over the two variants.

Example:
    ```python
    from batik_core.option import Nothing, Some, to_option

    to_option(headers.get('content-type')).map(str.lower).unwrap_or('text/plain')

    match Some(3).zip(Some('a')):
        case Some((n, s)):
            print(n, s)
        case NothingType():
            print('absent')
    ```

Option is the one type whose representation is visible on the wire; see
``batik_core.codec`` for the null-or-value JSON form.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sized
from typing import TYPE_CHECKING, Any, ClassVar, NoReturn, TypeIs, assert_never

from batik_core.errors import IllegalAccessError

if TYPE_CHECKING:
    from batik_core.result import Result

__all__ = [
    'Nothing',
    'NothingType',
    'Option',
    'Some',
    'flatten',
    'from_collection',
    'none',
    'some',
    'to_option',
    'transpose',
    'unzip',
]


class Option[T]:
    """A value of type T that may be absent.

    Do not instantiate directly; build ``Some(value)`` or use ``Nothing``.
    Subclassing outside this module is rejected so that matching on
    ``Some``/``NothingType`` stays exhaustive.
    """

    __slots__ = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        if cls.__module__ != __name__:
            msg = f'Option is closed to the Some and Nothing variants; cannot subclass as {cls.__qualname__}'
            raise TypeError(msg)
        super().__init_subclass__(**kwargs)

    # --- predicates ---

    def is_some(self) -> TypeIs[Some[T]]:
        """Return True if the option holds a value."""
        return isinstance(self, Some)

    def is_none(self) -> TypeIs[NothingType]:
        """Return True if the option is Nothing."""
        return isinstance(self, NothingType)

    def is_some_and(self, pred: Callable[[T], bool]) -> bool:
        """Return True if the option is Some and the value satisfies ``pred``."""
        match self:
            case Some(value):
                return pred(value)
            case NothingType():
                return False
            case _:
                assert_never(self)

    def is_none_or(self, pred: Callable[[T], bool]) -> bool:
        """Return True if the option is Nothing or the value satisfies ``pred``."""
        match self:
            case Some(value):
                return pred(value)
            case NothingType():
                return True
            case _:
                assert_never(self)

    # --- projections ---

    def unwrap(self) -> T:
        """Return the contained value.

        Raises:
            IllegalAccessError: If the option is Nothing.
        """
        match self:
            case Some(value):
                return value
            case NothingType():
                raise IllegalAccessError('called `unwrap()` on a Nothing value')
            case _:
                assert_never(self)

    def expect(self, msg: str) -> T:
        """Return the contained value, or raise with a caller-supplied message.

        Raises:
            IllegalAccessError: With ``msg``, if the option is Nothing.
        """
        match self:
            case Some(value):
                return value
            case NothingType():
                raise IllegalAccessError(msg)
            case _:
                assert_never(self)

    def unwrap_or(self, default: T) -> T:
        """Return the contained value or ``default``."""
        match self:
            case Some(value):
                return value
            case NothingType():
                return default
            case _:
                assert_never(self)

    def unwrap_or_else(self, f: Callable[[], T]) -> T:
        """Return the contained value or compute one with ``f``."""
        match self:
            case Some(value):
                return value
            case NothingType():
                return f()
            case _:
                assert_never(self)

    def unwrap_or_none(self) -> T | None:
        """Return the contained value, or None for Nothing."""
        match self:
            case Some(value):
                return value
            case NothingType():
                return None
            case _:
                assert_never(self)

    # --- functor / eliminators ---

    def map[U](self, f: Callable[[T], U]) -> Option[U]:
        """Apply ``f`` to the contained value, keeping Nothing as is."""
        match self:
            case Some(value):
                return Some(f(value))
            case NothingType():
                return Nothing
            case _:
                assert_never(self)

    def map_or[U](self, default: U, f: Callable[[T], U]) -> U:
        """Apply ``f`` to the contained value, or return ``default``."""
        match self:
            case Some(value):
                return f(value)
            case NothingType():
                return default
            case _:
                assert_never(self)

    def map_or_else[U](self, default: Callable[[], U], f: Callable[[T], U]) -> U:
        """Apply ``f`` to the contained value, or compute ``default()``."""
        match self:
            case Some(value):
                return f(value)
            case NothingType():
                return default()
            case _:
                assert_never(self)

    def inspect(self, f: Callable[[T], Any]) -> Option[T]:
        """Call ``f`` with the contained value, if any, and return self."""
        if isinstance(self, Some):
            f(self.value)
        return self

    def filter(self, pred: Callable[[T], bool]) -> Option[T]:
        """Keep the value only if ``pred`` holds for it."""
        match self:
            case Some(value) if pred(value):
                return self
            case Some() | NothingType():
                return Nothing
            case _:
                assert_never(self)

    # --- sequencing ---

    def and_[U](self, other: Option[U]) -> Option[U]:
        """Return ``other`` if self is Some, else Nothing."""
        match self:
            case Some():
                return other
            case NothingType():
                return Nothing
            case _:
                assert_never(self)

    def and_then[U](self, f: Callable[[T], Option[U]]) -> Option[U]:
        """Bind: return ``f(value)`` if self is Some, else Nothing."""
        match self:
            case Some(value):
                return f(value)
            case NothingType():
                return Nothing
            case _:
                assert_never(self)

    def or_(self, other: Option[T]) -> Option[T]:
        """Return self if Some, else ``other``."""
        match self:
            case Some():
                return self
            case NothingType():
                return other
            case _:
                assert_never(self)

    def or_else(self, f: Callable[[], Option[T]]) -> Option[T]:
        """Return self if Some, else the option computed by ``f``."""
        match self:
            case Some():
                return self
            case NothingType():
                return f()
            case _:
                assert_never(self)

    def xor(self, other: Option[T]) -> Option[T]:
        """Return the Some side when exactly one of the two is Some.

        Two Somes are ambiguous and give Nothing; neither side is preferred.
        """
        match self, other:
            case Some(), NothingType():
                return self
            case NothingType(), Some():
                return other
            case _, Option():
                return Nothing
            case _:
                msg = f'xor() expects an Option, got {other!r}'
                raise TypeError(msg)

    def zip[U](self, other: Option[U]) -> Option[tuple[T, U]]:
        """Pair the two values if both options are Some."""
        match self, other:
            case Some(a), Some(b):
                return Some((a, b))
            case _:
                return Nothing

    def zip_with[U, R](self, other: Option[U], f: Callable[[T, U], R]) -> Option[R]:
        """Combine the two values with ``f`` if both options are Some."""
        match self, other:
            case Some(a), Some(b):
                return Some(f(a, b))
            case _:
                return Nothing

    # --- conversions ---

    def ok_or[E](self, err: E) -> Result[T, E]:
        """Convert to Result: Some(v) -> Ok(v), Nothing -> Err(err)."""
        from batik_core.result import Err, Ok

        match self:
            case Some(value):
                return Ok(value)
            case NothingType():
                return Err(err)
            case _:
                assert_never(self)

    def ok_or_else[E](self, f: Callable[[], E]) -> Result[T, E]:
        """Convert to Result, computing the error lazily with ``f``."""
        from batik_core.result import Err, Ok

        match self:
            case Some(value):
                return Ok(value)
            case NothingType():
                return Err(f())
            case _:
                assert_never(self)

    def iter(self) -> Iterator[T]:
        """Iterate over the contained value: one element for Some, none for Nothing."""
        if isinstance(self, Some):
            yield self.value

    def transpose[U, E](self: Option[Result[U, E]]) -> Result[Option[U], E]:
        """Swap an Option of a Result into a Result of an Option.

        ``Some(Ok(v))`` -> ``Ok(Some(v))``, ``Some(Err(e))`` -> ``Err(e)``,
        ``Nothing`` -> ``Ok(Nothing)``.
        """
        from batik_core.result import Err, Ok

        match self:
            case Some(Ok(value)):
                return Ok(Some(value))
            case Some(Err() as error):
                return error
            case NothingType():
                return Ok(Nothing)
            case _:
                msg = f'transpose() expects an Option of a Result, got {self!r}'
                raise TypeError(msg)

    def flatten[U](self: Option[Option[U]]) -> Option[U]:
        """Remove one level of nesting from an Option of an Option."""
        match self:
            case Some(Option() as inner):
                return inner
            case NothingType():
                return Nothing
            case _:
                msg = f'flatten() expects an Option of an Option, got {self!r}'
                raise TypeError(msg)

    def unzip[A, B](self: Option[tuple[A, B]]) -> tuple[Option[A], Option[B]]:
        """Split an Option of a pair into a pair of Options."""
        match self:
            case Some((a, b)):
                return Some(a), Some(b)
            case NothingType():
                return Nothing, Nothing
            case _:
                msg = f'unzip() expects an Option of a pair, got {self!r}'
                raise TypeError(msg)


class Some[T](Option[T]):
    """A present value.

    Immutable. Equality and hashing delegate to the contained value, so
    ``Some(1) == Some(1)`` and ``{Some(1), Some(1)}`` has one element.

    Examples:
        >>> Some(42).map(lambda x: x * 2)
        Some(84)
        >>> Some(42).filter(lambda x: x > 100)
        Nothing
    """

    __slots__ = ('value',)
    __match_args__ = ('value',)

    value: T

    def __init__(self, value: T) -> None:
        object.__setattr__(self, 'value', value)

    def __setattr__(self, name: str, value: object) -> NoReturn:
        msg = f"'Some' object is immutable; cannot set {name!r}"
        raise AttributeError(msg)

    def __delattr__(self, name: str) -> NoReturn:
        msg = f"'Some' object is immutable; cannot delete {name!r}"
        raise AttributeError(msg)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Some):
            return bool(self.value == other.value)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f'Some({self.value!r})'

    def __reduce__(self) -> tuple[Any, ...]:
        return (Some, (self.value,))


class NothingType(Option[Any]):
    """The absent value.

    A singleton: ``NothingType()`` always returns the ``Nothing`` instance,
    so identity, equality and hashing all agree.
    """

    __slots__ = ()

    _instance: ClassVar[NothingType | None] = None

    def __new__(cls) -> NothingType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'Nothing'

    def __reduce__(self) -> tuple[Any, ...]:
        return (NothingType, ())

    def __copy__(self) -> NothingType:
        return self

    def __deepcopy__(self, _memo: dict[int, Any]) -> NothingType:
        return self


Nothing: NothingType = NothingType()
"""The one NothingType instance."""


def some[T](value: T) -> Option[T]:
    """Wrap ``value`` in Some, typed as an Option."""
    return Some(value)


def none() -> Option[Any]:
    """Return Nothing, typed as an Option."""
    return Nothing


def to_option[T](value: T | None) -> Option[T]:
    """Convert a nullable value: None -> Nothing, anything else -> Some."""
    if value is None:
        return Nothing
    return Some(value)


def from_collection[C: Sized](collection: C) -> Option[C]:
    """Return Some(collection) if it has elements, else Nothing."""
    if len(collection) == 0:
        return Nothing
    return Some(collection)


def unzip[A, B](option: Option[tuple[A, B]]) -> tuple[Option[A], Option[B]]:
    """Split an Option of a pair into a pair of Options."""
    return option.unzip()


def transpose[T, E](option: Option[Result[T, E]]) -> Result[Option[T], E]:
    """Swap an Option of a Result into a Result of an Option."""
    return option.transpose()


def flatten[T](option: Option[Option[T]]) -> Option[T]:
    """Remove one level of nesting from an Option of an Option."""
    return option.flatten()
