"""HTTP boundary: a fluent request builder whose outcome arrives as a Future.

The module does no I/O itself. A ``Transport`` performs the exchange; this
module wraps it so that every fault becomes data and the call runs lazily on
an Executor:

    ```python
    response = (
        Request('https://api.example.com/login')
        .method(Method.POST)
        .headers({'Content-Type': 'application/json'})
        .body(encode(credentials))
        .send(transport, executor)
    )

    match response.join():
        case Ok(resp) if resp.ok:
            session = resp.parse_content(Session)
        case Ok(resp):
            show_error(resp.status_text.unwrap_or('request failed'))
        case Err(exc):
            show_error(str(exc))
    ```
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

import msgspec

from batik_core import codec
from batik_core.decorators import safe, safe_async
from batik_core.errors import ParseError
from batik_core.future import Future
from batik_core.option import Option, to_option
from batik_core.result import Result, catching

if TYPE_CHECKING:
    from batik_core.runtime.executor import Executor

__all__ = [
    'Method',
    'PreparedRequest',
    'Request',
    'Response',
    'Transport',
]


class Method(Enum):
    """HTTP request method."""

    GET = 'GET'
    POST = 'POST'
    PUT = 'PUT'
    DELETE = 'DELETE'
    PATCH = 'PATCH'
    HEAD = 'HEAD'
    OPTIONS = 'OPTIONS'
    TRACE = 'TRACE'


class PreparedRequest(msgspec.Struct, frozen=True):
    """Immutable snapshot of a Request, as handed to a Transport."""

    url: str
    method: Method = Method.GET
    headers: dict[str, str] = {}
    body: str | bytes = ''
    redirect: bool = True
    cache: bool = False

    @property
    def has_body(self) -> bool:
        """Return True if the body should be written (every method but GET)."""
        return self.method is not Method.GET


class Response(msgspec.Struct, frozen=True):
    """Outcome of one HTTP exchange.

    Attributes:
        headers: Response headers, each name mapping to all of its values.
        ok: True for a 2xx status.
        redirect: True for a 3xx status.
        status_code: Numeric HTTP status.
        status_text: Reason phrase, if the server sent one.
        type: Content type, if the server sent one.
        url: Final URL of the exchange.
        content: Response body as text (the error body for non-2xx).
    """

    headers: dict[str, list[str]]
    ok: bool
    redirect: bool
    status_code: int
    status_text: Option[str]
    type: Option[str]
    url: str
    content: str

    @classmethod
    def build(
        cls,
        status_code: int,
        *,
        url: str,
        content: str = '',
        headers: dict[str, list[str]] | None = None,
        status_text: str | None = None,
        content_type: str | None = None,
    ) -> Response:
        """Create a Response, deriving ``ok`` and ``redirect`` from the status."""
        return cls(
            headers=headers or {},
            ok=200 <= status_code <= 299,
            redirect=300 <= status_code <= 399,
            status_code=status_code,
            status_text=to_option(status_text),
            type=to_option(content_type),
            url=url,
            content=content,
        )

    def parse_content[T](self, type: type[T]) -> Result[T, ParseError]:  # noqa: A002
        """Decode the JSON body as ``type``.

        Returns:
            Ok(decoded), or Err(ParseError) wrapping the decode failure.
        """
        return catching(codec.decode, self.content, type=type).map_err(self._parse_error)

    def parse_content_unchecked[T](self, type: type[T]) -> T:  # noqa: A002
        """Decode the JSON body as ``type``, letting msgspec errors propagate."""
        return codec.decode(self.content, type=type)

    def _parse_error(self, exc: Exception) -> ParseError:
        error = ParseError(str(exc), content_type=self.type.unwrap_or_none())
        error.__cause__ = exc
        return error


class Transport(Protocol):
    """Performs the actual HTTP exchange.

    May be a coroutine function, or a plain callable returning either a
    Response or an awaitable of one.
    """

    def __call__(self, request: PreparedRequest, /) -> Response | Awaitable[Response]: ...


class Request:
    """Fluent HTTP request builder.

    Each setter returns the same Request so calls chain. ``send()`` takes a
    snapshot, so changing the builder afterwards does not affect a request
    already sent.
    """

    __slots__ = ('_body', '_cache', '_headers', '_method', '_redirect', '_url')

    def __init__(self, url: str) -> None:
        self._url = url
        self._method = Method.GET
        self._headers: dict[str, str] = {}
        self._body: str | bytes = ''
        self._redirect = True
        self._cache = False

    def method(self, method: Method | str) -> Request:
        self._method = Method(method.upper()) if isinstance(method, str) else method
        return self

    def headers(self, headers: dict[str, str]) -> Request:
        self._headers = dict(headers)
        return self

    def body(self, body: str | bytes | Any) -> Request:
        """Set the body; anything but str or bytes is stored as ``str(body)``."""
        self._body = body if isinstance(body, str | bytes) else str(body)
        return self

    def redirect(self, redirect: bool) -> Request:
        """Set whether the transport should follow redirects."""
        self._redirect = redirect
        return self

    def cache(self, cache: bool) -> Request:
        """Set whether the transport may use a cache."""
        self._cache = cache
        return self

    def prepare(self) -> PreparedRequest:
        return PreparedRequest(
            url=self._url,
            method=self._method,
            headers=dict(self._headers),
            body=self._body,
            redirect=self._redirect,
            cache=self._cache,
        )

    def send(self, transport: Transport, executor: Executor) -> Future[Result[Response, Exception]]:
        """Return a Future of the exchange, started on first observation.

        Any fault raised by the transport is captured as ``Err`` rather
        than raised from the Future.
        """
        prepared = self.prepare()
        block: Callable[[], Any]
        if _is_async(transport):
            call = safe_async(transport)

            async def block() -> Result[Response, Exception]:
                return await call(prepared)

        else:
            block = functools.partial(_exchange, safe(transport), prepared)
        return Future(block, executor)

    def __repr__(self) -> str:
        return f'Request({self._method.value} {self._url})'


def _exchange(call: Callable[[PreparedRequest], Result[Any, Exception]], prepared: PreparedRequest) -> Any:
    outcome = call(prepared)
    # a plain callable may hand back a coroutine; the executor awaits it on the loop
    if outcome.is_ok() and inspect.isawaitable(outcome.value):
        return _settle(outcome.value)
    return outcome


@safe_async
async def _settle(pending: Awaitable[Response]) -> Response:
    return await pending


def _is_async(transport: Transport) -> bool:
    return inspect.iscoroutinefunction(transport) or inspect.iscoroutinefunction(
        getattr(transport, '__call__', None)  # noqa: B004
    )
