"""JSON codec in which Option is transparent on the wire.

``Some(v)`` encodes exactly as ``v`` would and ``Nothing`` encodes as
``null``. Decoding into ``Option[T]`` (at the top level or as a struct field)
turns ``null`` into ``Nothing`` and anything else into ``Some`` of the value
decoded as ``T``.

``Some(None)`` encodes as ``null`` too, so it decodes back as ``Nothing``.
Avoid ``Option[None]`` payloads where the round trip matters.

Thread Safety:
    - Encoders are kept per thread
    - Decoders are cached per target type and shared (they are reentrant)

Usage:
    >>> class Profile(msgspec.Struct):
    ...     name: str
    ...     avatar: Option[str] = Nothing
    >>>
    >>> encode(Profile('ana'))
    b'{"name":"ana","avatar":null}'
    >>> decode(b'{"name":"ana","avatar":"a.png"}', type=Profile)
    Profile(name='ana', avatar=Some('a.png'))
"""

from __future__ import annotations

import functools
import threading
import typing
from typing import Any

import msgspec

from batik_core.option import Nothing, NothingType, Option, Some

__all__ = [
    'dec_hook',
    'decode',
    'decoder',
    'enc_hook',
    'encode',
    'to_builtins',
]

_local = threading.local()


def enc_hook(obj: Any) -> Any:
    """msgspec ``enc_hook`` that unwraps Options.

    Raises:
        NotImplementedError: For any other unsupported type, as msgspec expects.
    """
    match obj:
        case Some(value):
            return value
        case NothingType():
            return None
        case _:
            msg = f'Objects of type {type(obj).__name__} are not supported'
            raise NotImplementedError(msg)


def dec_hook(tp: Any, obj: Any) -> Any:
    """msgspec ``dec_hook`` that rebuilds Options from null-or-value.

    Raises:
        ValueError: When decoding ``null`` into ``Some[T]`` explicitly.
        NotImplementedError: For any other unsupported type.
    """
    origin = typing.get_origin(tp) or tp
    if not (isinstance(origin, type) and issubclass(origin, Option)):
        msg = f'Type {tp!r} is not supported'
        raise NotImplementedError(msg)

    if obj is None:
        if origin is Some:
            msg = 'Expected a value for `Some`, got `null`'
            raise ValueError(msg)
        return Nothing
    if origin is NothingType:
        msg = 'Expected `null` for `Nothing`'
        raise ValueError(msg)

    args = typing.get_args(tp)
    inner = args[0] if args else Any
    return Some(msgspec.convert(obj, inner, dec_hook=dec_hook))


def _encoder() -> msgspec.json.Encoder:
    encoder = getattr(_local, 'encoder', None)
    if encoder is None:
        encoder = msgspec.json.Encoder(enc_hook=enc_hook)
        _local.encoder = encoder
    return encoder


@functools.lru_cache(maxsize=256)
def decoder[T](type: type[T] | Any = Any) -> msgspec.json.Decoder[T]:  # noqa: A002
    """Return a shared JSON decoder for ``type`` that understands Option."""
    return msgspec.json.Decoder(type, dec_hook=dec_hook)


def encode(obj: Any) -> bytes:
    """Encode ``obj`` as JSON bytes; Options become their value or null."""
    return _encoder().encode(obj)


def decode[T](buf: bytes | bytearray | memoryview | str, *, type: type[T] | Any = Any) -> T:  # noqa: A002
    """Decode JSON into ``type``, rebuilding any Option in it.

    Raises:
        msgspec.DecodeError: If ``buf`` is not valid JSON.
        msgspec.ValidationError: If the data does not match ``type``.
    """
    return decoder(type).decode(buf)


def to_builtins(obj: Any) -> Any:
    """Convert ``obj`` to JSON-compatible builtins, unwrapping Options."""
    return msgspec.to_builtins(obj, enc_hook=enc_hook)
