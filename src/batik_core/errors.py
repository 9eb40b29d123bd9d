"""Fault types shared by Option, Result and the runtime.

Misuse faults (projecting the wrong variant) raise ``IllegalAccessError``.
Faults captured by ``catching`` travel as ``Err`` data; when releasing a
resource also fails, the release fault is attached to the primary one as a
suppressed fault.
"""

from __future__ import annotations

__all__ = [
    'IllegalAccessError',
    'ParseError',
    'add_suppressed',
    'suppressed',
]

_SUPPRESSED_ATTR = '_batik_suppressed'


class IllegalAccessError(RuntimeError):
    """A value was projected out of the wrong variant.

    Raised by ``unwrap``/``expect`` on ``Nothing`` or ``Err`` and by
    ``unwrap_err``/``expect_err`` on ``Ok``. These signal bugs in the caller;
    use the total accessors (``unwrap_or``, ``map``, ``match``) for
    recoverable handling.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ParseError(ValueError):
    """Content could not be decoded into the requested type."""

    def __init__(self, message: str, content_type: str | None = None) -> None:
        self.message = message
        self.content_type = content_type
        super().__init__(message)


def add_suppressed(primary: BaseException, secondary: BaseException) -> BaseException:
    """Attach ``secondary`` to ``primary`` as a suppressed fault.

    The primary fault stays the one reported; the secondary is kept for
    diagnostics and mentioned in the primary's notes so it shows up in
    tracebacks.

    Returns:
        The primary exception.
    """
    if primary is secondary:
        return primary
    existing: list[BaseException] = primary.__dict__.setdefault(_SUPPRESSED_ATTR, [])
    existing.append(secondary)
    primary.add_note(f'Suppressed: {type(secondary).__name__}: {secondary}')
    return primary


def suppressed(exc: BaseException) -> tuple[BaseException, ...]:
    """Return the faults suppressed on ``exc``, oldest first."""
    return tuple(getattr(exc, _SUPPRESSED_ATTR, ()))
