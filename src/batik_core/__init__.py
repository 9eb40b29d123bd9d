"""batik-core: Option, Result and lazily started Futures.

Absence, failure and not-yet-available values for Python 3.13+, with a JSON
codec in which Option is transparent and an explicit Executor behind every
Future.

Flat imports (preferred):
    from batik_core import Option, Some, Nothing, Result, Ok, Err, catching
    from batik_core import Future, future, Poll, Ready, Pending

Submodule imports (for organization):
    from batik_core.result import Ok, Err, use_and_catch
    from batik_core.runtime import Executor, init
    from batik_core.http import Request, Response
"""

from batik_core.decorators import safe, safe_async
from batik_core.errors import IllegalAccessError, ParseError, add_suppressed, suppressed
from batik_core.future import Future, FutureState, future, ready
from batik_core.option import (
    Nothing,
    NothingType,
    Option,
    Some,
    from_collection,
    to_option,
)
from batik_core.poll import Pending, PendingType, Poll, Ready
from batik_core.result import (
    Err,
    Ok,
    Result,
    catching,
    collect,
    partition,
    use_and_catch,
)
from batik_core.runtime import Executor

__all__ = [
    'Err',
    'Executor',
    'Future',
    'FutureState',
    'IllegalAccessError',
    'Nothing',
    'NothingType',
    'Ok',
    'Option',
    'ParseError',
    'Pending',
    'PendingType',
    'Poll',
    'Ready',
    'Result',
    'Some',
    'add_suppressed',
    'catching',
    'collect',
    'from_collection',
    'future',
    'partition',
    'ready',
    'safe',
    'safe_async',
    'suppressed',
    'to_option',
    'use_and_catch',
]

__version__ = '0.1.0'
