"""
Callback-style adapter for callers that expect completion callbacks.

The client is async-only. Callers that want the old ``callback(error,
result)`` convention wrap a coroutine with ``with_callback``; no operation
is implemented twice.
"""

from __future__ import annotations
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .runtime.errors import MaximoError


T = TypeVar("T")
Callback = Callable[[Optional[Exception], Any], None]


async def with_callback(awaitable: Awaitable[T], callback: Optional[Callback] = None) -> T:
    """
    Await ``awaitable`` and report the outcome to ``callback``.

    The callback receives ``(None, result)`` on success or ``(error, None)``
    on a MaximoError. The result is returned, or the error re-raised, either
    way.
    """
    try:
        result = await awaitable
    except MaximoError as e:
        if callback is not None:
            callback(e, None)
        raise
    if callback is not None:
        callback(None, result)
    return result
