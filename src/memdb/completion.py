"""Deferred completion of store operations.

Every store operation does its work synchronously and hands back an
``asyncio.Future`` that the running event loop resolves on a later
iteration. Callers therefore never observe a completed operation before
control has returned to the loop, even though no I/O takes place.
"""

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from memdb.core.exceptions import MemDBError

T = TypeVar("T")

CompletionCallback = Callable[[BaseException | None, Any], None]


def _settle(future: asyncio.Future[Any], value: Any, error: BaseException | None) -> None:
    if future.cancelled():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(value)


def _schedule(
    loop: asyncio.AbstractEventLoop,
    value: Any,
    error: BaseException | None,
    delay: float,
) -> asyncio.Future[Any]:
    future = loop.create_future()
    if delay > 0:
        loop.call_later(delay, _settle, future, value, error)
    else:
        loop.call_soon(_settle, future, value, error)
    return future


def resolved(value: T, delay: float = 0.0) -> "asyncio.Future[T]":
    """Return a future that resolves with ``value`` on a later loop iteration."""
    return _schedule(asyncio.get_running_loop(), value, None, delay)


def failed(error: MemDBError, delay: float = 0.0) -> "asyncio.Future[Any]":
    """Return a future that fails with ``error`` on a later loop iteration."""
    return _schedule(asyncio.get_running_loop(), None, error, delay)


def deferred(fn: Callable[[], T], delay: float = 0.0) -> "asyncio.Future[T]":
    """Run ``fn`` now and deliver its outcome through a future.

    Store errors raised by ``fn`` are reported on the future. Anything else
    is a programming error and propagates to the caller immediately. Without
    a running loop nothing is executed and RuntimeError is raised.

    Args:
        fn: Zero-argument callable doing the synchronous work
        delay: Simulated latency in seconds

    Returns:
        Future resolved with the return value of ``fn``
    """
    loop = asyncio.get_running_loop()
    try:
        value = fn()
    except MemDBError as e:
        return _schedule(loop, None, e, delay)
    return _schedule(loop, value, None, delay)


def on_complete(future: "asyncio.Future[Any]", callback: CompletionCallback) -> None:
    """Invoke ``callback(err, value)`` once ``future`` settles.

    Adapter for callers written against the ``(err, value)`` callback
    contract instead of awaiting the future.
    """

    def _done(fut: "asyncio.Future[Any]") -> None:
        if fut.cancelled():
            return
        error = fut.exception()
        if error is not None:
            callback(error, None)
        else:
            callback(None, fut.result())

    future.add_done_callback(_done)
