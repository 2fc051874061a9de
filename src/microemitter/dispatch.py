"""
Emission engine: invoke a listener snapshot and collect what went wrong.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .registry import ListenerFunc

RejectionCallback = Callable[["asyncio.Future[Any]"], None]


@dataclass
class DispatchResult:
    """
    Outcome of one dispatch pass.

    Attributes:
        invoked (int): Number of listeners called.
        failures (List[Exception]): Synchronous failures, in listener order.
        deferred (List[asyncio.Future]): Futures scheduled for awaitable results.
    """

    invoked: int = 0
    failures: List[Exception] = field(default_factory=list)
    deferred: List["asyncio.Future[Any]"] = field(default_factory=list)


def _schedule(result: Any) -> "asyncio.Future[Any]":
    """Make sure an awaitable returned by a listener runs, and return its future."""
    if asyncio.isfuture(result):
        return result
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        if inspect.iscoroutine(result):
            result.close()
        raise RuntimeError(
            "listener returned an awaitable but no event loop is running"
        ) from None
    return asyncio.ensure_future(result)


def dispatch(
    entries: Sequence[ListenerFunc],
    args: Tuple[Any, ...] = (),
    kwargs: Optional[Dict[str, Any]] = None,
    *,
    capture_rejections: bool = False,
    on_rejection: Optional[RejectionCallback] = None,
) -> DispatchResult:
    """
    Call every entry of `entries` in order with `*args, **kwargs`.

    A listener raising does not stop the ones after it; its exception is
    recorded in `failures`. Awaitable results are scheduled on the running
    loop, and when `capture_rejections` is set `on_rejection` is attached to
    each of them as a done-callback.

    Args:
        entries (Sequence[ListenerFunc]): Snapshot of listeners, taken by the caller.
        args (Tuple[Any, ...]): Positional arguments for every listener.
        kwargs (Optional[Dict[str, Any]]): Keyword arguments for every listener.
        capture_rejections (bool): Attach `on_rejection` to scheduled futures.
        on_rejection (Optional[RejectionCallback]): Done-callback for scheduled futures.

    Returns:
        DispatchResult: Invocation count, synchronous failures and scheduled futures.
    """
    kwargs = kwargs or {}
    result = DispatchResult()
    for entry in entries:
        result.invoked += 1
        try:
            value = entry(*args, **kwargs)
            if not inspect.isawaitable(value):
                continue
            future = _schedule(value)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            result.failures.append(exc)
            continue

        result.deferred.append(future)
        if capture_rejections and on_rejection is not None:
            future.add_done_callback(on_rejection)
    return result
