"""
EventEmitter implementation.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

from . import config
from .dispatch import dispatch
from .registry import EventKey, ListenerFunc, ListenerRegistry, OnceWrapper, original_listener
from .symbols import Symbol

logger = logging.getLogger(__name__)

NEW_LISTENER = "newListener"
REMOVE_LISTENER = "removeListener"
ERROR = "error"

UNLIMITED = math.inf

MaxListeners = Union[int, float]


def _assert_event(event: Any) -> None:
    if not isinstance(event, (str, Symbol)):
        raise TypeError(
            "event must be a str or Symbol, "
            f"got {type(event).__name__} ({event!r})"
        )


def _assert_listener(listener: Any, nullable: bool = False) -> None:
    if nullable and listener is None:
        return
    if not callable(listener):
        raise TypeError(
            f"listener must be callable, got {type(listener).__name__} ({listener!r})"
        )


def _assert_max_listeners(value: Any) -> None:
    if isinstance(value, float) and value == math.inf:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(
            f"max listeners must be an int or math.inf, got {type(value).__name__}"
        )
    if value < 0:
        raise ValueError(f"max listeners must be non-negative, got {value}")


class EventEmitter:
    """
    Synchronous publish/subscribe emitter.

    Listeners run in registration order (prepended ones first). A listener
    that raises does not stop the others: once every listener has run, each
    exception is emitted as an ``"error"`` event, or raised from `emit` when
    nobody listens for ``"error"``. Awaitables returned by listeners are
    scheduled on the running event loop; with `capture_rejections` their
    failures are routed to ``emitter[capture_rejection_symbol]``, then to
    ``"error"`` listeners, then to the loop's exception handler.

    Registration, removal and emission are thread-safe: the registry and the
    per-instance state share one re-entrant lock, which is never held while a
    listener runs.
    """

    def __init__(
        self,
        *,
        max_listeners: Optional[MaxListeners] = None,
        capture_rejections: Optional[bool] = None,
        capture_rejection_symbol: Optional[Symbol] = None,
    ) -> None:
        """
        Initialize a new EventEmitter.

        Args:
            max_listeners (Optional[int | float], optional): Per-event listener count above
                which a leak warning is logged. 0 or math.inf disables the warning.
                Defaults to `config.default_max_listeners`.
            capture_rejections (Optional[bool], optional): Route failures of awaitables
                returned by listeners. Defaults to `config.capture_rejections`.
            capture_rejection_symbol (Optional[Symbol], optional): Slot key of the
                per-instance rejection handler. Defaults to `config.capture_rejection_symbol`.
        """
        if max_listeners is None:
            max_listeners = config.default_max_listeners
        if capture_rejections is None:
            capture_rejections = config.capture_rejections
        if capture_rejection_symbol is None:
            capture_rejection_symbol = config.capture_rejection_symbol

        _assert_max_listeners(max_listeners)
        if not isinstance(capture_rejections, bool):
            raise TypeError("capture_rejections must be a bool")
        if not isinstance(capture_rejection_symbol, Symbol):
            raise TypeError("capture_rejection_symbol must be a Symbol")

        # Guards the registry and the per-instance state below; never held while a listener runs.
        self._lock = threading.RLock()
        self._registry = ListenerRegistry(self._lock)
        self._warned: Set[EventKey] = set()
        self._max_listeners: MaxListeners = max_listeners
        self._capture_rejections = capture_rejections
        self._capture_rejection_symbol = capture_rejection_symbol
        self._slots: Dict[Symbol, Any] = {}
        self._pending: Set["asyncio.Future[Any]"] = set()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} events={self._registry.keys()!r}>"

    # -------------------- symbol slots --------------------
    def __getitem__(self, key: Symbol) -> Any:
        if not isinstance(key, Symbol):
            raise TypeError("emitter slots are keyed by Symbol")
        with self._lock:
            return self._slots[key]

    def __setitem__(self, key: Symbol, value: Any) -> None:
        if not isinstance(key, Symbol):
            raise TypeError("emitter slots are keyed by Symbol")
        with self._lock:
            self._slots[key] = value

    def __delitem__(self, key: Symbol) -> None:
        if not isinstance(key, Symbol):
            raise TypeError("emitter slots are keyed by Symbol")
        with self._lock:
            del self._slots[key]

    # -------------------- registration API --------------------
    def _add_listener(
        self,
        event: EventKey,
        listener: ListenerFunc,
        *,
        once: bool = False,
        prepend: bool = False,
    ) -> "EventEmitter":
        _assert_event(event)
        _assert_listener(listener)
        self.emit(NEW_LISTENER, event, listener)

        entry = OnceWrapper(self, event, listener) if once else listener
        count = self._registry.add(event, entry, prepend=prepend)

        with self._lock:
            limit = self._max_listeners
            warn = limit not in (0, UNLIMITED) and count > limit and event not in self._warned
            if warn:
                self._warned.add(event)
        if warn:
            logger.warning(
                "MaxListenersExceededWarning: Possible EventEmitter memory leak detected. "
                "%d %s listeners added to %r. Use emitter.set_max_listeners() to increase limit",
                count,
                event,
                self,
            )
        return self

    def on(self, event: EventKey, listener: ListenerFunc) -> "EventEmitter":
        """
        Add `listener` to the end of the listeners for `event`.

        No check is made for duplicates: adding the same listener twice means it
        is called twice. ``"newListener"`` is emitted before the listener is added.

        Args:
            event (str | Symbol): The event to listen to.
            listener (ListenerFunc): Called with the arguments passed to `emit`.

        Returns:
            EventEmitter: self, for chaining.
        """
        return self._add_listener(event, listener)

    add_listener = on

    def once(self, event: EventKey, listener: ListenerFunc) -> "EventEmitter":
        """
        Add a one-time `listener` for `event`.

        The next time `event` is emitted the listener is removed, then called.

        Returns:
            EventEmitter: self, for chaining.
        """
        return self._add_listener(event, listener, once=True)

    def prepend_listener(self, event: EventKey, listener: ListenerFunc) -> "EventEmitter":
        """Like `on`, but add `listener` to the beginning of the listeners for `event`."""
        return self._add_listener(event, listener, prepend=True)

    def prepend_once_listener(self, event: EventKey, listener: ListenerFunc) -> "EventEmitter":
        """Like `once`, but add `listener` to the beginning of the listeners for `event`."""
        return self._add_listener(event, listener, once=True, prepend=True)

    def receiver(
        self, event: EventKey, *, once: bool = False, prepend: bool = False
    ) -> Callable[[ListenerFunc], ListenerFunc]:
        """
        Decorator to register a function as a listener for `event`.

        Args:
            event (str | Symbol): The event to listen to.
            once (bool, optional): Remove the listener after its first call. Defaults to False.
            prepend (bool, optional): Add it before the existing listeners. Defaults to False.

        Returns:
            Callable[[ListenerFunc], ListenerFunc]: A decorator returning the function unchanged.
        """

        def wrapper(func: ListenerFunc) -> ListenerFunc:
            self._add_listener(event, func, once=once, prepend=prepend)
            return func

        return wrapper

    # -------------------- removal API --------------------
    def _forget_warning(self, event: EventKey) -> None:
        with self._lock:
            if self._registry.count(event) < self._max_listeners:
                self._warned.discard(event)

    def remove_listener(
        self, event: EventKey, listener: Optional[ListenerFunc] = None
    ) -> "EventEmitter":
        """
        Remove at most one occurrence of `listener` from the listeners for `event`.

        Listeners added with `once` can be removed by passing the original
        function. ``"removeListener"`` is emitted after the removal, and only if
        something was removed. With `listener` None, every listener for `event`
        is removed.

        Args:
            event (str | Symbol): The event to remove the listener from.
            listener (Optional[ListenerFunc], optional): The listener to remove.

        Returns:
            EventEmitter: self, for chaining.
        """
        _assert_event(event)
        _assert_listener(listener, nullable=True)
        if listener is None:
            return self.remove_all_listeners(event)

        entry = self._registry.remove_one(event, listener)
        if entry is not None:
            self._forget_warning(event)
            self.emit(REMOVE_LISTENER, event, original_listener(entry))
        return self

    off = remove_listener

    def _drain(self, event: EventKey) -> None:
        for entry in self._registry.remove_all(event):
            self.emit(REMOVE_LISTENER, event, original_listener(entry))
        self._forget_warning(event)

    def remove_all_listeners(self, event: Optional[EventKey] = None) -> "EventEmitter":
        """
        Remove all listeners, or those of `event`.

        ``"removeListener"`` is emitted once per removed listener. When every
        event is cleared, the ``"removeListener"`` listeners are removed last so
        they observe all the other removals.

        Returns:
            EventEmitter: self, for chaining.
        """
        if event is not None:
            _assert_event(event)
            self._drain(event)
            return self

        drain_remove_listener = False
        for key in self._registry.keys():
            if key == REMOVE_LISTENER:
                drain_remove_listener = True
                continue
            self._drain(key)
        if drain_remove_listener:
            self._drain(REMOVE_LISTENER)
        return self

    # -------------------- introspection --------------------
    def event_names(self) -> List[EventKey]:
        """Return the events that currently have at least one listener."""
        return self._registry.keys()

    def listeners(self, event: EventKey) -> List[ListenerFunc]:
        """Return a copy of the listeners for `event`, with once-wrappers unwrapped."""
        _assert_event(event)
        return [original_listener(entry) for entry in self._registry.get(event)]

    def raw_listeners(self, event: EventKey) -> List[ListenerFunc]:
        """Return a copy of the stored entries for `event`, once-wrappers included."""
        _assert_event(event)
        return self._registry.get(event)

    def listener_count(self, event: EventKey) -> int:
        _assert_event(event)
        return self._registry.count(event)

    def get_max_listeners(self) -> MaxListeners:
        return self._max_listeners

    def set_max_listeners(self, n: MaxListeners) -> "EventEmitter":
        """
        Set the per-event listener count above which a leak warning is logged.

        0 or math.inf disables the warning. Raising the limit allows events that
        already warned to warn again.

        Raises:
            TypeError: If `n` is not an int or math.inf.
            ValueError: If `n` is negative.
        """
        _assert_max_listeners(n)
        with self._lock:
            if n > self._max_listeners:
                self._warned.clear()
            self._max_listeners = n
        return self

    # -------------------- dispatch --------------------
    def emit(self, event: EventKey, *args: Any, **kwargs: Any) -> bool:
        """
        Synchronously call each listener for `event`, in order, with `*args, **kwargs`.

        The listeners are snapshotted first: listeners added or removed while
        dispatching only take part in later emits.

        Args:
            event (str | Symbol): The event to dispatch.
            *args: Positional arguments to pass to the listeners.
            **kwargs: Keyword arguments to pass to the listeners.

        Returns:
            bool: True if the event had listeners, otherwise False.

        Raises:
            Exception: The first exception raised by a listener, when there is no
                ``"error"`` listener to route it to (or `event` is ``"error"``).
        """
        _assert_event(event)
        result = dispatch(
            self._registry.get(event),
            args,
            kwargs,
            capture_rejections=self._capture_rejections,
            on_rejection=self._route_rejection,
        )
        for future in result.deferred:
            if not future.done():
                with self._lock:
                    self._pending.add(future)
                future.add_done_callback(self._forget_future)
        if result.failures:
            self._route_failures(event, result.failures)
        return result.invoked > 0

    def _forget_future(self, future: "asyncio.Future[Any]") -> None:
        with self._lock:
            self._pending.discard(future)

    def _route_failures(self, event: EventKey, failures: List[Exception]) -> None:
        """
        Emit each failure as "error"; raise the first one nobody handled.

        Every other unhandled failure is logged, including the ones left
        unrouted when an "error" listener itself raises.
        """
        unhandled: List[Exception] = []
        if event == ERROR:
            unhandled = list(failures)
        else:
            for index, exc in enumerate(failures):
                try:
                    handled = self.emit(ERROR, exc)
                except Exception:
                    self._log_unhandled(event, unhandled + failures[index + 1 :])
                    raise
                if not handled:
                    unhandled.append(exc)

        if unhandled:
            self._log_unhandled(event, unhandled[1:])
            raise unhandled[0]

    @staticmethod
    def _log_unhandled(event: EventKey, failures: List[Exception]) -> None:
        for exc in failures:
            logger.error("Unhandled exception in %r listener", event, exc_info=exc)

    def _route_rejection(self, future: "asyncio.Future[Any]") -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is None:
            return

        with self._lock:
            handler = self._slots.get(self._capture_rejection_symbol)
        if callable(handler):
            handler(exc)
        elif self._registry.count(ERROR):
            self.emit(ERROR, exc)
        else:
            future.get_loop().call_exception_handler(
                {
                    "message": "Unhandled rejection in event listener",
                    "exception": exc,
                    "future": future,
                }
            )

    async def wait_for(self, event: EventKey) -> Tuple[Any, ...]:
        """
        Wait for the next emission of `event`.

        Args:
            event (str | Symbol): The event to wait for.

        Returns:
            Tuple[Any, ...]: The positional arguments of that emission.

        Raises:
            Exception: The value emitted as ``"error"`` before `event` fired.
        """
        _assert_event(event)
        waiter = asyncio.get_running_loop().create_future()

        def on_event(*args: Any, **kwargs: Any) -> None:  # pylint: disable=unused-argument
            if not waiter.done():
                waiter.set_result(args)

        def on_error(error: Any) -> None:
            if not waiter.done():
                if not isinstance(error, BaseException):
                    error = RuntimeError(error)
                waiter.set_exception(error)

        self.once(event, on_event)
        if event != ERROR:
            self.once(ERROR, on_error)
        try:
            return await waiter
        finally:
            self.remove_listener(event, on_event)
            if event != ERROR:
                self.remove_listener(ERROR, on_error)
