"""
Listener registry: per-event ordered listener sequences.
"""

from __future__ import annotations

import threading
import types
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Hashable, Iterator, List, Optional

if TYPE_CHECKING:
    from .emitter import EventEmitter

ListenerFunc = Callable[..., Any]
EventKey = Hashable  # str or Symbol, validated by the emitter


@dataclass(eq=False)
class OnceWrapper:
    """
    Self-removing entry stored in place of a `once` listener.

    `listener` is the original callable, so removal by identity and
    `EventEmitter.listeners()` can still find it.
    """

    emitter: "EventEmitter" = field(repr=False)
    event: EventKey
    listener: ListenerFunc
    fired: bool = field(default=False, init=False)
    _latch: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        # A wrapper can sit in several in-flight snapshots when emit re-enters.
        with self._latch:
            if self.fired:
                return None
            self.fired = True
        self.emitter.remove_listener(self.event, self)
        return self.listener(*args, **kwargs)


def original_listener(entry: ListenerFunc) -> ListenerFunc:
    """Unwrap a stored entry to the callable the user registered."""
    if isinstance(entry, OnceWrapper):
        return entry.listener
    return entry


def _same(a: Any, b: Any) -> bool:
    if a is b:
        return True
    # obj.method builds a new bound-method object on every access
    return isinstance(a, types.MethodType) and a == b


def matches(entry: ListenerFunc, listener: ListenerFunc) -> bool:
    """True if `entry` is `listener` or is a once-wrapper around it."""
    return _same(entry, listener) or (
        isinstance(entry, OnceWrapper) and _same(entry.listener, listener)
    )


class ListenerRegistry:
    """
    Mapping of event key to a non-empty list of listener entries.

    Keys are dropped as soon as their list empties. Mutations are serialized
    with a re-entrant lock, which is never held while a listener runs.
    """

    def __init__(self, lock: Optional[threading.RLock] = None) -> None:
        self._lock = lock or threading.RLock()
        self._entries: Dict[EventKey, List[ListenerFunc]] = {}

    def get(self, event: EventKey) -> List[ListenerFunc]:
        """Return a snapshot of the entries for `event` (empty if none)."""
        with self._lock:
            return list(self._entries.get(event, ()))

    def count(self, event: EventKey) -> int:
        with self._lock:
            return len(self._entries.get(event, ()))

    def keys(self) -> List[EventKey]:
        with self._lock:
            return list(self._entries)

    def add(self, event: EventKey, entry: ListenerFunc, prepend: bool = False) -> int:
        """
        Insert `entry` for `event`, at the front when `prepend` is true.

        Returns:
            int: The number of entries for `event` after insertion.
        """
        with self._lock:
            entries = self._entries.setdefault(event, [])
            if prepend:
                entries.insert(0, entry)
            else:
                entries.append(entry)
            return len(entries)

    def remove_one(self, event: EventKey, listener: ListenerFunc) -> Optional[ListenerFunc]:
        """
        Remove the first entry matching `listener` (directly or as a once-wrapper).

        Returns:
            Optional[ListenerFunc]: The removed entry, or None if nothing matched.
        """
        with self._lock:
            entries = self._entries.get(event)
            if not entries:
                return None
            for index, entry in enumerate(entries):
                if matches(entry, listener):
                    del entries[index]
                    if not entries:
                        del self._entries[event]
                    return entry
            return None

    def remove_all(self, event: EventKey) -> Iterator[ListenerFunc]:
        """
        Detach the entries of `event` front to back, yielding each one after it is removed.

        Entries added for `event` while the caller is iterating are drained too.
        """
        while True:
            with self._lock:
                entries = self._entries.get(event)
                if not entries:
                    return
                entry = entries.pop(0)
                if not entries:
                    del self._entries[event]
            yield entry
