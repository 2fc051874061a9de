"""
Microemitter
------------

A synchronous, environment-agnostic event emitter for Python.

Features:

- `EventEmitter` with `on()`, `once()`, `prepend_listener()`, `prepend_once_listener()`,
  `off()` and `remove_all_listeners()`; listeners run in registration order.
- `emit(event, *args, **kwargs)` is **sync** and returns whether anyone was listening.
- Reserved events: ``"newListener"``, ``"removeListener"`` and ``"error"``.
- A listener that raises does not starve the others; its exception becomes an
  ``"error"`` event, or is raised from `emit` when no ``"error"`` listener exists.
- Optional capture of failures from awaitables returned by listeners.
- Leak detection: a warning is logged once per event exceeding `max_listeners`.
- Module-level default emitter with a `@receiver(event)` decorator.
- No dependencies.
"""

from . import config
from .core import (
    default_emitter,
    emit,
    listeners,
    off,
    on,
    once,
    receiver,
    remove_all_listeners,
)
from .emitter import ERROR, NEW_LISTENER, REMOVE_LISTENER, UNLIMITED, EventEmitter
from .registry import OnceWrapper
from .symbols import Symbol, symbol_for

__all__ = [
    "config",
    "receiver",
    "emit",
    "on",
    "once",
    "off",
    "remove_all_listeners",
    "listeners",
    "default_emitter",
    "EventEmitter",
    "OnceWrapper",
    "Symbol",
    "symbol_for",
    "NEW_LISTENER",
    "REMOVE_LISTENER",
    "ERROR",
    "UNLIMITED",
]
