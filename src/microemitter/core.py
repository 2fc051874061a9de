"""
microemitter.core
-----------------

Module-level API backed by a default EventEmitter.
"""

from typing import Any, Callable, List, Optional

from .emitter import EventEmitter
from .registry import EventKey, ListenerFunc

# -------------------- module-level default emitter --------------------

_default_emitter = EventEmitter()


def default_emitter() -> EventEmitter:
    """Return the emitter used by the module-level functions."""
    return _default_emitter


# Registration
def on(event: EventKey, listener: ListenerFunc) -> EventEmitter:
    """
    Add a listener for an event on the default emitter.

    Args:
        event (str | Symbol): The event to listen to.
        listener (ListenerFunc): The listener to add.

    Returns:
        EventEmitter: The default emitter.
    """
    return _default_emitter.on(event, listener)


def once(event: EventKey, listener: ListenerFunc) -> EventEmitter:
    """
    Add a one-time listener for an event on the default emitter.

    Args:
        event (str | Symbol): The event to listen to.
        listener (ListenerFunc): The listener to add.

    Returns:
        EventEmitter: The default emitter.
    """
    return _default_emitter.once(event, listener)


def off(event: EventKey, listener: Optional[ListenerFunc] = None) -> EventEmitter:
    """
    Remove one occurrence of `listener` for `event`. If `listener` is None,
    remove all listeners for `event`.

    Args:
        event (str | Symbol): The event to remove listeners from.
        listener (Optional[ListenerFunc], optional): The listener to remove.
                                                     Defaults to None.

    Returns:
        EventEmitter: The default emitter.
    """
    return _default_emitter.off(event, listener)


def remove_all_listeners(event: Optional[EventKey] = None) -> EventEmitter:
    """
    Remove all listeners from the default emitter, or only those of `event`.

    Returns:
        EventEmitter: The default emitter.
    """
    return _default_emitter.remove_all_listeners(event)


def listeners(event: EventKey) -> List[ListenerFunc]:
    """
    Return the listeners registered for `event`, in call order.

    Args:
        event (str | Symbol): The event to list listeners for.

    Returns:
        List[ListenerFunc]: The listeners registered for `event`.
    """
    return _default_emitter.listeners(event)


def _get_emitter(emitter: Optional[EventEmitter] = None) -> EventEmitter:
    return emitter or _default_emitter


# Decorator
def receiver(
    event: EventKey,
    *,
    once: bool = False,  # pylint: disable=redefined-outer-name
    prepend: bool = False,
    emitter: Optional[EventEmitter] = None,
) -> Callable[[ListenerFunc], ListenerFunc]:
    """
    Decorator to register a function as a listener for `event`.

    Args:
        event (str | Symbol): The event to listen to.
        once (bool, optional): Remove the listener after its first call. Defaults to False.
        prepend (bool, optional): Add it before the existing listeners. Defaults to False.
        emitter (EventEmitter, optional): The emitter to register on.
                                          Defaults to None. If None, the default emitter is used.

    Returns:
        Callable[[ListenerFunc], ListenerFunc]: The decorator function.

    Example:
    @receiver("my_event", once=True)
    def my_listener(*args, **kwargs):
        print("my_listener called with args: ", args, "kwargs: ", kwargs)
    """
    return _get_emitter(emitter).receiver(event, once=once, prepend=prepend)


# Dispatch
def emit(event: EventKey, *args: Any, **kwargs: Any) -> bool:
    """
    Synchronously call the default emitter's listeners for `event`.

    Args:
        event (str | Symbol): The event to dispatch.
        *args: Positional arguments to pass to the listeners.
        **kwargs: Keyword arguments to pass to the listeners.

    Returns:
        bool: True if the event had listeners, otherwise False.

    Example:
    emit("my_event", arg1, arg2)
    """
    return _default_emitter.emit(event, *args, **kwargs)
