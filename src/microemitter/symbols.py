"""
Opaque unique tokens usable as event keys.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional


class Symbol:
    """
    A unique, hashable token. Two symbols are equal only if they are the same object.
    """

    __slots__ = ("description",)

    def __init__(self, description: Optional[str] = None) -> None:
        self.description = description

    def __repr__(self) -> str:
        return f"Symbol({self.description or ''})"


_registry: Dict[str, Symbol] = {}
_registry_lock = threading.Lock()


def symbol_for(key: str) -> Symbol:
    """
    Return the process-wide symbol registered under `key`, creating it on first use.

    Args:
        key (str): The registry key.

    Returns:
        Symbol: The same object for every call with an equal key.
    """
    if not isinstance(key, str):
        raise TypeError("symbol key must be a string")
    with _registry_lock:
        sym = _registry.get(key)
        if sym is None:
            sym = _registry[key] = Symbol(key)
        return sym
