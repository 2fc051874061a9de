"""
Process-wide defaults for new emitters.

Each value is read once when an `EventEmitter` is constructed; changing it
afterwards only affects emitters created later.
"""

from .symbols import Symbol, symbol_for

# Warn when more than this many listeners are added for one event. 0 or math.inf disables it.
default_max_listeners = 10

# Route failures of awaitables returned by listeners.
capture_rejections: bool = False

# Slot key (emitter[key] = handler) of the per-instance rejection handler.
capture_rejection_symbol: Symbol = symbol_for("rejection")
