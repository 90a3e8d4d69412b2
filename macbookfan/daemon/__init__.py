from __future__ import annotations

from macbookfan.daemon.interfaces import ControlState, TickSample
from macbookfan.daemon.loop import ThermalControlLoop, adapt_setpoint

__all__ = [
    "ControlState",
    "TickSample",
    "ThermalControlLoop",
    "adapt_setpoint",
]
