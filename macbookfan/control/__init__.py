from __future__ import annotations

from macbookfan.control.pid import DerivativeMode, PIDController, PIDParams

__all__ = [
    "DerivativeMode",
    "PIDController",
    "PIDParams",
]
