"""
macbookfan: closed-loop PID fan control for Apple SMC laptops running Linux.

Features:
- Sysfs node access behind a small protocol (real files or in-memory)
- PID controller with variable timestep and bounded output
- Per-fan clamping with write suppression
- Setpoint adaptation on AC power transitions
- Offline laptop simulator with JSON artifacts and optional plots
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.2.0"
