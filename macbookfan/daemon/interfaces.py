from __future__ import annotations

from dataclasses import dataclass

# slots are used to enfore good interface hygiene, disables dynamic attribute creation.
@dataclass(frozen=True, slots=True)
class ControlState:
    """
    Loop state carried from one tick to the next.

    A new instance replaces the old one each tick. target_c only moves on a
    power-source edge, never while the power state is steady.
    """
    base_target_c: float            # Configured target on battery (°C)
    target_c: float                 # Currently applied target (°C)
    ac_adjustment_c: float          # Added to base_target_c on AC (°C)
    power_online: bool              # Last observed AC state
    last_sample_s: float            # Clock reading of the previous sample (s)
    iteration: int = 0              # Ticks completed


@dataclass(frozen=True, slots=True)
class TickSample:
    """
    What happened during one tick.

    Returned by ThermalControlLoop.tick() and recorded by the simulator.
    writes maps fan identifier to the speed written; suppressed or failed
    writes are absent.
    """
    iteration: int                  # Tick number, 0-based
    time_s: float                   # Clock reading at the sample (s)
    elapsed_s: float                # Time since previous sample (s)
    temp_c: float                   # Measured temperature (°C)
    target_c: float                 # Target in effect (°C)
    power_online: bool              # AC state observed this tick
    raw_speed: float                # Clamped PID output, before per-fan clamping
    speed: int                      # Rounded PID output (as reported)
    writes: dict[str, int]          # Fan id -> speed written this tick
    reported: bool = False          # Whether a status line was logged
