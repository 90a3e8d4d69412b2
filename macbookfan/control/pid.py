from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class DerivativeMode(Enum):
    """
    What the derivative term differentiates.

    ON_MEASUREMENT avoids the derivative kick when the target jumps (as it
    does on an AC power transition); ON_ERROR is the textbook form.
    """
    ON_ERROR = "error"
    ON_MEASUREMENT = "measurement"


@dataclass
class PIDParams:
    """
    Parameters for PID controller.
    """
    kp: float = 0.0                 # Proportional gain
    ki: float = 0.0                 # Integral gain
    kd: float = 0.0                 # Derivative gain
    out_min: float = -math.inf      # Minimum output
    out_max: float = math.inf       # Maximum output
    derivative_mode: DerivativeMode = DerivativeMode.ON_MEASUREMENT


class PIDController:
    """
    Positional PID controller with a variable timestep.

    Control law:
        e = target - measured
        u = kp*e + ki*∫e dt + kd*de/dt

    The integral is stored already scaled by ki and clamped to the output
    bounds (anti-windup). set_output_bounds clamps it too, so a range that
    excludes zero (e.g. 2000..6000 RPM) starts the integral at out_min.
    With DerivativeMode.ON_MEASUREMENT the derivative
    term uses -dmeasured/dt, which equals de/dt while the target is fixed.

    Features:
    - Variable timestep (elapsed seconds passed per update)
    - Anti-windup on integrator
    - Output clamping
    - Non-positive or non-finite timesteps contribute no integral or
      derivative, so clock anomalies cannot push NaN/inf into the output
    """

    def __init__(self, params: PIDParams | None = None):
        """
        Initialize PID controller.

        Args:
            params: Controller parameters (uses defaults if None)
        """
        self.params = params or PIDParams()
        self._target: float = 0.0
        self._i_term: float = 0.0
        self._prev_error: float | None = None
        self._prev_measured: float | None = None

    @property
    def target(self) -> float:
        return self._target

    def configure(self, kp: float, ki: float, kd: float) -> None:
        self.params.kp = kp
        self.params.ki = ki
        self.params.kd = kd

    def set_output_bounds(self, out_min: float, out_max: float) -> None:
        if out_min > out_max:
            raise ValueError(f"output minimum {out_min} exceeds maximum {out_max}")
        self.params.out_min = out_min
        self.params.out_max = out_max
        self._i_term = self._clamp(self._i_term)

    def set_target(self, target: float) -> None:
        self._target = target

    def reset(self) -> None:
        """Reset controller state (target and gains are kept)."""
        self._i_term = 0.0
        self._prev_error = None
        self._prev_measured = None

    def _clamp(self, value: float) -> float:
        return max(self.params.out_min, min(self.params.out_max, value))

    def update(self, measured: float, elapsed_s: float) -> float:
        """
        Compute PID control output.

        Args:
            measured: Current process value (e.g. temperature in °C)
            elapsed_s: Seconds since the previous update

        Returns:
            Controller output clamped to the configured bounds
        """
        if not math.isfinite(measured):
            raise ValueError(f"measured value must be finite, got {measured}")

        error = self._target - measured
        usable_dt = math.isfinite(elapsed_s) and elapsed_s > 0

        # Proportional term
        p_term = self.params.kp * error

        # Integral term with anti-windup
        if usable_dt:
            self._i_term = self._clamp(self._i_term + self.params.ki * error * elapsed_s)

        # Derivative term (nothing to differentiate on the first update)
        d_term = 0.0
        if usable_dt and self._prev_error is not None:
            if self.params.derivative_mode is DerivativeMode.ON_ERROR:
                rate = (error - self._prev_error) / elapsed_s
            else:
                rate = (self._prev_measured - measured) / elapsed_s
            d_term = self.params.kd * rate

        # Store for next iteration
        self._prev_error = error
        self._prev_measured = measured

        # Clamp to valid range
        return self._clamp(p_term + self._i_term + d_term)
