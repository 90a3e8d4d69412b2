"""
Thermal control loop for macbookfan.

This module provides the ThermalControlLoop class, the orchestrator that
ties the sensor, the PID controller and the fans together. It manages:
- Startup: manual fan control, fan range discovery, PID bounds
- Setpoint adaptation on AC power transitions
- Temperature sampling with wall-clock timesteps
- Fan dispatch with per-fan clamping and write suppression
- Periodic status reporting

Architecture:
```
    ThermalControlLoop
        |
        +-- SysNodeAccessor (sysfs files or MemorySysfs)
        |
        +-- PIDController (one, shared by all fans)
        |
        +-- Fan[] (clamp + suppress + write)
        |
        v
    TickSample per tick
```

States: Starting -> Running. There is no terminal state; the daemon runs
until the process is killed. Every write is idempotent, so being killed
between ticks is always safe.

Example usage:
    >>> from macbookfan.config import ControllerConfig, HardwareLayout
    >>> from macbookfan.daemon.loop import ThermalControlLoop
    >>> from macbookfan.hw.sysnode import SysfsAccessor
    >>>
    >>> loop = ThermalControlLoop(
    ...     ControllerConfig.from_args(target_c=41.0),
    ...     HardwareLayout(),
    ...     SysfsAccessor(),
    ... )
    >>> loop.run()  # never returns
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Callable

from ..config import ControllerConfig, HardwareLayout
from ..control.pid import PIDController, PIDParams
from ..hw.fan import Fan, initialize_fan, round_half_away
from ..hw.sysnode import SysNodeAccessor
from .interfaces import ControlState, TickSample

logger = logging.getLogger(__name__)


def adapt_setpoint(state: ControlState, power_online: bool) -> ControlState:
    """
    Apply an AC power transition to the control state.

    The target only moves on an edge: going online raises it to
    base + adjustment, going offline drops it back to base. A repeated
    observation of the same power state returns the state unchanged.

    Args:
        state: Current loop state
        power_online: AC state observed this tick

    Returns:
        New ControlState (does not mutate input)
    """
    if power_online == state.power_online:
        return state

    if power_online:
        target_c = state.base_target_c + state.ac_adjustment_c
    else:
        target_c = state.base_target_c

    return replace(state, target_c=target_c, power_online=power_online)


class ThermalControlLoop:
    """
    Closed-loop fan controller.

    The loop owns every piece of mutable state: the ControlState, the PID
    controller and the Fan records. Nothing is shared with other threads.

    Attributes:
        _cfg: Controller tuning (target, AC adjustment, gains, cadence).
        _layout: Where the sensor, fans and power supply live.
        _accessor: Node reader/writer.
        _clock: Monotonic clock in seconds.
        _sleep: Blocking sleep in seconds.
    """

    def __init__(
        self,
        config: ControllerConfig,
        layout: HardwareLayout,
        accessor: SysNodeAccessor,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the loop. No hardware is touched until start().

        Args:
            config: Controller tuning
            layout: Hardware node locations
            accessor: Node accessor (SysfsAccessor on real hardware)
            clock: Time source used for PID timesteps
            sleep: Called with the tick interval between ticks
        """
        self._cfg = config
        self._layout = layout
        self._accessor = accessor
        self._clock = clock
        self._sleep = sleep

        self._controller = PIDController(
            PIDParams(derivative_mode=config.derivative_mode)
        )
        self._controller.configure(config.kp, config.ki, config.kd)

        self._fans: list[Fan] = []
        self._state: ControlState | None = None

    @property
    def fans(self) -> list[Fan]:
        return self._fans

    @property
    def controller(self) -> PIDController:
        return self._controller

    @property
    def state(self) -> ControlState | None:
        """Current loop state, None before start()."""
        return self._state

    @property
    def started(self) -> bool:
        return self._state is not None

    def start(self) -> None:
        """
        Perform the Starting -> Running transition.

        Raises:
            SysNodeError: a fan could not be put in manual mode or its range
                          could not be read. There is no safe fallback, so
                          callers must treat this as fatal.
            ValueError: no fans configured or a fan has min > max
            RuntimeError: called twice
        """
        if self.started:
            raise RuntimeError("control loop already started")
        if not self._layout.fans:
            raise ValueError("at least one fan must be configured")

        # ─────────────────────────────────────────────────────────────
        # Manual control and range discovery for every fan
        # ─────────────────────────────────────────────────────────────
        self._fans = [
            initialize_fan(self._accessor, self._layout.smc_dir, fan_id)
            for fan_id in self._layout.fans
        ]

        # ─────────────────────────────────────────────────────────────
        # Shared output range is the union of all fan ranges; each fan
        # clamps the shared output to its own range at dispatch.
        # ─────────────────────────────────────────────────────────────
        self._controller.set_output_bounds(
            min(f.min_speed for f in self._fans),
            max(f.max_speed for f in self._fans),
        )
        self._controller.set_target(self._cfg.base_target_c)

        self._state = ControlState(
            base_target_c=self._cfg.base_target_c,
            target_c=self._cfg.base_target_c,
            ac_adjustment_c=self._cfg.ac_adjustment_c,
            power_online=False,
            last_sample_s=self._clock(),
        )

    def read_power_online(self) -> bool:
        """The supply node holds 1 on AC; any other value counts as battery."""
        return self._accessor.read_numeric(self._layout.power_online_node()) == 1

    def read_temperature(self) -> float:
        """Sensor reports millidegrees; returns °C."""
        return self._accessor.read_numeric(self._layout.temperature_node()) / 1000.0

    def tick(self) -> TickSample:
        """
        Run one control iteration (without the trailing sleep).

        Read failures propagate: a controller that cannot see the
        temperature must not keep driving the fans.

        Returns:
            TickSample describing the iteration
        """
        if self._state is None:
            raise RuntimeError("control loop not started")
        state = self._state

        # ─────────────────────────────────────────────────────────────
        # Setpoint adaptation on AC edges
        # ─────────────────────────────────────────────────────────────
        power_online = self.read_power_online()
        adapted = adapt_setpoint(state, power_online)
        if adapted is not state:
            if power_online:
                logger.info(
                    "adjusting target temperature up by %s degrees due to being on AC",
                    state.ac_adjustment_c,
                )
            else:
                logger.info("setting baseline target temperature due to being on battery")
            self._controller.set_target(adapted.target_c)
            state = adapted

        # ─────────────────────────────────────────────────────────────
        # Sample temperature and evaluate PID over the elapsed time
        # ─────────────────────────────────────────────────────────────
        temp_c = self.read_temperature()
        now = self._clock()
        elapsed_s = now - state.last_sample_s
        raw_speed = self._controller.update(temp_c, elapsed_s)
        speed = round_half_away(raw_speed)

        reported = state.iteration % self._cfg.report_interval == 0
        if reported:
            logger.info(
                "current temperature: %s, target temperature: %s, fan speed: %s",
                temp_c,
                self._controller.target,
                speed,
            )

        # ─────────────────────────────────────────────────────────────
        # Dispatch; each fan clamps and suppresses on its own
        # ─────────────────────────────────────────────────────────────
        writes: dict[str, int] = {}
        for fan in self._fans:
            written = fan.dispatch(self._accessor, raw_speed)
            if written is not None:
                writes[fan.identifier] = written

        sample = TickSample(
            iteration=state.iteration,
            time_s=now,
            elapsed_s=elapsed_s,
            temp_c=temp_c,
            target_c=state.target_c,
            power_online=power_online,
            raw_speed=raw_speed,
            speed=speed,
            writes=writes,
            reported=reported,
        )

        self._state = replace(state, last_sample_s=now, iteration=state.iteration + 1)
        return sample

    def run(
        self,
        max_ticks: int | None = None,
        on_tick: Callable[[TickSample], None] | None = None,
    ) -> int:
        """
        Start (if needed) and run the loop.

        The sleep between ticks is always exactly the tick interval; time
        spent sampling and dispatching is not compensated.

        Args:
            max_ticks: Stop after this many ticks. None runs forever, which
                       is what the daemon does.
            on_tick: Optional callback receiving each TickSample

        Returns:
            Number of ticks run
        """
        if not self.started:
            self.start()

        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            sample = self.tick()
            if on_tick is not None:
                on_tick(sample)
            ticks += 1
            self._sleep(self._cfg.tick_interval_s)
        return ticks
