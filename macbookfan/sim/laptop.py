"""
Simulated laptop for running the real control loop offline.

SimulatedLaptop stands in for the kernel: it owns an in-memory sysfs laid
out like the real hardware, a virtual clock, and a thermal model. The
control loop's sleep is routed to SimulatedLaptop.sleep, which advances
virtual time, integrates the thermal model with the fan speeds the loop has
written, and publishes the new temperature for the next tick.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..config import ControllerConfig, HardwareLayout
from ..daemon.interfaces import TickSample
from ..daemon.loop import ThermalControlLoop
from ..hw.sysnode import MemorySysfs
from .plant import LaptopThermalParams, LaptopThermalState, step_laptop_thermal

# Integration step used inside each sleep (seconds)
DEFAULT_SUBSTEP_S = 0.5

# Type alias for power schedules: tick -> AC online
PowerSchedule = Callable[[int], bool]

DEFAULT_FAN_RANGES: dict[str, tuple[int, int]] = {
    "fan1": (2000, 6000),
    "fan2": (2000, 5700),
}


def on_battery() -> PowerSchedule:
    """AC never connected."""
    def schedule(tick: int) -> bool:
        return False
    return schedule


def plugged_in_at(tick: int, unplug_at: int | None = None) -> PowerSchedule:
    """
    AC connected from `tick` on, optionally disconnected again.

    Args:
        tick: First tick that observes AC
        unplug_at: First tick that observes battery again (None = never)

    Returns:
        Schedule function: tick -> online
    """
    def schedule(t: int) -> bool:
        if t < tick:
            return False
        return unplug_at is None or t < unplug_at
    return schedule


class SimulatedLaptop:
    """
    Virtual hardware: sysfs nodes, clock and thermal plant.

    Attributes:
        layout: Node layout shared with the control loop
        sysfs: In-memory node store the loop reads and writes
        params: Thermal model parameters
    """

    def __init__(
        self,
        layout: HardwareLayout | None = None,
        params: LaptopThermalParams | None = None,
        fan_ranges: dict[str, tuple[int, int]] | None = None,
        power_schedule: PowerSchedule | None = None,
        initial_temp_c: float | None = None,
        substep_s: float = DEFAULT_SUBSTEP_S,
    ):
        fan_ranges = dict(fan_ranges or DEFAULT_FAN_RANGES)
        self.layout = layout or HardwareLayout(fans=tuple(fan_ranges))
        missing = [fan_id for fan_id in self.layout.fans if fan_id not in fan_ranges]
        if missing:
            raise ValueError(f"no speed range given for fan(s): {', '.join(missing)}")
        self.params = params or LaptopThermalParams()
        self._power_schedule = power_schedule or on_battery()
        self._substep_s = substep_s
        self._now_s = 0.0
        self._tick = 0
        self._fan_max = {fan_id: fan_ranges[fan_id][1] for fan_id in self.layout.fans}

        start_temp = self.params.ambient_c if initial_temp_c is None else initial_temp_c
        self.thermal_state = LaptopThermalState(temp_c=start_temp)

        self.sysfs = MemorySysfs()
        for fan_id in self.layout.fans:
            lo, hi = fan_ranges[fan_id]
            self.sysfs.set(self.layout.smc_node(f"{fan_id}_min"), lo)
            self.sysfs.set(self.layout.smc_node(f"{fan_id}_max"), hi)
            self.sysfs.set(self.layout.smc_node(f"{fan_id}_manual"), 0)
        self._publish()

    def clock(self) -> float:
        return self._now_s

    def airflow_frac(self) -> float:
        """Mean fan speed as a fraction of each fan's maximum."""
        fracs = []
        for fan_id in self.layout.fans:
            node = self.layout.smc_node(f"{fan_id}_output")
            try:
                speed = self.sysfs.read_numeric(node)
            except OSError:
                # No command yet: firmware idle
                speed = 0
            fracs.append(speed / self._fan_max[fan_id] if self._fan_max[fan_id] else 0.0)
        return sum(fracs) / len(fracs) if fracs else 0.0

    def sleep(self, seconds: float) -> None:
        """Advance virtual time and the plant, then publish the next tick's inputs."""
        airflow = self.airflow_frac()
        remaining = seconds
        while remaining > 0:
            dt = min(self._substep_s, remaining)
            self.thermal_state = step_laptop_thermal(
                self.thermal_state, dt_s=dt, airflow_frac=airflow, p=self.params
            )
            remaining -= dt
        self._now_s += seconds
        self._tick += 1
        self._publish()

    def _publish(self) -> None:
        self.sysfs.set(self.layout.temperature_node(), round(self.thermal_state.temp_c * 1000))
        self.sysfs.set(self.layout.power_online_node(), int(self._power_schedule(self._tick)))


@dataclass(frozen=True, slots=True)
class SimulationResult:
    """
    Output of a simulation run.

    Attributes:
        name: Scenario name
        config: Controller configuration used
        samples: One TickSample per tick
        total_writes: Fan output writes issued over the run
    """
    name: str
    config: ControllerConfig
    samples: list[TickSample]
    total_writes: int


def run_simulation(
    config: ControllerConfig,
    laptop: SimulatedLaptop,
    ticks: int,
    name: str = "simulation",
) -> SimulationResult:
    """
    Drive the real control loop against a SimulatedLaptop.

    Args:
        config: Controller configuration
        laptop: Simulated hardware (its clock and sleep replace the real ones)
        ticks: Number of ticks to run (>= 0)
        name: Scenario name recorded in the result

    Returns:
        SimulationResult with per-tick samples
    """
    if ticks < 0:
        raise ValueError("ticks must be >= 0")

    loop = ThermalControlLoop(
        config,
        laptop.layout,
        laptop.sysfs,
        clock=laptop.clock,
        sleep=laptop.sleep,
    )
    samples: list[TickSample] = []
    loop.run(max_ticks=ticks, on_tick=samples.append)

    return SimulationResult(
        name=name,
        config=config,
        samples=samples,
        total_writes=sum(len(s.writes) for s in samples),
    )
