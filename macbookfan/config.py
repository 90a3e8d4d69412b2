from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path

from .control.pid import DerivativeMode

DEFAULT_TARGET_C = 41.0


# slots are used to enfore good interface hygiene, disables dynamic attribute creation.
@dataclass(frozen=True, slots=True)
class HardwareLayout:
    """
    Where the controller finds its sensor, fans and power supply.

    You almost certainly need to change these for anything other than the
    MacBook this was tuned on.

    Params:
    - smc_dir (Path) : applesmc platform device directory
    - power_supply_dir (Path) : power supply class directory
    - sensor (str) : temperature node prefix, read as <sensor>_input
    - fans (tuple[str, ...]) : fan node prefixes (<fan>_manual, _min, _max, _output)
    - power_supply (str) : power supply name, read as <power_supply>/online
    """
    smc_dir: Path = Path("/sys/devices/platform/applesmc.768")
    power_supply_dir: Path = Path("/sys/class/power_supply")
    sensor: str = "temp6"
    fans: tuple[str, ...] = ("fan1", "fan2")
    power_supply: str = "ADP1"

    def smc_node(self, name: str) -> Path:
        return self.smc_dir / name

    def temperature_node(self) -> Path:
        return self.smc_node(f"{self.sensor}_input")

    def power_online_node(self) -> Path:
        return self.power_supply_dir / self.power_supply / "online"


@dataclass(frozen=True, slots=True)
class ControllerConfig:
    """
    Control loop tuning.

    The gains are negative: PID error is (target - measured), and a
    temperature above target has to raise the fan speed.
    """
    base_target_c: float = DEFAULT_TARGET_C
    ac_adjustment_c: float = 6.0       # Added to the target while on AC (°C)
    kp: float = -60.0
    ki: float = -60.0
    kd: float = -60.0
    derivative_mode: DerivativeMode = DerivativeMode.ON_MEASUREMENT
    tick_interval_s: float = 5.0       # Fixed sleep between ticks (seconds)
    report_interval: int = 12          # Status line every N ticks

    @staticmethod
    def from_args(
        *,
        target_c: float = DEFAULT_TARGET_C,
        ac_adjustment_c: float = 6.0,
        tick_interval_s: float = 5.0,
        report_interval: int = 12,
    ) -> "ControllerConfig":
        if not math.isfinite(target_c):
            raise ValueError("target temperature must be a finite number")
        if not math.isfinite(ac_adjustment_c):
            raise ValueError("AC adjustment must be a finite number")
        if not tick_interval_s > 0:
            raise ValueError("tick interval must be > 0")
        if report_interval <= 0:
            raise ValueError("report interval must be > 0")

        return ControllerConfig(
            base_target_c=float(target_c),
            ac_adjustment_c=float(ac_adjustment_c),
            tick_interval_s=float(tick_interval_s),
            report_interval=int(report_interval),
        )
