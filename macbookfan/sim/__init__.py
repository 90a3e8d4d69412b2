from __future__ import annotations

from macbookfan.sim.laptop import (
    SimulatedLaptop,
    SimulationResult,
    on_battery,
    plugged_in_at,
    run_simulation,
)
from macbookfan.sim.metrics import summarize, write_simulation_artifacts
from macbookfan.sim.plant import (
    LaptopThermalParams,
    LaptopThermalState,
    steady_state_temp,
    step_laptop_thermal,
)

__all__ = [
    "LaptopThermalParams",
    "LaptopThermalState",
    "SimulatedLaptop",
    "SimulationResult",
    "on_battery",
    "plugged_in_at",
    "run_simulation",
    "steady_state_temp",
    "step_laptop_thermal",
    "summarize",
    "write_simulation_artifacts",
]
