from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LaptopThermalParams:
    """
    Parameters for a lumped laptop thermal model.

    The CPU dumps heat into a single thermal mass that loses heat to ambient
    through the chassis (always) and through forced airflow (scaled by fan
    speed as a fraction of its maximum).
    """
    ambient_c: float = 25.0            # Ambient temperature (°C)
    c_th_j_per_c: float = 30.0         # Thermal capacitance (J/°C)
    g_idle_w_per_c: float = 1.0        # Passive conductance to ambient (W/°C)
    g_fan_w_per_c: float = 1.5         # Extra conductance at full airflow (W/°C)
    cpu_w: float = 30.0                # CPU power dissipation (W)


@dataclass(frozen=False, slots=True)
class LaptopThermalState:
    """
    State of the thermal system.

    This is mutable to allow efficient state updates during simulation.
    """
    temp_c: float              # Current temperature (°C)


def step_laptop_thermal(
    state: LaptopThermalState,
    *,
    dt_s: float,
    airflow_frac: float,
    p: LaptopThermalParams,
) -> LaptopThermalState:
    """
    Step the laptop model forward by dt_s seconds using Euler integration.

    Physics:
    - Conductance: G = g_idle + airflow_frac * g_fan
    - dT/dt = (P_cpu - G * (T - T_ambient)) / C_th

    Args:
        state: Current thermal state
        dt_s: Time step in seconds (keep well below C_th / G)
        airflow_frac: Fan speed as a fraction of maximum [0, 1]
        p: Thermal parameters

    Returns:
        New thermal state (does not mutate input)
    """
    airflow_frac = max(0.0, min(1.0, airflow_frac))
    conductance = p.g_idle_w_per_c + airflow_frac * p.g_fan_w_per_c
    dt_dt = (p.cpu_w - conductance * (state.temp_c - p.ambient_c)) / p.c_th_j_per_c
    return LaptopThermalState(temp_c=state.temp_c + dt_s * dt_dt)


def steady_state_temp(airflow_frac: float, p: LaptopThermalParams) -> float:
    """Temperature the model settles at for a fixed airflow."""
    airflow_frac = max(0.0, min(1.0, airflow_frac))
    conductance = p.g_idle_w_per_c + airflow_frac * p.g_fan_w_per_c
    return p.ambient_c + p.cpu_w / conductance
