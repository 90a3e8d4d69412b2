"""
Plotting utilities for macbookfan simulation runs.

Requires matplotlib: pip install macbookfan[plot]
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .laptop import SimulationResult


def check_matplotlib_available() -> bool:
    """Check if matplotlib is available."""
    try:
        import matplotlib
        return True
    except ImportError:
        return False


def plot_simulation(
    result: "SimulationResult",
    output_path: Path | str,
    title: str | None = None,
) -> Path:
    """
    Save a two-panel plot of a simulation run.

    Panel 1: measured temperature against the applied target, with AC
    periods shaded. Panel 2: rounded PID output and each fan's commanded
    speed.

    Args:
        result: Completed simulation run
        output_path: Where to save the figure (PNG, PDF, etc.)
        title: Optional figure title

    Returns:
        The path written

    Raises:
        RuntimeError: If matplotlib is not installed.
        ValueError: If the run has no samples.
    """
    if not check_matplotlib_available():
        raise RuntimeError(
            "matplotlib not installed. Install with: pip install macbookfan[plot]"
        )
    if not result.samples:
        raise ValueError("No samples in result")

    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    times = [s.time_s for s in result.samples]
    temps = [s.temp_c for s in result.samples]
    targets = [s.target_c for s in result.samples]
    speeds = [s.speed for s in result.samples]
    online = [1 if s.power_online else 0 for s in result.samples]

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(10, 6), sharex=True)

    # Panel 1: Temperature
    ax1.plot(times, temps, "r-", linewidth=1.5, label="Temperature")
    ax1.step(times, targets, "k--", where="post", linewidth=1.2, label="Target")
    ax1.fill_between(times, 0, 1, where=[o == 1 for o in online], step="post",
                     color="tab:green", alpha=0.15, transform=ax1.get_xaxis_transform(),
                     label="On AC")
    ax1.set_ylabel("Temperature (°C)")
    ax1.grid(True, alpha=0.3)
    ax1.legend(loc="upper right")

    # Panel 2: Fan speeds
    ax2.plot(times, speeds, "b-", linewidth=1.5, label="PID output")
    fan_ids = sorted({fan_id for s in result.samples for fan_id in s.writes})
    for fan_id in fan_ids:
        commanded = []
        last = float("nan")
        for s in result.samples:
            last = s.writes.get(fan_id, last)
            commanded.append(last)
        ax2.step(times, commanded, where="post", linewidth=1, alpha=0.8, label=fan_id)
    ax2.set_ylabel("Fan speed (RPM)")
    ax2.set_xlabel("Time (s)")
    ax2.grid(True, alpha=0.3)
    ax2.legend(loc="upper right")

    fig.suptitle(title or f"macbookfan simulation: {result.name} ({len(result.samples)} ticks)",
                 fontsize=14, fontweight="bold")
    plt.tight_layout()

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return output_path
