"""
Command-line interface for the offline simulator.

Runs the real control loop against a simulated laptop and writes artifacts.

Usage:
    # Ten minutes on battery
    macbookfan-sim --name battery --ticks 120

    # Plug in after five minutes, plot the result
    macbookfan-sim --name plug_in --ticks 240 --ac-at 60 --plot
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path

from ..config import DEFAULT_TARGET_C, ControllerConfig
from .laptop import SimulatedLaptop, plugged_in_at, run_simulation
from .metrics import summarize, write_simulation_artifacts
from .plant import LaptopThermalParams


def _clean_path_name(path_name: str) -> str:
    # Remove unsafe characters from directory name
    cleaned = [c if (c.isalnum() or c in ("-", "_")) else "_" for c in path_name]
    return "".join(cleaned).strip("_")


def default_out_dir(name: str) -> Path:
    """artifacts/sim/<UTC timestamp>_<name>"""
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return Path("artifacts").joinpath(f"sim/{ts}_{_clean_path_name(name) or 'scenario'}")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="macbookfan-sim",
        description="Run the macbookfan control loop against a simulated laptop",
    )
    p.add_argument("--name", type=str, default="simulation",
                   help="Scenario name for artifact directory (default: %(default)s)")
    p.add_argument("--ticks", type=int, default=120,
                   help="Control ticks to simulate (>= 0) (default: %(default)s)")
    p.add_argument("-t", "--target", type=float, default=DEFAULT_TARGET_C,
                   help="Base target temperature in °C (default: %(default)s)")
    p.add_argument("--ambient", type=float, default=25.0,
                   help="Ambient temperature in °C (default: %(default)s)")
    p.add_argument("--cpu-watts", type=float, default=30.0,
                   help="CPU power dissipation in W (default: %(default)s)")
    p.add_argument("--initial-temp", type=float, default=None,
                   help="Starting temperature in °C (default: ambient)")
    p.add_argument("--ac-at", type=int, default=None,
                   help="Tick at which AC is plugged in (default: never)")
    p.add_argument("--ac-off-at", type=int, default=None,
                   help="Tick at which AC is unplugged again (default: never)")
    p.add_argument("--out-dir", type=str, default=None,
                   help="Output directory (default: artifacts/sim/<timestamp>_<name>)")
    p.add_argument("--plot", action="store_true",
                   help="Also write plot.png (requires matplotlib)")
    return p


def main(argv: list[str] | None = None) -> int:
    """
    Simulator CLI entry point.

    Returns:
        Exit code: 0 for success, 1 if plotting was requested but failed
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.ticks < 0:
        parser.error("--ticks must be >= 0")
    try:
        config = ControllerConfig.from_args(target_c=args.target)
    except ValueError as e:
        parser.error(str(e))

    schedule = None
    if args.ac_at is not None:
        schedule = plugged_in_at(args.ac_at, unplug_at=args.ac_off_at)

    laptop = SimulatedLaptop(
        params=LaptopThermalParams(ambient_c=args.ambient, cpu_w=args.cpu_watts),
        power_schedule=schedule,
        initial_temp_c=args.initial_temp,
    )
    result = run_simulation(config, laptop, args.ticks, name=args.name)

    out_dir = Path(args.out_dir) if args.out_dir else default_out_dir(args.name)
    write_simulation_artifacts(out_path=out_dir, result=result)

    summary = summarize(result)
    print(f"{result.name}: ticks={summary['total_ticks']} "
          f"writes={summary['total_writes']} "
          f"final_temp={summary['final_temp_c']} "
          f"final_speed={summary['final_speed']} -> {out_dir / 'metrics.json'}")

    if args.plot:
        from .plotting import plot_simulation

        try:
            plot_path = plot_simulation(result, out_dir / "plot.png")
        except (RuntimeError, ValueError) as e:
            print(f"Plot failed: {e}", file=sys.stderr)
            return 1
        print(f"Plot saved to: {plot_path}")

    return 0


# Allow module execution: python -m macbookfan.sim.cli
if __name__ == "__main__":
    sys.exit(main())
