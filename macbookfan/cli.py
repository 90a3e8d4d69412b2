"""
Command-line interface for the macbookfan daemon.

Usage:
    # Default target (41.0 °C)
    macbookfan

    # Quieter machine, hotter CPU
    macbookfan --target 45

Entry points:
    - macbookfan: Direct CLI command (from pyproject.toml)
    - python -m macbookfan.cli: Module execution

The daemon needs write access to the applesmc sysfs nodes, so it normally
runs as root from a service manager.
"""

from __future__ import annotations

import argparse
import logging
import sys

from . import __version__
from .config import DEFAULT_TARGET_C, ControllerConfig, HardwareLayout
from .daemon.loop import ThermalControlLoop
from .hw.sysnode import SysfsAccessor, SysNodeError

PROG = "macbookfan"


def configure_logging(level: int = logging.INFO) -> None:
    """Send log records to stdout as bare lines."""
    logging.basicConfig(stream=sys.stdout, format="%(message)s", level=level)


def _build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser for the CLI.

    Returns:
        Configured ArgumentParser with all supported options.
    """
    p = argparse.ArgumentParser(
        prog=PROG,
        description="Controls the fan in your MacBook",
    )
    p.add_argument(
        "-t",
        "--target",
        metavar="TEMPERATURE",
        type=float,
        default=DEFAULT_TARGET_C,
        help="Sets the target temperature for your MacBook CPU in degrees Celsius "
        "(default: %(default)s)",
    )
    p.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"{PROG} {__version__}",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point.

    Parses the target, starts the control loop and runs it forever.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: non-zero on a fatal error (the loop itself never returns)
    """
    print(f"{PROG} {__version__}")
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = ControllerConfig.from_args(target_c=args.target)
    except ValueError as e:
        parser.error(str(e))
    print(f"base target temperature: {config.base_target_c}")
    configure_logging()

    loop = ThermalControlLoop(config, HardwareLayout(), SysfsAccessor())
    try:
        loop.run()
    except (SysNodeError, ValueError) as e:
        print(f"{PROG}: fatal: {e}", file=sys.stderr)
        return 1

    return 0


# Allow module execution: python -m macbookfan.cli
if __name__ == "__main__":
    sys.exit(main())
