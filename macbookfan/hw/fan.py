from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path

from macbookfan.hw.sysnode import (
    SysNodeAccessor,
    SysNodeError,
    SysNodeWriteError,
    set_manual_mode,
)

logger = logging.getLogger(__name__)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


@dataclass(slots=True)
class Fan:
    """
    One physical fan under manual control.

    commanded_speed is None until the first write: the hardware speed at
    startup is unknown, so the first dispatch always writes, even when the
    clamped value is zero.
    """
    identifier: str
    min_speed: int
    max_speed: int
    smc_dir: Path
    commanded_speed: int | None = None

    @property
    def output_node(self) -> Path:
        return self.smc_dir / f"{self.identifier}_output"

    def clamp(self, raw_speed: float) -> int:
        """Clamp to [min_speed, max_speed] and round to an integer speed."""
        if math.isnan(raw_speed):
            raise ValueError(f"{self.identifier}: raw speed is NaN")
        clamped = max(self.min_speed, min(self.max_speed, raw_speed))
        return round_half_away(clamped)

    def dispatch(self, accessor: SysNodeAccessor, raw_speed: float) -> int | None:
        """
        Command a new speed, skipping the write if nothing changed.

        Args:
            accessor: Node accessor used for the write
            raw_speed: Unclamped speed (typically the shared PID output)

        Returns:
            The speed written, or None when the write was suppressed or failed.
            A failed write leaves commanded_speed untouched so the next
            dispatch retries it.
        """
        speed = self.clamp(raw_speed)
        if speed == self.commanded_speed:
            return None

        try:
            accessor.write_numeric(self.output_node, speed)
        except SysNodeWriteError as e:
            logger.warning("Failed to set fan speed: %s", e)
            return None

        self.commanded_speed = speed
        return speed


def initialize_fan(accessor: SysNodeAccessor, smc_dir: Path, identifier: str) -> Fan:
    """
    Put a fan in manual mode and discover its speed range.

    Raises:
        SysNodeError: manual mode could not be set or a bound could not be read
    """
    smc_dir = Path(smc_dir)
    try:
        set_manual_mode(accessor, smc_dir, identifier)
    except SysNodeError as e:
        raise SysNodeWriteError(
            e.path, f"failed to set fan {identifier} to manual control: {e}"
        ) from e

    min_speed = accessor.read_numeric(smc_dir / f"{identifier}_min")
    max_speed = accessor.read_numeric(smc_dir / f"{identifier}_max")
    if min_speed > max_speed:
        raise ValueError(
            f"fan {identifier}: minimum speed {min_speed} exceeds maximum {max_speed}"
        )

    logger.debug("%s: manual control, range [%d, %d]", identifier, min_speed, max_speed)
    return Fan(
        identifier=identifier,
        min_speed=min_speed,
        max_speed=max_speed,
        smc_dir=smc_dir,
    )
