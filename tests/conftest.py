from __future__ import annotations

from pathlib import Path

import pytest

from macbookfan.config import HardwareLayout
from macbookfan.hw.sysnode import MemorySysfs

SMC_DIR = Path("/sys/devices/platform/applesmc.768")


class FakeClock:
    """Virtual monotonic clock; sleep() advances it."""

    def __init__(self, start: float = 0.0):
        self.now_s = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.now_s

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now_s += seconds


@pytest.fixture
def layout() -> HardwareLayout:
    """Default MacBook layout (paths only exist in MemorySysfs)."""
    return HardwareLayout()


@pytest.fixture
def sysfs(layout) -> MemorySysfs:
    """Two fans, 45 °C, on battery."""
    return MemorySysfs({
        layout.smc_node("fan1_manual"): 0,
        layout.smc_node("fan1_min"): 2000,
        layout.smc_node("fan1_max"): 6000,
        layout.smc_node("fan2_manual"): 0,
        layout.smc_node("fan2_min"): 2000,
        layout.smc_node("fan2_max"): 5700,
        layout.temperature_node(): 45000,
        layout.power_online_node(): 0,
    })


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
