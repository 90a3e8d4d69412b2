from __future__ import annotations

from macbookfan.hw.fan import Fan, initialize_fan
from macbookfan.hw.sysnode import (
    MemorySysfs,
    SysfsAccessor,
    SysNodeAccessor,
    SysNodeError,
    SysNodeParseError,
    SysNodeReadError,
    SysNodeWriteError,
    set_manual_mode,
)

__all__ = [
    "Fan",
    "initialize_fan",
    "SysNodeAccessor",
    "SysfsAccessor",
    "MemorySysfs",
    "SysNodeError",
    "SysNodeReadError",
    "SysNodeWriteError",
    "SysNodeParseError",
    "set_manual_mode",
]
