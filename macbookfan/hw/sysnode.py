"""
Numeric sysfs node access.

Every sensor, fan and power-supply value the controller touches is a
kernel-exposed text file holding one decimal integer. This module hides
that behind a two-method protocol so the control loop can be driven from
real files or from an in-memory fake.

Node format:
- read: whole file, surrounding whitespace stripped, base-10 integer
- write: decimal integer followed by a newline, file truncated first
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol


class SysNodeError(OSError):
    """Base class for sysfs node failures."""

    def __init__(self, path: Path | str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = Path(path)


class SysNodeReadError(SysNodeError):
    """A node could not be opened or read."""


class SysNodeWriteError(SysNodeError):
    """A node could not be opened or written."""


class SysNodeParseError(SysNodeError, ValueError):
    """A node was read but does not hold a decimal integer."""


class SysNodeAccessor(Protocol):
    """
    Protocol for numeric node access.

    Implementations are synchronous and blocking; one value per call.
    """

    def read_numeric(self, path: Path) -> int:
        """
        Read one integer from a node.

        Raises:
            SysNodeReadError: node missing or unreadable
            SysNodeParseError: contents are not a decimal integer
        """
        ...

    def write_numeric(self, path: Path, value: int) -> None:
        """
        Write one integer to a node.

        Raises:
            SysNodeWriteError: node could not be written
        """
        ...


_DECIMAL = re.compile(r"-?[0-9]+")


def parse_numeric(path: Path, text: str) -> int:
    stripped = text.strip()
    # ASCII digits with an optional minus sign; no "+", underscores or spaces inside
    if _DECIMAL.fullmatch(stripped) is None:
        raise SysNodeParseError(path, f"not a decimal integer: {stripped!r}")
    return int(stripped)


def format_numeric(value: int) -> str:
    return f"{int(value)}\n"


class SysfsAccessor:
    """Reads and writes real files."""

    def read_numeric(self, path: Path) -> int:
        path = Path(path)
        try:
            text = path.read_text(encoding="ascii")
        except (OSError, UnicodeDecodeError) as e:
            raise SysNodeReadError(path, str(e)) from e
        return parse_numeric(path, text)

    def write_numeric(self, path: Path, value: int) -> None:
        path = Path(path)
        try:
            with path.open("w", encoding="ascii") as f:
                f.write(format_numeric(value))
        except OSError as e:
            raise SysNodeWriteError(path, str(e)) from e


class MemorySysfs:
    """
    In-memory node store with the same text semantics as sysfs.

    Nodes hold their raw text so malformed contents can be staged.
    Broken nodes fail every read and write, which is how tests and the
    simulator inject hardware faults.
    """

    def __init__(self, nodes: dict[Path | str, str | int] | None = None):
        self._nodes: dict[Path, str] = {}
        self._broken: set[Path] = set()
        self.writes: list[tuple[Path, int]] = []
        for path, value in (nodes or {}).items():
            self.set(path, value)

    def set(self, path: Path | str, value: str | int) -> None:
        """Stage node contents; integers are formatted as sysfs would."""
        text = format_numeric(value) if isinstance(value, int) else value
        self._nodes[Path(path)] = text

    def text(self, path: Path | str) -> str:
        return self._nodes[Path(path)]

    def break_node(self, path: Path | str) -> None:
        self._broken.add(Path(path))

    def repair_node(self, path: Path | str) -> None:
        self._broken.discard(Path(path))

    def read_numeric(self, path: Path) -> int:
        path = Path(path)
        if path in self._broken:
            raise SysNodeReadError(path, "Input/output error")
        if path not in self._nodes:
            raise SysNodeReadError(path, "No such file or directory")
        return parse_numeric(path, self._nodes[path])

    def write_numeric(self, path: Path, value: int) -> None:
        path = Path(path)
        if path in self._broken:
            raise SysNodeWriteError(path, "Input/output error")
        self._nodes[path] = format_numeric(value)
        self.writes.append((path, int(value)))


def set_manual_mode(accessor: SysNodeAccessor, smc_dir: Path, fan_id: str) -> None:
    """
    Take a fan away from firmware control.

    Raises SysNodeError on failure; the caller must not continue without
    manual control.
    """
    accessor.write_numeric(Path(smc_dir) / f"{fan_id}_manual", 1)
