"""Benchmark identifiers and the paths where their reports are written."""

from __future__ import annotations

import enum
import math
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import AbstractSet, Optional, Union

from benchscope.measurement import Throughput, ThroughputKind

__all__ = [
    "ValueType",
    "AxisScale",
    "PlotConfiguration",
    "BenchmarkId",
    "make_filename_safe",
    "ReportContext",
]

MAX_DIRECTORY_NAME_LEN = 64
MAX_TITLE_LEN = 100

_UNSAFE_CHARS = str.maketrans({c: "_" for c in '?"/\\*<>:|^'})


class ValueType(enum.Enum):
    """What the numeric part of a benchmark id describes."""

    BYTES = "Bytes"
    ELEMENTS = "Elements"
    VALUE = "Value"


class AxisScale(enum.Enum):
    """Scale used for summary chart axes."""

    LINEAR = "linear"
    LOGARITHMIC = "log"


@dataclass
class PlotConfiguration:
    """Options for the plots of a report."""

    summary_scale: AxisScale = AxisScale.LINEAR


def _truncate_utf8(s: str, max_len: int) -> str:
    """Cut a string to at most ``max_len`` UTF-8 bytes without splitting a character."""
    encoded = s.encode("utf-8")
    if len(encoded) <= max_len:
        return s
    return encoded[:max_len].decode("utf-8", errors="ignore")


def make_filename_safe(string: str) -> str:
    """Make a string usable as a directory name."""
    safe = _truncate_utf8(string.translate(_UNSAFE_CHARS), MAX_DIRECTORY_NAME_LEN)
    if sys.platform == "win32":
        # Trailing spaces are dropped by the filesystem and names are case-insensitive.
        safe = safe.rstrip().lower()
    return safe


def _parse_float(text: str) -> Optional[float]:
    if not text or text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


@dataclass(repr=False)
class BenchmarkId:
    """Identifies one benchmark, with its title and output directory."""

    group_id: str
    function_id: Optional[str] = None
    value_str: Optional[str] = None
    throughput: Optional[Throughput] = None
    _full_id: str = field(init=False)
    _directory_name: str = field(init=False)
    _title: str = field(init=False)

    def __post_init__(self) -> None:
        parts = [p for p in (self.group_id, self.function_id, self.value_str) if p is not None]
        self._full_id = "/".join(parts)

        title = _truncate_utf8(self._full_id, MAX_TITLE_LEN)
        if title != self._full_id:
            title += "..."
        self._title = title

        self._directory_name = "/".join(make_filename_safe(p) for p in parts)

    def id(self) -> str:
        """The full id, group, function and value joined by slashes."""
        return self._full_id

    def as_title(self) -> str:
        """The id as shown in titles, shortened if it is long."""
        return self._title

    def as_directory_name(self) -> str:
        """The relative directory where this benchmark's output goes."""
        return self._directory_name

    def as_number(self) -> Optional[float]:
        """The throughput amount, else the value parsed as a number, else None."""
        if self.throughput is not None:
            return float(self.throughput.amount)
        if self.value_str is None:
            return None
        return _parse_float(self.value_str)

    def value_type(self) -> Optional[ValueType]:
        """What the number of this id describes, if it has one."""
        if self.throughput is not None:
            if self.throughput.kind is ThroughputKind.BYTES:
                return ValueType.BYTES
            return ValueType.ELEMENTS
        if self.value_str is not None and _parse_float(self.value_str) is not None:
            return ValueType.VALUE
        return None

    def ensure_directory_name_unique(self, existing_directories: AbstractSet[str]) -> None:
        """Append a counter to the directory name until it is not among the existing ones."""
        if self._directory_name not in existing_directories:
            return
        counter = 2
        while f"{self._directory_name}_{counter}" in existing_directories:
            counter += 1
        self._directory_name = f"{self._directory_name}_{counter}"

    def ensure_title_unique(self, existing_titles: AbstractSet[str]) -> None:
        """Append a counter to the title until it is not among the existing ones."""
        if self._title not in existing_titles:
            return
        counter = 2
        while f"{self._title} #{counter}" in existing_titles:
            counter += 1
        self._title = f"{self._title} #{counter}"

    def __str__(self) -> str:
        return self._title

    def __repr__(self) -> str:
        def opt(value: Optional[str]) -> str:
            return "None" if value is None else f'"{value}"'

        return (
            f'BenchmarkId {{ group_id: "{self.group_id}", '
            f"function_id: {opt(self.function_id)}, "
            f"value_str: {opt(self.value_str)}, "
            f"throughput: {self.throughput!r} }}"
        )


def _is_nan_safe_number(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value)


@dataclass
class ReportContext:
    """Where reports go and how they are plotted."""

    output_directory: Path
    plot_config: PlotConfiguration = field(default_factory=PlotConfiguration)

    def __post_init__(self) -> None:
        self.output_directory = Path(self.output_directory)

    def report_path(self, benchmark_id: BenchmarkId, file_name: Union[str, Path]) -> Path:
        """Path of a report file for the given benchmark."""
        return self.output_directory / benchmark_id.as_directory_name() / "report" / file_name