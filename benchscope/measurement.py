"""Measurements that can be taken during a benchmark, and formatting of their values."""

from __future__ import annotations

import enum
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Iterable, TypeVar

__all__ = [
    "ThroughputKind",
    "Throughput",
    "ValueFormatter",
    "DurationFormatter",
    "Measurement",
    "WallTime",
]


class ThroughputKind(enum.Enum):
    """What a throughput amount counts."""

    BYTES = "Bytes"
    ELEMENTS = "Elements"


@dataclass(frozen=True)
class Throughput:
    """Amount of work done by one iteration of a benchmark."""

    kind: ThroughputKind
    amount: int

    def __post_init__(self) -> None:
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise TypeError("throughput amount must be an integer")
        if self.amount < 0:
            raise ValueError("throughput amount must not be negative")

    @classmethod
    def bytes(cls, amount: int) -> "Throughput":
        """Throughput measured in bytes per iteration."""
        return cls(ThroughputKind.BYTES, amount)

    @classmethod
    def elements(cls, amount: int) -> "Throughput":
        """Throughput measured in elements per iteration."""
        return cls(ThroughputKind.ELEMENTS, amount)

    def __repr__(self) -> str:
        return f"{self.kind.value}({self.amount})"


def _short(n: float) -> str:
    """Format a number with about four significant digits."""
    if n < 10.0:
        return f"{n:.4f}"
    if n < 100.0:
        return f"{n:.3f}"
    if n < 1000.0:
        return f"{n:.2f}"
    if n < 10000.0:
        return f"{n:.1f}"
    return f"{n:.0f}"


class ValueFormatter(ABC):
    """Turns measured values into human- and machine-readable units.

    The scaling methods never modify their input; they return the unit
    together with a new list of scaled values.
    """

    def format_value(self, value: float) -> str:
        """Format a value with an appropriate unit."""
        unit, (scaled,) = self.scale_values(value, [value])
        return f"{_short(scaled):>6} {unit}"

    def format_throughput(self, throughput: Throughput, value: float) -> str:
        """Format a measured value as a throughput with an appropriate unit."""
        unit, (scaled,) = self.scale_throughputs(value, throughput, [value])
        return f"{_short(scaled):>6} {unit}"

    @abstractmethod
    def scale_values(
        self, typical_value: float, values: Iterable[float]
    ) -> tuple[str, list[float]]:
        """Scale values to a unit chosen from the typical value."""

    @abstractmethod
    def scale_throughputs(
        self, typical_value: float, throughput: Throughput, values: Iterable[float]
    ) -> tuple[str, list[float]]:
        """Convert values to throughputs scaled to a unit chosen from the typical value."""

    @abstractmethod
    def scale_for_machines(self, values: Iterable[float]) -> tuple[str, list[float]]:
        """Scale values for machine-readable output such as CSV."""


class DurationFormatter(ValueFormatter):
    """Formatter for durations measured in nanoseconds."""

    _BYTE_UNITS = (
        (1024.0, 1.0, "  B/s"),
        (1024.0**2, 1024.0, "KiB/s"),
        (1024.0**3, 1024.0**2, "MiB/s"),
    )
    _BYTE_TOP = (1024.0**3, "GiB/s")

    _ELEM_UNITS = (
        (1000.0, 1.0, " elem/s"),
        (1000.0**2, 1000.0, "Kelem/s"),
        (1000.0**3, 1000.0**2, "Melem/s"),
    )
    _ELEM_TOP = (1000.0**3, "Gelem/s")

    _TIME_UNITS = (
        (1.0, 1e3, "ps"),
        (1e3, 1.0, "ns"),
        (1e6, 1e-3, "us"),
        (1e9, 1e-6, "ms"),
    )
    _TIME_TOP = (1e-9, "s")

    @staticmethod
    def _per_second(
        amount: float,
        typical: float,
        values: Iterable[float],
        units: tuple[tuple[float, float, str], ...],
        top: tuple[float, str],
    ) -> tuple[str, list[float]]:
        rate = amount * (1e9 / typical)
        denominator, unit = top
        for limit, denom, name in units:
            if rate < limit:
                denominator, unit = denom, name
                break
        return unit, [amount * (1e9 / v) / denominator for v in values]

    def scale_throughputs(
        self, typical_value: float, throughput: Throughput, values: Iterable[float]
    ) -> tuple[str, list[float]]:
        amount = float(throughput.amount)
        if throughput.kind is ThroughputKind.BYTES:
            return self._per_second(
                amount, typical_value, values, self._BYTE_UNITS, self._BYTE_TOP
            )
        return self._per_second(
            amount, typical_value, values, self._ELEM_UNITS, self._ELEM_TOP
        )

    def scale_values(
        self, typical_value: float, values: Iterable[float]
    ) -> tuple[str, list[float]]:
        factor, unit = self._TIME_TOP
        for limit, fac, name in self._TIME_UNITS:
            if typical_value < limit:
                factor, unit = fac, name
                break
        return unit, [v * factor for v in values]

    def scale_for_machines(self, values: Iterable[float]) -> tuple[str, list[float]]:
        return "ns", list(values)


I = TypeVar("I")
V = TypeVar("V")


class Measurement(ABC, Generic[I, V]):
    """Something that can be measured around a run of benchmark iterations."""

    @abstractmethod
    def start(self) -> I:
        """Begin a measurement and return an intermediate value."""

    @abstractmethod
    def end(self, intermediate: I) -> V:
        """Finish the measurement started with ``start``."""

    @abstractmethod
    def add(self, v1: V, v2: V) -> V:
        """Combine two measured values."""

    @abstractmethod
    def zero(self) -> V:
        """The value that leaves others unchanged under ``add``."""

    @abstractmethod
    def to_f64(self, value: V) -> float:
        """Convert a measured value to a float for analysis."""

    @abstractmethod
    def formatter(self) -> ValueFormatter:
        """The formatter for values of this measurement."""


class WallTime(Measurement[int, int]):
    """Elapsed wall-clock time, in integer nanoseconds."""

    _FORMATTER = DurationFormatter()

    def start(self) -> int:
        return time.perf_counter_ns()

    def end(self, intermediate: int) -> int:
        return time.perf_counter_ns() - intermediate

    def add(self, v1: int, v2: int) -> int:
        return v1 + v2

    def zero(self) -> int:
        return 0

    def to_f64(self, value: int) -> float:
        return float(value)

    def formatter(self) -> ValueFormatter:
        return self._FORMATTER