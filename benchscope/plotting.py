"""Context and data handed to plotting backends, and the backend interface."""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from benchscope.benchmark_id import BenchmarkId, ReportContext, ValueType
from benchscope.measurement import ValueFormatter
from benchscope.report import ComparisonData, MeasurementData, Statistic

__all__ = [
    "REPORT_STATS",
    "CHANGE_STATS",
    "PlotContext",
    "PlotData",
    "Plotter",
]

REPORT_STATS = (
    Statistic.TYPICAL,
    Statistic.SLOPE,
    Statistic.MEAN,
    Statistic.MEDIAN,
    Statistic.MEDIAN_ABS_DEV,
    Statistic.MEDIAN_ABS_DEV,
    Statistic.STD_DEV,
)
CHANGE_STATS = (Statistic.MEAN, Statistic.MEDIAN)


@dataclass(frozen=True)
class PlotContext:
    """Which benchmark a plot is for, where it goes and how big it is."""

    benchmark_id: BenchmarkId
    context: ReportContext
    size: Optional[tuple[int, int]] = None
    is_thumbnail: bool = False

    def with_size(self, size: Optional[tuple[int, int]]) -> "PlotContext":
        """A copy with the given size, or this context unchanged if size is None."""
        if size is None:
            return self
        width, height = size
        return dataclasses.replace(self, size=(width, height))

    def thumbnail(self, value: bool) -> "PlotContext":
        """A copy marked as a thumbnail or not."""
        return dataclasses.replace(self, is_thumbnail=value)

    def _report_file(self, name: str) -> Path:
        return (
            self.context.output_directory
            / self.benchmark_id.as_directory_name()
            / "report"
            / name
        )

    def line_comparison_path(self) -> Path:
        return self._report_file("lines.svg")

    def violin_path(self) -> Path:
        return self._report_file("violin.svg")


@dataclass(frozen=True)
class PlotData:
    """Measurements to plot and how to format them."""

    formatter: ValueFormatter
    measurements: MeasurementData
    comparison: Optional[ComparisonData] = None

    def with_comparison(self, comparison: ComparisonData) -> "PlotData":
        """A copy carrying the given comparison data."""
        return dataclasses.replace(self, comparison=comparison)


Curves = Sequence[tuple[BenchmarkId, Sequence[float]]]


class Plotter(ABC):
    """A plotting backend."""

    @abstractmethod
    def pdf(self, ctx: PlotContext, data: PlotData) -> None: ...

    @abstractmethod
    def regression(self, ctx: PlotContext, data: PlotData) -> None: ...

    @abstractmethod
    def iteration_times(self, ctx: PlotContext, data: PlotData) -> None: ...

    @abstractmethod
    def abs_distributions(self, ctx: PlotContext, data: PlotData) -> None: ...

    @abstractmethod
    def rel_distributions(self, ctx: PlotContext, data: PlotData) -> None: ...

    @abstractmethod
    def line_comparison(
        self,
        ctx: PlotContext,
        formatter: ValueFormatter,
        all_curves: Curves,
        value_type: ValueType,
    ) -> None: ...

    @abstractmethod
    def violin(
        self, ctx: PlotContext, formatter: ValueFormatter, all_curves: Curves
    ) -> None: ...

    @abstractmethod
    def t_test(self, ctx: PlotContext, data: PlotData) -> None: ...

    @abstractmethod
    def wait(self) -> None:
        """Block until all pending plots are written."""