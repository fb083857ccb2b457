"""Charts of the average iteration time of each sample."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from benchscope.chart_style import (
    DARK_BLUE,
    DARK_RED,
    DEFAULT_FONT,
    MARKER_SIZE,
    SIZE,
    TITLE_FONT_SIZE,
    _fit_axis,
    _save_svg,
    new_figure,
)
from benchscope.measurement import ValueFormatter
from benchscope.report import ComparisonData, MeasurementData

__all__ = ["iteration_times_figure", "iteration_times_comparison_figure"]


def _start(title: Optional[str], size: Optional[tuple[int, int]]):
    figure = new_figure(size if size is not None else SIZE)
    if title is not None:
        figure.suptitle(title, fontsize=TITLE_FONT_SIZE, family=DEFAULT_FONT)
    axes = figure.add_subplot()
    axes.grid(True, alpha=0.3)
    return figure, axes


def iteration_times_figure(
    title: Optional[str],
    path: Union[str, Path],
    formatter: ValueFormatter,
    measurements: MeasurementData,
    size: Optional[tuple[int, int]] = None,
) -> None:
    """Plot the average iteration time of each sample; a legend only with a title."""
    data = list(measurements.avg_times)
    unit, scaled = formatter.scale_values(max(data), data)

    figure, axes = _start(title, size)
    axes.set_ylabel(f"Average Iteration Time ({unit})")
    axes.plot(
        range(1, len(scaled) + 1),
        scaled,
        linestyle="none",
        marker="o",
        markersize=MARKER_SIZE,
        color=DARK_BLUE,
        label="Sample",
    )
    axes.set_xlim(1.0, float(len(data) + 1))
    _fit_axis(axes.set_ylim, scaled)
    if title is not None:
        axes.legend(loc="upper left")
    _save_svg(figure, path)


def iteration_times_comparison_figure(
    title: Optional[str],
    path: Union[str, Path],
    formatter: ValueFormatter,
    measurements: MeasurementData,
    comparison: ComparisonData,
    size: Optional[tuple[int, int]] = None,
) -> None:
    """Plot current and baseline average iteration times on a common scale."""
    current = list(measurements.avg_times)
    base = [float(v) for v in comparison.base_avg_times]
    all_data = current + base
    unit, scaled = formatter.scale_values(max(all_data), all_data)
    scaled_current, scaled_base = scaled[: len(current)], scaled[len(current):]

    figure, axes = _start(title, size)
    axes.set_ylabel(f"Average Iteration Time ({unit})")
    axes.plot(
        range(1, len(scaled_current) + 1),
        scaled_current,
        linestyle="none",
        marker="o",
        markersize=MARKER_SIZE,
        color=DARK_BLUE,
        label="Current",
    )
    axes.plot(
        range(1, len(scaled_base) + 1),
        scaled_base,
        linestyle="none",
        marker="o",
        markersize=MARKER_SIZE,
        color=DARK_RED,
        label="Base",
    )
    axes.set_xlim(0.0, float(max(len(current), len(base))))
    _fit_axis(axes.set_ylim, scaled)
    if title is not None:
        axes.legend(loc="upper left")
    _save_svg(figure, path)