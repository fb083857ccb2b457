"""Charts of total sample time against iteration count with the fitted slope."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
from matplotlib.ticker import FuncFormatter

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
from benchscope.report import (
    ComparisonData,
    Estimate,
    MeasurementData,
    Statistic,
    fit_slope,
)

__all__ = ["regression_figure", "regression_comparison_figure"]


def _percentile_interval(
    distribution: Sequence[float], confidence_level: float
) -> tuple[float, float]:
    if not 0.0 < confidence_level < 1.0:
        raise ValueError("the confidence level must lie strictly between 0 and 1")
    values = np.asarray(list(distribution), dtype=float)
    if values.size == 0:
        raise ValueError("an empty distribution has no confidence interval")
    low, high = np.percentile(
        values, [50.0 * (1.0 - confidence_level), 50.0 * (1.0 + confidence_level)]
    )
    return float(low), float(high)


def _iteration_axis(max_iters: float) -> tuple[str, float]:
    """Axis label and tick scale for iteration counts, in steps of a thousand."""
    if not max_iters > 0.0:
        raise ValueError("iteration counts must be positive")
    exponent = math.floor(math.log10(max_iters) / 3.0) * 3
    label = "Iterations" if exponent == 0 else f"Iterations (x 10^{exponent})"
    return label, 10.0 ** (-exponent)


def _slope_estimate(estimate: Optional[Estimate], whose: str) -> Estimate:
    if estimate is None:
        raise ValueError(f"{whose} has no slope estimate")
    return estimate


def _start(title: Optional[str], size: Optional[tuple[int, int]], x_label: str, x_scale: float, unit: str):
    figure = new_figure(size if size is not None else SIZE)
    if title is not None:
        figure.suptitle(title, fontsize=TITLE_FONT_SIZE, family=DEFAULT_FONT)
    axes = figure.add_subplot()
    axes.grid(True, alpha=0.3)
    axes.set_xlabel(x_label)
    axes.set_ylabel(f"Total sample time ({unit})")
    axes.xaxis.set_major_formatter(FuncFormatter(lambda v, _: f"{v * x_scale:g}"))
    return figure, axes


def regression_figure(
    title: Optional[str],
    path: Union[str, Path],
    formatter: ValueFormatter,
    measurements: MeasurementData,
    size: Optional[tuple[int, int]] = None,
) -> Path:
    """Plot the samples with the fitted line and the slope's confidence band."""
    slope = _slope_estimate(measurements.absolute_estimates.slope, "the measurement")
    slope_dist = measurements.distributions.get(Statistic.SLOPE)
    if slope_dist is None:
        raise ValueError("the measurement has no slope distribution")
    lb, ub = _percentile_interval(slope_dist, slope.confidence_interval.confidence_level)

    xs = measurements.iter_counts()
    ys = measurements.sample_times()
    max_iters, typical = max(xs), max(ys)
    unit, scaled_y = formatter.scale_values(typical, ys)

    point_estimate = fit_slope(xs, ys)
    _, (point, lb, ub) = formatter.scale_values(
        typical, [point_estimate * max_iters, lb * max_iters, ub * max_iters]
    )

    x_label, x_scale = _iteration_axis(max_iters)
    figure, axes = _start(title, size, x_label, x_scale, unit)

    axes.plot(
        xs,
        scaled_y,
        linestyle="none",
        marker="o",
        markersize=MARKER_SIZE,
        color=DARK_BLUE,
        label="Sample",
    )
    axes.plot([0.0, max_iters], [0.0, point], color=DARK_BLUE, label="Linear regression")
    axes.fill(
        [0.0, max_iters, max_iters],
        [0.0, lb, ub],
        color=DARK_BLUE,
        alpha=0.25,
        label="Confidence interval",
    )

    _fit_axis(axes.set_xlim, xs)
    _fit_axis(axes.set_ylim, scaled_y)
    if title is not None:
        axes.legend(loc="upper left")
    return _save_svg(figure, path)


def regression_comparison_figure(
    title: Optional[str],
    path: Union[str, Path],
    formatter: ValueFormatter,
    measurements: MeasurementData,
    comparison: ComparisonData,
    size: Optional[tuple[int, int]] = None,
) -> Path:
    """Plot the fitted lines and confidence bands of the baseline and the new samples."""
    base_xs = [float(x) for x in comparison.base_iter_counts]
    base_ys = [float(y) for y in comparison.base_sample_times]
    xs = measurements.iter_counts()
    ys = measurements.sample_times()
    if not base_xs or not base_ys:
        raise ValueError("the baseline has no samples")
    max_iters = max(max(base_xs), max(xs))
    typical = max(max(base_ys), max(ys))

    x_label, x_scale = _iteration_axis(max_iters)

    base = _slope_estimate(comparison.base_estimates.slope, "the baseline")
    new = _slope_estimate(measurements.absolute_estimates.slope, "the measurement")
    base_ci, new_ci = base.confidence_interval, new.confidence_interval

    unit, (base_lb, base_point, base_ub, lb, point, ub) = formatter.scale_values(
        typical,
        [
            base_ci.lower_bound * max_iters,
            base.point_estimate * max_iters,
            base_ci.upper_bound * max_iters,
            new_ci.lower_bound * max_iters,
            new.point_estimate * max_iters,
            new_ci.upper_bound * max_iters,
        ],
    )
    y_max = max(point, base_point)

    figure, axes = _start(title, size, x_label, x_scale, unit)

    axes.plot([0.0, max_iters], [0.0, base_point], color=DARK_RED, linewidth=2, label="Base Sample")
    axes.fill([0.0, max_iters, max_iters], [0.0, base_lb, base_ub], color=DARK_RED, alpha=0.25)
    axes.plot([0.0, max_iters], [0.0, point], color=DARK_BLUE, linewidth=2, label="New Sample")
    axes.fill([0.0, max_iters, max_iters], [0.0, lb, ub], color=DARK_BLUE, alpha=0.25)

    axes.set_xlim(0.0, max_iters)
    _fit_axis(axes.set_ylim, [y_max], start=0.0)
    if title is not None:
        axes.legend(loc="upper left")
    return _save_svg(figure, path)