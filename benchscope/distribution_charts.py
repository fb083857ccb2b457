"""Charts of the bootstrap distributions of the estimated statistics."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Sequence

import numpy as np
from matplotlib.ticker import FuncFormatter

from benchscope.benchmark_id import BenchmarkId, ReportContext
from benchscope.chart_style import (
    DARK_BLUE,
    DARK_RED,
    DEFAULT_FONT,
    KDE_POINTS,
    SIZE,
    TITLE_FONT_SIZE,
    _fit_axis,
    _save_svg,
    kde_sweep,
    new_figure,
)
from benchscope.measurement import ValueFormatter
from benchscope.plotting import CHANGE_STATS, REPORT_STATS
from benchscope.report import ComparisonData, Estimate, MeasurementData, Statistic

__all__ = ["abs_distributions", "rel_distributions"]

_PRETTY = FuncFormatter(lambda value, _: f"{value:g}")


def _distribution(
    distributions: Mapping[Statistic, Sequence[float]], statistic: Statistic
) -> Optional[Sequence[float]]:
    """The distribution of a statistic; the typical one is the slope's, else the mean's."""
    if statistic is Statistic.TYPICAL and statistic not in distributions:
        if Statistic.SLOPE in distributions:
            return distributions[Statistic.SLOPE]
        return distributions.get(Statistic.MEAN)
    return distributions.get(statistic)


def _height_at(xs: np.ndarray, ys: np.ndarray, point: float) -> float:
    """Interpolate the curve between the two sweep points around ``point``."""
    at_or_after = np.flatnonzero(xs >= point)
    n = int(at_or_after[0]) if at_or_after.size else len(xs) - 1
    n = max(n, 1)
    dx = xs[n] - xs[n - 1]
    if dx == 0:
        return float(ys[n - 1])
    slope = (ys[n] - ys[n - 1]) / dx
    return float(ys[n - 1] + slope * (point - xs[n - 1]))


def _interval_slice(xs: np.ndarray, lb: float, ub: float) -> slice:
    """Indices of the sweep from the first point at or above lb to the last at or below ub."""
    above = np.flatnonzero(xs >= lb)
    below = np.flatnonzero(xs <= ub)
    if not above.size or not below.size:
        raise ValueError("the confidence interval lies outside the sampled range")
    return slice(int(above[0]), int(below[-1]))


def _start_axes(title: str, size: Optional[tuple[int, int]]):
    figure = new_figure(size if size is not None else SIZE)
    figure.suptitle(title, fontsize=TITLE_FONT_SIZE, family=DEFAULT_FONT)
    axes = figure.add_subplot()
    axes.xaxis.set_major_formatter(_PRETTY)
    axes.yaxis.set_major_formatter(_PRETTY)
    return figure, axes


def _abs_distribution(
    benchmark_id: BenchmarkId,
    context: ReportContext,
    formatter: ValueFormatter,
    statistic: Statistic,
    distribution: Sequence[float],
    estimate: Estimate,
    size: Optional[tuple[int, int]],
) -> Path:
    ci = estimate.confidence_interval
    typical = ci.upper_bound
    unit, (lb, ub, point) = formatter.scale_values(
        typical, [ci.lower_bound, ci.upper_bound, estimate.point_estimate]
    )

    start = lb - (ub - lb) / 9.0
    end = ub + (ub - lb) / 9.0
    _, scaled = formatter.scale_values(typical, distribution)
    xs, ys = kde_sweep(scaled, KDE_POINTS, (start, end))

    y_point = _height_at(xs, ys, point)
    interval = _interval_slice(xs, lb, ub)

    figure, axes = _start_axes(f"{benchmark_id.as_title()}:{statistic}", size)
    axes.set_xlabel(f"Average time ({unit})")
    axes.set_ylabel("Density (a.u.)")

    axes.plot(xs, ys, color=DARK_BLUE, label="Bootstrap distribution")
    axes.fill_between(
        xs[interval],
        ys[interval],
        0.0,
        color=DARK_BLUE,
        alpha=0.25,
        label="Confidence interval",
    )
    axes.plot(
        [point, point], [0.0, y_point], color=DARK_BLUE, linewidth=3, label="Point estimate"
    )

    _fit_axis(axes.set_xlim, xs)
    y_low, y_high = float(ys.min()), float(ys.max()) * 1.1
    if y_low < y_high:
        axes.set_ylim(y_low, y_high)
    axes.legend(loc="upper right")

    return _save_svg(figure, context.report_path(benchmark_id, f"{statistic}.svg"))


def abs_distributions(
    benchmark_id: BenchmarkId,
    context: ReportContext,
    formatter: ValueFormatter,
    measurements: MeasurementData,
    size: Optional[tuple[int, int]] = None,
) -> list[Path]:
    """Draw each reported statistic that has both a distribution and an estimate.

    Returns the paths written, in the order they were drawn.
    """
    written = []
    for statistic in REPORT_STATS:
        distribution = _distribution(measurements.distributions, statistic)
        estimate = measurements.absolute_estimates.get(statistic)
        if distribution is None or estimate is None:
            continue
        written.append(
            _abs_distribution(
                benchmark_id, context, formatter, statistic, distribution, estimate, size
            )
        )
    return written


def _noise_band(noise_threshold: float, x_min: float, x_max: float) -> tuple[float, float]:
    if noise_threshold < x_min or -noise_threshold > x_max:
        middle = (x_min + x_max) / 2.0
        return middle, middle
    return max(-noise_threshold, x_min), min(noise_threshold, x_max)


def _rel_distribution(
    benchmark_id: BenchmarkId,
    context: ReportContext,
    statistic: Statistic,
    distribution: Sequence[float],
    estimate: Estimate,
    noise_threshold: float,
    size: Optional[tuple[int, int]],
) -> Path:
    ci = estimate.confidence_interval
    lb, ub = ci.lower_bound, ci.upper_bound

    start = lb - (ub - lb) / 9.0
    end = ub + (ub - lb) / 9.0
    xs, ys = kde_sweep(distribution, KDE_POINTS, (start, end))

    point = estimate.point_estimate
    y_point = _height_at(xs, ys, point)
    interval = _interval_slice(xs, lb, ub)

    x_min, x_max = float(xs.min()), float(xs.max())
    fc_start, fc_end = _noise_band(noise_threshold, x_min, x_max)
    y_low, y_high = float(ys.min()), float(ys.max())

    figure, axes = _start_axes(f"{benchmark_id.as_title()}:{statistic}", size)
    axes.set_xlabel("Relative change (%)")
    axes.set_ylabel("Density (a.u.)")

    axes.plot(xs, ys, color=DARK_BLUE, label="Bootstrap distribution")
    axes.fill_between(
        xs[interval],
        ys[interval],
        0.0,
        color=DARK_BLUE,
        alpha=0.25,
        label="Confidence interval",
    )
    axes.plot(
        [point, point], [0.0, y_point], color=DARK_BLUE, linewidth=3, label="Point estimate"
    )
    axes.fill_between(
        [fc_start, fc_end],
        y_low,
        y_high,
        color=DARK_RED,
        alpha=0.1,
        label="Noise threshold",
    )

    if x_min < x_max:
        axes.set_xlim(x_min, x_max)
    if y_low < y_high:
        axes.set_ylim(y_low, y_high)
    axes.legend(loc="upper right")

    return _save_svg(
        figure, context.report_path(benchmark_id, f"change/{statistic}.svg")
    )


def rel_distributions(
    benchmark_id: BenchmarkId,
    context: ReportContext,
    measurements: MeasurementData,
    comparison: ComparisonData,
    size: Optional[tuple[int, int]] = None,
) -> list[Path]:
    """Draw the distribution of the relative change of the mean and the median.

    Returns the paths written.
    """
    written = []
    for statistic in CHANGE_STATS:
        distribution = comparison.relative_distributions[statistic]
        estimate = comparison.relative_estimates.get(statistic)
        if estimate is None:
            raise ValueError(f"no relative estimate of the {statistic}")
        written.append(
            _rel_distribution(
                benchmark_id,
                context,
                statistic,
                distribution,
                estimate,
                comparison.noise_threshold,
                size,
            )
        )
    return written