"""Charts of the probability density of the average iteration times."""

from __future__ import annotations

import statistics
from pathlib import Path
from typing import Optional, Union

import numpy as np
from matplotlib.ticker import FuncFormatter, MaxNLocator

from benchscope.benchmark_id import BenchmarkId, ReportContext
from benchscope.chart_style import (
    DARK_BLUE,
    DARK_ORANGE,
    DARK_RED,
    DEFAULT_FONT,
    KDE_POINTS,
    MARKER_SIZE,
    SIZE,
    TITLE_FONT_SIZE,
    _fit_axis,
    _save_svg,
    kde_sweep,
    kde_sweep_and_estimate,
    new_figure,
)
from benchscope.measurement import ValueFormatter
from benchscope.regression_charts import _iteration_axis
from benchscope.report import ComparisonData, Label, MeasurementData

__all__ = ["pdf_comparison_figure", "pdf_small", "pdf"]

_PRETTY = FuncFormatter(lambda value, _: f"{value:g}")


def _start(title: Optional[str], size: Optional[tuple[int, int]]):
    figure = new_figure(size if size is not None else SIZE)
    if title is not None:
        figure.suptitle(title, fontsize=TITLE_FONT_SIZE, family=DEFAULT_FONT)
    axes = figure.add_subplot()
    axes.xaxis.set_major_formatter(_PRETTY)
    axes.yaxis.set_major_formatter(_PRETTY)
    return figure, axes


def pdf_comparison_figure(
    path: Union[str, Path],
    title: Optional[str],
    formatter: ValueFormatter,
    measurements: MeasurementData,
    comparison: ComparisonData,
    size: Optional[tuple[int, int]] = None,
) -> Path:
    """Overlay the densities and means of the baseline and the new average times.

    A legend is drawn only when there is a title.
    """
    base = [float(v) for v in comparison.base_avg_times]
    if not base:
        raise ValueError("the baseline has no average times")
    current = list(measurements.avg_times)
    typical = max(max(base), max(current))
    unit, scaled_base = formatter.scale_values(typical, base)
    _, scaled_new = formatter.scale_values(typical, current)

    base_mean = statistics.fmean(scaled_base)
    new_mean = statistics.fmean(scaled_new)
    base_xs, base_ys, base_y_mean = kde_sweep_and_estimate(
        scaled_base, KDE_POINTS, None, base_mean
    )
    xs, ys, y_mean = kde_sweep_and_estimate(scaled_new, KDE_POINTS, None, new_mean)

    all_xs = np.concatenate([base_xs, xs])
    all_ys = np.concatenate([base_ys, ys])
    y_start = float(all_ys.min())

    figure, axes = _start(title, size)
    axes.set_ylabel("Density (a.u.)")
    axes.set_xlabel(f"Average Time ({unit})")
    axes.xaxis.set_major_locator(MaxNLocator(nbins=5))

    axes.fill_between(base_xs, base_ys, y_start, color=DARK_RED, alpha=0.5, label="Base PDF")
    axes.fill_between(xs, ys, y_start, color=DARK_BLUE, alpha=0.5, label="New PDF")
    axes.plot(
        [base_mean, base_mean], [0.0, base_y_mean], color=DARK_RED, linewidth=2, label="Base Mean"
    )
    axes.plot(
        [new_mean, new_mean], [0.0, y_mean], color=DARK_BLUE, linewidth=2, label="New Mean"
    )

    _fit_axis(axes.set_xlim, all_xs)
    _fit_axis(axes.set_ylim, all_ys)
    if title is not None:
        axes.legend()
    return _save_svg(figure, path)


def pdf_small(
    benchmark_id: BenchmarkId,
    context: ReportContext,
    formatter: ValueFormatter,
    measurements: MeasurementData,
    size: Optional[tuple[int, int]] = None,
) -> Path:
    """Thumbnail of the density of the average times with a line at the mean."""
    avg_times = list(measurements.avg_times)
    unit, scaled = formatter.scale_values(max(avg_times), avg_times)
    mean = statistics.fmean(scaled)

    xs, ys, mean_y = kde_sweep_and_estimate(scaled, KDE_POINTS, None, mean)
    y_limit = float(ys.max()) * 1.1

    figure, axes = _start(None, size)
    axes.set_ylabel("Density (a.u.)")
    axes.set_xlabel(f"Average Time ({unit})")
    axes.xaxis.set_major_locator(MaxNLocator(nbins=5))

    axes.fill_between(xs, ys, 0.0, color=DARK_BLUE, alpha=0.25)
    axes.plot([mean, mean], [0.0, mean_y], color=DARK_BLUE, linewidth=2)

    _fit_axis(axes.set_xlim, xs)
    if y_limit > 0.0:
        axes.set_ylim(0.0, y_limit)
    return _save_svg(figure, context.report_path(benchmark_id, "pdf_small.svg"))


def pdf(
    benchmark_id: BenchmarkId,
    context: ReportContext,
    formatter: ValueFormatter,
    measurements: MeasurementData,
    size: Optional[tuple[int, int]] = None,
) -> Path:
    """Density of the average times with the samples, mean and Tukey fences.

    Samples are placed by iteration count and coloured by outlier class.
    """
    avg_times = list(measurements.avg_times)
    typical = max(avg_times)
    unit, scaled = formatter.scale_values(typical, avg_times)
    mean = statistics.fmean(scaled)

    iter_counts = measurements.iter_counts()
    max_iters = max(iter_counts, key=int)
    y_label, y_scale = _iteration_axis(max_iters)

    xs, ys = kde_sweep(scaled, KDE_POINTS, None)
    _, (lost, lomt, himt, hist) = formatter.scale_values(typical, measurements.fences)

    figure, axes = _start(benchmark_id.as_title(), size)
    axes.set_ylabel(y_label)
    axes.set_xlabel(f"Average Time ({unit})")
    axes.yaxis.set_major_formatter(FuncFormatter(lambda v, _: f"{v * y_scale:g}"))

    density = axes.twinx()
    density.set_ylabel("Density (a.u.)")
    density.yaxis.set_major_formatter(_PRETTY)
    density.fill_between(xs, ys, 0.0, color=DARK_BLUE, alpha=0.5, label="PDF")

    axes.plot([mean, mean], [0.0, max_iters], color=DARK_BLUE, label="Mean")
    for fence, color in (
        (lomt, DARK_ORANGE),
        (himt, DARK_ORANGE),
        (lost, DARK_RED),
        (hist, DARK_RED),
    ):
        axes.plot([fence, fence], [0.0, max_iters], color=color)

    samples = list(zip(measurements.labels, scaled, iter_counts))
    for keep, color, name in (
        (lambda label: not label.is_outlier(), DARK_BLUE, '"Clean" sample'),
        (Label.is_mild, DARK_ORANGE, "Mild outliers"),
        (Label.is_severe, DARK_RED, "Severe outliers"),
    ):
        chosen = [(t, i) for label, t, i in samples if keep(label)]
        axes.plot(
            [t for t, _ in chosen],
            [i for _, i in chosen],
            linestyle="none",
            marker="o",
            markersize=MARKER_SIZE,
            color=color,
            label=name,
        )

    _fit_axis(axes.set_xlim, xs)
    axes.set_ylim(0.0, max_iters)
    y_end = float(ys.max())
    if y_end > 0.0:
        density.set_ylim(0.0, y_end)

    density_handles, density_labels = density.get_legend_handles_labels()
    handles, labels = axes.get_legend_handles_labels()
    density.legend(density_handles + handles, density_labels + labels)
    return _save_svg(figure, context.report_path(benchmark_id, "pdf.svg"))