"""Charts that summarise all benchmarks of a group."""

from __future__ import annotations

import math
import statistics
from itertools import cycle, groupby
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from benchscope.benchmark_id import AxisScale, BenchmarkId, ValueType
from benchscope.chart_style import (
    DARK_BLUE,
    DEFAULT_FONT,
    KDE_POINTS,
    MARKER_SIZE,
    SIZE,
    TITLE_FONT_SIZE,
    _fit_axis,
    _save_svg,
    kde_sweep,
    new_figure,
)
from benchscope.measurement import ValueFormatter

__all__ = [
    "COMPARISON_COLORS",
    "line_comparison_series_data",
    "line_comparison",
    "violin",
]

COMPARISON_COLORS = (
    "#b22222",
    "#2e8b57",
    "#008b8b",
    "#ffd700",
    "#00008b",
    "#dc143c",
    "#8b008b",
    "#00ff7f",
)

_INPUT_SUFFIX = {
    ValueType.BYTES: " Size (Bytes)",
    ValueType.ELEMENTS: " Size (Elements)",
    ValueType.VALUE: "",
}

Curves = Sequence[tuple[BenchmarkId, Sequence[float]]]
Series = tuple[Optional[str], list[float], list[float]]


def line_comparison_series_data(
    formatter: ValueFormatter, all_curves: Curves
) -> tuple[str, list[Series]]:
    """Group consecutive curves by function and turn each group into a sorted line.

    Every benchmark id must have a numeric value or a throughput. Returns the
    time unit and, for each group, its function name, inputs and scaled mean times.
    """
    means = [statistics.fmean(sample) for _, sample in all_curves]
    finite = [m for m in means if not math.isnan(m)]
    typical = max(finite) if finite else math.nan
    unit, _ = formatter.scale_values(typical, [1.0])

    series: list[Series] = []
    for function_id, group in groupby(all_curves, key=lambda curve: curve[0].function_id):
        points = []
        for benchmark_id, sample in group:
            x = benchmark_id.as_number()
            if x is None:
                raise ValueError(
                    f"benchmark {benchmark_id.id()} has neither a numeric value nor a throughput"
                )
            points.append((x, statistics.fmean(sample)))
        points.sort(key=lambda point: point[0])
        xs = [x for x, _ in points]
        _, ys = formatter.scale_values(typical, [y for _, y in points])
        series.append((function_id, xs, ys))
    return unit, series


def line_comparison(
    formatter: ValueFormatter,
    title: str,
    all_curves: Curves,
    path: Union[str, Path],
    value_type: ValueType,
    axis_scale: AxisScale,
) -> None:
    """Draw mean time against input for each function of a group."""
    unit, series = line_comparison_series_data(formatter, all_curves)
    log = axis_scale is AxisScale.LOGARITHMIC

    figure = new_figure(SIZE)
    figure.suptitle(f"{title}: Comparison", fontsize=TITLE_FONT_SIZE, family=DEFAULT_FONT)
    axes = figure.add_subplot()
    axes.set_xlabel(f"Input{_INPUT_SUFFIX[value_type]}")
    axes.set_ylabel(f"Average time ({unit})")
    if log:
        axes.set_xscale("log")
        axes.set_yscale("log")

    labelled = False
    for color, (name, xs, ys) in zip(cycle(COMPARISON_COLORS), series):
        axes.plot(
            xs,
            ys,
            color=color,
            marker="o",
            markersize=MARKER_SIZE,
            label=name if name is not None else "_nolegend_",
        )
        labelled = labelled or name is not None

    _fit_axis(axes.set_xlim, (x for _, xs, _ in series for x in xs), log)
    _fit_axis(axes.set_ylim, (y for _, _, ys in series for y in ys), log)
    if labelled:
        axes.legend(loc="upper left")
    _save_svg(figure, path)


def violin(
    formatter: ValueFormatter,
    title: str,
    all_curves: Curves,
    path: Union[str, Path],
    axis_scale: AxisScale,
) -> None:
    """Draw the density of each benchmark's times as a violin, first curve on top."""
    curves = list(reversed(list(all_curves)))
    kdes = []
    for benchmark_id, sample in curves:
        xs, ys = kde_sweep(sample, KDE_POINTS, None)
        kdes.append((benchmark_id.as_title(), xs, ys / ys.max()))

    positive = [float(x) for _, xs, _ in kdes for x in xs if x > 0.0]
    if not positive:
        raise ValueError("a violin plot needs positive values")
    typical = max(positive)
    unit, _ = formatter.scale_values(typical, [1.0])
    scaled = [
        (name, np.asarray(formatter.scale_values(typical, xs)[1]), ys)
        for name, xs, ys in kdes
    ]

    count = len(scaled)
    figure = new_figure((960, 150 + 18 * count))
    figure.suptitle(f"{title}: Violin plot", fontsize=TITLE_FONT_SIZE, family=DEFAULT_FONT)
    axes = figure.add_subplot()
    axes.set_xlabel(f"Average time ({unit})")
    axes.set_ylabel("Input")

    for base, (_, xs, ys) in enumerate(scaled):
        axes.fill_between(xs, base - ys / 2.0, base + ys / 2.0, color=DARK_BLUE)

    axes.set_ylim(-0.5, count - 0.5)
    axes.set_yticks(list(range(count)))
    axes.set_yticklabels([name for name, _, _ in scaled], fontsize=10)

    all_xs = [float(x) for _, xs, _ in scaled for x in xs]
    if axis_scale is AxisScale.LOGARITHMIC:
        axes.set_xscale("log")
        _fit_axis(axes.set_xlim, (x for x in all_xs if x > 0.0), log=True)
    else:
        _fit_axis(axes.set_xlim, all_xs, start=0.0)
    _save_svg(figure, path)