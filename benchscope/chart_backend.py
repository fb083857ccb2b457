"""Plotting backend that draws every chart as an SVG file with matplotlib."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from benchscope import distribution_charts, iteration_charts, pdf_charts
from benchscope import regression_charts, summary_charts
from benchscope.benchmark_id import ValueType
from benchscope.chart_style import (
    DARK_BLUE,
    DEFAULT_FONT,
    KDE_POINTS,
    SIZE,
    TITLE_FONT_SIZE,
    _fit_axis,
    _save_svg,
    convert_size,
    kde_sweep,
    new_figure,
)
from benchscope.measurement import ValueFormatter
from benchscope.plotting import Curves, PlotContext, PlotData, Plotter
from benchscope.report import ComparisonData

__all__ = ["ChartBackend"]


def _require_comparison(data: PlotData, what: str) -> ComparisonData:
    if data.comparison is None:
        raise ValueError(f"comparison data is required for the {what} chart")
    return data.comparison


def _t_test(
    path: Union[str, Path],
    title: str,
    comparison: ComparisonData,
    size: Optional[tuple[int, int]],
) -> Path:
    t = comparison.t_value
    xs, ys = kde_sweep(comparison.t_distribution, KDE_POINTS, None)
    y_end = float(ys.max()) * 1.1

    figure = new_figure(size if size is not None else SIZE)
    figure.suptitle(f"{title}: Welch t test", fontsize=TITLE_FONT_SIZE, family=DEFAULT_FONT)
    axes = figure.add_subplot()
    axes.set_ylabel("Density")
    axes.set_xlabel("t score")

    axes.fill_between(xs, ys, 0.0, color=DARK_BLUE, alpha=0.25, label="t distribution")
    axes.plot([t, t], [0.0, y_end], color=DARK_BLUE, linewidth=2, label="t statistic")

    _fit_axis(axes.set_xlim, xs)
    if y_end > 0.0:
        axes.set_ylim(0.0, y_end)
    axes.legend()
    return _save_svg(figure, path)


class ChartBackend(Plotter):
    """Draws charts synchronously, so waiting has nothing to do."""

    def _titled_path(self, ctx: PlotContext, data: PlotData, kind: str):
        report_path = ctx.context.report_path
        bid = ctx.benchmark_id
        if data.comparison is not None:
            if ctx.is_thumbnail:
                return None, report_path(bid, f"relative_{kind}_small.svg")
            return bid.as_title(), report_path(bid, f"both/{kind}.svg")
        if ctx.is_thumbnail:
            return None, report_path(bid, f"{kind}_small.svg")
        return bid.as_title(), report_path(bid, f"{kind}.svg")

    def pdf(self, ctx: PlotContext, data: PlotData) -> None:
        size = convert_size(ctx.size)
        if data.comparison is not None:
            title, path = self._titled_path(ctx, data, "pdf")
            pdf_charts.pdf_comparison_figure(
                path, title, data.formatter, data.measurements, data.comparison, size
            )
        elif ctx.is_thumbnail:
            pdf_charts.pdf_small(
                ctx.benchmark_id, ctx.context, data.formatter, data.measurements, size
            )
        else:
            pdf_charts.pdf(
                ctx.benchmark_id, ctx.context, data.formatter, data.measurements, size
            )

    def regression(self, ctx: PlotContext, data: PlotData) -> None:
        title, path = self._titled_path(ctx, data, "regression")
        size = convert_size(ctx.size)
        if data.comparison is not None:
            regression_charts.regression_comparison_figure(
                title, path, data.formatter, data.measurements, data.comparison, size
            )
        else:
            regression_charts.regression_figure(
                title, path, data.formatter, data.measurements, size
            )

    def iteration_times(self, ctx: PlotContext, data: PlotData) -> None:
        title, path = self._titled_path(ctx, data, "iteration_times")
        size = convert_size(ctx.size)
        if data.comparison is not None:
            iteration_charts.iteration_times_comparison_figure(
                title, path, data.formatter, data.measurements, data.comparison, size
            )
        else:
            iteration_charts.iteration_times_figure(
                title, path, data.formatter, data.measurements, size
            )

    def abs_distributions(self, ctx: PlotContext, data: PlotData) -> None:
        distribution_charts.abs_distributions(
            ctx.benchmark_id,
            ctx.context,
            data.formatter,
            data.measurements,
            convert_size(ctx.size),
        )

    def rel_distributions(self, ctx: PlotContext, data: PlotData) -> None:
        comparison = _require_comparison(data, "relative distribution")
        distribution_charts.rel_distributions(
            ctx.benchmark_id,
            ctx.context,
            data.measurements,
            comparison,
            convert_size(ctx.size),
        )

    def line_comparison(
        self,
        ctx: PlotContext,
        formatter: ValueFormatter,
        all_curves: Curves,
        value_type: ValueType,
    ) -> None:
        summary_charts.line_comparison(
            formatter,
            ctx.benchmark_id.as_title(),
            all_curves,
            ctx.line_comparison_path(),
            value_type,
            ctx.context.plot_config.summary_scale,
        )

    def violin(
        self, ctx: PlotContext, formatter: ValueFormatter, all_curves: Curves
    ) -> None:
        summary_charts.violin(
            formatter,
            ctx.benchmark_id.as_title(),
            all_curves,
            ctx.violin_path(),
            ctx.context.plot_config.summary_scale,
        )

    def t_test(self, ctx: PlotContext, data: PlotData) -> None:
        comparison = _require_comparison(data, "t test")
        _t_test(
            ctx.context.report_path(ctx.benchmark_id, "change/t-test.svg"),
            ctx.benchmark_id.as_title(),
            comparison,
            convert_size(ctx.size),
        )

    def wait(self) -> None:
        return None