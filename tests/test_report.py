import io

import pytest

from benchscope.benchmark_id import BenchmarkId, ReportContext
from benchscope.measurement import DurationFormatter, Throughput
from benchscope.report import (
    BencherReport,
    CliReport,
    ComparisonData,
    ComparisonResult,
    ConfidenceInterval,
    Estimate,
    Estimates,
    Label,
    MeasurementData,
    Reports,
    Statistic,
    compare_to_threshold,
    fit_slope,
    r_squared,
)


def _estimate(point, lb, ub):
    return Estimate(ConfidenceInterval(0.95, lb, ub), point)


def _estimates(slope=None):
    return Estimates(
        mean=_estimate(100.0, 90.0, 110.0),
        median=_estimate(95.0, 85.0, 105.0),
        median_abs_dev=_estimate(5.0, 4.0, 6.0),
        std_dev=_estimate(7.0, 6.0, 8.0),
        slope=slope,
    )


def _measurements(**kwargs):
    kwargs.setdefault("absolute_estimates", _estimates())
    return MeasurementData(
        iteration_counts=[1.0, 2.0, 3.0, 4.0, 5.0],
        total_times=[100.0, 200.0, 300.0, 400.0, 5000.0],
        **kwargs,
    )


def _comparison(p_value, lb, ub):
    rel = Estimates(mean=_estimate((lb + ub) / 2, lb, ub), median=_estimate((lb + ub) / 2, lb, ub))
    return ComparisonData(
        p_value=p_value,
        t_distribution=[0.0, 1.0],
        t_value=0.5,
        relative_estimates=rel,
        relative_distributions={},
        significance_threshold=0.05,
        noise_threshold=0.01,
        base_iter_counts=[1.0, 2.0],
        base_sample_times=[100.0, 200.0],
        base_avg_times=[100.0, 100.0],
        base_estimates=_estimates(),
    )


def _context(tmp_path):
    return ReportContext(tmp_path)


def test_compare_to_threshold_classifies():
    assert compare_to_threshold(_estimate(-0.15, -0.2, -0.1), 0.01) is ComparisonResult.IMPROVED
    assert compare_to_threshold(_estimate(0.15, 0.1, 0.2), 0.01) is ComparisonResult.REGRESSED
    assert (
        compare_to_threshold(_estimate(0.0, -0.005, 0.005), 0.01)
        is ComparisonResult.NON_SIGNIFICANT
    )
    assert compare_to_threshold(_estimate(0.0, -0.2, 0.2), 0.01) is ComparisonResult.NON_SIGNIFICANT


def test_estimates_typical_prefers_slope():
    slope = _estimate(50.0, 45.0, 55.0)
    assert _estimates(slope).typical() is slope
    plain = _estimates()
    assert plain.typical() is plain.mean


def test_estimates_get():
    est = _estimates()
    assert est.get(Statistic.MEAN) is est.mean
    assert est.get(Statistic.MEDIAN) is est.median
    assert est.get(Statistic.STD_DEV) is est.std_dev
    assert est.get(Statistic.MEDIAN_ABS_DEV) is est.median_abs_dev
    assert est.get(Statistic.SLOPE) is None
    assert est.get(Statistic.TYPICAL) is est.mean


def test_label_predicates():
    assert not Label.NOT_AN_OUTLIER.is_outlier()
    assert Label.LOW_MILD.is_mild() and not Label.LOW_MILD.is_severe()
    assert Label.HIGH_SEVERE.is_severe() and Label.HIGH_SEVERE.is_outlier()
    assert not Label.HIGH_SEVERE.is_mild()


def test_measurement_data_classifies_outliers():
    md = _measurements()
    assert md.avg_times == [t / n for n, t in zip(md.iter_counts(), md.sample_times())]
    assert md.labels[-1] is Label.HIGH_SEVERE
    assert all(label is Label.NOT_AN_OUTLIER for label in md.labels[:-1])
    assert sum(md.outlier_counts()) == len(md.avg_times)


def test_measurement_data_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        MeasurementData([1.0, 2.0], [1.0], _estimates())


def test_fit_slope_and_r_squared():
    xs = [1.0, 2.0, 3.0, 4.0]
    ys = [2.5 * x for x in xs]
    slope = fit_slope(xs, ys)
    assert slope == pytest.approx(2.5)
    assert r_squared(slope, xs, ys) == pytest.approx(1.0)
    assert r_squared(slope * 2, xs, ys) < r_squared(slope, xs, ys)


def test_cli_test_start_and_pass(tmp_path):
    buf = io.StringIO()
    cli = CliReport(stream=buf)
    bid = BenchmarkId("group", "func")
    cli.test_start(bid, _context(tmp_path))
    cli.test_pass(bid, _context(tmp_path))
    assert buf.getvalue().splitlines() == [f"Testing {bid.as_title()}", "Success"]


def test_cli_outliers_report(tmp_path):
    buf = io.StringIO()
    md = _measurements()
    CliReport(stream=buf).outliers(md)
    los, lom, _, him, his = md.outlier_counts()
    text = buf.getvalue()
    assert text.startswith(
        f"Found {los + lom + him + his} outliers among {len(md.avg_times)} measurements"
    )
    assert "high severe" in text
    assert "low mild" not in text


def test_cli_outliers_silent_without_outliers():
    buf = io.StringIO()
    md = MeasurementData([1.0, 2.0, 3.0], [10.0, 20.0, 30.0], _estimates())
    CliReport(stream=buf).outliers(md)
    assert buf.getvalue() == ""


def test_cli_measurement_complete_time_line(tmp_path):
    buf = io.StringIO()
    fmt = DurationFormatter()
    bid = BenchmarkId("g", "f")
    md = _measurements()
    CliReport(stream=buf).measurement_complete(bid, _context(tmp_path), md, fmt)
    first = buf.getvalue().splitlines()[0]
    ci = md.absolute_estimates.mean.confidence_interval
    assert first.startswith(bid.as_title())
    assert first.index("time:   [") == 24
    assert first.endswith(
        f"[{fmt.format_value(ci.lower_bound)} {fmt.format_value(100.0)} "
        f"{fmt.format_value(ci.upper_bound)}]"
    )


def test_cli_long_title_on_own_line(tmp_path):
    buf = io.StringIO()
    bid = BenchmarkId("a" * 30)
    CliReport(stream=buf).measurement_complete(
        bid, _context(tmp_path), _measurements(), DurationFormatter()
    )
    lines = buf.getvalue().splitlines()
    assert lines[0] == bid.as_title()
    assert lines[1].startswith(" " * 24 + "time:")


@pytest.mark.parametrize(
    "p_value, lb, ub, message",
    [
        (0.01, -0.2, -0.1, "Performance has improved."),
        (0.01, 0.1, 0.2, "Performance has regressed."),
        (0.01, -0.005, 0.005, "Change within noise threshold."),
        (0.5, -0.2, -0.1, "No change in performance detected."),
    ],
)
def test_cli_comparison_explanations(tmp_path, p_value, lb, ub, message):
    buf = io.StringIO()
    md = _measurements(comparison=_comparison(p_value, lb, ub))
    CliReport(stream=buf).measurement_complete(
        BenchmarkId("g"), _context(tmp_path), md, DurationFormatter()
    )
    lines = buf.getvalue().splitlines()
    assert " " * 24 + message in lines
    assert any(line.startswith(" " * 24 + "change: [") for line in lines)


def test_cli_comparison_with_throughput(tmp_path):
    buf = io.StringIO()
    md = _measurements(
        comparison=_comparison(0.01, -0.2, -0.1), throughput=Throughput.bytes(1024)
    )
    CliReport(stream=buf).measurement_complete(
        BenchmarkId("g"), _context(tmp_path), md, DurationFormatter()
    )
    text = buf.getvalue()
    assert " " * 17 + "change:\n" in text
    assert text.count("thrpt:  [") == 2


def test_cli_coloring_marks_improvement(tmp_path):
    buf = io.StringIO()
    md = _measurements(comparison=_comparison(0.01, -0.2, -0.1))
    CliReport(enable_text_coloring=True, stream=buf).measurement_complete(
        BenchmarkId("g"), _context(tmp_path), md, DurationFormatter()
    )
    assert "\x1b[32mimproved\x1b[39m" in buf.getvalue()


def test_cli_verbose_prints_statistics(tmp_path):
    buf = io.StringIO()
    md = _measurements(absolute_estimates=_estimates(_estimate(100.0, 95.0, 105.0)))
    CliReport(verbose=True, stream=buf).measurement_complete(
        BenchmarkId("g"), _context(tmp_path), md, DurationFormatter()
    )
    text = buf.getvalue()
    for label in ("slope", "R^2", "mean", "std. dev.", "median", "med. abs. dev."):
        assert label in text


def test_cli_measurement_start_iteration_text(tmp_path):
    bid = BenchmarkId("g")
    verbose = io.StringIO()
    CliReport(verbose=True, stream=verbose).measurement_start(
        bid, _context(tmp_path), 10, 5e9, 123456789
    )
    assert f"({123456789} iterations)" in verbose.getvalue()
    terse = io.StringIO()
    CliReport(stream=terse).measurement_start(bid, _context(tmp_path), 10, 5e9, 123456789)
    assert "Collecting 10 samples in estimated" in terse.getvalue()
    assert f"({123456789} iterations)" not in terse.getvalue()


def test_cli_overwrite_clears_previous_line(tmp_path):
    buf = io.StringIO()
    bid = BenchmarkId("group")
    cli = CliReport(enable_text_overwrite=True, stream=buf)
    cli.benchmark_start(bid, _context(tmp_path))
    cli.warmup(bid, _context(tmp_path), 3e9)
    first = f"Benchmarking {bid}"
    text = buf.getvalue()
    assert text.startswith(first + "\r" + " " * len(first) + "\r")
    assert "Warming up for" in text
    assert "\n" not in text


def test_bencher_report(tmp_path):
    buf = io.StringIO()
    bid = BenchmarkId("g", "f")
    report = BencherReport(stream=buf)
    report.measurement_start(bid, _context(tmp_path), 10, 1e9, 100)
    report.measurement_complete(bid, _context(tmp_path), _measurements(), DurationFormatter())
    text = buf.getvalue()
    assert text.startswith(f"test {bid} ... bench: ")
    assert "ns/iter (+/- " in text


def test_reports_forward_to_all(tmp_path):
    first, second = io.StringIO(), io.StringIO()
    reports = Reports([CliReport(stream=first), CliReport(stream=second)])
    reports.test_pass(BenchmarkId("g"), _context(tmp_path))
    reports.group_separator()
    assert first.getvalue() == "Success\n\n"
    assert second.getvalue() == first.getvalue()