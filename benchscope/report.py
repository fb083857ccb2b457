"""Measurement results and the reports that print them."""

from __future__ import annotations

import enum
import math
import statistics
import sys
from collections import Counter
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence, TextIO

from benchscope.benchmark_id import BenchmarkId, ReportContext
from benchscope.measurement import (
    DurationFormatter,
    Throughput,
    ValueFormatter,
    _short,
)

__all__ = [
    "Statistic",
    "ConfidenceInterval",
    "Estimate",
    "Estimates",
    "Label",
    "ComparisonData",
    "MeasurementData",
    "fit_slope",
    "r_squared",
    "Report",
    "Reports",
    "CliReport",
    "BencherReport",
    "ComparisonResult",
    "compare_to_threshold",
]


class Statistic(enum.Enum):
    """A statistic estimated from the measurements."""

    MEAN = "mean"
    MEDIAN = "median"
    MEDIAN_ABS_DEV = "MAD"
    SLOPE = "slope"
    STD_DEV = "SD"
    TYPICAL = "typical"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ConfidenceInterval:
    confidence_level: float
    lower_bound: float
    upper_bound: float


@dataclass(frozen=True)
class Estimate:
    confidence_interval: ConfidenceInterval
    point_estimate: float
    standard_error: float = 0.0


@dataclass(frozen=True)
class Estimates:
    """Estimates of the statistics of a benchmark; only mean and median are required."""

    mean: Estimate
    median: Estimate
    median_abs_dev: Optional[Estimate] = None
    std_dev: Optional[Estimate] = None
    slope: Optional[Estimate] = None

    def typical(self) -> Estimate:
        """The slope estimate if there is one, else the mean."""
        return self.slope if self.slope is not None else self.mean

    def get(self, statistic: Statistic) -> Optional[Estimate]:
        """The estimate of the given statistic, or None if it was not estimated."""
        if statistic is Statistic.TYPICAL:
            return self.typical()
        return {
            Statistic.MEAN: self.mean,
            Statistic.MEDIAN: self.median,
            Statistic.MEDIAN_ABS_DEV: self.median_abs_dev,
            Statistic.STD_DEV: self.std_dev,
            Statistic.SLOPE: self.slope,
        }[statistic]


class Label(enum.Enum):
    """Tukey classification of a sample point."""

    LOW_SEVERE = "low severe"
    LOW_MILD = "low mild"
    NOT_AN_OUTLIER = "not an outlier"
    HIGH_MILD = "high mild"
    HIGH_SEVERE = "high severe"

    def is_outlier(self) -> bool:
        return self is not Label.NOT_AN_OUTLIER

    def is_mild(self) -> bool:
        return self in (Label.LOW_MILD, Label.HIGH_MILD)

    def is_severe(self) -> bool:
        return self in (Label.LOW_SEVERE, Label.HIGH_SEVERE)


def _tukey_fences(values: Sequence[float]) -> tuple[float, float, float, float]:
    if len(values) == 1:
        q1 = q3 = float(values[0])
    else:
        q1, _, q3 = statistics.quantiles(values, n=4, method="inclusive")
    iqr = q3 - q1
    return (q1 - 3.0 * iqr, q1 - 1.5 * iqr, q3 + 1.5 * iqr, q3 + 3.0 * iqr)


def _classify(value: float, fences: tuple[float, float, float, float]) -> Label:
    lost, lomt, himt, hist = fences
    if value < lost:
        return Label.LOW_SEVERE
    if value > hist:
        return Label.HIGH_SEVERE
    if value < lomt:
        return Label.LOW_MILD
    if value > himt:
        return Label.HIGH_MILD
    return Label.NOT_AN_OUTLIER


@dataclass
class ComparisonData:
    """Results of comparing a benchmark with its saved baseline."""

    p_value: float
    t_distribution: Sequence[float]
    t_value: float
    relative_estimates: Estimates
    relative_distributions: Mapping[Statistic, Sequence[float]]
    significance_threshold: float
    noise_threshold: float
    base_iter_counts: Sequence[float]
    base_sample_times: Sequence[float]
    base_avg_times: Sequence[float]
    base_estimates: Estimates


@dataclass
class MeasurementData:
    """Samples of one benchmark together with their analysis.

    ``avg_times`` defaults to the sample times divided by the iteration counts;
    ``fences`` and ``labels`` default to Tukey's fences and classification of them.
    """

    iteration_counts: Sequence[float]
    total_times: Sequence[float]
    absolute_estimates: Estimates
    avg_times: Optional[Sequence[float]] = None
    distributions: Mapping[Statistic, Sequence[float]] = field(default_factory=dict)
    comparison: Optional[ComparisonData] = None
    throughput: Optional[Throughput] = None
    fences: Optional[tuple[float, float, float, float]] = None
    labels: Optional[Sequence[Label]] = None

    def __post_init__(self) -> None:
        self.iteration_counts = [float(x) for x in self.iteration_counts]
        self.total_times = [float(y) for y in self.total_times]
        if len(self.iteration_counts) != len(self.total_times):
            raise ValueError("iteration counts and sample times differ in length")
        if self.avg_times is None:
            self.avg_times = [
                t / n for n, t in zip(self.iteration_counts, self.total_times)
            ]
        else:
            self.avg_times = [float(v) for v in self.avg_times]
        if not self.avg_times:
            raise ValueError("measurement data needs at least one sample")
        if self.fences is None:
            self.fences = _tukey_fences(self.avg_times)
        if self.labels is None:
            self.labels = tuple(_classify(v, self.fences) for v in self.avg_times)
        else:
            self.labels = tuple(self.labels)
            if len(self.labels) != len(self.avg_times):
                raise ValueError("there must be one label for each average time")

    def iter_counts(self) -> list[float]:
        """Iteration count of each sample."""
        return list(self.iteration_counts)

    def sample_times(self) -> list[float]:
        """Total measured time of each sample."""
        return list(self.total_times)

    def outlier_counts(self) -> tuple[int, int, int, int, int]:
        """Counts of low severe, low mild, normal, high mild and high severe samples."""
        counts = Counter(self.labels)
        return (
            counts[Label.LOW_SEVERE],
            counts[Label.LOW_MILD],
            counts[Label.NOT_AN_OUTLIER],
            counts[Label.HIGH_MILD],
            counts[Label.HIGH_SEVERE],
        )


def fit_slope(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Least-squares slope of a line through the origin."""
    xy = sum(x * y for x, y in zip(xs, ys, strict=True))
    x2 = sum(x * x for x in xs)
    return xy / x2


def r_squared(slope: float, xs: Sequence[float], ys: Sequence[float]) -> float:
    """Coefficient of determination of a line through the origin."""
    y_bar = statistics.fmean(ys)
    ss_res = sum((y - slope * x) ** 2 for x, y in zip(xs, ys, strict=True))
    ss_tot = sum((y - y_bar) ** 2 for y in ys)
    return 1.0 - ss_res / ss_tot


def _time(ns: float) -> str:
    return DurationFormatter().format_value(ns)


def _signed_short(n: float) -> str:
    magnitude = abs(n)
    if magnitude < 10.0:
        return f"{n:+.4f}"
    if magnitude < 100.0:
        return f"{n:+.3f}"
    if magnitude < 1000.0:
        return f"{n:+.2f}"
    if magnitude < 10000.0:
        return f"{n:+.1f}"
    return f"{n:+.0f}"


def _change(pct: float, signed: bool) -> str:
    text = _signed_short(pct * 1e2) if signed else _short(pct * 1e2)
    return f"{text:>6}%"


def _iter_count(iterations: int) -> str:
    if iterations < 10_000:
        return f"{iterations} iterations"
    if iterations < 1_000_000:
        return f"{iterations / 1000.0:.0f}k iterations"
    if iterations < 10_000_000:
        return f"{iterations / 1e6:.1f}M iterations"
    if iterations < 1_000_000_000:
        return f"{iterations / 1e6:.0f}M iterations"
    if iterations < 10_000_000_000:
        return f"{iterations / 1e9:.1f}B iterations"
    return f"{iterations / 1e9:.0f}B iterations"


def _integer(n: float) -> str:
    if math.isnan(n) or n <= 0:
        return "0"
    return f"{int(n):,}"


class ComparisonResult(enum.Enum):
    IMPROVED = "improved"
    REGRESSED = "regressed"
    NON_SIGNIFICANT = "non-significant"


def compare_to_threshold(estimate: Estimate, noise: float) -> ComparisonResult:
    """Whether a relative change lies wholly below or above the noise band."""
    lb = estimate.confidence_interval.lower_bound
    ub = estimate.confidence_interval.upper_bound
    if lb < -noise and ub < -noise:
        return ComparisonResult.IMPROVED
    if lb > noise and ub > noise:
        return ComparisonResult.REGRESSED
    return ComparisonResult.NON_SIGNIFICANT


class Report:
    """Receiver of benchmark progress events; every hook does nothing by default."""

    def test_start(self, benchmark_id: BenchmarkId, context: ReportContext) -> None:
        pass

    def test_pass(self, benchmark_id: BenchmarkId, context: ReportContext) -> None:
        pass

    def benchmark_start(self, benchmark_id: BenchmarkId, context: ReportContext) -> None:
        pass

    def profile(
        self, benchmark_id: BenchmarkId, context: ReportContext, profile_ns: float
    ) -> None:
        pass

    def warmup(
        self, benchmark_id: BenchmarkId, context: ReportContext, warmup_ns: float
    ) -> None:
        pass

    def terminated(self, benchmark_id: BenchmarkId, context: ReportContext) -> None:
        pass

    def analysis(self, benchmark_id: BenchmarkId, context: ReportContext) -> None:
        pass

    def measurement_start(
        self,
        benchmark_id: BenchmarkId,
        context: ReportContext,
        sample_count: int,
        estimate_ns: float,
        iter_count: int,
    ) -> None:
        pass

    def measurement_complete(
        self,
        benchmark_id: BenchmarkId,
        context: ReportContext,
        measurements: MeasurementData,
        formatter: ValueFormatter,
    ) -> None:
        pass

    def summarize(
        self,
        context: ReportContext,
        all_ids: Sequence[BenchmarkId],
        formatter: ValueFormatter,
    ) -> None:
        pass

    def final_summary(self, context: ReportContext) -> None:
        pass

    def group_separator(self) -> None:
        pass


class Reports(Report):
    """Forwards every event to each of the enabled reports, in order."""

    def __init__(self, reports: Sequence[Report] = ()) -> None:
        self.reports = list(reports)

    def _each(self, name: str, *args) -> None:
        for report in self.reports:
            getattr(report, name)(*args)

    def test_start(self, benchmark_id, context):
        self._each("test_start", benchmark_id, context)

    def test_pass(self, benchmark_id, context):
        self._each("test_pass", benchmark_id, context)

    def benchmark_start(self, benchmark_id, context):
        self._each("benchmark_start", benchmark_id, context)

    def profile(self, benchmark_id, context, profile_ns):
        self._each("profile", benchmark_id, context, profile_ns)

    def warmup(self, benchmark_id, context, warmup_ns):
        self._each("warmup", benchmark_id, context, warmup_ns)

    def terminated(self, benchmark_id, context):
        self._each("terminated", benchmark_id, context)

    def analysis(self, benchmark_id, context):
        self._each("analysis", benchmark_id, context)

    def measurement_start(self, benchmark_id, context, sample_count, estimate_ns, iter_count):
        self._each(
            "measurement_start", benchmark_id, context, sample_count, estimate_ns, iter_count
        )

    def measurement_complete(self, benchmark_id, context, measurements, formatter):
        self._each("measurement_complete", benchmark_id, context, measurements, formatter)

    def summarize(self, context, all_ids, formatter):
        self._each("summarize", context, all_ids, formatter)

    def final_summary(self, context):
        self._each("final_summary", context)

    def group_separator(self):
        self._each("group_separator")


class _Printer:
    stream: Optional[TextIO]

    def _write(self, text: str, end: str = "\n") -> None:
        out = self.stream if self.stream is not None else sys.stdout
        out.write(text + end)

    def _flush(self) -> None:
        (self.stream if self.stream is not None else sys.stdout).flush()


class CliReport(_Printer, Report):
    """Human-readable progress and results on a terminal."""

    def __init__(
        self,
        enable_text_overwrite: bool = False,
        enable_text_coloring: bool = False,
        verbose: bool = False,
        stream: Optional[TextIO] = None,
    ) -> None:
        self.enable_text_overwrite = enable_text_overwrite
        self.enable_text_coloring = enable_text_coloring
        self.verbose = verbose
        self.stream = stream
        self._last_line_len = 0

    def _text_overwrite(self) -> None:
        if self.enable_text_overwrite:
            self._write("\r" + " " * self._last_line_len + "\r", end="")

    def _print_overwritable(self, text: str) -> None:
        if self.enable_text_overwrite:
            self._last_line_len = len(text.encode("utf-8"))
            self._write(text, end="")
            self._flush()
        else:
            self._write(text)

    def _style(self, text: str, start: str, stop: str) -> str:
        return f"\x1b[{start}m{text}\x1b[{stop}m" if self.enable_text_coloring else text

    def _green(self, text: str) -> str:
        return self._style(text, "32", "39")

    def _yellow(self, text: str) -> str:
        return self._style(text, "33", "39")

    def _red(self, text: str) -> str:
        return self._style(text, "31", "39")

    def _bold(self, text: str) -> str:
        return self._style(text, "1", "22")

    def _faint(self, text: str) -> str:
        return self._style(text, "2", "22")

    def outliers(self, measurements: MeasurementData) -> None:
        """Print how many average times are outliers, if any are."""
        los, lom, _, him, his = measurements.outlier_counts()
        noutliers = los + lom + him + his
        sample_size = len(measurements.avg_times)
        if noutliers == 0:
            return

        def percent(n: int) -> float:
            return 100.0 * n / sample_size

        self._write(
            self._yellow(
                f"Found {noutliers} outliers among {sample_size} measurements "
                f"({percent(noutliers):.2f}%)"
            )
        )
        for count, label in (
            (los, "low severe"),
            (lom, "low mild"),
            (him, "high mild"),
            (his, "high severe"),
        ):
            if count:
                self._write(f"  {count} ({percent(count):.2f}%) {label}")

    def test_start(self, benchmark_id, context):
        self._write(f"Testing {benchmark_id}")

    def test_pass(self, benchmark_id, context):
        self._write("Success")

    def benchmark_start(self, benchmark_id, context):
        self._print_overwritable(f"Benchmarking {benchmark_id}")

    def profile(self, benchmark_id, context, profile_ns):
        self._text_overwrite()
        self._print_overwritable(
            f"Benchmarking {benchmark_id}: Profiling for {_time(profile_ns)}"
        )

    def warmup(self, benchmark_id, context, warmup_ns):
        self._text_overwrite()
        self._print_overwritable(
            f"Benchmarking {benchmark_id}: Warming up for {_time(warmup_ns)}"
        )

    def terminated(self, benchmark_id, context):
        self._text_overwrite()
        self._write(f"Benchmarking {benchmark_id}: Complete (Analysis Disabled)")

    def analysis(self, benchmark_id, context):
        self._text_overwrite()
        self._print_overwritable(f"Benchmarking {benchmark_id}: Analyzing")

    def measurement_start(self, benchmark_id, context, sample_count, estimate_ns, iter_count):
        self._text_overwrite()
        iter_string = (
            f"{iter_count} iterations" if self.verbose else _iter_count(iter_count)
        )
        self._print_overwritable(
            f"Benchmarking {benchmark_id}: Collecting {sample_count} samples in "
            f"estimated {_time(estimate_ns)} ({iter_string})"
        )

    def measurement_complete(self, benchmark_id, context, measurements, formatter):
        self._text_overwrite()
        typical = measurements.absolute_estimates.typical()
        ci = typical.confidence_interval
        pad = " " * 24

        title = benchmark_id.as_title()
        if len(title.encode("utf-8")) > 23:
            self._write(self._green(title))
            title = ""
        gap = " " * (24 - len(title.encode("utf-8")))
        self._write(
            f"{self._green(title)}{gap}time:   ["
            f"{self._faint(formatter.format_value(ci.lower_bound))} "
            f"{self._bold(formatter.format_value(typical.point_estimate))} "
            f"{self._faint(formatter.format_value(ci.upper_bound))}]"
        )

        throughput = measurements.throughput
        if throughput is not None:
            self._write(
                f"{pad}thrpt:  ["
                f"{self._faint(formatter.format_throughput(throughput, ci.upper_bound))} "
                f"{self._bold(formatter.format_throughput(throughput, typical.point_estimate))} "
                f"{self._faint(formatter.format_throughput(throughput, ci.lower_bound))}]"
            )

        comp = measurements.comparison
        if comp is not None:
            self._print_comparison(comp, throughput is not None)

        self.outliers(measurements)

        if self.verbose:
            self._print_verbose(measurements, formatter)

    def _print_comparison(self, comp: ComparisonData, has_throughput: bool) -> None:
        pad = " " * 24
        different_mean = comp.p_value < comp.significance_threshold
        mean_est = comp.relative_estimates.mean
        mean_ci = mean_est.confidence_interval
        point = mean_est.point_estimate

        def to_thrpt(ratio: float) -> float:
            # Halving the time doubles the throughput.
            return 1.0 / (1.0 + ratio) - 1.0

        point_str = _change(point, True)
        thrpt_point_str = _change(to_thrpt(point), True)

        if not different_mean:
            explanation = "No change in performance detected."
        else:
            result = compare_to_threshold(mean_est, comp.noise_threshold)
            if result is ComparisonResult.IMPROVED:
                point_str = self._green(self._bold(point_str))
                thrpt_point_str = self._green(self._bold(thrpt_point_str))
                explanation = f"Performance has {self._green('improved')}."
            elif result is ComparisonResult.REGRESSED:
                point_str = self._red(self._bold(point_str))
                thrpt_point_str = self._red(self._bold(thrpt_point_str))
                explanation = f"Performance has {self._red('regressed')}."
            else:
                explanation = "Change within noise threshold."

        relation = "<" if different_mean else ">"
        bounds = (
            f"[{self._faint(_change(mean_ci.lower_bound, True))} {point_str} "
            f"{self._faint(_change(mean_ci.upper_bound, True))}] "
            f"(p = {comp.p_value:.2f} {relation} {comp.significance_threshold:.2f})"
        )
        if has_throughput:
            self._write(f"{' ' * 17}change:")
            self._write(f"{pad}time:   {bounds}")
            self._write(
                f"{pad}thrpt:  ["
                f"{self._faint(_change(to_thrpt(mean_ci.upper_bound), True))} "
                f"{thrpt_point_str} "
                f"{self._faint(_change(to_thrpt(mean_ci.lower_bound), True))}]"
            )
        else:
            self._write(f"{pad}change: {bounds}")
        self._write(f"{pad}{explanation}")

    def _print_verbose(self, meas: MeasurementData, formatter: ValueFormatter) -> None:
        def short_estimate(estimate: Optional[Estimate]) -> str:
            if estimate is None:
                return "[n/a]"
            ci = estimate.confidence_interval
            return (
                f"[{formatter.format_value(ci.lower_bound)} "
                f"{formatter.format_value(ci.upper_bound)}]"
            )

        est = meas.absolute_estimates
        if est.slope is not None:
            xs, ys = meas.iter_counts(), meas.sample_times()
            ci = est.slope.confidence_interval
            self._write(
                f"{'slope':<7}{short_estimate(est.slope)} {'R^2':<15}"
                f"[{r_squared(ci.lower_bound, xs, ys):.7f} "
                f"{r_squared(ci.upper_bound, xs, ys):.7f}]"
            )
        self._write(
            f"{'mean':<7}{short_estimate(est.mean)} {'std. dev.':<15}"
            f"{short_estimate(est.std_dev)}"
        )
        self._write(
            f"{'median':<7}{short_estimate(est.median)} {'med. abs. dev.':<15}"
            f"{short_estimate(est.median_abs_dev)}"
        )

    def group_separator(self):
        self._write("")


class BencherReport(_Printer, Report):
    """Output in the style of the standard bench harness."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream

    def measurement_start(self, benchmark_id, context, sample_count, estimate_ns, iter_count):
        self._write(f"test {benchmark_id} ... ", end="")

    def measurement_complete(self, benchmark_id, context, measurements, formatter):
        est = measurements.absolute_estimates
        std_dev = est.std_dev.point_estimate if est.std_dev is not None else 0.0
        unit, (median, spread) = formatter.scale_for_machines(
            [est.median.point_estimate, std_dev]
        )
        self._write(
            f"bench: {_integer(median):>11} {unit}/iter (+/- {_integer(spread)})"
        )

    def group_separator(self):
        self._write("")