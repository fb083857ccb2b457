# benchscope

Tools for presenting benchmark results: unit-aware formatting of measured
times and throughputs, terminal reports of measurements and of comparisons
against a baseline, and SVG charts of samples, bootstrap distributions,
regressions and summaries across inputs.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Measurements and formatting (`benchscope.measurement`)

`WallTime` measures elapsed wall-clock time in integer nanoseconds
(`start`, `end`, `add`, `zero`, `to_f64`). Its `formatter()` returns a
`DurationFormatter`, which picks a unit (ps, ns, us, ms, s) from a typical
value in nanoseconds:

```python
from benchscope.measurement import WallTime, Throughput

fmt = WallTime().formatter()
print(fmt.format_value(1500.0))                        # "1.5000 us"
print(fmt.format_throughput(Throughput.bytes(4096), 1000.0))
unit, scaled = fmt.scale_values(2_000_000.0, [1e6, 3e6])  # ("ms", [1.0, 3.0])
```

The scaling methods never change their input; they return the unit and a
new list. `scale_throughputs` turns times into bytes (B/s … GiB/s) or
elements (elem/s … Gelem/s) per second, and `scale_for_machines` leaves
values in nanoseconds. `ValueFormatter` and `Measurement` are the abstract
bases for other kinds of measurement.

## Benchmark identifiers (`benchscope.benchmark_id`)

```python
from benchscope.benchmark_id import BenchmarkId, ReportContext

bid = BenchmarkId("group", "function", "1024")
print(bid.id())                   # "group/function/1024"
print(bid.as_directory_name())    # "group/function/1024"
print(bid.as_number())            # 1024.0
print(ReportContext("target/bench").report_path(bid, "pdf.svg"))
```

`make_filename_safe` replaces characters not allowed in file names with `_`
and truncates names to 64 UTF-8 bytes. Titles longer than 100 bytes are
shortened and end in `...`. `ensure_directory_name_unique` and
`ensure_title_unique` add `_2`, `_3`, … or ` #2`, ` #3`, … when a name is
taken. `value_type` tells whether the number is a byte count, an element
count or a plain value. `PlotConfiguration` holds the `AxisScale` used for
summary charts.

## Reports (`benchscope.report`)

`MeasurementData` holds iteration counts, total sample times and `Estimates`
(built from `Estimate` and `ConfidenceInterval`); it computes average times,
Tukey fences and an outlier `Label` for each sample unless they are given.
`ComparisonData` holds the results of a comparison with a baseline.

- `CliReport` prints progress lines, the time (and throughput) estimates,
  the change against a baseline, outlier counts and, when verbose, more
  estimates. It can colour and overwrite lines, and write to any stream.
- `BencherReport` prints one `bench: … ns/iter (+/- …)` line per benchmark.
- `Reports` forwards every event to each report it holds, in order.
- `compare_to_threshold` classifies a relative change as improved,
  regressed or within noise; `fit_slope` and `r_squared` fit a line through
  the origin.

```python
from benchscope.benchmark_id import BenchmarkId, ReportContext
from benchscope.measurement import DurationFormatter
from benchscope.report import (
    CliReport, ConfidenceInterval, Estimate, Estimates, MeasurementData,
)

est = Estimate(ConfidenceInterval(0.95, 95.0, 105.0), 100.0)
data = MeasurementData([1, 2, 3, 4], [100.0, 205.0, 290.0, 410.0], Estimates(est, est))
CliReport().measurement_complete(
    BenchmarkId("sort"), ReportContext("target/bench"), data, DurationFormatter()
)
```

## Charts (`benchscope.chart_backend`)

`ChartBackend` implements the `Plotter` interface of `benchscope.plotting`
with matplotlib. Given a `PlotContext` (benchmark, report context, optional
size, thumbnail flag) and `PlotData` (formatter, measurements, optional
comparison), it writes SVG files under
`<output directory>/<benchmark directory>/report/`: probability density
plots, linear regressions, iteration times, absolute and relative bootstrap
distributions, Welch t-test plots, line comparisons across inputs and violin
plots. Drawing happens at once, so `wait` has nothing to do. The chart
functions can also be called directly from `pdf_charts`,
`regression_charts`, `iteration_charts`, `distribution_charts` and
`summary_charts`; `chart_style` holds the shared Gaussian kernel density
estimate (`kde_sweep`, `kde_sweep_and_estimate`) and `new_figure`.

## What it does not do

benchscope does not run benchmarks, choose iteration counts or compute the
bootstrap estimates and comparisons itself: those results are handed to it.
It has no command-line program, writes no CSV or HTML reports, and does not
save or load baselines.