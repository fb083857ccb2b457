import pytest

from benchscope.benchmark_id import AxisScale, BenchmarkId, ValueType
from benchscope.measurement import DurationFormatter, Throughput
from benchscope.summary_charts import (
    line_comparison,
    line_comparison_series_data,
    violin,
)

FORMATTER = DurationFormatter()


def _curve(function, value, sample, throughput=None):
    return (BenchmarkId("g", function, value, throughput), sample)


def test_series_are_sorted_by_input():
    curves = [
        _curve("a", "3", [30.0, 30.0]),
        _curve("a", "1", [10.0, 10.0]),
        _curve("a", "2", [20.0, 20.0]),
    ]
    unit, series = line_comparison_series_data(FORMATTER, curves)
    assert unit == "ns"
    assert series == [("a", [1.0, 2.0, 3.0], [10.0, 20.0, 30.0])]


def test_only_consecutive_curves_are_grouped():
    curves = [
        _curve("a", "1", [10.0, 10.0]),
        _curve("b", "1", [10.0, 10.0]),
        _curve("a", "2", [10.0, 10.0]),
    ]
    _, series = line_comparison_series_data(FORMATTER, curves)
    assert [name for name, _, _ in series] == ["a", "b", "a"]


def test_throughput_is_used_as_input():
    curves = [_curve("f", "x", [10.0, 10.0], Throughput.bytes(1024))]
    _, series = line_comparison_series_data(FORMATTER, curves)
    assert series[0][1] == [1024.0]


def test_means_are_scaled_to_common_unit():
    curves = [_curve("f", "1", [5000.0, 5000.0])]
    unit, series = line_comparison_series_data(FORMATTER, curves)
    assert unit == "us"
    assert series[0][2] == pytest.approx([5.0])


def test_curve_without_number_is_rejected():
    with pytest.raises(ValueError):
        line_comparison_series_data(FORMATTER, [_curve("f", "abc", [1.0, 2.0])])


def test_line_comparison_writes_svg(tmp_path):
    curves = [
        _curve("a", "1", [10.0, 11.0], Throughput.bytes(1)),
        _curve("a", "2", [20.0, 21.0], Throughput.bytes(2)),
    ]
    path = tmp_path / "out" / "lines.svg"
    line_comparison(FORMATTER, "g", curves, path, ValueType.BYTES, AxisScale.LINEAR)
    content = path.read_text()
    assert "g: Comparison" in content
    assert "Input Size (Bytes)" in content
    assert "Average time (ns)" in content


def test_line_comparison_logarithmic(tmp_path):
    curves = [_curve("a", "1", [10.0, 11.0]), _curve("a", "100", [200.0, 210.0])]
    path = tmp_path / "lines.svg"
    line_comparison(FORMATTER, "g", curves, path, ValueType.VALUE, AxisScale.LOGARITHMIC)
    assert "g: Comparison" in path.read_text()


def test_violin_writes_svg_with_every_title(tmp_path):
    curves = [
        _curve("a", "1", [10.0, 12.0, 14.0, 11.0]),
        _curve("b", "1", [20.0, 22.0, 25.0, 21.0]),
    ]
    path = tmp_path / "violin.svg"
    violin(FORMATTER, "g", curves, path, AxisScale.LINEAR)
    content = path.read_text()
    assert "g: Violin plot" in content
    assert "g/a/1" in content
    assert "g/b/1" in content


def test_violin_logarithmic(tmp_path):
    curves = [_curve("a", "1", [10.0, 12.0, 14.0, 11.0])]
    path = tmp_path / "violin.svg"
    violin(FORMATTER, "g", curves, path, AxisScale.LOGARITHMIC)
    assert "g: Violin plot" in path.read_text()


def test_violin_needs_positive_values(tmp_path):
    curves = [_curve("a", "1", [-5.0, -4.0, -3.0])]
    with pytest.raises(ValueError):
        violin(FORMATTER, "g", curves, tmp_path / "v.svg", AxisScale.LINEAR)


def test_violin_needs_curves(tmp_path):
    with pytest.raises(ValueError):
        violin(FORMATTER, "g", [], tmp_path / "v.svg", AxisScale.LINEAR)