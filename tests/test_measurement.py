import pytest

from benchscope.measurement import (
    DurationFormatter,
    Throughput,
    ThroughputKind,
    ValueFormatter,
    WallTime,
)


@pytest.fixture
def fmt():
    return DurationFormatter()


@pytest.mark.parametrize(
    "typical, unit",
    [
        (0.5, "ps"),
        (1.0, "ns"),
        (500.0, "ns"),
        (1e3, "us"),
        (5e5, "us"),
        (5e8, "ms"),
        (1e9, "s"),
        (5e10, "s"),
    ],
)
def test_scale_values_chooses_unit(fmt, typical, unit):
    result_unit, _ = fmt.scale_values(typical, [typical])
    assert result_unit == unit


def test_scale_values_preserves_ratios(fmt):
    values = [2000.0, 4000.0, 8000.0]
    unit, scaled = fmt.scale_values(4000.0, values)
    assert unit == "us"
    assert scaled[1] / scaled[0] == pytest.approx(2.0)
    assert scaled[2] / scaled[1] == pytest.approx(2.0)
    assert scaled[0] * 1e3 == pytest.approx(values[0])


def test_scale_values_does_not_modify_input(fmt):
    values = [1500.0, 2500.0]
    fmt.scale_values(1500.0, values)
    assert values == [1500.0, 2500.0]


def test_scale_for_machines_is_nanoseconds(fmt):
    unit, scaled = fmt.scale_for_machines([1.5, 2.5])
    assert unit == "ns"
    assert scaled == [1.5, 2.5]


@pytest.mark.parametrize(
    "amount, unit",
    [
        (10, "  B/s"),
        (2048, "KiB/s"),
        (5 * 1024 * 1024, "MiB/s"),
        (3 * 1024 * 1024 * 1024, "GiB/s"),
    ],
)
def test_bytes_throughput_units(fmt, amount, unit):
    result_unit, _ = fmt.scale_throughputs(1e9, Throughput.bytes(amount), [1e9])
    assert result_unit == unit


def test_bytes_throughput_value(fmt):
    unit, (value,) = fmt.scale_throughputs(1e9, Throughput.bytes(1024), [1e9])
    assert unit == "KiB/s"
    assert value == pytest.approx(1.0)


@pytest.mark.parametrize(
    "amount, unit",
    [
        (10, " elem/s"),
        (5000, "Kelem/s"),
        (5_000_000, "Melem/s"),
        (5_000_000_000, "Gelem/s"),
    ],
)
def test_elements_throughput_units(fmt, amount, unit):
    result_unit, _ = fmt.scale_throughputs(1e9, Throughput.elements(amount), [1e9])
    assert result_unit == unit


def test_throughput_is_inverse_of_time(fmt):
    _, (fast, slow) = fmt.scale_throughputs(
        1e9, Throughput.elements(1000), [1e9, 2e9]
    )
    assert fast == pytest.approx(2 * slow)


def test_format_value_contains_unit(fmt):
    text = fmt.format_value(1500.0)
    assert text.endswith(" us")
    number = text[: -len(" us")]
    assert len(number) >= 6
    assert float(number) == pytest.approx(1.5)


def test_format_throughput_contains_unit(fmt):
    text = fmt.format_throughput(Throughput.bytes(2048), 1e9)
    assert text.endswith(" KiB/s")
    assert float(text.split()[0]) == pytest.approx(2.0)


def test_throughput_constructors():
    assert Throughput.bytes(3).kind is ThroughputKind.BYTES
    assert Throughput.elements(3).kind is ThroughputKind.ELEMENTS
    assert Throughput.bytes(3) == Throughput(ThroughputKind.BYTES, 3)
    assert repr(Throughput.bytes(3)) == "Bytes(3)"


def test_throughput_rejects_negative():
    with pytest.raises(ValueError):
        Throughput.bytes(-1)


def test_throughput_rejects_non_integer():
    with pytest.raises(TypeError):
        Throughput.elements(1.5)


def test_value_formatter_is_abstract():
    with pytest.raises(TypeError):
        ValueFormatter()


def test_wall_time_measures_nonnegative_interval():
    wt = WallTime()
    start = wt.start()
    elapsed = wt.end(start)
    assert elapsed >= 0
    assert wt.to_f64(elapsed) == float(elapsed)


def test_wall_time_add_and_zero():
    wt = WallTime()
    assert wt.add(wt.zero(), 42) == 42
    assert wt.add(10, 32) == 42
    assert wt.to_f64(wt.zero()) == 0.0


def test_wall_time_formatter_uses_nanoseconds():
    unit, _ = WallTime().formatter().scale_for_machines([1.0])
    assert unit == "ns"