"""Shared chart settings, figure creation and kernel density estimation."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, Union

import matplotlib
import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

__all__ = [
    "DEFAULT_FONT",
    "TITLE_FONT_SIZE",
    "KDE_POINTS",
    "SIZE",
    "POINT_SIZE",
    "DPI",
    "MARKER_SIZE",
    "DARK_BLUE",
    "DARK_ORANGE",
    "DARK_RED",
    "convert_size",
    "kde_sweep",
    "kde_sweep_and_estimate",
    "new_figure",
]

DEFAULT_FONT = "sans-serif"
TITLE_FONT_SIZE = 20
KDE_POINTS = 500
SIZE = (960, 540)
POINT_SIZE = 3
DPI = 100
# Marker diameter in points for a circle of POINT_SIZE pixels radius.
MARKER_SIZE = POINT_SIZE * 2 * 72 / DPI

DARK_BLUE = "#1f78b4"
DARK_ORANGE = "#ff7f00"
DARK_RED = "#e31a1c"

_CHUNK = 8192


def convert_size(size: Optional[tuple[float, float]]) -> Optional[tuple[int, int]]:
    """Convert a (width, height) pair to integer pixels, passing None through."""
    if size is None:
        return None
    width, height = size
    return int(width), int(height)


def _checked_sample(sample: Iterable[float]) -> np.ndarray:
    values = np.asarray(list(sample), dtype=float).ravel()
    if values.size < 2:
        raise ValueError("a sample needs at least two values")
    if np.isnan(values).any():
        raise ValueError("a sample must not contain NaN")
    return values


def _bandwidth(values: np.ndarray) -> float:
    """Silverman's rule of thumb for a Gaussian kernel."""
    sigma = float(np.std(values, ddof=1))
    if not math.isfinite(sigma) or sigma == 0.0:
        raise ValueError("a sample without spread has no density estimate")
    return sigma * (4.0 / 3.0 / values.size) ** 0.2


def _density(values: np.ndarray, bandwidth: float, points: np.ndarray) -> np.ndarray:
    total = np.zeros(points.shape, dtype=float)
    for chunk in np.array_split(values, max(1, math.ceil(values.size / _CHUNK))):
        z = (points[:, None] - chunk[None, :]) / bandwidth
        total += np.exp(-0.5 * z * z).sum(axis=1)
    return total / (values.size * bandwidth * math.sqrt(2.0 * math.pi))


def _prepare(
    sample: Iterable[float],
    npoints: int,
    bounds: Optional[tuple[float, float]],
) -> tuple[np.ndarray, float, np.ndarray]:
    if npoints < 2:
        raise ValueError("a sweep needs at least two points")
    values = _checked_sample(sample)
    bandwidth = _bandwidth(values)
    if bounds is None:
        left = float(values.min()) - 3.0 * bandwidth
        right = float(values.max()) + 3.0 * bandwidth
    else:
        left, right = bounds
    return values, bandwidth, np.linspace(left, right, npoints)


def kde_sweep(
    sample: Iterable[float],
    npoints: int,
    bounds: Optional[tuple[float, float]] = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Evaluate a Gaussian kernel density estimate at evenly spaced points.

    Without bounds the points span the sample widened by three bandwidths.
    """
    values, bandwidth, xs = _prepare(sample, npoints, bounds)
    return xs, _density(values, bandwidth, xs)


def kde_sweep_and_estimate(
    sample: Iterable[float],
    npoints: int,
    bounds: Optional[tuple[float, float]],
    point: float,
) -> tuple[np.ndarray, np.ndarray, float]:
    """Like ``kde_sweep``, also returning the density at ``point``."""
    values, bandwidth, xs = _prepare(sample, npoints, bounds)
    ys = _density(values, bandwidth, xs)
    estimate = float(_density(values, bandwidth, np.array([float(point)]))[0])
    return xs, ys, estimate


def new_figure(size: Optional[tuple[int, int]] = None) -> Figure:
    """A figure of the given size in pixels, or of the default size."""
    width, height = size if size is not None else SIZE
    figure = Figure(figsize=(width / DPI, height / DPI), dpi=DPI)
    FigureCanvasAgg(figure)
    return figure


def _fit_axis(
    set_limits: Callable[[float, float], object],
    values: Iterable[float],
    log: bool = False,
    start: Optional[float] = None,
) -> None:
    """Fit an axis to the range of the values, leaving degenerate ranges to autoscale."""
    collected = [float(v) for v in values]
    if not collected:
        return
    low = min(collected) if start is None else start
    high = max(collected)
    if low < high and not (log and low <= 0.0):
        set_limits(low, high)


def _save_svg(figure: Figure, path: Union[str, Path]) -> Path:
    """Write the figure as SVG, creating parent directories; text stays text."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with matplotlib.rc_context({"svg.fonttype": "none"}):
        figure.savefig(target, format="svg")
    return target


def _sequence(values: Sequence[float]) -> list[float]:
    return [float(v) for v in values]