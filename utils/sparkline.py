"""
Sparkline geometry: maps a price series onto a fixed pixel viewport.

The renderer produces plain drawing primitives (stroke vertices and an
optional closed fill polygon) so any host can draw them: SVG paths for the
JSON API, plotly traces for the HTML page.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

Point = Tuple[float, float]


@dataclass(frozen=True)
class Viewport:
    """Drawing area in device-independent pixels"""
    width: float
    height: float


@dataclass(frozen=True)
class SparklineStyle:
    """Stroke and fill settings"""
    stroke_width: float = 1.5
    fill_opacity: float = 0.2
    color: str = '#3b82f6'
    padding: float = 4.0  # Total vertical padding, split evenly top and bottom


@dataclass(frozen=True)
class SparklineGeometry:
    """Drawing primitives for one sparkline"""
    points: Tuple[Point, ...]
    fill: Optional[Tuple[Point, ...]]
    viewport: Viewport
    stroke_width: float
    fill_opacity: float
    color: str

    def stroke_path(self) -> str:
        """SVG path data for the line"""
        return _path(self.points, close=False)

    def fill_path(self) -> Optional[str]:
        """SVG path data for the area under the line, if filled"""
        if self.fill is None:
            return None
        return _path(self.fill, close=True)

    def fill_color(self) -> str:
        """Stroke color with the fill opacity appended as a hex alpha byte"""
        alpha = int(round(self.fill_opacity * 255))
        return f"{self.color}{alpha:02x}"

    def to_dict(self):
        return {
            'width': self.viewport.width,
            'height': self.viewport.height,
            'points': [list(p) for p in self.points],
            'stroke_path': self.stroke_path(),
            'fill_path': self.fill_path(),
            'stroke_width': self.stroke_width,
            'fill_opacity': self.fill_opacity,
            'color': self.color,
            'fill_color': self.fill_color() if self.fill is not None else None,
        }


def _path(points: Sequence[Point], close: bool) -> str:
    commands = [f"{'M' if i == 0 else 'L'}{x:.2f},{y:.2f}" for i, (x, y) in enumerate(points)]
    if close:
        commands.append('Z')
    return ' '.join(commands)


def normalize(series: Sequence[float]) -> np.ndarray:
    """Scale samples into [0, 1]; a flat series sits at 0.5"""
    values = np.asarray(series, dtype=float)
    low = values.min()
    value_range = values.max() - low
    if value_range == 0:
        return np.full(values.shape, 0.5)
    return (values - low) / value_range


def render(
        series: Sequence[float],
        viewport: Viewport,
        style: SparklineStyle = SparklineStyle()
) -> Optional[SparklineGeometry]:
    """
    Compute the sparkline for a series.

    Args:
        series: Samples in chronological order
        viewport: Target drawing area
        style: Stroke/fill settings

    Returns:
        SparklineGeometry, or None when the series is empty
    """
    if series is None or len(series) == 0:
        return None

    count = len(series)
    if count == 1:
        xs = np.array([viewport.width / 2])
    else:
        xs = np.arange(count) / (count - 1) * viewport.width

    padding = style.padding
    ys = viewport.height - normalize(series) * (viewport.height - padding) - padding / 2

    points: List[Point] = [(float(x), float(y)) for x, y in zip(xs, ys)]

    fill = None
    if style.fill_opacity > 0:
        fill = tuple(points) + (
            (float(viewport.width), float(viewport.height)),
            (0.0, float(viewport.height)),
        )

    return SparklineGeometry(
        points=tuple(points),
        fill=fill,
        viewport=viewport,
        stroke_width=style.stroke_width,
        fill_opacity=style.fill_opacity,
        color=style.color,
    )
