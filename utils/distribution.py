"""
Donut chart layout and pointer hit-testing for the portfolio distribution.

Angles are in radians in screen coordinates (y grows downward), so an
increasing angle runs clockwise. The first segment starts at 12 o'clock.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from models.portfolio import ChartSegment, EnrichedAsset

logger = logging.getLogger(__name__)

START_ANGLE = -math.pi / 2
FULL_TURN = 2 * math.pi

DEFAULT_PALETTE = (
    '#3b82f6', '#8b5cf6', '#ec4899', '#ef4444', '#f97316',
    '#f59e0b', '#10b981', '#06b6d4', '#6366f1', '#a855f7',
)


@dataclass(frozen=True)
class RingGeometry:
    """Position and size of the ring on the drawing surface"""
    center_x: float
    center_y: float
    outer_radius: float
    inner_radius_ratio: float = 0.6

    @property
    def inner_radius(self) -> float:
        return self.outer_radius * self.inner_radius_ratio

    @classmethod
    def for_size(cls, size: float, inner_radius_ratio: float = 0.6) -> 'RingGeometry':
        """Ring centred in a square canvas of the given size"""
        half = size / 2
        return cls(center_x=half, center_y=half, outer_radius=half, inner_radius_ratio=inner_radius_ratio)

    def point_at(self, angle: float, radius: float) -> Tuple[float, float]:
        return (self.center_x + radius * math.cos(angle),
                self.center_y + radius * math.sin(angle))


@dataclass(frozen=True)
class WedgePrimitive:
    """Filled ring sector ready to be drawn"""
    segment: ChartSegment
    path: str


def layout(assets: Sequence[EnrichedAsset], palette: Sequence[str] = DEFAULT_PALETTE) -> List[ChartSegment]:
    """
    Split the ring into one segment per asset with a positive value.

    Segments are ordered by value, largest first; equal values keep their
    input order. Colors cycle through the palette by position, so they follow
    the ordering and move when the ordering changes.
    """
    positive = [asset for asset in assets if (asset.total_value or 0) > 0]
    total = sum(asset.total_value for asset in positive)
    if total <= 0:
        return []

    ordered = sorted(positive, key=lambda a: a.total_value, reverse=True)
    end_of_ring = START_ANGLE + FULL_TURN

    segments = []
    start = START_ANGLE
    for index, asset in enumerate(ordered):
        share = asset.total_value / total
        end = start + share * FULL_TURN
        if index == len(ordered) - 1:
            end = end_of_ring  # close the ring exactly
        segments.append(ChartSegment(
            asset_id=asset.id,
            name=asset.name,
            value=asset.total_value,
            start_angle=start,
            end_angle=end,
            percentage=share * 100,
            color=palette[index % len(palette)]
        ))
        start = end

    return segments


def hit_test(point: Tuple[float, float], segments: Sequence[ChartSegment],
             geometry: RingGeometry) -> Optional[ChartSegment]:
    """
    Find the segment under a pointer position.

    Returns None for points in the hole, outside the ring, or exactly on
    either radius. A point on a shared edge belongs to the segment that
    starts there.
    """
    if not segments:
        return None

    dx = point[0] - geometry.center_x
    dy = point[1] - geometry.center_y
    distance = math.hypot(dx, dy)
    if not geometry.inner_radius < distance < geometry.outer_radius:
        return None

    angle = math.atan2(dy, dx)
    if angle < START_ANGLE:
        angle += FULL_TURN

    for segment in segments:
        if segment.start_angle <= angle < segment.end_angle:
            return segment

    logger.debug(f"No segment at angle {angle:.6f}")
    return None


def wedge_path(segment: ChartSegment, geometry: RingGeometry) -> str:
    """SVG path for one ring sector: outer arc clockwise, inner arc back"""
    outer = geometry.outer_radius
    inner = geometry.inner_radius
    large_arc = 1 if segment.span > math.pi else 0

    if segment.span >= FULL_TURN - 1e-12:
        # A single segment is a full annulus; SVG arcs cannot start and end on the same point
        return _annulus_path(geometry)

    ox1, oy1 = geometry.point_at(segment.start_angle, outer)
    ox2, oy2 = geometry.point_at(segment.end_angle, outer)
    ix2, iy2 = geometry.point_at(segment.end_angle, inner)
    ix1, iy1 = geometry.point_at(segment.start_angle, inner)

    return (f"M{ox1:.2f},{oy1:.2f} "
            f"A{outer:.2f},{outer:.2f} 0 {large_arc} 1 {ox2:.2f},{oy2:.2f} "
            f"L{ix2:.2f},{iy2:.2f} "
            f"A{inner:.2f},{inner:.2f} 0 {large_arc} 0 {ix1:.2f},{iy1:.2f} Z")


def _annulus_path(geometry: RingGeometry) -> str:
    cx, cy = geometry.center_x, geometry.center_y
    outer, inner = geometry.outer_radius, geometry.inner_radius
    return (f"M{cx:.2f},{cy - outer:.2f} "
            f"A{outer:.2f},{outer:.2f} 0 1 1 {cx:.2f},{cy + outer:.2f} "
            f"A{outer:.2f},{outer:.2f} 0 1 1 {cx:.2f},{cy - outer:.2f} "
            f"M{cx:.2f},{cy - inner:.2f} "
            f"A{inner:.2f},{inner:.2f} 0 1 0 {cx:.2f},{cy + inner:.2f} "
            f"A{inner:.2f},{inner:.2f} 0 1 0 {cx:.2f},{cy - inner:.2f} Z")


def wedge_primitives(segments: Sequence[ChartSegment], geometry: RingGeometry) -> List[WedgePrimitive]:
    """Drawing primitives for every segment, in ring order"""
    return [WedgePrimitive(segment=segment, path=wedge_path(segment, geometry)) for segment in segments]
