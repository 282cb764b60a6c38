"""
Heading model. All headings use the field frame: 0 deg along +x,
counter-clockwise positive, normalized to [0, 360).
"""

from __future__ import annotations

from typing import Optional

from .curve import evaluate
from .geom import heading_from_points, normalize_deg, shortest_rotation
from .model import ConstantHeading, LinearHeading, Point, Segment, TangentialHeading

TANGENT_STEP = 0.01


def _segment_curve(segment: Segment, preceding: Point):
    return [preceding.xy] + [c.xy for c in segment.control_points] + [segment.end_point.xy]


def tangent_heading(points, t: float, reverse: bool = False, previous: Optional[float] = None) -> float:
    """Direction of travel at t; holds `previous` where the curve is stationary."""
    if t + TANGENT_STEP <= 1.0:
        a, b = evaluate(t, points), evaluate(t + TANGENT_STEP, points)
    else:
        a, b = evaluate(max(0.0, t - TANGENT_STEP), points), evaluate(t, points)
    dx, dy = b[0] - a[0], b[1] - a[1]
    if dx == 0.0 and dy == 0.0:
        return normalize_deg(previous) if previous is not None else 0.0
    h = heading_from_points(a, b)
    return normalize_deg(h + 180.0) if reverse else h


def heading_at(segment: Segment, preceding: Point, t: float, previous: Optional[float] = None) -> float:
    """
    Heading on `segment` at parameter t.
    Pass the eased parameter for robot motion and raw t for previews.
    """
    mode = segment.end_point.heading
    if isinstance(mode, LinearHeading):
        return shortest_rotation(mode.start_deg, mode.end_deg, t)
    if isinstance(mode, ConstantHeading):
        return normalize_deg(mode.degrees)
    if isinstance(mode, TangentialHeading):
        return tangent_heading(_segment_curve(segment, preceding), t, mode.reverse, previous)
    raise TypeError(f"Unknown heading mode: {mode!r}")


def start_heading(path) -> float:
    """Robot heading before any motion."""
    mode = path.start_point.heading
    if isinstance(mode, LinearHeading):
        return normalize_deg(mode.start_deg)
    if isinstance(mode, ConstantHeading):
        return normalize_deg(mode.degrees)
    if path.lines:
        return heading_at(path.lines[0], path.start_point, 0.0)
    return 0.0
