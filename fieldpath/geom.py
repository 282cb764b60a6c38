# fieldpath/geom.py
from __future__ import annotations

import math
from typing import Tuple

Vec = Tuple[float, float]


def normalize_deg(deg: float) -> float:
    """Wrap an angle into [0, 360)."""
    d = float(deg) % 360.0
    return 0.0 if d == 360.0 else d


def angle_diff_deg(h0: float, h1: float) -> float:
    """Signed shortest rotation from h0 to h1, in (-180, 180]."""
    d = ((h1 - h0) % 360.0 + 360.0) % 360.0
    return d - 360.0 if d > 180.0 else d


def shortest_rotation(start_deg: float, end_deg: float, t: float) -> float:
    """
    Interpolate between two headings along the shorter arc.
    350 -> 10 passes through 0, never through 180.
    """
    if t <= 0.0:
        return normalize_deg(start_deg)
    if t >= 1.0:
        return normalize_deg(end_deg)
    return normalize_deg(start_deg + angle_diff_deg(start_deg, end_deg) * t)


def ease_in_out_quad(u: float) -> float:
    """Symmetric quadratic ease: accelerate over the first half, decelerate over the second."""
    if u < 0.5:
        return 2.0 * u * u
    v = 1.0 - u
    return 1.0 - 2.0 * v * v


def lerp(a: float, b: float, t: float) -> float:
    # (1-t)a + tb keeps both endpoints exact
    return (1.0 - t) * a + t * b


def lerp_point(p0: Vec, p1: Vec, t: float) -> Vec:
    return (lerp(p0[0], p1[0], t), lerp(p0[1], p1[1], t))


def rotate(local: Vec, heading_deg: float) -> Vec:
    """Rotate a local offset by heading (CCW positive)."""
    th = math.radians(heading_deg)
    s, c = math.sin(th), math.cos(th)
    return (local[0] * c - local[1] * s, local[0] * s + local[1] * c)


def heading_from_points(p0: Vec, p1: Vec) -> float:
    """Heading from p0 to p1 in the field frame (0=+x, CCW positive)."""
    return normalize_deg(math.degrees(math.atan2(p1[1] - p0[1], p1[0] - p0[0])))


def convert_heading_display(heading_deg: float) -> float:
    """
    Convert internal heading (0=+x, CCW positive) to the display convention
    used in the editor panels (0=up, clockwise positive).
    """
    return (90.0 - float(heading_deg)) % 360.0
