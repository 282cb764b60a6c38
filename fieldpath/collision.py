"""
Footprint geometry: oriented robot rectangles, path sweeps, center-line and
field-bound checks, convex hull.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import CENTER_LINE_X_IN, FIELD_MAX_IN, FIELD_MIN_IN
from .geom import rotate
from .progress import Pose, preview_pose
from .heading import start_heading

Vec = Tuple[float, float]


@dataclass(frozen=True)
class Footprint:
    pose: Pose
    corners: Tuple[Vec, Vec, Vec, Vec]


def corners(center: Vec, length: float, width: float, heading_deg: float) -> List[Vec]:
    """Robot rectangle corners: front-left, front-right, back-right, back-left."""
    hl, hw = float(length) * 0.5, float(width) * 0.5
    local = [(hl, hw), (hl, -hw), (-hl, -hw), (-hl, hw)]
    out = []
    for lx, ly in local:
        rx, ry = rotate((lx, ly), heading_deg)
        out.append((center[0] + rx, center[1] + ry))
    return out


def footprint_at(pose: Pose, length: float, width: float) -> Footprint:
    return Footprint(pose, tuple(corners(pose.xy, length, width, pose.heading)))


def sweep_footprints(path, length: float, width: float, samples_per_segment: int = 20,
                     segment_index: Optional[int] = None) -> List[Footprint]:
    """
    Footprints at uniform raw t over every segment, or only `segment_index`.
    Tangential headings carry the previous sample through stationary points.
    """
    steps = max(1, int(samples_per_segment))
    if segment_index is not None:
        if not 0 <= segment_index < len(path.lines):
            return []
        indices = [segment_index]
    else:
        indices = range(len(path.lines))
    out: List[Footprint] = []
    prev = start_heading(path)
    if segment_index is not None and segment_index > 0:
        prev = preview_pose(path, segment_index - 1, 1.0, prev).heading
    for i in indices:
        for k in range(steps + 1):
            pose = preview_pose(path, i, k / steps, prev)
            prev = pose.heading
            out.append(footprint_at(pose, length, width))
    return out


def crosses_center_line(path, length: float, width: float, center_x: float = CENTER_LINE_X_IN,
                        samples_per_segment: int = 100) -> bool:
    """
    True when any footprint along the path reaches past the center line from
    the side the start point is on.
    """
    start_left = path.start_point.x < center_x
    for fp in sweep_footprints(path, length, width, samples_per_segment):
        for x, _ in fp.corners:
            if (x > center_x) if start_left else (x < center_x):
                return True
    return False


def footprint_out_of_bounds(pts: Sequence[Vec], pad: float = 0.0,
                            lo: float = FIELD_MIN_IN, hi: float = FIELD_MAX_IN) -> bool:
    """Check if any corner is outside the field."""
    for (x, y) in pts:
        if x < lo + pad or x > hi - pad or y < lo + pad or y > hi - pad:
            return True
    return False


def first_out_of_bounds(footprints: Sequence[Footprint], pad: float = 0.0) -> Optional[Footprint]:
    for fp in footprints:
        if footprint_out_of_bounds(fp.corners, pad):
            return fp
    return None


def polygons_intersect(polyA, polyB, eps=1e-9):
    """SAT collision test between convex polygons."""
    if not polyA or not polyB:
        return False

    def edges(poly):
        n = len(poly)
        for i in range(n):
            x1, y1 = poly[i]
            x2, y2 = poly[(i + 1) % n]
            yield (x2 - x1, y2 - y1)

    def axis_normal(dx, dy):
        L = (dx * dx + dy * dy) ** 0.5
        return (0.0, 0.0) if L <= 1e-12 else (-dy / L, dx / L)

    def project(poly, ax, ay):
        vals = [x * ax + y * ay for (x, y) in poly]
        return (min(vals), max(vals))

    for poly in (polyA, polyB):
        for dx, dy in edges(poly):
            ax, ay = axis_normal(dx, dy)
            if ax == 0.0 and ay == 0.0:
                continue
            minA, maxA = project(polyA, ax, ay)
            minB, maxB = project(polyB, ax, ay)
            if maxA < minB - eps or maxB < minA - eps:
                return False
    return True


def _cross(o: Vec, a: Vec, b: Vec) -> float:
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def convex_hull(points: Sequence[Vec]) -> List[Vec]:
    """
    Graham scan, counter-clockwise from the lowest (then leftmost) point.
    Collinear points are dropped, so a collinear set reduces to its two extremes.
    """
    uniq = list(dict.fromkeys((float(p[0]), float(p[1])) for p in points))
    if len(uniq) < 3:
        return uniq
    start = min(uniq, key=lambda p: (p[1], p[0]))
    rest = [p for p in uniq if p != start]

    def polar_key(p):
        dx, dy = p[0] - start[0], p[1] - start[1]
        return (math.atan2(dy, dx), dx * dx + dy * dy)

    rest.sort(key=polar_key)
    stack: List[Vec] = [start]
    for p in rest:
        while len(stack) >= 2 and _cross(stack[-2], stack[-1], p) <= 0:
            stack.pop()
        stack.append(p)
    return stack
