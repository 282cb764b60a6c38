"""
Curve evaluation for path segments.
A segment is evaluated over [start, *control_points, end]; the number of control
points picks straight line, quadratic (promoted to cubic), cubic or general Bezier.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from .geom import lerp_point

Vec = Tuple[float, float]

RENDER_SAMPLES = 100


def quadratic_to_cubic(p0: Vec, p1: Vec, p2: Vec) -> Tuple[Vec, Vec, Vec, Vec]:
    """Exact cubic form of the quadratic (p0, p1, p2)."""
    c1 = (p0[0] + 2.0 / 3.0 * (p1[0] - p0[0]), p0[1] + 2.0 / 3.0 * (p1[1] - p0[1]))
    c2 = (p2[0] + 2.0 / 3.0 * (p1[0] - p2[0]), p2[1] + 2.0 / 3.0 * (p1[1] - p2[1]))
    return p0, c1, c2, p2


def bezier_cubic(p0, p1, p2, p3, t):
    """
    Cubic Bezier interpolation between 4 control points.
    p0 and p3 are endpoints, p1 and p2 are control handles.
    """
    mt = 1 - t
    mt2 = mt * mt
    mt3 = mt2 * mt
    t2 = t * t
    t3 = t2 * t

    x = mt3 * p0[0] + 3 * mt2 * t * p1[0] + 3 * mt * t2 * p2[0] + t3 * p3[0]
    y = mt3 * p0[1] + 3 * mt2 * t * p1[1] + 3 * mt * t2 * p2[1] + t3 * p3[1]
    return (x, y)


def de_casteljau(points: Sequence[Vec], t: float) -> Vec:
    """General-degree Bezier by repeated linear interpolation."""
    pts = [tuple(p) for p in points]
    while len(pts) > 1:
        pts = [lerp_point(pts[i], pts[i + 1], t) for i in range(len(pts) - 1)]
    return pts[0]


def evaluate(t: float, points: Sequence[Vec]) -> Vec:
    """
    Point at parameter t on the curve through [segment_start, *controls, segment_end].
    Callers clamp t to [0, 1].
    """
    n = len(points)
    if n == 0:
        return (0.0, 0.0)
    if n == 1:
        return (points[0][0], points[0][1])
    if n == 2:
        return lerp_point(points[0], points[1], t)
    if n == 3:
        return bezier_cubic(*quadratic_to_cubic(points[0], points[1], points[2]), t)
    if n == 4:
        return bezier_cubic(points[0], points[1], points[2], points[3], t)
    return de_casteljau(points, t)


def segment_points(path, index: int) -> List[Vec]:
    """Evaluator input for segment `index` of a Path."""
    seg = path.lines[index]
    start = path.segment_start(index)
    return [start.xy] + [c.xy for c in seg.control_points] + [seg.end_point.xy]


def sample_curve(points: Sequence[Vec], samples: int = RENDER_SAMPLES) -> List[Vec]:
    """Polyline of samples+1 points at uniform t."""
    if len(points) == 2:
        return [tuple(points[0]), tuple(points[1])]
    samples = max(1, int(samples))
    return [evaluate(i / samples, points) for i in range(samples + 1)]


def path_polyline(path, samples: int = RENDER_SAMPLES) -> List[Vec]:
    """Whole-path polyline, shared endpoints emitted once."""
    out: List[Vec] = []
    for i in range(len(path.lines)):
        pts = sample_curve(segment_points(path, i), samples)
        out.extend(pts if not out else pts[1:])
    return out
