"""
Maps an overall path percentage onto (segment, local parameter) and evaluates
the robot pose there.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .curve import evaluate, segment_points
from .geom import ease_in_out_quad
from .heading import heading_at, start_heading


@dataclass(frozen=True)
class Pose:
    x: float
    y: float
    heading: float
    segment_index: int = 0
    t: float = 0.0

    @property
    def xy(self) -> Tuple[float, float]:
        return (self.x, self.y)


def segment_progress(percent: float, n_segments: int) -> Tuple[int, float]:
    """(segment index, local t in [0, 1]) for an overall percent in [0, 100]."""
    if n_segments <= 0:
        return 0, 0.0
    total = n_segments * max(0.0, percent) / 100.0
    whole = math.floor(total)
    if whole >= n_segments:
        # exactly 100 lands on the end of the last segment, not its start
        return n_segments - 1, 1.0
    return int(whole), total - whole


def segment_index_for(percent: float, n_segments: int) -> int:
    return segment_progress(percent, n_segments)[0]


def preview_pose(path, index: int, t: float, previous: Optional[float] = None) -> Pose:
    """Pose on segment `index` at raw parameter t (no easing)."""
    seg = path.lines[index]
    x, y = evaluate(t, segment_points(path, index))
    h = heading_at(seg, path.segment_start(index), t, previous)
    return Pose(x, y, h, index, t)


def pose_at(path, percent: float, previous: Optional[float] = None) -> Pose:
    """Robot pose at an overall motion percent, eased within each segment."""
    if not path.lines:
        sp = path.start_point
        return Pose(sp.x, sp.y, start_heading(path), 0, 0.0)
    index, local = segment_progress(percent, len(path.lines))
    t = ease_in_out_quad(local)
    if previous is None:
        previous = start_heading(path)
    return preview_pose(path, index, t, previous)
