"""
Path data model: points with a heading mode, segments, paths and named robot paths.
Serialization uses the camelCase keys of the trajectory file.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .config import DEFAULT_SEGMENT_COLOR


class TrajectoryLoadError(ValueError):
    pass


@dataclass(frozen=True)
class LinearHeading:
    start_deg: float = 0.0
    end_deg: float = 0.0


@dataclass(frozen=True)
class ConstantHeading:
    degrees: float = 0.0


@dataclass(frozen=True)
class TangentialHeading:
    reverse: bool = False


Heading = Union[LinearHeading, ConstantHeading, TangentialHeading]


@dataclass
class BasePoint:
    x: float
    y: float

    @property
    def xy(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass
class Point(BasePoint):
    heading: Heading = field(default_factory=TangentialHeading)


@dataclass
class Segment:
    end_point: Point
    control_points: List[BasePoint] = field(default_factory=list)
    name: str = "Path"
    color: str = DEFAULT_SEGMENT_COLOR
    wait_time: float = 0.0


# Trajectory files store segments under "lines"
Line = Segment


@dataclass
class Path:
    start_point: Point
    lines: List[Segment] = field(default_factory=list)

    def segment_start(self, index: int) -> Point:
        """Start of segment `index`: shared start point or the previous end point."""
        return self.start_point if index <= 0 else self.lines[index - 1].end_point

    def clone(self) -> "Path":
        return copy.deepcopy(self)


@dataclass
class RobotPath:
    id: str
    name: str
    color: str
    start_point: Point
    lines: List[Segment] = field(default_factory=list)
    visible: bool = True

    def as_path(self) -> Path:
        return Path(copy.deepcopy(self.start_point), copy.deepcopy(self.lines))


# ---------------- serialization ----------------

def heading_to_dict(h: Heading) -> dict:
    if isinstance(h, LinearHeading):
        return {"heading": "linear", "startDeg": h.start_deg, "endDeg": h.end_deg}
    if isinstance(h, ConstantHeading):
        return {"heading": "constant", "degrees": h.degrees}
    if isinstance(h, TangentialHeading):
        return {"heading": "tangential", "reverse": h.reverse}
    raise TypeError(f"Unknown heading mode: {h!r}")


def heading_from_dict(d: dict) -> Heading:
    mode = d.get("heading", "tangential")
    try:
        if mode == "linear":
            return LinearHeading(float(d["startDeg"]), float(d["endDeg"]))
        if mode == "constant":
            return ConstantHeading(float(d["degrees"]))
    except (KeyError, TypeError, ValueError) as e:
        raise TrajectoryLoadError(f"Bad {mode} heading: {e}") from e
    if mode == "tangential":
        reverse = d.get("reverse", False)
        if not isinstance(reverse, bool):
            raise TrajectoryLoadError(f"reverse must be true or false, got {reverse!r}")
        return TangentialHeading(reverse)
    raise TrajectoryLoadError(f"Unknown heading mode: {mode!r}")


def _coords(d, what: str) -> Tuple[float, float]:
    if not isinstance(d, dict):
        raise TrajectoryLoadError(f"{what} must be an object")
    try:
        return float(d["x"]), float(d["y"])
    except (KeyError, TypeError, ValueError) as e:
        raise TrajectoryLoadError(f"{what} needs numeric x and y") from e


def point_to_dict(p: Point) -> dict:
    return {"x": p.x, "y": p.y, **heading_to_dict(p.heading)}


def point_from_dict(d: dict, what: str = "point") -> Point:
    x, y = _coords(d, what)
    return Point(x, y, heading_from_dict(d))


def segment_to_dict(seg: Segment) -> dict:
    out = {
        "name": seg.name,
        "color": seg.color,
        "endPoint": point_to_dict(seg.end_point),
        "controlPoints": [{"x": c.x, "y": c.y} for c in seg.control_points],
    }
    if seg.wait_time > 0:
        out["waitTime"] = seg.wait_time
    return out


def segment_from_dict(d: dict, index: int = 0) -> Segment:
    if not isinstance(d, dict) or "endPoint" not in d:
        raise TrajectoryLoadError(f"Line {index} is missing endPoint")
    controls = d.get("controlPoints", []) or []
    if not isinstance(controls, list):
        raise TrajectoryLoadError(f"Line {index} controlPoints must be a list")
    wait = d.get("waitTime", 0.0) or 0.0
    try:
        wait = max(0.0, float(wait))
    except (TypeError, ValueError) as e:
        raise TrajectoryLoadError(f"Line {index} has a bad waitTime") from e
    return Segment(
        end_point=point_from_dict(d["endPoint"], f"line {index} endPoint"),
        control_points=[BasePoint(*_coords(c, f"line {index} control point")) for c in controls],
        name=str(d.get("name", f"Path {index + 1}")),
        color=str(d.get("color", DEFAULT_SEGMENT_COLOR)),
        wait_time=wait,
    )


def path_to_dict(path: Path) -> dict:
    return {
        "startPoint": point_to_dict(path.start_point),
        "lines": [segment_to_dict(s) for s in path.lines],
    }


def path_from_dict(d: dict) -> Path:
    """Build a Path; raises TrajectoryLoadError on missing or malformed fields."""
    if not isinstance(d, dict):
        raise TrajectoryLoadError("Trajectory must be a JSON object")
    if "startPoint" not in d:
        raise TrajectoryLoadError("Missing startPoint")
    lines = d.get("lines")
    if not isinstance(lines, list) or not lines:
        raise TrajectoryLoadError("Missing or empty lines")
    return Path(
        start_point=point_from_dict(d["startPoint"], "startPoint"),
        lines=[segment_from_dict(s, i) for i, s in enumerate(lines)],
    )


def robot_path_from_path(path: Path, id: str, name: str, color: str, visible: bool = True) -> RobotPath:
    cp = path.clone()
    return RobotPath(id=id, name=name, color=color, start_point=cp.start_point, lines=cp.lines, visible=visible)


def default_path() -> Path:
    """Single straight segment across the left half of the field."""
    return Path(
        start_point=Point(24.0, 24.0, LinearHeading(0.0, 0.0)),
        lines=[Segment(end_point=Point(48.0, 72.0, LinearHeading(0.0, 90.0)), name="Path 1")],
    )


def new_segment_after(path: Path, name: Optional[str] = None) -> Segment:
    """Segment that continues from the current last end point."""
    last = path.lines[-1].end_point if path.lines else path.start_point
    nx = min(max(last.x + 24.0, 0.0), 144.0)
    return Segment(
        end_point=Point(nx, last.y, TangentialHeading()),
        name=name or f"Path {len(path.lines) + 1}",
    )
