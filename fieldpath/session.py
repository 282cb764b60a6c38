"""
Editing session: owns the working path and everything derived from it.

Derived geometry is memoized and dropped on any edit through invalidate(); no
caller ever sees a half-applied edit because every mutation runs synchronously
before the next read.
"""

from __future__ import annotations

import copy
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .collision import (
    crosses_center_line, first_out_of_bounds, footprint_at, polygons_intersect, sweep_footprints, Footprint,
)
from .config import collision_flat, history_flat, playback_flat, robot_flat, DEFAULT_SEGMENT_COLOR
from .curve import path_polyline
from .history import HistoryEntry, HistoryManager
from .model import (
    BasePoint, Heading, Path, Point, RobotPath, Segment, TrajectoryLoadError,
    default_path, new_segment_after, robot_path_from_path,
)
from .optimizer import segment_from_waypoints
from .playback import PlaybackSession
from .progress import Pose, pose_at, segment_index_for
from .storage import load_trajectory, save_trajectory

Vec = Tuple[float, float]


class EditorSession:
    def __init__(self, cfg: Optional[dict] = None, path: Optional[Path] = None,
                 clock: Optional[Callable[[], float]] = None, scheduler=None):
        cfg = cfg or {}
        self.cfg = cfg
        rob = robot_flat(cfg)
        self.robot_width = float(rob["width"])
        self.robot_length = float(rob["length"])
        self.collision = collision_flat(cfg)
        self.path: Path = path.clone() if path is not None else default_path()
        self.history = HistoryManager(self._capture, self._restore,
                                      int(history_flat(cfg)["capacity"]))
        self.playback = PlaybackSession(lambda: self.path, float(playback_flat(cfg)["speed"]),
                                        clock=clock, scheduler=scheduler)
        self.robot_paths: List[RobotPath] = [
            robot_path_from_path(self.path, "path-1", "Path 1", DEFAULT_SEGMENT_COLOR)
        ]
        self.active_id = "path-1"
        self.load_error: Optional[str] = None
        self._cache: Dict[str, object] = {}
        self._dragging = False
        self._last_heading: Optional[float] = None
        self.history.save()

    # ---------------- history plumbing ----------------

    def _capture(self) -> HistoryEntry:
        return HistoryEntry(self.path.start_point, self.path.lines)

    def _restore(self, entry: HistoryEntry) -> None:
        self.path = Path(entry.start_point, entry.lines)
        self._changed()

    def _changed(self) -> None:
        self.invalidate()
        self._sync_active()
        if not self.playback.playing:
            self.playback.scrub_to(self.playback.percent)

    def invalidate(self) -> None:
        self._cache.clear()

    def commit(self) -> bool:
        """Record the current path as one undo step."""
        self._changed()
        return self.history.save()

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    # ---------------- edits ----------------

    def _point(self, index: int) -> Point:
        """Index 0 is the start point, i>0 the end of segment i-1."""
        return self.path.start_point if index == 0 else self.path.lines[index - 1].end_point

    def begin_drag(self) -> None:
        """Start of a pointer drag; intermediate moves are not committed."""
        self._dragging = True

    def end_drag(self) -> bool:
        self._dragging = False
        return self.commit()

    def _edit(self) -> bool:
        if self._dragging:
            self._changed()
            return False
        return self.commit()

    def move_point(self, index: int, x: float, y: float) -> bool:
        p = self._point(index)
        p.x, p.y = float(x), float(y)
        return self._edit()

    def move_control_point(self, segment_index: int, control_index: int, x: float, y: float) -> bool:
        cp = self.path.lines[segment_index].control_points[control_index]
        cp.x, cp.y = float(x), float(y)
        return self._edit()

    def set_start_point(self, point: Point) -> bool:
        self.path.start_point = copy.deepcopy(point)
        return self._edit()

    def set_heading(self, index: int, heading: Heading) -> bool:
        """Replace the heading mode of point `index` by reassigning the point."""
        p = self._point(index)
        np = Point(p.x, p.y, heading)
        if index == 0:
            self.path.start_point = np
        else:
            self.path.lines[index - 1].end_point = np
        return self._edit()

    def set_control_points(self, segment_index: int, points: Sequence[Vec]) -> bool:
        self.path.lines[segment_index].control_points = [BasePoint(float(x), float(y)) for x, y in points]
        return self._edit()

    def add_control_point(self, segment_index: int, x: float, y: float) -> bool:
        self.path.lines[segment_index].control_points.append(BasePoint(float(x), float(y)))
        return self._edit()

    def remove_control_point(self, segment_index: int, control_index: int) -> bool:
        cps = self.path.lines[segment_index].control_points
        if not 0 <= control_index < len(cps):
            return False
        del cps[control_index]
        return self._edit()

    def set_wait_time(self, segment_index: int, seconds: float) -> bool:
        self.path.lines[segment_index].wait_time = max(0.0, float(seconds))
        return self._edit()

    def add_segment(self, segment: Optional[Segment] = None) -> bool:
        self.path.lines.append(copy.deepcopy(segment) if segment is not None else new_segment_after(self.path))
        return self._edit()

    def remove_segment(self, segment_index: int) -> bool:
        """The last remaining segment cannot be removed."""
        if len(self.path.lines) <= 1 or not 0 <= segment_index < len(self.path.lines):
            return False
        del self.path.lines[segment_index]
        return self._edit()

    def replace_path(self, path: Path) -> bool:
        self.path = path.clone()
        return self.commit()

    def apply_optimized(self, segment_index: int, waypoints) -> bool:
        """Swap in an optimized segment; leaves the path untouched on bad input."""
        seg = self.path.lines[segment_index]
        new_seg = segment_from_waypoints(seg, waypoints)
        self.path.lines[segment_index] = new_seg
        return self.commit()

    # ---------------- files ----------------

    def load(self, filename: str) -> bool:
        """Load a trajectory; on failure state is unchanged and load_error is set."""
        try:
            traj = load_trajectory(filename, self.robot_width, self.robot_length)
        except TrajectoryLoadError as e:
            self.load_error = str(e)
            print(f"Load failed: {e}")
            return False
        self.load_error = None
        self.playback.reset()
        self.path = traj.path
        self.robot_width, self.robot_length = traj.robot_width, traj.robot_length
        self.commit()
        return True

    def save(self, filename: str) -> str:
        out = save_trajectory(filename, self.path, self.robot_width, self.robot_length)
        print(f"Saved trajectory to: {out}")
        return out

    # ---------------- derived geometry ----------------

    def _memo(self, key: str, fn):
        if key not in self._cache:
            self._cache[key] = fn()
        return self._cache[key]

    def polyline(self) -> List[Vec]:
        return self._memo("polyline", lambda: path_polyline(self.path))

    def footprint_sweep(self) -> List[Footprint]:
        """Swept footprints over the whole path or, in next-segment mode, the current one."""
        samples = int(self.collision["samples_per_segment"])
        if int(self.collision["next_segment_only"]):
            idx = segment_index_for(self.playback.robot_percent, len(self.path.lines))
            return self._memo(f"sweep:{idx}", lambda: sweep_footprints(
                self.path, self.robot_length, self.robot_width, samples, idx))
        return self._memo("sweep", lambda: sweep_footprints(
            self.path, self.robot_length, self.robot_width, samples))

    def robot_path_sweeps(self) -> List[Tuple[RobotPath, List[Footprint]]]:
        """
        Sweeps to draw: every visible robot path in show-all mode, otherwise
        only the active one.
        """
        if not int(self.collision["show_all"]):
            return [(self._active(), self.footprint_sweep())]
        samples = int(self.collision["samples_per_segment"])

        def build():
            out = []
            for rp in self.robot_paths:
                if rp.id != self.active_id and (not rp.visible or not rp.lines):
                    continue
                path = self.path if rp.id == self.active_id else Path(rp.start_point, rp.lines)
                out.append((rp, sweep_footprints(path, self.robot_length, self.robot_width, samples)))
            return out
        return self._memo("sweep:all", build)

    def trail_color(self, rp: RobotPath) -> Optional[str]:
        """Robot path color in 'different' trail mode; None means the shared sweep color."""
        return rp.color if str(self.collision["trail_color_mode"]) == "different" else None

    def center_line_warning(self) -> bool:
        if not int(self.collision["center_line_warning"]):
            return False
        return self._memo("center", lambda: crosses_center_line(
            self.path, self.robot_length, self.robot_width,
            float(self.collision["center_line_x"]),
            int(self.collision["crossing_samples_per_segment"])))

    def out_of_bounds(self) -> Optional[Footprint]:
        return self._memo("oob", lambda: first_out_of_bounds(sweep_footprints(
            self.path, self.robot_length, self.robot_width,
            int(self.collision["samples_per_segment"]))))

    def set_robot_size(self, width: float, length: float) -> None:
        self.robot_width, self.robot_length = float(width), float(length)
        self.invalidate()

    # ---------------- playback ----------------

    def pose(self) -> Pose:
        pose = self.playback.pose(self._last_heading)
        self._last_heading = pose.heading
        return pose

    # ---------------- comparison paths ----------------

    def _active(self) -> RobotPath:
        for rp in self.robot_paths:
            if rp.id == self.active_id:
                return rp
        raise KeyError(self.active_id)

    def _sync_active(self) -> None:
        """Mirror the working path into the active robot path (deep copy)."""
        try:
            rp = self._active()
        except KeyError:
            return
        cp = self.path.clone()
        rp.start_point, rp.lines = cp.start_point, cp.lines

    def add_robot_path(self, name: str, color: str, path: Optional[Path] = None) -> RobotPath:
        n = len(self.robot_paths) + 1
        ids = {rp.id for rp in self.robot_paths}
        while f"path-{n}" in ids:
            n += 1
        rp = robot_path_from_path(path if path is not None else self.path, f"path-{n}", name, color)
        self.robot_paths.append(rp)
        self.invalidate()
        return rp

    def set_active_robot_path(self, path_id: str) -> bool:
        """Switch editing to another robot path; history restarts for it."""
        if path_id == self.active_id:
            return True
        target = next((rp for rp in self.robot_paths if rp.id == path_id), None)
        if target is None:
            return False
        self._sync_active()
        self.active_id = path_id
        self.playback.reset()
        self.path = target.as_path()
        self.invalidate()
        self.history.reset()
        self.history.save()
        return True

    def set_robot_path_visible(self, path_id: str, visible: bool) -> None:
        for rp in self.robot_paths:
            if rp.id == path_id:
                rp.visible = bool(visible)
        self.invalidate()

    def comparison_poses(self) -> List[Tuple[RobotPath, Pose]]:
        """Pose of every visible robot path at the current motion percent."""
        out = []
        for rp in self.robot_paths:
            if not rp.visible or not rp.lines:
                continue
            path = self.path if rp.id == self.active_id else Path(rp.start_point, rp.lines)
            out.append((rp, pose_at(path, self.playback.robot_percent)))
        return out

    def comparison_overlaps(self) -> List[str]:
        """Ids of visible robot paths whose footprint overlaps the active robot right now."""
        poses = self.comparison_poses()
        active = next((p for rp, p in poses if rp.id == self.active_id), None)
        if active is None:
            return []
        mine = footprint_at(active, self.robot_length, self.robot_width).corners
        hits = []
        for rp, pose in poses:
            if rp.id == self.active_id:
                continue
            if polygons_intersect(mine, footprint_at(pose, self.robot_length, self.robot_width).corners):
                hits.append(rp.id)
        return hits
