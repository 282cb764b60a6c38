"""
Client side of the remote path-smoothing service.

The service takes a segment's waypoints plus kinematic limits, runs an async job
and returns a new waypoint list. Results come back on a worker thread and are
handed to the main loop through a queue; only the newest request per segment
is applied.
"""

from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import requests

from .config import FIELD_MAX_IN, FIELD_MIN_IN, optimizer_flat
from .heading import heading_at
from .model import BasePoint, Point, Segment

Waypoint = Tuple[float, float]

DONE_STATES = ("completed", "complete", "done", "succeeded", "success")
FAILED_STATES = ("failed", "error", "cancelled")


class OptimizationError(ValueError):
    pass


def build_request(path, index: int, robot_width: float, robot_length: float, cfg: dict) -> dict:
    """Request body for optimizing segment `index`."""
    oc = optimizer_flat(cfg)
    seg = path.lines[index]
    start = path.segment_start(index)
    waypoints = [[start.x, start.y]] + [[c.x, c.y] for c in seg.control_points] + [[seg.end_point.x, seg.end_point.y]]
    return {
        "waypoints": waypoints,
        "start_heading_degrees": heading_at(seg, start, 0.0),
        "end_heading_degrees": heading_at(seg, start, 1.0),
        "x_velocity": float(oc["x_velocity"]),
        "y_velocity": float(oc["y_velocity"]),
        "angular_velocity": float(oc["angular_velocity"]),
        "friction_coefficient": float(oc["friction_coefficient"]),
        "robot_width": float(robot_width),
        "robot_height": float(robot_length),
        "min_coord_field": FIELD_MIN_IN,
        "max_coord_field": FIELD_MAX_IN,
        "interpolation": str(oc["interpolation"]),
    }


def parse_waypoints(body) -> List[Waypoint]:
    """Accept {"optimized_waypoints": [...]} or a bare [[x, y], ...] list."""
    raw = body.get("optimized_waypoints") if isinstance(body, dict) else body
    if not isinstance(raw, list):
        raise OptimizationError("Response has no optimized_waypoints")
    out = []
    for wp in raw:
        try:
            out.append((float(wp[0]), float(wp[1])))
        except (TypeError, ValueError, IndexError) as e:
            raise OptimizationError(f"Bad waypoint {wp!r}") from e
    return out


def segment_from_waypoints(segment: Segment, waypoints: Sequence[Waypoint]) -> Segment:
    """
    Rebuild a segment from an optimized waypoint list. The first waypoint is the
    implicit start; the last becomes the end point, keeping its heading mode.
    """
    if len(waypoints) < 2:
        raise OptimizationError("Need at least two waypoints")
    ex, ey = waypoints[-1]
    return Segment(
        end_point=Point(float(ex), float(ey), segment.end_point.heading),
        control_points=[BasePoint(float(x), float(y)) for x, y in waypoints[1:-1]],
        name=segment.name,
        color=segment.color,
        wait_time=segment.wait_time,
    )


class OptimizerClient:
    """create job -> poll status -> waypoints"""

    def __init__(self, base_url: str, poll_attempts: int = 60, poll_interval_s: float = 1.0,
                 timeout_s: float = 10.0, http=None, sleep: Callable[[float], None] = time.sleep):
        self.base_url = base_url.rstrip("/")
        self.poll_attempts = max(1, int(poll_attempts))
        self.poll_interval_s = max(0.0, float(poll_interval_s))
        self.timeout_s = float(timeout_s)
        self.http = http or requests.Session()
        self._sleep = sleep

    @classmethod
    def from_config(cls, cfg: dict, **kw) -> "OptimizerClient":
        oc = optimizer_flat(cfg)
        return cls(str(oc["url"]), int(oc["poll_attempts"]), float(oc["poll_interval_s"]),
                   float(oc["request_timeout_s"]), **kw)

    def _json(self, res) -> object:
        if res.status_code < 200 or res.status_code >= 300:
            raise OptimizationError(f"Server error {res.status_code}: {res.text[:80]}")
        try:
            return res.json()
        except ValueError as e:
            raise OptimizationError("Server returned invalid JSON") from e

    def create_job(self, payload: dict) -> str:
        try:
            res = self.http.post(f"{self.base_url}/optimize", json=payload, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise OptimizationError(f"Connection failed: {e}") from e
        body = self._json(res)
        job_id = body.get("job_id") if isinstance(body, dict) else None
        if not job_id:
            raise OptimizationError("Server did not return a job id")
        return str(job_id)

    def poll(self, job_id: str) -> List[Waypoint]:
        for attempt in range(self.poll_attempts):
            try:
                res = self.http.get(f"{self.base_url}/status/{job_id}", timeout=self.timeout_s)
            except requests.RequestException as e:
                raise OptimizationError(f"Connection failed: {e}") from e
            body = self._json(res)
            if isinstance(body, list):
                return parse_waypoints(body)
            if not isinstance(body, dict):
                raise OptimizationError(f"Unexpected status response: {body!r}")
            status = str(body.get("status", "")).lower()
            if status in DONE_STATES:
                return parse_waypoints(body.get("result", body))
            if status in FAILED_STATES:
                raise OptimizationError(f"Optimization failed: {body.get('error', status)}")
            if attempt < self.poll_attempts - 1:
                self._sleep(self.poll_interval_s)
        raise OptimizationError(f"Timed out after {self.poll_attempts} polls")

    def optimize(self, payload: dict) -> List[Waypoint]:
        return self.poll(self.create_job(payload))


@dataclass
class OptimizationResult:
    segment_index: int
    generation: int
    waypoints: Optional[List[Waypoint]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class OptimizationRunner:
    """
    Runs client.optimize on a worker thread per request. A newer submit for the
    same segment makes earlier in-flight results stale.
    """

    def __init__(self, client: OptimizerClient, spawn: Optional[Callable[[Callable[[], None]], None]] = None):
        self.client = client
        self._results: "queue.Queue[OptimizationResult]" = queue.Queue()
        self._generation: Dict[int, int] = {}
        self._lock = threading.Lock()
        self._spawn = spawn or self._spawn_thread

    @staticmethod
    def _spawn_thread(fn: Callable[[], None]) -> None:
        threading.Thread(target=fn, daemon=True).start()

    def submit(self, segment_index: int, payload: dict) -> int:
        with self._lock:
            gen = self._generation.get(segment_index, 0) + 1
            self._generation[segment_index] = gen

        def work():
            try:
                wps = self.client.optimize(payload)
                self._results.put(OptimizationResult(segment_index, gen, waypoints=wps))
            except OptimizationError as e:
                self._results.put(OptimizationResult(segment_index, gen, error=str(e)))
            except Exception as e:
                self._results.put(OptimizationResult(segment_index, gen, error=f"Unexpected error: {e!r}"))

        self._spawn(work)
        return gen

    def cancel(self, segment_index: int) -> None:
        """Make any in-flight result for the segment stale."""
        with self._lock:
            self._generation[segment_index] = self._generation.get(segment_index, 0) + 1

    def pending(self, segment_index: int, generation: int) -> bool:
        with self._lock:
            return self._generation.get(segment_index) == generation

    def drain(self, session) -> List[OptimizationResult]:
        """
        Apply finished results on the calling thread. Returns the current
        (non-stale) results, failures included, for reporting.
        """
        current = []
        while True:
            try:
                res = self._results.get_nowait()
            except queue.Empty:
                break
            if not self.pending(res.segment_index, res.generation):
                continue
            if res.ok:
                try:
                    session.apply_optimized(res.segment_index, res.waypoints)
                except (OptimizationError, IndexError) as e:
                    res.error = str(e)
            current.append(res)
        return current
