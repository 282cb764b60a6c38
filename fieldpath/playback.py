"""
Playback state machine.

Two coupled progress values are advanced per frame:
  percent        timeline position, always advances (progress bar)
  robot_percent  motion position, frozen while the robot dwells at a segment end

Both are in [0, 100). Frame deltas are variable; every increment is scaled by dt.
"""

from __future__ import annotations

import time
from typing import Callable, Optional, Tuple

from .progress import Pose, pose_at, segment_index_for

ROBOT_PERCENT_CAP = 99.999999
ROBOT_DONE = 99.999
PERCENT_DONE = 99.9
MOVE_RATE = 0.065           # percent per ms for a one-segment path at speed 1


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class PlaybackSession:
    """
    Owns PlaybackState for one path.

    `path_provider` returns the current Path each time it is needed, so edits
    between frames are picked up without notification. `scheduler`, when given,
    must offer schedule(callback) -> handle and cancel(handle); callbacks receive
    the frame time in ms. Without one the owner calls tick() itself.
    """

    def __init__(self, path_provider: Callable, speed: float = 1.0,
                 clock: Optional[Callable[[], float]] = None, scheduler=None):
        self._path = path_provider
        self.speed = max(1e-6, float(speed))
        self._clock = clock or _monotonic_ms
        self._scheduler = scheduler
        self._pending = None
        self._last_time: Optional[float] = None
        self._final_wait_done = False
        self.percent = 0.0
        self.robot_percent = 0.0
        self.playing = False
        self.waiting_until: Optional[float] = None
        self.last_segment_index = 0

    # ---------------- timing ----------------

    def _lines(self):
        return self._path().lines

    def _n(self) -> int:
        return max(1, len(self._lines()))

    def base_movement_ms(self) -> float:
        return 100.0 * self._n() / MOVE_RATE

    def total_wait_ms(self) -> float:
        return sum(max(0.0, float(s.wait_time)) * 1000.0 for s in self._lines())

    def total_time_ms(self) -> float:
        return self.base_movement_ms() + self.total_wait_ms()

    def movement_ratio(self) -> float:
        base = self.base_movement_ms()
        return base / (base + self.total_wait_ms())

    def duration_s(self) -> float:
        """Wall time of one full traversal at the current speed."""
        return self.total_time_ms() / 1000.0 / self.speed

    # ---------------- scrub mapping ----------------

    def _scrub_state(self, percent: float) -> Tuple[float, int, float]:
        """(robot_percent, segment index, remaining wait ms) for a timeline percent."""
        lines = self._lines()
        n = self._n()
        move_ms = self.base_movement_ms() / n
        elapsed = max(0.0, percent) / 100.0 * self.total_time_ms()
        acc = 0.0
        for i, seg in enumerate(lines):
            if elapsed < acc + move_ms:
                return min(ROBOT_PERCENT_CAP, (i + (elapsed - acc) / move_ms) / n * 100.0), i, 0.0
            acc += move_ms
            wait_ms = max(0.0, float(seg.wait_time)) * 1000.0
            if wait_ms > 0.0 and elapsed < acc + wait_ms:
                # pinned at the boundary while dwelling
                return min(ROBOT_PERCENT_CAP, (i + 1) / n * 100.0), min(i + 1, n - 1), acc + wait_ms - elapsed
            acc += wait_ms
        return ROBOT_PERCENT_CAP, n - 1, 0.0

    def robot_percent_for(self, percent: float) -> float:
        """Motion percent corresponding to a timeline percent."""
        return self._scrub_state(percent)[0]

    # ---------------- controls ----------------

    def _now(self, now: Optional[float]) -> float:
        return float(now) if now is not None else float(self._clock())

    def _seed_from_percent(self, now: Optional[float]) -> None:
        rp, idx, remaining = self._scrub_state(self.percent)
        self.robot_percent = rp
        self.last_segment_index = idx
        self._final_wait_done = rp >= ROBOT_PERCENT_CAP
        if remaining > 0.0 and now is not None:
            self.waiting_until = now + remaining / self.speed
        else:
            self.waiting_until = None

    def scrub_to(self, percent: float) -> None:
        self.percent = min(ROBOT_PERCENT_CAP, max(0.0, float(percent)))
        if self.playing:
            now = self._now(None)
            self._seed_from_percent(now)
            self._last_time = now
        else:
            self._seed_from_percent(None)

    def play(self, now: Optional[float] = None) -> None:
        if self.playing:
            return
        now = self._now(now)
        self._seed_from_percent(now)
        self._last_time = now
        self.playing = True
        self._schedule()

    def pause(self) -> None:
        self.playing = False
        self._last_time = None
        if self._pending is not None and self._scheduler is not None:
            self._scheduler.cancel(self._pending)
        self._pending = None

    def toggle(self, now: Optional[float] = None) -> None:
        if self.playing:
            self.pause()
        else:
            self.play(now)

    def reset(self) -> None:
        """Stop and rewind to the start."""
        self.pause()
        self._restart()

    def set_speed(self, speed: float) -> None:
        if float(speed) > 0.0:
            self.speed = float(speed)

    def _restart(self) -> None:
        self.percent = 0.0
        self.robot_percent = 0.0
        self.waiting_until = None
        self._final_wait_done = False
        self.last_segment_index = 0

    # ---------------- frames ----------------

    def _schedule(self) -> None:
        if self._scheduler is not None and self._pending is None:
            self._pending = self._scheduler.schedule(self._frame)

    def _frame(self, now: float) -> None:
        self._pending = None
        if not self.playing:
            return
        self.tick(now)
        if self.playing:
            self._schedule()

    def _enter_boundary_wait(self, lines, idx: int, n: int, now: float) -> None:
        """
        One frame may cross several boundaries; the first finished segment with
        a dwell stops the robot at its end.
        """
        for j in range(self.last_segment_index, min(idx, len(lines))):
            if lines[j].wait_time > 0:
                self.robot_percent = min(ROBOT_PERCENT_CAP, (j + 1) / n * 100.0)
                self.last_segment_index = j + 1
                self.waiting_until = now + lines[j].wait_time * 1000.0 / self.speed
                return
        self.last_segment_index = idx

    def tick(self, now: Optional[float] = None) -> None:
        """Advance by the wall time since the previous tick."""
        if not self.playing:
            return
        now = self._now(now)
        dt = 0.0 if self._last_time is None else max(0.0, now - self._last_time)
        self._last_time = now
        lines = self._lines()
        n = self._n()

        if self.waiting_until is not None:
            self.percent = min(100.0, self.percent + dt / self.total_time_ms() * 100.0 * self.speed)
            if now >= self.waiting_until:
                self.waiting_until = None
        else:
            inc = (0.65 / n) * (dt * 0.1) * self.speed
            self.percent = min(100.0, self.percent + inc * self.movement_ratio())
            self.robot_percent = min(ROBOT_PERCENT_CAP, self.robot_percent + inc)
            idx = segment_index_for(self.robot_percent, n)
            if idx > self.last_segment_index:
                self._enter_boundary_wait(lines, idx, n, now)
            if self.waiting_until is None and self.robot_percent >= ROBOT_PERCENT_CAP and not self._final_wait_done:
                self._final_wait_done = True
                if lines and lines[-1].wait_time > 0:
                    self.waiting_until = now + lines[-1].wait_time * 1000.0 / self.speed

        if self.robot_percent >= ROBOT_DONE and self.waiting_until is None and self.percent >= PERCENT_DONE:
            self._restart()

    # ---------------- outputs ----------------

    @property
    def waiting(self) -> bool:
        return self.waiting_until is not None

    def pose(self, previous: Optional[float] = None) -> Pose:
        return pose_at(self._path(), self.robot_percent, previous)
