# main.py
import os, sys

# Ensure SDL picks a usable video driver (helps when run from terminals that default to headless)
if os.name == "nt" and not os.environ.get("SDL_VIDEODRIVER"):
    os.environ["SDL_VIDEODRIVER"] = "windows"

import pygame

from fieldpath.config import (
    WINDOW_WIDTH, WINDOW_HEIGHT, BG_COLOR, SWEEP_COLOR,
    load_config, collision_flat, ui_flat,
)
from fieldpath.collision import corners
from fieldpath.draw import (
    draw_grid, draw_center_line, draw_path, draw_points, draw_sweep, draw_robot,
    draw_progress, draw_label, hex_to_rgb, px_to_field,
)
from fieldpath.geom import convert_heading_display
from fieldpath.optimizer import OptimizerClient, OptimizationRunner, build_request
from fieldpath.session import EditorSession

APP_TITLE = "FIELDPATH TERMINAL"
DEFAULT_FILE = "trajectory.json"

CONTROLS = [
    ("SPACE / CTRL+SPACE", "Play-Pause / Reset"),
    ("LEFT / RIGHT", "Scrub timeline"),
    ("UP / DOWN", "Playback speed"),
    ("LeftClick + Drag", "Move nearest point"),
    ("N / X", "Add / remove last segment"),
    ("W", "Toggle 1s wait on last segment"),
    ("C", "Toggle collision sweep"),
    ("O", "Optimize segment under playback"),
    ("CTRL+Z / CTRL+Y", "Undo / Redo"),
    ("S / L", "Save / Load trajectory"),
]

SELECTION_RADIUS_IN = 4.0


class PygameFrameScheduler:
    """Holds at most one pending frame callback; run() fires it once per display frame."""

    def __init__(self):
        self._pending = None
        self._next_id = 0

    def schedule(self, callback):
        self._next_id += 1
        self._pending = (self._next_id, callback)
        return self._next_id

    def cancel(self, handle):
        if self._pending is not None and self._pending[0] == handle:
            self._pending = None

    def run(self):
        if self._pending is None:
            return
        _, cb = self._pending
        self._pending = None
        cb(float(pygame.time.get_ticks()))


def _nearest_point(session, field_xy):
    pts = [session.path.start_point] + [s.end_point for s in session.path.lines]
    best, best_d2 = None, SELECTION_RADIUS_IN ** 2
    for i, p in enumerate(pts):
        d2 = (p.x - field_xy[0]) ** 2 + (p.y - field_xy[1]) ** 2
        if d2 <= best_d2:
            best, best_d2 = i, d2
    return best


def main():
    """Main application loop."""
    cfg = load_config()
    ui = ui_flat(cfg)
    coll = collision_flat(cfg)

    pygame.init()
    screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
    pygame.display.set_caption(APP_TITLE)
    clock = pygame.time.Clock()
    font_small = pygame.font.SysFont(None, 16)

    scheduler = PygameFrameScheduler()
    session = EditorSession(cfg, clock=lambda: float(pygame.time.get_ticks()), scheduler=scheduler)
    filename = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_FILE
    if os.path.exists(filename):
        session.load(filename)
    runner = OptimizationRunner(OptimizerClient.from_config(cfg))

    print(APP_TITLE)
    for key, desc in CONTROLS:
        print(f"  {key:<20} {desc}")

    show_sweep = bool(int(ui.get("show_collision_path", 0)))
    status = ""
    dragging_idx = None

    running = True
    while running:
        clock.tick(60)
        scheduler.run()

        for res in runner.drain(session):
            status = f"Segment {res.segment_index + 1} optimized" if res.ok else f"Optimize failed: {res.error}"
            print(status)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            elif event.type == pygame.KEYDOWN:
                mods = pygame.key.get_mods()
                pb = session.playback
                if event.key == pygame.K_SPACE:
                    if mods & pygame.KMOD_CTRL:
                        pb.reset()
                    else:
                        pb.toggle()
                elif event.key == pygame.K_LEFT:
                    pb.scrub_to(pb.percent - 1.0)
                elif event.key == pygame.K_RIGHT:
                    pb.scrub_to(pb.percent + 1.0)
                elif event.key == pygame.K_UP:
                    pb.set_speed(min(4.0, pb.speed * 2.0))
                elif event.key == pygame.K_DOWN:
                    pb.set_speed(max(0.25, pb.speed / 2.0))
                elif event.key == pygame.K_z and (mods & pygame.KMOD_CTRL):
                    session.undo()
                elif event.key == pygame.K_y and (mods & pygame.KMOD_CTRL):
                    session.redo()
                elif event.key == pygame.K_n:
                    session.add_segment()
                elif event.key == pygame.K_x:
                    session.remove_segment(len(session.path.lines) - 1)
                elif event.key == pygame.K_w:
                    last = len(session.path.lines) - 1
                    cur = session.path.lines[last].wait_time
                    session.set_wait_time(last, 0.0 if cur > 0 else 1.0)
                elif event.key == pygame.K_c:
                    show_sweep = not show_sweep
                elif event.key == pygame.K_o:
                    idx = session.pose().segment_index
                    payload = build_request(session.path, idx, session.robot_width, session.robot_length, cfg)
                    runner.submit(idx, payload)
                    status = f"Optimizing segment {idx + 1}..."
                elif event.key == pygame.K_s:
                    session.save(filename)
                    status = f"Saved {filename}"
                elif event.key == pygame.K_l:
                    status = f"Loaded {filename}" if session.load(filename) else f"Load failed: {session.load_error}"

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                dragging_idx = _nearest_point(session, px_to_field(event.pos))
                if dragging_idx is not None:
                    session.begin_drag()
            elif event.type == pygame.MOUSEMOTION and dragging_idx is not None:
                fx, fy = px_to_field(event.pos)
                session.move_point(dragging_idx, fx, fy)
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1 and dragging_idx is not None:
                session.end_drag()
                dragging_idx = None

        # Draw
        screen.fill(BG_COLOR)
        if int(ui.get("show_grid", 0)):
            draw_grid(screen, float(ui.get("grid_size_in", 12.0)))
        warn = session.center_line_warning()
        draw_center_line(screen, float(coll["center_line_x"]), warn)
        for rp, pose in session.comparison_poses():
            if rp.id != session.active_id:
                draw_robot(screen, pose, corners(pose.xy, session.robot_length, session.robot_width, pose.heading),
                           color=hex_to_rgb(rp.color))
        if show_sweep:
            for rp, sweep in session.robot_path_sweeps():
                trail = session.trail_color(rp)
                draw_sweep(screen, sweep, hex_to_rgb(trail) if trail else SWEEP_COLOR)
        draw_path(screen, session.polyline())
        draw_points(screen, session.path, dragging_idx)

        pose = session.pose()
        dots = bool(int(ui.get("show_corner_dots", 1)))
        draw_robot(screen, pose, corners(pose.xy, session.robot_length, session.robot_width, pose.heading), dots)
        pb = session.playback
        draw_progress(screen, pb.percent, pb.robot_percent, pb.waiting, font_small)

        lines = [
            f"x={pose.x:.1f} in  y={pose.y:.1f} in  heading={convert_heading_display(pose.heading):.1f}",
            f"segment {pose.segment_index + 1}/{len(session.path.lines)}  speed x{pb.speed:g}",
        ]
        if warn:
            lines.append("WARNING: path crosses the center line")
        if session.out_of_bounds() is not None:
            lines.append("WARNING: footprint leaves the field")
        overlaps = session.comparison_overlaps()
        if overlaps:
            lines.append("WARNING: robot overlaps " + ", ".join(overlaps))
        if status:
            lines.append(status)
        draw_label(screen, (6, 6), lines, font_small)

        pygame.display.flip()

    pygame.quit()


if __name__ == "__main__":
    main()
