# fieldpath/draw.py

from __future__ import annotations

import math, pygame

try:
    from pygame import gfxdraw
except Exception:
    gfxdraw = None

from .config import (
    GRID_COLOR, PATH_COLOR, NODE_COLOR, CONTROL_COLOR, ROBOT_COLOR, FOOTPRINT_COLOR,
    SWEEP_COLOR, CENTER_COLOR, TEXT_COLOR, RED, ORANGE, GOLD, WHITE, PPI, FIELD_SIZE_IN,
)


def field_to_px(p):
    """Field inches (y up) to window pixels (y down)."""
    return (p[0] * PPI, (FIELD_SIZE_IN - p[1]) * PPI)


def px_to_field(p):
    return (p[0] / PPI, FIELD_SIZE_IN - p[1] / PPI)


def hex_to_rgb(color, default=PATH_COLOR):
    """'#rrggbb' to an RGB tuple."""
    try:
        s = str(color).lstrip("#")
        return (int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16))
    except (ValueError, IndexError):
        return default


def _aa_polygon(surface, color, pts, width=0):
    """Anti-aliased polygon with fallback."""
    if gfxdraw is not None:
        try:
            gfxdraw.aapolygon(surface, pts, color)
            if width == 0:
                gfxdraw.filled_polygon(surface, pts, color)
            else:
                pygame.draw.polygon(surface, color, pts, width)
            return
        except Exception:
            pass
    pygame.draw.polygon(surface, color, pts, width)


def draw_grid(surface, grid_in):
    """Draw field grid lines every grid_in inches."""
    w, h = surface.get_width(), surface.get_height()
    step = max(1, int(grid_in * PPI))
    for x in range(0, w, step):
        pygame.draw.line(surface, GRID_COLOR, (x, 0), (x, h))
    for y in range(0, h, step):
        pygame.draw.line(surface, GRID_COLOR, (0, y), (w, y))


def draw_center_line(surface, center_x_in, warn=False):
    x = int(center_x_in * PPI)
    pygame.draw.line(surface, RED if warn else CENTER_COLOR, (x, 0), (x, surface.get_height()), 2)


def draw_path(surface, polyline, color=PATH_COLOR, width=3):
    if len(polyline) < 2:
        return
    pygame.draw.lines(surface, color, False, [field_to_px(p) for p in polyline], width)


def draw_points(surface, path, selected_idx=None):
    """Start point, segment end points and control handles."""
    pts = [path.start_point] + [s.end_point for s in path.lines]
    for i, s in enumerate(path.lines):
        a = field_to_px(path.segment_start(i).xy)
        b = field_to_px(s.end_point.xy)
        prev = a
        for c in s.control_points:
            cp = field_to_px(c.xy)
            pygame.draw.line(surface, CONTROL_COLOR, prev, cp, 1)
            pygame.draw.circle(surface, CONTROL_COLOR, cp, 5)
            prev = cp
        if s.control_points:
            pygame.draw.line(surface, CONTROL_COLOR, prev, b, 1)
    for i, p in enumerate(pts):
        col = WHITE if i == selected_idx else NODE_COLOR
        pygame.draw.circle(surface, col, field_to_px(p.xy), 7)


def draw_footprint(surface, corners, color=FOOTPRINT_COLOR, width=2, dots=False):
    pts = [field_to_px(c) for c in corners]
    _aa_polygon(surface, color, pts, width)
    if dots:
        for p in pts:
            pygame.draw.circle(surface, GOLD, p, 3)


def draw_sweep(surface, footprints, color=SWEEP_COLOR):
    for fp in footprints:
        _aa_polygon(surface, color, [field_to_px(c) for c in fp.corners], 1)


def draw_chevron(surface, pos, heading_deg, length=20, offset=45, arm=10, color=WHITE):
    """Draw directional arrow chevron."""
    rad = math.radians(heading_deg)
    tip = (pos[0] + length * math.cos(rad), pos[1] - length * math.sin(rad))
    l = math.radians(heading_deg - offset)
    r = math.radians(heading_deg + offset)
    left = (tip[0] - arm * math.cos(l), tip[1] + arm * math.sin(l))
    right = (tip[0] - arm * math.cos(r), tip[1] + arm * math.sin(r))
    pygame.draw.line(surface, color, tip, left, 3)
    pygame.draw.line(surface, color, tip, right, 3)


def draw_robot(surface, pose, corners, dots=False, color=ROBOT_COLOR):
    draw_footprint(surface, corners, color, 2, dots)
    c = field_to_px(pose.xy)
    pygame.draw.circle(surface, color, c, 4)
    draw_chevron(surface, c, pose.heading)


def draw_progress(surface, percent, robot_percent, waiting, font_small):
    """Timeline bar along the bottom edge; motion progress as a thin inner bar."""
    w, h = surface.get_width(), surface.get_height()
    pygame.draw.rect(surface, (60, 60, 60), (0, h - 8, w, 8))
    pygame.draw.rect(surface, ORANGE if waiting else PATH_COLOR, (0, h - 8, int(w * percent / 100.0), 8))
    pygame.draw.rect(surface, WHITE, (0, h - 3, int(w * robot_percent / 100.0), 2))
    label = f"{percent:5.1f}%" + ("  waiting" if waiting else "")
    surface.blit(font_small.render(label, True, TEXT_COLOR), (6, h - 24))


def draw_label(surface, anchor_xy, lines, font_small):
    """Multi-line label with dark box."""
    if not lines:
        return
    rendered = [font_small.render(s, True, TEXT_COLOR) for s in lines]
    w = max(r.get_width() for r in rendered) + 10
    hgt = sum(r.get_height() for r in rendered) + 8
    x, y = anchor_xy
    box = pygame.Surface((w, hgt), pygame.SRCALPHA)
    box.fill((0, 0, 0, 170))
    surface.blit(box, (x, y))
    yy = y + 4
    for r in rendered:
        surface.blit(r, (x + 5, yy))
        yy += r.get_height()
