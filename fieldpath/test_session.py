# Editor session checks: commits, drags, memoized geometry, comparison paths.
from .config import DEFAULT_CONFIG
from .model import ConstantHeading, Path, Point, Segment, TangentialHeading
from .session import EditorSession


def _path():
    return Path(
        Point(10.0, 20.0, ConstantHeading(0.0)),
        [Segment(Point(30.0, 20.0, ConstantHeading(0.0))), Segment(Point(50.0, 20.0, ConstantHeading(0.0)))],
    )


def _cfg(**collision):
    cfg = {k: dict(v) for k, v in DEFAULT_CONFIG.items()}
    cfg["collision"] = dict(cfg["collision"])
    for k, v in collision.items():
        cfg["collision"][k] = {"value": v}
    return cfg


def test_each_edit_is_one_undo_step():
    s = EditorSession(path=_path())
    s.move_point(2, 55.0, 25.0)
    s.set_wait_time(0, 1.0)
    s.add_segment()
    assert len(s.path.lines) == 3
    assert s.undo() and len(s.path.lines) == 2
    assert s.undo() and s.path.lines[0].wait_time == 0.0
    assert s.undo() and s.path.lines[1].end_point.xy == (50.0, 20.0)
    assert not s.undo()
    assert s.redo() and s.path.lines[1].end_point.xy == (55.0, 25.0)


def test_drag_commits_once():
    s = EditorSession(path=_path())
    s.begin_drag()
    for x in (32.0, 34.0, 36.0):
        assert s.move_point(1, x, 20.0) is False
    assert s.end_drag()
    assert len(s.history.undo_stack) == 2
    s.undo()
    assert s.path.lines[0].end_point.x == 30.0


def test_remove_last_segment_refused():
    s = EditorSession(path=Path(Point(0.0, 0.0), [Segment(Point(10.0, 0.0))]))
    assert not s.remove_segment(0)
    assert len(s.path.lines) == 1
    assert not s.remove_control_point(0, 3)


def test_heading_replaced_by_new_point():
    s = EditorSession(path=_path())
    old = s.path.lines[0].end_point
    s.set_heading(1, TangentialHeading(reverse=True))
    assert s.path.lines[0].end_point is not old
    assert s.path.lines[0].end_point.heading == TangentialHeading(reverse=True)
    assert old.heading == ConstantHeading(0.0)


def test_geometry_cache_invalidated_on_edit():
    s = EditorSession(path=_path())
    first = s.polyline()
    assert s.polyline() is first
    s.move_point(2, 50.0, 60.0)
    after = s.polyline()
    assert after is not first and after[-1] == (50.0, 60.0)
    s.undo()
    assert s.polyline()[-1] == (50.0, 20.0)


def test_next_segment_sweep_mode():
    s = EditorSession(_cfg(next_segment_only=1, samples_per_segment=10), path=_path())
    assert len(s.footprint_sweep()) == 11
    assert all(fp.pose.segment_index == 0 for fp in s.footprint_sweep())
    s.playback.scrub_to(75.0)
    assert all(fp.pose.segment_index == 1 for fp in s.footprint_sweep())
    full = EditorSession(_cfg(samples_per_segment=10), path=_path())
    assert len(full.footprint_sweep()) == 22


def test_center_line_warning_toggle():
    crossing = Path(Point(40.0, 40.0, ConstantHeading(0.0)), [Segment(Point(66.0, 40.0, ConstantHeading(0.0)))])
    assert EditorSession(path=crossing).center_line_warning() is True
    assert EditorSession(_cfg(center_line_warning=0), path=crossing).center_line_warning() is False
    s = EditorSession(path=crossing)
    s.move_point(1, 50.0, 40.0)
    assert s.center_line_warning() is False


def test_robot_size_change_invalidates():
    s = EditorSession(path=Path(Point(40.0, 40.0, ConstantHeading(0.0)), [Segment(Point(60.0, 40.0, ConstantHeading(0.0)))]))
    assert s.center_line_warning() is False
    s.set_robot_size(18.0, 30.0)
    assert s.center_line_warning() is True


def test_comparison_paths_are_independent():
    s = EditorSession(path=_path())
    rp = s.add_robot_path("Alt", "#22c55e")
    assert rp.id == "path-2"
    s.move_point(2, 70.0, 70.0)
    assert rp.lines[-1].end_point.xy == (50.0, 20.0)
    assert s.robot_paths[0].lines[-1].end_point.xy == (70.0, 70.0)
    poses = dict((r.id, p) for r, p in s.comparison_poses())
    assert poses["path-1"].xy == (10.0, 20.0) and poses["path-2"].xy == (10.0, 20.0)
    s.set_robot_path_visible("path-2", False)
    assert [r.id for r, _ in s.comparison_poses()] == ["path-1"]


def test_switch_active_path():
    s = EditorSession(path=_path())
    s.add_robot_path("Alt", "#22c55e", Path(Point(0.0, 0.0), [Segment(Point(5.0, 5.0))]))
    s.move_point(2, 70.0, 70.0)
    assert s.set_active_robot_path("path-2")
    assert s.path.lines[-1].end_point.xy == (5.0, 5.0)
    assert not s.history.can_undo()
    assert not s.set_active_robot_path("path-9")
    assert s.set_active_robot_path("path-1")
    assert s.path.lines[-1].end_point.xy == (70.0, 70.0)


def test_control_point_and_path_edits():
    s = EditorSession(path=_path())
    s.add_control_point(0, 20.0, 40.0)
    s.move_control_point(0, 0, 20.0, 30.0)
    assert s.path.lines[0].control_points[0].xy == (20.0, 30.0)
    s.set_control_points(1, [(40.0, 0.0), (45.0, 5.0)])
    assert len(s.path.lines[1].control_points) == 2
    s.set_start_point(Point(0.0, 0.0, ConstantHeading(45.0)))
    assert s.polyline()[0] == (0.0, 0.0)
    assert len(s.history.undo_stack) == 5
    s.replace_path(Path(Point(1.0, 1.0), [Segment(Point(2.0, 2.0))]))
    assert len(s.path.lines) == 1
    s.undo()
    assert s.path.start_point.heading == ConstantHeading(45.0)


def test_sweep_read_leaves_heading_memory():
    s = EditorSession(_cfg(next_segment_only=1), path=_path())
    s._last_heading = 123.0
    s.footprint_sweep()
    assert s._last_heading == 123.0


def test_show_all_sweeps_every_visible_path():
    s = EditorSession(_cfg(show_all=1, samples_per_segment=10), path=_path())
    s.add_robot_path("Alt", "#22c55e", Path(Point(100.0, 100.0), [Segment(Point(120.0, 100.0))]))
    s.add_robot_path("Hidden", "#000000")
    s.set_robot_path_visible("path-3", False)
    sweeps = s.robot_path_sweeps()
    assert [rp.id for rp, _ in sweeps] == ["path-1", "path-2"]
    assert len(sweeps[0][1]) == 22 and len(sweeps[1][1]) == 11
    assert sweeps[1][1][0].pose.xy == (100.0, 100.0)
    assert s.trail_color(sweeps[1][0]) == "#22c55e"
    single = EditorSession(_cfg(samples_per_segment=10, trail_color_mode="same"), path=_path())
    only = single.robot_path_sweeps()
    assert [rp.id for rp, _ in only] == ["path-1"]
    assert single.trail_color(only[0][0]) is None


def test_comparison_overlap_uses_footprints():
    s = EditorSession(path=_path())
    s.add_robot_path("Near", "#22c55e", Path(Point(20.0, 20.0, ConstantHeading(0.0)), [Segment(Point(20.0, 60.0))]))
    s.add_robot_path("Far", "#f97316", Path(Point(100.0, 100.0, ConstantHeading(0.0)), [Segment(Point(120.0, 100.0))]))
    assert s.comparison_overlaps() == ["path-2"]
    s.set_robot_path_visible("path-2", False)
    assert s.comparison_overlaps() == []


def test_pose_tracks_playback():
    s = EditorSession(path=_path())
    assert s.pose().xy == (10.0, 20.0)
    s.playback.scrub_to(50.0)
    assert s.pose().xy == (30.0, 20.0)
    assert s.pose().segment_index == 1


def run():
    test_each_edit_is_one_undo_step()
    test_drag_commits_once()
    test_remove_last_segment_refused()
    test_heading_replaced_by_new_point()
    test_geometry_cache_invalidated_on_edit()
    test_next_segment_sweep_mode()
    test_center_line_warning_toggle()
    test_robot_size_change_invalidates()
    test_comparison_paths_are_independent()
    test_switch_active_path()
    test_control_point_and_path_edits()
    test_sweep_read_leaves_heading_memory()
    test_show_all_sweeps_every_visible_path()
    test_comparison_overlap_uses_footprints()
    test_pose_tracks_playback()


if __name__ == "__main__":
    run()
