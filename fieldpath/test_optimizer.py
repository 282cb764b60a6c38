# Remote optimization checks with a mocked HTTP session.
from unittest import mock

import requests

from .config import DEFAULT_CONFIG
from .model import BasePoint, ConstantHeading, Path, Point, Segment
from .optimizer import (
    OptimizationError, OptimizationRunner, OptimizerClient, build_request,
    parse_waypoints, segment_from_waypoints,
)
from .session import EditorSession


_PATH = Path(
    Point(10.0, 10.0, ConstantHeading(0.0)),
    [
        Segment(Point(40.0, 10.0, ConstantHeading(0.0))),
        Segment(Point(60.0, 40.0, ConstantHeading(90.0)), [BasePoint(60.0, 10.0)], name="Score", wait_time=2.0),
    ],
)


def _response(status=200, body=None):
    res = mock.Mock()
    res.status_code = status
    res.json.return_value = body
    res.text = "" if body is None else str(body)
    return res


def _client(post=None, get=None, attempts=3):
    http = mock.Mock()
    if post is not None:
        http.post.return_value = post
    if get is not None:
        if isinstance(get, list):
            http.get.side_effect = get
        else:
            http.get.return_value = get
    sleep = mock.Mock()
    client = OptimizerClient("http://opt.local/", poll_attempts=attempts, poll_interval_s=0.5,
                             timeout_s=2.0, http=http, sleep=sleep)
    return client, http, sleep


def _raises(fn, needle=""):
    try:
        fn()
    except OptimizationError as e:
        return needle in str(e)
    return False


def test_request_body_fields():
    body = build_request(_PATH, 1, 15.0, 17.0, DEFAULT_CONFIG)
    assert body["waypoints"] == [[40.0, 10.0], [60.0, 10.0], [60.0, 40.0]]
    assert body["start_heading_degrees"] == 90.0 and body["end_heading_degrees"] == 90.0
    assert body["robot_width"] == 15.0 and body["robot_height"] == 17.0
    assert body["min_coord_field"] == 0.0 and body["max_coord_field"] == 144.0
    for key in ("x_velocity", "y_velocity", "angular_velocity", "friction_coefficient", "interpolation"):
        assert key in body, f"missing {key}"


def test_parse_both_response_shapes():
    assert parse_waypoints({"optimized_waypoints": [[1, 2], [3, 4]]}) == [(1.0, 2.0), (3.0, 4.0)]
    assert parse_waypoints([[5, 6], [7, 8]]) == [(5.0, 6.0), (7.0, 8.0)]
    assert _raises(lambda: parse_waypoints({"status": "done"}))
    assert _raises(lambda: parse_waypoints([[1]]))


def test_segment_rebuilt_from_waypoints():
    seg = _PATH.lines[1]
    new = segment_from_waypoints(seg, [(40.0, 10.0), (45.0, 12.0), (55.0, 20.0), (61.0, 41.0)])
    assert new.end_point == Point(61.0, 41.0, ConstantHeading(90.0))
    assert new.control_points == [BasePoint(45.0, 12.0), BasePoint(55.0, 20.0)]
    assert new.name == "Score" and new.wait_time == 2.0
    assert _raises(lambda: segment_from_waypoints(seg, [(1.0, 1.0)]))


def test_client_creates_job_and_polls():
    client, http, sleep = _client(
        post=_response(200, {"job_id": "abc"}),
        get=[_response(200, {"status": "running"}),
             _response(200, {"status": "completed", "result": {"optimized_waypoints": [[0, 0], [9, 9]]}})],
    )
    assert client.optimize({"waypoints": []}) == [(0.0, 0.0), (9.0, 9.0)]
    http.post.assert_called_once_with("http://opt.local/optimize", json={"waypoints": []}, timeout=2.0)
    http.get.assert_called_with("http://opt.local/status/abc", timeout=2.0)
    assert http.get.call_count == 2
    sleep.assert_called_once_with(0.5)


def test_client_times_out():
    client, http, sleep = _client(post=_response(200, {"job_id": 7}), get=_response(200, {"status": "queued"}))
    assert _raises(lambda: client.optimize({}), "Timed out after 3 polls")
    assert http.get.call_count == 3
    assert sleep.call_count == 2


def test_client_error_statuses():
    client, _, _ = _client(post=_response(500, {"detail": "boom"}))
    assert _raises(lambda: client.create_job({}), "500")
    client, _, _ = _client(post=_response(200, {"job_id": "x"}), get=_response(200, {"status": "failed", "error": "diverged"}))
    assert _raises(lambda: client.optimize({}), "diverged")
    client, _, _ = _client(post=_response(200, {}))
    assert _raises(lambda: client.create_job({}), "job id")


def test_client_connection_failure():
    client, http, _ = _client()
    http.post.side_effect = requests.ConnectionError("refused")
    assert _raises(lambda: client.create_job({}), "Connection failed")


def test_client_rejects_scalar_status_body():
    for body in ("queued", 42, None):
        client, _, _ = _client(post=_response(200, {"job_id": "j"}), get=_response(200, body))
        assert _raises(lambda: client.optimize({}), "Unexpected status response"), f"body={body!r}"


def test_runner_reports_scalar_status_body():
    session = EditorSession(path=_PATH)
    client, _, _ = _client(post=_response(200, {"job_id": "j"}), get=_response(200, "queued"))
    runner = OptimizationRunner(client, spawn=lambda fn: fn())
    runner.submit(0, {})
    (res,) = runner.drain(session)
    assert not res.ok and "Unexpected status response" in res.error


def _sync_runner(results):
    client = mock.Mock()
    client.optimize.side_effect = results
    jobs = []
    runner = OptimizationRunner(client, spawn=jobs.append)
    return runner, jobs


def test_runner_discards_stale_results():
    session = EditorSession(path=_PATH)
    runner, jobs = _sync_runner([[(40.0, 10.0), (50.0, 50.0)], [(40.0, 10.0), (55.0, 45.0), (70.0, 70.0)]])
    first = runner.submit(1, {})
    second = runner.submit(1, {})
    assert second == first + 1
    for job in jobs:
        job()
    applied = runner.drain(session)
    assert [r.generation for r in applied] == [second]
    assert session.path.lines[1].end_point.xy == (70.0, 70.0)
    assert session.path.lines[1].control_points == [BasePoint(55.0, 45.0)]
    assert session.undo()
    assert session.path.lines[1].end_point.xy == (60.0, 40.0)


def test_runner_reports_failures_and_cancel():
    session = EditorSession(path=_PATH)
    runner, jobs = _sync_runner([OptimizationError("Timed out after 60 polls"), [(0.0, 0.0), (1.0, 1.0)]])
    runner.submit(0, {})
    jobs[0]()
    (res,) = runner.drain(session)
    assert not res.ok and "Timed out" in res.error
    assert session.path.lines[0].end_point.xy == (40.0, 10.0)
    runner.submit(0, {})
    runner.cancel(0)
    jobs[1]()
    assert runner.drain(session) == []
    assert session.path.lines[0].end_point.xy == (40.0, 10.0)


def test_runner_reports_unexpected_worker_error():
    session = EditorSession(path=_PATH)
    runner, jobs = _sync_runner([KeyError("job")])
    runner.submit(1, {})
    jobs[0]()
    (res,) = runner.drain(session)
    assert not res.ok and "KeyError" in res.error
    assert session.path.lines[1].end_point.xy == (60.0, 40.0)


def test_runner_bad_waypoints_leave_segment():
    session = EditorSession(path=_PATH)
    runner, jobs = _sync_runner([[(1.0, 1.0)]])
    runner.submit(0, {})
    jobs[0]()
    (res,) = runner.drain(session)
    assert not res.ok
    assert session.path.lines[0].end_point.xy == (40.0, 10.0)


def run():
    test_request_body_fields()
    test_parse_both_response_shapes()
    test_segment_rebuilt_from_waypoints()
    test_client_creates_job_and_polls()
    test_client_times_out()
    test_client_error_statuses()
    test_client_connection_failure()
    test_runner_discards_stale_results()
    test_runner_reports_failures_and_cancel()
    test_client_rejects_scalar_status_body()
    test_runner_reports_scalar_status_body()
    test_runner_reports_unexpected_worker_error()
    test_runner_bad_waypoints_leave_segment()


if __name__ == "__main__":
    run()
