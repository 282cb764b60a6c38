# Curve evaluator checks: exact endpoints for every control-point count and known midpoints.
from .curve import evaluate, quadratic_to_cubic, sample_curve, path_polyline, segment_points, RENDER_SAMPLES
from .model import BasePoint, Path, Point, Segment


_START = (12.5, 30.25)
_END = (97.1, 101.3)
_CONTROLS = [(40.3, 8.9), (60.7, 120.1), (88.8, 44.4), (20.2, 70.7)]


def _close(a, b, tol=1e-9):
    return abs(a[0] - b[0]) <= tol and abs(a[1] - b[1]) <= tol


def test_endpoints_exact_for_every_degree():
    for k in range(0, len(_CONTROLS) + 1):
        pts = [_START] + _CONTROLS[:k] + [_END]
        assert evaluate(0.0, pts) == _START, f"{k} controls: start not exact"
        assert evaluate(1.0, pts) == _END, f"{k} controls: end not exact"


def test_straight_line_midpoint():
    assert _close(evaluate(0.5, [(0.0, 0.0), (10.0, 20.0)]), (5.0, 10.0))


def test_quadratic_matches_direct_formula():
    p0, p1, p2 = (0.0, 0.0), (50.0, 100.0), (100.0, 0.0)
    for t in (0.1, 0.25, 0.5, 0.8):
        mt = 1 - t
        want = (mt * mt * p0[0] + 2 * mt * t * p1[0] + t * t * p2[0],
                mt * mt * p0[1] + 2 * mt * t * p1[1] + t * t * p2[1])
        assert _close(evaluate(t, [p0, p1, p2]), want), f"quadratic mismatch at t={t}"


def test_quadratic_promotion_control_points():
    _, c1, c2, _ = quadratic_to_cubic((0.0, 0.0), (3.0, 6.0), (6.0, 0.0))
    assert _close(c1, (2.0, 4.0))
    assert _close(c2, (4.0, 4.0))


def test_cubic_symmetric_midpoint():
    pts = [(0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0)]
    assert _close(evaluate(0.5, pts), (5.0, 7.5))


def test_general_degree_matches_cubic_for_elevated_curve():
    # degree elevation of a quadratic to quartic keeps the same curve
    q = [(0.0, 0.0), (4.0, 8.0), (8.0, 0.0)]
    quartic = [q[0], (2.0, 4.0), (4.0, 16.0 / 3.0), (6.0, 4.0), q[2]]
    for t in (0.2, 0.5, 0.7):
        assert _close(evaluate(t, q), evaluate(t, quartic), 1e-9), f"quartic mismatch at t={t}"


def test_evaluation_is_deterministic():
    pts = [_START] + _CONTROLS + [_END]
    assert evaluate(0.37, pts) == evaluate(0.37, pts)


def test_sample_curve_sizes():
    assert len(sample_curve([_START, _END])) == 2
    assert len(sample_curve([_START] + _CONTROLS + [_END])) == RENDER_SAMPLES + 1


def test_path_polyline_shares_endpoints():
    path = Path(Point(0.0, 0.0), [
        Segment(Point(10.0, 0.0)),
        Segment(Point(20.0, 10.0), [BasePoint(20.0, 0.0)]),
    ])
    poly = path_polyline(path)
    assert poly[0] == (0.0, 0.0)
    assert poly[-1] == (20.0, 10.0)
    assert len(poly) == 2 + RENDER_SAMPLES, "shared end point must appear once"
    assert segment_points(path, 1) == [(10.0, 0.0), (20.0, 0.0), (20.0, 10.0)]


def run():
    test_endpoints_exact_for_every_degree()
    test_straight_line_midpoint()
    test_quadratic_matches_direct_formula()
    test_quadratic_promotion_control_points()
    test_cubic_symmetric_midpoint()
    test_general_degree_matches_cubic_for_elevated_curve()
    test_evaluation_is_deterministic()
    test_sample_curve_sizes()
    test_path_polyline_shares_endpoints()


if __name__ == "__main__":
    run()
