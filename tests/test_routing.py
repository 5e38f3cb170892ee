"""Tests for the connector routers and path sampling.

Uses two 80×80 nodes side by side (A at x=0, B at x=200) as the
primary case.

Validates:
  - Orthogonal routes are Manhattan; perpendicular exits give one bend,
    aligned collinear exits give none, parallel offset exits give two
  - Curved routes are deterministic and bow to the left of a→b
  - Coincident ends produce a degenerate path instead of raising
  - Point / angle / length sampling along polylines and curves
"""

from __future__ import annotations

import math
import unittest

from diagrammer.geometry import NodeGeometry
from diagrammer.ports import resolve_ports_absolute
from diagrammer.routing import (
    RoutedPath, RouterConfig,
    get_angle_along_path, get_path_length, get_point_along_path,
    route, route_curved, route_orthogonal, route_straight,
)
from diagrammer.scene import Waypoint, generate_default_ports


def _ports(node_id: str, x: float, y: float) -> dict:
    geom = NodeGeometry(x, y, 80, 80)
    resolved = resolve_ports_absolute(node_id, geom, generate_default_ports(node_id))
    return {p.position_name: p for p in resolved}


def _is_manhattan(path: RoutedPath) -> bool:
    for (x0, y0), (x1, y1) in path.segments:
        if abs(x0 - x1) > 1e-9 and abs(y0 - y1) > 1e-9:
            return False
    return True


class TestOrthogonal(unittest.TestCase):

    def setUp(self):
        self.a = _ports("a", 0, 0)
        self.b = _ports("b", 200, 0)

    def test_perpendicular_exits_one_bend(self):
        path = route_orthogonal(self.a["e"], self.b["n"])
        self.assertEqual(path.bends, 1)
        self.assertEqual(path.vertices, [(80, 40), (240, 40), (240, 0)])
        self.assertTrue(_is_manhattan(path))

    def test_collinear_exits_no_bend(self):
        path = route_orthogonal(self.a["e"], self.b["w"])
        self.assertEqual(path.bends, 0)
        self.assertEqual(path.vertices, [(80, 40), (200, 40)])

    def test_parallel_offset_z_shape(self):
        b = _ports("b", 200, 100)
        path = route_orthogonal(self.a["e"], b["w"])
        self.assertEqual(path.vertices, [(80, 40), (140, 40), (140, 140), (200, 140)])
        self.assertEqual(path.bends, 2)

    def test_vertical_z_shape(self):
        b = _ports("b", 100, 200)
        path = route_orthogonal(self.a["s"], b["n"])
        self.assertEqual(path.vertices, [(40, 80), (40, 140), (140, 140), (140, 200)])

    def test_close_ends_get_stub(self):
        b = _ports("b", 100, 100)
        path = route_orthogonal(self.a["e"], b["w"])
        self.assertTrue(_is_manhattan(path))
        # first leg leaves along +x for at least the minimum segment
        (x0, y0), (x1, y1) = path.segments[0]
        self.assertEqual(y0, y1)
        self.assertGreaterEqual(x1 - x0, RouterConfig().min_segment)

    def test_waypoints(self):
        path = route_orthogonal((0, 0), (100, 100), waypoints=[Waypoint(x=50, y=20)])
        self.assertEqual(path.vertices, [(0, 0), (50, 0), (50, 20), (100, 20), (100, 100)])
        self.assertTrue(_is_manhattan(path))

    def test_deterministic(self):
        b = _ports("b", 260, 130)
        self.assertEqual(route_orthogonal(self.a["s"], b["w"]), route_orthogonal(self.a["s"], b["w"]))


class TestCurved(unittest.TestCase):

    def assertPoint(self, actual, expected):
        self.assertAlmostEqual(actual[0], expected[0])
        self.assertAlmostEqual(actual[1], expected[1])

    def test_control_point_left_normal(self):
        path = route_curved((0, 0), (100, 0))
        self.assertEqual(len(path.segments), 1)
        self.assertPoint(path.segments[0][1], (50, 30))

    def test_reversed_ends_flip_sign(self):
        path = route_curved((100, 0), (0, 0))
        self.assertPoint(path.segments[0][1], (50, -30))

    def test_offset_ratio_from_config(self):
        path = route_curved((0, 0), (100, 0), config=RouterConfig(curve_offset_ratio=0.5))
        self.assertPoint(path.segments[0][1], (50, 50))

    def test_deterministic(self):
        self.assertEqual(route_curved((3, 4), (120, 80)), route_curved((3, 4), (120, 80)))

    def test_single_waypoint_quadratic(self):
        path = route_curved((0, 0), (100, 0), waypoints=[(50, 80)])
        self.assertEqual(path.segments, (((0, 0), (50, 80), (100, 0)),))

    def test_waypoints_chain(self):
        path = route_curved((0, 0), (300, 0), waypoints=[(100, 50), (200, -50)])
        self.assertEqual(len(path.segments), 3)
        for prev, nxt in zip(path.segments, path.segments[1:]):
            self.assertEqual(prev[-1], nxt[0])
        self.assertEqual(path.start, (0, 0))
        self.assertEqual(path.end, (300, 0))


class TestDegenerate(unittest.TestCase):

    def test_coincident_ends(self):
        for routing_type in ("straight", "orthogonal", "curved"):
            path = route((5, 5), (5, 5), routing_type)
            self.assertTrue(path.degenerate, routing_type)
            self.assertEqual(path.segments, ())
            self.assertEqual(path.anchor, (5, 5))
            self.assertEqual(get_point_along_path(path, 0.5), (5, 5))
            self.assertEqual(get_path_length(path), 0)
            self.assertEqual(path.to_svg(), "")

    def test_unknown_type_routes_straight(self):
        with self.assertLogs("diagrammer.routing.engine", level="WARNING"):
            path = route((0, 0), (10, 0), "zigzag")
        self.assertEqual(path.routing_type, "straight")
        self.assertEqual(path.vertices, [(0, 0), (10, 0)])


class TestSampling(unittest.TestCase):

    def test_straight_midpoint(self):
        path = route_straight((0, 0), (100, 0))
        self.assertEqual(get_point_along_path(path, 0.5), (50, 0))
        self.assertAlmostEqual(get_angle_along_path(path, 0.5), 0.0)
        self.assertEqual(get_path_length(path), 100)

    def test_polyline_by_arc_length(self):
        path = route_orthogonal((0, 0), (100, 100), waypoints=[(100, 0)])
        self.assertAlmostEqual(get_path_length(path), 200)
        x, y = get_point_along_path(path, 0.75)
        self.assertAlmostEqual(x, 100)
        self.assertAlmostEqual(y, 50)
        self.assertAlmostEqual(get_angle_along_path(path, 0.75), 90.0)

    def test_t_clamped(self):
        path = route_straight((0, 0), (100, 0))
        self.assertEqual(get_point_along_path(path, -1), (0, 0))
        self.assertEqual(get_point_along_path(path, 2), (100, 0))

    def test_quadratic_midpoint_and_tangent(self):
        path = route_curved((0, 0), (100, 0))
        x, y = get_point_along_path(path, 0.5)
        self.assertAlmostEqual(x, 50)
        self.assertAlmostEqual(y, 15)
        self.assertAlmostEqual(get_angle_along_path(path, 0.5), 0.0)
        # leaving towards the control point
        expected = math.degrees(math.atan2(30, 50))
        self.assertAlmostEqual(get_angle_along_path(path, 0.0), expected)

    def test_curve_longer_than_chord(self):
        path = route_curved((0, 0), (100, 0))
        self.assertGreater(get_path_length(path), 100)

    def test_svg(self):
        self.assertEqual(route_straight((0, 0), (100, 0.5)).to_svg(), "M 0 0 L 100 0.5")
        self.assertTrue(route_curved((0, 0), (100, 0)).to_svg().startswith("M 0 0 Q 50 30"))


if __name__ == "__main__":
    unittest.main()
