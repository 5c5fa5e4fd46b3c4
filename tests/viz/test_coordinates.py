"""Tests for container-relative to absolute coordinate transforms."""

from egraph_visualizer.viz.coordinates import ROOT_SPACE, CoordinateSpace, Point
from egraph_visualizer.viz.hierarchy import ClassContainer


class TestPoint:
    def test_dict_round_trip_coerces_floats(self):
        point = Point.from_dict({"x": 3, "y": "4.5"})
        assert point == Point(3.0, 4.5)
        assert point.to_dict() == {"x": 3.0, "y": 4.5}


class TestCoordinateSpace:
    def test_root_is_identity(self):
        assert ROOT_SPACE.to_absolute(Point(7, 8)) == Point(7, 8)

    def test_nested_spaces_accumulate(self):
        outer = CoordinateSpace(Point(100, 50), "outer", parent=ROOT_SPACE)
        inner = CoordinateSpace(Point(10, 5), "inner", parent=outer)
        assert inner.to_absolute(Point(1, 1)) == Point(111, 56)

    def test_container_frame(self):
        container = ClassContainer(id="class-c1", class_id="c1", color=None, x=200, y=30)
        space = CoordinateSpace.of_container(container)
        assert space.space == "class-c1"
        assert space.points_to_absolute([Point(0, 0), Point(5, 5)]) == [Point(200, 30), Point(205, 35)]

    def test_unplaced_container_sits_at_origin(self):
        container = ClassContainer(id="class-c1", class_id="c1", color=None)
        assert CoordinateSpace.of_container(container).to_absolute(Point(4, 2)) == Point(4, 2)
