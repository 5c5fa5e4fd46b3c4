"""Coordinate spaces of the class/node hierarchy.

The layout engine reports everything inside a class container (e-nodes,
ports, the routes of class-scoped edges) relative to that container, and
root-scope elements in absolute space. The renderer keeps e-nodes
container-relative but needs every edge polyline in one absolute frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from egraph_visualizer.viz.hierarchy import ClassContainer


@dataclass(frozen=True)
class Point:
    """Immutable 2D point.

    Example:
        >>> Point(1, 2) + Point(3, 4)
        Point(x=4, y=6)
    """

    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Point:
        return cls(float(data["x"]), float(data["y"]))

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class CoordinateSpace:
    """Frame of one element, positioned inside its parent's frame.

    Attributes:
        origin: Position of this frame in the parent frame
        space: Id of the element owning the frame
        parent: Enclosing frame (None for the root)

    Example:
        >>> space = CoordinateSpace(Point(100, 50), "class-c1", parent=ROOT_SPACE)
        >>> space.to_absolute(Point(10, 20))
        Point(x=110, y=70)
    """

    origin: Point
    space: str
    parent: CoordinateSpace | None = None

    @classmethod
    def of_container(cls, container: ClassContainer) -> CoordinateSpace:
        """Frame of a laid-out class container; unplaced containers sit at the origin."""
        return cls(Point(container.x or 0, container.y or 0), container.id, parent=ROOT_SPACE)

    def to_absolute(self, point: Point) -> Point:
        """Walk up the parent chain, accumulating origins."""
        current: CoordinateSpace | None = self
        while current is not None:
            point = point + current.origin
            current = current.parent
        return point

    def points_to_absolute(self, points: Iterable[Point]) -> list[Point]:
        return [self.to_absolute(p) for p in points]


ROOT_SPACE = CoordinateSpace(Point(0, 0), "root")
