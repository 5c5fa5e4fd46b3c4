"""Value types for the three-level layout hierarchy: root -> classes -> nodes.

Every type is frozen. Stages that add information (seeding prior
coordinates, applying engine geometry) return new values via
``dataclasses.replace`` instead of mutating what they were given.

``to_elk`` produces the JSON shape the layout engine consumes;
``apply_geometry`` reads the engine's answer back, matching by id.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from egraph_visualizer.exceptions import LayoutEngineError
from egraph_visualizer.viz.coordinates import Point

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from egraph_visualizer.viz.options import OptionValue

ROOT_ID = "--eclipse-layout-kernel-root"


def _no_options() -> Mapping[str, OptionValue]:
    return MappingProxyType({})


@dataclass(frozen=True)
class Section:
    """One routed segment of an edge: start, bend points, end."""

    start: Point
    end: Point
    bend_points: tuple[Point, ...] = ()

    def points(self) -> list[Point]:
        return [self.start, *self.bend_points, self.end]

    @classmethod
    def from_elk(cls, data: dict[str, Any]) -> Section:
        return cls(
            start=Point.from_dict(data["startPoint"]),
            end=Point.from_dict(data["endPoint"]),
            bend_points=tuple(Point.from_dict(p) for p in data.get("bendPoints") or ()),
        )

    def to_elk(self) -> dict[str, Any]:
        data: dict[str, Any] = {"startPoint": self.start.to_dict(), "endPoint": self.end.to_dict()}
        if self.bend_points:
            data["bendPoints"] = [p.to_dict() for p in self.bend_points]
        return data


@dataclass(frozen=True)
class LayoutPort:
    id: str
    options: Mapping[str, OptionValue] = field(default_factory=_no_options)
    x: float | None = None
    y: float | None = None

    def to_elk(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id}
        if self.options:
            data["layoutOptions"] = dict(self.options)
        _put_position(data, self.x, self.y)
        return data


@dataclass(frozen=True)
class LayoutEdge:
    """An edge or one segment of a split edge.

    Attributes:
        id: Element id
        correlation_id: Shared by the inner and outer segments of one e-node
            child reference, so the projector can recombine them
        source_node: Id of the leaf the reference starts at
        target_node: Id of the container of the target class
        sources: Source port (or node) ids
        targets: Target port (or node) ids
        sections: Routed geometry, filled in after layout
    """

    id: str
    correlation_id: str
    source_node: str
    target_node: str
    sources: tuple[str, ...]
    targets: tuple[str, ...]
    sections: tuple[Section, ...] = ()

    def to_elk(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "correlationId": self.correlation_id,
            "sourceNode": self.source_node,
            "targetNode": self.target_node,
            "sources": list(self.sources),
            "targets": list(self.targets),
        }
        if self.sections:
            data["sections"] = [s.to_elk() for s in self.sections]
        return data


@dataclass(frozen=True)
class LeafNode:
    """An e-node inside its class container.

    Attributes:
        id: Element id (``node-{node id}``)
        node_id: E-node id
        label: Text shown on the node
        hidden: True for the placeholder standing in for hidden members
    """

    id: str
    node_id: str
    label: str
    width: float
    height: float
    hidden: bool = False
    ports: tuple[LayoutPort, ...] = ()
    options: Mapping[str, OptionValue] = field(default_factory=_no_options)
    x: float | None = None
    y: float | None = None

    def to_elk(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "data": {"id": self.node_id, "label": self.label, "hidden": self.hidden},
            "width": self.width,
            "height": self.height,
            "ports": [p.to_elk() for p in self.ports],
            "labels": [{"text": self.label}],
            "layoutOptions": dict(self.options),
        }
        _put_position(data, self.x, self.y)
        return data


@dataclass(frozen=True)
class ClassContainer:
    """An e-class container with its own local sub-layout.

    Edges that start at a member node and must leave the class are routed
    through the class's outgoing ports; ``edges`` holds the local segments
    (and self loops, which never leave the class).
    """

    id: str
    class_id: str
    color: str | None
    children: tuple[LeafNode, ...] = ()
    ports: tuple[LayoutPort, ...] = ()
    edges: tuple[LayoutEdge, ...] = ()
    options: Mapping[str, OptionValue] = field(default_factory=_no_options)
    x: float | None = None
    y: float | None = None
    width: float | None = None
    height: float | None = None

    def to_elk(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "data": {"id": self.class_id, "color": self.color},
            "layoutOptions": dict(self.options),
            "children": [c.to_elk() for c in self.children],
            "ports": [p.to_elk() for p in self.ports],
            "edges": [e.to_elk() for e in self.edges],
        }
        _put_position(data, self.x, self.y)
        return data


@dataclass(frozen=True)
class LayoutGraph:
    """Root of the hierarchy handed to the layout engine."""

    children: tuple[ClassContainer, ...] = ()
    edges: tuple[LayoutEdge, ...] = ()
    options: Mapping[str, OptionValue] = field(default_factory=_no_options)
    id: str = ROOT_ID
    width: float | None = None
    height: float | None = None
    _index: dict[str, ClassContainer] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._index.update((c.id, c) for c in self.children)

    def container(self, container_id: str) -> ClassContainer | None:
        return self._index.get(container_id)

    def container_ids(self) -> list[str]:
        return [c.id for c in self.children]

    def iter_edges(self) -> Iterator[tuple[ClassContainer | None, LayoutEdge]]:
        """Yield (owning container or None for root scope, edge) for every edge."""
        for container in self.children:
            for edge in container.edges:
                yield container, edge
        for edge in self.edges:
            yield None, edge

    def to_elk(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "layoutOptions": dict(self.options),
            "children": [c.to_elk() for c in self.children],
            "edges": [e.to_elk() for e in self.edges],
        }
        if self.width is not None:
            data["width"] = self.width
            data["height"] = self.height
        return data


def _put_position(data: dict[str, Any], x: float | None, y: float | None) -> None:
    if x is not None and y is not None:
        data["x"] = x
        data["y"] = y


# =============================================================================
# Reading engine output
# =============================================================================


def apply_geometry(graph: LayoutGraph, result: dict[str, Any]) -> LayoutGraph:
    """Copy the engine's geometry onto the hierarchy that was laid out.

    Engines are free to drop the extra fields we attach (``data``,
    ``correlationId``), so geometry is matched back by element id.

    Raises:
        LayoutEngineError: If the result is missing an element or its geometry
    """
    elements = _index_elements(result)

    def lookup(element_id: str) -> dict[str, Any]:
        try:
            return elements[element_id]
        except KeyError:
            raise LayoutEngineError(f"Layout result has no element '{element_id}'") from None

    def geometry(element_id: str, *, sized: bool) -> dict[str, float]:
        element = lookup(element_id)
        keys = ("x", "y", "width", "height") if sized else ("x", "y")
        try:
            return {key: float(element[key]) for key in keys}
        except (KeyError, TypeError, ValueError) as e:
            raise LayoutEngineError(f"Layout result has no geometry for '{element_id}'", cause=e) from e

    def edge_with_sections(edge: LayoutEdge) -> LayoutEdge:
        raw_sections = lookup(edge.id).get("sections") or ()
        if not raw_sections:
            raise LayoutEngineError(f"Layout result has no route for edge '{edge.id}'")
        try:
            sections = tuple(Section.from_elk(s) for s in raw_sections)
        except (KeyError, TypeError, ValueError) as e:
            raise LayoutEngineError(f"Malformed route for edge '{edge.id}'", cause=e) from e
        return replace(edge, sections=sections)

    children = []
    for container in graph.children:
        leaves = tuple(
            replace(
                leaf,
                ports=tuple(replace(p, **geometry(p.id, sized=False)) for p in leaf.ports),
                **geometry(leaf.id, sized=True),
            )
            for leaf in container.children
        )
        children.append(
            replace(
                container,
                children=leaves,
                ports=tuple(replace(p, **geometry(p.id, sized=False)) for p in container.ports),
                edges=tuple(edge_with_sections(e) for e in container.edges),
                **geometry(container.id, sized=True),
            )
        )

    width, height = result.get("width"), result.get("height")
    return replace(
        graph,
        children=tuple(children),
        edges=tuple(edge_with_sections(e) for e in graph.edges),
        width=float(width) if width is not None else None,
        height=float(height) if height is not None else None,
    )


def _index_elements(result: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Map element id -> element dict for nodes, ports and edges at any depth."""
    index: dict[str, dict[str, Any]] = {}
    stack = [result]
    while stack:
        element = stack.pop()
        for port in element.get("ports") or ():
            index[port["id"]] = port
        for edge in element.get("edges") or ():
            index[edge["id"]] = edge
        for child in element.get("children") or ():
            index[child["id"]] = child
            stack.append(child)
    return index
