"""Project a laid-out hierarchy back to flat React Flow nodes and edges.

Containers are emitted in absolute coordinates and their e-nodes relative
to the container (React Flow's ``parentId`` convention). Edges that were
split into an inner and an outer segment for the layout engine are
recombined here by correlation id into one polyline in absolute space, so
each child reference renders, and can be selected, as a single edge.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from egraph_visualizer.viz.coordinates import CoordinateSpace, Point

if TYPE_CHECKING:
    from egraph_visualizer.viz.hierarchy import ClassContainer, LayoutEdge, LayoutGraph


def to_flow_nodes(layout: LayoutGraph) -> list[dict[str, Any]]:
    """Flatten containers and their e-nodes into one node list."""
    nodes: list[dict[str, Any]] = []
    for container in layout.children:
        nodes.append({
            "id": container.id,
            "type": "class",
            "position": {"x": container.x, "y": container.y},
            "width": container.width,
            "height": container.height,
            "data": {"id": container.class_id, "color": container.color},
        })
        for leaf in container.children:
            nodes.append({
                "id": leaf.id,
                "type": "node",
                "parentId": container.id,
                "position": {"x": leaf.x, "y": leaf.y},
                "width": leaf.width,
                "height": leaf.height,
                "data": {"id": leaf.node_id, "label": leaf.label, "hidden": leaf.hidden},
            })
    return nodes


def to_flow_edges(layout: LayoutGraph) -> list[dict[str, Any]]:
    """One edge per correlation id, inner points first, then outer points."""
    inner: dict[str, tuple[ClassContainer, LayoutEdge]] = {}
    outer: dict[str, LayoutEdge] = {}
    for container, edge in layout.iter_edges():
        if container is None:
            outer[edge.correlation_id] = edge
        else:
            inner[edge.correlation_id] = (container, edge)

    edges = []
    for ref in [*inner, *(ref for ref in outer if ref not in inner)]:
        points: list[Point] = []

        if ref in inner:
            container, inner_edge = inner[ref]
            points.extend(CoordinateSpace.of_container(container).points_to_absolute(_points(inner_edge)))

        if ref in outer:
            outer_edge = outer[ref]
            outer_points = _points(outer_edge)
            # The outer segment starts where the inner one ends
            points.extend(outer_points[1:] if points else outer_points)

        template = outer[ref] if ref in outer else inner[ref][1]
        edges.append({
            "id": ref,
            "type": "edge",
            "source": template.source_node,
            "target": template.target_node,
            "data": {"points": [p.to_dict() for p in points]},
        })
    return edges


def _points(edge: LayoutEdge) -> list[Point]:
    return [point for section in edge.sections for point in section.points()]


def edge_lookups(edges: list[dict[str, Any]]) -> tuple[dict[str, list[str]], dict[str, tuple[str, str]]]:
    """Build selection lookups.

    Returns:
        (node id -> ids of touching edges, edge id -> (source, target))
    """
    node_to_edges: dict[str, list[str]] = {}
    edge_to_nodes: dict[str, tuple[str, str]] = {}
    for edge in edges:
        node_to_edges.setdefault(edge["source"], []).append(edge["id"])
        if edge["target"] != edge["source"]:
            node_to_edges.setdefault(edge["target"], []).append(edge["id"])
        edge_to_nodes[edge["id"]] = (edge["source"], edge["target"])
    return node_to_edges, edge_to_nodes
