"""Build the hierarchical layout graph: root -> class containers -> e-nodes.

Each class gets its own local layout instead of one layout that includes
children across the hierarchy, because the layered engine cannot route an
edge that crosses a container boundary without an explicit port chain
(https://github.com/eclipse/elk/issues/1068). So every child reference
``node -> target class`` becomes two edges sharing a correlation id:

    inner: [node port] ---> [outgoing port] on the node's class   (class scope)
    outer: [outgoing port] ---> [incoming port] on the target class (root scope)

Self loops never leave their class and stay a single class-scoped edge.
Engines without the limitation can pass ``split_edges=False`` and get one
root-scope edge per reference instead.

Element ids:
    class-{class}                     class container
    node-{node}                       e-node
    port-node-{node}-{i}              port for child i on the e-node
    port-class-outgoing-{node}-{i}    outgoing port on the e-node's class
    port-class-incoming-{node}-{i}    incoming port on the target class
    edge-inner-{node}-{i}, edge-outer-{node}-{i}, edge-self-{node}-{i}, edge-{node}-{i}
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING

from egraph_visualizer.viz import options as opts
from egraph_visualizer.viz.colors import color_for
from egraph_visualizer.viz.hierarchy import ClassContainer, LayoutEdge, LayoutGraph, LayoutPort, LeafNode
from egraph_visualizer.viz.measure import as_size, estimate_text_size

if TYPE_CHECKING:
    from collections.abc import Mapping

    from egraph_visualizer.egraph.core import EGraph
    from egraph_visualizer.viz.measure import MeasureText
    from egraph_visualizer.viz.visibility import ReducedView

logger = logging.getLogger(__name__)

HIDDEN_LABEL = "…"


def class_element_id(class_id: str) -> str:
    return f"class-{class_id}"


def node_element_id(node_id: str) -> str:
    return f"node-{node_id}"


def correlation_id(node_id: str, index: int) -> str:
    return f"{node_id}-{index}"


def build_layout_graph(
    egraph: EGraph,
    view: ReducedView,
    colors: Mapping[str, str],
    measure_text: MeasureText = estimate_text_size,
    *,
    aspect_ratio: float = 1.0,
    merge_edges: bool = False,
    split_edges: bool = True,
) -> LayoutGraph:
    """Build the layout graph for the visible part of an egraph.

    Args:
        egraph: Parsed egraph
        view: Visibility reduction for this request
        colors: Type tag -> color table
        measure_text: Label -> Size callback used to size e-nodes
        aspect_ratio: Target width/height ratio hint for the root layout
        merge_edges: Collapse the per-edge incoming ports of a class into the
            class itself, for a less cluttered diagram
        split_edges: Route cross-class edges through class ports (required by
            engines that lay out each class separately)

    Returns:
        A new LayoutGraph with sizes but no positions
    """
    incoming_ports = {} if merge_edges else _allocate_incoming_ports(egraph, view)

    containers = []
    root_edges: list[LayoutEdge] = []
    for class_id, members in view.classes.items():
        container_id = class_element_id(class_id)
        class_ports = list(incoming_ports.get(class_id, ()))
        leaves = []
        local_edges = []

        for node_id in members:
            leaf_id = node_element_id(node_id)
            if view.is_hidden(node_id):
                leaves.append(_leaf(node_id, HIDDEN_LABEL, measure_text, hidden=True))
                continue

            node = egraph.nodes[node_id]
            n_ports = len(node.children)
            node_ports = []
            for index, child in enumerate(node.children):
                ref = correlation_id(node_id, index)
                target_class = egraph.child_class(child)
                target_id = class_element_id(target_class)
                target = target_id if merge_edges else f"port-class-incoming-{ref}"
                node_port = f"port-node-{ref}"

                node_ports.append(LayoutPort(
                    node_port,
                    options=MappingProxyType({
                        opts.PORT_SIDE_KEY: "SOUTH",
                        # Ports are numbered clockwise from the top, so reverse
                        # the index to keep the first child on the left
                        opts.PORT_INDEX_KEY: str(n_ports - index - 1),
                    }),
                ))

                if target_class == class_id:
                    local_edges.append(LayoutEdge(
                        f"edge-self-{ref}", ref, leaf_id, target_id, (node_port,), (target,),
                    ))
                elif split_edges:
                    outgoing = f"port-class-outgoing-{ref}"
                    class_ports.append(LayoutPort(outgoing))
                    local_edges.append(LayoutEdge(
                        f"edge-inner-{ref}", ref, leaf_id, target_id, (node_port,), (outgoing,),
                    ))
                    root_edges.append(LayoutEdge(
                        f"edge-outer-{ref}", ref, leaf_id, target_id, (outgoing,), (target,),
                    ))
                else:
                    root_edges.append(LayoutEdge(
                        f"edge-root-{ref}", ref, leaf_id, target_id, (node_port,), (target,),
                    ))

            leaves.append(_leaf(node_id, node.op, measure_text, ports=tuple(node_ports)))

        containers.append(ClassContainer(
            id=container_id,
            class_id=class_id,
            color=color_for(colors, egraph.class_type(class_id)),
            children=tuple(leaves),
            ports=tuple(class_ports),
            edges=tuple(local_edges),
            options=opts.CLASS_OPTIONS,
        ))

    _check_targets(containers, root_edges)
    logger.debug("Built layout graph: %d classes, %d root edges", len(containers), len(root_edges))
    return LayoutGraph(
        children=tuple(containers),
        edges=tuple(root_edges),
        options=opts.root_options(aspect_ratio),
    )


def _allocate_incoming_ports(egraph: EGraph, view: ReducedView) -> dict[str, list[LayoutPort]]:
    """One incoming port per emitted reference, in incoming-index order.

    Only retained, non-hidden nodes emit edges.
    """
    emitting = {node_id for node_id in view.iter_nodes() if not view.is_hidden(node_id)}
    ports: dict[str, list[LayoutPort]] = {}
    for class_id in view.classes:
        for node_id, index in egraph.incoming.get(class_id, ()):
            if node_id in emitting:
                ports.setdefault(class_id, []).append(
                    LayoutPort(f"port-class-incoming-{correlation_id(node_id, index)}")
                )
    return ports


def _leaf(
    node_id: str,
    label: str,
    measure_text: MeasureText,
    *,
    hidden: bool = False,
    ports: tuple[LayoutPort, ...] = (),
) -> LeafNode:
    size = as_size(measure_text(label))
    return LeafNode(
        id=node_element_id(node_id),
        node_id=node_id,
        label=label,
        width=size.width,
        height=size.height,
        hidden=hidden,
        ports=ports,
        options=opts.NODE_OPTIONS,
    )


def _check_targets(containers: list[ClassContainer], root_edges: list[LayoutEdge]) -> None:
    # Every edge must land on a container that exists
    known = {c.id for c in containers}
    for edge in root_edges:
        if edge.target_node not in known:
            raise KeyError(f"Edge '{edge.id}' targets missing container '{edge.target_node}'")
