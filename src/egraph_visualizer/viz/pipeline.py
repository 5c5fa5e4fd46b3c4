"""End-to-end egraph -> diagram pipeline.

    serialized egraph -> EGraph -> {visibility, colors} -> layout graph
        -> continuity seeding -> layout engine -> flat nodes/edges

Everything except the engine call is a synchronous, pure transform over
immutable inputs, so concurrent requests never interfere. Only the engine
call suspends, and it can be cancelled through a ``CancelSignal``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from egraph_visualizer.egraph.core import EGraph, parse
from egraph_visualizer.viz.builder import build_layout_graph
from egraph_visualizer.viz.colors import assign_colors
from egraph_visualizer.viz.continuity import ContinuityState, merge_continuity
from egraph_visualizer.viz.engine import layout_with_cancel
from egraph_visualizer.viz.hierarchy import apply_geometry
from egraph_visualizer.viz.measure import estimate_text_size
from egraph_visualizer.viz.projector import edge_lookups, to_flow_edges, to_flow_nodes
from egraph_visualizer.viz.visibility import DEFAULT_BUDGET, reduce_visibility

if TYPE_CHECKING:
    from collections.abc import Mapping

    from egraph_visualizer.viz.engine import AsyncLayoutEngine, CancelSignal, LayoutEngine
    from egraph_visualizer.viz.measure import MeasureText
    from egraph_visualizer.viz.visibility import Focus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisibilityStats:
    visible: int
    total: int


@dataclass(frozen=True)
class LayoutResult:
    """Everything the UI needs to render one request.

    Attributes:
        nodes: Flat React Flow nodes (classes absolute, e-nodes class-relative)
        edges: One React Flow edge per child reference, absolute polyline
        node_to_edges: Node id -> ids of touching edges
        edge_to_nodes: Edge id -> (source, target)
        debug_graph_dump: Pre-layout engine input, as indented JSON
        continuity: State to pass as ``previous`` on the next request
        visibility_stats: Visible vs. total e-node counts
    """

    nodes: list[dict[str, Any]]
    edges: list[dict[str, Any]]
    node_to_edges: dict[str, list[str]]
    edge_to_nodes: dict[str, tuple[str, str]]
    debug_graph_dump: str
    continuity: ContinuityState
    visibility_stats: VisibilityStats


async def layout_graph(
    egraph: EGraph | str | bytes | Mapping[str, Any],
    measure_text: MeasureText = estimate_text_size,
    *,
    engine: LayoutEngine | AsyncLayoutEngine,
    aspect_ratio: float = 1.0,
    focus: Focus | None = None,
    previous: ContinuityState | None = None,
    merge_edges: bool = False,
    signal: CancelSignal | None = None,
    overrides: Mapping[str, bool] | None = None,
    budget: int = DEFAULT_BUDGET,
    split_edges: bool = True,
) -> LayoutResult:
    """Lay out an egraph and project it to renderable nodes and edges.

    Args:
        egraph: Parsed EGraph, or the serialized form to parse
        measure_text: Label -> size callback used to size e-nodes
        engine: External layout engine
        aspect_ratio: Width/height hint for the overall layout
        focus: Restrict the diagram to what is reachable from a class or node
        previous: Continuity state returned by the previous request
        merge_edges: Share one incoming port per class instead of one per edge
        signal: Cancels the request while the engine runs
        overrides: Node id -> True (hide) / False (show), applied after budgeting
        budget: Maximum number of visible e-nodes
        split_edges: Route cross-class edges through class ports

    Raises:
        MalformedInputError: If the egraph or the focus is invalid
        LayoutEngineError: If the engine fails
        LayoutCancelledError: If ``signal`` fires before the engine finishes
    """
    if not isinstance(egraph, EGraph):
        egraph = parse(egraph)

    view = reduce_visibility(egraph, focus=focus, budget=budget, overrides=overrides)
    colors = assign_colors(egraph, previous.colors if previous else None)
    graph = build_layout_graph(
        egraph,
        view,
        colors,
        measure_text,
        aspect_ratio=aspect_ratio,
        merge_edges=merge_edges,
        split_edges=split_edges,
    )
    graph = merge_continuity(graph, previous.layout if previous else None)

    elk_graph = graph.to_elk()
    debug_graph_dump = json.dumps(elk_graph, indent=2)

    result = await layout_with_cancel(engine, elk_graph, signal)
    laid_out = apply_geometry(graph, result)

    edges = to_flow_edges(laid_out)
    node_to_edges, edge_to_nodes = edge_lookups(edges)
    logger.debug("Laid out %d classes and %d edges", len(laid_out.children), len(edges))

    return LayoutResult(
        nodes=to_flow_nodes(laid_out),
        edges=edges,
        node_to_edges=node_to_edges,
        edge_to_nodes=edge_to_nodes,
        debug_graph_dump=debug_graph_dump,
        continuity=ContinuityState(layout=laid_out, colors=colors),
        visibility_stats=VisibilityStats(visible=view.visible_count, total=view.total_count),
    )


def prepare_layout_graph(
    egraph: EGraph,
    measure_text: MeasureText = estimate_text_size,
    *,
    aspect_ratio: float = 1.0,
    focus: Focus | None = None,
    merge_edges: bool = False,
    overrides: Mapping[str, bool] | None = None,
    budget: int = DEFAULT_BUDGET,
    split_edges: bool = True,
) -> dict[str, Any]:
    """Engine input for an egraph without running a layout (for export)."""
    view = reduce_visibility(egraph, focus=focus, budget=budget, overrides=overrides)
    graph = build_layout_graph(
        egraph,
        view,
        assign_colors(egraph),
        measure_text,
        aspect_ratio=aspect_ratio,
        merge_edges=merge_edges,
        split_edges=split_edges,
    )
    return graph.to_elk()
