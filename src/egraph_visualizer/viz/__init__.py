"""Egraph -> diagram projection.

Usage:
    from egraph_visualizer.viz import layout_graph, SubprocessLayoutEngine

    engine = SubprocessLayoutEngine("node elk-layout.js")
    result = await layout_graph(raw_json, engine=engine, budget=200)
    result.nodes, result.edges  # React Flow nodes and edges

    # Next request (after a filter change): keep positions stable
    result = await layout_graph(raw_json, engine=engine, previous=result.continuity)
"""

from egraph_visualizer.viz.builder import HIDDEN_LABEL, build_layout_graph
from egraph_visualizer.viz.colors import PALETTE, assign_colors, color_for
from egraph_visualizer.viz.continuity import ContinuityState, merge_continuity
from egraph_visualizer.viz.engine import (
    AsyncLayoutEngine,
    CancelSignal,
    LayoutEngine,
    SubprocessLayoutEngine,
    layout_with_cancel,
)
from egraph_visualizer.viz.hierarchy import LayoutGraph, apply_geometry
from egraph_visualizer.viz.measure import Size, estimate_text_size
from egraph_visualizer.viz.pipeline import LayoutResult, VisibilityStats, layout_graph, prepare_layout_graph
from egraph_visualizer.viz.projector import edge_lookups, to_flow_edges, to_flow_nodes
from egraph_visualizer.viz.visibility import DEFAULT_BUDGET, Focus, ReducedView, reduce_visibility

__all__ = [
    "AsyncLayoutEngine",
    "CancelSignal",
    "ContinuityState",
    "DEFAULT_BUDGET",
    "Focus",
    "HIDDEN_LABEL",
    "LayoutEngine",
    "LayoutGraph",
    "LayoutResult",
    "PALETTE",
    "ReducedView",
    "Size",
    "SubprocessLayoutEngine",
    "VisibilityStats",
    "apply_geometry",
    "assign_colors",
    "build_layout_graph",
    "color_for",
    "edge_lookups",
    "estimate_text_size",
    "layout_graph",
    "layout_with_cancel",
    "merge_continuity",
    "prepare_layout_graph",
    "reduce_visibility",
    "to_flow_edges",
    "to_flow_nodes",
]
