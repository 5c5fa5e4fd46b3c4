"""egraph-visualizer - turn saturated e-graphs into bounded, stable diagrams."""

from egraph_visualizer.egraph import (
    ClassData,
    EGraph,
    EGraphStats,
    ENode,
    compute_stats,
    inline_properties,
    parse,
)
from egraph_visualizer.exceptions import (
    LayoutCancelledError,
    LayoutEngineError,
    MalformedInputError,
)
from egraph_visualizer.viz import (
    CancelSignal,
    ContinuityState,
    Focus,
    LayoutResult,
    SubprocessLayoutEngine,
    layout_graph,
)

__all__ = [
    # Model
    "ClassData",
    "EGraph",
    "ENode",
    "parse",
    "inline_properties",
    "EGraphStats",
    "compute_stats",
    # Pipeline
    "layout_graph",
    "LayoutResult",
    "ContinuityState",
    "Focus",
    "CancelSignal",
    "SubprocessLayoutEngine",
    # Exceptions
    "MalformedInputError",
    "LayoutEngineError",
    "LayoutCancelledError",
]
