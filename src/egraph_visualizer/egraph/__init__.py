"""EGraph model: parsing, derived indices, and pure rewrites."""

from egraph_visualizer.egraph.core import ClassData, EGraph, ENode, parse
from egraph_visualizer.egraph.stats import EGraphStats, compute_stats
from egraph_visualizer.egraph.transforms import inline_properties

__all__ = [
    "ClassData",
    "EGraph",
    "EGraphStats",
    "ENode",
    "compute_stats",
    "inline_properties",
    "parse",
]
