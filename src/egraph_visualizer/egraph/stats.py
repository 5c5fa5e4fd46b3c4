"""Size statistics for an egraph, to help judge how large it is before laying it out."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import networkx as nx

if TYPE_CHECKING:
    from egraph_visualizer.egraph.core import EGraph

TOP_CLASSES = 10


@dataclass(frozen=True)
class EGraphStats:
    """Summary of an egraph's shape.

    Attributes:
        n_nodes: Number of e-nodes
        n_classes: Number of e-classes
        nodes_per_class: (min, max, median) class sizes
        top_classes: Largest classes as (class id, size, type) triples
        classes_per_type: (type, count) pairs, most common first
        component_sizes: Sizes of the weakly connected class components, largest first
        n_sccs: Number of strongly connected components of the class graph
        n_root_sccs: Number of SCCs with no incoming edge in the condensation
        max_root_descendants: Largest number of SCCs reachable from a root SCC
    """

    n_nodes: int
    n_classes: int
    nodes_per_class: tuple[int, int, int]
    top_classes: tuple[tuple[str, int, str | None], ...]
    classes_per_type: tuple[tuple[str, int], ...]
    component_sizes: tuple[int, ...]
    n_sccs: int
    n_root_sccs: int
    max_root_descendants: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": self.n_nodes,
            "classes": self.n_classes,
            "nodes_per_class": dict(zip(("min", "max", "median"), self.nodes_per_class, strict=True)),
            "top_classes": [
                {"class": class_id, "nodes": size, "type": type_tag}
                for class_id, size, type_tag in self.top_classes
            ],
            "classes_per_type": dict(self.classes_per_type),
            "component_sizes": list(self.component_sizes),
            "sccs": self.n_sccs,
            "root_sccs": self.n_root_sccs,
            "max_root_descendants": self.max_root_descendants,
        }


def compute_stats(egraph: EGraph) -> EGraphStats:
    """Compute size statistics over nodes, classes and class-level components."""
    sizes = {class_id: len(members) for class_id, members in egraph.class_to_nodes.items()}
    counts = sorted(sizes.values())
    if counts:
        per_class = (counts[0], counts[-1], counts[len(counts) // 2])
    else:
        per_class = (0, 0, 0)

    top = sorted(sizes.items(), key=lambda item: item[1], reverse=True)[:TOP_CLASSES]
    top_classes = tuple((class_id, size, egraph.class_type(class_id)) for class_id, size in top)

    type_counts = Counter(
        type_tag
        for class_id in egraph.class_to_nodes
        if (type_tag := egraph.class_type(class_id)) is not None
    )

    class_graph = egraph.class_graph
    component_sizes = sorted(
        (len(component) for component in nx.weakly_connected_components(class_graph)),
        reverse=True,
    )

    condensed = nx.condensation(class_graph)
    roots = [scc for scc in condensed.nodes if condensed.in_degree(scc) == 0]
    descendants = [len(nx.descendants(condensed, root)) for root in roots]

    return EGraphStats(
        n_nodes=len(egraph),
        n_classes=len(sizes),
        nodes_per_class=per_class,
        top_classes=top_classes,
        classes_per_type=tuple(type_counts.most_common()),
        component_sizes=tuple(component_sizes),
        n_sccs=condensed.number_of_nodes(),
        n_root_sccs=len(roots),
        max_root_descendants=max(descendants, default=0),
    )
