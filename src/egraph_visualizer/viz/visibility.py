"""Visibility reduction: decide which e-nodes are shown, hidden, or elided.

Large egraphs cannot be laid out in interactive time, so every request is
bounded by a node budget. Two mutually exclusive modes:

- Focused: only what is reachable from a selected class (or node) is kept,
  and nodes past the budget become hidden.
- Global: cycles are collapsed into strongly connected components, the
  tallest component of the condensation seeds a breadth-first walk, and
  nodes past the budget become hidden. Nothing is deleted in this mode.

Hidden nodes are elided down to one placeholder per class, so the diagram
still shows that a class has more members to expand.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Literal

import networkx as nx

from egraph_visualizer.exceptions import MalformedInputError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from egraph_visualizer.egraph.core import EGraph

logger = logging.getLogger(__name__)

DEFAULT_BUDGET = 500


@dataclass(frozen=True)
class Focus:
    """A selected class or node that the diagram is restricted to."""

    kind: Literal["class", "node"]
    id: str

    @classmethod
    def on_class(cls, class_id: str) -> Focus:
        return cls("class", class_id)

    @classmethod
    def on_node(cls, node_id: str) -> Focus:
        return cls("node", node_id)


@dataclass(frozen=True)
class ReducedView:
    """Result of visibility reduction.

    Attributes:
        classes: Class id -> retained member node ids, in class order
        hidden: Retained node ids that are hidden placeholders
        pruned: Class ids removed because they held only placeholders and
            nothing pointed at them
        total_count: Number of nodes in the full egraph
    """

    classes: Mapping[str, tuple[str, ...]]
    hidden: frozenset[str]
    pruned: tuple[str, ...]
    total_count: int

    @property
    def visible_count(self) -> int:
        return sum(len(members) for members in self.classes.values()) - len(self.hidden)

    def is_hidden(self, node_id: str) -> bool:
        return node_id in self.hidden

    def iter_nodes(self) -> Iterator[str]:
        """Iterate over retained node ids, class by class."""
        for members in self.classes.values():
            yield from members


def reduce_visibility(
    egraph: EGraph,
    *,
    focus: Focus | None = None,
    budget: int = DEFAULT_BUDGET,
    overrides: Mapping[str, bool] | None = None,
) -> ReducedView:
    """Compute the bounded view of an egraph for one request.

    Args:
        egraph: Parsed egraph
        focus: Restrict the view to what is reachable from this class or node
        budget: Maximum number of visible nodes
        overrides: Node id -> True to force hidden, False to force shown.
            Applied after the budget pass.

    Returns:
        ReducedView with at most one hidden placeholder per class

    Raises:
        MalformedInputError: If the focus names an unknown class or node
        ValueError: If budget is negative
    """
    if budget < 0:
        raise ValueError(f"budget must be non-negative, got {budget}")

    if focus is not None:
        classes, hidden = _reduce_focused(egraph, focus, budget)
    else:
        classes, hidden = _reduce_global(egraph, budget)

    hidden = _apply_overrides(hidden, classes, overrides or {})
    view = _retain_placeholders(egraph, classes, hidden)
    logger.debug(
        "Visibility: %d/%d nodes visible, %d placeholders, %d classes pruned",
        view.visible_count,
        view.total_count,
        len(view.hidden),
        len(view.pruned),
    )
    return view


# =============================================================================
# Focused mode
# =============================================================================


def _reduce_focused(
    egraph: EGraph,
    focus: Focus,
    budget: int,
) -> tuple[dict[str, tuple[str, ...]], set[str]]:
    """Breadth-first walk over classes reachable from the focus."""
    class_to_nodes = dict(egraph.class_to_nodes)

    if focus.kind == "node":
        if focus.id not in egraph.nodes:
            raise MalformedInputError(f"Focus node '{focus.id}' does not exist", path="focus")
        start = egraph.node_to_class[focus.id]
        # A selected node stands in for its whole class
        class_to_nodes[start] = (focus.id,)
    else:
        if focus.id not in class_to_nodes:
            raise MalformedInputError(f"Focus class '{focus.id}' does not exist", path="focus")
        start = focus.id

    reached = {start}
    queue = deque([start])
    hidden: set[str] = set()
    count = 0
    while queue:
        class_id = queue.popleft()
        for node_id in class_to_nodes[class_id]:
            count += 1
            if count > budget:
                hidden.add(node_id)
            for child in egraph.nodes[node_id].children:
                child_class = egraph.child_class(child)
                if child_class not in reached:
                    reached.add(child_class)
                    queue.append(child_class)

    classes = {
        class_id: members
        for class_id, members in class_to_nodes.items()
        if class_id in reached
    }
    return classes, hidden


# =============================================================================
# Global mode
# =============================================================================


def build_substitution_graph(egraph: EGraph) -> nx.DiGraph:
    """Node-level adjacency where a node points at every member of each child's class.

    Any class member can stand in for the child, so hiding one member must
    not cut reachability through its class-mates.
    """
    graph: nx.DiGraph = nx.DiGraph()
    graph.add_nodes_from(egraph.nodes)
    for node_id, node in egraph.nodes.items():
        for child in node.children:
            for member in egraph.class_to_nodes[egraph.child_class(child)]:
                graph.add_edge(node_id, member)
    return graph


def find_seed(egraph: EGraph, graph: nx.DiGraph) -> list[str]:
    """Members of the tallest strongly connected component, in egraph order.

    Height is 1 + the height of the tallest component pointed to. In a DAG
    of rewrite terms the tallest chain is the most likely root region.
    Heuristic only: with several disconnected components it picks one.
    """
    if graph.number_of_nodes() == 0:
        return []

    condensed = nx.condensation(graph, scc=nx.strongly_connected_components(graph))
    height: dict[int, int] = {}
    for component in reversed(list(nx.topological_sort(condensed))):
        height[component] = 1 + max(
            (height[successor] for successor in condensed.successors(component)),
            default=0,
        )

    tallest = max(condensed.nodes, key=lambda component: (height[component], -component))
    members = condensed.nodes[tallest]["members"]
    return [node_id for node_id in egraph.nodes if node_id in members]


def _reduce_global(
    egraph: EGraph,
    budget: int,
) -> tuple[dict[str, tuple[str, ...]], set[str]]:
    """Breadth-first walk from the tallest component; the rest is hidden, not deleted."""
    graph = build_substitution_graph(egraph)
    seed = find_seed(egraph, graph)

    visible: set[str] = set()
    visited = set(seed)
    queue = deque(seed)
    while queue and len(visible) < budget:
        node_id = queue.popleft()
        visible.add(node_id)
        for neighbor in graph.successors(node_id):
            if neighbor not in visited:
                visited.add(neighbor)
                queue.append(neighbor)

    hidden = {node_id for node_id in egraph.nodes if node_id not in visible}
    return dict(egraph.class_to_nodes), hidden


# =============================================================================
# Overrides and placeholders
# =============================================================================


def _apply_overrides(
    hidden: set[str],
    classes: Mapping[str, tuple[str, ...]],
    overrides: Mapping[str, bool],
) -> set[str]:
    if not overrides:
        return hidden

    retained = {node_id for members in classes.values() for node_id in members}
    result = set(hidden)
    for node_id, hide in overrides.items():
        if node_id not in retained:
            logger.warning("Ignoring visibility override for node '%s' outside the view", node_id)
            continue
        if hide:
            result.add(node_id)
        else:
            result.discard(node_id)
    return result


def _retain_placeholders(
    egraph: EGraph,
    classes: Mapping[str, tuple[str, ...]],
    hidden: set[str],
) -> ReducedView:
    """Keep visible nodes plus the first hidden node per class, then prune dead classes."""
    retained: dict[str, tuple[str, ...]] = {}
    placeholders: set[str] = set()
    for class_id, members in classes.items():
        kept = []
        has_placeholder = False
        for node_id in members:
            if node_id not in hidden:
                kept.append(node_id)
            elif not has_placeholder:
                kept.append(node_id)
                placeholders.add(node_id)
                has_placeholder = True
        if kept:
            retained[class_id] = tuple(kept)

    # Pruning a class can leave the classes it pointed at untargeted
    pruned: list[str] = []
    while True:
        targeted = {
            egraph.child_class(child)
            for members in retained.values()
            for node_id in members
            for child in egraph.nodes[node_id].children
        }
        dead = [
            class_id
            for class_id, kept in retained.items()
            if class_id not in targeted and all(node_id in placeholders for node_id in kept)
        ]
        if not dead:
            break
        for class_id in dead:
            placeholders.difference_update(retained.pop(class_id))
        pruned.extend(dead)

    return ReducedView(
        classes=MappingProxyType(retained),
        hidden=frozenset(placeholders),
        pruned=tuple(pruned),
        total_count=len(egraph),
    )
