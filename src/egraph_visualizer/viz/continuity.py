"""Layout continuity: seed a new layout with the positions of the previous one.

When most classes of the new diagram were already on screen, the engine is
switched to its interactive strategies and every matching class, e-node and
port starts from where it was, so the picture does not jump around while
the user filters or expands the graph. New elements get no seed and are
placed fresh.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from egraph_visualizer.viz import options as opts

if TYPE_CHECKING:
    from collections.abc import Mapping

    from egraph_visualizer.viz.hierarchy import LayoutGraph, LayoutPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContinuityState:
    """Carried between successive requests; owned by the caller.

    Attributes:
        layout: Previous laid-out hierarchy (with positions)
        colors: Previous type tag -> color table
    """

    layout: LayoutGraph
    colors: Mapping[str, str]


def has_majority_overlap(graph: LayoutGraph, previous: LayoutGraph) -> bool:
    """Whether at least half of the current classes were in the previous layout."""
    previous_ids = set(previous.container_ids())
    current_ids = graph.container_ids()
    overlapping = sum(1 for container_id in current_ids if container_id in previous_ids)
    return overlapping >= len(current_ids) - overlapping


def merge_continuity(graph: LayoutGraph, previous: LayoutGraph | None) -> LayoutGraph:
    """Return ``graph`` seeded with the previous layout's positions.

    Args:
        graph: Freshly built hierarchy (not laid out)
        previous: Laid-out hierarchy from the previous request, if any

    Returns:
        ``graph`` itself when there is no previous layout or too little
        overlap; otherwise a new LayoutGraph in interactive mode
    """
    if previous is None:
        return graph

    if not has_majority_overlap(graph, previous):
        logger.info("Previous layout overlaps too little; running a full layout")
        return graph

    children = []
    seeded = 0
    for container in graph.children:
        prior = previous.container(container.id)
        if prior is None:
            children.append(container)
            continue

        seeded += 1
        prior_leaves = {leaf.id: leaf for leaf in prior.children}
        leaves = []
        for leaf in container.children:
            prior_leaf = prior_leaves.get(leaf.id)
            if prior_leaf is None:
                leaves.append(leaf)
                continue
            leaves.append(replace(
                leaf,
                x=prior_leaf.x,
                y=prior_leaf.y,
                ports=_seed_ports(leaf.ports, prior_leaf.ports),
            ))

        children.append(replace(
            container,
            options=opts.merged(container.options, opts.INTERACTIVE_OPTIONS),
            x=prior.x,
            y=prior.y,
            children=tuple(leaves),
            ports=_seed_ports(container.ports, prior.ports),
        ))

    logger.info("Seeding %d of %d classes from the previous layout", seeded, len(graph.children))
    return replace(
        graph,
        options=opts.merged(graph.options, opts.INTERACTIVE_OPTIONS),
        children=tuple(children),
    )


def _seed_ports(ports: tuple[LayoutPort, ...], prior_ports: tuple[LayoutPort, ...]) -> tuple[LayoutPort, ...]:
    prior = {port.id: port for port in prior_ports}
    return tuple(
        replace(port, x=prior[port.id].x, y=prior[port.id].y) if port.id in prior else port
        for port in ports
    )
