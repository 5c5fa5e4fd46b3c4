"""Stable color assignment for e-class type tags."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from egraph_visualizer.egraph.core import EGraph

# Categorical "pastel1" followed by "pastel2"
# https://vega.github.io/vega/docs/schemes/#categorical
PASTEL1 = (
    "#fbb4ae",
    "#b3cde3",
    "#ccebc5",
    "#decbe4",
    "#fed9a6",
    "#ffffcc",
    "#e5d8bd",
    "#fddaec",
    "#f2f2f2",
)
PASTEL2 = (
    "#b3e2cd",
    "#fdcdac",
    "#cbd5e8",
    "#f4cae4",
    "#e6f5c9",
    "#fff2ae",
    "#f1e2cc",
    "#cccccc",
)
PALETTE = PASTEL1 + PASTEL2


def assign_colors(
    egraph: EGraph,
    previous: Mapping[str, str] | None = None,
    palette: tuple[str, ...] = PALETTE,
) -> Mapping[str, str]:
    """Map every defined class type tag to a palette color.

    Tags are sorted so the same egraph always gets the same colors. Tags that
    already had a color in ``previous`` keep it while that color is still
    unused, so colors do not shuffle as the user filters the graph.

    Args:
        egraph: Parsed egraph
        previous: Color table from the previous request, if any
        palette: Colors to draw from, cycled when exhausted

    Returns:
        Read-only mapping of type tag -> color
    """
    types = sorted({
        data.type for data in egraph.class_data.values() if data.type
    })
    available = list(palette)
    colors: dict[str, str] = {}

    if previous:
        for type_tag, color in previous.items():
            if type_tag in types and color in available:
                colors[type_tag] = color
                available.remove(color)

    pool = available or list(palette)
    remaining = [type_tag for type_tag in types if type_tag not in colors]
    for index, type_tag in enumerate(remaining):
        colors[type_tag] = pool[index % len(pool)]

    return MappingProxyType(colors)


def color_for(colors: Mapping[str, str], type_tag: str | None) -> str | None:
    """Color of a type tag; untyped classes get no color (neutral default)."""
    if not type_tag:
        return None
    return colors.get(type_tag)
