"""Layout option presets passed through to the layout engine.

The vocabulary is the Eclipse Layout Kernel's; the pipeline never
interprets these values. Presets are read-only and every request builds
its own copies with ``merged``, so concurrent requests never share a
mutable options object.

- https://www.eclipse.org/elk/reference/algorithms.html
- https://www.eclipse.org/elk/reference/options.html
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from collections.abc import Mapping

OptionValue = Union[str, float]

# Padding between nodes, and between nodes and their class
NODE_PADDING = 5

ROOT_OPTIONS: Mapping[str, OptionValue] = MappingProxyType({
    "elk.algorithm": "layered",
    "elk.direction": "DOWN",
    # More compact than the default placement
    "elk.layered.nodePlacement.strategy": "NETWORK_SIMPLEX",
    "elk.layered.mergeEdges": "true",
})

CLASS_OPTIONS: Mapping[str, OptionValue] = MappingProxyType({
    "elk.algorithm": "layered",
    "elk.direction": "DOWN",
    "elk.spacing.componentComponent": str(NODE_PADDING),
    "elk.spacing.nodeNode": str(NODE_PADDING),
    "elk.padding": f"[top={NODE_PADDING},left={NODE_PADDING},bottom={NODE_PADDING},right={NODE_PADDING}]",
    "elk.spacing.portPort": "0",
    # Ports on a class may sit anywhere
    "portConstraints": "FREE",
})

NODE_OPTIONS: Mapping[str, OptionValue] = MappingProxyType({
    "portConstraints": "FIXED_ORDER",
})

# Seeded positions are only honored by the interactive strategies.
# Interactive crossing minimization is left off: it produces broken edges.
INTERACTIVE_OPTIONS: Mapping[str, OptionValue] = MappingProxyType({
    "elk.layered.cycleBreaking.strategy": "INTERACTIVE",
    "elk.layered.layering.strategy": "INTERACTIVE",
    "elk.layered.nodePlacement.strategy": "INTERACTIVE",
})

ASPECT_RATIO_KEY = "elk.aspectRatio"
PORT_SIDE_KEY = "port.side"
PORT_INDEX_KEY = "port.index"


def merged(*layers: Mapping[str, OptionValue]) -> Mapping[str, OptionValue]:
    """Combine option layers into a new read-only mapping; later layers win."""
    combined: dict[str, OptionValue] = {}
    for layer in layers:
        combined.update(layer)
    return MappingProxyType(combined)


def root_options(aspect_ratio: float) -> Mapping[str, OptionValue]:
    # The engine only accepts the aspect ratio as a number
    return merged(ROOT_OPTIONS, {ASPECT_RATIO_KEY: float(aspect_ratio)})
