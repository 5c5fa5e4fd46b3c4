"""Text measurement used to size e-node boxes.

The host UI normally supplies a measuring callback backed by an offscreen
element. ``estimate_text_size`` is the Python-side stand-in for headless
use (CLI, tests): a monospace estimate of the rendered label.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class Size:
    width: float
    height: float


MeasureText = Callable[[str], Size]

CHAR_WIDTH_PX = 7
LINE_HEIGHT_PX = 16
HORIZONTAL_PADDING = 16
VERTICAL_PADDING = 8
MIN_NODE_WIDTH = 24
MAX_LABEL_CHARS = 40


def estimate_text_size(text: str) -> Size:
    """Estimate the box size for a label.

    Long lines are truncated at ``MAX_LABEL_CHARS`` the way the node
    component ellipsizes them.
    """
    lines = text.splitlines() or [""]
    longest = min(max(len(line) for line in lines), MAX_LABEL_CHARS)
    width = max(longest * CHAR_WIDTH_PX + HORIZONTAL_PADDING, MIN_NODE_WIDTH)
    height = len(lines) * LINE_HEIGHT_PX + VERTICAL_PADDING
    return Size(width, height)


def as_size(value: Size | dict[str, float] | tuple[float, float]) -> Size:
    """Accept the shapes host callbacks commonly return."""
    if isinstance(value, Size):
        return value
    if isinstance(value, dict):
        return Size(float(value["width"]), float(value["height"]))
    width, height = value
    return Size(float(width), float(height))
