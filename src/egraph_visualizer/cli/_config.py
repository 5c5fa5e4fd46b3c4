"""Project-level configuration from pyproject.toml.

Reads the [tool.egraph-viz] section to provide defaults for the CLI:

    [tool.egraph-viz]
    engine = "node elk-layout.js"
    budget = 300
    aspect_ratio = 1.6
    merge_edges = true

Values of the wrong type are rejected with ``ConfigError`` rather than
coerced.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from egraph_visualizer.viz.visibility import DEFAULT_BUDGET

SECTION = "egraph-viz"


class ConfigError(ValueError):
    """Invalid value in the [tool.egraph-viz] section."""

    def __init__(self, key: str, expected: str, value: Any, path: Path) -> None:
        self.key = key
        self.value = value
        self.path = path
        super().__init__(f"{path}: [tool.{SECTION}] {key} must be {expected}, got {value!r}")


@dataclass(frozen=True)
class VizConfig:
    """Configuration from [tool.egraph-viz] in pyproject.toml."""

    engine: str | None = None
    budget: int = DEFAULT_BUDGET
    aspect_ratio: float = 1.0
    merge_edges: bool = False


def find_pyproject(start: Path | None = None) -> Path | None:
    """Walk up from start directory to find pyproject.toml."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    return None


def load_config(start: Path | None = None) -> VizConfig:
    """Load [tool.egraph-viz] from the nearest pyproject.toml.

    Returns default config if no pyproject.toml or no [tool.egraph-viz] section.

    Raises:
        ConfigError: If a known key holds a value of the wrong type or range
    """
    path = find_pyproject(start)
    if path is None:
        return VizConfig()

    if sys.version_info >= (3, 11):
        import tomllib
    else:
        try:
            import tomli as tomllib
        except ImportError:
            return VizConfig()

    with open(path, "rb") as f:
        section = tomllib.load(f).get("tool", {}).get(SECTION, {})
    if not section:
        return VizConfig()

    defaults = VizConfig()
    engine = section.get("engine", defaults.engine)
    if engine is not None and not (isinstance(engine, str) and engine.strip()):
        raise ConfigError("engine", "a non-empty command string", engine, path)

    # bool is a subclass of int
    budget = section.get("budget", defaults.budget)
    if isinstance(budget, bool) or not isinstance(budget, int) or budget < 0:
        raise ConfigError("budget", "a non-negative integer", budget, path)

    aspect_ratio = section.get("aspect_ratio", defaults.aspect_ratio)
    if isinstance(aspect_ratio, bool) or not isinstance(aspect_ratio, (int, float)) or aspect_ratio <= 0:
        raise ConfigError("aspect_ratio", "a positive number", aspect_ratio, path)

    merge_edges = section.get("merge_edges", defaults.merge_edges)
    if not isinstance(merge_edges, bool):
        raise ConfigError("merge_edges", "true or false", merge_edges, path)

    return VizConfig(
        engine=engine,
        budget=budget,
        aspect_ratio=float(aspect_ratio),
        merge_edges=merge_edges,
    )
