"""Reading egraph files for CLI commands."""

from __future__ import annotations

from pathlib import Path

import typer

from egraph_visualizer.egraph import EGraph, inline_properties, parse
from egraph_visualizer.exceptions import MalformedInputError


def load_egraph(path: str, *, inline: bool = False) -> EGraph:
    """Parse a serialized egraph file, exiting with status 1 on bad input."""
    source = Path(path)
    if not source.is_file():
        print(f"Error: '{path}' is not a file")
        raise typer.Exit(1)

    try:
        egraph = parse(source.read_bytes())
    except MalformedInputError as e:
        print(f"Error: {e.message}")
        raise typer.Exit(1) from e

    if inline:
        egraph = inline_properties(egraph)
    return egraph
