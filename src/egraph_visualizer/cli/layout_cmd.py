"""`egraph-viz export` and `egraph-viz layout`.

Both commands share the request options of ``layout_graph``; unset options
fall back to [tool.egraph-viz] in pyproject.toml.
"""

from __future__ import annotations

import asyncio
import json
from typing import Annotated

import typer

from egraph_visualizer.cli._config import ConfigError, VizConfig, load_config
from egraph_visualizer.cli._format import print_json, write_text
from egraph_visualizer.cli._load import load_egraph
from egraph_visualizer.exceptions import LayoutEngineError, MalformedInputError
from egraph_visualizer.viz.engine import SubprocessLayoutEngine
from egraph_visualizer.viz.pipeline import layout_graph, prepare_layout_graph
from egraph_visualizer.viz.visibility import Focus


def _load_config() -> VizConfig:
    try:
        return load_config()
    except ConfigError as e:
        print(f"Error: {e}")
        raise typer.Exit(1) from e


def _resolve_focus(focus_class: str | None, focus_node: str | None) -> Focus | None:
    if focus_class and focus_node:
        print("Error: --focus-class and --focus-node are mutually exclusive")
        raise typer.Exit(1)
    if focus_class:
        return Focus.on_class(focus_class)
    if focus_node:
        return Focus.on_node(focus_node)
    return None


def register_commands(app: typer.Typer) -> None:
    """Register `export` and `layout` as top-level commands on the app."""

    @app.command("export")
    def export_cmd(
        path: Annotated[str, typer.Argument(help="Serialized egraph JSON file")],
        budget: Annotated[int | None, typer.Option("--budget", help="Maximum visible e-nodes")] = None,
        focus_class: Annotated[str | None, typer.Option("--focus-class", help="Restrict to a class")] = None,
        focus_node: Annotated[str | None, typer.Option("--focus-node", help="Restrict to a node")] = None,
        merge_edges: Annotated[bool, typer.Option("--merge-edges", help="One incoming port per class")] = False,
        inline: Annotated[bool, typer.Option("--inline", help="Fold property classes into their users first")] = False,
        output: Annotated[str | None, typer.Option("--output", help="Write to file instead of stdout")] = None,
    ):
        """Write the layout engine input (ELK JSON) without running a layout."""
        config = _load_config()
        egraph = load_egraph(path, inline=inline)
        focus = _resolve_focus(focus_class, focus_node)

        try:
            graph = prepare_layout_graph(
                egraph,
                aspect_ratio=config.aspect_ratio,
                focus=focus,
                merge_edges=merge_edges or config.merge_edges,
                budget=config.budget if budget is None else budget,
            )
        except (MalformedInputError, ValueError) as e:
            print(f"Error: {e}")
            raise typer.Exit(1) from e

        text = json.dumps(graph, indent=2)
        if output:
            write_text(text, output, "layout input")
        else:
            print(text)

    @app.command("layout")
    def layout_cmd(
        path: Annotated[str, typer.Argument(help="Serialized egraph JSON file")],
        engine: Annotated[str | None, typer.Option("--engine", help="Layout engine command (JSON stdin -> stdout)")] = None,
        budget: Annotated[int | None, typer.Option("--budget", help="Maximum visible e-nodes")] = None,
        aspect_ratio: Annotated[float | None, typer.Option("--aspect-ratio", help="Width/height hint")] = None,
        focus_class: Annotated[str | None, typer.Option("--focus-class", help="Restrict to a class")] = None,
        focus_node: Annotated[str | None, typer.Option("--focus-node", help="Restrict to a node")] = None,
        merge_edges: Annotated[bool, typer.Option("--merge-edges", help="One incoming port per class")] = False,
        inline: Annotated[bool, typer.Option("--inline", help="Fold property classes into their users first")] = False,
        output: Annotated[str | None, typer.Option("--output", help="Write JSON to file")] = None,
    ):
        """Lay out an egraph and print React Flow nodes and edges as JSON."""
        config = _load_config()
        command = engine or config.engine
        if not command:
            print("Error: No layout engine given")
            print("Hint: Pass --engine or set it in pyproject.toml:")
            print('  [tool.egraph-viz]\n  engine = "node elk-layout.js"')
            raise typer.Exit(1)

        egraph = load_egraph(path, inline=inline)
        focus = _resolve_focus(focus_class, focus_node)

        try:
            result = asyncio.run(
                layout_graph(
                    egraph,
                    engine=SubprocessLayoutEngine(command),
                    aspect_ratio=config.aspect_ratio if aspect_ratio is None else aspect_ratio,
                    focus=focus,
                    merge_edges=merge_edges or config.merge_edges,
                    budget=config.budget if budget is None else budget,
                )
            )
        except (MalformedInputError, LayoutEngineError, ValueError) as e:
            print(f"Error: {e}")
            raise typer.Exit(1) from e

        data = {
            "nodes": result.nodes,
            "edges": result.edges,
            "visibility": {
                "visible": result.visibility_stats.visible,
                "total": result.visibility_stats.total,
            },
        }
        print_json("layout", data, output)
