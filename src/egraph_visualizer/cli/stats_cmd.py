"""`egraph-viz stats`: how large is this egraph?"""

from __future__ import annotations

from typing import Annotated

import typer

from egraph_visualizer.cli._format import format_sizes, format_table, format_type, print_json, print_lines
from egraph_visualizer.cli._load import load_egraph
from egraph_visualizer.egraph import compute_stats


def register_commands(app: typer.Typer) -> None:
    """Register `stats` as a top-level command on the app."""

    @app.command("stats")
    def stats_cmd(
        path: Annotated[str, typer.Argument(help="Serialized egraph JSON file")],
        inline: Annotated[bool, typer.Option("--inline", help="Fold property classes into their users first")] = False,
        as_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
        output: Annotated[str | None, typer.Option("--output", help="Write JSON to file")] = None,
    ):
        """Show node, class and component statistics."""
        egraph = load_egraph(path, inline=inline)
        stats = compute_stats(egraph)

        if as_json:
            print_json("stats", stats.to_dict(), output)
            return

        low, high, median = stats.nodes_per_class
        print(f"\nEGraph: {path} | {stats.n_nodes} nodes | {stats.n_classes} classes\n")
        print(f"  Nodes per class: min {low}, max {high}, median {median}")
        print(f"  SCCs: {stats.n_sccs} ({stats.n_root_sccs} roots, max {stats.max_root_descendants} descendants)")
        if stats.component_sizes:
            print(f"  Components ({len(stats.component_sizes)}): {format_sizes(stats.component_sizes)}")

        if stats.top_classes:
            print("\n  Largest classes:\n")
            rows = [[class_id, str(size), format_type(type_tag)] for class_id, size, type_tag in stats.top_classes]
            print_lines(format_table(["Class", "Nodes", "Type"], rows))

        if stats.classes_per_type:
            print("\n  Classes per type:\n")
            rows = [[type_tag, str(count)] for type_tag, count in stats.classes_per_type]
            print_lines(format_table(["Type", "Count"], rows))

        print(f"\n  For JSON: egraph-viz stats {path} --json")
