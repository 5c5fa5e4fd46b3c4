"""egraph-viz CLI: inspect serialized egraphs and lay them out.

Entry point for the `egraph-viz` command. Requires ``pip install egraph-visualizer[cli]``.

Commands:
    stats     Size statistics (classes, nodes, SCCs) for an egraph file
    export    Write the layout engine input for an egraph file
    layout    Run a layout engine and write React Flow nodes and edges

Pass ``--verbose`` before the command to log visibility, continuity and
engine decisions to stderr.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _require_typer():
    """Check that typer is available."""
    try:
        import typer  # noqa: F401
    except ImportError:
        import sys

        print("Error: typer is required for the CLI. Install with: pip install egraph-visualizer[cli]", file=sys.stderr)
        raise SystemExit(1) from None


def configure_logging(verbose: bool) -> None:
    """Send package logs to stderr; a no-op when the root logger already has handlers."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def create_app():
    """Create the Typer app with every command registered."""
    _require_typer()

    import typer

    from egraph_visualizer.cli import layout_cmd, stats_cmd

    app = typer.Typer(
        name="egraph-viz",
        help="Egraph inspection and layout CLI.",
        no_args_is_help=True,
    )

    @app.callback()
    def root(
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline decisions to stderr"),
    ):
        configure_logging(verbose)

    stats_cmd.register_commands(app)
    layout_cmd.register_commands(app)
    return app


def main():
    """CLI entry point."""
    create_app()()
