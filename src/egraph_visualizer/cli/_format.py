"""Formatting utilities for CLI output.

Human-readable tables and summaries, and the JSON envelope every
``--json`` command writes.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

# Bump on breaking changes to the JSON structure
SCHEMA_VERSION = 1

MAX_LINES = 100
MAX_LISTED_SIZES = 10

# Columns right-aligned in tables
NUMERIC_HEADERS = frozenset({"Nodes", "Count"})


def json_envelope(command: str, data: Any) -> dict[str, Any]:
    """Wrap data in the standard JSON output envelope."""
    return {
        "schema_version": SCHEMA_VERSION,
        "command": command,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }


def write_text(text: str, output: str, label: str) -> None:
    with open(output, "w") as f:
        f.write(text)
    print(f"Wrote {label} to {output} ({len(text.encode()) / 1024:.1f}KB)")


def print_json(command: str, data: Any, output: str | None = None) -> None:
    """Print the JSON envelope to stdout, or write it to ``output``."""
    text = json.dumps(json_envelope(command, data), indent=2, default=str)
    if output:
        write_text(text, output, f"{command} output")
    else:
        print(text)


def format_type(type_tag: str | None) -> str:
    return type_tag or "—"


def format_sizes(sizes: tuple[int, ...], limit: int = MAX_LISTED_SIZES) -> str:
    """'5, 3, 1', with a trailing ellipsis past ``limit`` entries."""
    listed = ", ".join(str(size) for size in sizes[:limit])
    return f"{listed} …" if len(sizes) > limit else listed


def format_table(headers: list[str], rows: list[list[str]], indent: int = 2) -> list[str]:
    """Align rows under headers; numeric columns are right-aligned.

    Returns list of lines (does not print).
    """
    if not rows:
        return []

    widths = [max(len(header), *(len(row[i]) for row in rows)) for i, header in enumerate(headers)]

    def line(cells: list[str]) -> str:
        return " " * indent + "  ".join(cells)

    lines = [
        line([h.ljust(w) for h, w in zip(headers, widths)]),
        line(["─" * w for w in widths]),
    ]
    for row in rows:
        lines.append(line([
            cell.rjust(w) if header in NUMERIC_HEADERS else cell.ljust(w)
            for header, cell, w in zip(headers, row, widths)
        ]))
    return lines


def print_lines(lines: list[str], max_lines: int = MAX_LINES) -> None:
    """Print lines with truncation warning if too many."""
    for text in lines[:max_lines]:
        print(text)
    if len(lines) > max_lines:
        print(f"\n  # ... {len(lines) - max_lines} more lines")
