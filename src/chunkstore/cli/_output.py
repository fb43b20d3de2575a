"""Output formatting helpers for the CLI."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import typer


def _cell(value: Any) -> str:
    return "-" if value is None else str(value)


def print_rows(
    rows: list[dict[str, Any]], columns: Sequence[str], *, json_mode: bool = False
) -> None:
    """Print ``rows`` restricted to ``columns``, as text columns or a JSON array.

    In text mode numeric cells are right-aligned and everything else is
    left-aligned. Nothing is printed for an empty text table.
    """
    if json_mode:
        data = [{c: r.get(c) for c in columns} for r in rows]
        typer.echo(json.dumps(data, indent=2, default=str))
        return
    if not rows:
        return

    cells = [[_cell(r.get(c)) for c in columns] for r in rows]
    widths = {c: max([len(c)] + [len(line[i]) for line in cells]) for i, c in enumerate(columns)}
    numeric = {
        c: all(isinstance(r.get(c), int) and not isinstance(r.get(c), bool) for r in rows)
        for c in columns
    }

    def fmt(values: Sequence[str]) -> str:
        out = []
        for c, v in zip(columns, values):
            out.append(v.rjust(widths[c]) if numeric[c] else v.ljust(widths[c]))
        return "  ".join(out).rstrip()

    typer.echo(fmt(list(columns)))
    typer.echo(fmt(["-" * widths[c] for c in columns]))
    for line in cells:
        typer.echo(fmt(line))


def print_object(data: dict[str, Any], *, json_mode: bool = False) -> None:
    """Print a single object as JSON or key-value lines."""
    if json_mode:
        print(json.dumps(data, indent=2, default=str))
        return

    for k, v in data.items():
        if isinstance(v, list):
            print(f"{k}:")
            for item in v:
                print(f"  {item}")
        else:
            print(f"{k}: {v}")


def print_error(msg: str) -> None:
    typer.echo(f"chunkstore: error: {msg}", err=True)
