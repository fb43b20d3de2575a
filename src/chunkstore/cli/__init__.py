"""chunkstore CLI: operator console for tenants, tables, and inserts."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from chunkstore.cli import info, insert_cmd, tenant_cmd

app = typer.Typer(
    name="chunkstore",
    help="chunkstore CLI: create tenants and tables, insert documents.",
    no_args_is_help=True,
)


class _State:
    """Global CLI state shared across subcommands."""

    directory: str = "."
    storage_uri: str | None = None
    max_per_chunk: int | None = None
    json_output: bool = False


state = _State()


def _version_callback(value: bool) -> None:
    if value:
        try:
            from importlib.metadata import version

            v = version("chunkstore")
        except Exception:
            v = "unknown"
        print(f"chunkstore {v}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    directory: Optional[str] = typer.Option(
        None,
        "--dir",
        envvar="CHUNKSTORE_DIR",
        help="Data directory (default: current directory)",
    ),
    storage_uri: Optional[str] = typer.Option(
        None,
        "--storage-uri",
        envvar="CHUNKSTORE_STORAGE_URI",
        help="Storage URI (e.g. file:///data or s3://bucket/prefix)",
    ),
    max_per_chunk: Optional[int] = typer.Option(
        None,
        "--max-per-chunk",
        envvar="CHUNKSTORE_MAX_PER_CHUNK",
        min=1,
        help="Maximum documents per chunk (default: 1000)",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output when supported"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log storage activity to stderr"),
    version: bool = typer.Option(
        False, "--version", help="Show version", is_eager=True, callback=_version_callback
    ),
) -> None:
    """Global options for all chunkstore commands."""
    from chunkstore.storage import parse_storage_target

    if storage_uri:
        try:
            parse_storage_target(directory=directory, storage_uri=storage_uri)
        except Exception as e:
            raise typer.BadParameter(str(e))

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )

    state.directory = directory or "."
    state.storage_uri = storage_uri
    state.max_per_chunk = max_per_chunk
    state.json_output = json_output
    if ctx.invoked_subcommand is None and not version:
        print(ctx.get_help())
        raise typer.Exit()


app.command(name="init")(tenant_cmd.init_cmd)
app.command(name="create-table")(tenant_cmd.create_table_cmd)
app.command(name="insert")(insert_cmd.insert_cmd)
app.command(name="bulk-insert")(insert_cmd.bulk_insert_cmd)
app.command(name="info")(info.info_cmd)


def main() -> None:
    """Entry point for the chunkstore CLI."""
    app()
