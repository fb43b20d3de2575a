"""chunkstore info: per-table chunk and document counts for a tenant."""

from __future__ import annotations

import typer

from chunkstore.cli import _exitcodes as ec
from chunkstore.cli._output import print_error, print_rows
from chunkstore.cli._storage import open_store
from chunkstore.errors import TenantNotFoundError

_COLUMNS = ("table", "has_schema", "chunks", "documents", "indexed_keys")


def info_cmd(
    tenant: str = typer.Argument(..., help="Tenant to describe"),
) -> None:
    """Show tables, chunk counts, and document counts for a tenant."""
    from chunkstore.cli import state
    from chunkstore.tables import describe_tenant

    try:
        storage = open_store()
    except Exception as e:
        print_error(f"Cannot open storage backend: {e}")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        rows = describe_tenant(storage, tenant)
    except TenantNotFoundError as e:
        print_error(str(e))
        raise typer.Exit(ec.NOT_FOUND)
    except Exception as e:
        print_error(str(e))
        raise typer.Exit(ec.EXECUTION_FAILURE)
    finally:
        storage.close()

    if not rows and not state.json_output:
        print(f"Tenant {tenant} has no tables.")
        return
    print_rows(rows, _COLUMNS, json_mode=state.json_output)
