"""chunkstore init / create-table: tenant and table bootstrap."""

from __future__ import annotations

from typing import Optional

import typer

from chunkstore.cli import _exitcodes as ec
from chunkstore.cli._loader import load_schema
from chunkstore.cli._output import print_error, print_object
from chunkstore.cli._storage import open_store
from chunkstore.errors import (
    InvalidSchemaError,
    TableExistsError,
    TenantExistsError,
    TenantNotFoundError,
)


def init_cmd(
    tenant: str = typer.Argument(..., help="Tenant to initialize"),
) -> None:
    """Create an empty metadata record for a tenant."""
    from chunkstore.cli import state
    from chunkstore.tables import create_tenant

    try:
        storage = open_store()
    except Exception as e:
        print_error(f"Cannot open storage backend: {e}")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        create_tenant(storage, tenant)
    except TenantExistsError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)
    except Exception as e:
        print_error(str(e))
        raise typer.Exit(ec.EXECUTION_FAILURE)
    finally:
        storage.close()

    print_object({"tenant": tenant, "status": "initialized"}, json_mode=state.json_output)


def create_table_cmd(
    tenant: str = typer.Argument(..., help="Tenant owning the table"),
    table: str = typer.Argument(..., help="Table name"),
    schema_file: Optional[str] = typer.Option(
        None, "--schema", help="Schema file (JSON, or YAML with .yaml/.yml)"
    ),
) -> None:
    """Create a table, optionally with a schema."""
    from chunkstore.cli import state
    from chunkstore.tables import create_table

    schema = None
    if schema_file is not None:
        try:
            schema = load_schema(schema_file)
        except Exception as e:
            print_error(f"Failed to load schema: {e}")
            raise typer.Exit(ec.USAGE_ERROR)

    try:
        storage = open_store()
    except Exception as e:
        print_error(f"Cannot open storage backend: {e}")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        create_table(storage, tenant, table, schema)
    except TenantNotFoundError as e:
        print_error(str(e))
        raise typer.Exit(ec.NOT_FOUND)
    except (TableExistsError, InvalidSchemaError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)
    except Exception as e:
        print_error(str(e))
        raise typer.Exit(ec.EXECUTION_FAILURE)
    finally:
        storage.close()

    print_object(
        {"tenant": tenant, "table": table, "schema": schema is not None, "status": "created"},
        json_mode=state.json_output,
    )
