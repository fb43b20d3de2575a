"""chunkstore insert / bulk-insert: write documents into a table."""

from __future__ import annotations

from typing import Any, Optional

import typer

from chunkstore.cli import _exitcodes as ec
from chunkstore.cli._loader import load_document, load_documents, parse_document
from chunkstore.cli._output import print_error, print_object
from chunkstore.cli._storage import open_engine, open_store
from chunkstore.errors import (
    InvalidSchemaError,
    SchemaViolationError,
    StorageFailureError,
    TableNotFoundError,
    TenantNotFoundError,
)


def _run(action: str, fn: Any) -> Any:
    """Open storage, run ``fn(engine)`` and map failures to exit codes."""
    try:
        storage = open_store()
    except Exception as e:
        print_error(f"Cannot open storage backend: {e}")
        raise typer.Exit(ec.USAGE_ERROR)

    try:
        return fn(open_engine(storage))
    except (TableNotFoundError, TenantNotFoundError) as e:
        print_error(str(e))
        raise typer.Exit(ec.NOT_FOUND)
    except SchemaViolationError as e:
        print_error(str(e))
        raise typer.Exit(ec.VALIDATION_FAILURE)
    except StorageFailureError as e:
        print_error(f"{action} failed: {e}")
        raise typer.Exit(ec.EXECUTION_FAILURE)
    except InvalidSchemaError as e:
        print_error(f"{action} failed: stored table schema is malformed: {e}")
        raise typer.Exit(ec.EXECUTION_FAILURE)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(ec.USAGE_ERROR)
    finally:
        storage.close()


def insert_cmd(
    tenant: str = typer.Argument(..., help="Tenant owning the table"),
    table: str = typer.Argument(..., help="Target table"),
    document: Optional[str] = typer.Argument(None, help="Document as inline JSON"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Read the document from a file ('-' for stdin)"),
) -> None:
    """Insert one document and print its key."""
    from chunkstore.cli import state

    if (document is None) == (file is None):
        print_error("Provide exactly one of DOCUMENT or --file")
        raise typer.Exit(ec.USAGE_ERROR)
    try:
        doc = parse_document(document) if document is not None else load_document(file or "-")
    except Exception as e:
        print_error(f"Invalid document: {e}")
        raise typer.Exit(ec.USAGE_ERROR)

    key = _run("insert", lambda engine: engine.insert(tenant, table, doc))
    if state.json_output:
        print_object({"key": key}, json_mode=True)
    else:
        print(key)


def bulk_insert_cmd(
    tenant: str = typer.Argument(..., help="Tenant owning the table"),
    table: str = typer.Argument(..., help="Target table"),
    file: str = typer.Option(..., "--file", "-f", help="JSON array or JSON-lines file ('-' for stdin)"),
) -> None:
    """Insert many documents in one batch and print their keys in input order."""
    from chunkstore.cli import state

    try:
        docs = load_documents(file)
    except Exception as e:
        print_error(f"Invalid documents: {e}")
        raise typer.Exit(ec.USAGE_ERROR)

    keys = _run("bulk insert", lambda engine: engine.bulk_insert(tenant, table, docs))
    if state.json_output:
        print_object({"count": len(keys), "keys": keys}, json_mode=True)
    else:
        for key in keys:
            print(key)
