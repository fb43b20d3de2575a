"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from typer.testing import CliRunner

from chunkstore.cli import app

if TYPE_CHECKING:
    from click.testing import Result


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_dir(tmp_path, monkeypatch):
    """Temp data directory; environment overrides cleared."""
    for name in ("CHUNKSTORE_DIR", "CHUNKSTORE_STORAGE_URI", "CHUNKSTORE_MAX_PER_CHUNK"):
        monkeypatch.delenv(name, raising=False)
    return str(tmp_path / "cli_data")


@pytest.fixture
def seeded_dir(runner, cli_dir, tmp_path):
    """Directory with tenant ``acme``, a schema-less ``notes`` table and a ``people`` table."""
    schema_path = tmp_path / "people.yaml"
    schema_path.write_text("name: string\nage: number?\n")
    assert invoke(runner, ["init", "acme"], cli_dir).exit_code == 0
    assert invoke(runner, ["create-table", "acme", "notes"], cli_dir).exit_code == 0
    result = invoke(
        runner, ["create-table", "acme", "people", "--schema", str(schema_path)], cli_dir
    )
    assert result.exit_code == 0
    return cli_dir


def invoke(runner: CliRunner, args: list[str], data_dir: str | None = None) -> "Result":
    """Invoke CLI with proper state setup."""
    if data_dir:
        # Inject --dir before subcommand
        args = ["--dir", data_dir] + args
    return runner.invoke(app, args, catch_exceptions=False)
