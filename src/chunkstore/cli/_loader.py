"""Load documents and schemas from files or inline arguments."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import yaml


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def load_schema(path: str) -> dict[str, Any]:
    """Load a table schema from a JSON or YAML file."""
    text = _read_text(path)
    if path.endswith((".yaml", ".yml")):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"schema file {path} must contain an object")
    return data


def parse_document(text: str) -> dict[str, Any]:
    """Parse one JSON document; it must be an object."""
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("document must be a JSON object")
    return data


def load_document(path: str) -> dict[str, Any]:
    return parse_document(_read_text(path))


def load_documents(path: str) -> list[dict[str, Any]]:
    """Load documents from a JSON array or a JSON-lines file."""
    text = _read_text(path)
    stripped = text.lstrip()
    if stripped.startswith("["):
        docs = json.loads(stripped)
    else:
        docs = [json.loads(line) for line in text.splitlines() if line.strip()]
    for i, doc in enumerate(docs):
        if not isinstance(doc, dict):
            raise ValueError(f"document #{i} must be a JSON object")
    return docs
