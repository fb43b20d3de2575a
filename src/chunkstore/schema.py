"""Structural validation of documents against table schemas.

A schema maps field names to a type tag or a nested schema. Type tags are
``string``, ``boolean`` and ``number``; a trailing ``?`` makes the field
nullable, and a nullable field may also be omitted. Documents are checked by
compiling the schema into a pydantic model once per distinct schema.
"""

from __future__ import annotations

import hashlib
import json
import math
from typing import Annotated, Any, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    StrictBool,
    StrictInt,
    StrictStr,
    create_model,
)
from pydantic import Field as PydanticField
from pydantic import ValidationError as PydanticValidationError

from chunkstore.errors import InvalidSchemaError, SchemaViolationError
from chunkstore.types import Document, MetadataRecord, Schema


def _not_bool(value: Any) -> Any:
    # bool is an int subclass
    if isinstance(value, bool):
        raise ValueError("booleans are not numbers")
    return value


_FiniteFloat = Annotated[float, PydanticField(strict=True, allow_inf_nan=False)]

_PRIMITIVES: dict[str, Any] = {
    "string": StrictStr,
    "boolean": StrictBool,
    "number": Annotated[Union[StrictInt, _FiniteFloat], BeforeValidator(_not_bool)],
}

_MODEL_CACHE: dict[str, type[BaseModel]] = {}


def _fingerprint(schema: Schema) -> str:
    canonical = json.dumps(schema, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()


def check_schema(schema: Any, *, _path: str = "$") -> None:
    """Raise InvalidSchemaError unless ``schema`` is a well-formed schema."""
    if not isinstance(schema, dict):
        raise InvalidSchemaError(_path, f"expected an object, got {type(schema).__name__}")
    for name, spec in schema.items():
        path = f"{_path}.{name}"
        if not isinstance(name, str) or not name:
            raise InvalidSchemaError(path, "field names must be non-empty strings")
        if isinstance(spec, dict):
            check_schema(spec, _path=path)
        elif not isinstance(spec, str) or spec.rstrip("?") not in _PRIMITIVES or spec.count("?") > 1:
            raise InvalidSchemaError(path, f"unknown type tag {spec!r}")


def _build_model(model_name: str, schema: Schema) -> type[BaseModel]:
    # Document field names go through aliases so names like "_id" or "json"
    # cannot collide with pydantic's own attributes.
    fields: dict[str, Any] = {}
    for i, (name, spec) in enumerate(schema.items()):
        attr = f"f{i}"
        if isinstance(spec, dict):
            nested = _build_model(f"{model_name}_{i}", spec)
            fields[attr] = (nested, PydanticField(..., alias=name))
            continue
        ann = _PRIMITIVES[spec.rstrip("?")]
        if spec.endswith("?"):
            fields[attr] = (Optional[ann], PydanticField(default=None, alias=name))
        else:
            fields[attr] = (ann, PydanticField(..., alias=name))
    return create_model(  # type: ignore[call-overload]
        model_name,
        __config__=ConfigDict(extra="forbid"),
        **fields,
    )


def schema_model(schema: Schema) -> type[BaseModel]:
    """Return the (cached) pydantic model compiled from ``schema``."""
    key = _fingerprint(schema)
    model = _MODEL_CACHE.get(key)
    if model is None:
        check_schema(schema)
        model = _build_model(f"_Doc_{key[:12]}", schema)
        _MODEL_CACHE[key] = model
    return model


def _summarize(err: PydanticValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ())) or "$"
        parts.append(f"{loc}: {e.get('msg', 'invalid')}")
    return "; ".join(parts)


def check_json(value: Any, _path: str = "$") -> None:
    """Raise SchemaViolationError unless ``value`` round-trips through JSON unchanged.

    Object keys must be strings and numbers must be finite; ``{1: "a"}`` would
    be stored as ``{"1": "a"}`` and NaN has no JSON spelling.
    """
    if isinstance(value, float) and not math.isfinite(value):
        raise SchemaViolationError(f"{_path}: numbers must be finite, got {value!r}")
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise SchemaViolationError(f"{_path}: object keys must be strings, got {k!r}")
            check_json(v, f"{_path}.{k}")
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            check_json(item, f"{_path}[{i}]")


def validate(metadata: MetadataRecord | None, document: Document, schema: Schema) -> None:
    """Raise SchemaViolationError if ``document`` does not conform to ``schema``.

    ``metadata`` is part of the validator contract and is not consulted.
    """
    if not isinstance(document, dict):
        raise SchemaViolationError(f"$: expected an object, got {type(document).__name__}")
    check_json(document)
    model = schema_model(schema)
    try:
        model.model_validate(document)
    except PydanticValidationError as e:
        raise SchemaViolationError(_summarize(e)) from e
