"""
JSON body document codec.

The body is not transcoded field by field from text: it is a structured
document, so it is delegated to pydantic. Only fields tagged ``json``
take part. ``json="email,omitempty"`` names the document key and drops
empty values when printing; ``json="-"`` excludes the field.

Tags:
    json, body, pydantic, codec, httpayload

Doc-Types:
    api-reference
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError

from httpayload.core.errors import ConversionError, PlanError
from httpayload.transcode.plan import resolve_field_types
from httpayload.transcode.tags import JSON, lookup_tag


@dataclass(frozen=True)
class BodyField:
    """One ``json``-tagged field of a record."""

    name: str
    key: str
    omitempty: bool
    adapter: TypeAdapter[Any]


@lru_cache(maxsize=None)
def body_fields(record_type: type) -> tuple[BodyField, ...]:
    """Return the json-tagged fields of ``record_type`` (cached per type)."""
    hints = resolve_field_types(record_type)
    result = []
    for f in dataclasses.fields(record_type):
        tag = lookup_tag(f.metadata, JSON)
        if tag is None:
            continue
        key, _, options = tag.partition(",")
        try:
            adapter = TypeAdapter(hints[f.name])
        except PydanticSchemaGenerationError as e:
            raise PlanError(
                f"field type not serializable as JSON: {hints[f.name]!r}", cause=e
            ).with_context(record=record_type.__qualname__, namespace=JSON, field=f.name)
        result.append(
            BodyField(
                name=f.name,
                key=key or f.name,
                omitempty="omitempty" in options.split(","),
                adapter=adapter,
            )
        )
    return tuple(result)


def load_document(document: dict[str, Any], record: Any) -> None:
    """Validate document values onto the record's json fields."""
    for body_field in body_fields(type(record)):
        if body_field.key not in document:
            continue
        raw = document[body_field.key]
        try:
            value = body_field.adapter.validate_python(raw)
        except ValidationError as e:
            raise ConversionError(
                f"invalid value for {body_field.key!r}", value=raw, cause=e
            ).with_context(
                record=type(record).__qualname__,
                namespace=JSON,
                field=body_field.name,
                key=body_field.key,
            )
        setattr(record, body_field.name, value)


def dump_document(record: Any) -> dict[str, Any]:
    """Serialize the record's json fields to JSON-compatible values."""
    document: dict[str, Any] = {}
    for body_field in body_fields(type(record)):
        value = getattr(record, body_field.name)
        if body_field.omitempty and _is_empty(value):
            continue
        document[body_field.key] = body_field.adapter.dump_python(value, mode="json")
    return document


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and value == 0:
        return True
    try:
        return len(value) == 0
    except TypeError:
        return False


__all__ = ["BodyField", "body_fields", "dump_document", "load_document"]
