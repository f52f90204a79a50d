"""
Default conversion policy between raw external values and field types.

Manifesto:
    External values are text (or, for file parts, opaque handles). The
    policy turns them into typed field values with one exhaustive dispatch
    over ``FieldCategory``, and turns field values back into canonical,
    locale-independent text for encoding.

Architecture:
    ::

        default_cast(raw, descriptor)           decode side
            STRING       identity (non-text is formatted)
            INTEGER      [+-]digits, optional width check
            UNSIGNED     digits, optional width check
            FLOAT        float literal
            BOOLEAN      "true" / "false"
            SEQUENCE     split on "," then convert each element
            PASSTHROUGH  raw must already fit the field type
            CUSTOM       type's own parser, errors kept as cause

        format_value(value, descriptor)         encode side
            true/false, str(int), repr(float), enum value,
            to_string() when implemented, "," joined sequences

Guardrails:
    ❌ DON'T: Expect commas inside sequence elements to survive
    ✅ DO: Treat "a,b" as two elements, always

Tags:
    conversion, casting, formatting, sequences, httpayload

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import math
import re
import typing
from enum import Enum
from typing import Any

from httpayload.core.errors import ConversionError, PayloadError
from httpayload.transcode.plan import FieldCategory, FieldDescriptor
from httpayload.transcode.protocols import StringFormattable

SEQUENCE_DELIMITER = ","

_SIGNED_RE = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_RE = re.compile(r"[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.IGNORECASE,
)

_BOOLEANS = {"true": True, "false": False}


def split_sequence(text: str) -> list[str]:
    """Split comma-delimited text; empty text is an empty sequence."""
    if text == "":
        return []
    return text.split(SEQUENCE_DELIMITER)


def join_sequence(parts: typing.Iterable[str]) -> str:
    return SEQUENCE_DELIMITER.join(parts)


# =============================================================================
# DECODE
# =============================================================================


def default_cast(raw: Any, descriptor: FieldDescriptor) -> Any:
    """Convert ``raw`` to the value ``descriptor``'s field expects.

    Raises:
        ConversionError: raw cannot be represented as the field type. For
            CUSTOM fields the parser's own exception is the ``cause``.
    """
    if descriptor.category is FieldCategory.SEQUENCE:
        if isinstance(raw, (list, tuple)):
            parts = [_text(part) for part in raw]
        else:
            parts = split_sequence(_text(raw))
        values = [_cast_scalar(part, descriptor.scalar_category, descriptor) for part in parts]
        container = descriptor.container or list
        return container(values)
    return _cast_scalar(raw, descriptor.category, descriptor)


def _cast_scalar(raw: Any, category: FieldCategory, descriptor: FieldDescriptor) -> Any:
    match category:
        case FieldCategory.STRING:
            return _text(raw)
        case FieldCategory.INTEGER:
            return _parse_int(_text(raw), descriptor, _SIGNED_RE)
        case FieldCategory.UNSIGNED:
            return _parse_int(_text(raw), descriptor, _UNSIGNED_RE)
        case FieldCategory.FLOAT:
            return _parse_float(_text(raw))
        case FieldCategory.BOOLEAN:
            return _parse_bool(_text(raw))
        case FieldCategory.PASSTHROUGH:
            return _assign(raw, descriptor.target)
        case FieldCategory.CUSTOM:
            return _parse_custom(_text(raw), descriptor)
        case FieldCategory.SEQUENCE:
            raise ConversionError("nested sequences are not transcodable", value=raw)
    raise ConversionError(f"unknown field category {category!r}", value=raw)


def _text(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        try:
            return bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ConversionError("value is not valid UTF-8 text", value=raw, cause=e)
    return format_scalar(raw)


def _parse_int(text: str, descriptor: FieldDescriptor, pattern: re.Pattern[str]) -> int:
    kind = "unsigned integer" if pattern is _UNSIGNED_RE else "integer"
    if not pattern.fullmatch(text):
        raise ConversionError(f"invalid {kind} {text!r}", value=text)
    value = int(text)
    bits = descriptor.bits
    if bits is not None and not bits.minimum <= value <= bits.maximum:
        raise ConversionError(
            f"{kind} {text!r} out of range [{bits.minimum}, {bits.maximum}]", value=text
        )
    return value


def _parse_float(text: str) -> float:
    if not _FLOAT_RE.fullmatch(text):
        raise ConversionError(f"invalid float {text!r}", value=text)
    value = float(text)
    if math.isinf(value) and "inf" not in text.lower():
        raise ConversionError(f"float {text!r} out of range", value=text)
    return value


def _parse_bool(text: str) -> bool:
    try:
        return _BOOLEANS[text]
    except KeyError:
        raise ConversionError(f"invalid boolean {text!r}, expected 'true' or 'false'", value=text) from None


def _assign(raw: Any, target: Any) -> Any:
    if target is Any or target is object:
        return raw
    if typing.get_origin(target) is typing.IO or (
        isinstance(target, type) and issubclass(target, typing.IO)
    ):
        if callable(getattr(raw, "read", None)):
            return raw
    elif isinstance(target, type):
        try:
            if isinstance(raw, target):
                return raw
        except TypeError:
            # Protocols that are not runtime checkable: accept as-is.
            return raw
    raise ConversionError(
        f"{type(raw).__name__} is not assignable to {getattr(target, '__name__', target)!r}",
        value=raw,
    )


def _parse_custom(text: str, descriptor: FieldDescriptor) -> Any:
    assert descriptor.parser is not None
    try:
        return descriptor.parser(text)
    except PayloadError:
        raise
    except Exception as e:
        raise ConversionError(str(e) or type(e).__name__, value=text, cause=e)


# =============================================================================
# ENCODE
# =============================================================================


def format_scalar(value: Any) -> str:
    """Canonical text for one scalar value."""
    # str and int mixin enums are formatted by value, not as themselves.
    if isinstance(value, Enum):
        return format_scalar(value.value)
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, StringFormattable):
        return value.to_string()
    return str(value)


def format_value(value: Any, descriptor: FieldDescriptor) -> Any:
    """Format a field value for delivery to a sink.

    Pass-through values are returned untouched; everything else becomes
    text. A failing ``to_string()`` raises ConversionError with the
    original exception as cause.
    """
    if descriptor.scalar_category is FieldCategory.PASSTHROUGH:
        return value
    try:
        if descriptor.is_sequence and not isinstance(value, (str, bytes)):
            return join_sequence(format_scalar(item) for item in value)
        return format_scalar(value)
    except PayloadError:
        raise
    except Exception as e:
        raise ConversionError(str(e) or type(e).__name__, value=value, cause=e)


__all__ = [
    "SEQUENCE_DELIMITER",
    "default_cast",
    "format_scalar",
    "format_value",
    "join_sequence",
    "split_sequence",
]
