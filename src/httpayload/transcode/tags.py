"""
Field tags and width-bounded integer aliases.

A record is a dataclass whose fields carry namespace tags in their
``dataclasses.field`` metadata. ``tagged()`` builds that metadata from
keyword arguments so records read like a declaration of where each value
comes from:

    @dataclass
    class Params:
        page: UInt32 = tagged(0, query="page", form="page")
        token: str = tagged("", cookie="token", cookie_secure="true")

Underscores in keyword names become hyphens, so ``cookie_secure`` is the
attribute key ``cookie-secure``.

Tags:
    tags, metadata, dataclasses, httpayload

Doc-Types:
    api-reference
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Annotated, Any

# ── Namespaces ───────────────────────────────────────────────────────────

HEADER = "header"
QUERY = "query"
COOKIE = "cookie"
FORM = "form"
PATH = "path"
MULTIPART = "multipart"
JSON = "json"

NAMESPACES = (HEADER, QUERY, COOKIE, FORM, PATH, MULTIPART, JSON)

# Tag value that excludes a field from a namespace.
SKIP = "-"


def tagged(
    default: Any = dataclasses.MISSING,
    *,
    default_factory: Any = dataclasses.MISSING,
    **tags: str,
) -> Any:
    """Return a dataclass field whose metadata holds the given tags."""
    metadata = {name.replace("_", "-"): value for name, value in tags.items()}
    if default_factory is not dataclasses.MISSING:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


def lookup_tag(metadata: Any, namespace: str) -> str | None:
    """Return the field key for ``namespace``, or None when the field is skipped."""
    value = metadata.get(namespace)
    if value is None:
        return None
    value = str(value)
    if value in ("", SKIP):
        return None
    return value


def collect_attributes(metadata: Any, namespace: str) -> dict[str, str]:
    """Collect ``<namespace>-<name>`` metadata entries keyed by ``<name>``."""
    prefix = f"{namespace}-"
    return {
        key[len(prefix):]: str(value)
        for key, value in metadata.items()
        if isinstance(key, str) and key.startswith(prefix) and len(key) > len(prefix)
    }


# ── Fixed-width integers ─────────────────────────────────────────────────


@dataclass(frozen=True)
class Bits:
    """Width marker for ``Annotated[int, Bits(...)]`` fields."""

    size: int
    signed: bool = True

    @property
    def minimum(self) -> int:
        return -(1 << (self.size - 1)) if self.signed else 0

    @property
    def maximum(self) -> int:
        return (1 << (self.size - 1)) - 1 if self.signed else (1 << self.size) - 1


Int8 = Annotated[int, Bits(8)]
Int16 = Annotated[int, Bits(16)]
Int32 = Annotated[int, Bits(32)]
Int64 = Annotated[int, Bits(64)]
UInt8 = Annotated[int, Bits(8, signed=False)]
UInt16 = Annotated[int, Bits(16, signed=False)]
UInt32 = Annotated[int, Bits(32, signed=False)]
UInt64 = Annotated[int, Bits(64, signed=False)]


__all__ = [
    "HEADER",
    "QUERY",
    "COOKIE",
    "FORM",
    "PATH",
    "MULTIPART",
    "JSON",
    "NAMESPACES",
    "SKIP",
    "tagged",
    "lookup_tag",
    "collect_attributes",
    "Bits",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
]
