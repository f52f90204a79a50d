"""
Capability contracts between the transcoding engine and its adapters.

Manifesto:
    The engine never sees a request or a response. It talks to two small
    structural protocols: a Source it reads raw values from, and a Sink it
    delivers formatted values to. Anything with the right shape works:
    a header map wrapper, a cookie list, a dict in a test.

Architecture:
    ::

        protocols.py
        ├── Source              get(key) -> raw | None
        │   └── CastingSource   + cast(raw, descriptor), overrides the default policy
        ├── Sink                set(key, value)
        │   └── FieldSink       + set_field(key, value, descriptor), preferred over set
        ├── StringParseable     from_string(text) classmethod on a field type
        ├── StringFormattable   to_string() on a field value
        ├── Scanner             scan(record), one decode stage
        └── Printer             print(record), one encode stage

Guardrails:
    ❌ DON'T: Return "" from Source.get for a missing key
    ✅ DO: Return None, so the field keeps its default

    ❌ DON'T: Check for set_field per field
    ✅ DO: Let the encoder probe the sink once per call

Tags:
    protocol, source, sink, capability, httpayload, contracts

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from httpayload.transcode.plan import FieldDescriptor


@runtime_checkable
class Source(Protocol):
    """
    Decode-side capability: key lookup against an external value store.

    ``get`` returns ``None`` when the key is absent. Absence is not an
    error: the decoder leaves the field at its current value.
    """

    def get(self, key: str) -> Any:
        """Return the raw value for ``key`` or None."""
        ...


@runtime_checkable
class CastingSource(Source, Protocol):
    """
    Source with its own conversion rules.

    When present, ``cast`` fully replaces the default conversion policy for
    every field decoded from this source.
    """

    def cast(self, raw: Any, descriptor: FieldDescriptor) -> Any:
        """Convert ``raw`` to the descriptor's field type or raise ConversionError."""
        ...


@runtime_checkable
class Sink(Protocol):
    """Encode-side capability: deliver one formatted value under a key."""

    def set(self, key: str, value: Any) -> None:
        ...


@runtime_checkable
class FieldSink(Sink, Protocol):
    """
    Sink that wants the full field descriptor.

    Used for attribute-rich output (cookie path, secure flag, same-site
    mode, status directives). Preferred over ``set`` when present.
    """

    def set_field(self, key: str, value: Any, descriptor: FieldDescriptor) -> None:
        ...


@runtime_checkable
class StringParseable(Protocol):
    """
    Field type that parses itself from text.

    Implement as a classmethod returning a new instance. Any exception it
    raises becomes the field's conversion failure, unchanged.

    Example:
        @dataclass
        class Role:
            name: str = ""

            @classmethod
            def from_string(cls, text: str) -> "Role":
                return cls(name=text)
    """

    @classmethod
    def from_string(cls, text: str) -> Any:
        ...


@runtime_checkable
class StringFormattable(Protocol):
    """Field value that replaces canonical formatting when encoded."""

    def to_string(self) -> str:
        ...


@runtime_checkable
class Scanner(Protocol):
    """One decode stage: populate ``record`` from an external source."""

    def scan(self, record: Any) -> None:
        ...


@runtime_checkable
class Printer(Protocol):
    """One encode stage: deliver ``record`` to an external sink."""

    def print(self, record: Any) -> None:
        ...


__all__ = [
    "Source",
    "CastingSource",
    "Sink",
    "FieldSink",
    "StringParseable",
    "StringFormattable",
    "Scanner",
    "Printer",
]
