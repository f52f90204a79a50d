"""
Field plans: the per-type, per-namespace description of what to transcode.

A field plan is built once from a record type's static shape and reused
for every instance of that type. It lists, in declaration order, each
field tagged for one namespace together with its key, its conversion
category and any ``<namespace>-<name>`` attributes.

Manifesto:
    Inspecting type hints on every request is slow and makes behaviour
    depend on when the inspection happens. The plan decides everything
    up front:

    - **Classified once:** Each field gets a closed ``FieldCategory``
    - **Capability first:** A type with ``from_string`` is CUSTOM,
      whatever its shape
    - **Immutable:** Plans are frozen and safe to share across threads
    - **Fail early:** Untranscodable types raise PlanError at build time

Architecture:
    ::

        build_plan(Params, "query")
            │
            ├── dataclasses.fields(Params)        declaration order
            ├── typing.get_type_hints(...)        resolves string annotations
            ├── lookup_tag(metadata, "query")     key, or skipped
            ├── _classify(annotation)             FieldCategory + parser + bits
            └── collect_attributes(metadata)      {"path": "/", ...}
            ▼
        FieldPlan(record_type, namespace, fields=(FieldDescriptor, ...))

        get_plan() ──► PlanCache (one build per (type, namespace), locked)

Examples:
    >>> @dataclass
    ... class Params:
    ...     page: UInt32 = tagged(0, query="page")
    ...     roles: list[str] = tagged(default_factory=list, query="roles")
    >>> plan = build_plan(Params, "query")
    >>> [(d.name, d.category.value) for d in plan]
    [('page', 'unsigned'), ('roles', 'sequence')]

Guardrails:
    ❌ DON'T: Build plans per request
    ✅ DO: Use get_plan(), which caches per (type, namespace)

    ❌ DON'T: Nest dataclasses and expect recursive decoding
    ✅ DO: Give composite field types a from_string classmethod

Tags:
    field-plan, reflection, type-hints, cache, httpayload

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import collections.abc
import dataclasses
import enum
import inspect
import io
import threading
import types
import typing
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Union, get_args, get_origin

from httpayload.core.errors import PlanError
from httpayload.core.logging import get_logger
from httpayload.core.settings import get_settings
from httpayload.transcode.tags import Bits, collect_attributes, lookup_tag

logger = get_logger(__name__)

_SEQUENCE_ORIGINS = (list, tuple, collections.abc.Sequence, collections.abc.MutableSequence)

# Concrete classes accepted as pass-through field types (see register_passthrough).
_passthrough_types: set[type] = set()


class FieldCategory(str, Enum):
    """Conversion category of a field, decided once at plan-build time."""

    INTEGER = "integer"
    UNSIGNED = "unsigned"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"
    SEQUENCE = "sequence"
    PASSTHROUGH = "passthrough"
    CUSTOM = "custom"


@dataclass(frozen=True)
class FieldDescriptor:
    """
    One tagged field of a record type.

    For sequence fields ``element``, ``target``, ``bits`` and ``parser``
    describe the elements; ``container`` is the concrete sequence type
    (``list`` or ``tuple``) built on decode.

    Attributes:
        name: Field name within the record
        key: Lookup key against the source/sink
        category: Conversion category of the field
        target: Scalar type values convert to (element type for sequences)
        element: Element category for sequence fields
        container: Sequence type built on decode
        bits: Integer width bounds, if declared
        parser: Text parser for CUSTOM values
        attributes: ``<namespace>-<name>`` tags, keyed by ``<name>``
    """

    name: str
    key: str
    category: FieldCategory
    target: Any = None
    element: FieldCategory | None = None
    container: type | None = None
    bits: Bits | None = None
    parser: Callable[[str], Any] | None = None
    attributes: Mapping[str, str] = field(
        default_factory=lambda: types.MappingProxyType({}), hash=False
    )

    @property
    def is_sequence(self) -> bool:
        return self.category is FieldCategory.SEQUENCE

    @property
    def scalar_category(self) -> FieldCategory:
        """Category each individual value converts with."""
        return self.element if self.element is not None else self.category

    @property
    def type_name(self) -> str:
        name = _type_name(self.target)
        if self.bits is not None:
            name = f"{'' if self.bits.signed else 'u'}int{self.bits.size}"
        if self.container is not None:
            return f"{self.container.__name__}[{name}]"
        return name


@dataclass(frozen=True)
class FieldPlan:
    """Immutable, ordered field descriptors of one record type in one namespace."""

    record_type: type
    namespace: str
    fields: tuple[FieldDescriptor, ...]

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def keys(self) -> list[str]:
        return [descriptor.key for descriptor in self.fields]

    def to_dict(self) -> dict[str, Any]:
        """Serialize the plan for display (CLI, logs)."""
        return {
            "record": self.record_type.__qualname__,
            "namespace": self.namespace,
            "fields": [
                {
                    "name": d.name,
                    "key": d.key,
                    "category": d.category.value,
                    "element": d.element.value if d.element else None,
                    "type": d.type_name,
                    "attributes": dict(d.attributes),
                }
                for d in self.fields
            ],
        }


# =============================================================================
# BUILDER
# =============================================================================


def register_passthrough(cls: type) -> type:
    """Accept ``cls`` (and its subclasses) as a pass-through field type.

    Usable as a class decorator.
    """
    _passthrough_types.add(cls)
    return cls


def resolve_field_types(record_type: type) -> dict[str, Any]:
    """Resolve the annotations of a dataclass record, extras included."""
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise PlanError(
            f"{_type_name(record_type)} is not a dataclass record type"
        ).with_context(record=_type_name(record_type))
    try:
        return typing.get_type_hints(record_type, include_extras=True)
    except (NameError, TypeError) as e:
        raise PlanError(
            f"cannot resolve field annotations of {record_type.__qualname__}", cause=e
        ).with_context(record=record_type.__qualname__)


def build_plan(record_type: type, namespace: str) -> FieldPlan:
    """Inspect ``record_type`` and build its plan for ``namespace``.

    Raises:
        PlanError: record_type is not a dataclass, or a tagged field has a
            type that cannot be transcoded.
    """
    hints = resolve_field_types(record_type)
    descriptors = []

    for f in dataclasses.fields(record_type):
        key = lookup_tag(f.metadata, namespace)
        if key is None:
            continue
        try:
            descriptors.append(_describe(f.name, key, hints[f.name], f.metadata, namespace))
        except PlanError as e:
            raise e.with_context(
                record=record_type.__qualname__, namespace=namespace, field=f.name, key=key
            )

    plan = FieldPlan(record_type=record_type, namespace=namespace, fields=tuple(descriptors))
    logger.debug(
        "field_plan_built",
        record=record_type.__qualname__,
        namespace=namespace,
        fields=plan.keys(),
    )
    return plan


def _describe(
    name: str, key: str, annotation: Any, metadata: Mapping[str, Any], namespace: str
) -> FieldDescriptor:
    attributes = types.MappingProxyType(collect_attributes(metadata, namespace))
    annotation = _unwrap_optional(annotation)
    base, _ = _split_annotated(annotation)

    if _custom_parser(base) is None and _is_sequence(base):
        container, element_type = _sequence_parts(base)
        category, target, bits, parser = _classify(element_type)
        if category is FieldCategory.SEQUENCE:
            raise PlanError("nested sequences are not transcodable")
        return FieldDescriptor(
            name=name,
            key=key,
            category=FieldCategory.SEQUENCE,
            target=target,
            element=category,
            container=container,
            bits=bits,
            parser=parser,
            attributes=attributes,
        )

    category, target, bits, parser = _classify(annotation)
    return FieldDescriptor(
        name=name,
        key=key,
        category=category,
        target=target,
        bits=bits,
        parser=parser,
        attributes=attributes,
    )


def _classify(annotation: Any) -> tuple[FieldCategory, Any, Bits | None, Callable[[str], Any] | None]:
    """Map a (non-sequence) annotation to its category, target type, bits and parser."""
    annotation = _unwrap_optional(annotation)
    base, extras = _split_annotated(annotation)
    bits = next((extra for extra in extras if isinstance(extra, Bits)), None)

    # The parse capability wins over structural inspection.
    parser = _custom_parser(base)
    if parser is not None:
        return FieldCategory.CUSTOM, base, None, parser

    if _is_sequence(base):
        return FieldCategory.SEQUENCE, base, None, None
    if base is bool:
        return FieldCategory.BOOLEAN, bool, None, None
    if isinstance(base, type) and issubclass(base, int) and not issubclass(base, bool):
        if bits is not None and not bits.signed:
            return FieldCategory.UNSIGNED, int, bits, None
        return FieldCategory.INTEGER, int, bits, None
    if isinstance(base, type) and issubclass(base, float):
        return FieldCategory.FLOAT, float, None, None
    if isinstance(base, type) and issubclass(base, str):
        return FieldCategory.STRING, str, None, None
    if _is_passthrough(base):
        return FieldCategory.PASSTHROUGH, base, None, None

    raise PlanError(f"field type not transcodable: {_type_name(base)}")


def _custom_parser(base: Any) -> Callable[[str], Any] | None:
    if not isinstance(base, type):
        return None
    from_string = getattr(base, "from_string", None)
    if callable(from_string):
        return from_string
    if issubclass(base, enum.Enum):
        return _enum_parser(base)
    return None


def _enum_parser(enum_type: type[Enum]) -> Callable[[str], Any]:
    members = {str(member.value): member for member in enum_type}

    def parse(text: str) -> Enum:
        try:
            return members[text]
        except KeyError:
            raise ValueError(f"{text!r} is not a valid {enum_type.__name__}") from None

    return parse


def _is_passthrough(base: Any) -> bool:
    if base is Any or base is object:
        return True
    if get_origin(base) is typing.IO:
        return True
    if not isinstance(base, type):
        return False
    if issubclass(base, (typing.IO, io.IOBase)):
        return True
    if getattr(base, "_is_protocol", False) or inspect.isabstract(base):
        return True
    return any(issubclass(base, registered) for registered in _passthrough_types)


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) != 1:
            raise PlanError(f"union types are not transcodable: {annotation!r}")
        return args[0]
    return annotation


def _split_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(annotation) is Annotated:
        return annotation.__origin__, annotation.__metadata__
    return annotation, ()


def _is_sequence(base: Any) -> bool:
    if base in _SEQUENCE_ORIGINS:
        return True
    return get_origin(base) in _SEQUENCE_ORIGINS


def _sequence_parts(base: Any) -> tuple[type, Any]:
    origin = get_origin(base) or base
    args = get_args(base)
    container = tuple if origin is tuple else list
    if origin is tuple:
        if len(args) != 2 or args[1] is not Ellipsis:
            raise PlanError(f"only homogeneous tuples (tuple[T, ...]) are transcodable: {base!r}")
        return container, args[0]
    if len(args) != 1:
        raise PlanError(f"sequence field needs an element type: {base!r}")
    return container, args[0]


def _type_name(tp: Any) -> str:
    if tp is Any:
        return "Any"
    return getattr(tp, "__qualname__", None) or getattr(tp, "__name__", None) or repr(tp)


# =============================================================================
# CACHE
# =============================================================================


class PlanCache:
    """
    Process-wide plan cache keyed by (record type, namespace).

    Each key is built at most once: readers that miss take the lock,
    re-check, and only then build. A plan becomes visible only after it
    is fully built.
    """

    def __init__(self) -> None:
        self._plans: dict[tuple[type, str], FieldPlan] = {}
        self._lock = threading.Lock()

    def get(self, record_type: type, namespace: str) -> FieldPlan:
        key = (record_type, namespace)
        plan = self._plans.get(key)
        if plan is not None:
            return plan
        with self._lock:
            plan = self._plans.get(key)
            if plan is None:
                plan = build_plan(record_type, namespace)
                self._plans[key] = plan
        return plan

    def clear(self) -> None:
        with self._lock:
            self._plans.clear()

    def __contains__(self, key: tuple[type, str]) -> bool:
        return key in self._plans

    def __len__(self) -> int:
        return len(self._plans)


_plan_cache = PlanCache()


def get_plan(record_type: type, namespace: str) -> FieldPlan:
    """Return the (cached) plan of ``record_type`` for ``namespace``."""
    if not get_settings().cache_plans:
        return build_plan(record_type, namespace)
    return _plan_cache.get(record_type, namespace)


def get_plan_cache() -> PlanCache:
    return _plan_cache


def clear_plan_cache() -> None:
    """Clear cached plans (for testing)."""
    _plan_cache.clear()


__all__ = [
    "FieldCategory",
    "FieldDescriptor",
    "FieldPlan",
    "PlanCache",
    "build_plan",
    "clear_plan_cache",
    "get_plan",
    "get_plan_cache",
    "register_passthrough",
    "resolve_field_types",
]
