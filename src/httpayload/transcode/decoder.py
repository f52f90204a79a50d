"""
Decode driver: populate a record's fields from a Source.

Manifesto:
    Decoding walks the field plan in order. Missing keys are not errors;
    they leave the field at its current value. The first value that does
    not convert stops the walk:

    - **Fail fast:** The first ConversionError is raised immediately
    - **Not transactional:** Fields assigned before the failure stay set;
      decode into a fresh record and discard it if you need atomicity
    - **Source first:** A source's own ``cast`` replaces the default policy

Examples:
    >>> source = {"page": "2", "done": "true"}
    >>> params = Params()
    >>> Decoder(source, "query").decode(params)
    >>> params.page, params.done
    (2, True)

Tags:
    decoder, scanning, fail-fast, httpayload

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from httpayload.core.errors import ConversionError, PayloadError
from httpayload.core.logging import get_logger
from httpayload.transcode.convert import default_cast
from httpayload.transcode.plan import FieldDescriptor, FieldPlan, get_plan
from httpayload.transcode.protocols import CastingSource, Source

logger = get_logger(__name__)


def decode(source: Source, record: Any, plan: FieldPlan) -> None:
    """Assign every plan field present in ``source`` onto ``record``.

    Raises:
        ConversionError: a value could not be converted; carries the
            field name, the source key and the underlying cause.
        SourceError: raised by the source itself, propagated unchanged.
    """
    cast: Callable[[Any, FieldDescriptor], Any] = (
        source.cast if isinstance(source, CastingSource) else default_cast
    )

    for descriptor in plan:
        raw = source.get(descriptor.key)
        if raw is None:
            continue
        try:
            value = cast(raw, descriptor)
        except ConversionError as e:
            raise _field_failure(e, plan, descriptor)
        except PayloadError:
            raise
        except Exception as e:
            failure = ConversionError(str(e) or type(e).__name__, value=raw, cause=e)
            raise _field_failure(failure, plan, descriptor) from e
        setattr(record, descriptor.name, value)


def _field_failure(
    error: ConversionError, plan: FieldPlan, descriptor: FieldDescriptor
) -> ConversionError:
    error.with_context(
        record=plan.record_type.__qualname__,
        namespace=plan.namespace,
        field=descriptor.name,
        key=descriptor.key,
    )
    logger.debug("decode_failed", **error.to_dict())
    return error


class Decoder:
    """
    Decodes records from one source within one tag namespace.

    Plans are looked up per record type through the shared plan cache.
    """

    def __init__(self, source: Source, namespace: str):
        self.source = source
        self.namespace = namespace

    def decode(self, record: Any) -> None:
        decode(self.source, record, get_plan(type(record), self.namespace))


__all__ = ["Decoder", "decode"]
