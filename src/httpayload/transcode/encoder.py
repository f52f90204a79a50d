"""
Encode driver: deliver a record's fields to a Sink.

Manifesto:
    Encoding walks the field plan in order, formats each value to its
    canonical text and hands it to the sink. Sinks that implement
    ``set_field`` receive the whole descriptor so they can honour
    attributes (cookie path, secure flag, status directives).

    - **Probe once:** ``set_field`` support is checked once per encode call
    - **Order matters:** A status directive only precedes other headers
      if its field comes first in the record
    - **Fail fast:** A failing ``to_string()`` stops the walk; values
      already delivered to the sink stay delivered

Tags:
    encoder, printing, sinks, httpayload

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Any

from httpayload.core.errors import ConversionError
from httpayload.core.logging import get_logger
from httpayload.transcode.convert import format_value
from httpayload.transcode.plan import FieldPlan, get_plan
from httpayload.transcode.protocols import FieldSink, Sink

logger = get_logger(__name__)


def encode(sink: Sink, record: Any, plan: FieldPlan) -> None:
    """Deliver every plan field of ``record`` to ``sink``.

    Fields whose value is None are not delivered.

    Raises:
        ConversionError: a field value could not be formatted.
        SinkError: raised by the sink itself, propagated unchanged.
    """
    field_aware = isinstance(sink, FieldSink)

    for descriptor in plan:
        value = getattr(record, descriptor.name)
        if value is None:
            continue
        try:
            text = format_value(value, descriptor)
        except ConversionError as e:
            e.with_context(
                record=plan.record_type.__qualname__,
                namespace=plan.namespace,
                field=descriptor.name,
                key=descriptor.key,
            )
            logger.debug("encode_failed", **e.to_dict())
            raise
        if field_aware:
            sink.set_field(descriptor.key, text, descriptor)
        else:
            sink.set(descriptor.key, text)


class Encoder:
    """Encodes records into one sink within one tag namespace."""

    def __init__(self, sink: Sink, namespace: str):
        self.sink = sink
        self.namespace = namespace

    def encode(self, record: Any) -> None:
        encode(self.sink, record, get_plan(type(record), self.namespace))


__all__ = ["Encoder", "encode"]
