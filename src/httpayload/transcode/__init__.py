"""Transcoding engine -- field plans, conversion policy, decode and encode drivers.

Architecture::

    tags.py        tagged() field helper, namespaces, Int*/UInt* aliases
    protocols.py   Source / Sink capability protocols
    plan.py        FieldPlan builder + process-wide PlanCache
    convert.py     default_cast() / format_value() conversion policy
    decoder.py     Decoder: Source -> record
    encoder.py     Encoder: record -> Sink
"""

from httpayload.transcode.convert import (
    SEQUENCE_DELIMITER,
    default_cast,
    format_scalar,
    format_value,
    join_sequence,
    split_sequence,
)
from httpayload.transcode.decoder import Decoder, decode
from httpayload.transcode.encoder import Encoder, encode
from httpayload.transcode.plan import (
    FieldCategory,
    FieldDescriptor,
    FieldPlan,
    PlanCache,
    build_plan,
    clear_plan_cache,
    get_plan,
    get_plan_cache,
    register_passthrough,
    resolve_field_types,
)
from httpayload.transcode.protocols import (
    CastingSource,
    FieldSink,
    Printer,
    Scanner,
    Sink,
    Source,
    StringFormattable,
    StringParseable,
)
from httpayload.transcode.tags import (
    COOKIE,
    FORM,
    HEADER,
    JSON,
    MULTIPART,
    NAMESPACES,
    PATH,
    QUERY,
    SKIP,
    Bits,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    tagged,
)

__all__ = [
    # Tags
    "COOKIE",
    "FORM",
    "HEADER",
    "JSON",
    "MULTIPART",
    "NAMESPACES",
    "PATH",
    "QUERY",
    "SKIP",
    "Bits",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "tagged",
    # Protocols
    "CastingSource",
    "FieldSink",
    "Printer",
    "Scanner",
    "Sink",
    "Source",
    "StringFormattable",
    "StringParseable",
    # Plans
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
    # Conversion
    "SEQUENCE_DELIMITER",
    "default_cast",
    "format_scalar",
    "format_value",
    "join_sequence",
    "split_sequence",
    # Drivers
    "Decoder",
    "Encoder",
    "decode",
    "encode",
]
