"""
httpayload -- tag-driven transcoding between HTTP request/response parts and dataclass records.

Usage::

    from dataclasses import dataclass
    from httpayload import UInt32, tagged
    from httpayload.http import QueryScanner

    @dataclass
    class Params:
        page: UInt32 = tagged(0, query="page")
        done: bool = tagged(False, query="done")

    params = Params()
    QueryScanner("page=2&done=true").scan(params)

Layers::

    httpayload.core        errors, logging, settings
    httpayload.transcode   field plans, conversion policy, decoder, encoder
    httpayload.http        starlette scanners/printers, FastAPI dependency
    httpayload.cli         `httpayload plan` inspection command
"""

__version__ = "0.3.0"

from httpayload.core.errors import (
    ConversionError,
    PayloadError,
    PlanError,
    SinkError,
    SourceError,
)
from httpayload.transcode import (
    Bits,
    Decoder,
    Encoder,
    FieldCategory,
    FieldDescriptor,
    FieldPlan,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    build_plan,
    decode,
    default_cast,
    encode,
    get_plan,
    register_passthrough,
    tagged,
)

__all__ = [
    "__version__",
    "ConversionError",
    "PayloadError",
    "PlanError",
    "SinkError",
    "SourceError",
    "Bits",
    "Decoder",
    "Encoder",
    "FieldCategory",
    "FieldDescriptor",
    "FieldPlan",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "build_plan",
    "decode",
    "default_cast",
    "encode",
    "get_plan",
    "register_passthrough",
    "tagged",
]
