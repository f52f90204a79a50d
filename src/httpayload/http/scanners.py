"""
Scanners: decode records from the parts of an HTTP request.

Each scanner wraps one transport structure (header map, query string,
cookies, form, path parameters, multipart files, JSON body), exposes it
as a ``Source`` and decodes the record with the matching tag namespace.

Manifesto:
    Adapters stay thin. They know how to look a key up in their own
    structure and nothing else; conversion belongs to the engine.

    - **First value wins:** Multi-valued structures return the first value
    - **Absent is None:** A missing key never becomes ""
    - **Pipe:** PipeScanner runs stages in order and stops on the first error

Architecture:
    ::

        Request ──► PathScanner       "path"       request.path_params
                ──► QueryScanner      "query"      QueryParams
                ──► HeaderScanner     "header"     Headers
                ──► CookieScanner     "cookie"     dict / Cookie header
                ──► FormScanner       "form"       FormData
                ──► MultipartScanner  "multipart"  MultipartValues (file parts)
                ──► JSONScanner       "json"       body document (pydantic)

Examples:
    >>> params = Params()
    >>> QueryScanner("page=2&done=true").scan(params)
    >>> params.page, params.done
    (2, True)

Tags:
    http, scanner, request, decode, starlette, httpayload

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import IO, Any

from pydantic_core import from_json
from starlette.datastructures import FormData, Headers, QueryParams, UploadFile
from starlette.requests import cookie_parser

from httpayload.core.errors import SourceError
from httpayload.core.logging import get_logger
from httpayload.http.body import load_document
from httpayload.transcode.convert import default_cast
from httpayload.transcode.decoder import decode
from httpayload.transcode.plan import FieldCategory, FieldDescriptor, get_plan, register_passthrough
from httpayload.transcode.protocols import Scanner
from httpayload.transcode.tags import COOKIE, FORM, HEADER, JSON, MULTIPART, PATH, QUERY

logger = get_logger(__name__)

register_passthrough(UploadFile)


def _first(values: Any, key: str) -> Any:
    """First value for ``key`` in a multi-dict (or plain mapping), else None."""
    getlist = getattr(values, "getlist", None)
    if getlist is not None:
        found = getlist(key)
        return found[0] if found else None
    return values.get(key)


class JSONScanner:
    """Scans a JSON body document onto the record's ``json`` fields."""

    def __init__(self, body: bytes | str | IO[bytes]):
        self._body = body

    def scan(self, record: Any) -> None:
        body = self._body
        if not isinstance(body, (bytes, str)):
            body = body.read()
        try:
            document = from_json(body)
        except ValueError as e:
            raise SourceError("malformed JSON document", cause=e).with_context(namespace=JSON)
        if not isinstance(document, dict):
            raise SourceError(
                f"JSON document must be an object, got {type(document).__name__}"
            ).with_context(namespace=JSON)
        load_document(document, record)


class HeaderScanner:
    """Scans request headers (case-insensitive keys)."""

    def __init__(self, headers: Headers | Mapping[str, str]):
        self.headers = headers if isinstance(headers, Headers) else Headers(headers=dict(headers))

    def get(self, key: str) -> str | None:
        return self.headers.get(key)

    def scan(self, record: Any) -> None:
        decode(self, record, get_plan(type(record), HEADER))


class QueryScanner:
    """Scans URL query values; accepts QueryParams, a mapping or a raw query string."""

    def __init__(self, values: QueryParams | Mapping[str, Any] | str):
        self.values = QueryParams(values) if isinstance(values, str) else values

    def get(self, key: str) -> Any:
        return _first(self.values, key)

    def cast(self, raw: Any, descriptor: FieldDescriptor) -> Any:
        return default_cast(raw, descriptor)

    def scan(self, record: Any) -> None:
        decode(self, record, get_plan(type(record), QUERY))


class CookieScanner:
    """Scans request cookies by name."""

    def __init__(self, cookies: Mapping[str, str] | Iterable[tuple[str, str]]):
        self.cookies = cookies if isinstance(cookies, Mapping) else list(cookies)

    @classmethod
    def from_header(cls, header: str) -> CookieScanner:
        """Build from a raw ``Cookie`` request header."""
        return cls(cookie_parser(header))

    def get(self, key: str) -> str | None:
        if isinstance(self.cookies, Mapping):
            return self.cookies.get(key)
        for name, value in self.cookies:
            if name == key:
                return value
        return None

    def scan(self, record: Any) -> None:
        decode(self, record, get_plan(type(record), COOKIE))


class FormScanner:
    """Scans url-encoded or multipart form fields."""

    def __init__(self, form: FormData | Mapping[str, Any]):
        self.form = form

    def get(self, key: str) -> Any:
        return _first(self.form, key)

    def cast(self, raw: Any, descriptor: FieldDescriptor) -> Any:
        return default_cast(raw, descriptor)

    def scan(self, record: Any) -> None:
        decode(self, record, get_plan(type(record), FORM))


class PathScanner:
    """Scans path parameters from a starlette request or a mapping."""

    def __init__(self, params: Any):
        self.params: Mapping[str, Any] = getattr(params, "path_params", params)

    def get(self, key: str) -> Any:
        return self.params.get(key)

    def cast(self, raw: Any, descriptor: FieldDescriptor) -> Any:
        return default_cast(raw, descriptor)

    def scan(self, record: Any) -> None:
        decode(self, record, get_plan(type(record), PATH))


@dataclass
class MultipartValues:
    """File parts of a multipart form, keyed by part name."""

    files: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        return self.files.get(key)


def multipart_values_from_form(form: FormData | Mapping[str, Any], *names: str) -> MultipartValues:
    """Collect the named file parts of a parsed form.

    Raises:
        SourceError: a named part is missing or is not a file.
    """
    files: dict[str, Any] = {}
    for name in names:
        part = _first(form, name)
        if part is None:
            logger.debug("multipart_part_missing", part=name)
            raise SourceError(f"no such file: {name!r}").with_context(namespace=MULTIPART, key=name)
        if not isinstance(part, UploadFile):
            raise SourceError(f"multipart part {name!r} is not a file").with_context(
                namespace=MULTIPART, key=name
            )
        files[name] = part
    return MultipartValues(files=files)


class MultipartScanner:
    """
    Scans multipart file parts.

    Fields typed as ``UploadFile`` (or Any) receive the upload itself; fields
    typed as a binary file (``BinaryIO``, ``IO[bytes]``) receive its file
    object.
    """

    def __init__(self, values: MultipartValues):
        self.values = values

    def get(self, key: str) -> Any:
        return self.values.get(key)

    def cast(self, raw: Any, descriptor: FieldDescriptor) -> Any:
        if isinstance(raw, UploadFile) and descriptor.scalar_category is FieldCategory.PASSTHROUGH:
            target = descriptor.target
            if not (isinstance(target, type) and issubclass(UploadFile, target)) and target is not Any:
                raw = raw.file
        return default_cast(raw, descriptor)

    def scan(self, record: Any) -> None:
        decode(self, record, get_plan(type(record), MULTIPART))


class PipeScanner:
    """Runs the given scanners in sequence, stopping at the first failure."""

    def __init__(self, *scanners: Scanner):
        self.scanners = list(scanners)

    def scan(self, record: Any) -> None:
        for scanner in self.scanners:
            scanner.scan(record)


__all__ = [
    "CookieScanner",
    "FormScanner",
    "HeaderScanner",
    "JSONScanner",
    "MultipartScanner",
    "MultipartValues",
    "PathScanner",
    "PipeScanner",
    "QueryScanner",
    "multipart_values_from_form",
]
