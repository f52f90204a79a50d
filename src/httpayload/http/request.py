"""
Request helpers: run the standard scanner pipeline against a starlette request.

Reading the body and parsing forms is asynchronous in starlette; the
engine is not. These helpers await the I/O first and then decode
synchronously.

Tags:
    http, request, starlette, async, httpayload

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from starlette.requests import Request

from httpayload.core.errors import SourceError
from httpayload.core.settings import get_settings
from httpayload.http.scanners import (
    CookieScanner,
    FormScanner,
    HeaderScanner,
    JSONScanner,
    MultipartScanner,
    MultipartValues,
    PathScanner,
    PipeScanner,
    QueryScanner,
    multipart_values_from_form,
)
from httpayload.transcode.protocols import Scanner
from httpayload.transcode.tags import MULTIPART

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def multipart_values_from_request(
    request: Request, *names: str, max_part_size: int | None = None
) -> MultipartValues:
    """Parse the request form and collect the named file parts.

    Raises:
        SourceError: a named part is missing or is not a file.
    """
    form = await request.form(max_part_size=max_part_size or get_settings().multipart_max_part_size)
    return multipart_values_from_form(form, *names)


async def request_scanner(request: Request, *, multipart: Sequence[str] = ()) -> PipeScanner:
    """Build the scanner pipeline for ``request``.

    Order: path, query, header, cookie, then the body (form fields or a
    JSON document, chosen by content type), then multipart file parts.

    Raises:
        SourceError: ``multipart`` names parts but the body is not a form,
            or a named part is missing or is not a file.
    """
    scanners: list[Scanner] = [
        PathScanner(request),
        QueryScanner(request.query_params),
        HeaderScanner(request.headers),
        CookieScanner(request.cookies),
    ]

    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in _FORM_TYPES:
        form = await request.form(max_part_size=get_settings().multipart_max_part_size)
        scanners.append(FormScanner(form))
        if multipart:
            scanners.append(MultipartScanner(multipart_values_from_form(form, *multipart)))
    else:
        if multipart:
            raise SourceError(
                f"file parts {list(multipart)!r} need a form body, got {content_type or 'no'} content type"
            ).with_context(namespace=MULTIPART)
        if content_type == "application/json" or content_type.endswith("+json"):
            body = await request.body()
            if body:
                scanners.append(JSONScanner(body))

    return PipeScanner(*scanners)


async def scan_request(request: Request, record: Any, *, multipart: Sequence[str] = ()) -> Any:
    """Decode every tagged part of ``request`` onto ``record`` and return it."""
    scanner = await request_scanner(request, multipart=multipart)
    scanner.scan(record)
    return record


__all__ = ["multipart_values_from_request", "request_scanner", "scan_request"]
