"""HTTP adapters -- scanners and printers over starlette request/response parts.

Architecture::

    response.py    ResponseWriter (status, headers, body buffer)
    body.py        JSON body codec (pydantic)
    scanners.py    Header/Query/Cookie/Form/Path/Multipart/JSON scanners + PipeScanner
    printers.py    JSON/Header/Cookie printers + PipePrinter + render_response()
    request.py     scan_request() / request_scanner() for starlette requests
    fastapi.py     payload() route dependency (import explicitly)
"""

from httpayload.http.printers import (
    CookiePrinter,
    HeaderPrinter,
    JSONPrinter,
    PipePrinter,
    format_cookie,
    render_response,
)
from httpayload.http.request import multipart_values_from_request, request_scanner, scan_request
from httpayload.http.response import ResponseWriter
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

__all__ = [
    "ResponseWriter",
    # Scanners
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
    "multipart_values_from_request",
    "request_scanner",
    "scan_request",
    # Printers
    "CookiePrinter",
    "HeaderPrinter",
    "JSONPrinter",
    "PipePrinter",
    "format_cookie",
    "render_response",
]
