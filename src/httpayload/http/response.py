"""
Response writer: the outgoing side of one HTTP exchange.

Printers write into a ``ResponseWriter`` instead of a finished starlette
``Response`` because the status line, headers and body are produced by
different stages. ``to_response()`` turns the result into a starlette
response once every stage ran.

Manifesto:
    Finalizing the status is an explicit operation. After
    ``write_status()`` the header set sent on the wire is frozen: later
    header writes still land in ``headers`` but are not part of the
    response, and are logged.

Examples:
    >>> writer = ResponseWriter()
    >>> writer.set_header("X-Trace", "abc")
    >>> writer.write_status(201)
    >>> writer.set_header("X-Late", "ignored")
    >>> response = writer.to_response()
    >>> response.status_code, response.headers.get("x-late")
    (201, None)

Tags:
    http, response, headers, status, starlette, httpayload

Doc-Types:
    api-reference
"""

from __future__ import annotations

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import Response

from httpayload.core.errors import SinkError
from httpayload.core.logging import get_logger

logger = get_logger(__name__)


class ResponseWriter:
    """Status, headers and body buffer for one response."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.headers = MutableHeaders()
        self._body = bytearray()
        self._sent_headers: Headers | None = None

    @property
    def committed(self) -> bool:
        """True once the status line has been written."""
        return self._sent_headers is not None

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    @property
    def sent_headers(self) -> Headers:
        """Headers that are part of the response (frozen after commit)."""
        if self._sent_headers is not None:
            return self._sent_headers
        return Headers(raw=list(self.headers.raw))

    def write_status(self, status_code: int) -> None:
        """Finalize the status line and freeze the header set."""
        if self.committed:
            logger.warning(
                "superfluous_write_status",
                status_code=status_code,
                committed_status=self.status_code,
            )
            return
        if not 100 <= status_code <= 999:
            raise SinkError(f"invalid status code {status_code}").with_context(key="status")
        self.status_code = status_code
        self._sent_headers = Headers(raw=list(self.headers.raw))

    def set_header(self, key: str, value: str) -> None:
        if self.committed:
            logger.debug("header_after_commit", key=key)
        self.headers[key] = _header_value(key, value)

    def add_header(self, key: str, value: str) -> None:
        """Append a header line without replacing existing ones (Set-Cookie)."""
        if self.committed:
            logger.debug("header_after_commit", key=key)
        self.headers.append(key, _header_value(key, value))

    def write(self, data: bytes | str) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._body.extend(data)
        return len(data)

    def to_response(self) -> Response:
        """Build the starlette response this writer describes."""
        response = Response(content=self.body, status_code=self.status_code)
        response.raw_headers.extend(
            (key, value) for key, value in self.sent_headers.raw if key != b"content-length"
        )
        return response


def _header_value(key: str, value: str) -> str:
    """Reject values that cannot appear on a single latin-1 header line."""
    if "\r" in value or "\n" in value:
        raise SinkError(f"header {key!r} value contains a line break").with_context(key=key)
    try:
        value.encode("latin-1")
    except UnicodeEncodeError as e:
        raise SinkError(f"header {key!r} value is not latin-1 text", cause=e).with_context(key=key)
    return value


__all__ = ["ResponseWriter"]
