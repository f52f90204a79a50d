"""
Printers: encode records into the parts of an HTTP response.

Manifesto:
    Printers are the Sink side of the engine. They receive canonical text
    per field and decide how it appears on the wire. The cookie printer
    needs the field's attributes, so it implements ``set_field``; the
    header printer uses ``set_field`` to recognise status directives.

    - **Explicit status:** A header field tagged ``header_status="true"``
      calls ``ResponseWriter.write_status()``; a field keyed "Status" is
      just a header
    - **Cookie attributes:** path (default "/"), secure, samesite,
      expires (passed through), domain, max-age, httponly
    - **Pipe:** PipePrinter runs stages in order and stops on the first error

Examples:
    >>> writer = ResponseWriter()
    >>> PipePrinter(JSONPrinter(writer), HeaderPrinter(writer), CookiePrinter(writer)).print(params)
    >>> writer.body
    b'{"email":"test@example.com"}\\n'

Tags:
    http, printer, response, encode, cookies, headers, httpayload

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from http.cookies import CookieError, SimpleCookie
from typing import Any

from pydantic_core import to_json
from starlette.responses import Response

from httpayload.core.errors import SinkError
from httpayload.core.settings import get_settings
from httpayload.http.body import dump_document
from httpayload.http.response import ResponseWriter
from httpayload.transcode.encoder import encode
from httpayload.transcode.plan import FieldDescriptor, get_plan
from httpayload.transcode.protocols import Printer
from httpayload.transcode.tags import COOKIE, HEADER

_SAMESITE = {"lax": "Lax", "strict": "Strict", "none": "None"}


class JSONPrinter:
    """Writes the record's ``json`` fields as a document followed by a newline."""

    def __init__(self, writer: ResponseWriter):
        self.writer = writer

    def print(self, record: Any) -> None:
        if "content-type" not in self.writer.headers:
            self.writer.set_header("content-type", "application/json")
        self.writer.write(to_json(dump_document(record)) + b"\n")


class HeaderPrinter:
    """Sets response headers; status directive fields finalize the status line."""

    def __init__(self, writer: ResponseWriter):
        self.writer = writer

    def set(self, key: str, value: Any) -> None:
        self.writer.set_header(key, str(value))

    def set_field(self, key: str, value: Any, descriptor: FieldDescriptor) -> None:
        if descriptor.attributes.get("status") != "true":
            self.set(key, value)
            return
        try:
            status_code = int(value)
        except (TypeError, ValueError) as e:
            raise SinkError(
                f"status directive needs an integer, got {value!r}", cause=e
            ).with_context(namespace=HEADER, field=descriptor.name, key=key)
        self.writer.write_status(status_code)

    def print(self, record: Any) -> None:
        encode(self, record, get_plan(type(record), HEADER))


class CookiePrinter:
    """Adds one ``Set-Cookie`` header per cookie field."""

    def __init__(self, writer: ResponseWriter):
        self.writer = writer

    def set(self, key: str, value: Any) -> None:
        # Cookies are only written with their attributes, see set_field.
        pass

    def set_field(self, key: str, value: Any, descriptor: FieldDescriptor) -> None:
        self.writer.add_header("set-cookie", format_cookie(key, str(value), descriptor.attributes))

    def print(self, record: Any) -> None:
        encode(self, record, get_plan(type(record), COOKIE))


def format_cookie(name: str, value: str, attributes: Any) -> str:
    """Render a ``Set-Cookie`` header value from cookie attributes."""
    cookie: SimpleCookie = SimpleCookie()
    try:
        cookie[name] = value
    except CookieError as e:
        raise SinkError(f"invalid cookie name {name!r}", cause=e).with_context(
            namespace=COOKIE, key=name
        )
    morsel = cookie[name]
    morsel["path"] = attributes.get("path", get_settings().cookie_default_path)
    if expires := attributes.get("expires"):
        morsel["expires"] = expires
    if domain := attributes.get("domain"):
        morsel["domain"] = domain
    if max_age := attributes.get("max-age"):
        morsel["max-age"] = max_age
    if attributes.get("secure") == "true":
        morsel["secure"] = True
    if attributes.get("httponly") == "true":
        morsel["httponly"] = True
    if samesite := _SAMESITE.get(attributes.get("samesite", "")):
        morsel["samesite"] = samesite
    return morsel.OutputString()


class PipePrinter:
    """Runs the given printers in sequence, stopping at the first failure."""

    def __init__(self, *printers: Printer):
        self.printers = list(printers)

    def print(self, record: Any) -> None:
        for printer in self.printers:
            printer.print(record)


def render_response(record: Any, *, status_code: int = 200) -> Response:
    """Encode ``record`` as JSON body, headers and cookies into a starlette response."""
    writer = ResponseWriter(status_code=status_code)
    PipePrinter(JSONPrinter(writer), HeaderPrinter(writer), CookiePrinter(writer)).print(record)
    return writer.to_response()


__all__ = [
    "CookiePrinter",
    "HeaderPrinter",
    "JSONPrinter",
    "PipePrinter",
    "format_cookie",
    "render_response",
]
