"""
FastAPI integration -- decode records as route dependencies.

Usage::

    from fastapi import Depends, FastAPI
    from httpayload.http.fastapi import payload

    app = FastAPI()

    @app.get("/items/{id}")
    async def read_item(params: Params = Depends(payload(Params))):
        ...

Manifesto:
    Translating engine errors into HTTP statuses is the calling layer's
    job. This module is that layer for FastAPI: conversion failures
    become 422, unreadable sources become 400, and every plan is built
    when the dependency is declared so broken record types fail at
    import time rather than on the first request.

Tags:
    fastapi, dependency-injection, http, httpayload

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from fastapi import HTTPException, Request

from httpayload.core.errors import ConversionError, SourceError
from httpayload.http.body import body_fields
from httpayload.http.request import scan_request
from httpayload.transcode.plan import get_plan
from httpayload.transcode.tags import NAMESPACES, JSON

T = TypeVar("T")


def payload(
    record_type: type[T], *, multipart: Sequence[str] = ()
) -> Callable[[Request], Awaitable[T]]:
    """Return a dependency that decodes a fresh ``record_type`` per request.

    ``record_type`` must be constructible without arguments.

    Raises:
        PlanError: immediately, if ``record_type`` cannot be transcoded.
    """
    for namespace in NAMESPACES:
        if namespace == JSON:
            body_fields(record_type)
        else:
            get_plan(record_type, namespace)

    async def dependency(request: Request) -> T:
        record = record_type()
        try:
            await scan_request(request, record, multipart=multipart)
        except ConversionError as e:
            raise HTTPException(status_code=422, detail=e.to_dict()) from e
        except SourceError as e:
            raise HTTPException(status_code=400, detail=e.to_dict()) from e
        return record

    return dependency


__all__ = ["payload"]
