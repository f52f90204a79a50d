"""
Structured error types for httpayload.

Every failure the transcoding engine can report is a ``PayloadError``.
Errors carry a category, a structured context naming the record,
namespace, field and key involved, and the chained underlying cause, so
the calling layer can log them or translate them into an HTTP status
without parsing messages.

Manifesto:
    - **Typed hierarchy:** Plan, conversion, source and sink failures are
      distinct types because they surface at different times
    - **Rich context:** The field name and source key travel with the error
    - **Error chaining:** A custom parser's own exception is kept unchanged
      as ``cause``
    - **No recovery:** The engine reports, the caller decides

Architecture:
    ::

        ┌───────────────────────────────────────────────────────────┐
        │                       PayloadError                         │
        │        (category, context, cause, to_dict, with_context)   │
        ├───────────────────────────────────────────────────────────┤
        │                                                            │
        │  PlanError         ConversionError     SourceError         │
        │  (PLAN)            (CONVERSION)        (SOURCE)            │
        │  build time        per field           adapter retrieval   │
        │                                                            │
        │                                        SinkError           │
        │                                        (SINK)              │
        │                                        adapter delivery    │
        └───────────────────────────────────────────────────────────┘

Examples:
    Wrapping a parser failure for a field:

    >>> try:
    ...     int("abc")
    ... except ValueError as e:
    ...     error = ConversionError("invalid integer", cause=e)
    >>> error.with_context(field="page", key="page", namespace="query")
    ConversionError('invalid integer', category=CONVERSION)
    >>> error.context.field
    'page'

Guardrails:
    ❌ DON'T: Raise bare ValueError/TypeError out of the engine
    ✅ DO: Raise ConversionError with the original exception as cause=

    ❌ DON'T: Catch PlanError per request
    ✅ DO: Let it surface at startup when plans are built

Tags:
    error-handling, exception-hierarchy, error-context, httpayload

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification.

    ``PLAN`` errors are structural and fatal; ``CONVERSION`` errors belong to
    a single field of a single request; ``SOURCE`` and ``SINK`` errors come
    from the transport adapter itself.
    """

    PLAN = "PLAN"                 # Record type cannot be transcoded
    CONVERSION = "CONVERSION"     # Raw value does not fit the field type
    SOURCE = "SOURCE"             # Adapter could not retrieve values
    SINK = "SINK"                 # Adapter could not deliver values
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        record: Name of the record type being transcoded
        namespace: Tag namespace in use (header, query, cookie, ...)
        field: Record field name
        key: Source/sink key the field is bound to
        metadata: Additional key-value pairs
    """

    record: str | None = None
    namespace: str | None = None
    field: str | None = None
    key: str | None = None

    metadata: dict[str, Any] = dataclasses.field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["record", "namespace", "field", "key"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class PayloadError(Exception):
    """
    Base exception for all httpayload errors.

    Subclasses set ``default_category``. The optional ``cause`` is chained as
    ``__cause__`` so tracebacks show the original failure.

    Examples:
        >>> error = PayloadError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["error_type"]
        'PayloadError'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> PayloadError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ConversionError("bad value").with_context(field="page", key="page")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    @property
    def field(self) -> str | None:
        return self.context.field

    @property
    def key(self) -> str | None:
        return self.context.key

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        if self.context.field is None:
            return self.message
        where = f"field {self.context.field!r}"
        if self.context.key is not None:
            where += f" (key {self.context.key!r})"
        return f"{where}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# ENGINE ERRORS
# =============================================================================


class PlanError(PayloadError):
    """
    Record type is structurally untranscodable.

    Raised when a plan is built: the record is not a dataclass, or one of
    its tagged fields has a type the engine cannot convert to or from text.
    """

    default_category = ErrorCategory.PLAN


class ConversionError(PayloadError):
    """
    A field's raw value cannot be converted to (or formatted from) its type.

    Decode and encode stop at the first ConversionError. Fields handled
    before the failing one keep their new values.
    """

    default_category = ErrorCategory.CONVERSION

    def __init__(self, message: str, *, value: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


# =============================================================================
# ADAPTER ERRORS
# =============================================================================


class SourceError(PayloadError):
    """The transport adapter failed to retrieve values (e.g. malformed body)."""

    default_category = ErrorCategory.SOURCE


class SinkError(PayloadError):
    """The transport adapter failed to deliver values."""

    default_category = ErrorCategory.SINK


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "PayloadError",
    "PlanError",
    "ConversionError",
    "SourceError",
    "SinkError",
]
