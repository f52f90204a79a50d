"""httpayload core -- errors, logging and settings shared by every layer.

Architecture::

    errors.py      Structured error hierarchy (PayloadError, PlanError, ...)
    logging.py     structlog configuration + get_logger()
    settings.py    PayloadSettings (pydantic-settings) + get_settings()
"""

from httpayload.core.errors import (
    ConversionError,
    ErrorCategory,
    ErrorContext,
    PayloadError,
    PlanError,
    SinkError,
    SourceError,
)
from httpayload.core.logging import configure_logging, get_logger
from httpayload.core.settings import PayloadSettings, get_settings, reset_settings

__all__ = [
    "ConversionError",
    "ErrorCategory",
    "ErrorContext",
    "PayloadError",
    "PlanError",
    "SinkError",
    "SourceError",
    "configure_logging",
    "get_logger",
    "PayloadSettings",
    "get_settings",
    "reset_settings",
]
