"""
Settings for httpayload.

Manifesto:
    The engine itself is stateless; the few knobs that exist (plan
    caching, cookie defaults, multipart limits, logging) are read once
    from the environment through one validated, cached settings object.

Examples:
    >>> from httpayload.core.settings import get_settings
    >>> get_settings().cookie_default_path
    '/'

    Environment variables use the ``HTTPAYLOAD_`` prefix, e.g.
    ``HTTPAYLOAD_CACHE_PLANS=false``.

Tags:
    settings, configuration, pydantic, environment, httpayload

Doc-Types:
    api-reference
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PayloadSettings(BaseSettings):
    """httpayload configuration.

    Fields
    ──────
    log_level               : structlog log level
    log_format              : "json" or "console"
    cache_plans             : Reuse field plans per (record type, namespace)
    cookie_default_path     : Path attribute for cookies without cookie-path
    multipart_max_part_size : Upper bound for one multipart part, in bytes
    """

    model_config = SettingsConfigDict(
        env_prefix="HTTPAYLOAD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    # ── Engine ───────────────────────────────────────────────────
    cache_plans: bool = Field(default=True)

    # ── HTTP adapters ────────────────────────────────────────────
    cookie_default_path: str = Field(default="/")
    multipart_max_part_size: int = Field(
        default=32 << 20,
        description="Largest accepted multipart part (32 MiB by default)",
    )


@lru_cache(maxsize=1)
def get_settings() -> PayloadSettings:
    """Cached settings, loaded once per process."""
    return PayloadSettings()


def reset_settings() -> None:
    """Drop the cached settings (for testing)."""
    get_settings.cache_clear()


__all__ = ["PayloadSettings", "get_settings", "reset_settings"]
