"""
Shared pytest fixtures for httpayload tests.

This module provides:
- Plan cache and settings cleanup for test isolation
- structlog reset so CLI runs do not leak logging configuration

Usage:
    Fixtures are auto-discovered by pytest; the cleanup fixtures are autouse.
"""

import pytest
import structlog

from httpayload.core.settings import reset_settings
from httpayload.transcode.plan import clear_plan_cache


@pytest.fixture(autouse=True)
def clean_plan_cache():
    """Start and end every test with an empty plan cache."""
    clear_plan_cache()
    yield
    clear_plan_cache()


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Drop cached settings and any HTTPAYLOAD_ overrides."""
    monkeypatch.delenv("HTTPAYLOAD_CACHE_PLANS", raising=False)
    monkeypatch.delenv("HTTPAYLOAD_COOKIE_DEFAULT_PATH", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()
