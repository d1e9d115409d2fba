"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests, so the
environment below is in place before admission.core.config reads settings.
"""

import os

import pytest

# Set before any imports that might load settings
os.environ["ADMISSION_ENV"] = "testing"
os.environ.setdefault("LIMITER_ALGORITHM", "fixed_window")
os.environ.setdefault("LIMITER_THRESHOLD", "10")
os.environ.setdefault("LIMITER_INTERVAL_MS", "1000")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from admission.core.config import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings():
    """Re-read the environment in every test so monkeypatched values apply."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
