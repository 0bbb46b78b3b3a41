"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import pytest

from kilar.config import runtime


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch):
    """Keep host KILAR_* variables and .env files out of every test."""
    for name in list(os.environ):
        if name.startswith("KILAR_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(runtime, "_DEFAULT_VALUES", {})
    yield
