"""Shared pytest fixtures for ossinventory tests."""

import os

import pytest


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every OSSINV_* variable so GlobalConfig.from_env() sees defaults."""
    for key in list(os.environ):
        if key.startswith("OSSINV_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
