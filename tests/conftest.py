"""
Pytest fixtures for the studio API. Each test gets its own data file under tmp_path.
"""

from __future__ import annotations

import pytest


@pytest.fixture
def data_file(tmp_path, monkeypatch):
    """Point DATA_FILE at a temporary path and drop cached settings and store."""
    path = tmp_path / "data.json"
    monkeypatch.setenv("DATA_FILE", str(path))

    import config
    import store

    config.get_settings.cache_clear()
    store.reset_store_for_test()
    yield path
    config.get_settings.cache_clear()
    store.reset_store_for_test()


@pytest.fixture
def json_store(data_file):
    """Seeded JsonStore on the temporary data file."""
    from store import get_store

    s = get_store()
    s.initialize_if_absent()
    return s


@pytest.fixture
def client(data_file):
    """FastAPI TestClient inside the app lifespan, so the seed document is written on startup."""
    from fastapi.testclient import TestClient

    from main import app

    with TestClient(app) as c:
        yield c
