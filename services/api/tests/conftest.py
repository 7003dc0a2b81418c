"""
Shared fixtures: an in-memory SQLite store injected into the app, and a
household owned by the default test user.
"""
import os
import sys

# Must be set before settings/main are imported
os.environ.setdefault("STORAGE_BACKEND", "sqlite")
os.environ["DB_URL"] = "sqlite://"

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi.testclient import TestClient

from main import app, get_storage_adapter
from adapters.json import JsonAdapter
from adapters.sqlite import SqliteAdapter
from settings import get_settings

OWNER_ID = "user-owner"
OTHER_ID = "user-other"


def headers_for(user_id: str) -> dict:
    return {"X-User-Id": user_id}


@pytest.fixture(params=["sqlite", "json"])
def storage(request, tmp_path):
    """Every API test runs once per storage backend."""
    if request.param == "json":
        yield JsonAdapter(str(tmp_path / "json"))
        return
    adapter = SqliteAdapter.from_url("sqlite://")
    yield adapter
    adapter.engine.dispose()


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage_adapter] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers():
    return headers_for(OWNER_ID)


@pytest.fixture
def household(client, owner_headers):
    r = client.post("/households", json={"name": "The Testers"}, headers=owner_headers)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture
def kids(client, owner_headers, household):
    out = {}
    for name in ("Zeke", "Mia"):
        r = client.post("/persons", json={"display_name": name}, headers=owner_headers)
        assert r.status_code == 201, r.text
        out[name] = r.json()
    return out


@pytest.fixture
def pdf_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(get_settings(), "pdf_output_dir", str(tmp_path / "pdfs"))
    return tmp_path / "pdfs"
