import os
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("STUDYDECK_LOG_LEVEL", "warning")

from studydeck import create_app  # noqa: E402
from studydeck.config import settings  # noqa: E402


@pytest.fixture
def now():
    return datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    path = tmp_path / "data"
    monkeypatch.setattr(settings, "data_dir", path)
    return path


@pytest.fixture
def client(data_dir):
    with TestClient(create_app()) as c:
        yield c


@pytest.fixture
def deck(client):
    res = client.post("/decks/", json={"name": "Biology"})
    assert res.status_code == 201
    return res.json()


@pytest.fixture
def card(client, deck):
    res = client.post(
        f"/decks/{deck['id']}/flashcards/",
        json={"front": "Powerhouse of the cell?", "back": "Mitochondria"},
    )
    assert res.status_code == 201
    return res.json()
