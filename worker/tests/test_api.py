from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from stylesmith_worker.app.main import VERSION, create_app
from stylesmith_worker.app.settings import Settings
from stylesmith_worker.services.exceptions import InvariantError
from stylesmith_worker.services.formats import MAX_MODE_HEADER
from stylesmith_worker.services.registry import GENRE_REGISTRY
from stylesmith_worker.services.rng import seed_from_text


@pytest.fixture
def client(tmp_path: Path):
    app = create_app(Settings(config_dir=tmp_path))
    with TestClient(app) as test_client:
        yield test_client


def test_create_app(tmp_path: Path) -> None:
    app = create_app(Settings(config_dir=tmp_path))
    assert app.title == "Stylesmith Worker"


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["version"] == VERSION
    assert body["genre_count"] == len(GENRE_REGISTRY)
    assert body["llm_enabled"] is False
    assert body["classifier_cache"]["max_entries"] == 100


def test_genres_endpoint(client: TestClient) -> None:
    genres = client.get("/genres").json()
    assert len(genres) == len(GENRE_REGISTRY)
    jazz = next(item for item in genres if item["key"] == "jazz")
    assert (jazz["bpm_min"], jazz["bpm_max"]) == (80, 160)


def test_prompt_is_reproducible(client: TestClient) -> None:
    payload = {"description": "smooth late night jazz", "seed": 42, "max_mode": True}
    first = client.post("/prompt", json=payload).json()
    second = client.post("/prompt", json=payload).json()
    assert first == second
    assert first["seed"] == 42
    assert first["text"].startswith(MAX_MODE_HEADER)
    assert first["components"] == ["jazz"]


def test_prompt_seed_defaults_to_description_hash(client: TestClient) -> None:
    body = client.post("/prompt", json={"description": "anthemic rock"}).json()
    assert body["seed"] == seed_from_text("anthemic rock")
    assert [section["type"] for section in body["sections"]] == [
        "intro",
        "verse",
        "chorus",
        "bridge",
        "outro",
    ]


def test_prompt_applies_default_genre_count(tmp_path: Path) -> None:
    app = create_app(Settings(config_dir=tmp_path, default_genre_count=2))
    with TestClient(app) as client:
        body = client.post("/prompt", json={"description": "smooth jazz", "seed": 3}).json()
    assert len(body["components"]) == 2
    assert body["components"][0] == "jazz"


def test_prompt_rejects_bad_genre_count(client: TestClient) -> None:
    response = client.post("/prompt", json={"description": "jazz", "genre_count": 9})
    assert response.status_code == 422


def test_classify_endpoint(client: TestClient) -> None:
    body = client.post("/classify", json={"text": "smooth jazz"}).json()
    assert body["classification"]["genre"] == "jazz"
    assert body["modes"]["genre"] == "jazz"


def test_convert_endpoint(client: TestClient) -> None:
    body = client.post(
        "/convert",
        json={"text": "Genre: funk\nInstruments: slap bass\nA sweaty dance floor", "seed": 1},
    ).json()
    assert body["was_converted"] is True
    assert body["used_fallback"] is True
    assert body["genre"] == "funk"
    assert body["seed"] == 1


def test_enforce_genres_endpoint(client: TestClient) -> None:
    body = client.post(
        "/genres/enforce",
        json={"prompt": 'genre: "jazz"\nbpm: "between 80 and 160"', "target_count": 3, "seed": 1},
    ).json()
    assert len(body["genres"]) == 3
    assert body["genres"][0] == "jazz"


def test_title_endpoint(client: TestClient) -> None:
    body = client.post("/title", json={"genre": "jazz", "count": 3, "seed": 5}).json()
    assert 1 <= len(body["titles"]) <= 3
    assert body["source"] == "deterministic"
    assert body["seed"] == 5


def test_title_endpoint_with_lyrics_falls_back_without_llm(client: TestClient) -> None:
    body = client.post("/title", json={"genre": "jazz", "seed": 5, "with_lyrics": True}).json()
    assert body["source"] == "deterministic"
    assert body["lyrics"] is None


def test_invariant_errors_become_500(client: TestClient) -> None:
    class _Broken:
        def build(self, request, rng):
            raise InvariantError("empty pool")

    client.app.state.assembler = _Broken()
    response = client.post("/prompt", json={"description": "jazz", "seed": 1})
    assert response.status_code == 500
    assert response.json() == {"detail": "internal invariant violated"}
