"""Tests for the HTTP endpoints."""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from watchrank.core.recommender import RecommendationService
from watchrank.providers.tmdb_client import TMDBClient


@pytest.fixture
def api():
    from watchrank.main import app, get_service

    yield app, get_service

    app.dependency_overrides.clear()


def _service(handler) -> RecommendationService:
    client = TMDBClient(bearer_token="t", region="US", transport=httpx.MockTransport(handler))
    return RecommendationService(client=client)


@pytest.mark.anyio
async def test_health_endpoint(api):
    app, _ = api

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.anyio
async def test_recommendations_endpoint(api):
    app, get_service = api

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/watch/providers"):
            return httpx.Response(200, json={"results": {}})
        return httpx.Response(
            200,
            json={
                "results": [
                    {"id": 1, "title": "Alpha", "vote_average": 9.0, "awards": {"wins": 1}},
                    {"id": 2, "title": "Beta", "vote_average": 6.0, "poster_path": "/b.jpg"},
                ]
            },
        )

    app.dependency_overrides[get_service] = lambda: _service(handler)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/recommendations/movie", params={"exclude": "3,4"})

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {
        "awardWinners",
        "awardNominees",
        "highlyAvailable",
        "recent",
        "upcoming",
        "all",
        "degraded",
    }
    assert body["degraded"] is False
    assert [item["id"] for item in body["all"]] == [1, 2]
    assert [item["title"] for item in body["awardWinners"]] == ["Alpha"]
    assert body["all"][1]["posterUrl"] == "https://image.tmdb.org/t/p/w500/b.jpg"
    assert body["all"][0]["awardBadge"] == "1 Win"
    assert body["all"][0]["mediaType"] == "movie"


@pytest.mark.anyio
async def test_recommendations_degrade_on_upstream_failure(api):
    app, get_service = api
    app.dependency_overrides[get_service] = lambda: _service(lambda r: httpx.Response(503))

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/recommendations/tv")

    assert response.status_code == 200
    body = response.json()
    assert body["degraded"] is True
    assert body["all"] == [] and body["awardWinners"] == [] and body["recent"] == []


@pytest.mark.anyio
async def test_unknown_media_type_rejected(api):
    app, _ = api

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/recommendations/podcast")

    assert response.status_code == 422
