"""Tests for catalog fetching and watch-provider enrichment."""

import httpx
import pytest

from watchrank.providers.catalog import (
    WATCH_PROVIDERS_KEY,
    CatalogRequest,
    attach_watch_providers,
    fetch_catalog,
)
from watchrank.providers.tmdb_client import TMDBClient, UpstreamRateLimited, UpstreamUnavailable


def make_client(handler) -> TMDBClient:
    return TMDBClient(bearer_token="t", region="US", transport=httpx.MockTransport(handler))


def test_cache_key_distinguishes_requests():
    base = CatalogRequest(media_type="movie")
    assert base.cache_key() == CatalogRequest(media_type="movie").cache_key()
    assert base.cache_key() != CatalogRequest(media_type="tv").cache_key()
    assert base.cache_key() != CatalogRequest(media_type="movie", page=2).cache_key()


@pytest.mark.anyio
async def test_fetch_catalog_routes_by_source():
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={"results": [{"id": 1}]})

    client = make_client(handler)
    for source in ("trending", "popular", "top_rated"):
        request = CatalogRequest(media_type="tv", source=source, with_providers=False)
        assert await fetch_catalog(client, request) == [{"id": 1}]
    await client.close()

    assert paths == ["/3/trending/tv/week", "/3/tv/popular", "/3/tv/top_rated"]


@pytest.mark.anyio
async def test_fetch_catalog_attaches_providers(providers_payload):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/watch/providers"):
            if "/movie/2/" in request.url.path:
                return httpx.Response(500)
            return httpx.Response(200, json=providers_payload("Netflix"))
        return httpx.Response(200, json={"results": [{"id": 1}, {"id": 2}, {"title": "no id"}]})

    client = make_client(handler)
    records = await fetch_catalog(client, CatalogRequest(media_type="movie"))
    await client.close()

    assert len(records) == 3
    assert records[0][WATCH_PROVIDERS_KEY]["results"]["US"]["flatrate"][0]["provider_name"] == "Netflix"
    assert WATCH_PROVIDERS_KEY not in records[1]
    assert WATCH_PROVIDERS_KEY not in records[2]


@pytest.mark.anyio
async def test_attach_watch_providers_does_not_mutate(providers_payload):
    client = make_client(lambda request: httpx.Response(200, json=providers_payload("Hulu")))
    records = [{"id": 9}]

    enriched = await attach_watch_providers(client, "tv", records)
    await client.close()

    assert records == [{"id": 9}]
    assert WATCH_PROVIDERS_KEY in enriched[0]


@pytest.mark.anyio
async def test_first_page_failure_propagates():
    client = make_client(lambda request: httpx.Response(503))

    with pytest.raises(UpstreamUnavailable):
        await fetch_catalog(client, CatalogRequest(media_type="movie", with_providers=False))
    await client.close()


@pytest.mark.anyio
async def test_rate_limit_on_first_page_propagates():
    client = make_client(lambda request: httpx.Response(429))

    with pytest.raises(UpstreamRateLimited):
        await fetch_catalog(client, CatalogRequest(media_type="movie", with_providers=False))
    await client.close()


@pytest.mark.anyio
async def test_later_page_failure_keeps_earlier_pages():
    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        if page == 2:
            return httpx.Response(502)
        return httpx.Response(200, json={"results": [{"id": page}], "total_pages": 10})

    client = make_client(handler)
    records = await fetch_catalog(
        client, CatalogRequest(media_type="movie", pages=3, with_providers=False)
    )
    await client.close()

    assert records == [{"id": 1}]


@pytest.mark.anyio
async def test_paging_stops_at_total_pages():
    pages_seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        pages_seen.append(page)
        return httpx.Response(200, json={"results": [{"id": page}], "total_pages": 2})

    client = make_client(handler)
    records = await fetch_catalog(
        client, CatalogRequest(media_type="tv", pages=5, with_providers=False)
    )
    await client.close()

    assert pages_seen == [1, 2]
    assert records == [{"id": 1}, {"id": 2}]
