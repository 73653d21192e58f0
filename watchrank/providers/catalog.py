"""Catalog fetching: raw provider records for one request shape."""

import asyncio
from dataclasses import dataclass
from typing import Any, Literal

from watchrank.logging import get_logger
from watchrank.providers.tmdb_client import (
    MediaTypeName,
    TimeWindow,
    TMDBClient,
    UpstreamError,
    UpstreamRateLimited,
)

logger = get_logger(__name__)

CatalogSource = Literal["trending", "popular", "top_rated"]

# Key under which the watch-provider sub-resource is attached to a raw record,
# matching TMDB's append_to_response naming.
WATCH_PROVIDERS_KEY = "watch/providers"


@dataclass(frozen=True)
class CatalogRequest:
    """What to fetch from the provider."""

    media_type: MediaTypeName
    source: CatalogSource = "trending"
    time_window: TimeWindow = "week"
    page: int = 1
    pages: int = 1
    with_providers: bool = True

    def cache_key(self) -> tuple:
        return (
            self.media_type,
            self.source,
            self.time_window,
            self.page,
            self.pages,
            self.with_providers,
        )


async def _fetch_page(
    client: TMDBClient,
    request: CatalogRequest,
    page: int,
) -> dict[str, Any]:
    if request.source == "trending":
        return await client.fetch_trending(request.media_type, request.time_window, page)
    if request.source == "popular":
        return await client.fetch_popular(request.media_type, page)
    if request.source == "top_rated":
        return await client.fetch_top_rated(request.media_type, page)
    raise ValueError(f"Unknown catalog source: {request.source}")


async def attach_watch_providers(
    client: TMDBClient,
    media_type: MediaTypeName,
    records: list[dict[str, Any]],
    concurrency: int = 8,
) -> list[dict[str, Any]]:
    """Return copies of records with the watch-provider sub-resource attached.

    Lookups run concurrently, bounded by `concurrency`. A failed lookup leaves
    that record without providers; it never fails the batch.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def enrich(record: dict[str, Any]) -> dict[str, Any]:
        enriched = dict(record)
        if WATCH_PROVIDERS_KEY in record or record.get("id") is None:
            return enriched
        async with semaphore:
            try:
                enriched[WATCH_PROVIDERS_KEY] = await client.get_watch_providers(
                    media_type, record["id"]
                )
            except UpstreamError as e:
                logger.warning(
                    f"Watch providers lookup failed for {media_type}/{record['id']}: {e}"
                )
        return enriched

    return list(await asyncio.gather(*(enrich(record) for record in records)))


async def fetch_catalog(
    client: TMDBClient,
    request: CatalogRequest,
    provider_concurrency: int = 8,
) -> list[dict[str, Any]]:
    """Fetch raw provider records for a request.

    Pages are fetched sequentially starting at `request.page`. A failure on the
    first page propagates; a failure on a later page stops paging and keeps
    what was already fetched.

    Args:
        client: TMDB client
        request: Request shape (media type, source, window, pagination)
        provider_concurrency: Max concurrent watch-provider lookups

    Returns:
        Raw provider records in fetch order

    Raises:
        UpstreamUnavailable: Provider unreachable or non-success status
        UpstreamRateLimited: Provider throttled the request
    """
    records: list[dict[str, Any]] = []

    for offset in range(max(1, request.pages)):
        page = request.page + offset
        try:
            response = await _fetch_page(client, request, page)
        except UpstreamError as e:
            if offset == 0:
                raise
            level = "rate limited" if isinstance(e, UpstreamRateLimited) else "failed"
            logger.warning(
                f"Catalog {request.source} {request.media_type} page {page} {level}, "
                f"keeping {len(records)} records: {e}"
            )
            break

        results = response.get("results") or []
        page_records = [r for r in results if isinstance(r, dict)]
        if request.with_providers:
            page_records = await attach_watch_providers(
                client, request.media_type, page_records, provider_concurrency
            )
        records.extend(page_records)

        logger.debug(
            f"Fetched {len(page_records)} {request.media_type} records "
            f"from {request.source} page {page}"
        )

        total_pages = response.get("total_pages")
        if isinstance(total_pages, int) and page >= total_pages:
            break

    return records
