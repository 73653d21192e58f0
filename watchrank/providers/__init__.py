"""Metadata provider access: TMDB client, catalog fetching and response cache."""

from watchrank.providers.cache import CacheEntry, ResponseCache
from watchrank.providers.catalog import CatalogRequest, attach_watch_providers, fetch_catalog
from watchrank.providers.tmdb_client import (
    TMDBClient,
    UpstreamError,
    UpstreamRateLimited,
    UpstreamUnavailable,
    genre_ids_to_names,
)

__all__ = [
    # Client
    "TMDBClient",
    "genre_ids_to_names",
    # Errors
    "UpstreamError",
    "UpstreamRateLimited",
    "UpstreamUnavailable",
    # Catalog
    "CatalogRequest",
    "attach_watch_providers",
    "fetch_catalog",
    # Cache
    "CacheEntry",
    "ResponseCache",
]
