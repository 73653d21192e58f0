"""Recommendation pipeline: fetch, normalize, rank, present."""

from dataclasses import dataclass, field
from typing import Any, Hashable

from watchrank.core.contracts import Bucket, CatalogItem, DisplayItem
from watchrank.core.normalizer import normalize_batch
from watchrank.core.presenter import DEFAULT_IMAGE_TEMPLATE, present
from watchrank.core.ranker import RankedBuckets, RankOptions, RankPolicy, build_buckets
from watchrank.logging import get_logger
from watchrank.providers.cache import ResponseCache
from watchrank.providers.catalog import CatalogRequest, fetch_catalog
from watchrank.providers.tmdb_client import TMDBClient, UpstreamError, UpstreamRateLimited

logger = get_logger(__name__)


class RequestSequencer:
    """Monotonic request tokens per consumer, for last-request-wins.

    `begin(key)` issues a new token and makes it the latest for that key;
    `is_current(key, token)` tells whether a result is still wanted; `forget`
    drops a key once its latest request has resolved.
    """

    def __init__(self) -> None:
        self._counter = 0
        self._latest: dict[Hashable, int] = {}

    def begin(self, key: Hashable) -> int:
        self._counter += 1
        self._latest[key] = self._counter
        return self._counter

    def is_current(self, key: Hashable, token: int) -> bool:
        return self._latest.get(key) == token

    def forget(self, key: Hashable) -> None:
        self._latest.pop(key, None)

    def __len__(self) -> int:
        return len(self._latest)


@dataclass
class DashboardResult:
    """Display-ready buckets for one request."""

    buckets: dict[Bucket, list[DisplayItem]] = field(
        default_factory=lambda: {bucket: [] for bucket in Bucket}
    )
    degraded: bool = False
    total_items: int = 0

    def get(self, bucket: Bucket) -> list[DisplayItem]:
        return self.buckets.get(bucket, [])


class RecommendationService:
    """Runs the catalog pipeline for a request.

    Upstream failures never escape: they are logged and turned into an empty,
    `degraded` result.
    """

    def __init__(
        self,
        client: TMDBClient,
        cache: ResponseCache | None = None,
        policy: RankPolicy | None = None,
        region: str = "US",
        cache_ttl_seconds: float = 300,
        image_template: str = DEFAULT_IMAGE_TEMPLATE,
        provider_concurrency: int = 8,
    ):
        self.client = client
        self.cache = cache if cache is not None else ResponseCache()
        self.policy = policy or RankPolicy()
        self.region = region
        self.cache_ttl_seconds = cache_ttl_seconds
        self.image_template = image_template
        self.provider_concurrency = provider_concurrency
        self.sequencer = RequestSequencer()

    async def fetch_raw(self, request: CatalogRequest) -> list[dict[str, Any]]:
        """Raw records for a request, served from cache while fresh.

        Raises:
            UpstreamError: When the provider call fails and nothing is cached
        """
        key = request.cache_key()
        cached = self.cache.get_fresh(key, self.cache_ttl_seconds)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return cached

        records = await fetch_catalog(
            self.client, request, provider_concurrency=self.provider_concurrency
        )
        pruned = self.cache.prune(self.cache_ttl_seconds)
        if pruned:
            logger.debug(f"Pruned {pruned} stale cache entries")
        self.cache.put(key, records)
        return records

    async def fetch_items(self, request: CatalogRequest) -> list[CatalogItem]:
        """Normalized items for a request; raises UpstreamError on failure."""
        records = await self.fetch_raw(request)
        return normalize_batch(records, request.media_type, region=self.region)

    def rank_items(
        self,
        items: list[CatalogItem],
        options: RankOptions | None = None,
    ) -> RankedBuckets:
        return build_buckets(items, options, self.policy)

    def present_buckets(self, ranked: RankedBuckets) -> dict[Bucket, list[DisplayItem]]:
        return {
            bucket: present(ranked.get(bucket), template=self.image_template)
            for bucket in Bucket
        }

    async def recommend(
        self,
        request: CatalogRequest,
        options: RankOptions | None = None,
        consumer: Hashable | None = None,
    ) -> DashboardResult | None:
        """Build display buckets for a request.

        Args:
            request: What to fetch
            options: Ranking options
            consumer: Key identifying the requester; when a newer request from
                the same consumer starts before this one resolves, this
                result is discarded

        Returns:
            DashboardResult (empty and degraded on upstream failure), or None
            when superseded by a newer request from the same consumer
        """
        token = self.sequencer.begin(consumer) if consumer is not None else None
        current = True

        try:
            result = await self._build_result(request, options)
        finally:
            if token is not None:
                current = self.sequencer.is_current(consumer, token)
                # The latest request for a consumer releases its slot
                if current:
                    self.sequencer.forget(consumer)

        if not current:
            logger.info(f"Discarding stale result for consumer={consumer} token={token}")
            return None

        return result

    async def _build_result(
        self,
        request: CatalogRequest,
        options: RankOptions | None,
    ) -> DashboardResult:
        try:
            items = await self.fetch_items(request)
        except UpstreamRateLimited as e:
            logger.warning(
                f"Provider rate limited for {request.source} {request.media_type}, "
                f"retry_after={e.retry_after}; returning empty recommendations"
            )
            return DashboardResult(degraded=True)
        except UpstreamError as e:
            logger.warning(
                f"Provider unavailable for {request.source} {request.media_type}: {e}; "
                f"returning empty recommendations"
            )
            return DashboardResult(degraded=True)

        ranked = self.rank_items(items, options)
        return DashboardResult(
            buckets=self.present_buckets(ranked),
            total_items=len(items),
        )
