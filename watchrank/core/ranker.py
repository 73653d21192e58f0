"""Bucket classification and ordering of normalized catalog items.

Every bucket is derived from the same ordering: eligible items stably sorted
by vote average (missing counts as 0), so ties keep fetch order. Each bucket
then filters that ordering and truncates it. Input sequences are never
mutated and results are always fresh lists.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Iterable, Sequence

from watchrank.core.contracts import Bucket, CatalogItem
from watchrank.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RECENT_DAYS = 365
DEFAULT_MIN_PLATFORMS = 3
DEFAULT_MIN_AWARD_WINS = 1

DEFAULT_MAX_RESULTS: dict[Bucket, int] = {
    Bucket.AWARD_WINNERS: 10,
    Bucket.AWARD_NOMINEES: 10,
    Bucket.HIGHLY_AVAILABLE: 15,
    Bucket.RECENT: 12,
    Bucket.UPCOMING: 12,
    Bucket.ALL: 20,
}


@dataclass(frozen=True)
class RankPolicy:
    """Tuning thresholds for bucket membership."""

    recent_days: int = DEFAULT_RECENT_DAYS
    min_platforms: int = DEFAULT_MIN_PLATFORMS
    min_award_wins: int = DEFAULT_MIN_AWARD_WINS
    max_results: dict[Bucket, int] = field(
        default_factory=lambda: dict(DEFAULT_MAX_RESULTS)
    )

    @classmethod
    def from_config(cls, cfg: Any) -> "RankPolicy":
        """Build a policy from the application Config."""
        return cls(
            recent_days=cfg.rank_recent_days,
            min_platforms=cfg.rank_min_platforms,
            min_award_wins=max(1, cfg.rank_min_award_wins),
            max_results={
                Bucket.AWARD_WINNERS: cfg.rank_max_award_winners,
                Bucket.AWARD_NOMINEES: cfg.rank_max_award_nominees,
                Bucket.HIGHLY_AVAILABLE: cfg.rank_max_highly_available,
                Bucket.RECENT: cfg.rank_max_recent,
                Bucket.UPCOMING: cfg.rank_max_upcoming,
                Bucket.ALL: cfg.rank_max_all,
            },
        )

    def limit_for(self, bucket: Bucket) -> int:
        return self.max_results.get(bucket, DEFAULT_MAX_RESULTS[bucket])


@dataclass(frozen=True)
class RankOptions:
    """Per-request ranking options."""

    include_non_streaming: bool = True
    exclude_ids: frozenset[str] = frozenset()
    min_rating: float | None = None
    max_results: dict[Bucket, int] = field(default_factory=dict)
    today: date | None = None

    def reference_date(self) -> date:
        if isinstance(self.today, datetime):
            return self.today.date()
        return self.today or date.today()


@dataclass
class RankedBuckets:
    """All named buckets computed from one batch."""

    award_winners: list[CatalogItem] = field(default_factory=list)
    award_nominees: list[CatalogItem] = field(default_factory=list)
    highly_available: list[CatalogItem] = field(default_factory=list)
    recent: list[CatalogItem] = field(default_factory=list)
    upcoming: list[CatalogItem] = field(default_factory=list)
    all: list[CatalogItem] = field(default_factory=list)

    def get(self, bucket: Bucket) -> list[CatalogItem]:
        return getattr(self, bucket.value)

    def is_empty(self) -> bool:
        return not any(self.get(bucket) for bucket in Bucket)


def vote_score(item: CatalogItem) -> float:
    """Sort score; missing or non-finite ratings count as 0."""
    value = item.vote_average
    if value is None or not math.isfinite(value):
        return 0.0
    return value


def award_wins(item: CatalogItem) -> int:
    return item.awards.wins if item.awards else 0


def award_nominations(item: CatalogItem) -> int:
    return item.awards.nominations if item.awards else 0


def days_since_release(item: CatalogItem, today: date) -> int | None:
    """Days between release and today; negative for future releases."""
    if item.release_date is None:
        return None
    return (today - item.release_date).days


def _predicate(
    bucket: Bucket,
    policy: RankPolicy,
    today: date,
) -> Callable[[CatalogItem], bool]:
    if bucket is Bucket.AWARD_WINNERS:
        return lambda item: award_wins(item) >= max(1, policy.min_award_wins)
    if bucket is Bucket.AWARD_NOMINEES:
        return lambda item: award_wins(item) == 0 and award_nominations(item) > 0
    if bucket is Bucket.HIGHLY_AVAILABLE:
        return lambda item: len(item.streaming_platforms) >= policy.min_platforms
    if bucket is Bucket.RECENT:
        def is_recent(item: CatalogItem) -> bool:
            age = days_since_release(item, today)
            return age is not None and age <= policy.recent_days
        return is_recent
    if bucket is Bucket.UPCOMING:
        def is_upcoming(item: CatalogItem) -> bool:
            age = days_since_release(item, today)
            return age is not None and age < 0
        return is_upcoming
    return lambda item: True


def eligible(items: Iterable[CatalogItem], options: RankOptions) -> list[CatalogItem]:
    """Apply request-level filters, preserving order."""
    result = []
    for item in items:
        if not options.include_non_streaming and not item.streaming_platforms:
            continue
        if options.exclude_ids and str(item.id) in options.exclude_ids:
            continue
        if options.min_rating is not None and vote_score(item) < options.min_rating:
            continue
        result.append(item)
    return result


def sort_by_score(items: Iterable[CatalogItem]) -> list[CatalogItem]:
    """Stable sort by vote average descending."""
    return sorted(items, key=vote_score, reverse=True)


def _limit(bucket: Bucket, policy: RankPolicy, options: RankOptions) -> int:
    return max(0, options.max_results.get(bucket, policy.limit_for(bucket)))


def _select(
    ordered: Sequence[CatalogItem],
    bucket: Bucket,
    policy: RankPolicy,
    options: RankOptions,
    today: date,
) -> list[CatalogItem]:
    limit = _limit(bucket, policy, options)
    accept = _predicate(bucket, policy, today)
    selected = []
    for item in ordered:
        if len(selected) >= limit:
            break
        if accept(item):
            selected.append(item)
    return selected


def rank(
    items: Sequence[CatalogItem],
    bucket: Bucket | str = Bucket.ALL,
    options: RankOptions | None = None,
    policy: RankPolicy | None = None,
) -> list[CatalogItem]:
    """Rank items into a single bucket.

    Args:
        items: Normalized items in fetch order
        bucket: Bucket to compute
        options: Request options (eligibility, exclusions, limits)
        policy: Thresholds and default limits

    Returns:
        New list, at most the bucket's max_results long
    """
    options = options or RankOptions()
    policy = policy or RankPolicy()
    ordered = sort_by_score(eligible(items, options))
    return _select(ordered, Bucket(bucket), policy, options, options.reference_date())


def build_buckets(
    items: Sequence[CatalogItem],
    options: RankOptions | None = None,
    policy: RankPolicy | None = None,
) -> RankedBuckets:
    """Compute every named bucket from one batch."""
    options = options or RankOptions()
    policy = policy or RankPolicy()
    today = options.reference_date()

    ordered = sort_by_score(eligible(items, options))
    buckets = RankedBuckets(
        **{
            bucket.value: _select(ordered, bucket, policy, options, today)
            for bucket in Bucket
        }
    )

    logger.debug(
        f"Ranked {len(items)} items ({len(ordered)} eligible): "
        + ", ".join(f"{b.value}={len(buckets.get(b))}" for b in Bucket)
    )
    return buckets
