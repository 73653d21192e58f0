"""Core module containing the ranking pipeline and domain types."""

from watchrank.core.contracts import (
    AwardInfo,
    Bucket,
    CatalogItem,
    DisplayItem,
    MediaType,
    StreamingPlatform,
)
from watchrank.core.normalizer import normalize_batch, normalize_record
from watchrank.core.presenter import image_url, present, to_display
from watchrank.core.ranker import (
    RankedBuckets,
    RankOptions,
    RankPolicy,
    build_buckets,
    rank,
)
from watchrank.core.recommender import (
    DashboardResult,
    RecommendationService,
    RequestSequencer,
)

__all__ = [
    # Contracts/Types
    "AwardInfo",
    "Bucket",
    "CatalogItem",
    "DisplayItem",
    "MediaType",
    "StreamingPlatform",
    # Normalizer
    "normalize_batch",
    "normalize_record",
    # Ranker
    "RankedBuckets",
    "RankOptions",
    "RankPolicy",
    "build_buckets",
    "rank",
    # Presentation
    "image_url",
    "present",
    "to_display",
    # Service
    "DashboardResult",
    "RecommendationService",
    "RequestSequencer",
]
