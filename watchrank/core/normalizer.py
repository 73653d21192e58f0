"""Map heterogeneous provider records onto CatalogItem.

This is the only place that knows about the provider's alternate field
names (`name`/`title`, `release_date`/`first_air_date`, `genre_ids`/`genres`,
the region-keyed watch-provider sub-resource, ...). Everything downstream
consumes `CatalogItem`.
"""

import math
from datetime import date, datetime
from typing import Any, Iterable

from watchrank.core.contracts import AwardInfo, CatalogItem, MediaType, StreamingPlatform
from watchrank.logging import get_logger
from watchrank.providers.catalog import WATCH_PROVIDERS_KEY
from watchrank.providers.tmdb_client import genre_ids_to_names

logger = get_logger(__name__)

UNTITLED = "Untitled"
DEFAULT_REGION = "US"

# Watch-provider offer types that count as streaming (rent/buy do not).
STREAMING_OFFER_TYPES = ("flatrate", "free", "ads")

# Pre-flattened platform lists some upstream shapes carry instead of the
# region-keyed sub-resource.
_FLAT_PLATFORM_FIELDS = ("streaming_platforms", "streamingPlatforms", "streaming")


def _coerce_media_type(media_type: MediaType | str) -> MediaType:
    if isinstance(media_type, MediaType):
        return media_type
    value = str(media_type).lower()
    if value in ("series", "show"):
        return MediaType.TV
    try:
        return MediaType(value)
    except ValueError:
        logger.debug(f"Unknown media type {media_type!r}, treating as movie")
        return MediaType.MOVIE


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_count(value: Any) -> int:
    """Non-negative int; anything unusable counts as zero."""
    if isinstance(value, bool):
        return int(value)
    try:
        return max(0, int(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def parse_release_date(value: Any) -> date | None:
    """Parse a provider date (YYYY-MM-DD or ISO datetime); None if unusable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _text(value)
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def resolve_title(raw: dict[str, Any], media_type: MediaType) -> str:
    """Pick the media-type-appropriate title field, falling back to the other."""
    if media_type is MediaType.TV:
        fields = ("name", "title", "original_name", "original_title")
    else:
        fields = ("title", "name", "original_title", "original_name")
    for name in fields:
        title = _text(raw.get(name))
        if title:
            return title
    return UNTITLED


def _resolve_release_date(raw: dict[str, Any], media_type: MediaType) -> date | None:
    if media_type is MediaType.TV:
        fields = ("first_air_date", "release_date")
    else:
        fields = ("release_date", "first_air_date")
    for name in fields:
        parsed = parse_release_date(raw.get(name))
        if parsed is not None:
            return parsed
    return None


def _resolve_genres(raw: dict[str, Any]) -> frozenset[str]:
    names: set[str] = set()

    genres = raw.get("genres")
    if isinstance(genres, list):
        for genre in genres:
            if isinstance(genre, dict):
                label = _text(genre.get("name"))
                if label:
                    names.add(label)
                elif genre.get("id") is not None:
                    names.update(genre_ids_to_names([genre["id"]]))
            elif isinstance(genre, str) and genre.strip():
                names.add(genre.strip())

    genre_ids = raw.get("genre_ids")
    if isinstance(genre_ids, list):
        names.update(genre_ids_to_names(genre_ids))

    return frozenset(names)


def _platform_from(entry: Any) -> StreamingPlatform | None:
    if isinstance(entry, str):
        label = _text(entry)
        return StreamingPlatform(platform_name=label) if label else None
    if not isinstance(entry, dict):
        return None

    label = _text(entry.get("provider_name")) or _text(entry.get("name"))
    platform_id = entry.get("provider_id")
    if platform_id is not None:
        try:
            platform_id = int(platform_id)
        except (TypeError, ValueError, OverflowError):
            platform_id = None
    if not label:
        if platform_id is None:
            return None
        label = f"Platform {platform_id}"

    return StreamingPlatform(
        platform_name=label,
        logo_path=_text(entry.get("logo_path")),
        platform_id=platform_id,
    )


def _region_offers(raw: dict[str, Any], region: str) -> list[Any]:
    sub_resource = raw.get(WATCH_PROVIDERS_KEY)
    if not isinstance(sub_resource, dict):
        return []
    by_region = sub_resource.get("results")
    if not isinstance(by_region, dict):
        return []
    offers = by_region.get(region.upper())
    if not isinstance(offers, dict):
        return []

    entries: list[Any] = []
    for offer_type in STREAMING_OFFER_TYPES:
        listed = offers.get(offer_type)
        if isinstance(listed, list):
            entries.extend(listed)
    return entries


def _resolve_platforms(raw: dict[str, Any], region: str) -> tuple[StreamingPlatform, ...]:
    entries = _region_offers(raw, region)
    for name in _FLAT_PLATFORM_FIELDS:
        listed = raw.get(name)
        if isinstance(listed, list):
            entries.extend(listed)

    platforms: list[StreamingPlatform] = []
    seen_ids: set[int] = set()
    # Lowercased name -> ids seen under it (None for entries without an id)
    seen_names: dict[str, set[int | None]] = {}
    for entry in entries:
        platform = _platform_from(entry)
        if platform is None:
            continue
        name = platform.platform_name.lower()
        if platform.platform_id is not None and platform.platform_id in seen_ids:
            continue
        ids_for_name = seen_names.get(name)
        if ids_for_name is not None and (platform.platform_id is None or None in ids_for_name):
            continue
        if platform.platform_id is not None:
            seen_ids.add(platform.platform_id)
        seen_names.setdefault(name, set()).add(platform.platform_id)
        platforms.append(platform)
    return tuple(platforms)


def _resolve_awards(raw: dict[str, Any]) -> AwardInfo | None:
    awards = raw.get("awards")
    if isinstance(awards, dict):
        wins = _to_count(awards.get("wins"))
        nominations = _to_count(awards.get("nominations"))
        if awards.get("isWinner") and wins == 0:
            wins = 1
        return AwardInfo(wins=wins, nominations=nominations)

    # Legacy flag-style award markers
    if raw.get("isWinner") or raw.get("type") == "Winner":
        return AwardInfo(wins=1, nominations=0)
    if raw.get("type") == "Nominated":
        return AwardInfo(wins=0, nominations=1)
    return None


def normalize_record(
    raw: dict[str, Any],
    media_type: MediaType | str,
    region: str = DEFAULT_REGION,
) -> CatalogItem:
    """Convert one raw provider record into a CatalogItem.

    Never raises on missing or malformed optional fields; they come out as
    None/empty. The record is assumed to carry an `id`.

    Args:
        raw: Provider record
        media_type: Media type of the request the record came from. A record
            with its own `media_type` of movie/tv (multi-search shape) wins.
        region: Watch-provider region to read platforms from

    Returns:
        Normalized CatalogItem
    """
    kind = _coerce_media_type(media_type)
    own_type = raw.get("media_type")
    if own_type in ("movie", "tv"):
        kind = MediaType(own_type)

    return CatalogItem(
        id=raw.get("id"),
        title=resolve_title(raw, kind),
        media_type=kind,
        release_date=_resolve_release_date(raw, kind),
        vote_average=_to_float(raw.get("vote_average")),
        genres=_resolve_genres(raw),
        streaming_platforms=_resolve_platforms(raw, region),
        awards=_resolve_awards(raw),
        poster_path=_text(raw.get("poster_path")),
        backdrop_path=_text(raw.get("backdrop_path")),
        overview=_text(raw.get("overview")),
        popularity=_to_float(raw.get("popularity")),
    )


def normalize_batch(
    records: Iterable[Any],
    media_type: MediaType | str,
    region: str = DEFAULT_REGION,
) -> list[CatalogItem]:
    """Normalize a fetch batch.

    Records without an `id` are dropped, as are repeats of an
    (id, media_type) pair already seen in the batch. Input order is kept.
    """
    items: list[CatalogItem] = []
    seen: set[tuple[str, str]] = set()
    dropped = 0

    for raw in records:
        if not isinstance(raw, dict) or raw.get("id") in (None, ""):
            dropped += 1
            continue
        item = normalize_record(raw, media_type, region=region)
        if item.key in seen:
            continue
        seen.add(item.key)
        items.append(item)

    if dropped:
        logger.debug(f"Dropped {dropped} malformed records without id")

    return items
