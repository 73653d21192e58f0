"""Shape ranked items into display records."""

from typing import Iterable

from watchrank.core.contracts import CatalogItem, DisplayItem, StreamingPlatform

DEFAULT_IMAGE_TEMPLATE = "https://image.tmdb.org/t/p/{size}{path}"
POSTER_SIZE = "w500"
BACKDROP_SIZE = "w1280"
LOGO_SIZE = "w92"

# Higher wins when picking the platform to feature on a card.
PLATFORM_PRIORITY: dict[str, int] = {
    "netflix": 10,
    "disney+": 9,
    "disney plus": 9,
    "amazon prime video": 8,
    "prime video": 8,
    "hbo max": 7,
    "max": 7,
    "apple tv+": 6,
    "apple tv plus": 6,
    "apple tv": 6,
    "hulu": 5,
    "paramount+": 4,
    "paramount plus": 4,
    "peacock": 3,
    "crunchyroll": 2,
    "discovery+": 1,
    "discovery plus": 1,
}


def image_url(
    path: str | None,
    size: str = POSTER_SIZE,
    template: str = DEFAULT_IMAGE_TEMPLATE,
) -> str | None:
    """Substitute an image path fragment into the CDN template."""
    if not path:
        return None
    if not path.startswith("/"):
        path = f"/{path}"
    return template.replace("{size}", size).replace("{path}", path)


def primary_platform(platforms: Iterable[StreamingPlatform]) -> StreamingPlatform | None:
    """Best-known platform by brand priority; first listed wins ties."""
    best: StreamingPlatform | None = None
    best_priority = -1
    for platform in platforms:
        priority = PLATFORM_PRIORITY.get(platform.platform_name.lower(), 0)
        if priority > best_priority:
            best, best_priority = platform, priority
    return best


def award_badge(item: CatalogItem) -> str | None:
    """Short badge text like "2 Wins" or "1 Nom"."""
    if item.awards is None:
        return None
    if item.awards.wins > 0:
        wins = item.awards.wins
        return f"{wins} Win{'s' if wins > 1 else ''}"
    if item.awards.nominations > 0:
        noms = item.awards.nominations
        return f"{noms} Nom{'s' if noms > 1 else ''}"
    return None


def to_display(
    item: CatalogItem,
    template: str = DEFAULT_IMAGE_TEMPLATE,
    poster_size: str = POSTER_SIZE,
    backdrop_size: str = BACKDROP_SIZE,
) -> DisplayItem:
    """Map one CatalogItem to its display record."""
    featured = primary_platform(item.streaming_platforms)
    return DisplayItem(
        id=item.id,
        media_type=item.media_type.value,
        title=item.title,
        poster_url=image_url(item.poster_path, poster_size, template),
        backdrop_url=image_url(item.backdrop_path, backdrop_size, template),
        release_date=item.release_date.isoformat() if item.release_date else None,
        year=item.release_date.year if item.release_date else None,
        rating=round(item.vote_average, 1) if item.vote_average is not None else None,
        genres=sorted(item.genres),
        platforms=[
            {
                "id": platform.platform_id,
                "name": platform.platform_name,
                "logo_url": image_url(platform.logo_path, LOGO_SIZE, template),
            }
            for platform in item.streaming_platforms
        ],
        primary_platform=featured.platform_name if featured else None,
        award_badge=award_badge(item),
        overview=item.overview,
    )


def present(
    items: Iterable[CatalogItem],
    limit: int | None = None,
    template: str = DEFAULT_IMAGE_TEMPLATE,
) -> list[DisplayItem]:
    """Display records for a ranked sequence, optionally trimmed to `limit`."""
    records = []
    for item in items:
        if limit is not None and len(records) >= limit:
            break
        if not item.title:
            continue
        records.append(to_display(item, template=template))
    return records
