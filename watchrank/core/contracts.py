"""Domain contracts and type definitions."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class MediaType(str, Enum):
    """Kinds of catalog entries."""

    MOVIE = "movie"
    TV = "tv"


class Bucket(str, Enum):
    """Named subsets of a ranked batch."""

    AWARD_WINNERS = "award_winners"
    AWARD_NOMINEES = "award_nominees"
    HIGHLY_AVAILABLE = "highly_available"
    RECENT = "recent"
    UPCOMING = "upcoming"
    ALL = "all"


@dataclass(frozen=True)
class StreamingPlatform:
    """A service an item can be streamed on."""

    platform_name: str
    logo_path: str | None = None
    platform_id: int | None = None


@dataclass(frozen=True)
class AwardInfo:
    """Award counts for an item."""

    wins: int = 0
    nominations: int = 0


@dataclass(frozen=True)
class CatalogItem:
    """Canonical, normalized catalog entry."""

    id: int | str
    title: str
    media_type: MediaType
    release_date: date | None = None
    vote_average: float | None = None
    genres: frozenset[str] = field(default_factory=frozenset)
    streaming_platforms: tuple[StreamingPlatform, ...] = ()
    awards: AwardInfo | None = None
    poster_path: str | None = None
    backdrop_path: str | None = None
    overview: str | None = None
    popularity: float | None = None

    @property
    def key(self) -> tuple[str, str]:
        """Identity within one fetch batch."""
        return (self.media_type.value, str(self.id))


@dataclass(frozen=True)
class DisplayItem:
    """Display-ready record handed to the UI."""

    id: int | str
    media_type: str
    title: str
    poster_url: str | None
    backdrop_url: str | None
    release_date: str | None
    year: int | None
    rating: float | None
    genres: list[str]
    platforms: list[dict[str, str | int | None]]
    primary_platform: str | None
    award_badge: str | None
    overview: str | None = None
