"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


def _int_env(name: str, default: int) -> int:
    """Read an integer env var, falling back to default when unparsable."""
    value = os.getenv(name, str(default))
    try:
        return int(value)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    """Read a float env var, falling back to default when unparsable."""
    value = os.getenv(name, str(default))
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    # Server settings
    host: str
    port: int
    log_level: str

    # TMDB settings
    tmdb_bearer_token: str | None
    tmdb_language: str
    tmdb_region: str
    tmdb_timeout_seconds: float
    tmdb_provider_concurrency: int
    tmdb_image_template: str

    # Cache settings
    cache_ttl_seconds: int

    # Ranking policy
    rank_recent_days: int
    rank_min_platforms: int
    rank_min_award_wins: int
    rank_max_award_winners: int
    rank_max_award_nominees: int
    rank_max_highly_available: int
    rank_max_recent: int
    rank_max_upcoming: int
    rank_max_all: int

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        host = os.getenv("HOST", "0.0.0.0")
        port_str = os.getenv("PORT", "8000")
        try:
            port = int(port_str)
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got: {port_str}")

        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # TMDB settings
        tmdb_bearer_token = os.getenv("TMDB_BEARER_TOKEN") or None
        tmdb_language = os.getenv("TMDB_LANGUAGE", "en-US")
        tmdb_region = os.getenv("TMDB_REGION", "US").upper()
        tmdb_timeout_seconds = _float_env("TMDB_TIMEOUT_SECONDS", 30.0)
        tmdb_provider_concurrency = max(1, _int_env("TMDB_PROVIDER_CONCURRENCY", 8))
        tmdb_image_template = os.getenv(
            "TMDB_IMAGE_TEMPLATE", "https://image.tmdb.org/t/p/{size}{path}"
        )
        if "{path}" not in tmdb_image_template:
            raise ConfigurationError("TMDB_IMAGE_TEMPLATE must contain a {path} token")

        cache_ttl_seconds = _int_env("CACHE_TTL_SECONDS", 300)

        # Ranking policy
        rank_recent_days = _int_env("RANK_RECENT_DAYS", 365)
        rank_min_platforms = _int_env("RANK_MIN_PLATFORMS", 3)
        rank_min_award_wins = _int_env("RANK_MIN_AWARD_WINS", 1)

        return cls(
            host=host,
            port=port,
            log_level=log_level,
            tmdb_bearer_token=tmdb_bearer_token,
            tmdb_language=tmdb_language,
            tmdb_region=tmdb_region,
            tmdb_timeout_seconds=tmdb_timeout_seconds,
            tmdb_provider_concurrency=tmdb_provider_concurrency,
            tmdb_image_template=tmdb_image_template,
            cache_ttl_seconds=cache_ttl_seconds,
            rank_recent_days=rank_recent_days,
            rank_min_platforms=rank_min_platforms,
            rank_min_award_wins=rank_min_award_wins,
            rank_max_award_winners=_int_env("RANK_MAX_AWARD_WINNERS", 10),
            rank_max_award_nominees=_int_env("RANK_MAX_AWARD_NOMINEES", 10),
            rank_max_highly_available=_int_env("RANK_MAX_HIGHLY_AVAILABLE", 15),
            rank_max_recent=_int_env("RANK_MAX_RECENT", 12),
            rank_max_upcoming=_int_env("RANK_MAX_UPCOMING", 12),
            rank_max_all=_int_env("RANK_MAX_ALL", 20),
        )


config = Config.from_env()
