"""Application entrypoint for the FastAPI recommendation service."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Literal

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from watchrank.config import config
from watchrank.core import (
    Bucket,
    DashboardResult,
    DisplayItem,
    RankOptions,
    RankPolicy,
    RecommendationService,
)
from watchrank.logging import get_logger, setup_logging
from watchrank.providers import CatalogRequest, ResponseCache, TMDBClient

setup_logging(config.log_level)
logger = get_logger(__name__)


class PlatformOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int | None = None
    name: str
    logo_url: str | None = Field(default=None, alias="logoUrl")


class DisplayItemOut(BaseModel):
    """Card payload for the UI."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | str
    media_type: str = Field(alias="mediaType")
    title: str
    poster_url: str | None = Field(default=None, alias="posterUrl")
    backdrop_url: str | None = Field(default=None, alias="backdropUrl")
    release_date: str | None = Field(default=None, alias="releaseDate")
    year: int | None = None
    rating: float | None = None
    genres: list[str] = []
    platforms: list[PlatformOut] = []
    primary_platform: str | None = Field(default=None, alias="primaryPlatform")
    award_badge: str | None = Field(default=None, alias="awardBadge")
    overview: str | None = None

    @classmethod
    def from_item(cls, item: DisplayItem) -> "DisplayItemOut":
        return cls(
            id=item.id,
            media_type=item.media_type,
            title=item.title,
            poster_url=item.poster_url,
            backdrop_url=item.backdrop_url,
            release_date=item.release_date,
            year=item.year,
            rating=item.rating,
            genres=item.genres,
            platforms=[PlatformOut(**platform) for platform in item.platforms],
            primary_platform=item.primary_platform,
            award_badge=item.award_badge,
            overview=item.overview,
        )


class RecommendationsOut(BaseModel):
    """Named buckets for the dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    award_winners: list[DisplayItemOut] = Field(alias="awardWinners")
    award_nominees: list[DisplayItemOut] = Field(alias="awardNominees")
    highly_available: list[DisplayItemOut] = Field(alias="highlyAvailable")
    recent: list[DisplayItemOut]
    upcoming: list[DisplayItemOut]
    all: list[DisplayItemOut]
    degraded: bool = False

    @classmethod
    def from_result(cls, result: DashboardResult) -> "RecommendationsOut":
        return cls(
            **{
                bucket.value: [DisplayItemOut.from_item(i) for i in result.get(bucket)]
                for bucket in Bucket
            },
            degraded=result.degraded,
        )


def build_service() -> RecommendationService:
    """Create the service from configuration."""
    if not config.tmdb_bearer_token:
        logger.warning("TMDB_BEARER_TOKEN not configured; provider calls will fail")
    client = TMDBClient(
        bearer_token=config.tmdb_bearer_token,
        language=config.tmdb_language,
        region=config.tmdb_region,
        timeout=config.tmdb_timeout_seconds,
    )
    return RecommendationService(
        client=client,
        cache=ResponseCache(),
        policy=RankPolicy.from_config(config),
        region=config.tmdb_region,
        cache_ttl_seconds=config.cache_ttl_seconds,
        image_template=config.tmdb_image_template,
        provider_concurrency=config.tmdb_provider_concurrency,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting application")
    app.state.service = build_service()

    yield

    logger.info("Shutting down application")
    await app.state.service.client.close()
    logger.info("TMDB client closed")


app = FastAPI(
    title="watchrank",
    version="0.1.0",
    lifespan=lifespan,
)


def get_service(request: Request) -> RecommendationService:
    """Service dependency; built lazily when lifespan did not run."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        service = build_service()
        request.app.state.service = service
    return service


def _parse_exclude(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"ok": True}


@app.get(
    "/recommendations/{media_type}",
    response_model=RecommendationsOut,
    response_model_by_alias=True,
)
async def get_recommendations(
    media_type: Literal["movie", "tv"],
    source: Literal["trending", "popular", "top_rated"] = "trending",
    time_window: Literal["day", "week"] = "week",
    page: int = Query(1, ge=1, le=500),
    pages: int = Query(1, ge=1, le=5),
    include_non_streaming: bool = True,
    min_rating: float | None = Query(None, ge=0, le=10),
    exclude: str | None = Query(None, description="Comma-separated ids already watched"),
    client_id: str | None = Query(None, description="Requester key for last-request-wins"),
    service: RecommendationService = Depends(get_service),
) -> RecommendationsOut:
    """Ranked, display-ready buckets for the dashboard."""
    request = CatalogRequest(
        media_type=media_type,
        source=source,
        time_window=time_window,
        page=page,
        pages=pages,
    )
    options = RankOptions(
        include_non_streaming=include_non_streaming,
        exclude_ids=_parse_exclude(exclude),
        min_rating=min_rating,
    )

    result = await service.recommend(request, options, consumer=client_id)
    if result is None:
        raise HTTPException(status_code=409, detail="Superseded by a newer request")

    return RecommendationsOut.from_result(result)


def main() -> None:
    """Run the API server."""
    logger.info(f"Starting FastAPI server on {config.host}:{config.port}")
    uvicorn.run(
        "watchrank.main:app",
        host=config.host,
        port=config.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
