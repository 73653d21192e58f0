"""TMDB API client.

The client performs exactly one HTTP call per request. Retry policy, if any,
belongs to whoever owns the transport; failures surface immediately as
`UpstreamUnavailable` or `UpstreamRateLimited`.
"""

from typing import Any, Literal

import httpx

from watchrank.logging import get_logger

logger = get_logger(__name__)

TMDB_BASE_URL = "https://api.themoviedb.org/3"
DEFAULT_TIMEOUT = 30.0

MediaTypeName = Literal["movie", "tv"]
TimeWindow = Literal["day", "week"]


# Combined movie + TV genre map (TMDB genre IDs -> English names)
TMDB_GENRE_MAP: dict[int, str] = {
    28: "Action",
    12: "Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Science Fiction",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
    # TV-specific
    10759: "Action & Adventure",
    10762: "Kids",
    10763: "News",
    10764: "Reality",
    10765: "Sci-Fi & Fantasy",
    10766: "Soap",
    10767: "Talk",
    10768: "War & Politics",
}


def genre_ids_to_names(genre_ids: list[Any]) -> list[str]:
    """Convert TMDB genre IDs to human-readable names, skipping unknown ids."""
    names = []
    for gid in genre_ids:
        try:
            name = TMDB_GENRE_MAP.get(int(gid))
        except (TypeError, ValueError):
            continue
        if name:
            names.append(name)
    return names


class UpstreamError(Exception):
    """Base exception for metadata provider failures."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamUnavailable(UpstreamError):
    """Provider unreachable or answered with a non-success status."""


class UpstreamRateLimited(UpstreamError):
    """Provider throttled the request (HTTP 429)."""

    def __init__(self, retry_after: int | None = None):
        super().__init__("Rate limit exceeded", status_code=429)
        self.retry_after = retry_after


def _parse_retry_after(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class TMDBClient:
    """Async TMDB API client."""

    def __init__(
        self,
        bearer_token: str | None,
        language: str = "en-US",
        region: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize TMDB client.

        Args:
            bearer_token: TMDB API bearer token (v4 auth)
            language: Language for results (e.g., "en-US")
            region: Region for results and watch providers (e.g., "US")
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.bearer_token = bearer_token
        self.language = language
        self.region = region
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.bearer_token:
                headers["Authorization"] = f"Bearer {self.bearer_token}"
            self._client = httpx.AsyncClient(
                base_url=TMDB_BASE_URL,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make a single API request.

        Args:
            method: HTTP method
            path: API path (e.g., "/trending/movie/day")
            params: Query parameters

        Returns:
            Parsed JSON response

        Raises:
            UpstreamRateLimited: On HTTP 429
            UpstreamUnavailable: On network error, timeout or any other non-200
        """
        client = await self._get_client()

        if params is None:
            params = {}
        params.setdefault("language", self.language)

        try:
            response = await client.request(method, path, params=params)
        except httpx.TimeoutException as e:
            logger.warning(f"TMDB timeout on {path}: {e}")
            raise UpstreamUnavailable(f"Timeout: {e}") from e
        except httpx.RequestError as e:
            logger.warning(f"TMDB request error on {path}: {e}")
            raise UpstreamUnavailable(f"Request error: {e}") from e

        if response.status_code == 200:
            try:
                return response.json()
            except ValueError as e:
                raise UpstreamUnavailable(f"Invalid JSON from {path}", status_code=200) from e

        if response.status_code == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(f"TMDB rate limited on {path}, retry_after={retry_after}")
            raise UpstreamRateLimited(retry_after=retry_after)

        message = f"HTTP {response.status_code}"
        if response.status_code < 500 and response.content:
            try:
                message = response.json().get("status_message", message)
            except ValueError:
                pass
        logger.warning(f"TMDB error {response.status_code} on {path}: {message}")
        raise UpstreamUnavailable(message, status_code=response.status_code)

    async def fetch_trending(
        self,
        media_type: MediaTypeName,
        time_window: TimeWindow = "day",
        page: int = 1,
    ) -> dict[str, Any]:
        """Fetch trending movies or TV shows.

        Args:
            media_type: "movie" or "tv"
            time_window: "day" or "week"
            page: Page number (1-based)

        Returns:
            TMDB response with results array
        """
        path = f"/trending/{media_type}/{time_window}"
        return await self._request("GET", path, params={"page": page})

    async def fetch_popular(self, media_type: MediaTypeName, page: int = 1) -> dict[str, Any]:
        """Fetch popular movies or TV shows."""
        params: dict[str, Any] = {"page": page}
        if self.region:
            params["region"] = self.region
        return await self._request("GET", f"/{media_type}/popular", params=params)

    async def fetch_top_rated(self, media_type: MediaTypeName, page: int = 1) -> dict[str, Any]:
        """Fetch top rated movies or TV shows."""
        return await self._request("GET", f"/{media_type}/top_rated", params={"page": page})

    async def discover(
        self,
        media_type: MediaTypeName,
        page: int = 1,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Discover movies or TV shows with filters.

        Args:
            media_type: "movie" or "tv"
            page: Page number (1-based)
            params: Additional filter parameters (e.g., vote_count.gte, with_genres)

        Returns:
            TMDB response with results array
        """
        request_params: dict[str, Any] = {"page": page}
        if params:
            request_params.update(params)
        return await self._request("GET", f"/discover/{media_type}", params=request_params)

    async def get_details(self, media_type: MediaTypeName, tmdb_id: int | str) -> dict[str, Any]:
        """Get movie or TV details with watch providers appended."""
        return await self._request(
            "GET",
            f"/{media_type}/{tmdb_id}",
            params={"append_to_response": "watch/providers"},
        )

    async def get_watch_providers(
        self,
        media_type: MediaTypeName,
        tmdb_id: int | str,
    ) -> dict[str, Any]:
        """Get streaming availability keyed by region.

        Returns:
            Response shaped {"id": ..., "results": {"US": {"flatrate": [...], ...}}}
        """
        return await self._request("GET", f"/{media_type}/{tmdb_id}/watch/providers")
