"""Pytest configuration and shared fixtures."""

import os

# Set test environment variables before any imports
os.environ.setdefault("TMDB_BEARER_TOKEN", "test_token")
os.environ.setdefault("TMDB_REGION", "US")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date

import pytest


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture
def today() -> date:
    """Fixed reference date for recency checks."""
    return date(2025, 6, 1)


def _providers_payload(*names: str, region: str = "US") -> dict:
    """Watch-provider sub-resource with the given flatrate platforms."""
    return {
        "id": 1,
        "results": {
            region: {
                "link": "https://www.themoviedb.org/",
                "flatrate": [
                    {"provider_id": idx + 1, "provider_name": name, "logo_path": f"/{idx}.png"}
                    for idx, name in enumerate(names)
                ],
            }
        },
    }


@pytest.fixture
def providers_payload():
    """Factory for watch-provider sub-resources."""
    return _providers_payload
