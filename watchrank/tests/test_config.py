"""Tests for environment configuration and log formatting."""

import logging

import pytest

from watchrank.config import Config, ConfigurationError
from watchrank.core.contracts import Bucket
from watchrank.core.ranker import RankPolicy
from watchrank.logging import StructuredFormatter


def test_defaults(monkeypatch):
    for name in ("PORT", "TMDB_REGION", "RANK_RECENT_DAYS", "RANK_MAX_ALL", "CACHE_TTL_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    cfg = Config.from_env()

    assert cfg.port == 8000
    assert cfg.tmdb_region == "US"
    assert cfg.cache_ttl_seconds == 300
    assert cfg.rank_recent_days == 365
    assert cfg.rank_min_platforms == 3
    assert cfg.rank_max_all == 20


def test_policy_overrides_from_env(monkeypatch):
    monkeypatch.setenv("RANK_RECENT_DAYS", "90")
    monkeypatch.setenv("RANK_MIN_PLATFORMS", "2")
    monkeypatch.setenv("RANK_MAX_RECENT", "5")
    monkeypatch.setenv("RANK_MAX_ALL", "not-a-number")

    policy = RankPolicy.from_config(Config.from_env())

    assert policy.recent_days == 90
    assert policy.min_platforms == 2
    assert policy.limit_for(Bucket.RECENT) == 5
    assert policy.limit_for(Bucket.ALL) == 20


def test_invalid_port_raises(monkeypatch):
    monkeypatch.setenv("PORT", "http")

    with pytest.raises(ConfigurationError):
        Config.from_env()


def test_image_template_requires_path_token(monkeypatch):
    monkeypatch.setenv("TMDB_IMAGE_TEMPLATE", "https://cdn.example.com/{size}")

    with pytest.raises(ConfigurationError):
        Config.from_env()


def test_structured_formatter_line_shape():
    record = logging.LogRecord(
        "watchrank.core.recommender", logging.WARNING, __file__, 1,
        "Provider unavailable for %s", ("trending",), None,
    )
    record.created = 0.0
    record.consumer = "user-1"

    line = StructuredFormatter().format(record)

    assert line == (
        "1970-01-01T00:00:00.000Z | WARNING  | watchrank.core.recommender | "
        "Provider unavailable for trending"
    )
