"""
Public API for the best-stories pipeline.
"""
from __future__ import annotations

from typing import Optional

from beststories.cache import StoryCache
from beststories.errors import (
    BestStoriesError,
    DecodeWarning,
    RunCancelled,
    TransportError,
    ValidationError,
)
from beststories.fetcher import StoryFetcher
from beststories.http_client import HttpClient
from beststories.models import RankedResult, ResolutionFailure, Story
from beststories.pipeline import BestStoriesPipeline
from beststories.settings import BestStoriesSettings, load_settings

__all__ = [
    "BestStoriesError",
    "BestStoriesPipeline",
    "BestStoriesSettings",
    "DecodeWarning",
    "RankedResult",
    "ResolutionFailure",
    "RunCancelled",
    "Story",
    "StoryCache",
    "TransportError",
    "ValidationError",
    "build_pipeline",
    "load_settings",
]


def build_pipeline(settings: Optional[BestStoriesSettings] = None, cache: Optional[StoryCache] = None) -> BestStoriesPipeline:
    """
    Wire one shared HTTP session, a cache and a fetcher into a pipeline.

    Pass ``cache`` to share it between pipelines; close the pipeline on shutdown.
    """
    settings = settings or load_settings()
    http = HttpClient(
        timeout=settings.http_timeout,
        max_retries=settings.http_retries,
        pool_size=settings.max_workers,
        user_agent=settings.user_agent,
    )
    fetcher = StoryFetcher(
        http=http,
        cache=cache if cache is not None else StoryCache(ttl_seconds=settings.cache_ttl_seconds),
        base_url=settings.api_base_url,
    )
    return BestStoriesPipeline(fetcher, max_workers=settings.max_workers)
