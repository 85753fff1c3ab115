"""
Centralised settings for the best-stories pipeline (env-first, code-light).
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://hacker-news.firebaseio.com/v0/"
DEFAULT_USER_AGENT = "beststories/1.0"


@dataclass
class BestStoriesSettings:
    api_base_url: str = DEFAULT_API_BASE_URL
    cache_ttl_seconds: int = 300
    max_workers: int = 8
    http_timeout: int = 10
    http_retries: int = 2
    user_agent: str = DEFAULT_USER_AGENT


def _int_from_env(key: str, default: int, allow_zero: bool = False) -> int:
    raw = os.getenv(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int value for %s=%s; using default %s", key, raw, default)
        return default
    if value > 0 or (allow_zero and value == 0):
        return value
    logger.warning("Out-of-range value for %s=%s; using default %s", key, raw, default)
    return default


def _base_url_from_env(key: str, default: str) -> str:
    raw = (os.getenv(key) or "").strip()
    if not raw:
        return default
    return raw if raw.endswith("/") else raw + "/"


def load_settings() -> BestStoriesSettings:
    return BestStoriesSettings(
        api_base_url=_base_url_from_env("BESTSTORIES_API_BASE_URL", DEFAULT_API_BASE_URL),
        cache_ttl_seconds=_int_from_env("BESTSTORIES_CACHE_TTL", 300, allow_zero=True),
        max_workers=_int_from_env("BESTSTORIES_MAX_WORKERS", 8),
        http_timeout=_int_from_env("BESTSTORIES_HTTP_TIMEOUT", 10),
        http_retries=_int_from_env("BESTSTORIES_HTTP_RETRIES", 2, allow_zero=True),
        user_agent=os.getenv("BESTSTORIES_USER_AGENT") or DEFAULT_USER_AGENT,
    )
