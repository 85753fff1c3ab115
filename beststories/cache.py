"""
In-memory TTL cache for resolved stories.

Freshness is checked lazily on lookup; there is no background sweep and no
removal API. A stale entry simply stays until the next successful fetch for
the same id replaces it.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from beststories.models import CacheEntry, Story

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StoryCache:
    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock or utc_now
        self._lock = threading.Lock()
        self._entries: Dict[int, CacheEntry] = {}

    def get(self, story_id: int, now: Optional[datetime] = None) -> Optional[Story]:
        now = now or self.clock()
        with self._lock:
            entry = self._entries.get(story_id)
        if entry is None:
            return None
        if not entry.is_fresh(now, self.ttl):
            logger.debug("Cache entry for %s is stale (age %s)", story_id, entry.age(now))
            return None
        return entry.story

    def put(self, story_id: int, story: Story, fetched_at: datetime) -> None:
        if fetched_at.tzinfo is None:
            raise ValueError("fetched_at must be timezone-aware")
        entry = CacheEntry(story=story, fetched_at=fetched_at)
        with self._lock:
            self._entries[story_id] = entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def snapshot(self, now: Optional[datetime] = None) -> Dict[str, object]:
        """Return a lightweight view for debug output without exposing story content."""
        now = now or self.clock()
        with self._lock:
            entries = list(self._entries.values())
        fresh = sum(1 for entry in entries if entry.is_fresh(now, self.ttl))
        return {
            "ttl_seconds": int(self.ttl.total_seconds()),
            "entries": len(entries),
            "fresh_entries": fresh,
            "stale_entries": len(entries) - fresh,
        }
