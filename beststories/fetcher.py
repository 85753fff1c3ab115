"""
Network side of the pipeline: the best-ids list call and per-item resolution.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from beststories.cache import StoryCache
from beststories.decoder import decode_best_ids, decode_story
from beststories.errors import DecodeWarning, RunCancelled
from beststories.http_client import HttpClient
from beststories.models import Story
from beststories.settings import DEFAULT_API_BASE_URL

logger = logging.getLogger(__name__)


class StoryFetcher:
    """
    Resolves story ids through the cache, hitting the API only on a miss.

    The cache lookup, the network call and the cache write for one id all run
    under that id's lock, so concurrent callers never fetch the same id twice.
    """

    def __init__(
        self,
        http: HttpClient,
        cache: StoryCache,
        base_url: str = DEFAULT_API_BASE_URL,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.http = http
        self.cache = cache
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.cancel_event = cancel_event or threading.Event()
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def best_ids_url(self) -> str:
        return f"{self.base_url}beststories.json"

    def item_url(self, story_id: int) -> str:
        return f"{self.base_url}item/{story_id}.json"

    def fetch_best_ids(self, warnings: Optional[List[DecodeWarning]] = None) -> List[int]:
        payload = self.http.get_text(self.best_ids_url())
        ids = decode_best_ids(payload, warnings)
        logger.info("Fetched %d best story ids", len(ids))
        return ids

    def resolve(self, story_id: int, warnings: Optional[List[DecodeWarning]] = None) -> Story:
        with self._lock_for(story_id):
            cached = self.cache.get(story_id)
            if cached is not None:
                logger.debug("Cache hit for story %s", story_id)
                return cached

            if self.cancel_event.is_set():
                raise RunCancelled(f"run cancelled before fetching story {story_id}")

            try:
                payload = self.http.get_text(self.item_url(story_id))
            except KeyboardInterrupt:
                # stop queued resolves on other workers before the caller reacts
                self.cancel_event.set()
                raise
            story = decode_story(story_id, payload, warnings)
            self.cache.put(story_id, story, self.cache.clock())
            logger.debug("Fetched story %s (score=%s)", story_id, story.score)
            return story

    def _lock_for(self, story_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(story_id)
            if lock is None:
                lock = self._locks[story_id] = threading.Lock()
            return lock
