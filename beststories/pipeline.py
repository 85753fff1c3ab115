"""
High-level orchestration: best ids -> concurrent resolve -> rank -> truncate.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Hashable, Iterable, List, Sequence, Tuple, TypeVar

from beststories.cache import utc_now
from beststories.errors import DecodeWarning, RunCancelled, TransportError
from beststories.fetcher import StoryFetcher
from beststories.models import RankedResult, ResolutionFailure, Story
from beststories.ranker import rank_stories

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)


def dedupe_keep_order(items: Iterable[T]) -> List[T]:
    seen = set()
    result: List[T] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


class BestStoriesPipeline:
    def __init__(self, fetcher: StoryFetcher, max_workers: int = 8) -> None:
        self.fetcher = fetcher
        self.max_workers = max(1, max_workers)

    @property
    def cancel_event(self) -> threading.Event:
        return self.fetcher.cancel_event

    def cancel(self) -> None:
        """Stop issuing network calls for the run in progress."""
        logger.info("Cancellation requested")
        self.cancel_event.set()

    def run(self, n: int) -> RankedResult:
        """
        Rank the current best stories and keep the top ``n``.

        A TransportError on the id list propagates and nothing is returned.
        Items that fail to resolve are reported in ``failures`` and left out of
        the ranking. A cancelled run raises RunCancelled rather than returning
        a partial list.
        """
        self.cancel_event.clear()
        start = time.time()
        generated_at = utc_now()
        warnings: List[DecodeWarning] = []

        ids = dedupe_keep_order(self.fetcher.fetch_best_ids(warnings))
        resolved, failures = self._resolve_all(ids, warnings)

        if self.cancel_event.is_set():
            raise RunCancelled(f"run cancelled after resolving {len(resolved)} of {len(ids)} stories")

        # Ordered by list position, never by completion order.
        pairs: List[Tuple[int, Story]] = [(sid, resolved[sid]) for sid in ids if sid in resolved]
        stories = rank_stories(pairs, n)
        latency_ms = (time.time() - start) * 1000

        if failures:
            logger.warning("Skipped %d of %d stories that failed to resolve", len(failures), len(ids))
        logger.info("Ranked %d stories, returning %d (%.0f ms)", len(pairs), len(stories), latency_ms)
        return RankedResult(
            stories=stories,
            generated_at=generated_at,
            requested=n,
            candidates=len(ids),
            failures=failures,
            decode_warnings=warnings,
            latency_ms=latency_ms,
        )

    def _resolve_all(
        self, ids: Sequence[int], warnings: List[DecodeWarning]
    ) -> Tuple[Dict[int, Story], List[ResolutionFailure]]:
        resolved: Dict[int, Story] = {}
        failed: Dict[int, ResolutionFailure] = {}
        if not ids:
            return resolved, []

        workers = min(self.max_workers, len(ids))
        logger.debug("Using %d workers for %d stories", workers, len(ids))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="beststories") as executor:
            future_map = {executor.submit(self.fetcher.resolve, sid, warnings): sid for sid in ids}
            try:
                for future in as_completed(future_map):
                    sid = future_map[future]
                    if future.cancelled():
                        continue
                    try:
                        resolved[sid] = future.result()
                    except TransportError as exc:
                        logger.warning("Story %s failed to resolve: %s", sid, exc)
                        failed[sid] = ResolutionFailure(story_id=sid, error=str(exc))
                    except RunCancelled:
                        logger.debug("Story %s skipped after cancellation", sid)
            except KeyboardInterrupt:
                self.cancel()
                executor.shutdown(wait=False, cancel_futures=True)
                raise

        failures = [failed[sid] for sid in ids if sid in failed]
        return resolved, failures

    def close(self) -> None:
        self.fetcher.http.close()

    def __enter__(self) -> "BestStoriesPipeline":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
