import unittest
from unittest.mock import patch

from beststories.cache import StoryCache
from beststories.errors import RunCancelled, TransportError
from beststories.fetcher import StoryFetcher
from beststories.pipeline import BestStoriesPipeline, dedupe_keep_order
from beststories.tests.fakes import BASE_URL, FakeHttp, best_url, item_json, item_url


def _pipeline(responses, max_workers: int = 4, delay: float = 0.0):
    http = FakeHttp(responses, delay=delay)
    fetcher = StoryFetcher(http, StoryCache(ttl_seconds=300), base_url=BASE_URL)
    return BestStoriesPipeline(fetcher, max_workers=max_workers), http


class PipelineTests(unittest.TestCase):
    def test_ranks_top_n_by_score(self):
        pipeline, _ = _pipeline(
            {
                best_url(): "[1,2,3]",
                item_url(1): item_json(title="a", score=50),
                item_url(2): item_json(title="b", score=90),
                item_url(3): item_json(title="c", score=10),
            }
        )
        result = pipeline.run(2)

        self.assertEqual([(s.id, s.score) for s in result.stories], [(2, 90), (1, 50)])
        self.assertEqual(result.requested, 2)
        self.assertEqual(result.candidates, 3)
        self.assertEqual(result.failures, [])

    def test_failed_item_is_reported_not_fatal(self):
        pipeline, _ = _pipeline(
            {
                best_url(): "[5]",
                item_url(5): TransportError("connection reset", url=item_url(5)),
            }
        )
        with self.assertLogs("beststories.pipeline", level="WARNING"):
            result = pipeline.run(1)

        self.assertEqual(result.stories, [])
        self.assertEqual(len(result.failures), 1)
        self.assertEqual(result.failures[0].story_id, 5)
        self.assertIn("connection reset", result.failures[0].error)

    def test_requesting_more_than_available_returns_all(self):
        pipeline, _ = _pipeline(
            {
                best_url(): "[1,2,3]",
                item_url(1): item_json(score=1),
                item_url(2): item_json(score=2),
                item_url(3): item_json(score=3),
            }
        )
        result = pipeline.run(100)
        self.assertEqual([s.id for s in result.stories], [3, 2, 1])

    def test_id_list_failure_aborts_run(self):
        pipeline, http = _pipeline({best_url(): TransportError("HTTP 503", url=best_url(), status_code=503)})
        with self.assertRaises(TransportError):
            pipeline.run(3)
        self.assertEqual(sum(http.calls.values()), 1)

    def test_ranking_ignores_completion_order(self):
        responses = {best_url(): "[" + ",".join(str(i) for i in range(1, 21)) + "]"}
        for i in range(1, 21):
            responses[item_url(i)] = item_json(score=100 if i % 2 else 50)
        pipeline, _ = _pipeline(responses, max_workers=8, delay=0.01)

        result = pipeline.run(20)
        self.assertEqual([s.id for s in result.stories], list(range(1, 21, 2)) + list(range(2, 21, 2)))

    def test_duplicate_ids_are_resolved_once(self):
        pipeline, http = _pipeline(
            {
                best_url(): "[7,8,7]",
                item_url(7): item_json(score=3),
                item_url(8): item_json(score=4),
            }
        )
        result = pipeline.run(10)

        self.assertEqual([s.id for s in result.stories], [8, 7])
        self.assertEqual(http.calls[item_url(7)], 1)

    def test_second_run_within_ttl_uses_cache(self):
        pipeline, http = _pipeline(
            {
                best_url(): "[1,2]",
                item_url(1): item_json(score=1),
                item_url(2): item_json(score=2),
            }
        )
        pipeline.run(2)
        pipeline.run(2)

        self.assertEqual(http.calls[best_url()], 2)
        self.assertEqual(http.calls[item_url(1)], 1)
        self.assertEqual(http.calls[item_url(2)], 1)

    def test_decode_warnings_are_collected(self):
        pipeline, _ = _pipeline(
            {
                best_url(): "[1,x]",
                item_url(1): item_json(score="lots"),
            }
        )
        with self.assertLogs("beststories.decoder", level="WARNING"):
            result = pipeline.run(1)

        self.assertEqual(len(result.decode_warnings), 2)
        self.assertEqual(result.stories[0].score, 0)

    def test_cancellation_during_resolution_raises(self):
        pipeline, http = _pipeline(
            {
                best_url(): "[1,2]",
                item_url(1): item_json(score=1),
                item_url(2): item_json(score=2),
            }
        )
        original = http.get_text

        def cancel_after_first_item(url):
            text = original(url)
            if url == item_url(1):
                pipeline.cancel()
            return text

        http.get_text = cancel_after_first_item
        with patch.object(pipeline, "max_workers", 1):
            with self.assertRaises(RunCancelled):
                pipeline.run(2)

        # story 1 completed before the cancel and stays valid in the cache
        self.assertIsNotNone(pipeline.fetcher.cache.get(1))
        self.assertEqual(http.calls[item_url(2)], 0)

    def test_keyboard_interrupt_cancels_remaining_items(self):
        pipeline, http = _pipeline(
            {
                best_url(): "[1,2,3]",
                item_url(1): KeyboardInterrupt(),
                item_url(2): item_json(score=2),
                item_url(3): item_json(score=3),
            },
            max_workers=1,
        )

        with self.assertRaises(KeyboardInterrupt):
            pipeline.run(3)

        self.assertTrue(pipeline.cancel_event.is_set())
        self.assertEqual(http.calls[item_url(1)], 1)
        self.assertEqual(http.calls[item_url(2)], 0)
        self.assertEqual(http.calls[item_url(3)], 0)
        self.assertIsNone(pipeline.fetcher.cache.get(1))

    def test_close_releases_http_client(self):
        pipeline, http = _pipeline({})
        with pipeline:
            pass
        self.assertTrue(http.closed)


class DedupeTests(unittest.TestCase):
    def test_keeps_first_occurrence(self):
        self.assertEqual(dedupe_keep_order([3, 1, 3, 2, 1]), [3, 1, 2])


if __name__ == "__main__":
    unittest.main()
