"""
Tests for run statistics, the live progress bar and per-run session state.
"""

import threading
import unittest

from sitesweep.core.state import CrawlSession
from sitesweep.core.stats import COUNTERS, RunStats
from sitesweep.utils.progress import LiveStats

from fakes import FakeHttp, make_config, make_response


class TestRunStats(unittest.TestCase):
    def test_all_counters_start_at_zero(self):
        snap = RunStats().snapshot()
        self.assertEqual(set(snap), set(COUNTERS))
        self.assertFalse(any(snap.values()))

    def test_unknown_counter(self):
        with self.assertRaises(KeyError):
            RunStats().incr("pages_teleported")

    def test_status_buckets(self):
        stats = RunStats()
        for status in (200, 204, 301, 404, 503, 999):
            stats.count_status(status)
        self.assertEqual(stats["status_2xx"], 2)
        self.assertEqual(stats["status_3xx"], 1)
        self.assertEqual(stats["status_4xx"], 1)
        self.assertEqual(stats["status_5xx"], 1)

    def test_concurrent_increments(self):
        stats = RunStats()

        def worker():
            for _ in range(1000):
                stats.incr("pages_checked")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(stats["pages_checked"], 8000)

    def test_snapshot_is_detached(self):
        stats = RunStats()
        snap = stats.snapshot()
        stats.incr("errors")
        self.assertEqual(snap["errors"], 0)


class TestLiveStats(unittest.TestCase):
    def test_disabled_bar_start_stop(self):
        stats = RunStats()
        live = LiveStats(stats, interval=0.01, disable=True)
        live.start()
        stats.incr("pages_queued", 3)
        stats.incr("pages_checked", 2)
        live.refresh()
        live.stop()
        live.stop()


class TestCrawlSession(unittest.TestCase):
    def test_runs_share_nothing(self):
        a = CrawlSession(make_config(), http=FakeHttp())
        b = CrawlSession(make_config(), http=FakeHttp())
        a.frontier.try_admit("https://example.test/")
        a.stats.incr("errors")
        a.cancel()
        self.assertNotIn("https://example.test/", b.frontier)
        self.assertEqual(b.stats["errors"], 0)
        self.assertFalse(b.cancelled)

    def test_absorb_cookies_from_redirect_chain(self):
        session = CrawlSession(make_config(), http=FakeHttp())
        hop = make_response("https://example.test/login", 302, cookies={"step": "1"})
        final = make_response("https://example.test/home", cookies={"sid": "x"}, history=(hop,))
        session.absorb_cookies(final)
        snap = session.cookie_snapshot()
        self.assertEqual(snap.get("step"), "1")
        self.assertEqual(snap.get("sid"), "x")

    def test_success_flag(self):
        session = CrawlSession(make_config(), http=FakeHttp())
        self.assertFalse(session.had_success)
        session.mark_success()
        self.assertTrue(session.had_success)


if __name__ == "__main__":
    unittest.main()
