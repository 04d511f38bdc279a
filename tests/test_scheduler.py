"""
Tests for the bounded scheduler.
"""

import threading
import time
import unittest

from sitesweep.core.frontier import BlockedEntry
from sitesweep.core.scheduler import Scheduler
from sitesweep.core.state import CrawlSession

from fakes import FakeHttp, make_config, make_response


class CountingSemaphore:
    """BoundedSemaphore wrapper recording how many holders overlap."""

    def __init__(self, value):
        self._sem = threading.BoundedSemaphore(value)
        self._lock = threading.Lock()
        self.active = 0
        self.peak = 0
        self.acquired = 0
        self.released = 0

    def acquire(self):
        self._sem.acquire()
        with self._lock:
            self.acquired += 1
            self.active += 1
            self.peak = max(self.peak, self.active)
        return True

    def release(self):
        with self._lock:
            self.released += 1
            self.active -= 1
        self._sem.release()


class SlowHttp(FakeHttp):
    """Every URL answers 200 after a short pause; tracks overlapping calls."""

    def __init__(self):
        super().__init__()
        self.in_flight = 0
        self.peak = 0
        self._count_lock = threading.Lock()

    def request(self, method, url, **kwargs):
        with self._count_lock:
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
        try:
            time.sleep(0.02)
            return make_response(url, body="<html>ok</html>")
        finally:
            with self._count_lock:
                self.in_flight -= 1


class TestScheduler(unittest.TestCase):
    def _scheduler(self, http, **config):
        session = CrawlSession(make_config(**config), http=http)
        pages = []
        lock = threading.Lock()

        def on_page(page):
            with lock:
                pages.append(page.url)

        scheduler = Scheduler(session, on_page=on_page)
        self.addCleanup(scheduler.shutdown)
        return scheduler, session, pages

    def test_enqueue_admits_once(self):
        scheduler, session, pages = self._scheduler(SlowHttp())
        self.assertTrue(scheduler.enqueue("https://example.test/a"))
        self.assertFalse(scheduler.enqueue("https://example.test/a#again"))
        scheduler.wait()
        self.assertEqual(pages, ["https://example.test/a"])
        self.assertEqual(session.stats["pages_queued"], 1)

    def test_concurrency_bound(self):
        http = SlowHttp()
        scheduler, session, pages = self._scheduler(http, max_concurrency=3)
        slots = CountingSemaphore(3)
        session.slots = slots
        for i in range(30):
            scheduler.enqueue(f"https://example.test/p{i}")
        scheduler.wait()

        self.assertEqual(len(pages), 30)
        self.assertLessEqual(slots.peak, 3)
        self.assertLessEqual(http.peak, 3)
        self.assertEqual(slots.acquired, slots.released)
        self.assertEqual(slots.active, 0)

    def test_slot_released_when_fetch_raises(self):
        scheduler, session, _ = self._scheduler(SlowHttp(), max_concurrency=1)
        slots = CountingSemaphore(1)
        session.slots = slots

        def explode(url):
            raise RuntimeError("boom")

        scheduler.retry.fetch_with_retry = explode
        scheduler.enqueue("https://example.test/a")
        scheduler.enqueue("https://example.test/b")
        scheduler.wait()
        self.assertEqual(slots.acquired, 2)
        self.assertEqual(slots.released, 2)
        self.assertEqual(session.stats["errors"], 2)

    def test_failed_task_logged_by_url(self):
        scheduler, session, _ = self._scheduler(SlowHttp())
        entry = BlockedEntry("https://example.test/b", attempt_count=1)

        def explode(blocked_entry):
            raise RuntimeError("boom")

        with self.assertLogs("sitesweep", "ERROR") as logs:
            scheduler.submit(explode, entry)
            scheduler.wait()
        self.assertEqual(logs.records[0].getMessage(),
                         "[ERR] worker task failed for https://example.test/b")
        self.assertEqual(session.stats["errors"], 1)

    def test_wait_covers_nested_tasks(self):
        http = SlowHttp()
        session = CrawlSession(make_config(), http=http)
        seen = []
        lock = threading.Lock()
        holder = {}

        def on_page(page):
            with lock:
                seen.append(page.url)
            depth = page.url.count("/n")
            if depth < 3:
                holder["s"].enqueue(page.url.rstrip("/") + "/n")

        scheduler = Scheduler(session, on_page=on_page)
        holder["s"] = scheduler
        self.addCleanup(scheduler.shutdown)
        scheduler.enqueue("https://example.test/root")
        scheduler.wait()
        self.assertEqual(len(seen), 4)
        self.assertEqual(scheduler.pending, 0)

    def test_enqueue_refused_after_cancel(self):
        scheduler, session, pages = self._scheduler(SlowHttp())
        session.cancel()
        self.assertFalse(scheduler.enqueue("https://example.test/a"))
        scheduler.wait()
        self.assertEqual(pages, [])
        self.assertNotIn("https://example.test/a", session.frontier)


if __name__ == "__main__":
    unittest.main()
