"""
Per-run crawl state.

A :class:`CrawlSession` is built once per run and handed to every component
by reference, so two runs never share a frontier, cookies or counters.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

import requests
from requests.cookies import RequestsCookieJar

from sitesweep.config import CrawlConfig
from sitesweep.core.frontier import BlockedQueue, Frontier
from sitesweep.core.stats import RunStats
from sitesweep.session import build_session


class CrawlSession:
    """Everything one crawl run shares between its workers."""

    def __init__(
        self,
        config: CrawlConfig,
        http: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.http = http or build_session(
            verify_ssl=config.verify_ssl, pool_size=config.max_concurrency
        )
        self.frontier = Frontier(ignore_query=config.ignore_query)
        self.blocked = BlockedQueue()
        self.stats = RunStats()
        self.cancel_event = threading.Event()
        # Held by every request that reaches the target, page or check.
        self.slots = threading.BoundedSemaphore(config.max_concurrency)

        # The cookie jar and the success flag change together under one lock.
        self.cookies = RequestsCookieJar()
        self._cookie_lock = threading.Lock()
        self._had_success = False

    # ------------------------------------------------------------------
    # Cookies and the "trusted" flag
    # ------------------------------------------------------------------

    def cookie_snapshot(self) -> RequestsCookieJar:
        """Copy of the shared jar to send with one request."""
        with self._cookie_lock:
            return self.cookies.copy()

    def absorb_cookies(self, response: requests.Response) -> None:
        """Merge cookies set anywhere in *response*'s redirect chain."""
        with self._cookie_lock:
            for r in (*response.history, response):
                self.cookies.update(r.cookies)

    def mark_success(self) -> None:
        with self._cookie_lock:
            self._had_success = True

    @property
    def had_success(self) -> bool:
        with self._cookie_lock:
            return self._had_success

    # ------------------------------------------------------------------
    # Concurrency
    # ------------------------------------------------------------------

    @contextmanager
    def slot(self) -> Iterator[None]:
        """Hold one of the run's ``max_concurrency`` request slots."""
        self.slots.acquire()
        try:
            yield
        finally:
            self.slots.release()

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()
