"""
Bounded task scheduler.

One task per admitted URL runs on a ``ThreadPoolExecutor``.  Network I/O is
gated by the session's ``BoundedSemaphore`` sized to ``max_concurrency``,
which mission checks share with page fetches.  ``wait()`` blocks until
every submitted task (including tasks those tasks submitted) has finished.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from sitesweep.core.fetcher import Success
from sitesweep.core.retry import RetryController
from sitesweep.core.state import CrawlSession
from sitesweep.utils.log import log

PageHandler = Callable[[Success], None]


class Scheduler:
    def __init__(
        self,
        session: CrawlSession,
        retry: RetryController | None = None,
        on_page: PageHandler | None = None,
    ) -> None:
        self.session = session
        self.retry = retry or RetryController(session)
        self.on_page = on_page
        limit = session.config.max_concurrency
        # Extra threads so tasks parked in the politeness delay do not hold
        # back fetches; the session semaphore is the real bound.
        self._executor = ThreadPoolExecutor(
            max_workers=limit * 2, thread_name_prefix="sweep"
        )
        self._pending = 0
        self._idle = threading.Condition()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def enqueue(self, url: str) -> bool:
        """Admit *url* and schedule its crawl task.

        Returns False when the run is cancelled or the URL was already
        admitted.
        """
        if self.session.cancelled:
            return False
        if not self.session.frontier.try_admit(url):
            return False
        self.session.stats.incr("pages_queued")
        self.submit(self._crawl, url)
        return True

    def submit(self, fn: Callable, *args) -> None:
        """Run ``fn(*args)`` on the pool and track it for :meth:`wait`."""
        with self._idle:
            self._pending += 1
        self._executor.submit(self._run_task, fn, *args)

    def slot(self):
        """Hold one concurrency slot for the duration of a fetch."""
        return self.session.slot()

    def process(self, page: Success) -> None:
        if self.on_page is not None:
            self.on_page(page)

    def wait(self) -> None:
        """Block until no task is pending."""
        with self._idle:
            while self._pending:
                self._idle.wait()

    @property
    def pending(self) -> int:
        with self._idle:
            return self._pending

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _crawl(self, url: str) -> None:
        with self.slot():
            page = self.retry.fetch_with_retry(url)
        if page is not None:
            self.process(page)

    def _run_task(self, fn: Callable, *args) -> None:
        try:
            fn(*args)
        except Exception:
            target = getattr(args[0], "url", args[0]) if args else fn
            log.exception("[ERR] worker task failed for %s", target)
            self.session.stats.incr("errors")
        finally:
            with self._idle:
                self._pending -= 1
                if not self._pending:
                    self._idle.notify_all()
