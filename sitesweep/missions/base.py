"""
Mission base class.

The engine calls :meth:`MissionHandler.handle` for every successfully
fetched page; the base class picks ``handle_html`` / ``handle_pdf`` /
``handle_docx`` from the content type so missions only implement the
formats they care about.
"""

import datetime
import threading
from concurrent.futures import Future
from typing import Callable, TypeVar

from sitesweep.config import CrawlConfig, Mission
from sitesweep.core.fetcher import Success
from sitesweep.core.state import CrawlSession
from sitesweep.core.storage import CsvResultSink

T = TypeVar("T")


def timestamp() -> str:
    return datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class MissionHandler:
    mission: Mission
    columns: tuple[str, ...] = ()

    def __init__(self, config: CrawlConfig, sink: CsvResultSink | None = None) -> None:
        self.config = config
        if sink is None and self.columns:
            sink = CsvResultSink(self.report_path(), self.columns)
        self.sink = sink

    def report_path(self):
        return self.config.output_dir / f"{self.mission.value}_results.csv"

    def accepts_link(self, url: str) -> bool:
        """Return False to keep *url* out of the crawl."""
        return True

    def handle(self, session: CrawlSession, page: Success) -> None:
        if page.is_pdf:
            self.handle_pdf(session, page)
        elif page.is_docx:
            self.handle_docx(session, page)
        elif page.is_html:
            self.handle_html(session, page)

    def handle_html(self, session: CrawlSession, page: Success) -> None:
        pass

    def handle_pdf(self, session: CrawlSession, page: Success) -> None:
        pass

    def handle_docx(self, session: CrawlSession, page: Success) -> None:
        pass

    def finish(self, session: CrawlSession) -> None:
        """Called once after the crawl, including after cancellation."""
        if self.sink is not None:
            self.sink.close()

    def record(self, row) -> None:
        if self.sink is not None:
            self.sink.write(row)


class CheckCache:
    """Runs each supplementary check once per run, even across threads.

    Workers that ask for a key while its check is in flight wait for the
    first worker's result instead of repeating the request.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: dict[str, Future] = {}

    def get(self, key: str, check: Callable[[], T]) -> tuple[T, bool]:
        """Return ``(result, fresh)``; *fresh* is True for the worker that ran it."""
        with self._lock:
            fut = self._results.get(key)
            owner = fut is None
            if owner:
                fut = Future()
                self._results[key] = fut
        if owner:
            try:
                fut.set_result(check())
            except Exception as exc:
                fut.set_exception(exc)
                raise
        return fut.result(), owner

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
