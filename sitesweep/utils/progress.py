"""
Live statistics line rendered with tqdm while a crawl runs.
"""

import threading

from tqdm import tqdm

POLL_INTERVAL = 2.0


class LiveStats:
    """Background thread that polls a ``RunStats`` into a tqdm bar.

    The bar total follows ``pages_queued`` and its position follows the
    pages that finished one way or another.
    """

    def __init__(self, stats, interval: float = POLL_INTERVAL,
                 disable: bool = False) -> None:
        self.stats = stats
        self.interval = interval
        self.disable = disable
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._bar: tqdm | None = None

    def start(self) -> None:
        self._bar = tqdm(
            desc="Sweeping",
            unit="page",
            dynamic_ncols=True,
            disable=self.disable,
            bar_format="{l_bar}{bar}| {n}/{total} [{elapsed}] {postfix}",
        )
        self._thread = threading.Thread(target=self._loop, name="live-stats", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self._bar is not None:
            self.refresh()
            self._bar.close()
            self._bar = None

    def refresh(self) -> None:
        if self._bar is None:
            return
        snap = self.stats.snapshot()
        done = snap["pages_checked"] + snap["errors"] + snap["blocked"] - snap["recovered"]
        self._bar.total = max(snap["pages_queued"], done)
        self._bar.n = max(done, 0)
        self._bar.set_postfix(
            ok=snap["pages_checked"],
            found=snap["matches"] + snap["broken_links"] + snap["oversized_images"],
            blocked=snap["blocked"],
            err=snap["errors"],
            refresh=False,
        )
        self._bar.refresh()

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.refresh()
