"""
Run statistics.

Every counter only ever increases during a run; readers (live progress,
final summary) take a snapshot instead of reading fields one by one.
"""

import threading

COUNTERS = (
    "pages_queued",
    "pages_checked",
    "matches",
    "errors",
    "errors_timeout",
    "errors_refused",
    "errors_dns",
    "errors_tls",
    "errors_network",
    "errors_http",
    "blocked",
    "retries",
    "blocked_retried",
    "recovered",
    "external_skipped",
    "path_skipped",
    "bytes_downloaded",
    "status_2xx",
    "status_3xx",
    "status_4xx",
    "status_5xx",
    "links_checked",
    "broken_links",
    "images_checked",
    "oversized_images",
    "captures",
    "sitemap_urls",
    "feed_items",
    "feed_items_kept",
)


class RunStats:
    """Named counters updated with atomic adds."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values: dict[str, int] = dict.fromkeys(COUNTERS, 0)

    def incr(self, name: str, amount: int = 1) -> None:
        if name not in self._values:
            raise KeyError(f"unknown counter: {name}")
        with self._lock:
            self._values[name] += amount

    def count_status(self, status: int) -> None:
        """Bump the status-code bucket for *status* (``2xx`` .. ``5xx``)."""
        bucket = f"status_{status // 100}xx"
        if bucket in self._values:
            self.incr(bucket)

    def __getitem__(self, name: str) -> int:
        with self._lock:
            return self._values[name]

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._values)
