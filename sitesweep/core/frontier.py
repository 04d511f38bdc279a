"""
Thread-safe URL frontier and blocked-page queue.

The frontier is the set of URLs admitted for crawling in the current run;
admission reserves the URL, fetching happens later.  The blocked queue holds
URLs whose fetch was classified as bot-protection and waits for the recovery
passes.  The two sets only interact through the recovery orchestrator.
"""

import threading
from dataclasses import dataclass

from sitesweep.utils.url import normalise_url


class Frontier:
    """Exactly-once admission of normalised URLs."""

    def __init__(self, ignore_query: bool = False) -> None:
        self.ignore_query = ignore_query
        self._lock = threading.Lock()
        self._seen: set[str] = set()

    def key(self, raw: str) -> str | None:
        """Normalised frontier key for *raw*, or ``None`` if unparsable."""
        return normalise_url(raw, ignore_query=self.ignore_query)

    def try_admit(self, raw: str) -> bool:
        """Admit *raw* if no equivalent URL was admitted before.

        Returns True only for the first admission.  Malformed URLs are
        dropped silently.
        """
        key = self.key(raw)
        if key is None:
            return False
        with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            return True

    def evict(self, raw: str) -> bool:
        """Forget *raw* so a later :meth:`try_admit` succeeds again."""
        key = self.key(raw)
        if key is None:
            return False
        with self._lock:
            if key in self._seen:
                self._seen.remove(key)
                return True
            return False

    def __contains__(self, raw: str) -> bool:
        key = self.key(raw)
        with self._lock:
            return key in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)


@dataclass
class BlockedEntry:
    url: str
    attempt_count: int = 0
    last_error: str = ""


class BlockedQueue:
    """URLs waiting for a blocked-page recovery pass, keyed by URL.

    Fetch workers only :meth:`add`; entries already present are never
    touched by them.  The recovery orchestrator owns existing entries and
    moves them with :meth:`take` / :meth:`put_back`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, BlockedEntry] = {}

    def add(self, url: str, cause: str = "") -> bool:
        """Insert a fresh entry unless *url* is already queued."""
        with self._lock:
            if url in self._entries:
                return False
            self._entries[url] = BlockedEntry(url=url, last_error=cause)
            return True

    def take(self, url: str) -> BlockedEntry | None:
        with self._lock:
            return self._entries.pop(url, None)

    def put_back(self, entry: BlockedEntry) -> None:
        with self._lock:
            self._entries[entry.url] = entry

    def snapshot(self) -> list[BlockedEntry]:
        """Copy of the current entries (entries added meanwhile may be missed)."""
        with self._lock:
            return [
                BlockedEntry(e.url, e.attempt_count, e.last_error)
                for e in self._entries.values()
            ]

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
