"""
Retry loop around :class:`~sitesweep.core.fetcher.Fetcher`.

Backoff is linear (``retry_delay * attempt``).  Blocked responses are never
retried here; they go to the blocked queue for the recovery passes.
"""

import time

from sitesweep.core.fetcher import Blocked, Fetcher, RetryableError, Success
from sitesweep.core.state import CrawlSession
from sitesweep.utils.log import log


class RetryController:
    def __init__(self, session: CrawlSession, fetcher: Fetcher | None = None) -> None:
        self.session = session
        self.fetcher = fetcher or Fetcher(session)

    def fetch_with_retry(self, url: str) -> Success | None:
        """Fetch *url* with up to ``max_retries`` extra attempts.

        Returns the page on success.  Every other result is recorded here
        (blocked queue or error counters) and ``None`` is returned.
        """
        cfg = self.session.config
        stats = self.session.stats
        attempts = cfg.max_retries + 1
        last: RetryableError | None = None

        for attempt in range(attempts):
            if attempt:
                if self.session.cancelled:
                    log.debug("[CANCEL] giving up on %s", url)
                    break
                time.sleep(cfg.retry_delay * attempt)
                stats.incr("retries")
                log.info("[RETRY] %d/%d %s", attempt, cfg.max_retries, url)

            outcome = self.fetcher.fetch(url, attempt)
            if isinstance(outcome, Success):
                self.session.mark_success()
                return outcome
            if isinstance(outcome, Blocked):
                self.record_blocked(url, outcome.cause)
                return None

            last = outcome
            if outcome.permanent:
                break

        if last is not None:
            self.record_error(url, last)
        return None

    def record_blocked(self, url: str, cause: str) -> None:
        if self.session.blocked.add(url, cause):
            self.session.stats.incr("blocked")
            log.warning("[BLOCKED] %s (%s)", url, cause)

    def record_error(self, url: str, error: RetryableError) -> None:
        stats = self.session.stats
        stats.incr("errors")
        stats.incr(f"errors_{error.category}")
        if error.category == "dns":
            log.warning("[DNS] %s: host does not resolve", url)
        elif error.category == "http":
            log.warning("[HTTP] %s for %s", error.cause, url)
        else:
            log.warning("[ERR] %s: %s", url, error.cause)
