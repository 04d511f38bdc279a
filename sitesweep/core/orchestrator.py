"""
Three-phase crawl protocol.

Phase 0  probe alternate entry points (optional)
Phase 1  crawl from the seeds until the scheduler drains
Phase 2  re-fetch blocked pages in up to ``blocked_retry_passes`` passes,
         presenting as a different client that already holds the cookies
         earned elsewhere on the site
"""

import time
from dataclasses import dataclass, field

from sitesweep.config import (
    BLOCKED_AGENT_OFFSET,
    COMMON_ENTRY_PATHS,
    PROBE_DELAY,
    PROBE_TIMEOUT,
)
from sitesweep.core.fetcher import Fetcher, Success
from sitesweep.core.frontier import BlockedEntry
from sitesweep.core.scheduler import Scheduler
from sitesweep.core.state import CrawlSession
from sitesweep.utils.log import log

_PRESEED_CAUSE = "main entry presumed blocked"


@dataclass
class RunResult:
    stats: dict[str, int]
    still_blocked: list[BlockedEntry] = field(default_factory=list)
    elapsed: float = 0.0
    cancelled: bool = False


class RecoveryOrchestrator:
    def __init__(
        self,
        session: CrawlSession,
        scheduler: Scheduler,
        fetcher: Fetcher | None = None,
    ) -> None:
        self.session = session
        self.scheduler = scheduler
        self.fetcher = fetcher or scheduler.retry.fetcher

    def run(self) -> RunResult:
        t0 = time.monotonic()
        cfg = self.session.config

        working = self.probe_entry_points()
        if working:
            log.info("[PROBE] %d entry point(s) reachable, seeding from them", len(working))
            self.session.frontier.try_admit(cfg.start_url)
            if self.session.blocked.add(cfg.start_url, _PRESEED_CAUSE):
                self.session.stats.incr("blocked")
            seeds = working
        else:
            seeds = [cfg.start_url]

        log.info("[PASS] Phase 1: crawling from %d seed(s)", len(seeds))
        for url in seeds:
            self.scheduler.enqueue(url)
        self.scheduler.wait()

        self.run_blocked_passes()

        return RunResult(
            stats=self.session.stats.snapshot(),
            still_blocked=self.session.blocked.snapshot(),
            elapsed=time.monotonic() - t0,
            cancelled=self.session.cancelled,
        )

    # ------------------------------------------------------------------
    # Phase 0
    # ------------------------------------------------------------------

    def probe_entry_points(self) -> list[str]:
        """Return the entry points that answered with real content.

        Configured entry points are always probed.  With
        ``probe_entry_points`` enabled and none configured, the start URL is
        tried first and the common paths only when it is blocked.
        """
        cfg = self.session.config
        candidates = list(cfg.entry_points)
        if not candidates and cfg.probe_entry_points:
            if self._probe(cfg.start_url):
                return []
            base = cfg.start_url.split("://", 1)[0] + "://" + cfg.host
            candidates = [base + path for path in COMMON_ENTRY_PATHS]
            time.sleep(PROBE_DELAY)

        working: list[str] = []
        for i, url in enumerate(candidates):
            if self.session.cancelled:
                break
            if i:
                time.sleep(PROBE_DELAY)
            if self._probe(url):
                working.append(url)
        return working

    def _probe(self, url: str) -> bool:
        outcome = self.fetcher.fetch(url, 0, timeout=PROBE_TIMEOUT)
        if isinstance(outcome, Success):
            self.session.mark_success()
            log.info("[PROBE] OK   %s", url)
            return True
        log.info("[PROBE] fail %s (%s)", url, outcome.cause)
        return False

    # ------------------------------------------------------------------
    # Phase 2
    # ------------------------------------------------------------------

    def run_blocked_passes(self) -> None:
        cfg = self.session.config
        passes = cfg.blocked_retry_passes
        blocked = self.session.blocked
        stats = self.session.stats

        for k in range(1, passes + 1):
            if self.session.cancelled:
                log.info("[CANCEL] skipping remaining recovery passes")
                return
            if not len(blocked):
                return
            eligible = [e for e in blocked.snapshot() if e.attempt_count < passes]
            if not eligible:
                return
            if k > 1:
                time.sleep(cfg.pass_delay * (k - 1))

            log.info("[PASS] Recovery pass %d/%d: %d blocked page(s)",
                     k, passes, len(eligible))
            batch = []
            for snap in eligible:
                entry = blocked.take(snap.url)
                if entry is None:
                    continue
                # Re-admitted for the recovery fetch before any task of the
                # pass starts; links to it on recovered pages are duplicates.
                self.session.frontier.evict(entry.url)
                self.session.frontier.try_admit(entry.url)
                entry.attempt_count += 1
                stats.incr("blocked_retried")
                batch.append(entry)
            for entry in batch:
                self.scheduler.submit(self._recover, entry, k)
            self.scheduler.wait()

        if len(blocked):
            log.info("[PASS] %d page(s) still blocked after %d pass(es)",
                     len(blocked), passes)

    def _recover(self, entry: BlockedEntry, k: int) -> None:
        cfg = self.session.config
        with self.scheduler.slot():
            outcome = self.fetcher.fetch(
                entry.url, BLOCKED_AGENT_OFFSET + k, referer=cfg.start_url
            )

        if not isinstance(outcome, Success):
            entry.last_error = outcome.cause
            self.session.blocked.put_back(entry)
            self.session.stats.incr("blocked")
            log.warning("[BLOCKED] pass %d: %s (%s)", k, entry.url, outcome.cause)
            return

        self.session.mark_success()
        self.session.stats.incr("recovered")
        log.info("[RECOVERED] pass %d: %s", k, entry.url)
        self.scheduler.process(outcome)
