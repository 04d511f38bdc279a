"""
Crawler facade: wires one run together and reports on it.

Builds the per-run :class:`CrawlSession`, the mission, the scheduler and the
recovery orchestrator, then runs the three phases, lets the mission finish
(write the sitemap, render captures, close its report) and logs a summary.
"""

import time

import requests

from sitesweep.config import CrawlConfig
from sitesweep.core.fetcher import Fetcher, Success
from sitesweep.core.orchestrator import RecoveryOrchestrator, RunResult
from sitesweep.core.retry import RetryController
from sitesweep.core.scheduler import Scheduler
from sitesweep.core.state import CrawlSession
from sitesweep.extraction.links import LinkExtractor
from sitesweep.missions import MissionHandler, build_mission
from sitesweep.utils.log import log
from sitesweep.utils.progress import LiveStats


class Crawler:
    """One crawl run over a single site for a single mission."""

    def __init__(
        self,
        config: CrawlConfig,
        mission: MissionHandler | None = None,
        http: requests.Session | None = None,
        show_progress: bool = True,
    ) -> None:
        self.config = config
        self.session = CrawlSession(config, http=http)
        self.mission = mission or build_mission(config)
        self.fetcher = Fetcher(self.session)
        self.scheduler = Scheduler(
            self.session, RetryController(self.session, self.fetcher), on_page=self.process_page
        )
        self.links = LinkExtractor(
            self.session,
            accept=self.mission.accepts_link,
            discover_archives=config.sitemap.discover_archives,
        )
        self.orchestrator = RecoveryOrchestrator(self.session, self.scheduler, self.fetcher)
        self.show_progress = show_progress

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> RunResult:
        cfg = self.config
        log.info("Start URL        : %s", cfg.start_url)
        log.info("Mission          : %s%s", cfg.mission.value,
                 f" ({cfg.target!r})" if cfg.target else "")
        log.info("Concurrency      : %d", cfg.max_concurrency)
        log.info("Retries          : %d (delay %.1f s)", cfg.max_retries, cfg.retry_delay)
        log.info("Blocked passes   : %d", cfg.blocked_retry_passes)
        if cfg.path_filter:
            log.info("Path filter      : %s", cfg.path_filter)
        if cfg.entry_points:
            log.info("Entry points     : %s", ", ".join(cfg.entry_points))
        log.info("Output directory : %s", cfg.output_dir.resolve())

        live = LiveStats(self.session.stats, disable=not self.show_progress)
        live.start()
        t0 = time.monotonic()
        try:
            result = self.orchestrator.run()
        finally:
            live.stop()
            self.scheduler.wait()
            self.scheduler.shutdown()
            self.mission.finish(self.session)

        result.stats = self.session.stats.snapshot()
        result.elapsed = time.monotonic() - t0
        self.log_summary(result)
        return result

    def cancel(self) -> None:
        """Stop scheduling new work; fetches in flight still complete."""
        log.warning("[CANCEL] stopping after in-flight requests")
        self.session.cancel()

    # ------------------------------------------------------------------
    # Content pipeline
    # ------------------------------------------------------------------

    def process_page(self, page: Success) -> None:
        """Hand *page* to the mission, then enqueue the links it carries."""
        stats = self.session.stats
        stats.incr("pages_checked")
        log.debug("  OK %s", page.url)
        try:
            self.mission.handle(self.session, page)
        except Exception:
            log.exception("[ERR] mission %s failed on %s", self.config.mission.value, page.url)
            stats.incr("errors")

        if not page.is_html:
            return
        for link in self.links.extract(page):
            if self.session.cancelled:
                return
            if self.config.enqueue_delay:
                time.sleep(self.config.enqueue_delay)
            self.scheduler.enqueue(link)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def log_summary(self, result: RunResult) -> None:
        s = result.stats
        log.info(
            "Crawl %s in %.1f s. queued=%d  checked=%d  matches=%d  "
            "errors=%d  blocked=%d  retried=%d  recovered=%d  retries=%d",
            "cancelled" if result.cancelled else "complete",
            result.elapsed,
            s["pages_queued"], s["pages_checked"], s["matches"], s["errors"],
            s["blocked"], s["blocked_retried"], s["recovered"], s["retries"],
        )
        log.info(
            "Skipped: external=%d  out-of-path=%d   Errors: timeout=%d  "
            "refused=%d  dns=%d  tls=%d  network=%d  http=%d",
            s["external_skipped"], s["path_skipped"], s["errors_timeout"],
            s["errors_refused"], s["errors_dns"], s["errors_tls"],
            s["errors_network"], s["errors_http"],
        )
        log.info(
            "HTTP: 2xx=%d  3xx=%d  4xx=%d  5xx=%d   downloaded %.1f MB",
            s["status_2xx"], s["status_3xx"], s["status_4xx"], s["status_5xx"],
            s["bytes_downloaded"] / (1024 * 1024),
        )
        if s["links_checked"]:
            log.info("Links checked: %d  broken: %d", s["links_checked"], s["broken_links"])
        if s["images_checked"]:
            log.info("Images checked: %d  oversized: %d",
                     s["images_checked"], s["oversized_images"])
        if s["captures"]:
            log.info("Pages captured: %d", s["captures"])
        if s["sitemap_urls"]:
            log.info("Sitemap URLs: %d", s["sitemap_urls"])
        for entry in result.still_blocked:
            log.warning("[BLOCKED] still blocked after %d pass(es): %s (%s)",
                        entry.attempt_count, entry.url, entry.last_error)
        if self.mission.sink is not None and self.mission.sink.rows_written:
            log.info("Results saved in: %s", self.mission.sink.path.resolve())
