"""
Feed capture: render every article a JSON feed lists, without crawling.

The feed is a JSON array of objects.  Each object is mapped to a
:class:`FeedItem` (configured key first, then the usual alternatives), its
link is resolved against the start URL and handed to the
:class:`~sitesweep.missions.capture.PageCapturer` under a file name built
from the headline.  ``capture-feed_results.csv`` indexes the items.
"""

import json
import re
import time
from dataclasses import dataclass

from sitesweep.config import CrawlConfig, FeedOptions, Mission
from sitesweep.core.fetcher import Fetcher
from sitesweep.core.orchestrator import RunResult
from sitesweep.core.retry import RetryController
from sitesweep.core.state import CrawlSession
from sitesweep.core.storage import CsvResultSink
from sitesweep.exceptions import FeedError
from sitesweep.missions.capture import (
    CaptureError,
    PageCapturer,
    PlaywrightCapturer,
    output_paths,
)
from sitesweep.utils.log import log
from sitesweep.utils.progress import LiveStats
from sitesweep.utils.url import resolve_href, url_to_filename

# Keys tried for each item field, in order, after the configured one.
FEED_KEYS = {
    "headline": ("headline", "title", "name"),
    "link": ("link", "url", "href", "permalink"),
    "date": ("date", "published", "pubDate", "created"),
    "datecode": ("datecode", "timestamp"),
    "brief": ("brief", "summary", "description", "excerpt"),
    "tags": ("tags", "categories", "keywords"),
}

MAX_STEM_LENGTH = 200
_UNSAFE_CHARS = re.compile(r"""[<>:"/\\|?*',.;!()\[\]{}]""")
_DASH_RUN = re.compile(r"-{2,}")


@dataclass
class FeedItem:
    headline: str = ""
    link: str = ""
    date: str = ""
    datecode: str = ""
    brief: str = ""
    tags: str = ""


def field_text(value) -> str:
    """JSON value -> CSV text.  Numbers lose their fraction, lists are
    joined with commas."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return f"{value:.0f}"
    if isinstance(value, list):
        return ", ".join(field_text(v) for v in value)
    return str(value)


def pick(raw: dict, preferred: str, fallbacks: tuple[str, ...]) -> str:
    keys = (preferred, *fallbacks) if preferred else fallbacks
    for key in keys:
        if key in raw:
            return field_text(raw[key])
    return ""


def parse_feed(data, options: FeedOptions) -> list[FeedItem]:
    """Map the decoded feed to items; entries without a link are dropped."""
    if not isinstance(data, list):
        raise FeedError(f"expected a JSON array, got {type(data).__name__}")
    items = []
    for raw in data:
        if not isinstance(raw, dict):
            continue
        item = FeedItem(
            headline=pick(raw, options.headline_field, FEED_KEYS["headline"]),
            link=pick(raw, options.link_field, FEED_KEYS["link"]),
            date=pick(raw, options.date_field, FEED_KEYS["date"]),
            datecode=pick(raw, "", FEED_KEYS["datecode"]),
            brief=pick(raw, options.brief_field, FEED_KEYS["brief"]),
            tags=pick(raw, options.tags_field, FEED_KEYS["tags"]),
        )
        if item.link:
            items.append(item)
    return items


def headline_filename(headline: str, datecode: str = "") -> str:
    """
    File stem for a feed item, e.g. ``2025-06-01_city-council-meets``.

    A *datecode* of at least eight digits (``YYYYMMDD...``) becomes a date
    prefix.  The result is at most 200 characters and never empty.
    """
    prefix = ""
    if len(datecode) >= 8:
        prefix = f"{datecode[:4]}-{datecode[4:6]}-{datecode[6:8]}_"
    slug = _UNSAFE_CHARS.sub("", headline.lower().replace(" ", "-"))
    slug = _DASH_RUN.sub("-", slug).strip("-")
    name = (prefix + slug)[:MAX_STEM_LENGTH]
    return name or "article"


class FeedCapture:
    """One capture-feed run.

    Offers the same ``session`` / :meth:`cancel` / :meth:`run` surface as
    :class:`~sitesweep.core.crawler.Crawler` so the CLI drives both alike.
    Pages are rendered one after another.
    """

    columns = ("Headline", "Link", "Date", "Brief", "Tags", "CapturedFile")

    def __init__(
        self,
        config: CrawlConfig,
        http=None,
        capturer: PageCapturer | None = None,
        sink: CsvResultSink | None = None,
        show_progress: bool = True,
    ) -> None:
        self.config = config
        self.session = CrawlSession(config, http=http)
        self.fetcher = Fetcher(self.session)
        self.capturer = capturer
        self.sink = sink or CsvResultSink(
            config.output_dir / f"{Mission.CAPTURE_FEED.value}_results.csv", self.columns
        )
        self.show_progress = show_progress

    @property
    def capture_dir(self):
        return self.config.output_dir / "feed_captures"

    def cancel(self) -> None:
        log.warning("[CANCEL] stopping after the current page")
        self.session.cancel()

    def run(self) -> RunResult:
        cfg = self.config
        log.info("Feed URL         : %s", cfg.feed.feed_url)
        if cfg.feed.tag_filter:
            log.info("Tag filter       : %s", cfg.feed.tag_filter)
        log.info("Capture format   : %s", cfg.capture_format.value)
        log.info("Output directory : %s", self.capture_dir.resolve())

        capturer = self.capturer or PlaywrightCapturer()
        live = LiveStats(self.session.stats, disable=not self.show_progress)
        live.start()
        t0 = time.monotonic()
        try:
            self.capture_items(self.load_items(), capturer)
        except FeedError as exc:
            log.error("[FEED] %s", exc)
        finally:
            live.stop()
            capturer.close()
            self.sink.close()

        result = RunResult(
            stats=self.session.stats.snapshot(),
            elapsed=time.monotonic() - t0,
            cancelled=self.session.cancelled,
        )
        self.log_summary(result)
        return result

    def load_items(self) -> list[FeedItem]:
        """Fetch the feed and return the items that pass the tag filter."""
        feed = self.config.feed
        stats = self.session.stats
        with self.session.slot():
            page = RetryController(self.session, self.fetcher).fetch_with_retry(feed.feed_url)
        if page is None:
            raise FeedError(f"could not fetch {feed.feed_url}")
        try:
            items = parse_feed(json.loads(page.body), feed)
        except (ValueError, FeedError) as exc:
            stats.incr("errors")
            raise FeedError(f"unusable feed {feed.feed_url}: {exc}") from exc

        stats.incr("feed_items", len(items))
        if feed.tag_filter:
            items = [item for item in items if feed.tag_filter in item.tags]
            log.info("[FEED] %d item(s) tagged %r", len(items), feed.tag_filter)
        stats.incr("feed_items_kept", len(items))
        return items

    def capture_items(self, items: list[FeedItem], capturer: PageCapturer) -> None:
        cfg = self.config
        stats = self.session.stats
        for item in items:
            if self.session.cancelled:
                log.info("[CANCEL] feed capture stopped early")
                return
            url = resolve_href(item.link, cfg.start_url)
            if url is None:
                log.debug("[FEED] skipping unusable link %r", item.link)
                continue
            if item.headline:
                stem = headline_filename(item.headline, item.datecode)
            else:
                stem = url_to_filename(url)
            files = output_paths(url, self.capture_dir, cfg.capture_format, stem)
            self.sink.write((item.headline, url, item.date, item.brief, item.tags, files[0].name))
            stats.incr("pages_queued")

            try:
                written = capturer.capture(url, self.capture_dir, cfg.capture_format, stem=stem)
            except CaptureError as exc:
                stats.incr("errors")
                log.warning("[CAPTURE] %s: %s", url, exc)
                continue
            stats.incr("pages_checked")
            if written:
                stats.incr("captures")
                log.info("[CAPTURE] %s -> %s", url, ", ".join(p.name for p in written))

    def log_summary(self, result: RunResult) -> None:
        s = result.stats
        log.info(
            "Feed capture %s in %.1f s. items=%d  kept=%d  captured=%d  errors=%d  blocked=%d",
            "cancelled" if result.cancelled else "complete",
            result.elapsed,
            s["feed_items"], s["feed_items_kept"], s["captures"], s["errors"], s["blocked"],
        )
        if self.sink.rows_written:
            log.info("Feed index saved in: %s", self.sink.path.resolve())
