"""
Link extraction and scope filtering.

Turns a fetched HTML page into the list of same-host URLs the scheduler
should enqueue, counting what was dropped on the way.
"""

import datetime
import re
import urllib.parse
from typing import Callable

from sitesweep.core.fetcher import Success
from sitesweep.core.state import CrawlSession
from sitesweep.extraction.html_parser import extract_anchor_hrefs
from sitesweep.utils.url import host_of, in_path_scope, resolve_href

MONTHS = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)
_NEWS_MARKERS = ("news", "press", "release", "archive", "blog", "article")
_YEAR_RE = re.compile(r"/(\d{4})/?$")
_MONTH_RE = re.compile(r"/(\d{4})/(" + "|".join(MONTHS) + r")/?$")
_MAX_PAGE = 10


def archive_urls(url: str, today: datetime.date | None = None) -> list[str]:
    """
    Guess year/month archive URLs for a news-like section.

    * ``/news/2025/``         -> the twelve month pages, plus ``/news/2024``
      when 2025 is the current year
    * ``/news/2025/march/``   -> every month of 2025 and of 2024
    * ``/news/`` (no year)    -> the current year and the two before it
    """
    today = today or datetime.date.today()
    parts = urllib.parse.urlsplit(url)
    path = parts.path
    lower = path.lower()
    if not any(marker in lower for marker in _NEWS_MARKERS):
        return []
    origin = f"{parts.scheme}://{parts.netloc}"
    found: list[str] = []

    m = _YEAR_RE.search(path)
    if m:
        year = int(m.group(1))
        base = path.rstrip("/")
        found += [f"{origin}{base}/{month}/" for month in MONTHS]
        if year == today.year:
            found.append(origin + path.replace(f"/{year}", f"/{year - 1}", 1))

    m = _MONTH_RE.search(lower)
    if m:
        year = m.group(1)
        base = path[:lower.rindex(m.group(2))]
        prev_base = base.replace(year, str(int(year) - 1), 1)
        found += [f"{origin}{base}{month}/" for month in MONTHS]
        found += [f"{origin}{prev_base}{month}/" for month in MONTHS]

    if not _YEAR_RE.search(path) and not _MONTH_RE.search(lower):
        base = path.rstrip("/")
        found += [f"{origin}{base}/{y}/" for y in range(today.year, today.year - 3, -1)]

    return found


def pagination_urls(url: str) -> list[str]:
    """``?page=2..10`` and ``/page/2..10/`` variants of a listing page.

    Pages that are already paginated produce nothing, so discovery does not
    compound.
    """
    parts = urllib.parse.urlsplit(url)
    path = parts.path
    last = path.rsplit("/", 1)[-1]
    if not (path.endswith("/") or (path and "." not in last)):
        return []
    query = urllib.parse.parse_qs(parts.query)
    if "page" in query or "/page/" in path:
        return []

    found = []
    for i in range(2, _MAX_PAGE + 1):
        q = dict(query, page=[str(i)])
        found.append(urllib.parse.urlunsplit(
            (parts.scheme, parts.netloc, path, urllib.parse.urlencode(q, doseq=True), "")
        ))
    base = path.rstrip("/")
    for i in range(2, _MAX_PAGE + 1):
        found.append(f"{parts.scheme}://{parts.netloc}{base}/page/{i}/")
    return found


class LinkExtractor:
    """Filters a page's anchors down to crawlable same-host URLs.

    *accept* lets the active mission veto individual links (the sitemap
    mission rejects documents and media, for instance).
    """

    def __init__(
        self,
        session: CrawlSession,
        accept: Callable[[str], bool] | None = None,
        discover_archives: bool = False,
    ) -> None:
        self.session = session
        self.accept = accept
        self.discover_archives = discover_archives

    def extract(self, page: Success) -> list[str]:
        cfg = self.session.config
        stats = self.session.stats
        links: list[str] = []

        candidates = []
        for href in extract_anchor_hrefs(page.body):
            url = resolve_href(href, page.final_url)
            if url is not None:
                candidates.append(url)
        if self.discover_archives:
            candidates += archive_urls(page.final_url)
            candidates += pagination_urls(page.final_url)

        for url in candidates:
            if host_of(url) != cfg.host:
                stats.incr("external_skipped")
                continue
            if cfg.path_filter and not in_path_scope(url, cfg.path_filter):
                stats.incr("path_skipped")
                continue
            if self.accept is not None and not self.accept(url):
                continue
            links.append(url)
        return links
