"""
Sitemap generation: every HTML page reached inside the path filter ends up
in a sitemaps.org XML file written when the crawl finishes.
"""

import email.utils
import threading
import urllib.parse

from sitesweep.config import SITEMAP_SKIP_EXTENSIONS, Mission
from sitesweep.core.fetcher import Success
from sitesweep.core.state import CrawlSession
from sitesweep.core.storage import SitemapEntry, write_sitemap
from sitesweep.missions.base import MissionHandler
from sitesweep.utils.url import in_path_scope


def lastmod_from_header(value: str) -> str:
    """``Last-Modified`` (RFC 1123) -> ``YYYY-MM-DD``, or ``""`` if unparsable."""
    if not value:
        return ""
    try:
        return email.utils.parsedate_to_datetime(value).strftime("%Y-%m-%d")
    except (TypeError, ValueError):
        return ""


class SitemapMission(MissionHandler):
    mission = Mission.SITEMAP

    def __init__(self, config, sink=None) -> None:
        super().__init__(config, sink)
        self._lock = threading.Lock()
        self._entries: dict[str, SitemapEntry] = {}

    @property
    def sitemap_path(self):
        return self.config.output_dir / self.config.sitemap.filename

    @property
    def entries(self) -> list[SitemapEntry]:
        with self._lock:
            return list(self._entries.values())

    def accepts_link(self, url: str) -> bool:
        path = urllib.parse.urlsplit(url).path.lower()
        return not path.endswith(SITEMAP_SKIP_EXTENSIONS)

    def handle_html(self, session: CrawlSession, page: Success) -> None:
        if not in_path_scope(page.url, self.config.path_filter):
            return
        lastmod = ""
        if self.config.sitemap.include_lastmod:
            lastmod = lastmod_from_header(page.headers.get("Last-Modified", ""))
        with self._lock:
            self._entries.setdefault(page.url, SitemapEntry(page.url, lastmod))

    def finish(self, session: CrawlSession) -> None:
        count = write_sitemap(self.sitemap_path, self.entries, self.config.sitemap)
        session.stats.incr("sitemap_urls", count)
        super().finish(session)
