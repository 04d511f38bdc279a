"""
Broken-link audit.

Every ``<a href>`` on a crawled page is checked with HEAD (falling back to a
streamed GET when the server refuses HEAD), cross-host links included.  Each
distinct link is requested once per run; every page it appears on gets its
own row.
"""

import requests

from sitesweep.config import CHECK_TIMEOUT, Mission
from sitesweep.core.classifier import classify_network_error
from sitesweep.core.fetcher import Fetcher, Success
from sitesweep.core.state import CrawlSession
from sitesweep.extraction.html_parser import extract_anchor_hrefs
from sitesweep.missions.base import CheckCache, MissionHandler, timestamp
from sitesweep.utils.log import log
from sitesweep.utils.url import resolve_href

# Servers that answer these to HEAD usually do support GET.
_HEAD_UNSUPPORTED = frozenset({405, 501})


class BrokenLinksMission(MissionHandler):
    mission = Mission.BROKEN_LINKS
    columns = ("BrokenURL", "FoundOnPage", "StatusCode", "Error", "Timestamp")

    def __init__(self, config, sink=None) -> None:
        super().__init__(config, sink)
        self._checked = CheckCache()

    def handle_html(self, session: CrawlSession, page: Success) -> None:
        fetcher = Fetcher(session)
        seen: set[str] = set()
        for href in extract_anchor_hrefs(page.body):
            if session.cancelled:
                return
            url = resolve_href(href, page.final_url)
            if url is None or url in seen:
                continue
            seen.add(url)

            (status, error), fresh = self._checked.get(
                url, lambda: self.check_link(fetcher, url)
            )
            if fresh:
                session.stats.incr("links_checked")
            if error or status >= 400:
                session.stats.incr("broken_links")
                log.warning("[BROKEN] %s (%s) on %s", url, error or status, page.url)
                self.record((url, page.url, status or "", error, timestamp()))

    @staticmethod
    def check_link(fetcher: Fetcher, url: str) -> tuple[int, str]:
        """Return ``(status, error)``; status is 0 when no response arrived."""
        try:
            with fetcher.session.slot():
                resp = fetcher.request("HEAD", url, timeout=CHECK_TIMEOUT)
                if resp.status_code in _HEAD_UNSUPPORTED:
                    resp = fetcher.request("GET", url, timeout=CHECK_TIMEOUT, stream=True)
                    resp.close()
            return resp.status_code, ""
        except requests.RequestException as exc:
            return 0, f"{classify_network_error(exc)}: {exc}"
