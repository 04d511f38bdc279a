"""
Oversized-image audit: download every ``<img src>`` once and report those
heavier than the configured threshold.
"""

from dataclasses import dataclass

import requests

from sitesweep.config import CHECK_TIMEOUT, Mission
from sitesweep.core.fetcher import Fetcher, Success
from sitesweep.core.state import CrawlSession
from sitesweep.extraction.html_parser import extract_image_srcs
from sitesweep.missions.base import CheckCache, MissionHandler, timestamp
from sitesweep.utils.log import log
from sitesweep.utils.url import resolve_href


@dataclass
class ImageInfo:
    size: int
    content_type: str


class OversizedImagesMission(MissionHandler):
    mission = Mission.OVERSIZED_IMAGES
    columns = ("ImageURL", "FoundOnPage", "SizeBytes", "SizeKB", "ContentType", "Timestamp")

    def __init__(self, config, sink=None) -> None:
        super().__init__(config, sink)
        self._measured = CheckCache()

    def handle_html(self, session: CrawlSession, page: Success) -> None:
        fetcher = Fetcher(session)
        threshold = self.config.image_threshold
        seen: set[str] = set()
        for src in extract_image_srcs(page.body):
            if session.cancelled:
                return
            url = resolve_href(src, page.final_url)
            if url is None or url in seen:
                continue
            seen.add(url)

            info, fresh = self._measured.get(url, lambda: self.measure(fetcher, url))
            if fresh and info is not None:
                session.stats.incr("images_checked")
            if info is None or info.size <= threshold:
                continue
            session.stats.incr("oversized_images")
            log.warning("[OVERSIZED] %s (%.1f KB) on %s", url, info.size / 1024, page.url)
            self.record((
                url,
                page.url,
                info.size,
                f"{info.size / 1024:.1f}",
                info.content_type,
                timestamp(),
            ))

    @staticmethod
    def measure(fetcher: Fetcher, url: str) -> ImageInfo | None:
        """Download *url* and return its size, or None if it is unavailable."""
        try:
            with fetcher.session.slot():
                resp = fetcher.request("GET", url, timeout=CHECK_TIMEOUT)
        except requests.RequestException as exc:
            log.debug("Image fetch failed for %s: %s", url, exc)
            return None
        if resp.status_code >= 400:
            log.debug("Image %s answered HTTP %s", url, resp.status_code)
            return None
        return ImageInfo(
            size=len(resp.content),
            content_type=resp.headers.get("Content-Type", ""),
        )
