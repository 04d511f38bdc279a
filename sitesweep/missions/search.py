"""
Search missions: find a link target or a phrase across the site.
"""

from sitesweep.config import Mission
from sitesweep.core.fetcher import Success
from sitesweep.core.state import CrawlSession
from sitesweep.extraction.documents import contains_text_in_docx, contains_text_in_pdf
from sitesweep.extraction.html_parser import visible_text
from sitesweep.missions.base import MissionHandler, timestamp
from sitesweep.utils.log import log


class _SearchMission(MissionHandler):
    columns = ("URL", "ContentType", "FoundIn", "Target", "StartURL", "Timestamp")

    def _found(self, session: CrawlSession, page: Success, found_in: str) -> None:
        session.stats.incr("matches")
        log.info("[MATCH] %s in %s: %s", self.config.target, found_in, page.url)
        self.record((
            page.url,
            page.mime,
            found_in,
            self.config.target,
            self.config.start_url,
            timestamp(),
        ))

    def handle_pdf(self, session: CrawlSession, page: Success) -> None:
        if contains_text_in_pdf(page.body, self.config.target):
            self._found(session, page, "PDF")

    def handle_docx(self, session: CrawlSession, page: Success) -> None:
        if contains_text_in_docx(page.body, self.config.target):
            self._found(session, page, "DOCX")


class FindLinkMission(_SearchMission):
    """Pages whose raw HTML contains the target (usually a URL)."""

    mission = Mission.FIND_LINK

    def handle_html(self, session: CrawlSession, page: Success) -> None:
        if self.config.target.encode("utf-8") in page.body:
            self._found(session, page, "HTML")


class FindPhraseMission(_SearchMission):
    """Pages whose visible text contains the target, ignoring case."""

    mission = Mission.FIND_PHRASE

    def handle_html(self, session: CrawlSession, page: Success) -> None:
        phrase = " ".join(self.config.target.split()).lower()
        if phrase and phrase in visible_text(page.body).lower():
            self._found(session, page, "HTML")
