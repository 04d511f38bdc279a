"""Crawl missions: what to do with each successfully fetched page.

The capture-feed mode has no handler; :class:`FeedCapture` runs it instead
of a crawl.
"""

from sitesweep.config import CrawlConfig, Mission
from sitesweep.exceptions import ConfigError
from sitesweep.missions.base import MissionHandler
from sitesweep.missions.broken_links import BrokenLinksMission
from sitesweep.missions.capture import CaptureMission, PageCapturer, PlaywrightCapturer
from sitesweep.missions.feed import FeedCapture
from sitesweep.missions.images import OversizedImagesMission
from sitesweep.missions.search import FindLinkMission, FindPhraseMission
from sitesweep.missions.sitemap import SitemapMission

MISSIONS: dict[Mission, type[MissionHandler]] = {
    Mission.FIND_LINK: FindLinkMission,
    Mission.FIND_PHRASE: FindPhraseMission,
    Mission.BROKEN_LINKS: BrokenLinksMission,
    Mission.OVERSIZED_IMAGES: OversizedImagesMission,
    Mission.CAPTURE: CaptureMission,
    Mission.SITEMAP: SitemapMission,
}


def build_mission(config: CrawlConfig) -> MissionHandler:
    if not config.mission.crawls:
        raise ConfigError(f"mission {config.mission.value!r} does not crawl")
    return MISSIONS[config.mission](config)


__all__ = [
    "MISSIONS",
    "build_mission",
    "MissionHandler",
    "BrokenLinksMission",
    "CaptureMission",
    "FeedCapture",
    "PageCapturer",
    "PlaywrightCapturer",
    "OversizedImagesMission",
    "FindLinkMission",
    "FindPhraseMission",
    "SitemapMission",
]
