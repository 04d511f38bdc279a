"""Core crawl engine – frontier, fetcher, retry, scheduler and recovery."""

from sitesweep.core.crawler import Crawler
from sitesweep.core.frontier import BlockedEntry, BlockedQueue, Frontier
from sitesweep.core.orchestrator import RecoveryOrchestrator, RunResult
from sitesweep.core.state import CrawlSession
from sitesweep.core.stats import RunStats

__all__ = [
    "Crawler",
    "BlockedEntry",
    "BlockedQueue",
    "Frontier",
    "RecoveryOrchestrator",
    "RunResult",
    "CrawlSession",
    "RunStats",
]
