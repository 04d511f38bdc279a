"""
sitesweep
=========
Concurrent same-host site crawler that keeps going when a site's
bot protection pushes back, and does one job per run: find a link, find a
phrase, audit broken links or oversized images, capture pages, or build a
sitemap.  A separate capture-feed mode renders the articles a JSON feed
lists without crawling.

Package structure
-----------------
sitesweep/
├── __init__.py       – package init and public API
├── __main__.py       – ``python -m sitesweep``
├── cli.py            – argparse CLI and YAML batch mode
├── config.py         – constants, Mission / CaptureFormat, CrawlConfig, FeedOptions
├── exceptions.py     – SitesweepError, ConfigError, FeedError
├── session.py        – requests.Session factory, browser headers
├── core/             – crawl engine
│   ├── frontier.py     – Frontier, BlockedQueue
│   ├── classifier.py   – bot-protection classifier
│   ├── fetcher.py      – single-attempt fetch, FetchOutcome
│   ├── retry.py        – retry/backoff controller
│   ├── scheduler.py    – bounded thread-pool scheduler
│   ├── orchestrator.py – entry probing, crawl, blocked-page passes
│   ├── state.py        – CrawlSession (per-run state)
│   ├── stats.py        – RunStats counters
│   ├── storage.py      – CSV results, sitemap XML
│   └── crawler.py      – Crawler facade
├── extraction/       – HTML links and text, PDF / DOCX text
├── missions/         – one class per mission, FeedCapture
└── utils/            – URL helpers, logging, live progress

Quick start
-----------
    from pathlib import Path
    from sitesweep import Crawler, CrawlConfig, Mission

    config = CrawlConfig(
        start_url="https://example.com",
        mission=Mission.FIND_PHRASE,
        target="opening hours",
        output_dir=Path("sweep"),
    ).validate()
    result = Crawler(config).run()
"""

from .core import Crawler, CrawlSession, RunResult
from .config import CaptureFormat, CrawlConfig, FeedOptions, Mission, SitemapOptions
from .exceptions import ConfigError, FeedError, SitesweepError
from .missions import FeedCapture

__version__ = "1.0.0"

__all__ = [
    "Crawler",
    "CrawlSession",
    "RunResult",
    "CaptureFormat",
    "CrawlConfig",
    "FeedOptions",
    "Mission",
    "SitemapOptions",
    "FeedCapture",
    "ConfigError",
    "FeedError",
    "SitesweepError",
]
