"""
Exception hierarchy for sitesweep.

Nothing inside a running crawl raises these: fetch, parse and extraction
failures are converted into outcomes and counters.  They are raised while a
run is being configured, or when the feed of a capture-feed run is unusable.
"""


class SitesweepError(Exception):
    """Base class for all sitesweep errors."""


class ConfigError(SitesweepError):
    """Invalid or incomplete crawl configuration."""


class FeedError(SitesweepError):
    """The capture feed could not be fetched or is not a JSON array."""
