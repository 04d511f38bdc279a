"""
Configuration constants and the per-run crawl configuration.
"""

import urllib.parse
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

from sitesweep.exceptions import ConfigError

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_OUTPUT = "sitesweep_output"
DEFAULT_CONCURRENCY = 5
MAX_CONCURRENCY = 20           # hard cap, avoids getting banned
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 2.0      # seconds, multiplied by the attempt number
DEFAULT_BLOCKED_PASSES = 3
DEFAULT_PASS_DELAY = 5.0       # seconds, multiplied by the pass number
DEFAULT_ENQUEUE_DELAY = 0.05   # politeness delay before each recursive enqueue
DEFAULT_IMAGE_THRESHOLD_KB = 500
DEFAULT_SITEMAP_FILE = "sitemap.xml"
DEFAULT_CHANGEFREQ = "weekly"
DEFAULT_PRIORITY = 0.5

# ---------------------------------------------------------------------------
# HTTP tuning
# ---------------------------------------------------------------------------
REQUEST_TIMEOUT = 30
PROBE_TIMEOUT = 10
CHECK_TIMEOUT = 15             # supplementary HEAD/GET checks
PROBE_DELAY = 0.5              # pause between entry-point probes
MAX_REDIRECTS = 10

# User-agent index offset used by recovery passes so a blocked URL is
# retried as a client that has not been seen on it yet.
BLOCKED_AGENT_OFFSET = 3

# ---------------------------------------------------------------------------
# User-Agent rotation pool
# ---------------------------------------------------------------------------
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.3 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:136.0) Gecko/20100101 Firefox/136.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36 Edg/134.0.0.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14.7; rv:136.0) Gecko/20100101 Firefox/136.0",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 18_3 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.3 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/134.0.0.0 Mobile Safari/537.36",
]

# ---------------------------------------------------------------------------
# HTTP status codes that mean "actively blocked" rather than "failed"
# ---------------------------------------------------------------------------
BLOCKED_STATUS_CODES = frozenset({403, 429, 503})

# ---------------------------------------------------------------------------
# Bot-challenge body signatures
#
# Each entry is a group of lower-case terms; a body matches the group when
# every term occurs in it.
# ---------------------------------------------------------------------------
CHALLENGE_SIGNATURES: tuple[tuple[str, ...], ...] = (
    ("checking your browser",),
    ("ddos protection",),
    ("captcha",),
    ("cloudflare", "ray id"),
    ("just a moment", "_cf_chl_opt"),
    ("incapsula",),
    ("perimeterx",),
    ("sucuri",),
    ("attention required",),
    ("sorry, you have been blocked",),
    ("verify you are human",),
    ("please enable javascript and cookies",),
    ("access denied", "you don't have permission"),
    ("security check", "please complete"),
)

# Vendor names used when logging a detected challenge page.
PROTECTION_VENDORS: dict[str, tuple[str, ...]] = {
    "Cloudflare": ("cloudflare", "cf-ray", "_cf_chl_opt", "challenges.cloudflare.com"),
    "Imperva/Incapsula": ("incapsula", "imperva", "visid_incap"),
    "PerimeterX": ("perimeterx", "_pxhd", "px-captcha"),
    "Sucuri": ("sucuri",),
    "SiteGround": ("sgcaptcha", "sg-captcha"),
    "CAPTCHA": ("captcha", "recaptcha", "hcaptcha", "cf-turnstile"),
}

# Content types whose bodies are never scanned for challenge signatures.
BINARY_CONTENT_PREFIXES = (
    "application/pdf",
    "application/vnd.openxmlformats-officedocument",
    "application/msword",
    "application/zip",
    "application/octet-stream",
    "image/",
    "audio/",
    "video/",
    "font/",
)

PDF_CONTENT_TYPE = "application/pdf"
DOCX_CONTENT_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)

# ---------------------------------------------------------------------------
# Entry points probed when the start URL itself is blocked
# ---------------------------------------------------------------------------
COMMON_ENTRY_PATHS = [
    "/about", "/about-us", "/contact", "/contact-us",
    "/sitemap.xml", "/robots.txt", "/privacy", "/privacy-policy",
    "/terms", "/help", "/faq", "/blog", "/news",
    "/products", "/services", "/team", "/careers",
]

# ---------------------------------------------------------------------------
# Sitemap mode: link targets that are never pages
# ---------------------------------------------------------------------------
SITEMAP_SKIP_EXTENSIONS = (
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".rar", ".tar", ".gz", ".7z",
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico",
    ".mp3", ".mp4", ".avi", ".mov", ".wmv", ".flv",
    ".css", ".js", ".json", ".xml", ".rss", ".atom",
)

SITEMAP_CHANGEFREQS = (
    "always", "hourly", "daily", "weekly", "monthly", "yearly", "never",
)


class Mission(Enum):
    """Operator-selected purpose of a crawl run."""

    FIND_LINK = "find-link"
    FIND_PHRASE = "find-phrase"
    BROKEN_LINKS = "broken-links"
    OVERSIZED_IMAGES = "oversized-images"
    CAPTURE = "capture"
    SITEMAP = "sitemap"
    CAPTURE_FEED = "capture-feed"

    @property
    def needs_target(self) -> bool:
        return self in (Mission.FIND_LINK, Mission.FIND_PHRASE)

    @property
    def crawls(self) -> bool:
        """False for modes that work from a feed instead of crawling."""
        return self is not Mission.CAPTURE_FEED


class CaptureFormat(Enum):
    PDF = "pdf"
    PNG = "png"
    BOTH = "both"
    CMYK_PDF = "cmyk-pdf"
    CMYK_TIFF = "cmyk-tiff"

    @property
    def needs_pdf(self) -> bool:
        return self in (CaptureFormat.PDF, CaptureFormat.BOTH, CaptureFormat.CMYK_PDF)

    @property
    def needs_screenshot(self) -> bool:
        return self in (CaptureFormat.PNG, CaptureFormat.BOTH, CaptureFormat.CMYK_TIFF)


@dataclass(frozen=True)
class SitemapOptions:
    filename: str = DEFAULT_SITEMAP_FILE
    changefreq: str = DEFAULT_CHANGEFREQ
    priority: float = DEFAULT_PRIORITY
    include_lastmod: bool = False
    discover_archives: bool = False


@dataclass(frozen=True)
class FeedOptions:
    """Where the capture-feed mode finds its items.

    The ``*_field`` values name the JSON key to read first; the usual
    alternatives are tried after it.
    """

    feed_url: str = ""
    tag_filter: str = ""
    headline_field: str = ""
    link_field: str = ""
    date_field: str = ""
    brief_field: str = ""
    tags_field: str = ""


@dataclass(frozen=True)
class CrawlConfig:
    """Immutable snapshot of everything one crawl run needs.

    Built once before the run starts and shared by reference with every
    worker; use :meth:`validate` to obtain a normalised copy.
    """

    start_url: str
    mission: Mission = Mission.SITEMAP
    target: str = ""
    image_threshold: int = DEFAULT_IMAGE_THRESHOLD_KB * 1024   # bytes
    capture_format: CaptureFormat = CaptureFormat.BOTH
    sitemap: SitemapOptions = field(default_factory=SitemapOptions)
    feed: FeedOptions = field(default_factory=FeedOptions)
    entry_points: tuple[str, ...] = ()
    probe_entry_points: bool = False
    max_concurrency: int = DEFAULT_CONCURRENCY
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    blocked_retry_passes: int = DEFAULT_BLOCKED_PASSES
    pass_delay: float = DEFAULT_PASS_DELAY
    enqueue_delay: float = DEFAULT_ENQUEUE_DELAY
    path_filter: str = ""
    ignore_query: bool = False
    output_dir: Path = Path(DEFAULT_OUTPUT)
    verify_ssl: bool = True

    @property
    def host(self) -> str:
        return urllib.parse.urlparse(self.start_url).netloc.lower()

    def validate(self) -> "CrawlConfig":
        """Return a normalised copy, raising :class:`ConfigError` on bad input."""
        url = self.start_url.strip()
        if not url:
            raise ConfigError("start URL is empty")
        if not url.startswith(("http://", "https://")):
            url = "https://" + url
        parsed = urllib.parse.urlparse(url)
        if not parsed.netloc:
            raise ConfigError(f"invalid start URL: {self.start_url!r}")

        if self.mission.needs_target and not self.target.strip():
            raise ConfigError(f"mission {self.mission.value!r} needs a search target")
        feed = self.feed
        if self.mission is Mission.CAPTURE_FEED:
            if not feed.feed_url.strip():
                raise ConfigError("mission 'capture-feed' needs a feed URL")
            feed = replace(feed, feed_url=urllib.parse.urljoin(url, feed.feed_url.strip()))
        if self.image_threshold <= 0:
            raise ConfigError("image size threshold must be positive")
        if self.max_retries < 0:
            raise ConfigError("retry count cannot be negative")
        if self.blocked_retry_passes < 0:
            raise ConfigError("blocked retry pass count cannot be negative")
        if self.sitemap.changefreq not in SITEMAP_CHANGEFREQS:
            raise ConfigError(f"invalid changefreq: {self.sitemap.changefreq!r}")
        if not 0.0 <= self.sitemap.priority <= 1.0:
            raise ConfigError("sitemap priority must be between 0.0 and 1.0")

        concurrency = max(1, min(self.max_concurrency, MAX_CONCURRENCY))

        path_filter = self.path_filter.strip()
        if path_filter and not path_filter.startswith("/"):
            path_filter = "/" + path_filter

        base = f"{parsed.scheme}://{parsed.netloc}"
        entries = tuple(
            ep if ep.startswith(("http://", "https://"))
            else base + (ep if ep.startswith("/") else "/" + ep)
            for ep in (e.strip() for e in self.entry_points) if ep
        )

        return replace(
            self,
            start_url=url,
            target=self.target.strip(),
            max_concurrency=concurrency,
            path_filter=path_filter,
            entry_points=entries,
            feed=feed,
        )
