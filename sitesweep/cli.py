"""
Command-line interface for sitesweep.
"""

import argparse
import logging
import signal
import sys
import time
from pathlib import Path

import urllib3
import yaml

from sitesweep.config import (
    DEFAULT_BLOCKED_PASSES,
    DEFAULT_CHANGEFREQ,
    DEFAULT_CONCURRENCY,
    DEFAULT_IMAGE_THRESHOLD_KB,
    DEFAULT_MAX_RETRIES,
    DEFAULT_OUTPUT,
    DEFAULT_PRIORITY,
    DEFAULT_RETRY_DELAY,
    DEFAULT_SITEMAP_FILE,
    MAX_CONCURRENCY,
    SITEMAP_CHANGEFREQS,
    CaptureFormat,
    CrawlConfig,
    FeedOptions,
    Mission,
    SitemapOptions,
)
from sitesweep.core.crawler import Crawler
from sitesweep.exceptions import ConfigError
from sitesweep.missions import FeedCapture
from sitesweep.utils.log import log, setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sitesweep",
        description="Concurrent same-host crawler with bot-protection "
                    "recovery: search, audit, capture or map a website.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  sitesweep example.com --mode sitemap --lastmod\n"
            "  sitesweep https://example.com --mode find-link --target https://old.example.org\n"
            "  sitesweep https://example.com --mode find-phrase --target 'opening hours'\n"
            "  sitesweep https://example.com --mode broken-links --concurrency 10\n"
            "  sitesweep https://example.com --mode oversized-images --max-image-kb 300\n"
            "  sitesweep https://example.com --mode capture --capture-format cmyk-pdf\n"
            "  sitesweep https://example.com --mode capture-feed --feed-url /api/news.json\n"
            "  sitesweep --config batch.yaml --mode find-link\n"
        ),
    )
    parser.add_argument(
        "url", nargs="?",
        help="Start URL (https:// is added when the scheme is missing)",
    )
    parser.add_argument(
        "--config", metavar="FILE",
        help="YAML batch file with startURLs, targetLinks and maxConcurrency",
    )
    parser.add_argument(
        "--mode", choices=[m.value for m in Mission], default=Mission.SITEMAP.value,
        help=f"What to do with each page (default: {Mission.SITEMAP.value})",
    )
    parser.add_argument(
        "--target", default="",
        help="Link or phrase to search for (find-link / find-phrase)",
    )
    parser.add_argument(
        "--max-image-kb", type=int, default=DEFAULT_IMAGE_THRESHOLD_KB, metavar="KB",
        help=f"Oversized-image threshold in KB (default: {DEFAULT_IMAGE_THRESHOLD_KB})",
    )
    parser.add_argument(
        "--capture-format", choices=[f.value for f in CaptureFormat],
        default=CaptureFormat.BOTH.value,
        help=f"Capture output (default: {CaptureFormat.BOTH.value})",
    )
    parser.add_argument(
        "--feed-url", default="", metavar="URL",
        help="JSON feed to capture (capture-feed; relative to the start URL)",
    )
    parser.add_argument(
        "--feed-tag", default="", metavar="TAG",
        help="Only capture feed items whose tags contain TAG",
    )
    for name in ("headline", "link", "date", "brief", "tags"):
        parser.add_argument(
            f"--{name}-field", default="", metavar="KEY",
            help=f"JSON key holding the item {name} (default: common names)",
        )
    parser.add_argument(
        "--concurrency", type=int, default=DEFAULT_CONCURRENCY, metavar="N",
        help=f"Parallel fetches, 1-{MAX_CONCURRENCY} (default: {DEFAULT_CONCURRENCY})",
    )
    parser.add_argument(
        "--retries", type=int, default=DEFAULT_MAX_RETRIES, metavar="N",
        help=f"Retries per page on network errors (default: {DEFAULT_MAX_RETRIES})",
    )
    parser.add_argument(
        "--retry-delay", type=float, default=DEFAULT_RETRY_DELAY, metavar="SEC",
        help="Base retry delay, multiplied by the attempt number "
             f"(default: {DEFAULT_RETRY_DELAY})",
    )
    parser.add_argument(
        "--blocked-passes", type=int, default=DEFAULT_BLOCKED_PASSES, metavar="N",
        help=f"Recovery passes over blocked pages (default: {DEFAULT_BLOCKED_PASSES})",
    )
    parser.add_argument(
        "--entry-point", action="append", default=[], metavar="PATH",
        help="Alternate entry point to probe before crawling (repeatable)",
    )
    parser.add_argument(
        "--probe-entry-points", action="store_true",
        help="If the start URL is blocked, probe common paths for a way in",
    )
    parser.add_argument(
        "--path-filter", default="", metavar="PREFIX",
        help="Only follow links under this path (e.g. /blog)",
    )
    parser.add_argument(
        "--ignore-query", action="store_true",
        help="Treat URLs differing only in their query string as one page",
    )
    parser.add_argument(
        "--output", default=DEFAULT_OUTPUT,
        help=f"Output directory (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--sitemap-file", default=DEFAULT_SITEMAP_FILE,
        help=f"Sitemap file name inside the output directory (default: {DEFAULT_SITEMAP_FILE})",
    )
    parser.add_argument(
        "--changefreq", choices=SITEMAP_CHANGEFREQS, default=DEFAULT_CHANGEFREQ,
        help=f"Sitemap <changefreq> (default: {DEFAULT_CHANGEFREQ})",
    )
    parser.add_argument(
        "--priority", type=float, default=DEFAULT_PRIORITY,
        help=f"Sitemap <priority>, 0.0-1.0 (default: {DEFAULT_PRIORITY})",
    )
    parser.add_argument(
        "--lastmod", action="store_true",
        help="Add <lastmod> from the Last-Modified header",
    )
    parser.add_argument(
        "--discover-archives", action="store_true",
        help="Guess year/month archive and pagination URLs (sitemap mode)",
    )
    parser.add_argument(
        "--no-verify-ssl", dest="verify_ssl", action="store_false", default=True,
        help="Disable TLS certificate verification",
    )
    parser.add_argument(
        "--no-progress", dest="progress", action="store_false", default=True,
        help="Hide the live statistics bar",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Enable verbose debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Write detailed logs to this file (always at DEBUG level)",
    )
    args = parser.parse_args(argv)
    if not args.url and not args.config:
        parser.error("a start URL or --config FILE is required")
    return args


def _split_list(value) -> list[str]:
    """Comma-separated string (or YAML list) -> trimmed non-empty items."""
    if value is None:
        return []
    items = value if isinstance(value, list) else str(value).split(",")
    return [str(item).strip() for item in items if str(item).strip()]


def load_batch_file(path: str) -> tuple[list[str], list[str], int | None]:
    """Read ``startURLs``, ``targetLinks`` and ``maxConcurrency`` from YAML."""
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as exc:
        raise ConfigError(f"cannot read batch file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"batch file {path} must contain a mapping")

    start_urls = _split_list(data.get("startURLs"))
    if not start_urls:
        raise ConfigError(f"batch file {path} lists no startURLs")
    targets = _split_list(data.get("targetLinks"))
    concurrency = data.get("maxConcurrency")
    if concurrency is not None:
        try:
            concurrency = int(concurrency)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"maxConcurrency must be a number, got {concurrency!r}") from exc
    return start_urls, targets, concurrency


def build_config(
    args: argparse.Namespace,
    start_url: str,
    target: str,
    concurrency: int | None = None,
) -> CrawlConfig:
    return CrawlConfig(
        start_url=start_url,
        mission=Mission(args.mode),
        target=target,
        image_threshold=args.max_image_kb * 1024,
        capture_format=CaptureFormat(args.capture_format),
        sitemap=SitemapOptions(
            filename=args.sitemap_file,
            changefreq=args.changefreq,
            priority=args.priority,
            include_lastmod=args.lastmod,
            discover_archives=args.discover_archives,
        ),
        feed=FeedOptions(
            feed_url=args.feed_url,
            tag_filter=args.feed_tag,
            headline_field=args.headline_field,
            link_field=args.link_field,
            date_field=args.date_field,
            brief_field=args.brief_field,
            tags_field=args.tags_field,
        ),
        entry_points=tuple(args.entry_point),
        probe_entry_points=args.probe_entry_points,
        max_concurrency=concurrency or args.concurrency,
        max_retries=args.retries,
        retry_delay=args.retry_delay,
        blocked_retry_passes=args.blocked_passes,
        path_filter=args.path_filter,
        ignore_query=args.ignore_query,
        output_dir=Path(args.output),
        verify_ssl=args.verify_ssl,
    ).validate()


def plan_runs(args: argparse.Namespace) -> list[CrawlConfig]:
    """One validated config per (start URL, target) operation."""
    if args.config:
        start_urls, targets, concurrency = load_batch_file(args.config)
        if args.url:
            start_urls.insert(0, args.url)
    else:
        start_urls, targets, concurrency = [args.url], [], None

    if Mission(args.mode).needs_target:
        targets = targets or ([args.target] if args.target else [""])
    else:
        targets = [args.target]

    return [
        build_config(args, url, target, concurrency)
        for url in start_urls
        for target in targets
    ]


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    setup_logging(debug=args.debug, log_file=args.log_file)

    if args.debug:
        logging.getLogger("urllib3").setLevel(logging.DEBUG)

    if not args.verify_ssl:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        log.warning("TLS certificate verification is DISABLED (--no-verify-ssl)")

    try:
        configs = plan_runs(args)
    except ConfigError as exc:
        log.error("Configuration error: %s", exc)
        sys.exit(2)

    for cfg in configs:
        cfg.output_dir.mkdir(parents=True, exist_ok=True)

    t0 = time.monotonic()
    for index, cfg in enumerate(configs, start=1):
        if len(configs) > 1:
            log.info("=== Operation %d/%d: %s ===", index, len(configs), cfg.start_url)
        runner = Crawler if cfg.mission.crawls else FeedCapture
        crawler = runner(cfg, show_progress=args.progress)
        previous = signal.signal(signal.SIGINT, _cancel_handler(crawler))
        try:
            result = crawler.run()
        finally:
            signal.signal(signal.SIGINT, previous)
        if result.cancelled:
            break
    log.info("Total elapsed time: %.1f s", time.monotonic() - t0)


def _cancel_handler(crawler: Crawler | FeedCapture):
    """First Ctrl+C cancels the run gracefully; a second one aborts."""
    def handler(signum, frame):
        if crawler.session.cancelled:
            raise KeyboardInterrupt
        crawler.cancel()
    return handler


if __name__ == "__main__":
    main()
