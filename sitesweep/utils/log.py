"""
Logging for sitesweep.

Every module logs through the single ``sitesweep`` logger.  Console output
uses ``colorlog`` level colours and additionally tints the ``[TAG]`` that
opens most crawl messages; inside GitHub Actions the console switches to
plain text with ``::warning::`` / ``::error::`` annotations.
"""

import logging
import os
import re
from pathlib import Path

import colorlog

log = logging.getLogger("sitesweep")

_CONSOLE_DATEFMT = "%H:%M:%S"
_FILE_FMT = "%(asctime)s %(levelname)-7s %(threadName)s  %(message)s"

_IN_ACTIONS: bool = os.environ.get("GITHUB_ACTIONS") == "true"

_RESET = "\033[0m"
_RED, _GREEN, _YELLOW, _BLUE, _MAGENTA, _CYAN, _GREY = (
    "\033[1;31m", "\033[1;32m", "\033[33m", "\033[34m", "\033[1;35m", "\033[36m", "\033[90m",
)
_TAG_COLOURS: dict[str, str] = {
    "BLOCKED": _RED, "ERR": _RED, "DNS": _RED,
    "RECOVERED": _GREEN, "MATCH": _GREEN,
    "BROKEN": _YELLOW, "OVERSIZED": _YELLOW, "HTTP": _YELLOW,
    "CAPTURE": _BLUE, "SITEMAP": _BLUE, "FEED": _BLUE,
    "CANCEL": _MAGENTA,
    "RETRY": _CYAN, "PASS": _CYAN,
    "PROBE": _GREY,
}
_TAG_RE = re.compile(r"\[([A-Z]+)\]")


def _tint(match: re.Match) -> str:
    colour = _TAG_COLOURS.get(match.group(1))
    return f"{colour}{match.group(0)}{_RESET}" if colour else match.group(0)


def highlight_tags(message: str) -> str:
    """Wrap known ``[TAG]`` markers in *message* with ANSI colours."""
    return _TAG_RE.sub(_tint, message)


class _ConsoleFormatter(colorlog.ColoredFormatter):
    def format(self, record: logging.LogRecord) -> str:
        return highlight_tags(super().format(record))


class _ActionsFormatter(logging.Formatter):
    """Prefixes warnings and errors with GitHub workflow commands so they
    show up as annotations on the run page."""

    def format(self, record: logging.LogRecord) -> str:
        text = highlight_tags(super().format(record))
        if record.levelno >= logging.ERROR:
            return "::error::" + text
        if record.levelno >= logging.WARNING:
            return "::warning::" + text
        return text


def _console_handler(level: int) -> logging.Handler:
    if _IN_ACTIONS:
        handler = logging.StreamHandler()
        handler.setFormatter(_ActionsFormatter(
            "%(asctime)s %(levelname)s %(message)s", datefmt=_CONSOLE_DATEFMT
        ))
    else:
        handler = colorlog.StreamHandler()
        handler.setFormatter(_ConsoleFormatter(
            "%(log_color)s%(asctime)s %(levelname)-7s%(reset)s %(message)s",
            datefmt=_CONSOLE_DATEFMT,
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        ))
    handler.setLevel(level)
    return handler


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FMT))
    return handler


def setup_logging(debug: bool = False, log_file: str | None = None) -> None:
    """Install the console handler and, when *log_file* is given, a file
    handler that records everything down to DEBUG regardless of *debug*.

    Calling it again replaces the previous handlers.
    """
    level = logging.DEBUG if debug else logging.INFO
    log.handlers.clear()
    log.propagate = False
    log.addHandler(_console_handler(level))
    log.setLevel(level)

    if log_file:
        path = Path(log_file)
        log.addHandler(_file_handler(path))
        log.setLevel(logging.DEBUG)
        log.info("Detailed log: %s", path.resolve())
