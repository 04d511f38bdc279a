"""Utility helpers for URL normalisation, logging and progress output."""

from sitesweep.utils.url import (
    host_of,
    in_path_scope,
    normalise_url,
    resolve_href,
    url_to_filename,
)
from sitesweep.utils.log import setup_logging, log

__all__ = [
    "host_of",
    "in_path_scope",
    "normalise_url",
    "resolve_href",
    "url_to_filename",
    "setup_logging",
    "log",
]
