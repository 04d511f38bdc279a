"""
URL normalisation and scope helpers.
"""

import re
import urllib.parse
import zlib

# href prefixes that never point at a crawlable page
_SKIP_PREFIXES = ("#", "mailto:", "tel:", "javascript:", "data:")

_INVALID_FILENAME_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_MAX_FILENAME = 200


def normalise_url(raw: str, ignore_query: bool = False) -> str | None:
    """
    Canonicalise *raw* so that equivalent URLs collapse to one key.

    Drops the fragment (and the query string when *ignore_query* is set),
    lower-cases scheme and host and rewrites an empty path to ``/``.

    Returns ``None`` when *raw* is not an absolute http(s) URL.
    """
    try:
        parts = urllib.parse.urlsplit(raw.strip())
        # Accessing .port validates it and raises ValueError on garbage.
        parts.port
    except (ValueError, AttributeError):
        return None

    scheme = parts.scheme.lower()
    if scheme not in ("http", "https") or not parts.netloc:
        return None

    path = parts.path or "/"
    query = "" if ignore_query else parts.query
    return urllib.parse.urlunsplit(
        (scheme, parts.netloc.lower(), path, query, "")
    )


def resolve_href(href: str, page_url: str) -> str | None:
    """
    Resolve an ``href`` attribute value against *page_url*.

    Returns ``None`` for empty, fragment-only, ``mailto:``, ``tel:``,
    ``javascript:`` and ``data:`` values and for non-http(s) schemes.
    """
    href = href.strip()
    if not href or href.lower().startswith(_SKIP_PREFIXES):
        return None
    try:
        absolute = urllib.parse.urljoin(page_url, href)
    except ValueError:
        return None
    scheme = urllib.parse.urlsplit(absolute).scheme.lower()
    if scheme not in ("http", "https"):
        return None
    return urllib.parse.urldefrag(absolute)[0]


def host_of(url: str) -> str:
    """Lower-cased ``host[:port]`` of *url* (empty string when unparsable)."""
    try:
        return urllib.parse.urlsplit(url).netloc.lower()
    except ValueError:
        return ""


def in_path_scope(url: str, prefix: str) -> bool:
    """
    Return True when the path of *url* lies under *prefix*.

    Both sides are compared with a trailing slash so ``/blog`` matches
    ``/blog`` and ``/blog/post`` but not ``/blogroll``.
    """
    if not prefix:
        return True
    path = urllib.parse.urlsplit(url).path or "/"
    if not path.endswith("/"):
        path += "/"
    if not prefix.endswith("/"):
        prefix += "/"
    return path.startswith(prefix)


def url_to_filename(url: str) -> str:
    """
    Map *url* to a safe file name stem (no extension).

    The path becomes the name with ``/`` replaced by ``_``; a short hash of
    the query string is appended so ``?page=2`` does not overwrite page 1.
    """
    parts = urllib.parse.urlsplit(url)
    name = parts.path.strip("/") or "index"
    name = _INVALID_FILENAME_RE.sub("_", name.replace("/", "_"))
    if parts.query:
        name += "_q%08x" % zlib.crc32(parts.query.encode("utf-8"))
    name = name[:_MAX_FILENAME].rstrip(". ")
    return name or "page"
