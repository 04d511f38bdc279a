"""
HTML helpers built on BeautifulSoup with the lxml parser.

Malformed markup never raises: a document that cannot be parsed simply
yields nothing.
"""

from bs4 import BeautifulSoup

from sitesweep.utils.log import log

_BS4_PARSER = "lxml"
_INVISIBLE_TAGS = ("script", "style", "noscript", "template", "head")


def parse_html(html: str | bytes) -> BeautifulSoup | None:
    try:
        return BeautifulSoup(html, _BS4_PARSER)
    except Exception as exc:
        log.debug("HTML parse failed: %s", exc)
        return None


def _attr_values(html: str | bytes, tag: str, attr: str) -> list[str]:
    soup = parse_html(html)
    if soup is None:
        return []
    values = []
    for el in soup.find_all(tag):
        val = el.get(attr)
        if isinstance(val, str) and val.strip():
            values.append(val.strip())
    return values


def extract_anchor_hrefs(html: str | bytes) -> list[str]:
    """Raw ``href`` values of every ``<a>`` element, in document order."""
    return _attr_values(html, "a", "href")


def extract_image_srcs(html: str | bytes) -> list[str]:
    """Raw ``src`` values of every ``<img>`` element, in document order."""
    return _attr_values(html, "img", "src")


def visible_text(html: str | bytes) -> str:
    """Text a reader would see: scripts, styles and ``<head>`` removed."""
    soup = parse_html(html)
    if soup is None:
        return ""
    for el in soup.find_all(_INVISIBLE_TAGS):
        el.decompose()
    return " ".join(soup.get_text(" ").split())
