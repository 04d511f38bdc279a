"""
HTTP session creation for sitesweep.

Provides sessions with:
* Keep-alive connection pooling sized to the worker pool
* Browser-like headers with deterministic User-Agent rotation
* No transport-level retries (retry policy belongs to the crawl engine)
* No session-owned cookies: every run keeps one shared cookie jar of its own
  and passes it with each request
"""

from http.cookiejar import DefaultCookiePolicy

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sitesweep.config import MAX_CONCURRENCY, MAX_REDIRECTS, USER_AGENTS

_ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,image/apng,*/*;q=0.8"
)


class _NoStorePolicy(DefaultCookiePolicy):
    """Cookie policy that refuses to store anything in the session jar."""

    def set_ok(self, cookie, request) -> bool:
        return False


def build_session(
    verify_ssl: bool = True, pool_size: int = MAX_CONCURRENCY
) -> requests.Session:
    """Return a ``requests.Session`` with keep-alive pooling and no retries.

    Cookies set by responses are not kept on the session; callers merge
    ``response.cookies`` into their own jar.
    """
    session = requests.Session()
    adapter = HTTPAdapter(
        max_retries=Retry(0, read=False),
        pool_connections=pool_size,
        pool_maxsize=pool_size,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = verify_ssl
    session.max_redirects = MAX_REDIRECTS
    session.cookies.set_policy(_NoStorePolicy())
    session.headers.update({
        "Accept": _ACCEPT,
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
    })
    return session


def user_agent_for(attempt_index: int) -> str:
    """User-Agent for the *attempt_index*-th attempt (rotates through the pool)."""
    return USER_AGENTS[attempt_index % len(USER_AGENTS)]


def browser_headers(attempt_index: int = 0, referer: str = "") -> dict[str, str]:
    """Return browser headers for one request.

    The User-Agent is chosen by ``attempt_index % len(USER_AGENTS)`` so each
    retry presents as a different client.  *referer*, when given, mimics
    navigation from the site's own start page.
    """
    headers: dict[str, str] = {
        "User-Agent": user_agent_for(attempt_index),
        "Accept": _ACCEPT,
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate",
        "DNT": "1",
        "Upgrade-Insecure-Requests": "1",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "same-origin" if referer else "none",
        "Sec-Fetch-User": "?1",
    }
    if referer:
        headers["Referer"] = referer
    return headers
