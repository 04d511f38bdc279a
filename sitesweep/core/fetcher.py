"""
Single-attempt page fetcher.

``Fetcher.fetch`` performs exactly one GET and turns the result into a
:data:`FetchOutcome`; it never retries and never raises for network
problems.
"""

import gzip
import zlib
from dataclasses import dataclass, field

import requests
from requests.structures import CaseInsensitiveDict

from sitesweep.config import DOCX_CONTENT_TYPE, PDF_CONTENT_TYPE, REQUEST_TIMEOUT
from sitesweep.core.classifier import (
    Verdict,
    classify_network_error,
    classify_response,
    is_textual,
)
from sitesweep.core.state import CrawlSession
from sitesweep.session import browser_headers
from sitesweep.utils.log import log

_GZIP_MAGIC = b"\x1f\x8b"


@dataclass
class Success:
    url: str
    status: int
    content_type: str
    body: bytes
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    final_url: str = ""

    def __post_init__(self) -> None:
        if not self.final_url:
            self.final_url = self.url

    @property
    def mime(self) -> str:
        return self.content_type.split(";")[0].strip().lower()

    @property
    def is_html(self) -> bool:
        return self.mime in ("", "text/html", "application/xhtml+xml")

    @property
    def is_pdf(self) -> bool:
        return self.mime == PDF_CONTENT_TYPE

    @property
    def is_docx(self) -> bool:
        return self.mime == DOCX_CONTENT_TYPE

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@dataclass
class RetryableError:
    cause: str
    category: str = "network"
    permanent: bool = False


@dataclass
class Blocked:
    cause: str
    status: int = 0


FetchOutcome = Success | RetryableError | Blocked


def decode_body(body: bytes) -> bytes:
    """Gunzip *body* if it still carries the gzip magic bytes.

    ``requests`` already decodes ``Content-Encoding: gzip``; this catches
    servers that gzip the payload without saying so.  A corrupt stream is
    returned unchanged.
    """
    if not body.startswith(_GZIP_MAGIC):
        return body
    try:
        return gzip.decompress(body)
    except (OSError, EOFError, zlib.error):
        return body


class Fetcher:
    """One HTTP attempt with rotating identity and the run's shared cookies."""

    def __init__(self, session: CrawlSession) -> None:
        self.session = session

    def request(
        self,
        method: str,
        url: str,
        attempt_index: int = 0,
        referer: str | None = None,
        timeout: float = REQUEST_TIMEOUT,
        **kwargs,
    ) -> requests.Response:
        """Send one request through the run's HTTP session.

        Without an explicit *referer* the start URL is sent once any request
        in the run has succeeded.  Raises ``requests.RequestException``.
        """
        if referer is None:
            referer = self.session.config.start_url if self.session.had_success else ""
        resp = self.session.http.request(
            method,
            url,
            headers=browser_headers(attempt_index, referer),
            cookies=self.session.cookie_snapshot(),
            timeout=timeout,
            allow_redirects=True,
            **kwargs,
        )
        self.session.absorb_cookies(resp)
        return resp

    def fetch(
        self,
        url: str,
        attempt_index: int = 0,
        referer: str | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> FetchOutcome:
        stats = self.session.stats
        try:
            resp = self.request("GET", url, attempt_index, referer, timeout)
        except requests.RequestException as exc:
            category = classify_network_error(exc)
            log.debug("  %s error for %s: %s", category, url, exc)
            return RetryableError(
                cause=f"{category}: {exc}",
                category=category,
                permanent=category == "dns",
            )

        body = decode_body(resp.content)
        content_type = resp.headers.get("Content-Type", "")
        stats.incr("bytes_downloaded", len(body))
        stats.count_status(resp.status_code)
        log.debug(
            "  <- HTTP %s  CT: %s  %d bytes  %s",
            resp.status_code, content_type or "-", len(body), url,
        )

        text = body.decode("utf-8", errors="replace") if is_textual(content_type) else ""
        verdict, reason = classify_response(resp.status_code, text, content_type)
        if verdict is Verdict.BLOCKED:
            return Blocked(cause=reason, status=resp.status_code)
        if verdict is Verdict.RETRYABLE:
            return RetryableError(cause=reason, category="http", permanent=True)
        return Success(
            url=url,
            status=resp.status_code,
            content_type=content_type,
            body=body,
            headers=CaseInsensitiveDict(resp.headers),
            final_url=resp.url or url,
        )
