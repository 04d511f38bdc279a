"""
Bot-protection classifier.

Pure functions over (status, body) and request exceptions, kept apart from
the network code so the signature list can be tested on its own.
"""

from enum import Enum

import requests

from sitesweep.config import (
    BINARY_CONTENT_PREFIXES,
    BLOCKED_STATUS_CODES,
    CHALLENGE_SIGNATURES,
    PROTECTION_VENDORS,
)

# Substrings of network error messages that identify a failed DNS lookup.
_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "no such host",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "failed to resolve",
    "nameresolutionerror",
    "no address associated with hostname",
)
_REFUSED_MARKERS = ("connection refused", "actively refused", "errno 111")


class Verdict(Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    BLOCKED = "blocked"


def is_textual(content_type: str) -> bool:
    ct = content_type.split(";")[0].strip().lower()
    return not ct.startswith(BINARY_CONTENT_PREFIXES)


def match_challenge(body: str) -> tuple[str, ...] | None:
    """Return the first signature group fully present in *body*, if any."""
    lower = body.lower()
    for group in CHALLENGE_SIGNATURES:
        if all(term in lower for term in group):
            return group
    return None


def is_challenge_page(body: str) -> bool:
    return match_challenge(body) is not None


def identify_protection(body: str) -> str:
    """Best-effort vendor name for a challenge page, for log messages."""
    lower = body.lower()
    for name, markers in PROTECTION_VENDORS.items():
        if any(m in lower for m in markers):
            return name
    return "generic anti-bot"


def classify_response(
    status: int, body: str, content_type: str = "text/html"
) -> tuple[Verdict, str]:
    """
    Classify an HTTP response into a :class:`Verdict` and a reason.

    Precedence, most specific first:

    1. 403 / 429 / 503 -> BLOCKED
    2. any other status >= 400 -> RETRYABLE
    3. a textual body matching a challenge signature -> BLOCKED, even on 200
    4. otherwise SUCCESS
    """
    if status in BLOCKED_STATUS_CODES:
        return Verdict.BLOCKED, f"HTTP {status}"
    if status >= 400:
        return Verdict.RETRYABLE, f"HTTP {status}"
    if is_textual(content_type):
        group = match_challenge(body)
        if group is not None:
            return Verdict.BLOCKED, (
                f"challenge page ({identify_protection(body)}: "
                f"{' + '.join(group)})"
            )
    return Verdict.SUCCESS, f"HTTP {status}"


def classify_network_error(exc: BaseException) -> str:
    """Map a request exception to ``timeout``, ``refused``, ``dns``, ``tls``
    or ``network``."""
    if isinstance(exc, requests.exceptions.Timeout):
        return "timeout"
    if isinstance(exc, requests.exceptions.SSLError):
        return "tls"
    text = str(exc).lower()
    if any(m in text for m in _DNS_MARKERS):
        return "dns"
    if any(m in text for m in _REFUSED_MARKERS):
        return "refused"
    if "certificate" in text or "ssl" in text:
        return "tls"
    if "timed out" in text or "timeout" in text:
        return "timeout"
    return "network"
