"""
Tests for the retry/backoff controller.
"""

import unittest
from unittest.mock import patch

import requests

from sitesweep.config import USER_AGENTS
from sitesweep.core.retry import RetryController
from sitesweep.core.state import CrawlSession

from fakes import FakeHttp, make_config, make_response

URL = "https://example.test/page"


def _controller(routes, **config):
    http = FakeHttp(routes)
    session = CrawlSession(make_config(**config), http=http)
    return RetryController(session), session, http


class TestRetryController(unittest.TestCase):
    def test_success_first_try(self):
        ctl, session, http = _controller({URL: make_response(URL)})
        page = ctl.fetch_with_retry(URL)
        self.assertIsNotNone(page)
        self.assertTrue(session.had_success)
        self.assertEqual(session.stats["retries"], 0)
        self.assertEqual(len(http.calls), 1)

    def test_network_error_then_success(self):
        ctl, session, http = _controller({URL: [
            requests.exceptions.ConnectionError("Connection reset by peer"),
            make_response(URL),
        ]})
        self.assertIsNotNone(ctl.fetch_with_retry(URL))
        self.assertEqual(session.stats["retries"], 1)
        self.assertEqual(session.stats["errors"], 0)

    def test_each_attempt_rotates_user_agent(self):
        ctl, _, http = _controller({URL: [
            requests.exceptions.ReadTimeout("timed out"),
            requests.exceptions.ReadTimeout("timed out"),
            make_response(URL),
        ]})
        ctl.fetch_with_retry(URL)
        agents = [kwargs["headers"]["User-Agent"] for _, _, kwargs in http.calls]
        self.assertEqual(agents, USER_AGENTS[:3])

    def test_exhausted_retries_count_one_error(self):
        ctl, session, http = _controller(
            {URL: requests.exceptions.ReadTimeout("timed out")}, max_retries=3
        )
        self.assertIsNone(ctl.fetch_with_retry(URL))
        self.assertEqual(len(http.calls), 4)
        self.assertEqual(session.stats["retries"], 3)
        self.assertEqual(session.stats["errors"], 1)
        self.assertEqual(session.stats["errors_timeout"], 1)
        self.assertEqual(session.stats["blocked"], 0)

    def test_linear_backoff(self):
        ctl, _, _ = _controller(
            {URL: requests.exceptions.ReadTimeout("timed out")},
            max_retries=3, retry_delay=2.0,
        )
        with patch("sitesweep.core.retry.time.sleep") as sleep:
            ctl.fetch_with_retry(URL)
        self.assertEqual([c.args[0] for c in sleep.call_args_list], [2.0, 4.0, 6.0])

    def test_blocked_goes_to_queue_without_retry(self):
        url = "https://example.test/blocked"
        ctl, session, http = _controller({url: make_response(url, 403, "Forbidden")})
        self.assertIsNone(ctl.fetch_with_retry(url))
        self.assertEqual(len(http.calls), 1)
        (entry,) = session.blocked.snapshot()
        self.assertEqual(entry.url, url)
        self.assertEqual(entry.attempt_count, 0)
        self.assertEqual(session.stats["blocked"], 1)
        self.assertEqual(session.stats["errors"], 0)

    def test_dns_failure_not_retried(self):
        exc = requests.exceptions.ConnectionError("getaddrinfo failed")
        ctl, session, http = _controller({URL: exc})
        ctl.fetch_with_retry(URL)
        self.assertEqual(len(http.calls), 1)
        self.assertEqual(session.stats["errors_dns"], 1)
        self.assertEqual(session.stats["retries"], 0)

    def test_http_404_not_retried(self):
        ctl, session, http = _controller({})
        ctl.fetch_with_retry(URL)
        self.assertEqual(len(http.calls), 1)
        self.assertEqual(session.stats["errors"], 1)
        self.assertEqual(session.stats["errors_http"], 1)

    def test_cancel_stops_retrying(self):
        ctl, session, http = _controller(
            {URL: requests.exceptions.ReadTimeout("timed out")}, max_retries=5
        )
        session.cancel()
        ctl.fetch_with_retry(URL)
        self.assertEqual(len(http.calls), 1)
        self.assertEqual(session.stats["errors"], 1)


if __name__ == "__main__":
    unittest.main()
