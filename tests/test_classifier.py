"""
Tests for the bot-protection classifier.
"""

import unittest

import requests

from sitesweep.core.classifier import (
    Verdict,
    classify_network_error,
    classify_response,
    identify_protection,
    is_challenge_page,
)


class TestClassifyResponse(unittest.TestCase):
    def test_plain_page_is_success(self):
        verdict, _ = classify_response(200, "<html>Welcome</html>")
        self.assertIs(verdict, Verdict.SUCCESS)

    def test_block_statuses(self):
        for status in (403, 429, 503):
            with self.subTest(status=status):
                verdict, reason = classify_response(status, "")
                self.assertIs(verdict, Verdict.BLOCKED)
                self.assertEqual(reason, f"HTTP {status}")

    def test_other_errors_retryable(self):
        for status in (400, 404, 410, 500, 502):
            with self.subTest(status=status):
                verdict, _ = classify_response(status, "checking your browser")
                self.assertIs(verdict, Verdict.RETRYABLE)

    def test_challenge_on_200_is_blocked(self):
        verdict, reason = classify_response(
            200, "<title>Just a moment</title>Checking your browser before accessing"
        )
        self.assertIs(verdict, Verdict.BLOCKED)
        self.assertIn("checking your browser", reason)

    def test_cloudflare_needs_ray_id(self):
        self.assertIs(
            classify_response(200, "Powered by Cloudflare CDN")[0], Verdict.SUCCESS
        )
        self.assertIs(
            classify_response(200, "Cloudflare Ray ID: 8a1b2c")[0], Verdict.BLOCKED
        )

    def test_signatures_ignored_in_binary_bodies(self):
        verdict, _ = classify_response(200, "captcha", "application/pdf")
        self.assertIs(verdict, Verdict.SUCCESS)

    def test_other_signatures(self):
        for body in ("DDoS protection by X", "Incapsula incident ID",
                     "Sorry, you have been blocked", "Attention Required!",
                     "please solve the CAPTCHA", "Sucuri WebSite Firewall"):
            with self.subTest(body=body):
                self.assertTrue(is_challenge_page(body))


class TestIdentifyProtection(unittest.TestCase):
    def test_vendors(self):
        self.assertEqual(identify_protection("cf-ray: 123"), "Cloudflare")
        self.assertEqual(identify_protection("visid_incap_1"), "Imperva/Incapsula")
        self.assertEqual(identify_protection("sgcaptcha"), "SiteGround")

    def test_generic(self):
        self.assertEqual(identify_protection("checking your browser"), "generic anti-bot")


class TestClassifyNetworkError(unittest.TestCase):
    def test_timeout(self):
        self.assertEqual(
            classify_network_error(requests.exceptions.ReadTimeout("read timed out")),
            "timeout",
        )

    def test_ssl(self):
        self.assertEqual(
            classify_network_error(requests.exceptions.SSLError("bad handshake")),
            "tls",
        )

    def test_dns(self):
        exc = requests.exceptions.ConnectionError(
            "Failed to resolve 'nope.test' ([Errno -2] Name or service not known)"
        )
        self.assertEqual(classify_network_error(exc), "dns")

    def test_refused(self):
        exc = requests.exceptions.ConnectionError("[Errno 111] Connection refused")
        self.assertEqual(classify_network_error(exc), "refused")

    def test_other(self):
        exc = requests.exceptions.ConnectionError("Connection reset by peer")
        self.assertEqual(classify_network_error(exc), "network")


if __name__ == "__main__":
    unittest.main()
