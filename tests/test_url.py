"""
Tests for URL normalisation and scope helpers.
"""

import unittest

from sitesweep.utils.url import (
    host_of,
    in_path_scope,
    normalise_url,
    resolve_href,
    url_to_filename,
)


class TestNormaliseUrl(unittest.TestCase):
    def test_fragment_dropped(self):
        self.assertEqual(
            normalise_url("https://example.test/x#frag1"),
            "https://example.test/x",
        )

    def test_empty_path_becomes_slash(self):
        self.assertEqual(normalise_url("https://example.test"), "https://example.test/")

    def test_scheme_and_host_lowercased(self):
        self.assertEqual(
            normalise_url("HTTPS://Example.TEST/Path"),
            "https://example.test/Path",
        )

    def test_query_kept_by_default(self):
        self.assertEqual(
            normalise_url("https://example.test/a?x=1"),
            "https://example.test/a?x=1",
        )

    def test_query_dropped_when_ignored(self):
        self.assertEqual(
            normalise_url("https://example.test/a?x=1", ignore_query=True),
            "https://example.test/a",
        )

    def test_non_http_rejected(self):
        self.assertIsNone(normalise_url("ftp://example.test/file"))
        self.assertIsNone(normalise_url("mailto:someone@example.test"))

    def test_relative_rejected(self):
        self.assertIsNone(normalise_url("/about"))

    def test_bad_port_rejected(self):
        self.assertIsNone(normalise_url("https://example.test:99999999/"))


class TestResolveHref(unittest.TestCase):
    PAGE = "https://example.test/blog/post.html"

    def test_relative(self):
        self.assertEqual(
            resolve_href("../about", self.PAGE), "https://example.test/about"
        )

    def test_root_relative(self):
        self.assertEqual(resolve_href("/a", self.PAGE), "https://example.test/a")

    def test_absolute_other_host_kept(self):
        self.assertEqual(
            resolve_href("https://other.test/c", self.PAGE), "https://other.test/c"
        )

    def test_fragment_stripped(self):
        self.assertEqual(
            resolve_href("/a#top", self.PAGE), "https://example.test/a"
        )

    def test_skipped_prefixes(self):
        for href in ("#top", "mailto:a@b.test", "tel:+123", "javascript:void(0)",
                     "data:image/png;base64,xx", "", "   "):
            with self.subTest(href=href):
                self.assertIsNone(resolve_href(href, self.PAGE))

    def test_non_http_scheme_skipped(self):
        self.assertIsNone(resolve_href("ftp://example.test/f", self.PAGE))


class TestScopeHelpers(unittest.TestCase):
    def test_host_of(self):
        self.assertEqual(host_of("https://Example.test:8443/a"), "example.test:8443")

    def test_path_scope_matches_prefix_and_children(self):
        self.assertTrue(in_path_scope("https://x.test/blog", "/blog"))
        self.assertTrue(in_path_scope("https://x.test/blog/post", "/blog"))
        self.assertTrue(in_path_scope("https://x.test/blog/post", "/blog/"))

    def test_path_scope_rejects_sibling_prefix(self):
        self.assertFalse(in_path_scope("https://x.test/blogroll", "/blog"))
        self.assertFalse(in_path_scope("https://x.test/", "/blog"))

    def test_empty_prefix_allows_everything(self):
        self.assertTrue(in_path_scope("https://x.test/anything", ""))


class TestUrlToFilename(unittest.TestCase):
    def test_root(self):
        self.assertEqual(url_to_filename("https://x.test/"), "index")

    def test_path_flattened(self):
        self.assertEqual(url_to_filename("https://x.test/a/b/c"), "a_b_c")

    def test_query_disambiguates(self):
        one = url_to_filename("https://x.test/list?page=1")
        two = url_to_filename("https://x.test/list?page=2")
        self.assertNotEqual(one, two)
        self.assertTrue(one.startswith("list_q"))

    def test_invalid_characters_replaced(self):
        name = url_to_filename('https://x.test/a:b*c"d')
        for ch in ':*"':
            self.assertNotIn(ch, name)

    def test_length_capped(self):
        self.assertLessEqual(len(url_to_filename("https://x.test/" + "a" * 500)), 200)


if __name__ == "__main__":
    unittest.main()
