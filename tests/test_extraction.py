"""
Tests for the extraction package: HTML helpers, document text and link
extraction.
"""

import datetime
import io
import unittest
import zipfile

from sitesweep.core.fetcher import Success
from sitesweep.core.state import CrawlSession
from sitesweep.extraction.documents import (
    contains_text_in_docx,
    contains_text_in_pdf,
    docx_to_text,
    pdf_to_text,
)
from sitesweep.extraction.html_parser import (
    extract_anchor_hrefs,
    extract_image_srcs,
    visible_text,
)
from sitesweep.extraction.links import LinkExtractor, archive_urls, pagination_urls

from fakes import FakeHttp, make_config

TODAY = datetime.date(2025, 6, 1)


def make_docx(*paragraphs: str) -> bytes:
    body = "".join(
        f"<w:p><w:r><w:t>{text}</w:t></w:r></w:p>" for text in paragraphs
    )
    xml = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/'
        f'wordprocessingml/2006/main"><w:body>{body}</w:body></w:document>'
    )
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("word/document.xml", xml)
    return buf.getvalue()


def html_page(url, body, final_url=""):
    return Success(
        url=url, status=200, content_type="text/html",
        body=body.encode("utf-8"), final_url=final_url,
    )


class TestHtmlParser(unittest.TestCase):
    def test_anchor_hrefs_in_order(self):
        html = '<a href="/one">1</a><a>none</a><a href="  ">blank</a><a href=" /two ">2</a>'
        self.assertEqual(extract_anchor_hrefs(html), ["/one", "/two"])

    def test_image_srcs(self):
        html = '<img src="/a.png"><img alt="no src"><img src="b.jpg">'
        self.assertEqual(extract_image_srcs(html), ["/a.png", "b.jpg"])

    def test_visible_text_drops_scripts_and_head(self):
        html = (
            "<html><head><title>Title words</title></head><body>"
            "<script>var hidden = 1;</script><style>p {}</style>"
            "<p>Hello\n   world</p><noscript>enable js</noscript></body></html>"
        )
        self.assertEqual(visible_text(html), "Hello world")

    def test_bytes_input(self):
        self.assertEqual(extract_anchor_hrefs(b'<a href="/x">x</a>'), ["/x"])

    def test_garbage_does_not_raise(self):
        self.assertEqual(extract_anchor_hrefs(b"\x00\xff<<<a"), [])


class TestDocuments(unittest.TestCase):
    def test_docx_paragraphs(self):
        data = make_docx("First paragraph", "Second one")
        self.assertEqual(docx_to_text(data), "First paragraph\nSecond one")

    def test_docx_contains_is_case_insensitive(self):
        data = make_docx("Annual Report 2024")
        self.assertTrue(contains_text_in_docx(data, "annual report"))
        self.assertFalse(contains_text_in_docx(data, "quarterly"))

    def test_docx_not_a_zip(self):
        self.assertEqual(docx_to_text(b"plain text"), "")
        self.assertFalse(contains_text_in_docx(b"plain text", "plain"))

    def test_docx_missing_document_part(self):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("other.xml", "<x/>")
        self.assertEqual(docx_to_text(buf.getvalue()), "")

    def test_malformed_pdf(self):
        self.assertEqual(pdf_to_text(b"%PDF-1.4 truncated"), "")
        self.assertFalse(contains_text_in_pdf(b"%PDF-1.4 truncated", "truncated"))

    def test_empty_target_never_matches(self):
        self.assertFalse(contains_text_in_docx(make_docx("anything"), ""))


class TestArchiveUrls(unittest.TestCase):
    def test_current_year_page(self):
        found = archive_urls("https://example.test/news/2025/", TODAY)
        self.assertEqual(len(found), 13)
        self.assertEqual(found[0], "https://example.test/news/2025/january/")
        self.assertEqual(found[11], "https://example.test/news/2025/december/")
        self.assertEqual(found[12], "https://example.test/news/2024/")

    def test_past_year_page(self):
        found = archive_urls("https://example.test/news/2023/", TODAY)
        self.assertEqual(len(found), 12)
        self.assertNotIn("https://example.test/news/2022/", found)

    def test_month_page(self):
        found = archive_urls("https://example.test/press/2025/march/", TODAY)
        self.assertEqual(len(found), 24)
        self.assertIn("https://example.test/press/2025/july/", found)
        self.assertIn("https://example.test/press/2024/december/", found)

    def test_section_without_year(self):
        self.assertEqual(
            archive_urls("https://example.test/blog/", TODAY),
            [
                "https://example.test/blog/2025/",
                "https://example.test/blog/2024/",
                "https://example.test/blog/2023/",
            ],
        )

    def test_non_news_path(self):
        self.assertEqual(archive_urls("https://example.test/shop/2025/", TODAY), [])


class TestPaginationUrls(unittest.TestCase):
    def test_listing_page(self):
        found = pagination_urls("https://example.test/blog/")
        self.assertEqual(len(found), 18)
        self.assertEqual(found[0], "https://example.test/blog/?page=2")
        self.assertIn("https://example.test/blog/page/2/", found)
        self.assertEqual(found[-1], "https://example.test/blog/page/10/")

    def test_keeps_other_query_params(self):
        found = pagination_urls("https://example.test/list?sort=new")
        self.assertIn("https://example.test/list?sort=new&page=2", found)

    def test_already_paginated(self):
        self.assertEqual(pagination_urls("https://example.test/blog/?page=3"), [])
        self.assertEqual(pagination_urls("https://example.test/blog/page/3/"), [])

    def test_file_urls_ignored(self):
        self.assertEqual(pagination_urls("https://example.test/report.html"), [])


class TestLinkExtractor(unittest.TestCase):
    def _extractor(self, accept=None, discover_archives=False, **config):
        session = CrawlSession(make_config(**config), http=FakeHttp())
        return LinkExtractor(session, accept, discover_archives), session

    def test_resolves_against_final_url(self):
        extractor, _ = self._extractor()
        page = html_page(
            "https://example.test/old",
            '<a href="child">c</a><a href="/abs#frag">a</a>',
            final_url="https://example.test/dir/new",
        )
        self.assertEqual(
            extractor.extract(page),
            ["https://example.test/dir/child", "https://example.test/abs"],
        )

    def test_non_page_hrefs_dropped(self):
        extractor, session = self._extractor()
        page = html_page(
            "https://example.test/",
            '<a href="mailto:a@b.test">m</a><a href="javascript:void(0)">j</a>'
            '<a href="#top">t</a><a href="ftp://example.test/f">f</a>',
        )
        self.assertEqual(extractor.extract(page), [])
        self.assertEqual(session.stats["external_skipped"], 0)

    def test_cross_host_counted(self):
        extractor, session = self._extractor()
        page = html_page(
            "https://example.test/",
            '<a href="https://other.test/">o</a><a href="https://EXAMPLE.test/x">x</a>',
        )
        self.assertEqual(extractor.extract(page), ["https://EXAMPLE.test/x"])
        self.assertEqual(session.stats["external_skipped"], 1)

    def test_path_filter(self):
        extractor, session = self._extractor(path_filter="docs")
        page = html_page(
            "https://example.test/",
            '<a href="/docs">d</a><a href="/docs/api">a</a><a href="/docsearch">s</a>',
        )
        self.assertEqual(
            extractor.extract(page),
            ["https://example.test/docs", "https://example.test/docs/api"],
        )
        self.assertEqual(session.stats["path_skipped"], 1)

    def test_mission_veto(self):
        extractor, _ = self._extractor(accept=lambda url: not url.endswith(".pdf"))
        page = html_page(
            "https://example.test/", '<a href="/a.pdf">p</a><a href="/b">b</a>'
        )
        self.assertEqual(extractor.extract(page), ["https://example.test/b"])

    def test_archive_discovery(self):
        extractor, _ = self._extractor(discover_archives=True)
        page = html_page("https://example.test/news/", "<p>no links</p>")
        found = extractor.extract(page)
        self.assertIn("https://example.test/news/?page=2", found)
        self.assertIn(f"https://example.test/news/{datetime.date.today().year}/", found)


if __name__ == "__main__":
    unittest.main()
