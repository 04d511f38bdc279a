"""HTML, PDF and DOCX content extraction."""

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

__all__ = [
    "contains_text_in_docx",
    "contains_text_in_pdf",
    "docx_to_text",
    "pdf_to_text",
    "extract_anchor_hrefs",
    "extract_image_srcs",
    "visible_text",
    "LinkExtractor",
    "archive_urls",
    "pagination_urls",
]
