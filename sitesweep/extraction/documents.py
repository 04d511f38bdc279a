"""
Text extraction from PDF and DOCX bodies.

Any failure (truncated file, encrypted PDF, not really a zip) yields empty
text, so a malformed document is treated as "no match" by the callers.
"""

import io
import zipfile

from bs4 import BeautifulSoup
from pypdf import PdfReader

from sitesweep.utils.log import log


def pdf_to_text(data: bytes) -> str:
    """Extract the text of every page of a PDF using :mod:`pypdf`."""
    try:
        reader = PdfReader(io.BytesIO(data))
    except Exception as exc:
        log.debug("PDF parse failed: %s", exc)
        return ""

    chunks: list[str] = []
    for idx, page in enumerate(reader.pages):
        try:
            extracted = page.extract_text() or ""
        except Exception as exc:
            log.debug("PDF page %d extract failed: %s", idx, exc)
            extracted = ""
        if extracted:
            chunks.append(extracted.strip())
    return "\n\n".join(chunks)


def docx_to_text(data: bytes) -> str:
    """Paragraph text of ``word/document.xml``, one paragraph per line."""
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            xml = zf.read("word/document.xml")
        soup = BeautifulSoup(xml, "xml")
    except Exception as exc:
        log.debug("DOCX parse failed: %s", exc)
        return ""

    paragraphs = []
    for para in soup.find_all("w:p"):
        text = "".join(t.get_text() for t in para.find_all("w:t"))
        if text:
            paragraphs.append(text)
    return "\n".join(paragraphs)


def contains_text_in_pdf(data: bytes, target: str) -> bool:
    return bool(target) and target.lower() in pdf_to_text(data).lower()


def contains_text_in_docx(data: bytes, target: str) -> bool:
    return bool(target) and target.lower() in docx_to_text(data).lower()
