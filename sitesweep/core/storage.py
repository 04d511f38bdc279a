"""
Result storage: CSV rows per mission event and the sitemap XML file.
"""

import csv
import threading
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from sitesweep.config import SitemapOptions
from sitesweep.utils.log import log

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"


class CsvResultSink:
    """Append-only CSV file, one row per event.

    The file is created on the first row so runs without findings leave no
    empty report behind.  The header is written only when the file is new,
    which lets consecutive batch runs share one report.
    """

    def __init__(self, path: Path, columns: Sequence[str]) -> None:
        self.path = Path(path)
        self.columns = tuple(columns)
        self.rows_written = 0
        self._lock = threading.Lock()
        self._fh = None
        self._writer = None

    def write(self, row: Sequence[object]) -> None:
        if len(row) != len(self.columns):
            raise ValueError(
                f"row has {len(row)} fields, expected {len(self.columns)}"
            )
        with self._lock:
            if self._writer is None:
                self._open()
            self._writer.writerow(row)
            self._fh.flush()
            self.rows_written += 1

    def close(self) -> None:
        with self._lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None
                self._writer = None

    def _open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        is_new = not self.path.exists() or self.path.stat().st_size == 0
        self._fh = self.path.open("a", newline="", encoding="utf-8")
        self._writer = csv.writer(self._fh)
        if is_new:
            self._writer.writerow(self.columns)
        log.debug("Writing results to %s", self.path)


@dataclass
class SitemapEntry:
    loc: str
    lastmod: str = ""


def write_sitemap(
    path: Path, entries: Iterable[SitemapEntry], opts: SitemapOptions
) -> int:
    """Write a sitemaps.org 0.9 ``urlset`` sorted by ``loc``.

    Returns the number of URLs written.
    """
    urlset = ET.Element("urlset", xmlns=SITEMAP_NS)
    count = 0
    for entry in sorted(entries, key=lambda e: e.loc):
        url_el = ET.SubElement(urlset, "url")
        ET.SubElement(url_el, "loc").text = entry.loc
        if opts.include_lastmod and entry.lastmod:
            ET.SubElement(url_el, "lastmod").text = entry.lastmod
        ET.SubElement(url_el, "changefreq").text = opts.changefreq
        ET.SubElement(url_el, "priority").text = f"{opts.priority:.1f}"
        count += 1

    tree = ET.ElementTree(urlset)
    ET.indent(tree, space="  ")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tree.write(path, encoding="UTF-8", xml_declaration=True)
    log.info("[SITEMAP] %d URL(s) written to %s", count, path.resolve())
    return count
