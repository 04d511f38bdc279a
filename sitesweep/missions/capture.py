"""
Page capture: render crawled pages to PDF and/or PNG after the crawl.

Rendering is delegated to a :class:`PageCapturer`.  The default
:class:`PlaywrightCapturer` drives headless Chromium (``pip install
sitesweep[capture] && playwright install chromium``) and converts to CMYK
with Ghostscript or ImageMagick when asked.
"""

import shutil
import subprocess
import threading
from pathlib import Path
from typing import Protocol

from sitesweep.config import CaptureFormat, Mission
from sitesweep.core.fetcher import Success
from sitesweep.core.state import CrawlSession
from sitesweep.missions.base import MissionHandler
from sitesweep.utils.log import log
from sitesweep.utils.url import url_to_filename

CAPTURE_TIMEOUT = 60.0      # seconds per page
SETTLE_DELAY = 2.0          # let late scripts and fonts finish
MAX_SCREENSHOT_HEIGHT = 16384
VIEWPORT = {"width": 1366, "height": 900}
PDF_MARGIN = {"top": "0.4in", "bottom": "0.4in", "left": "0.4in", "right": "0.4in"}

GHOSTSCRIPT_CMYK_ARGS = (
    "-dSAFER",
    "-dBATCH",
    "-dNOPAUSE",
    "-dNOCACHE",
    "-sDEVICE=pdfwrite",
    "-sColorConversionStrategy=CMYK",
    "-dProcessColorModel=/DeviceCMYK",
    "-dAutoRotatePages=/None",
)


class CaptureError(Exception):
    """A page could not be rendered or converted."""


class PageCapturer(Protocol):
    def capture(
        self, url: str, output_dir: Path, fmt: CaptureFormat, stem: str | None = None
    ) -> list[Path]:
        ...

    def close(self) -> None:
        ...


def output_paths(
    url: str, output_dir: Path, fmt: CaptureFormat, stem: str | None = None
) -> list[Path]:
    """Files a capture of *url* in *fmt* produces, named after *stem* when
    given and after the URL otherwise."""
    stem = stem or url_to_filename(url)
    return {
        CaptureFormat.PDF: [output_dir / f"{stem}.pdf"],
        CaptureFormat.PNG: [output_dir / f"{stem}.png"],
        CaptureFormat.BOTH: [output_dir / f"{stem}.pdf", output_dir / f"{stem}.png"],
        CaptureFormat.CMYK_PDF: [output_dir / f"{stem}_cmyk.pdf"],
        CaptureFormat.CMYK_TIFF: [output_dir / f"{stem}_cmyk.tiff"],
    }[fmt]


def _run_tool(cmd: list[str]) -> None:
    try:
        subprocess.run(cmd, check=True, capture_output=True, timeout=CAPTURE_TIMEOUT * 2)
    except subprocess.CalledProcessError as exc:
        detail = exc.stderr.decode("utf-8", errors="replace").strip()
        raise CaptureError(f"{cmd[0]} failed: {detail or exc}") from exc
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise CaptureError(f"{cmd[0]} failed: {exc}") from exc


def convert_to_cmyk_pdf(src: Path, dest: Path) -> None:
    """RGB PDF -> CMYK PDF with Ghostscript."""
    gs = shutil.which("gs")
    if gs is None:
        raise CaptureError("ghostscript (gs) not found in PATH")
    _run_tool([gs, *GHOSTSCRIPT_CMYK_ARGS, f"-sOutputFile={dest}", str(src)])


def convert_to_cmyk_tiff(src: Path, dest: Path) -> None:
    """PNG -> LZW-compressed CMYK TIFF with ImageMagick 7 (``magick``) or 6."""
    magick = shutil.which("magick")
    if magick is not None:
        cmd = [magick, "convert"]
    else:
        convert = shutil.which("convert")
        if convert is None:
            raise CaptureError("imagemagick not found in PATH")
        cmd = [convert]
    _run_tool([*cmd, str(src), "-colorspace", "CMYK", "-compress", "LZW", str(dest)])


class PlaywrightCapturer:
    """Headless Chromium renderer; the browser starts on first use."""

    def __init__(self, timeout: float = CAPTURE_TIMEOUT, settle: float = SETTLE_DELAY) -> None:
        self.timeout = timeout
        self.settle = settle
        self._playwright = None
        self._browser = None

    def _ensure_browser(self):
        if self._browser is None:
            try:
                from playwright.sync_api import sync_playwright
            except ImportError as exc:
                raise CaptureError(
                    "Playwright is not installed: "
                    "pip install playwright && playwright install chromium"
                ) from exc
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(headless=True)
        return self._browser

    def capture(
        self, url: str, output_dir: Path, fmt: CaptureFormat, stem: str | None = None
    ) -> list[Path]:
        stem = stem or url_to_filename(url)
        targets = output_paths(url, output_dir, fmt, stem)
        if all(p.exists() for p in targets):
            log.debug("[CAPTURE] already captured: %s", url)
            return []
        output_dir.mkdir(parents=True, exist_ok=True)

        page = self._ensure_browser().new_page(viewport=VIEWPORT)
        try:
            page.goto(url, wait_until="load", timeout=self.timeout * 1000)
            page.wait_for_timeout(self.settle * 1000)

            if fmt.needs_pdf:
                pdf_path = (output_dir / f"{stem}_temp.pdf"
                            if fmt is CaptureFormat.CMYK_PDF
                            else output_dir / f"{stem}.pdf")
                page.pdf(path=str(pdf_path), format="Letter",
                         print_background=True, margin=PDF_MARGIN)

            if fmt.needs_screenshot:
                png_path = (output_dir / f"{stem}_temp.png"
                            if fmt is CaptureFormat.CMYK_TIFF
                            else output_dir / f"{stem}.png")
                height = page.evaluate("document.documentElement.scrollHeight")
                clip = None
                if height > MAX_SCREENSHOT_HEIGHT:
                    clip = {"x": 0, "y": 0, "width": VIEWPORT["width"],
                            "height": MAX_SCREENSHOT_HEIGHT}
                page.screenshot(path=str(png_path), full_page=True, clip=clip)
        except Exception as exc:
            raise CaptureError(f"render failed: {exc}") from exc
        finally:
            page.close()

        if fmt is CaptureFormat.CMYK_PDF:
            temp = output_dir / f"{stem}_temp.pdf"
            try:
                convert_to_cmyk_pdf(temp, targets[0])
            finally:
                temp.unlink(missing_ok=True)
        elif fmt is CaptureFormat.CMYK_TIFF:
            temp = output_dir / f"{stem}_temp.png"
            try:
                convert_to_cmyk_tiff(temp, targets[0])
            finally:
                temp.unlink(missing_ok=True)
        return targets

    def close(self) -> None:
        if self._browser is not None:
            self._browser.close()
            self._browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None


class CaptureMission(MissionHandler):
    """Collects fetched HTML pages and renders them once the crawl is over."""

    mission = Mission.CAPTURE

    def __init__(self, config, sink=None, capturer: PageCapturer | None = None) -> None:
        super().__init__(config, sink)
        self.capturer = capturer
        self._lock = threading.Lock()
        self._urls: list[str] = []

    @property
    def capture_dir(self) -> Path:
        return self.config.output_dir / "captures"

    @property
    def urls(self) -> list[str]:
        with self._lock:
            return list(self._urls)

    def handle_html(self, session: CrawlSession, page: Success) -> None:
        with self._lock:
            self._urls.append(page.url)

    def finish(self, session: CrawlSession) -> None:
        capturer = self.capturer or PlaywrightCapturer()
        fmt = self.config.capture_format
        urls = sorted(set(self.urls))
        log.info("[CAPTURE] rendering %d page(s) as %s into %s",
                 len(urls), fmt.value, self.capture_dir)
        try:
            for url in urls:
                if session.cancelled:
                    log.info("[CANCEL] capture stopped early")
                    break
                try:
                    files = capturer.capture(url, self.capture_dir, fmt)
                except CaptureError as exc:
                    session.stats.incr("errors")
                    log.warning("[CAPTURE] %s: %s", url, exc)
                    continue
                if files:
                    session.stats.incr("captures")
                    log.info("[CAPTURE] %s -> %s", url, ", ".join(p.name for p in files))
        finally:
            capturer.close()
            super().finish(session)
