"""
Document materialization - preamble + markdown body to PDF on disk.

Persists the rendered document as <file_name>.md in the output directory,
converts it to HTML with the configured markdown-it parser, and prints it to
<file_name>.pdf with Playwright/Chromium under a bounded timeout.
"""

import asyncio
import html
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from markdown_it import MarkdownIt

from .config import LayoutConfig, MdxPdfSettings
from .errors import ConversionError, DocumentIOError, MdxPdfError
from .extensions import build_markdown_parser
from .preamble import PREAMBLE, RENDERED_FLAG

logger = logging.getLogger(__name__)


class PdfEngine(ABC):
    """Turns a complete HTML document into PDF bytes."""

    @abstractmethod
    async def print_pdf(self, html_document: str, layout: LayoutConfig) -> bytes:
        ...


class PlaywrightPdfEngine(PdfEngine):
    """
    Headless Chromium conversion engine.

    Each call launches its own browser; no instances are pooled or shared
    between requests. The browser is closed even when the call is cancelled.
    """

    def __init__(self, headless: bool = True):
        self.headless = headless

    async def print_pdf(self, html_document: str, layout: LayoutConfig) -> bytes:
        # Import here to avoid loading Playwright on startup
        from playwright.async_api import async_playwright

        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=self.headless)
            try:
                page = await browser.new_page()
                page.set_default_timeout(layout.timeout_ms)

                await page.set_content(html_document, wait_until="networkidle")
                # Math typesetting and diagram drawing must finish before capture
                await page.wait_for_function(f"window.{RENDERED_FLAG} === true")

                pdf_bytes = await page.pdf(
                    format=layout.page_format,
                    print_background=layout.print_background,
                    margin=layout.margins,
                )
            finally:
                await browser.close()

        return pdf_bytes


def build_html_document(
    body_html: str,
    stylesheet_css: str,
    body_class: tuple = ("markdown-body",),
    title: str = "Document",
) -> str:
    """
    Build complete HTML document for PDF generation with embedded styles.

    Args:
        body_html: HTML rendered from the staging markdown (preamble included)
        stylesheet_css: Contents of the configured stylesheet
        body_class: CSS classes for the content wrapper
        title: Document title

    Returns:
        Complete HTML document string
    """
    classes = " ".join(body_class)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{html.escape(title)}</title>
    <style>
{stylesheet_css}
    </style>
</head>
<body class="{html.escape(classes)}">
{body_html}
</body>
</html>
"""


def _write_staging(staging_path: Path, output_path: Path, document: str) -> None:
    try:
        staging_path.parent.mkdir(parents=True, exist_ok=True)
        staging_path.write_text(document, encoding="utf-8")
        # A failed render must not leave an earlier PDF looking current
        output_path.unlink(missing_ok=True)
    except OSError as e:
        raise DocumentIOError(f"Failed to write staging file {staging_path}: {e}") from e


def _read_text(path: Path, what: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentIOError(f"Failed to read {what} {path}: {e}") from e


def _write_pdf(output_path: Path, pdf_bytes: bytes) -> None:
    partial_path = output_path.with_name(output_path.name + ".part")
    try:
        partial_path.write_bytes(pdf_bytes)
        os.replace(partial_path, output_path)
    except OSError as e:
        partial_path.unlink(missing_ok=True)
        raise DocumentIOError(f"Failed to write PDF {output_path}: {e}") from e


class DocumentMaterializer:
    """Renders preprocessed markdown to a PDF inside the output directory."""

    def __init__(
        self,
        settings: MdxPdfSettings,
        engine: Optional[PdfEngine] = None,
        parser: Optional[MarkdownIt] = None,
    ):
        self.settings = settings
        self.layout = settings.layout
        self.engine = engine or PlaywrightPdfEngine(headless=settings.playwright_headless)
        self.parser = parser or build_markdown_parser()

    def staging_path(self, file_name: str) -> Path:
        return self.settings.save_path / f"{file_name}.md"

    def output_path(self, file_name: str) -> Path:
        return self.settings.save_path / f"{file_name}.pdf"

    async def render_html(self, staging_path: Path, title: str) -> str:
        """Convert the staging markdown file into a standalone HTML document."""
        markdown_text = await asyncio.to_thread(_read_text, staging_path, "staging file")
        stylesheet_css = await asyncio.to_thread(
            _read_text, self.layout.stylesheet_path, "stylesheet"
        )
        body_html = self.parser.render(markdown_text)
        return build_html_document(body_html, stylesheet_css, self.layout.body_class, title)

    async def materialize(self, file_name: str, body: str) -> Path:
        """
        Render preamble + body to <file_name>.pdf.

        Args:
            file_name: Validated artifact stem
            body: Preprocessed markdown body

        Returns:
            Path of the written PDF

        Raises:
            DocumentIOError: staging, stylesheet or PDF write failure
            ConversionError: engine failure, empty output or timeout
        """
        staging_path = self.staging_path(file_name)
        output_path = self.output_path(file_name)

        await asyncio.to_thread(_write_staging, staging_path, output_path, PREAMBLE + body)
        logger.info(f"Wrote staging document {staging_path}")

        html_document = await self.render_html(staging_path, title=file_name)

        logger.info(
            f"Starting PDF render (format={self.layout.page_format}, "
            f"timeout={self.layout.timeout_ms}ms)"
        )
        try:
            pdf_bytes = await asyncio.wait_for(
                self.engine.print_pdf(html_document, self.layout),
                timeout=self.layout.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"PDF rendering timed out for {file_name}")
            raise ConversionError(f"Rendering timed out after {self.layout.timeout_ms}ms")
        except MdxPdfError:
            raise
        except Exception as e:
            logger.error(f"PDF rendering failed for {file_name}: {str(e)}")
            raise ConversionError(f"Rendering failed: {str(e)}") from e

        if not pdf_bytes:
            raise ConversionError("Rendering produced an empty PDF")

        await asyncio.to_thread(_write_pdf, output_path, pdf_bytes)
        logger.info(f"Wrote {len(pdf_bytes)} byte PDF to {output_path}")
        return output_path
