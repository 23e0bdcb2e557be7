"""
Unit tests for document materialization.

Covers staging file persistence, HTML assembly, atomic PDF output, timeout
bounds and error mapping. Playwright is mocked throughout.
"""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mdxpdf_service.config import LayoutConfig, MdxPdfSettings
from mdxpdf_service.errors import ConversionError, DocumentIOError
from mdxpdf_service.materializer import (
    DocumentMaterializer,
    PlaywrightPdfEngine,
    build_html_document,
)
from mdxpdf_service.preamble import PREAMBLE, RENDERED_FLAG

FAKE_PDF = b"%PDF-1.4 fake pdf content"


class TestBuildHtmlDocument:

    def test_embeds_stylesheet_and_body_class(self):
        html = build_html_document("<p>Hi</p>", "body { color: red; }", ("markdown-body", "wide"))
        assert html.startswith("<!DOCTYPE html>")
        assert "body { color: red; }" in html
        assert '<body class="markdown-body wide">' in html
        assert "<p>Hi</p>" in html

    def test_title_is_escaped(self):
        html = build_html_document("", "", title="a <b> & c")
        assert "<title>a &lt;b&gt; &amp; c</title>" in html


class TestMaterialize:

    @pytest.mark.asyncio
    async def test_writes_staging_file_and_pdf(self, materializer, settings):
        pdf_path = await materializer.materialize("report", "# Hello\n")

        staging = settings.save_path / "report.md"
        assert staging.read_text(encoding="utf-8") == PREAMBLE + "# Hello\n"
        assert pdf_path == settings.save_path / "report.pdf"
        assert pdf_path.read_bytes() == FAKE_PDF
        assert not (settings.save_path / "report.pdf.part").exists()

    @pytest.mark.asyncio
    async def test_engine_receives_rendered_document(self, materializer, fake_engine):
        await materializer.materialize("report", "# Hello\n\n- [x] done\n")

        html_document, layout = fake_engine.calls[0]
        assert "<h1>Hello</h1>" in html_document
        assert '<body class="markdown-body">' in html_document
        assert ".markdown-body" in html_document  # bundled stylesheet embedded
        assert f"window.{RENDERED_FLAG} = true" in html_document
        assert layout.page_format == "A4"
        assert layout.margins == {"top": "1in", "right": "1in", "bottom": "1in", "left": "1in"}
        assert layout.timeout_ms == 30000

    @pytest.mark.asyncio
    async def test_rendering_is_deterministic(self, materializer, fake_engine):
        await materializer.materialize("same", "Text with :smile: and $x^2$\n")
        await materializer.materialize("same", "Text with :smile: and $x^2$\n")

        first, second = fake_engine.calls
        assert first[0] == second[0]

    @pytest.mark.asyncio
    async def test_creates_missing_output_directory(self, tmp_path, fake_engine):
        settings = MdxPdfSettings(save_path=tmp_path / "nested" / "dir")
        materializer = DocumentMaterializer(settings, engine=fake_engine)

        await materializer.materialize("doc", "text\n")

        assert (tmp_path / "nested" / "dir" / "doc.pdf").exists()


class TestMaterializeFailures:

    @pytest.mark.asyncio
    async def test_timeout_raises_conversion_error_within_bound(self, tmp_path, slow_engine):
        settings = MdxPdfSettings(save_path=tmp_path, render_timeout_ms=1000)
        materializer = DocumentMaterializer(settings, engine=slow_engine)

        started = time.monotonic()
        with pytest.raises(ConversionError) as exc_info:
            await materializer.materialize("slow", "# Slow\n")
        elapsed = time.monotonic() - started

        assert "timed out after 1000ms" in str(exc_info.value)
        assert elapsed < 5
        assert slow_engine.cancelled is True
        assert not (tmp_path / "slow.pdf").exists()
        # Staging file stays behind
        assert (tmp_path / "slow.md").exists()

    @pytest.mark.asyncio
    async def test_engine_failure_raises_conversion_error(self, settings, failing_engine):
        materializer = DocumentMaterializer(settings, engine=failing_engine)

        with pytest.raises(ConversionError, match="Rendering failed: Browser crashed"):
            await materializer.materialize("broken", "text\n")

        assert not (settings.save_path / "broken.pdf").exists()

    @pytest.mark.asyncio
    async def test_empty_pdf_is_rejected(self, settings, empty_engine):
        materializer = DocumentMaterializer(settings, engine=empty_engine)

        with pytest.raises(ConversionError, match="empty PDF"):
            await materializer.materialize("empty", "text\n")

        assert not (settings.save_path / "empty.pdf").exists()

    @pytest.mark.asyncio
    async def test_failed_render_removes_previous_pdf(self, settings, failing_engine):
        settings.save_path.mkdir(parents=True)
        stale = settings.save_path / "doc.pdf"
        stale.write_bytes(b"%PDF-old")
        materializer = DocumentMaterializer(settings, engine=failing_engine)

        with pytest.raises(ConversionError):
            await materializer.materialize("doc", "text\n")

        assert not stale.exists()

    @pytest.mark.asyncio
    async def test_unwritable_output_directory_raises_io_error(self, tmp_path, fake_engine):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        settings = MdxPdfSettings(save_path=blocker / "out")
        materializer = DocumentMaterializer(settings, engine=fake_engine)

        with pytest.raises(DocumentIOError, match="Failed to write staging file"):
            await materializer.materialize("doc", "text\n")

        assert fake_engine.calls == []

    @pytest.mark.asyncio
    async def test_missing_stylesheet_raises_io_error(self, tmp_path, fake_engine):
        settings = MdxPdfSettings(
            save_path=tmp_path,
            stylesheet_path=tmp_path / "missing.css",
        )
        materializer = DocumentMaterializer(settings, engine=fake_engine)

        with pytest.raises(DocumentIOError, match="stylesheet"):
            await materializer.materialize("doc", "text\n")


def _mock_playwright(mock_playwright, mock_page):
    mock_browser = AsyncMock()
    mock_browser.new_page = AsyncMock(return_value=mock_page)
    mock_playwright.return_value.__aenter__ = AsyncMock(
        return_value=MagicMock(
            chromium=MagicMock(
                launch=AsyncMock(return_value=mock_browser)
            )
        )
    )
    return mock_browser


class TestPlaywrightPdfEngine:
    """Tests for the Chromium engine with Playwright mocked."""

    @pytest.mark.asyncio
    @patch("playwright.async_api.async_playwright")
    async def test_prints_with_layout(self, mock_playwright):
        mock_page = AsyncMock()
        mock_page.set_default_timeout = MagicMock()
        mock_page.pdf = AsyncMock(return_value=b"%PDF-1.4 chromium")
        mock_browser = _mock_playwright(mock_playwright, mock_page)

        layout = LayoutConfig(timeout_ms=12000)
        pdf_bytes = await PlaywrightPdfEngine().print_pdf("<h1>Doc</h1>", layout)

        assert pdf_bytes == b"%PDF-1.4 chromium"
        mock_page.set_default_timeout.assert_called_once_with(12000)
        mock_page.set_content.assert_awaited_once_with("<h1>Doc</h1>", wait_until="networkidle")
        mock_page.wait_for_function.assert_awaited_once_with(f"window.{RENDERED_FLAG} === true")
        mock_page.pdf.assert_awaited_once_with(
            format="A4",
            print_background=True,
            margin={"top": "1in", "right": "1in", "bottom": "1in", "left": "1in"},
        )
        mock_browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("playwright.async_api.async_playwright")
    async def test_browser_closed_when_rendering_fails(self, mock_playwright):
        mock_page = AsyncMock()
        mock_page.set_default_timeout = MagicMock()
        mock_page.wait_for_function = AsyncMock(side_effect=RuntimeError("Timeout 30000ms exceeded"))
        mock_browser = _mock_playwright(mock_playwright, mock_page)

        with pytest.raises(RuntimeError):
            await PlaywrightPdfEngine().print_pdf("<h1>Doc</h1>", LayoutConfig())

        mock_browser.close.assert_awaited_once()
        mock_page.pdf.assert_not_awaited()
