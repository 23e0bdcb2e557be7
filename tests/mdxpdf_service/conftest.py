"""
Pytest fixtures for MDX-PDF service tests.

Settings point at a per-test temporary output directory and the conversion
engine is replaced with in-process fakes, so no Chromium is launched.
"""

import asyncio

import pytest

from mdxpdf_service.config import LayoutConfig, MdxPdfSettings
from mdxpdf_service.materializer import DocumentMaterializer, PdfEngine
from mdxpdf_service.pipeline import MarkdownPdfPipeline

FAKE_PDF = b"%PDF-1.4 fake pdf content"


class FakeEngine(PdfEngine):
    """Records every HTML document it is asked to print."""

    def __init__(self, result: bytes = FAKE_PDF):
        self.result = result
        self.calls = []

    async def print_pdf(self, html_document: str, layout: LayoutConfig) -> bytes:
        self.calls.append((html_document, layout))
        return self.result


class SlowEngine(PdfEngine):
    """Never finishes within any sane timeout."""

    def __init__(self):
        self.cancelled = False

    async def print_pdf(self, html_document: str, layout: LayoutConfig) -> bytes:
        try:
            await asyncio.sleep(60)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return FAKE_PDF


class FailingEngine(PdfEngine):
    async def print_pdf(self, html_document: str, layout: LayoutConfig) -> bytes:
        raise RuntimeError("Browser crashed")


@pytest.fixture
def settings(tmp_path):
    """Settings writing into a temporary output directory."""
    return MdxPdfSettings(save_path=tmp_path / "output")


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def slow_engine():
    return SlowEngine()


@pytest.fixture
def failing_engine():
    return FailingEngine()


@pytest.fixture
def empty_engine():
    return FakeEngine(result=b"")


@pytest.fixture
def materializer(settings, fake_engine):
    return DocumentMaterializer(settings, engine=fake_engine)


@pytest.fixture
def pipeline(settings, materializer):
    return MarkdownPdfPipeline(settings, materializer=materializer)
