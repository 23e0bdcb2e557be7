"""
Markdown to PDF rendering pipeline.

Per request: preprocess diagram fences, inject the client-side preamble,
materialize the PDF, and report where it can be downloaded. No state is kept
between requests apart from the files written to the output directory.
"""

import logging
import re
from typing import Optional
from urllib.parse import quote

from .config import MdxPdfSettings
from .errors import ArgumentError
from .materializer import DocumentMaterializer
from .models import ConversionRequest, ConversionResult
from .preprocessor import count_diagram_blocks, preprocess_markdown

logger = logging.getLogger(__name__)

MAX_FILE_NAME_LENGTH = 200
_SAFE_FILE_NAME_RE = re.compile(r"[\w][\w .-]*")


def validate_file_name(file_name: str) -> str:
    """
    Ensure a file name is a safe artifact stem inside the output directory.

    Args:
        file_name: Caller-supplied name (extension is added later)

    Returns:
        The unchanged file name

    Raises:
        ArgumentError: if the name is empty, too long, or could escape the
            output directory (separators, "..", leading dot, control chars)

    Example:
        >>> validate_file_name("quarterly report-v2")
        'quarterly report-v2'
    """
    if not file_name or not file_name.strip():
        raise ArgumentError("file_name must not be empty")
    if len(file_name) > MAX_FILE_NAME_LENGTH:
        raise ArgumentError(f"file_name exceeds {MAX_FILE_NAME_LENGTH} characters")
    if "/" in file_name or "\\" in file_name or "\x00" in file_name or ".." in file_name:
        raise ArgumentError(f"Unsafe file_name: {file_name!r}")
    if not _SAFE_FILE_NAME_RE.fullmatch(file_name):
        raise ArgumentError(
            f"Unsafe file_name: {file_name!r} (use letters, digits, spaces, '.', '-' or '_')"
        )
    return file_name


def build_conversion_result(file_name: str, base_url: str) -> ConversionResult:
    """Result descriptor pointing at <base_url>/<file_name>.pdf."""
    download_url = f"{base_url.rstrip('/')}/{quote(file_name)}.pdf"
    return ConversionResult(file_name=file_name, download_url=download_url)


class MarkdownPdfPipeline:
    """Preprocessing -> Injecting -> Materializing -> Reporting."""

    def __init__(
        self,
        settings: MdxPdfSettings,
        materializer: Optional[DocumentMaterializer] = None,
    ):
        self.settings = settings
        self.materializer = materializer or DocumentMaterializer(settings)

    async def create_pdf(self, request: ConversionRequest) -> ConversionResult:
        file_name = validate_file_name(request.file_name)
        languages = self.settings.diagram_language_list

        body = preprocess_markdown(request.markdown_source, languages)
        logger.info(
            f"Preprocessed {file_name}: {len(request.markdown_source)} chars, "
            f"{count_diagram_blocks(request.markdown_source, languages)} diagram block(s)"
        )

        pdf_path = await self.materializer.materialize(file_name, body)
        logger.info(f"PDF ready: {pdf_path}")

        return build_conversion_result(file_name, self.settings.download_base_url)
