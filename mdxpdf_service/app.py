"""
MDX-PDF Service - FastAPI application for Markdown to PDF conversion.

Exposes the create_pdf tool (listing and invocation) plus a direct
/create-pdf endpoint, backed by markdown-it-py and Playwright/Chromium.
"""

import logging
from datetime import datetime
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException

from . import __version__
from .config import get_settings, validate_config_on_startup
from .errors import ArgumentError, ConversionError, DocumentIOError
from .models import (
    ConversionRequest,
    ConversionResult,
    HealthResponse,
    ToolCallRequest,
    ToolListResponse,
    ToolResponse,
)
from .pipeline import MarkdownPdfPipeline
from .tools import TOOLS, call_tool

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="MDX-PDF Service",
    version=__version__,
    description="Markdown (math, diagrams, extended syntax) to PDF using Playwright/Chromium"
)

# Playwright readiness state
_playwright_ready = False
_playwright_error: Optional[str] = None


@lru_cache()
def get_pipeline() -> MarkdownPdfPipeline:
    """Shared pipeline built once from the cached settings."""
    return MarkdownPdfPipeline(get_settings())


# ============================================================================
# Startup Event - Validate configuration and Playwright
# ============================================================================

@app.on_event("startup")
async def validate_on_startup():
    """
    Validate configuration and Playwright/Chromium on startup.

    Invalid configuration raises and aborts startup. A broken Playwright
    install only marks the service unhealthy.
    """
    global _playwright_ready, _playwright_error

    validate_config_on_startup(get_settings())

    logger.info("MDX-PDF Service starting - validating Playwright installation...")

    try:
        from playwright.async_api import async_playwright

        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=get_settings().playwright_headless)
            page = await browser.new_page()
            await page.set_content("<html><body><h1>Test</h1></body></html>")
            test_pdf = await page.pdf(format="A4")
            await browser.close()

            if len(test_pdf) > 0:
                _playwright_ready = True
                logger.info(f"Playwright validation successful - generated {len(test_pdf)} byte test PDF")
            else:
                _playwright_error = "Test PDF generation returned empty result"
                logger.error(f"Playwright validation failed: {_playwright_error}")

    except Exception as e:
        _playwright_error = str(e)
        logger.error(f"Playwright validation failed: {_playwright_error}")
        logger.error("PDF generation will not work until this is resolved.")


# ============================================================================
# Health Check Endpoint
# ============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint for container orchestration.

    Returns HTTP 503 if Playwright validation failed on startup.
    """
    output_dir = str(get_settings().save_path)

    if not _playwright_ready:
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "timestamp": datetime.utcnow().isoformat(),
                "playwright_ready": False,
                "playwright_error": _playwright_error,
                "output_dir": output_dir,
                "message": "MDX-PDF service is unhealthy - Playwright/Chromium not available"
            }
        )

    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        playwright_ready=True,
        playwright_error=None,
        output_dir=output_dir,
    )


# ============================================================================
# Tool Endpoints
# ============================================================================

@app.get("/tools", response_model=ToolListResponse)
async def list_tools() -> ToolListResponse:
    """List the tools this service can run."""
    return ToolListResponse(tools=list(TOOLS))


@app.post("/tools/call", response_model=ToolResponse)
async def invoke_tool(
    request: ToolCallRequest,
    pipeline: MarkdownPdfPipeline = Depends(get_pipeline),
) -> ToolResponse:
    """
    Invoke a tool by name.

    Always returns HTTP 200; failures are reported with isError=true and a
    human-readable message.
    """
    logger.info(f"Tool call: {request.name}")
    return await call_tool(pipeline, request.name, request.arguments)


# ============================================================================
# PDF Generation Endpoint
# ============================================================================

@app.post("/create-pdf", response_model=ConversionResult)
async def create_pdf(
    request: ConversionRequest,
    pipeline: MarkdownPdfPipeline = Depends(get_pipeline),
) -> ConversionResult:
    """
    Convert Markdown to a PDF in the output directory.

    Args:
        request: File name stem and Markdown source

    Returns:
        File name and download URL of the generated PDF

    Raises:
        HTTPException: 400 for an unsafe file name, 500 for I/O or rendering failures
    """
    try:
        return await pipeline.create_pdf(request)
    except ArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (DocumentIOError, ConversionError) as e:
        logger.error(f"PDF generation failed: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
