"""
Pydantic models for the MDX-PDF service.

These models define the structure for tool calls, conversion requests and results.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ConversionRequest(BaseModel):
    """Markdown to PDF conversion request."""

    file_name: str = Field(
        ..., min_length=1,
        description="The name of the output PDF file (extension will be added automatically)"
    )
    markdown_source: str = Field(
        ..., min_length=1,
        description="The Markdown source code to convert into a PDF document. Use $ for inline math and $$ for display math."
    )


class ConversionResult(BaseModel):
    """Caller-facing result of a successful conversion."""

    file_name: str
    download_url: str


class ToolDefinition(BaseModel):
    """A tool exposed by the dispatcher, with its JSON input schema."""

    name: str
    description: str
    inputSchema: Dict[str, Any]


class ToolListResponse(BaseModel):
    tools: List[ToolDefinition]


class ToolCallRequest(BaseModel):
    """Request body for invoking a tool by name."""

    name: str = Field(..., description="Tool name, e.g. 'create_pdf'")
    arguments: Optional[Dict[str, Any]] = Field(None, description="Tool arguments")


class TextContent(BaseModel):
    type: str = "text"
    text: str


class ToolResponse(BaseModel):
    """Uniform tool call payload; failures are flagged, never raised."""

    content: List[TextContent]
    isError: bool = False

    @classmethod
    def text(cls, text: str, is_error: bool = False) -> "ToolResponse":
        return cls(content=[TextContent(text=text)], isError=is_error)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    timestamp: datetime
    playwright_ready: bool = True
    playwright_error: Optional[str] = None
    output_dir: str
