"""
Tool dispatcher.

Validates tool arguments, routes calls to the rendering pipeline and turns
every failure into a flagged ToolResponse so one bad request never takes the
service down.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from .errors import ArgumentError, MdxPdfError, UnknownOperationError
from .models import ConversionRequest, ConversionResult, ToolDefinition, ToolResponse
from .pipeline import MarkdownPdfPipeline

logger = logging.getLogger(__name__)

CREATE_PDF_TOOL = ToolDefinition(
    name="create_pdf",
    description=(
        "Creates a PDF document from the provided Markdown source code. Supports modern "
        "Markdown features including tables, checkboxes, emojis, GitHub-flavored syntax, "
        "mermaid diagrams, and inline/display math using $ and $$."
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "file_name": {
                "type": "string",
                "description": "The name of the output PDF file (extension will be added automatically)",
            },
            "markdown_source": {
                "type": "string",
                "description": "The Markdown source code to convert into a PDF document. Use $ for inline math and $$ for display math.",
            },
        },
        "required": ["file_name", "markdown_source"],
    },
)

TOOLS = (CREATE_PDF_TOOL,)


def _summarize_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "arguments"
        parts.append(f"{location}: {err.get('msg')}")
    return "; ".join(parts)


def parse_create_pdf_arguments(arguments: Dict[str, Any]) -> ConversionRequest:
    """Validate raw tool arguments into a ConversionRequest."""
    try:
        return ConversionRequest.model_validate(arguments)
    except ValidationError as e:
        raise ArgumentError(
            f"Invalid arguments for create_pdf: {_summarize_validation_error(e)}"
        ) from e


async def _create_pdf(pipeline: MarkdownPdfPipeline, arguments: Dict[str, Any]) -> ConversionResult:
    request = parse_create_pdf_arguments(arguments)
    return await pipeline.create_pdf(request)


ToolHandler = Callable[[MarkdownPdfPipeline, Dict[str, Any]], Awaitable[ConversionResult]]

_HANDLERS: Dict[str, ToolHandler] = {
    CREATE_PDF_TOOL.name: _create_pdf,
}


async def call_tool(
    pipeline: MarkdownPdfPipeline,
    name: str,
    arguments: Optional[Dict[str, Any]],
) -> ToolResponse:
    """
    Dispatch a tool call and build its response payload.

    Args:
        pipeline: Rendering pipeline serving create_pdf
        name: Requested tool name
        arguments: Raw tool arguments

    Returns:
        ToolResponse with the pretty-printed result, or a failure-flagged
        response carrying the error message
    """
    try:
        if arguments is None:
            raise ArgumentError("No arguments provided")

        handler = _HANDLERS.get(name)
        if handler is None:
            raise UnknownOperationError(f"Unknown tool: {name}")

        result = await handler(pipeline, arguments)
        return ToolResponse.text(json.dumps(result.model_dump(), indent=2))

    except UnknownOperationError as e:
        logger.warning(str(e))
        return ToolResponse.text(str(e), is_error=True)
    except MdxPdfError as e:
        logger.error(f"Tool {name} failed: {type(e).__name__}: {str(e)}")
        return ToolResponse.text(f"Error: {str(e)}", is_error=True)
    except Exception as e:
        logger.exception(f"Unexpected failure in tool {name}")
        return ToolResponse.text(f"Error: {str(e)}", is_error=True)
