"""
MCP Tool Result Helpers

Standard helpers for building CallToolResult objects with proper
content (human-readable) and structuredContent (machine-parseable),
plus the shared path every tool uses to call the form engine.
"""

import logging
from typing import Any, Callable

from mcp.types import CallToolResult, TextContent

from formforge.core.exceptions import ExportBlockedError, FormEngineError

logger = logging.getLogger(__name__)


def success_result(display_text: str, data: dict[str, Any]) -> CallToolResult:
    """
    Create a successful tool result with display text and structured data.

    Args:
        display_text: Human-readable text for display in CLI/UI
        data: Structured data dict for LLM parsing

    Returns:
        CallToolResult with content and structuredContent
    """
    return CallToolResult(
        content=[TextContent(type="text", text=display_text)],
        structuredContent=data,
        isError=False,
    )


def error_result(error_message: str, extra_data: dict[str, Any] | None = None) -> CallToolResult:
    """
    Create an error tool result.

    Args:
        error_message: Human-readable error description
        extra_data: Optional additional data to include in structuredContent

    Returns:
        CallToolResult with isError=True
    """
    data = {"error": error_message}
    if extra_data:
        data.update(extra_data)

    return CallToolResult(
        content=[TextContent(type="text", text=f"Error: {error_message}")],
        structuredContent=data,
        isError=True,
    )


def to_wire(result: CallToolResult) -> dict[str, Any]:
    """Wire (camelCase) form of a tool result: content, structuredContent, isError."""
    return result.model_dump(mode="json", by_alias=True)


def run_operation(
    context: Any,
    operation: str,
    arguments: dict[str, Any],
    display_text: str | Callable[[dict[str, Any]], str] | None = None,
) -> CallToolResult:
    """
    Execute an engine operation and wrap the outcome as a tool result.

    None-valued arguments are dropped so the operation's own defaults apply.
    Engine errors become error results; anything else is logged with its
    traceback and reported as an error result too.
    """
    args = {name: value for name, value in arguments.items() if value is not None}
    logger.info(f"MCP {operation} called with {sorted(args)}")

    try:
        result = context.engine.execute(operation, args)
    except ExportBlockedError as e:
        return error_result(e.message, {"issues": e.issues})
    except FormEngineError as e:
        return error_result(e.message)
    except Exception as e:
        logger.exception(f"Error running {operation} via MCP: {e}")
        return error_result(f"Error running {operation}: {str(e)}")

    if callable(display_text):
        display_text = display_text(result)
    return success_result(display_text or result.get("message") or f"{operation} completed", result)
