"""
formforge MCP Server

Exposes the form engine over MCP with FastMCP.

Architecture:
    - MCPContext: Holds the form engine every tool call runs against
    - RegistryTool: FastMCP Tool that delegates to a registered implementation
    - FormForgeMCPServer: Creates the FastMCP server with all registered tools

Usage:
    context = MCPContext(engine=FormEngine())
    server = FormForgeMCPServer(context)
    server.get_fastmcp_server().run()  # stdio
"""

import logging
from dataclasses import dataclass
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool, ToolResult

# Import tools module to trigger registration via @system_tool decorators
import formforge.services.mcp_server.tools  # noqa: F401

from formforge.services.form_engine import FormEngine
from formforge.services.mcp_server.tool_registry import (
    SystemToolMetadata,
    get_all_system_tools,
    ToolCategory,
    get_all_tool_ids,
    get_tools_by_category,
)
from formforge.services.mcp_server.tool_result import to_wire

logger = logging.getLogger(__name__)


@dataclass
class MCPContext:
    """
    Context for MCP tool execution.

    All MCP tools receive this context; it carries the engine that owns the
    open forms.
    """

    engine: FormEngine


class RegistryTool(Tool):
    """
    FastMCP Tool backed by a @system_tool implementation.

    Subclasses FastMCP's Tool to:
    1. Accept the registered JSON Schema directly via `parameters`
    2. Override `run()` to call the implementation with the server context

    Error results from the implementation are raised as ToolError so the
    client sees isError=True.
    """

    implementation: Any
    mcp_context: Any

    model_config = {"arbitrary_types_allowed": True}

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        result = await self.implementation(self.mcp_context, **arguments)
        wire = to_wire(result)
        if wire.get("isError"):
            raise ToolError(result.content[0].text if result.content else "Tool failed")
        return ToolResult(content=result.content, structured_content=wire.get("structuredContent"))


def build_tool(metadata: SystemToolMetadata, context: MCPContext) -> RegistryTool:
    """Wrap a registered tool for FastMCP."""
    return RegistryTool(
        name=metadata.id,
        title=metadata.name,
        description=metadata.description,
        parameters=metadata.input_schema,
        implementation=metadata.implementation,
        mcp_context=context,
    )


class FormForgeMCPServer:
    """
    formforge MCP server.

    Usage:
        server = FormForgeMCPServer(MCPContext(engine=FormEngine()))
        mcp = server.get_fastmcp_server()
        mcp.run()
    """

    def __init__(
        self,
        context: MCPContext,
        *,
        name: str = "formforge",
        enabled_tools: list[str] | None = None,
        categories: list[ToolCategory | str] | None = None,
    ):
        """
        Initialize the MCP server.

        Args:
            context: MCP context holding the form engine
            name: Server name (default: "formforge")
            enabled_tools: Restrict the server to these tool ids (default: all)
            categories: Restrict the server to tools in these categories
                (combined with enabled_tools when both are given)
        """
        self.context = context
        self._name = name
        self._enabled_tools: set[str] | None = set(enabled_tools) if enabled_tools else None
        if categories:
            in_categories = {
                metadata.id
                for category in categories
                for metadata in get_tools_by_category(ToolCategory(category))
            }
            if self._enabled_tools is None:
                self._enabled_tools = in_categories
            else:
                self._enabled_tools &= in_categories

        # FastMCP server (lazy initialized)
        self._fastmcp: FastMCP | None = None

    def get_fastmcp_server(self) -> FastMCP:
        """
        Get the FastMCP server, registering every enabled tool on first use.

        The server is cached for reuse.
        """
        if self._fastmcp is None:
            mcp = FastMCP(self._name)
            count = 0
            for metadata in get_all_system_tools():
                if self._enabled_tools is not None and metadata.id not in self._enabled_tools:
                    continue
                mcp.add_tool(build_tool(metadata, self.context))
                count += 1
                logger.debug(f"Registered tool: {metadata.id}")
            self._fastmcp = mcp
            logger.info(f"Created FastMCP server with {count} tools")
        return self._fastmcp

    def get_tool_names(self) -> list[str]:
        """Get the ids of the tools this server exposes."""
        all_tools = get_all_tool_ids()
        if self._enabled_tools is not None:
            return [t for t in all_tools if t in self._enabled_tools]
        return all_tools
