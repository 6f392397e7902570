"""
Tool Registry

Single source of truth for MCP tool definitions.
All tool metadata is defined via the @system_tool decorator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Coroutine

from mcp.types import CallToolResult

ToolReturnType = CallToolResult


class ToolCategory(str, Enum):
    """Categories for grouping tools."""

    FORM = "form"
    COMPONENT = "component"
    PROPERTY = "property"


@dataclass
class SystemToolMetadata:
    """Complete metadata for a tool."""

    # Identity
    id: str  # e.g., "add_form_component"
    name: str  # e.g., "Add Form Component"
    description: str  # Tool description for LLM

    category: ToolCategory = ToolCategory.FORM

    # Schema for tool parameters
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []}
    )

    # Implementation reference (set by decorator)
    implementation: Callable[..., Coroutine[Any, Any, ToolReturnType]] | None = None


# Global registry - populated by @system_tool decorator
_SYSTEM_TOOL_REGISTRY: dict[str, SystemToolMetadata] = {}


def register_tool(metadata: SystemToolMetadata) -> None:
    """Register a tool in the global registry."""
    if metadata.id in _SYSTEM_TOOL_REGISTRY:
        raise ValueError(f"Tool '{metadata.id}' is already registered")
    _SYSTEM_TOOL_REGISTRY[metadata.id] = metadata


def get_all_system_tools() -> list[SystemToolMetadata]:
    """Get all registered tools."""
    return list(_SYSTEM_TOOL_REGISTRY.values())


def get_system_tool(tool_id: str) -> SystemToolMetadata | None:
    return _SYSTEM_TOOL_REGISTRY.get(tool_id)


def get_all_tool_ids() -> list[str]:
    return list(_SYSTEM_TOOL_REGISTRY.keys())


def get_tools_by_category(category: ToolCategory) -> list[SystemToolMetadata]:
    """Get registered tools in one category."""
    return [t for t in _SYSTEM_TOOL_REGISTRY.values() if t.category == category]
