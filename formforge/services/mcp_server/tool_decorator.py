"""
Tool Decorator

@system_tool registers an async function as an MCP tool. The tool id doubles
as the engine operation name the function forwards to.

The input schema is checked against the function signature when the module
is imported: every schema property must be a keyword parameter, every
parameter (after the context) must be described in the schema, and required
properties must be parameters without a default. A tool whose schema and
signature drift apart fails at import, not on the first call.
"""

import inspect
from functools import wraps
from typing import Any, Callable, Coroutine, TypeVar

from formforge.services.mcp_server.tool_registry import (
    SystemToolMetadata,
    ToolCategory,
    ToolReturnType,
    register_tool,
)

F = TypeVar("F", bound=Callable[..., Coroutine[Any, Any, ToolReturnType]])


def check_schema_signature(tool_id: str, func: Callable[..., Any], input_schema: dict[str, Any]) -> None:
    """
    Check that a tool's JSON schema matches its implementation's parameters.

    Raises:
        ValueError: The schema and the signature disagree
    """
    params = list(inspect.signature(func).parameters.values())[1:]  # first is the context
    names = {p.name for p in params}
    without_default = {p.name for p in params if p.default is inspect.Parameter.empty}

    properties = set(input_schema.get("properties", {}))
    required = set(input_schema.get("required", []))

    if properties - names:
        raise ValueError(f"Tool '{tool_id}' schema describes unknown parameters: {sorted(properties - names)}")
    if names - properties:
        raise ValueError(f"Tool '{tool_id}' parameters missing from schema: {sorted(names - properties)}")
    if required != without_default:
        raise ValueError(
            f"Tool '{tool_id}' required properties {sorted(required)} "
            f"do not match parameters without defaults {sorted(without_default)}"
        )


def system_tool(
    id: str,
    name: str,
    description: str,
    *,
    category: ToolCategory = ToolCategory.FORM,
    input_schema: dict[str, Any] | None = None,
) -> Callable[[F], F]:
    """
    Decorator that registers a function as an MCP tool.

    Usage:
        @system_tool(
            id="delete_form",
            name="Delete Form",
            description="Delete a form by ID",
            category=ToolCategory.FORM,
            input_schema={
                "type": "object",
                "properties": {
                    "form_id": {"type": "string", "description": "Form ID"},
                },
                "required": ["form_id"],
            },
        )
        async def delete_form(context: MCPContext, form_id: str) -> CallToolResult:
            return run_operation(context, "delete_form", {"form_id": form_id})

    Args:
        id: Unique tool identifier, also the engine operation name
        name: Human-readable name
        description: Description shown to LLM
        category: Tool category for grouping
        input_schema: JSON Schema for tool parameters (defaults to no parameters)
    """

    def decorator(func: F) -> F:
        schema = input_schema or {"type": "object", "properties": {}, "required": []}
        check_schema_signature(id, func, schema)

        metadata = SystemToolMetadata(
            id=id,
            name=name,
            description=description,
            category=category,
            input_schema=schema,
            implementation=func,
        )
        register_tool(metadata)

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> ToolReturnType:
            return await func(*args, **kwargs)

        wrapper._tool_metadata = metadata  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator
