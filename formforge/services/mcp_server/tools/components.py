"""
Form Component MCP Tools

Tools for adding, removing, moving, duplicating, retyping and reading
individual form components.
"""

from typing import Any

from mcp.types import CallToolResult

from formforge.core.constants import SUPPORTED_FIELD_TYPES
from formforge.services.mcp_server.tool_decorator import system_tool
from formforge.services.mcp_server.tool_registry import ToolCategory
from formforge.services.mcp_server.tool_result import run_operation

FORM_ID = {"type": "string", "description": "Target form ID"}
COMPONENT_ID = {"type": "string", "description": "Component ID"}
POSITION = {"type": "integer", "description": "Insert position index (default: append)"}


@system_tool(
    id="add_form_component",
    name="Add Form Component",
    description=(
        "Add a component (field) to a form, or duplicate an existing one. "
        "For keyed types (textfield, number, select, etc.) a key is generated from the label "
        "if not provided. Use parent_id to nest inside a group, dynamiclist or iframe. "
        "Use source_component_id to deep-clone an existing component instead."
    ),
    category=ToolCategory.COMPONENT,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "type": {
                "type": "string",
                "enum": list(SUPPORTED_FIELD_TYPES),
                "description": "Field type. Not required when using source_component_id.",
            },
            "key": {"type": "string", "description": "Data binding key (generated for keyed types)"},
            "label": {"type": "string", "description": "Display label"},
            "parent_id": {"type": "string", "description": "Parent container component ID"},
            "position": POSITION,
            "properties": {
                "type": "object",
                "description": "Additional field properties (description, validate, layout, etc.)",
            },
            "source_component_id": {
                "type": "string",
                "description": "Deep-clone this component (new IDs and keys) and insert the copy after it",
            },
        },
        "required": ["form_id"],
    },
)
async def add_form_component(
    context: Any,
    form_id: str,
    type: str | None = None,
    key: str | None = None,
    label: str | None = None,
    parent_id: str | None = None,
    position: int | None = None,
    properties: dict[str, Any] | None = None,
    source_component_id: str | None = None,
) -> CallToolResult:
    return run_operation(
        context,
        "add_form_component",
        {
            "form_id": form_id,
            "type": type,
            "key": key,
            "label": label,
            "parent_id": parent_id,
            "position": position,
            "properties": properties,
            "source_component_id": source_component_id,
        },
    )


@system_tool(
    id="delete_form_component",
    name="Delete Form Component",
    description="Delete a component by ID. Nested children of a container are removed too.",
    category=ToolCategory.COMPONENT,
    input_schema={
        "type": "object",
        "properties": {"form_id": FORM_ID, "component_id": COMPONENT_ID},
        "required": ["form_id", "component_id"],
    },
)
async def delete_form_component(context: Any, form_id: str, component_id: str) -> CallToolResult:
    return run_operation(
        context, "delete_form_component", {"form_id": form_id, "component_id": component_id}
    )


@system_tool(
    id="move_form_component",
    name="Move Form Component",
    description=(
        "Move a component to a new position. Supports reordering within the same parent "
        "or reparenting into a different container."
    ),
    category=ToolCategory.COMPONENT,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "component_id": COMPONENT_ID,
            "target_parent_id": {"type": "string", "description": "Target container ID (omit for root)"},
            "position": POSITION,
        },
        "required": ["form_id", "component_id"],
    },
)
async def move_form_component(
    context: Any,
    form_id: str,
    component_id: str,
    target_parent_id: str | None = None,
    position: int | None = None,
) -> CallToolResult:
    return run_operation(
        context,
        "move_form_component",
        {
            "form_id": form_id,
            "component_id": component_id,
            "target_parent_id": target_parent_id,
            "position": position,
        },
    )


@system_tool(
    id="duplicate_form_component",
    name="Duplicate Form Component",
    description="Deep-clone a component (new IDs and keys), inserting the copy after the original.",
    category=ToolCategory.COMPONENT,
    input_schema={
        "type": "object",
        "properties": {"form_id": FORM_ID, "component_id": COMPONENT_ID},
        "required": ["form_id", "component_id"],
    },
)
async def duplicate_form_component(context: Any, form_id: str, component_id: str) -> CallToolResult:
    return run_operation(
        context, "duplicate_form_component", {"form_id": form_id, "component_id": component_id}
    )


@system_tool(
    id="replace_form_component",
    name="Replace Form Component",
    description=(
        "Change a component's type while preserving compatible properties "
        "(e.g. textfield to textarea keeps key, label and validate). "
        "Properties incompatible with the new type are removed."
    ),
    category=ToolCategory.COMPONENT,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "component_id": COMPONENT_ID,
            "new_type": {"type": "string", "enum": list(SUPPORTED_FIELD_TYPES)},
        },
        "required": ["form_id", "component_id", "new_type"],
    },
)
async def replace_form_component(
    context: Any,
    form_id: str,
    component_id: str,
    new_type: str,
) -> CallToolResult:
    return run_operation(
        context,
        "replace_form_component",
        {"form_id": form_id, "component_id": component_id, "new_type": new_type},
    )


@system_tool(
    id="list_form_components",
    name="List Form Components",
    description=(
        "List components in a form, depth-first. Filter by type, or pass parent_id to list "
        "only the direct children of a container."
    ),
    category=ToolCategory.COMPONENT,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "type": {"type": "string", "description": "Only list components of this type"},
            "parent_id": {"type": "string", "description": "List children of this container"},
        },
        "required": ["form_id"],
    },
)
async def list_form_components(
    context: Any,
    form_id: str,
    type: str | None = None,
    parent_id: str | None = None,
) -> CallToolResult:
    return run_operation(
        context,
        "list_form_components",
        {"form_id": form_id, "type": type, "parent_id": parent_id},
        lambda r: f"Found {r['count']} component(s)",
    )


@system_tool(
    id="get_form_component_properties",
    name="Get Form Component Properties",
    description="Get all properties of a component (nested children are summarized as a count).",
    category=ToolCategory.COMPONENT,
    input_schema={
        "type": "object",
        "properties": {"form_id": FORM_ID, "component_id": COMPONENT_ID},
        "required": ["form_id", "component_id"],
    },
)
async def get_form_component_properties(context: Any, form_id: str, component_id: str) -> CallToolResult:
    return run_operation(
        context,
        "get_form_component_properties",
        {"form_id": form_id, "component_id": component_id},
        lambda r: f"Properties of {r['component_id']}",
    )
