"""
Form Property MCP Tools

Setters for component properties, validation rules, conditional visibility,
layout and options sources.
"""

from typing import Any

from mcp.types import CallToolResult

from formforge.core.constants import DEFAULT_COLUMNS
from formforge.services.mcp_server.tool_decorator import system_tool
from formforge.services.mcp_server.tool_registry import ToolCategory
from formforge.services.mcp_server.tool_result import run_operation

FORM_ID = {"type": "string", "description": "Target form ID"}
COMPONENT_ID = {"type": "string", "description": "Component ID"}


@system_tool(
    id="set_form_component_properties",
    name="Set Form Component Properties",
    description=(
        "Set arbitrary properties on a component. A null value removes the property. "
        "id, type and components are read-only."
    ),
    category=ToolCategory.PROPERTY,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "component_id": COMPONENT_ID,
            "properties": {
                "type": "object",
                "description": "Key/value pairs to set (null to delete a property)",
            },
        },
        "required": ["form_id", "component_id", "properties"],
    },
)
async def set_form_component_properties(
    context: Any,
    form_id: str,
    component_id: str,
    properties: dict[str, Any],
) -> CallToolResult:
    return run_operation(
        context,
        "set_form_component_properties",
        {"form_id": form_id, "component_id": component_id, "properties": properties},
    )


@system_tool(
    id="set_form_validation",
    name="Set Form Validation",
    description="Merge validation rules into a component's validate block.",
    category=ToolCategory.PROPERTY,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "component_id": COMPONENT_ID,
            "required": {"type": "boolean", "description": "Whether the field is required"},
            "min_length": {"type": "integer", "description": "Minimum string length"},
            "max_length": {"type": "integer", "description": "Maximum string length"},
            "min": {"type": "number", "description": "Minimum numeric value"},
            "max": {"type": "number", "description": "Maximum numeric value"},
            "pattern": {"type": "string", "description": "Regex pattern for validation"},
            "pattern_error_message": {"type": "string", "description": "Message shown when the pattern fails"},
            "validation_type": {"type": "string", "enum": ["email", "phone"]},
            "validation_error": {"type": "string", "description": "Custom error message"},
        },
        "required": ["form_id", "component_id"],
    },
)
async def set_form_validation(
    context: Any,
    form_id: str,
    component_id: str,
    required: bool | None = None,
    min_length: int | None = None,
    max_length: int | None = None,
    min: float | None = None,
    max: float | None = None,
    pattern: str | None = None,
    pattern_error_message: str | None = None,
    validation_type: str | None = None,
    validation_error: str | None = None,
) -> CallToolResult:
    return run_operation(
        context,
        "set_form_validation",
        {
            "form_id": form_id,
            "component_id": component_id,
            "required": required,
            "min_length": min_length,
            "max_length": max_length,
            "min": min,
            "max": max,
            "pattern": pattern,
            "pattern_error_message": pattern_error_message,
            "validation_type": validation_type,
            "validation_error": validation_error,
        },
    )


@system_tool(
    id="set_form_conditional",
    name="Set Form Conditional",
    description=(
        "Set a FEEL hide expression on a component (e.g. '=amount < 100'). "
        "Omit hide or pass an empty string to clear it."
    ),
    category=ToolCategory.PROPERTY,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "component_id": COMPONENT_ID,
            "hide": {"type": "string", "description": "FEEL expression; the field is hidden when truthy"},
        },
        "required": ["form_id", "component_id"],
    },
)
async def set_form_conditional(
    context: Any,
    form_id: str,
    component_id: str,
    hide: str | None = None,
) -> CallToolResult:
    return run_operation(
        context, "set_form_conditional", {"form_id": form_id, "component_id": component_id, "hide": hide}
    )


@system_tool(
    id="set_form_layout",
    name="Set Form Layout",
    description=f"Set a component's column span (1-{DEFAULT_COLUMNS}) and optionally its row.",
    category=ToolCategory.PROPERTY,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "component_id": COMPONENT_ID,
            "columns": {
                "type": "integer",
                "minimum": 1,
                "maximum": DEFAULT_COLUMNS,
                "description": f"Column span (1-{DEFAULT_COLUMNS})",
            },
            "row": {"type": "string", "description": "Row identifier shared by side-by-side components"},
        },
        "required": ["form_id", "component_id", "columns"],
    },
)
async def set_form_layout(
    context: Any,
    form_id: str,
    component_id: str,
    columns: int,
    row: str | None = None,
) -> CallToolResult:
    return run_operation(
        context,
        "set_form_layout",
        {"form_id": form_id, "component_id": component_id, "columns": columns, "row": row},
    )


@system_tool(
    id="set_form_options",
    name="Set Form Options",
    description=(
        "Set the options of a select, radio, checklist or taglist. Provide exactly one of: "
        "options (static list), values_key (input data key) or values_expression (FEEL)."
    ),
    category=ToolCategory.PROPERTY,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "component_id": COMPONENT_ID,
            "options": {
                "type": "array",
                "description": "Array of { label, value } static option objects",
                "items": {
                    "type": "object",
                    "properties": {"label": {"type": "string"}, "value": {"type": "string"}},
                    "required": ["label", "value"],
                },
            },
            "values_key": {"type": "string", "description": "Input data key holding the options"},
            "values_expression": {"type": "string", "description": "FEEL expression producing the options"},
        },
        "required": ["form_id", "component_id"],
    },
)
async def set_form_options(
    context: Any,
    form_id: str,
    component_id: str,
    options: list[dict[str, Any]] | None = None,
    values_key: str | None = None,
    values_expression: str | None = None,
) -> CallToolResult:
    return run_operation(
        context,
        "set_form_options",
        {
            "form_id": form_id,
            "component_id": component_id,
            "options": options,
            "values_key": values_key,
            "values_expression": values_expression,
        },
    )
