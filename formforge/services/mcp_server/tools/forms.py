"""
Form MCP Tools

Tools for creating, importing, exporting and inspecting whole forms, plus
the engine-level tools: auto layout, batches, undo/redo and hint level.
"""

import json
from typing import Any

from mcp.types import CallToolResult

from formforge.services.mcp_server.tool_decorator import system_tool
from formforge.services.mcp_server.tool_registry import ToolCategory
from formforge.services.mcp_server.tool_result import run_operation

FORM_ID = {"type": "string", "description": "Target form ID"}


# =============================================================================
# Lifecycle
# =============================================================================


@system_tool(
    id="create_form",
    name="Create Form",
    description=(
        "Create a new form. Creates an empty form by default; pass clone_from_id to clone an "
        "existing form, or schema to import an existing form-js schema."
    ),
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Human-readable form name"},
            "execution_platform": {"type": "string", "description": "Target execution platform"},
            "execution_platform_version": {"type": "string", "description": "Target platform version"},
            "clone_from_id": {"type": "string", "description": "Clone this form instead of starting empty"},
            "schema": {
                "type": ["object", "string"],
                "description": "form-js schema (object or JSON string) to import",
            },
        },
        "required": [],
    },
)
async def create_form(
    context: Any,
    name: str | None = None,
    execution_platform: str | None = None,
    execution_platform_version: str | None = None,
    clone_from_id: str | None = None,
    schema: dict[str, Any] | str | None = None,
) -> CallToolResult:
    """Create an empty form, or clone / import one."""
    return run_operation(
        context,
        "create_form",
        {
            "name": name,
            "execution_platform": execution_platform,
            "execution_platform_version": execution_platform_version,
            "clone_from_id": clone_from_id,
            "schema": schema,
        },
        lambda r: r.get("message") or f"Created form {r['form_id']}",
    )


@system_tool(
    id="import_form_schema",
    name="Import Form Schema",
    description="Import an existing form-js schema (object or JSON string) as a new form.",
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {
            "schema": {"type": ["object", "string"], "description": "form-js schema"},
            "name": {"type": "string", "description": "Form name (defaults to the schema id)"},
        },
        "required": ["schema"],
    },
)
async def import_form_schema(
    context: Any,
    schema: dict[str, Any] | str,
    name: str | None = None,
) -> CallToolResult:
    return run_operation(context, "import_form_schema", {"schema": schema, "name": name})


@system_tool(
    id="clone_form",
    name="Clone Form",
    description="Deep-copy a form with fresh component IDs. The copy is named '<name> (copy)' by default.",
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": {"type": "string", "description": "Form to clone"},
            "name": {"type": "string", "description": "Name for the copy"},
        },
        "required": ["form_id"],
    },
)
async def clone_form(context: Any, form_id: str, name: str | None = None) -> CallToolResult:
    return run_operation(context, "clone_form", {"form_id": form_id, "name": name})


@system_tool(
    id="export_form",
    name="Export Form",
    description=(
        "Export a form's schema as JSON. Export is blocked while the form has validation "
        "errors unless skip_validation is true."
    ),
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "skip_validation": {"type": "boolean", "description": "Export even with validation errors"},
        },
        "required": ["form_id"],
    },
)
async def export_form(context: Any, form_id: str, skip_validation: bool = False) -> CallToolResult:
    """Export the schema; the display text is the schema JSON itself."""
    return run_operation(
        context,
        "export_form",
        {"form_id": form_id, "skip_validation": skip_validation},
        lambda r: json.dumps(r["schema"], indent=2),
    )


@system_tool(
    id="delete_form",
    name="Delete Form",
    description="Delete a form and its undo history.",
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {"form_id": FORM_ID},
        "required": ["form_id"],
    },
)
async def delete_form(context: Any, form_id: str) -> CallToolResult:
    return run_operation(context, "delete_form", {"form_id": form_id})


@system_tool(
    id="list_forms",
    name="List Forms",
    description="List all open forms with their names, component counts and versions.",
    category=ToolCategory.FORM,
)
async def list_forms(context: Any) -> CallToolResult:
    return run_operation(context, "list_forms", {}, lambda r: f"Found {r['count']} form(s)")


# =============================================================================
# Inspection
# =============================================================================


@system_tool(
    id="validate_form",
    name="Validate Form",
    description="Validate a form: missing types, unknown types, duplicate IDs, missing or duplicate keys.",
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "include_warnings": {"type": "boolean", "description": "Include warnings (default true)"},
        },
        "required": ["form_id"],
    },
)
async def validate_form(context: Any, form_id: str, include_warnings: bool = True) -> CallToolResult:
    return run_operation(
        context,
        "validate_form",
        {"form_id": form_id, "include_warnings": include_warnings},
        lambda r: "Form is valid" if r["valid"] else f"Form has {r['issue_count']} issue(s)",
    )


@system_tool(
    id="summarize_form",
    name="Summarize Form",
    description="Summarize a form: component counts by type, nesting depth, variables, layout rows.",
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {"form_id": FORM_ID},
        "required": ["form_id"],
    },
)
async def summarize_form(context: Any, form_id: str) -> CallToolResult:
    return run_operation(
        context,
        "summarize_form",
        {"form_id": form_id},
        lambda r: f"{r['total_components']} component(s), {r['variable_count']} variable(s)",
    )


@system_tool(
    id="get_form_variables",
    name="Get Form Variables",
    description="List the data keys a form binds, plus counts of expression-driven and conditional fields.",
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {"form_id": FORM_ID},
        "required": ["form_id"],
    },
)
async def get_form_variables(context: Any, form_id: str) -> CallToolResult:
    return run_operation(
        context,
        "get_form_variables",
        {"form_id": form_id},
        lambda r: f"Found {r['total']} variable(s)",
    )


@system_tool(
    id="diff_forms",
    name="Diff Forms",
    description="Compare two forms by component ID: added, removed and changed components.",
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {
            "form_id_1": {"type": "string", "description": "First (before) form ID"},
            "form_id_2": {"type": "string", "description": "Second (after) form ID"},
        },
        "required": ["form_id_1", "form_id_2"],
    },
)
async def diff_forms(context: Any, form_id_1: str, form_id_2: str) -> CallToolResult:
    return run_operation(
        context,
        "diff_forms",
        {"form_id_1": form_id_1, "form_id_2": form_id_2},
        lambda r: r["summary"],
    )


# =============================================================================
# Engine
# =============================================================================


@system_tool(
    id="auto_layout_form",
    name="Auto Layout Form",
    description=(
        "Assign layout columns and rows to every component. Strategies: single-column, "
        "two-column (pairs fields side by side), compact (packs fields by natural width)."
    ),
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "strategy": {
                "type": "string",
                "enum": ["single-column", "two-column", "compact"],
                "description": "Layout strategy (default single-column)",
            },
            "columns": {"type": "integer", "minimum": 1, "maximum": 16, "description": "Grid width"},
        },
        "required": ["form_id"],
    },
)
async def auto_layout_form(
    context: Any,
    form_id: str,
    strategy: str | None = None,
    columns: int | None = None,
) -> CallToolResult:
    return run_operation(
        context, "auto_layout_form", {"form_id": form_id, "strategy": strategy, "columns": columns}
    )


@system_tool(
    id="batch_form_operations",
    name="Batch Form Operations",
    description=(
        "Run several operations on one form atomically. Each operation is "
        '{"tool": <tool name>, "args": {...}}; form_id defaults to the batch target. '
        "If any operation fails, all changes are rolled back."
    ),
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "operations": {
                "type": "array",
                "description": "Operations to run in order",
                "items": {
                    "type": "object",
                    "properties": {
                        "tool": {"type": "string"},
                        "args": {"type": "object"},
                    },
                    "required": ["tool"],
                },
            },
        },
        "required": ["form_id", "operations"],
    },
)
async def batch_form_operations(
    context: Any,
    form_id: str,
    operations: list[dict[str, Any]],
) -> CallToolResult:
    """Run a batch; a rolled-back batch is still a normal result carrying success=False."""
    return run_operation(
        context,
        "batch_form_operations",
        {"form_id": form_id, "operations": operations},
        lambda r: r.get("message")
        or f"Batch rolled back after {r['completed_operations']} operation(s): {r['error']}",
    )


@system_tool(
    id="form_history",
    name="Form History",
    description="Undo or redo the last change to a form.",
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "action": {"type": "string", "enum": ["undo", "redo"]},
        },
        "required": ["form_id", "action"],
    },
)
async def form_history(context: Any, form_id: str, action: str) -> CallToolResult:
    return run_operation(context, "form_history", {"form_id": form_id, "action": action})


@system_tool(
    id="set_form_hint_level",
    name="Set Form Hint Level",
    description=(
        "Control validation feedback on mutation responses: full (errors and warnings), "
        "minimal (errors only) or none."
    ),
    category=ToolCategory.FORM,
    input_schema={
        "type": "object",
        "properties": {
            "form_id": FORM_ID,
            "level": {"type": "string", "enum": ["full", "minimal", "none"]},
        },
        "required": ["form_id", "level"],
    },
)
async def set_form_hint_level(context: Any, form_id: str, level: str) -> CallToolResult:
    return run_operation(context, "set_form_hint_level", {"form_id": form_id, "level": level})
