"""
Form Service

Form lifecycle and read-only inspection:
- Create (empty, clone, import), import, clone, export, delete, list
- Validate, summarize, extract variables, structural diff
"""

import copy
import json
import logging
import secrets
from typing import Any

from pydantic import ValidationError

from formforge.config import Settings, get_settings
from formforge.core.exceptions import ExportBlockedError, FormConstraintError
from formforge.models.contracts.forms import FormSchema
from formforge.services.form_store import FormStore, create_empty_schema
from formforge.services.form_tree import (
    Component,
    count_components,
    generate_unique_component_id,
    is_keyed_type,
    iter_components,
)
from formforge.services.form_validator import validate_form_schema

logger = logging.getLogger(__name__)


def parse_schema(raw: Any) -> dict[str, Any]:
    """
    Parse and check an incoming form schema (dict or JSON string).

    Raises:
        FormConstraintError: Not JSON, not an object, no components list,
            or an unsupported schema type
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise FormConstraintError("Invalid JSON string for schema") from e
    if not isinstance(raw, dict):
        raise FormConstraintError("Schema must be a JSON object")
    if not isinstance(raw.get("components"), list):
        raise FormConstraintError('Schema must have a "components" array')
    if raw.get("type") and raw["type"] != "default":
        raise FormConstraintError(f"Unsupported schema type: {raw['type']}")

    schema = copy.deepcopy(raw)
    schema["type"] = "default"
    try:
        FormSchema.model_validate(schema)
    except ValidationError as e:
        raise FormConstraintError(f"Invalid schema: {e.errors()[0]['msg']}") from e
    return schema


def regenerate_ids(components: list[Component], taken: set[str] | None = None) -> list[Component]:
    """Copy of a component list with a fresh id for every component that had one."""
    taken = taken if taken is not None else set()
    result = []
    for comp in components:
        new_comp = dict(comp)
        if comp.get("id"):
            new_comp["id"] = generate_unique_component_id(
                [], comp.get("type") or "component", comp.get("label"), taken
            )
        if isinstance(comp.get("components"), list):
            new_comp["components"] = regenerate_ids(comp["components"], taken)
        result.append(new_comp)
    return result


class FormService:
    """Service for whole-form operations."""

    def __init__(self, store: FormStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or get_settings()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def create_form(
        self,
        name: str | None = None,
        execution_platform: str | None = None,
        execution_platform_version: str | None = None,
        clone_from_id: str | None = None,
        schema: Any = None,
    ) -> dict[str, Any]:
        """
        Create a form.

        With clone_from_id this clones that form, with schema it imports the
        schema, otherwise it creates an empty form.
        """
        if clone_from_id:
            return self.clone_form(clone_from_id, name=name)
        if schema is not None:
            return self.import_form_schema(schema, name=name)

        form_schema = create_empty_schema(self.settings)
        if execution_platform:
            form_schema["executionPlatform"] = execution_platform
        if execution_platform_version:
            form_schema["executionPlatformVersion"] = execution_platform_version

        form_id = self.store.generate_form_id()
        self.store.store(form_id, form_schema, name=name)
        logger.info(f"Created form '{form_id}' ({name or 'unnamed'})")
        return {
            "form_id": form_id,
            "name": name,
            "schema": copy.deepcopy(form_schema),
        }

    def import_form_schema(self, schema: Any, name: str | None = None) -> dict[str, Any]:
        """Import an existing form-js schema (dict or JSON string) as a new form."""
        form_schema = parse_schema(schema)
        name = name or form_schema.get("id")

        component_count = count_components(form_schema["components"])

        form_id = self.store.generate_form_id()
        self.store.store(form_id, form_schema, name=name)

        logger.info(f"Imported form '{form_id}' with {component_count} component(s)")
        return {
            "form_id": form_id,
            "name": name,
            "component_count": component_count,
            "message": f"Imported form with {component_count} component(s)",
        }

    def clone_form(self, form_id: str, name: str | None = None) -> dict[str, Any]:
        """Deep-copy a form with fresh schema and component ids."""
        original = self.store.require(form_id)

        cloned = copy.deepcopy(original.form_schema)
        cloned["id"] = f"Form_{secrets.token_hex(4)}"
        cloned["components"] = regenerate_ids(cloned.get("components") or [])

        new_name = name or (f"{original.name} (copy)" if original.name else None)
        new_form_id = self.store.generate_form_id()
        self.store.store(new_form_id, cloned, name=new_name, hint_level=original.hint_level)

        logger.info(f"Cloned form '{form_id}' as '{new_form_id}'")
        return {
            "form_id": new_form_id,
            "name": new_name,
            "component_count": count_components(cloned["components"]),
            "message": f"Cloned form as {new_form_id}",
        }

    def export_form(self, form_id: str, skip_validation: bool = False) -> dict[str, Any]:
        """
        Export a form's schema.

        Raises:
            ExportBlockedError: The schema has validation errors and
                skip_validation is not set
        """
        state = self.store.require(form_id)

        if not skip_validation:
            result = validate_form_schema(state.form_schema)
            if not result.valid:
                errors = result.errors
                raise ExportBlockedError(
                    f"Export blocked: form has {len(errors)} validation error(s). "
                    + "; ".join(e.message for e in errors)
                    + ". Pass skip_validation=true to export anyway.",
                    issues=[e.to_dict() for e in errors],
                )

        return {"form_id": form_id, "name": state.name, "schema": copy.deepcopy(state.form_schema)}

    def delete_form(self, form_id: str) -> dict[str, Any]:
        self.store.require(form_id)
        self.store.delete(form_id)
        return {"deleted": form_id, "message": f"Form {form_id} deleted"}

    def list_forms(self) -> dict[str, Any]:
        forms = [
            {
                "form_id": form_id,
                "name": state.name,
                "component_count": count_components(state.form_schema.get("components") or []),
                "version": state.version,
            }
            for form_id, state in self.store.list_all()
        ]
        return {"forms": forms, "count": len(forms)}

    # =========================================================================
    # Inspection
    # =========================================================================

    def validate_form(self, form_id: str, include_warnings: bool = True) -> dict[str, Any]:
        state = self.store.require(form_id)
        result = validate_form_schema(state.form_schema)
        issues = result.issues if include_warnings else result.errors
        return {
            "valid": result.valid,
            "issue_count": len(issues),
            "issues": [issue.to_dict() for issue in issues],
        }

    def summarize_form(self, form_id: str) -> dict[str, Any]:
        """Counts by type, nesting depth, variables, layout rows and rule presence."""
        state = self.store.require(form_id)
        schema = state.form_schema
        components = schema.get("components") or []

        type_counts: dict[str, int] = {}
        rows: set[str] = set()
        depth = 0
        variable_count = 0
        has_validation = False
        has_conditionals = False

        for comp, comp_depth, _ in iter_components(components):
            comp_type = comp.get("type")
            type_name = comp_type or "(missing)"
            type_counts[type_name] = type_counts.get(type_name, 0) + 1
            depth = max(depth, comp_depth)
            if comp.get("key") and is_keyed_type(comp_type):
                variable_count += 1
            if comp.get("validate"):
                has_validation = True
            if (comp.get("conditional") or {}).get("hide"):
                has_conditionals = True
            row = (comp.get("layout") or {}).get("row")
            if row:
                rows.add(row)

        return {
            "form_id": form_id,
            "name": state.name,
            "schema_version": schema.get("schemaVersion"),
            "execution_platform": schema.get("executionPlatform"),
            "total_components": count_components(components),
            "components_by_type": type_counts,
            "nesting_depth": depth,
            "variable_count": variable_count,
            "layout_rows": len(rows),
            "has_validation": has_validation,
            "has_conditionals": has_conditionals,
            "version": state.version,
        }

    def get_form_variables(self, form_id: str) -> dict[str, Any]:
        """Unique input keys plus counts of expression-driven and conditional fields."""
        state = self.store.require(form_id)

        input_keys: list[str] = []
        expression_fields = 0
        conditional_fields = 0
        for comp, _, _ in iter_components(state.form_schema.get("components") or []):
            key = comp.get("key")
            if key and key not in input_keys:
                input_keys.append(key)
            if comp.get("valuesExpression"):
                expression_fields += 1
            if (comp.get("conditional") or {}).get("hide"):
                conditional_fields += 1

        return {
            "input_keys": input_keys,
            "expression_field_count": expression_fields,
            "conditional_field_count": conditional_fields,
            "total": len(input_keys),
        }

    def diff_forms(self, form_id_1: str, form_id_2: str) -> dict[str, Any]:
        """
        Structural diff of two forms, matching components by id.

        Nested component lists are not compared as properties; children are
        matched by their own ids.
        """
        first = _index_by_id(self.store.require(form_id_1).form_schema)
        second = _index_by_id(self.store.require(form_id_2).form_schema)

        added = [_diff_summary(comp) for comp_id, comp in second.items() if comp_id not in first]
        removed = [_diff_summary(comp) for comp_id, comp in first.items() if comp_id not in second]
        changed = []
        for comp_id, before in first.items():
            after = second.get(comp_id)
            if after is None:
                continue
            changes = _diff_properties(before, after)
            if changes:
                changed.append({"component_id": comp_id, "type": before.get("type"), "changes": changes})

        identical = not (added or removed or changed)
        return {
            "form_id_1": form_id_1,
            "form_id_2": form_id_2,
            "identical": identical,
            "added": added,
            "removed": removed,
            "changed": changed,
            "summary": "Forms are structurally identical"
            if identical
            else f"{len(added)} added, {len(removed)} removed, {len(changed)} changed",
        }


def _index_by_id(form_schema: dict[str, Any]) -> dict[str, Component]:
    return {
        comp["id"]: comp
        for comp, _, _ in iter_components(form_schema.get("components") or [])
        if comp.get("id")
    }


def _diff_summary(comp: Component) -> dict[str, Any]:
    summary = {"id": comp.get("id"), "type": comp.get("type")}
    if comp.get("key"):
        summary["key"] = comp["key"]
    if comp.get("label"):
        summary["label"] = comp["label"]
    return summary


def _diff_properties(before: Component, after: Component) -> list[dict[str, Any]]:
    changes = []
    for prop in dict.fromkeys([*before, *after]):
        if prop == "components":
            continue
        if before.get(prop) != after.get(prop):
            changes.append({"property": prop, "before": before.get(prop), "after": after.get(prop)})
    return changes
