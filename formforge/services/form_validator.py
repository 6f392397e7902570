"""
Form Schema Validator

Semantic validation of a form-js schema in a single depth-first walk:
- missing or unknown component types
- duplicate component ids
- keyed fields without a key, duplicate keys

Warnings never make a schema invalid. The same result feeds the hints
attached to mutation responses.
"""

import logging
from typing import Any

from formforge.models.contracts.forms import FormState, ValidationIssue, ValidationResult
from formforge.models.enums import HintLevel, IssueSeverity
from formforge.services.form_tree import is_keyed_type, is_supported_type

logger = logging.getLogger(__name__)


def validate_form_schema(form_schema: dict[str, Any]) -> ValidationResult:
    """
    Validate a form schema.

    Args:
        form_schema: form-js schema dict

    Returns:
        ValidationResult with valid=False if any error-severity issue was found
    """
    components = form_schema.get("components") if isinstance(form_schema, dict) else None
    if not isinstance(components, list):
        return ValidationResult(
            valid=False,
            issues=[
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message='Schema is missing "components" array',
                    path="components",
                    suggestion='Add an empty "components": [] list at the root',
                )
            ],
        )

    issues: list[ValidationIssue] = []
    seen_ids: dict[str, str] = {}
    seen_keys: dict[str, str] = {}
    _walk(components, "components", issues, seen_ids, seen_keys)

    valid = not any(i.severity == IssueSeverity.ERROR for i in issues)
    return ValidationResult(valid=valid, issues=issues)


def _walk(
    components: list[Any],
    parent_path: str,
    issues: list[ValidationIssue],
    seen_ids: dict[str, str],
    seen_keys: dict[str, str],
) -> None:
    for idx, comp in enumerate(components):
        path = f"{parent_path}[{idx}]"
        if not isinstance(comp, dict):
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Component at {path} is not an object",
                    path=path,
                )
            )
            continue

        comp_id = comp.get("id")
        comp_type = comp.get("type")

        if not comp_type:
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    message=f'Component at {path} is missing "type"',
                    component_id=comp_id,
                    path=path,
                )
            )
        elif not is_supported_type(comp_type):
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    message=f'Unknown field type "{comp_type}" on {comp_id or path}',
                    component_id=comp_id,
                    path=path,
                )
            )

        if comp_id:
            if comp_id in seen_ids:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        message=f'Duplicate component ID "{comp_id}" (also at {seen_ids[comp_id]})',
                        component_id=comp_id,
                        path=path,
                        suggestion="Component IDs must be unique across the form",
                    )
                )
            else:
                seen_ids[comp_id] = path

        if is_keyed_type(comp_type):
            key = comp.get("key")
            if not key:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        message=f'Keyed field type "{comp_type}" at {comp_id or comp_type} is missing "key"',
                        component_id=comp_id,
                        path=path,
                        suggestion="Set a unique key so the field binds to a variable",
                    )
                )
            elif key in seen_keys:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        message=f'Duplicate key "{key}" on {comp_id or comp_type} (also at {seen_keys[key]})',
                        component_id=comp_id,
                        path=path,
                        suggestion="Keys must be unique; rename one of the fields",
                    )
                )
            else:
                seen_keys[key] = comp_id or path

        children = comp.get("components")
        if isinstance(children, list):
            _walk(children, f"{path}.components", issues, seen_ids, seen_keys)


def build_hints(state: FormState) -> list[dict[str, Any]] | None:
    """Validator feedback for a form at its hint level (None when disabled)."""
    if state.hint_level == HintLevel.NONE:
        return None
    result = validate_form_schema(state.form_schema)
    if state.hint_level == HintLevel.MINIMAL:
        return [issue.to_dict() for issue in result.errors]
    return [issue.to_dict() for issue in result.issues]


def mutation_result(state: FormState, data: dict[str, Any]) -> dict[str, Any]:
    """Attach version and hint-level feedback to a mutation response."""
    result = {**data, "version": state.version}
    hints = build_hints(state)
    if hints:
        result["hints"] = hints
    return result
