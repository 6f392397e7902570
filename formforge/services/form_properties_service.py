"""
Form Properties Service

Property setters for individual components:
- free-form properties (null deletes)
- validation rules, conditional visibility, grid layout
- options source (static values, valuesKey or valuesExpression)

Plus the per-form hint level that controls mutation feedback.
"""

import copy
import logging
from typing import Any

from pydantic import ValidationError

from formforge.core.constants import OPTIONS_FIELD_TYPES, OPTIONS_PROPS, READ_ONLY_PROPS
from formforge.core.exceptions import FormConstraintError
from formforge.models.contracts.forms import FormOptionValue, FormValidation
from formforge.models.enums import HintLevel
from formforge.services.form_components_service import (
    check_layout,
    check_option_sources,
    require_component,
)
from formforge.services.form_store import FormStore
from formforge.services.form_tree import (
    accepts_options,
    collect_all_keys,
    is_keyed_type,
)
from formforge.services.form_validator import mutation_result

logger = logging.getLogger(__name__)


class FormPropertiesService:
    """Service for component property updates."""

    def __init__(self, store: FormStore):
        self.store = store

    def set_component_properties(
        self,
        form_id: str,
        component_id: str,
        properties: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Set or remove arbitrary properties on a component.

        A None value removes the property. id, type and components are
        read-only. The result is checked against the tree invariants before it
        replaces the component's properties.
        """
        state = self.store.require(form_id)
        comp = require_component(state, component_id)

        if not isinstance(properties, dict):
            raise FormConstraintError('"properties" must be an object')
        for prop in properties:
            if prop in READ_ONLY_PROPS:
                raise FormConstraintError(f'Cannot modify read-only property "{prop}"')

        candidate = copy.deepcopy({k: v for k, v in comp.items() if k != "components"})
        updated: list[str] = []
        removed: list[str] = []
        for prop, value in properties.items():
            if value is None:
                candidate.pop(prop, None)
                removed.append(prop)
            else:
                candidate[prop] = value
                updated.append(prop)

        # Setting one options source clears the other two
        new_sources = [p for p in updated if p in OPTIONS_PROPS]
        if len(new_sources) == 1:
            for other in OPTIONS_PROPS:
                if other != new_sources[0] and other in candidate:
                    del candidate[other]
                    removed.append(other)

        comp_type = comp.get("type")
        if "key" in updated:
            self._check_key(state.form_schema["components"], comp, candidate["key"])
        if any(candidate.get(name) is not None for name in OPTIONS_PROPS) and not accepts_options(comp_type):
            raise FormConstraintError(f'Component type "{comp_type}" does not support options')
        check_option_sources(candidate)
        if "layout" in updated:
            check_layout(candidate["layout"])

        for prop in removed:
            comp.pop(prop, None)
        for prop in updated:
            comp[prop] = candidate[prop]
        state = self.store.touch(form_id)

        logger.info(
            f"Updated component '{component_id}' properties "
            f"(set: {', '.join(updated) or 'none'}; removed: {', '.join(removed) or 'none'})"
        )
        return mutation_result(
            state,
            {
                "component_id": component_id,
                "updated": updated,
                "removed": removed,
                "message": f"Updated {len(updated)} and removed {len(removed)} properties",
            },
        )

    def set_validation(
        self,
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
    ) -> dict[str, Any]:
        """Merge validation rules into the component's validate block."""
        state = self.store.require(form_id)
        comp = require_component(state, component_id)

        changes = {
            "required": required,
            "minLength": min_length,
            "maxLength": max_length,
            "min": min,
            "max": max,
            "pattern": pattern,
            "patternErrorMessage": pattern_error_message,
            "validationType": validation_type,
            "validationError": validation_error,
        }
        changes = {name: value for name, value in changes.items() if value is not None}

        merged = {**(comp.get("validate") or {}), **changes}
        try:
            validate = FormValidation.model_validate(merged)
        except ValidationError as e:
            raise FormConstraintError(f"Invalid validation rules: {e.errors()[0]['msg']}") from e

        comp["validate"] = validate.model_dump(by_alias=True, exclude_none=True)
        state = self.store.touch(form_id)

        rules = [f"{name}={value}" for name, value in changes.items()]
        logger.info(f"Set {len(rules)} validation rule(s) on '{component_id}'")
        return mutation_result(
            state,
            {
                "component_id": component_id,
                "validate": comp["validate"],
                "rules": rules,
                "message": f'Set {len(rules)} validation rules on "{component_id}"',
            },
        )

    def set_conditional(self, form_id: str, component_id: str, hide: str | None = None) -> dict[str, Any]:
        """Set the hide expression; an empty or missing expression clears it."""
        state = self.store.require(form_id)
        comp = require_component(state, component_id)

        if not hide:
            comp.pop("conditional", None)
            state = self.store.touch(form_id)
            logger.info(f"Cleared conditional on '{component_id}'")
            return mutation_result(
                state,
                {
                    "component_id": component_id,
                    "conditional": None,
                    "message": f'Cleared conditional on "{component_id}"',
                },
            )

        comp["conditional"] = {"hide": hide}
        state = self.store.touch(form_id)
        logger.info(f"Set conditional on '{component_id}'")
        return mutation_result(
            state,
            {
                "component_id": component_id,
                "conditional": comp["conditional"],
                "message": f'Set conditional on "{component_id}": hide = {hide}',
            },
        )

    def set_layout(
        self,
        form_id: str,
        component_id: str,
        columns: int,
        row: str | None = None,
    ) -> dict[str, Any]:
        """Set the column span (and optionally the row) of a component."""
        state = self.store.require(form_id)
        comp = require_component(state, component_id)

        layout = {**(comp.get("layout") or {}), "columns": columns}
        if row is not None:
            layout["row"] = row
        check_layout(layout)

        comp["layout"] = layout
        state = self.store.touch(form_id)
        logger.info(f"Set layout on '{component_id}': columns={columns}")
        return mutation_result(
            state,
            {
                "component_id": component_id,
                "layout": layout,
                "message": f'Set layout on "{component_id}": columns = {columns}',
            },
        )

    def set_options(
        self,
        form_id: str,
        component_id: str,
        options: list[dict[str, Any]] | None = None,
        values_key: str | None = None,
        values_expression: str | None = None,
    ) -> dict[str, Any]:
        """
        Set the options source of a select / radio / checklist / taglist.

        Exactly one of options, values_key or values_expression must be given;
        the other two sources are cleared.
        """
        state = self.store.require(form_id)
        comp = require_component(state, component_id)

        comp_type = comp.get("type")
        if not accepts_options(comp_type):
            raise FormConstraintError(
                f'Component type "{comp_type}" does not support options. '
                f"Use one of: {', '.join(OPTIONS_FIELD_TYPES)}"
            )

        provided = [s for s in (options, values_key, values_expression) if s is not None]
        if not provided:
            raise FormConstraintError("Provide one of: options, values_key, or values_expression")
        if len(provided) > 1:
            raise FormConstraintError(
                "Only one of options, values_key, or values_expression can be set at a time"
            )

        if options is not None:
            if not isinstance(options, list):
                raise FormConstraintError('"options" must be an array')
            try:
                values = [FormOptionValue.model_validate(opt).model_dump() for opt in options]
            except ValidationError as e:
                raise FormConstraintError("Each option must have a label and value") from e
            source, prop, value = "static", "values", values
            message = f'Set {len(values)} static options on "{component_id}"'
        elif values_key is not None:
            source, prop, value = "valuesKey", "valuesKey", values_key
            message = f'Set dynamic options (valuesKey="{values_key}") on "{component_id}"'
        else:
            source, prop, value = "valuesExpression", "valuesExpression", values_expression
            message = f'Set dynamic options (valuesExpression) on "{component_id}"'

        for name in OPTIONS_PROPS:
            comp.pop(name, None)
        comp[prop] = value
        state = self.store.touch(form_id)

        logger.info(f"Set {source} options on '{component_id}'")
        data: dict[str, Any] = {"component_id": component_id, "source": source, prop: value, "message": message}
        if source == "static":
            data["count"] = len(value)
        return mutation_result(state, data)

    def set_hint_level(self, form_id: str, level: str) -> dict[str, Any]:
        """Change how much validator feedback mutation responses carry for a form."""
        state = self.store.require(form_id)
        try:
            hint_level = HintLevel(level)
        except ValueError as e:
            raise FormConstraintError(
                f"Invalid hint level: {level}. Use one of: {', '.join(h.value for h in HintLevel)}"
            ) from e

        state.hint_level = hint_level
        self.store.notify_changed(form_id)
        logger.info(f"Set hint level of form '{form_id}' to {hint_level.value}")
        return {
            "form_id": form_id,
            "hint_level": hint_level.value,
            "message": f"Hint level set to {hint_level.value}",
        }

    @staticmethod
    def _check_key(root: list[dict[str, Any]], comp: dict[str, Any], new_key: Any) -> None:
        if not is_keyed_type(comp.get("type")):
            raise FormConstraintError(f'Type "{comp.get("type")}" does not take a key')
        if not isinstance(new_key, str) or not new_key:
            raise FormConstraintError("key must be a non-empty string")
        if new_key != comp.get("key") and new_key in collect_all_keys(root):
            raise FormConstraintError(f'Key "{new_key}" is already used by another component')
