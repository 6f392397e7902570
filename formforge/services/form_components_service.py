"""
Form Components Service

Structural mutations of the component tree:
- Add, delete, move, duplicate components
- Replace a component's type with bucket-based property migration
- List components and read a component's properties

Every check runs before the tree is touched, so a failed call leaves the form
unchanged.
"""

import copy
import logging
from typing import Any, Callable

from pydantic import ValidationError

from formforge.core.constants import (
    CONTAINER_PROPS,
    DEFAULT_COLUMNS,
    KEYED_PROPS,
    OPTIONS_PROPS,
    UNIVERSAL_PROPS,
)
from formforge.core.exceptions import FormConstraintError, FormReferenceError
from formforge.models.contracts.forms import FormLayout, FormState
from formforge.services.form_store import FormStore
from formforge.services.form_tree import (
    Component,
    accepts_options,
    collect_all_ids,
    collect_all_keys,
    count_components,
    derive_key,
    find_component_by_id,
    find_parent_components,
    generate_unique_component_id,
    index_of,
    is_container_type,
    is_descendant,
    is_keyed_type,
    is_supported_type,
    make_copy_key,
    make_unique_key,
)
from formforge.services.form_validator import mutation_result

logger = logging.getLogger(__name__)

IdFactory = Callable[[list[Component], str, str | None, set[str]], str]


def require_component(state: FormState, component_id: str) -> Component:
    """Resolve a component by id or raise FormReferenceError."""
    comp = find_component_by_id(state.form_schema["components"], component_id)
    if comp is None:
        raise FormReferenceError(f"Component not found: {component_id}")
    return comp


def check_option_sources(props: dict[str, Any]) -> None:
    """At most one of values / valuesKey / valuesExpression may be set."""
    sources = [name for name in OPTIONS_PROPS if props.get(name) is not None]
    if len(sources) > 1:
        raise FormConstraintError(
            f"Only one options source may be set, got: {', '.join(sources)}"
        )


def check_layout(layout: Any) -> None:
    """Validate a layout object (columns must be an integer in 1..16)."""
    if layout is None:
        return
    if not isinstance(layout, dict):
        raise FormConstraintError("layout must be an object")
    columns = layout.get("columns")
    if columns is not None and (
        isinstance(columns, bool) or not isinstance(columns, int) or not 1 <= columns <= DEFAULT_COLUMNS
    ):
        raise FormConstraintError(
            f"layout.columns must be an integer between 1 and {DEFAULT_COLUMNS}, got {columns!r}"
        )
    try:
        FormLayout.model_validate(layout)
    except ValidationError as e:
        raise FormConstraintError(f"Invalid layout: {e.errors()[0]['msg']}") from e


def clamp_position(position: int | None, length: int) -> int:
    """Clamp an insert index to [0, length]; None appends."""
    if position is None:
        return length
    return max(0, min(position, length))


class FormComponentsService:
    """Service for structural component operations on stored forms."""

    def __init__(self, store: FormStore, id_factory: IdFactory | None = None):
        self.store = store
        self._id_factory = id_factory or generate_unique_component_id

    # =========================================================================
    # Add
    # =========================================================================

    def add_component(
        self,
        form_id: str,
        type: str | None = None,
        key: str | None = None,
        label: str | None = None,
        parent_id: str | None = None,
        position: int | None = None,
        properties: dict[str, Any] | None = None,
        source_component_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Add a component to a form, or duplicate an existing one.

        When source_component_id is given the call behaves exactly like
        duplicate_component and every other argument is ignored.

        Raises:
            FormReferenceError: Form or parent not found
            FormConstraintError: Unsupported type, non-container parent, or
                properties that break a tree invariant
        """
        if source_component_id:
            return self.duplicate_component(form_id, source_component_id)

        state = self.store.require(form_id)
        root = state.form_schema["components"]

        if not type:
            raise FormConstraintError('Either "type" or "source_component_id" is required')
        if not is_supported_type(type):
            raise FormConstraintError(f"Unsupported field type: {type}")

        props = dict(properties or {})
        if "key" in props:
            key = key or props.pop("key")
            props.pop("key", None)
        self._check_new_properties(type, props, key)

        parent = self._resolve_container(root, parent_id, "Parent")

        existing_ids = set(collect_all_ids(root))
        existing_keys = set(collect_all_keys(root))
        component_id = self._id_factory(root, type, label, existing_ids)
        component: Component = {"type": type, "id": component_id, **props}
        if label is not None:
            component["label"] = label
        if is_keyed_type(type):
            component["key"] = make_unique_key(key or derive_key(label, type), existing_keys)
            existing_keys.add(component["key"])
        if is_container_type(type):
            component["components"] = self._adopt_children(
                props.get("components") or [], root, existing_keys, existing_ids
            )

        target = parent.setdefault("components", []) if parent is not None else root
        target.insert(clamp_position(position, len(target)), component)
        state = self.store.touch(form_id)

        logger.info(f"Added {type} component '{component_id}' to form '{form_id}'")
        return mutation_result(
            state,
            {
                "component": component,
                "total_components": count_components(root),
                "message": f'Added {type} component "{component_id}"',
            },
        )

    # =========================================================================
    # Delete
    # =========================================================================

    def delete_component(self, form_id: str, component_id: str) -> dict[str, Any]:
        """Delete a component and its whole subtree."""
        state = self.store.require(form_id)
        root = state.form_schema["components"]
        comp = require_component(state, component_id)
        owner = find_parent_components(root, component_id)
        if owner is None:
            raise FormReferenceError(f"Cannot find parent of component {component_id}")

        removed = 1 + count_components(comp.get("components") or [])
        del owner[index_of(owner, component_id)]
        state = self.store.touch(form_id)

        logger.info(f"Deleted {comp.get('type')} component '{component_id}' ({removed} removed)")
        return mutation_result(
            state,
            {
                "deleted": component_id,
                "type": comp.get("type"),
                "removed_count": removed,
                "message": f'Deleted {comp.get("type")} component "{component_id}"',
            },
        )

    # =========================================================================
    # Move
    # =========================================================================

    def move_component(
        self,
        form_id: str,
        component_id: str,
        target_parent_id: str | None = None,
        position: int | None = None,
    ) -> dict[str, Any]:
        """
        Move a component to a new position, optionally into another container.

        The destination is resolved and checked before the component is
        detached. Moving a component into itself or one of its descendants is
        rejected.
        """
        state = self.store.require(form_id)
        root = state.form_schema["components"]
        comp = require_component(state, component_id)

        parent = self._resolve_container(root, target_parent_id, "Target parent")
        if parent is not None and is_descendant(comp, target_parent_id):
            raise FormConstraintError(
                f'Cannot move "{component_id}" into itself or one of its descendants'
            )

        source = find_parent_components(root, component_id)
        if source is None:
            raise FormReferenceError(f"Cannot find parent of component {component_id}")
        del source[index_of(source, component_id)]

        target = parent.setdefault("components", []) if parent is not None else root
        index = clamp_position(position, len(target))
        target.insert(index, comp)
        state = self.store.touch(form_id)

        destination = target_parent_id or "root"
        logger.info(f"Moved component '{component_id}' to {destination} at {index}")
        return mutation_result(
            state,
            {
                "moved": component_id,
                "target_parent": destination,
                "position": index,
                "message": f'Moved {comp.get("type")} "{component_id}" to {destination}',
            },
        )

    # =========================================================================
    # Duplicate
    # =========================================================================

    def duplicate_component(self, form_id: str, component_id: str) -> dict[str, Any]:
        """Deep-clone a component with fresh ids and keys, inserted after the original."""
        state = self.store.require(form_id)
        root = state.form_schema["components"]
        require_component(state, component_id)
        owner = find_parent_components(root, component_id)
        if owner is None:
            raise FormReferenceError(f"Cannot find parent of component {component_id}")

        idx = index_of(owner, component_id)
        clone = self._clone(owner[idx], root, set(collect_all_keys(root)), set(collect_all_ids(root)))
        owner.insert(idx + 1, clone)
        state = self.store.touch(form_id)

        logger.info(f"Duplicated component '{component_id}' as '{clone['id']}'")
        return mutation_result(
            state,
            {
                "component": clone,
                "message": f'Duplicated "{component_id}" as "{clone["id"]}"',
            },
        )

    def _clone(
        self,
        comp: Component,
        root: list[Component],
        existing_keys: set[str],
        existing_ids: set[str],
    ) -> Component:
        clone = copy.deepcopy({k: v for k, v in comp.items() if k != "components"})
        clone["id"] = self._id_factory(root, comp.get("type") or "component", comp.get("label"), existing_ids)
        if clone.get("key"):
            new_key = make_copy_key(clone["key"], existing_keys)
            existing_keys.add(new_key)
            clone["key"] = new_key
        if isinstance(comp.get("components"), list):
            clone["components"] = [
                self._clone(child, root, existing_keys, existing_ids) for child in comp["components"]
            ]
        return clone

    def _adopt_children(
        self,
        children: Any,
        root: list[Component],
        existing_keys: set[str],
        existing_ids: set[str],
    ) -> list[Component]:
        """
        Build new children from a supplied "components" list.

        Each child is checked like a fresh add and gets a new id and a key that
        is unique across the form. Nothing is inserted here.
        """
        if not isinstance(children, list) or not all(isinstance(child, dict) for child in children):
            raise FormConstraintError('"components" must be a list of component objects')

        adopted: list[Component] = []
        for child in children:
            child_type = child.get("type")
            if not is_supported_type(child_type):
                raise FormConstraintError(f"Unsupported field type: {child_type}")
            props = {k: v for k, v in child.items() if k not in ("id", "type", "key")}
            self._check_new_properties(child_type, props, child.get("key"))

            new_child: Component = {
                "type": child_type,
                "id": self._id_factory(root, child_type, child.get("label"), existing_ids),
                **copy.deepcopy(props),
            }
            if is_keyed_type(child_type):
                base = child.get("key") or derive_key(child.get("label"), child_type)
                new_key = make_unique_key(base, existing_keys)
                existing_keys.add(new_key)
                new_child["key"] = new_key
            if is_container_type(child_type):
                new_child["components"] = self._adopt_children(
                    props.get("components") or [], root, existing_keys, existing_ids
                )
            adopted.append(new_child)
        return adopted

    # =========================================================================
    # Type replacement
    # =========================================================================

    def replace_component_type(self, form_id: str, component_id: str, new_type: str) -> dict[str, Any]:
        """
        Change a component's type, keeping only properties legal for the new type.

        Universal properties always survive; keyed, options and container
        properties survive only when the new type belongs to that bucket.
        Everything else is dropped. A keyed target type without a surviving
        key gets a fresh one.
        """
        state = self.store.require(form_id)
        root = state.form_schema["components"]
        comp = require_component(state, component_id)

        if not is_supported_type(new_type):
            raise FormConstraintError(f"Unsupported field type: {new_type}")
        old_type = comp.get("type")
        if old_type == new_type:
            raise FormConstraintError(f'Component "{component_id}" is already type "{new_type}"')

        preserved: list[str] = []
        removed: list[str] = []
        for prop in [p for p in comp if p != "type"]:
            if prop in UNIVERSAL_PROPS:
                keep = True
            elif prop in KEYED_PROPS:
                keep = is_keyed_type(new_type)
            elif prop in OPTIONS_PROPS:
                keep = accepts_options(new_type)
            elif prop in CONTAINER_PROPS:
                keep = is_container_type(new_type)
            else:
                keep = False

            if keep:
                preserved.append(prop)
            else:
                removed.append(prop)
                del comp[prop]

        comp["type"] = new_type

        key_generated = None
        if is_keyed_type(new_type) and not comp.get("key"):
            key_generated = make_unique_key(derive_key(comp.get("label"), new_type), collect_all_keys(root))
            comp["key"] = key_generated

        state = self.store.touch(form_id)

        logger.info(
            f"Replaced component '{component_id}' type {old_type} -> {new_type} "
            f"(removed: {', '.join(removed) or 'none'})"
        )
        data = {
            "component_id": component_id,
            "old_type": old_type,
            "new_type": new_type,
            "preserved": preserved,
            "removed": removed,
            "message": f'Replaced "{component_id}" type from "{old_type}" to "{new_type}"',
        }
        if key_generated:
            data["key_generated"] = key_generated
        return mutation_result(state, data)

    # =========================================================================
    # Read
    # =========================================================================

    def list_components(
        self,
        form_id: str,
        type: str | None = None,
        parent_id: str | None = None,
    ) -> dict[str, Any]:
        """
        List component summaries.

        Without parent_id the whole tree is flattened depth-first; with it only
        the container's direct children are listed.
        """
        state = self.store.require(form_id)
        root = state.form_schema["components"]

        if parent_id:
            parent = find_component_by_id(root, parent_id)
            if parent is None:
                raise FormReferenceError(f"Parent component not found: {parent_id}")
            summaries = [
                _summarize(comp) for comp in parent.get("components") or []
                if not type or comp.get("type") == type
            ]
        else:
            summaries = []
            _flatten(root, type, summaries)

        return {"components": summaries, "count": len(summaries)}

    def get_component_properties(self, form_id: str, component_id: str) -> dict[str, Any]:
        """All properties of a component except its nested children."""
        state = self.store.require(form_id)
        comp = require_component(state, component_id)
        children = comp.get("components") or []
        properties = copy.deepcopy({k: v for k, v in comp.items() if k != "components"})
        return {
            "component_id": component_id,
            "properties": properties,
            "has_children": bool(children),
            "child_count": len(children),
        }

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _resolve_container(root: list[Component], container_id: str | None, role: str) -> Component | None:
        if not container_id:
            return None
        container = find_component_by_id(root, container_id)
        if container is None:
            raise FormReferenceError(f"{role} component not found: {container_id}")
        if not is_container_type(container.get("type")):
            raise FormConstraintError(
                f"{role} {container_id} (type: {container.get('type')}) is not a container"
            )
        return container

    @staticmethod
    def _check_new_properties(field_type: str, props: dict[str, Any], key: str | None) -> None:
        for forbidden in ("id", "type"):
            if forbidden in props:
                raise FormConstraintError(f'Property "{forbidden}" cannot be set through properties')
        if "components" in props and not is_container_type(field_type):
            raise FormConstraintError(f'Type "{field_type}" cannot own child components')
        if key and not is_keyed_type(field_type):
            raise FormConstraintError(f'Type "{field_type}" does not take a key')
        if any(props.get(name) is not None for name in OPTIONS_PROPS) and not accepts_options(field_type):
            raise FormConstraintError(f'Type "{field_type}" does not accept options')
        check_option_sources(props)
        check_layout(props.get("layout"))


def _summarize(comp: Component) -> dict[str, Any]:
    summary: dict[str, Any] = {"id": comp.get("id"), "type": comp.get("type")}
    if comp.get("key"):
        summary["key"] = comp["key"]
    if comp.get("label"):
        summary["label"] = comp["label"]
    if isinstance(comp.get("components"), list):
        summary["child_count"] = len(comp["components"])
    return summary


def _flatten(components: list[Component], type_filter: str | None, out: list[dict[str, Any]]) -> None:
    for comp in components:
        if not type_filter or comp.get("type") == type_filter:
            out.append(_summarize(comp))
        _flatten(comp.get("components") or [], type_filter, out)
