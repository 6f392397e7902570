"""
Form Tree Helpers

Pure traversal helpers over a form-js component tree:
- Find components by id / key, or the list that owns them
- Collect keys and ids, count components
- Type predicates and id / key generation

Nothing in this module mutates the tree. Components are plain dicts and a
missing "components" entry is treated as an empty list.
"""

import re
import secrets
from typing import Any, Iterator

from formforge.core.constants import (
    CONTAINER_FIELD_TYPES,
    KEYED_FIELD_TYPES,
    OPTIONS_FIELD_TYPES,
    PRESENTATION_FIELD_TYPES,
    SUPPORTED_FIELD_TYPES,
)

Component = dict[str, Any]

_NON_WORD = re.compile(r"[^\w]", re.ASCII)


# =============================================================================
# Lookup
# =============================================================================


def find_component_by_id(components: list[Component], component_id: str) -> Component | None:
    """Find a component by id anywhere in the tree (depth-first, first match)."""
    for comp in components:
        if comp.get("id") == component_id:
            return comp
        found = find_component_by_id(comp.get("components") or [], component_id)
        if found is not None:
            return found
    return None


def find_component_by_key(components: list[Component], key: str) -> Component | None:
    """Find a component by key anywhere in the tree (depth-first, first match)."""
    for comp in components:
        if comp.get("key") == key:
            return comp
        found = find_component_by_key(comp.get("components") or [], key)
        if found is not None:
            return found
    return None


def find_parent_components(components: list[Component], component_id: str) -> list[Component] | None:
    """
    Find the list that directly contains the component with this id.

    Returns the live list (not a copy) so callers can splice it.
    """
    for comp in components:
        if comp.get("id") == component_id:
            return components
        children = comp.get("components")
        if children:
            found = find_parent_components(children, component_id)
            if found is not None:
                return found
    return None


def find_parent_component(components: list[Component], component_id: str) -> Component | None:
    """Find the container owning a component; None when it sits at the root."""
    for comp in components:
        children = comp.get("components") or []
        if any(child.get("id") == component_id for child in children):
            return comp
        found = find_parent_component(children, component_id)
        if found is not None:
            return found
    return None


def index_of(components: list[Component], component_id: str) -> int:
    """Position of a component within its owning list, matched by id."""
    for idx, comp in enumerate(components):
        if comp.get("id") == component_id:
            return idx
    raise ValueError(f"Component {component_id} is not in this list")


def is_descendant(component: Component, candidate_id: str) -> bool:
    """Check whether candidate_id is the component itself or anywhere below it."""
    if component.get("id") == candidate_id:
        return True
    return find_component_by_id(component.get("components") or [], candidate_id) is not None


def iter_components(
    components: list[Component],
    depth: int = 0,
    parent_path: str = "components",
) -> Iterator[tuple[Component, int, str]]:
    """Walk the tree depth-first yielding (component, depth, path)."""
    for idx, comp in enumerate(components):
        path = f"{parent_path}[{idx}]"
        yield comp, depth, path
        children = comp.get("components")
        if isinstance(children, list):
            yield from iter_components(children, depth + 1, f"{path}.components")


# =============================================================================
# Collection
# =============================================================================


def collect_all_keys(components: list[Component]) -> list[str]:
    """Collect every key in the tree, in depth-first order."""
    return [comp["key"] for comp, _, _ in iter_components(components) if comp.get("key")]


def collect_all_ids(components: list[Component]) -> list[str]:
    """Collect every id in the tree, in depth-first order."""
    return [comp["id"] for comp, _, _ in iter_components(components) if comp.get("id")]


def count_components(components: list[Component]) -> int:
    """Count components recursively."""
    count = 0
    for comp in components:
        count += 1
        count += count_components(comp.get("components") or [])
    return count


# =============================================================================
# Type predicates
# =============================================================================


def is_supported_type(field_type: str | None) -> bool:
    return field_type in SUPPORTED_FIELD_TYPES


def is_keyed_type(field_type: str | None) -> bool:
    """Check if a field type binds to a data variable via key."""
    return field_type in KEYED_FIELD_TYPES


def is_container_type(field_type: str | None) -> bool:
    return field_type in CONTAINER_FIELD_TYPES


def accepts_options(field_type: str | None) -> bool:
    """Check if a field type takes values / valuesKey / valuesExpression."""
    return field_type in OPTIONS_FIELD_TYPES


def is_presentation_type(field_type: str | None) -> bool:
    return field_type in PRESENTATION_FIELD_TYPES


# =============================================================================
# Id / key generation
# =============================================================================


def random_suffix(nbytes: int = 4) -> str:
    """Random lowercase hex suffix (2 chars per byte)."""
    return secrets.token_hex(nbytes)


def generate_component_id(field_type: str, label: str | None = None) -> str:
    """
    Generate a component id from type and optional label.

    Examples:
        ("textfield", "First Name") -> "Textfield_FirstName_1a2b3c4d"
        ("group", None) -> "Group_1a2b3c4d"
    """
    prefix = field_type[:1].upper() + field_type[1:]
    suffix = random_suffix(4)
    if label:
        clean = _NON_WORD.sub("", label)[:20]
        if clean:
            return f"{prefix}_{clean}_{suffix}"
    return f"{prefix}_{suffix}"


def generate_unique_component_id(
    components: list[Component],
    field_type: str,
    label: str | None = None,
    taken: set[str] | None = None,
) -> str:
    """Generate a component id that does not collide with any id in the tree."""
    existing = taken if taken is not None else set(collect_all_ids(components))
    component_id = generate_component_id(field_type, label)
    while component_id in existing:
        component_id = generate_component_id(field_type, label)
    existing.add(component_id)
    return component_id


def generate_row_id() -> str:
    """Opaque layout row identifier."""
    return f"Row_{random_suffix(3)}"


def derive_key(label: str | None, field_type: str) -> str:
    """
    Derive a data-binding key from a label, falling back to the type name.

    Non-word characters are stripped, the result is capped at 30 characters
    and its first letter is lower-cased.
    """
    base = _NON_WORD.sub("", label)[:30] if label else ""
    if not base:
        base = field_type
    return base[:1].lower() + base[1:]


def make_unique_key(base: str, existing_keys: set[str] | list[str]) -> str:
    """Append an increasing numeric suffix (1, 2, ...) until base is unused."""
    taken = set(existing_keys)
    candidate = base
    suffix = 1
    while candidate in taken:
        candidate = f"{base}{suffix}"
        suffix += 1
    return candidate


def make_copy_key(key: str, existing_keys: set[str]) -> str:
    """Key for a duplicated component: <key>_copy, then <key>_copy1, <key>_copy2, ..."""
    candidate = f"{key}_copy"
    counter = 1
    while candidate in existing_keys:
        candidate = f"{key}_copy{counter}"
        counter += 1
    return candidate
