"""
Form Auto Layout

Assigns layout.columns / layout.row across a component tree with one of
three strategies:

- single-column: every component spans the full grid, no rows
- two-column: regular fields are paired side-by-side, full-width types get
  their own row
- compact: fields are packed left to right by a natural width per type

Containers are laid out recursively with the same grid width. Row ids are
fresh on every run.
"""

import logging
from typing import Any, Callable

from formforge.core.constants import DEFAULT_COLUMNS, FULL_WIDTH_TYPES
from formforge.core.exceptions import FormConstraintError
from formforge.models.enums import LayoutStrategy
from formforge.services.form_store import FormStore
from formforge.services.form_tree import Component, generate_row_id, is_presentation_type
from formforge.services.form_validator import mutation_result

logger = logging.getLogger(__name__)

RowIdFactory = Callable[[], str]


def _full_width(comp: Component, grid_width: int) -> None:
    layout = comp.setdefault("layout", {})
    layout["columns"] = grid_width
    layout.pop("row", None)


def layout_single_column(components: list[Component], grid_width: int) -> int:
    count = 0
    for comp in components:
        _full_width(comp, grid_width)
        count += 1
        if comp.get("components"):
            count += layout_single_column(comp["components"], grid_width)
    return count


def layout_two_column(
    components: list[Component],
    grid_width: int,
    row_id_factory: RowIdFactory = generate_row_id,
) -> int:
    """
    Pair regular fields: the first gets grid_width // 2, the second the rest.

    A field left unpaired before a full-width type (or at the end of the
    list) spans the whole grid without a row. A grid too narrow to split
    gives every field the whole grid.
    """
    half = grid_width // 2
    if half < 1:
        return layout_single_column(components, grid_width)
    count = 0
    pending: Component | None = None

    for comp in components:
        comp.setdefault("layout", {})

        if comp.get("type") in FULL_WIDTH_TYPES:
            if pending is not None:
                _full_width(pending, grid_width)
                count += 1
                pending = None
            _full_width(comp, grid_width)
            count += 1
            if comp.get("components"):
                count += layout_two_column(comp["components"], grid_width, row_id_factory)
            continue

        if pending is None:
            pending = comp
            continue

        row = row_id_factory()
        pending["layout"]["columns"] = half
        pending["layout"]["row"] = row
        comp["layout"]["columns"] = grid_width - half
        comp["layout"]["row"] = row
        count += 2
        pending = None

    if pending is not None:
        _full_width(pending, grid_width)
        count += 1

    return count


def natural_width(field_type: str | None, grid_width: int) -> int:
    """Width a field takes in the compact layout, clamped to [1, grid_width]."""
    if field_type == "checkbox":
        width = max(4, grid_width // 4)
    elif field_type in ("number", "datetime"):
        width = max(4, grid_width // 3)
    elif is_presentation_type(field_type):
        width = grid_width
    else:
        width = grid_width // 2
    return max(1, min(width, grid_width))


def layout_compact(
    components: list[Component],
    grid_width: int,
    row_id_factory: RowIdFactory = generate_row_id,
) -> int:
    """Pack fields left to right, opening a new row when the next one does not fit."""
    count = 0
    remaining = grid_width
    row: str | None = None

    for comp in components:
        layout = comp.setdefault("layout", {})

        if comp.get("type") in FULL_WIDTH_TYPES:
            remaining = grid_width
            row = None
            _full_width(comp, grid_width)
            count += 1
            if comp.get("components"):
                count += layout_compact(comp["components"], grid_width, row_id_factory)
            continue

        width = natural_width(comp.get("type"), grid_width)
        if width > remaining:
            remaining = grid_width
            row = None
        if row is None:
            row = row_id_factory()

        layout["columns"] = width
        layout["row"] = row
        remaining -= width
        count += 1

        if remaining <= 0:
            remaining = grid_width
            row = None

    return count


def apply_layout(
    components: list[Component],
    strategy: LayoutStrategy,
    grid_width: int,
    row_id_factory: RowIdFactory = generate_row_id,
) -> int:
    """Run a layout strategy over a component list; returns components laid out."""
    if strategy == LayoutStrategy.SINGLE_COLUMN:
        return layout_single_column(components, grid_width)
    if strategy == LayoutStrategy.TWO_COLUMN:
        return layout_two_column(components, grid_width, row_id_factory)
    return layout_compact(components, grid_width, row_id_factory)


class FormLayoutService:
    """Applies auto layout strategies to stored forms."""

    def __init__(
        self,
        store: FormStore,
        row_id_factory: RowIdFactory | None = None,
        default_columns: int = DEFAULT_COLUMNS,
    ):
        self.store = store
        self._row_id_factory = row_id_factory or generate_row_id
        self.default_columns = default_columns

    def auto_layout(
        self,
        form_id: str,
        strategy: str = LayoutStrategy.SINGLE_COLUMN.value,
        columns: int | None = None,
    ) -> dict[str, Any]:
        """
        Apply a layout strategy to the whole form.

        Raises:
            FormReferenceError: Form not found
            FormConstraintError: Grid width outside 1..16 or unknown strategy
        """
        state = self.store.require(form_id)

        grid_width = self.default_columns if columns is None else columns
        if isinstance(grid_width, bool) or not isinstance(grid_width, int) or not 1 <= grid_width <= DEFAULT_COLUMNS:
            raise FormConstraintError(f"columns must be an integer between 1 and {DEFAULT_COLUMNS}")

        try:
            layout_strategy = LayoutStrategy(strategy)
        except ValueError as e:
            raise FormConstraintError(
                f"Invalid strategy: {strategy}. Use one of: {', '.join(s.value for s in LayoutStrategy)}"
            ) from e

        count = apply_layout(
            state.form_schema["components"], layout_strategy, grid_width, self._row_id_factory
        )
        state = self.store.touch(form_id)

        logger.info(f"Applied {layout_strategy.value} layout to {count} components in form '{form_id}'")
        return mutation_result(
            state,
            {
                "form_id": form_id,
                "strategy": layout_strategy.value,
                "grid_width": grid_width,
                "components_laid_out": count,
                "message": f'Applied "{layout_strategy.value}" layout to {count} components',
            },
        )
