"""
Form History

Per-form bounded undo/redo stacks of schema snapshots.
"""

import copy
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from formforge.core.constants import MAX_HISTORY
from formforge.core.exceptions import FormStateError

logger = logging.getLogger(__name__)

Schema = dict[str, Any]


@dataclass
class FormHistory:
    """Undo and redo stacks for a single form (most recent entry last)."""

    undo_stack: deque[Schema]
    redo_stack: deque[Schema] = field(default_factory=deque)


class HistoryStore:
    """
    Snapshot history for every form.

    Snapshots are deep copies, so later in-place mutations of the live schema
    never leak into history. Each stack keeps at most `limit` entries and
    evicts the oldest first.
    """

    def __init__(self, limit: int = MAX_HISTORY):
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._histories: dict[str, FormHistory] = {}

    def _get(self, form_id: str) -> FormHistory:
        history = self._histories.get(form_id)
        if history is None:
            history = FormHistory(
                undo_stack=deque(maxlen=self.limit),
                redo_stack=deque(maxlen=self.limit),
            )
            self._histories[form_id] = history
        return history

    def push_snapshot(self, form_id: str, form_schema: Schema) -> None:
        """Record the pre-mutation state. Clears the redo stack."""
        history = self._get(form_id)
        history.undo_stack.append(copy.deepcopy(form_schema))
        history.redo_stack.clear()

    def undo(self, form_id: str, current_schema: Schema) -> Schema:
        """
        Step back one snapshot.

        Args:
            form_id: Form whose history to use
            current_schema: Live schema, saved onto the redo stack

        Returns:
            The schema to restore

        Raises:
            FormStateError: Nothing to undo
        """
        history = self._get(form_id)
        if not history.undo_stack:
            raise FormStateError("Nothing to undo")
        previous = history.undo_stack.pop()
        history.redo_stack.append(copy.deepcopy(current_schema))
        logger.debug(f"Undo on form '{form_id}' ({len(history.undo_stack)} left)")
        return previous

    def redo(self, form_id: str, current_schema: Schema) -> Schema:
        """Step forward one snapshot; the live schema goes back onto the undo stack."""
        history = self._get(form_id)
        if not history.redo_stack:
            raise FormStateError("Nothing to redo")
        following = history.redo_stack.pop()
        history.undo_stack.append(copy.deepcopy(current_schema))
        logger.debug(f"Redo on form '{form_id}' ({len(history.redo_stack)} left)")
        return following

    def undo_count(self, form_id: str) -> int:
        history = self._histories.get(form_id)
        return len(history.undo_stack) if history else 0

    def redo_count(self, form_id: str) -> int:
        history = self._histories.get(form_id)
        return len(history.redo_stack) if history else 0

    def clear(self, form_id: str) -> None:
        """Forget all history for a form."""
        self._histories.pop(form_id, None)
