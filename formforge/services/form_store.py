"""
Form Store

In-memory registry of forms keyed by form id, with a single optional change
listener used as a persistence sink.
"""

import logging
import secrets
import time
from typing import Any, Callable

from formforge.config import Settings, get_settings
from formforge.core.exceptions import FormReferenceError
from formforge.models.contracts.forms import FormState
from formforge.models.enums import FormChangeEvent, HintLevel

logger = logging.getLogger(__name__)

ChangeListener = Callable[[FormChangeEvent, str, FormState | None], None]


def create_empty_schema(settings: Settings | None = None) -> dict[str, Any]:
    """Build a fresh, empty form-js schema."""
    settings = settings or get_settings()
    return {
        "type": "default",
        "id": f"Form_{secrets.token_hex(4)}",
        "schemaVersion": settings.schema_version,
        "exporter": settings.exporter,
        "components": [],
    }


class FormStore:
    """Holds every open form and notifies the change listener on writes."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._forms: dict[str, FormState] = {}
        self._listener: ChangeListener | None = None

    def get(self, form_id: str) -> FormState | None:
        return self._forms.get(form_id)

    def require(self, form_id: str) -> FormState:
        """Get a form or raise FormReferenceError."""
        state = self._forms.get(form_id)
        if state is None:
            raise FormReferenceError(f"Form not found: {form_id}")
        return state

    def __contains__(self, form_id: str) -> bool:
        return form_id in self._forms

    def __len__(self) -> int:
        return len(self._forms)

    def store(
        self,
        form_id: str,
        form_schema: dict[str, Any],
        name: str | None = None,
        hint_level: HintLevel | None = None,
    ) -> FormState:
        """Store (or replace) a form and notify the listener."""
        state = FormState(
            form_schema=form_schema,
            name=name,
            hint_level=hint_level or self.settings.default_hint_level,
        )
        self._forms[form_id] = state
        logger.info(f"Stored form '{form_id}' ({name or 'unnamed'})")
        self._notify(FormChangeEvent.STORE, form_id, state)
        return state

    def delete(self, form_id: str) -> bool:
        """Remove a form. Returns False when it was not stored."""
        if self._forms.pop(form_id, None) is None:
            return False
        logger.info(f"Deleted form '{form_id}'")
        self._notify(FormChangeEvent.DELETE, form_id, None)
        return True

    def list_all(self) -> list[tuple[str, FormState]]:
        """All forms in insertion order."""
        return list(self._forms.items())

    def generate_form_id(self) -> str:
        """Generate a fresh form id: form_<ms timestamp>_<12 hex>."""
        form_id = f"form_{int(time.time() * 1000)}_{secrets.token_hex(6)}"
        while form_id in self._forms:
            form_id = f"form_{int(time.time() * 1000)}_{secrets.token_hex(6)}"
        return form_id

    def touch(self, form_id: str) -> FormState:
        """Bump the version of a form mutated in place and notify the listener."""
        state = self.require(form_id)
        state.version += 1
        self.notify_changed(form_id)
        return state

    def notify_changed(self, form_id: str) -> None:
        """Signal an in-place mutation to the listener."""
        state = self._forms.get(form_id)
        if state is not None:
            self._notify(FormChangeEvent.STORE, form_id, state)

    def set_change_listener(self, listener: ChangeListener | None) -> None:
        self._listener = listener

    def _notify(self, event: FormChangeEvent, form_id: str, state: FormState | None) -> None:
        if self._listener is not None:
            self._listener(event, form_id, state)
