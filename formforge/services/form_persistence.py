"""
File-backed Form Persistence

Optional persistence sink for the form store. Forms are written as
<form_id>.form JSON files next to a meta.json manifest:

    <dir>/
        meta.json        {"forms": {"<form_id>": {"name": ..., "file": "<form_id>.form"}}}
        <form_id>.form   form schema JSON
"""

import json
import logging
from pathlib import Path
from typing import Any

from formforge.core.exceptions import FormEngineError
from formforge.models.contracts.forms import FormState
from formforge.models.enums import FormChangeEvent
from formforge.services.form_store import FormStore

logger = logging.getLogger(__name__)

META_FILE = "meta.json"
FORM_SUFFIX = ".form"


class PersistenceError(FormEngineError):
    """Raised when a written form file does not read back as valid JSON."""


class FilePersistence:
    """Writes forms to disk on every store change and loads them back at startup."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory).resolve()

    def enable(self, store: FormStore) -> int:
        """
        Create the directory, load existing forms into the store and register
        the change listener.

        Returns:
            Number of forms loaded from disk
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        loaded = self.load_forms(store)
        store.set_change_listener(self.on_form_change)
        logger.info(f"Form persistence enabled at {self.directory} ({loaded} form(s) loaded)")
        return loaded

    def on_form_change(self, event: FormChangeEvent, form_id: str, state: FormState | None) -> None:
        if event == FormChangeEvent.STORE and state is not None:
            self.persist_form(form_id, state)
        elif event == FormChangeEvent.DELETE:
            self.delete_form(form_id)

    # =========================================================================
    # Write
    # =========================================================================

    def persist_form(self, form_id: str, state: FormState) -> None:
        """Write a form file, verify it parses, then update the manifest."""
        path = self._form_path(form_id)
        path.write_text(json.dumps(state.form_schema, indent=2), encoding="utf-8")

        try:
            json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Persisted form file is corrupt: {path}") from e

        meta = self._read_meta() or {"forms": {}}
        meta["forms"][form_id] = {"name": state.name, "file": path.name}
        self._write_meta(meta)
        logger.debug(f"Persisted form '{form_id}' to {path}")

    def delete_form(self, form_id: str) -> None:
        """Remove a form file and its manifest entry."""
        path = self._form_path(form_id)
        if path.exists():
            path.unlink()
        meta = self._read_meta()
        if meta is not None:
            meta["forms"].pop(form_id, None)
            self._write_meta(meta)
        logger.debug(f"Removed persisted form '{form_id}'")

    # =========================================================================
    # Load
    # =========================================================================

    def load_forms(self, store: FormStore) -> int:
        """
        Load persisted forms into the store.

        Uses the manifest when present (keeps form ids and names), otherwise
        scans the directory for .form files.
        """
        if not self.directory.exists():
            return 0

        loaded = 0
        meta = self._read_meta()
        if meta is not None:
            for form_id, entry in meta["forms"].items():
                schema = self._read_form_file(self.directory / entry.get("file", f"{form_id}{FORM_SUFFIX}"))
                if schema is None:
                    continue
                store.store(form_id, schema, name=entry.get("name"))
                loaded += 1
            return loaded

        for path in sorted(self.directory.glob(f"*{FORM_SUFFIX}")):
            schema = self._read_form_file(path)
            if schema is None:
                continue
            form_id = path.stem
            store.store(form_id, schema, name=schema.get("id") or form_id)
            loaded += 1
        return loaded

    # =========================================================================
    # Helpers
    # =========================================================================

    def _form_path(self, form_id: str) -> Path:
        return self.directory / f"{form_id}{FORM_SUFFIX}"

    def _read_meta(self) -> dict[str, Any] | None:
        path = self.directory / META_FILE
        if not path.exists():
            return None
        try:
            meta = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unreadable manifest {path}")
            return None
        if not isinstance(meta, dict) or not isinstance(meta.get("forms"), dict):
            logger.warning(f"Ignoring malformed manifest {path}")
            return None
        return meta

    def _write_meta(self, meta: dict[str, Any]) -> None:
        (self.directory / META_FILE).write_text(json.dumps(meta, indent=2), encoding="utf-8")

    @staticmethod
    def _read_form_file(path: Path) -> dict[str, Any] | None:
        if not path.exists():
            return None
        try:
            schema = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(f"Skipping unreadable form file {path}")
            return None
        if not isinstance(schema, dict) or not isinstance(schema.get("components"), list):
            logger.warning(f"Skipping form file without components: {path}")
            return None
        schema.setdefault("type", "default")
        return schema
