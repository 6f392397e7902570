"""
Form Engine

Single entry point for every form operation. Owns the store, the history
and the services, and routes calls by operation name:

    engine = FormEngine()
    created = engine.execute("create_form", {"name": "Onboarding"})
    engine.execute("add_form_component", {"form_id": created["form_id"], "type": "textfield", "label": "Name"})

Mutating operations record an undo snapshot after they succeed. Batches run a
list of operations against one form atomically: the first failure restores
the pre-batch schema and version.
"""

import copy
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError

from formforge.config import Settings, get_settings
from formforge.core.exceptions import FormEngineError, FormStateError
from formforge.models.contracts.forms import BatchOperation
from formforge.models.enums import HistoryAction
from formforge.services.form_components_service import FormComponentsService, IdFactory
from formforge.services.form_history import HistoryStore
from formforge.services.form_layout import FormLayoutService, RowIdFactory
from formforge.services.form_properties_service import FormPropertiesService
from formforge.services.form_service import FormService
from formforge.services.form_store import FormStore
from formforge.services.form_tree import count_components
from formforge.services.form_validator import mutation_result

logger = logging.getLogger(__name__)

BATCH_OPERATION = "batch_form_operations"
HISTORY_OPERATION = "form_history"


@dataclass
class Operation:
    """A named engine operation."""

    handler: Callable[..., dict[str, Any]]
    mutating: bool = False  # records an undo snapshot on success
    batchable: bool = False  # may appear inside batch_form_operations

    @property
    def form_scoped(self) -> bool:
        return "form_id" in inspect.signature(self.handler).parameters


class FormEngine:
    """Dispatches operations to the form services and keeps undo history."""

    def __init__(
        self,
        settings: Settings | None = None,
        store: FormStore | None = None,
        history: HistoryStore | None = None,
        id_factory: IdFactory | None = None,
        row_id_factory: RowIdFactory | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = store or FormStore(self.settings)
        self.history = history or HistoryStore(self.settings.history_limit)

        self.forms = FormService(self.store, self.settings)
        self.components = FormComponentsService(self.store, id_factory=id_factory)
        self.properties = FormPropertiesService(self.store)
        self.layout = FormLayoutService(
            self.store, row_id_factory=row_id_factory, default_columns=self.settings.grid_columns
        )

        self._operations: dict[str, Operation] = {
            # Form lifecycle
            "create_form": Operation(self.forms.create_form),
            "import_form_schema": Operation(self.forms.import_form_schema),
            "clone_form": Operation(self.forms.clone_form),
            "export_form": Operation(self.forms.export_form, batchable=True),
            "delete_form": Operation(self.delete_form),
            "list_forms": Operation(self.forms.list_forms),
            # Inspection
            "validate_form": Operation(self.forms.validate_form, batchable=True),
            "summarize_form": Operation(self.forms.summarize_form, batchable=True),
            "get_form_variables": Operation(self.forms.get_form_variables, batchable=True),
            "diff_forms": Operation(self.forms.diff_forms),
            "list_form_components": Operation(self.components.list_components, batchable=True),
            "get_form_component_properties": Operation(self.components.get_component_properties, batchable=True),
            # Engine
            "auto_layout_form": Operation(self.layout.auto_layout, mutating=True, batchable=True),
            BATCH_OPERATION: Operation(self.run_batch),
            HISTORY_OPERATION: Operation(self.form_history),
            "set_form_hint_level": Operation(self.properties.set_hint_level, batchable=True),
            # Components
            "add_form_component": Operation(self.components.add_component, mutating=True, batchable=True),
            "delete_form_component": Operation(self.components.delete_component, mutating=True, batchable=True),
            "move_form_component": Operation(self.components.move_component, mutating=True, batchable=True),
            "duplicate_form_component": Operation(
                self.components.duplicate_component, mutating=True, batchable=True
            ),
            "replace_form_component": Operation(
                self.components.replace_component_type, mutating=True, batchable=True
            ),
            # Properties
            "set_form_component_properties": Operation(
                self.properties.set_component_properties, mutating=True, batchable=True
            ),
            "set_form_validation": Operation(self.properties.set_validation, mutating=True, batchable=True),
            "set_form_conditional": Operation(self.properties.set_conditional, mutating=True, batchable=True),
            "set_form_layout": Operation(self.properties.set_layout, mutating=True, batchable=True),
            "set_form_options": Operation(self.properties.set_options, mutating=True, batchable=True),
        }

    @property
    def operation_names(self) -> list[str]:
        return list(self._operations)

    # =========================================================================
    # Dispatch
    # =========================================================================

    def execute(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Run an operation by name.

        Raises:
            FormStateError: Unknown operation or arguments that do not match it
            FormEngineError: Any error raised by the operation itself
        """
        operation = self._get_operation(name)
        args = dict(arguments or {})
        self._check_arguments(name, operation, args)

        snapshot = None
        if operation.mutating:
            snapshot = copy.deepcopy(self.store.require(args["form_id"]).form_schema)

        result = operation.handler(**args)

        if snapshot is not None:
            self.history.push_snapshot(args["form_id"], snapshot)
        return result

    def _get_operation(self, name: str) -> Operation:
        operation = self._operations.get(name)
        if operation is None:
            raise FormStateError(f"Unknown operation: {name}")
        return operation

    @staticmethod
    def _check_arguments(name: str, operation: Operation, args: dict[str, Any]) -> None:
        try:
            inspect.signature(operation.handler).bind(**args)
        except TypeError as e:
            raise FormStateError(f"Invalid arguments for {name}: {e}") from e

    # =========================================================================
    # Batch
    # =========================================================================

    def run_batch(self, form_id: str, operations: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Execute operations against one form atomically.

        Each record is {"tool": <operation name>, "args": {...}}; a missing
        form_id in args defaults to the batch target. On the first failure the
        form's schema and version are restored and the report carries
        success=False, completed_operations, failed_operation, error,
        rolled_back=True and the per-operation results. A successful batch that
        ran at least one mutating operation is recorded as a single undo step.
        """
        state = self.store.require(form_id)
        if not isinstance(operations, list) or not operations:
            raise FormStateError("operations must be a non-empty array")

        snapshot = copy.deepcopy(state.form_schema)
        snapshot_version = state.version
        snapshot_hint_level = state.hint_level

        results: list[dict[str, Any]] = []
        mutated = False
        for raw in operations:
            tool = raw.get("tool") if isinstance(raw, dict) else None
            try:
                record = self._parse_batch_record(raw, form_id)
                tool = record.tool
                operation = self._get_operation(record.tool)
                self._check_arguments(record.tool, operation, record.args)
                result = operation.handler(**record.args)
                mutated = mutated or operation.mutating
            except Exception as e:
                self._restore(form_id, snapshot, snapshot_version, snapshot_hint_level)
                if not isinstance(e, FormEngineError):
                    logger.exception(f"Unexpected error in batch on form '{form_id}', rolled back")
                    raise
                logger.warning(
                    f"Batch on form '{form_id}' failed at operation {len(results) + 1} "
                    f"({tool}): {e.message}; rolled back"
                )
                results.append({"tool": tool, "success": False, "error": e.message})
                return {
                    "success": False,
                    "completed_operations": len(results) - 1,
                    "failed_operation": tool,
                    "error": e.message,
                    "rolled_back": True,
                    "results": results,
                    "version": snapshot_version,
                }
            results.append({"tool": record.tool, "success": True, "result": result})

        if mutated:
            self.history.push_snapshot(form_id, snapshot)
        logger.info(f"Batch of {len(results)} operation(s) committed on form '{form_id}'")
        return mutation_result(
            self.store.require(form_id),
            {
                "success": True,
                "completed_operations": len(results),
                "results": results,
                "message": f"Successfully executed {len(results)} operations",
            },
        )

    def _parse_batch_record(self, raw: Any, form_id: str) -> BatchOperation:
        try:
            record = BatchOperation.model_validate(raw)
        except ValidationError as e:
            raise FormStateError(
                'Each operation must be an object with a "tool" string and optional "args" object'
            ) from e

        if record.tool == BATCH_OPERATION:
            raise FormStateError(f"Cannot nest {BATCH_OPERATION}")
        if record.tool == HISTORY_OPERATION:
            raise FormStateError("Undo/redo cannot run inside a batch")

        operation = self._get_operation(record.tool)
        if not operation.batchable:
            raise FormStateError(f"{record.tool} cannot run inside a batch")

        if operation.form_scoped:
            target = record.args.setdefault("form_id", form_id)
            if target != form_id:
                raise FormStateError(
                    f"Operation {record.tool} targets form {target}, but the batch targets {form_id}"
                )
        return record

    def _restore(self, form_id: str, form_schema: dict[str, Any], version: int, hint_level: Any) -> None:
        state = self.store.get(form_id)
        if state is None:
            return
        state.form_schema = form_schema
        state.version = version
        state.hint_level = hint_level
        self.store.notify_changed(form_id)

    # =========================================================================
    # History
    # =========================================================================

    def undo(self, form_id: str) -> dict[str, Any]:
        return self.form_history(form_id, HistoryAction.UNDO.value)

    def redo(self, form_id: str) -> dict[str, Any]:
        return self.form_history(form_id, HistoryAction.REDO.value)

    def form_history(self, form_id: str, action: str) -> dict[str, Any]:
        """
        Undo or redo the last change to a form.

        Raises:
            FormStateError: Invalid action, or nothing to undo / redo
        """
        state = self.store.require(form_id)
        try:
            history_action = HistoryAction(action)
        except ValueError as e:
            raise FormStateError(f'Invalid action: {action}. Use "undo" or "redo".') from e

        if history_action == HistoryAction.UNDO:
            state.form_schema = self.history.undo(form_id, state.form_schema)
            message = "Undid last change"
        else:
            state.form_schema = self.history.redo(form_id, state.form_schema)
            message = "Redid last change"
        state = self.store.touch(form_id)

        logger.info(f"{message} on form '{form_id}' (version {state.version})")
        return {
            "action": history_action.value,
            "form_id": form_id,
            "component_count": count_components(state.form_schema.get("components") or []),
            "undo_remaining": self.history.undo_count(form_id),
            "redo_available": self.history.redo_count(form_id),
            "version": state.version,
            "message": message,
        }

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def delete_form(self, form_id: str) -> dict[str, Any]:
        """Delete a form and forget its history."""
        result = self.forms.delete_form(form_id)
        self.history.clear(form_id)
        return result
