"""
Unit tests for FormEngine.

Tests cover:
- Operation dispatch and argument checking
- Undo/redo through form_history
- Atomic batches with rollback
- Hint-level feedback on mutation responses
"""

import pytest

from formforge.core.exceptions import FormReferenceError, FormStateError
from formforge.models.enums import HintLevel


def _root(engine, form_id):
    return engine.store.require(form_id).form_schema["components"]


class TestDispatch:
    """Tests for execute()"""

    def test_unknown_operation(self, engine):
        with pytest.raises(FormStateError, match="Unknown operation: explode"):
            engine.execute("explode", {})

    def test_unexpected_argument(self, engine, form_id):
        with pytest.raises(FormStateError, match="Invalid arguments for add_form_component"):
            engine.execute("add_form_component", {"form_id": form_id, "type": "textfield", "colour": "red"})

    def test_missing_required_argument(self, engine):
        with pytest.raises(FormStateError, match="Invalid arguments for delete_form_component"):
            engine.execute("delete_form_component", {"component_id": "x"})

    def test_operation_names(self, engine):
        names = engine.operation_names
        assert len(names) == 26
        assert "batch_form_operations" in names
        assert "form_history" in names

    def test_labels_make_unique_keys(self, add):
        """Two fields labelled "Name" bind to name and name1"""
        assert add("textfield", label="Name")["key"] == "name"
        assert add("textfield", label="Name")["key"] == "name1"


class TestHistory:
    """Tests for undo / redo"""

    def test_mutation_records_snapshot(self, engine, form_id, add):
        add("textfield")
        assert engine.history.undo_count(form_id) == 1

    def test_failed_mutation_records_nothing(self, engine, form_id, add):
        with pytest.raises(FormReferenceError):
            engine.execute("delete_form_component", {"form_id": form_id, "component_id": "ghost"})
        assert engine.history.undo_count(form_id) == 0

    def test_read_only_operation_records_nothing(self, engine, form_id):
        engine.execute("summarize_form", {"form_id": form_id})
        assert engine.history.undo_count(form_id) == 0

    def test_undo_redo_round_trip(self, engine, form_id, add):
        """Should restore the previous schema and bump the version each step"""
        add("textfield", label="A")
        add("textfield", label="B")

        undone = engine.execute("form_history", {"form_id": form_id, "action": "undo"})
        assert undone["component_count"] == 1
        assert undone["undo_remaining"] == 1
        assert undone["redo_available"] == 1
        assert undone["version"] == 3
        assert [c["key"] for c in _root(engine, form_id)] == ["a"]

        redone = engine.execute("form_history", {"form_id": form_id, "action": "redo"})
        assert redone["component_count"] == 2
        assert redone["version"] == 4
        assert [c["key"] for c in _root(engine, form_id)] == ["a", "b"]

    def test_new_change_after_undo_clears_redo(self, engine, form_id, add):
        add("textfield")
        engine.undo(form_id)
        add("number")
        with pytest.raises(FormStateError, match="Nothing to redo"):
            engine.redo(form_id)

    def test_nothing_to_undo(self, engine, form_id):
        with pytest.raises(FormStateError, match="Nothing to undo"):
            engine.execute("form_history", {"form_id": form_id, "action": "undo"})

    def test_invalid_action(self, engine, form_id):
        with pytest.raises(FormStateError, match="Invalid action: rewind"):
            engine.execute("form_history", {"form_id": form_id, "action": "rewind"})

    def test_delete_form_clears_history(self, engine, form_id, add):
        add("textfield")
        engine.execute("delete_form", {"form_id": form_id})
        assert engine.history.undo_count(form_id) == 0
        assert form_id not in engine.store


class TestBatch:
    """Tests for batch_form_operations"""

    def test_successful_batch(self, engine, form_id):
        result = engine.execute(
            "batch_form_operations",
            {
                "form_id": form_id,
                "operations": [
                    {"tool": "add_form_component", "args": {"type": "textfield", "label": "Name"}},
                    {"tool": "add_form_component", "args": {"type": "number", "label": "Age"}},
                    {"tool": "auto_layout_form", "args": {"strategy": "two-column"}},
                ],
            },
        )

        assert result["success"] is True
        assert result["completed_operations"] == 3
        assert result["message"] == "Successfully executed 3 operations"
        assert [r["tool"] for r in result["results"]] == [
            "add_form_component",
            "add_form_component",
            "auto_layout_form",
        ]
        assert result["version"] == 3
        assert [c["layout"]["columns"] for c in _root(engine, form_id)] == [8, 8]

    def test_batch_is_one_undo_step(self, engine, form_id, add):
        add("text")
        engine.execute(
            "batch_form_operations",
            {
                "form_id": form_id,
                "operations": [
                    {"tool": "add_form_component", "args": {"type": "textfield"}},
                    {"tool": "add_form_component", "args": {"type": "textfield"}},
                ],
            },
        )
        assert engine.history.undo_count(form_id) == 2

        engine.undo(form_id)
        assert [c["type"] for c in _root(engine, form_id)] == ["text"]

    def test_read_only_batch_keeps_redo(self, engine, form_id, add):
        """Should not record a step or clear redo when nothing in the batch mutates"""
        add("textfield", label="Name")
        engine.execute("form_history", {"form_id": form_id, "action": "undo"})

        result = engine.execute(
            "batch_form_operations",
            {
                "form_id": form_id,
                "operations": [{"tool": "validate_form"}, {"tool": "list_form_components"}],
            },
        )

        assert result["success"] is True
        assert engine.history.undo_count(form_id) == 0
        assert engine.history.redo_count(form_id) == 1
        engine.execute("form_history", {"form_id": form_id, "action": "redo"})
        assert [c["key"] for c in _root(engine, form_id)] == ["name"]

    def test_failure_rolls_back(self, engine, form_id, add):
        """Should restore schema and version and report the failing step"""
        existing = add("textfield", label="Existing")
        before = engine.store.require(form_id).model_copy(deep=True)

        result = engine.execute(
            "batch_form_operations",
            {
                "form_id": form_id,
                "operations": [
                    {"tool": "add_form_component", "args": {"type": "number", "label": "Age"}},
                    {"tool": "set_form_layout", "args": {"component_id": existing["id"], "columns": 4}},
                    {"tool": "delete_form_component", "args": {"component_id": "ghost"}},
                    {"tool": "add_form_component", "args": {"type": "text"}},
                ],
            },
        )

        assert result["success"] is False
        assert result["rolled_back"] is True
        assert result["completed_operations"] == 2
        assert result["failed_operation"] == "delete_form_component"
        assert result["error"] == "Component not found: ghost"
        assert [r["success"] for r in result["results"]] == [True, True, False]
        assert result["version"] == before.version

        state = engine.store.require(form_id)
        assert state.form_schema == before.form_schema
        assert state.version == before.version
        assert engine.history.undo_count(form_id) == 1

    def test_failure_restores_hint_level(self, engine, form_id):
        result = engine.execute(
            "batch_form_operations",
            {
                "form_id": form_id,
                "operations": [
                    {"tool": "set_form_hint_level", "args": {"level": "none"}},
                    {"tool": "add_form_component", "args": {"type": "widget"}},
                ],
            },
        )
        assert result["success"] is False
        assert engine.store.require(form_id).hint_level == HintLevel.FULL

    def test_form_id_mismatch(self, engine, form_id):
        other = engine.execute("create_form", {"name": "Other"})["form_id"]
        result = engine.execute(
            "batch_form_operations",
            {
                "form_id": form_id,
                "operations": [{"tool": "add_form_component", "args": {"form_id": other, "type": "text"}}],
            },
        )
        assert result["success"] is False
        assert result["completed_operations"] == 0
        assert "but the batch targets" in result["error"]
        assert _root(engine, other) == []

    @pytest.mark.parametrize(
        "record,error",
        [
            ({"tool": "batch_form_operations", "args": {"operations": []}}, "Cannot nest batch_form_operations"),
            ({"tool": "form_history", "args": {"action": "undo"}}, "Undo/redo cannot run inside a batch"),
            ({"tool": "create_form", "args": {}}, "create_form cannot run inside a batch"),
            ({"tool": "nope"}, "Unknown operation: nope"),
            ({"args": {}}, 'Each operation must be an object with a "tool" string'),
            ("add_form_component", 'Each operation must be an object with a "tool" string'),
        ],
    )
    def test_rejected_records(self, engine, form_id, record, error):
        """Should fail the batch on records that cannot run inside it"""
        result = engine.execute(
            "batch_form_operations",
            {"form_id": form_id, "operations": [{"tool": "add_form_component", "args": {"type": "text"}}, record]},
        )
        assert result["success"] is False
        assert result["completed_operations"] == 1
        assert result["error"].startswith(error)
        assert _root(engine, form_id) == []

    def test_bad_arguments_in_batch(self, engine, form_id):
        result = engine.execute(
            "batch_form_operations",
            {"form_id": form_id, "operations": [{"tool": "add_form_component", "args": {"kind": "text"}}]},
        )
        assert result["success"] is False
        assert result["error"].startswith("Invalid arguments for add_form_component")

    def test_empty_operations(self, engine, form_id):
        with pytest.raises(FormStateError, match="non-empty array"):
            engine.execute("batch_form_operations", {"form_id": form_id, "operations": []})

    def test_missing_form(self, engine):
        with pytest.raises(FormReferenceError):
            engine.execute(
                "batch_form_operations", {"form_id": "ghost", "operations": [{"tool": "list_forms"}]}
            )

    def test_unexpected_error_rolls_back_and_raises(self, engine, form_id, monkeypatch):
        """Should restore the form and propagate errors that are not engine errors"""

        def explode(form_id, component_id):
            raise RuntimeError("boom")

        monkeypatch.setattr(engine._operations["delete_form_component"], "handler", explode)

        with pytest.raises(RuntimeError, match="boom"):
            engine.execute(
                "batch_form_operations",
                {
                    "form_id": form_id,
                    "operations": [
                        {"tool": "add_form_component", "args": {"type": "text"}},
                        {"tool": "delete_form_component", "args": {"component_id": "x"}},
                    ],
                },
            )

        assert _root(engine, form_id) == []
        assert engine.store.require(form_id).version == 0


class TestHintFeedback:
    """Tests for validator hints on mutation responses"""

    SCHEMA = {
        "components": [
            {"type": "widget", "id": "w"},
            {"type": "textfield", "id": "t"},
        ]
    }

    @pytest.fixture
    def imported(self, engine):
        return engine.execute("import_form_schema", {"schema": self.SCHEMA})["form_id"]

    def test_full_hints(self, engine, imported):
        result = engine.execute("add_form_component", {"form_id": imported, "type": "text"})
        assert [h["severity"] for h in result["hints"]] == ["warning", "error"]

    def test_minimal_hints(self, engine, imported):
        engine.execute("set_form_hint_level", {"form_id": imported, "level": "minimal"})
        result = engine.execute("add_form_component", {"form_id": imported, "type": "text"})
        assert [h["severity"] for h in result["hints"]] == ["error"]

    def test_no_hints(self, engine, imported):
        engine.execute("set_form_hint_level", {"form_id": imported, "level": "none"})
        result = engine.execute("add_form_component", {"form_id": imported, "type": "text"})
        assert "hints" not in result

    def test_clean_form_has_no_hints(self, engine, form_id):
        result = engine.execute("add_form_component", {"form_id": form_id, "type": "textfield", "label": "Name"})
        assert "hints" not in result
