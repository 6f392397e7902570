"""
Unit tests for FormComponentsService.

Tests cover:
- Adding components (keys, containers, positions, property checks)
- Deleting subtrees
- Moving components, including cycle and container checks
- Duplicating with fresh ids and copy keys
- Type replacement with property migration
- Listing and reading components
"""

import copy

import pytest

from formforge.core.exceptions import FormConstraintError, FormReferenceError
from formforge.services.form_tree import collect_all_ids, collect_all_keys, find_component_by_id


class TestAddComponent:
    """Tests for add_form_component"""

    def test_add_derives_key_from_label(self, add):
        """Should derive a camel-cased key from the label"""
        comp = add("textfield", label="First Name")
        assert comp["key"] == "firstName"
        assert comp["label"] == "First Name"
        assert comp["id"].startswith("Textfield_FirstName_")

    def test_add_same_label_twice_gets_unique_keys(self, add):
        """Should suffix keys so they stay unique"""
        first = add("textfield", label="Name")
        second = add("textfield", label="Name")
        assert first["key"] == "name"
        assert second["key"] == "name1"

    def test_add_explicit_key_made_unique(self, add):
        add("textfield", key="email")
        assert add("textfield", key="email")["key"] == "email1"

    def test_add_key_from_properties(self, add):
        """Should take the key out of properties"""
        comp = add("number", properties={"key": "amount", "description": "Total"})
        assert comp["key"] == "amount"
        assert comp["description"] == "Total"

    def test_add_presentation_type_has_no_key(self, add):
        comp = add("text", properties={"text": "# Hello"})
        assert "key" not in comp
        assert comp["text"] == "# Hello"

    def test_add_container_gets_components_list(self, add):
        assert add("group", label="Address")["components"] == []

    def test_add_into_container(self, engine, form_id, add, components):
        """Should insert into the parent's components list"""
        group = add("group", label="Address")
        street = add("textfield", label="Street", parent_id=group["id"])
        assert components == [group]
        assert group["components"] == [street]

    def test_add_at_position(self, add, components):
        a = add("textfield", label="A")
        b = add("textfield", label="B")
        c = add("textfield", label="C", position=1)
        assert [comp["id"] for comp in components] == [a["id"], c["id"], b["id"]]

    def test_add_position_clamped(self, add, components):
        """Should clamp out-of-range positions"""
        a = add("textfield", label="A")
        b = add("textfield", label="B", position=99)
        c = add("textfield", label="C", position=-5)
        assert [comp["id"] for comp in components] == [c["id"], a["id"], b["id"]]

    def test_add_bumps_version_and_reports_total(self, engine, form_id):
        result = engine.execute("add_form_component", {"form_id": form_id, "type": "textfield"})
        assert result["version"] == 1
        assert result["total_components"] == 1

    def test_add_unsupported_type(self, add):
        with pytest.raises(FormConstraintError, match="Unsupported field type: widget"):
            add("widget")

    def test_add_requires_type_or_source(self, engine, form_id):
        with pytest.raises(FormConstraintError):
            engine.execute("add_form_component", {"form_id": form_id})

    def test_add_to_missing_form(self, engine):
        with pytest.raises(FormReferenceError, match="Form not found: nope"):
            engine.execute("add_form_component", {"form_id": "nope", "type": "textfield"})

    def test_add_to_missing_parent(self, add):
        with pytest.raises(FormReferenceError, match="Parent component not found: ghost"):
            add("textfield", parent_id="ghost")

    def test_add_to_non_container_parent(self, add):
        """Should refuse to nest under a non-container"""
        field = add("textfield", label="Name")
        with pytest.raises(FormConstraintError, match="is not a container"):
            add("textfield", parent_id=field["id"])

    @pytest.mark.parametrize(
        "type,properties",
        [
            ("textfield", {"id": "custom"}),
            ("textfield", {"type": "number"}),
            ("textfield", {"components": []}),
            ("text", {"key": "intro"}),
            ("textfield", {"values": [{"label": "A", "value": "a"}]}),
            ("select", {"values": [], "valuesKey": "opts"}),
            ("textfield", {"layout": {"columns": 17}}),
            ("textfield", {"layout": {"columns": 0}}),
        ],
    )
    def test_add_rejects_invalid_properties(self, add, components, type, properties):
        """Should reject properties that break a tree invariant"""
        with pytest.raises(FormConstraintError):
            add(type, properties=properties)
        assert components == []

    def test_failed_add_leaves_version(self, engine, form_id, add):
        add("textfield")
        with pytest.raises(FormConstraintError):
            add("widget")
        assert engine.store.require(form_id).version == 1

    def test_add_with_injected_id_factory(self, settings, store, history):
        """Should use the injected id factory"""
        from formforge.services.form_engine import FormEngine

        ids = iter(["first", "second"])
        engine = FormEngine(settings, store=store, history=history, id_factory=lambda *_: next(ids))
        form_id = engine.execute("create_form", {})["form_id"]
        result = engine.execute("add_form_component", {"form_id": form_id, "type": "text"})
        assert result["component"]["id"] == "first"

    def test_add_container_with_children_regenerates_ids_and_keys(self, engine, form_id, add, components):
        """Should give supplied children fresh ids and form-wide unique keys"""
        name = add("textfield", label="Name")
        group = add(
            "group",
            label="Person",
            properties={
                "components": [
                    {"type": "textfield", "id": name["id"], "key": "name", "label": "Name"},
                    {"type": "group", "id": "inner", "components": [{"type": "number", "key": "name"}]},
                ]
            },
        )

        child, inner = group["components"]
        assert child["id"] != name["id"]
        assert inner["id"] != "inner"
        assert [child["key"], inner["components"][0]["key"]] == ["name1", "name2"]
        assert len(set(collect_all_ids(components))) == 5

        result = engine.execute("validate_form", {"form_id": form_id})
        assert result["valid"] is True
        assert result["issue_count"] == 0

    @pytest.mark.parametrize(
        "children",
        [
            ["oops"],
            [{"type": "widget"}],
            [{"type": "text", "key": "intro"}],
            [{"type": "textfield", "components": []}],
            [{"type": "group", "components": [{"type": "textfield", "layout": {"columns": 0}}]}],
        ],
    )
    def test_add_container_rejects_invalid_children(self, engine, form_id, add, components, children):
        """Should check supplied children like fresh adds and leave the form unchanged"""
        group = add("group")
        with pytest.raises(FormConstraintError):
            add("group", parent_id=group["id"], properties={"components": children})
        assert components == [group]
        assert group["components"] == []
        assert engine.store.require(form_id).version == 1


class TestDeleteComponent:
    """Tests for delete_form_component"""

    def test_delete_leaf(self, engine, form_id, add, components):
        comp = add("textfield", label="Name")
        result = engine.execute("delete_form_component", {"form_id": form_id, "component_id": comp["id"]})
        assert result["deleted"] == comp["id"]
        assert result["removed_count"] == 1
        assert components == []

    def test_delete_subtree(self, engine, form_id, add, components):
        """Should remove the container and everything below it"""
        group = add("group")
        inner = add("group", parent_id=group["id"])
        add("textfield", parent_id=inner["id"])
        add("textfield", parent_id=group["id"])

        result = engine.execute("delete_form_component", {"form_id": form_id, "component_id": group["id"]})

        assert result["removed_count"] == 4
        assert components == []

    def test_delete_missing_component(self, engine, form_id):
        with pytest.raises(FormReferenceError, match="Component not found: ghost"):
            engine.execute("delete_form_component", {"form_id": form_id, "component_id": "ghost"})

    def test_delete_first_of_same_label_pair(self, engine, form_id, add, components):
        """Should leave the second field and its suffixed key in a valid form"""
        first = add("textfield", label="Name")
        second = add("textfield", label="Name")

        engine.execute("delete_form_component", {"form_id": form_id, "component_id": first["id"]})

        assert components == [second]
        assert collect_all_keys(components) == ["name1"]
        result = engine.execute("validate_form", {"form_id": form_id})
        assert result["valid"] is True
        assert result["issue_count"] == 0


class TestMoveComponent:
    """Tests for move_form_component"""

    def test_move_into_container(self, engine, form_id, add, components):
        field = add("textfield", label="Street")
        group = add("group", label="Address")

        result = engine.execute(
            "move_form_component",
            {"form_id": form_id, "component_id": field["id"], "target_parent_id": group["id"]},
        )

        assert result["target_parent"] == group["id"]
        assert components == [group]
        assert group["components"] == [field]

    def test_move_to_root_position(self, engine, form_id, add, components):
        a = add("textfield", label="A")
        b = add("textfield", label="B")
        c = add("textfield", label="C")

        result = engine.execute("move_form_component", {"form_id": form_id, "component_id": c["id"], "position": 0})

        assert result["position"] == 0
        assert result["target_parent"] == "root"
        assert [comp["id"] for comp in components] == [c["id"], a["id"], b["id"]]

    def test_move_out_of_container(self, engine, form_id, add, components):
        group = add("group")
        field = add("textfield", parent_id=group["id"])

        engine.execute("move_form_component", {"form_id": form_id, "component_id": field["id"]})

        assert group["components"] == []
        assert components[-1] is field

    def test_move_position_clamped(self, engine, form_id, add, components):
        a = add("textfield", label="A")
        b = add("textfield", label="B")
        result = engine.execute(
            "move_form_component", {"form_id": form_id, "component_id": a["id"], "position": 50}
        )
        assert result["position"] == 1
        assert [comp["id"] for comp in components] == [b["id"], a["id"]]

    def test_move_into_itself_rejected(self, engine, form_id, add):
        group = add("group")
        with pytest.raises(FormConstraintError, match="into itself or one of its descendants"):
            engine.execute(
                "move_form_component",
                {"form_id": form_id, "component_id": group["id"], "target_parent_id": group["id"]},
            )

    def test_move_into_descendant_rejected(self, engine, form_id, add, components):
        """Should reject cycles and leave the tree untouched"""
        outer = add("group")
        inner = add("group", parent_id=outer["id"])

        with pytest.raises(FormConstraintError):
            engine.execute(
                "move_form_component",
                {"form_id": form_id, "component_id": outer["id"], "target_parent_id": inner["id"]},
            )

        assert components == [outer]
        assert outer["components"] == [inner]

    def test_move_into_non_container_rejected(self, engine, form_id, add, components):
        """Should check the destination before detaching the component"""
        a = add("textfield", label="A")
        b = add("textfield", label="B")
        with pytest.raises(FormConstraintError, match="is not a container"):
            engine.execute(
                "move_form_component",
                {"form_id": form_id, "component_id": a["id"], "target_parent_id": b["id"]},
            )
        assert components == [a, b]

    def test_move_to_missing_parent(self, engine, form_id, add):
        a = add("textfield")
        with pytest.raises(FormReferenceError, match="Target parent component not found"):
            engine.execute(
                "move_form_component",
                {"form_id": form_id, "component_id": a["id"], "target_parent_id": "ghost"},
            )


class TestDuplicateComponent:
    """Tests for duplicate_form_component and add with source_component_id"""

    def test_duplicate_inserted_after_original(self, engine, form_id, add, components):
        a = add("textfield", label="Email")
        b = add("textfield", label="Phone")

        result = engine.execute("duplicate_form_component", {"form_id": form_id, "component_id": a["id"]})
        clone = result["component"]

        assert [comp["id"] for comp in components] == [a["id"], clone["id"], b["id"]]
        assert clone["id"] != a["id"]
        assert clone["key"] == "email_copy"
        assert clone["label"] == "Email"

    def test_duplicate_twice_suffixes_copy_keys(self, engine, form_id, add):
        a = add("textfield", label="Email")
        engine.execute("duplicate_form_component", {"form_id": form_id, "component_id": a["id"]})
        second = engine.execute("duplicate_form_component", {"form_id": form_id, "component_id": a["id"]})
        assert second["component"]["key"] == "email_copy1"

    def test_duplicate_subtree(self, engine, form_id, add, components):
        """Should give every cloned descendant a fresh id and key"""
        group = add("group", label="Address")
        add("textfield", label="Street", parent_id=group["id"])
        add("textfield", label="City", parent_id=group["id"])

        clone = engine.execute(
            "duplicate_form_component", {"form_id": form_id, "component_id": group["id"]}
        )["component"]

        assert [child["key"] for child in clone["components"]] == ["street_copy", "city_copy"]
        ids = collect_all_ids(components)
        assert len(ids) == len(set(ids)) == 6
        keys = collect_all_keys(components)
        assert len(keys) == len(set(keys))

    def test_duplicate_does_not_share_state(self, engine, form_id, add):
        a = add("select", label="Color", properties={"values": [{"label": "Red", "value": "red"}]})
        clone = engine.execute("duplicate_form_component", {"form_id": form_id, "component_id": a["id"]})["component"]
        clone["values"].append({"label": "Blue", "value": "blue"})
        assert len(a["values"]) == 1

    def test_add_with_source_component_id(self, engine, form_id, add):
        """Should behave like duplicate and ignore other arguments"""
        a = add("textfield", label="Email")
        result = engine.execute(
            "add_form_component",
            {"form_id": form_id, "source_component_id": a["id"], "type": "number"},
        )
        assert result["component"]["type"] == "textfield"
        assert result["component"]["key"] == "email_copy"

    def test_duplicate_missing_component(self, engine, form_id):
        with pytest.raises(FormReferenceError):
            engine.execute("duplicate_form_component", {"form_id": form_id, "component_id": "ghost"})


class TestReplaceComponentType:
    """Tests for replace_form_component"""

    def test_select_to_radio_keeps_options(self, engine, form_id, add):
        comp = add("select", label="Color", properties={"values": [{"label": "Red", "value": "red"}]})

        result = engine.execute(
            "replace_form_component", {"form_id": form_id, "component_id": comp["id"], "new_type": "radio"}
        )

        assert result["old_type"] == "select"
        assert result["new_type"] == "radio"
        assert comp["type"] == "radio"
        assert comp["values"] == [{"label": "Red", "value": "red"}]
        assert comp["key"] == "color"
        assert result["removed"] == []

    def test_select_to_textfield_drops_options(self, engine, form_id, add):
        comp = add("select", label="Color", properties={"valuesKey": "colors"})
        result = engine.execute(
            "replace_form_component", {"form_id": form_id, "component_id": comp["id"], "new_type": "textfield"}
        )
        assert "valuesKey" not in comp
        assert "valuesKey" in result["removed"]
        assert comp["key"] == "color"

    def test_keyed_to_presentation_drops_keyed_props(self, engine, form_id, add):
        """Should drop key, validate and unknown props; keep universal props"""
        comp = add(
            "textfield",
            label="Name",
            properties={"validate": {"required": True}, "appearance": {"prefixAdorner": "@"}, "description": "d"},
        )

        result = engine.execute(
            "replace_form_component", {"form_id": form_id, "component_id": comp["id"], "new_type": "text"}
        )

        assert set(result["removed"]) == {"key", "validate", "appearance"}
        assert "label" in result["preserved"]
        assert "description" in result["preserved"]
        assert comp == {"type": "text", "id": comp["id"], "label": "Name", "description": "d"}

    def test_presentation_to_keyed_generates_key(self, engine, form_id, add):
        add("textfield", label="Notes")
        comp = add("text", label="Notes")
        result = engine.execute(
            "replace_form_component", {"form_id": form_id, "component_id": comp["id"], "new_type": "textarea"}
        )
        assert result["key_generated"] == "notes1"
        assert comp["key"] == "notes1"

    def test_container_to_field_drops_children(self, engine, form_id, add):
        group = add("group", label="Box")
        add("textfield", parent_id=group["id"])
        result = engine.execute(
            "replace_form_component", {"form_id": form_id, "component_id": group["id"], "new_type": "text"}
        )
        assert "components" in result["removed"]
        assert "components" not in group

    def test_group_to_dynamiclist_keeps_children(self, engine, form_id, add):
        group = add("group")
        add("textfield", parent_id=group["id"])
        engine.execute(
            "replace_form_component", {"form_id": form_id, "component_id": group["id"], "new_type": "dynamiclist"}
        )
        assert len(group["components"]) == 1

    def test_same_type_rejected(self, engine, form_id, add):
        comp = add("textfield")
        with pytest.raises(FormConstraintError, match="is already type"):
            engine.execute(
                "replace_form_component", {"form_id": form_id, "component_id": comp["id"], "new_type": "textfield"}
            )

    def test_unsupported_type_rejected(self, engine, form_id, add):
        comp = add("textfield")
        with pytest.raises(FormConstraintError, match="Unsupported field type: widget"):
            engine.execute(
                "replace_form_component", {"form_id": form_id, "component_id": comp["id"], "new_type": "widget"}
            )
        assert comp["type"] == "textfield"

    def test_round_trip_keeps_universal_props(self, engine, form_id, add):
        """Should keep universal props across textfield -> select -> textfield"""
        comp = add(
            "textfield",
            label="Name",
            properties={
                "description": "Your name",
                "conditional": {"hide": "=anonymous"},
                "layout": {"columns": 8},
                "appearance": {"prefixAdorner": "@"},
            },
        )
        before = {prop: copy.deepcopy(comp[prop]) for prop in ("id", "label", "description", "conditional", "layout")}

        for new_type in ("select", "textfield"):
            engine.execute(
                "replace_form_component", {"form_id": form_id, "component_id": comp["id"], "new_type": new_type}
            )

        assert {prop: comp[prop] for prop in before} == before
        assert set(comp) == {"type", "id", "label", "description", "conditional", "layout", "key"}
        assert comp["key"] == "name"

    def test_round_trip_drops_incompatible_bucket(self, engine, form_id, add):
        """Should not bring options back after passing through a type without them"""
        comp = add("select", label="Color", properties={"values": [{"label": "Red", "value": "red"}]})

        for new_type in ("textfield", "select"):
            engine.execute(
                "replace_form_component", {"form_id": form_id, "component_id": comp["id"], "new_type": new_type}
            )

        assert comp == {"type": "select", "id": comp["id"], "label": "Color", "key": "color"}


class TestReadComponents:
    """Tests for list_form_components and get_form_component_properties"""

    def test_list_flattens_tree(self, engine, form_id, add):
        group = add("group", label="Address")
        add("textfield", label="Street", parent_id=group["id"])
        add("number", label="Age")

        result = engine.execute("list_form_components", {"form_id": form_id})

        assert result["count"] == 3
        assert [c["type"] for c in result["components"]] == ["group", "textfield", "number"]
        assert result["components"][0]["child_count"] == 1

    def test_list_filters_by_type(self, engine, form_id, add):
        add("textfield", label="A")
        add("number", label="B")
        result = engine.execute("list_form_components", {"form_id": form_id, "type": "number"})
        assert [c["key"] for c in result["components"]] == ["b"]

    def test_list_direct_children(self, engine, form_id, add):
        group = add("group")
        inner = add("group", parent_id=group["id"])
        add("textfield", parent_id=inner["id"])
        result = engine.execute("list_form_components", {"form_id": form_id, "parent_id": group["id"]})
        assert [c["id"] for c in result["components"]] == [inner["id"]]

    def test_get_properties_excludes_children(self, engine, form_id, add):
        group = add("group", label="Address")
        add("textfield", parent_id=group["id"])

        result = engine.execute(
            "get_form_component_properties", {"form_id": form_id, "component_id": group["id"]}
        )

        assert "components" not in result["properties"]
        assert result["properties"]["label"] == "Address"
        assert result["has_children"] is True
        assert result["child_count"] == 1

    def test_get_properties_returns_copy(self, engine, form_id, add, components):
        comp = add("textfield", label="Name")
        result = engine.execute("get_form_component_properties", {"form_id": form_id, "component_id": comp["id"]})
        result["properties"]["label"] = "Changed"
        assert find_component_by_id(components, comp["id"])["label"] == "Name"
