"""
test_memory_model.py

Unit tests for entity descriptors and entity documents.
"""

import json

import pytest
from memory_config import EntityStyle
from memory_model import (
    EntityDescriptor,
    EntityKind,
    as_entities,
    as_entity,
    dump_entities,
    format_ref,
    is_immutable,
    load_entities,
    parse_entities,
)


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def list_item():
    """JSON shape of a list entity."""
    return {
        "isClass": False,
        "name": "list",
        "id": 82,
        "value": [19, 43],
        "show_indexes": True,
        "x": 400,
        "y": 20,
    }


@pytest.fixture
def frame_item():
    """JSON shape of a stack frame."""
    return {
        "isClass": True,
        "name": "__main__",
        "id": None,
        "value": {"lst": 82},
        "stack_frame": True,
        "x": 10,
        "y": 10,
    }


# ============================================================
# Reference Tests
# ============================================================

class TestFormatRef:
    """Tests for format_ref."""

    def test_scalar_refs(self):
        """Test numeric and string references."""
        assert format_ref(5) == "id5"
        assert format_ref("abc") == "idabc"

    def test_zero_is_not_absent(self):
        """Test id 0 is a real reference."""
        assert format_ref(0) == "id0"

    def test_none_is_blank(self):
        """Test a None reference has no label."""
        assert format_ref(None) == ""

    def test_non_scalar(self):
        """Test nested values use their string form."""
        assert format_ref([1, 2]) == "id[1, 2]"


# ============================================================
# EntityDescriptor Tests
# ============================================================

class TestEntityDescriptor:
    """Tests for EntityDescriptor."""

    def test_from_dict(self, list_item):
        """Test creating a descriptor from its JSON shape."""
        entity = EntityDescriptor.from_dict(list_item)
        assert entity.is_class is False
        assert entity.name == "list"
        assert entity.id == 82
        assert entity.value == [19, 43]
        assert entity.show_indexes is True
        assert entity.stack_frame is False
        assert (entity.x, entity.y) == (400, 20)

    def test_camel_case_flags(self):
        """Test the camelCase spellings of the flags."""
        entity = EntityDescriptor.from_dict({
            "isClass": True, "name": "f", "id": None, "value": {},
            "isStackFrame": True, "showIndexes": True,
        })
        assert entity.stack_frame is True
        assert entity.show_indexes is True

    def test_type_key(self):
        """Test ``type`` is accepted in place of ``name``."""
        entity = EntityDescriptor.from_dict({"isClass": False, "type": "int", "id": 1, "value": 3})
        assert entity.name == "int"

    def test_defaults(self):
        """Test missing optional fields."""
        entity = EntityDescriptor.from_dict({"name": "int"})
        assert entity.is_class is False
        assert entity.id is None
        assert entity.value is None
        assert (entity.x, entity.y) == (0, 0)
        assert entity.show_indexes is False
        assert entity.stack_frame is False
        assert entity.style is None

    def test_falsy_values_kept(self):
        """Test id 0 and coordinate 0 survive."""
        entity = EntityDescriptor.from_dict({"isClass": False, "name": "int", "id": 0, "value": 0, "x": 0})
        assert entity.id == 0
        assert entity.value == 0

    def test_input_not_modified(self, list_item):
        """Test from_dict does not touch the mapping."""
        before = json.loads(json.dumps(list_item))
        entity = EntityDescriptor.from_dict(list_item)
        assert list_item == before
        entity.value.append(99)
        assert list_item["value"] == [19, 43]

    def test_style(self):
        """Test the style mapping becomes an EntityStyle."""
        entity = EntityDescriptor.from_dict({
            "name": "int", "style": {"text_value": {"fill": "red"}},
        })
        assert isinstance(entity.style, EntityStyle)
        assert entity.style.text("value") == {"fill": "red"}

    def test_frozen(self, list_item):
        """Test descriptors cannot be reassigned."""
        entity = EntityDescriptor.from_dict(list_item)
        with pytest.raises(AttributeError):
            entity.x = 5

    def test_to_dict_round_trip(self, frame_item):
        """Test to_dict gives back an equivalent mapping."""
        entity = EntityDescriptor.from_dict(frame_item)
        assert EntityDescriptor.from_dict(entity.to_dict()) == entity

    def test_as_entity(self, list_item):
        """Test coercion of mappings and pass-through of descriptors."""
        entity = as_entity(list_item)
        assert as_entity(entity) is entity
        assert len(as_entities([list_item, entity])) == 2


# ============================================================
# EntityKind Tests
# ============================================================

class TestEntityKind:
    """Tests for kind dispatch."""

    @pytest.mark.parametrize("name, kind", [
        ("int", EntityKind.PRIMITIVE),
        ("str", EntityKind.PRIMITIVE),
        ("bool", EntityKind.PRIMITIVE),
        ("None", EntityKind.PRIMITIVE),
        ("list", EntityKind.LIST),
        ("tuple", EntityKind.TUPLE),
        ("set", EntityKind.SET),
        ("dict", EntityKind.DICT),
        ("Widget", EntityKind.UNKNOWN),
    ])
    def test_builtin_kinds(self, name, kind):
        """Test kinds of built-in types."""
        assert EntityDescriptor(is_class=False, name=name).kind is kind

    def test_class_kinds(self):
        """Test class instances and stack frames."""
        assert EntityDescriptor(is_class=True, name="list").kind is EntityKind.CLASS
        assert EntityDescriptor(is_class=True, name="f", stack_frame=True).kind is EntityKind.STACK_FRAME

    def test_stack_frame_flag_ignored_for_builtins(self):
        """Test the stack frame flag only matters for classes."""
        assert EntityDescriptor(is_class=False, name="int", stack_frame=True).kind is EntityKind.PRIMITIVE

    def test_immutables(self):
        """Test the double box vocabulary."""
        assert is_immutable("int")
        assert is_immutable("tuple")
        assert not is_immutable("list")
        assert not is_immutable("set")
        assert not is_immutable("dict")


# ============================================================
# Document Tests
# ============================================================

class TestDocuments:
    """Tests for JSON entity documents."""

    def test_parse(self, list_item, frame_item):
        """Test parsing a JSON array."""
        entities = parse_entities(json.dumps([frame_item, list_item]))
        assert [e.name for e in entities] == ["__main__", "list"]

    def test_parse_rejects_object(self):
        """Test the document must be an array."""
        with pytest.raises(ValueError):
            parse_entities('{"name": "int"}')

    def test_parse_rejects_non_object_items(self):
        """Test every item must be an object."""
        with pytest.raises(ValueError):
            parse_entities("[1, 2]")

    def test_parse_rejects_invalid_json(self):
        """Test malformed JSON raises ValueError."""
        with pytest.raises(ValueError):
            parse_entities("[{")

    def test_load(self, tmp_path, list_item):
        """Test loading from a file."""
        path = tmp_path / "entities.json"
        path.write_text(json.dumps([list_item]), encoding="utf-8")
        entities = load_entities(str(path))
        assert entities == [EntityDescriptor.from_dict(list_item)]

    def test_dump_round_trip(self, list_item, frame_item):
        """Test dumped documents parse back to the same descriptors."""
        entities = as_entities([frame_item, list_item])
        assert parse_entities(dump_entities(entities)) == entities
