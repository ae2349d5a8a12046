"""
memory_model.py

Data model for memory model diagrams.

This module provides:
- EntityDescriptor: one drawable box (primitive, container, class instance or stack frame)
- EntityKind: the closed set of entity kinds the renderer dispatches on
- Type vocabularies for built-in primitives, immutables and collections
- JSON loading and dumping of entity lists

Values of containers, classes and stack frames are references (ids), never
nested entities. Whether every reference has a box of its own is up to the
caller.

Example:
    >>> entity = EntityDescriptor.from_dict(
    ...     {"isClass": False, "name": "list", "id": 1, "value": [2, 3], "x": 10, "y": 10}
    ... )
    >>> entity.kind
    <EntityKind.LIST: 'list'>
    >>> format_ref(entity.value[0])
    'id2'
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from memory_config import EntityStyle

logger = logging.getLogger(__name__)


# ============================================================
#  Type vocabularies
# ============================================================

PRIMITIVE_TYPES = frozenset({"int", "str", "bool", "float", "date", "None", "complex", "bytes"})
IMMUTABLE_TYPES = frozenset({"int", "str", "tuple", "None", "bool", "float", "date", "complex", "bytes"})
COLLECTION_TYPES = frozenset({"list", "tuple", "set", "dict"})


class EntityKind(Enum):
    """Kinds of entity the renderer knows how to draw."""
    PRIMITIVE = "primitive"
    LIST = "list"
    TUPLE = "tuple"
    SET = "set"
    DICT = "dict"
    CLASS = "class"
    STACK_FRAME = "stack_frame"
    UNKNOWN = "unknown"


_BUILTIN_KINDS = {
    "list": EntityKind.LIST,
    "tuple": EntityKind.TUPLE,
    "set": EntityKind.SET,
    "dict": EntityKind.DICT,
}


def format_ref(ref: Any) -> str:
    """Return the label of a reference: ``id<ref>``, or blank for None."""
    if ref is None:
        return ""
    return f"id{ref}"


def is_immutable(type_name: str) -> bool:
    """Whether boxes of this type get the double box."""
    return type_name in IMMUTABLE_TYPES


# ============================================================
#  Entity descriptor
# ============================================================

@dataclass(frozen=True)
class EntityDescriptor:
    """A single entity to draw.

    Attributes:
        is_class: True for a class instance or a stack frame
        name: Built-in type name, or the class / frame name
        id: Symbolic memory address (None for stack frames)
        value: Primitive literal, sequence of ids, or mapping of names/keys to ids
        x: x coordinate of the top left corner
        y: y coordinate of the top left corner
        show_indexes: Show positional indices above sequence items
        stack_frame: Draw a class entity as a stack frame
        style: Optional per-entity style overrides
    """
    is_class: bool
    name: str
    id: Any = None
    value: Any = None
    x: float = 0
    y: float = 0
    show_indexes: bool = False
    stack_frame: bool = False
    style: Optional[EntityStyle] = None

    @property
    def kind(self) -> EntityKind:
        """Kind of this entity; unrecognized built-in types are UNKNOWN."""
        if self.is_class:
            return EntityKind.STACK_FRAME if self.stack_frame else EntityKind.CLASS
        if self.name in _BUILTIN_KINDS:
            return _BUILTIN_KINDS[self.name]
        if self.name in PRIMITIVE_TYPES:
            return EntityKind.PRIMITIVE
        return EntityKind.UNKNOWN

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EntityDescriptor:
        """Create a descriptor from its JSON shape.

        Both the snake_case and camelCase spellings of the optional flags are
        accepted. The mapping is left untouched and ``value`` is deep copied.

        Args:
            data: Mapping with at least ``isClass`` and ``name`` (or ``type``)

        Returns:
            A new EntityDescriptor
        """
        name = data.get("name")
        if name is None:
            name = data.get("type", "")
        return cls(
            is_class=bool(_first(data, "isClass", "is_class", default=False)),
            name=str(name),
            id=data.get("id"),
            value=copy.deepcopy(data.get("value")),
            x=_first(data, "x", default=0),
            y=_first(data, "y", default=0),
            show_indexes=bool(_first(data, "show_indexes", "showIndexes", default=False)),
            stack_frame=bool(_first(data, "stack_frame", "stackFrame", "isStackFrame", default=False)),
            style=EntityStyle.from_dict(data.get("style")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the canonical JSON shape of this descriptor."""
        data: Dict[str, Any] = {
            "isClass": self.is_class,
            "name": self.name,
            "id": self.id,
            "value": copy.deepcopy(self.value),
            "x": self.x,
            "y": self.y,
            "show_indexes": self.show_indexes,
            "stack_frame": self.stack_frame,
        }
        if self.style is not None:
            data["style"] = self.style.to_dict()
        return data


def _first(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Value of the first key present with a non-None value."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


EntityLike = Union[EntityDescriptor, Mapping[str, Any]]


def as_entity(item: EntityLike) -> EntityDescriptor:
    """Coerce a mapping to an EntityDescriptor; descriptors pass through."""
    if isinstance(item, EntityDescriptor):
        return item
    return EntityDescriptor.from_dict(item)


def as_entities(items: Iterable[EntityLike]) -> List[EntityDescriptor]:
    return [as_entity(item) for item in items]


# ============================================================
#  JSON documents
# ============================================================

def parse_entities(text: str) -> List[EntityDescriptor]:
    """Parse a JSON array of entity objects.

    Raises:
        ValueError: If the text is not JSON or not an array of objects
    """
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("An entity document must be a JSON array")
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"Entity #{index} is not a JSON object")
    entities = as_entities(data)
    logger.debug("Parsed %d entities", len(entities))
    return entities


def load_entities(path: str) -> List[EntityDescriptor]:
    """Load an entity list from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return parse_entities(f.read())


def dump_entities(entities: Iterable[EntityLike], indent: Optional[int] = 2) -> str:
    """Serialize entities to a JSON array."""
    return json.dumps([as_entity(e).to_dict() for e in entities], indent=indent)
