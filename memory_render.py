"""
memory_render.py

Layout and rendering engine for memory model diagrams.

This module provides:
- text_width: the monospace text measurement every box size derives from
- size_of: the box size of an entity, per entity kind
- MemoryRenderer: drawing primitives, one drawing routine per entity kind,
  and draw_all, which draws a whole entity list onto a Surface

Every entity is drawn with its top left corner at its (x, y). References held
by containers, classes and stack frames are drawn as ``id<ref>`` labels and
never resolved to other entities.

Usage:
    from memory_render import MemoryRenderer

    renderer = MemoryRenderer()
    surface = renderer.draw_all([
        {"isClass": False, "name": "bool", "id": 7, "value": True, "x": 20, "y": 20},
    ])
    print(surface.serialize())
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from memory_config import EntityStyle, RenderConfig, SketchStyle
from memory_model import (
    EntityDescriptor,
    EntityKind,
    EntityLike,
    as_entity,
    format_ref,
    is_immutable,
)
from memory_surface import RectNode, Surface, TextNode

logger = logging.getLogger(__name__)

CHAR_WIDTH = 12
ALIGNMENTS = ("start", "middle", "end")

Size = Tuple[float, float]


# ============================================================
#  Text metrics
# ============================================================

def escape_newlines(text: str) -> str:
    """Single-line form of a label; SVG text would drop the line breaks."""
    return text.replace("\r", "\\r").replace("\n", "\\n")


def text_width(text: str) -> int:
    """Estimated rendered width of ``text``: a fixed width per character."""
    return len(escape_newlines(text)) * CHAR_WIDTH


def display_text(type_name: str, value: Any) -> Optional[str]:
    """Text shown inside a primitive box, or None when there is no value."""
    if value is None:
        return None
    if type_name == "bool":
        return "True" if value else "False"
    return json.dumps(value, ensure_ascii=False, default=str)


# ============================================================
#  Sizing
# ============================================================

def _item_width(label: str, config: RenderConfig) -> float:
    return max(config.item_min_width, text_width(label) + 10)


def _prop_width(label: str, config: RenderConfig) -> float:
    return max(config.prop_min_width, text_width(label) + 10)


def _elements(entity: EntityDescriptor) -> List[Any]:
    return list(entity.value) if entity.value is not None else []


def _pairs(entity: EntityDescriptor) -> List[Tuple[Any, Any]]:
    return list(entity.value.items()) if entity.value is not None else []


def _dict_labels(key: Any, ref: Any) -> Tuple[str, str]:
    key_label = format_ref(key)
    value_label = "" if key is None or ref is None else format_ref(ref)
    return key_label, value_label


def primitive_size(entity: EntityDescriptor, config: RenderConfig) -> Size:
    width = max(config.obj_min_width, text_width(str(entity.value)) + config.obj_x_padding)
    return width, config.obj_min_height


def sequence_size(entity: EntityDescriptor, config: RenderConfig) -> Size:
    width = config.obj_x_padding * 2
    for ref in _elements(entity):
        width += _item_width(format_ref(ref), config)
    width = max(config.obj_min_width, width)
    height = config.obj_min_height
    if entity.show_indexes:
        height += config.list_index_sep
    return width, height


def set_size(entity: EntityDescriptor, config: RenderConfig) -> Size:
    width = config.obj_x_padding * 2
    elements = _elements(entity)
    for ref in elements:
        width += _item_width(format_ref(ref), config)
    width = max(config.obj_min_width, width)
    # room for the separators
    width += max(0, len(elements) - 1) * config.item_min_width / 4
    return width, config.obj_min_height


def dict_size(entity: EntityDescriptor, config: RenderConfig) -> Size:
    pairs = _pairs(entity)
    if not pairs:
        return config.obj_min_width, config.obj_min_height
    width = config.obj_min_width
    for key, ref in pairs:
        key_label, value_label = _dict_labels(key, ref)
        width = max(
            width,
            config.obj_x_padding * 2
            + _item_width(key_label, config)
            + _item_width(value_label, config)
            + 2 * config.font_size,
        )
    height = (
        config.prop_min_height
        + config.item_min_height / 2
        + 1.5 * config.item_min_height * len(pairs)
    )
    return width, max(config.obj_min_height, height)


def class_size(entity: EntityDescriptor, config: RenderConfig) -> Size:
    attributes = _pairs(entity)
    longest = max((text_width(str(name)) for name, _ in attributes), default=0)
    # each row must hold its name and its right-aligned reference box
    widest_row = max(
        (
            config.item_min_width / 2
            + text_width(str(name))
            + config.item_min_width
            + _item_width(format_ref(ref), config)
            + config.obj_x_padding
            for name, ref in attributes
        ),
        default=0,
    )
    width = max(
        config.obj_min_width,
        longest + 3 * config.item_min_width,
        widest_row,
        text_width(entity.name) + config.prop_min_width + 10,
    )
    if attributes:
        height = (
            1.5 * config.item_min_width * len(attributes)
            + config.item_min_width / 2
            + config.prop_min_height
        )
    else:
        height = config.obj_min_height
    return width, height


_SIZERS = {
    EntityKind.PRIMITIVE: primitive_size,
    EntityKind.UNKNOWN: primitive_size,
    EntityKind.LIST: sequence_size,
    EntityKind.TUPLE: sequence_size,
    EntityKind.SET: set_size,
    EntityKind.DICT: dict_size,
    EntityKind.CLASS: class_size,
    EntityKind.STACK_FRAME: class_size,
}


def size_of(entity: EntityLike, config: Optional[RenderConfig] = None) -> Size:
    """Width and height of the main box of an entity.

    Args:
        entity: Descriptor (or its JSON mapping)
        config: Rendering configuration (defaults when None)

    Returns:
        (width, height) of the box drawn at the entity's (x, y)
    """
    entity = as_entity(entity)
    return _SIZERS[entity.kind](entity, config or RenderConfig())


# ============================================================
#  Renderer
# ============================================================

class MemoryRenderer:
    """Draws entities onto a Surface using an immutable configuration."""

    def __init__(self, config: Optional[RenderConfig] = None):
        """Initialize renderer.

        Args:
            config: Rendering configuration; never modified while drawing
        """
        self.config = config or RenderConfig()

    # ------------- Drawing primitives ------------- #

    def draw_rect(
        self,
        surface: Surface,
        x: float,
        y: float,
        width: float,
        height: float,
        style: Optional[SketchStyle] = None,
    ) -> RectNode:
        """Append a sketched rectangle; the configured style by default."""
        if style is None:
            style = self.config.rect_style
        return surface.add(RectNode(x, y, width, height, style))

    def draw_text(
        self,
        surface: Surface,
        text: Any,
        x: float,
        y: float,
        color: Optional[str] = None,
        align: str = "middle",
        attrs: Optional[Mapping[str, Any]] = None,
    ) -> TextNode:
        """Append a text label anchored at (x, y).

        Raises:
            ValueError: If align is not one of "start", "middle" or "end"
        """
        if align not in ALIGNMENTS:
            raise ValueError(f"Unknown text alignment: {align!r}")
        if color is None:
            color = self.config.text_color
        node = TextNode(
            content=escape_newlines(str(text)),
            x=x,
            y=y,
            color=color,
            align=align,
            font_size=self.config.font_size,
            attrs=tuple((attrs or {}).items()),
        )
        return surface.add(node)

    def _box_style(self, style: Optional[EntityStyle], role: str) -> SketchStyle:
        if style is None:
            return self.config.rect_style
        return self.config.rect_style.merged(style.box(role))

    def _text_style(
        self, style: Optional[EntityStyle], role: str, color: str
    ) -> Tuple[str, Dict[str, Any]]:
        attrs = style.text(role) if style is not None else {}
        color = attrs.pop("fill", color)
        return color, attrs

    def _draw_double_box(
        self,
        surface: Surface,
        x: float,
        y: float,
        width: float,
        height: float,
        style: SketchStyle,
    ) -> None:
        sep = self.config.double_rect_sep
        self.draw_rect(surface, x - sep, y - sep, width + 2 * sep, height + 2 * sep, style)

    # ------------- Property boxes ------------- #

    def draw_properties(
        self,
        surface: Surface,
        id: Any,
        type_name: str,
        x: float,
        y: float,
        width: float,
        style: Optional[EntityStyle] = None,
    ) -> None:
        """Draw the id box (left) and type box (right) along the top edge.

        Args:
            surface: Surface to draw on
            id: Memory id of the entity; None leaves the id box blank
            type_name: Type or class name shown in the type box
            x: x coordinate of the entity's top left corner
            y: y coordinate of the entity's top left corner
            width: Width of the entity's box
            style: Per-entity style overrides
        """
        cfg = self.config
        id_label = format_ref(id)
        id_box = _prop_width(id_label, cfg)
        type_box = _prop_width(type_name, cfg)

        self.draw_rect(surface, x, y, id_box, cfg.prop_min_height, self._box_style(style, "id"))
        self.draw_rect(
            surface, x + width - type_box, y, type_box, cfg.prop_min_height,
            self._box_style(style, "type"),
        )

        color, attrs = self._text_style(style, "id", cfg.id_color)
        self.draw_text(surface, id_label, x + id_box / 2, y + cfg.font_size * 1.5, color, attrs=attrs)
        color, attrs = self._text_style(style, "type", cfg.value_color)
        self.draw_text(
            surface, type_name, x + width - type_box / 2, y + cfg.font_size * 1.5, color, attrs=attrs
        )

    # ------------- Entity kinds ------------- #

    def draw_primitive(self, surface: Surface, entity: EntityDescriptor) -> Size:
        """Draw a primitive value, double boxed when immutable."""
        cfg = self.config
        x, y = entity.x, entity.y
        width, height = primitive_size(entity, cfg)

        box_style = self._box_style(entity.style, "container")
        self.draw_rect(surface, x, y, width, height, box_style)
        if is_immutable(entity.name):
            self._draw_double_box(surface, x, y, width, height, box_style)

        # no text at all for an absent value
        text = display_text(entity.name, entity.value)
        if text is not None:
            color, attrs = self._text_style(entity.style, "value", cfg.value_color)
            self.draw_text(
                surface, text,
                x + width / 2, y + (cfg.obj_min_height + cfg.prop_min_height) / 2,
                color, attrs=attrs,
            )

        self.draw_properties(surface, entity.id, entity.name, x, y, width, entity.style)
        return width, height

    def draw_sequence(self, surface: Surface, entity: EntityDescriptor) -> Size:
        """Draw a list or tuple as a row of item boxes."""
        cfg = self.config
        x, y = entity.x, entity.y
        width, height = sequence_size(entity, cfg)

        box_style = self._box_style(entity.style, "container")
        self.draw_rect(surface, x, y, width, height, box_style)
        if is_immutable(entity.name):
            self._draw_double_box(surface, x, y, width, height, box_style)

        item_y = y + cfg.prop_min_height + (cfg.obj_min_height - cfg.prop_min_height - cfg.item_min_height) / 2
        if entity.show_indexes:
            item_y += cfg.list_index_sep
        text_y = item_y + cfg.item_min_height / 2 + cfg.font_size / 4
        color, attrs = self._text_style(entity.style, "value", cfg.id_color)

        curr_x = x + cfg.item_min_width / 2
        for index, ref in enumerate(_elements(entity)):
            label = format_ref(ref)
            item_width = _item_width(label, cfg)
            self.draw_rect(surface, curr_x, item_y, item_width, cfg.item_min_height)
            self.draw_text(surface, label, curr_x + item_width / 2, text_y, color, attrs=attrs)
            if entity.show_indexes:
                self.draw_text(
                    surface, index,
                    curr_x + item_width / 2, item_y - cfg.item_min_height / 4,
                    cfg.text_color,
                )
            curr_x += item_width

        self.draw_properties(surface, entity.id, entity.name, x, y, width, entity.style)
        return width, height

    def draw_set(self, surface: Surface, entity: EntityDescriptor) -> Size:
        """Draw a set: item boxes separated by commas, inside braces."""
        cfg = self.config
        x, y = entity.x, entity.y
        width, height = set_size(entity, cfg)

        self.draw_rect(surface, x, y, width, height, self._box_style(entity.style, "container"))

        item_y = y + cfg.prop_min_height + (cfg.obj_min_height - cfg.prop_min_height - cfg.item_min_height) / 2
        text_y = item_y + cfg.item_min_height / 2 + cfg.font_size / 4
        color, attrs = self._text_style(entity.style, "value", cfg.id_color)

        curr_x = x + cfg.item_min_width / 2
        for index, ref in enumerate(_elements(entity)):
            label = format_ref(ref)
            item_width = _item_width(label, cfg)
            self.draw_rect(surface, curr_x, item_y, item_width, cfg.item_min_height)
            self.draw_text(surface, label, curr_x + item_width / 2, text_y, color, attrs=attrs)
            if index > 0:
                self.draw_text(surface, ",", curr_x - cfg.item_min_width / 8, text_y, cfg.text_color)
            curr_x += item_width + cfg.item_min_width / 4

        self.draw_properties(surface, entity.id, "set", x, y, width, entity.style)
        self.draw_text(surface, "{", x + cfg.item_min_width / 4, text_y, cfg.text_color)
        self.draw_text(surface, "}", x + width - cfg.item_min_width / 4, text_y, cfg.text_color)
        return width, height

    def draw_dict(self, surface: Surface, entity: EntityDescriptor) -> Size:
        """Draw a dict as rows of ``key : value`` boxes."""
        cfg = self.config
        x, y = entity.x, entity.y
        # dict_size is the first pass over the pairs
        width, height = dict_size(entity, cfg)

        self.draw_rect(surface, x, y, width, height, self._box_style(entity.style, "container"))

        color, attrs = self._text_style(entity.style, "value", cfg.id_color)
        row_y = y + cfg.prop_min_height + cfg.item_min_height / 2
        for key, ref in _pairs(entity):
            key_label, value_label = _dict_labels(key, ref)
            key_box = _item_width(key_label, cfg)
            value_box = _item_width(value_label, cfg)
            text_y = row_y + cfg.item_min_height / 2 + cfg.font_size / 4

            self.draw_rect(surface, x + cfg.obj_x_padding, row_y, key_box, cfg.item_min_height)
            self.draw_text(surface, key_label, x + cfg.obj_x_padding + key_box / 2, text_y, color, attrs=attrs)

            self.draw_text(surface, ":", x + width / 2, text_y, cfg.value_color)

            value_x = x + width / 2 + cfg.font_size
            self.draw_rect(surface, value_x, row_y, value_box, cfg.item_min_height)
            self.draw_text(surface, value_label, value_x + value_box / 2, text_y, color, attrs=attrs)

            row_y += 1.5 * cfg.item_min_height

        self.draw_properties(surface, entity.id, "dict", x, y, width, entity.style)
        return width, height

    def draw_class(self, surface: Surface, entity: EntityDescriptor) -> Size:
        """Draw a class instance or a stack frame.

        Attributes are listed top to bottom, each as a name label and a
        reference box. A stack frame gets a single name box instead of the
        id and type boxes.
        """
        cfg = self.config
        x, y = entity.x, entity.y
        width, height = class_size(entity, cfg)

        self.draw_rect(surface, x, y, width, height, self._box_style(entity.style, "container"))

        color, attrs = self._text_style(entity.style, "value", cfg.id_color)
        row_y = y + cfg.prop_min_height + cfg.item_min_height / 2
        for name, ref in _pairs(entity):
            label = format_ref(ref)
            attr_box = _item_width(label, cfg)
            box_x = x + width - cfg.obj_x_padding - attr_box
            text_y = row_y + cfg.item_min_height / 2 + cfg.font_size / 4

            self.draw_rect(surface, box_x, row_y, attr_box, cfg.item_min_height)
            self.draw_text(surface, name, x + cfg.item_min_width / 2, text_y, cfg.text_color, align="start")
            self.draw_text(surface, label, box_x + attr_box / 2, text_y, color, attrs=attrs)
            row_y += 1.5 * cfg.item_min_height

        if entity.stack_frame:
            name_width = text_width(entity.name) + 10
            self.draw_rect(
                surface, x, y, name_width, cfg.prop_min_height,
                self._box_style(entity.style, "type"),
            )
            color, attrs = self._text_style(entity.style, "type", cfg.text_color)
            self.draw_text(
                surface, entity.name,
                x + name_width / 2, y + cfg.prop_min_height * 0.6,
                color, attrs=attrs,
            )
        else:
            self.draw_properties(surface, entity.id, entity.name, x, y, width, entity.style)
        return width, height

    # ------------- Dispatch ------------- #

    def draw_object(self, surface: Surface, entity: EntityDescriptor) -> Size:
        """Draw a built-in object according to its type.

        Unrecognized types are drawn as primitives.
        """
        kind = entity.kind
        if kind in (EntityKind.LIST, EntityKind.TUPLE):
            return self.draw_sequence(surface, entity)
        if kind is EntityKind.SET:
            return self.draw_set(surface, entity)
        if kind is EntityKind.DICT:
            return self.draw_dict(surface, entity)
        if kind is EntityKind.UNKNOWN:
            logger.debug("Drawing unrecognized type %r as a primitive", entity.name)
        return self.draw_primitive(surface, entity)

    def draw_entity(self, surface: Surface, entity: EntityLike) -> Size:
        """Draw one entity; class instances and stack frames go to draw_class."""
        entity = as_entity(entity)
        if entity.is_class:
            return self.draw_class(surface, entity)
        return self.draw_object(surface, entity)

    def draw_all(
        self,
        entities: Iterable[EntityLike],
        surface: Optional[Surface] = None,
    ) -> Surface:
        """Draw every entity, in input order.

        Args:
            entities: Descriptors or their JSON mappings (never modified)
            surface: Surface to draw on; a new one when None

        Returns:
            The surface holding the drawing
        """
        if surface is None:
            surface = Surface(self.config)
        count = 0
        for item in entities:
            self.draw_entity(surface, item)
            count += 1
        logger.debug("Drew %d entities (%d nodes)", count, len(surface))
        return surface
