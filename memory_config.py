"""
memory_config.py

Rendering configuration for memory model diagrams.

This module provides:
- SketchStyle: the hand-drawn stroke/fill parameters of a rectangle
- EntityStyle: per-entity overrides of box and text styles
- RenderConfig: the immutable set of recognized rendering options

Example:
    >>> config = RenderConfig.from_options({"font_size": 17, "bogus": 1})
    >>> config.font_size
    17
    >>> config.obj_min_width
    200
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


# ============================================================
#  Sketch style
# ============================================================

@dataclass(frozen=True)
class SketchStyle:
    """Stroke and fill parameters of a sketched rectangle.

    Attributes:
        stroke: Stroke color
        stroke_width: Stroke width in px
        fill: Fill color, or None for an unfilled box
        roughness: How far stroke end points may wander (0 draws straight lines)
        bowing: How much each stroke curves away from the straight edge
    """
    stroke: str = "rgb(0, 0, 0)"
    stroke_width: float = 1
    fill: Optional[str] = None
    roughness: float = 1.0
    bowing: float = 1.0

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> SketchStyle:
        """Return a copy with the recognized keys of ``overrides`` applied."""
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        changes = {}
        for key, value in overrides.items():
            name = key.replace("-", "_")
            if name == "strokeWidth":
                name = "stroke_width"
            if name in known:
                changes[name] = value
        return replace(self, **changes)


def _as_sketch_style(value: Any) -> SketchStyle:
    if isinstance(value, SketchStyle):
        return value
    return SketchStyle().merged(value)


# ============================================================
#  Per-entity style
# ============================================================

_STYLE_KEYS = ("text_id", "text_type", "text_value", "box_id", "box_type", "box_container")


@dataclass(frozen=True)
class EntityStyle:
    """Style overrides carried by a single entity.

    Box entries are merged over the configured sketch style. In text entries
    the ``fill`` key replaces the text color and every other key is passed
    through as an SVG attribute.
    """
    text_id: Tuple[Tuple[str, Any], ...] = ()
    text_type: Tuple[Tuple[str, Any], ...] = ()
    text_value: Tuple[Tuple[str, Any], ...] = ()
    box_id: Tuple[Tuple[str, Any], ...] = ()
    box_type: Tuple[Tuple[str, Any], ...] = ()
    box_container: Tuple[Tuple[str, Any], ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Mapping[str, Any]]]) -> Optional[EntityStyle]:
        """Build a style from its JSON shape; None when nothing is given."""
        if not data:
            return None
        entries = {}
        for key in _STYLE_KEYS:
            attrs = data.get(key)
            if attrs:
                entries[key] = tuple(attrs.items())
        return cls(**entries)

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {key: dict(getattr(self, key)) for key in _STYLE_KEYS if getattr(self, key)}

    def box(self, role: str) -> Dict[str, Any]:
        return dict(getattr(self, f"box_{role}"))

    def text(self, role: str) -> Dict[str, Any]:
        return dict(getattr(self, f"text_{role}"))


# ============================================================
#  Render configuration
# ============================================================

# Option names used by existing option files
_OPTION_ALIASES = {"browser": "interactive"}

@dataclass(frozen=True)
class RenderConfig:
    """Recognized rendering options and their defaults.

    Attributes:
        width: Canvas width in px
        height: Canvas height in px
        rect_style: Default sketch style of every box
        text_color: Color of plain text (indices, punctuation, attribute names)
        value_color: Color of primitive values and type names
        id_color: Color of ids and references
        item_min_width: Minimum width of an item box in a collection
        item_min_height: Minimum height of an item box in a collection
        obj_min_width: Minimum width of an object box
        obj_min_height: Minimum height of an object box
        prop_min_width: Minimum width of the id and type boxes
        prop_min_height: Minimum height of the id and type boxes
        obj_x_padding: Horizontal padding inside an object box
        double_rect_sep: Gap between the two boxes of an immutable object
        list_index_sep: Vertical offset reserved for sequence indices
        font_size: Font size in px
        font_family: Font family of every text node
        seed: Seed of the sketch randomness
        interactive: Mirror primitives onto a live host canvas as they are drawn
    """
    width: float = 800
    height: float = 800
    rect_style: SketchStyle = field(default_factory=SketchStyle)
    text_color: str = "rgb(0, 0, 0)"
    value_color: str = "rgb(27, 14, 139)"
    id_color: str = "rgb(150, 100, 28)"
    item_min_width: float = 50
    item_min_height: float = 50
    obj_min_width: float = 200
    obj_min_height: float = 130
    prop_min_width: float = 60
    prop_min_height: float = 50
    obj_x_padding: float = 25
    double_rect_sep: float = 6
    list_index_sep: float = 20
    font_size: float = 20
    font_family: str = "Consolas, Courier"
    seed: int = 1
    interactive: bool = False

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> RenderConfig:
        """Create a configuration from an options mapping.

        Recognized keys take the caller's value, unknown keys are ignored and
        missing keys (or keys explicitly set to None) keep their default.
        Falsy values such as 0 or False are kept as given. ``browser`` is
        accepted as another name for ``interactive``.

        Args:
            options: Mapping of option name to value

        Returns:
            A new RenderConfig
        """
        if not options:
            return cls()
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in options.items():
            key = _OPTION_ALIASES.get(key, key)
            if key not in known:
                logger.debug("Ignoring unrecognized option %r", key)
                continue
            if value is None:
                continue
            values[key] = value
        if "rect_style" in values:
            values["rect_style"] = _as_sketch_style(values["rect_style"])
        return cls(**values)

    def with_options(self, **changes: Any) -> RenderConfig:
        """Return a copy with some options replaced."""
        if "rect_style" in changes:
            changes["rect_style"] = _as_sketch_style(changes["rect_style"])
        return replace(self, **changes)


def load_options(path: str) -> Dict[str, Any]:
    """Load an options mapping from a JSON file.

    Raises:
        ValueError: If the document is not a JSON object
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Options file {path} must contain a JSON object")
    return data
