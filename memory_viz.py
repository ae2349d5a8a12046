"""
memory_viz.py

Public entry point for drawing memory model diagrams.

This module provides:
- MemoryModel: one diagram (configuration, renderer and output surface)
- draw: draw an entity list in one call, optionally placing it first with an
  automated layout function
- main: the command-line interface

Usage:
    from memory_viz import MemoryModel

    m = MemoryModel({"width": 1000, "height": 600})
    m.draw_all([
        {"isClass": True, "name": "__main__", "id": None,
         "value": {"lst": 82}, "stack_frame": True, "x": 10, "y": 10},
        {"isClass": False, "name": "list", "id": 82,
         "value": [19, 43], "show_indexes": True, "x": 350, "y": 10},
    ])
    m.save("diagram.svg")

Command line:
    python -m memory_viz entities.json -o diagram.svg
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from memory_config import RenderConfig, load_options
from memory_model import EntityDescriptor, EntityLike, as_entities, load_entities
from memory_render import MemoryRenderer
from memory_surface import Surface

logger = logging.getLogger(__name__)

# (entities without coordinates, canvas width) -> (positioned entities, required height)
LayoutFunction = Callable[
    [List[EntityDescriptor], float],
    Tuple[Sequence[EntityLike], float],
]


# ============================================================
#  Memory model
# ============================================================

class MemoryModel:
    """A memory model diagram.

    Every draw call adds nodes to the same surface; call ``reset`` to start
    a new diagram.
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None, host: Optional[Any] = None):
        """Create an empty diagram.

        Args:
            options: Rendering options; unknown keys are ignored
            host: Live tkinter canvas, used when the ``interactive`` option is set
        """
        self.config = RenderConfig.from_options(options)
        self.renderer = MemoryRenderer(self.config)
        self.surface = Surface(self.config, host)

    def draw_all(self, entities: Iterable[EntityLike]) -> MemoryModel:
        """Draw every entity, in order."""
        self.renderer.draw_all(entities, self.surface)
        return self

    def draw(self, entity: EntityLike) -> MemoryModel:
        """Draw a single entity."""
        self.renderer.draw_entity(self.surface, entity)
        return self

    def create_from_json(self, path: str) -> MemoryModel:
        """Draw the entity list stored in a JSON file."""
        return self.draw_all(load_entities(path))

    def serialize_svg(self) -> str:
        """Return the SVG markup of the diagram."""
        return self.surface.serialize()

    def save(self, path: Optional[str] = None) -> None:
        """Write the SVG to ``path`` (stdout when None); failures are only logged."""
        self.surface.save(path)

    def save_png(self, path: str) -> None:
        """Write a PNG rendering to ``path``; like ``save``, failures are only logged."""
        data = self.surface.rasterize()
        try:
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error("Could not save PNG to %s: %s", path, e)
            return
        logger.info("Saved PNG to %s", path)

    def render(self, canvas: Any) -> None:
        """Paint the diagram onto a tkinter canvas."""
        self.surface.render_to(canvas)

    def clear(self, canvas: Any) -> None:
        """Remove everything shown on a tkinter canvas."""
        self.surface.clear(canvas)

    def reset(self) -> None:
        """Forget everything drawn so far."""
        self.surface.reset()


def draw(
    entities: Iterable[EntityLike],
    layout: Optional[LayoutFunction] = None,
    options: Optional[Mapping[str, Any]] = None,
) -> MemoryModel:
    """Draw an entity list on a new diagram.

    Args:
        entities: Descriptors or their JSON mappings (never modified)
        layout: Automated layout; receives the entities and the canvas width
            and returns positioned entities and the height they need
        options: Rendering options

    Returns:
        The MemoryModel holding the drawing
    """
    items = as_entities(entities)
    options = dict(options or {})
    if layout is not None:
        config = RenderConfig.from_options(options)
        width = config.width
        positioned, required_height = layout(items, width)
        items = as_entities(positioned)
        if required_height > config.height:
            options["height"] = required_height
        logger.debug("Automated layout placed %d entities in %sx%s", len(items), width, required_height)
    model = MemoryModel(options)
    return model.draw_all(items)


# ============================================================
#  Command line
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memory_viz",
        description="Draw a memory model diagram from a JSON list of entities.",
    )
    parser.add_argument("entities", help="JSON file holding the list of entities")
    parser.add_argument("-o", "--output", help="SVG file to write (stdout when omitted)")
    parser.add_argument("--png", help="Also write a PNG rendering to this file")
    parser.add_argument("--config", help="JSON file of rendering options")
    parser.add_argument("--width", type=float, help="Canvas width in px")
    parser.add_argument("--height", type=float, help="Canvas height in px")
    parser.add_argument("--show", action="store_true", help="Open the diagram in a viewer window")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        options = load_options(args.config) if args.config else {}
        entities = load_entities(args.entities)
    except (OSError, ValueError) as e:
        logger.error("Cannot read input: %s", e)
        return 1

    if args.width is not None:
        options["width"] = args.width
    if args.height is not None:
        options["height"] = args.height

    model = MemoryModel(options).draw_all(entities)
    model.save(args.output)
    if args.png:
        model.save_png(args.png)
    if args.show:
        from memory_gui import view_diagrams

        view_diagrams([entities], options, titles=[args.entities])
    return 0


if __name__ == "__main__":
    sys.exit(main())
