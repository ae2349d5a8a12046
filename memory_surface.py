"""
memory_surface.py

Output surface of memory model diagrams.

The surface keeps every drawing node appended by the renderer, in order, and
turns them into an SVG document on demand. It also hands the picture over to
a host tkinter canvas, either as a rasterized image or, in interactive mode,
by mirroring each node onto the canvas as it is added.

Usage:
    surface = Surface(RenderConfig())
    surface.add(RectNode(10, 10, 200, 130, RenderConfig().rect_style))
    svg_text = surface.serialize()
"""

from __future__ import annotations

import base64
import logging
import math
import random
import sys
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

import drawsvg as draw

from memory_config import RenderConfig, SketchStyle

logger = logging.getLogger(__name__)


# ============================================================
#  Drawing nodes
# ============================================================

@dataclass(frozen=True)
class RectNode:
    """A sketched rectangle with its top left corner at (x, y)."""
    x: float
    y: float
    width: float
    height: float
    style: SketchStyle


@dataclass(frozen=True)
class TextNode:
    """A text label anchored at (x, y).

    Attributes:
        content: Text to display
        x: Anchor x coordinate
        y: Baseline y coordinate
        color: Fill color
        align: Text anchor, one of "start", "middle" or "end"
        font_size: Font size in px
        attrs: Extra SVG attributes as (name, value) pairs
    """
    content: str
    x: float
    y: float
    color: str
    align: str = "middle"
    font_size: float = 20
    attrs: Tuple[Tuple[str, Any], ...] = ()


DrawingNode = Union[RectNode, TextNode]

_TK_ANCHORS = {"start": "w", "middle": "center", "end": "e"}


# ============================================================
#  Sketch strokes
# ============================================================

def _rough_line(
    path: draw.Path,
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    style: SketchStyle,
    rng: random.Random,
) -> None:
    """Append two wobbly strokes from (x1, y1) to (x2, y2) to ``path``."""
    length = math.hypot(x2 - x1, y2 - y1)
    if length == 0:
        return
    wander = min(style.roughness * 2, length / 10)
    bow = style.bowing * style.roughness * length / 200
    normal_x = -(y2 - y1) / length
    normal_y = (x2 - x1) / length

    def jitter() -> float:
        return rng.uniform(-wander, wander) if wander else 0.0

    for _ in range(2):
        shift = rng.uniform(-bow, bow) if bow else 0.0
        mid_x = (x1 + x2) / 2 + normal_x * shift + jitter()
        mid_y = (y1 + y2) / 2 + normal_y * shift + jitter()
        path.M(round(x1 + jitter(), 2), round(y1 + jitter(), 2))
        path.Q(
            round(mid_x, 2), round(mid_y, 2),
            round(x2 + jitter(), 2), round(y2 + jitter(), 2),
        )


def sketch_rectangle(node: RectNode, rng: random.Random) -> draw.Group:
    """Build the SVG group of a hand-drawn rectangle."""
    style = node.style
    group = draw.Group()
    if style.fill:
        group.append(draw.Rectangle(
            node.x, node.y, node.width, node.height,
            fill=style.fill,
            stroke="none",
        ))
    path = draw.Path(stroke=style.stroke, stroke_width=style.stroke_width, fill="none")
    left, top = node.x, node.y
    right, bottom = node.x + node.width, node.y + node.height
    _rough_line(path, left, top, right, top, style, rng)
    _rough_line(path, right, top, right, bottom, style, rng)
    _rough_line(path, right, bottom, left, bottom, style, rng)
    _rough_line(path, left, bottom, left, top, style, rng)
    group.append(path)
    return group


# ============================================================
#  Surface
# ============================================================

class Surface:
    """Accumulates drawing nodes and exports them."""

    def __init__(self, config: Optional[RenderConfig] = None, host: Optional[Any] = None):
        """Initialize an empty surface.

        Args:
            config: Rendering configuration (canvas bounds, fonts, seed)
            host: Live tkinter canvas that mirrors nodes in interactive mode
        """
        self.config = config or RenderConfig()
        self.host = host
        self.nodes: List[DrawingNode] = []
        # PhotoImage objects must stay referenced while a canvas shows them
        self._images: List[Any] = []

    def __len__(self) -> int:
        return len(self.nodes)

    def add(self, node: DrawingNode) -> DrawingNode:
        """Append a node, mirroring it onto the host when interactive."""
        self.nodes.append(node)
        if self.config.interactive and self.host is not None:
            self._mirror(node)
        return node

    def rectangles(self) -> List[RectNode]:
        return [n for n in self.nodes if isinstance(n, RectNode)]

    def texts(self) -> List[TextNode]:
        return [n for n in self.nodes if isinstance(n, TextNode)]

    def reset(self) -> None:
        """Drop every accumulated node."""
        self.nodes.clear()

    # ------------- SVG export ------------- #

    def to_drawing(self) -> draw.Drawing:
        """Build a drawsvg Drawing of the current nodes."""
        d = draw.Drawing(self.config.width, self.config.height)
        for index, node in enumerate(self.nodes):
            if isinstance(node, RectNode):
                rng = random.Random(self.config.seed * 100_003 + index)
                d.append(sketch_rectangle(node, rng))
            else:
                d.append(draw.Text(
                    node.content,
                    node.font_size,
                    node.x,
                    node.y,
                    fill=node.color,
                    text_anchor=node.align,
                    font_family=self.config.font_family,
                    **dict(node.attrs),
                ))
        return d

    def serialize(self) -> str:
        """Return the SVG markup of the current nodes."""
        return self.to_drawing().as_svg()

    def save(self, path: Optional[str] = None) -> None:
        """Write the SVG markup to ``path``, or to stdout when no path is given.

        A failed write is logged and otherwise ignored; the nodes are kept.
        """
        markup = self.serialize()
        if path is None:
            sys.stdout.write(markup + "\n")
            return
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(markup)
        except OSError as e:
            logger.error("Could not save diagram to %s: %s", path, e)
            return
        logger.info("Saved diagram to %s", path)

    def rasterize(self) -> bytes:
        """Return the diagram as PNG bytes."""
        import cairosvg

        return cairosvg.svg2png(
            bytestring=self.serialize().encode("utf-8"),
            output_width=int(self.config.width),
            output_height=int(self.config.height),
        )

    # ------------- Host display ------------- #

    def render_to(self, canvas: Any) -> None:
        """Paint the rasterized diagram onto a tkinter canvas.

        Args:
            canvas: tkinter Canvas to draw on
        """
        image = self._photo_image(canvas, base64.b64encode(self.rasterize()))
        self._images.append(image)
        canvas.create_image(0, 0, image=image, anchor="nw")
        canvas.configure(scrollregion=(0, 0, self.config.width, self.config.height))

    def _photo_image(self, canvas: Any, data: bytes) -> Any:
        import tkinter as tk

        return tk.PhotoImage(master=canvas, data=data)

    def clear(self, target: Any) -> None:
        """Remove everything shown on a host canvas."""
        target.delete("all")
        self._images.clear()

    def _mirror(self, node: DrawingNode) -> None:
        if isinstance(node, RectNode):
            self.host.create_rectangle(
                node.x, node.y,
                node.x + node.width, node.y + node.height,
                outline=_tk_color(node.style.stroke),
                fill=_tk_color(node.style.fill) if node.style.fill else "",
                width=node.style.stroke_width,
            )
        else:
            self.host.create_text(
                node.x, node.y,
                text=node.content,
                font=(self.config.font_family.split(",")[0], int(node.font_size)),
                anchor=_TK_ANCHORS.get(node.align, "center"),
                fill=_tk_color(node.color),
            )


def _tk_color(color: str) -> str:
    """Convert an ``rgb(r, g, b)`` color to the #rrggbb form tkinter expects."""
    color = color.strip()
    if color.startswith("rgb(") and color.endswith(")"):
        parts = [int(float(p)) for p in color[4:-1].split(",")]
        return "#{:02x}{:02x}{:02x}".format(*parts)
    return color
