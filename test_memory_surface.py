"""
test_memory_surface.py

Unit tests for the drawing surface and its SVG export.
"""

import logging
import xml.etree.ElementTree as ET

import pytest
from memory_config import RenderConfig, SketchStyle
from memory_surface import RectNode, Surface, TextNode, _tk_color


SVG_NS = "{http://www.w3.org/2000/svg}"


class FakeCanvas:
    """Records the tkinter canvas calls made on it."""

    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
        return record

    def named(self, name):
        return [call for call in self.calls if call[0] == name]


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def config():
    """Default configuration."""
    return RenderConfig()


@pytest.fixture
def surface(config):
    """A surface with two boxes and a label."""
    s = Surface(config)
    s.add(RectNode(10, 10, 200, 130, config.rect_style))
    s.add(RectNode(10, 10, 60, 50, config.rect_style))
    s.add(TextNode("id82", 40, 40, config.id_color))
    return s


def parse(svg):
    return ET.fromstring(svg.encode("utf-8"))


# ============================================================
# Node Tests
# ============================================================

class TestNodes:
    """Tests for node bookkeeping."""

    def test_add_keeps_order(self, surface):
        """Test nodes are kept in the order they were added."""
        assert len(surface) == 3
        assert isinstance(surface.nodes[0], RectNode)
        assert isinstance(surface.nodes[2], TextNode)

    def test_filters(self, surface):
        """Test the rectangle and text views."""
        assert len(surface.rectangles()) == 2
        assert [t.content for t in surface.texts()] == ["id82"]

    def test_reset(self, surface):
        """Test reset drops every node."""
        surface.reset()
        assert len(surface) == 0
        assert parse(surface.serialize()).find(f"{SVG_NS}path") is None


# ============================================================
# SVG Tests
# ============================================================

class TestSerialize:
    """Tests for SVG serialization."""

    def test_one_path_per_rectangle(self, surface):
        """Test every box becomes one sketched path."""
        root = parse(surface.serialize())
        assert len(root.findall(f".//{SVG_NS}path")) == 2
        assert root.findall(f".//{SVG_NS}rect") == []

    def test_text_content(self, surface, config):
        """Test labels are written with their color."""
        texts = parse(surface.serialize()).findall(f".//{SVG_NS}text")
        assert len(texts) == 1
        assert "".join(texts[0].itertext()) == "id82"
        assert texts[0].get("fill") == config.id_color
        assert texts[0].get("text-anchor") == "middle"

    def test_canvas_size(self, surface):
        """Test the document has the configured size."""
        root = parse(surface.serialize())
        assert float(root.get("width")) == 800
        assert float(root.get("height")) == 800

    def test_fill_adds_background(self):
        """Test a filled box gets a plain rect below its strokes."""
        s = Surface()
        s.add(RectNode(0, 0, 50, 50, SketchStyle(fill="rgb(255, 255, 0)")))
        root = parse(s.serialize())
        rects = root.findall(f".//{SVG_NS}rect")
        assert len(rects) == 1
        assert rects[0].get("fill") == "rgb(255, 255, 0)"
        assert len(root.findall(f".//{SVG_NS}path")) == 1

    def test_stroke_style(self):
        """Test the sketch style reaches the path."""
        s = Surface()
        s.add(RectNode(0, 0, 50, 50, SketchStyle(stroke="red", stroke_width=3)))
        path = parse(s.serialize()).find(f".//{SVG_NS}path")
        assert path.get("stroke") == "red"
        assert float(path.get("stroke-width")) == 3
        assert path.get("fill") == "none"

    def test_extra_text_attributes(self):
        """Test text attributes are passed through."""
        s = Surface()
        s.add(TextNode("x", 5, 5, "black", attrs=(("font_weight", "bold"),)))
        text = parse(s.serialize()).find(f".//{SVG_NS}text")
        assert text.get("font-weight") == "bold"

    def test_deterministic(self, config):
        """Test the same seed gives identical markup."""
        def build(seed):
            s = Surface(config.with_options(seed=seed))
            s.add(RectNode(10, 10, 200, 130, config.rect_style))
            return s.serialize()

        assert build(1) == build(1)
        assert build(1) != build(2)

    def test_serialize_keeps_nodes(self, surface):
        """Test serializing does not consume the nodes."""
        first = surface.serialize()
        assert surface.serialize() == first
        assert len(surface) == 3


# ============================================================
# Save Tests
# ============================================================

class TestSave:
    """Tests for saving diagrams."""

    def test_save_file(self, surface, tmp_path):
        """Test saving to a file."""
        path = tmp_path / "out.svg"
        surface.save(str(path))
        assert path.read_text(encoding="utf-8") == surface.serialize()

    def test_save_stdout(self, surface, capsys):
        """Test saving without a path prints the markup."""
        surface.save()
        assert "<svg" in capsys.readouterr().out

    def test_save_failure_is_logged(self, surface, tmp_path, caplog):
        """Test a failed write is logged and not raised."""
        path = tmp_path / "missing" / "out.svg"
        with caplog.at_level(logging.ERROR, logger="memory_surface"):
            surface.save(str(path))
        assert not path.exists()
        assert "Could not save diagram" in caplog.text
        assert len(surface) == 3


# ============================================================
# Host Canvas Tests
# ============================================================

class TestHostCanvas:
    """Tests for handing the diagram to a tkinter canvas."""

    def test_render_to(self, surface, monkeypatch):
        """Test the rasterized image is placed at the origin."""
        monkeypatch.setattr(surface, "rasterize", lambda: b"png")
        monkeypatch.setattr(surface, "_photo_image", lambda canvas, data: ("image", data))
        canvas = FakeCanvas()

        surface.render_to(canvas)

        (_, args, kwargs), = canvas.named("create_image")
        assert args == (0, 0)
        assert kwargs["anchor"] == "nw"
        assert kwargs["image"] == ("image", b"cG5n")
        assert canvas.named("configure")[0][2]["scrollregion"] == (0, 0, 800, 800)

    def test_clear(self, surface):
        """Test clearing removes everything from the canvas."""
        canvas = FakeCanvas()
        surface.clear(canvas)
        assert canvas.calls == [("delete", ("all",), {})]

    def test_interactive_mirrors_nodes(self):
        """Test nodes are drawn on the host as they are added."""
        host = FakeCanvas()
        s = Surface(RenderConfig(interactive=True), host=host)
        s.add(RectNode(10, 20, 100, 50, SketchStyle(stroke="rgb(255, 0, 0)")))
        s.add(TextNode("hi", 5, 6, "rgb(0, 0, 0)", align="start"))

        (_, rect_args, rect_kwargs), = host.named("create_rectangle")
        assert rect_args == (10, 20, 110, 70)
        assert rect_kwargs["outline"] == "#ff0000"
        assert rect_kwargs["fill"] == ""

        (_, text_args, text_kwargs), = host.named("create_text")
        assert text_args == (5, 6)
        assert text_kwargs["text"] == "hi"
        assert text_kwargs["anchor"] == "w"
        assert text_kwargs["font"] == ("Consolas", 20)
        assert text_kwargs["fill"] == "#000000"

    def test_not_interactive(self):
        """Test a host is left alone without the interactive option."""
        host = FakeCanvas()
        s = Surface(RenderConfig(), host=host)
        s.add(RectNode(10, 20, 100, 50, SketchStyle()))
        assert host.calls == []

    def test_tk_color(self):
        """Test color conversion for tkinter."""
        assert _tk_color("rgb(27, 14, 139)") == "#1b0e8b"
        assert _tk_color("red") == "red"
