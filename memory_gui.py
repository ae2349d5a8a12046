"""
memory_gui.py

Graphical viewer for memory model diagrams.

This module provides a tkinter-based window for:
- Stepping through several diagrams (e.g. successive program states)
- Showing the rendered diagram on a scrollable canvas
- Inspecting the entity under the mouse
- Exporting the current diagram as SVG

Usage:
    from memory_gui import DiagramViewer

    viewer = DiagramViewer([entities_step0, entities_step1])
    viewer.run()
"""

import tkinter as tk
from tkinter import ttk, scrolledtext, filedialog, messagebox
from typing import Any, List, Mapping, Optional, Sequence

from memory_config import RenderConfig
from memory_model import EntityDescriptor, EntityLike, as_entities
from memory_render import size_of
from memory_viz import MemoryModel


# ============================================================
# Color Scheme
# ============================================================

class ColorScheme:
    """Color scheme of the viewer window."""

    CANVAS_BG = "#FFFFFF"           # White
    TEXT = "#212121"                # Dark gray
    BORDER = "#757575"              # Gray


def entity_at(
    entities: Sequence[EntityDescriptor], x: float, y: float, config: RenderConfig
) -> Optional[EntityDescriptor]:
    """Return the last drawn entity whose box contains (x, y)."""
    for entity in reversed(entities):
        width, height = size_of(entity, config)
        if entity.x <= x <= entity.x + width and entity.y <= y <= entity.y + height:
            return entity
    return None


# ============================================================
# Main GUI Window
# ============================================================

class DiagramViewer:
    """Main GUI window for browsing memory model diagrams."""

    def __init__(
        self,
        diagrams: Sequence[Sequence[EntityLike]],
        options: Optional[Mapping[str, Any]] = None,
        titles: Optional[Sequence[str]] = None,
    ):
        """Initialize the viewer.

        Args:
            diagrams: One entity list per diagram
            options: Rendering options shared by every diagram
            titles: Optional title of each diagram
        """
        self.diagrams: List[List[EntityDescriptor]] = [as_entities(d) for d in diagrams]
        self.options = dict(options or {})
        self.titles = list(titles or [])
        self.current_index = 0
        self.model: Optional[MemoryModel] = None

        # Create main window
        self.root = tk.Tk()
        self.root.title("Memory Model Viewer")
        self.root.geometry("1200x800")

        self.colors = ColorScheme()

        self._create_ui()

        if self.diagrams:
            self.show_diagram(0)

    def _create_ui(self) -> None:
        """Create the user interface."""
        main_frame = ttk.Frame(self.root)
        main_frame.pack(fill=tk.BOTH, expand=True)

        self._create_toolbar(main_frame)

        content_frame = ttk.Frame(main_frame)
        content_frame.pack(fill=tk.BOTH, expand=True)

        self._create_canvas(content_frame)
        self._create_details_panel(content_frame)
        self._create_status_bar(main_frame)

    def _create_toolbar(self, parent: ttk.Frame) -> None:
        """Create the toolbar."""
        toolbar = ttk.Frame(parent, relief=tk.RAISED, borderwidth=1)
        toolbar.pack(side=tk.TOP, fill=tk.X, padx=5, pady=5)

        ttk.Button(toolbar, text="◀◀ First", command=self.first_diagram).pack(side=tk.LEFT, padx=2)
        ttk.Button(toolbar, text="◀ Previous", command=self.previous_diagram).pack(side=tk.LEFT, padx=2)

        self.step_label = ttk.Label(toolbar, text="0 / 0")
        self.step_label.pack(side=tk.LEFT, padx=10)

        ttk.Button(toolbar, text="Next ▶", command=self.next_diagram).pack(side=tk.LEFT, padx=2)
        ttk.Button(toolbar, text="Last ▶▶", command=self.last_diagram).pack(side=tk.LEFT, padx=2)

        ttk.Separator(toolbar, orient=tk.VERTICAL).pack(side=tk.LEFT, fill=tk.Y, padx=10)

        ttk.Button(toolbar, text="Export SVG", command=self.export_svg).pack(side=tk.LEFT, padx=2)
        ttk.Button(toolbar, text="⟳ Refresh", command=self.refresh).pack(side=tk.LEFT, padx=2)

    def _create_canvas(self, parent: ttk.Frame) -> None:
        """Create the canvas area."""
        canvas_frame = ttk.Frame(parent)
        canvas_frame.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

        self.canvas = tk.Canvas(canvas_frame, bg=self.colors.CANVAS_BG)

        h_scroll = ttk.Scrollbar(canvas_frame, orient=tk.HORIZONTAL, command=self.canvas.xview)
        v_scroll = ttk.Scrollbar(canvas_frame, orient=tk.VERTICAL, command=self.canvas.yview)
        self.canvas.configure(xscrollcommand=h_scroll.set, yscrollcommand=v_scroll.set)

        h_scroll.pack(side=tk.BOTTOM, fill=tk.X)
        v_scroll.pack(side=tk.RIGHT, fill=tk.Y)
        self.canvas.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)

        self.canvas.bind("<Button-1>", self._on_canvas_click)

    def _create_details_panel(self, parent: ttk.Frame) -> None:
        """Create the details panel."""
        details_frame = ttk.LabelFrame(parent, text="Details", width=250)
        details_frame.pack(side=tk.RIGHT, fill=tk.BOTH, padx=5)
        details_frame.pack_propagate(False)

        self.details_text = scrolledtext.ScrolledText(
            details_frame,
            wrap=tk.WORD,
            width=30,
            height=20,
            font=("Courier", 9)
        )
        self.details_text.pack(fill=tk.BOTH, expand=True, padx=5, pady=5)

    def _create_status_bar(self, parent: ttk.Frame) -> None:
        """Create the status bar."""
        status_frame = ttk.Frame(parent, relief=tk.SUNKEN, borderwidth=1)
        status_frame.pack(side=tk.BOTTOM, fill=tk.X)

        self.status_label = ttk.Label(status_frame, text="Ready", anchor=tk.W)
        self.status_label.pack(side=tk.LEFT, padx=10, pady=2)

    def _title(self, index: int) -> str:
        if index < len(self.titles):
            return self.titles[index]
        return f"Diagram {index}"

    def show_diagram(self, index: int) -> None:
        """Draw a diagram from scratch and show it.

        Args:
            index: Index of the diagram to show
        """
        if not self.diagrams or index < 0 or index >= len(self.diagrams):
            return

        self.current_index = index
        entities = self.diagrams[index]

        self.model = MemoryModel(self.options, host=self.canvas)
        self.model.clear(self.canvas)
        self.model.draw_all(entities)
        if not self.model.config.interactive:
            self.model.render(self.canvas)

        self.step_label.config(text=f"{index} / {len(self.diagrams) - 1}")
        self._update_details(entities)
        self.status_label.config(text=f"Showing {self._title(index)} ({len(entities)} entities)")

    def _update_details(self, entities: Sequence[EntityDescriptor]) -> None:
        """List the entities of the current diagram."""
        self.details_text.delete("1.0", tk.END)

        lines = [f"=== {self._title(self.current_index)} ===\n\n"]
        for entity in entities:
            label = "frame" if entity.stack_frame else entity.name
            ident = "" if entity.id is None else f" id{entity.id}"
            lines.append(f"{label}{ident} @ ({entity.x}, {entity.y})\n")

        self.details_text.insert("1.0", "".join(lines))

    def _on_canvas_click(self, event) -> None:
        """Show the entity under the cursor."""
        if self.model is None:
            return
        x = self.canvas.canvasx(event.x)
        y = self.canvas.canvasy(event.y)
        entity = entity_at(self.diagrams[self.current_index], x, y, self.model.config)
        if entity is not None:
            self._show_entity_details(entity)

    def _show_entity_details(self, entity: EntityDescriptor) -> None:
        """Show details about a clicked entity."""
        self.details_text.delete("1.0", tk.END)

        lines = [f"=== {entity.kind.value.upper()} ===\n\n"]
        lines.append(f"Name: {entity.name}\n")
        if entity.id is not None:
            lines.append(f"Id: {entity.id}\n")
        lines.append(f"Value: {entity.value}\n")
        width, height = size_of(entity, self.model.config)
        lines.append(f"Box: {width:g} x {height:g} at ({entity.x}, {entity.y})\n")

        self.details_text.insert("1.0", "".join(lines))

    def first_diagram(self) -> None:
        self.show_diagram(0)

    def last_diagram(self) -> None:
        self.show_diagram(len(self.diagrams) - 1)

    def previous_diagram(self) -> None:
        if self.current_index > 0:
            self.show_diagram(self.current_index - 1)

    def next_diagram(self) -> None:
        if self.current_index < len(self.diagrams) - 1:
            self.show_diagram(self.current_index + 1)

    def refresh(self) -> None:
        """Redraw the current diagram."""
        self.show_diagram(self.current_index)

    def export_svg(self) -> None:
        """Export the current diagram to an SVG file."""
        if self.model is None:
            return
        filename = filedialog.asksaveasfilename(
            defaultextension=".svg",
            filetypes=[("SVG", "*.svg"), ("All Files", "*.*")]
        )
        if filename:
            self.model.save(filename)
            self.status_label.config(text=f"Exported to {filename}")
            messagebox.showinfo("Export", f"Exported to {filename}")

    def run(self) -> None:
        """Run the GUI main loop."""
        self.root.mainloop()


# ============================================================
# Convenience function
# ============================================================

def view_diagrams(
    diagrams: Sequence[Sequence[EntityLike]],
    options: Optional[Mapping[str, Any]] = None,
    titles: Optional[Sequence[str]] = None,
) -> None:
    """Open a viewer window on the given diagrams."""
    viewer = DiagramViewer(diagrams, options, titles)
    viewer.run()


if __name__ == "__main__":
    view_diagrams([
        [
            {"isClass": True, "name": "__main__", "id": None, "value": {"lst": 82},
             "stack_frame": True, "x": 20, "y": 20},
            {"isClass": False, "name": "list", "id": 82, "value": [19], "x": 400, "y": 20},
            {"isClass": False, "name": "int", "id": 19, "value": 1, "x": 400, "y": 200},
        ],
        [
            {"isClass": True, "name": "__main__", "id": None, "value": {"lst": 82},
             "stack_frame": True, "x": 20, "y": 20},
            {"isClass": False, "name": "list", "id": 82, "value": [19, 43],
             "show_indexes": True, "x": 400, "y": 20},
            {"isClass": False, "name": "int", "id": 19, "value": 1, "x": 400, "y": 220},
            {"isClass": False, "name": "int", "id": 43, "value": 2, "x": 650, "y": 220},
        ],
    ], titles=["lst = [1]", "lst.append(2)"])
