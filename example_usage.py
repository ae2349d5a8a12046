"""
example_usage.py

Example demonstrating the memory model drawing library.
This script draws the state of a small Python program:

    lst1 = [1, 2]
    lst2 = (lst1, "hi")
    d = {"a": 1}
    s = {1, 2}
    p = Point(1, 2)

and writes it to SVG files.
"""

import logging

from memory_model import dump_entities
from memory_viz import MemoryModel, draw


ENTITIES = [
    {"isClass": True, "name": "__main__", "id": None, "stack_frame": True, "x": 20, "y": 20,
     "value": {"lst1": 82, "lst2": 84, "d": 10, "s": 12, "p": 99}},
    {"isClass": False, "name": "list", "id": 82, "value": [19, 43], "show_indexes": True,
     "x": 400, "y": 20},
    {"isClass": False, "name": "tuple", "id": 84, "value": [82, 50], "show_indexes": True,
     "x": 700, "y": 20},
    {"isClass": False, "name": "int", "id": 19, "value": 1, "x": 400, "y": 230},
    {"isClass": False, "name": "int", "id": 43, "value": 2, "x": 650, "y": 230},
    {"isClass": False, "name": "str", "id": 50, "value": "hi", "x": 900, "y": 230},
    {"isClass": False, "name": "dict", "id": 10, "value": {"60": 19}, "x": 400, "y": 420},
    {"isClass": False, "name": "str", "id": 60, "value": "a", "x": 750, "y": 420},
    {"isClass": False, "name": "set", "id": 12, "value": [19, 43], "x": 400, "y": 620},
    {"isClass": True, "name": "Point", "id": 99, "value": {"x": 19, "y": 43}, "x": 750, "y": 620,
     "style": {"box_container": {"stroke": "rgb(30, 90, 200)"}}},
]


def stack_column_layout(entities, width):
    """Place stack frames in a left column and everything else in rows."""
    from memory_render import size_of

    frames_y = objects_y = 20
    objects_x = 400
    row_height = 0
    placed = []
    for entity in entities:
        w, h = size_of(entity)
        data = entity.to_dict()
        if entity.stack_frame:
            data["x"], data["y"] = 20, frames_y
            frames_y += h + 20
        else:
            if objects_x + w > width:
                objects_x = 400
                objects_y += row_height + 30
                row_height = 0
            data["x"], data["y"] = objects_x, objects_y
            objects_x += w + 30
            row_height = max(row_height, h)
        placed.append(data)
    return placed, max(frames_y, objects_y + row_height) + 20


def main():
    """Run the example."""
    logging.basicConfig(level=logging.INFO)

    print("=" * 70)
    print("Memory Model Drawing - Example")
    print("=" * 70)

    m = MemoryModel({"width": 1200, "height": 850})
    m.draw_all(ENTITIES)
    m.save("example.svg")
    print(f"Drew {len(ENTITIES)} entities as {len(m.surface)} drawing nodes")

    # Same entities, positioned by a layout function
    auto = draw(ENTITIES, layout=stack_column_layout, options={"width": 1300})
    auto.save("example_layout.svg")
    print(f"Automated layout canvas: {auto.config.width:g} x {auto.config.height:g}")

    print()
    print("Entities as JSON:")
    print(dump_entities(ENTITIES[:2]))


if __name__ == "__main__":
    main()
