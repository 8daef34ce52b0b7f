from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .models import AreaShape, StructureType, TableShape
from .scene import Scene, SceneError


@dataclass(frozen=True)
class Template:
    id: str
    title: str
    description: str
    build: Callable[[Scene], None]


def _theater(scene: Scene) -> None:
    scene.create_structure("Stage", StructureType.stage, (250, 40), (500, 100), color="#1f2937")

    orchestra = scene.create_section("Orchestra", "#f97316", 1, default_price=60.0)
    sides = scene.create_section("Sides", "#3b82f6", 2, default_price=40.0)

    scene.create_multiple_rows(
        [{"label": label, "seat_count": 14, "section_id": orchestra} for label in "ABCDE"],
        (262, 200),
        spacing=45,
    )
    for i, label in enumerate("FG"):
        y = 450 + i * 50
        scene.create_curved_row(label, 16, (230, y), (770, y), 0.4 + 0.1 * i, section_id=orchestra)

    for x, label in ((60, "Left"), (830, "Right")):
        scene.create_area(f"{label} side", (x, 200), (110, 300), AreaShape.rectangle, color="#dbeafe", opacity=0.6)
        for j in range(6):
            scene.create_row(f"{label[0]}{j + 1}", 3, (x + 20, 220 + j * 45), section_id=sides)

    scene.create_structure("Entrance", StructureType.entrance, (440, 600), (120, 40))


def _banquet(scene: Scene) -> None:
    scene.create_structure("Bar", StructureType.bar, (40, 40), (200, 60))
    for r in range(2):
        for c in range(3):
            n = r * 3 + c + 1
            scene.create_table(f"T{n}", (120 + c * 220, 200 + r * 220), TableShape.round, (80, 80), 8)
    scene.create_table("Head", (260, 660), TableShape.rectangular, (240, 80), 10)


TEMPLATES: dict[str, Template] = {
    "theater": Template("theater", "Theater", "Stalls, side sections and a stage.", _theater),
    "banquet": Template("banquet", "Banquet", "Round tables, a head table and a bar.", _banquet),
}

DEFAULT_TEMPLATE_ID = "theater"


def build_template(template_id: str = DEFAULT_TEMPLATE_ID) -> Scene:
    template = TEMPLATES.get(template_id)
    if template is None:
        raise SceneError(f"unknown template: {template_id!r} (known: {sorted(TEMPLATES)})")
    scene = Scene(name=template.title)
    template.build(scene)
    return scene
