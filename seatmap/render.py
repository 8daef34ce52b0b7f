from __future__ import annotations

from typing import Optional

from .geometry import union_bounds
from .models import EntityKind, SeatType
from .scene import Scene
from .selection import entity_bounds, paint_order

SEAT_GLYPHS = {
    SeatType.standard: "o",
    SeatType.wheelchair: "w",
    SeatType.companion: "c",
    SeatType.vip: "v",
}
FILL_GLYPHS = {
    EntityKind.area: ".",
    EntityKind.structure: "#",
    EntityKind.table: "T",
}


def _cell(text: Optional[str], width: int) -> str:
    if not text:
        return ".".center(width)
    t = str(text)
    if len(t) > width:
        t = t[: max(0, width - 1)] + "…"
    return t.ljust(width)


def render_ascii(scene: Scene, *, width: int = 80) -> str:
    """Draw the scene on a character grid ``width`` columns wide."""
    width = max(10, int(width))
    bounds = union_bounds(entity_bounds(scene, eid) for eid in scene.all_element_ids())
    if bounds is None:
        return "(empty scene)"

    scale = max(bounds.width, 1.0) / (width - 1)
    # terminal cells are about twice as tall as they are wide
    height = max(1, int(bounds.height / (scale * 2.0)) + 1)
    grid = [[" "] * width for _ in range(height)]

    def plot(x: float, y: float, glyph: str) -> None:
        col = int(round((x - bounds.min_x) / scale))
        row = int(round((y - bounds.min_y) / (scale * 2.0)))
        if 0 <= row < height and 0 <= col < width:
            grid[row][col] = glyph

    for eid in paint_order(scene):
        kind = scene.kind_of(eid)
        record = scene.get(eid)
        if kind in FILL_GLYPHS:
            x0, y0 = record.position.x, record.position.y
            steps_x = max(1, int(record.size.width / scale))
            steps_y = max(1, int(record.size.height / (scale * 2.0)))
            for i in range(steps_x + 1):
                for j in range(steps_y + 1):
                    plot(x0 + i * scale, y0 + j * scale * 2.0, FILL_GLYPHS[kind])
        seat_ids = record.seats if kind in (EntityKind.row, EntityKind.table) else [eid] if kind == EntityKind.seat else []
        for sid in seat_ids:
            seat = scene.seats.get(sid)
            if seat is not None:
                plot(seat.position.x, seat.position.y, SEAT_GLYPHS[seat.seat_type])

    return "\n".join("".join(line).rstrip() for line in grid)


def render_listing(scene: Scene, *, cell_width: int = 14) -> str:
    """One line per element: kind, label, position and seat count."""
    cell_width = max(3, int(cell_width))
    header = "".join(_cell(h, cell_width) for h in ("kind", "label", "x", "y", "seats"))
    lines = [f"{scene.name}", header.rstrip()]
    for eid in paint_order(scene):
        kind = scene.kind_of(eid)
        record = scene.get(eid)
        seats = len(record.seats) if kind in (EntityKind.row, EntityKind.table) else ""
        cells = (kind.value, record.label, f"{record.position.x:.0f}", f"{record.position.y:.0f}", str(seats))
        lines.append("".join(_cell(c, cell_width) for c in cells).rstrip())
    for section in scene.sections.values():
        lines.append("".join(_cell(c, cell_width) for c in ("section", section.label, "", "", "")).rstrip())
    return "\n".join(lines)
