from __future__ import annotations

from typing import Callable, Iterable, Iterator, Optional, Sequence

from shapely import affinity
from shapely.geometry import LineString, Point as ShapelyPoint, box
from shapely.geometry.base import BaseGeometry

from .geometry import Bounds, Vec, normalize_rect, points_bounds, rect_contains_point, union_bounds
from .models import Area, AreaShape, EntityKind, Point, Structure, Table, TableShape
from .scene import Scene

SEAT_RADIUS = 12.0
SEAT_PADDING = 14.0
ROW_PADDING = 24.0
AREA_PADDING = 8.0
STRUCTURE_PADDING = 8.0
TABLE_PADDING = 12.0
MIN_LINE_HIT_WIDTH = 8.0


def _by_z(records: Iterable) -> list:
    # sorted() is stable, so equal z keeps insertion order
    return sorted(records, key=lambda r: r.z_index or 0)


def paint_order(scene: Scene) -> list[str]:
    """Top-level element ids in the order the canvas paints them (back to front)."""
    order: list[str] = []
    order += [a.id for a in _by_z(scene.areas.values())]
    order += [s.id for s in _by_z(scene.structures.values())]
    order += [r.id for r in _by_z(scene.rows.values())]
    order += [t.id for t in _by_z(scene.tables.values())]
    order += [s.id for s in scene.standalone_seats()]
    return order


def topmost_at(scene: Scene, stacked_ids: Sequence[str]) -> Optional[str]:
    """First unlocked id of a front-to-back stack, or None."""
    for eid in stacked_ids:
        if eid in scene and not scene.is_locked(eid):
            return eid
    return None


def _box_shape(position: Point, width: float, height: float) -> BaseGeometry:
    return box(position.x, position.y, position.x + width, position.y + height)


def _ellipse_shape(position: Point, width: float, height: float) -> BaseGeometry:
    cx = position.x + width / 2.0
    cy = position.y + height / 2.0
    return affinity.scale(ShapelyPoint(cx, cy).buffer(1.0), xfact=width / 2.0, yfact=height / 2.0)


def _rotated(geom: BaseGeometry, rotation: float) -> BaseGeometry:
    if not rotation:
        return geom
    return affinity.rotate(geom, rotation, origin="center")


def _area_shape(area: Area) -> BaseGeometry:
    w, h = area.size.width, area.size.height
    if area.shape == AreaShape.line and area.line_config and len(area.line_config.points) >= 2:
        line = LineString([p.as_tuple() for p in area.line_config.points])
        return line.buffer(max(area.line_config.stroke_width, MIN_LINE_HIT_WIDTH) / 2.0)
    if area.shape in (AreaShape.circle, AreaShape.oval):
        return _rotated(_ellipse_shape(area.position, w, h), area.rotation)
    return _rotated(_box_shape(area.position, w, h), area.rotation)


def _table_shape(table: Table) -> BaseGeometry:
    w, h = table.size.width, table.size.height
    if table.shape == TableShape.round:
        return _rotated(_ellipse_shape(table.position, w, h), table.rotation)
    return _rotated(_box_shape(table.position, w, h), table.rotation)


def _structure_shape(structure: Structure) -> BaseGeometry:
    return _rotated(_box_shape(structure.position, structure.size.width, structure.size.height), structure.rotation)


def _seat_shape(position: Point) -> BaseGeometry:
    return ShapelyPoint(position.x, position.y).buffer(SEAT_RADIUS)


def element_shape(scene: Scene, entity_id: str) -> Optional[BaseGeometry]:
    kind = scene.kind_of(entity_id)
    if kind == EntityKind.seat:
        return _seat_shape(scene.seats[entity_id].position)
    if kind == EntityKind.row:
        pts = [s.position.as_tuple() for s in scene.row_seats(scene.rows[entity_id])]
        if not pts:
            return None
        if len(pts) == 1:
            return ShapelyPoint(pts[0]).buffer(SEAT_RADIUS)
        return LineString(pts).buffer(SEAT_RADIUS)
    if kind == EntityKind.area:
        return _area_shape(scene.areas[entity_id])
    if kind == EntityKind.table:
        return _table_shape(scene.tables[entity_id])
    if kind == EntityKind.structure:
        return _structure_shape(scene.structures[entity_id])
    return None


def elements_at(scene: Scene, point: Point) -> list[str]:
    """
    Every element under a world point, front to back.
    Seats of a row or table come before the row or table itself.
    """
    p = ShapelyPoint(point.x, point.y)
    stack: list[str] = []
    for eid in reversed(paint_order(scene)):
        kind = scene.kind_of(eid)
        if kind == EntityKind.row:
            nested = scene.rows[eid].seats
        elif kind == EntityKind.table:
            nested = scene.tables[eid].seats
        else:
            nested = []
        for sid in reversed(nested):
            if sid in scene.seats and _seat_shape(scene.seats[sid].position).covers(p):
                stack.append(sid)
        shape = element_shape(scene, eid)
        if shape is not None and shape.covers(p):
            stack.append(eid)
    return stack


def representative_point(scene: Scene, entity_id: str) -> Optional[Vec]:
    kind = scene.kind_of(entity_id)
    if kind == EntityKind.row:
        seats = scene.row_seats(scene.rows[entity_id])
        return seats[0].position.as_tuple() if seats else None
    if kind == EntityKind.seat:
        return scene.seats[entity_id].position.as_tuple()
    if kind in (EntityKind.area, EntityKind.table, EntityKind.structure):
        record = scene.get(entity_id)
        return (
            record.position.x + record.size.width / 2.0,
            record.position.y + record.size.height / 2.0,
        )
    return None


def box_select(scene: Scene, selected: Sequence[str], corner_a: Point, corner_b: Point) -> list[str]:
    """Extend ``selected`` with every unlocked element whose representative
    point lies inside the rectangle spanned by the two corners."""
    rect = normalize_rect(corner_a.as_tuple(), corner_b.as_tuple())
    out = list(selected)
    already = set(out)
    candidates = [*scene.rows, *scene.areas, *scene.tables, *scene.structures, *(s.id for s in scene.standalone_seats())]
    for eid in candidates:
        if eid in already or scene.is_locked(eid):
            continue
        rp = representative_point(scene, eid)
        if rp is not None and rect_contains_point(rect, rp[0], rp[1]):
            out.append(eid)
            already.add(eid)
    return out


def entity_bounds(scene: Scene, entity_id: str) -> Optional[Bounds]:
    kind = scene.kind_of(entity_id)
    if kind == EntityKind.seat:
        p = scene.seats[entity_id].position
        return Bounds(p.x, p.y, p.x, p.y).padded(SEAT_PADDING)
    if kind == EntityKind.row:
        b = points_bounds(s.position.as_tuple() for s in scene.row_seats(scene.rows[entity_id]))
        return b.padded(ROW_PADDING) if b else None
    if kind in (EntityKind.area, EntityKind.table, EntityKind.structure):
        record = scene.get(entity_id)
        b = Bounds(
            record.position.x,
            record.position.y,
            record.position.x + record.size.width,
            record.position.y + record.size.height,
        )
        pad = {EntityKind.area: AREA_PADDING, EntityKind.table: TABLE_PADDING}.get(kind, STRUCTURE_PADDING)
        return b.padded(pad)
    return None


def selection_bounds(scene: Scene, ids: Iterable[str]) -> Optional[Bounds]:
    return union_bounds(entity_bounds(scene, eid) for eid in ids)


class Selection:
    """Ordered set of selected element ids."""

    def __init__(self, ids: Optional[Iterable[str]] = None):
        self.ids: list[str] = list(dict.fromkeys(ids or ()))

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self.ids

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids)

    def __len__(self) -> int:
        return len(self.ids)

    def select(self, entity_id: str, multi: bool = False) -> None:
        if not multi:
            self.ids = [entity_id]
        elif entity_id in self.ids:
            self.ids = [i for i in self.ids if i != entity_id]
        else:
            self.ids = [*self.ids, entity_id]

    def deselect(self, entity_id: str) -> None:
        self.ids = [i for i in self.ids if i != entity_id]

    def clear(self) -> None:
        self.ids = []

    def set(self, ids: Iterable[str]) -> None:
        self.ids = list(dict.fromkeys(ids))

    def select_all(self, scene: Scene) -> None:
        self.ids = [eid for eid in scene.all_element_ids() if not scene.is_locked(eid)]

    def prune(self, scene: Scene) -> None:
        self.ids = [i for i in self.ids if i in scene]

    def unlocked(self, scene: Scene) -> list[str]:
        return [i for i in self.ids if not scene.is_locked(i)]

    def bounds(self, scene: Scene) -> Optional[Bounds]:
        return selection_bounds(scene, self.ids)

    def watch(self, scene: Scene) -> Callable[[], None]:
        """Keep the selection free of deleted ids; returns the unsubscribe callable."""
        return scene.subscribe(lambda change: self.prune(scene))
