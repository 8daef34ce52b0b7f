from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from .geometry import (
    GeometryError,
    Vec,
    clamp_curvature,
    curvature_from_point,
    curve_seat_positions,
    linear_seat_positions,
    points_bounds,
    rect_table_seat_positions,
    round_table_seat_positions,
)
from .models import (
    DEFAULT_AREA_COLOR,
    DEFAULT_SECTION_COLOR,
    DEFAULT_STRUCTURE_COLOR,
    RECORD_TYPES,
    Area,
    AreaShape,
    EntityKind,
    LineConfig,
    LineType,
    Point,
    Row,
    RowConfig,
    Seat,
    SeatStatus,
    SeatType,
    Section,
    Size,
    Structure,
    StructureType,
    Table,
    TableShape,
    new_id,
)

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Untitled Map"
IMPORTED_NAME = "Imported Map"
DEFAULT_ROW_ANCHOR = (100.0, 100.0)
DEFAULT_ROW_SPACING = 50.0
DEFAULT_LINE_COLOR = "#6b7280"

PointLike = Union[Point, Vec, Mapping[str, float]]
SizeLike = Union[Size, Vec, Mapping[str, float]]

_Z_FIELDS = ("rows", "areas", "tables", "structures")
_FIELD_BY_KIND = {kind: field for field, (kind, _) in RECORD_TYPES.items()}


class SceneError(Exception):
    pass


class InvalidDocumentError(SceneError):
    pass


@dataclass(frozen=True)
class SceneChange:
    operation: str
    ids: tuple[str, ...] = ()


Listener = Callable[[SceneChange], None]


def _pt(v: PointLike) -> Point:
    if isinstance(v, Point):
        return v
    if isinstance(v, Mapping):
        return Point(x=float(v["x"]), y=float(v["y"]))
    x, y = v
    return Point(x=float(x), y=float(y))


def _size(v: SizeLike) -> Size:
    if isinstance(v, Size):
        return v
    if isinstance(v, Mapping):
        return Size(width=float(v["width"]), height=float(v["height"]))
    w, h = v
    return Size(width=float(w), height=float(h))


def _label(pattern: str, counter: int) -> str:
    return pattern.replace("{n}", str(counter)).replace("{N}", f"{counter:02d}")


def _revise(record: Any, changes: Mapping[str, Any]) -> Any:
    """Copy ``record`` with ``changes`` applied, validated the same way an imported record is."""
    try:
        return type(record).model_validate({**record.model_dump(), **changes})
    except ValidationError as e:
        raise SceneError(f"invalid {type(record).__name__.lower()} update: {e}") from e


def _owned_seats(positions: Sequence[Vec], **owner: Any) -> tuple[list[str], dict[str, Seat]]:
    seat_ids: list[str] = []
    seats: dict[str, Seat] = {}
    for i, (x, y) in enumerate(positions):
        sid = new_id(EntityKind.seat)
        seat_ids.append(sid)
        seats[sid] = Seat(id=sid, label=str(i + 1), position=Point(x=x, y=y), **owner)
    return seat_ids, seats


def table_seat_positions(position: Point, size: Size, shape: TableShape, count: int) -> list[Vec]:
    if shape == TableShape.round:
        return round_table_seat_positions(position.as_tuple(), (size.width, size.height), count)
    return rect_table_seat_positions(position.as_tuple(), (size.width, size.height), count)


def parse_document(document: Union[str, bytes, Mapping[str, Any]]) -> tuple[str, dict[str, dict[str, Any]]]:
    """
    Validate a persisted scene document.
    Returns the scene name and one ``{id: record}`` mapping per entity field.
    """
    if isinstance(document, (str, bytes, bytearray)):
        try:
            data = json.loads(document)
        except ValueError as e:
            raise InvalidDocumentError(f"invalid scene document: {e}") from e
    else:
        data = document

    if not isinstance(data, Mapping):
        raise InvalidDocumentError("invalid scene document: top level must be an object")

    name = data.get("name")
    if name is None:
        name = IMPORTED_NAME
    elif not isinstance(name, str):
        raise InvalidDocumentError("invalid scene document: name must be a string")

    maps: dict[str, dict[str, Any]] = {}
    for field, (_, record_type) in RECORD_TYPES.items():
        raw = data.get(field)
        if raw is None:
            maps[field] = {}
            continue
        if not isinstance(raw, Mapping):
            raise InvalidDocumentError(f"invalid scene document: {field} must be an object")
        parsed: dict[str, Any] = {}
        for key, record in raw.items():
            if not isinstance(record, Mapping):
                raise InvalidDocumentError(f"invalid scene document: {field}.{key} must be an object")
            try:
                parsed[str(key)] = record_type.model_validate({**record, "id": key})
            except ValidationError as e:
                raise InvalidDocumentError(f"invalid scene document: {field}.{key}: {e}") from e
        maps[field] = parsed
    return name, maps


class Scene:
    """
    The normalized entity store of a seat map.

    Every public mutation builds new sub-maps and swaps them in at the end, so
    a failure leaves the scene untouched. Operations on ids that do not exist
    are no-ops. Listeners registered with :meth:`subscribe` see one
    :class:`SceneChange` per successful mutation.
    """

    def __init__(self, name: str = DEFAULT_NAME):
        self.name = name
        self.rows: dict[str, Row] = {}
        self.seats: dict[str, Seat] = {}
        self.areas: dict[str, Area] = {}
        self.tables: dict[str, Table] = {}
        self.structures: dict[str, Structure] = {}
        self.sections: dict[str, Section] = {}
        self._kinds: dict[str, EntityKind] = {}
        self._listeners: list[Listener] = []

    # --- bookkeeping -------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _commit(self, operation: str, ids: Iterable[str] = (), **maps: dict[str, Any]) -> None:
        for field, mapping in maps.items():
            setattr(self, field, mapping)
        self._kinds = {eid: kind for field, (kind, _) in RECORD_TYPES.items() for eid in getattr(self, field)}
        change = SceneChange(operation=operation, ids=tuple(ids))
        logger.debug("scene %s: %s %s", self.name, operation, change.ids)
        for listener in list(self._listeners):
            listener(change)

    def kind_of(self, entity_id: str) -> Optional[EntityKind]:
        return self._kinds.get(entity_id)

    def get(self, entity_id: str) -> Optional[Any]:
        kind = self._kinds.get(entity_id)
        if kind is None:
            return None
        return getattr(self, _FIELD_BY_KIND[kind])[entity_id]

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._kinds

    def all_element_ids(self) -> list[str]:
        return [*self.rows, *self.areas, *self.tables, *self.structures, *self.seats]

    def standalone_seats(self) -> list[Seat]:
        return [s for s in self.seats.values() if not self.seat_owner(s)]

    def seat_owner(self, seat: Seat) -> Optional[Union[Row, Table]]:
        # an owner counts only when it also lists the seat; anything else is "no owner"
        row = self.rows.get(seat.row_id) if seat.row_id else None
        if row is not None and seat.id in row.seats:
            return row
        table = self.tables.get(seat.table_id) if seat.table_id else None
        if table is not None and seat.id in table.seats:
            return table
        return None

    def row_seats(self, row: Row) -> list[Seat]:
        return [self.seats[sid] for sid in row.seats if sid in self.seats]

    def table_seats(self, table: Table) -> list[Seat]:
        return [self.seats[sid] for sid in table.seats if sid in self.seats]

    def is_locked(self, entity_id: str) -> bool:
        record = self.get(entity_id)
        if record is None or not hasattr(record, "locked"):
            return False
        if record.locked:
            return True
        if isinstance(record, Seat):
            owner = self.seat_owner(record)
            return bool(owner and owner.locked)
        return False

    def row_basis(self, row: Row) -> Optional[tuple[Vec, Vec]]:
        """Chord endpoints of a row: stored start/end, else first/last seat."""
        seats = self.row_seats(row)
        if len(seats) < 2:
            return None
        start = row.start or seats[0].position
        end = row.end or seats[-1].position
        return start.as_tuple(), end.as_tuple()

    # --- creation ----------------------------------------------------------

    def create_row(
        self,
        label: str,
        seat_count: int,
        anchor: Optional[PointLike] = None,
        section_id: Optional[str] = None,
    ) -> str:
        position = _pt(anchor if anchor is not None else DEFAULT_ROW_ANCHOR)
        row, seats = self._build_row(label, linear_seat_positions(position.as_tuple(), seat_count), position, section_id=section_id)
        self._commit("create_row", [row.id, *row.seats], rows={**self.rows, row.id: row}, seats={**self.seats, **seats})
        return row.id

    def create_curved_row(
        self,
        label: str,
        seat_count: int,
        start: PointLike,
        end: PointLike,
        curvature: float,
        section_id: Optional[str] = None,
    ) -> str:
        s, e = _pt(start), _pt(end)
        curve = clamp_curvature(curvature)
        positions = curve_seat_positions(s.as_tuple(), e.as_tuple(), curve, seat_count)
        row, seats = self._build_row(label, positions, s, start=s, end=e, curve=curve, section_id=section_id)
        self._commit("create_curved_row", [row.id, *row.seats], rows={**self.rows, row.id: row}, seats={**self.seats, **seats})
        return row.id

    def create_multiple_rows(
        self,
        row_configs: Sequence[Union[RowConfig, Mapping[str, Any]]],
        base_position: PointLike,
        spacing: float = DEFAULT_ROW_SPACING,
    ) -> list[str]:
        base = _pt(base_position)
        rows = dict(self.rows)
        seats = dict(self.seats)
        created: list[str] = []
        for i, raw in enumerate(row_configs):
            try:
                cfg = raw if isinstance(raw, RowConfig) else RowConfig.model_validate(raw)
            except ValidationError as e:
                raise SceneError(f"invalid row config #{i + 1}: {e}") from e
            anchor = Point(x=base.x, y=base.y + i * spacing)
            row, row_seats = self._build_row(
                cfg.label,
                linear_seat_positions(anchor.as_tuple(), cfg.seat_count),
                anchor,
                section_id=cfg.section_id,
            )
            rows[row.id] = row
            seats.update(row_seats)
            created.append(row.id)
        if created:
            self._commit("create_multiple_rows", created, rows=rows, seats=seats)
        return created

    def _build_row(self, label: str, positions: Sequence[Vec], position: Point, **fields: Any) -> tuple[Row, dict[str, Seat]]:
        row_id = new_id(EntityKind.row)
        seat_ids, seats = _owned_seats(positions, row_id=row_id)
        return Row(id=row_id, label=label, position=position, seats=seat_ids, **fields), seats

    def create_seat(
        self,
        label: str,
        position: PointLike,
        seat_type: SeatType = SeatType.standard,
        section_id: Optional[str] = None,
    ) -> str:
        sid = new_id(EntityKind.seat)
        seat = Seat(id=sid, label=label, position=_pt(position), seat_type=SeatType(seat_type), section_id=section_id)
        self._commit("create_seat", [sid], seats={**self.seats, sid: seat})
        return sid

    def create_area(
        self,
        label: str,
        position: PointLike,
        size: SizeLike,
        shape: AreaShape = AreaShape.rectangle,
        color: str = DEFAULT_AREA_COLOR,
        opacity: float = 1.0,
    ) -> str:
        area_id = new_id(EntityKind.area)
        area = Area(id=area_id, label=label, position=_pt(position), size=_size(size), shape=AreaShape(shape), color=color, opacity=opacity)
        self._commit("create_area", [area_id], areas={**self.areas, area_id: area})
        return area_id

    def create_line(
        self,
        label: str,
        points: Sequence[PointLike],
        color: str = DEFAULT_LINE_COLOR,
        stroke_width: float = 2.0,
        line_type: LineType = LineType.straight,
        opacity: float = 1.0,
    ) -> str:
        pts = [_pt(p) for p in points]
        if len(pts) < 2:
            raise GeometryError("a line needs at least two points")
        b = points_bounds(p.as_tuple() for p in pts)
        area_id = new_id(EntityKind.area)
        area = Area(
            id=area_id,
            label=label,
            position=Point(x=b.min_x, y=b.min_y),
            size=Size(width=max(1.0, b.width), height=max(1.0, b.height)),
            shape=AreaShape.line,
            color=color,
            opacity=opacity,
            line_config=LineConfig(points=pts, stroke_width=stroke_width, line_type=LineType(line_type)),
        )
        self._commit("create_line", [area_id], areas={**self.areas, area_id: area})
        return area_id

    def create_table(
        self,
        label: str,
        anchor: PointLike,
        shape: TableShape,
        size: SizeLike,
        seat_count: int,
    ) -> str:
        position, sz, shape = _pt(anchor), _size(size), TableShape(shape)
        table_id = new_id(EntityKind.table)
        seat_ids, seats = _owned_seats(table_seat_positions(position, sz, shape, seat_count), table_id=table_id)
        table = Table(id=table_id, label=label, position=position, size=sz, shape=shape, seats=seat_ids)
        self._commit("create_table", [table_id, *seat_ids], tables={**self.tables, table_id: table}, seats={**self.seats, **seats})
        return table_id

    def create_structure(
        self,
        label: str,
        structure_type: StructureType,
        position: PointLike,
        size: SizeLike,
        color: str = DEFAULT_STRUCTURE_COLOR,
    ) -> str:
        sid = new_id(EntityKind.structure)
        structure = Structure(
            id=sid,
            label=label,
            structure_type=StructureType(structure_type),
            position=_pt(position),
            size=_size(size),
            color=color,
        )
        self._commit("create_structure", [sid], structures={**self.structures, sid: structure})
        return sid

    def create_section(
        self,
        label: str,
        color: str = DEFAULT_SECTION_COLOR,
        section_number: Optional[int] = None,
        default_price: Optional[float] = None,
    ) -> str:
        sid = new_id(EntityKind.section)
        number = section_number if section_number is not None else len(self.sections) + 1
        section = Section(id=sid, label=label, color=color, section_number=number, default_price=default_price)
        self._commit("create_section", [sid], sections={**self.sections, sid: section})
        return sid

    # --- field updates -----------------------------------------------------

    def _update(self, field: str, entity_id: str, operation: str, **changes: Any) -> bool:
        mapping = getattr(self, field)
        record = mapping.get(entity_id)
        if record is None:
            return False
        self._commit(operation, [entity_id], **{field: {**mapping, entity_id: _revise(record, changes)}})
        return True

    def update_row_label(self, row_id: str, label: str) -> None:
        self._update("rows", row_id, "update_row_label", label=label)

    def update_row_section(self, row_id: str, section_id: Optional[str]) -> None:
        self._update("rows", row_id, "update_row_section", section_id=section_id)

    def update_seat_label(self, seat_id: str, label: str) -> None:
        self._update("seats", seat_id, "update_seat_label", label=label)

    def update_seat_type(self, seat_id: str, seat_type: SeatType) -> None:
        self._update("seats", seat_id, "update_seat_type", seat_type=SeatType(seat_type))

    def update_seat_status(self, seat_id: str, status: SeatStatus) -> None:
        self._update("seats", seat_id, "update_seat_status", status=SeatStatus(status))

    def update_seat_section(self, seat_id: str, section_id: Optional[str]) -> None:
        self._update("seats", seat_id, "update_seat_section", section_id=section_id)

    def update_seat_price(self, seat_id: str, price: Optional[float]) -> None:
        self._update("seats", seat_id, "update_seat_price", price=price)

    def update_area_label(self, area_id: str, label: str) -> None:
        self._update("areas", area_id, "update_area_label", label=label)

    def update_table_label(self, table_id: str, label: str) -> None:
        self._update("tables", table_id, "update_table_label", label=label)

    def update_structure_label(self, structure_id: str, label: str) -> None:
        self._update("structures", structure_id, "update_structure_label", label=label)

    def update_row_seat_price(self, row_id: str, price: Optional[float]) -> None:
        row = self.rows.get(row_id)
        if row is None:
            return
        seats = dict(self.seats)
        for seat in self.row_seats(row):
            seats[seat.id] = _revise(seat, {"price": price})
        self._commit("update_row_seat_price", [row_id, *row.seats], seats=seats)

    def update_area(
        self,
        area_id: str,
        *,
        label: Optional[str] = None,
        color: Optional[str] = None,
        shape: Optional[AreaShape] = None,
        opacity: Optional[float] = None,
        size: Optional[SizeLike] = None,
        line_config: Optional[LineConfig] = None,
    ) -> None:
        area = self.areas.get(area_id)
        if area is None:
            return
        changes: dict[str, Any] = {}
        if label is not None:
            changes["label"] = label
        if color is not None:
            changes["color"] = color
        if opacity is not None:
            changes["opacity"] = float(opacity)
        if size is not None:
            changes["size"] = _size(size)
        if shape is not None:
            changes["shape"] = AreaShape(shape)
            if changes["shape"] != AreaShape.line:
                changes["line_config"] = None
        if line_config is not None:
            changes["line_config"] = line_config
        if changes:
            self._update("areas", area_id, "update_area", **changes)

    def update_table(
        self,
        table_id: str,
        *,
        label: Optional[str] = None,
        shape: Optional[TableShape] = None,
        size: Optional[SizeLike] = None,
    ) -> None:
        table = self.tables.get(table_id)
        if table is None:
            return
        changes: dict[str, Any] = {}
        if label is not None:
            changes["label"] = label
        if shape is not None:
            changes["shape"] = TableShape(shape)
        if size is not None:
            changes["size"] = _size(size)
        if not changes:
            return
        updated = _revise(table, changes)
        seats = self.seats
        if updated.shape != table.shape or updated.size != table.size:
            seats = self._relayout_table(updated)
        self._commit("update_table", [table_id], tables={**self.tables, table_id: updated}, seats=seats)

    def _relayout_table(self, table: Table) -> dict[str, Seat]:
        owned = self.table_seats(table)
        positions = table_seat_positions(table.position, table.size, table.shape, len(owned))
        seats = dict(self.seats)
        for seat, (x, y) in zip(owned, positions):
            seats[seat.id] = _revise(seat, {"position": Point(x=x, y=y)})
        return seats

    def update_structure(
        self,
        structure_id: str,
        *,
        label: Optional[str] = None,
        structure_type: Optional[StructureType] = None,
        color: Optional[str] = None,
        size: Optional[SizeLike] = None,
    ) -> None:
        changes: dict[str, Any] = {}
        if label is not None:
            changes["label"] = label
        if structure_type is not None:
            changes["structure_type"] = StructureType(structure_type)
        if color is not None:
            changes["color"] = color
        if size is not None:
            changes["size"] = _size(size)
        if changes:
            self._update("structures", structure_id, "update_structure", **changes)

    def update_section(
        self,
        section_id: str,
        *,
        label: Optional[str] = None,
        color: Optional[str] = None,
        section_number: Optional[int] = None,
        default_price: Optional[float] = None,
    ) -> None:
        changes: dict[str, Any] = {}
        if label is not None:
            changes["label"] = label
        if color is not None:
            changes["color"] = color
        if section_number is not None:
            changes["section_number"] = int(section_number)
        if default_price is not None:
            changes["default_price"] = float(default_price)
        if changes:
            self._update("sections", section_id, "update_section", **changes)

    def resize(self, entity_id: str, size: SizeLike) -> None:
        kind = self.kind_of(entity_id)
        if kind == EntityKind.area:
            self.update_area(entity_id, size=size)
        elif kind == EntityKind.table:
            self.update_table(entity_id, size=size)
        elif kind == EntityKind.structure:
            self.update_structure(entity_id, size=size)

    def set_name(self, name: str) -> None:
        self.name = name
        self._commit("set_name")

    # --- row geometry ------------------------------------------------------

    def _place_row(self, row: Row, positions: Sequence[Vec]) -> dict[str, Seat]:
        seats = dict(self.seats)
        for seat, (x, y) in zip(self.row_seats(row), positions):
            seats[seat.id] = _revise(seat, {"position": Point(x=x, y=y)})
        return seats

    def update_row_curve(self, row_id: str, curvature: float) -> None:
        row = self.rows.get(row_id)
        if row is None:
            return
        basis = self.row_basis(row)
        if basis is None:
            return
        start, end = basis
        curve = clamp_curvature(curvature)
        owned = self.row_seats(row)
        updated = _revise(row, {"start": _pt(start), "end": _pt(end), "curve": curve})
        seats = self._place_row(row, curve_seat_positions(start, end, curve, len(owned)))
        self._commit("update_row_curve", [row_id], rows={**self.rows, row_id: updated}, seats=seats)

    def set_row_curve_from_point(self, row_id: str, point: PointLike) -> Optional[float]:
        """Bend a row so its curve handle follows ``point``; returns the new curvature."""
        row = self.rows.get(row_id)
        if row is None:
            return None
        basis = self.row_basis(row)
        if basis is None:
            return None
        curve = curvature_from_point(basis[0], basis[1], _pt(point).as_tuple())
        self.update_row_curve(row_id, curve)
        return curve

    def move_row_endpoint(self, row_id: str, which: str, point: PointLike) -> None:
        if which not in ("start", "end"):
            raise GeometryError(f"unknown row endpoint: {which!r}")
        row = self.rows.get(row_id)
        if row is None:
            return
        basis = self.row_basis(row)
        if basis is None:
            return
        p = _pt(point)
        start, end = basis
        if which == "start":
            start = p.as_tuple()
        else:
            end = p.as_tuple()
        curve = clamp_curvature(row.curve or 0.0)
        changes: dict[str, Any] = {"start": _pt(start), "end": _pt(end), "curve": curve}
        if which == "start":
            changes["position"] = p
        updated = _revise(row, changes)
        seats = self._place_row(row, curve_seat_positions(start, end, curve, len(self.row_seats(row))))
        self._commit("move_row_endpoint", [row_id], rows={**self.rows, row_id: updated}, seats=seats)

    def update_row_seat_count(self, row_id: str, seat_count: int) -> None:
        if seat_count < 0:
            raise GeometryError("seat count must be non-negative")
        row = self.rows.get(row_id)
        if row is None:
            return
        owned = self.row_seats(row)
        if row.start is not None and row.end is not None:
            positions = curve_seat_positions(row.start.as_tuple(), row.end.as_tuple(), row.curve or 0.0, seat_count)
        else:
            positions = linear_seat_positions(row.position.as_tuple(), seat_count)

        seats = dict(self.seats)
        for seat in owned[seat_count:]:
            del seats[seat.id]
        seat_ids: list[str] = []
        for i, (x, y) in enumerate(positions):
            if i < len(owned):
                seat = _revise(owned[i], {"position": Point(x=x, y=y)})
            else:
                seat = Seat(id=new_id(EntityKind.seat), label=str(i + 1), position=Point(x=x, y=y), row_id=row_id)
            seats[seat.id] = seat
            seat_ids.append(seat.id)
        updated = _revise(row, {"seats": seat_ids})
        self._commit("update_row_seat_count", [row_id], rows={**self.rows, row_id: updated}, seats=seats)

    # --- move / rotate / z-order --------------------------------------------

    def move(self, entity_id: str, delta: PointLike) -> None:
        self.move_selection([entity_id], delta)

    def move_selection(self, ids: Sequence[str], delta: PointLike) -> None:
        """
        Translate every listed entity once. Rows and tables carry their seats;
        a seat whose owner is also listed is left to the owner.
        """
        d = _pt(delta)
        dx, dy = d.x, d.y
        wanted = dict.fromkeys(i for i in ids if i in self._kinds)
        rows, seats, areas = dict(self.rows), dict(self.seats), dict(self.areas)
        tables, structures = dict(self.tables), dict(self.structures)
        moved_seats: set[str] = set()
        moved: list[str] = []

        def shift_seats(seat_ids: Iterable[str]) -> None:
            for sid in seat_ids:
                if sid in seats and sid not in moved_seats:
                    seats[sid] = _revise(seats[sid], {"position": seats[sid].position.shifted(dx, dy)})
                    moved_seats.add(sid)

        for eid in wanted:
            kind = self._kinds[eid]
            if kind == EntityKind.row:
                row = rows[eid]
                changes: dict[str, Any] = {"position": row.position.shifted(dx, dy)}
                if row.start is not None:
                    changes["start"] = row.start.shifted(dx, dy)
                if row.end is not None:
                    changes["end"] = row.end.shifted(dx, dy)
                rows[eid] = _revise(row, changes)
                shift_seats(row.seats)
            elif kind == EntityKind.table:
                table = tables[eid]
                tables[eid] = _revise(table, {"position": table.position.shifted(dx, dy)})
                shift_seats(table.seats)
            elif kind == EntityKind.area:
                area = areas[eid]
                changes = {"position": area.position.shifted(dx, dy)}
                if area.line_config is not None:
                    changes["line_config"] = _revise(
                        area.line_config, {"points": [p.shifted(dx, dy) for p in area.line_config.points]}
                    )
                areas[eid] = _revise(area, changes)
            elif kind == EntityKind.structure:
                structure = structures[eid]
                structures[eid] = _revise(structure, {"position": structure.position.shifted(dx, dy)})
            elif kind == EntityKind.seat:
                owner = self.seat_owner(self.seats[eid])
                if owner is not None and owner.id in wanted:
                    continue
                shift_seats([eid])
            else:
                continue
            moved.append(eid)

        if moved:
            self._commit("move", moved, rows=rows, seats=seats, areas=areas, tables=tables, structures=structures)

    def rotate(self, entity_id: str, degrees: float) -> None:
        self.rotate_selection([entity_id], degrees)

    def rotate_area(self, area_id: str, degrees: float) -> None:
        if area_id in self.areas:
            self.rotate_selection([area_id], degrees)

    def rotate_table(self, table_id: str, degrees: float) -> None:
        if table_id in self.tables:
            self.rotate_selection([table_id], degrees)

    def rotate_structure(self, structure_id: str, degrees: float) -> None:
        if structure_id in self.structures:
            self.rotate_selection([structure_id], degrees)

    def rotate_selection(self, ids: Sequence[str], degrees: float) -> None:
        maps = {field: dict(getattr(self, field)) for field in ("areas", "tables", "structures")}
        rotated: list[str] = []
        for eid in dict.fromkeys(ids):
            kind = self._kinds.get(eid)
            if kind not in (EntityKind.area, EntityKind.table, EntityKind.structure):
                continue
            mapping = maps[_FIELD_BY_KIND[kind]]
            record = mapping[eid]
            mapping[eid] = _revise(record, {"rotation": record.rotation + degrees})
            rotated.append(eid)
        if rotated:
            self._commit("rotate", rotated, **maps)

    def _z_targets(self, ids: Sequence[str]) -> list[tuple[str, str]]:
        out = []
        for eid in dict.fromkeys(ids):
            kind = self._kinds.get(eid)
            if kind is None:
                continue
            field = _FIELD_BY_KIND[kind]
            if field in _Z_FIELDS:
                out.append((field, eid))
        return out

    def _z_values(self) -> list[int]:
        return [r.z_index or 0 for field in _Z_FIELDS for r in getattr(self, field).values()]

    def bring_to_front(self, ids: Sequence[str]) -> None:
        self._restack("bring_to_front", ids, max(self._z_values(), default=0), 1)

    def send_to_back(self, ids: Sequence[str]) -> None:
        self._restack("send_to_back", ids, min(self._z_values(), default=0), -1)

    def _restack(self, operation: str, ids: Sequence[str], current: int, step: int) -> None:
        targets = self._z_targets(ids)
        if not targets:
            return
        maps = {field: dict(getattr(self, field)) for field in _Z_FIELDS}
        for field, eid in targets:
            current += step
            maps[field][eid] = _revise(maps[field][eid], {"z_index": current})
        self._commit(operation, [eid for _, eid in targets], **maps)

    # --- locking -----------------------------------------------------------

    def lock(self, ids: Sequence[str]) -> None:
        self._set_locked(ids, True)

    def unlock(self, ids: Sequence[str]) -> None:
        self._set_locked(ids, False)

    def _set_locked(self, ids: Sequence[str], locked: bool) -> None:
        fields = ("rows", "seats", "areas", "tables", "structures")
        maps = {field: dict(getattr(self, field)) for field in fields}
        changed: list[str] = []
        for eid in dict.fromkeys(ids):
            kind = self._kinds.get(eid)
            if kind is None or kind == EntityKind.section:
                continue
            mapping = maps[_FIELD_BY_KIND[kind]]
            if mapping[eid].locked != locked:
                mapping[eid] = _revise(mapping[eid], {"locked": locked})
                changed.append(eid)
        if changed:
            self._commit("lock" if locked else "unlock", changed, **maps)

    # --- deletion ----------------------------------------------------------

    @staticmethod
    def _cascade_row(rows: dict[str, Row], seats: dict[str, Seat], row_id: str) -> list[str]:
        row = rows.pop(row_id, None)
        if row is None:
            return []
        removed = [row_id]
        for sid in row.seats:
            if seats.pop(sid, None) is not None:
                removed.append(sid)
        return removed

    @staticmethod
    def _cascade_table(tables: dict[str, Table], seats: dict[str, Seat], table_id: str) -> list[str]:
        table = tables.pop(table_id, None)
        if table is None:
            return []
        removed = [table_id]
        for sid in table.seats:
            if seats.pop(sid, None) is not None:
                removed.append(sid)
        return removed

    def delete(self, entity_id: str) -> list[str]:
        return self.delete_selected([entity_id])

    def delete_selected(self, ids: Sequence[str]) -> list[str]:
        """Delete the listed entities in one pass; returns every removed id.

        Rows and tables take their seats with them. A listed seat is removed on
        its own only when it has no existing owning row or table.
        """
        maps = {field: dict(getattr(self, field)) for field in RECORD_TYPES}
        removed: list[str] = []
        for eid in dict.fromkeys(ids):
            kind = self._kinds.get(eid)
            if kind == EntityKind.row:
                removed += self._cascade_row(maps["rows"], maps["seats"], eid)
            elif kind == EntityKind.table:
                removed += self._cascade_table(maps["tables"], maps["seats"], eid)
            elif kind in (EntityKind.area, EntityKind.structure, EntityKind.section):
                if maps[_FIELD_BY_KIND[kind]].pop(eid, None) is not None:
                    removed.append(eid)

        for eid in dict.fromkeys(ids):
            if self._kinds.get(eid) != EntityKind.seat or eid not in maps["seats"]:
                continue
            if self.seat_owner(self.seats[eid]) is None:
                del maps["seats"][eid]
                removed.append(eid)

        if removed:
            self._commit("delete_selected", removed, **maps)
        return removed

    # --- bulk relabel ------------------------------------------------------

    def update_selected_labels(self, ids: Sequence[str], pattern: str) -> None:
        """Relabel ``ids`` in order; ``{n}`` is a running counter, ``{N}`` the same padded to 2 digits."""
        maps: dict[str, dict[str, Any]] = {}
        counter = 1
        touched: list[str] = []
        for eid in ids:
            kind = self._kinds.get(eid)
            if kind is None:
                continue
            field = _FIELD_BY_KIND[kind]
            mapping = maps.setdefault(field, dict(getattr(self, field)))
            mapping[eid] = _revise(mapping[eid], {"label": _label(pattern, counter)})
            touched.append(eid)
            counter += 1
        if touched:
            self._commit("update_selected_labels", touched, **maps)

    # --- document ----------------------------------------------------------

    def export_scene(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"name": self.name}
        for field in RECORD_TYPES:
            doc[field] = {
                eid: record.model_dump(mode="json", by_alias=True, exclude_none=True)
                for eid, record in getattr(self, field).items()
            }
        return doc

    def export_json(self, *, indent: int = 2) -> str:
        return json.dumps(self.export_scene(), indent=indent)

    def import_scene(self, document: Union[str, bytes, Mapping[str, Any]]) -> None:
        try:
            name, maps = parse_document(document)
        except InvalidDocumentError as e:
            logger.warning("rejected scene import: %s", e)
            raise
        self.name = name
        self._commit("import_scene", (), **maps)

    @classmethod
    def from_document(cls, document: Union[str, bytes, Mapping[str, Any]]) -> "Scene":
        scene = cls()
        scene.import_scene(document)
        return scene

    def reset_scene(self) -> None:
        self.name = DEFAULT_NAME
        self._commit("reset_scene", (), **{field: {} for field in RECORD_TYPES})
