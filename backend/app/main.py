from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session, select

from seatmap.geometry import GeometryError
from seatmap.scene import InvalidDocumentError, Scene, SceneError
from seatmap.selection import box_select, elements_at, selection_bounds, topmost_at
from seatmap.models import Point
from seatmap.templates import build_template

from .db import get_session, init_db
from .models import SceneRecord
from .schemas import (
    AreaCreate,
    AreaUpdate,
    BoxSelectRequest,
    CurvedRowCreate,
    HitTestRequest,
    IdsRequest,
    LineCreate,
    LockRequest,
    MoveRequest,
    MultipleRowsCreate,
    RelabelRequest,
    ResizeRequest,
    RotateRequest,
    RowCreate,
    RowCurveUpdate,
    RowEndpointUpdate,
    RowUpdate,
    SceneCreate,
    SceneRename,
    SeatCreate,
    SeatUpdate,
    SectionCreate,
    SectionUpdate,
    StructureCreate,
    StructureUpdate,
    TableCreate,
    TableUpdate,
    ZOrderRequest,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Seat Map Editor API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    init_db()


def _session() -> Session:
    return get_session()


def _get_record(session: Session, scene_id: int) -> SceneRecord:
    record = session.get(SceneRecord, scene_id)
    if not record:
        raise HTTPException(status_code=404, detail="scene not found")
    return record


def _save(session: Session, record: SceneRecord, scene: Scene) -> None:
    record.store(scene)
    session.add(record)
    session.commit()
    session.refresh(record)


def _edit(session: Session, scene_id: int, fn: Callable[[Scene], Any]) -> Any:
    """Load a scene, apply ``fn`` and write it back; scene errors become 400s."""
    record = _get_record(session, scene_id)
    scene = record.load()
    try:
        result = fn(scene)
    except (GeometryError, SceneError) as e:
        logger.info("rejected edit on scene %s: %s", scene_id, e)
        raise HTTPException(status_code=400, detail=str(e)) from e
    _save(session, record, scene)
    return result


def _require(entity_id: str, mapping: dict, what: str) -> None:
    if entity_id not in mapping:
        raise HTTPException(status_code=404, detail=f"{what} not found")


@app.get("/health")
def health() -> dict:
    return {"ok": True}


# --- scenes ------------------------------------------------------------------


@app.post("/scenes")
def create_scene(payload: SceneCreate, session: Session = Depends(_session)) -> dict:
    try:
        scene = build_template(payload.template) if payload.template else Scene()
    except SceneError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if payload.name:
        scene.set_name(payload.name)
    record = SceneRecord(name=scene.name, document_json="{}")
    _save(session, record, scene)
    return {"id": record.id, "name": record.name}


@app.get("/scenes")
def list_scenes(session: Session = Depends(_session)) -> list[dict]:
    records = session.exec(select(SceneRecord).order_by(SceneRecord.created_at.desc())).all()
    return [{"id": r.id, "name": r.name} for r in records]


@app.get("/scenes/{scene_id}")
def get_scene(scene_id: int, session: Session = Depends(_session)) -> dict:
    return _get_record(session, scene_id).document()


@app.put("/scenes/{scene_id}/name")
def rename_scene(scene_id: int, payload: SceneRename, session: Session = Depends(_session)) -> dict:
    _edit(session, scene_id, lambda s: s.set_name(payload.name))
    return {"id": scene_id, "name": payload.name}


@app.delete("/scenes/{scene_id}")
def delete_scene(scene_id: int, session: Session = Depends(_session)) -> dict:
    record = _get_record(session, scene_id)
    session.delete(record)
    session.commit()
    return {"deleted": True}


@app.post("/scenes/import")
def import_scene(payload: dict, session: Session = Depends(_session)) -> dict:
    """Create a new scene from an exported document."""
    try:
        scene = Scene.from_document(payload)
    except InvalidDocumentError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    record = SceneRecord(name=scene.name, document_json="{}")
    _save(session, record, scene)
    return {"id": record.id, "name": record.name}


@app.put("/scenes/{scene_id}/document")
def replace_document(scene_id: int, payload: dict, session: Session = Depends(_session)) -> dict:
    _edit(session, scene_id, lambda s: s.import_scene(payload))
    return {"id": scene_id, "replaced": True}


@app.post("/scenes/{scene_id}/reset")
def reset_scene(scene_id: int, session: Session = Depends(_session)) -> dict:
    _edit(session, scene_id, lambda s: s.reset_scene())
    return {"id": scene_id, "reset": True}


# --- creation ----------------------------------------------------------------


@app.post("/scenes/{scene_id}/seats")
def create_seat(scene_id: int, payload: SeatCreate, session: Session = Depends(_session)) -> dict:
    sid = _edit(
        session,
        scene_id,
        lambda s: s.create_seat(payload.label, payload.position.as_tuple(), payload.seat_type, payload.section_id),
    )
    return {"id": sid}


@app.post("/scenes/{scene_id}/rows")
def create_row(scene_id: int, payload: RowCreate, session: Session = Depends(_session)) -> dict:
    anchor = payload.position.as_tuple() if payload.position else None

    def _create(scene: Scene) -> dict:
        row_id = scene.create_row(payload.label, payload.seat_count, anchor, payload.section_id)
        return {"id": row_id, "seats": scene.rows[row_id].seats}

    return _edit(session, scene_id, _create)


@app.post("/scenes/{scene_id}/curved-rows")
def create_curved_row(scene_id: int, payload: CurvedRowCreate, session: Session = Depends(_session)) -> dict:
    def _create(scene: Scene) -> dict:
        row_id = scene.create_curved_row(
            payload.label,
            payload.seat_count,
            payload.start.as_tuple(),
            payload.end.as_tuple(),
            payload.curvature,
            payload.section_id,
        )
        return {"id": row_id, "curve": scene.rows[row_id].curve, "seats": scene.rows[row_id].seats}

    return _edit(session, scene_id, _create)


@app.post("/scenes/{scene_id}/rows/bulk")
def create_multiple_rows(scene_id: int, payload: MultipleRowsCreate, session: Session = Depends(_session)) -> dict:
    configs = [r.model_dump() for r in payload.rows]
    row_ids = _edit(
        session,
        scene_id,
        lambda s: s.create_multiple_rows(configs, payload.base_position.as_tuple(), payload.spacing),
    )
    return {"ids": row_ids}


@app.post("/scenes/{scene_id}/tables")
def create_table(scene_id: int, payload: TableCreate, session: Session = Depends(_session)) -> dict:
    def _create(scene: Scene) -> dict:
        table_id = scene.create_table(
            payload.label,
            payload.position.as_tuple(),
            payload.shape,
            payload.size.as_tuple(),
            payload.seat_count,
        )
        return {"id": table_id, "seats": scene.tables[table_id].seats}

    return _edit(session, scene_id, _create)


@app.post("/scenes/{scene_id}/areas")
def create_area(scene_id: int, payload: AreaCreate, session: Session = Depends(_session)) -> dict:
    area_id = _edit(
        session,
        scene_id,
        lambda s: s.create_area(
            payload.label,
            payload.position.as_tuple(),
            payload.size.as_tuple(),
            payload.shape,
            payload.color,
            payload.opacity,
        ),
    )
    return {"id": area_id}


@app.post("/scenes/{scene_id}/lines")
def create_line(scene_id: int, payload: LineCreate, session: Session = Depends(_session)) -> dict:
    area_id = _edit(
        session,
        scene_id,
        lambda s: s.create_line(
            payload.label,
            [p.as_tuple() for p in payload.points],
            payload.color,
            payload.stroke_width,
            payload.line_type,
            payload.opacity,
        ),
    )
    return {"id": area_id}


@app.post("/scenes/{scene_id}/structures")
def create_structure(scene_id: int, payload: StructureCreate, session: Session = Depends(_session)) -> dict:
    sid = _edit(
        session,
        scene_id,
        lambda s: s.create_structure(payload.label, payload.type, payload.position.as_tuple(), payload.size.as_tuple(), payload.color),
    )
    return {"id": sid}


@app.post("/scenes/{scene_id}/sections")
def create_section(scene_id: int, payload: SectionCreate, session: Session = Depends(_session)) -> dict:
    sid = _edit(
        session,
        scene_id,
        lambda s: s.create_section(payload.label, payload.color, payload.section_number, payload.default_price),
    )
    return {"id": sid}


# --- element edits -------------------------------------------------------------


@app.put("/scenes/{scene_id}/rows/{row_id}")
def update_row(scene_id: int, row_id: str, payload: RowUpdate, session: Session = Depends(_session)) -> dict:
    def _update(scene: Scene) -> dict:
        _require(row_id, scene.rows, "row")
        fields = payload.model_fields_set
        if payload.label is not None:
            scene.update_row_label(row_id, payload.label)
        if "section_id" in fields:
            scene.update_row_section(row_id, payload.section_id)
        if payload.seat_count is not None:
            scene.update_row_seat_count(row_id, payload.seat_count)
        if "seat_price" in fields:
            scene.update_row_seat_price(row_id, payload.seat_price)
        return scene.rows[row_id].model_dump(mode="json", by_alias=True, exclude_none=True)

    return _edit(session, scene_id, _update)


@app.put("/scenes/{scene_id}/rows/{row_id}/curve")
def update_row_curve(scene_id: int, row_id: str, payload: RowCurveUpdate, session: Session = Depends(_session)) -> dict:
    if payload.curvature is None and payload.point is None:
        raise HTTPException(status_code=400, detail="curvature or point is required")

    def _update(scene: Scene) -> dict:
        _require(row_id, scene.rows, "row")
        if payload.point is not None:
            scene.set_row_curve_from_point(row_id, payload.point.as_tuple())
        else:
            scene.update_row_curve(row_id, payload.curvature)
        return {"id": row_id, "curve": scene.rows[row_id].curve}

    return _edit(session, scene_id, _update)


@app.put("/scenes/{scene_id}/rows/{row_id}/endpoint")
def move_row_endpoint(scene_id: int, row_id: str, payload: RowEndpointUpdate, session: Session = Depends(_session)) -> dict:
    def _update(scene: Scene) -> dict:
        _require(row_id, scene.rows, "row")
        scene.move_row_endpoint(row_id, payload.which, payload.point.as_tuple())
        return scene.rows[row_id].model_dump(mode="json", by_alias=True, exclude_none=True)

    return _edit(session, scene_id, _update)


@app.put("/scenes/{scene_id}/seats/{seat_id}")
def update_seat(scene_id: int, seat_id: str, payload: SeatUpdate, session: Session = Depends(_session)) -> dict:
    def _update(scene: Scene) -> dict:
        _require(seat_id, scene.seats, "seat")
        fields = payload.model_fields_set
        if payload.label is not None:
            scene.update_seat_label(seat_id, payload.label)
        if payload.seat_type is not None:
            scene.update_seat_type(seat_id, payload.seat_type)
        if payload.status is not None:
            scene.update_seat_status(seat_id, payload.status)
        if "section_id" in fields:
            scene.update_seat_section(seat_id, payload.section_id)
        if "price" in fields:
            scene.update_seat_price(seat_id, payload.price)
        return scene.seats[seat_id].model_dump(mode="json", by_alias=True, exclude_none=True)

    return _edit(session, scene_id, _update)


@app.put("/scenes/{scene_id}/areas/{area_id}")
def update_area(scene_id: int, area_id: str, payload: AreaUpdate, session: Session = Depends(_session)) -> dict:
    def _update(scene: Scene) -> dict:
        _require(area_id, scene.areas, "area")
        scene.update_area(area_id, label=payload.label, color=payload.color, shape=payload.shape, opacity=payload.opacity)
        return scene.areas[area_id].model_dump(mode="json", by_alias=True, exclude_none=True)

    return _edit(session, scene_id, _update)


@app.put("/scenes/{scene_id}/tables/{table_id}")
def update_table(scene_id: int, table_id: str, payload: TableUpdate, session: Session = Depends(_session)) -> dict:
    size = payload.size.as_tuple() if payload.size else None

    def _update(scene: Scene) -> dict:
        _require(table_id, scene.tables, "table")
        scene.update_table(table_id, label=payload.label, shape=payload.shape, size=size)
        return scene.tables[table_id].model_dump(mode="json", by_alias=True, exclude_none=True)

    return _edit(session, scene_id, _update)


@app.put("/scenes/{scene_id}/structures/{structure_id}")
def update_structure(scene_id: int, structure_id: str, payload: StructureUpdate, session: Session = Depends(_session)) -> dict:
    def _update(scene: Scene) -> dict:
        _require(structure_id, scene.structures, "structure")
        scene.update_structure(structure_id, label=payload.label, structure_type=payload.type, color=payload.color)
        return scene.structures[structure_id].model_dump(mode="json", by_alias=True, exclude_none=True)

    return _edit(session, scene_id, _update)


@app.put("/scenes/{scene_id}/sections/{section_id}")
def update_section(scene_id: int, section_id: str, payload: SectionUpdate, session: Session = Depends(_session)) -> dict:
    def _update(scene: Scene) -> dict:
        _require(section_id, scene.sections, "section")
        scene.update_section(
            section_id,
            label=payload.label,
            color=payload.color,
            section_number=payload.section_number,
            default_price=payload.default_price,
        )
        return scene.sections[section_id].model_dump(mode="json", by_alias=True, exclude_none=True)

    return _edit(session, scene_id, _update)


@app.put("/scenes/{scene_id}/elements/{entity_id}/size")
def resize_element(scene_id: int, entity_id: str, payload: ResizeRequest, session: Session = Depends(_session)) -> dict:
    def _resize(scene: Scene) -> dict:
        if entity_id not in scene:
            raise HTTPException(status_code=404, detail="element not found")
        scene.resize(entity_id, payload.size.as_tuple())
        return {"id": entity_id}

    return _edit(session, scene_id, _resize)


# --- selection-wide operations ---------------------------------------------------


@app.post("/scenes/{scene_id}/move")
def move_elements(scene_id: int, payload: MoveRequest, session: Session = Depends(_session)) -> dict:
    _edit(session, scene_id, lambda s: s.move_selection(payload.ids, (payload.dx, payload.dy)))
    return {"moved": payload.ids}


@app.post("/scenes/{scene_id}/rotate")
def rotate_elements(scene_id: int, payload: RotateRequest, session: Session = Depends(_session)) -> dict:
    _edit(session, scene_id, lambda s: s.rotate_selection(payload.ids, payload.degrees))
    return {"rotated": payload.ids}


@app.post("/scenes/{scene_id}/z-order")
def reorder_elements(scene_id: int, payload: ZOrderRequest, session: Session = Depends(_session)) -> dict:
    if payload.direction == "front":
        _edit(session, scene_id, lambda s: s.bring_to_front(payload.ids))
    else:
        _edit(session, scene_id, lambda s: s.send_to_back(payload.ids))
    return {"ids": payload.ids, "direction": payload.direction}


@app.post("/scenes/{scene_id}/lock")
def lock_elements(scene_id: int, payload: LockRequest, session: Session = Depends(_session)) -> dict:
    if payload.locked:
        _edit(session, scene_id, lambda s: s.lock(payload.ids))
    else:
        _edit(session, scene_id, lambda s: s.unlock(payload.ids))
    return {"ids": payload.ids, "locked": payload.locked}


@app.post("/scenes/{scene_id}/delete")
def delete_elements(scene_id: int, payload: IdsRequest, session: Session = Depends(_session)) -> dict:
    removed = _edit(session, scene_id, lambda s: s.delete_selected(payload.ids))
    return {"deleted": removed}


@app.post("/scenes/{scene_id}/relabel")
def relabel_elements(scene_id: int, payload: RelabelRequest, session: Session = Depends(_session)) -> dict:
    _edit(session, scene_id, lambda s: s.update_selected_labels(payload.ids, payload.pattern))
    return {"ids": payload.ids}


# --- queries -------------------------------------------------------------------


@app.post("/scenes/{scene_id}/box-select")
def box_select_elements(scene_id: int, payload: BoxSelectRequest, session: Session = Depends(_session)) -> dict:
    scene = _get_record(session, scene_id).load()
    a = Point(x=payload.corner_a.x, y=payload.corner_a.y)
    b = Point(x=payload.corner_b.x, y=payload.corner_b.y)
    return {"selected": box_select(scene, payload.selected, a, b)}


@app.post("/scenes/{scene_id}/hit-test")
def hit_test(scene_id: int, payload: HitTestRequest, session: Session = Depends(_session)) -> dict:
    scene = _get_record(session, scene_id).load()
    stack = elements_at(scene, Point(x=payload.point.x, y=payload.point.y))
    return {"stack": stack, "topmost": topmost_at(scene, stack)}


@app.post("/scenes/{scene_id}/selection-bounds")
def get_selection_bounds(scene_id: int, payload: IdsRequest, session: Session = Depends(_session)) -> dict:
    scene = _get_record(session, scene_id).load()
    b = selection_bounds(scene, payload.ids)
    if b is None:
        return {"bounds": None}
    return {"bounds": {"min_x": b.min_x, "min_y": b.min_y, "max_x": b.max_x, "max_y": b.max_y}}
