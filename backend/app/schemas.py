from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from seatmap.models import AreaShape, LineType, SeatStatus, SeatType, StructureType, TableShape


class Point2D(BaseModel):
    x: float
    y: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


class Size2D(BaseModel):
    width: float = Field(gt=0)
    height: float = Field(gt=0)

    def as_tuple(self) -> tuple[float, float]:
        return (self.width, self.height)


class SceneCreate(BaseModel):
    # Defaults to the template title, or "Untitled Map".
    name: Optional[str] = None
    template: Optional[str] = None


class SceneRename(BaseModel):
    name: str


class SeatCreate(BaseModel):
    label: str
    position: Point2D
    seat_type: SeatType = SeatType.standard
    section_id: Optional[str] = None


class RowCreate(BaseModel):
    label: str
    seat_count: int = Field(ge=0)
    position: Optional[Point2D] = None
    section_id: Optional[str] = None


class CurvedRowCreate(BaseModel):
    label: str
    seat_count: int = Field(ge=0)
    start: Point2D
    end: Point2D
    # Clamped to [-1.5, 1.5] by the scene.
    curvature: float = 0.0
    section_id: Optional[str] = None


class RowConfigIn(BaseModel):
    label: str
    seat_count: int = Field(ge=0)
    section_id: Optional[str] = None


class MultipleRowsCreate(BaseModel):
    rows: list[RowConfigIn] = Field(min_length=1)
    base_position: Point2D
    spacing: float = 50.0


class TableCreate(BaseModel):
    label: str
    position: Point2D
    shape: TableShape = TableShape.round
    size: Size2D = Size2D(width=80, height=80)
    seat_count: int = Field(ge=0, default=0)


class AreaCreate(BaseModel):
    label: str
    position: Point2D
    size: Size2D
    shape: AreaShape = AreaShape.rectangle
    color: str = "#e5e7eb"
    opacity: float = Field(ge=0, le=1, default=1.0)


class LineCreate(BaseModel):
    label: str
    points: list[Point2D] = Field(min_length=2)
    color: str = "#6b7280"
    stroke_width: float = Field(gt=0, default=2.0)
    line_type: LineType = LineType.straight
    opacity: float = Field(ge=0, le=1, default=1.0)


class StructureCreate(BaseModel):
    label: str
    type: StructureType = StructureType.custom
    position: Point2D
    size: Size2D
    color: str = "#6b7280"


class SectionCreate(BaseModel):
    label: str
    color: str = "#3b82f6"
    section_number: Optional[int] = None
    default_price: Optional[float] = Field(default=None, ge=0)


class RowUpdate(BaseModel):
    label: Optional[str] = None
    section_id: Optional[str] = None
    seat_count: Optional[int] = Field(default=None, ge=0)
    seat_price: Optional[float] = Field(default=None, ge=0)


class RowCurveUpdate(BaseModel):
    # Either an explicit curvature or a handle point to derive it from.
    curvature: Optional[float] = None
    point: Optional[Point2D] = None


class RowEndpointUpdate(BaseModel):
    which: Literal["start", "end"]
    point: Point2D


class SeatUpdate(BaseModel):
    label: Optional[str] = None
    seat_type: Optional[SeatType] = None
    status: Optional[SeatStatus] = None
    section_id: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)


class IdsRequest(BaseModel):
    ids: list[str] = Field(min_length=1)


class MoveRequest(IdsRequest):
    dx: float = 0.0
    dy: float = 0.0


class RotateRequest(IdsRequest):
    degrees: float = 90.0


class ZOrderRequest(IdsRequest):
    direction: Literal["front", "back"]


class LockRequest(IdsRequest):
    locked: bool = True


class RelabelRequest(IdsRequest):
    pattern: str


class ResizeRequest(BaseModel):
    size: Size2D


class BoxSelectRequest(BaseModel):
    corner_a: Point2D
    corner_b: Point2D
    selected: list[str] = Field(default_factory=list)


class HitTestRequest(BaseModel):
    point: Point2D


class AreaUpdate(BaseModel):
    label: Optional[str] = None
    color: Optional[str] = None
    shape: Optional[AreaShape] = None
    opacity: Optional[float] = Field(default=None, ge=0, le=1)


class TableUpdate(BaseModel):
    label: Optional[str] = None
    shape: Optional[TableShape] = None
    size: Optional[Size2D] = None


class StructureUpdate(BaseModel):
    label: Optional[str] = None
    type: Optional[StructureType] = None
    color: Optional[str] = None


class SectionUpdate(BaseModel):
    label: Optional[str] = None
    color: Optional[str] = None
    section_number: Optional[int] = None
    default_price: Optional[float] = Field(default=None, ge=0)
