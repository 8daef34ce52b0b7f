from __future__ import annotations

import random
import string
import time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EntityKind(str, Enum):
    row = "row"
    seat = "seat"
    area = "area"
    table = "table"
    structure = "structure"
    section = "section"


class SeatType(str, Enum):
    standard = "standard"
    wheelchair = "wheelchair"
    companion = "companion"
    vip = "vip"


class SeatStatus(str, Enum):
    available = "available"
    occupied = "occupied"
    blocked = "blocked"


class AreaShape(str, Enum):
    rectangle = "rectangle"
    square = "square"
    circle = "circle"
    oval = "oval"
    line = "line"


class LineType(str, Enum):
    straight = "straight"
    freehand = "freehand"


class TableShape(str, Enum):
    round = "round"
    rectangular = "rectangular"


class StructureType(str, Enum):
    stage = "stage"
    bar = "bar"
    entrance = "entrance"
    exit = "exit"
    custom = "custom"


DEFAULT_AREA_COLOR = "#e5e7eb"
DEFAULT_STRUCTURE_COLOR = "#6b7280"
DEFAULT_SECTION_COLOR = "#3b82f6"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_id(kind: EntityKind) -> str:
    """Return ``"{kind}_{timestamp_ms}_{suffix}"``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{kind.value}_{int(time.time() * 1000)}_{suffix}"


def kind_from_id(entity_id: str) -> Optional[EntityKind]:
    # The prefix is part of the public id contract; the Scene keeps its own index.
    prefix, sep, _ = entity_id.partition("_")
    if not sep:
        return None
    try:
        return EntityKind(prefix)
    except ValueError:
        return None


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Point(_Record):
    x: float
    y: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    def shifted(self, dx: float, dy: float) -> "Point":
        return Point(x=self.x + dx, y=self.y + dy)


class Size(_Record):
    width: float
    height: float


class Seat(_Record):
    id: str
    label: str
    position: Point
    seat_type: SeatType = Field(default=SeatType.standard, alias="type")
    status: SeatStatus = SeatStatus.available
    row_id: Optional[str] = None
    table_id: Optional[str] = None
    section_id: Optional[str] = None
    price: Optional[float] = None
    locked: bool = False


class Row(_Record):
    id: str
    label: str
    position: Point
    seats: list[str] = Field(default_factory=list)
    start: Optional[Point] = None
    end: Optional[Point] = None
    curve: Optional[float] = None
    section_id: Optional[str] = None
    z_index: Optional[int] = None
    locked: bool = False


class LineConfig(_Record):
    points: list[Point] = Field(default_factory=list)
    stroke_width: float = 2.0
    line_type: LineType = LineType.straight


class Area(_Record):
    id: str
    label: str
    position: Point
    size: Size
    shape: AreaShape = AreaShape.rectangle
    color: str = DEFAULT_AREA_COLOR
    opacity: float = 1.0
    rotation: float = 0.0
    z_index: Optional[int] = None
    line_config: Optional[LineConfig] = None
    locked: bool = False


class Table(_Record):
    id: str
    label: str
    position: Point
    size: Size
    shape: TableShape = TableShape.round
    rotation: float = 0.0
    z_index: Optional[int] = None
    seats: list[str] = Field(default_factory=list)
    locked: bool = False


class Structure(_Record):
    id: str
    label: str
    structure_type: StructureType = Field(default=StructureType.custom, alias="type")
    position: Point
    size: Size
    color: str = DEFAULT_STRUCTURE_COLOR
    rotation: float = 0.0
    z_index: Optional[int] = None
    locked: bool = False


class Section(_Record):
    id: str
    label: str
    color: str = DEFAULT_SECTION_COLOR
    section_number: int = 1
    default_price: Optional[float] = None


class RowConfig(_Record):
    """One entry of a multi-row creation request."""

    label: str
    seat_count: int = Field(ge=0)
    section_id: Optional[str] = None


# Document field name -> (kind, record type), in export order.
RECORD_TYPES: dict[str, tuple[EntityKind, type[_Record]]] = {
    "rows": (EntityKind.row, Row),
    "seats": (EntityKind.seat, Seat),
    "areas": (EntityKind.area, Area),
    "tables": (EntityKind.table, Table),
    "structures": (EntityKind.structure, Structure),
    "sections": (EntityKind.section, Section),
}
