from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Literal, Optional

from shapely.geometry import Point as ShapelyPoint, box

Vec = tuple[float, float]
Endpoint = Literal["start", "end"]

CURVE_LIMIT = 1.5
SAGITTA_RATIO = 0.35
SEAT_PITCH = 35.0
ROUND_TABLE_SEAT_GAP = 25.0
RECT_TABLE_SEAT_OFFSET = 30.0


class GeometryError(Exception):
    pass


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def padded(self, pad: float) -> "Bounds":
        return Bounds(self.min_x - pad, self.min_y - pad, self.max_x + pad, self.max_y + pad)

    def union(self, other: "Bounds") -> "Bounds":
        return Bounds(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )


def line_length(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


def clamp_curvature(c: float) -> float:
    return max(-CURVE_LIMIT, min(CURVE_LIMIT, float(c)))


def _chord(start: Vec, end: Vec) -> tuple[float, Vec, Vec]:
    # zero-length chords fall back to a unit length so the frame stays finite
    length = line_length(start[0], start[1], end[0], end[1]) or 1.0
    ux = (end[0] - start[0]) / length
    uy = (end[1] - start[1]) / length
    mid = ((start[0] + end[0]) / 2.0, (start[1] + end[1]) / 2.0)
    return length, (-uy, ux), mid


def curve_control_point(start: Vec, end: Vec, curvature: float) -> Vec:
    """Control point of the quadratic Bezier for a row bent by ``curvature``.

    The control point sits on the chord's normal through its midpoint, at the
    sagitta ``clamp(curvature) * chord * 0.35``.
    """
    length, (nx, ny), (mx, my) = _chord(start, end)
    sagitta = clamp_curvature(curvature) * length * SAGITTA_RATIO
    return (mx + nx * sagitta, my + ny * sagitta)


def curvature_from_point(start: Vec, end: Vec, point: Vec) -> float:
    """Inverse of :func:`curve_control_point`: the curvature whose control point
    projects onto the normal the same way ``point`` does."""
    length, (nx, ny), (mx, my) = _chord(start, end)
    projection = (point[0] - mx) * nx + (point[1] - my) * ny
    return clamp_curvature(projection / (length * SAGITTA_RATIO))


def eval_quadratic_at(start: Vec, ctrl: Vec, end: Vec, t: float) -> Vec:
    a = (1.0 - t) * (1.0 - t)
    b = 2.0 * (1.0 - t) * t
    c = t * t
    return (
        a * start[0] + b * ctrl[0] + c * end[0],
        a * start[1] + b * ctrl[1] + c * end[1],
    )


def curve_seat_positions(start: Vec, end: Vec, curvature: float, count: int) -> list[Vec]:
    if count < 0:
        raise GeometryError("seat count must be non-negative")
    if count == 0:
        return []
    ctrl = curve_control_point(start, end, curvature)
    if count == 1:
        return [eval_quadratic_at(start, ctrl, end, 0.5)]
    return [eval_quadratic_at(start, ctrl, end, i / (count - 1)) for i in range(count)]


def linear_seat_positions(anchor: Vec, count: int, *, pitch: float = SEAT_PITCH) -> list[Vec]:
    if count < 0:
        raise GeometryError("seat count must be non-negative")
    return [(anchor[0] + i * pitch, anchor[1]) for i in range(count)]


def round_table_seat_positions(position: Vec, size: Vec, count: int) -> list[Vec]:
    """Seats evenly on a circle around the table, the first one straight up."""
    if count < 0:
        raise GeometryError("seat count must be non-negative")
    width, height = size
    cx = position[0] + width / 2.0
    cy = position[1] + height / 2.0
    radius = max(width, height) / 2.0 + ROUND_TABLE_SEAT_GAP
    out: list[Vec] = []
    for i in range(count):
        angle = (i / count) * 2.0 * math.pi - math.pi / 2.0
        out.append((cx + math.cos(angle) * radius, cy + math.sin(angle) * radius))
    return out


def _round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def rect_table_edge_counts(size: Vec, count: int) -> list[int]:
    """Seats per edge in order top, right, bottom, left.

    Top and bottom get ``round(width / perimeter * count)`` each, the sides
    ``floor((2 * height / perimeter * count) / 2)`` each. The remainder goes to
    the last edge; a negative remainder is taken back from the last edges first.
    """
    if count < 0:
        raise GeometryError("seat count must be non-negative")
    width, height = size
    perimeter = 2.0 * (width + height)
    if count == 0 or perimeter <= 0:
        return [0, 0, 0, count]
    horizontal = _round_half_up(width / perimeter * count)
    side = int(math.floor((2.0 * height / perimeter * count) / 2.0))
    counts = [horizontal, side, horizontal, side]
    remainder = count - sum(counts)
    if remainder >= 0:
        counts[-1] += remainder
        return counts
    for i in range(len(counts) - 1, -1, -1):
        take = min(counts[i], -remainder)
        counts[i] -= take
        remainder += take
        if remainder == 0:
            break
    return counts


def rect_table_seat_positions(position: Vec, size: Vec, count: int) -> list[Vec]:
    """Seats outside a rectangular table, walking clockwise from the top edge."""
    top_n, right_n, bottom_n, left_n = rect_table_edge_counts(size, count)
    left, top = position
    width, height = size
    right = left + width
    bottom = top + height
    off = RECT_TABLE_SEAT_OFFSET
    out: list[Vec] = []
    for j in range(top_n):
        out.append((left + width * (j + 1) / (top_n + 1), top - off))
    for j in range(right_n):
        out.append((right + off, top + height * (j + 1) / (right_n + 1)))
    for j in range(bottom_n):
        out.append((right - width * (j + 1) / (bottom_n + 1), bottom + off))
    for j in range(left_n):
        out.append((left - off, bottom - height * (j + 1) / (left_n + 1)))
    return out


def normalize_rect(a: Vec, b: Vec) -> Bounds:
    return Bounds(min(a[0], b[0]), min(a[1], b[1]), max(a[0], b[0]), max(a[1], b[1]))


def rect_contains_point(rect: Bounds, x: float, y: float) -> bool:
    # covers() keeps points on the edge inside; degenerate rectangles still work
    if rect.width == 0 or rect.height == 0:
        return rect.min_x <= x <= rect.max_x and rect.min_y <= y <= rect.max_y
    return box(rect.min_x, rect.min_y, rect.max_x, rect.max_y).covers(ShapelyPoint(x, y))


def points_bounds(points: Iterable[Vec]) -> Optional[Bounds]:
    pts = list(points)
    if not pts:
        return None
    xs = [p[0] for p in pts]
    ys = [p[1] for p in pts]
    return Bounds(min(xs), min(ys), max(xs), max(ys))


def union_bounds(items: Iterable[Optional[Bounds]]) -> Optional[Bounds]:
    out: Optional[Bounds] = None
    for b in items:
        if b is None:
            continue
        out = b if out is None else out.union(b)
    return out
