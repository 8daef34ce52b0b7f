from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .coalesce import Coalescer, Scheduler, run_now
from .geometry import SEAT_PITCH, Bounds, curve_control_point, line_length, normalize_rect
from .models import Point
from .scene import Scene
from .selection import Selection, box_select, elements_at, topmost_at
from .viewport import Viewport

logger = logging.getLogger(__name__)

MIN_DRAFT_CHORD = 20.0
HANDLE_RADIUS = 8.0
ROTATE_STEP = 90.0


class Tool(str, Enum):
    select = "select"
    pan = "pan"
    draw_row = "draw_row"
    add_row = "add_row"
    add_area = "add_area"
    add_table = "add_table"
    add_structure = "add_structure"
    add_line = "add_line"


PLACEMENT_TOOLS = frozenset({Tool.add_row, Tool.add_area, Tool.add_table, Tool.add_structure, Tool.add_line})


class Mode(str, Enum):
    idle = "idle"
    panning = "panning"
    box_selecting = "box_selecting"
    dragging_selection = "dragging_selection"
    drawing_draft_row = "drawing_draft_row"
    dragging_curve_handle = "dragging_curve_handle"
    dragging_row_endpoint = "dragging_row_endpoint"


class HandleKind(str, Enum):
    curve = "curve"
    start = "start"
    end = "end"
    selection = "selection"


@dataclass(frozen=True)
class Handle:
    kind: HandleKind
    row_id: Optional[str] = None


@dataclass(frozen=True)
class PointerEvent:
    """
    A pointer event in screen coordinates.

    ``handle`` and ``stack`` are what the renderer found under the pointer: a
    handle it drew, and the element ids stacked there front to back. When
    left out they are computed from the scene.
    """

    x: float
    y: float
    button: int = 0
    alt: bool = False
    shift: bool = False
    handle: Optional[Handle] = None
    stack: Optional[tuple[str, ...]] = None


@dataclass
class DraftRow:
    start: Point
    end: Point

    @property
    def chord(self) -> float:
        return line_length(self.start.x, self.start.y, self.end.x, self.end.y)


def row_handles(scene: Scene, row_id: str) -> dict[HandleKind, Point]:
    """World positions of a row's start, end and curve handles (empty for rows under two seats)."""
    row = scene.rows.get(row_id)
    if row is None:
        return {}
    basis = scene.row_basis(row)
    if basis is None:
        return {}
    start, end = basis
    cx, cy = curve_control_point(start, end, row.curve or 0.0)
    return {
        HandleKind.start: Point(x=start[0], y=start[1]),
        HandleKind.end: Point(x=end[0], y=end[1]),
        HandleKind.curve: Point(x=cx, y=cy),
    }


class Interaction:
    """
    Pointer-driven editing on top of a :class:`Scene`.

    Moves are coalesced through ``schedule`` so at most one batch of scene
    mutations happens per tick. Pointer-up and pointer-leave always end the
    gesture; nothing is rolled back.
    """

    def __init__(
        self,
        scene: Scene,
        viewport: Optional[Viewport] = None,
        selection: Optional[Selection] = None,
        *,
        schedule: Scheduler = run_now,
        draft_label: str = "Row",
        draft_seat_count: Optional[int] = None,
    ):
        self.scene = scene
        self.viewport = viewport or Viewport()
        self.selection = selection or Selection()
        self.tool = Tool.select
        self.mode = Mode.idle
        self.draft_label = draft_label
        self.draft_seat_count = draft_seat_count

        self.draft: Optional[DraftRow] = None
        self.box_start: Optional[Point] = None
        self.box_end: Optional[Point] = None
        self.row_id: Optional[str] = None
        self.endpoint: Optional[str] = None
        self.pending_placement: Optional[Point] = None

        self._press_screen: Optional[tuple[float, float]] = None
        self._press_pan: Optional[Point] = None
        self._last_world: Optional[Point] = None
        self._base_selection: list[str] = []
        self._moves: Coalescer[PointerEvent] = Coalescer(self._apply_move, schedule)
        self.selection.watch(scene)

    # --- tools / shortcuts ---------------------------------------------------

    def set_tool(self, tool: Tool) -> None:
        self.tool = Tool(tool)
        self.pending_placement = None

    def take_placement(self) -> Optional[Point]:
        """Hand the pending placement point to a creation dialog and return to the select tool."""
        point = self.pending_placement
        self.pending_placement = None
        self.tool = Tool.select
        return point

    def rotate_selected(self, clockwise: bool = True) -> None:
        self.scene.rotate_selection(self.selection.unlocked(self.scene), ROTATE_STEP if clockwise else -ROTATE_STEP)

    def bring_selected_to_front(self) -> None:
        self.scene.bring_to_front(self.selection.ids)

    def send_selected_to_back(self) -> None:
        self.scene.send_to_back(self.selection.ids)

    def delete_selected(self) -> list[str]:
        removed = self.scene.delete_selected(self.selection.unlocked(self.scene))
        self.selection.prune(self.scene)
        return removed

    def select_all(self) -> None:
        self.selection.select_all(self.scene)

    def wheel(self, delta_y: float) -> None:
        self.viewport.wheel(delta_y)

    # --- gesture ---------------------------------------------------------------

    @property
    def box_rect(self) -> Optional[Bounds]:
        if self.mode != Mode.box_selecting or self.box_start is None or self.box_end is None:
            return None
        return normalize_rect(self.box_start.as_tuple(), self.box_end.as_tuple())

    def _handle_at(self, world: Point) -> Optional[Handle]:
        # handles are only drawn for a single selected row
        if len(self.selection) != 1:
            return None
        row_id = self.selection.ids[0]
        if row_id not in self.scene.rows or self.scene.is_locked(row_id):
            return None
        reach = HANDLE_RADIUS / self.viewport.zoom
        for kind, p in row_handles(self.scene, row_id).items():
            if math.hypot(p.x - world.x, p.y - world.y) <= reach:
                return Handle(kind=kind, row_id=row_id)
        return None

    def pointer_down(self, event: PointerEvent) -> Mode:
        if self.mode != Mode.idle or event.button != 0:
            return self.mode
        world = self.viewport.screen_to_world(event.x, event.y)

        if self.tool == Tool.pan or event.alt:
            self._press_screen = (event.x, event.y)
            self._press_pan = self.viewport.pan
            return self._enter(Mode.panning)

        handle = event.handle
        if handle is None and self.tool == Tool.select:
            handle = self._handle_at(world)

        if handle is not None and handle.kind != HandleKind.selection:
            if handle.row_id not in self.scene.rows or self.scene.is_locked(handle.row_id):
                return self.mode
            self.row_id = handle.row_id
            if handle.kind == HandleKind.curve:
                return self._enter(Mode.dragging_curve_handle)
            self.endpoint = handle.kind.value
            return self._enter(Mode.dragging_row_endpoint)

        if self.tool == Tool.draw_row:
            self.draft = DraftRow(start=world, end=world)
            return self._enter(Mode.drawing_draft_row)

        if self.tool in PLACEMENT_TOOLS:
            self.pending_placement = world
            return self.mode

        if handle is not None and self.selection.unlocked(self.scene):
            self._last_world = world
            return self._enter(Mode.dragging_selection)

        stack = event.stack if event.stack is not None else tuple(elements_at(self.scene, world))
        target = topmost_at(self.scene, stack)
        if target is not None:
            if event.shift:
                self.selection.select(target, multi=True)
                if target not in self.selection:
                    return self.mode
            elif target not in self.selection:
                self.selection.select(target)
            self._last_world = world
            return self._enter(Mode.dragging_selection)

        if not event.shift:
            self.selection.clear()
        self._base_selection = list(self.selection.ids)
        self.box_start = world
        self.box_end = world
        return self._enter(Mode.box_selecting)

    def pointer_move(self, event: PointerEvent) -> None:
        if self.mode == Mode.idle:
            return
        self._moves.submit(event)

    def flush(self) -> None:
        self._moves.flush()

    def pointer_up(self, event: Optional[PointerEvent] = None) -> Optional[str]:
        """End the gesture. Returns the id of a row committed from a draft, if any."""
        if self.mode == Mode.idle:
            return None
        if event is not None:
            self._moves.submit(event)
        self._moves.flush()

        created = None
        if self.mode == Mode.drawing_draft_row and self.draft is not None:
            created = self._commit_draft(self.draft)
        self._reset()
        return created

    def pointer_leave(self) -> None:
        self._moves.cancel()
        self._reset()

    def _commit_draft(self, draft: DraftRow) -> Optional[str]:
        chord = draft.chord
        if chord < MIN_DRAFT_CHORD:
            logger.debug("discarding draft row, chord %.1f below %.1f", chord, MIN_DRAFT_CHORD)
            return None
        count = self.draft_seat_count or max(2, int(round(chord / SEAT_PITCH)) + 1)
        row_id = self.scene.create_curved_row(self.draft_label, count, draft.start, draft.end, 0.0)
        self.selection.select(row_id)
        return row_id

    def _enter(self, mode: Mode) -> Mode:
        self.mode = mode
        return mode

    def _reset(self) -> None:
        self.mode = Mode.idle
        self.draft = None
        self.box_start = None
        self.box_end = None
        self.row_id = None
        self.endpoint = None
        self._press_screen = None
        self._press_pan = None
        self._last_world = None
        self._base_selection = []

    def _apply_move(self, event: PointerEvent) -> None:
        world = self.viewport.screen_to_world(event.x, event.y)
        if self.mode == Mode.panning:
            sx, sy = self._press_screen
            self.viewport.set_pan(self._press_pan.x + (event.x - sx), self._press_pan.y + (event.y - sy))
        elif self.mode == Mode.box_selecting:
            self.box_end = world
            self.selection.set(box_select(self.scene, self._base_selection, self.box_start, world))
        elif self.mode == Mode.dragging_selection:
            delta = Point(x=world.x - self._last_world.x, y=world.y - self._last_world.y)
            self.scene.move_selection(self.selection.unlocked(self.scene), delta)
            self._last_world = world
        elif self.mode == Mode.drawing_draft_row:
            self.draft.end = world
        elif self.mode == Mode.dragging_curve_handle:
            self.scene.set_row_curve_from_point(self.row_id, world)
        elif self.mode == Mode.dragging_row_endpoint:
            self.scene.move_row_endpoint(self.row_id, self.endpoint, world)
