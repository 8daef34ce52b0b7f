import unittest

from seatmap.coalesce import Coalescer
from seatmap.interaction import Handle, HandleKind, Interaction, Mode, PointerEvent, Tool, row_handles
from seatmap.models import Point
from seatmap.scene import Scene
from seatmap.viewport import Viewport


class FrameQueue:
    """Stand-in for an animation-frame hook: callbacks run on tick()."""

    def __init__(self):
        self.callbacks = []

    def __call__(self, callback):
        self.callbacks.append(callback)

    def tick(self):
        callbacks, self.callbacks = self.callbacks, []
        for cb in callbacks:
            cb()


class TestCoalescer(unittest.TestCase):
    def test_latest_value_wins(self):
        frames = FrameQueue()
        seen = []
        c = Coalescer(seen.append, frames)
        c.submit(1)
        c.submit(2)
        c.submit(3)
        self.assertEqual(len(frames.callbacks), 1)
        self.assertEqual(seen, [])
        frames.tick()
        self.assertEqual(seen, [3])
        self.assertFalse(c.pending)

    def test_cancel(self):
        frames = FrameQueue()
        seen = []
        c = Coalescer(seen.append, frames)
        c.submit(1)
        c.cancel()
        frames.tick()
        self.assertEqual(seen, [])

    def test_flush(self):
        frames = FrameQueue()
        seen = []
        c = Coalescer(seen.append, frames)
        c.submit("a")
        c.flush()
        frames.tick()
        self.assertEqual(seen, ["a"])


class TestDraftRow(unittest.TestCase):
    def test_short_draft_discarded(self):
        s = Scene()
        ui = Interaction(s)
        ui.set_tool(Tool.draw_row)
        self.assertEqual(ui.pointer_down(PointerEvent(0, 0)), Mode.drawing_draft_row)
        ui.pointer_move(PointerEvent(10, 0))
        self.assertIsNone(ui.pointer_up())
        self.assertEqual(s.rows, {})
        self.assertEqual(ui.mode, Mode.idle)

    def test_draft_commits_curved_row(self):
        s = Scene()
        ui = Interaction(s)
        ui.set_tool(Tool.draw_row)
        ui.pointer_down(PointerEvent(0, 0))
        row_id = ui.pointer_up(PointerEvent(100, 0))
        row = s.rows[row_id]
        self.assertEqual(len(row.seats), 4)
        self.assertEqual(row.curve, 0.0)
        self.assertEqual(row.end.as_tuple(), (100.0, 0.0))
        self.assertEqual(ui.selection.ids, [row_id])

    def test_draft_respects_zoom(self):
        s = Scene()
        ui = Interaction(s, Viewport(zoom=2.0), draft_seat_count=6)
        ui.set_tool(Tool.draw_row)
        ui.pointer_down(PointerEvent(0, 0))
        row_id = ui.pointer_up(PointerEvent(100, 0))
        self.assertEqual(s.rows[row_id].end.as_tuple(), (50.0, 0.0))
        self.assertEqual(len(s.rows[row_id].seats), 6)

    def test_leave_discards_draft(self):
        s = Scene()
        ui = Interaction(s)
        ui.set_tool(Tool.draw_row)
        ui.pointer_down(PointerEvent(0, 0))
        ui.pointer_move(PointerEvent(200, 0))
        ui.pointer_leave()
        self.assertEqual(s.rows, {})
        self.assertEqual(ui.mode, Mode.idle)


class TestHandles(unittest.TestCase):
    def setUp(self):
        self.s = Scene()
        self.row = self.s.create_curved_row("A", 5, (0, 0), (300, 0), 0.0)
        self.ui = Interaction(self.s)
        self.ui.selection.select(self.row)

    def test_row_handles(self):
        h = row_handles(self.s, self.row)
        self.assertEqual(h[HandleKind.curve].as_tuple(), (150.0, 0.0))
        self.assertEqual(h[HandleKind.end].as_tuple(), (300.0, 0.0))

    def test_curve_handle_drag(self):
        self.assertEqual(self.ui.pointer_down(PointerEvent(150, 0)), Mode.dragging_curve_handle)
        self.ui.pointer_move(PointerEvent(150, 52.5))
        self.ui.pointer_up()
        self.assertAlmostEqual(self.s.rows[self.row].curve, 0.5)

    def test_endpoint_drag(self):
        self.assertEqual(self.ui.pointer_down(PointerEvent(300, 0)), Mode.dragging_row_endpoint)
        self.ui.pointer_up(PointerEvent(400, 0))
        last = self.s.row_seats(self.s.rows[self.row])[-1]
        self.assertAlmostEqual(last.position.x, 400.0)

    def test_renderer_supplied_handle(self):
        event = PointerEvent(999, 999, handle=Handle(HandleKind.start, self.row))
        self.assertEqual(self.ui.pointer_down(event), Mode.dragging_row_endpoint)
        self.assertEqual(self.ui.endpoint, "start")

    def test_locked_row_has_no_handles(self):
        self.s.lock([self.row])
        self.assertEqual(self.ui.pointer_down(PointerEvent(150, 0)), Mode.box_selecting)


class TestDragging(unittest.TestCase):
    def test_drag_moves_selection_once_per_frame(self):
        s = Scene()
        area = s.create_area("A", (0, 0), (100, 100))
        frames = FrameQueue()
        ui = Interaction(s, schedule=frames)
        events = []
        s.subscribe(events.append)
        self.assertEqual(ui.pointer_down(PointerEvent(50, 50)), Mode.dragging_selection)
        ui.pointer_move(PointerEvent(55, 55))
        ui.pointer_move(PointerEvent(60, 70))
        frames.tick()
        self.assertEqual(len(events), 1)
        self.assertEqual(s.areas[area].position.as_tuple(), (10.0, 20.0))
        ui.pointer_up()
        self.assertEqual(ui.mode, Mode.idle)

    def test_locked_element_not_picked(self):
        s = Scene()
        area = s.create_area("A", (0, 0), (100, 100))
        s.lock([area])
        ui = Interaction(s)
        self.assertEqual(ui.pointer_down(PointerEvent(50, 50)), Mode.box_selecting)
        ui.pointer_up(PointerEvent(60, 60))
        self.assertEqual(s.areas[area].position.as_tuple(), (0.0, 0.0))

    def test_shift_toggles(self):
        s = Scene()
        a = s.create_seat("1", (0, 0))
        b = s.create_seat("2", (100, 0))
        ui = Interaction(s)
        ui.pointer_down(PointerEvent(0, 0))
        ui.pointer_up()
        ui.pointer_down(PointerEvent(100, 0, shift=True))
        ui.pointer_up()
        self.assertEqual(ui.selection.ids, [a, b])
        ui.pointer_down(PointerEvent(0, 0, shift=True))
        ui.pointer_up()
        self.assertEqual(ui.selection.ids, [b])

    def test_box_selection_is_live(self):
        s = Scene()
        seat = s.create_seat("1", (50, 50))
        ui = Interaction(s)
        ui.pointer_down(PointerEvent(0, 0))
        ui.pointer_move(PointerEvent(100, 100))
        self.assertEqual(ui.selection.ids, [seat])
        self.assertEqual(ui.box_rect.max_x, 100.0)
        ui.pointer_up()
        self.assertEqual(ui.selection.ids, [seat])
        self.assertIsNone(ui.box_rect)


class TestPanAndTools(unittest.TestCase):
    def test_alt_pans(self):
        s = Scene()
        s.create_area("A", (0, 0), (100, 100))
        ui = Interaction(s)
        self.assertEqual(ui.pointer_down(PointerEvent(10, 10, alt=True)), Mode.panning)
        ui.pointer_up(PointerEvent(40, 5))
        self.assertEqual((ui.viewport.pan.x, ui.viewport.pan.y), (30.0, -5.0))

    def test_pan_tool_coalesced(self):
        frames = FrameQueue()
        ui = Interaction(Scene(), schedule=frames)
        ui.set_tool(Tool.pan)
        ui.pointer_down(PointerEvent(0, 0))
        ui.pointer_move(PointerEvent(10, 0))
        ui.pointer_move(PointerEvent(30, 5))
        self.assertEqual(ui.viewport.pan.x, 0.0)
        frames.tick()
        self.assertEqual((ui.viewport.pan.x, ui.viewport.pan.y), (30.0, 5.0))

    def test_placement(self):
        ui = Interaction(Scene(), Viewport(pan=Point(x=10, y=0)))
        ui.set_tool(Tool.add_table)
        self.assertEqual(ui.pointer_down(PointerEvent(110, 50)), Mode.idle)
        self.assertEqual(ui.take_placement(), Point(x=100, y=50))
        self.assertEqual(ui.tool, Tool.select)

    def test_delete_skips_locked(self):
        s = Scene()
        a = s.create_area("A", (0, 0), (1, 1))
        b = s.create_area("B", (0, 0), (1, 1))
        s.lock([a])
        ui = Interaction(s)
        ui.selection.set([a, b])
        self.assertEqual(ui.delete_selected(), [b])
        self.assertEqual(ui.selection.ids, [a])

    def test_wheel(self):
        ui = Interaction(Scene())
        ui.wheel(1)
        self.assertAlmostEqual(ui.viewport.zoom, 0.9)


if __name__ == "__main__":
    unittest.main()
