from __future__ import annotations

from .geometry import Vec
from .models import Point

MIN_ZOOM = 0.1
MAX_ZOOM = 5.0
DEFAULT_ZOOM = 1.0
ZOOM_STEP = 0.1
WHEEL_ZOOM_OUT = 0.9
WHEEL_ZOOM_IN = 1.1


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, float(zoom)))


class Viewport:
    """
    Pan offset (screen pixels) and zoom factor of the canvas.
    ``origin`` is the canvas element's top-left in screen space.
    """

    def __init__(self, *, pan: Point | None = None, zoom: float = DEFAULT_ZOOM, origin: Vec = (0.0, 0.0)):
        self.pan = pan or Point(x=0.0, y=0.0)
        self.zoom = clamp_zoom(zoom)
        self.origin = origin

    def screen_to_world(self, sx: float, sy: float) -> Point:
        ox, oy = self.origin
        return Point(
            x=(sx - ox - self.pan.x) / self.zoom,
            y=(sy - oy - self.pan.y) / self.zoom,
        )

    def world_to_screen(self, wx: float, wy: float) -> Point:
        ox, oy = self.origin
        return Point(x=wx * self.zoom + self.pan.x + ox, y=wy * self.zoom + self.pan.y + oy)

    def set_zoom(self, zoom: float) -> None:
        self.zoom = clamp_zoom(zoom)

    def zoom_by(self, factor: float) -> None:
        self.zoom = clamp_zoom(self.zoom * factor)

    def wheel(self, delta_y: float) -> None:
        # one notch: scrolling down zooms out by 10%, up zooms in by 10%
        if not delta_y:
            return
        self.zoom_by(WHEEL_ZOOM_OUT if delta_y > 0 else WHEEL_ZOOM_IN)

    def zoom_in(self) -> None:
        self.zoom = clamp_zoom(self.zoom + ZOOM_STEP)

    def zoom_out(self) -> None:
        self.zoom = clamp_zoom(self.zoom - ZOOM_STEP)

    def set_pan(self, x: float, y: float) -> None:
        self.pan = Point(x=x, y=y)

    def pan_by(self, dx: float, dy: float) -> None:
        self.pan = self.pan.shifted(dx, dy)

    def reset(self) -> None:
        self.pan = Point(x=0.0, y=0.0)
        self.zoom = DEFAULT_ZOOM
