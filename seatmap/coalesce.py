from __future__ import annotations

from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")

Scheduler = Callable[[Callable[[], None]], object]


def run_now(callback: Callable[[], None]) -> None:
    callback()


class Coalescer(Generic[T]):
    """
    Collapse a burst of submitted values into one handler call per tick.

    ``schedule`` is the host's "call me on the next frame" hook (for a UI loop,
    its animation-frame request). Values submitted while a callback is pending
    replace each other; only the latest reaches ``handler``.
    """

    def __init__(self, handler: Callable[[T], None], schedule: Scheduler = run_now):
        self._handler = handler
        self._schedule = schedule
        self._latest: Optional[T] = None
        self._has_value = False
        self._pending = False

    @property
    def pending(self) -> bool:
        return self._has_value

    def submit(self, value: T) -> None:
        self._latest = value
        self._has_value = True
        if not self._pending:
            self._pending = True
            self._schedule(self._fire)

    def _fire(self) -> None:
        self._pending = False
        self.flush()

    def flush(self) -> None:
        if not self._has_value:
            return
        value = self._latest
        self._latest = None
        self._has_value = False
        self._handler(value)

    def cancel(self) -> None:
        # the scheduled callback still runs but finds nothing to deliver
        self._latest = None
        self._has_value = False
