"""Timer abstraction for KochTrainer.

Playback and round scheduling only ever need "run this callback after N
milliseconds". The Scheduler protocol captures that; TkScheduler drives it
from the Tk main loop and ManualScheduler from an explicit virtual clock.
"""
from __future__ import annotations
import heapq
import itertools
import logging
from typing import Any, Callable, List, Optional, Protocol, Tuple, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    """Anything that can call a function back after a delay in milliseconds."""

    def call_later(self, delay_ms: float, callback: Callable[[], Any]) -> TimerHandle: ...


class _ManualTimer:
    def __init__(self, due_ms: float, callback: Callable[[], Any]):
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by ``advance``.

    Callbacks run in due-time order (ties in scheduling order). A callback
    scheduled while advancing runs in the same ``advance`` call if it falls
    due before the target time.
    """

    def __init__(self):
        self.now_ms: float = 0.0
        self._queue: List[Tuple[float, int, _ManualTimer]] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[], Any]) -> _ManualTimer:
        timer = _ManualTimer(self.now_ms + max(0.0, delay_ms), callback)
        heapq.heappush(self._queue, (timer.due_ms, next(self._seq), timer))
        return timer

    @property
    def pending(self) -> int:
        """Number of timers that are scheduled and not cancelled."""
        return sum(1 for _, _, t in self._queue if not t.cancelled)

    def advance(self, ms: float) -> int:
        """Move the clock forward ``ms`` milliseconds, firing due callbacks.

        Returns:
            The number of callbacks that ran.
        """
        target = self.now_ms + ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self.now_ms = due
            timer.callback()
            fired += 1
        self.now_ms = target
        return fired


class _TkTimer:
    def __init__(self, widget, after_id: str):
        self._widget = widget
        self._after_id: Optional[str] = after_id

    def cancel(self) -> None:
        if self._after_id is None:
            return
        try:
            self._widget.after_cancel(self._after_id)
        except Exception as e:
            # Widget already destroyed
            logger.debug("after_cancel failed: %s", e)
        self._after_id = None


class TkScheduler:
    """Scheduler backed by ``widget.after`` so callbacks run on the Tk thread."""

    def __init__(self, widget):
        self.widget = widget

    def call_later(self, delay_ms: float, callback: Callable[[], Any]) -> _TkTimer:
        after_id = self.widget.after(max(0, int(round(delay_ms))), callback)
        return _TkTimer(self.widget, after_id)
