"""
Frame Scheduler

Cancellable timers on an engine's sample clock. Events are due at an absolute
frame and fire while the engine renders, so a release scheduled 250ms out
lands 250ms of audio later regardless of UI timing.
"""

import heapq
import itertools
import logging
import threading
from datetime import timedelta
from typing import Any, Callable, List, Optional, Tuple

log = logging.getLogger(__name__)


class ScheduledEvent:
    """Handle returned by FrameScheduler.schedule"""

    __slots__ = ('due_frame', 'callback', 'args', 'cancelled', 'fired')

    def __init__(self, due_frame: int, callback: Callable[..., Any], args: Tuple):
        self.due_frame = due_frame
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self):
        self.cancelled = True


class FrameScheduler:
    """Min-heap of events keyed on (due frame, insertion order)"""

    def __init__(self, sample_rate: int):
        self.sample_rate = sample_rate
        self.frame = 0
        self._queue: List[Tuple[int, int, ScheduledEvent]] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def frames_for(self, delay: timedelta) -> int:
        return max(0, round(delay.total_seconds() * self.sample_rate))

    def schedule(self, delay: timedelta, callback: Callable[..., Any], *args) -> ScheduledEvent:
        with self._lock:
            event = ScheduledEvent(self.frame + self.frames_for(delay), callback, args)
            heapq.heappush(self._queue, (event.due_frame, next(self._counter), event))
            return event

    def frames_until_next(self, limit: int) -> int:
        """Frames that can be rendered before the next pending event (capped at limit)"""
        with self._lock:
            self._drop_cancelled()
            if not self._queue:
                return limit
            return max(0, min(limit, self._queue[0][0] - self.frame))

    def advance(self, frames: int) -> int:
        """Move the clock forward and fire everything now due. Returns events fired."""
        with self._lock:
            self.frame += frames
            due = []
            while self._queue and self._queue[0][0] <= self.frame:
                _, _, event = heapq.heappop(self._queue)
                if event.pending:
                    event.fired = True
                    due.append(event)

        # Callbacks run outside the lock so they may schedule again
        for event in due:
            event.callback(*event.args)
        return len(due)

    def clear(self):
        with self._lock:
            for _, _, event in self._queue:
                event.cancel()
            self._queue.clear()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for _, _, e in self._queue if e.pending)

    def next_due(self) -> Optional[int]:
        with self._lock:
            self._drop_cancelled()
            return self._queue[0][0] if self._queue else None

    def _drop_cancelled(self):
        while self._queue and not self._queue[0][2].pending:
            heapq.heappop(self._queue)
