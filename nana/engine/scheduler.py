"""
Virtual-clock scheduler for delayed game steps.

The pauses between a reveal and its resolution, and before a bot acts, are
explicit scheduled events rather than sleeps. Time only moves when the
owner calls `advance`, which makes every delay deterministic and lets a
caller cancel a pending step through the token `schedule` returns.

>>> fired = []
>>> scheduler = Scheduler()
>>> token = scheduler.schedule(1500, lambda: fired.append("settle"), "settle")
>>> scheduler.advance(1000)
0
>>> scheduler.advance(500)
1
>>> fired
['settle']
"""

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

logger = logging.getLogger("nana.engine.scheduler")


@dataclass(order=True)
class ScheduledEvent:
    """A pending callback; doubles as its cancellation token."""

    due_ms: int
    sequence: int
    name: str = field(compare=False, default="")
    callback: Callable[[], Any] = field(compare=False, default=None, repr=False)
    cancelled: bool = field(compare=False, default=False)
    fired: bool = field(compare=False, default=False)

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)


class Scheduler:
    """
    Runs callbacks at virtual times.

    Due events fire in ``(due time, scheduling order)`` order. Cancelled
    events never fire.
    """

    def __init__(self, start_ms: int = 0):
        self._now_ms = start_ms
        self._queue: List[ScheduledEvent] = []
        self._sequence = itertools.count()

    @property
    def now_ms(self) -> int:
        return self._now_ms

    @property
    def pending(self) -> List[ScheduledEvent]:
        """Events that will still fire, in firing order."""
        return sorted(event for event in self._queue if event.active)

    def schedule(
        self, delay_ms: int, callback: Callable[[], Any], name: str = ""
    ) -> ScheduledEvent:
        """
        Schedule ``callback`` to run ``delay_ms`` after the current time.

        Returns:
            The scheduled event, usable with `cancel`
        """
        if delay_ms < 0:
            raise ValueError(f"Delay must not be negative, got {delay_ms}")
        event = ScheduledEvent(
            due_ms=self._now_ms + delay_ms,
            sequence=next(self._sequence),
            name=name,
            callback=callback,
        )
        heapq.heappush(self._queue, event)
        logger.debug(f"Scheduled {name or 'event'} at {event.due_ms}ms")
        return event

    def cancel(self, event: Optional[ScheduledEvent]) -> bool:
        """
        Cancel a pending event.

        Returns:
            True if the event was pending and is now cancelled
        """
        if event is None or not event.active:
            return False
        event.cancelled = True
        logger.debug(f"Cancelled {event.name or 'event'}")
        return True

    def cancel_all(self) -> int:
        count = 0
        for event in self._queue:
            if self.cancel(event):
                count += 1
        self._queue.clear()
        return count

    def _pop_active(self) -> Optional[ScheduledEvent]:
        while self._queue:
            event = heapq.heappop(self._queue)
            if event.active:
                return event
        return None

    def _fire(self, event: ScheduledEvent) -> None:
        event.fired = True
        self._now_ms = max(self._now_ms, event.due_ms)
        event.callback()

    def advance(self, ms: int) -> int:
        """
        Move the clock forward, firing every event that falls due.

        Events scheduled by a firing callback also fire if they fall within
        the window.

        Returns:
            Number of events fired
        """
        if ms < 0:
            raise ValueError(f"Cannot move the clock backwards ({ms}ms)")
        target = self._now_ms + ms
        fired = 0
        while True:
            event = self._pop_active()
            if event is None:
                break
            if event.due_ms > target:
                heapq.heappush(self._queue, event)
                break
            self._fire(event)
            fired += 1
        self._now_ms = target
        return fired

    def run_next(self) -> Optional[ScheduledEvent]:
        """Jump to the next pending event and fire it."""
        event = self._pop_active()
        if event is not None:
            self._fire(event)
        return event

    def run_until_idle(self, limit: int = 10_000) -> int:
        """
        Fire events until nothing is pending.

        Raises:
            RuntimeError: If more than ``limit`` events fire, which means
                callbacks keep rescheduling themselves
        """
        fired = 0
        while self.run_next() is not None:
            fired += 1
            if fired > limit:
                raise RuntimeError(f"Scheduler did not settle after {limit} events")
        return fired
