"""IRC flood control: FIFO pacer with a fixed cooldown between actions."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable

from loguru import logger

Action = Callable[[], object]


class FloodPacer:
    """Run queued actions one at a time, at least ``delay`` seconds apart.

    The first action on an idle pacer runs synchronously inside ``enqueue``.
    Later actions run from a cooldown timer on the running event loop.
    """

    def __init__(self, delay: float) -> None:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self._delay = delay
        self._queue: deque[Action] = deque()
        self._timer: asyncio.TimerHandle | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @delay.setter
    def delay(self, value: float) -> None:
        # Applies from the next cooldown; an armed timer keeps its deadline
        if value < 0:
            raise ValueError("delay must be >= 0")
        self._delay = value

    @property
    def pending(self) -> int:
        """Actions waiting to run."""
        return len(self._queue)

    @property
    def busy(self) -> bool:
        """True while a cooldown is armed."""
        return self._timer is not None

    def enqueue(self, action: Action) -> None:
        self._queue.append(action)
        if self._timer is None:
            self._process()

    def clear(self) -> None:
        """Drop queued actions and cancel the cooldown."""
        dropped = len(self._queue)
        self._queue.clear()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if dropped:
            logger.debug("Flood pacer cleared, dropped {} queued actions", dropped)

    def _process(self) -> None:
        if not self._queue:
            return
        # Raises outside a running loop, before anything leaves the queue
        loop = asyncio.get_running_loop()
        action = self._queue.popleft()
        # Armed before running so a re-entrant enqueue from the action waits its turn
        self._timer = loop.call_later(self._delay, self._on_cooldown)
        try:
            action()
        except Exception as exc:
            logger.exception("Flood pacer action failed: {}", exc)

    def _on_cooldown(self) -> None:
        self._timer = None
        self._process()
