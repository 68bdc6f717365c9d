"""Flush scheduling for the Code::Stats client.

Typing restarts a quiet-period timer so nothing is sent until the typing
has really stopped. While sealed pulses remain queued, a one-shot repeat
timer keeps draining them even without new activity. Both timers run on
the asyncio event loop, so the trigger always executes on the loop thread.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from loguru import logger

FlushTrigger = Callable[[], None]


class FlushScheduler:
    """Debounces activity and re-triggers flushes while backlog remains."""

    def __init__(
        self,
        trigger: FlushTrigger,
        quiet_period: float = 10.0,
        repeat_interval: float = 10.0,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """Initialize the scheduler.

        Args:
            trigger: Called when a timer fires
            quiet_period: Seconds without activity before flushing
            repeat_interval: Seconds between flushes of queued pulses
            loop: Event loop to schedule on (default: the running loop)
        """
        self.trigger = trigger
        self.quiet_period = quiet_period
        self.repeat_interval = repeat_interval
        self._loop = loop

        self._pending_timer: Optional[asyncio.TimerHandle] = None
        self._repeat_timer: Optional[asyncio.TimerHandle] = None

        # Statistics
        self._total_activity = 0
        self._total_debounce_fires = 0
        self._total_repeat_fires = 0

    @property
    def has_pending_flush(self) -> bool:
        return self._pending_timer is not None

    @property
    def has_repeat_scheduled(self) -> bool:
        return self._repeat_timer is not None

    def on_activity(self) -> None:
        """Restart the quiet-period timer."""
        if self._pending_timer is not None:
            self._pending_timer.cancel()

        self._total_activity += 1
        self._pending_timer = self._get_loop().call_later(self.quiet_period, self._fire_pending)

    def schedule_repeat(self) -> None:
        """Arm the one-shot repeat timer unless it is already armed."""
        if self._repeat_timer is not None:
            return

        self._repeat_timer = self._get_loop().call_later(self.repeat_interval, self._fire_repeat)
        logger.debug(f"Scheduled repeat flush in {self.repeat_interval:.1f}s")

    def cancel(self) -> None:
        """Cancel both timers."""
        for handle in (self._pending_timer, self._repeat_timer):
            if handle is not None:
                handle.cancel()

        self._pending_timer = None
        self._repeat_timer = None

    def get_stats(self) -> dict:
        return {
            "pending_flush": self.has_pending_flush,
            "repeat_scheduled": self.has_repeat_scheduled,
            "total_activity": self._total_activity,
            "total_debounce_fires": self._total_debounce_fires,
            "total_repeat_fires": self._total_repeat_fires,
        }

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _fire_pending(self) -> None:
        self._pending_timer = None
        self._total_debounce_fires += 1
        logger.debug("Quiet period elapsed, flushing")
        self._run_trigger()

    def _fire_repeat(self) -> None:
        self._repeat_timer = None
        self._total_repeat_fires += 1
        logger.debug("Repeat interval elapsed, flushing queued pulses")
        self._run_trigger()

    def _run_trigger(self) -> None:
        try:
            self.trigger()
        except Exception as e:
            logger.exception(f"Error in flush trigger: {e}")
