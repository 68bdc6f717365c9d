"""Pipeline orchestrator for the Code::Stats client.

This module wires the pulse pipeline together:
Key Events → EventFilter → PulseQueue → FlushScheduler → Deliverer → Sender → API

All state lives on one PulsePipeline instance rather than in module
globals, so several independent pipelines can coexist (e.g. in tests).
Every method must be called from the event loop thread.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from loguru import logger

from ..config.settings import ConfigManager, get_config_manager
from ..core.event_filter import admits, normalize_language
from ..core.events import KeyEvent, utc_now
from ..queuer.pulse_queue import PulseQueue
from ..scheduler.flush_scheduler import FlushScheduler
from ..sender.http_sender import HTTPSender, SenderConfig
from ..status.reporter import NullStatusReporter, StatusReporter
from .deliverer import Deliverer, DeliveryState, PulseSender


class PulsePipeline:
    """Owns the pulse queue, scheduler and deliverer of one client."""

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        sender: Optional[PulseSender] = None,
        reporter: Optional[StatusReporter] = None,
        clock: Callable[[], datetime] = utc_now,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """Initialize the pipeline.

        Args:
            config_manager: Live configuration (default: the global manager)
            sender: Transport for payloads (default: HTTPSender)
            reporter: Observer of the status value
            clock: Returns the current timestamp
            loop: Event loop for the timers (default: the running loop)
        """
        self.config_manager = config_manager or get_config_manager()
        self.clock = clock
        config = self.config_manager.get_config()

        self.queue = PulseQueue()
        self.sender = sender or HTTPSender(SenderConfig(timeout_seconds=config.request_timeout_seconds))
        self.reporter: StatusReporter = reporter or NullStatusReporter()

        self.deliverer = Deliverer(
            config_manager=self.config_manager,
            queue=self.queue,
            sender=self.sender,
            reporter=self.reporter,
            clock=clock,
        )
        self.scheduler = FlushScheduler(
            trigger=self.deliverer.flush,
            quiet_period=config.update_delay_seconds,
            repeat_interval=config.multiple_update_interval_seconds,
            loop=loop,
        )
        self.deliverer.backlog_callback = self.scheduler.schedule_repeat

        self._total_events = 0
        self._total_admitted = 0

        logger.debug("Initialized pulse pipeline")

    @property
    def state(self) -> DeliveryState:
        return self.deliverer.state

    def set_reporter(self, reporter: Optional[StatusReporter]) -> None:
        """Replace the status observer."""
        self.reporter = reporter or NullStatusReporter()
        self.deliverer.reporter = self.reporter

    def handle_key_event(self, event: KeyEvent, language: Optional[str]) -> bool:
        """Record a key event if it counts as activity.

        Args:
            event: Key input event
            language: Grammar name of the active editor, None if there is no
                active editor (e.g. during "Replace all")

        Returns:
            True if the event was recorded
        """
        self._total_events += 1

        if not admits(event):
            return False

        if language is None:
            logger.debug("No active editor, ignoring key event")
            return False

        self._total_admitted += 1
        self.record_activity(language)
        return True

    def record_activity(self, language: str, amount: int = 1) -> int:
        """Add experience to the current pulse and restart the quiet period.

        Empty or "Null Grammar" labels are counted as plain text.

        Returns:
            Outstanding experience over the queue and the current pulse
        """
        self.queue.add_experience(normalize_language(language), amount, self.clock())

        total = self.queue.total_experience()
        try:
            self.reporter.report(total)
        except Exception as e:
            logger.error(f"Error in status reporter: {e}")

        self.scheduler.on_activity()
        return total

    def flush(self) -> None:
        """Request a flush right away, bypassing the quiet period."""
        self.deliverer.flush()

    async def drain(self) -> None:
        """Send the current pulse and every queued pulse right away.

        Stops at the first delivery that does not succeed, so an unreachable
        server does not keep it looping.
        """
        while True:
            delivered = self.deliverer.get_stats()["total_delivered"]
            self.deliverer.flush()
            await self.deliverer.wait_idle()

            if self.queue.is_empty() or self.deliverer.get_stats()["total_delivered"] == delivered:
                break

    async def shutdown(self) -> int:
        """Stop the timers and wait for an in-flight delivery to settle.

        Returns:
            Experience that was never delivered and is now lost
        """
        self.scheduler.cancel()
        await self.deliverer.wait_idle()
        # A re-run or repeat may have been armed while settling
        self.scheduler.cancel()

        unsent = self.queue.total_experience()
        if unsent:
            logger.warning(f"Shutting down with {unsent} unsent xp in {self.queue.size()} queued pulses and the current pulse")
        return unsent

    def get_pipeline_stats(self) -> Dict[str, Any]:
        """Get pipeline statistics.

        Returns:
            Dictionary with pipeline statistics
        """
        stats = {
            "pipeline": {
                "total_events": self._total_events,
                "total_admitted": self._total_admitted,
            },
            "scheduler": self.scheduler.get_stats(),
            "deliverer": self.deliverer.get_stats(),
        }

        if isinstance(self.sender, HTTPSender):
            stats["sender"] = self.sender.get_stats()

        return stats
