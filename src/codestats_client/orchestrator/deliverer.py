"""Single-flight delivery of sealed pulses.

The deliverer is a small state machine:

    IDLE --flush()--> IN_FLIGHT --flush()--> IN_FLIGHT_WITH_WAITING
    IN_FLIGHT / IN_FLIGHT_WITH_WAITING --settle--> IDLE (+ one re-run if waiting)

At most one request is outstanding at any time. Any number of flush
requests made while a delivery is in flight collapse into a single re-run
once it settles. Every outcome settles the session, so the machine never
gets stuck and no exception leaves the delivery path.

When a delivery fails the pulse goes back to the head of the queue, so a
transient network error does not lose data. With ``requeue_on_failure``
disabled the failed pulse is dropped instead.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol

from loguru import logger

from ..config.settings import ConfigManager
from ..core.events import Pulse, utc_now
from ..queuer.pulse_queue import PulseQueue
from ..sender.http_sender import SendResult
from ..sender.models import PulsePayload
from ..status.reporter import DeliveryFailure, NullStatusReporter, StatusReporter, StatusValue, TransportFailure


class PulseSender(Protocol):
    """Protocol for the transport used by the deliverer."""

    async def asend_pulse(self, payload: PulsePayload, api_url: str, api_key: str) -> SendResult:
        """Send one payload and return the outcome."""
        ...


class DeliveryState(str, Enum):
    """States of the delivery state machine."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    IN_FLIGHT_WITH_WAITING = "in_flight_with_waiting"


class DeliveryOutcome(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class DeliverySession:
    """One in-flight network exchange."""

    pulse: Pulse
    payload: PulsePayload
    outcome: DeliveryOutcome = DeliveryOutcome.PENDING
    waiting: bool = False
    result: Optional[SendResult] = None


class Deliverer:
    """Sends sealed pulses one at a time."""

    def __init__(
        self,
        config_manager: ConfigManager,
        queue: PulseQueue,
        sender: PulseSender,
        reporter: Optional[StatusReporter] = None,
        clock: Callable[[], datetime] = utc_now,
        backlog_callback: Optional[Callable[[], None]] = None,
    ):
        """Initialize the deliverer.

        Args:
            config_manager: Source of the live API key and URL
            queue: Pulse queue owned by this deliverer
            sender: Transport for payloads
            reporter: Observer of the delivery status
            clock: Returns the timestamp used to seal pulses
            backlog_callback: Called after a delivery settles while pulses remain queued
        """
        self.config_manager = config_manager
        self.queue = queue
        self.sender = sender
        self.reporter: StatusReporter = reporter or NullStatusReporter()
        self.clock = clock
        self.backlog_callback = backlog_callback

        self._session: Optional[DeliverySession] = None
        self._task: Optional[asyncio.Task] = None

        # Statistics
        self._total_runs = 0
        self._total_delivered = 0
        self._total_failed = 0
        self._total_requeued = 0
        self._total_dropped = 0
        self._total_coalesced = 0

    @property
    def state(self) -> DeliveryState:
        if self._session is None:
            return DeliveryState.IDLE
        if self._session.waiting:
            return DeliveryState.IN_FLIGHT_WITH_WAITING
        return DeliveryState.IN_FLIGHT

    @property
    def session(self) -> Optional[DeliverySession]:
        return self._session

    def flush(self) -> None:
        """Seal the current pulse and start delivering the oldest queued one.

        A no-op while the API key or URL is not configured. Must be called
        from the event loop thread.
        If the delivery cannot be started the pulse goes back to the head
        of the queue and a transport failure is reported.
        """
        config = self.config_manager.get_config()
        if not config.delivery_enabled:
            logger.debug("API key or URL not configured, skipping flush")
            return

        if self._session is not None:
            if self._session.waiting:
                self._total_coalesced += 1
            else:
                self._session.waiting = True
                logger.debug("Delivery in progress, flush will run again when it settles")
            return

        self._total_runs += 1
        self.queue.seal_current(self.clock())

        pulse = self.queue.pop_oldest()
        if pulse is None:
            logger.debug("No pulses to send")
            return

        try:
            session = DeliverySession(pulse=pulse, payload=PulsePayload.from_pulse(pulse))
            task = asyncio.get_running_loop().create_task(self._deliver(session, config.api_url, config.api_key, config.requeue_on_failure))
        except Exception as e:
            logger.exception(f"Could not start pulse delivery: {e}")
            self.queue.requeue_front(pulse)
            self._total_requeued += 1
            self._total_failed += 1
            self._report(TransportFailure())
            return

        self._session = session
        self._task = task

    async def wait_idle(self) -> None:
        """Wait until no delivery is in flight, including re-runs."""
        while self._task is not None:
            await asyncio.wait({self._task})

    def get_stats(self) -> Dict[str, Any]:
        """Get deliverer statistics."""
        return {
            "state": self.state.value,
            "total_runs": self._total_runs,
            "total_delivered": self._total_delivered,
            "total_failed": self._total_failed,
            "total_requeued": self._total_requeued,
            "total_dropped": self._total_dropped,
            "total_coalesced": self._total_coalesced,
            "queue": self.queue.get_stats(),
        }

    async def _deliver(self, session: DeliverySession, api_url: str, api_key: str, requeue_on_failure: bool) -> None:
        try:
            try:
                result = await self.sender.asend_pulse(session.payload, api_url, api_key)
            except Exception as e:
                logger.exception(f"Unexpected error sending pulse: {e}")
                result = SendResult.transport_failure(f"Unexpected error sending pulse: {e}")

            session.result = result
            if result.success:
                self._handle_success(session)
            else:
                self._handle_failure(session, requeue_on_failure)

        finally:
            self._settle(session)

    def _handle_success(self, session: DeliverySession) -> None:
        session.outcome = DeliveryOutcome.SUCCESS
        self._total_delivered += 1
        self._report(self.queue.total_experience())

    def _handle_failure(self, session: DeliverySession, requeue_on_failure: bool) -> None:
        session.outcome = DeliveryOutcome.FAILURE
        self._total_failed += 1
        result = session.result

        if result is not None and result.status_code is not None:
            logger.error(f"Pulse delivery rejected with status {result.status_code}: {result.error}")
            self._report(DeliveryFailure(result.status_code))
        else:
            logger.error(f"Pulse delivery failed: {result.error if result else 'no result'}")
            self._report(TransportFailure())

        if requeue_on_failure:
            self.queue.requeue_front(session.pulse)
            self._total_requeued += 1
        else:
            self._total_dropped += 1
            logger.warning(f"Dropped pulse with {session.pulse.total_experience()} xp after failed delivery")

    def _settle(self, session: DeliverySession) -> None:
        self._session = None
        self._task = None

        if session.outcome == DeliveryOutcome.PENDING:
            # Cancelled before an outcome was known
            self.queue.requeue_front(session.pulse)
            self._total_requeued += 1
            return

        if session.waiting:
            self.flush()

        if not self.queue.is_empty() and self.backlog_callback is not None:
            self.backlog_callback()

    def _report(self, value: StatusValue) -> None:
        try:
            self.reporter.report(value)
        except Exception as e:
            logger.error(f"Error in status reporter: {e}")
