"""In-memory pulse queue for the Code::Stats client.

This module holds the single open pulse that receives new experience and
the FIFO of sealed pulses waiting for delivery. Everything here lives only
in memory; unsent pulses are lost when the process exits.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime
from typing import List, Optional

from loguru import logger

from ..core.events import Pulse


class PulseQueue:
    """The current open pulse plus an unbounded FIFO of sealed pulses."""

    def __init__(self):
        self._current: Optional[Pulse] = None
        self._sealed: deque[Pulse] = deque()

        # Statistics
        self._total_sealed = 0
        self._total_popped = 0
        self._total_requeued = 0

    @property
    def current(self) -> Optional[Pulse]:
        """The open pulse, or None if nothing has been recorded since the last seal."""
        return self._current

    def add_experience(self, category: str, amount: int, now: datetime) -> Pulse:
        """Add experience to the open pulse.

        Args:
            category: Language label
            amount: Positive number of units
            now: Timestamp used if a new pulse has to be created

        Returns:
            The pulse that received the experience
        """
        if self._current is not None:
            self._current.add(category, amount)
            return self._current

        # Only keep the new pulse once the experience has been accepted
        pulse = Pulse.create(now)
        pulse.add(category, amount)
        self._current = pulse
        logger.debug(f"Created new pulse at {now.isoformat()}")
        return pulse

    def seal_current(self, now: datetime) -> Optional[Pulse]:
        """Seal the open pulse and move it to the tail of the queue.

        Returns:
            The sealed pulse, or None if there was no open pulse
        """
        if self._current is None:
            return None

        pulse = self._current.seal(now)
        self._current = None
        self._sealed.append(pulse)
        self._total_sealed += 1

        logger.debug(f"Sealed pulse with {pulse.total_experience()} xp, queue size: {len(self._sealed)}")
        return pulse

    def pop_oldest(self) -> Optional[Pulse]:
        """Remove and return the oldest sealed pulse."""
        if not self._sealed:
            return None

        pulse = self._sealed.popleft()
        self._total_popped += 1
        return pulse

    def requeue_front(self, pulse: Pulse) -> None:
        """Return a pulse whose delivery failed to the head of the queue."""
        if not pulse.is_sealed:
            raise ValueError("Only sealed pulses can be requeued")

        self._sealed.appendleft(pulse)
        self._total_requeued += 1
        logger.debug(f"Requeued pulse sealed at {pulse.sealed_at.isoformat()}, queue size: {len(self._sealed)}")

    def sealed_pulses(self) -> List[Pulse]:
        """Snapshot of the sealed pulses, oldest first."""
        return list(self._sealed)

    def size(self) -> int:
        """Return the number of sealed pulses waiting for delivery."""
        return len(self._sealed)

    def is_empty(self) -> bool:
        return not self._sealed

    def total_experience(self) -> int:
        """Sum of experience over all queued pulses and the open pulse."""
        total = sum(pulse.total_experience() for pulse in self._sealed)
        if self._current is not None:
            total += self._current.total_experience()
        return total

    def get_stats(self) -> dict:
        """Get queue statistics."""
        return {
            "current_size": len(self._sealed),
            "has_open_pulse": self._current is not None,
            "outstanding_xp": self.total_experience(),
            "total_sealed": self._total_sealed,
            "total_popped": self._total_popped,
            "total_requeued": self._total_requeued,
        }
