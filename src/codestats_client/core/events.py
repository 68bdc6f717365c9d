"""Event and pulse models for the Code::Stats client.

Raw key events flow through the filter into the current pulse; sealed
pulses flow through the queue to the sender:

Key Events → EventFilter → Pulse → PulseQueue → Deliverer → Sender → API
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional


def utc_now() -> datetime:
    """Default clock: the current time in UTC."""
    return datetime.now(timezone.utc)


class KeyEventKind(str, Enum):
    """Kinds of key input events reported by the host."""

    KEY_DOWN = "keydown"
    KEY_UP = "keyup"


@dataclass(frozen=True)
class KeyEvent:
    """A single key input event.

    ``keystrokes`` is the host's textual description of the keystroke,
    e.g. ``"a"``, ``"shift-A"`` or ``"backspace"``. Release events may
    carry a leading ``^`` marker.
    """

    kind: KeyEventKind
    keystrokes: str


class PulseSealedError(RuntimeError):
    """Raised when a sealed pulse is mutated or sealed a second time."""


@dataclass
class Pulse:
    """Activity accumulated within one open time window."""

    started_at: datetime
    experience: Dict[str, int] = field(default_factory=dict)
    sealed_at: Optional[datetime] = None

    @classmethod
    def create(cls, now: datetime) -> Pulse:
        """Create a new open pulse starting at ``now``."""
        return cls(started_at=now)

    @property
    def is_sealed(self) -> bool:
        return self.sealed_at is not None

    def add(self, category: str, amount: int = 1) -> None:
        """Add ``amount`` units of experience to ``category``.

        Args:
            category: Language label
            amount: Positive number of units

        Raises:
            PulseSealedError: If the pulse has already been sealed
            ValueError: If category is empty or amount is not a positive integer
        """
        if self.is_sealed:
            raise PulseSealedError("Cannot add experience to a sealed pulse")
        if not isinstance(category, str) or not category:
            raise ValueError(f"Experience category must be a non-empty string, got {category!r}")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValueError(f"Experience amount must be a positive integer, got {amount!r}")

        self.experience[category] = self.experience.get(category, 0) + amount

    def total_experience(self) -> int:
        """Return the sum of experience over all categories."""
        return sum(self.experience.values())

    def seal(self, now: datetime) -> Pulse:
        """Close the pulse for delivery.

        Raises:
            PulseSealedError: If the pulse is already sealed
        """
        if self.is_sealed:
            raise PulseSealedError(f"Pulse already sealed at {self.sealed_at.isoformat()}")

        self.sealed_at = now
        return self
