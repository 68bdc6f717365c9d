"""Pydantic models for the pulse wire payload."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from ..core.events import Pulse


def format_timestamp(value: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class XpEntry(BaseModel):
    """Experience gained in one language."""

    model_config = ConfigDict(extra="forbid")

    language: str = Field(..., min_length=1, description="Language name")
    xp: int = Field(..., ge=0, description="Amount of experience")


class PulsePayload(BaseModel):
    """Body of a pulse delivery request."""

    model_config = ConfigDict(extra="forbid")

    coded_at: str = Field(..., description="ISO-8601 timestamp of when the pulse was sealed")
    xps: List[XpEntry] = Field(default_factory=list, description="Experience per language")

    @classmethod
    def from_pulse(cls, pulse: Pulse) -> PulsePayload:
        """Build the payload for a sealed pulse.

        Raises:
            ValueError: If the pulse has not been sealed
        """
        if pulse.sealed_at is None:
            raise ValueError("Cannot build a payload for an open pulse")

        return cls(
            coded_at=format_timestamp(pulse.sealed_at),
            xps=[XpEntry(language=language, xp=xp) for language, xp in pulse.experience.items()],
        )

    def total_xp(self) -> int:
        return sum(entry.xp for entry in self.xps)

    def to_json(self) -> str:
        """Serialize to compact JSON, preserving entry order."""
        return json.dumps(self.model_dump(), separators=(",", ":"), ensure_ascii=False)
