"""In-memory pulse queue module."""

from .pulse_queue import PulseQueue

__all__ = ["PulseQueue"]
