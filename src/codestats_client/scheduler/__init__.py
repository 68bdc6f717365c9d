"""Debounce and repeat scheduling of flushes."""

from .flush_scheduler import FlushScheduler, FlushTrigger

__all__ = ["FlushScheduler", "FlushTrigger"]
