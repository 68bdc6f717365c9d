"""Core Code::Stats client components."""

from .app import CodeStatsClient
from .event_filter import admits, normalize_language
from .events import KeyEvent, KeyEventKind, Pulse, PulseSealedError, utc_now

__all__ = [
    # Event model
    "KeyEvent",
    "KeyEventKind",
    "Pulse",
    "PulseSealedError",
    "utc_now",
    # Filtering
    "admits",
    "normalize_language",
    # Application
    "CodeStatsClient",
]
