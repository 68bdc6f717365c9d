"""Filtering of raw key events into countable activity.

Only key release events are considered, so a press/release pair is never
counted twice.
"""

from __future__ import annotations

from typing import Optional

from .events import KeyEvent, KeyEventKind

RELEASE_MARKER = "^"
SHIFT_PREFIX = "shift-"
PLAIN_TEXT_LANGUAGE = "Plain text"
NULL_GRAMMAR_NAME = "Null Grammar"

# Named keys that count as typing
ALLOWED_KEYSTROKES = frozenset({"space", "backspace", "enter", "tab", "delete"})


def strip_release_marker(keystrokes: str) -> str:
    if keystrokes.startswith(RELEASE_MARKER):
        return keystrokes[len(RELEASE_MARKER) :]
    return keystrokes


def admits(event: KeyEvent) -> bool:
    """Return True if the event counts as one unit of experience.

    Args:
        event: Key input event from the host

    Returns:
        True for released single characters, shifted single characters
        and the allowed named keys; False for everything else
    """
    if event.kind != KeyEventKind.KEY_UP:
        return False

    keystrokes = strip_release_marker(event.keystrokes)

    if len(keystrokes) == 1:
        return True

    if keystrokes.startswith(SHIFT_PREFIX) and len(keystrokes) == len(SHIFT_PREFIX) + 1:
        return True

    return keystrokes in ALLOWED_KEYSTROKES


def normalize_language(name: Optional[str]) -> str:
    """Convert a host grammar name into a language label."""
    if not name or name == NULL_GRAMMAR_NAME:
        return PLAIN_TEXT_LANGUAGE
    return name
