"""Status values and reporters.

The deliverer reports one of: None (idle), an int (outstanding experience),
a DeliveryFailure carrying the HTTP status code, or a TransportFailure.
How the value is drawn belongs to the host; TextStatusReporter renders it
the way the editor status bar tile does.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union

from loguru import logger

DEFAULT_STATUS_PREFIX = "C::S"


@dataclass(frozen=True)
class DeliveryFailure:
    """The collector answered with a non-success status."""

    status_code: int

    def __str__(self) -> str:
        return f"ERR {self.status_code}!"


@dataclass(frozen=True)
class TransportFailure:
    """The request never got an answer (connection error or timeout)."""

    def __str__(self) -> str:
        return "X_X"


StatusValue = Union[None, int, DeliveryFailure, TransportFailure]


class StatusReporter(Protocol):
    """Protocol for observers of the delivery status."""

    def report(self, value: StatusValue) -> None:
        """Receive a new status value."""
        ...


class NullStatusReporter:
    """Reporter that discards every value."""

    def report(self, value: StatusValue) -> None:
        return


class TextStatusReporter:
    """Renders status values as a short prefixed text."""

    def __init__(self, prefix: str = DEFAULT_STATUS_PREFIX):
        self.prefix = prefix
        self.text = self.render(None)
        self.last_value: StatusValue = None

    def render(self, value: StatusValue) -> str:
        if value is None:
            return self.prefix
        return f"{self.prefix} {value}"

    def report(self, value: StatusValue) -> None:
        self.last_value = value
        self.text = self.render(value)
        logger.debug(f"Status: {self.text}")
