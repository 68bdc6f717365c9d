"""Status reporting for the Code::Stats client."""

from .reporter import DEFAULT_STATUS_PREFIX, DeliveryFailure, NullStatusReporter, StatusReporter, StatusValue, TextStatusReporter, TransportFailure

__all__ = ["DEFAULT_STATUS_PREFIX", "DeliveryFailure", "NullStatusReporter", "StatusReporter", "StatusValue", "TextStatusReporter", "TransportFailure"]
