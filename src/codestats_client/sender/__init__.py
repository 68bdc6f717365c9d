"""HTTP transport module for sending pulses to the Code::Stats API."""

from .http_sender import SUCCESS_STATUS, HTTPSender, SenderConfig, SendResult
from .models import PulsePayload, XpEntry, format_timestamp

__all__ = ["HTTPSender", "SenderConfig", "SendResult", "SUCCESS_STATUS", "PulsePayload", "XpEntry", "format_timestamp"]
