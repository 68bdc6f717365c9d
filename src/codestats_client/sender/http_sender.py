"""HTTP sender for transmitting pulses to the Code::Stats API.

This module provides HTTP/HTTPS transport for sending one sealed pulse per
request. The collector accepts a pulse only with ``201 Created``; every
other outcome is returned as a failed SendResult instead of raised.
"""

from __future__ import annotations

import asyncio
import socket
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from loguru import logger

from ..config.settings import CLIENT_NAME, CLIENT_VERSION
from .models import PulsePayload

SUCCESS_STATUS = 201


@dataclass
class SenderConfig:
    """Configuration for the HTTP sender."""

    timeout_seconds: float = 30.0  # Request timeout
    user_agent: str = f"{CLIENT_NAME}/{CLIENT_VERSION}"


@dataclass(frozen=True)
class SendResult:
    """Outcome of one delivery attempt."""

    success: bool
    status_code: Optional[int] = None  # None when no response was received
    error: str = ""

    @property
    def is_transport_failure(self) -> bool:
        return not self.success and self.status_code is None

    @classmethod
    def ok(cls, status_code: int = SUCCESS_STATUS) -> SendResult:
        return cls(success=True, status_code=status_code)

    @classmethod
    def rejected(cls, status_code: int, error: str = "") -> SendResult:
        return cls(success=False, status_code=status_code, error=error)

    @classmethod
    def transport_failure(cls, error: str) -> SendResult:
        return cls(success=False, status_code=None, error=error)


class HTTPSender:
    """HTTP sender for transmitting pulses."""

    def __init__(self, config: Optional[SenderConfig] = None):
        """Initialize the HTTP sender.

        Args:
            config: Sender configuration
        """
        self.config = config or SenderConfig()

        # Statistics
        self._total_pulses_sent = 0
        self._total_pulses_failed = 0
        self._total_xp_sent = 0
        self._total_send_time = 0.0
        self._last_successful_send: Optional[datetime] = None
        self._last_error: Optional[str] = None

    def build_request(self, payload: PulsePayload, api_url: str, api_key: str) -> Request:
        """Build the POST request for a payload."""
        body = payload.to_json().encode("utf-8")

        return Request(
            api_url,
            data=body,
            method="POST",
            headers={
                "X-API-Token": api_key,
                "Content-Type": "application/json",
                "Content-Length": str(len(body)),
                "User-Agent": self.config.user_agent,
            },
        )

    def send_pulse(self, payload: PulsePayload, api_url: str, api_key: str) -> SendResult:
        """Send one pulse payload to the API.

        Args:
            payload: Pulse payload to send
            api_url: Absolute URL of the pulse endpoint
            api_key: Value of the X-API-Token header

        Returns:
            SendResult describing the outcome
        """
        start_time = time.time()
        result = self._send_request(payload, api_url, api_key)

        send_time = time.time() - start_time
        self._total_send_time += send_time

        if result.success:
            self._total_pulses_sent += 1
            self._total_xp_sent += payload.total_xp()
            self._last_successful_send = datetime.now()
            self._last_error = None

            logger.info(f"Successfully sent pulse coded at {payload.coded_at} with {payload.total_xp()} xp in {send_time:.2f}s")
        else:
            self._total_pulses_failed += 1
            self._last_error = result.error

            logger.error(f"Failed to send pulse coded at {payload.coded_at}: {result.error}")

        return result

    async def asend_pulse(self, payload: PulsePayload, api_url: str, api_key: str) -> SendResult:
        """Send one pulse without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: self.send_pulse(payload, api_url, api_key))

    def get_stats(self) -> Dict[str, Any]:
        """Get sender statistics.

        Returns:
            Dictionary with sender statistics
        """
        attempts = self._total_pulses_sent + self._total_pulses_failed

        return {
            "total_pulses_sent": self._total_pulses_sent,
            "total_pulses_failed": self._total_pulses_failed,
            "total_xp_sent": self._total_xp_sent,
            "success_rate": self._total_pulses_sent / max(1, attempts),
            "average_send_time_seconds": self._total_send_time / max(1, attempts),
            "last_successful_send": self._last_successful_send.isoformat() if self._last_successful_send else None,
            "last_error": self._last_error,
        }

    def _send_request(self, payload: PulsePayload, api_url: str, api_key: str) -> SendResult:
        """Send a single HTTP request.

        Returns:
            SendResult describing the outcome
        """
        try:
            req = self.build_request(payload, api_url, api_key)

            with urlopen(req, timeout=self.config.timeout_seconds) as response:
                if response.status == SUCCESS_STATUS:
                    logger.debug(f"Successful response: {response.status}")
                    return SendResult.ok(response.status)

                return SendResult.rejected(response.status, f"HTTP {response.status}: {response.reason}")

        except HTTPError as e:
            return SendResult.rejected(e.code, f"HTTP error: {e.code} {e.reason}")

        except URLError as e:
            return SendResult.transport_failure(f"Network error: {e.reason}")

        except (socket.timeout, TimeoutError) as e:
            return SendResult.transport_failure(f"Request timed out: {e}")

        except (OSError, ValueError) as e:
            return SendResult.transport_failure(f"Request error: {e}")
