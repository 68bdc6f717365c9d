"""Shared fixtures for the Code::Stats client tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from codestats_client.config import ConfigManager
from codestats_client.sender import PulsePayload, SendResult

API_URL = "https://codestats.test/api/my/pulses"
API_KEY = "test-api-token"
START_TIME = datetime(2023, 1, 1, tzinfo=timezone.utc)


class FakeSender:
    """Records payloads and answers with scripted results."""

    def __init__(self, results: Optional[List[SendResult]] = None, default: Optional[SendResult] = None):
        self.results = list(results or [])
        self.default = default or SendResult.ok()
        self.payloads: List[PulsePayload] = []
        self.credentials = []
        self.gate: Optional[asyncio.Event] = None
        self.in_flight = 0
        self.max_in_flight = 0
        self.raise_error: Optional[Exception] = None

    async def asend_pulse(self, payload, api_url, api_key):
        self.payloads.append(payload)
        self.credentials.append((api_url, api_key))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)

        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)

            if self.raise_error is not None:
                raise self.raise_error
        finally:
            self.in_flight -= 1

        return self.results.pop(0) if self.results else self.default


class RecordingReporter:
    """Keeps every reported status value."""

    def __init__(self):
        self.values = []

    def report(self, value):
        self.values.append(value)


class FakeClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, now: datetime = START_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep CODESTATS_* variables of the developer's shell out of the tests."""
    import os

    for name in list(os.environ):
        if name.startswith("CODESTATS_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_manager():
    manager = ConfigManager()
    manager.load_config(
        api_key=API_KEY,
        api_url=API_URL,
        update_delay_seconds=0.1,
        multiple_update_interval_seconds=30.0,
        log_to_console=False,
    )
    return manager


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def clock():
    return FakeClock()
