"""Code::Stats client application.

This is the host-facing entry point that integrates:
- Live configuration with change subscriptions
- The pulse pipeline (filter, queue, scheduler, deliverer)
- An optional status reporter
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from ..config.settings import CLIENT_NAME, CLIENT_VERSION, ConfigManager, Disposable, get_config_manager
from ..orchestrator.deliverer import PulseSender
from ..orchestrator.pipeline_orchestrator import PulsePipeline
from ..status.reporter import StatusReporter, TextStatusReporter
from .events import KeyEvent, utc_now


def mask_api_key(api_key: str) -> str:
    """Hide all but the last four characters of a credential."""
    if not api_key:
        return "<unset>"
    if len(api_key) <= 4:
        return "*" * len(api_key)
    return "*" * (len(api_key) - 4) + api_key[-4:]


class CodeStatsClient:
    """Code::Stats client bound to one host session."""

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        sender: Optional[PulseSender] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the client.

        Args:
            config_manager: Live configuration (default: the global manager)
            sender: Transport for payloads (default: HTTPSender)
            clock: Returns the current timestamp
        """
        self.config_manager = config_manager or get_config_manager()
        self.sender = sender
        self.clock = clock

        self.pipeline: Optional[PulsePipeline] = None
        self.status_reporter: Optional[StatusReporter] = None
        self._subscriptions: List[Disposable] = []

    @property
    def is_active(self) -> bool:
        return self.pipeline is not None

    def activate(self) -> PulsePipeline:
        """Create the pipeline and subscribe to configuration changes.

        Must be called from the event loop thread.
        """
        if self.pipeline is not None:
            logger.warning("Client is already active")
            return self.pipeline

        config = self.config_manager.get_config()
        logger.info(f"{CLIENT_NAME} {CLIENT_VERSION} initting with settings: key={mask_api_key(config.api_key)}, url={config.api_url or '<unset>'}")

        is_valid, errors = self.config_manager.validate_config()
        if not is_valid:
            logger.warning(f"Pulses will not be sent until configuration is fixed: {errors}")

        self._subscriptions = [
            self.config_manager.on_did_change("api_key", self._on_api_key_changed),
            self.config_manager.on_did_change("api_url", self._on_api_url_changed),
        ]

        self.pipeline = PulsePipeline(
            config_manager=self.config_manager,
            sender=self.sender,
            reporter=self.status_reporter,
            clock=self.clock,
        )
        return self.pipeline

    def consume_status_reporter(self, reporter: Optional[StatusReporter] = None) -> StatusReporter:
        """Attach a status reporter and show the idle status.

        Args:
            reporter: Reporter to attach (default: a TextStatusReporter)

        Returns:
            The attached reporter
        """
        if reporter is None:
            reporter = TextStatusReporter(self.config_manager.get_config().status_prefix)

        self.status_reporter = reporter
        if self.pipeline is not None:
            self.pipeline.set_reporter(reporter)

        reporter.report(None)
        return reporter

    def handle_key_event(self, event: KeyEvent, language: Optional[str]) -> bool:
        """Pass a key event from the host to the pipeline.

        Returns:
            True if the event was recorded
        """
        if self.pipeline is None:
            logger.debug("Client is not active, ignoring key event")
            return False

        return self.pipeline.handle_key_event(event, language)

    async def deactivate(self) -> int:
        """Unsubscribe, stop the pipeline and detach the status reporter.

        Returns:
            Experience that was never delivered
        """
        logger.info(f"{CLIENT_NAME} {CLIENT_VERSION} deactivating, unsubscribing from events.")

        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions = []

        unsent = 0
        if self.pipeline is not None:
            unsent = await self.pipeline.shutdown()
            self.pipeline = None

        self.status_reporter = None
        return unsent

    def get_status(self) -> Dict[str, Any]:
        """Get a summary of the client state."""
        config = self.config_manager.get_config()
        status: Dict[str, Any] = {
            "active": self.is_active,
            "delivery_enabled": config.delivery_enabled,
            "api_url": config.api_url,
        }

        if self.pipeline is not None:
            status["state"] = self.pipeline.state.value
            status["outstanding_xp"] = self.pipeline.queue.total_experience()
            status["queued_pulses"] = self.pipeline.queue.size()

        return status

    def _on_api_key_changed(self, new_value: Any, old_value: Any) -> None:
        logger.info(f"{CLIENT_NAME} API key changed to: {mask_api_key(new_value or '')}")

    def _on_api_url_changed(self, new_value: Any, old_value: Any) -> None:
        logger.info(f"{CLIENT_NAME} API URL changed to: {new_value or '<unset>'}")
