"""Pipeline orchestration module for the Code::Stats client."""

from .deliverer import Deliverer, DeliveryOutcome, DeliverySession, DeliveryState, PulseSender
from .pipeline_orchestrator import PulsePipeline

__all__ = ["Deliverer", "DeliveryOutcome", "DeliverySession", "DeliveryState", "PulseSender", "PulsePipeline"]
