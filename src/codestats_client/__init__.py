"""Code::Stats client - typing activity batching and delivery."""

from .config import CLIENT_VERSION, get_config_manager
from .core import CodeStatsClient
from .orchestrator import PulsePipeline

__version__ = CLIENT_VERSION

__all__ = ["CodeStatsClient", "PulsePipeline", "get_config_manager"]
