"""Logger configuration for the Code::Stats client."""

import sys
from typing import Optional

from loguru import logger

from .settings import ClientConfig, get_current_config


def setup_logging(config: Optional[ClientConfig] = None) -> None:
    """Route the client's log records to stderr and, optionally, a file.

    stdout is left alone because the command line tool prints status
    text there. The file sink is only added when ``log_to_file`` is on, which
    setting CODESTATS_LOG_FILE does. Calling this again replaces every sink.
    """
    config = config or get_current_config()

    # Drop loguru's default sink and any sinks from an earlier call
    logger.remove()

    if config.log_to_console:
        logger.add(
            sink=sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
            level=config.log_level,
            colorize=True,
        )

    if config.log_to_file:
        logger.add(
            sink=str(config.log_file_path),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level=config.log_level,
            rotation=config.log_rotation,
            retention=config.log_retention,
            compression="gz",
            enqueue=True,  # the executor thread that sends pulses logs too
        )

        logger.info(f"File logging enabled: {config.log_file_path}")
        logger.info(f"Log level: {config.log_level}")
