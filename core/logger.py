"""
Service logger setup

Configures the root logger for a microservice from LoggingConfig.

Usage:
    from core.logger import setup_service_logger

    logger = setup_service_logger("campaign_service")
"""

import logging
from typing import Optional

from core.config import LoggingConfig, get_settings


def setup_service_logger(
    service_name: str,
    config: Optional[LoggingConfig] = None,
) -> logging.Logger:
    """
    Configure logging for a service and return its logger.

    Args:
        service_name: Name of the service, used as the logger name
        config: Logging configuration (defaults to global settings)

    Returns:
        Logger for the service
    """
    config = config or get_settings().logging
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    handlers = []
    if config.enable_console:
        handlers.append(logging.StreamHandler())
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))

    logging.basicConfig(
        level=level,
        format=config.log_format,
        handlers=handlers or None,
        force=True,
    )

    # Quiet noisy client libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)

    logger = logging.getLogger(service_name)
    logger.debug(f"Logging configured for {service_name} ({config.environment}) at {config.log_level}")
    return logger


__all__ = ["setup_service_logger"]
