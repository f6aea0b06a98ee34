#!/usr/bin/env python3
"""Service configuration for peer services

Peer services the campaign service calls over HTTP.
"""
import os
from dataclasses import dataclass

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class ServiceConfig:
    """Peer service endpoints"""

    # notification_service - delivers owner and operator notifications
    notification_service_url: str = "http://localhost:8206"
    notification_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> 'ServiceConfig':
        """Load service configuration from environment variables"""
        host = os.getenv("NOTIFICATION_SERVICE_HOST")
        port = os.getenv("NOTIFICATION_SERVICE_PORT", "8206")
        default_url = f"http://{host}:{port}" if host else "http://localhost:8206"
        return cls(
            notification_service_url=os.getenv("NOTIFICATION_SERVICE_URL", default_url),
            notification_timeout=_float(os.getenv("NOTIFICATION_TIMEOUT", "10"), 10.0),
        )
