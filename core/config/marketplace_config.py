#!/usr/bin/env python3
"""Marketplace main configuration

Main configuration for the campaign marketplace back-office.
Combines all sub-configs and includes the lifecycle engine settings.
"""
import os
from dataclasses import dataclass, field

from .infra_config import InfraConfig
from .logging_config import LoggingConfig
from .service_config import ServiceConfig


def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


@dataclass
class LifecycleConfig:
    """Campaign lifecycle engine settings"""
    # Compare updated_at on write; False restores last-writer-wins
    optimistic_locking: bool = True
    # Upper bound on how long a transition waits for notification delivery
    notification_timeout_seconds: float = 5.0
    # Legacy bypass: creation requests may carry an explicit initial status
    allow_initial_status_override: bool = True
    default_page_size: int = 20
    max_page_size: int = 100

    @classmethod
    def from_env(cls) -> 'LifecycleConfig':
        return cls(
            optimistic_locking=_bool(os.getenv("CAMPAIGN_OPTIMISTIC_LOCKING", "true")),
            notification_timeout_seconds=_float(os.getenv("CAMPAIGN_NOTIFICATION_TIMEOUT", "5"), 5.0),
            allow_initial_status_override=_bool(os.getenv("CAMPAIGN_ALLOW_STATUS_OVERRIDE", "true")),
            default_page_size=_int(os.getenv("CAMPAIGN_DEFAULT_PAGE_SIZE", "20"), 20),
            max_page_size=_int(os.getenv("CAMPAIGN_MAX_PAGE_SIZE", "100"), 100),
        )


@dataclass
class MarketplaceConfig:
    """Main configuration for the marketplace services"""

    # Environment
    environment: str = "development"
    debug: bool = False

    # Service identity
    service_name: str = "campaign_service"
    service_host: str = "0.0.0.0"
    service_port: int = 8240

    # Sub-configurations
    infrastructure: InfraConfig = field(default_factory=InfraConfig)
    services: ServiceConfig = field(default_factory=ServiceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)

    # Event bus is optional in development
    nats_enabled: bool = True

    @classmethod
    def from_env(cls) -> 'MarketplaceConfig':
        """Load complete configuration from environment"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=_bool(os.getenv("DEBUG", "false")),
            service_name=os.getenv("SERVICE_NAME", "campaign_service"),
            service_host=os.getenv("SERVICE_HOST", "0.0.0.0"),
            service_port=_int(os.getenv("SERVICE_PORT", "8240"), 8240),
            infrastructure=InfraConfig.from_env(),
            services=ServiceConfig.from_env(),
            logging=LoggingConfig.from_env(),
            lifecycle=LifecycleConfig.from_env(),
            nats_enabled=_bool(os.getenv("NATS_ENABLED", "true")),
        )
