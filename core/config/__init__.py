#!/usr/bin/env python3
"""Modular configuration system for the campaign marketplace

Configuration hierarchy:
- infra_config: Infrastructure services (PostgreSQL, NATS)
- service_config: Peer services (notification_service)
- logging_config: Logging configuration
- marketplace_config: Main config plus lifecycle engine settings
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig
from .infra_config import InfraConfig
from .service_config import ServiceConfig
from .marketplace_config import LifecycleConfig, MarketplaceConfig

# Load environment file based on ENV
env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
env_files = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
}
env_file = env_files.get(env, "deployment/environments/dev.env")
load_dotenv(env_file, override=False)

# Create global settings instance
settings = MarketplaceConfig.from_env()

def get_settings() -> MarketplaceConfig:
    """Get global settings instance"""
    return settings

__all__ = [
    # Main config
    'MarketplaceConfig',
    'get_settings',
    'settings',
    # Sub-configs
    'LoggingConfig',
    'InfraConfig',
    'ServiceConfig',
    'LifecycleConfig',
]
