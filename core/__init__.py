#!/usr/bin/env python3
"""
Core Module for Microservices Architecture

Shared infrastructure components for the marketplace microservices.

COMPONENTS:
    - config/: Dataclass configuration loaded from environment and env files
    - logger.py: Service logger setup
    - postgres_client.py: asyncpg connection pool wrapper
    - nats_client.py: NATS JetStream event bus

USAGE:
    from core.config import get_settings
    from core.postgres_client import get_postgres_client

    settings = get_settings()
    db = await get_postgres_client("campaign_service")
"""

__version__ = "1.0.0"
