"""
Campaign Service Factory

Factory for creating campaign service instances with proper dependency injection.
"""

import logging
from typing import Optional

from core.config import MarketplaceConfig, get_settings
from core.nats_client import NATSEventBus
from core.postgres_client import get_postgres_client

from .campaign_repository import CampaignRepository
from .campaign_service import CampaignService
from .clients.notification_client import NotificationClient
from .field_registry import FieldRegistry

logger = logging.getLogger(__name__)


class CampaignServiceFactory:
    """Factory for creating campaign service components"""

    def __init__(self, config: Optional[MarketplaceConfig] = None):
        self.config = config or get_settings()
        self._repository: Optional[CampaignRepository] = None
        self._service: Optional[CampaignService] = None
        self._nats_client: Optional[NATSEventBus] = None
        self._notification_client: Optional[NotificationClient] = None
        self._field_registry: Optional[FieldRegistry] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        logger.info("Initializing Campaign Service components...")

        # Initialize repository
        db = await get_postgres_client(self.config.service_name, config=self.config.infrastructure)
        self._repository = CampaignRepository(db)
        await self._repository.initialize()

        # Initialize NATS client; the service runs without it
        if self.config.nats_enabled:
            try:
                self._nats_client = NATSEventBus(
                    service_name=self.config.service_name,
                    config=self.config.infrastructure,
                )
                await self._nats_client.connect()
                logger.info("NATS client connected")
            except Exception as e:
                logger.warning(f"NATS client initialization failed: {e}")
                self._nats_client = None

        # Initialize service clients
        self._notification_client = NotificationClient(self.config.services)
        self._field_registry = FieldRegistry(config_store=self._repository)

        # Initialize main service
        self._service = CampaignService(
            repository=self._repository,
            notification_dispatcher=self._notification_client,
            event_bus=self._nats_client,
            field_registry=self._field_registry,
            config=self.config.lifecycle,
        )

        logger.info("Campaign Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Campaign Service components...")

        if self._nats_client:
            await self._nats_client.close()

        if self._repository:
            await self._repository.close()

        logger.info("Campaign Service components closed")

    @property
    def repository(self) -> CampaignRepository:
        """Get campaign repository"""
        if not self._repository:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._repository

    @property
    def service(self) -> CampaignService:
        """Get campaign service"""
        if not self._service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._service

    @property
    def nats_client(self) -> Optional[NATSEventBus]:
        """Get NATS client"""
        return self._nats_client

    @property
    def notification_client(self) -> NotificationClient:
        """Get notification client"""
        if not self._notification_client:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._notification_client

    @property
    def field_registry(self) -> FieldRegistry:
        """Get field registry"""
        if not self._field_registry:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._field_registry


__all__ = [
    "CampaignServiceFactory",
]
