"""
Campaign Service Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from datetime import datetime
from typing import Any, List, Optional, Protocol, Tuple

from .models import (
    Actor,
    Campaign,
    CampaignNotificationEvent,
    CampaignQuery,
)


# ====================
# Repository Protocol
# ====================


class CampaignRepositoryProtocol(Protocol):
    """Protocol for the campaign record store"""

    async def initialize(self) -> None:
        """Initialize repository connection"""
        ...

    async def close(self) -> None:
        """Close repository connection"""
        ...

    async def health_check(self) -> bool:
        """Check repository health"""
        ...

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        """Get campaign by ID"""
        ...

    async def list_campaigns(self, query: CampaignQuery) -> Tuple[List[Campaign], int]:
        """List campaigns matching the query, with the total match count"""
        ...

    async def write_as_system(
        self, campaign: Campaign, expected_updated_at: Optional[datetime] = None
    ) -> Campaign:
        """
        Write a record with elevated privileges (no ownership check).

        With expected_updated_at the write only applies if the stored record
        still carries that timestamp; otherwise CampaignConflictError.
        Without it the record is inserted or overwritten.
        """
        ...

    async def write_as_user(
        self, actor: Actor, campaign: Campaign, expected_updated_at: Optional[datetime] = None
    ) -> Campaign:
        """Update a record owned by the actor; another owner's record is NotFound"""
        ...


class ConfigStoreProtocol(Protocol):
    """Protocol for the key-value configuration store"""

    async def get_config_entry(self, key: str) -> Optional[Any]:
        """Get a JSON value by key"""
        ...

    async def set_config_entry(self, key: str, value: Any) -> None:
        """Store a JSON value under key"""
        ...


# ====================
# Event Bus Protocol
# ====================


class EventBusProtocol(Protocol):
    """Protocol for event bus operations"""

    async def publish_event(self, event: Any) -> bool:
        """Publish an event to the event bus"""
        ...

    async def close(self) -> None:
        """Close event bus connection"""
        ...


# ====================
# Service Client Protocols
# ====================


class NotificationDispatcherProtocol(Protocol):
    """Protocol for delivering lifecycle notifications"""

    async def dispatch(self, event: CampaignNotificationEvent) -> None:
        """Deliver a notification; raises NotificationDispatchError on failure"""
        ...


# ====================
# Custom Exceptions
# ====================


class CampaignServiceError(Exception):
    """Base exception for campaign service errors"""
    pass


class CampaignNotFoundError(CampaignServiceError):
    """Raised when campaign is not found or not visible to the caller"""
    pass


class CampaignValidationError(CampaignServiceError):
    """Raised when campaign validation fails"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class CampaignConflictError(CampaignServiceError):
    """Raised when a write lost a race with another writer"""

    def __init__(self, message: str, campaign_id: Optional[str] = None):
        super().__init__(message)
        self.campaign_id = campaign_id


class CampaignStoreError(CampaignServiceError):
    """Raised when the record store is unavailable or rejects a write"""
    pass


class NotificationDispatchError(CampaignServiceError):
    """Raised when notification delivery fails"""

    def __init__(self, message: str, event_type: Optional[str] = None):
        super().__init__(message)
        self.event_type = event_type


__all__ = [
    "CampaignRepositoryProtocol",
    "ConfigStoreProtocol",
    "EventBusProtocol",
    "NotificationDispatcherProtocol",
    "CampaignServiceError",
    "CampaignNotFoundError",
    "CampaignValidationError",
    "CampaignConflictError",
    "CampaignStoreError",
    "NotificationDispatchError",
]
