"""
Campaign Service Events

Event models and publisher for campaign service.
"""

from .models import (
    CampaignEventType,
    CampaignStreamConfig,
    CampaignCreatedEventData,
    CampaignStatusChangedEventData,
    CampaignNotificationEventData,
)
from .publishers import CampaignEventPublisher

__all__ = [
    # Event Types
    "CampaignEventType",
    "CampaignStreamConfig",
    # Event Data Models
    "CampaignCreatedEventData",
    "CampaignStatusChangedEventData",
    "CampaignNotificationEventData",
    # Publisher
    "CampaignEventPublisher",
]
