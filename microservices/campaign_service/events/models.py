"""
Campaign Event Data Models

Event type definitions and data structures for campaign service events.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Event Type Definitions
# =============================================================================


class CampaignEventType(str, Enum):
    """
    Events published by campaign_service.

    These are the authoritative event types for this service.
    Other services should reference these when subscribing.
    """
    # Campaign lifecycle events
    CREATED = "campaign.created"
    STATUS_CHANGED = "campaign.status_changed"

    # Notification events, mirrored from the dispatcher
    SUBMITTED = "campaign.submitted"
    APPROVED = "campaign.approved"
    REJECTED = "campaign.rejected"
    REAPPROVAL_REQUESTED = "campaign.reapproval_requested"


class CampaignStreamConfig:
    """Stream configuration for campaign_service"""
    STREAM_NAME = "campaign-stream"
    SUBJECTS = ["campaign.>"]
    MAX_MESSAGES = 100000
    CONSUMER_PREFIX = "campaign"


# =============================================================================
# Event Data Models - Published Events
# =============================================================================


class CampaignCreatedEventData(BaseModel):
    """campaign.created event data"""
    campaign_id: str = Field(..., description="Campaign ID")
    owner_id: str = Field(..., description="Owning reseller")
    name: str = Field(..., description="Campaign name")
    service_type: str = Field(..., description="Canonical service type code")
    status: str = Field(..., description="Initial status")
    created_by: str = Field(..., description="Actor who created the campaign")
    timestamp: Optional[datetime] = Field(None, description="Event timestamp")


class CampaignStatusChangedEventData(BaseModel):
    """campaign.status_changed event data"""
    campaign_id: str = Field(..., description="Campaign ID")
    owner_id: str = Field(..., description="Owning reseller")
    service_type: str = Field(..., description="Canonical service type code")
    previous_status: str = Field(..., description="Status before the transition")
    new_status: str = Field(..., description="Status after the transition")
    was_coerced: bool = Field(False, description="Requested status was reinterpreted")
    changed_by: str = Field(..., description="Actor who requested the transition")
    actor_role: str = Field(..., description="Role of the actor")
    rejection_reason: Optional[str] = Field(None, description="Current rejection reason")
    changed_fields: List[str] = Field(default_factory=list, description="Edited metadata fields")
    timestamp: Optional[datetime] = Field(None, description="Event timestamp")


class CampaignNotificationEventData(BaseModel):
    """campaign.submitted / approved / rejected / reapproval_requested event data"""
    campaign_id: str = Field(..., description="Campaign ID")
    campaign_name: str = Field(..., description="Campaign name")
    owner_id: str = Field(..., description="Owning reseller")
    service_type: Optional[str] = Field(None, description="Canonical service type code")
    reason: Optional[str] = Field(None, description="Rejection reason")
    audience: str = Field(..., description="owner or operators")
    timestamp: Optional[datetime] = Field(None, description="Event timestamp")


__all__ = [
    "CampaignEventType",
    "CampaignStreamConfig",
    "CampaignCreatedEventData",
    "CampaignStatusChangedEventData",
    "CampaignNotificationEventData",
]
