"""
Campaign Event Publishers

Publishes events to NATS JetStream.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.nats_client import Event, EventType, ServiceSource
from .models import (
    CampaignEventType,
    CampaignCreatedEventData,
    CampaignNotificationEventData,
    CampaignStatusChangedEventData,
)
from ..models import Actor, Campaign, CampaignNotificationEvent, CampaignStatus, NotificationType

logger = logging.getLogger(__name__)


_NOTIFICATION_EVENT_TYPES = {
    NotificationType.SUBMITTED: CampaignEventType.SUBMITTED,
    NotificationType.APPROVED: CampaignEventType.APPROVED,
    NotificationType.REJECTED: CampaignEventType.REJECTED,
    NotificationType.REAPPROVAL_REQUESTED: CampaignEventType.REAPPROVAL_REQUESTED,
}


class CampaignEventPublisher:
    """Publisher for campaign service events"""

    def __init__(self, event_bus=None):
        self.event_bus = event_bus
        self.source = ServiceSource.CAMPAIGN_SERVICE

    async def publish(
        self,
        event_type: CampaignEventType,
        data: Dict[str, Any],
        subject: Optional[str] = None,
    ) -> bool:
        """
        Publish an event to NATS.

        Args:
            event_type: The event type enum
            data: Event data payload
            subject: Entity the event is about (campaign_id)

        Returns:
            True if published successfully, False otherwise
        """
        if not self.event_bus:
            logger.debug(f"Event bus not configured, skipping publish: {event_type.value}")
            return False

        try:
            event = Event(
                event_type=EventType(event_type.value),
                source=self.source,
                data=data,
                subject=subject,
            )
            published = await self.event_bus.publish_event(event)
            if published:
                logger.debug(f"Published event: {event_type.value}")
            return bool(published)

        except Exception as e:
            logger.error(f"Failed to publish event {event_type.value}: {e}")
            return False

    # ====================
    # Campaign Lifecycle Events
    # ====================

    async def publish_campaign_created(self, campaign: Campaign, created_by: str) -> bool:
        """Publish campaign.created event"""
        data = CampaignCreatedEventData(
            campaign_id=campaign.campaign_id,
            owner_id=campaign.owner_id,
            name=campaign.name,
            service_type=campaign.service_type,
            status=campaign.status.value,
            created_by=created_by,
            timestamp=datetime.now(timezone.utc),
        )
        return await self.publish(
            CampaignEventType.CREATED, data.model_dump(mode="json"), subject=campaign.campaign_id
        )

    async def publish_status_changed(
        self,
        campaign: Campaign,
        previous_status: CampaignStatus,
        actor: Actor,
        was_coerced: bool = False,
        changed_fields: Optional[List[str]] = None,
    ) -> bool:
        """Publish campaign.status_changed event"""
        data = CampaignStatusChangedEventData(
            campaign_id=campaign.campaign_id,
            owner_id=campaign.owner_id,
            service_type=campaign.service_type,
            previous_status=previous_status.value,
            new_status=campaign.status.value,
            was_coerced=was_coerced,
            changed_by=actor.actor_id,
            actor_role=actor.role.value,
            rejection_reason=campaign.rejection_reason,
            changed_fields=changed_fields or [],
            timestamp=datetime.now(timezone.utc),
        )
        return await self.publish(
            CampaignEventType.STATUS_CHANGED, data.model_dump(mode="json"), subject=campaign.campaign_id
        )

    # ====================
    # Notification Events
    # ====================

    async def publish_notification(self, event: CampaignNotificationEvent) -> bool:
        """Publish the bus copy of a lifecycle notification"""
        data = CampaignNotificationEventData(
            campaign_id=event.campaign_id,
            campaign_name=event.campaign_name,
            owner_id=event.owner_id,
            service_type=event.service_type,
            reason=event.reason,
            audience=event.audience.value,
            timestamp=datetime.now(timezone.utc),
        )
        return await self.publish(
            _NOTIFICATION_EVENT_TYPES[event.type], data.model_dump(mode="json"), subject=event.campaign_id
        )


__all__ = ["CampaignEventPublisher"]
