"""
Notification Service Client

Client for calling notification_service to deliver campaign lifecycle
notifications. Owner-targeted events become a user notification,
operator-targeted events a role broadcast.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from core.config import ServiceConfig, get_settings
from ..models import CampaignNotificationEvent, NotificationAudience, NotificationType
from ..protocols import NotificationDispatchError
from ..service_types import service_type_label

logger = logging.getLogger(__name__)

OPERATOR_ROLE = "operator"
OWNER_CAMPAIGN_LINK = "/manage/campaign"
OPERATOR_CAMPAIGN_LINK = "/admin/campaigns/all"


def render_notification(event: CampaignNotificationEvent) -> Dict[str, Any]:
    """Title, message, link and category for a lifecycle event"""
    name = event.campaign_name

    if event.type == NotificationType.SUBMITTED:
        label = service_type_label(event.service_type) if event.service_type else "-"
        return {
            "type": "system",
            "title": "New campaign request",
            "message": f"[{name}] campaign was submitted for approval. (Service: {label})",
            "link": OPERATOR_CAMPAIGN_LINK,
        }

    if event.type == NotificationType.APPROVED:
        return {
            "type": "service",
            "title": "Campaign approved",
            "message": (
                f"[{name}] campaign was approved and is now 'Pending'. "
                "Switch it to 'Active' in campaign management to publish it."
            ),
            "link": OWNER_CAMPAIGN_LINK,
        }

    if event.type == NotificationType.REJECTED:
        return {
            "type": "service",
            "title": "Campaign rejected",
            "message": f"[{name}] campaign was rejected. Reason: {event.reason or '-'}",
            "link": OWNER_CAMPAIGN_LINK,
        }

    return {
        "type": "system",
        "title": "Campaign re-approval requested",
        "message": f"[{name}] campaign was edited and re-approval was requested.",
        "link": OPERATOR_CAMPAIGN_LINK,
    }


class NotificationClient:
    """Client for notification_service"""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = config or get_settings().services
        self.base_url = (base_url or config.notification_service_url).rstrip("/")
        self.timeout = config.notification_timeout
        self._transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout or self.timeout, transport=self._transport)

    async def dispatch(self, event: CampaignNotificationEvent) -> None:
        """
        Deliver a lifecycle notification.

        Raises:
            NotificationDispatchError: notification_service unreachable or rejected the request
        """
        content = render_notification(event)
        metadata = {
            "campaign_id": event.campaign_id,
            "event_type": event.type.value,
            "service_type": event.service_type,
        }

        try:
            if event.audience == NotificationAudience.OWNER:
                await self.send_notification(event.owner_id, content, metadata=metadata)
            else:
                await self.send_role_notification(OPERATOR_ROLE, content, metadata=metadata)
            logger.info(f"Dispatched {event.type.value} notification for campaign {event.campaign_id}")

        except httpx.HTTPStatusError as e:
            logger.error(f"Notification service rejected {event.type.value}: {e.response.text}")
            raise NotificationDispatchError(
                f"Notification service returned {e.response.status_code}", event_type=event.type.value
            ) from e

        except httpx.HTTPError as e:
            logger.error(f"Error dispatching {event.type.value} notification: {e}")
            raise NotificationDispatchError(str(e), event_type=event.type.value) from e

    async def send_notification(
        self,
        user_id: str,
        content: Dict[str, Any],
        **kwargs,
    ) -> Dict[str, Any]:
        """
        Send a notification to a single user.

        Args:
            user_id: Recipient user ID
            content: type, title, message and link
            **kwargs: Additional parameters (metadata, etc)

        Returns:
            Notification response
        """
        request_data = {
            "user_id": user_id,
            "priority": "high",
            **content,
            **kwargs,
        }

        async with self._client() as client:
            response = await client.post(
                f"{self.base_url}/api/v1/notifications",
                json=request_data,
            )
            response.raise_for_status()
            return response.json()

    async def send_role_notification(
        self,
        role: str,
        content: Dict[str, Any],
        **kwargs,
    ) -> Dict[str, Any]:
        """
        Broadcast a notification to every user holding a role.

        Args:
            role: Recipient role (e.g. "operator")
            content: type, title, message and link
            **kwargs: Additional parameters (metadata, etc)

        Returns:
            Broadcast response
        """
        request_data = {
            "role": role,
            "priority": "high",
            **content,
            **kwargs,
        }

        async with self._client() as client:
            response = await client.post(
                f"{self.base_url}/api/v1/notifications/role",
                json=request_data,
            )
            response.raise_for_status()
            return response.json()

    async def health_check(self) -> bool:
        """Check if notification_service is healthy"""
        try:
            async with self._client(timeout=5.0) as client:
                response = await client.get(f"{self.base_url}/health")
                return response.status_code == 200
        except httpx.HTTPError:
            return False


__all__ = ["NotificationClient", "render_notification"]
