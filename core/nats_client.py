"""
NATS JetStream Client for Python Microservices
Provides event-driven communication between marketplace services

This module wraps a nats-py connection and its JetStream context.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

import nats
from nats.aio.client import Client as NATSClient
from nats.js import JetStreamContext

from core.config import InfraConfig, get_settings


class DecimalEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles Decimal and datetime types"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Event types published by marketplace services"""

    # Campaign lifecycle
    CAMPAIGN_CREATED = "campaign.created"
    CAMPAIGN_STATUS_CHANGED = "campaign.status_changed"

    # Campaign notifications
    CAMPAIGN_SUBMITTED = "campaign.submitted"
    CAMPAIGN_APPROVED = "campaign.approved"
    CAMPAIGN_REJECTED = "campaign.rejected"
    CAMPAIGN_REAPPROVAL_REQUESTED = "campaign.reapproval_requested"


class ServiceSource(Enum):
    """Service sources"""

    CAMPAIGN_SERVICE = "campaign_service"


class Event:
    """Event envelope"""

    def __init__(
        self,
        event_type: EventType,
        source: ServiceSource,
        data: Dict[str, Any],
        subject: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ):
        self.id = str(uuid.uuid4())
        self.type = event_type.value
        self.source = source.value
        self.data = data
        self.subject = subject
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.metadata = metadata or {}
        self.version = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "subject": self.subject,
            "timestamp": self.timestamp,
            "data": self.data,
            "metadata": self.metadata,
            "version": self.version,
        }


class NATSEventBus:
    """
    NATS JetStream event bus on top of nats-py.

    Streams are derived from the event type prefix (campaign.* -> campaign-stream)
    and created on first publish.
    """

    def __init__(
        self,
        service_name: str,
        config: Optional[InfraConfig] = None,
        servers: Optional[List[str]] = None,
    ):
        """
        Initialize NATS Event Bus.

        Args:
            service_name: Name of the service (used as the connection name)
            config: Infrastructure config (defaults to global settings)
            servers: Explicit server URLs, override config
        """
        self.service_name = service_name
        self.config = config or get_settings().infrastructure
        self.servers = servers or self.config.nats_servers

        self._nc: Optional[NATSClient] = None
        self._js: Optional[JetStreamContext] = None
        self._streams: Dict[str, bool] = {}

        logger.info(f"NATS EventBus initialized: {', '.join(self.servers)}")

    async def connect(self):
        """Connect to NATS and open a JetStream context"""
        try:
            self._nc = await nats.connect(servers=self.servers, name=self.service_name)
            self._js = self._nc.jetstream()
            logger.info(f"Connected to NATS as {self.service_name}")
        except Exception as e:
            logger.error(f"Failed to connect to NATS: {e}")
            raise

    async def publish_event(self, event: Event) -> bool:
        """
        Publish an event to NATS JetStream.

        The event type is used as the subject (e.g., "campaign.status_changed").
        """
        if not self.is_connected or not self._js:
            logger.error("Not connected to NATS")
            return False

        try:
            subject = event.type
            data = json.dumps(event.to_dict(), cls=DecimalEncoder).encode()
            stream_name = self._get_stream_name_for_event(event.type)

            await self._ensure_stream(stream_name, event.type.split(".")[0])

            ack = await self._js.publish(subject, data)
            logger.info(f"Published event {event.type} [{event.id}] to stream {stream_name}, seq={ack.seq}")
            return True

        except Exception as e:
            logger.error(f"Error publishing event {event.id}: {e}")
            return False

    async def _ensure_stream(self, stream_name: str, prefix: str):
        """Create the stream once per process (idempotent on the server)"""
        if self._streams.get(stream_name):
            return
        try:
            await self._js.add_stream(name=stream_name, subjects=[f"{prefix}.>"])
        except Exception as e:
            logger.debug(f"Stream creation note: {e}")
        self._streams[stream_name] = True

    def _get_stream_name_for_event(self, event_type: str) -> str:
        """Determine the JetStream stream name from the event type prefix"""
        prefix = event_type.split(".")[0]
        return f"{prefix}-stream"

    async def close(self):
        """Drain and close the NATS connection"""
        if self._nc:
            try:
                await self._nc.drain()
            except Exception as e:
                logger.warning(f"Error draining NATS connection: {e}")
            self._nc = None
            self._js = None

        logger.info("Disconnected from NATS")

    @property
    def is_connected(self) -> bool:
        """Check if connected to NATS"""
        return self._nc is not None and self._nc.is_connected

