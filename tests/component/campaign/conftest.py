"""
Component Test Fixtures for Campaign Service

Provides fixtures for component testing with mocked dependencies.
Uses FastAPI TestClient for API testing.
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import pytest

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.campaign.data_contract import (
    Actor,
    Campaign,
    CampaignNotificationEvent,
    CampaignQuery,
    CampaignStatus,
    CampaignTestDataFactory,
)
from core.config import LifecycleConfig
from microservices.campaign_service.campaign_service import CampaignService
from microservices.campaign_service.field_registry import FieldRegistry
from microservices.campaign_service.protocols import (
    CampaignConflictError,
    CampaignNotFoundError,
    CampaignStoreError,
    NotificationDispatchError,
)


# ====================
# Mock Repository
# ====================


class MockCampaignRepository:
    """Dict-backed campaign store with compare-on-write"""

    def __init__(self):
        self.campaigns: Dict[str, Campaign] = {}
        self.config_entries: Dict[str, Any] = {}
        self.writes: List[Tuple[str, str]] = []
        self.fail_writes = False
        self.fail_reads = False

    async def initialize(self):
        pass

    async def close(self):
        pass

    async def health_check(self) -> bool:
        return True

    def seed(self, campaign: Campaign) -> Campaign:
        self.campaigns[campaign.campaign_id] = campaign
        return campaign

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        if self.fail_reads:
            raise CampaignStoreError("store unavailable")
        return self.campaigns.get(campaign_id)

    async def list_campaigns(self, query: CampaignQuery) -> Tuple[List[Campaign], int]:
        results = list(self.campaigns.values())
        if query.owner_id:
            results = [c for c in results if c.owner_id == query.owner_id]
        if query.service_type:
            results = [c for c in results if c.service_type == query.service_type]
        if query.statuses:
            results = [c for c in results if c.status in query.statuses]

        results.sort(key=lambda c: c.created_at or datetime.min, reverse=True)
        total = len(results)
        return results[query.offset : query.offset + query.limit], total

    async def write_as_system(
        self, campaign: Campaign, expected_updated_at: Optional[datetime] = None
    ) -> Campaign:
        return self._write("system", campaign, expected_updated_at)

    async def write_as_user(
        self, actor: Actor, campaign: Campaign, expected_updated_at: Optional[datetime] = None
    ) -> Campaign:
        current = self.campaigns.get(campaign.campaign_id)
        if current is None or current.owner_id != actor.actor_id or campaign.owner_id != actor.actor_id:
            raise CampaignNotFoundError(f"Campaign not found: {campaign.campaign_id}")
        return self._write(actor.actor_id, campaign, expected_updated_at)

    def _write(
        self, writer: str, campaign: Campaign, expected_updated_at: Optional[datetime]
    ) -> Campaign:
        if self.fail_writes:
            raise CampaignStoreError(f"Failed to write campaign {campaign.campaign_id}")

        current = self.campaigns.get(campaign.campaign_id)
        if expected_updated_at is not None:
            if current is None:
                raise CampaignNotFoundError(f"Campaign not found: {campaign.campaign_id}")
            if current.updated_at != expected_updated_at:
                raise CampaignConflictError(
                    f"Campaign {campaign.campaign_id} was modified concurrently",
                    campaign_id=campaign.campaign_id,
                )

        self.campaigns[campaign.campaign_id] = campaign
        self.writes.append((writer, campaign.campaign_id))
        return campaign

    async def get_config_entry(self, key: str) -> Optional[Any]:
        return self.config_entries.get(key)

    async def set_config_entry(self, key: str, value: Any) -> None:
        self.config_entries[key] = value


# ====================
# Mock Notification Dispatcher
# ====================


class MockNotificationDispatcher:
    """Records dispatched notifications; can fail or hang on demand"""

    def __init__(self):
        self.dispatched: List[CampaignNotificationEvent] = []
        self.error: Optional[Exception] = None
        self.delay: float = 0

    async def dispatch(self, event: CampaignNotificationEvent) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        self.dispatched.append(event)

    def fail_with(self, error: Optional[Exception] = None):
        self.error = error or NotificationDispatchError("notification service down")

    def types(self) -> List[str]:
        return [event.type.value for event in self.dispatched]

    def clear(self):
        self.dispatched.clear()


# ====================
# Fixtures
# ====================


@pytest.fixture
def mock_repository():
    """Fresh in-memory campaign store"""
    return MockCampaignRepository()


@pytest.fixture
def mock_dispatcher():
    """Fresh notification dispatcher"""
    return MockNotificationDispatcher()


@pytest.fixture
def lifecycle_config():
    return LifecycleConfig(notification_timeout_seconds=0.2)


@pytest.fixture
def campaign_service(mock_repository, mock_dispatcher, mock_event_bus, lifecycle_config):
    """CampaignService wired to in-memory fakes"""
    return CampaignService(
        repository=mock_repository,
        notification_dispatcher=mock_dispatcher,
        event_bus=mock_event_bus,
        field_registry=FieldRegistry(config_store=mock_repository),
        config=lifecycle_config,
    )


@pytest.fixture
def owner():
    return CampaignTestDataFactory.make_owner()


@pytest.fixture
def other_owner():
    return CampaignTestDataFactory.make_owner()


@pytest.fixture
def operator():
    return CampaignTestDataFactory.make_operator()


@pytest.fixture
def seed(mock_repository, owner):
    """Store a campaign owned by `owner` (unless another owner_id is given)"""

    def _seed(status: CampaignStatus = CampaignStatus.WAITING_APPROVAL, **kwargs) -> Campaign:
        kwargs.setdefault("owner_id", owner.actor_id)
        return mock_repository.seed(CampaignTestDataFactory.make_campaign(status=status, **kwargs))

    return _seed
