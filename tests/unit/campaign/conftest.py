"""
Unit Test Fixtures for Campaign Service

Uses CampaignTestDataFactory from the data contract.
"""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.campaign.data_contract import (
    CampaignStatus,
    CampaignTestDataFactory,
)


@pytest.fixture
def waiting_campaign():
    return CampaignTestDataFactory.make_campaign(status=CampaignStatus.WAITING_APPROVAL)


@pytest.fixture
def rejected_campaign():
    return CampaignTestDataFactory.make_campaign(
        status=CampaignStatus.REJECTED, rejection_reason="Broken landing page"
    )


@pytest.fixture
def active_campaign():
    return CampaignTestDataFactory.make_campaign(status=CampaignStatus.ACTIVE)
