"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/  : Component tests (mocked dependencies)
    - unit/       : Unit tests (pure functions, no I/O)
    - contracts/  : Shared models and test data factories
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("NATS_ENABLED", "false")

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from tests.contracts.campaign.data_contract import CampaignTestDataFactory


@pytest.fixture
def factory():
    """Provide CampaignTestDataFactory"""
    return CampaignTestDataFactory
