"""
Unit Tests for Effective Status Resolution

Covers every (role, previous, requested) combination.
"""

import pytest

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.campaign.data_contract import (
    ActorRole,
    CampaignStatus,
    LIVE_STATUSES,
    REVIEW_STATUSES,
)
from microservices.campaign_service.lifecycle import resolve_effective_status

ALL_STATUSES = list(CampaignStatus)
REQUESTS = [None] + ALL_STATUSES


def expected_effective(role, previous, requested):
    """Reference table written out longhand"""
    if role == ActorRole.OWNER and previous in (
        CampaignStatus.WAITING_APPROVAL,
        CampaignStatus.REJECTED,
    ):
        return CampaignStatus.WAITING_APPROVAL
    return requested if requested is not None else previous


class TestEffectiveStatusMatrix:
    """Exhaustive matrix"""

    @pytest.mark.parametrize("role", list(ActorRole))
    @pytest.mark.parametrize("previous", ALL_STATUSES)
    @pytest.mark.parametrize("requested", REQUESTS)
    def test_matrix(self, role, previous, requested):
        effective, was_coerced = resolve_effective_status(role, previous, requested)

        assert effective == expected_effective(role, previous, requested)
        assert was_coerced == (requested is not None and effective != requested)


class TestOwnerRules:
    """Owner-specific behavior"""

    @pytest.mark.parametrize("previous", sorted(REVIEW_STATUSES, key=lambda s: s.value))
    @pytest.mark.parametrize("requested", REQUESTS)
    def test_owner_cannot_leave_review(self, previous, requested):
        effective, _ = resolve_effective_status(ActorRole.OWNER, previous, requested)
        assert effective == CampaignStatus.WAITING_APPROVAL

    def test_owner_request_active_while_waiting_is_coerced(self):
        # Given: owner asks for Active on a campaign still in review
        effective, was_coerced = resolve_effective_status(
            ActorRole.OWNER, CampaignStatus.WAITING_APPROVAL, CampaignStatus.ACTIVE
        )

        # Then: status stays WaitingApproval and the coercion is reported
        assert effective == CampaignStatus.WAITING_APPROVAL
        assert was_coerced is True

    def test_owner_edit_of_rejected_is_resubmission(self):
        effective, was_coerced = resolve_effective_status(
            ActorRole.OWNER, CampaignStatus.REJECTED, None
        )

        assert effective == CampaignStatus.WAITING_APPROVAL
        assert was_coerced is False

    @pytest.mark.parametrize("previous", sorted(LIVE_STATUSES, key=lambda s: s.value))
    @pytest.mark.parametrize("requested", sorted(LIVE_STATUSES, key=lambda s: s.value))
    def test_owner_cycles_freely_among_live_states(self, previous, requested):
        effective, was_coerced = resolve_effective_status(ActorRole.OWNER, previous, requested)

        assert effective == requested
        assert was_coerced is False

    @pytest.mark.parametrize("previous", sorted(LIVE_STATUSES, key=lambda s: s.value))
    @pytest.mark.parametrize("requested", sorted(REVIEW_STATUSES, key=lambda s: s.value))
    def test_owner_request_for_review_state_from_live_is_applied(self, previous, requested):
        effective, was_coerced = resolve_effective_status(ActorRole.OWNER, previous, requested)

        assert effective == requested
        assert was_coerced is False

    @pytest.mark.parametrize("previous", sorted(LIVE_STATUSES, key=lambda s: s.value))
    def test_owner_without_request_keeps_live_status(self, previous):
        effective, was_coerced = resolve_effective_status(ActorRole.OWNER, previous, None)

        assert effective == previous
        assert was_coerced is False


class TestAdminRules:
    """Operators and developers are unconstrained"""

    @pytest.mark.parametrize("role", [ActorRole.OPERATOR, ActorRole.DEVELOPER])
    def test_admin_request_is_applied(self, role):
        effective, was_coerced = resolve_effective_status(
            role, CampaignStatus.WAITING_APPROVAL, CampaignStatus.PENDING
        )

        assert effective == CampaignStatus.PENDING
        assert was_coerced is False

    def test_admin_without_request_keeps_status(self):
        effective, was_coerced = resolve_effective_status(
            ActorRole.OPERATOR, CampaignStatus.REJECTED, None
        )

        assert effective == CampaignStatus.REJECTED
        assert was_coerced is False

    def test_admin_role_flags(self):
        assert ActorRole.OPERATOR.is_admin
        assert ActorRole.DEVELOPER.is_admin
        assert not ActorRole.OWNER.is_admin
