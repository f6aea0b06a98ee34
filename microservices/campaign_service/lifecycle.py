"""
Campaign lifecycle rules

Pure functions deciding what a transition request actually does: the
effective status for a role, the rejection-reason requirement, and which
notification a (previous -> effective) pair triggers. No I/O here; the
engine in campaign_service.py wires these to the store and dispatcher.
"""

from typing import Optional, Tuple

from .models import (
    ActorRole,
    Campaign,
    CampaignNotificationEvent,
    CampaignStatus,
    NotificationType,
    REVIEW_STATUSES,
)
from .protocols import CampaignValidationError


def resolve_effective_status(
    role: ActorRole,
    previous: CampaignStatus,
    requested: Optional[CampaignStatus] = None,
) -> Tuple[CampaignStatus, bool]:
    """
    Decide the status a request actually produces.

    Owners cannot leave review on their own: any owner request on a
    WaitingApproval or Rejected campaign yields WaitingApproval. Everywhere
    else, and for admins always, the requested status is applied as asked.

    Returns:
        (effective_status, was_coerced) where was_coerced is True when a
        status was requested and the effective status differs from it.
    """
    if not role.is_admin and previous in REVIEW_STATUSES:
        effective = CampaignStatus.WAITING_APPROVAL
    else:
        effective = requested if requested is not None else previous

    was_coerced = requested is not None and effective != requested
    return effective, was_coerced


def normalize_reason(reason: Optional[str]) -> Optional[str]:
    """Trimmed reason, None when blank"""
    if reason is None:
        return None
    reason = reason.strip()
    return reason or None


def resolve_rejection_reason(
    previous: CampaignStatus,
    effective: CampaignStatus,
    stored_reason: Optional[str],
    supplied_reason: Optional[str],
) -> Optional[str]:
    """
    Reason to persist for this transition, or None to leave the stored one.

    Rejected requires a usable reason, either supplied with this request or
    already stored on the campaign. Outside Rejected a supplied
    reason is ignored and the stored one is retained.

    Raises:
        CampaignValidationError: effective status is Rejected with no usable reason
    """
    if effective != CampaignStatus.REJECTED:
        return None

    supplied = normalize_reason(supplied_reason)
    if supplied:
        return supplied

    if normalize_reason(stored_reason):
        return None

    raise CampaignValidationError(
        "A rejection reason is required to reject a campaign", field="rejection_reason"
    )


def select_notification(
    previous: CampaignStatus,
    effective: CampaignStatus,
    campaign: Campaign,
) -> Optional[CampaignNotificationEvent]:
    """
    Notification for a completed transition, or None.

    `campaign` is the record as written, so its rejection_reason is current.
    """
    if previous == CampaignStatus.WAITING_APPROVAL and effective in (
        CampaignStatus.PENDING,
        CampaignStatus.ACTIVE,
    ):
        return CampaignNotificationEvent(
            type=NotificationType.APPROVED,
            campaign_id=campaign.campaign_id,
            campaign_name=campaign.name,
            owner_id=campaign.owner_id,
            service_type=campaign.service_type,
        )

    if effective == CampaignStatus.REJECTED and previous != CampaignStatus.REJECTED:
        return CampaignNotificationEvent(
            type=NotificationType.REJECTED,
            campaign_id=campaign.campaign_id,
            campaign_name=campaign.name,
            owner_id=campaign.owner_id,
            service_type=campaign.service_type,
            reason=campaign.rejection_reason,
        )

    if previous == CampaignStatus.REJECTED and effective == CampaignStatus.WAITING_APPROVAL:
        return CampaignNotificationEvent(
            type=NotificationType.REAPPROVAL_REQUESTED,
            campaign_id=campaign.campaign_id,
            campaign_name=campaign.name,
            owner_id=campaign.owner_id,
            service_type=campaign.service_type,
        )

    return None


def submitted_notification(campaign: Campaign) -> CampaignNotificationEvent:
    """Notification for a campaign created into WaitingApproval"""
    return CampaignNotificationEvent(
        type=NotificationType.SUBMITTED,
        campaign_id=campaign.campaign_id,
        campaign_name=campaign.name,
        owner_id=campaign.owner_id,
        service_type=campaign.service_type,
    )


__all__ = [
    "resolve_effective_status",
    "normalize_reason",
    "resolve_rejection_reason",
    "select_notification",
    "submitted_notification",
]
