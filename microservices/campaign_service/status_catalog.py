"""
Status Catalog

Human-readable labels and severity colors for campaign status codes.
Unknown codes are coerced to the Pending label for compatibility with
records written by older clients.
"""

import logging
from typing import Optional, Union

from .models import CampaignStatus, StatusBadge

logger = logging.getLogger(__name__)


STATUS_LABELS = {
    CampaignStatus.PENDING: "Pending",
    CampaignStatus.ACTIVE: "Active",
    CampaignStatus.PAUSED: "Paused",
    CampaignStatus.WAITING_APPROVAL: "Waiting Approval",
    CampaignStatus.REJECTED: "Rejected",
}

STATUS_COLORS = {
    CampaignStatus.ACTIVE.value: "success",
    CampaignStatus.PAUSED.value: "warning",
    CampaignStatus.PENDING.value: "info",
    CampaignStatus.WAITING_APPROVAL.value: "warning",
    CampaignStatus.REJECTED.value: "danger",
    # Legacy code still present on archived records
    "completed": "primary",
}

DEFAULT_COLOR = "info"


def _code(status: Union[CampaignStatus, str, None]) -> str:
    if isinstance(status, CampaignStatus):
        return status.value
    return (status or "").strip()


def label_of(status: Union[CampaignStatus, str, None]) -> str:
    """Display label for a status code; unknown codes read as Pending"""
    code = _code(status)
    try:
        return STATUS_LABELS[CampaignStatus(code)]
    except ValueError:
        logger.debug(f"Unknown status code '{code}', using Pending label")
        return STATUS_LABELS[CampaignStatus.PENDING]


def color_of(status: Union[CampaignStatus, str, None]) -> str:
    """Severity tag for a status code"""
    return STATUS_COLORS.get(_code(status), DEFAULT_COLOR)


def status_badge(status: Union[CampaignStatus, str, None]) -> StatusBadge:
    return StatusBadge(status=_code(status), label=label_of(status), color=color_of(status))


def parse_status(raw: Union[CampaignStatus, str, None]) -> Optional[CampaignStatus]:
    """
    Parse a status from its code or its label.

    Returns None for anything unrecognized; unlike label_of, no fallback is applied.
    """
    if isinstance(raw, CampaignStatus):
        return raw
    text = _code(raw)
    if not text:
        return None
    try:
        return CampaignStatus(text.lower())
    except ValueError:
        pass
    for status, label in STATUS_LABELS.items():
        if label.lower() == text.lower():
            return status
    return None


__all__ = [
    "STATUS_LABELS",
    "STATUS_COLORS",
    "label_of",
    "color_of",
    "status_badge",
    "parse_status",
]
