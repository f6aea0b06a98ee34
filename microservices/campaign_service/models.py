"""
Campaign Service Data Models

Canonical data structures for the campaign marketplace: campaign records,
actors, lifecycle results, notification events, dynamic field definitions
and the HTTP request/response shapes.
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# ENUMS
# =============================================================================

class CampaignStatus(str, Enum):
    """Campaign lifecycle status"""
    PENDING = "pending"
    ACTIVE = "active"
    PAUSED = "pause"
    WAITING_APPROVAL = "waiting_approval"
    REJECTED = "rejected"


# Statuses an owner may cycle between freely once approved
LIVE_STATUSES = frozenset({CampaignStatus.PENDING, CampaignStatus.ACTIVE, CampaignStatus.PAUSED})

# Statuses in which an owner edit is a resubmission
REVIEW_STATUSES = frozenset({CampaignStatus.WAITING_APPROVAL, CampaignStatus.REJECTED})


class ActorRole(str, Enum):
    """Role of the caller"""
    OWNER = "owner"
    OPERATOR = "operator"
    DEVELOPER = "developer"

    @property
    def is_admin(self) -> bool:
        return self in (ActorRole.OPERATOR, ActorRole.DEVELOPER)


class NotificationType(str, Enum):
    """Lifecycle notification kinds"""
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    REAPPROVAL_REQUESTED = "reapproval_requested"


class NotificationAudience(str, Enum):
    """Who receives a notification"""
    OWNER = "owner"
    OPERATORS = "operators"


# =============================================================================
# HELPERS
# =============================================================================

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(:[0-5]\d)?$")


def format_time_hhmm(value: Optional[str]) -> Optional[str]:
    """Normalize HH:MM or HH:MM:SS to HH:MM, None for empty input"""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    match = _TIME_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return f"{match.group(1)}:{match.group(2)}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# BASE MODELS
# =============================================================================

class BaseContract(BaseModel):
    """Base model for all contracts"""

    model_config = {
        "from_attributes": True,
    }


class Actor(BaseContract):
    """Authenticated caller"""
    actor_id: str = Field(..., min_length=1)
    role: ActorRole = Field(default=ActorRole.OWNER)

    @property
    def is_admin(self) -> bool:
        return self.role.is_admin


# =============================================================================
# CAMPAIGN MODELS
# =============================================================================

class Campaign(BaseContract):
    """Core Campaign record"""
    campaign_id: str = Field(default_factory=lambda: f"cmp_{uuid4().hex[:16]}")
    service_type: str = Field(..., min_length=1)
    owner_id: str = Field(..., min_length=1)

    status: CampaignStatus = Field(default=CampaignStatus.WAITING_APPROVAL)
    rejection_reason: Optional[str] = None

    # Metadata
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    detailed_description: Optional[str] = None
    unit_price: float = Field(default=100, ge=0)
    deadline: Optional[str] = Field(default="22:00", description="Daily cutoff, HH:MM")
    logo: Optional[str] = None
    banner_image: Optional[str] = None
    additional_fields: Dict[str, Any] = Field(default_factory=dict)
    efficiency: Optional[float] = None
    min_quantity: Optional[int] = Field(None, ge=0)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("deadline")
    @classmethod
    def validate_deadline(cls, v):
        return format_time_hhmm(v)

    @model_validator(mode="after")
    def validate_rejection_reason(self):
        """A rejected campaign always carries its reason"""
        if self.status == CampaignStatus.REJECTED:
            if not self.rejection_reason or not self.rejection_reason.strip():
                raise ValueError("Rejected campaigns require a rejection_reason")
        return self


class CampaignMetadataPatch(BaseContract):
    """Partial metadata edit; only fields explicitly set are applied"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    detailed_description: Optional[str] = None
    unit_price: Optional[float] = Field(None, ge=0)
    deadline: Optional[str] = None
    logo: Optional[str] = None
    banner_image: Optional[str] = None
    additional_fields: Optional[Dict[str, Any]] = None
    efficiency: Optional[float] = None
    min_quantity: Optional[int] = Field(None, ge=0)

    @field_validator("deadline")
    @classmethod
    def validate_deadline(cls, v):
        return format_time_hhmm(v)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class CampaignNotificationEvent(BaseContract):
    """Best-effort message describing a lifecycle transition"""
    type: NotificationType
    campaign_id: str
    campaign_name: str
    owner_id: str
    service_type: Optional[str] = None
    reason: Optional[str] = None

    @property
    def audience(self) -> NotificationAudience:
        if self.type in (NotificationType.APPROVED, NotificationType.REJECTED):
            return NotificationAudience.OWNER
        return NotificationAudience.OPERATORS


class TransitionResult(BaseContract):
    """Outcome of a lifecycle transition request"""
    campaign: Campaign
    previous_status: CampaignStatus
    effective_status: CampaignStatus
    was_coerced: bool = False
    notification: Optional[CampaignNotificationEvent] = None


class StatusBadge(BaseContract):
    """Presentation of a status code"""
    status: str
    label: str
    color: str


# =============================================================================
# DYNAMIC FIELD MODELS
# =============================================================================

class FieldDefinitionBase(BaseContract):
    """Common attributes of a per-service-type field"""
    name: str = Field(..., min_length=1, description="Key in additional_fields")
    label: str
    required: bool = False
    description: Optional[str] = None


class TextField(FieldDefinitionBase):
    kind: Literal["text"] = "text"
    max_length: Optional[int] = Field(None, ge=1)
    placeholder: Optional[str] = None


class NumberField(FieldDefinitionBase):
    kind: Literal["number"] = "number"
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    integer: bool = False


class SelectField(FieldDefinitionBase):
    kind: Literal["select"] = "select"
    options: List[str] = Field(..., min_length=1)


FieldDefinition = Annotated[
    Union[TextField, NumberField, SelectField],
    Field(discriminator="kind"),
]


class FieldSchema(BaseContract):
    """Ordered visible fields for one service type"""
    service_type: str
    fields: List[FieldDefinition] = Field(default_factory=list)


class MappingSuggestion(BaseContract):
    """Auto-mapping suggestion for one ranking field"""
    field: str
    confidence: int


class FieldMappingRequest(BaseContract):
    """Column names of an import sheet"""
    fields: List[str] = Field(default_factory=list)


# =============================================================================
# SERVICE TYPE MODELS
# =============================================================================

class ServiceTypeInfo(BaseContract):
    """Catalog entry for a service type"""
    code: str
    label: str
    category: str
    ranking: bool = False


class ServiceTypeResolution(BaseContract):
    """Result of resolving a raw service-type string"""
    raw: str
    resolved: str
    canonical: bool


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class CampaignCreateRequest(BaseContract):
    """Campaign creation request"""
    service_type: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    detailed_description: Optional[str] = None
    unit_price: float = Field(default=100, ge=0)
    deadline: Optional[str] = Field(default="22:00")
    logo: Optional[str] = None
    banner_image: Optional[str] = None
    additional_fields: Dict[str, Any] = Field(default_factory=dict)
    efficiency: Optional[float] = None
    min_quantity: Optional[int] = Field(None, ge=0)

    # Admin only: create on behalf of an owner
    owner_id: Optional[str] = None
    # Legacy bypass of the approval gate
    status: Optional[CampaignStatus] = None
    rejection_reason: Optional[str] = None

    @field_validator("deadline")
    @classmethod
    def validate_deadline(cls, v):
        return format_time_hhmm(v)


class CampaignTransitionRequest(BaseContract):
    """Transition request body"""
    status: Optional[CampaignStatus] = None
    rejection_reason: Optional[str] = Field(None, max_length=1000)
    metadata: Optional[CampaignMetadataPatch] = None


class CampaignResponse(BaseContract):
    """Single campaign with its status badge"""
    campaign: Campaign
    badge: StatusBadge
    message: str = "Success"


class TransitionResponse(BaseContract):
    """Transition outcome"""
    campaign: Campaign
    badge: StatusBadge
    previous_status: CampaignStatus
    effective_status: CampaignStatus
    was_coerced: bool
    notification: Optional[CampaignNotificationEvent] = None


class CampaignListResponse(BaseContract):
    """Campaign list response"""
    campaigns: List[CampaignResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class CampaignQuery(BaseContract):
    """Store-level list filter"""
    owner_id: Optional[str] = None
    service_type: Optional[str] = None
    statuses: Optional[List[CampaignStatus]] = None
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    port: int
    version: str
    dependencies: Dict[str, str] = Field(default_factory=dict)


class ReadinessResponse(BaseModel):
    """Readiness check response"""
    ready: bool
    checks: Dict[str, bool] = Field(default_factory=dict)
    details: Dict[str, str] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    """Liveness check response"""
    alive: bool
    uptime_seconds: float


class ErrorResponse(BaseModel):
    """Standard error response"""
    detail: str
    field: Optional[str] = None


__all__ = [
    # Enums
    "CampaignStatus",
    "ActorRole",
    "NotificationType",
    "NotificationAudience",
    "LIVE_STATUSES",
    "REVIEW_STATUSES",
    # Helpers
    "format_time_hhmm",
    "utc_now",
    # Core Models
    "Actor",
    "Campaign",
    "CampaignMetadataPatch",
    "CampaignNotificationEvent",
    "TransitionResult",
    "StatusBadge",
    # Field Models
    "TextField",
    "NumberField",
    "SelectField",
    "FieldDefinition",
    "FieldSchema",
    "MappingSuggestion",
    "FieldMappingRequest",
    # Service Types
    "ServiceTypeInfo",
    "ServiceTypeResolution",
    # Request/Response Models
    "CampaignCreateRequest",
    "CampaignTransitionRequest",
    "CampaignResponse",
    "TransitionResponse",
    "CampaignListResponse",
    "CampaignQuery",
    "HealthResponse",
    "ReadinessResponse",
    "LivenessResponse",
    "ErrorResponse",
]
