"""
Campaign Service Business Logic

Implements the campaign lifecycle: creation into the approval queue,
role-aware status transitions, rejection-reason rules, metadata edits
and the notifications each transition triggers.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from core.config import LifecycleConfig
from .events.publishers import CampaignEventPublisher
from .field_registry import FieldRegistry
from .lifecycle import (
    normalize_reason,
    resolve_effective_status,
    resolve_rejection_reason,
    select_notification,
    submitted_notification,
)
from .models import (
    Actor,
    Campaign,
    CampaignCreateRequest,
    CampaignMetadataPatch,
    CampaignNotificationEvent,
    CampaignQuery,
    CampaignStatus,
    FieldDefinition,
    TransitionResult,
    utc_now,
)
from .protocols import (
    CampaignNotFoundError,
    CampaignRepositoryProtocol,
    CampaignValidationError,
    EventBusProtocol,
    NotificationDispatcherProtocol,
)
from .service_types import ALL_SERVICE_TYPES, is_canonical, resolve_service_type_code

logger = logging.getLogger(__name__)


# Fields a metadata edit may not clear
_REQUIRED_METADATA = {"name", "unit_price"}


def _validation_message(error: ValidationError) -> Tuple[str, Optional[str]]:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or None
    return first.get("msg", str(error)), field


class CampaignService:
    """Campaign service business logic layer"""

    def __init__(
        self,
        repository: CampaignRepositoryProtocol,
        notification_dispatcher: Optional[NotificationDispatcherProtocol] = None,
        event_bus: Optional[EventBusProtocol] = None,
        field_registry: Optional[FieldRegistry] = None,
        config: Optional[LifecycleConfig] = None,
    ):
        self.repository = repository
        self.notification_dispatcher = notification_dispatcher
        self.event_publisher = CampaignEventPublisher(event_bus)
        self.field_registry = field_registry or FieldRegistry()
        self.config = config or LifecycleConfig()

    # ====================
    # Creation
    # ====================

    async def create_campaign(self, request: CampaignCreateRequest, actor: Actor) -> Campaign:
        """
        Create a campaign in the approval queue.

        The service type must resolve to a canonical code and additional
        fields are validated against its schema. Admins may create on behalf
        of another owner and may override the initial status.
        """
        code = resolve_service_type_code(request.service_type)
        if not is_canonical(code):
            raise CampaignValidationError(
                f"Unknown service type: {request.service_type}", field="service_type"
            )

        owner_id = actor.actor_id
        if request.owner_id and request.owner_id != actor.actor_id:
            if not actor.is_admin:
                raise CampaignValidationError(
                    "Only operators may create campaigns for another owner", field="owner_id"
                )
            owner_id = request.owner_id

        status, rejection_reason = self._initial_status(request, actor)
        additional_fields = await self.field_registry.validate_additional_fields(
            code, request.additional_fields
        )

        now = utc_now()
        try:
            campaign = Campaign(
                service_type=code,
                owner_id=owner_id,
                status=status,
                rejection_reason=rejection_reason,
                name=request.name,
                description=request.description,
                detailed_description=request.detailed_description,
                unit_price=request.unit_price,
                deadline=request.deadline,
                logo=request.logo,
                banner_image=request.banner_image,
                additional_fields=additional_fields,
                efficiency=request.efficiency,
                min_quantity=request.min_quantity,
                created_at=now,
                updated_at=now,
            )
        except ValidationError as e:
            message, field = _validation_message(e)
            raise CampaignValidationError(message, field=field)

        campaign = await self.repository.write_as_system(campaign)
        logger.info(
            f"Campaign created: {campaign.campaign_id} ({code}) for owner {owner_id} "
            f"by {actor.actor_id}, status {campaign.status.value}"
        )

        await self.event_publisher.publish_campaign_created(campaign, created_by=actor.actor_id)

        if campaign.status == CampaignStatus.WAITING_APPROVAL:
            await self._notify(submitted_notification(campaign))

        return campaign

    def _initial_status(
        self, request: CampaignCreateRequest, actor: Actor
    ) -> Tuple[CampaignStatus, Optional[str]]:
        requested = request.status
        if requested is None or requested == CampaignStatus.WAITING_APPROVAL:
            return CampaignStatus.WAITING_APPROVAL, None

        if not actor.is_admin:
            logger.warning(
                f"Ignoring initial status '{requested.value}' from non-admin {actor.actor_id}"
            )
            return CampaignStatus.WAITING_APPROVAL, None

        if not self.config.allow_initial_status_override:
            raise CampaignValidationError("Initial status override is disabled", field="status")

        logger.warning(
            f"Campaign created with status '{requested.value}' by {actor.actor_id}, "
            "bypassing the approval queue"
        )
        if requested == CampaignStatus.REJECTED:
            reason = normalize_reason(request.rejection_reason)
            if not reason:
                raise CampaignValidationError(
                    "A rejection reason is required to reject a campaign", field="rejection_reason"
                )
            return requested, reason
        return requested, None

    # ====================
    # Reads
    # ====================

    async def get_campaign(self, campaign_id: str, actor: Actor) -> Campaign:
        """Get campaign by ID; owners only see their own"""
        campaign = await self.repository.get_campaign(campaign_id)
        if campaign is None or (not actor.is_admin and campaign.owner_id != actor.actor_id):
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        return campaign

    async def list_campaigns(
        self,
        actor: Actor,
        service_type: Optional[str] = None,
        statuses: Optional[List[CampaignStatus]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[Campaign], int]:
        """
        List campaigns visible to the actor.

        An empty or "all" service type means no service-type filter; owners
        are always limited to their own campaigns.
        """
        code = resolve_service_type_code(service_type) if service_type is not None else ""
        if code == ALL_SERVICE_TYPES:
            code = ""

        if limit is None:
            limit = self.config.default_page_size
        limit = max(1, min(limit, self.config.max_page_size))

        query = CampaignQuery(
            owner_id=None if actor.is_admin else actor.actor_id,
            service_type=code or None,
            statuses=statuses or None,
            limit=limit,
            offset=max(0, offset),
        )
        return await self.repository.list_campaigns(query)

    # ====================
    # Lifecycle
    # ====================

    async def request_transition(
        self,
        campaign_id: str,
        actor: Actor,
        desired_status: Optional[CampaignStatus] = None,
        rejection_reason: Optional[str] = None,
        metadata_patch: Union[CampaignMetadataPatch, Dict[str, Any], None] = None,
    ) -> TransitionResult:
        """
        Apply a status change and/or metadata edit.

        The requested status is reinterpreted for the actor's role rather
        than refused (see resolve_effective_status). The write is
        all-or-nothing; notification delivery afterwards is best-effort.

        Raises:
            CampaignNotFoundError: no such campaign, or not visible to an owner
            CampaignValidationError: missing rejection reason or invalid metadata
            CampaignConflictError: the record changed since it was loaded
            CampaignStoreError: the store failed; nothing was notified
        """
        campaign = await self.get_campaign(campaign_id, actor)
        previous = campaign.status

        effective, was_coerced = resolve_effective_status(actor.role, previous, desired_status)
        if was_coerced:
            logger.info(
                f"Campaign {campaign_id}: {actor.role.value} {actor.actor_id} requested "
                f"{desired_status.value}, applying {effective.value}"
            )

        new_reason = resolve_rejection_reason(
            previous, effective, campaign.rejection_reason, rejection_reason
        )
        changes = await self._metadata_changes(campaign, metadata_patch)

        updates: Dict[str, Any] = dict(changes)
        updates["status"] = effective
        updates["updated_at"] = utc_now()
        if new_reason is not None:
            updates["rejection_reason"] = new_reason
        updated = campaign.model_copy(update=updates)

        expected_updated_at = campaign.updated_at if self.config.optimistic_locking else None
        if actor.is_admin:
            saved = await self.repository.write_as_system(updated, expected_updated_at)
        else:
            saved = await self.repository.write_as_user(actor, updated, expected_updated_at)

        changed_fields = [key for key, value in changes.items() if getattr(campaign, key) != value]
        if previous != effective or changed_fields:
            logger.info(
                f"Campaign {campaign_id}: {previous.value} -> {effective.value} by {actor.actor_id}"
                + (f", edited {changed_fields}" if changed_fields else "")
            )
            await self.event_publisher.publish_status_changed(
                saved, previous, actor, was_coerced=was_coerced, changed_fields=changed_fields
            )

        notification = select_notification(previous, effective, saved)
        if notification is not None:
            await self._notify(notification)

        return TransitionResult(
            campaign=saved,
            previous_status=previous,
            effective_status=effective,
            was_coerced=was_coerced,
            notification=notification,
        )

    async def update_metadata(
        self,
        campaign_id: str,
        actor: Actor,
        metadata_patch: Union[CampaignMetadataPatch, Dict[str, Any]],
    ) -> TransitionResult:
        """Metadata-only edit; an owner edit in review resubmits the campaign"""
        return await self.request_transition(campaign_id, actor, metadata_patch=metadata_patch)

    async def _metadata_changes(
        self,
        campaign: Campaign,
        metadata_patch: Union[CampaignMetadataPatch, Dict[str, Any], None],
    ) -> Dict[str, Any]:
        if metadata_patch is None:
            return {}

        if not isinstance(metadata_patch, CampaignMetadataPatch):
            try:
                metadata_patch = CampaignMetadataPatch.model_validate(metadata_patch)
            except ValidationError as e:
                message, field = _validation_message(e)
                raise CampaignValidationError(message, field=field)

        changes = {
            key: value
            for key, value in metadata_patch.changes().items()
            if not (value is None and key in _REQUIRED_METADATA)
        }

        if "additional_fields" in changes:
            changes["additional_fields"] = await self.field_registry.validate_additional_fields(
                campaign.service_type, changes["additional_fields"] or {}
            )

        return changes

    # ====================
    # Service Types
    # ====================

    async def get_service_type_fields(self, service_type: str) -> List[FieldDefinition]:
        """Visible dynamic fields for a service type"""
        code = resolve_service_type_code(service_type)
        if not is_canonical(code):
            raise CampaignNotFoundError(f"Unknown service type: {service_type}")
        return await self.field_registry.get_fields(code)

    # ====================
    # Notifications
    # ====================

    async def _notify(self, notification: CampaignNotificationEvent) -> None:
        """Dispatch a notification without letting failures reach the caller"""
        if self.notification_dispatcher is not None:
            try:
                await asyncio.wait_for(
                    self.notification_dispatcher.dispatch(notification),
                    timeout=self.config.notification_timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Notification {notification.type.value} for {notification.campaign_id} "
                    f"timed out after {self.config.notification_timeout_seconds}s"
                )
            except Exception as e:
                logger.error(
                    f"Failed to dispatch {notification.type.value} for {notification.campaign_id}: {e}"
                )
        else:
            logger.debug(f"Notification dispatcher not configured, skipping: {notification.type.value}")

        await self.event_publisher.publish_notification(notification)


__all__ = ["CampaignService"]
