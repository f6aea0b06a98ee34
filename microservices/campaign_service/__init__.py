"""
Campaign Service

Campaign lifecycle microservice for the ad-campaign marketplace providing:
- Approval workflow (submit, approve, reject, resubmit)
- Role-aware status transitions for owners and operators
- Service-type resolution and per-service-type field schemas
- Lifecycle notifications to owners and operators

Port: 8240
"""

__version__ = "1.0.0"
__service__ = "campaign_service"
