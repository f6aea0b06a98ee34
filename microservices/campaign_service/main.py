"""
Campaign Service Main Application

FastAPI application for the campaign lifecycle.
Port: 8240
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from core.config import get_settings
from core.logger import setup_service_logger

from .models import (
    Actor,
    ActorRole,
    CampaignCreateRequest,
    CampaignListResponse,
    CampaignMetadataPatch,
    CampaignResponse,
    CampaignTransitionRequest,
    ErrorResponse,
    FieldMappingRequest,
    FieldSchema,
    HealthResponse,
    LivenessResponse,
    MappingSuggestion,
    ReadinessResponse,
    ServiceTypeInfo,
    ServiceTypeResolution,
    TransitionResponse,
    TransitionResult,
)
from .factory import CampaignServiceFactory
from .field_registry import generate_auto_mapping
from .routes_registry import SERVICE_METADATA, get_route_summary
from .protocols import (
    CampaignConflictError,
    CampaignNotFoundError,
    CampaignServiceError,
    CampaignStoreError,
    CampaignValidationError,
)
from .service_types import describe_resolution, list_service_types, resolve_service_type_code
from .status_catalog import parse_status, status_badge

settings = get_settings()
setup_service_logger(settings.service_name, settings.logging)
logger = logging.getLogger(__name__)

# Service configuration
SERVICE_NAME = settings.service_name
SERVICE_PORT = settings.service_port
SERVICE_VERSION = SERVICE_METADATA["version"]

# Track startup time for uptime calculation
startup_time = time.time()

# Global factory instance
factory: Optional[CampaignServiceFactory] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global factory

    logger.info(f"Starting {SERVICE_NAME} on port {SERVICE_PORT}")

    factory = CampaignServiceFactory(settings)
    await factory.initialize()

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")
    await factory.close()


# Create FastAPI application
app = FastAPI(
    title="Campaign Service",
    description="Campaign lifecycle service for the ad-campaign marketplace: approval workflow, status transitions and notifications",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# ====================
# Exception Handlers
# ====================


@app.exception_handler(CampaignNotFoundError)
async def campaign_not_found_handler(request: Request, exc: CampaignNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ErrorResponse(detail=str(exc)).model_dump(exclude_none=True),
    )


@app.exception_handler(CampaignValidationError)
async def validation_error_handler(request: Request, exc: CampaignValidationError):
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(detail=str(exc), field=exc.field).model_dump(),
    )


@app.exception_handler(CampaignConflictError)
async def conflict_handler(request: Request, exc: CampaignConflictError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=ErrorResponse(detail=str(exc)).model_dump(exclude_none=True),
    )


@app.exception_handler(CampaignStoreError)
async def store_error_handler(request: Request, exc: CampaignStoreError):
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=ErrorResponse(detail=str(exc)).model_dump(exclude_none=True),
    )


@app.exception_handler(CampaignServiceError)
async def service_error_handler(request: Request, exc: CampaignServiceError):
    logger.error(f"Unhandled campaign service error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(detail=str(exc)).model_dump(exclude_none=True),
    )


# ====================
# Dependencies
# ====================


def get_service():
    """Get campaign service from factory"""
    if not factory:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return factory.service


def get_auth_context(request: Request) -> Actor:
    """Extract the actor from gateway-set headers"""
    user_id = (request.headers.get("X-User-ID") or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header",
        )

    raw_role = (request.headers.get("X-User-Role") or ActorRole.OWNER.value).strip().lower()
    try:
        role = ActorRole(raw_role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unsupported role: {raw_role}",
        )

    return Actor(actor_id=user_id, role=role)


def _transition_response(result: TransitionResult) -> TransitionResponse:
    return TransitionResponse(
        campaign=result.campaign,
        badge=status_badge(result.campaign.status),
        previous_status=result.previous_status,
        effective_status=result.effective_status,
        was_coerced=result.was_coerced,
        notification=result.notification,
    )


# ====================
# Health Endpoints
# ====================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    dependencies = {}

    if factory:
        db_healthy = await factory.repository.health_check()
        dependencies["postgres"] = "healthy" if db_healthy else "unhealthy"

        if factory.nats_client:
            dependencies["nats"] = "healthy" if factory.nats_client.is_connected else "unhealthy"
        else:
            dependencies["nats"] = "not_configured"

    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        port=SERVICE_PORT,
        version=SERVICE_VERSION,
        dependencies=dependencies,
    )


@app.get("/health/ready", response_model=ReadinessResponse, tags=["Health"])
async def readiness_check():
    """Readiness check endpoint"""
    checks = {}
    details = {}

    if factory:
        db_healthy = await factory.repository.health_check()
        checks["database"] = db_healthy
        details["database"] = "Connected" if db_healthy else "Connection failed"

        if factory.nats_client:
            checks["nats"] = factory.nats_client.is_connected
            details["nats"] = "Connected" if factory.nats_client.is_connected else "Disconnected"
        else:
            checks["nats"] = True  # Optional
            details["nats"] = "Not configured (optional)"
    else:
        checks["factory"] = False
        details["factory"] = "Factory not initialized"

    ready = all(checks.get(k, False) for k in ["database"])

    return ReadinessResponse(
        ready=ready,
        checks=checks,
        details=details,
    )


@app.get("/health/live", response_model=LivenessResponse, tags=["Health"])
async def liveness_check():
    """Liveness check endpoint"""
    return LivenessResponse(
        alive=True,
        uptime_seconds=time.time() - startup_time,
    )


@app.get("/info", tags=["Health"])
async def service_info():
    """Service metadata and exposed routes"""
    return {**SERVICE_METADATA, **get_route_summary()}


# ====================
# Campaign Endpoints
# ====================


@app.post(
    "/api/v1/campaigns",
    response_model=CampaignResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Campaigns"],
)
async def create_campaign(
    request: CampaignCreateRequest,
    service=Depends(get_service),
    actor: Actor = Depends(get_auth_context),
):
    """
    Create a new campaign

    Campaigns enter the approval queue (waiting_approval) and operators are notified.
    """
    campaign = await service.create_campaign(request=request, actor=actor)

    return CampaignResponse(
        campaign=campaign,
        badge=status_badge(campaign.status),
        message="Campaign created successfully",
    )


@app.get(
    "/api/v1/campaigns",
    response_model=CampaignListResponse,
    tags=["Campaigns"],
)
async def list_campaigns(
    service_type: Optional[str] = Query(None, description="Service type code or alias; 'all' for every type"),
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status (comma-separated)"),
    limit: int = Query(20, ge=1, le=100, description="Page size"),
    offset: int = Query(0, ge=0, description="Page offset"),
    service=Depends(get_service),
    actor: Actor = Depends(get_auth_context),
):
    """
    List campaigns visible to the caller

    Owners see their own campaigns; operators see all.
    """
    statuses = None
    if status_filter:
        statuses = []
        for raw in status_filter.split(","):
            if not raw.strip():
                continue
            parsed = parse_status(raw)
            if parsed is None:
                raise CampaignValidationError(f"Unknown status: {raw.strip()}", field="status")
            statuses.append(parsed)

    campaigns, total = await service.list_campaigns(
        actor=actor,
        service_type=service_type,
        statuses=statuses,
        limit=limit,
        offset=offset,
    )

    return CampaignListResponse(
        campaigns=[CampaignResponse(campaign=c, badge=status_badge(c.status)) for c in campaigns],
        total=total,
        limit=limit,
        offset=offset,
        has_more=(offset + len(campaigns)) < total,
    )


@app.get(
    "/api/v1/campaigns/{campaign_id}",
    response_model=CampaignResponse,
    tags=["Campaigns"],
)
async def get_campaign(
    campaign_id: str,
    service=Depends(get_service),
    actor: Actor = Depends(get_auth_context),
):
    """Get campaign by ID"""
    campaign = await service.get_campaign(campaign_id=campaign_id, actor=actor)
    return CampaignResponse(campaign=campaign, badge=status_badge(campaign.status))


@app.post(
    "/api/v1/campaigns/{campaign_id}/transition",
    response_model=TransitionResponse,
    tags=["Campaigns"],
)
async def transition_campaign(
    campaign_id: str,
    request: CampaignTransitionRequest,
    service=Depends(get_service),
    actor: Actor = Depends(get_auth_context),
):
    """
    Request a status transition, optionally with a metadata edit

    Owners' requests are reinterpreted by the approval rules; the response
    reports the effective status and whether the request was coerced.
    """
    result = await service.request_transition(
        campaign_id=campaign_id,
        actor=actor,
        desired_status=request.status,
        rejection_reason=request.rejection_reason,
        metadata_patch=request.metadata,
    )
    return _transition_response(result)


@app.patch(
    "/api/v1/campaigns/{campaign_id}",
    response_model=TransitionResponse,
    tags=["Campaigns"],
)
async def update_campaign(
    campaign_id: str,
    request: CampaignMetadataPatch,
    service=Depends(get_service),
    actor: Actor = Depends(get_auth_context),
):
    """
    Edit campaign metadata

    An owner edit of a rejected or waiting campaign resubmits it for approval.
    """
    result = await service.update_metadata(campaign_id=campaign_id, actor=actor, metadata_patch=request)
    return _transition_response(result)


# ====================
# Service Type Endpoints
# ====================


@app.get(
    "/api/v1/service-types",
    response_model=List[ServiceTypeInfo],
    tags=["Service Types"],
)
async def get_service_types():
    """Service type catalog"""
    return list_service_types()


@app.get(
    "/api/v1/service-types/resolve",
    response_model=ServiceTypeResolution,
    tags=["Service Types"],
)
async def resolve_service_type(
    raw: str = Query("", description="Raw service type from a URL, import or legacy record"),
):
    """Resolve a raw service type to its canonical code"""
    return describe_resolution(raw)


@app.get(
    "/api/v1/service-types/{code}/fields",
    response_model=FieldSchema,
    tags=["Service Types"],
)
async def get_service_type_fields(
    code: str,
    service=Depends(get_service),
):
    """Dynamic fields for a service type"""
    fields = await service.get_service_type_fields(code)
    return FieldSchema(service_type=code, fields=fields)


@app.put(
    "/api/v1/service-types/{code}/fields",
    response_model=FieldSchema,
    tags=["Service Types"],
)
async def set_service_type_fields(
    code: str,
    schema: FieldSchema,
    service=Depends(get_service),
    actor: Actor = Depends(get_auth_context),
):
    """Replace the dynamic fields of a service type (operators only)"""
    if not actor.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only operators may edit field schemas",
        )
    await service.get_service_type_fields(code)
    await service.field_registry.set_fields(code, schema.fields)
    return FieldSchema(service_type=resolve_service_type_code(code), fields=schema.fields)


@app.post(
    "/api/v1/service-types/{code}/field-mapping",
    response_model=Dict[str, MappingSuggestion],
    tags=["Service Types"],
)
async def suggest_field_mapping(code: str, request: FieldMappingRequest):
    """Suggest which import column feeds each ranking field"""
    return generate_auto_mapping(request.fields, code)


# ====================
# Main Entry Point
# ====================


def main():
    """Run the service"""
    import uvicorn

    uvicorn.run(
        "microservices.campaign_service.main:app",
        host=settings.service_host,
        port=SERVICE_PORT,
        reload=settings.debug,
        log_level=settings.logging.log_level.lower(),
    )


if __name__ == "__main__":
    main()
