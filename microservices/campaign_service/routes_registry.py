"""
Campaign Service Routes Registry

Defines service metadata and the routes exposed by the HTTP API.
"""

SERVICE_METADATA = {
    "service_name": "campaign_service",
    "version": "1.0.0",
    "tags": ['campaign', 'marketplace', 'v1'],
    "capabilities": ['campaign_lifecycle', 'service_type_resolution', 'field_schemas'],
}

ROUTES = [
    {"path": "/health", "methods": ["GET"], "description": "Health check"},
    {"path": "/health/ready", "methods": ["GET"], "description": "Readiness check"},
    {"path": "/health/live", "methods": ["GET"], "description": "Liveness check"},
    {"path": "/info", "methods": ["GET"], "description": "Service metadata and routes"},
    {"path": "/api/v1/campaigns", "methods": ["GET", "POST"], "description": "List or create campaigns"},
    {"path": "/api/v1/campaigns/{campaign_id}", "methods": ["GET", "PATCH"], "description": "Get or edit a campaign"},
    {"path": "/api/v1/campaigns/{campaign_id}/transition", "methods": ["POST"], "description": "Request a status transition"},
    {"path": "/api/v1/service-types", "methods": ["GET"], "description": "Service type catalog"},
    {"path": "/api/v1/service-types/resolve", "methods": ["GET"], "description": "Resolve a raw service type"},
    {"path": "/api/v1/service-types/{code}/fields", "methods": ["GET", "PUT"], "description": "Get or replace the dynamic fields of a service type"},
    {"path": "/api/v1/service-types/{code}/field-mapping", "methods": ["POST"], "description": "Suggest import column mapping"},
]


def get_route_summary():
    """Route metadata for service info"""
    return {
        "route_count": str(len(ROUTES)),
        "routes": ",".join([r["path"] for r in ROUTES]),
        "api_version": "v1",
        "base_path": "/api/v1",
    }


__all__ = ["SERVICE_METADATA", "ROUTES", "get_route_summary"]
