"""
Service-Type Resolver

Maps the many spellings of a service type seen in URLs, imports and legacy
records to the canonical code stored on a campaign. Pure lookup, no I/O.

Usage:
    from microservices.campaign_service.service_types import resolve_service_type_code

    resolve_service_type_code("naver-traffic")   # "ntraffic"
    resolve_service_type_code("ALL")             # "all"
"""

import logging
from typing import Dict, List, Optional

from .models import ServiceTypeInfo, ServiceTypeResolution

logger = logging.getLogger(__name__)

ALL_SERVICE_TYPES = "all"


# Static catalog, ordered as shown in the service picker
SERVICE_TYPE_CATALOG: List[ServiceTypeInfo] = [
    ServiceTypeInfo(code="ntraffic", label="Naver Traffic", category="N Traffic"),
    ServiceTypeInfo(code="nshopping", label="Naver Shopping Traffic", category="NS Traffic", ranking=True),
    ServiceTypeInfo(code="nfakesale", label="Naver Fake Sale", category="N Auto"),
    ServiceTypeInfo(code="nplace", label="Naver Place Traffic", category="NP Traffic"),
    ServiceTypeInfo(code="nplace-save", label="Naver Place Save", category="NP Save"),
    ServiceTypeInfo(code="nplace-share", label="Naver Place Share", category="NP Share"),
    ServiceTypeInfo(code="nrank", label="Naver Shopping Rank", category="NS Rank", ranking=True),
    ServiceTypeInfo(code="nplacerank", label="Naver Place Rank", category="NP Rank", ranking=True),
    ServiceTypeInfo(code="CoupangTraffic", label="Coupang Traffic", category="C Traffic", ranking=True),
    ServiceTypeInfo(code="cfakesale", label="Coupang Fake Sale", category="C Fake Sale"),
]

_CATALOG_BY_CODE: Dict[str, ServiceTypeInfo] = {info.code: info for info in SERVICE_TYPE_CATALOG}

CANONICAL_CODES = frozenset(_CATALOG_BY_CODE)

# Lowercased alias -> canonical code
SERVICE_TYPE_ALIASES: Dict[str, str] = {
    # Naver traffic
    "ntraffic": "ntraffic",
    "navertraffic": "ntraffic",
    "naver-traffic": "ntraffic",
    # Naver auto-complete is sold as the fake-sale product
    "nauto": "nfakesale",
    "naver-auto": "nfakesale",
    # Naver shopping
    "nshopping": "nshopping",
    "navershopping": "nshopping",
    "naver-shopping": "nshopping",
    "nfakesale": "nfakesale",
    "naverfakesale": "nfakesale",
    "naver-fakesale": "nfakesale",
    # Naver place
    "nplace": "nplace",
    "naverplace": "nplace",
    "naver-place": "nplace",
    "naver-place-traffic": "nplace",
    "nplacetraffic": "nplace",
    "nplace-save": "nplace-save",
    "nplacesave": "nplace-save",
    "naver-place-save": "nplace-save",
    "nplace-share": "nplace-share",
    "nplaceshare": "nplace-share",
    "naver-place-share": "nplace-share",
    "nrank": "nrank",
    "naver-shopping-rank": "nrank",
    "nplacerank": "nplacerank",
    "naver-place-rank": "nplacerank",
    # Coupang
    "coupang": "CoupangTraffic",
    "coupangtraffic": "CoupangTraffic",
    "coupang-traffic": "CoupangTraffic",
    "ctraffic": "CoupangTraffic",
    "cfakesale": "cfakesale",
    "coupang-fakesale": "cfakesale",
}


def resolve_service_type_code(raw: Optional[str]) -> str:
    """
    Resolve a raw service-type string to its canonical code.

    Never raises. Exact canonical codes pass through unchanged, "all" in any
    case means no filter, anything else is trimmed, lowercased and looked up
    in the alias table. A miss returns the normalized string.
    """
    if raw is None or not raw.strip():
        logger.warning("Empty service type supplied, returning empty code")
        return ""

    if raw in CANONICAL_CODES:
        return raw

    normalized = raw.strip().lower()
    if normalized == ALL_SERVICE_TYPES:
        return ALL_SERVICE_TYPES

    code = SERVICE_TYPE_ALIASES.get(normalized)
    if code is None:
        logger.warning(f"Unmapped service type '{raw}', using '{normalized}'")
        return normalized
    return code


def is_canonical(code: Optional[str]) -> bool:
    return code in CANONICAL_CODES


def service_type_label(code: str) -> str:
    """Display label for a service type; unknown codes are shown as given"""
    info = _CATALOG_BY_CODE.get(resolve_service_type_code(code)) if code else None
    return info.label if info else code


def list_service_types() -> List[ServiceTypeInfo]:
    return list(SERVICE_TYPE_CATALOG)


def describe_resolution(raw: str) -> ServiceTypeResolution:
    resolved = resolve_service_type_code(raw)
    return ServiceTypeResolution(raw=raw, resolved=resolved, canonical=is_canonical(resolved))


__all__ = [
    "ALL_SERVICE_TYPES",
    "SERVICE_TYPE_CATALOG",
    "SERVICE_TYPE_ALIASES",
    "CANONICAL_CODES",
    "resolve_service_type_code",
    "is_canonical",
    "service_type_label",
    "list_service_types",
    "describe_resolution",
]
