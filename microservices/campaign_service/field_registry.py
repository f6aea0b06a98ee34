"""
Field/Schema Registry

Per-service-type dynamic fields stored in a campaign's additional_fields.
Schemas are read from the key-value config store under
`field_schema:<service_type>` and fall back to the built-in defaults.

Also hosts the spreadsheet import helpers that suggest which campaign field
feeds each ranking column.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError

from .models import (
    FieldDefinition,
    MappingSuggestion,
    NumberField,
    SelectField,
    TextField,
)
from .protocols import CampaignValidationError, ConfigStoreProtocol
from .service_types import resolve_service_type_code

logger = logging.getLogger(__name__)

FIELD_SCHEMA_KEY_PREFIX = "field_schema:"

_FIELD_LIST_ADAPTER = TypeAdapter(List[FieldDefinition])


def _keyword(required: bool = True) -> TextField:
    return TextField(name="main_keyword", label="Main keyword", required=required, max_length=100)


DEFAULT_FIELD_SCHEMAS: Dict[str, List[FieldDefinition]] = {
    "ntraffic": [
        _keyword(),
        TextField(name="url", label="Target URL", required=True),
        SelectField(name="device", label="Traffic device", options=["pc", "mobile", "all"]),
    ],
    "nshopping": [
        _keyword(),
        TextField(name="mid", label="Product MID", required=True, max_length=50),
        TextField(name="url", label="Product URL", required=True),
        NumberField(name="work_days", label="Work days", integer=True, min_value=1, max_value=365),
    ],
    "nrank": [
        _keyword(),
        TextField(name="mid", label="Product MID", required=True, max_length=50),
        TextField(name="url", label="Product URL"),
    ],
    "nfakesale": [
        TextField(name="mid", label="Product MID", required=True, max_length=50),
        TextField(name="url", label="Product URL", required=True),
        NumberField(name="minimum_purchase", label="Minimum purchase", integer=True, min_value=1),
    ],
    "nplace": [
        _keyword(),
        TextField(name="place_id", label="Place ID", required=True, max_length=50),
        TextField(name="place_url", label="Place URL"),
    ],
    "nplace-save": [
        TextField(name="place_id", label="Place ID", required=True, max_length=50),
        TextField(name="place_url", label="Place URL"),
    ],
    "nplace-share": [
        TextField(name="place_id", label="Place ID", required=True, max_length=50),
        TextField(name="place_url", label="Place URL"),
    ],
    "nplacerank": [
        _keyword(),
        TextField(name="place_id", label="Place ID", required=True, max_length=50),
        TextField(name="place_url", label="Place URL"),
    ],
    "CoupangTraffic": [
        _keyword(),
        TextField(name="product_id", label="Product ID", required=True, max_length=50),
        TextField(name="url", label="Product URL", required=True),
    ],
    "cfakesale": [
        TextField(name="product_id", label="Product ID", required=True, max_length=50),
        TextField(name="url", label="Product URL", required=True),
        NumberField(name="minimum_purchase", label="Minimum purchase", integer=True, min_value=1),
    ],
}


# Column-name patterns for each ranking field, by service type
FIELD_MAPPING_TEMPLATES: Dict[str, Dict[str, List[str]]] = {
    "nshopping": {
        "keyword": ["검색키워드", "키워드", "keyword", "검색어"],
        "product_id": ["MID", "상품코드", "상품번호", "mid", "제품코드"],
        "title": ["상품명", "제품명", "product", "상품이름"],
        "link": ["상품URL", "url", "링크", "상품주소", "link"],
        "rank": ["현재순위", "순위", "rank", "랭킹"],
    },
    "nrank": {
        "keyword": ["키워드", "검색어", "keyword", "검색키워드"],
        "product_id": ["상품코드", "MID", "productId", "제품번호"],
        "title": ["상품명", "상품이름", "title", "제품명"],
        "link": ["URL", "상품링크", "link", "링크"],
        "rank": ["순위", "랭크", "rank", "현재순위"],
    },
    "nplacerank": {
        "keyword": ["검색키워드", "키워드", "keyword", "검색어"],
        "product_id": ["업체코드", "PlaceID", "placeId", "업체번호", "place_id"],
        "title": ["업체명", "상호명", "placeName", "가게이름", "업체이름"],
        "link": ["업체URL", "url", "링크", "업체링크", "placeUrl"],
        "rank": ["순위", "랭킹", "rank", "현재순위"],
    },
    "CoupangTraffic": {
        "keyword": ["검색키워드", "키워드", "keyword", "검색어"],
        "product_id": ["상품코드", "ASIN", "productId", "제품번호"],
        "title": ["상품명", "제품명", "title", "상품이름"],
        "link": ["상품URL", "url", "링크", "상품주소"],
        "rank": ["순위", "랭크", "rank", "현재순위"],
    },
}

MIN_MAPPING_CONFIDENCE = 50

_SEPARATORS = re.compile(r"[_\-\s]")


def _normalize_name(name: str) -> str:
    return _SEPARATORS.sub("", name.lower())


def calculate_mapping_confidence(field_name: str, patterns: Iterable[str]) -> int:
    """
    Score how well a column name matches a list of patterns.

    Names are compared lowercased with `_`, `-` and whitespace removed.
    The first pattern that matches decides: 100 for an exact match, a
    length-proportional score up to 80 when one contains the other.
    """
    normalized_field = _normalize_name(field_name)
    if not normalized_field:
        return 0

    for pattern in patterns:
        normalized_pattern = _normalize_name(pattern)
        if not normalized_pattern:
            continue
        if normalized_field == normalized_pattern:
            return 100
        if normalized_pattern in normalized_field or normalized_field in normalized_pattern:
            ratio = len(normalized_pattern) / max(len(normalized_field), len(normalized_pattern))
            return int(ratio * 80 + 0.5)

    return 0


def generate_auto_mapping(
    campaign_fields: Iterable[str], service_type: str
) -> Dict[str, MappingSuggestion]:
    """
    Suggest the best campaign field for each ranking field of a service type.

    Only suggestions with confidence >= 50 are returned; on ties the earlier
    campaign field wins. Service types without a template yield {}.
    """
    templates = FIELD_MAPPING_TEMPLATES.get(resolve_service_type_code(service_type))
    if not templates:
        return {}

    field_names = list(campaign_fields)
    results: Dict[str, MappingSuggestion] = {}

    for ranking_field, patterns in templates.items():
        best_field = ""
        best_confidence = 0
        for field_name in field_names:
            confidence = calculate_mapping_confidence(field_name, patterns)
            if confidence > best_confidence:
                best_field, best_confidence = field_name, confidence

        if best_field and best_confidence >= MIN_MAPPING_CONFIDENCE:
            results[ranking_field] = MappingSuggestion(field=best_field, confidence=best_confidence)

    return results


def is_ranking_service(service_type: str) -> bool:
    return resolve_service_type_code(service_type) in FIELD_MAPPING_TEMPLATES


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class FieldRegistry:
    """
    Per-service-type field schemas with validation.

    Reads schemas from the config store when one is configured; built-in
    defaults apply when no entry exists or the stored entry is malformed.
    """

    def __init__(self, config_store: Optional[ConfigStoreProtocol] = None):
        self.config_store = config_store

    @staticmethod
    def schema_key(service_type: str) -> str:
        return f"{FIELD_SCHEMA_KEY_PREFIX}{service_type}"

    async def get_fields(self, service_type: str) -> List[FieldDefinition]:
        """Ordered visible fields for a service type"""
        code = resolve_service_type_code(service_type)

        if self.config_store is not None and code:
            entry = await self.config_store.get_config_entry(self.schema_key(code))
            if entry is not None:
                try:
                    return _FIELD_LIST_ADAPTER.validate_python(entry)
                except ValidationError as e:
                    logger.warning(f"Malformed field schema for {code}, using defaults: {e}")

        return list(DEFAULT_FIELD_SCHEMAS.get(code, []))

    async def set_fields(self, service_type: str, fields: List[FieldDefinition]) -> None:
        """Persist a field schema for a service type"""
        if self.config_store is None:
            raise RuntimeError("FieldRegistry has no config store")
        code = resolve_service_type_code(service_type)
        payload = _FIELD_LIST_ADAPTER.dump_python(fields, mode="json")
        await self.config_store.set_config_entry(self.schema_key(code), payload)
        logger.info(f"Stored field schema for {code} ({len(fields)} fields)")

    async def validate_additional_fields(
        self, service_type: str, values: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Validate and normalize additional field values.

        Returns:
            Values keyed by field name, in schema order, with unknown keys dropped

        Raises:
            CampaignValidationError: missing required value or value of the wrong shape
        """
        values = values or {}
        fields = await self.get_fields(service_type)
        normalized: Dict[str, Any] = {}

        for field in fields:
            value = values.get(field.name)
            if _is_blank(value):
                if field.required:
                    raise CampaignValidationError(f"{field.label} is required", field=field.name)
                continue

            if isinstance(field, NumberField):
                normalized[field.name] = self._validate_number(field, value)
            elif isinstance(field, SelectField):
                normalized[field.name] = self._validate_select(field, value)
            else:
                normalized[field.name] = self._validate_text(field, value)

        dropped = set(values) - {field.name for field in fields}
        if dropped:
            logger.debug(f"Dropping unknown additional fields for {service_type}: {sorted(dropped)}")

        return normalized

    @staticmethod
    def _validate_text(field: TextField, value: Any) -> str:
        text = str(value).strip()
        if field.max_length is not None and len(text) > field.max_length:
            raise CampaignValidationError(
                f"{field.label} must be at most {field.max_length} characters", field=field.name
            )
        return text

    @staticmethod
    def _validate_number(field: NumberField, value: Any):
        if isinstance(value, bool):
            raise CampaignValidationError(f"{field.label} must be a number", field=field.name)
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise CampaignValidationError(f"{field.label} must be a number", field=field.name)

        if field.integer:
            if not number.is_integer():
                raise CampaignValidationError(f"{field.label} must be a whole number", field=field.name)
            number = int(number)

        if field.min_value is not None and number < field.min_value:
            raise CampaignValidationError(
                f"{field.label} must be at least {field.min_value:g}", field=field.name
            )
        if field.max_value is not None and number > field.max_value:
            raise CampaignValidationError(
                f"{field.label} must be at most {field.max_value:g}", field=field.name
            )
        return number

    @staticmethod
    def _validate_select(field: SelectField, value: Any) -> str:
        choice = str(value).strip()
        if choice not in field.options:
            raise CampaignValidationError(
                f"{field.label} must be one of: {', '.join(field.options)}", field=field.name
            )
        return choice


__all__ = [
    "FIELD_SCHEMA_KEY_PREFIX",
    "DEFAULT_FIELD_SCHEMAS",
    "FIELD_MAPPING_TEMPLATES",
    "MIN_MAPPING_CONFIDENCE",
    "calculate_mapping_confidence",
    "generate_auto_mapping",
    "is_ranking_service",
    "FieldRegistry",
]
