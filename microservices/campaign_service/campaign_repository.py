"""
Campaign Service Data Repository

Data access layer - PostgreSQL (Async)
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from core.postgres_client import PostgresClientWrapper, get_postgres_client
from .models import Actor, Campaign, CampaignQuery, CampaignStatus
from .protocols import (
    CampaignConflictError,
    CampaignNotFoundError,
    CampaignServiceError,
    CampaignStoreError,
)

logger = logging.getLogger(__name__)


class ExtendedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal and datetime types"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


def json_dumps(obj):
    """JSON dumps with Decimal and datetime support"""
    return json.dumps(obj, cls=ExtendedJSONEncoder)


# Columns written on insert, in parameter order
_CAMPAIGN_COLUMNS = [
    "campaign_id",
    "service_type",
    "owner_id",
    "status",
    "rejection_reason",
    "name",
    "description",
    "detailed_description",
    "unit_price",
    "deadline",
    "logo",
    "banner_image",
    "additional_fields",
    "efficiency",
    "min_quantity",
    "created_at",
    "updated_at",
]

# Columns never rewritten after creation
_IMMUTABLE_COLUMNS = {"campaign_id", "service_type", "owner_id", "created_at"}


class CampaignRepository:
    """Campaign service data repository - PostgreSQL (Async)"""

    def __init__(self, db: Optional[PostgresClientWrapper] = None):
        self.db = db
        self.schema = "campaign"

        # Table names
        self.campaigns_table = "campaigns"
        self.config_table = "config_entries"
        self._table_initialized = False

    async def initialize(self):
        """Initialize database connection and ensure tables exist"""
        if self.db is None:
            self.db = await get_postgres_client("campaign_service")
        try:
            await self._ensure_tables()
        except Exception as e:
            logger.error(f"Failed to initialize campaign tables: {e}")
            raise CampaignStoreError(f"Failed to initialize campaign store: {e}") from e
        logger.info("Campaign repository initialized with PostgreSQL")

    async def _ensure_tables(self) -> None:
        """Create schema and tables if missing."""
        if self._table_initialized:
            return

        statements = [
            f"CREATE SCHEMA IF NOT EXISTS {self.schema}",
            f"""
            CREATE TABLE IF NOT EXISTS {self.schema}.{self.campaigns_table} (
                campaign_id TEXT PRIMARY KEY,
                service_type TEXT NOT NULL,
                owner_id TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'waiting_approval',
                rejection_reason TEXT,
                name TEXT NOT NULL,
                description TEXT,
                detailed_description TEXT,
                unit_price DOUBLE PRECISION NOT NULL DEFAULT 100,
                deadline TEXT,
                logo TEXT,
                banner_image TEXT,
                additional_fields JSONB NOT NULL DEFAULT '{{}}'::jsonb,
                efficiency DOUBLE PRECISION,
                min_quantity INTEGER,
                created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                CONSTRAINT rejected_has_reason CHECK (
                    status <> 'rejected' OR COALESCE(BTRIM(rejection_reason), '') <> ''
                )
            )
            """,
            f"CREATE INDEX IF NOT EXISTS idx_{self.campaigns_table}_owner ON {self.schema}.{self.campaigns_table}(owner_id)",
            f"CREATE INDEX IF NOT EXISTS idx_{self.campaigns_table}_service_status ON {self.schema}.{self.campaigns_table}(service_type, status)",
            f"""
            CREATE TABLE IF NOT EXISTS {self.schema}.{self.config_table} (
                key TEXT PRIMARY KEY,
                value JSONB NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
            """,
        ]
        for sql in statements:
            await self.db.execute(sql)

        self._table_initialized = True

    async def close(self):
        """Close database connection"""
        if self.db is not None:
            await self.db.close()
        logger.info("Campaign repository database connection closed")

    async def health_check(self) -> bool:
        """Check repository health"""
        if self.db is None:
            return False
        return await self.db.health_check()

    # ====================
    # Campaign Reads
    # ====================

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        """Get campaign by ID"""
        try:
            query = f'''
                SELECT * FROM {self.schema}.{self.campaigns_table}
                WHERE campaign_id = $1
            '''
            result = await self.db.query_row(query, params=[campaign_id])
            return self._row_to_campaign(result) if result else None

        except Exception as e:
            logger.error(f"Error getting campaign {campaign_id}: {e}")
            raise CampaignStoreError(f"Failed to load campaign {campaign_id}") from e

    async def list_campaigns(self, query: CampaignQuery) -> Tuple[List[Campaign], int]:
        """List campaigns with filters, newest first"""
        try:
            conditions = []
            params: List[Any] = []

            if query.owner_id:
                params.append(query.owner_id)
                conditions.append(f"owner_id = ${len(params)}")

            if query.service_type:
                params.append(query.service_type)
                conditions.append(f"service_type = ${len(params)}")

            if query.statuses:
                params.append([s.value for s in query.statuses])
                conditions.append(f"status = ANY(${len(params)})")

            where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

            count_query = f'''
                SELECT COUNT(*) AS total FROM {self.schema}.{self.campaigns_table}
                {where_clause}
            '''
            count_result = await self.db.query_row(count_query, params=params)
            total = count_result.get("total", 0) if count_result else 0

            list_query = f'''
                SELECT * FROM {self.schema}.{self.campaigns_table}
                {where_clause}
                ORDER BY created_at DESC, campaign_id
                LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
            '''
            results = await self.db.query(list_query, params=params + [query.limit, query.offset])

            return [self._row_to_campaign(row) for row in results], total

        except Exception as e:
            logger.error(f"Error listing campaigns: {e}")
            raise CampaignStoreError("Failed to list campaigns") from e

    # ====================
    # Campaign Writes
    # ====================

    async def write_as_system(
        self, campaign: Campaign, expected_updated_at: Optional[datetime] = None
    ) -> Campaign:
        """Write a record without ownership checks (admins and creation)"""
        try:
            if expected_updated_at is None:
                return await self._upsert(campaign)
            return await self._conditional_update(campaign, expected_updated_at, owner_id=None)

        except CampaignServiceError:
            raise
        except Exception as e:
            logger.error(f"Error writing campaign {campaign.campaign_id} as system: {e}", exc_info=True)
            raise CampaignStoreError(f"Failed to write campaign {campaign.campaign_id}") from e

    async def write_as_user(
        self, actor: Actor, campaign: Campaign, expected_updated_at: Optional[datetime] = None
    ) -> Campaign:
        """Update a record owned by the actor"""
        if campaign.owner_id != actor.actor_id:
            raise CampaignNotFoundError(f"Campaign not found: {campaign.campaign_id}")
        try:
            return await self._conditional_update(campaign, expected_updated_at, owner_id=actor.actor_id)

        except CampaignServiceError:
            raise
        except Exception as e:
            logger.error(f"Error writing campaign {campaign.campaign_id} as {actor.actor_id}: {e}", exc_info=True)
            raise CampaignStoreError(f"Failed to write campaign {campaign.campaign_id}") from e

    async def _upsert(self, campaign: Campaign) -> Campaign:
        placeholders = ", ".join(
            f"${i}::jsonb" if column == "additional_fields" else f"${i}"
            for i, column in enumerate(_CAMPAIGN_COLUMNS, start=1)
        )
        updates = ", ".join(
            f"{column} = EXCLUDED.{column}"
            for column in _CAMPAIGN_COLUMNS
            if column not in _IMMUTABLE_COLUMNS
        )
        query = f'''
            INSERT INTO {self.schema}.{self.campaigns_table} ({", ".join(_CAMPAIGN_COLUMNS)})
            VALUES ({placeholders})
            ON CONFLICT (campaign_id) DO UPDATE SET {updates}
            RETURNING *
        '''
        row = await self.db.query_row(query, params=self._campaign_params(campaign))
        return self._row_to_campaign(row) if row else campaign

    async def _conditional_update(
        self,
        campaign: Campaign,
        expected_updated_at: Optional[datetime],
        owner_id: Optional[str],
    ) -> Campaign:
        values = dict(zip(_CAMPAIGN_COLUMNS, self._campaign_params(campaign)))
        mutable = [c for c in _CAMPAIGN_COLUMNS if c not in _IMMUTABLE_COLUMNS]

        params: List[Any] = [campaign.campaign_id]
        assignments = []
        for column in mutable:
            params.append(values[column])
            cast = "::jsonb" if column == "additional_fields" else ""
            assignments.append(f"{column} = ${len(params)}{cast}")

        conditions = ["campaign_id = $1"]
        if owner_id is not None:
            params.append(owner_id)
            conditions.append(f"owner_id = ${len(params)}")
        if expected_updated_at is not None:
            params.append(expected_updated_at)
            conditions.append(f"updated_at = ${len(params)}")

        query = f'''
            UPDATE {self.schema}.{self.campaigns_table}
            SET {", ".join(assignments)}
            WHERE {" AND ".join(conditions)}
            RETURNING *
        '''
        row = await self.db.query_row(query, params=params)
        if row:
            return self._row_to_campaign(row)

        # Nothing matched: distinguish a missing record from a lost race
        current = await self.get_campaign(campaign.campaign_id)
        if current is None or (owner_id is not None and current.owner_id != owner_id):
            raise CampaignNotFoundError(f"Campaign not found: {campaign.campaign_id}")

        logger.warning(
            f"Write conflict on campaign {campaign.campaign_id}: "
            f"expected updated_at {expected_updated_at}, found {current.updated_at}"
        )
        raise CampaignConflictError(
            f"Campaign {campaign.campaign_id} was modified concurrently",
            campaign_id=campaign.campaign_id,
        )

    # ====================
    # Config Entries
    # ====================

    async def get_config_entry(self, key: str) -> Optional[Any]:
        """Get a JSON config value by key"""
        try:
            query = f'''
                SELECT value FROM {self.schema}.{self.config_table}
                WHERE key = $1
            '''
            result = await self.db.query_row(query, params=[key])
            if not result:
                return None
            value = result.get("value")
            return json.loads(value) if isinstance(value, str) else value

        except Exception as e:
            logger.error(f"Error getting config entry {key}: {e}")
            raise CampaignStoreError(f"Failed to load config entry {key}") from e

    async def set_config_entry(self, key: str, value: Any) -> None:
        """Store a JSON config value"""
        try:
            query = f'''
                INSERT INTO {self.schema}.{self.config_table} (key, value, updated_at)
                VALUES ($1, $2::jsonb, $3)
                ON CONFLICT (key) DO UPDATE SET
                    value = EXCLUDED.value,
                    updated_at = EXCLUDED.updated_at
            '''
            await self.db.execute(query, params=[key, json_dumps(value), datetime.now(timezone.utc)])

        except Exception as e:
            logger.error(f"Error setting config entry {key}: {e}")
            raise CampaignStoreError(f"Failed to store config entry {key}") from e

    # ====================
    # Helper Methods
    # ====================

    def _campaign_params(self, campaign: Campaign) -> List[Any]:
        return [
            campaign.campaign_id,
            campaign.service_type,
            campaign.owner_id,
            campaign.status.value,
            campaign.rejection_reason,
            campaign.name,
            campaign.description,
            campaign.detailed_description,
            float(campaign.unit_price),
            campaign.deadline,
            campaign.logo,
            campaign.banner_image,
            json_dumps(campaign.additional_fields or {}),
            campaign.efficiency,
            campaign.min_quantity,
            campaign.created_at,
            campaign.updated_at,
        ]

    def _row_to_campaign(self, row: Dict[str, Any]) -> Campaign:
        """Convert database row to Campaign model"""
        additional_fields = row.get("additional_fields") or {}
        if isinstance(additional_fields, str):
            additional_fields = json.loads(additional_fields)

        raw_status = row.get("status")
        try:
            status = CampaignStatus(raw_status)
        except ValueError:
            # Legacy codes read as Pending, matching the label fallback
            logger.warning(f"Campaign {row.get('campaign_id')} has unknown status '{raw_status}'")
            status = CampaignStatus.PENDING

        # model_construct skips validation for rows written by older clients
        return Campaign.model_construct(
            campaign_id=row.get("campaign_id"),
            service_type=row.get("service_type"),
            owner_id=row.get("owner_id"),
            status=status,
            rejection_reason=row.get("rejection_reason"),
            name=row.get("name"),
            description=row.get("description"),
            detailed_description=row.get("detailed_description"),
            unit_price=float(row.get("unit_price") or 0),
            deadline=row.get("deadline"),
            logo=row.get("logo"),
            banner_image=row.get("banner_image"),
            additional_fields=additional_fields,
            efficiency=row.get("efficiency"),
            min_quantity=row.get("min_quantity"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


__all__ = ["CampaignRepository"]
