"""
PostgreSQL Client Wrapper

Centralized PostgreSQL access on top of an asyncpg connection pool.
Provides configuration integration and a consistent database access pattern.

Usage:
    from core.postgres_client import get_postgres_client

    # Get client instance
    db = await get_postgres_client("campaign_service")

    # Execute queries
    rows = await db.query("SELECT * FROM campaign.campaigns WHERE owner_id = $1", [owner_id])
"""

import logging
from typing import Any, Dict, List, Optional

import asyncpg

from core.config import InfraConfig, get_settings

logger = logging.getLogger(__name__)


class PostgresClientWrapper:
    """
    PostgreSQL client wrapper around an asyncpg pool.

    Provides:
    - Lazy pool creation from InfraConfig
    - Rows returned as plain dicts
    - Environment variable fallbacks through core.config
    """

    def __init__(
        self,
        service_name: str,
        config: Optional[InfraConfig] = None,
        dsn: Optional[str] = None,
    ):
        """
        Initialize PostgreSQL client wrapper.

        Args:
            service_name: Name of the service using this client
            config: Infrastructure config (defaults to global settings)
            dsn: Explicit DSN, overrides config
        """
        self.service_name = service_name
        self.config = config or get_settings().infrastructure
        self.dsn = dsn or self.config.postgres_dsn
        self._pool: Optional[asyncpg.Pool] = None

        logger.info(
            f"PostgreSQL client initialized for {service_name}: "
            f"{self.config.postgres_host}:{self.config.postgres_port}/{self.config.postgres_db}"
        )

    async def connect(self) -> asyncpg.Pool:
        """Create the connection pool if needed"""
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                dsn=self.dsn,
                min_size=self.config.postgres_min_pool,
                max_size=self.config.postgres_max_pool,
                server_settings={"application_name": self.service_name},
            )
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def health_check(self) -> bool:
        """Check database health"""
        try:
            row = await self.query_row("SELECT 1 AS healthy")
            return row is not None
        except Exception as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return False

    async def query(self, sql: str, params: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        pool = await self.connect()
        async with pool.acquire() as conn:
            rows = await conn.fetch(sql, *(params or []))
        return [dict(row) for row in rows]

    async def query_row(self, sql: str, params: Optional[List[Any]] = None) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        pool = await self.connect()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(sql, *(params or []))
        return dict(row) if row else None

    async def execute(self, sql: str, params: Optional[List[Any]] = None) -> str:
        """Execute SQL statement and return the status tag"""
        pool = await self.connect()
        async with pool.acquire() as conn:
            return await conn.execute(sql, *(params or []))

    async def close(self):
        """Close connection pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info(f"PostgreSQL pool closed for {self.service_name}")


# Singleton instances per service
_postgres_clients: Dict[str, PostgresClientWrapper] = {}


async def get_postgres_client(
    service_name: str,
    config: Optional[InfraConfig] = None,
    dsn: Optional[str] = None,
) -> PostgresClientWrapper:
    """
    Get or create PostgreSQL client for a service.

    Args:
        service_name: Service name
        config: Optional infrastructure config override
        dsn: Optional DSN override

    Returns:
        PostgresClientWrapper instance
    """
    global _postgres_clients

    if service_name not in _postgres_clients:
        _postgres_clients[service_name] = PostgresClientWrapper(
            service_name=service_name,
            config=config,
            dsn=dsn,
        )

    return _postgres_clients[service_name]
