#!/usr/bin/env python3
"""Infrastructure services configuration

Endpoints for the infrastructure the marketplace talks to with native drivers.
"""
import os
from dataclasses import dataclass
from typing import List, Optional

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class InfraConfig:
    """Infrastructure service endpoints"""

    # ===========================================
    # PostgreSQL (native asyncpg - port 5432)
    # ===========================================
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "marketplace"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_min_pool: int = 1
    postgres_max_pool: int = 10

    # ===========================================
    # NATS (native - port 4222)
    # ===========================================
    nats_host: str = "localhost"
    nats_port: int = 4222
    nats_url: Optional[str] = None

    @property
    def postgres_dsn(self) -> str:
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def nats_servers(self) -> List[str]:
        if self.nats_url:
            return [url.strip() for url in self.nats_url.split(",") if url.strip()]
        return [f"nats://{self.nats_host}:{self.nats_port}"]

    @classmethod
    def from_env(cls) -> 'InfraConfig':
        """Load infrastructure config from environment"""
        return cls(
            # PostgreSQL
            postgres_host=os.getenv("POSTGRES_HOST", "localhost"),
            postgres_port=_int(os.getenv("POSTGRES_PORT", "5432"), 5432),
            postgres_db=os.getenv("POSTGRES_DB", "marketplace"),
            postgres_user=os.getenv("POSTGRES_USER", "postgres"),
            postgres_password=os.getenv("POSTGRES_PASSWORD", "postgres"),
            postgres_min_pool=_int(os.getenv("POSTGRES_MIN_POOL", "1"), 1),
            postgres_max_pool=_int(os.getenv("POSTGRES_MAX_POOL", "10"), 10),

            # NATS
            nats_host=os.getenv("NATS_HOST", "localhost"),
            nats_port=_int(os.getenv("NATS_PORT", "4222"), 4222),
            nats_url=os.getenv("NATS_URL"),
        )
