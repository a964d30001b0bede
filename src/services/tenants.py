from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional

from pymongo.database import Database

from src.adapters.mongo_client import MongoClusterRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantRoute:
    cluster_id: str
    database_name: str
    cluster_label: str


BHAWARCHI = TenantRoute(
    cluster_id="bhawarchi",
    database_name="bhawarchi",
    cluster_label="Bhawarchi (alcohal)",
)
BANSARI = TenantRoute(
    cluster_id="bansari",
    database_name="Bansari_Restaurant",
    cluster_label="Bansari (financials)",
)


class TenantResolver:
    """Maps a restaurant name to its cluster and database.

    Only ``bhawarchi`` (any casing) has its own route; every other value,
    including empty or missing names, falls back to the default tenant.
    """

    def __init__(self, default_route: TenantRoute = BANSARI) -> None:
        self._routes: Dict[str, TenantRoute] = {"bhawarchi": BHAWARCHI}
        self._default = default_route

    def resolve(self, tenant_identifier: Optional[str]) -> TenantRoute:
        route = self._routes.get((tenant_identifier or "").lower(), self._default)
        logger.info(
            "Routing to %s cluster, database: %s", route.cluster_id, route.database_name
        )
        return route


class DatabaseHandleCache:
    """Memoizes one database handle per tenant for the process lifetime."""

    def __init__(self, registry: MongoClusterRegistry) -> None:
        self._registry = registry
        self._handles: Dict[str, Database] = {}
        self._lock = threading.Lock()

    @staticmethod
    def cache_key(tenant_identifier: str, database_name: str) -> str:
        return f"{tenant_identifier}_{database_name}"

    def handle_for(self, tenant_identifier: str, cluster_id: str, database_name: str) -> Database:
        key = self.cache_key(tenant_identifier, database_name)
        handle = self._handles.get(key)
        if handle is not None:
            return handle
        with self._lock:
            handle = self._handles.get(key)
            if handle is None:
                client = self._registry.connection_for(cluster_id)
                handle = client.get_database(database_name)
                self._handles[key] = handle
                logger.info("Created new DB handle for %s", key)
        return handle

    def __contains__(self, key: object) -> bool:
        return key in self._handles

    def __len__(self) -> int:
        return len(self._handles)


class TenantDatabases:
    """Resolves a tenant name straight to its cached database handle."""

    def __init__(self, resolver: TenantResolver, cache: DatabaseHandleCache) -> None:
        self.resolver = resolver
        self.cache = cache

    def route_for(self, tenant_identifier: Optional[str]) -> TenantRoute:
        return self.resolver.resolve(tenant_identifier)

    def database_for(self, tenant_identifier: Optional[str]) -> Database:
        route = self.resolver.resolve(tenant_identifier)
        return self.cache.handle_for(tenant_identifier or "", route.cluster_id, route.database_name)
