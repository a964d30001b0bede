from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Query

from src.app.config import Settings, get_settings
from src.adapters.mongo_client import MongoClusterRegistry
from src.services.tenants import DatabaseHandleCache, TenantDatabases, TenantResolver


@lru_cache(maxsize=1)
def get_cluster_registry() -> MongoClusterRegistry:
    settings = get_settings()
    return MongoClusterRegistry(
        settings.cluster_uris(),
        server_selection_timeout_ms=settings.mongo_server_selection_timeout_ms,
    )


@lru_cache(maxsize=1)
def get_tenant_resolver() -> TenantResolver:
    return TenantResolver()


@lru_cache(maxsize=1)
def _handle_cache_for(registry: MongoClusterRegistry) -> DatabaseHandleCache:
    return DatabaseHandleCache(registry)


def get_handle_cache(
    registry: MongoClusterRegistry = Depends(get_cluster_registry),
) -> DatabaseHandleCache:
    return _handle_cache_for(registry)


def get_restaurant(
    restaurant: str = Query(default="", description="Restaurant (tenant) name"),
    settings: Settings = Depends(get_settings),
) -> str:
    return restaurant or settings.default_restaurant


def get_tenant_databases(
    resolver: TenantResolver = Depends(get_tenant_resolver),
    cache: DatabaseHandleCache = Depends(get_handle_cache),
) -> TenantDatabases:
    return TenantDatabases(resolver=resolver, cache=cache)
