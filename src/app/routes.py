from __future__ import annotations

import logging
from typing import Any

from bson import ObjectId
from bson.decimal128 import Decimal128
from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from src.adapters.mongo_client import MongoClusterRegistry
from src.app.config import Settings
from src.app.dependencies import (
    get_cluster_registry,
    get_restaurant,
    get_settings,
    get_tenant_databases,
)
from src.schemas.orders import ClusterInfo, OrderCreate, OrderCreated, StatsResponse
from src.services.orders import RestaurantData, build_order
from src.services.stats import compute_stats
from src.services.tenants import TenantDatabases

logger = logging.getLogger(__name__)

router = APIRouter()

BSON_ENCODERS = {ObjectId: str, Decimal128: str}


def _encode(documents: Any) -> Any:
    """Make stored documents JSON-safe, rendering BSON-only values as strings."""
    return jsonable_encoder(documents, custom_encoder=BSON_ENCODERS)


def _error(message: str, details: str | None = None) -> JSONResponse:
    content = {"error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


@router.get("/health", status_code=status.HTTP_200_OK)
def health(settings: Settings = Depends(get_settings)) -> dict:
    return {"app": settings.app_name, "status": "ok"}


@router.get("/api/orders")
def list_orders(
    restaurant: str = Depends(get_restaurant),
    tenants: TenantDatabases = Depends(get_tenant_databases),
):
    logger.info("Fetching orders for restaurant: %s", restaurant)
    try:
        orders = _encode(RestaurantData(tenants.database_for(restaurant)).orders().list_all())
    except Exception as exc:
        logger.exception("Error fetching orders for %s", restaurant)
        return _error("Failed to fetch orders", str(exc))
    logger.info("Found %d orders for %s", len(orders), restaurant)
    return orders


@router.get("/api/reservations")
def list_reservations(
    restaurant: str = Depends(get_restaurant),
    tenants: TenantDatabases = Depends(get_tenant_databases),
):
    try:
        return _encode(RestaurantData(tenants.database_for(restaurant)).reservations().list_all())
    except Exception:
        logger.exception("Error fetching reservations for %s", restaurant)
        return _error("Failed to fetch reservations")


@router.get("/api/stats", response_model=StatsResponse)
def stats(
    restaurant: str = Depends(get_restaurant),
    tenants: TenantDatabases = Depends(get_tenant_databases),
):
    logger.info("Fetching stats for restaurant: %s", restaurant)
    try:
        computed = compute_stats(RestaurantData(tenants.database_for(restaurant)).orders())
    except Exception as exc:
        logger.exception("Error fetching stats for %s", restaurant)
        return _error("Failed to fetch stats", str(exc))
    return StatsResponse(restaurant=restaurant, **computed.as_dict())


@router.post("/api/orders", response_model=OrderCreated)
def create_order(
    payload: OrderCreate,
    restaurant: str = Depends(get_restaurant),
    tenants: TenantDatabases = Depends(get_tenant_databases),
):
    order = build_order(payload.model_dump(exclude_unset=True))
    try:
        RestaurantData(tenants.database_for(restaurant)).orders().insert(order)
    except Exception:
        logger.exception("Error creating order for %s", restaurant)
        return _error("Failed to create order")
    logger.info("Created order for %s with phone %s", restaurant, order["phone"])
    return OrderCreated(message="Order created successfully", order=order)


@router.get("/api/orders/{phone}")
def latest_order_by_phone(
    phone: str,
    restaurant: str = Depends(get_restaurant),
    tenants: TenantDatabases = Depends(get_tenant_databases),
):
    try:
        order = _encode(
            RestaurantData(tenants.database_for(restaurant)).orders().find_latest_by_phone(phone)
        )
    except Exception:
        logger.exception("Error fetching order for phone %s", phone)
        return _error("Failed to fetch order")
    if order is None:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": "Order not found"})
    return order


@router.get("/api/debug/cluster-info", response_model=ClusterInfo)
def cluster_info(
    restaurant: str = Depends(get_restaurant),
    tenants: TenantDatabases = Depends(get_tenant_databases),
    registry: MongoClusterRegistry = Depends(get_cluster_registry),
):
    route = tenants.route_for(restaurant)
    try:
        databases = registry.database_names(route.cluster_id)
        collections = RestaurantData(tenants.database_for(restaurant)).collection_names()
    except Exception as exc:
        logger.exception("Error fetching cluster info for %s", restaurant)
        return _error("Failed to fetch cluster info", str(exc))
    return ClusterInfo(
        restaurant=restaurant,
        cluster=route.cluster_label,
        databases=databases,
        current_database=route.database_name,
        collections=collections,
    )
