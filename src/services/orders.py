from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Dict, Iterator, List, Mapping, Optional

from pymongo import DESCENDING

from src.adapters.mongo_client import store_call

ORDERS_COLLECTION = "orders"
RESERVATIONS_COLLECTION = "reservations"

UNKNOWN_PHONE = "unknown"
ORDER_STATUS_CONFIRMED = "confirmed"
ORDER_TYPE_PHONE_ONLY = "phone_only"
PHONE_SOURCE_CALL = "extracted_from_call"
PHONE_SOURCE_CUSTOMER = "provided_by_customer"

_EXCLUDE_ID = {"_id": 0}


class OrdersAccessor:
    def __init__(self, collection) -> None:
        self._collection = collection

    def list_all(self) -> List[Dict[str, Any]]:
        with store_call("orders.find"):
            return list(self._collection.find({}, _EXCLUDE_ID))

    def iter_all(self) -> Iterator[Dict[str, Any]]:
        with store_call("orders.find"):
            yield from self._collection.find({})

    def count_where(self, query: Mapping[str, Any]) -> int:
        with store_call("orders.count_documents"):
            return self._collection.count_documents(dict(query))

    def insert(self, order: Mapping[str, Any]) -> None:
        # insert_one stamps _id onto the document it receives
        with store_call("orders.insert_one"):
            self._collection.insert_one(dict(order))

    def find_latest_by_phone(self, phone: str) -> Optional[Dict[str, Any]]:
        with store_call("orders.find_one"):
            return self._collection.find_one(
                {"phone": phone},
                _EXCLUDE_ID,
                sort=[("_id", DESCENDING)],
            )


class ReservationsAccessor:
    def __init__(self, collection) -> None:
        self._collection = collection

    def list_all(self) -> List[Dict[str, Any]]:
        with store_call("reservations.find"):
            return list(self._collection.find({}, _EXCLUDE_ID))


class RestaurantData:
    """Collection accessors scoped to one tenant database."""

    def __init__(self, database) -> None:
        self._database = database

    def orders(self) -> OrdersAccessor:
        return OrdersAccessor(self._database.get_collection(ORDERS_COLLECTION))

    def reservations(self) -> ReservationsAccessor:
        return ReservationsAccessor(self._database.get_collection(RESERVATIONS_COLLECTION))

    def collection_names(self) -> List[str]:
        with store_call("list_collection_names"):
            return self._database.list_collection_names()


def generated_phone(now: datetime) -> str:
    return f"call_{int(now.timestamp() * 1000)}"


def iso_timestamp(now: datetime) -> str:
    return now.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_order(payload: Mapping[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Build the document stored for a newly placed order."""
    now = now or datetime.now(UTC)
    phone = payload.get("phone")
    caller_phone = payload.get("caller_phone")

    order: Dict[str, Any] = {
        "phone": phone if phone and phone != UNKNOWN_PHONE else generated_phone(now),
        "items": list(payload.get("items") or []),
        "status": ORDER_STATUS_CONFIRMED,
        "created_at": iso_timestamp(now),
        "order_type": ORDER_TYPE_PHONE_ONLY,
    }
    for field in ("name", "address"):
        if payload.get(field):
            order[field] = payload[field]
    if caller_phone:
        order["caller_phone"] = caller_phone
        order["phone_source"] = PHONE_SOURCE_CALL
    else:
        order["phone_source"] = PHONE_SOURCE_CUSTOMER
    return order
