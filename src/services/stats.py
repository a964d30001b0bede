from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from bson.decimal128 import Decimal128

from src.services.orders import OrdersAccessor

logger = logging.getLogger(__name__)

DEFAULT_ITEM_PRICE = 0
DEFAULT_ITEM_QUANTITY = 1

CONFIRMED_ITEMS = {"items.status": "confirmed"}
DELIVERED_ITEMS = {"items.status": "delivered"}


@dataclass
class OrderStats:
    total_orders: int
    confirmed_orders: int
    delivered_orders: int
    revenue: Union[int, float]

    def as_dict(self) -> dict:
        return asdict(self)


def as_number(value: Any, default: Union[int, float]) -> Optional[Union[int, float]]:
    """Numeric value of a stored field, ``default`` when empty, None when not a number."""
    if not value:
        return default
    if isinstance(value, Decimal128):
        value = value.to_decimal()
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        for parse in (int, float):
            try:
                return parse(value.strip())
            except ValueError:
                continue
    return None


def order_total(order: Mapping[str, Any]) -> Union[int, float]:
    items = order.get("items")
    if not isinstance(items, list):
        return 0
    total = 0
    for item in items:
        if not isinstance(item, Mapping):
            continue
        price = as_number(item.get("price"), DEFAULT_ITEM_PRICE)
        quantity = as_number(item.get("quantity"), DEFAULT_ITEM_QUANTITY)
        # items with non-numeric price or quantity add nothing
        if price is None or quantity is None:
            continue
        total += price * quantity
    return total


def total_revenue(orders: Iterable[Mapping[str, Any]]) -> Union[int, float]:
    return sum((order_total(order) for order in orders), 0)


def compute_stats(orders: OrdersAccessor) -> OrderStats:
    """Count orders by item status and sum revenue over every order.

    The counts look at item-level ``status`` values, not the order's own
    ``status`` field.
    """
    stats = OrderStats(
        total_orders=orders.count_where({}),
        confirmed_orders=orders.count_where(CONFIRMED_ITEMS),
        delivered_orders=orders.count_where(DELIVERED_ITEMS),
        revenue=total_revenue(orders.iter_all()),
    )
    logger.info("Computed stats: %s total orders, revenue: %s", stats.total_orders, stats.revenue)
    return stats
