from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class OrderCreate(BaseModel):
    phone: Optional[str] = Field(default=None, description="Customer phone; generated when missing or 'unknown'")
    items: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Line items such as {name, price, quantity, status}, stored as sent",
    )
    name: Optional[str] = None
    address: Optional[str] = None
    caller_phone: Optional[str] = Field(default=None, description="Number captured from the inbound call")


class OrderCreated(BaseModel):
    message: str
    order: Dict[str, Any]


class StatsResponse(BaseModel):
    restaurant: str
    total_orders: int
    confirmed_orders: int
    delivered_orders: int
    revenue: Union[int, float]


class ClusterInfo(BaseModel):
    restaurant: str
    cluster: str
    databases: List[str]
    current_database: str
    collections: List[str]
