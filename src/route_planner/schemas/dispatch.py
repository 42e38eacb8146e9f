"""Payload schemas for the shipment/dispatch backend.

The backend is inconsistent about field casing, so every field accepts both
its camelCase and snake_case spelling.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class _DispatchModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ShipmentRecord(_DispatchModel):
    id: Optional[str] = None
    tracking_number: Optional[str] = Field(None, validation_alias=_alias("trackingNumber", "tracking_number"))
    status: Optional[str] = None
    recipient_name: Optional[str] = Field(None, validation_alias=_alias("recipientName", "recipient_name"))
    address: Optional[str] = None
    pickup_address: Optional[str] = Field(None, validation_alias=_alias("pickupAddress", "pickup_address"))
    delivery_address: Optional[str] = Field(None, validation_alias=_alias("deliveryAddress", "delivery_address"))
    pickup_latitude: Optional[float] = Field(None, validation_alias=_alias("pickupLatitude", "pickup_latitude"))
    pickup_longitude: Optional[float] = Field(None, validation_alias=_alias("pickupLongitude", "pickup_longitude"))
    delivery_latitude: Optional[float] = Field(
        None, validation_alias=_alias("deliveryLatitude", "delivery_latitude")
    )
    delivery_longitude: Optional[float] = Field(
        None, validation_alias=_alias("deliveryLongitude", "delivery_longitude")
    )
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    scheduled_delivery_time: Optional[datetime] = Field(
        None, validation_alias=_alias("scheduledDeliveryTime", "scheduled_delivery_time")
    )
    # Either a duration in minutes or an ISO timestamp, depending on the producer.
    estimated_delivery_time: Optional[Any] = Field(
        None, validation_alias=_alias("estimatedDeliveryTime", "estimated_delivery_time", "estimatedTime")
    )


class OrderRecord(ShipmentRecord):
    """An entry of the rider's active-order pool; some producers nest the shipment."""

    shipment: Optional[ShipmentRecord] = None


class RouteStopRecord(_DispatchModel):
    id: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    order: Optional[int] = Field(None, validation_alias=_alias("order", "stopOrder", "stop_order"))
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    shipment_id: Optional[str] = Field(None, validation_alias=_alias("shipmentId", "shipment_id"))
    shipment: Optional[ShipmentRecord] = None


class RouteAssignmentRecord(_DispatchModel):
    id: str
    name: Optional[str] = None
    status: str
    distance_km: Optional[float] = Field(None, validation_alias=_alias("distanceKm", "distance_km", "distance"))
    duration_min: Optional[float] = Field(None, validation_alias=_alias("durationMin", "duration_min", "duration"))
    stops: List[RouteStopRecord] = Field(default_factory=list)

    @field_validator("stops", mode="before")
    @classmethod
    def _null_stops(cls, value: Any) -> Any:
        return [] if value is None else value
