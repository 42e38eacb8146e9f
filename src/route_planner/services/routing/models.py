"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ...models.domain import (
    DeliveryClass,
    GeoPoint,
    ProgressionState,
    SourceOrigin,
    TaskType,
)


@dataclass(slots=True)
class Stop:
    id: str
    shipment_id: Optional[str]
    tracking_ref: str
    recipient: str
    address: str
    geo: Optional[GeoPoint]
    distance_from_previous_km: float
    service_minutes: int
    sequence_number: int
    eta: datetime
    classification: DeliveryClass
    progression: ProgressionState
    source_origin: SourceOrigin
    task_type: TaskType


@dataclass(slots=True)
class RouteStats:
    total_stops: int
    total_distance_km: float
    total_minutes: int
    completed_stops: int
    remaining_stops: int


@dataclass(slots=True)
class Route:
    stops: List[Stop]
    classification: DeliveryClass
    origin: SourceOrigin
    stats: RouteStats
    active_index: Optional[int] = None
    assignment_id: Optional[str] = None


@dataclass(slots=True)
class RoutePlan:
    """A reconciled route together with the per-class badge counts."""

    route: Route
    badges: dict[DeliveryClass, int]
    fetch_failures: tuple[str, ...]


@dataclass(slots=True)
class NavigationTarget:
    stop_id: str
    label: str
    address: str
    latitude: Optional[float]
    longitude: Optional[float]
    query: str
