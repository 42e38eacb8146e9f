"""Domain models for rider orders, assignments and coordinates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class DeliveryClass(str, Enum):
    URGENT = "urgent"
    SCHEDULED = "scheduled"


class ProgressionState(str, Enum):
    COMPLETED = "completed"
    ACTIVE = "active"
    PENDING = "pending"


class SourceOrigin(str, Enum):
    SERVER_ASSIGNED = "server_assigned"
    LOCAL_HEURISTIC = "local_heuristic"


class TaskType(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


@dataclass(frozen=True, slots=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class StopCandidate:
    """A pending stop before sequencing, as reported by the dispatch backend.

    ``stop_order`` is only populated for stops that belong to a server route
    assignment. ``geo`` is None when the backend has no usable coordinates.
    """

    id: str
    shipment_id: Optional[str]
    tracking_ref: str
    recipient_name: str
    address: str
    geo: Optional[GeoPoint]
    scheduled_delivery_time: Optional[datetime]
    estimated_service_minutes: Optional[int]
    raw_status: str
    task_type: TaskType = TaskType.DELIVERY
    stop_order: Optional[int] = None


@dataclass(frozen=True, slots=True)
class RouteAssignment:
    """A dispatcher-authored route for one rider."""

    id: str
    status: str
    stops: tuple[StopCandidate, ...]
    distance_km: Optional[float] = None
    duration_min: Optional[float] = None


@dataclass(slots=True)
class DispatchSnapshot:
    """Inputs fetched for one refresh cycle.

    ``failures`` names the fetches that degraded (``"routes"``, ``"orders"``).
    """

    assignments: tuple[RouteAssignment, ...] = ()
    orders: tuple[StopCandidate, ...] = ()
    failures: tuple[str, ...] = field(default_factory=tuple)
