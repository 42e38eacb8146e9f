"""Routing request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class StopModel(BaseModel):
    id: str
    shipment_id: Optional[str] = None
    tracking_ref: str
    recipient: str
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_from_previous_km: float
    service_minutes: int
    sequence_number: int
    eta: datetime
    classification: str
    progression: str
    source_origin: str
    task_type: str


class RouteStatsModel(BaseModel):
    total_stops: int
    total_distance_km: float
    total_minutes: int
    completed_stops: int
    remaining_stops: int


class RouteModel(BaseModel):
    classification: str
    origin: str
    assignment_id: Optional[str] = None
    active_index: Optional[int] = None
    stats: RouteStatsModel
    stops: List[StopModel]


class RoutePlanResponse(BaseModel):
    route: RouteModel
    badges: Dict[str, int]
    fetch_failures: List[str] = Field(
        default_factory=list,
        description="Dispatch fetches that failed and were degraded to empty input.",
    )


class NavigationTargetModel(BaseModel):
    stop_id: str
    label: str
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    query: str


class NavigationResponse(BaseModel):
    target: Optional[NavigationTargetModel] = None
    waypoints: List[NavigationTargetModel]


class CompleteDeliveryRequest(BaseModel):
    shipment_id: str
    cod_amount: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
