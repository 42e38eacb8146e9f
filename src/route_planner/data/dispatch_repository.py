"""Conversion of dispatch backend payloads into domain candidates and assignments."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from ..models.domain import GeoPoint, RouteAssignment, StopCandidate, TaskType
from ..schemas.dispatch import OrderRecord, RouteAssignmentRecord, RouteStopRecord, ShipmentRecord
from ..services.geospatial import is_valid_point
from ..services.routing.projector import COMPLETED_STATUSES

logger = logging.getLogger(__name__)

DELIVERY_LEG_STATUSES = frozenset({"picked_up", "in_transit"})
PICKUP_LEG_STATUSES = frozenset({"assigned", "pending"})


def _first_point(*pairs: tuple[Optional[float], Optional[float]]) -> Optional[GeoPoint]:
    # A zero-zero pair is the backend's unset placeholder; a single zero is a real coordinate.
    for latitude, longitude in pairs:
        if latitude is None or longitude is None:
            continue
        point = GeoPoint(latitude=latitude, longitude=longitude)
        if is_valid_point(point):
            return point
    return None


def _first_text(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None


def _infer_task_type(explicit: Optional[str], shipment_status: Optional[str]) -> TaskType:
    if explicit:
        try:
            return TaskType(explicit.strip().lower())
        except ValueError:
            logger.debug(f"Ignoring unknown stop type '{explicit}'")
    status = (shipment_status or "").lower()
    if status in DELIVERY_LEG_STATUSES:
        return TaskType.DELIVERY
    if status in PICKUP_LEG_STATUSES:
        return TaskType.PICKUP
    return TaskType.DELIVERY


def _service_minutes(value: Any) -> Optional[int]:
    """Numeric estimates are durations in minutes; timestamps carry no duration."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return None
    return None


def _locate(
    task_type: TaskType,
    shipment: ShipmentRecord,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    location: Optional[str] = None,
) -> tuple[Optional[GeoPoint], str]:
    if task_type is TaskType.PICKUP:
        leg = (shipment.pickup_latitude, shipment.pickup_longitude)
        address = _first_text(location, shipment.pickup_address)
    else:
        leg = (shipment.delivery_latitude, shipment.delivery_longitude)
        address = _first_text(location, shipment.delivery_address, shipment.address)

    geo = _first_point((latitude, longitude), leg, (shipment.latitude, shipment.longitude))
    address = address or _first_text(shipment.address) or ""
    return geo, address


def order_to_candidate(record: OrderRecord, position: int) -> StopCandidate:
    shipment = record.shipment or record
    task_type = _infer_task_type(None, shipment.status)
    geo, address = _locate(task_type, shipment)
    shipment_id = shipment.id or record.id
    return StopCandidate(
        id=record.id or f"{shipment_id or 'unknown'}-{task_type.value}-{position}",
        shipment_id=shipment_id,
        tracking_ref=shipment.tracking_number or "",
        recipient_name=shipment.recipient_name or "Customer",
        address=address,
        geo=geo,
        scheduled_delivery_time=shipment.scheduled_delivery_time or record.scheduled_delivery_time,
        estimated_service_minutes=_service_minutes(shipment.estimated_delivery_time),
        raw_status=shipment.status or "",
        task_type=task_type,
    )


def stop_to_candidate(record: RouteStopRecord, position: int) -> StopCandidate:
    shipment = record.shipment or ShipmentRecord()
    task_type = _infer_task_type(record.type, shipment.status)
    geo, address = _locate(task_type, shipment, record.latitude, record.longitude, record.location)
    shipment_id = shipment.id or record.shipment_id

    # A delivered shipment wins over a stale stop status.
    shipment_status = (shipment.status or "").lower()
    raw_status = shipment_status if shipment_status in COMPLETED_STATUSES else (record.status or shipment_status)

    return StopCandidate(
        id=record.id or f"{shipment_id or 'unknown'}-{task_type.value}-{position}",
        shipment_id=shipment_id,
        tracking_ref=shipment.tracking_number or "",
        recipient_name=shipment.recipient_name or "Customer",
        address=address,
        geo=geo,
        scheduled_delivery_time=shipment.scheduled_delivery_time,
        estimated_service_minutes=_service_minutes(shipment.estimated_delivery_time),
        raw_status=raw_status,
        task_type=task_type,
        stop_order=record.order if record.order is not None else position,
    )


def parse_orders(items: Iterable[Any]) -> tuple[StopCandidate, ...]:
    """Parse the active-order pool, skipping rows that fail validation."""

    candidates: list[StopCandidate] = []
    for position, item in enumerate(items, start=1):
        try:
            record = OrderRecord.model_validate(item)
        except ValidationError as exc:
            logger.warning(f"Skipping invalid order record at position {position}: {exc}")
            continue
        candidates.append(order_to_candidate(record, position))
    return tuple(candidates)


def dedupe_stops(candidates: Iterable[StopCandidate]) -> list[StopCandidate]:
    """Drop repeated stops for the same shipment, task and location; first occurrence wins."""

    seen: set[tuple[Optional[str], TaskType, str]] = set()
    unique: list[StopCandidate] = []
    for candidate in candidates:
        key = (candidate.shipment_id, candidate.task_type, candidate.address)
        if candidate.shipment_id is not None and key in seen:
            logger.warning(f"Dropping duplicate route stop {candidate.id} for shipment {candidate.shipment_id}")
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def parse_assignments(items: Iterable[Any]) -> tuple[RouteAssignment, ...]:
    """Parse route assignments, skipping malformed routes."""

    assignments: list[RouteAssignment] = []
    for item in items:
        try:
            record = RouteAssignmentRecord.model_validate(item)
        except ValidationError as exc:
            logger.warning(f"Skipping invalid route assignment: {exc}")
            continue
        stops = dedupe_stops(
            stop_to_candidate(stop, position) for position, stop in enumerate(record.stops, start=1)
        )
        assignments.append(
            RouteAssignment(
                id=record.id,
                status=record.status.strip().lower(),
                stops=tuple(stops),
                distance_km=record.distance_km,
                duration_min=record.duration_min,
            )
        )
    return tuple(assignments)
