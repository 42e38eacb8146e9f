"""Serializers for routing outputs."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from ..routing.models import NavigationTarget, Route, RoutePlan, Stop


def stop_to_json(stop: Stop) -> dict:
    return {
        "id": stop.id,
        "shipment_id": stop.shipment_id,
        "tracking_ref": stop.tracking_ref,
        "recipient": stop.recipient,
        "address": stop.address,
        "latitude": stop.geo.latitude if stop.geo else None,
        "longitude": stop.geo.longitude if stop.geo else None,
        "distance_from_previous_km": round(stop.distance_from_previous_km, 3),
        "service_minutes": stop.service_minutes,
        "sequence_number": stop.sequence_number,
        "eta": stop.eta.isoformat(),
        "classification": stop.classification.value,
        "progression": stop.progression.value,
        "source_origin": stop.source_origin.value,
        "task_type": stop.task_type.value,
    }


def route_to_json(route: Route) -> dict:
    return {
        "classification": route.classification.value,
        "origin": route.origin.value,
        "assignment_id": route.assignment_id,
        "active_index": route.active_index,
        "stats": asdict(route.stats),
        "stops": [stop_to_json(stop) for stop in route.stops],
    }


def plan_to_json(plan: RoutePlan) -> dict:
    return {
        "route": route_to_json(plan.route),
        "badges": {delivery_class.value: count for delivery_class, count in plan.badges.items()},
        "fetch_failures": list(plan.fetch_failures),
    }


def target_to_json(target: Optional[NavigationTarget]) -> Optional[dict]:
    return asdict(target) if target is not None else None
