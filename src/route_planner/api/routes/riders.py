"""Rider route endpoints."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from ...models.domain import DeliveryClass, GeoPoint
from ...schemas.routing import (
    CompleteDeliveryRequest,
    NavigationResponse,
    RoutePlanResponse,
)
from ...services.outputs.routing_formatter import plan_to_json, route_to_json, target_to_json
from ...services.routing import service as routing_service

router = APIRouter(prefix="/riders", tags=["riders"])


def _now(value: Optional[datetime]) -> datetime:
    return value if value is not None else datetime.now().astimezone()


def _origin(lat: Optional[float], lng: Optional[float]) -> Optional[GeoPoint]:
    if lat is None or lng is None:
        return None
    return GeoPoint(latitude=lat, longitude=lng)


@router.get("/{rider_id}/route", response_model=RoutePlanResponse, status_code=status.HTTP_200_OK)
def get_route(
    rider_id: str,
    delivery_class: DeliveryClass = Query(default=DeliveryClass.URGENT),
    lat: Optional[float] = Query(default=None, ge=-90, le=90, description="Rider latitude"),
    lng: Optional[float] = Query(default=None, ge=-180, le=180, description="Rider longitude"),
    now: Optional[datetime] = Query(default=None, description="Reference time; defaults to server time"),
) -> RoutePlanResponse:
    """Reconciled route for one delivery class plus badge counts for every class."""
    plan = routing_service.plan_for_rider(rider_id, delivery_class, _now(now), origin=_origin(lat, lng))
    return RoutePlanResponse.model_validate(plan_to_json(plan))


@router.get("/{rider_id}/badges", status_code=status.HTTP_200_OK)
def get_badges(
    rider_id: str,
    now: Optional[datetime] = Query(default=None),
) -> dict:
    snapshot = routing_service.fetch_snapshot(rider_id)
    counts = routing_service.badge_counts(snapshot, _now(now))
    return {delivery_class.value: count for delivery_class, count in counts.items()}


@router.get("/{rider_id}/navigation", response_model=NavigationResponse, status_code=status.HTTP_200_OK)
def get_navigation(
    rider_id: str,
    delivery_class: DeliveryClass = Query(default=DeliveryClass.URGENT),
    stop_id: Optional[str] = Query(default=None),
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    now: Optional[datetime] = Query(default=None),
) -> NavigationResponse:
    """Navigation target for the active (or requested) stop and the remaining waypoints."""
    route = routing_service.reconcile(rider_id, delivery_class, _now(now), origin=_origin(lat, lng))
    try:
        target = routing_service.navigation_target(route, stop_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return NavigationResponse(
        target=target_to_json(target),
        waypoints=[target_to_json(waypoint) for waypoint in routing_service.route_waypoints(route)],
    )


@router.post("/{rider_id}/route/start", status_code=status.HTTP_200_OK)
def start_route(rider_id: str) -> dict:
    """Start the rider's scheduled assignment and return the refreshed urgent route."""
    try:
        assignment = routing_service.start_assigned_route(rider_id)
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ConnectionError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error starting route for rider {rider_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to start route: {str(exc)}",
        ) from exc

    route = routing_service.reconcile(rider_id, DeliveryClass.URGENT, datetime.now().astimezone())
    return {"started_route_id": assignment.id, "route": route_to_json(route)}


@router.post("/{rider_id}/deliveries/complete", status_code=status.HTTP_200_OK)
def complete_delivery(rider_id: str, payload: CompleteDeliveryRequest) -> dict:
    try:
        result = routing_service.complete_delivery(
            rider_id,
            payload.shipment_id,
            cod_amount=payload.cod_amount,
            notes=payload.notes,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ConnectionError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error completing delivery {payload.shipment_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to complete delivery: {str(exc)}",
        ) from exc
    return {"success": True, "shipment_id": payload.shipment_id, "dispatch": result}
