"""Route reconciliation service.

Builds a rider's route for one delivery class from two sources: a
dispatcher-authored route assignment, used as-is whenever it exists and has
stops, and a nearest-neighbour route computed locally from the rider's pending
orders otherwise. Every call recomputes the route from freshly fetched data;
nothing is cached between calls.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Optional, Protocol, Sequence

from ...config import settings
from ...data.dispatch_repository import parse_assignments, parse_orders
from ...models.domain import (
    DeliveryClass,
    DispatchSnapshot,
    GeoPoint,
    ProgressionState,
    RouteAssignment,
    SourceOrigin,
)
from ..geospatial import is_valid_point
from .classifier import classify
from .dispatch_client import DispatchClient
from .models import NavigationTarget, Route, RoutePlan, RouteStats, Stop
from .progression import resolve
from .projector import project
from .sequencer import sequence

logger = logging.getLogger(__name__)

URGENT_ASSIGNMENT_STATUSES = frozenset({"active"})
SCHEDULED_ASSIGNMENT_STATUSES = frozenset({"pending", "assigned", "draft"})


class DispatchSource(Protocol):
    def get_routes(self, rider_id: str, statuses: Sequence[str] | None = None) -> list[dict]: ...

    def get_active_orders(self, rider_id: str) -> list[dict]: ...


def default_origin() -> GeoPoint:
    return GeoPoint(settings.default_origin_latitude, settings.default_origin_longitude)


def _resolve_origin(origin: Optional[GeoPoint]) -> GeoPoint:
    return origin if is_valid_point(origin) else default_origin()


def _assignment_statuses(delivery_class: DeliveryClass) -> frozenset[str]:
    delivery_class = DeliveryClass(delivery_class)
    if delivery_class is DeliveryClass.URGENT:
        return URGENT_ASSIGNMENT_STATUSES
    return SCHEDULED_ASSIGNMENT_STATUSES


def select_assignment(
    assignments: Sequence[RouteAssignment],
    delivery_class: DeliveryClass,
) -> Optional[RouteAssignment]:
    """First assignment, in backend order, whose status belongs to ``delivery_class``."""

    statuses = _assignment_statuses(delivery_class)
    for assignment in assignments:
        if assignment.status in statuses:
            return assignment
    return None


def _guarded_fetch(name: str, fetch: Callable[[], Any]) -> tuple[str, Any]:
    try:
        return name, fetch()
    except Exception as e:
        logger.warning(f"Dispatch fetch '{name}' failed, degrading to empty input: {e}")
        return name, None


def fetch_snapshot(rider_id: str, *, source: Optional[DispatchSource] = None) -> DispatchSnapshot:
    """Fetch route assignments and the pending-order pool concurrently.

    Either fetch may fail on its own: a failed route fetch means "no
    assignment", a failed order fetch means an empty pool. Failures are
    reported in ``DispatchSnapshot.failures`` and never raised.
    """
    if source is None:
        try:
            source = DispatchClient()
        except ValueError as e:
            logger.warning(f"Dispatch client unavailable: {e}")
            return DispatchSnapshot(failures=("routes", "orders"))

    with ThreadPoolExecutor(max_workers=2) as executor:
        routes_future = executor.submit(
            _guarded_fetch, "routes", lambda: source.get_routes(rider_id, settings.assignable_statuses)
        )
        orders_future = executor.submit(_guarded_fetch, "orders", lambda: source.get_active_orders(rider_id))
        results = [routes_future.result(), orders_future.result()]

    failures: list[str] = []
    assignments: tuple[RouteAssignment, ...] = ()
    orders = ()
    for name, payload in results:
        if payload is None:
            failures.append(name)
            continue
        try:
            if not isinstance(payload, list):
                raise ValueError(f"expected a list, got {type(payload).__name__}")
            if name == "routes":
                assignments = parse_assignments(payload)
            else:
                orders = parse_orders(payload)
        except Exception as e:
            logger.warning(f"Could not parse dispatch '{name}' payload, degrading to empty input: {e}")
            failures.append(name)

    return DispatchSnapshot(assignments=assignments, orders=orders, failures=tuple(failures))


def compute_stats(
    stops: Sequence[Stop],
    *,
    distance_override: Optional[float] = None,
    duration_override: Optional[float] = None,
    buffer_minutes: Optional[int] = None,
) -> RouteStats:
    """Aggregate route totals.

    A dispatcher-provided distance (> 0.1 km) or duration (> 1 min) replaces the
    locally computed value; zero placeholders from the backend are ignored.
    """
    buffer = settings.inter_stop_buffer_minutes if buffer_minutes is None else buffer_minutes
    total_km = sum(stop.distance_from_previous_km for stop in stops)
    if distance_override is not None and distance_override > 0.1:
        total_km = distance_override

    total_minutes: float = sum(stop.service_minutes for stop in stops) + max(0, len(stops) - 1) * buffer
    if duration_override is not None and duration_override > 1:
        total_minutes = duration_override

    completed = sum(1 for stop in stops if stop.progression is ProgressionState.COMPLETED)
    return RouteStats(
        total_stops=len(stops),
        total_distance_km=round(total_km, 1),
        total_minutes=int(round(total_minutes)),
        completed_stops=completed,
        remaining_stops=len(stops) - completed,
    )


def build_route(
    snapshot: DispatchSnapshot,
    delivery_class: DeliveryClass,
    now: datetime,
    *,
    origin: Optional[GeoPoint] = None,
) -> Route:
    """Assemble the route for ``delivery_class`` from already fetched inputs."""

    delivery_class = DeliveryClass(delivery_class)
    start = _resolve_origin(origin)
    assignment = select_assignment(snapshot.assignments, delivery_class)

    if assignment is not None and assignment.stops:
        source_origin = SourceOrigin.SERVER_ASSIGNED
        projected = project(assignment.stops, delivery_class, source_origin, start=start, now=now)
    else:
        source_origin = SourceOrigin.LOCAL_HEURISTIC
        assignment = None
        candidates = classify(snapshot.orders, delivery_class, now)
        projected = project(sequence(candidates, start), delivery_class, source_origin, start=start, now=now)

    stops, active_index = resolve(projected)
    stats = compute_stats(
        stops,
        distance_override=assignment.distance_km if assignment else None,
        duration_override=assignment.duration_min if assignment else None,
    )
    logger.info(
        f"Built {delivery_class.value} route: origin={source_origin.value}, "
        f"stops={stats.total_stops}, completed={stats.completed_stops}, active_index={active_index}"
    )
    return Route(
        stops=stops,
        classification=delivery_class,
        origin=source_origin,
        stats=stats,
        active_index=active_index,
        assignment_id=assignment.id if assignment else None,
    )


def reconcile(
    rider_id: str,
    delivery_class: DeliveryClass,
    now: datetime,
    *,
    origin: Optional[GeoPoint] = None,
    source: Optional[DispatchSource] = None,
) -> Route:
    """Fetch fresh inputs and build the rider's route. Never raises on fetch failure."""

    snapshot = fetch_snapshot(rider_id, source=source)
    return build_route(snapshot, delivery_class, now, origin=origin)


def badge_counts(snapshot: DispatchSnapshot, now: datetime) -> dict[DeliveryClass, int]:
    """Stops per delivery class.

    An existing assignment's stop count wins, even when all of its stops are
    done; otherwise the classified raw orders are counted.
    """
    counts: dict[DeliveryClass, int] = {}
    for delivery_class in DeliveryClass:
        assignment = select_assignment(snapshot.assignments, delivery_class)
        if assignment is not None:
            counts[delivery_class] = len(assignment.stops)
        else:
            counts[delivery_class] = len(classify(snapshot.orders, delivery_class, now))
    return counts


def plan_for_rider(
    rider_id: str,
    delivery_class: DeliveryClass,
    now: datetime,
    *,
    origin: Optional[GeoPoint] = None,
    source: Optional[DispatchSource] = None,
) -> RoutePlan:
    """Route, badge counts and degraded fetches from a single refresh."""

    snapshot = fetch_snapshot(rider_id, source=source)
    route = build_route(snapshot, delivery_class, now, origin=origin)
    return RoutePlan(route=route, badges=badge_counts(snapshot, now), fetch_failures=snapshot.failures)


def _target_for(stop: Stop) -> NavigationTarget:
    if stop.geo is not None:
        query = f"{stop.geo.latitude},{stop.geo.longitude}"
        latitude, longitude = stop.geo.latitude, stop.geo.longitude
    else:
        query = stop.address
        latitude = longitude = None
    return NavigationTarget(
        stop_id=stop.id,
        label=stop.recipient,
        address=stop.address,
        latitude=latitude,
        longitude=longitude,
        query=query,
    )


def navigation_target(route: Route, stop_id: Optional[str] = None) -> Optional[NavigationTarget]:
    """Navigation data for ``stop_id``, or for the active stop when no id is given."""

    if stop_id is not None:
        for stop in route.stops:
            if stop.id == stop_id:
                return _target_for(stop)
        raise LookupError(f"Stop '{stop_id}' is not on the {route.classification.value} route.")
    if route.active_index is None:
        return None
    return _target_for(route.stops[route.active_index])


def route_waypoints(route: Route) -> list[NavigationTarget]:
    """Remaining stops in visiting order; the last entry is the final destination."""

    return [_target_for(stop) for stop in route.stops if stop.progression is not ProgressionState.COMPLETED]


def start_assigned_route(rider_id: str, *, source: Optional[Any] = None) -> RouteAssignment:
    """Ask the backend to start the rider's scheduled assignment."""

    source = source or DispatchClient()
    assignments = parse_assignments(source.get_routes(rider_id, settings.assignable_statuses))
    assignment = select_assignment(assignments, DeliveryClass.SCHEDULED)
    if assignment is None:
        raise LookupError(f"No assigned route found for rider '{rider_id}'.")
    source.start_route(rider_id, assignment.id)
    logger.info(f"Started route {assignment.id} for rider {rider_id}")
    return assignment


def complete_delivery(
    rider_id: str,
    shipment_id: str,
    *,
    cod_amount: Optional[float] = None,
    notes: Optional[str] = None,
    source: Optional[Any] = None,
) -> dict:
    """Forward a delivery completion to the backend; sent once, never retried."""
    source = source or DispatchClient()
    result = source.complete_delivery(rider_id, shipment_id, cod_amount=cod_amount, notes=notes)
    logger.info(f"Completed delivery of shipment {shipment_id} for rider {rider_id}")
    return result
