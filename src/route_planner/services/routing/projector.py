"""Projection of sequenced candidates into normalized stops with synthetic ETAs."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import (
    DeliveryClass,
    GeoPoint,
    ProgressionState,
    SourceOrigin,
    StopCandidate,
)
from ..geospatial import distance_km, is_valid_point
from .models import Stop

COMPLETED_STATUSES = frozenset({"delivered", "completed"})


def seed_progression(raw_status: str) -> ProgressionState:
    """Provisional state before resolution: terminal statuses are completed, all else pending."""

    if (raw_status or "").strip().lower() in COMPLETED_STATUSES:
        return ProgressionState.COMPLETED
    return ProgressionState.PENDING


def project(
    sequenced: Sequence[StopCandidate],
    delivery_class: DeliveryClass,
    source_origin: SourceOrigin,
    *,
    start: GeoPoint,
    now: datetime,
    service_minutes: Optional[int] = None,
    buffer_minutes: Optional[int] = None,
) -> list[Stop]:
    """Convert candidates into ``Stop`` records.

    Local-heuristic input is taken in the order given (already sequenced).
    Server-assigned input is ordered by the dispatcher's ``stop_order`` and is
    never re-sequenced here.
    """
    default_service = settings.default_service_minutes if service_minutes is None else service_minutes
    buffer = settings.inter_stop_buffer_minutes if buffer_minutes is None else buffer_minutes

    source_origin = SourceOrigin(source_origin)
    if source_origin is SourceOrigin.SERVER_ASSIGNED:
        ordered = _order_assigned(sequenced)
    else:
        ordered = list(sequenced)

    stops: list[Stop] = []
    position = start
    cumulative_minutes = 0
    for index, candidate in enumerate(ordered):
        if is_valid_point(candidate.geo):
            step_km = distance_km(position, candidate.geo)
            position = candidate.geo
        else:
            step_km = 0.0

        minutes = candidate.estimated_service_minutes
        if minutes is None or minutes < 0:
            minutes = default_service
        cumulative_minutes += minutes + (buffer if index > 0 else 0)

        stops.append(
            Stop(
                id=candidate.id,
                shipment_id=candidate.shipment_id,
                tracking_ref=candidate.tracking_ref,
                recipient=candidate.recipient_name,
                address=candidate.address,
                geo=candidate.geo if is_valid_point(candidate.geo) else None,
                distance_from_previous_km=step_km,
                service_minutes=minutes,
                sequence_number=index + 1,
                eta=now + timedelta(minutes=cumulative_minutes),
                classification=delivery_class,
                progression=seed_progression(candidate.raw_status),
                source_origin=source_origin,
                task_type=candidate.task_type,
            )
        )
    return stops


def _order_assigned(candidates: Sequence[StopCandidate]) -> list[StopCandidate]:
    # Stops the dispatcher did not number keep their position after the numbered ones.
    indexed = list(enumerate(candidates))
    indexed.sort(
        key=lambda item: (
            item[1].stop_order is None,
            item[1].stop_order if item[1].stop_order is not None else 0,
            item[0],
        )
    )
    return [candidate for _, candidate in indexed]
