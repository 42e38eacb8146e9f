"""Urgent / scheduled partitioning of a rider's pending orders."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Sequence

from ...models.domain import DeliveryClass, StopCandidate


def next_day_boundary(now: datetime) -> datetime:
    """Local midnight that starts the calendar day after ``now``."""

    tomorrow = (now + timedelta(days=1)).date()
    return datetime.combine(tomorrow, time.min, tzinfo=now.tzinfo)


def _align(timestamp: datetime, now: datetime) -> datetime:
    # Naive timestamps are read in now's zone; aware ones are shifted into it.
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=now.tzinfo)
    if now.tzinfo is None:
        return timestamp.astimezone().replace(tzinfo=None)
    return timestamp.astimezone(now.tzinfo)


def classify_candidate(candidate: StopCandidate, now: datetime) -> DeliveryClass:
    """Urgent unless the scheduled time falls on or after the next local midnight."""
    if candidate.scheduled_delivery_time is None:
        return DeliveryClass.URGENT
    scheduled = _align(candidate.scheduled_delivery_time, now)
    if scheduled >= next_day_boundary(now):
        return DeliveryClass.SCHEDULED
    return DeliveryClass.URGENT


def classify(
    candidates: Sequence[StopCandidate],
    delivery_class: DeliveryClass,
    now: datetime,
) -> list[StopCandidate]:
    """Keep the candidates whose delivery class equals ``delivery_class``, in input order."""

    # Raises ValueError for anything that is not a known class.
    delivery_class = DeliveryClass(delivery_class)
    return [candidate for candidate in candidates if classify_candidate(candidate, now) == delivery_class]
