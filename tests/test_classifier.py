import random
from datetime import datetime, timedelta, timezone

import pytest

from route_planner.models.domain import DeliveryClass, StopCandidate
from route_planner.services.routing.classifier import classify, classify_candidate, next_day_boundary

NOW = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)


def _candidate(cid: str, scheduled: datetime | None = None) -> StopCandidate:
    return StopCandidate(
        id=cid,
        shipment_id=f"SH-{cid}",
        tracking_ref=f"TRK-{cid}",
        recipient_name=f"Recipient {cid}",
        address=f"Street {cid}",
        geo=None,
        scheduled_delivery_time=scheduled,
        estimated_service_minutes=None,
        raw_status="in_transit",
    )


def test_next_day_boundary_is_local_midnight():
    assert next_day_boundary(NOW) == datetime(2026, 10, 20, 0, 0, tzinfo=timezone.utc)


def test_missing_schedule_is_urgent():
    assert classify_candidate(_candidate("A"), NOW) is DeliveryClass.URGENT


def test_boundary_split():
    late_today = _candidate("A", datetime(2026, 10, 19, 23, 59, tzinfo=timezone.utc))
    midnight = _candidate("B", datetime(2026, 10, 20, 0, 0, tzinfo=timezone.utc))
    earlier = _candidate("C", datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc))

    assert classify_candidate(late_today, NOW) is DeliveryClass.URGENT
    assert classify_candidate(midnight, NOW) is DeliveryClass.SCHEDULED
    assert classify_candidate(earlier, NOW) is DeliveryClass.URGENT


def test_naive_schedule_is_read_in_now_timezone():
    naive = _candidate("A", datetime(2026, 10, 21, 8, 0))
    assert classify_candidate(naive, NOW) is DeliveryClass.SCHEDULED


def test_aware_schedule_is_converted_to_now_timezone():
    # 01:00 at UTC+05:00 on the 20th is still the 19th in UTC.
    plus_five = timezone(timedelta(hours=5))
    candidate = _candidate("A", datetime(2026, 10, 20, 1, 0, tzinfo=plus_five))
    assert classify_candidate(candidate, NOW) is DeliveryClass.URGENT


def test_classify_preserves_order():
    candidates = [
        _candidate("A"),
        _candidate("B", NOW + timedelta(days=2)),
        _candidate("C", NOW + timedelta(hours=1)),
        _candidate("D", NOW + timedelta(days=1)),
    ]

    assert [c.id for c in classify(candidates, DeliveryClass.URGENT, NOW)] == ["A", "C"]
    assert [c.id for c in classify(candidates, DeliveryClass.SCHEDULED, NOW)] == ["B", "D"]


def test_classify_accepts_string_values():
    candidates = [_candidate("A"), _candidate("B", NOW + timedelta(days=3))]
    assert [c.id for c in classify(candidates, "scheduled", NOW)] == ["B"]


def test_unknown_class_is_rejected():
    with pytest.raises(ValueError):
        classify([_candidate("A")], "express", NOW)


@pytest.mark.parametrize("seed", range(10))
def test_classification_partitions_the_pool(seed):
    rng = random.Random(seed)
    candidates = []
    for index in range(rng.randint(0, 30)):
        if rng.random() < 0.2:
            scheduled = None
        else:
            scheduled = NOW + timedelta(minutes=rng.randint(-3 * 24 * 60, 3 * 24 * 60))
        candidates.append(_candidate(f"C{index}", scheduled))

    urgent = classify(candidates, DeliveryClass.URGENT, NOW)
    scheduled = classify(candidates, DeliveryClass.SCHEDULED, NOW)
    urgent_ids = [c.id for c in urgent]
    scheduled_ids = [c.id for c in scheduled]

    assert not set(urgent_ids) & set(scheduled_ids)
    assert sorted(urgent_ids + scheduled_ids) == sorted(c.id for c in candidates)
