import random
from datetime import datetime, timedelta, timezone

import pytest

from route_planner.models.domain import DeliveryClass, ProgressionState, SourceOrigin, TaskType
from route_planner.services.routing.models import Stop
from route_planner.services.routing.progression import resolve

NOW = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


def _stop(seq: int, progression: ProgressionState) -> Stop:
    return Stop(
        id=f"S{seq}",
        shipment_id=f"SH{seq}",
        tracking_ref=f"TRK{seq}",
        recipient=f"Recipient {seq}",
        address=f"Street {seq}",
        geo=None,
        distance_from_previous_km=0.0,
        service_minutes=12,
        sequence_number=seq,
        eta=NOW + timedelta(minutes=12 * seq),
        classification=DeliveryClass.URGENT,
        progression=progression,
        source_origin=SourceOrigin.SERVER_ASSIGNED,
        task_type=TaskType.DELIVERY,
    )


def test_first_open_stop_becomes_active():
    stops = [
        _stop(1, ProgressionState.COMPLETED),
        _stop(2, ProgressionState.PENDING),
        _stop(3, ProgressionState.PENDING),
    ]

    resolved, active_index = resolve(stops)

    assert [s.progression for s in resolved] == [
        ProgressionState.COMPLETED,
        ProgressionState.ACTIVE,
        ProgressionState.PENDING,
    ]
    assert active_index == 1


def test_upstream_active_claims_are_corrected():
    stops = [_stop(1, ProgressionState.ACTIVE), _stop(2, ProgressionState.ACTIVE)]

    resolved, active_index = resolve(stops)

    assert [s.progression for s in resolved] == [ProgressionState.ACTIVE, ProgressionState.PENDING]
    assert active_index == 0


def test_fully_completed_route_has_no_active_stop():
    stops = [_stop(1, ProgressionState.COMPLETED), _stop(2, ProgressionState.COMPLETED)]

    resolved, active_index = resolve(stops)

    assert active_index is None
    assert all(s.progression is ProgressionState.COMPLETED for s in resolved)


def test_empty_route():
    assert resolve([]) == ([], None)


def test_resolution_follows_sequence_numbers():
    stops = [_stop(2, ProgressionState.PENDING), _stop(1, ProgressionState.PENDING)]

    resolved, active_index = resolve(stops)

    assert [s.sequence_number for s in resolved] == [1, 2]
    assert resolved[active_index].sequence_number == 1


def test_input_stops_are_left_untouched():
    stops = [_stop(1, ProgressionState.PENDING)]

    resolve(stops)

    assert stops[0].progression is ProgressionState.PENDING


@pytest.mark.parametrize("seed", range(25))
def test_single_active_and_monotonic_pending(seed):
    rng = random.Random(seed)
    stops = [
        _stop(seq, rng.choice([ProgressionState.COMPLETED, ProgressionState.PENDING, ProgressionState.ACTIVE]))
        for seq in range(1, rng.randint(1, 20) + 1)
    ]

    resolved, active_index = resolve(stops)

    open_stops = [s for s in resolved if s.progression is not ProgressionState.COMPLETED]
    active = [s for s in resolved if s.progression is ProgressionState.ACTIVE]
    pending = [s for s in resolved if s.progression is ProgressionState.PENDING]

    if open_stops:
        assert len(active) == 1
        assert active[0].sequence_number == min(s.sequence_number for s in open_stops)
        assert resolved[active_index] is active[0]
        assert all(s.sequence_number > active[0].sequence_number for s in pending)
    else:
        assert active == []
        assert active_index is None
