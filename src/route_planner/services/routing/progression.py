"""Stop progression resolution (completed / active / pending)."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from ...models.domain import ProgressionState
from .models import Stop


def resolve(stops: Sequence[Stop]) -> tuple[list[Stop], Optional[int]]:
    """Assign the final progression state to each stop.

    The first stop (by sequence number) that is not completed becomes the
    single active stop; every later non-completed stop is pending. Returns the
    resolved stops and the index of the active stop, or None when the route is
    empty or fully completed.
    """
    ordered = sorted(stops, key=lambda stop: stop.sequence_number)
    resolved: list[Stop] = []
    active_index: Optional[int] = None

    for index, stop in enumerate(ordered):
        if stop.progression is ProgressionState.COMPLETED:
            resolved.append(stop)
        elif active_index is None:
            active_index = index
            resolved.append(replace(stop, progression=ProgressionState.ACTIVE))
        else:
            resolved.append(replace(stop, progression=ProgressionState.PENDING))

    return resolved, active_index
