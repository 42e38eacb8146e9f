"""Nearest-neighbour stop sequencing.

A single greedy pass from the route origin: the closest locatable stop is
visited next, and stops without usable coordinates are appended at the end in
the order they arrived. There is no backtracking or 2-opt improvement, so the
ordering is cheap to recompute on every refresh and fully deterministic.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ...models.domain import GeoPoint, StopCandidate
from ..geospatial import distance_km, is_valid_point

logger = logging.getLogger(__name__)


def sequence(candidates: Sequence[StopCandidate], origin: GeoPoint) -> list[StopCandidate]:
    """Order ``candidates`` by a greedy nearest-neighbour walk starting at ``origin``.

    Ties are broken by input order. Candidates without valid coordinates never
    move the current position and keep their relative order at the tail.
    """
    remaining = list(candidates)
    ordered: list[StopCandidate] = []
    current = origin

    while remaining:
        nearest_index = -1
        min_distance = float("inf")
        for index, candidate in enumerate(remaining):
            if not is_valid_point(candidate.geo):
                continue
            dist = distance_km(current, candidate.geo)
            # Strict comparison keeps the earliest candidate on ties.
            if dist < min_distance:
                min_distance = dist
                nearest_index = index

        if nearest_index == -1:
            logger.debug(f"Appending {len(remaining)} stops without coordinates to the route tail")
            ordered.extend(remaining)
            break

        nearest = remaining.pop(nearest_index)
        ordered.append(nearest)
        current = nearest.geo

    return ordered
