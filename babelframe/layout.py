"""Collision-avoiding placement of translated copies."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Sequence

from .structures import Box


class PlacementPolicy(Enum):
    """How successive copies in one run are positioned."""

    INCREMENTAL = "incremental"
    BATCH = "batch"


def _intervals_intersect(start_a: float, end_a: float, start_b: float, end_b: float) -> bool:
    return start_a < end_b and start_b < end_a


def boxes_overlap(a: Box, b: Box) -> bool:
    """Return True when the boxes overlap on both axes at once."""

    return _intervals_intersect(a.x, a.right, b.x, b.right) and _intervals_intersect(
        a.y, a.bottom, b.y, b.bottom
    )


def find_placement(box: Box, excluding: Iterable[Box], gap: float) -> float:
    """Return the y coordinate for a copy of ``box`` placed below it.

    The candidate starts ``gap`` below the template. Whenever a sibling that
    shares horizontal extent with the template intersects the candidate
    vertically, the candidate moves to ``gap`` below that sibling and the scan
    restarts. Each move strictly increases the candidate, so the loop ends.
    """

    if gap < 0:
        raise ValueError("Placement gap must not be negative.")

    siblings = [
        sibling
        for sibling in excluding
        if _intervals_intersect(box.x, box.right, sibling.x, sibling.right)
    ]
    candidate = box.y + box.height + gap

    moved = True
    while moved:
        moved = False
        for sibling in siblings:
            if _intervals_intersect(
                candidate, candidate + box.height, sibling.y, sibling.bottom
            ):
                candidate = sibling.bottom + gap
                moved = True
                break
    return candidate


def plan_placements(
    box: Box,
    excluding: Sequence[Box],
    count: int,
    gap: float,
    policy: PlacementPolicy,
) -> List[float]:
    """Compute y coordinates for ``count`` copies of ``box``.

    ``INCREMENTAL`` rescans before every copy and treats earlier copies as
    siblings. ``BATCH`` scans once and then stacks copies ``height + gap``
    apart, which can land on obstacles further down the page.
    """

    if count <= 0:
        return []

    positions: List[float] = []
    if policy is PlacementPolicy.BATCH:
        y = find_placement(box, excluding, gap)
        for _ in range(count):
            positions.append(y)
            y += box.height + gap
        return positions

    obstacles = list(excluding)
    template = box
    for _ in range(count):
        y = find_placement(template, obstacles, gap)
        placed = box.moved_to(y)
        positions.append(y)
        obstacles.append(placed)
        template = placed
    return positions
