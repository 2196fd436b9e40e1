"""Spot layout generation for new buildings."""

import math

from .errors import InvalidLayoutError
from .models import SpotDraft


def building_prefix(building_id: int) -> str:
    """
    Letter identifier for a building: 1 -> "A", 26 -> "Z", 27 -> "AA".

    Args:
        building_id: Positive database id of the building

    Raises:
        InvalidLayoutError: If the id is not positive
    """
    if building_id < 1:
        raise InvalidLayoutError(f"Building id must be positive, got {building_id}")

    letters = ""
    n = building_id
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def floor_counts(capacity: int, floor_count: int) -> list[int]:
    """
    Split ``capacity`` spots over ``floor_count`` floors.

    Every floor but the last gets ``ceil(capacity / floor_count)`` and the
    last takes what is left. When that would leave the last floor empty
    (e.g. 5 spots over 4 floors) the split uses ``capacity // floor_count``
    instead, with the remainder on the last floor.

    Raises:
        InvalidLayoutError: Unless ``capacity >= floor_count >= 1``
    """
    if floor_count < 1:
        raise InvalidLayoutError("A building needs at least one floor")
    if capacity < floor_count:
        raise InvalidLayoutError(
            f"Capacity {capacity} is too small for {floor_count} floor(s)"
        )

    per_floor = math.ceil(capacity / floor_count)
    last_floor = capacity - per_floor * (floor_count - 1)
    if last_floor < 1:
        per_floor = capacity // floor_count
        last_floor = capacity - per_floor * (floor_count - 1)

    return [per_floor] * (floor_count - 1) + [last_floor]


def spot_code(prefix: str, floor: int, number: int) -> str:
    """Build a spot label such as ``B1-03``."""
    return f"{prefix}{floor}-{number:02d}"


def generate_spot_layout(building_id: int, capacity: int, floor_count: int) -> list[SpotDraft]:
    """
    Generate the spot drafts for a new building.

    Args:
        building_id: Id of the (already inserted) building
        capacity: Total number of spots to create
        floor_count: Number of floors, numbered from 1

    Returns:
        Drafts ordered by floor then per-floor sequence, all free
    """
    prefix = building_prefix(building_id)
    drafts = []

    for floor, count in enumerate(floor_counts(capacity, floor_count), start=1):
        for number in range(1, count + 1):
            drafts.append(
                SpotDraft(
                    code=spot_code(prefix, floor, number),
                    floor=floor,
                    building_id=building_id,
                )
            )

    return drafts
