"""Occupancy aggregation over spot collections."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Protocol

from .models import OccupancyStats


class SpotLike(Protocol):
    code: str
    floor: int
    is_occupied: bool


def occupancy_rate(occupied: int, total: int) -> float:
    """Percentage of occupied spots, rounded half-up to one decimal."""
    if total == 0:
        return 0.0
    rate = Decimal(occupied * 100) / Decimal(total)
    return float(rate.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def compute_occupancy(spots: Iterable[SpotLike]) -> OccupancyStats:
    """Count occupied and free spots."""
    total = 0
    occupied = 0
    for spot in spots:
        total += 1
        if spot.is_occupied:
            occupied += 1

    return OccupancyStats(
        total=total,
        occupied=occupied,
        available=total - occupied,
        occupancy_rate_percent=occupancy_rate(occupied, total),
    )


def group_spots_by_floor(spots: Iterable[SpotLike]) -> dict[int, list]:
    """Group spots by floor, floors ascending and spots ordered by code."""
    grouped: dict[int, list] = {}
    for spot in spots:
        grouped.setdefault(spot.floor, []).append(spot)

    return {floor: sorted(grouped[floor], key=lambda s: s.code) for floor in sorted(grouped)}
