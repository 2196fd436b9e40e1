"""Reservation ledger module."""

from .layout import building_prefix, floor_counts, generate_spot_layout
from .ledger import ReservationLedger, normalize_code
from .models import OccupancyStats, ReleaseResult, ReservationResult, SpotDraft, SpotStatus
from .occupancy import compute_occupancy, group_spots_by_floor

__all__ = [
    "building_prefix",
    "floor_counts",
    "generate_spot_layout",
    "ReservationLedger",
    "normalize_code",
    "OccupancyStats",
    "ReleaseResult",
    "ReservationResult",
    "SpotDraft",
    "SpotStatus",
    "compute_occupancy",
    "group_spots_by_floor",
]
