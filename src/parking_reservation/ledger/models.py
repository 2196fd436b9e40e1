"""Data models for spots, reservations and occupancy."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class SpotStatus(str, Enum):
    """Status of a parking spot."""

    AVAILABLE = "available"
    OCCUPIED = "occupied"

    @classmethod
    def from_flag(cls, is_occupied: bool) -> "SpotStatus":
        return cls.OCCUPIED if is_occupied else cls.AVAILABLE


class SpotDraft(BaseModel):
    """A spot row generated for a new building, not yet persisted."""

    code: str
    floor: int
    building_id: int
    is_occupied: bool = False


class OccupancyStats(BaseModel):
    """Occupancy figures for a collection of spots."""

    total: int
    occupied: int
    available: int
    occupancy_rate_percent: float


class ReservationResult(BaseModel):
    """Outcome of a successful booking."""

    session_id: int
    spot_id: int
    spot_code: str
    building_id: int
    vehicle_id: int
    unique_code: str
    parked_at: datetime


class ReleaseResult(BaseModel):
    """Outcome of a successful release."""

    session_id: int
    spot_id: int
    spot_code: str
    floor: int
    building_id: int
    released_at: datetime
