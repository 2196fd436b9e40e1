"""Data models for callers and building dashboards."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from ..ledger.models import OccupancyStats


class UserType(str, Enum):
    """Role fixed at registration."""

    CAR_OWNER = "car_owner"
    BUILDING_OWNER = "building_owner"


class Actor(BaseModel):
    """The identified caller of an operation, re-resolved on every request."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    card_id: str
    user_type: UserType


class ActiveSession(BaseModel):
    """An open parking session as shown to the building owner."""

    session_id: int
    spot_id: int
    spot_code: str
    floor: int
    vehicle_id: int
    plate_number: str
    driver_name: str
    unique_code: str
    parked_at: datetime


class BuildingDashboard(BaseModel):
    """Live occupancy view of one building."""

    building_id: int
    building_name: str
    capacity: int
    created_at: datetime
    stats: OccupancyStats
    active_sessions: list[ActiveSession]
