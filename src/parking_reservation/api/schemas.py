"""API request and response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..directory.models import ActiveSession, UserType
from ..ledger.models import OccupancyStats, SpotStatus


class RegisterRequest(BaseModel):
    """Request schema for registering a user."""

    name: str = Field(min_length=1)
    user_type: UserType
    card_id: Optional[str] = None  # Generated when omitted
    plate_numbers: list[str] = []


class LoginRequest(BaseModel):
    card_id: str


class VehicleResponse(BaseModel):
    """Response schema for a registered vehicle."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    plate_number: str


class UserResponse(BaseModel):
    """Response schema for a user record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    card_id: str
    user_type: UserType


class RegisteredUserResponse(UserResponse):
    vehicles: list[VehicleResponse] = []


class BuildingCreateRequest(BaseModel):
    """Request schema for creating a building."""

    name: str = Field(min_length=1)
    capacity: int = Field(gt=0)
    floors: int = Field(default=1, ge=1)


class BuildingResponse(BaseModel):
    """Response schema for a building."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    capacity: int
    created_at: datetime


class SpotResponse(BaseModel):
    """Response schema for a single parking spot."""

    id: int
    code: str
    floor: int
    building_id: int
    is_occupied: bool
    status: SpotStatus


class FloorResponse(BaseModel):
    floor: int
    spots: list[SpotResponse]


class BuildingCreatedResponse(BaseModel):
    building: BuildingResponse
    spots: list[SpotResponse]


class BuildingSpotsResponse(BaseModel):
    """Spots of a building grouped by floor, with occupancy."""

    building: BuildingResponse
    stats: OccupancyStats
    floors: list[FloorResponse]


class BookRequest(BaseModel):
    vehicle_id: int


class BookingResponse(BaseModel):
    """Response schema for a booking; the code is needed to release the spot."""

    message: str
    session_id: int
    spot_id: int
    spot_code: str
    vehicle_id: int
    unique_code: str
    parked_at: datetime


class ReleaseRequest(BaseModel):
    code: str


class ReleaseResponse(BaseModel):
    """Response schema for a released spot."""

    message: str
    session_id: int
    spot_id: int
    spot_code: str
    floor: int
    building_id: int
    released_at: datetime


class DashboardResponse(BaseModel):
    """Occupancy dashboard for building owners."""

    building: BuildingResponse
    stats: OccupancyStats
    active_sessions: list[ActiveSession]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database_connected: bool
    uptime_seconds: float
