"""FastAPI route definitions."""

import logging
from datetime import datetime
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..db.tables import Spot
from ..directory import accounts, buildings, reservations
from ..directory.models import Actor
from ..ledger.errors import (
    AuthenticationError,
    AuthorizationError,
    CodeExhaustedError,
    ConflictError,
    InvalidLayoutError,
    NotFoundError,
    ReservationError,
    SpotOccupiedError,
    ValidationError,
)
from ..ledger.ledger import ReservationLedger
from ..ledger.models import SpotStatus
from ..ledger.occupancy import group_spots_by_floor
from ..metrics import get_metrics
from .schemas import (
    BookingResponse,
    BookRequest,
    BuildingCreatedResponse,
    BuildingCreateRequest,
    BuildingResponse,
    BuildingSpotsResponse,
    DashboardResponse,
    FloorResponse,
    HealthResponse,
    LoginRequest,
    RegisteredUserResponse,
    RegisterRequest,
    ReleaseRequest,
    ReleaseResponse,
    SpotResponse,
    UserResponse,
    VehicleResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Dependencies injected at startup
_session_factory: Optional[sessionmaker] = None
_ledger: Optional[ReservationLedger] = None
_start_time: datetime = datetime.now()

# Checked in order, so subclasses must come before their bases
_STATUS_CODES: list[tuple[type[ReservationError], int]] = [
    (NotFoundError, 404),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (SpotOccupiedError, 409),
    (ConflictError, 409),
    (InvalidLayoutError, 422),
    (ValidationError, 422),
    (CodeExhaustedError, 503),
]


def init_router(session_factory: sessionmaker, ledger: ReservationLedger) -> None:
    """
    Initialize router with dependencies.

    Args:
        session_factory: Factory for per-request database sessions
        ledger: ReservationLedger performing bookings and releases
    """
    global _session_factory, _ledger, _start_time

    _session_factory = session_factory
    _ledger = ledger
    _start_time = datetime.now()

    logger.info("API router initialized")


def get_db() -> Iterator[Session]:
    """Yield a database session for the duration of one request."""
    if _session_factory is None:
        raise HTTPException(status_code=503, detail="Service not initialized")

    db = _session_factory()
    try:
        yield db
    finally:
        db.close()


def get_ledger() -> ReservationLedger:
    if _ledger is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return _ledger


def get_actor(
    x_card_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> Actor:
    """Resolve the caller from the ``X-Card-Id`` header on every request."""
    try:
        return accounts.resolve_actor(db, x_card_id)
    except ReservationError as e:
        raise http_error(e)


def http_error(error: ReservationError) -> HTTPException:
    """Translate a domain error into an HTTP error response."""
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


def store_error(action: str, error: SQLAlchemyError) -> HTTPException:
    logger.error(f"Failed to {action}: {error}")
    return HTTPException(status_code=500, detail=f"Failed to {action}: {error}")


def spot_response(spot: Spot) -> SpotResponse:
    return SpotResponse(
        id=spot.id,
        code=spot.code,
        floor=spot.floor,
        building_id=spot.building_id,
        is_occupied=spot.is_occupied,
        status=SpotStatus.from_flag(spot.is_occupied),
    )


@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)) -> HealthResponse:
    """
    Health check endpoint.

    Returns basic health information about the service.
    """
    uptime = (datetime.now() - _start_time).total_seconds()

    try:
        db.execute(text("SELECT 1"))
        database_connected = True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database_connected = False

    return HealthResponse(
        status="healthy" if database_connected else "degraded",
        database_connected=database_connected,
        uptime_seconds=uptime,
    )


@router.post("/users", response_model=RegisteredUserResponse, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> RegisteredUserResponse:
    """
    Register a car owner (with vehicles) or a building owner.

    The card id is generated when none is supplied.
    """
    try:
        user = accounts.register_user(
            db,
            name=payload.name,
            user_type=payload.user_type,
            card_id=payload.card_id,
            plate_numbers=payload.plate_numbers,
        )
    except ReservationError as e:
        raise http_error(e)
    except SQLAlchemyError as e:
        raise store_error("register user", e)

    return RegisteredUserResponse.model_validate(user)


@router.post("/login", response_model=UserResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> UserResponse:
    """Look up a user by card id; present the card id as ``X-Card-Id`` afterwards."""
    try:
        actor = accounts.login(db, payload.card_id)
    except ReservationError as e:
        raise http_error(e)

    return UserResponse(**actor.model_dump())


@router.get("/me", response_model=UserResponse)
def current_user(actor: Actor = Depends(get_actor)) -> UserResponse:
    return UserResponse(**actor.model_dump())


@router.get("/me/vehicles", response_model=list[VehicleResponse])
def my_vehicles(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)) -> list[VehicleResponse]:
    """List the caller's vehicles (empty for building owners)."""
    return [VehicleResponse.model_validate(v) for v in accounts.list_vehicles(db, actor)]


@router.get("/buildings", response_model=list[BuildingResponse])
def list_buildings(db: Session = Depends(get_db)) -> list[BuildingResponse]:
    return [BuildingResponse.model_validate(b) for b in buildings.list_buildings(db)]


@router.post("/buildings", response_model=BuildingCreatedResponse, status_code=201)
def create_building(
    payload: BuildingCreateRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
) -> BuildingCreatedResponse:
    """
    Create a building and generate its numbered spots.

    Only building owners may create buildings.
    """
    try:
        building, spots = buildings.create_building(
            db,
            actor,
            name=payload.name,
            capacity=payload.capacity,
            floors=payload.floors,
        )
    except ReservationError as e:
        raise http_error(e)
    except SQLAlchemyError as e:
        raise store_error("create building", e)

    return BuildingCreatedResponse(
        building=BuildingResponse.model_validate(building),
        spots=[spot_response(s) for s in spots],
    )


@router.get("/buildings/{building_id}", response_model=BuildingResponse)
def get_building(building_id: int, db: Session = Depends(get_db)) -> BuildingResponse:
    try:
        building = buildings.get_building(db, building_id)
    except ReservationError as e:
        raise http_error(e)

    return BuildingResponse.model_validate(building)


@router.get("/buildings/{building_id}/spots", response_model=BuildingSpotsResponse)
def get_building_spots(building_id: int, db: Session = Depends(get_db)) -> BuildingSpotsResponse:
    """
    Get the spots of a building grouped by floor.

    Args:
        building_id: The ID of the building to query
    """
    try:
        building = buildings.get_building(db, building_id)
    except ReservationError as e:
        raise http_error(e)

    spots = buildings.list_spots(db, building_id)

    return BuildingSpotsResponse(
        building=BuildingResponse.model_validate(building),
        stats=buildings.building_occupancy(building, spots),
        floors=[
            FloorResponse(floor=floor, spots=[spot_response(s) for s in floor_spots])
            for floor, floor_spots in group_spots_by_floor(spots).items()
        ],
    )


@router.get("/buildings/{building_id}/dashboard", response_model=DashboardResponse)
def get_dashboard(
    building_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
) -> DashboardResponse:
    """
    Occupancy dashboard for building owners.

    Returns total, occupied and available counts, the occupancy rate and
    every open parking session in the building.
    """
    try:
        dashboard = buildings.building_dashboard(db, actor, building_id)
    except ReservationError as e:
        raise http_error(e)

    return DashboardResponse(
        building=BuildingResponse(
            id=dashboard.building_id,
            name=dashboard.building_name,
            capacity=dashboard.capacity,
            created_at=dashboard.created_at,
        ),
        stats=dashboard.stats,
        active_sessions=dashboard.active_sessions,
    )


@router.post("/spots/{spot_id}/book", response_model=BookingResponse, status_code=201)
def book_spot(
    spot_id: int,
    payload: BookRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
    ledger: ReservationLedger = Depends(get_ledger),
) -> BookingResponse:
    """
    Book a free spot for one of the caller's vehicles.

    The returned unique code is the only way to release the spot.
    """
    try:
        result = reservations.reserve_spot(db, ledger, actor, spot_id, payload.vehicle_id)
    except ReservationError as e:
        raise http_error(e)
    except SQLAlchemyError as e:
        raise store_error("book spot", e)

    return BookingResponse(
        message="Parking booked successfully",
        session_id=result.session_id,
        spot_id=result.spot_id,
        spot_code=result.spot_code,
        vehicle_id=result.vehicle_id,
        unique_code=result.unique_code,
        parked_at=result.parked_at,
    )


@router.post("/sessions/release", response_model=ReleaseResponse)
def release_spot(
    payload: ReleaseRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
    ledger: ReservationLedger = Depends(get_ledger),
) -> ReleaseResponse:
    """Release the spot held by a unique code (case-insensitive)."""
    try:
        result = reservations.release_reservation(db, ledger, actor, payload.code)
    except ReservationError as e:
        raise http_error(e)
    except SQLAlchemyError as e:
        raise store_error("release spot", e)

    return ReleaseResponse(
        message=f"Spot {result.spot_code} has been released successfully",
        session_id=result.session_id,
        spot_id=result.spot_id,
        spot_code=result.spot_code,
        floor=result.floor,
        building_id=result.building_id,
        released_at=result.released_at,
    )


@router.get("/metrics")
async def prometheus_metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format including:
    - parking_bookings_total: Successful bookings by building
    - parking_booking_conflicts_total: Bookings rejected on occupied spots
    - parking_releases_total: Successful releases by building
    - parking_release_failures_total: Releases with unknown or used codes
    - parking_buildings_created_total: Buildings created
    - parking_building_spots_total / _occupied: Spot gauges per building
    """
    return Response(
        content=get_metrics(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
