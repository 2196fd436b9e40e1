"""Building creation, lookup and occupancy dashboards."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db.tables import Building, ParkingSession, Spot, User, Vehicle
from ..ledger.errors import NotFoundError, ValidationError
from ..ledger.layout import floor_counts, generate_spot_layout
from ..ledger.models import OccupancyStats
from ..ledger.occupancy import compute_occupancy
from ..metrics import record_building_created, update_building_counts
from .accounts import require_role
from .models import ActiveSession, Actor, BuildingDashboard, UserType

logger = logging.getLogger(__name__)


def create_building(
    db: Session,
    actor: Actor,
    name: str,
    capacity: int,
    floors: int = 1,
) -> tuple[Building, list[Spot]]:
    """
    Create a building together with its generated spots.

    The building row is flushed first to obtain the id the spot codes are
    derived from; building and spots are committed together.

    Raises:
        AuthorizationError: If the actor is not a building owner
        ValidationError: If the name is blank
        InvalidLayoutError: Unless ``capacity >= floors >= 1``
    """
    require_role(actor, UserType.BUILDING_OWNER)

    name = (name or "").strip()
    if not name:
        raise ValidationError("Building name is required")

    # Reject impossible layouts before anything is written
    floor_counts(capacity, floors)

    try:
        building = Building(name=name, capacity=capacity)
        db.add(building)
        db.flush()

        spots = [
            Spot(**draft.model_dump())
            for draft in generate_spot_layout(building.id, capacity, floors)
        ]
        db.add_all(spots)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    record_building_created()
    update_building_counts(building.id, building.name, total=len(spots), occupied=0)
    logger.info(f"Created building '{building.name}' with {len(spots)} spots on {floors} floor(s)")
    return building, spots


def list_buildings(db: Session) -> list[Building]:
    """All buildings, oldest first."""
    return list(db.scalars(select(Building).order_by(Building.created_at, Building.id)))


def get_building(db: Session, building_id: int) -> Building:
    """Fetch one building or raise NotFoundError."""
    building = db.get(Building, building_id)
    if building is None:
        raise NotFoundError(f"Building {building_id} not found")
    return building


def list_spots(db: Session, building_id: int) -> list[Spot]:
    """Spots of a building ordered by floor then code."""
    stmt = (
        select(Spot)
        .where(Spot.building_id == building_id)
        .order_by(Spot.floor, Spot.code)
    )
    return list(db.scalars(stmt))


def building_occupancy(building: Building, spots: list[Spot]) -> OccupancyStats:
    """Compute occupancy for a building and publish it to the gauges."""
    stats = compute_occupancy(spots)
    update_building_counts(building.id, building.name, total=stats.total, occupied=stats.occupied)
    return stats


def active_sessions(db: Session, building_id: int) -> list[ActiveSession]:
    """Open sessions in a building, most recently parked first."""
    stmt = (
        select(ParkingSession, Spot, Vehicle, User)
        .join(Spot, ParkingSession.spot_id == Spot.id)
        .join(Vehicle, ParkingSession.vehicle_id == Vehicle.id)
        .join(User, Vehicle.user_id == User.id)
        .where(Spot.building_id == building_id, ParkingSession.released_at.is_(None))
        .order_by(ParkingSession.parked_at.desc(), ParkingSession.id.desc())
    )

    return [
        ActiveSession(
            session_id=session.id,
            spot_id=spot.id,
            spot_code=spot.code,
            floor=spot.floor,
            vehicle_id=vehicle.id,
            plate_number=vehicle.plate_number,
            driver_name=user.name,
            unique_code=session.unique_code,
            parked_at=session.parked_at,
        )
        for session, spot, vehicle, user in db.execute(stmt)
    ]


def building_dashboard(db: Session, actor: Actor, building_id: int) -> BuildingDashboard:
    """Occupancy figures and open sessions for a building owner."""
    require_role(actor, UserType.BUILDING_OWNER)

    building = get_building(db, building_id)
    spots = list_spots(db, building_id)

    return BuildingDashboard(
        building_id=building.id,
        building_name=building.name,
        capacity=building.capacity,
        created_at=building.created_at,
        stats=building_occupancy(building, spots),
        active_sessions=active_sessions(db, building_id),
    )
