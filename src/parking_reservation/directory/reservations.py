"""Caller-facing entry points to the reservation ledger."""

import logging

from sqlalchemy.orm import Session

from ..db.tables import Vehicle
from ..ledger.errors import AuthorizationError, NotFoundError
from ..ledger.ledger import ReservationLedger
from ..ledger.models import ReleaseResult, ReservationResult
from .accounts import require_role
from .models import Actor, UserType

logger = logging.getLogger(__name__)


def reserve_spot(
    db: Session,
    ledger: ReservationLedger,
    actor: Actor,
    spot_id: int,
    vehicle_id: int,
) -> ReservationResult:
    """
    Book a spot for one of the actor's vehicles.

    Raises:
        AuthorizationError: If the actor is not a car owner or does not own the vehicle
        NotFoundError: If the vehicle or spot does not exist
        SpotOccupiedError: If the spot is taken
    """
    require_role(actor, UserType.CAR_OWNER)

    vehicle = db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise NotFoundError(f"Vehicle {vehicle_id} not found")
    if vehicle.user_id != actor.id:
        logger.warning(f"User {actor.id} tried to book with vehicle {vehicle_id} they do not own")
        raise AuthorizationError("You can only park your own vehicles")

    return ledger.book_spot(db, spot_id, vehicle_id)


def release_reservation(db: Session, ledger: ReservationLedger, actor: Actor, code: str) -> ReleaseResult:
    """Release the spot held by ``code``; the code alone authorizes the release."""
    result = ledger.release_spot(db, code)
    logger.debug(f"User {actor.id} released spot {result.spot_code}")
    return result
