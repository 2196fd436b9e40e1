"""User registration, login and role checks."""

import logging
import secrets
import string
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..db.tables import User, Vehicle
from ..ledger.errors import AuthenticationError, AuthorizationError, ConflictError, ValidationError
from .models import Actor, UserType

logger = logging.getLogger(__name__)

CARD_ID_PREFIX = "CARD-"
CARD_ID_ALPHABET = string.digits + string.ascii_uppercase


def generate_card_id() -> str:
    """Generate a login card id such as ``CARD-4K9Z2QXA``."""
    return CARD_ID_PREFIX + "".join(secrets.choice(CARD_ID_ALPHABET) for _ in range(8))


def normalize_plate(plate_number: str) -> str:
    return plate_number.strip().upper()


def register_user(
    db: Session,
    name: str,
    user_type: UserType | str,
    card_id: Optional[str] = None,
    plate_numbers: Iterable[str] = (),
) -> User:
    """
    Register a user, and for car owners their vehicles.

    Args:
        db: Open database session; the user is committed on success
        name: Display name
        user_type: ``car_owner`` or ``building_owner``
        card_id: Login token; generated when blank
        plate_numbers: Plates of the user's vehicles, blanks are skipped

    Returns:
        The persisted User with its vehicles loaded

    Raises:
        ValidationError: If the name is blank or the role unknown
        ConflictError: If the card id is already registered
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")

    try:
        user_type = UserType(user_type)
    except ValueError:
        raise ValidationError(f"Unknown user type: {user_type}") from None

    card_id = (card_id or "").strip() or generate_card_id()

    existing = db.scalars(select(User).where(User.card_id == card_id)).first()
    if existing is not None:
        raise ConflictError(f"Card id {card_id} is already registered")

    user = User(name=name, card_id=card_id, user_type=user_type.value)

    # Building owners never own vehicles
    if user_type == UserType.CAR_OWNER:
        plates = [normalize_plate(p) for p in plate_numbers if p and p.strip()]
        user.vehicles = [Vehicle(plate_number=p) for p in plates]

    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Card id {card_id} is already registered")
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(user)
    logger.info(f"Registered {user.user_type} '{user.name}' with {len(user.vehicles)} vehicle(s)")
    return user


def login(db: Session, card_id: str) -> Actor:
    """Look a user up by card id."""
    card_id = (card_id or "").strip()
    user = db.scalars(select(User).where(User.card_id == card_id)).first() if card_id else None
    if user is None:
        logger.warning("Login failed: unknown card id")
        raise AuthenticationError("User not found. Please register first.")

    logger.info(f"User {user.id} logged in")
    return Actor.model_validate(user)


def resolve_actor(db: Session, card_id: Optional[str]) -> Actor:
    """
    Identify the caller from the card id presented with the request.

    The id is checked against the users table every time; nothing the
    client stored is trusted on its own.
    """
    if not card_id or not card_id.strip():
        raise AuthenticationError("Login required")

    user = db.scalars(select(User).where(User.card_id == card_id.strip())).first()
    if user is None:
        raise AuthenticationError("Unknown card id")

    return Actor.model_validate(user)


def require_role(actor: Actor, role: UserType) -> None:
    """Raise AuthorizationError unless the actor has ``role``."""
    if actor.user_type != role:
        logger.warning(f"User {actor.id} ({actor.user_type.value}) denied {role.value} operation")
        raise AuthorizationError(f"Access denied. This operation is for {role.value} users only.")


def list_vehicles(db: Session, actor: Actor) -> list[Vehicle]:
    """Vehicles owned by the actor; building owners have none."""
    if actor.user_type != UserType.CAR_OWNER:
        return []

    stmt = select(Vehicle).where(Vehicle.user_id == actor.id).order_by(Vehicle.id)
    return list(db.scalars(stmt))
