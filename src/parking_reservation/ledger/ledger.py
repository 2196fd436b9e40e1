"""Spot booking and release with atomic state transitions."""

import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import DEFAULT_CODE_ALPHABET, LedgerConfig
from ..db.tables import ParkingSession, Spot
from ..metrics import (
    record_booking,
    record_booking_conflict,
    record_booking_failure,
    record_release,
    record_release_failure,
)
from .errors import CodeExhaustedError, NotFoundError, SpotOccupiedError, ValidationError
from .models import ReleaseResult, ReservationResult

logger = logging.getLogger(__name__)


def normalize_code(code: Optional[str]) -> str:
    """Codes are typed by people: ignore surrounding blanks and case."""
    return (code or "").strip().upper()


class ReservationLedger:
    """
    Owns the FREE -> OCCUPIED -> FREE lifecycle of spots.

    Booking claims the spot with a conditional update (only if it is still
    free) and inserts the session in the same transaction; releasing closes
    the session (only if it is still open) and frees the spot the same way.
    Either both writes land or neither does, and two bookings racing for one
    spot cannot both succeed.
    """

    def __init__(
        self,
        code_length: int = 6,
        code_alphabet: str = DEFAULT_CODE_ALPHABET,
        enforce_unique_codes: bool = True,
        max_code_attempts: int = 10,
    ):
        """
        Initialize the ledger.

        Args:
            code_length: Number of characters in a release code
            code_alphabet: Characters release codes are drawn from
            enforce_unique_codes: Re-draw codes already used by an active session
            max_code_attempts: Draws allowed before giving up on a unique code
        """
        self.code_length = code_length
        self.code_alphabet = code_alphabet.upper()
        self.enforce_unique_codes = enforce_unique_codes
        self.max_code_attempts = max_code_attempts

    @classmethod
    def from_config(cls, config: LedgerConfig) -> "ReservationLedger":
        return cls(
            code_length=config.code_length,
            code_alphabet=config.code_alphabet,
            enforce_unique_codes=config.enforce_unique_codes,
            max_code_attempts=config.max_code_attempts,
        )

    def generate_code(self) -> str:
        """Draw a random release code."""
        return "".join(secrets.choice(self.code_alphabet) for _ in range(self.code_length))

    def _code_in_use(self, db: Session, code: str) -> bool:
        stmt = select(ParkingSession.id).where(
            ParkingSession.unique_code == code,
            ParkingSession.released_at.is_(None),
        )
        return db.execute(stmt).first() is not None

    def _new_code(self, db: Session) -> str:
        if not self.enforce_unique_codes:
            return self.generate_code()

        for _ in range(self.max_code_attempts):
            code = self.generate_code()
            if not self._code_in_use(db, code):
                return code
            logger.debug(f"Release code {code} already active, drawing another")

        raise CodeExhaustedError(
            f"Could not draw an unused release code in {self.max_code_attempts} attempts"
        )

    def book_spot(self, db: Session, spot_id: int, vehicle_id: int) -> ReservationResult:
        """
        Reserve a free spot for a vehicle.

        Args:
            db: Open database session; the booking is committed on success
            spot_id: Spot to occupy
            vehicle_id: Vehicle parking in it

        Returns:
            ReservationResult carrying the release code

        Raises:
            NotFoundError: If the spot does not exist
            SpotOccupiedError: If the spot is (or just became) occupied
            CodeExhaustedError: If every drawn release code is already active
        """
        spot = db.get(Spot, spot_id)
        if spot is None:
            raise NotFoundError(f"Spot {spot_id} not found")

        building_id = spot.building_id
        spot_code = spot.code

        if spot.is_occupied:
            record_booking_conflict(building_id)
            logger.warning(f"Booking rejected: spot {spot_code} is already occupied")
            raise SpotOccupiedError("This spot is already occupied")

        try:
            code = self._new_code(db)

            claimed = db.execute(
                update(Spot)
                .where(Spot.id == spot_id, Spot.is_occupied.is_(False))
                .values(is_occupied=True)
            )
            if claimed.rowcount == 0:
                db.rollback()
                record_booking_conflict(building_id)
                logger.warning(f"Booking rejected: spot {spot_code} was taken concurrently")
                raise SpotOccupiedError("This spot is already occupied")

            session = ParkingSession(
                spot_id=spot_id,
                unique_code=code,
                vehicle_id=vehicle_id,
                parked_at=datetime.now(timezone.utc),
                released_at=None,
            )
            db.add(session)
            db.flush()

            result = ReservationResult(
                session_id=session.id,
                spot_id=spot_id,
                spot_code=spot_code,
                building_id=building_id,
                vehicle_id=vehicle_id,
                unique_code=code,
                parked_at=session.parked_at,
            )
            db.commit()
        except CodeExhaustedError:
            db.rollback()
            record_booking_failure(building_id)
            logger.error(f"Booking of spot {spot_code} failed: no unused release code available")
            raise
        except SQLAlchemyError:
            db.rollback()
            raise

        record_booking(building_id)
        logger.info(f"Spot {spot_code} booked by vehicle {vehicle_id} (session {result.session_id})")
        return result

    def release_spot(self, db: Session, code: str) -> ReleaseResult:
        """
        End the active session holding ``code`` and free its spot.

        Args:
            db: Open database session; the release is committed on success
            code: Release code as typed by the driver (case and blanks ignored)

        Raises:
            ValidationError: If the code is blank
            NotFoundError: If no active session has this code
        """
        code = normalize_code(code)
        if not code:
            raise ValidationError("Please enter your unique code")

        stmt = (
            select(ParkingSession)
            .where(
                func.upper(ParkingSession.unique_code) == code,
                ParkingSession.released_at.is_(None),
            )
            .order_by(ParkingSession.parked_at.desc())
        )
        session = db.scalars(stmt).first()
        if session is None:
            record_release_failure()
            logger.warning("Release rejected: no active session for the given code")
            raise NotFoundError("Invalid code or parking session not found")

        spot = session.spot
        released_at = datetime.now(timezone.utc)

        try:
            closed = db.execute(
                update(ParkingSession)
                .where(ParkingSession.id == session.id, ParkingSession.released_at.is_(None))
                .values(released_at=released_at)
            )
            if closed.rowcount == 0:
                db.rollback()
                record_release_failure()
                raise NotFoundError("Invalid code or parking session not found")

            db.execute(update(Spot).where(Spot.id == spot.id).values(is_occupied=False))

            result = ReleaseResult(
                session_id=session.id,
                spot_id=spot.id,
                spot_code=spot.code,
                floor=spot.floor,
                building_id=spot.building_id,
                released_at=released_at,
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        record_release(result.building_id)
        logger.info(f"Spot {result.spot_code} released (session {result.session_id})")
        return result
