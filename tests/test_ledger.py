from datetime import timezone

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from parking_reservation.db.tables import ParkingSession, Spot
from parking_reservation.ledger.errors import (
    CodeExhaustedError,
    NotFoundError,
    SpotOccupiedError,
    ValidationError,
)
from parking_reservation.ledger.ledger import ReservationLedger, normalize_code


def active_sessions_for(db, spot_id):
    stmt = select(func.count(ParkingSession.id)).where(
        ParkingSession.spot_id == spot_id, ParkingSession.released_at.is_(None)
    )
    return db.scalar(stmt)


def assert_flag_matches_sessions(db):
    for spot in db.scalars(select(Spot)).all():
        assert spot.is_occupied == (active_sessions_for(db, spot.id) == 1)


def test_normalize_code():
    assert normalize_code("  xyz123 ") == "XYZ123"
    assert normalize_code(None) == ""


def test_generated_codes_use_the_alphabet():
    ledger = ReservationLedger(code_length=8, code_alphabet="ab")
    code = ledger.generate_code()
    assert len(code) == 8
    assert set(code) <= {"A", "B"}


def test_book_free_spot(db, ledger, spots, vehicle):
    spot = spots[0]

    result = ledger.book_spot(db, spot.id, vehicle.id)

    assert result.spot_id == spot.id
    assert result.spot_code == "A1-01"
    assert result.vehicle_id == vehicle.id
    assert len(result.unique_code) == 6
    assert result.unique_code.isalnum()
    assert result.unique_code == result.unique_code.upper()

    db.refresh(spot)
    assert spot.is_occupied
    session = db.get(ParkingSession, result.session_id)
    assert session.unique_code == result.unique_code
    assert session.released_at is None
    assert session.parked_at is not None


def test_booking_occupied_spot_is_rejected(db, ledger, spots, vehicle):
    spot = spots[0]
    ledger.book_spot(db, spot.id, vehicle.id)

    with pytest.raises(SpotOccupiedError):
        ledger.book_spot(db, spot.id, vehicle.id)

    assert active_sessions_for(db, spot.id) == 1


def test_booking_unknown_spot(db, ledger, vehicle):
    with pytest.raises(NotFoundError):
        ledger.book_spot(db, 9999, vehicle.id)


def test_booking_loses_race_without_writing_a_session(db, ledger, spots, vehicle, monkeypatch):
    spot = spots[0]

    def taken_meanwhile(session):
        # Another booking claims the spot between the check and the claim
        session.execute(update(Spot).where(Spot.id == spot.id).values(is_occupied=True))
        return "RACE01"

    monkeypatch.setattr(ledger, "_new_code", taken_meanwhile)

    with pytest.raises(SpotOccupiedError):
        ledger.book_spot(db, spot.id, vehicle.id)

    assert db.scalar(select(func.count(ParkingSession.id))) == 0


def test_release_is_case_insensitive_and_single_use(db, ledger, spots, vehicle):
    spot = spots[4]
    booking = ledger.book_spot(db, spot.id, vehicle.id)

    result = ledger.release_spot(db, f"  {booking.unique_code.lower()} ")

    assert result.spot_id == spot.id
    assert result.spot_code == "A2-01"
    assert result.floor == 2
    assert result.session_id == booking.session_id
    db.refresh(spot)
    assert not spot.is_occupied
    assert db.get(ParkingSession, booking.session_id).released_at is not None

    with pytest.raises(NotFoundError):
        ledger.release_spot(db, booking.unique_code)

    db.refresh(spot)
    assert not spot.is_occupied


def test_release_unknown_code_changes_nothing(db, ledger, spots, vehicle):
    booking = ledger.book_spot(db, spots[0].id, vehicle.id)

    with pytest.raises(NotFoundError):
        ledger.release_spot(db, "NOPE00")

    assert db.get(ParkingSession, booking.session_id).released_at is None
    db.refresh(spots[0])
    assert spots[0].is_occupied


@pytest.mark.parametrize("code", ["", "   ", None])
def test_release_requires_a_code(db, ledger, code):
    with pytest.raises(ValidationError):
        ledger.release_spot(db, code)


def test_spot_can_be_booked_again_after_release(db, ledger, spots, vehicle):
    spot = spots[0]
    first = ledger.book_spot(db, spot.id, vehicle.id)
    ledger.release_spot(db, first.unique_code)

    second = ledger.book_spot(db, spot.id, vehicle.id)

    assert second.session_id != first.session_id
    history = db.scalars(select(ParkingSession).where(ParkingSession.spot_id == spot.id)).all()
    assert len(history) == 2
    assert_flag_matches_sessions(db)


def test_occupied_flag_tracks_active_sessions(db, ledger, spots, vehicle):
    codes = [ledger.book_spot(db, s.id, vehicle.id).unique_code for s in spots[:5]]
    ledger.release_spot(db, codes[1])
    ledger.release_spot(db, codes[3])

    assert_flag_matches_sessions(db)


def test_active_code_collisions_are_redrawn(db, spots, vehicle, monkeypatch):
    ledger = ReservationLedger()
    draws = iter(["SAME01", "SAME01", "OTHER1"])
    monkeypatch.setattr(ledger, "generate_code", lambda: next(draws))

    first = ledger.book_spot(db, spots[0].id, vehicle.id)
    second = ledger.book_spot(db, spots[1].id, vehicle.id)

    assert first.unique_code == "SAME01"
    assert second.unique_code == "OTHER1"


def test_released_codes_may_be_reused(db, spots, vehicle, monkeypatch):
    ledger = ReservationLedger()
    monkeypatch.setattr(ledger, "generate_code", lambda: "SAME01")

    first = ledger.book_spot(db, spots[0].id, vehicle.id)
    ledger.release_spot(db, first.unique_code)
    second = ledger.book_spot(db, spots[1].id, vehicle.id)

    assert second.unique_code == "SAME01"


def test_collisions_allowed_when_not_enforced(db, spots, vehicle, monkeypatch):
    ledger = ReservationLedger(enforce_unique_codes=False)
    monkeypatch.setattr(ledger, "generate_code", lambda: "SAME01")

    ledger.book_spot(db, spots[0].id, vehicle.id)
    second = ledger.book_spot(db, spots[1].id, vehicle.id)

    assert second.unique_code == "SAME01"


def test_gives_up_after_max_code_attempts(db, spots, vehicle, monkeypatch):
    ledger = ReservationLedger(max_code_attempts=3)
    monkeypatch.setattr(ledger, "generate_code", lambda: "SAME01")
    ledger.book_spot(db, spots[0].id, vehicle.id)

    with pytest.raises(CodeExhaustedError):
        ledger.book_spot(db, spots[1].id, vehicle.id)

    db.refresh(spots[1])
    assert not spots[1].is_occupied
    assert active_sessions_for(db, spots[1].id) == 0


def test_store_error_while_booking_leaves_spot_free(db, ledger, spots, vehicle, monkeypatch):
    spot = spots[0]
    real_flush = db.flush

    def flush_fails_on_insert(*args, **kwargs):
        # Only the session insert fails; the spot has already been claimed
        if db.new:
            raise SQLAlchemyError("disk I/O error")
        return real_flush(*args, **kwargs)

    monkeypatch.setattr(db, "flush", flush_fails_on_insert)

    with pytest.raises(SQLAlchemyError):
        ledger.book_spot(db, spot.id, vehicle.id)

    monkeypatch.undo()
    db.refresh(spot)
    assert not spot.is_occupied
    assert db.scalar(select(func.count(ParkingSession.id))) == 0


def test_store_error_while_releasing_keeps_session_open(db, ledger, spots, vehicle, monkeypatch):
    spot = spots[0]
    booking = ledger.book_spot(db, spot.id, vehicle.id)
    real_execute = db.execute

    def execute_fails_on_spot_update(statement, *args, **kwargs):
        if statement.is_dml and statement.table.name == "spots":
            raise SQLAlchemyError("disk I/O error")
        return real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", execute_fails_on_spot_update)

    with pytest.raises(SQLAlchemyError):
        ledger.release_spot(db, booking.unique_code)

    monkeypatch.undo()
    db.refresh(spot)
    assert spot.is_occupied
    assert db.get(ParkingSession, booking.session_id).released_at is None
    assert_flag_matches_sessions(db)

    assert ledger.release_spot(db, booking.unique_code).session_id == booking.session_id


def test_timestamps_read_back_in_utc(db, ledger, spots, vehicle):
    booking = ledger.book_spot(db, spots[0].id, vehicle.id)
    db.expire_all()

    session = db.get(ParkingSession, booking.session_id)

    assert session.parked_at.tzinfo is timezone.utc
    assert session.parked_at == booking.parked_at
