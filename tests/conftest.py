import pytest
from fastapi.testclient import TestClient

from parking_reservation.api.router import init_router
from parking_reservation.config import DatabaseConfig
from parking_reservation.db.database import create_engine_from_config, init_db, make_session_factory
from parking_reservation.directory import accounts, buildings
from parking_reservation.ledger.ledger import ReservationLedger
from parking_reservation.main import app


@pytest.fixture
def engine():
    engine = create_engine_from_config(DatabaseConfig(url="sqlite://"))
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def ledger():
    return ReservationLedger()


@pytest.fixture
def client(session_factory, ledger):
    init_router(session_factory, ledger)
    return TestClient(app)


@pytest.fixture
def owner(db):
    user = accounts.register_user(db, "Olivia Owner", "building_owner", card_id="CARD-OWNER001")
    return accounts.login(db, user.card_id)


@pytest.fixture
def driver(db):
    user = accounts.register_user(
        db, "Dan Driver", "car_owner", card_id="CARD-DRIVER01", plate_numbers=["ab 123 cd"]
    )
    return accounts.login(db, user.card_id)


@pytest.fixture
def vehicle(db, driver):
    return accounts.list_vehicles(db, driver)[0]


@pytest.fixture
def building(db, owner):
    """Building 1 ("A"): 10 spots over 3 floors."""
    building, spots = buildings.create_building(db, owner, "Central Garage", capacity=10, floors=3)
    return building


@pytest.fixture
def spots(db, building):
    return buildings.list_spots(db, building.id)
