"""Persistence module."""

from .database import Base, create_engine_from_config, init_db, make_session_factory
from .tables import Building, ParkingSession, Spot, User, Vehicle

__all__ = [
    "Base",
    "create_engine_from_config",
    "init_db",
    "make_session_factory",
    "Building",
    "ParkingSession",
    "Spot",
    "User",
    "Vehicle",
]
