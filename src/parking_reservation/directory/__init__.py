"""Accounts, buildings and caller-facing reservation operations."""

from .accounts import (
    generate_card_id,
    list_vehicles,
    login,
    register_user,
    require_role,
    resolve_actor,
)
from .buildings import (
    active_sessions,
    building_dashboard,
    building_occupancy,
    create_building,
    get_building,
    list_buildings,
    list_spots,
)
from .models import ActiveSession, Actor, BuildingDashboard, UserType
from .reservations import release_reservation, reserve_spot

__all__ = [
    "generate_card_id",
    "list_vehicles",
    "login",
    "register_user",
    "require_role",
    "resolve_actor",
    "active_sessions",
    "building_dashboard",
    "building_occupancy",
    "create_building",
    "get_building",
    "list_buildings",
    "list_spots",
    "ActiveSession",
    "Actor",
    "BuildingDashboard",
    "UserType",
    "release_reservation",
    "reserve_spot",
]
