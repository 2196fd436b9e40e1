"""Exceptions raised by reservation and directory operations."""


class ReservationError(Exception):
    """Base class for all domain errors."""


class NotFoundError(ReservationError):
    """A building, spot, vehicle or active session does not exist."""


class SpotOccupiedError(ReservationError):
    """The spot was already taken when the booking tried to claim it."""


class AuthenticationError(ReservationError):
    """The caller could not be identified."""


class AuthorizationError(ReservationError):
    """The caller's role does not allow the operation."""


class ConflictError(ReservationError):
    """A uniqueness rule was violated, e.g. a card id already registered."""


class InvalidLayoutError(ReservationError):
    """Capacity and floor count cannot produce a spot layout."""


class ValidationError(ReservationError):
    """Input is blank or malformed."""


class CodeExhaustedError(ReservationError):
    """No unused release code could be drawn within the attempt limit."""
