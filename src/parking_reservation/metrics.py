"""Prometheus metrics for parking reservations."""

from prometheus_client import Counter, Gauge, CollectorRegistry, generate_latest

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

BOOKINGS = Counter(
    "parking_bookings_total",
    "Total number of successful spot bookings",
    ["building_id"],
    registry=REGISTRY,
)

# Bookings rejected because the spot was already taken
BOOKING_CONFLICTS = Counter(
    "parking_booking_conflicts_total",
    "Total number of bookings rejected because the spot was occupied",
    ["building_id"],
    registry=REGISTRY,
)

BOOKING_FAILURES = Counter(
    "parking_booking_failures_total",
    "Total number of bookings that could not draw an unused release code",
    ["building_id"],
    registry=REGISTRY,
)

RELEASES = Counter(
    "parking_releases_total",
    "Total number of spots released with a valid code",
    ["building_id"],
    registry=REGISTRY,
)

RELEASE_FAILURES = Counter(
    "parking_release_failures_total",
    "Total number of release attempts with an unknown or used code",
    registry=REGISTRY,
)

BUILDINGS_CREATED = Counter(
    "parking_buildings_created_total",
    "Total number of buildings created",
    registry=REGISTRY,
)

TOTAL_SPOTS = Gauge(
    "parking_building_spots_total",
    "Number of spots in a building",
    ["building_id", "building_name"],
    registry=REGISTRY,
)

OCCUPIED_SPOTS = Gauge(
    "parking_building_spots_occupied",
    "Number of occupied spots in a building",
    ["building_id", "building_name"],
    registry=REGISTRY,
)


def record_booking(building_id: int) -> None:
    """Record a successful booking."""
    BOOKINGS.labels(building_id=str(building_id)).inc()


def record_booking_conflict(building_id: int) -> None:
    """Record a booking rejected because the spot was taken."""
    BOOKING_CONFLICTS.labels(building_id=str(building_id)).inc()


def record_booking_failure(building_id: int) -> None:
    """Record a booking that failed for lack of an unused release code."""
    BOOKING_FAILURES.labels(building_id=str(building_id)).inc()


def record_release(building_id: int) -> None:
    """Record a successful release."""
    RELEASES.labels(building_id=str(building_id)).inc()


def record_release_failure() -> None:
    """Record a release attempt that matched no active session."""
    RELEASE_FAILURES.inc()


def record_building_created() -> None:
    """Increment the building creation counter."""
    BUILDINGS_CREATED.inc()


def update_building_counts(building_id: int, building_name: str, total: int, occupied: int) -> None:
    """Update the spot gauges for one building."""
    TOTAL_SPOTS.labels(building_id=str(building_id), building_name=building_name).set(total)
    OCCUPIED_SPOTS.labels(building_id=str(building_id), building_name=building_name).set(occupied)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest(REGISTRY)
