"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from sqlalchemy import Engine

from .api.router import init_router, router
from .config import AppConfig, get_config_path, load_config
from .db.database import create_engine_from_config, init_db, make_session_factory
from .ledger.ledger import ReservationLedger

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Global state
config: AppConfig | None = None
engine: Engine | None = None


def resolve_config() -> AppConfig:
    """Load config/config.yaml, falling back to built-in defaults."""
    config_path = get_config_path()
    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}")
        logger.warning("Using default configuration (local SQLite database)")
        return AppConfig()

    cfg = load_config(config_path)
    logger.info(f"Loaded configuration from {config_path}")
    return cfg


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global config, engine

    logger.info("Starting Parking Reservation service...")

    config = resolve_config()
    logging.getLogger().setLevel(config.logging.level.upper())

    engine = create_engine_from_config(config.database)
    init_db(engine)
    logger.info("Database tables ready")

    init_router(make_session_factory(engine), ReservationLedger.from_config(config.ledger))

    logger.info(f"Parking Reservation service ready on http://{config.api.host}:{config.api.port}")

    yield  # Application runs here

    # Shutdown
    logger.info("Shutting down...")

    if engine:
        engine.dispose()

    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Parking Reservation",
    description="API for booking and releasing numbered parking spots in buildings",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


def main():
    """Run the application."""
    # Load config just to get API settings
    cfg = resolve_config()

    uvicorn.run(
        "parking_reservation.main:app",
        host=cfg.api.host,
        port=cfg.api.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
