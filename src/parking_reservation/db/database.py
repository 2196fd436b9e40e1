"""Engine and session factory for the relational store."""

import logging

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import DatabaseConfig

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def create_engine_from_config(config: DatabaseConfig) -> Engine:
    """
    Build a SQLAlchemy engine for the configured database URL.

    SQLite connections are shared across FastAPI's worker threads, and
    in-memory databases are pinned to a single connection so every session
    sees the same tables.
    """
    kwargs = {"echo": config.echo}
    if config.url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if config.url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(config.url, **kwargs)
    logger.info(f"Created database engine for {engine.url.render_as_string(hide_password=True)}")
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    """Create the session factory used per request."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create DB tables (if they don't exist yet)."""
    from . import tables  # noqa: F401

    Base.metadata.create_all(bind=engine)
