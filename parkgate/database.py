# parkgate/database.py
"""
Store connection, session management, and table creation.
The engine and session factory are built once at import and reused for the
life of the process. Services receive SessionLocal explicitly; only the
FastAPI dependency and the app entry point read these globals.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from parkgate.config import settings


def build_engine(url: str):
    """Create an engine with pool settings suited to the backend in `url`."""
    if url.startswith("sqlite"):
        # Admission workers share the engine across threads
        return create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})
    return create_engine(
        url,
        pool_pre_ping=True,          # Auto-reconnect if DB connection drops
        pool_size=10,
        max_overflow=20,
        echo=False,                  # Set True to log all SQL queries (debug only)
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Creates all tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from parkgate.models.driver import Driver              # noqa
    from parkgate.models.vehicle_record import VehicleIn, VehicleOut  # noqa
    from parkgate.models.parking_log import ParkingLog     # noqa
    from parkgate.models.capacity_slot import CapacitySlot  # noqa

    Base.metadata.create_all(bind=bind or engine)
