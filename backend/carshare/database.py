"""Database models and setup for the CarShare trip store."""

from sqlalchemy import create_engine, Column, Integer, String, Float, Boolean, DateTime, JSON
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Iterable, List, Optional
import logging
import os

from carshare.config import settings
from carshare.models import FavoriteLocation, Location, Trip, Zone

logger = logging.getLogger(__name__)

Base = declarative_base()


class TripDB(Base):
    """Database model for storing trips."""
    __tablename__ = "trips"

    id = Column(String, primary_key=True, index=True)
    car_id = Column(String, nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    kilometers = Column(Float, nullable=False)
    description = Column(String, nullable=False, default="")
    participant_ids = Column(JSON, nullable=False)
    is_oslo_area = Column(Boolean, nullable=False, default=False)
    total_price = Column(Float, nullable=False)
    zone = Column(JSON, nullable=True)
    is_using_route = Column(Boolean, nullable=False, default=False)
    start_location = Column(JSON, nullable=True)
    end_location = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<Trip(id={self.id}, kilometers={self.kilometers}, total_price={self.total_price})>"


class FavoriteLocationDB(Base):
    """Database model for storing favorite locations."""
    __tablename__ = "favorite_locations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    def __repr__(self):
        return f"<FavoriteLocation(id={self.id}, name={self.name})>"


def _to_row(trip: Trip) -> TripDB:
    return TripDB(
        id=trip.id,
        car_id=trip.car_id,
        date=trip.date,
        kilometers=trip.kilometers,
        description=trip.description,
        participant_ids=sorted(trip.participant_ids),
        is_oslo_area=trip.is_oslo_area,
        total_price=trip.total_price,
        zone=trip.zone.model_dump() if trip.zone else None,
        is_using_route=trip.is_using_route,
        start_location=trip.start_location.model_dump() if trip.start_location else None,
        end_location=trip.end_location.model_dump() if trip.end_location else None,
    )


def _to_trip(row: TripDB) -> Trip:
    return Trip(
        id=row.id,
        car_id=row.car_id,
        date=row.date,
        kilometers=row.kilometers,
        description=row.description,
        participant_ids=frozenset(row.participant_ids),
        is_oslo_area=row.is_oslo_area,
        total_price=row.total_price,
        zone=Zone(**row.zone) if row.zone else None,
        is_using_route=row.is_using_route,
        start_location=Location(**row.start_location) if row.start_location else None,
        end_location=Location(**row.end_location) if row.end_location else None,
    )


class DatabaseManager:
    """Manager class for trip store operations."""

    def __init__(self, database_url: Optional[str] = None):
        """Initialize database connection."""
        self.database_url = database_url or os.getenv("DATABASE_URL", settings.DATABASE_URL)

        # Create engine with appropriate settings for SQLite
        connect_args = {"check_same_thread": False} if "sqlite" in self.database_url else {}
        self.engine = create_engine(self.database_url, connect_args=connect_args)

        # Create session factory
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

        # Create tables if they don't exist
        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    def add_trip(self, trip: Trip) -> Trip:
        """Store a new trip."""
        session = self.get_session()
        try:
            session.add(_to_row(trip))
            session.commit()
            logger.debug("Stored trip %s", trip.id)
            return trip
        finally:
            session.close()

    def get_trip(self, trip_id: str) -> Optional[Trip]:
        """Get a trip by id."""
        session = self.get_session()
        try:
            row = session.get(TripDB, trip_id)
            return _to_trip(row) if row else None
        finally:
            session.close()

    def get_all_trips(self) -> List[Trip]:
        """Get all trips, newest first."""
        session = self.get_session()
        try:
            rows = session.query(TripDB).order_by(TripDB.date.desc(), TripDB.id).all()
            return [_to_trip(row) for row in rows]
        finally:
            session.close()

    def count_trips(self) -> int:
        session = self.get_session()
        try:
            return session.query(TripDB).count()
        finally:
            session.close()

    def replace_trip(self, trip: Trip) -> Optional[Trip]:
        """
        Replace a stored trip with the same id.

        Returns:
            The stored trip, or None if no trip has that id
        """
        session = self.get_session()
        try:
            if session.get(TripDB, trip.id) is None:
                return None
            session.merge(_to_row(trip))
            session.commit()
            return trip
        finally:
            session.close()

    def delete_trip(self, trip_id: str) -> bool:
        """Delete one trip. Returns False if it did not exist."""
        return self.delete_trips([trip_id]) == 1

    def delete_trips(self, trip_ids: Iterable[str]) -> int:
        """Delete several trips by id and return how many were removed."""
        trip_ids = list(trip_ids)
        if not trip_ids:
            return 0
        session = self.get_session()
        try:
            deleted = session.query(TripDB).filter(
                TripDB.id.in_(trip_ids)
            ).delete(synchronize_session=False)
            session.commit()
            logger.info("Deleted %d of %d requested trips", deleted, len(trip_ids))
            return deleted
        finally:
            session.close()

    def delete_all_trips(self) -> int:
        """Delete every trip and return how many were removed."""
        session = self.get_session()
        try:
            deleted = session.query(TripDB).delete()
            session.commit()
            logger.info("Deleted all %d trips", deleted)
            return deleted
        finally:
            session.close()

    def add_favorite_location(self, location: Location) -> FavoriteLocation:
        """Save a location as a favorite."""
        session = self.get_session()
        try:
            row = FavoriteLocationDB(
                name=location.name,
                latitude=location.latitude,
                longitude=location.longitude,
            )
            session.add(row)
            session.commit()
            logger.info("Added favorite location %s (%s)", row.id, row.name)
            return FavoriteLocation(
                id=row.id, name=row.name, latitude=row.latitude, longitude=row.longitude
            )
        finally:
            session.close()

    def get_favorite_locations(self) -> List[FavoriteLocation]:
        """Get favorite locations in the order they were saved."""
        session = self.get_session()
        try:
            rows = session.query(FavoriteLocationDB).order_by(FavoriteLocationDB.id).all()
            return [
                FavoriteLocation(
                    id=row.id, name=row.name, latitude=row.latitude, longitude=row.longitude
                )
                for row in rows
            ]
        finally:
            session.close()

    def remove_favorite_location(self, location_id: int) -> bool:
        """Remove a favorite location. Returns False if it did not exist."""
        session = self.get_session()
        try:
            deleted = session.query(FavoriteLocationDB).filter_by(id=location_id).delete()
            session.commit()
            return deleted == 1
        finally:
            session.close()


# Singleton instance
_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Get singleton database manager instance."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager
