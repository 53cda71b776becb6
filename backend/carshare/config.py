"""Configuration for the CarShare system."""

from typing import List, Optional, Tuple
import os
from dotenv import load_dotenv

from carshare.models import Car, Location, User, Zone

load_dotenv()


class Settings:
    """Application settings."""

    # API Settings
    API_TITLE = "CarShare Cost Splitter"
    API_VERSION = "1.0.0"
    API_DESCRIPTION = (
        "Car-sharing trip log with zone pricing and settlement of shared costs"
    )

    # Database Settings
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./carshare_trips.db")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # CORS Settings
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
        ).split(",")
        if origin.strip()
    ]

    # Pricing: brackets with an upper bound at or below this distance (km)
    # are split by region flag.
    SMALL_BRACKET_THRESHOLD_KM = 50.0

    # Settlement tolerance, in currency units.
    SETTLEMENT_EPSILON = 0.01

    CURRENCY_SUFFIX = "kr"

    # (id, name)
    DEFAULT_ROSTER: List[Tuple[str, str]] = [
        ("charlotte", "Charlotte"),
        ("johanne", "Johanne"),
        ("julius", "Julius"),
        ("pal", "Pål"),
    ]

    # (id, name, license plate)
    DEFAULT_CARS: List[Tuple[str, str, str]] = [
        ("roy", "Roy", "EV89790"),
    ]

    # (name, lower km, upper km, price per km, oslo area)
    DEFAULT_ZONES: List[Tuple[str, float, Optional[float], float, bool]] = [
        ("0-50km (Oslo + Bærum)", 0.0, 50.0, 4.5, True),
        ("0-50km (andre steder)", 0.0, 50.0, 3.0, False),
        ("50-250km", 50.0, 250.0, 2.5, False),
        ("250-500km", 250.0, 500.0, 2.2, False),
        ("500km+", 500.0, None, 1.8, False),
    ]

    # (name, latitude, longitude)
    COMMON_LOCATIONS: List[Tuple[str, float, float]] = [
        ("Schweigaards gate 88", 59.91124, 10.76663),
        ("Trondheimsveien 89", 59.92824, 10.77231),
        ("Lundevegen 12, Åmot", 59.45056, 7.94944),
        ("Hystadveien 44", 59.41340, 5.27165),
        ("Fjellveien 37G", 59.91340, 10.85165),
    ]

    _roster_cache: Optional[Tuple[User, ...]] = None
    _cars_cache: Optional[Tuple[Car, ...]] = None
    _zones_cache: Optional[Tuple[Zone, ...]] = None

    @classmethod
    def get_roster(cls) -> Tuple[User, ...]:
        """Get the fixed, ordered roster of users."""
        if cls._roster_cache is None:
            cls._roster_cache = tuple(
                User(id=user_id, name=name) for user_id, name in cls.DEFAULT_ROSTER
            )
        return cls._roster_cache

    @classmethod
    def get_user(cls, user_id: str) -> Optional[User]:
        """Look up a roster user by id."""
        for user in cls.get_roster():
            if user.id == user_id:
                return user
        return None

    @classmethod
    def get_cars(cls) -> Tuple[Car, ...]:
        """Get the configured cars."""
        if cls._cars_cache is None:
            cls._cars_cache = tuple(
                Car(id=car_id, name=name, license_plate=plate)
                for car_id, name, plate in cls.DEFAULT_CARS
            )
        return cls._cars_cache

    @classmethod
    def get_car(cls, car_id: str) -> Optional[Car]:
        """Look up a configured car by id."""
        for car in cls.get_cars():
            if car.id == car_id:
                return car
        return None

    @classmethod
    def get_zone_table(cls) -> Tuple[Zone, ...]:
        """Get the ordered zone table."""
        if cls._zones_cache is None:
            cls._zones_cache = tuple(
                Zone(
                    name=name,
                    lower_km=lower,
                    upper_km=upper,
                    price_per_km=price,
                    is_oslo_area=oslo,
                )
                for name, lower, upper, price, oslo in cls.DEFAULT_ZONES
            )
        return cls._zones_cache

    @classmethod
    def get_common_locations(cls) -> Tuple[Location, ...]:
        """Get the preset route endpoints."""
        return tuple(
            Location(name=name, latitude=lat, longitude=lon)
            for name, lat, lon in cls.COMMON_LOCATIONS
        )


settings = Settings()
