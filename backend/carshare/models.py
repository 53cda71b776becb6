"""Models for the CarShare cost splitting system."""

import math
from datetime import datetime, timezone
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def to_naive_utc(value: datetime) -> datetime:
    """Trip dates are kept as naive UTC; aware values are converted."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(BaseModel):
    """A roster member. Equality and hashing use the id only."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str

    def __eq__(self, other):
        if not isinstance(other, User):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


class Car(BaseModel):
    """A shared car."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    license_plate: str

    def __eq__(self, other):
        if not isinstance(other, Car):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)


class Location(BaseModel):
    """Route endpoint snapshot supplied by the mapping service."""
    model_config = ConfigDict(frozen=True)

    name: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class FavoriteLocation(Location):
    """A location saved by the user for quick route selection."""
    id: int
    is_favorite: bool = True


class Zone(BaseModel):
    """
    A priced distance bracket.

    ``upper_km`` of ``None`` marks the unbounded catch-all bracket.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    lower_km: float
    upper_km: Optional[float] = None
    price_per_km: float
    is_oslo_area: bool = False

    @property
    def upper_bound(self) -> float:
        return math.inf if self.upper_km is None else self.upper_km

    @property
    def is_unbounded(self) -> bool:
        return self.upper_km is None or math.isinf(self.upper_km)

    def contains(self, kilometers: float) -> bool:
        """Closed interval check: both bounds are inclusive."""
        return self.lower_km <= kilometers <= self.upper_bound

    @property
    def price_description(self) -> str:
        return f"{self.price_per_km:.1f} kr/km"


class Trip(BaseModel):
    """
    A logged trip. Immutable once created; edits replace the whole record.

    ``total_price`` is stamped at creation from the zone table and is never
    recomputed afterwards.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    car_id: str
    date: datetime
    kilometers: float = Field(..., ge=0)
    description: str = ""
    participant_ids: FrozenSet[str] = Field(..., min_length=1)
    is_oslo_area: bool = False
    total_price: float = Field(..., ge=0)
    zone: Optional[Zone] = None
    is_using_route: bool = False
    start_location: Optional[Location] = None
    end_location: Optional[Location] = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v):
        return to_naive_utc(v)

    @field_serializer("participant_ids")
    def serialize_participants(self, participant_ids: FrozenSet[str]) -> List[str]:
        return sorted(participant_ids)


class Settlement(BaseModel):
    """A single payment from payer to payee."""
    model_config = ConfigDict(frozen=True)

    payer: User
    payee: User
    amount: float = Field(..., gt=0)


class TripInput(BaseModel):
    """Fields shared by trip registration and trip edits."""
    date: datetime = Field(default_factory=utc_now)
    kilometers: Optional[float] = Field(None, ge=0, description="Manually entered distance")
    route_distance_m: Optional[float] = Field(
        None, ge=0, description="Route distance in meters from the mapping service"
    )
    description: str = ""
    participant_ids: List[str] = Field(..., min_length=1)
    is_oslo_area: bool = False
    start_location: Optional[Location] = None
    end_location: Optional[Location] = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v):
        return to_naive_utc(v)

    @field_validator("participant_ids")
    @classmethod
    def validate_unique_participants(cls, v):
        if len(set(v)) != len(v):
            raise ValueError("Participant ids must be unique")
        return v

    @property
    def resolved_kilometers(self) -> float:
        """Distance in km, preferring the route lookup over manual entry."""
        if self.route_distance_m is not None:
            return self.route_distance_m / 1000
        if self.kilometers is None:
            raise ValueError("Either kilometers or route_distance_m is required")
        return self.kilometers


class TripCreate(TripInput):
    """Request model for registering a trip."""
    car_id: str


class TripUpdate(TripInput):
    """Request model for editing a trip. The car and id are kept."""


class PriceQuoteRequest(BaseModel):
    """Request model for a price quote."""
    kilometers: float = Field(..., ge=0)
    is_oslo_area: bool = False


class PriceQuoteResponse(BaseModel):
    """Response model for a price quote."""
    kilometers: float
    is_oslo_area: bool
    zone: Zone
    total_price: float


class DeleteTripsRequest(BaseModel):
    """Request model for deleting several trips at once."""
    trip_ids: List[str] = Field(..., min_length=1)


class BalanceEntry(BaseModel):
    user: User
    balance: float


class SettlementEntry(BaseModel):
    payer: User
    payee: User
    amount: float


class UserCostEntry(BaseModel):
    user: User
    total_cost: float


class SummaryResponse(BaseModel):
    """Response model for the summary report."""
    balances: List[BalanceEntry]
    settlements: List[SettlementEntry]
    trip_costs: List[UserCostEntry]
    trip_count: int
    total_price: float


class UserTripEntry(BaseModel):
    """A trip from one user's point of view."""
    trip: Trip
    share: float
    other_participant_count: int
