"""Trip registration and editing."""

import logging
import uuid
from typing import Optional

from carshare.config import settings
from carshare.models import Trip, TripCreate, TripInput, TripUpdate
from carshare.services.pricing import PricingEngineInterface, get_pricing_engine

logger = logging.getLogger(__name__)


class TripValidationError(ValueError):
    """Raised when trip input cannot produce a valid trip."""


def _validate_participants(participant_ids) -> frozenset:
    if not participant_ids:
        raise TripValidationError("A trip needs at least one participant")
    unknown = [user_id for user_id in participant_ids if settings.get_user(user_id) is None]
    if unknown:
        raise TripValidationError(f"Unknown participants: {unknown}")
    return frozenset(participant_ids)


def _build_trip(
    trip_id: str,
    car_id: str,
    data: TripInput,
    pricing: PricingEngineInterface,
) -> Trip:
    participants = _validate_participants(data.participant_ids)
    try:
        kilometers = data.resolved_kilometers
    except ValueError as e:
        raise TripValidationError(str(e)) from e

    zone = pricing.resolve_zone(kilometers, data.is_oslo_area)
    return Trip(
        id=trip_id,
        car_id=car_id,
        date=data.date,
        kilometers=kilometers,
        description=data.description,
        participant_ids=participants,
        is_oslo_area=data.is_oslo_area,
        total_price=pricing.price(kilometers, data.is_oslo_area),
        zone=zone,
        is_using_route=data.route_distance_m is not None,
        start_location=data.start_location,
        end_location=data.end_location,
    )


def register_trip(data: TripCreate, pricing: Optional[PricingEngineInterface] = None) -> Trip:
    """
    Create a new trip and stamp its price.

    Args:
        data: Registration input
        pricing: Pricing engine, defaults to the configured zone table

    Returns:
        New immutable trip with a fresh id

    Raises:
        TripValidationError: If the car or participants are unknown, or no distance is given
    """
    if settings.get_car(data.car_id) is None:
        raise TripValidationError(f"Unknown car: {data.car_id}")

    trip = _build_trip(str(uuid.uuid4()), data.car_id, data, pricing or get_pricing_engine())
    logger.info(
        "Registered trip %s: %.1f km, %d participants, price %.2f",
        trip.id, trip.kilometers, len(trip.participant_ids), trip.total_price,
    )
    return trip


def edit_trip(
    original: Trip,
    data: TripUpdate,
    pricing: Optional[PricingEngineInterface] = None,
) -> Trip:
    """Build the replacement for an edited trip, keeping its id and car."""
    trip = _build_trip(original.id, original.car_id, data, pricing or get_pricing_engine())
    logger.info("Edited trip %s: price %.2f -> %.2f", trip.id, original.total_price, trip.total_price)
    return trip
