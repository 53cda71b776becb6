"""API endpoints for trips, pricing and settlement."""

from fastapi import APIRouter, HTTPException, Depends
from typing import List
import logging

from carshare.models import (
    BalanceEntry,
    Car,
    DeleteTripsRequest,
    FavoriteLocation,
    Location,
    PriceQuoteRequest,
    PriceQuoteResponse,
    SettlementEntry,
    SummaryResponse,
    Trip,
    TripCreate,
    TripUpdate,
    User,
    UserCostEntry,
    UserTripEntry,
    Zone,
)
from carshare.services import (
    get_pricing_engine,
    get_settlement_engine,
    register_trip,
    edit_trip,
    PricingEngineInterface,
    SettlementEngine,
    TripValidationError,
)
from carshare.services.settlement import participant_share
from carshare.config import settings
from carshare.database import DatabaseManager, get_db_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["CarShare"])


def get_pricing() -> PricingEngineInterface:
    """Dependency injection for the pricing engine."""
    return get_pricing_engine()


def get_settlement() -> SettlementEngine:
    """Dependency injection for the settlement engine."""
    return get_settlement_engine()


def get_store() -> DatabaseManager:
    """Dependency injection for the trip store."""
    return get_db_manager()


def _get_trip_or_404(store: DatabaseManager, trip_id: str) -> Trip:
    trip = store.get_trip(trip_id)
    if trip is None:
        raise HTTPException(status_code=404, detail=f"Trip {trip_id} not found")
    return trip


@router.get("/users", response_model=List[User])
async def list_users():
    """Get the roster."""
    return list(settings.get_roster())


@router.get("/cars", response_model=List[Car])
async def list_cars():
    """Get the configured cars."""
    return list(settings.get_cars())


@router.get("/zones")
async def list_zones():
    """Get the zone table in lookup order."""
    return {
        "zones": [
            {**zone.model_dump(), "price_description": zone.price_description}
            for zone in settings.get_zone_table()
        ],
        "small_bracket_threshold_km": settings.SMALL_BRACKET_THRESHOLD_KM,
    }


@router.get("/locations/common", response_model=List[Location])
async def list_common_locations():
    """Get the preset route endpoints."""
    return list(settings.get_common_locations())


@router.get("/locations/favorites", response_model=List[FavoriteLocation])
async def list_favorite_locations(store: DatabaseManager = Depends(get_store)):
    """Get saved favorite locations."""
    return store.get_favorite_locations()


@router.post("/locations/favorites", response_model=FavoriteLocation, status_code=201)
async def add_favorite_location(
    location: Location,
    store: DatabaseManager = Depends(get_store)
) -> FavoriteLocation:
    """Save a location as a favorite."""
    return store.add_favorite_location(location)


@router.delete("/locations/favorites/{location_id}")
async def remove_favorite_location(
    location_id: int,
    store: DatabaseManager = Depends(get_store)
):
    """Remove a favorite location."""
    if not store.remove_favorite_location(location_id):
        raise HTTPException(status_code=404, detail=f"Favorite location {location_id} not found")
    return {"deleted": 1}


@router.post("/price", response_model=PriceQuoteResponse)
async def quote_price(
    request: PriceQuoteRequest,
    pricing: PricingEngineInterface = Depends(get_pricing)
) -> PriceQuoteResponse:
    """
    Quote the price of a trip without storing it.

    Args:
        request: Distance and region flag
        pricing: Injected pricing engine implementing PricingEngineInterface

    Returns:
        PriceQuoteResponse with the resolved zone and total price
    """
    zone: Zone = pricing.resolve_zone(request.kilometers, request.is_oslo_area)
    return PriceQuoteResponse(
        kilometers=request.kilometers,
        is_oslo_area=request.is_oslo_area,
        zone=zone,
        total_price=pricing.price(request.kilometers, request.is_oslo_area),
    )


@router.post("/trips", response_model=Trip, status_code=201)
async def create_trip(
    request: TripCreate,
    pricing: PricingEngineInterface = Depends(get_pricing),
    store: DatabaseManager = Depends(get_store)
) -> Trip:
    """
    Register a trip. The price is stamped once from the zone table.

    Raises:
        HTTPException: 400 if the car or participants are unknown
    """
    try:
        trip = register_trip(request, pricing)
    except TripValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return store.add_trip(trip)


@router.get("/trips", response_model=List[Trip])
async def list_trips(store: DatabaseManager = Depends(get_store)):
    """Get all trips, newest first."""
    return store.get_all_trips()


@router.get("/trips/{trip_id}", response_model=Trip)
async def get_trip(trip_id: str, store: DatabaseManager = Depends(get_store)):
    """Get one trip."""
    return _get_trip_or_404(store, trip_id)


@router.put("/trips/{trip_id}", response_model=Trip)
async def update_trip(
    trip_id: str,
    request: TripUpdate,
    pricing: PricingEngineInterface = Depends(get_pricing),
    store: DatabaseManager = Depends(get_store)
) -> Trip:
    """Replace a trip with edited values, re-pricing it."""
    original = _get_trip_or_404(store, trip_id)
    try:
        trip = edit_trip(original, request, pricing)
    except TripValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    stored = store.replace_trip(trip)
    if stored is None:
        raise HTTPException(status_code=404, detail=f"Trip {trip_id} not found")
    return stored


@router.delete("/trips/{trip_id}")
async def delete_trip(trip_id: str, store: DatabaseManager = Depends(get_store)):
    """Delete one trip."""
    if not store.delete_trip(trip_id):
        raise HTTPException(status_code=404, detail=f"Trip {trip_id} not found")
    return {"deleted": 1}


@router.post("/trips/delete")
async def delete_trips(
    request: DeleteTripsRequest,
    store: DatabaseManager = Depends(get_store)
):
    """Delete several trips at once. Unknown ids are ignored."""
    return {"deleted": store.delete_trips(request.trip_ids)}


@router.delete("/trips")
async def delete_all_trips(store: DatabaseManager = Depends(get_store)):
    """Delete every trip."""
    return {"deleted": store.delete_all_trips()}


@router.get("/users/{user_id}/trips", response_model=List[UserTripEntry])
async def list_user_trips(user_id: str, store: DatabaseManager = Depends(get_store)):
    """Get the trips a user took part in, with their share of each."""
    if settings.get_user(user_id) is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")

    return [
        UserTripEntry(
            trip=trip,
            share=participant_share(trip),
            other_participant_count=len(trip.participant_ids) - 1,
        )
        for trip in store.get_all_trips()
        if user_id in trip.participant_ids
    ]


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    engine: SettlementEngine = Depends(get_settlement),
    store: DatabaseManager = Depends(get_store)
) -> SummaryResponse:
    """
    Get balances, settling payments and per-user trip costs.

    Everything is recomputed from the current trip list.
    """
    trips = store.get_all_trips()
    try:
        balances = engine.balances(trips)
        settlements = engine.settlements(trips)
        costs = engine.trip_costs(trips)
    except ValueError as e:
        logger.error("Stored trips cannot be settled: %s", e)
        raise HTTPException(status_code=500, detail=f"Internal error: {str(e)}")

    return SummaryResponse(
        balances=[BalanceEntry(user=user, balance=amount) for user, amount in balances.items()],
        settlements=[
            SettlementEntry(payer=s.payer, payee=s.payee, amount=s.amount)
            for s in settlements
        ],
        trip_costs=[UserCostEntry(user=user, total_cost=cost) for user, cost in costs.items()],
        trip_count=len(trips),
        total_price=sum(trip.total_price for trip in trips),
    )


@router.get("/health")
async def health_check():
    """Health check endpoint including datastore status."""
    db_status = "healthy"
    try:
        trip_count = get_db_manager().count_trips()
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        trip_count = 0

    return {
        "status": "healthy",
        "service": settings.API_TITLE,
        "datastore_status": db_status,
        "trip_count": trip_count
    }
