"""Services package for CarShare system."""

from .pricing import (
    get_pricing_engine,
    PricingEngineInterface,
    ZoneTablePricingEngine,
    ZoneTableError,
)
from .settlement import (
    get_settlement_engine,
    SettlementEngine,
    compute_balances,
    compute_settlements,
)
from .trips import register_trip, edit_trip, TripValidationError

__all__ = [
    'get_pricing_engine',
    'PricingEngineInterface',
    'ZoneTablePricingEngine',
    'ZoneTableError',
    'get_settlement_engine',
    'SettlementEngine',
    'compute_balances',
    'compute_settlements',
    'register_trip',
    'edit_trip',
    'TripValidationError',
]
