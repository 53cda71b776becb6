"""Zone-based trip pricing."""

import logging
from typing import Optional, Protocol, Sequence, runtime_checkable

from carshare.config import settings
from carshare.models import Zone

logger = logging.getLogger(__name__)


class ZoneTableError(ValueError):
    """Raised when the configured zone table is malformed."""


@runtime_checkable
class PricingEngineInterface(Protocol):
    """
    Interface for trip pricing.
    Trip registration depends on this protocol, not on a concrete table.
    """

    def resolve_zone(self, kilometers: float, is_oslo_area: bool) -> Zone:
        """Find the zone that prices a trip."""
        ...

    def price(self, kilometers: float, is_oslo_area: bool) -> float:
        """Calculate the total price of a trip."""
        ...


def validate_zone_table(zones: Sequence[Zone], threshold_km: float) -> None:
    """
    Check that a zone table is well formed.

    Brackets must start at 0, follow each other without gaps or overlaps
    (adjacent brackets share their boundary), and end in an unbounded
    catch-all. A bracket whose upper bound is at or below ``threshold_km``
    must appear once for each region flag; larger brackets appear once.

    Raises:
        ZoneTableError: If the table violates any of the rules above
    """
    if not zones:
        raise ZoneTableError("Zone table is empty")

    for zone in zones:
        if zone.lower_km < 0 or zone.lower_km > zone.upper_bound:
            raise ZoneTableError(f"Zone '{zone.name}' has an invalid range")
        if zone.price_per_km < 0:
            raise ZoneTableError(f"Zone '{zone.name}' has a negative price")

    if zones[0].lower_km != 0:
        raise ZoneTableError("Zone table must start at 0 km")
    if not zones[-1].is_unbounded:
        raise ZoneTableError("Last zone must be an unbounded catch-all")

    # Group consecutive zones sharing the same range into brackets
    brackets = []
    for zone in zones:
        if brackets and (brackets[-1][0].lower_km, brackets[-1][0].upper_bound) == (
            zone.lower_km,
            zone.upper_bound,
        ):
            brackets[-1].append(zone)
        else:
            brackets.append([zone])

    previous_upper: Optional[float] = None
    for bracket in brackets:
        head = bracket[0]
        if previous_upper is not None and head.lower_km != previous_upper:
            raise ZoneTableError(
                f"Zone '{head.name}' starts at {head.lower_km} km, "
                f"expected {previous_upper} km"
            )
        previous_upper = head.upper_bound

        flags = sorted(zone.is_oslo_area for zone in bracket)
        if head.upper_bound <= threshold_km:
            if flags != [False, True]:
                raise ZoneTableError(
                    f"Bracket {head.lower_km}-{head.upper_bound} km needs exactly "
                    f"one zone per region flag"
                )
        elif len(bracket) > 1:
            raise ZoneTableError(
                f"Bracket {head.lower_km}-{head.upper_bound} km is above "
                f"{threshold_km} km and must not be duplicated"
            )


class ZoneTablePricingEngine:
    """
    Prices trips from an ordered zone table.
    Lookup is first match wins, so shared boundaries belong to the earlier zone.
    """

    def __init__(self, zones: Sequence[Zone], threshold_km: float, validate: bool = True):
        if validate:
            validate_zone_table(zones, threshold_km)
        elif not zones:
            raise ZoneTableError("Zone table is empty")
        self.zones = tuple(zones)
        self.threshold_km = threshold_km

    def resolve_zone(self, kilometers: float, is_oslo_area: bool) -> Zone:
        """
        Find the zone for a distance and region flag.

        Args:
            kilometers: Trip distance, must not be negative
            is_oslo_area: Region flag, only considered for small brackets

        Returns:
            The first matching zone, or the last zone if none matches
        """
        if kilometers < 0:
            raise ValueError(f"Distance must not be negative, got {kilometers}")

        for zone in self.zones:
            if not zone.contains(kilometers):
                continue
            if zone.upper_bound <= self.threshold_km and zone.is_oslo_area != is_oslo_area:
                continue
            return zone

        logger.warning(
            "No zone matched %.2f km (oslo=%s), using '%s'",
            kilometers, is_oslo_area, self.zones[-1].name,
        )
        return self.zones[-1]

    def price(self, kilometers: float, is_oslo_area: bool) -> float:
        """Price a trip as distance times the resolved zone's rate, unrounded."""
        zone = self.resolve_zone(kilometers, is_oslo_area)
        return kilometers * zone.price_per_km


# Singleton instance for default pricing engine
_default_engine: Optional[PricingEngineInterface] = None


def get_pricing_engine() -> PricingEngineInterface:
    """
    Get the default pricing engine built from the configured zone table.

    Raises:
        ZoneTableError: If the configured zone table is malformed
    """
    global _default_engine
    if _default_engine is None:
        _default_engine = ZoneTablePricingEngine(
            settings.get_zone_table(), settings.SMALL_BRACKET_THRESHOLD_KM
        )
        logger.info("Loaded zone table with %d zones", len(_default_engine.zones))
    return _default_engine
