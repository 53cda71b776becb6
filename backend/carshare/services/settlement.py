"""Balance and settlement calculation for shared trip costs."""

import logging
from typing import Dict, List, Optional, Sequence

from carshare.config import settings
from carshare.models import Settlement, Trip, User

logger = logging.getLogger(__name__)


def _check_participants(trip: Trip, roster_ids: set) -> None:
    if not trip.participant_ids:
        raise ValueError(f"Trip {trip.id} has no participants")
    unknown = trip.participant_ids - roster_ids
    if unknown:
        raise ValueError(
            f"Trip {trip.id} has participants outside the roster: {sorted(unknown)}"
        )


def participant_share(trip: Trip) -> float:
    """Cost of one trip for each of its participants."""
    if not trip.participant_ids:
        raise ValueError(f"Trip {trip.id} has no participants")
    return trip.total_price / len(trip.participant_ids)


def compute_balances(trips: Sequence[Trip], roster: Sequence[User]) -> Dict[User, float]:
    """
    Calculate each roster user's net balance across all trips.

    For every trip, participants each owe ``total_price / |participants|`` and
    non-participants are each owed ``total_price / |non-participants|``. A
    trip everyone joined changes nothing. Trips are accumulated in the given
    order so floating point results are reproducible.

    Args:
        trips: Snapshot of the trip list
        roster: Ordered roster; the result keeps this order

    Returns:
        Mapping of user to balance (negative owes, positive is owed)

    Raises:
        ValueError: If a trip has no participants or names a non-roster user
    """
    balances: Dict[User, float] = {user: 0.0 for user in roster}
    roster_ids = {user.id for user in roster}

    for trip in trips:
        _check_participants(trip, roster_ids)

        participants = [user for user in roster if user.id in trip.participant_ids]
        non_participants = [user for user in roster if user.id not in trip.participant_ids]
        if not non_participants:
            continue

        owed_by_each = trip.total_price / len(participants)
        owed_to_each = trip.total_price / len(non_participants)
        for user in participants:
            balances[user] -= owed_by_each
        for user in non_participants:
            balances[user] += owed_to_each

    return balances


def settle_balances(
    balances: Dict[User, float],
    epsilon: float = settings.SETTLEMENT_EPSILON,
) -> List[Settlement]:
    """
    Turn balances into payments, pairing debtors and creditors in roster order.

    Each debtor pays creditors in order until their debt is gone; amounts at
    or below ``epsilon`` count as settled. This is a greedy pairing and does
    not guarantee the smallest possible number of payments.

    Returns:
        Settlements sorted by amount, largest first; equal amounts keep the
        order in which they were generated
    """
    debtors = [[user, -amount] for user, amount in balances.items() if amount < -epsilon]
    creditors = [[user, amount] for user, amount in balances.items() if amount > epsilon]

    settlements: List[Settlement] = []
    for debtor in debtors:
        for creditor in creditors:
            if debtor[1] <= epsilon:
                break
            if creditor[1] <= epsilon:
                continue

            amount = min(debtor[1], creditor[1])
            settlements.append(Settlement(payer=debtor[0], payee=creditor[0], amount=amount))
            debtor[1] -= amount
            creditor[1] -= amount

    settlements.sort(key=lambda s: s.amount, reverse=True)
    return settlements


def compute_settlements(
    trips: Sequence[Trip],
    roster: Sequence[User],
    epsilon: float = settings.SETTLEMENT_EPSILON,
) -> List[Settlement]:
    """Calculate the payments that settle all balances for a trip list."""
    return settle_balances(compute_balances(trips, roster), epsilon)


def compute_trip_costs(trips: Sequence[Trip], roster: Sequence[User]) -> Dict[User, float]:
    """Gross cost of car usage per user: the sum of their shares of trips they joined."""
    costs: Dict[User, float] = {user: 0.0 for user in roster}
    roster_ids = {user.id for user in roster}

    for trip in trips:
        _check_participants(trip, roster_ids)
        share = participant_share(trip)
        for user in roster:
            if user.id in trip.participant_ids:
                costs[user] += share

    return costs


class SettlementEngine:
    """Settlement calculations bound to a roster and tolerance."""

    def __init__(self, roster: Sequence[User], epsilon: float = settings.SETTLEMENT_EPSILON):
        self.roster = tuple(roster)
        self.epsilon = epsilon

    def balances(self, trips: Sequence[Trip]) -> Dict[User, float]:
        return compute_balances(trips, self.roster)

    def settlements(self, trips: Sequence[Trip]) -> List[Settlement]:
        settlements = compute_settlements(trips, self.roster, self.epsilon)
        logger.debug("Computed %d settlements for %d trips", len(settlements), len(trips))
        return settlements

    def trip_costs(self, trips: Sequence[Trip]) -> Dict[User, float]:
        return compute_trip_costs(trips, self.roster)


# Singleton instance for default settlement engine
_default_engine: Optional[SettlementEngine] = None


def get_settlement_engine() -> SettlementEngine:
    """Get the settlement engine for the configured roster."""
    global _default_engine
    if _default_engine is None:
        _default_engine = SettlementEngine(settings.get_roster())
    return _default_engine
