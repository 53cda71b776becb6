#!/usr/bin/env python3
"""
Trip store management utility for the CarShare system.

Usage:
    python manage_db.py init      - Create the trip table
    python manage_db.py show      - Show all trips
    python manage_db.py summary   - Show balances and settlements
    python manage_db.py clear     - Delete all trips
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from carshare.config import settings
from carshare.database import DatabaseManager
from carshare.services.settlement import get_settlement_engine

CURRENCY = settings.CURRENCY_SUFFIX


def init_database():
    """Create the trip table if it does not exist."""
    print("Initializing database...")
    DatabaseManager()
    print("Database initialized successfully!")


def show_trips():
    """Display all trips."""
    db = DatabaseManager()
    trips = db.get_all_trips()

    print("\n" + "="*70)
    print("TRIPS IN LOCAL DATASTORE")
    print("="*70)
    print(f"{'Date':<12} {'Km':>8} {'Price':>12}  {'Participants'}")
    print("-"*70)

    for trip in trips:
        names = ", ".join(
            settings.get_user(user_id).name if settings.get_user(user_id) else user_id
            for user_id in sorted(trip.participant_ids)
        )
        print(
            f"{trip.date:%Y-%m-%d}   {trip.kilometers:>8.1f} "
            f"{trip.total_price:>9.2f} {CURRENCY}  {names}"
        )

    print("-"*70)
    print(f"Total trips: {len(trips)}")


def show_summary():
    """Display balances and the payments that settle them."""
    db = DatabaseManager()
    trips = db.get_all_trips()
    engine = get_settlement_engine()

    print("\n" + "="*50)
    print("BALANCES")
    print("="*50)
    for user, balance in engine.balances(trips).items():
        print(f"{user.name:<15} {balance:>+12.2f} {CURRENCY}")

    print("\n" + "="*50)
    print("SETTLEMENTS")
    print("="*50)
    settlements = engine.settlements(trips)
    if not settlements:
        print("No settlements needed")
    for settlement in settlements:
        print(
            f"{settlement.payer.name} -> {settlement.payee.name}: "
            f"{settlement.amount:.2f} {CURRENCY}"
        )


def clear_trips():
    """Delete every trip after confirmation."""
    confirm = input("Delete ALL trips? (yes/no): ")
    if confirm.lower() == 'yes':
        deleted = DatabaseManager().delete_all_trips()
        print(f"Deleted {deleted} trips")
    else:
        print("Cancelled.")


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    command = sys.argv[1].lower()

    commands = {
        'init': init_database,
        'show': show_trips,
        'summary': show_summary,
        'clear': clear_trips,
    }

    if command in commands:
        commands[command]()
    else:
        print(f"Unknown command: {command}")
        print(__doc__)
        sys.exit(1)


if __name__ == "__main__":
    main()
